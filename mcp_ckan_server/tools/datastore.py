"""Datastore tools: table info, row search and (opt-in) SQL."""

from typing import Any, Dict, List, Optional, Union

from pydantic import Field

from mcp_ckan_server.tooling import Count, Offset, ToolDefinition, ToolParameters, ckan_handler


class DatastoreInfoParams(ToolParameters):
    id: str = Field(description="Resource id")
    include_private: Optional[bool] = None


class DatastoreSearchParams(ToolParameters):
    resource_id: str = Field(description="Resource id")
    q: Optional[Union[str, Dict[str, Any]]] = Field(
        None, description="Query string or object (CKAN supports object for advanced search)."
    )
    filters: Optional[Dict[str, Any]] = Field(None, description="Filters object to match exact values on fields.")
    fields: Optional[List[str]] = Field(None, description="Subset of fields to return.")
    sort: Optional[str] = Field(None, description='Sort expression (e.g., "date desc")')
    language: Optional[str] = Field(None, description="Language hint")
    include_total: Optional[bool] = Field(None, description="Include total count (default false for performance)")
    limit: Optional[Count] = Field(None, description="Row limit (server clamps to max)")
    offset: Optional[Offset] = Field(None, description="Offset for pagination")
    distinct: Optional[bool] = None
    plain: Optional[bool] = None
    full_text: Optional[bool] = None


class DatastoreSearchSqlParams(ToolParameters):
    sql: str = Field(min_length=1, description="SQL query for CKAN datastore")


@ckan_handler
async def datastore_info(client, params: DatastoreInfoParams):
    return await client.datastore_info(params.id, params.include_private)


@ckan_handler
async def datastore_search(client, params: DatastoreSearchParams):
    return await client.datastore_search(**params.model_dump(exclude_none=True))


@ckan_handler
async def datastore_search_sql(client, params: DatastoreSearchSqlParams):
    return await client.datastore_search_sql(params.sql)


def get_datastore_tools() -> List[ToolDefinition]:
    return [
        ToolDefinition(
            name="datastore_info",
            description="Get datastore info for a resource (CKAN datastore_info).",
            parameters_model=DatastoreInfoParams,
            handler=datastore_info,
        ),
        ToolDefinition(
            name="datastore_search",
            description=(
                "Search rows in CKAN datastore (CKAN datastore_search). "
                "Supports q, filters, fields, sort, pagination."
            ),
            parameters_model=DatastoreSearchParams,
            handler=datastore_search,
        ),
        ToolDefinition(
            name="datastore_search_sql",
            description=(
                "Execute read-only SQL against CKAN datastore (CKAN datastore_search_sql). "
                "Disabled by default by server config."
            ),
            parameters_model=DatastoreSearchSqlParams,
            handler=datastore_search_sql,
        ),
    ]
