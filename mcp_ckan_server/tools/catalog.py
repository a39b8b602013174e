"""Dataset (package) tools."""

from typing import List, Optional, Union

from pydantic import Field

from mcp_ckan_server.tooling import Count, Offset, ToolDefinition, ToolParameters, ckan_handler


class PackageSearchParams(ToolParameters):
    q: Optional[str] = Field(None, description="Free text query")
    fq: Optional[Union[str, List[str]]] = Field(
        None,
        description=(
            'Filter query (CKAN fq). Accepts string or array of strings. '
            'Examples: "language:de", "organization:bundesamt-fur-statistik-bfs"'
        ),
    )
    sort: Optional[str] = Field(None, description='Sort expression, e.g. "score desc, metadata_created desc"')
    rows: Optional[Count] = Field(None, description="Number of results per page")
    start: Optional[Offset] = Field(None, description="Starting offset for results")
    facet_field: Optional[List[str]] = Field(
        None,
        alias="facetField",
        description='Facet fields to aggregate (CKAN facet.field), e.g. ["tags","keywords"]',
    )
    facet_limit: Optional[Count] = Field(
        None, alias="facetLimit", description="Max facet values per field (CKAN facet.limit)"
    )


class PackageShowParams(ToolParameters):
    id: str = Field(description="Dataset id or name")


class PackageListParams(ToolParameters):
    offset: Optional[Offset] = Field(None, description="Starting offset")
    limit: Optional[Count] = Field(None, description="Max items to return")
    since: Optional[str] = Field(None, description="ISO time or CKAN since parameter")


class CurrentPackageListParams(ToolParameters):
    offset: Optional[Offset] = Field(None, description="Starting offset")
    limit: Optional[Count] = Field(None, description="Max items to return")


class PackageAutocompleteParams(ToolParameters):
    q: str = Field(description="Query prefix")
    limit: Optional[Count] = Field(None, description="Max items to return")


class PackageActivityListParams(ToolParameters):
    id: str = Field(description="Dataset id or name")
    limit: Optional[Count] = None
    offset: Optional[Offset] = None


class RecentlyChangedParams(ToolParameters):
    since_time: Optional[str] = Field(None, description="ISO timestamp filter (defaults to the last hour)")
    limit: Optional[Count] = None
    offset: Optional[Offset] = None


@ckan_handler
async def package_search(client, params: PackageSearchParams):
    return await client.package_search(**params.model_dump(exclude_none=True))


@ckan_handler
async def package_show(client, params: PackageShowParams):
    return await client.package_show(params.id)


@ckan_handler
async def package_list(client, params: PackageListParams):
    return await client.package_list(**params.model_dump(exclude_none=True))


@ckan_handler
async def current_package_list_with_resources(client, params: CurrentPackageListParams):
    return await client.current_package_list_with_resources(**params.model_dump(exclude_none=True))


@ckan_handler
async def package_autocomplete(client, params: PackageAutocompleteParams):
    return await client.package_autocomplete(params.q, params.limit)


@ckan_handler
async def package_activity_list(client, params: PackageActivityListParams):
    return await client.package_activity_list(**params.model_dump(exclude_none=True))


@ckan_handler
async def recently_changed_packages_activity_list(client, params: RecentlyChangedParams):
    return await client.recently_changed_packages_activity_list(**params.model_dump(exclude_none=True))


def get_catalog_tools() -> List[ToolDefinition]:
    return [
        ToolDefinition(
            name="package_search",
            description=(
                "Search datasets (CKAN package_search). Supports q, fq, sorting, "
                "pagination and facets."
            ),
            parameters_model=PackageSearchParams,
            handler=package_search,
        ),
        ToolDefinition(
            name="package_show",
            description="Get a dataset (package) by id or name (CKAN package_show).",
            parameters_model=PackageShowParams,
            handler=package_show,
        ),
        ToolDefinition(
            name="package_list",
            description="List dataset ids (CKAN package_list).",
            parameters_model=PackageListParams,
            handler=package_list,
        ),
        ToolDefinition(
            name="current_package_list_with_resources",
            description="List datasets with embedded resources (CKAN current_package_list_with_resources).",
            parameters_model=CurrentPackageListParams,
            handler=current_package_list_with_resources,
        ),
        ToolDefinition(
            name="package_autocomplete",
            description="Autocomplete dataset names (CKAN package_autocomplete).",
            parameters_model=PackageAutocompleteParams,
            handler=package_autocomplete,
        ),
        ToolDefinition(
            name="package_activity_list",
            description="Activity stream for a dataset (CKAN package_activity_list).",
            parameters_model=PackageActivityListParams,
            handler=package_activity_list,
        ),
        ToolDefinition(
            name="recently_changed_packages_activity_list",
            description=(
                "Global activity feed for recently changed datasets "
                "(CKAN recently_changed_packages_activity_list)."
            ),
            parameters_model=RecentlyChangedParams,
            handler=recently_changed_packages_activity_list,
        ),
    ]
