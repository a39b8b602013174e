"""Resource and resource view tools."""

from typing import List

from pydantic import Field

from mcp_ckan_server.tooling import ToolDefinition, ToolParameters, ckan_handler


class ResourceIdParams(ToolParameters):
    id: str = Field(description="Resource id")


class ResourceViewIdParams(ToolParameters):
    id: str = Field(description="Resource view id")


class ResourceViewListParams(ToolParameters):
    resource_id: str = Field(description="Resource id")


@ckan_handler
async def resource_show(client, params: ResourceIdParams):
    return await client.resource_show(params.id)


@ckan_handler
async def resource_view_show(client, params: ResourceViewIdParams):
    return await client.resource_view_show(params.id)


@ckan_handler
async def resource_view_list(client, params: ResourceViewListParams):
    return await client.resource_view_list(params.resource_id)


def get_resources_tools() -> List[ToolDefinition]:
    return [
        ToolDefinition(
            name="resource_show",
            description="Get resource by id (CKAN resource_show).",
            parameters_model=ResourceIdParams,
            handler=resource_show,
        ),
        ToolDefinition(
            name="resource_view_show",
            description="Get resource view by id (CKAN resource_view_show).",
            parameters_model=ResourceViewIdParams,
            handler=resource_view_show,
        ),
        ToolDefinition(
            name="resource_view_list",
            description="List views for a resource (CKAN resource_view_list).",
            parameters_model=ResourceViewListParams,
            handler=resource_view_list,
        ),
    ]
