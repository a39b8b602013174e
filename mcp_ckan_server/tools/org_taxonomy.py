"""Organization, group, tag, license and vocabulary tools."""

from typing import List, Optional

from pydantic import Field

from mcp_ckan_server.tooling import Count, Offset, ToolDefinition, ToolParameters, ckan_handler


class OrganizationListParams(ToolParameters):
    all_fields: Optional[bool] = Field(None, description="Include all organization fields")
    limit: Optional[Count] = None
    offset: Optional[Offset] = None


class GroupListParams(ToolParameters):
    order_by: Optional[str] = None
    limit: Optional[Count] = None
    offset: Optional[Offset] = None
    all_fields: Optional[bool] = Field(None, description="Include all group fields")


class TagListParams(ToolParameters):
    query: Optional[str] = Field(None, description="Only return tags containing this string")


class AutocompleteParams(ToolParameters):
    q: str = Field(description="Query prefix")
    limit: Optional[Count] = None


class NoParams(ToolParameters):
    pass


def _id_params(description: str):
    class IdParams(ToolParameters):
        id: str = Field(description=description)

    return IdParams


OrganizationShowParams = _id_params("Organization id or name")
GroupShowParams = _id_params("Group id or name")
TagShowParams = _id_params("Tag name")
VocabularyShowParams = _id_params("Vocabulary name")


@ckan_handler
async def organization_list(client, params):
    return await client.organization_list(**params.model_dump(exclude_none=True))


@ckan_handler
async def organization_show(client, params):
    return await client.organization_show(params.id)


@ckan_handler
async def group_list(client, params):
    return await client.group_list(**params.model_dump(exclude_none=True))


@ckan_handler
async def group_show(client, params):
    return await client.group_show(params.id)


@ckan_handler
async def tag_list(client, params):
    return await client.tag_list(params.query)


@ckan_handler
async def tag_autocomplete(client, params):
    return await client.tag_autocomplete(params.q, params.limit)


@ckan_handler
async def tag_show(client, params):
    return await client.tag_show(params.id)


@ckan_handler
async def license_list(client, params):
    return await client.license_list()


@ckan_handler
async def vocabulary_list(client, params):
    return await client.vocabulary_list()


@ckan_handler
async def vocabulary_show(client, params):
    return await client.vocabulary_show(params.id)


def get_org_taxonomy_tools() -> List[ToolDefinition]:
    return [
        ToolDefinition("organization_list", "List organizations (CKAN organization_list)",
                       OrganizationListParams, organization_list),
        ToolDefinition("organization_show", "Get organization by id or name (CKAN organization_show)",
                       OrganizationShowParams, organization_show),
        ToolDefinition("group_list", "List groups (CKAN group_list)", GroupListParams, group_list),
        ToolDefinition("group_show", "Get group by id or name (CKAN group_show)", GroupShowParams, group_show),
        ToolDefinition("tag_list", "List tags (CKAN tag_list)", TagListParams, tag_list),
        ToolDefinition("tag_autocomplete", "Autocomplete tags (CKAN tag_autocomplete)",
                       AutocompleteParams, tag_autocomplete),
        ToolDefinition("license_list", "List known licenses (CKAN license_list)", NoParams, license_list),
        ToolDefinition("vocabulary_list", "List vocabularies (CKAN vocabulary_list)", NoParams, vocabulary_list),
        ToolDefinition("vocabulary_show", "Show a vocabulary and its tags (CKAN vocabulary_show)",
                       VocabularyShowParams, vocabulary_show),
        ToolDefinition("tag_show", "Show details for a tag (CKAN tag_show)", TagShowParams, tag_show),
    ]
