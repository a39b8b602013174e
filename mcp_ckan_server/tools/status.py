from typing import List

from pydantic import Field

from mcp_ckan_server.tooling import ToolDefinition, ToolParameters, ckan_handler


class StatusShowParams(ToolParameters):
    pass


class HelpShowParams(ToolParameters):
    name: str = Field(
        description='CKAN action name to get help for, e.g. "package_show", "package_search", "datastore_search"'
    )


@ckan_handler
async def status_show(client, params):
    return await client.status_show()


@ckan_handler
async def help_show(client, params):
    return await client.help_show(params.name)


def get_status_tools() -> List[ToolDefinition]:
    return [
        ToolDefinition("status_show", "Platform status (CKAN status_show)", StatusShowParams, status_show),
        ToolDefinition("help_show", "Show CKAN help for a given action (CKAN help_show)", HelpShowParams, help_show),
    ]
