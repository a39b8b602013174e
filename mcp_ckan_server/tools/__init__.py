"""Tool registry: every CKAN tool, grouped by domain, in one flat namespace."""

from typing import Iterable, List, Tuple

from mcp_ckan_server.tooling import ToolDefinition
from mcp_ckan_server.tools.catalog import get_catalog_tools
from mcp_ckan_server.tools.datastore import get_datastore_tools
from mcp_ckan_server.tools.org_taxonomy import get_org_taxonomy_tools
from mcp_ckan_server.tools.resources import get_resources_tools
from mcp_ckan_server.tools.status import get_status_tools


def merge_tools(*groups: Iterable[ToolDefinition]) -> Tuple[ToolDefinition, ...]:
    """Concatenate tool groups, keeping order.

    Raises:
        ValueError: If two tools share a name.
    """
    merged: List[ToolDefinition] = []
    seen = set()
    for group in groups:
        for tool in group:
            if tool.name in seen:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            seen.add(tool.name)
            merged.append(tool)
    return tuple(merged)


def build_tools() -> Tuple[ToolDefinition, ...]:
    return merge_tools(
        get_catalog_tools(),
        get_org_taxonomy_tools(),
        get_datastore_tools(),
        get_resources_tools(),
        get_status_tools(),
    )


__all__ = ["build_tools", "merge_tools"]
