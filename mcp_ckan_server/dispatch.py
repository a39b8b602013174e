import logging
from typing import Any, Dict, Iterable, List, Optional

from mcp_ckan_server.config import LOGGER_NAME
from mcp_ckan_server.errors import MCPErrorType, ToolArgumentError
from mcp_ckan_server.tooling import Envelope, ToolDefinition, error_result, is_envelope
from mcp_ckan_server.tools import merge_tools

logger = logging.getLogger(LOGGER_NAME)


class ToolDispatcher:
    """Routes list/call requests to tool definitions.

    Holds no per-request state, so concurrent ``call_tool`` coroutines never
    interfere with each other. Every call resolves to a result envelope; only
    :meth:`list_tools` may raise.
    """

    def __init__(self, client: Any, tools: Iterable[ToolDefinition]):
        self.client = client
        self._tools = merge_tools(tools)
        self._by_name = {tool.name: tool for tool in self._tools}

    def list_tools(self) -> List[Dict[str, Any]]:
        try:
            descriptors = [tool.descriptor() for tool in self._tools]
        except Exception as e:
            logger.exception("ListTools failed")
            raise RuntimeError(f"Failed to list tools: {e}") from e
        logger.info(f"ListTools count={len(descriptors)}")
        return descriptors

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Envelope:
        arguments = {} if arguments is None else arguments
        logger.info(f"CallTool request name={name} args={arguments}")

        tool = self._by_name.get(name)
        if tool is None:
            message = f"Tool not found: {name}"
            logger.warning(f"{MCPErrorType.UNKNOWN_TOOL.value}: {message}")
            return error_result(message)

        try:
            params = tool.validate(arguments)
        except ToolArgumentError as e:
            logger.warning(f"{e.error_type.value}: {e}")
            return error_result(str(e))

        try:
            result = await tool.handler(self.client, params)
        except Exception as e:
            logger.exception(f"CallTool handler error name={name}")
            return error_result(f'Tool "{name}" failed: {e}')

        if not is_envelope(result):
            message = f'Tool "{name}" returned invalid result'
            logger.error(f"{MCPErrorType.INVALID_RESULT.value}: {message}: {result!r}")
            return error_result(message)

        logger.info(f"CallTool response name={name} isError={bool(result.get('isError'))}")
        return result
