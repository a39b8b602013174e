#!/usr/bin/env python3

import asyncio
import logging
import signal
import sys
from typing import Any, Dict, List, Optional

import mcp.server.stdio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from mcp_ckan_server import __version__
from mcp_ckan_server.client import CKANAPIClient
from mcp_ckan_server.config import LOGGER_NAME, Settings, configure_logging
from mcp_ckan_server.dispatch import ToolDispatcher
from mcp_ckan_server.tools import build_tools

SERVER_NAME = "ckan-mcp-server"

logger = logging.getLogger(LOGGER_NAME)


def to_call_tool_result(envelope: Dict[str, Any]) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=item["text"]) for item in envelope["content"]],
        isError=bool(envelope.get("isError", False)),
    )


def create_server(dispatcher: ToolDispatcher) -> Server:
    """Bind the dispatcher to MCP list_tools / call_tool requests"""
    server = Server(SERVER_NAME)

    @server.list_tools()
    async def handle_list_tools() -> List[types.Tool]:
        """List available CKAN API tools"""
        return [
            types.Tool(name=tool["name"], description=tool["description"], inputSchema=tool["inputSchema"])
            for tool in dispatcher.list_tools()
        ]

    # argument validation is done by the dispatcher, not the SDK
    @server.call_tool(validate_input=False)
    async def handle_call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> types.CallToolResult:
        """Handle tool calls to CKAN API"""
        envelope = await dispatcher.call_tool(name, arguments)
        return to_call_tool_result(envelope)

    return server


def _install_signal_handlers() -> None:
    loop = asyncio.get_running_loop()
    task = asyncio.current_task()

    def shutdown(sig: signal.Signals) -> None:
        logger.info(f"Shutting down MCP server ({sig.name})")
        task.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown, sig)
        except (NotImplementedError, RuntimeError):
            # add_signal_handler is unavailable on Windows event loops
            pass


async def main(settings: Optional[Settings] = None):
    """Main server function"""
    settings = settings or Settings.from_env()
    configure_logging(settings)
    _install_signal_handlers()

    async with CKANAPIClient(settings) as ckan_client:
        dispatcher = ToolDispatcher(ckan_client, build_tools())
        server = create_server(dispatcher)
        logger.info(f"{SERVER_NAME} started (stdio transport) base_url={settings.base_url}")

        async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                InitializationOptions(
                    server_name=SERVER_NAME,
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                ),
            )


def run() -> None:
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    except Exception:
        logger.exception("Failed to start MCP server")
        sys.exit(1)


if __name__ == "__main__":
    run()
