#!/usr/bin/env python3
"""surfcalc MCP Server - surface calculus service.

This module provides the MCP server implementation with tool routing
handled by the centralized tool registry.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
from typing import Any, AsyncIterator, Dict, List

from mcp.server import Server
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from mcp.types import TextContent, Tool
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.routing import Mount

from surfcalc import __version__
from surfcalc.errors import map_error_for_mcp
from surfcalc.exceptions import RegistryError
from surfcalc.logger import session_logger as logger
from surfcalc.mcp_server.tool_registry import get_registry, initialize_registry

app = Server("surfcalc-service")


def _json_text(data: Dict[str, Any]) -> TextContent:
    """Create JSON text content; undefined values are already encoded as null."""
    return TextContent(type="text", text=json.dumps(data, indent=2))


# Built-in tools (not from math engine)
BUILTIN_TOOLS = [
    Tool(
        name="ping",
        description="Health check - returns server status",
        inputSchema={"type": "object", "properties": {}},
    ),
]


@app.list_tools()
async def handle_list_tools() -> List[Tool]:
    """List available tools."""
    registry = get_registry()
    return BUILTIN_TOOLS + registry.get_mcp_tools()


@app.call_tool()
async def handle_call_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
    """Handle tool invocations."""
    logger.info("Tool called", tool=name, argument_keys=sorted(arguments or {}))

    registry = get_registry()
    if name == "ping":
        return [_json_text({
            "status": "ok",
            "service": "surfcalc",
            "version": __version__,
            "tools": len(registry.get_tool_names()),
        })]

    if registry.has_tool(name):
        return await _handle_registry_tool(name, arguments or {})

    return [_json_text(map_error_for_mcp(RegistryError(f"Unknown tool: {name}")))]


async def _handle_registry_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
    """Handle tool invocation via registry."""
    try:
        # Grid sampling is CPU bound
        result = await asyncio.to_thread(get_registry().handle_tool, name, arguments)

        # Structured results are returned as-is, arrays with their shape
        if result.dtype == "object":
            return [_json_text(result.result)]  # type: ignore

        return [_json_text(result.to_dict())]

    except Exception as e:
        logger.error("Tool execution failed", tool=name, error=str(e), error_type=type(e).__name__)
        return [_json_text(map_error_for_mcp(e))]


async def initialize_server() -> None:
    """Initialize server components."""
    initialize_registry()
    logger.info("surfcalc server initialized")


# Streamable HTTP setup
session_manager_http = StreamableHTTPSessionManager(
    app=app,
    event_store=None,
    json_response=False,
    stateless=False,
)


async def handle_streamable_http(scope, receive, send) -> None:
    """Handle HTTP requests."""
    await session_manager_http.handle_request(scope, receive, send)


@contextlib.asynccontextmanager
async def lifespan(starlette_app) -> AsyncIterator[None]:
    """Manage server lifecycle."""
    logger.info("Starting surfcalc server")
    await initialize_server()
    async with session_manager_http.run():
        yield


starlette_app = Starlette(
    debug=False,
    routes=[Mount("/mcp/", app=handle_streamable_http)],
    lifespan=lifespan,
)

starlette_app = CORSMiddleware(
    starlette_app,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "DELETE"],
    expose_headers=["Mcp-Session-Id"],
)


async def main(host: str = "0.0.0.0", port: int = 8020) -> None:
    """Run the server."""
    import uvicorn

    config = uvicorn.Config(starlette_app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    asyncio.run(main())
