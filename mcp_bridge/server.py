"""Local MCP server over stdio.

Exposes the dispatch table through the ``mcp`` low-level `Server` and serves it
on stdin/stdout. The advertised capabilities (tools, resources, prompts,
logging, completions) follow from the installed request handlers.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from mcp.server.lowlevel import NotificationOptions, Server
from mcp.server.stdio import stdio_server

from mcp_bridge.bridge import RequestBridge, build_bridge
from mcp_bridge.core.config import BridgeSettings
from mcp_bridge.dispatch import Dispatcher

SERVER_NAME = "mcp-stdio-http-proxy"
SERVER_VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def create_server(bridge: RequestBridge) -> Server:
    """Build the local server with every supported method wired to ``bridge``."""
    server: Server = Server(SERVER_NAME, version=SERVER_VERSION)
    Dispatcher(bridge).install(server)
    return server


async def run_stdio(settings: BridgeSettings, *, client: Optional[httpx.AsyncClient] = None) -> None:
    """Serve the bridge on stdio until the client closes stdin."""
    bridge = build_bridge(settings, client=client)
    server = create_server(bridge)
    init_options = server.create_initialization_options(NotificationOptions(), {})
    logger.info(f"Running on stdio → forwarding to {settings.upstream_url}")
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, init_options)
    finally:
        await bridge.aclose()
        logger.info("Shutdown complete")
