"""Method dispatch table for the local MCP server.

Every supported client request type maps statically to the upstream method it
is forwarded as and the result model the answer is validated into. One tool,
``update``, is answered locally: it clears the session so the next call starts
a fresh upstream session, and it is advertised by appending it to every
forwarded ``tools/list`` result.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Type, TypeVar

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.shared.exceptions import McpError
from pydantic import BaseModel, ValidationError

from mcp_bridge.bridge import RequestBridge
from mcp_bridge.errors import BridgeError, UpstreamProtocolError

logger = logging.getLogger(__name__)

RESET_TOOL_NAME = "update"
RESET_TOOL: Dict[str, Any] = {
    "name": RESET_TOOL_NAME,
    "description": "Refresh the tool list from the upstream server and reset the session cache.",
    "inputSchema": {"type": "object", "properties": {}, "required": []},
}
RESET_CONFIRMATION = (
    "Successfully cleared session cache. The tool list will be re-initialized from the upstream on the next request."
)

T = TypeVar("T")
Handler = Callable[[Any], Awaitable[types.ServerResult]]


@dataclass(frozen=True)
class Route:
    method: str
    result_type: Type[BaseModel]


DISPATCH_TABLE: Dict[type, Route] = {
    types.ListToolsRequest: Route("tools/list", types.ListToolsResult),
    types.CallToolRequest: Route("tools/call", types.CallToolResult),
    types.ListResourcesRequest: Route("resources/list", types.ListResourcesResult),
    types.ReadResourceRequest: Route("resources/read", types.ReadResourceResult),
    types.ListPromptsRequest: Route("prompts/list", types.ListPromptsResult),
    types.GetPromptRequest: Route("prompts/get", types.GetPromptResult),
    types.CompleteRequest: Route("completion/complete", types.CompleteResult),
    types.SetLevelRequest: Route("logging/setLevel", types.EmptyResult),
}


def request_params(request: Any) -> Dict[str, Any]:
    """Dump typed request params back into their JSON-RPC wire form."""
    params: Optional[BaseModel] = getattr(request, "params", None)
    if params is None:
        return {}
    return params.model_dump(by_alias=True, mode="json", exclude_none=True)


def with_reset_tool(result: Any) -> Any:
    """Append the local reset tool to an upstream ``tools/list`` result."""
    if isinstance(result, dict) and isinstance(result.get("tools"), list):
        result["tools"].append(dict(RESET_TOOL))
    return result


async def run_detached(call: Awaitable[T]) -> T:
    """Await ``call`` in its own task so client cancellation does not abort it.

    The upstream exchange keeps running to completion or timeout even if the
    awaiting handler is cancelled.
    """
    task = asyncio.ensure_future(call)
    task.add_done_callback(_log_orphaned_failure)
    return await asyncio.shield(task)


def _log_orphaned_failure(task: asyncio.Future) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Forwarded call finished with %r", task.exception())


class Dispatcher:
    """Builds the request handlers installed into the low-level MCP server."""

    def __init__(self, bridge: RequestBridge) -> None:
        self._bridge = bridge

    def handlers(self) -> Dict[type, Handler]:
        table: Dict[type, Handler] = {
            request_type: self._forwarder(route) for request_type, route in DISPATCH_TABLE.items()
        }
        table[types.ListToolsRequest] = self._forwarder(DISPATCH_TABLE[types.ListToolsRequest], with_reset_tool)
        table[types.CallToolRequest] = self._call_tool
        return table

    def install(self, server: Server) -> None:
        server.request_handlers.update(self.handlers())

    async def forward(self, route: Route, params: Dict[str, Any]) -> Any:
        try:
            return await run_detached(self._bridge.forward(route.method, params))
        except BridgeError as err:
            raise McpError(err.to_error_data()) from err

    def _forwarder(self, route: Route, after: Optional[Callable[[Any], Any]] = None) -> Handler:
        async def handler(request: Any) -> types.ServerResult:
            result = await self.forward(route, request_params(request))
            if after is not None:
                result = after(result)
            return types.ServerResult(_validate(route, result))

        return handler

    async def _call_tool(self, request: types.CallToolRequest) -> types.ServerResult:
        if request.params.name == RESET_TOOL_NAME:
            logger.info("Intercepted '%s' tool call. Clearing session...", RESET_TOOL_NAME)
            self._bridge.reset()
            return types.ServerResult(
                types.CallToolResult(content=[types.TextContent(type="text", text=RESET_CONFIRMATION)])
            )
        route = DISPATCH_TABLE[types.CallToolRequest]
        result = await self.forward(route, request_params(request))
        return types.ServerResult(_validate(route, result))


def _validate(route: Route, result: Any) -> BaseModel:
    try:
        return route.result_type.model_validate(result if result is not None else {})
    except ValidationError as e:
        err = UpstreamProtocolError(f"Upstream {route.method} result rejected: {e}")
        raise McpError(err.to_error_data()) from e
