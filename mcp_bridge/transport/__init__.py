"""Transport interfaces for upstream MCP communication.

Defines the lightweight Protocol used by the session manager and the request
bridge, so tests can swap in fakes. The concrete HTTP implementation lives in
`http.py`, the event-stream decoding in `sse.py`.
"""

from __future__ import annotations

from typing import Protocol

from mcp_bridge.schemas.envelope import NotificationEnvelope, RequestEnvelope, ResponseEnvelope

from .http import SESSION_HEADER, UpstreamTransport
from .sse import EventStreamDecoder, read_event_stream_answer


class Transport(Protocol):
    """Protocol for request/response transports to the upstream.

    Examples:
        >>> resp = await transport.send(RequestEnvelope(method="tools/list"))
        >>> assert resp.result is not None or resp.error is not None
    """

    async def send(self, envelope: RequestEnvelope) -> ResponseEnvelope:
        """Send a request envelope and return the parsed answer.

        Raises:
            BridgeError: Implementations raise a subclass for transport, HTTP
                and protocol failures.
        """
        ...

    async def notify(self, notification: NotificationEnvelope) -> None:
        """Send a one-way notification."""
        ...

    async def aclose(self) -> None: ...


__all__ = [
    "EventStreamDecoder",
    "SESSION_HEADER",
    "Transport",
    "UpstreamTransport",
    "read_event_stream_answer",
]
