"""Error types raised while talking to the upstream MCP endpoint.

Purpose:
- Give every failure on the upstream path a typed exception carrying the
  JSON-RPC code, message and optional data the client should eventually see.
- Expose HTTP context (status code) for diagnosis and session classification.

Usage:
- Catch `BridgeError` for any upstream failure and call `to_error_data()` to
  hand it back to the local client unchanged.
- `UpstreamApplicationError` wraps a well-formed `error` member returned by the
  upstream and preserves its code, message and data verbatim.
"""

from __future__ import annotations

from typing import Any, Optional

from mcp.types import INTERNAL_ERROR, ErrorData

from mcp_bridge.schemas.envelope import ErrorObject


class BridgeError(Exception):
    """Base error for upstream failures.

    Args:
        message: Human-readable error description.
        code: JSON-RPC error code reported to the local client.
        data: Optional structured payload (e.g. upstream error data).
        status_code: Optional HTTP status code associated with the failure.
    """

    def __init__(
        self,
        message: str,
        *,
        code: int = INTERNAL_ERROR,
        data: Optional[Any] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data
        self.status_code = status_code

    def to_error_data(self) -> ErrorData:
        return ErrorData(code=self.code, message=self.message, data=self.data)


class UpstreamConnectionError(BridgeError):
    """The upstream could not be reached (DNS, refused connection, reset)."""


class UpstreamTimeoutError(UpstreamConnectionError):
    """An upstream exchange exceeded the configured deadline."""

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"Upstream request timed out after {timeout_seconds:g}s")
        self.timeout_seconds = timeout_seconds


class UpstreamHTTPError(BridgeError):
    """The upstream answered with a non-2xx status.

    ``code``/``message``/``data`` come from a structured JSON-RPC error body when
    one could be parsed; the status is always kept in ``status_code``.
    """

    def __init__(
        self,
        status_code: int,
        *,
        message: Optional[str] = None,
        code: Optional[int] = None,
        data: Optional[Any] = None,
        body: str = "",
    ) -> None:
        super().__init__(
            message or f"Upstream error {status_code}: {body}",
            code=INTERNAL_ERROR if code is None else code,
            data=data,
            status_code=status_code,
        )
        self.upstream_code = code
        self.body = body


class UpstreamProtocolError(BridgeError):
    """The upstream reply could not be understood (bad JSON, truncated stream)."""


class UpstreamApplicationError(BridgeError):
    """A well-formed JSON-RPC ``error`` returned by the upstream."""

    def __init__(self, error: ErrorObject) -> None:
        super().__init__(error.message or "Unknown upstream error", code=error.code, data=error.data)
        self.error = error

    def to_error_data(self) -> ErrorData:
        return ErrorData(code=self.error.code, message=self.error.message, data=self.error.data)
