"""Session error classification.

Upstream MCP servers do not share a structured error taxonomy for session
problems, so the rules below combine HTTP status codes, one reserved JSON-RPC
code and message substrings. The substring list reflects the wording of the
servers the bridge has been used against and may be incomplete for others.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional, Union

from mcp_bridge.errors import BridgeError, UpstreamApplicationError, UpstreamHTTPError
from mcp_bridge.schemas.envelope import ErrorObject

SESSION_HTTP_STATUSES = frozenset({401, 406})
SESSION_ERROR_CODE = -32000
SESSION_MESSAGE_MARKERS = ("session", "not initialized", "expired")
ALREADY_INITIALIZED_MARKERS = ("already initialized", "already started")

Classifiable = Union[BaseException, ErrorObject]


class ErrorKind(str, Enum):
    SESSION = "session"
    OTHER = "other"


def _fields(error: Classifiable) -> tuple[Optional[int], Optional[int], str]:
    """Extract (http status, json-rpc code, message) from any supported error shape."""
    if isinstance(error, ErrorObject):
        return None, error.code, error.message or ""
    if isinstance(error, UpstreamApplicationError):
        return None, error.error.code, error.error.message or ""
    if isinstance(error, UpstreamHTTPError):
        return error.status_code, error.upstream_code, error.message or ""
    if isinstance(error, BridgeError):
        # Locally raised codes are not upstream verdicts
        return error.status_code, None, error.message or ""
    return getattr(error, "status_code", None), None, str(error)


def _contains_any(message: str, markers: Iterable[str]) -> bool:
    lowered = message.lower()
    return any(m in lowered for m in markers)


def classify(error: Classifiable) -> ErrorKind:
    """Decide whether a failure is caused by a missing, expired or invalid session."""
    status, code, message = _fields(error)
    if status in SESSION_HTTP_STATUSES:
        return ErrorKind.SESSION
    if code == SESSION_ERROR_CODE:
        return ErrorKind.SESSION
    if _contains_any(message, SESSION_MESSAGE_MARKERS):
        return ErrorKind.SESSION
    return ErrorKind.OTHER


def is_session_error(error: Classifiable) -> bool:
    return classify(error) is ErrorKind.SESSION


def is_already_initialized(error: Classifiable) -> bool:
    """True for handshake replies saying the upstream session is already set up."""
    _, _, message = _fields(error)
    return _contains_any(message, ALREADY_INITIALIZED_MARKERS)
