"""JSON-RPC 2.0 envelopes exchanged with the upstream MCP endpoint."""

from __future__ import annotations

import uuid
from typing import Any, Dict, Optional, Union

from pydantic import Field, model_validator

from .base import BaseSchema

JSONRPC_VERSION = "2.0"


def new_correlation_id(prefix: str = "") -> str:
    """Return a fresh request id, optionally prefixed (e.g. ``init-``)."""
    return f"{prefix}{uuid.uuid4().hex}"


class RequestEnvelope(BaseSchema):
    jsonrpc: str = Field(default=JSONRPC_VERSION, description="JSON-RPC protocol version")
    id: Union[str, int] = Field(
        default_factory=new_correlation_id,
        description="Correlation id, unique per outbound call",
    )
    method: str = Field(..., description="Upstream method name", min_length=1)
    params: Dict[str, Any] = Field(default_factory=dict, description="Opaque method parameters")

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class NotificationEnvelope(BaseSchema):
    """One-way message: no id, no response expected."""

    jsonrpc: str = Field(default=JSONRPC_VERSION)
    method: str = Field(..., min_length=1)
    params: Optional[Dict[str, Any]] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class ErrorObject(BaseSchema):
    code: int = Field(default=0, description="JSON-RPC error code")
    message: str = Field(default="", description="Human readable error message")
    data: Optional[Any] = Field(default=None, description="Optional structured error details")


class ResponseEnvelope(BaseSchema):
    """Upstream answer holding exactly one of ``result`` or ``error``.

    Presence is tracked through ``model_fields_set`` so that ``"result": null``
    still counts as a result branch.
    """

    jsonrpc: str = Field(default=JSONRPC_VERSION)
    id: Optional[Union[str, int]] = None
    result: Optional[Any] = None
    error: Optional[ErrorObject] = None

    @model_validator(mode="after")
    def _exactly_one_branch(self) -> "ResponseEnvelope":
        has_result = "result" in self.model_fields_set
        has_error = "error" in self.model_fields_set and self.error is not None
        if has_result == has_error:
            raise ValueError("response must carry exactly one of 'result' or 'error'")
        return self

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @staticmethod
    def is_terminal_payload(payload: Any) -> bool:
        """True when a decoded JSON payload is an answer (has ``result`` or ``error``)."""
        return isinstance(payload, dict) and ("result" in payload or "error" in payload)
