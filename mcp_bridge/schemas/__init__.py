from .base import BaseSchema
from .envelope import (
    JSONRPC_VERSION,
    ErrorObject,
    NotificationEnvelope,
    RequestEnvelope,
    ResponseEnvelope,
    new_correlation_id,
)

__all__ = [
    "BaseSchema",
    "ErrorObject",
    "JSONRPC_VERSION",
    "NotificationEnvelope",
    "RequestEnvelope",
    "ResponseEnvelope",
    "new_correlation_id",
]
