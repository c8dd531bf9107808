from .bridge import RequestBridge, build_bridge
from .core.config import BridgeSettings
from .errors import (
    BridgeError,
    UpstreamApplicationError,
    UpstreamConnectionError,
    UpstreamHTTPError,
    UpstreamProtocolError,
    UpstreamTimeoutError,
)

__all__ = [
    "BridgeError",
    "BridgeSettings",
    "RequestBridge",
    "UpstreamApplicationError",
    "UpstreamConnectionError",
    "UpstreamHTTPError",
    "UpstreamProtocolError",
    "UpstreamTimeoutError",
    "build_bridge",
]
