"""
Core utilities and configuration for the MCP bridge.

This package provides the settings model and logging configuration shared by
the rest of the bridge.
"""

from mcp_bridge.core.config import BridgeSettings, get_settings
from mcp_bridge.core.logging_config import get_logger, setup_logging

__all__ = ["BridgeSettings", "get_logger", "get_settings", "setup_logging"]
