"""
Configuration Settings.

This module defines the bridge configuration using Pydantic's BaseSettings.
All values are loaded from environment variables and the optional .env file
without explicit dotenv loading.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_UPSTREAM_URL = "http://localhost:8080/mcp"
DEFAULT_SESSION_CACHE_PATH = Path.home() / ".mcp-session-cache"


class BridgeSettings(BaseSettings):
    """
    Bridge settings model.

    All properties are bound from environment variables (by alias) and the .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Upstream Configuration
    # =====================================================================
    upstream_url: str = Field(
        default=DEFAULT_UPSTREAM_URL,
        alias="UPSTREAM_MCP_URL",
        description="Streamable HTTP endpoint of the upstream MCP server",
        min_length=1,
    )
    upstream_auth: Optional[str] = Field(
        default=None,
        alias="UPSTREAM_AUTH",
        description="Authorization header value sent verbatim to the upstream (e.g. 'Bearer abc')",
    )
    timeout_ms: int = Field(
        default=15000,
        alias="MCP_TIMEOUT_MS",
        gt=0,
        description="Per-exchange timeout in milliseconds for upstream HTTP requests",
    )

    # =====================================================================
    # Session Configuration
    # =====================================================================
    session_id: Optional[str] = Field(
        default=None,
        alias="MCP_SESSION_ID",
        description="Fixed initial upstream session id; takes precedence over the cached one",
    )
    session_cache_path: Path = Field(
        default=DEFAULT_SESSION_CACHE_PATH,
        alias="MCP_SESSION_CACHE_PATH",
        description="File holding the persisted upstream session id",
    )

    # =====================================================================
    # Logging Configuration
    # =====================================================================
    log_level: str = Field(
        default="INFO",
        alias="MCP_BRIDGE_LOG_LEVEL",
        description="Console logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_format: Literal["simple", "detailed", "json"] = Field(
        default="detailed",
        alias="MCP_BRIDGE_LOG_FORMAT",
        description="Log line format",
    )
    log_file: Optional[Path] = Field(
        default=None,
        alias="MCP_BRIDGE_LOG_FILE",
        description="Optional file receiving DEBUG level logs",
    )

    # =====================================================================
    # Computed Properties
    # =====================================================================

    @property
    def timeout_seconds(self) -> float:
        """Per-exchange timeout in seconds."""
        return self.timeout_ms / 1000.0


def get_settings(**overrides) -> BridgeSettings:
    """Build settings from the environment, applying keyword overrides by field name."""
    return BridgeSettings(**overrides)
