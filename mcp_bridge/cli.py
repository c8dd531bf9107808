"""
Command line entry point: run the stdio ⇄ HTTP bridge.
"""

import asyncio
from typing import Optional

import typer

from mcp_bridge.core.config import BridgeSettings, get_settings
from mcp_bridge.core.logging_config import setup_logging

app = typer.Typer(
    name="mcp-bridge",
    help="Serve a remote streamable-HTTP MCP endpoint to a local client over stdio.",
    add_completion=False,
)


def resolve_settings(upstream_url: Optional[str] = None, log_level: Optional[str] = None) -> BridgeSettings:
    """Load settings; the positional URL only applies when UPSTREAM_MCP_URL is unset."""
    settings = get_settings()
    overrides = {}
    if upstream_url and "upstream_url" not in settings.model_fields_set:
        overrides["upstream_url"] = upstream_url
    if log_level:
        overrides["log_level"] = log_level
    if overrides:
        settings = settings.model_copy(update=overrides)
    return settings


@app.command()
def main(
    upstream_url: Optional[str] = typer.Argument(None, help="Upstream MCP URL (fallback for UPSTREAM_MCP_URL)"),
    log_level: Optional[str] = typer.Option(None, "--log-level", "-l", help="Console log level"),
):
    """Start the bridge and serve until stdin closes."""
    from mcp_bridge.server import run_stdio

    settings = resolve_settings(upstream_url, log_level)
    setup_logging(settings.log_level, settings.log_format, settings.log_file)
    try:
        asyncio.run(run_stdio(settings))
    except KeyboardInterrupt:
        raise typer.Exit(code=0)


def run():
    """Entry point for the console script."""
    app()
