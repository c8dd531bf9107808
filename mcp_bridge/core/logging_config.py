"""
Logging Configuration Module.

Centralized logging configuration for the MCP bridge.

The bridge talks JSON-RPC on stdout, so every handler writes to stderr or to a
file, never to stdout.

Features:
- Configurable log levels per module
- Console (stderr) and optional file logging
- Simple, detailed and JSON-like formats
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

# Define log formats
SIMPLE_FORMAT = "[mcp-bridge] %(levelname)s - %(name)s - %(message)s"

DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s"

JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
    '"module": "%(filename)s", "function": "%(funcName)s", "line": %(lineno)d, '
    '"message": "%(message)s"}'
)

FORMATS = {
    "simple": SIMPLE_FORMAT,
    "detailed": DETAILED_FORMAT,
    "json": JSON_FORMAT,
}

# Module-specific log levels
MODULE_LOG_LEVELS = {
    "mcp_bridge": "DEBUG",
    "mcp_bridge.transport": "DEBUG",
    "mcp_bridge.session": "DEBUG",
    # Third-party libraries (reduce noise)
    "httpx": "WARNING",
    "httpcore": "WARNING",
    "asyncio": "WARNING",
    "mcp": "WARNING",
}


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "detailed",
    log_file: Optional[Union[str, Path]] = None,
) -> None:
    """
    Configure logging for the bridge process.

    Args:
        log_level: Console log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: One of simple, detailed, json
        log_file: Optional path of a file that receives DEBUG level logs
    """
    level = log_level.upper()
    format_str = FORMATS.get(log_format, DETAILED_FORMAT)
    formatter = logging.Formatter(format_str, datefmt="%Y-%m-%d %H:%M:%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture all levels, filter at handler level

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for module_name, module_level in MODULE_LOG_LEVELS.items():
        logging.getLogger(module_name).setLevel(module_level)

    root_logger.debug(f"Logging configured: level={level}, format={log_format}, file={log_file or '-'}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The module name (typically __name__)

    Returns:
        A configured logger instance
    """
    return logging.getLogger(name)
