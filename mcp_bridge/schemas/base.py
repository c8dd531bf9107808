"""Pydantic base schema utilities for bridge wire models.

Provides a common `BaseSchema` that fixes aliasing and the extra-field policy
for every envelope under `mcp_bridge.schemas`.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Shared base for all wire models.

    - Keeps unknown JSON-RPC members (upstreams add vendor fields)
    - Enables populate_by_name so models can be built from Python names
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
    )
