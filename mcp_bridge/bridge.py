"""Request bridge

Forwards one client call to the upstream MCP endpoint with session recovery:

1. ensure the upstream session is ready (handshake if needed)
2. send the request envelope
3. classify a failure (raised, or an ``error`` member in the answer)
4. on a first-attempt session error: invalidate the session, clear the
   persisted token and start over once
5. otherwise return the ``result`` or raise the error unchanged

Typical usage:
    from mcp_bridge.bridge import build_bridge
    from mcp_bridge.core.config import get_settings

    bridge = build_bridge(get_settings())
    tools = await bridge.forward("tools/list", {})
    await bridge.aclose()
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from mcp_bridge.classifier import is_session_error
from mcp_bridge.core.config import BridgeSettings
from mcp_bridge.errors import BridgeError, UpstreamApplicationError
from mcp_bridge.schemas.envelope import RequestEnvelope
from mcp_bridge.session import SessionContext, SessionManager, SessionStore
from mcp_bridge.transport import Transport, UpstreamTransport

MAX_ATTEMPTS = 2


class RequestBridge:
    """Orchestrates session readiness, upstream sends and the retry-once policy."""

    def __init__(self, session: SessionManager, transport: Transport, store: SessionStore) -> None:
        self._session = session
        self._transport = transport
        self._store = store
        self._logger = logging.getLogger(__name__)

    @property
    def session(self) -> SessionManager:
        return self._session

    async def forward(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Forward ``method`` upstream and return its ``result``.

        Raises:
            BridgeError: The final failure; upstream application errors keep
                their original code, message and data.
        """
        attempt = 0
        while True:
            attempt += 1
            await self._session.ensure_ready()
            sent_with = self._session.token
            envelope = RequestEnvelope(method=method, params=params or {})
            self._logger.info("→ POST upstream | method=%s attempt=%s", method, attempt)
            try:
                response = await self._transport.send(envelope)
                if response.error is not None:
                    self._logger.warning("Upstream returned error for %s: %s", method, response.error.model_dump())
                    raise UpstreamApplicationError(response.error)
                return response.result
            except BridgeError as err:
                if attempt < MAX_ATTEMPTS and is_session_error(err):
                    self._logger.warning("Upstream reported session issue during %s (%s). Retrying...", method, err)
                    if self._session.invalidate(stale_token=sent_with):
                        self._store.clear()
                    continue
                self._logger.error("Upstream error for %s: %s", method, err)
                raise

    def reset(self) -> None:
        """Clear in-memory and persisted session state without contacting upstream."""
        self._session.reset()

    async def aclose(self) -> None:
        await self._transport.aclose()


def build_bridge(settings: BridgeSettings, *, client: Optional[httpx.AsyncClient] = None) -> RequestBridge:
    """Wire store, session, transport and bridge from settings."""
    store = SessionStore(settings.session_cache_path)
    context = SessionContext.load(store, settings.session_id)
    transport = UpstreamTransport(
        settings.upstream_url,
        context,
        auth_header=settings.upstream_auth,
        timeout_seconds=settings.timeout_seconds,
        client=client,
    )
    session = SessionManager(context, transport)
    return RequestBridge(session, transport, store)
