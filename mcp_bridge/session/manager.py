"""Upstream session lifecycle.

`SessionManager` performs the MCP handshake (``initialize`` request followed by
the ``notifications/initialized`` notification) and tracks whether the shared
session is usable.

Concurrent callers that find the session not ready all await one shared
handshake task, so at most one ``initialize`` request is in flight at a time.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from typing import TYPE_CHECKING, Optional

from mcp_bridge.classifier import is_already_initialized, is_session_error
from mcp_bridge.errors import BridgeError, UpstreamApplicationError
from mcp_bridge.schemas.envelope import NotificationEnvelope, RequestEnvelope, new_correlation_id

from .context import SessionContext, SessionState

if TYPE_CHECKING:
    from mcp_bridge.transport import Transport

PROTOCOL_VERSION = "2024-11-05"
CLIENT_NAME = "mcp-stdio-http-proxy"
CLIENT_VERSION = "1.0.0"
INITIALIZED_NOTIFICATION = "notifications/initialized"


class SessionManager:
    """Owns the readiness of the upstream session.

    - ensure_ready(): handshake unless the session is already ready
    - invalidate(): forget the in-memory session after a session error
    - reset(): invalidate and delete the persisted token

    Each handshake attempt announces a freshly suffixed client name so the
    upstream opens a new session instead of reusing a cached one.
    """

    def __init__(
        self,
        context: SessionContext,
        transport: "Transport",
        *,
        client_name: str = CLIENT_NAME,
        client_version: str = CLIENT_VERSION,
        protocol_version: str = PROTOCOL_VERSION,
    ) -> None:
        self._context = context
        self._transport = transport
        self._client_name = client_name
        self._client_version = client_version
        self._protocol_version = protocol_version
        self._pending: Optional[asyncio.Task] = None
        self._logger = logging.getLogger(__name__)

    @property
    def context(self) -> SessionContext:
        return self._context

    @property
    def token(self) -> Optional[str]:
        return self._context.token

    @property
    def state(self) -> SessionState:
        return self._context.state

    async def ensure_ready(self) -> None:
        """Make sure the upstream session is initialized.

        Raises:
            BridgeError: If the handshake fails with a non-session error, or
                fails again after one recovery attempt.
        """
        if self._context.state is SessionState.READY and self._pending is None:
            return
        if self._pending is None:
            self._logger.info("Ensuring upstream initialized...")
            self._context.state = SessionState.INITIALIZING
            self._pending = asyncio.ensure_future(self._handshake())
            self._pending.add_done_callback(self._on_handshake_done)
        # One caller being cancelled must not abort the handshake the others wait on
        await asyncio.shield(self._pending)

    def invalidate(self, stale_token: Optional[str] = None) -> bool:
        """Drop the in-memory session. The persisted copy is left to the caller.

        Args:
            stale_token: Token the failing request was sent with. When another
                caller has already replaced or dropped it, nothing is dropped.

        Returns:
            True if the session was invalidated.
        """
        if self._pending is not None:
            self._logger.debug("Handshake already in progress; keeping session %s", self._context.token or "<none>")
            return False
        if stale_token is not None and self._context.token != stale_token:
            self._logger.debug("Session already renewed to %s; keeping it", self._context.token or "<none>")
            return False
        self._logger.info("Invalidating upstream session %s", self._context.token or "<none>")
        self._context.drop()
        return True

    def reset(self) -> None:
        """Clear in-memory and persisted session state."""
        self._context.drop()
        self._context.state = SessionState.UNINITIALIZED
        self._context.store.clear()

    def _on_handshake_done(self, task: asyncio.Task) -> None:
        if self._pending is task:
            self._pending = None
        if task.cancelled() or task.exception() is not None:
            self._context.state = SessionState.UNINITIALIZED

    async def _handshake(self) -> None:
        try:
            await self._attempt_handshake()
        except BridgeError as err:
            if is_already_initialized(err):
                self._mark_ready("Upstream reported already initialized, treating as success.")
                return
            if not is_session_error(err):
                self._logger.error("Failed to initialize upstream: %s", err)
                raise
            self._logger.warning("Init failed with session error (%s), clearing memory and retrying...", err)
            self._context.drop()
            self._context.state = SessionState.INITIALIZING
            await self._attempt_handshake()

    async def _attempt_handshake(self) -> None:
        suffix = secrets.token_hex(6)
        request = RequestEnvelope(
            id=new_correlation_id("init-"),
            method="initialize",
            params={
                "protocolVersion": self._protocol_version,
                "capabilities": {},
                "clientInfo": {"name": f"{self._client_name}-{suffix}", "version": self._client_version},
            },
        )
        response = await self._transport.send(request)
        if response.error is not None:
            if is_already_initialized(response.error):
                self._mark_ready("Upstream was already initialized.")
                return
            raise UpstreamApplicationError(response.error)

        self._logger.debug("Sending %s...", INITIALIZED_NOTIFICATION)
        await self._transport.notify(NotificationEnvelope(method=INITIALIZED_NOTIFICATION))
        self._mark_ready(f"Upstream ready (Session: {self._context.token or 'unknown'}).")

    def _mark_ready(self, message: str) -> None:
        self._context.state = SessionState.READY
        self._logger.info(message)
