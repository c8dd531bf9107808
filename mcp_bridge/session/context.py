"""In-memory session state shared by the session manager and the transport."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from .store import SessionStore

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    INVALID = "invalid"


class SessionContext:
    """The one upstream session of this process.

    Holds the session token and the initialization state. Tokens observed on
    the wire are adopted here and written through to the store; the state is
    only moved by the session manager.
    """

    def __init__(
        self,
        store: SessionStore,
        *,
        token: Optional[str] = None,
        state: SessionState = SessionState.UNINITIALIZED,
    ) -> None:
        self.store = store
        self.token = token
        self.state = state

    @classmethod
    def load(cls, store: SessionStore, fixed_token: Optional[str] = None) -> "SessionContext":
        """Create the startup context from a fixed token or the persisted one.

        A known token is trusted as ready; if the upstream has forgotten it the
        first call fails with a session error and recovers through a handshake.
        """
        token = (fixed_token or "").strip() or None
        if token:
            logger.info(f"Using initial session ID from configuration: {token}")
        else:
            token = store.read()
            if token:
                logger.info(f"Loaded session ID from cache: {token}")
        state = SessionState.READY if token else SessionState.UNINITIALIZED
        return cls(store, token=token, state=state)

    @property
    def is_ready(self) -> bool:
        return self.state is SessionState.READY

    def adopt(self, token: Optional[str]) -> None:
        """Record a session token advertised by the upstream."""
        if not token or token == self.token:
            return
        logger.info(f"Adopting upstream session ID: {token}")
        self.token = token
        self.store.write(token)

    def drop(self) -> None:
        """Forget the in-memory token and mark the session invalid."""
        self.token = None
        self.state = SessionState.INVALID
