from .context import SessionContext, SessionState
from .manager import SessionManager
from .store import SessionStore

__all__ = ["SessionContext", "SessionManager", "SessionState", "SessionStore"]
