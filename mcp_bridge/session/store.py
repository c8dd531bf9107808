"""
Persistence of the upstream session id.

Storage location: ``~/.mcp-session-cache`` by default (one plain-text file).

The file is shared by every bridge process of the same user with no locking:
the last writer wins. That is acceptable for a single-user local cache; two
bridges running side by side may overwrite each other's token and will then
recover through the normal session-error retry.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Reads and writes the single persisted session token.

    Contract:
    - Inputs: token (str)
    - Outputs: the trimmed token, or None when absent/blank
    - Side Effects: filesystem writes/deletes at ``path``
    - Errors: write/delete failures are logged and not raised; the in-memory
      session stays authoritative
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def read(self) -> Optional[str]:
        """Return the persisted token, or None if there is none."""
        try:
            token = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Failed to read session cache {self.path}: {e}")
            return None
        return token or None

    def write(self, token: str) -> None:
        """Overwrite the persisted token."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(token, encoding="utf-8")
        except OSError as e:
            logger.warning(f"Failed to save session to cache {self.path}: {e}")
            return
        logger.debug(f"Saved session ID to cache: {token}")

    def clear(self) -> None:
        """Delete the persisted token; a missing file is fine."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            logger.warning(f"Failed to clear session cache {self.path}: {e}")
            return
        logger.info("Cleared session cache")
