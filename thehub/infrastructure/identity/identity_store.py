"""
Identity Store - Device-Scoped User Id and Display Name
========================================================

Holds the permanent per-device user id and the user-chosen display name
in a small key/value table of a local SQLite file (the Python stand-in
for the browser's localStorage).

RULES:
- user_id is generated once (UUID4) and never regenerated while present
- set_username() requires 3-30 characters after trimming
- clear_username() removes the name and its timestamps, never the user_id
- No uniqueness check happens here; the backend's checkUsername /
  createUsername pair does that, best-effort
"""

import sqlite3
import logging
import time
import uuid
from contextlib import contextmanager
from typing import Callable, Optional

from ...domain.errors import StorageError
from ...domain.ledgers import normalize_username
from ..config import get_settings

logger = logging.getLogger(__name__)

USER_ID_KEY = "userId"
USERNAME_KEY = "username"
CREATED_AT_KEY = "username_created_at"
UPDATED_AT_KEY = "username_updated_at"


def _now_ms() -> int:
    return int(time.time() * 1000)


class IdentityStore:
    """
    Persistent identity for this device.

    Usage:
        identity = IdentityStore()
        user_id = identity.get_or_create_user_id()
        identity.set_username("alice")
    """

    def __init__(self, db_path: Optional[str] = None, clock: Callable[[], int] = _now_ms):
        # Defaults to HUB_IDENTITY_DB
        self.db_path = str(db_path or get_settings().identity.db_path)
        self._clock = clock
        self._init()

    @contextmanager
    def _get_connection(self):
        """Get database connection with context manager."""
        conn = sqlite3.connect(self.db_path)
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Identity store error: {e}") from e
        finally:
            conn.close()

    def _init(self):
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

    def _get(self, key: str) -> Optional[str]:
        with self._get_connection() as conn:
            row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
            return row[0] if row else None

    def _set(self, key: str, value: str) -> None:
        with self._get_connection() as conn:
            conn.execute("INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)", (key, value))

    def _remove(self, *keys: str) -> None:
        with self._get_connection() as conn:
            conn.executemany("DELETE FROM settings WHERE key = ?", [(k,) for k in keys])

    # ── User id ────────────────────────────────────────────────────

    def get_user_id(self) -> Optional[str]:
        return self._get(USER_ID_KEY)

    def get_or_create_user_id(self) -> str:
        """Return the device's user id, generating it on first use."""
        user_id = self._get(USER_ID_KEY)
        if not user_id:
            user_id = str(uuid.uuid4())
            self._set(USER_ID_KEY, user_id)
            logger.info(f"Generated new device user id {user_id}")
        return user_id

    # ── Username ───────────────────────────────────────────────────

    def get_username(self) -> Optional[str]:
        return self._get(USERNAME_KEY)

    @property
    def is_username_set(self) -> bool:
        return bool(self.get_username())

    def set_username(self, name: str) -> str:
        """Store a display name. Raises ValidationError outside 3-30 characters."""
        name = normalize_username(name)
        self.get_or_create_user_id()

        timestamp = str(self._clock())
        self._set(USERNAME_KEY, name)
        if self._get(CREATED_AT_KEY) is None:
            self._set(CREATED_AT_KEY, timestamp)
        self._set(UPDATED_AT_KEY, timestamp)
        return name

    def clear_username(self) -> None:
        """Forget the display name only; the user id stays."""
        self._remove(USERNAME_KEY, CREATED_AT_KEY, UPDATED_AT_KEY)

    def last_username_change(self) -> Optional[int]:
        """Epoch milliseconds of the last set_username(), or None."""
        value = self._get(UPDATED_AT_KEY)
        return int(value) if value else None
