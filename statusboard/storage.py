"""Persisted dashboard settings backed by a SQLite key-value table.

Every accessor re-validates what it reads: a value that fails validation is
either reset to its default or deleted, never surfaced to the caller.
"""

import json
import logging
import sqlite3
import threading
from pathlib import Path

from .config import DEFAULT_REFRESH_INTERVAL, normalize_refresh_interval

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the settings store cannot be opened."""

    pass


REFRESH_INTERVAL_KEY = "statusboard:refresh-interval"
DARK_MODE_KEY = "statusboard:dark-mode"
THEME_KEY = "statusboard:theme"
AUTH_KEY = "statusboard:auth"


def group_collapsed_key(group_name: str) -> str:
    """Return the settings key holding a group's collapsed flag."""
    return f"statusboard:endpoint-group:{group_name}:collapsed"


class Storage:
    """Thread-safe key-value store for dashboard settings."""

    def __init__(self, path: str) -> None:
        """Open (and create if needed) the settings database.

        Args:
            path: Path to the SQLite file, or ":memory:".

        Raises:
            StorageError: If the database cannot be opened.
        """
        self._lock = threading.Lock()
        try:
            if path != ":memory:":
                parent_dir = Path(path).parent
                if not parent_dir.exists():
                    parent_dir.mkdir(parents=True, exist_ok=True)

            self._conn = sqlite3.connect(path, check_same_thread=False)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
            self._conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to initialize settings store: {e}")
        except OSError as e:
            raise StorageError(f"Failed to create settings directory: {e}")

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # Raw access

    def get(self, key: str) -> str | None:
        with self._lock:
            row = self._conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT INTO settings (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )
            self._conn.commit()

    def delete(self, key: str) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM settings WHERE key = ?", (key,))
            self._conn.commit()

    # Refresh interval

    def get_refresh_interval(self) -> int:
        """Return the stored refresh interval, resetting it if invalid."""
        raw = self.get(REFRESH_INTERVAL_KEY)
        if raw is None:
            return DEFAULT_REFRESH_INTERVAL
        interval = normalize_refresh_interval(raw)
        if str(interval) != raw:
            logger.debug("Resetting invalid refresh interval %r to %d", raw, interval)
            self.set(REFRESH_INTERVAL_KEY, str(interval))
        return interval

    def set_refresh_interval(self, seconds: int) -> int:
        """Store a refresh interval, normalized to the allow-list.

        Returns:
            The interval actually stored.
        """
        interval = normalize_refresh_interval(seconds)
        self.set(REFRESH_INTERVAL_KEY, str(interval))
        return interval

    # Dark mode

    def get_dark_mode(self, default: bool = True) -> bool:
        raw = self.get(DARK_MODE_KEY)
        if raw == "true":
            return True
        if raw == "false":
            return False
        if raw is not None:
            self.delete(DARK_MODE_KEY)
        return default

    def set_dark_mode(self, enabled: bool) -> None:
        self.set(DARK_MODE_KEY, "true" if enabled else "false")

    def toggle_dark_mode(self) -> bool:
        enabled = not self.get_dark_mode()
        self.set_dark_mode(enabled)
        return enabled

    # Theme

    def get_theme(self) -> str | None:
        """Return the stored theme name; callers validate it against known themes."""
        return self.get(THEME_KEY)

    def set_theme(self, name: str) -> None:
        self.set(THEME_KEY, name)

    # Group collapse state

    def is_group_collapsed(self, group_name: str) -> bool:
        raw = self.get(group_collapsed_key(group_name))
        if raw == "true":
            return True
        if raw is not None and raw != "false":
            self.delete(group_collapsed_key(group_name))
        return False

    def set_group_collapsed(self, group_name: str, collapsed: bool) -> None:
        self.set(group_collapsed_key(group_name), "true" if collapsed else "false")

    def toggle_group_collapsed(self, group_name: str) -> bool:
        collapsed = not self.is_group_collapsed(group_name)
        self.set_group_collapsed(group_name, collapsed)
        return collapsed

    # Authentication

    def get_auth(self) -> dict[str, str] | None:
        """Return stored credentials as ``{"username", "credentials"}``.

        Corrupt entries are deleted and reported as absent.
        """
        raw = self.get(AUTH_KEY)
        if raw is None:
            return None
        try:
            auth = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("Discarding unparseable stored auth")
            self.delete(AUTH_KEY)
            return None
        if not isinstance(auth, dict) or not isinstance(auth.get("credentials"), str):
            logger.debug("Discarding malformed stored auth")
            self.delete(AUTH_KEY)
            return None
        return {"username": str(auth.get("username", "")), "credentials": auth["credentials"]}

    def store_auth(self, username: str, credentials: str) -> None:
        """Store credentials.

        Args:
            username: User name, kept for display.
            credentials: Base64 encoded ``username:password``.
        """
        self.set(AUTH_KEY, json.dumps({"username": username, "credentials": credentials}))

    def clear_auth(self) -> None:
        self.delete(AUTH_KEY)
