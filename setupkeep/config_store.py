"""
Key-value config stores.

The persistence layer only needs scoped get/set/unset and prefix listing of
string values. Two backends are provided:

- SqliteConfigStore: one row per (group, key) in a local SQLite file
- MemoryConfigStore: dict-backed, for tests and dry runs

Whole keys are ``group + "." + key``, the same composition the plugin's
config manager uses, so ``list_keys`` results can be sliced back to
logical keys by the caller.
"""

import sqlite3
from pathlib import Path
from typing import Optional

GROUP_SEPARATOR = "."


def whole_key(group: str, key: str = "") -> str:
    """Compose the whole key (or whole-key prefix) for a logical key."""
    return f"{group}{GROUP_SEPARATOR}{key}"


class MemoryConfigStore:
    """In-memory config store. Iteration order of keys is insertion order."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, group: str, key: str) -> Optional[str]:
        return self._data.get(whole_key(group, key))

    def set(self, group: str, key: str, value: str) -> None:
        self._data[whole_key(group, key)] = value

    def unset(self, group: str, key: str) -> None:
        self._data.pop(whole_key(group, key), None)

    def list_keys(self, prefix: str) -> list[str]:
        return [k for k in self._data if k.startswith(prefix)]

    def snapshot(self) -> dict[str, str]:
        """Copy of all whole keys and values."""
        return dict(self._data)


class SqliteConfigStore:
    """
    SQLite-backed config store.

    Each set/unset commits immediately, so single-key writes are atomic and
    there is no multi-key transaction, matching the contract callers rely on.
    """

    def __init__(self, db_path: Path):
        """
        Args:
            db_path: Path to SQLite database file
        """
        self._db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._init_db()

    def _init_db(self) -> None:
        """Initialize the SQLite database."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row

        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS config (
                key TEXT NOT NULL PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)
        self._conn.commit()

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def set(self, group: str, key: str, value: str) -> None:
        self._conn.execute("""
            INSERT OR REPLACE INTO config (key, value)
            VALUES (?, ?)
        """, (whole_key(group, key), value))
        self._conn.commit()

    def unset(self, group: str, key: str) -> None:
        self._conn.execute("""
            DELETE FROM config WHERE key = ?
        """, (whole_key(group, key),))
        self._conn.commit()

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def get(self, group: str, key: str) -> Optional[str]:
        cursor = self._conn.execute("""
            SELECT value FROM config WHERE key = ?
        """, (whole_key(group, key),))
        row = cursor.fetchone()
        if row is None:
            return None
        return row["value"]

    def list_keys(self, prefix: str) -> list[str]:
        """
        List whole keys starting with a prefix, ordered by key.

        Uses substr() rather than LIKE so that '%' and '_' in the prefix
        match literally.
        """
        cursor = self._conn.execute("""
            SELECT key FROM config
            WHERE substr(key, 1, ?) = ?
            ORDER BY key
        """, (len(prefix), prefix))
        return [row["key"] for row in cursor]

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __del__(self):
        self.close()
