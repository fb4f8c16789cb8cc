"""
SQLite-backed key-value store.

Tables:
- memories: memory id → JSON record
- embeddings: content hash → float32 vector bytes

All values stored as BLOB with a timestamp.
"""

import sqlite3
import threading
import time
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

TABLES = ("memories", "embeddings")


class KVStore:
    """
    File-backed SQLite key-value store.

    Thread-safe with WAL mode; writes are serialized through a lock.
    """

    def __init__(self, db_path: Union[str, Path]):
        """
        Initialize KV store at given path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

        self._conn = sqlite3.connect(
            str(self.db_path),
            check_same_thread=False,  # Allow multi-threaded access
            timeout=10.0,
        )

        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA synchronous=NORMAL")

        self._init_tables()

    def _init_tables(self) -> None:
        """Create tables if they don't exist."""
        for table in TABLES:
            self._conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {table} (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL,
                    ts INTEGER NOT NULL
                )
            """)

        self._conn.commit()

    @staticmethod
    def _check_table(table: str) -> None:
        if table not in TABLES:
            raise ValueError(f"Unknown table: {table}")

    def set(self, table: str, key: str, value: bytes) -> None:
        """Set a key-value pair in the specified table."""
        self._check_table(table)
        with self._lock:
            self._conn.execute(
                f"INSERT OR REPLACE INTO {table} (key, value, ts) VALUES (?, ?, ?)",
                (key, value, int(time.time()))
            )
            self._conn.commit()

    def get(self, table: str, key: str) -> Optional[bytes]:
        """
        Get value for a key from the specified table.

        Returns:
            Binary value if found, None otherwise
        """
        self._check_table(table)
        with self._lock:
            cursor = self._conn.execute(
                f"SELECT value FROM {table} WHERE key = ?",
                (key,)
            )
            row = cursor.fetchone()

        return row[0] if row else None

    def delete(self, table: str, key: str) -> bool:
        """
        Delete a key from the specified table.

        Returns:
            True if a row was deleted
        """
        self._check_table(table)
        with self._lock:
            cursor = self._conn.execute(
                f"DELETE FROM {table} WHERE key = ?",
                (key,)
            )
            self._conn.commit()
        return cursor.rowcount > 0

    def items(self, table: str) -> Iterator[Tuple[str, bytes]]:
        """Iterate over (key, value) pairs in insertion-key order."""
        self._check_table(table)
        with self._lock:
            rows = self._conn.execute(
                f"SELECT key, value FROM {table} ORDER BY rowid"
            ).fetchall()
        yield from rows

    def purge_table(self, table: str) -> int:
        """
        Delete all entries from a table.

        Returns:
            Number of rows deleted
        """
        self._check_table(table)
        with self._lock:
            count = self._conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
            self._conn.execute(f"DELETE FROM {table}")
            self._conn.commit()

        return count

    def stats(self, table: str) -> dict:
        """
        Get statistics for a table.

        Returns:
            Dict with count, total_bytes, oldest_ts, newest_ts
        """
        self._check_table(table)
        with self._lock:
            row = self._conn.execute(f"""
                SELECT
                    COUNT(*) as count,
                    SUM(LENGTH(value)) as total_bytes,
                    MIN(ts) as oldest_ts,
                    MAX(ts) as newest_ts
                FROM {table}
            """).fetchone()

        return {
            "count": row[0] or 0,
            "total_bytes": row[1] or 0,
            "oldest_ts": row[2] or 0,
            "newest_ts": row[3] or 0,
        }

    def close(self) -> None:
        """Close database connection."""
        self._conn.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
