"""
SQLiteByteStore - SQLite-backed byte store.

One table, one connection per operation:

    CREATE TABLE blobs (key TEXT PRIMARY KEY, value BLOB NOT NULL)

sqlite3.Error and OSError are re-raised as CacheUnavailable so callers can
tell a broken medium from a miss.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, List, Mapping, Optional

from sample_manager.common.logging import get_logger
from sample_manager.core.errors import CacheUnavailable

logger = get_logger(__name__)


class SQLiteByteStore:
    """
    SQLite byte store implementation.

    Implements ByteStoreProtocol. Safe to share across threads: every
    operation opens its own connection.
    """

    def __init__(self, db_path: str = "cache/samples.db", timeout: float = 30.0):
        """
        Initialize SQLite byte store.

        Args:
            db_path: Path to SQLite database (parent directory is created)
            timeout: Seconds to wait on a locked database
        """
        self.db_path = Path(db_path).expanduser()
        self.timeout = timeout
        self._init_db()

    def _init_db(self):
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheUnavailable(
                f"Cannot create cache directory {self.db_path.parent}",
                data={"db_path": str(self.db_path)},
                cause=e,
            ) from e

        with self._connect() as conn:
            conn.execute('''
                CREATE TABLE IF NOT EXISTS blobs (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL
                )
            ''')
        logger.debug("SQLite byte store ready", data={"db_path": str(self.db_path)})

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success, always close (uncommitted work is discarded)."""
        conn = None
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
            yield conn
            conn.commit()
        except (sqlite3.Error, OSError) as e:
            raise CacheUnavailable(
                f"SQLite byte store failure: {e}",
                data={"db_path": str(self.db_path)},
                cause=e,
            ) from e
        finally:
            if conn is not None:
                conn.close()

    # ============== ByteStoreProtocol Implementation ==============

    def read(self, key: str) -> Optional[bytes]:
        with self._connect() as conn:
            row = conn.execute('SELECT value FROM blobs WHERE key = ?', (key,)).fetchone()
        if row is None:
            return None
        return bytes(row[0])

    def write_many(self, items: Mapping[str, bytes]) -> None:
        if not items:
            return
        rows = [(key, sqlite3.Binary(bytes(value))) for key, value in items.items()]
        with self._connect() as conn:
            conn.executemany(
                'INSERT OR REPLACE INTO blobs (key, value) VALUES (?, ?)',
                rows,
            )

    def delete_many(self, keys: Iterable[str]) -> None:
        rows = [(key,) for key in keys]
        if not rows:
            return
        with self._connect() as conn:
            conn.executemany('DELETE FROM blobs WHERE key = ?', rows)

    def keys(self, prefix: str = "") -> List[str]:
        with self._connect() as conn:
            if prefix:
                # substr avoids LIKE wildcard escaping in ids
                cursor = conn.execute(
                    'SELECT key FROM blobs WHERE substr(key, 1, ?) = ? ORDER BY key',
                    (len(prefix), prefix),
                )
            else:
                cursor = conn.execute('SELECT key FROM blobs ORDER BY key')
            return [row[0] for row in cursor.fetchall()]

    def clear(self) -> None:
        with self._connect() as conn:
            conn.execute('DELETE FROM blobs')
        logger.info("SQLite byte store cleared", data={"db_path": str(self.db_path)})

    # ============== Additional Methods ==============

    def file_size(self) -> int:
        """On-disk size of the database file in bytes."""
        try:
            return self.db_path.stat().st_size
        except OSError:
            return 0
