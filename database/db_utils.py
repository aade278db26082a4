"""
Database utility functions for transaction management and connection handling.
"""
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


@contextmanager
def transaction(conn: sqlite3.Connection):
    """
    Context manager for explicit transaction management.

    Usage:
        with transaction(conn):
            cursor.execute("INSERT INTO table VALUES (?)", data)
            cursor.execute("UPDATE table SET col = ?", value)

    Automatically handles BEGIN, COMMIT, and ROLLBACK.
    """
    conn.execute("BEGIN")
    logger.debug("Transaction started")
    try:
        yield conn
    except Exception as e:
        conn.execute("ROLLBACK")
        logger.error(f"Transaction rolled back due to error: {e}")
        raise
    else:
        conn.execute("COMMIT")
        logger.debug("Transaction committed")


class DatabaseConnection:
    """
    Database connection with PRAGMA settings applied on open.

    Usage:
        with DatabaseConnection(db_path) as conn:
            conn.execute(...)
    """

    def __init__(self, db_path: Union[str, Path], timeout: float = DEFAULT_TIMEOUT):
        self.db_path = str(db_path)
        self.timeout = timeout
        self.conn = None

    def __enter__(self) -> sqlite3.Connection:
        # Autocommit mode; callers opt in to transactions explicitly
        self.conn = sqlite3.connect(self.db_path, timeout=self.timeout, isolation_level=None)
        self._apply_pragmas()
        return self.conn

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.conn:
            self.conn.close()
            self.conn = None

    def _apply_pragmas(self):
        """Apply SQLite settings suited to a single-writer pipeline."""
        self.conn.execute(f"PRAGMA busy_timeout = {int(self.timeout * 1000)}")
        self.conn.execute("PRAGMA synchronous = NORMAL")
        self.conn.execute("PRAGMA foreign_keys = OFF")
