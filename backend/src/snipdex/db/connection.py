"""Read-only SQLite connection management."""

import sqlite3
from pathlib import Path
from typing import Any


class ReadOnlyDatabase:
    """SQLite wrapper that can only read.

    The store belongs to another application, so the connection is opened
    with ``mode=ro`` and ``query_only`` set: any write raises
    sqlite3.OperationalError instead of touching the file.
    """

    def __init__(self, db_path: Path):
        """Open the database read-only.

        Args:
            db_path: Path to an existing SQLite file. The file is never created.

        Raises:
            sqlite3.OperationalError: If the file cannot be opened.
        """
        self.db_path = Path(db_path)
        uri = f"{self.db_path.resolve().as_uri()}?mode=ro"
        self._conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA query_only = ON")

    def execute(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        """Execute SQL statement."""
        return self._conn.execute(sql, params)

    def fetchall(self, sql: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
        """Execute a query and return every row."""
        return self._conn.execute(sql, params).fetchall()

    def close(self) -> None:
        """Close database connection."""
        self._conn.close()

    def __enter__(self) -> "ReadOnlyDatabase":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
