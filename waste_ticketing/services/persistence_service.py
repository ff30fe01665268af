"""
This module defines the PersistenceService for database interactions.
"""

import json
import sqlite3
from typing import List, Optional

from ..config import ECO_TRACK_DB_PATH


class PersistenceService:
    """
    Key-scoped durable storage for store snapshots, plus the application log table.

    Snapshots are saved and loaded wholesale; there is no partial update.
    """

    def __init__(self, db_path: str = ECO_TRACK_DB_PATH):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._cursor: Optional[sqlite3.Cursor] = None

    def __enter__(self) -> "PersistenceService":
        """Establishes the database connection."""
        self._conn = sqlite3.connect(self.db_path)
        self._conn.row_factory = sqlite3.Row
        self._cursor = self._conn.cursor()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Commits changes and closes the connection."""
        if self._conn:
            if exc_type is None:
                self._conn.commit()
            else:
                self._conn.rollback()
            self._conn.close()
        self._conn = None
        self._cursor = None

    def _get_cursor(self) -> sqlite3.Cursor:
        """Returns the cursor, ensuring the connection is open."""
        if self._cursor is None:
            raise RuntimeError("Database connection is not open. Use 'with' statement.")
        return self._cursor

    def init_db(self) -> None:
        """Initialize SQLite schema if not exists."""
        cur = self._get_cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS snapshots (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
                level TEXT NOT NULL,
                message TEXT NOT NULL,
                logger_name TEXT
            )
            """
        )

    def save_snapshot(self, key: str, snapshot: dict) -> None:
        """Replaces the snapshot stored under the given key."""
        cur = self._get_cursor()
        cur.execute(
            "INSERT OR REPLACE INTO snapshots (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)",
            (key, json.dumps(snapshot)),
        )

    def load_snapshot(self, key: str) -> Optional[dict]:
        """
        Loads the snapshot stored under the given key.

        Returns:
            The decoded snapshot, or None if nothing is stored or the stored value
            is not a JSON object.
        """
        cur = self._get_cursor()
        cur.execute("SELECT value FROM snapshots WHERE key = ?", (key,))
        row = cur.fetchone()
        if not row:
            return None
        try:
            snapshot = json.loads(row["value"])
        except ValueError:
            return None
        return snapshot if isinstance(snapshot, dict) else None

    def delete_snapshot(self, key: str) -> None:
        """Removes the snapshot stored under the given key."""
        cur = self._get_cursor()
        cur.execute("DELETE FROM snapshots WHERE key = ?", (key,))

    def get_all_logs(self) -> List[dict]:
        """Retrieves all logs from the database, ordered by timestamp descending."""
        cur = self._get_cursor()
        cur.execute(
            "SELECT timestamp, level, message, logger_name FROM logs ORDER BY timestamp DESC, id DESC LIMIT 100"
        )  # Limit to 100 to avoid overwhelming the dashboard
        return [dict(row) for row in cur.fetchall()]

    def insert_log(self, level: str, message: str, logger_name: Optional[str] = None) -> None:
        """Appends one application log entry."""
        cur = self._get_cursor()
        cur.execute(
            "INSERT INTO logs (level, message, logger_name) VALUES (?, ?, ?)",
            (level, message, logger_name),
        )
