"""
This module routes application log records into the EcoTrack database.
"""
import logging
import sqlite3
import sys
from logging import LogRecord

from waste_ticketing.config import ECO_TRACK_DB_PATH, LOG_LEVEL
from waste_ticketing.services.persistence_service import PersistenceService

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class SQLiteHandler(logging.Handler):
    """
    Stores each formatted record in the `logs` table, where the dashboard and
    `get_all_logs` read it back.
    """

    def __init__(self, db_path: str = ECO_TRACK_DB_PATH):
        super().__init__()
        self.persistence = PersistenceService(db_path)

    def emit(self, record: LogRecord) -> None:
        # Handler.handle holds the handler lock, so the connection is never shared
        try:
            with self.persistence as p:
                p.insert_log(record.levelname, self.format(record), record.name)
        except sqlite3.Error as e:
            # Logging through the logger here would recurse into this handler
            print(f"CRITICAL: Could not write log to database: {e}", file=sys.stderr)


def setup_database_logging(db_path: str = ECO_TRACK_DB_PATH, level: int = LOG_LEVEL) -> None:
    """
    Points the root logger at the database and the console, replacing any
    handlers installed earlier.
    """
    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in (SQLiteHandler(db_path), logging.StreamHandler()):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    logging.info(f"EcoTrack logging to {db_path} and the console.")
