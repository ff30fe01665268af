"""
Unit tests for the PersistenceService.
"""
import sqlite3

import pytest

from waste_ticketing.services.persistence_service import PersistenceService


@pytest.fixture
def temp_main_db(tmp_path):
    """Creates a temporary main database for testing."""
    db_path = tmp_path / "test_eco_track.db"
    service = PersistenceService(db_path=str(db_path))
    with service as p:
        p.init_db()
    return str(db_path)


def test_init_db_creates_tables(temp_main_db):
    """Tests that all tables are created by init_db."""
    conn = sqlite3.connect(temp_main_db)
    cur = conn.cursor()
    tables = [row[0] for row in cur.execute("SELECT name FROM sqlite_master WHERE type='table'")]
    conn.close()
    assert "snapshots" in tables
    assert "logs" in tables


def test_snapshot_save_and_load(temp_main_db):
    service = PersistenceService(db_path=temp_main_db)
    snapshot = {"tickets": [{"wasteId": "WT1"}], "currentTicket": None}

    with service as p:
        p.save_snapshot("waste-storage", snapshot)
    with service as p:
        assert p.load_snapshot("waste-storage") == snapshot
        assert p.load_snapshot("other-key") is None


def test_snapshot_is_replaced_wholesale(temp_main_db):
    service = PersistenceService(db_path=temp_main_db)
    with service as p:
        p.save_snapshot("waste-storage", {"tickets": [1, 2], "currentTicket": None})
        p.save_snapshot("waste-storage", {"tickets": [], "currentTicket": None})
    with service as p:
        assert p.load_snapshot("waste-storage") == {"tickets": [], "currentTicket": None}
        p.delete_snapshot("waste-storage")
        assert p.load_snapshot("waste-storage") is None


def test_corrupt_snapshot_loads_as_absent(temp_main_db):
    conn = sqlite3.connect(temp_main_db)
    conn.execute("INSERT INTO snapshots (key, value) VALUES ('waste-storage', 'not json')")
    conn.execute("INSERT INTO snapshots (key, value) VALUES ('list', '[1, 2]')")
    conn.commit()
    conn.close()

    with PersistenceService(db_path=temp_main_db) as p:
        assert p.load_snapshot("waste-storage") is None
        assert p.load_snapshot("list") is None


def test_changes_are_rolled_back_on_error(temp_main_db):
    service = PersistenceService(db_path=temp_main_db)
    with pytest.raises(RuntimeError):
        with service as p:
            p.save_snapshot("waste-storage", {"tickets": []})
            raise RuntimeError("boom")
    with service as p:
        assert p.load_snapshot("waste-storage") is None


def test_cursor_requires_open_connection(temp_main_db):
    with pytest.raises(RuntimeError):
        PersistenceService(db_path=temp_main_db).load_snapshot("waste-storage")


def test_get_all_logs(temp_main_db):
    conn = sqlite3.connect(temp_main_db)
    conn.execute("INSERT INTO logs (level, message, logger_name) VALUES ('INFO', 'first', 'a')")
    conn.execute("INSERT INTO logs (level, message, logger_name) VALUES ('ERROR', 'second', 'b')")
    conn.commit()
    conn.close()

    with PersistenceService(db_path=temp_main_db) as p:
        logs = p.get_all_logs()
    assert [log["message"] for log in logs] == ["second", "first"]
    assert logs[0]["level"] == "ERROR"


def test_insert_log(temp_main_db):
    with PersistenceService(db_path=temp_main_db) as p:
        p.insert_log("INFO", "restored 3 tickets", "waste_ticketing.store")
        p.insert_log("DEBUG", "no logger name")

    with PersistenceService(db_path=temp_main_db) as p:
        logs = p.get_all_logs()
    assert logs[0] == {
        "timestamp": logs[0]["timestamp"],
        "level": "DEBUG",
        "message": "no logger name",
        "logger_name": None,
    }
    assert logs[1]["logger_name"] == "waste_ticketing.store"
