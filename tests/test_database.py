"""
tests/test_database.py
----------------------
Unit tests for core/database.py against in-memory SQLite.
Run with: python -m pytest tests/
"""
from __future__ import annotations

import sqlite3

import pytest

from config import ConnectionConfig
from core import database
from core.database import (
    ConnectionLostError,
    DatabaseError,
    DatabaseManager,
    adapt_placeholders,
)
from core.errors import MigrationInterrupted
from models.dialect import Dialect


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def db() -> DatabaseManager:
    conn = sqlite3.connect(":memory:", isolation_level=None)
    manager = DatabaseManager.from_connection(conn, Dialect.SQLITE, "named", sqlite3.Error)
    manager.execute("CREATE TABLE t (id INTEGER, name TEXT)")
    yield manager
    manager.close()


# ---------------------------------------------------------------------------
# adapt_placeholders
# ---------------------------------------------------------------------------

class TestAdaptPlaceholders:
    def test_qmark(self) -> None:
        sql, order = adapt_placeholders("VALUES (:a, :b, :a)", {"a", "b"}, "qmark")
        assert sql == "VALUES (?, ?, ?)"
        assert order == ["a", "b", "a"]

    def test_pyformat_doubles_percent(self) -> None:
        sql, _ = adapt_placeholders("SELECT '5%' WHERE x = :x", {"x"}, "pyformat")
        assert sql == "SELECT '5%%' WHERE x = %(x)s"

    def test_named_is_unchanged(self) -> None:
        sql = "INSERT INTO t (a) VALUES (:a)"
        assert adapt_placeholders(sql, {"a"}, "named") == (sql, ["a"])

    def test_casts_and_literals_untouched(self) -> None:
        sql = "SELECT x::text, '+00:00' FROM t WHERE y = :y"
        assert adapt_placeholders(sql, {"y"}, "qmark")[0] == (
            "SELECT x::text, '+00:00' FROM t WHERE y = ?"
        )

    def test_unknown_names_untouched(self) -> None:
        assert adapt_placeholders(":a :b", {"a"}, "qmark") == ("? :b", ["a"])

    def test_numeric(self) -> None:
        assert adapt_placeholders(":a, :b", {"a", "b"}, "numeric")[0] == ":1, :2"

    def test_unsupported_style(self) -> None:
        with pytest.raises(DatabaseError):
            adapt_placeholders(":a", {"a"}, "carrier-pigeon")


# ---------------------------------------------------------------------------
# DatabaseManager
# ---------------------------------------------------------------------------

class TestDatabaseManager:
    def test_insert_and_query(self, db: DatabaseManager) -> None:
        db.execute("INSERT INTO t (id, name) VALUES (:id, :name)", {"id": 1, "name": "a"})
        assert db.query("SELECT id, name FROM t") == [(1, "a")]

    def test_scalar(self, db: DatabaseManager) -> None:
        assert db.scalar("SELECT COUNT(*) FROM t") == 0
        assert db.scalar("SELECT id FROM t") is None

    def test_qmark_connection(self) -> None:
        conn = sqlite3.connect(":memory:", isolation_level=None)
        db = DatabaseManager.from_connection(conn, Dialect.SQLITE, "qmark", sqlite3.Error)
        assert db.scalar("SELECT :a + :b", {"a": 2, "b": 3}) == 5
        db.close()

    def test_stream_keeps_own_cursor(self, db: DatabaseManager) -> None:
        for i in range(3):
            db.execute("INSERT INTO t (id, name) VALUES (:id, :name)", {"id": i, "name": str(i)})
        seen = []
        for row in db.stream("SELECT id FROM t ORDER BY id"):
            seen.append(row)
            assert db.scalar("SELECT COUNT(*) FROM t") == 3
        assert seen == [(0,), (1,), (2,)]

    def test_driver_error_is_wrapped(self, db: DatabaseManager) -> None:
        with pytest.raises(DatabaseError):
            db.execute("SELECT * FROM missing_table")

    def test_closed_connection(self) -> None:
        db = DatabaseManager(ConnectionConfig(dialect=Dialect.SQLITE))
        with pytest.raises(ConnectionLostError):
            db.execute("SELECT 1")

    def test_context_manager_connects_and_closes(self) -> None:
        cfg = ConnectionConfig(dialect=Dialect.SQLITE, path=":memory:")
        with DatabaseManager.from_config(cfg) as db:
            assert db.is_connected
            assert db.paramstyle == "named"
            assert db.scalar("SELECT 1") == 1
        assert not db.is_connected


# ---------------------------------------------------------------------------
# connect() retries
# ---------------------------------------------------------------------------

class TestConnectRetries:
    def test_transient_failure_is_retried(self, monkeypatch) -> None:
        attempts = []

        def flaky(cfg):
            attempts.append(cfg)
            if len(attempts) == 1:
                raise sqlite3.OperationalError("database is locked")
            return sqlite3.connect(":memory:"), "named", sqlite3.Error

        monkeypatch.setitem(database._CONNECTORS, Dialect.SQLITE, flaky)
        db = DatabaseManager(ConnectionConfig(dialect=Dialect.SQLITE), retry_delay=0)
        db.connect()
        assert len(attempts) == 2
        assert db.is_connected
        db.close()

    def test_gives_up_after_max_retries(self, monkeypatch) -> None:
        def failing(cfg):
            raise sqlite3.OperationalError("unable to open database file")

        monkeypatch.setitem(database._CONNECTORS, Dialect.SQLITE, failing)
        db = DatabaseManager(ConnectionConfig(dialect=Dialect.SQLITE), max_retries=2, retry_delay=0)
        with pytest.raises(DatabaseError):
            db.connect()

    def test_interrupt_is_not_retried(self, monkeypatch) -> None:
        attempts = []

        def interrupted(cfg):
            attempts.append(cfg)
            raise MigrationInterrupted("run", "received signal 2")

        monkeypatch.setitem(database._CONNECTORS, Dialect.SQLITE, interrupted)
        db = DatabaseManager(ConnectionConfig(dialect=Dialect.SQLITE), retry_delay=0)
        with pytest.raises(MigrationInterrupted):
            db.connect()
        assert len(attempts) == 1
        assert not db.is_connected
