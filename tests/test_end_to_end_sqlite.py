"""
tests/test_end_to_end_sqlite.py
-------------------------------
Full migrations between two in-memory SQLite databases.
Run with: python -m pytest tests/
"""
from __future__ import annotations

import sqlite3

import pytest

from config import MigrationConfig
from core.database import DatabaseManager
from core.errors import MigrationAborted
from core.migrator import MigrationOrchestrator
from dialects import open_metadata_source
from models.dialect import Dialect
from models.overwrite import OverwriteChoice, OverwritePolicy

PEOPLE = [
    (1, "Ada", 2.5, 10.5, b"\x00\x01", "first"),
    (2, "Zoë\x07", None, None, None, None),
    (3, "", 0.0, 0, b"", "third"),
]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

def _memory_db() -> DatabaseManager:
    conn = sqlite3.connect(":memory:", isolation_level=None)
    return DatabaseManager.from_connection(conn, Dialect.SQLITE, "named", sqlite3.Error)


@pytest.fixture
def source_db() -> DatabaseManager:
    db = _memory_db()
    db.execute(
        'CREATE TABLE people (id INTEGER NOT NULL, name VARCHAR(50), score REAL, '
        'balance DECIMAL(10,2), photo BLOB, "order" TEXT)'
    )
    for row in PEOPLE:
        db.execute(
            'INSERT INTO people VALUES (:id, :name, :score, :balance, :photo, :o)',
            dict(zip(("id", "name", "score", "balance", "photo", "o"), row)),
        )
    db.execute("CREATE TABLE empty_table (code CHAR(3))")
    db.execute("CREATE TABLE sys_settings (k TEXT)")
    yield db
    db.close()


@pytest.fixture
def target_db() -> DatabaseManager:
    db = _memory_db()
    yield db
    db.close()


def _migrate(source_db, target_db, policy: OverwritePolicy, decide=None):
    orchestrator = MigrationOrchestrator(
        open_metadata_source(source_db),
        open_metadata_source(target_db),
        MigrationConfig(
            overwrite_policy=policy,
            skip_table_prefix="sys_",
            plan_table="dbbridge_plan",
            target_workarea=None,
            progress_every=2,
        ),
        decide,
    )
    return orchestrator, orchestrator.run()


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestFirstRun:
    def test_results(self, source_db, target_db) -> None:
        _, results = _migrate(source_db, target_db, OverwritePolicy.NEVER)
        assert [(r.table, r.rows, r.skipped) for r in results] == [
            ("people", 3, False),
            ("empty_table", 0, False),
        ]

    def test_target_tables(self, source_db, target_db) -> None:
        _migrate(source_db, target_db, OverwritePolicy.NEVER)
        tables = [row[0] for row in target_db.query(
            "SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name"
        )]
        assert tables == ["dbbridge_plan", "empty_table", "people"]

    def test_reserved_column_is_renamed(self, source_db, target_db) -> None:
        _migrate(source_db, target_db, OverwritePolicy.NEVER)
        columns = [row[1] for row in target_db.query('PRAGMA table_info("people")')]
        assert columns == ["id", "name", "score", "balance", "photo", "order_"]

    def test_rows_are_copied(self, source_db, target_db) -> None:
        _migrate(source_db, target_db, OverwritePolicy.NEVER)
        rows = target_db.query(
            "SELECT id, name, score, balance, photo, order_ FROM people ORDER BY id"
        )
        assert rows[0] == (1, "Ada", 2.5, 10.5, b"\x00\x01", "first")
        assert rows[1] == (2, "Zoë", None, None, None, None)
        assert rows[2][0] == 3
        assert rows[2][1] == ""
        assert rows[2][5] == "third"

    def test_plan_log(self, source_db, target_db) -> None:
        orchestrator, _ = _migrate(source_db, target_db, OverwritePolicy.NEVER)
        plan = {row["column_name"]: row for row in orchestrator.plan_log.load("people")}
        assert sorted(plan) == ["balance", "id", "name", "order_", "photo", "score"]
        assert plan["order_"]["source_name"] == "order"
        assert plan["id"]["is_nullable"] == 0
        assert plan["name"]["character_maximum_length"] == 50
        assert (plan["balance"]["numeric_precision"], plan["balance"]["numeric_scale"]) == (10, 2)
        assert plan["score"]["canonical_type"] == "Double"
        assert plan["photo"]["data_type"] == "blob"

    def test_plan_table_is_not_copied(self, source_db, target_db) -> None:
        # A source that already holds a plan table from an earlier run
        source_db.execute("CREATE TABLE dbbridge_plan (x TEXT)")
        _, results = _migrate(source_db, target_db, OverwritePolicy.NEVER)
        assert "dbbridge_plan" not in [r.table for r in results]


class TestRerun:
    def test_overwrite_replaces_rows(self, source_db, target_db) -> None:
        _migrate(source_db, target_db, OverwritePolicy.NEVER)
        _, results = _migrate(source_db, target_db, OverwritePolicy.OVERWRITE)
        assert results[0].rows == 3
        assert target_db.scalar("SELECT COUNT(*) FROM people") == 3

    def test_plan_log_is_rebuilt(self, source_db, target_db) -> None:
        _migrate(source_db, target_db, OverwritePolicy.NEVER)
        _migrate(source_db, target_db, OverwritePolicy.OVERWRITE)
        assert target_db.scalar("SELECT COUNT(*) FROM dbbridge_plan") == 7

    def test_skip_keeps_existing_rows(self, source_db, target_db) -> None:
        _migrate(source_db, target_db, OverwritePolicy.NEVER)
        target_db.execute("DELETE FROM people WHERE id = 1")
        _, results = _migrate(source_db, target_db, OverwritePolicy.SKIP)
        assert all(r.skipped for r in results)
        assert target_db.scalar("SELECT COUNT(*) FROM people") == 2

    def test_never_aborts(self, source_db, target_db) -> None:
        _migrate(source_db, target_db, OverwritePolicy.NEVER)
        with pytest.raises(MigrationAborted):
            _migrate(source_db, target_db, OverwritePolicy.NEVER)

    def test_overwrite_empty(self, source_db, target_db) -> None:
        _migrate(source_db, target_db, OverwritePolicy.NEVER)
        _, results = _migrate(source_db, target_db, OverwritePolicy.OVERWRITE_EMPTY)
        assert [(r.table, r.skipped) for r in results] == [
            ("people", True), ("empty_table", False),
        ]

    def test_ask_overwrite_all(self, source_db, target_db) -> None:
        _migrate(source_db, target_db, OverwritePolicy.NEVER)
        asked = []

        def decide(table: str) -> OverwriteChoice:
            asked.append(table)
            return OverwriteChoice.OVERWRITE_ALL

        orchestrator, results = _migrate(source_db, target_db, OverwritePolicy.ASK, decide)
        assert asked == ["people"]
        assert orchestrator.policy is OverwritePolicy.OVERWRITE_ALL
        assert [r.rows for r in results] == [3, 0]
