"""
core/plan_log.py
----------------
Target-side audit table recording every column transformation of a run.

One row per (table, column) holding the transformed definition.  The
table is dropped and recreated at the start of each run and is never read
back by the migration itself; ``PlanLog.load`` exists for inspection.

Schema::

    table_name, column_name, data_type, character_maximum_length,
    numeric_precision, numeric_scale, is_nullable, original_type,
    to_utc_query, canonical_type, source_name,
    PRIMARY KEY (table_name, column_name)
"""
from __future__ import annotations

from typing import Any, Mapping

from core.canonical import CanonicalType, param_kind_for
from core.compiler import compile_create_table, identifier
from core.database import DatabaseError
from core.errors import BridgeError, PlanLogError
from dialects.base import MetadataSource
from logger import get_logger
from models.columns import TransformedColumnDefinition

log = get_logger(__name__)

# column name → (canonical type, length, nullable)
_PLAN_SCHEMA: tuple[tuple[str, CanonicalType, int | None, bool], ...] = (
    ("table_name", CanonicalType.STRING, 255, False),
    ("column_name", CanonicalType.STRING, 255, False),
    ("data_type", CanonicalType.STRING, 255, True),
    ("character_maximum_length", CanonicalType.INT, None, True),
    ("numeric_precision", CanonicalType.INT, None, True),
    ("numeric_scale", CanonicalType.INT, None, True),
    ("is_nullable", CanonicalType.BOOL, None, True),
    ("original_type", CanonicalType.STRING, 255, True),
    ("to_utc_query", CanonicalType.LONG_STRING, None, True),
    ("canonical_type", CanonicalType.STRING, 64, True),
    ("source_name", CanonicalType.STRING, 255, True),
)
PLAN_COLUMNS = tuple(name for name, *_ in _PLAN_SCHEMA)


class PlanLog:
    """
    Reads and writes the plan table on the target connection.

    Args:
        target:     Target :class:`MetadataSource` (connection + mapper).
        table_name: Name of the plan table.
    """

    def __init__(self, target: MetadataSource, table_name: str = "dbbridge_plan") -> None:
        self.target = target
        self.table_name = table_name

    def _definitions(self) -> dict[str, TransformedColumnDefinition]:
        mapper = self.target.mapper
        definitions = {}
        for name, canonical, length, nullable in _PLAN_SCHEMA:
            definitions[name] = TransformedColumnDefinition(
                name=name,
                canonical_type=canonical,
                original_native_type="",
                target_native_type=mapper.canonical_to_native(canonical),
                target_param_kind=param_kind_for(canonical),
                nullable=nullable,
                character_max_length=length,
            )
        return definitions

    def rebuild(self) -> None:
        """
        Drop any existing plan table and create an empty one.

        Raises:
            PlanLogError: If the DROP or CREATE fails.
        """
        sql = compile_create_table(
            self.table_name,
            self._definitions(),
            self.target.dialect,
            primary_key=("table_name", "column_name"),
        )
        try:
            self.target.drop_table(self.table_name)
            self.target.execute_ddl("create_plan_table", sql)
        except BridgeError as exc:
            raise PlanLogError("rebuild_plan_log", f"table '{self.table_name}'", exc) from exc
        log.info("Plan table '%s' created.", self.table_name)

    def save(self, table: str, columns: Mapping[str, TransformedColumnDefinition]) -> None:
        """
        Record the transformed *columns* of *table*.

        Raises:
            PlanLogError: If an INSERT fails.
        """
        mapper = self.target.mapper
        names = ", ".join(identifier(name, mapper) for name in PLAN_COLUMNS)
        placeholders = ", ".join(f":{name}" for name in PLAN_COLUMNS)
        sql = (
            f"INSERT INTO {identifier(self.table_name, mapper)} ({names}) "
            f"VALUES ({placeholders})"
        )
        for name, column in columns.items():
            params = {
                "table_name": table,
                "column_name": name,
                "data_type": column.target_native_type,
                "character_maximum_length": column.character_max_length,
                "numeric_precision": column.numeric_precision,
                "numeric_scale": column.numeric_scale,
                "is_nullable": 1 if column.nullable else 0,
                "original_type": column.original_native_type,
                "to_utc_query": column.to_utc_query,
                "canonical_type": column.canonical_type.value,
                "source_name": column.source_name,
            }
            try:
                self.target.db.execute(sql, params)
            except DatabaseError as exc:
                raise PlanLogError("save_plan", f"{table}.{name}", exc) from exc
        log.debug("Plan for '%s' saved (%d column(s)).", table, len(columns))

    def load(self, table: str) -> list[dict[str, Any]]:
        """
        Plan rows recorded for *table*, as dicts keyed by plan column.

        Raises:
            PlanLogError: If the query fails.
        """
        mapper = self.target.mapper
        names = ", ".join(identifier(name, mapper) for name in PLAN_COLUMNS)
        sql = (
            f"SELECT {names} FROM {identifier(self.table_name, mapper)} "
            f"WHERE {identifier('table_name', mapper)} = :table_name"
        )
        try:
            rows = self.target.db.query(sql, {"table_name": table})
        except DatabaseError as exc:
            raise PlanLogError("load_plan", f"table '{table}'", exc) from exc
        return [dict(zip(PLAN_COLUMNS, row)) for row in rows]
