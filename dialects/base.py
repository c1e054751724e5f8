"""
dialects/base.py
----------------
Catalog access for one connection, shared by every dialect.

A ``MetadataSource`` answers three questions about its connection (which
tables exist, what columns a table has, which database/schema is active)
and performs the few target-side DDL helpers the orchestrator needs.

Design Decisions:
    * Subclasses implement only the raw catalog queries (``_fetch_*``);
      error wrapping, caching and case handling live here, so every
      dialect reports failures the same way.
    * Table names are read once per source instance and cached; target
      existence checks always query afresh.
    * All SQL uses ``:name`` placeholders; ``DatabaseManager`` adapts them.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from core.database import DatabaseError, DatabaseManager
from core.errors import DdlError, MetadataReadError
from core.type_mapper import DialectTypeMapper
from logger import DebugFlag, get_logger, tag
from models.columns import ColumnDefinition
from models.dialect import Dialect

log = get_logger(__name__)


def as_text(value: Any) -> str | None:
    """Catalog values may come back as bytes on some drivers."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    return str(value)


def as_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def as_nullable(value: Any) -> bool:
    """Interpret YES/Y/1/True style catalog flags."""
    if isinstance(value, str):
        return value.strip().upper() in ("YES", "Y", "1", "TRUE")
    return bool(value)


class MetadataSource(ABC):
    """
    Catalog reader (and target DDL helper) for one connection.

    Args:
        db:       Connected :class:`DatabaseManager`.
        mapper:   The dialect's type mapper (used for UTC read expressions
                  and identifier quoting).
        workarea: Optional explicit workarea; read from the connection
                  when omitted.
    """
    dialect: ClassVar[Dialect]
    # Whether table names compare case-insensitively on this engine.
    case_insensitive_names: ClassVar[bool] = False

    def __init__(
        self,
        db: DatabaseManager,
        mapper: DialectTypeMapper,
        workarea: str | None = None,
    ) -> None:
        self.db = db
        self.mapper = mapper
        self._workarea = workarea
        self._table_names: list[str] | None = None

    # ------------------------------------------------------------------
    # Dialect hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _fetch_workarea(self) -> str | None:
        """Name of the active database / schema."""

    @abstractmethod
    def _fetch_tables(self) -> list[str]:
        """Table names of the current workarea, in catalog order."""

    @abstractmethod
    def _fetch_columns(self, table: str) -> list[ColumnDefinition]:
        """Column definitions of *table*, in ordinal order."""

    def _create_workarea(self, name: str) -> None:
        """Create and switch to *name*; engines without the concept skip it."""
        log.debug("%s: workarea '%s' is the connected one.", self.dialect.value, name)

    # ------------------------------------------------------------------
    # Source side
    # ------------------------------------------------------------------

    def current_workarea(self) -> str:
        """
        Return the active database/schema name.

        Raises:
            MetadataReadError: If the connection reports none.
        """
        if self._workarea:
            return self._workarea
        try:
            workarea = self._fetch_workarea()
        except DatabaseError as exc:
            raise MetadataReadError("current_workarea", cause=exc) from exc
        if not workarea:
            raise MetadataReadError(
                "current_workarea", f"no active workarea on {self.dialect.value} connection"
            )
        self._workarea = workarea
        return workarea

    def list_tables(self) -> list[str]:
        """Table names in source-reported order (cached)."""
        if self._table_names is None:
            try:
                self._table_names = [name for name in self._fetch_tables() if name]
            except DatabaseError as exc:
                raise MetadataReadError("list_tables", cause=exc) from exc
            log.info(
                "Found %d table(s) in workarea '%s'.",
                len(self._table_names), self._workarea or "?",
            )
        return list(self._table_names)

    def list_columns(self, table: str) -> list[ColumnDefinition]:
        """
        Column definitions of *table*.

        Raises:
            MetadataReadError: If the table is unknown or the query fails.
        """
        catalog_name = self._find_table(table, self.list_tables())
        if catalog_name is None:
            raise MetadataReadError(
                "list_columns",
                f"workarea '{self._workarea}' does not have table '{table}'",
            )
        try:
            columns = self._fetch_columns(catalog_name)
        except DatabaseError as exc:
            raise MetadataReadError("list_columns", f"table '{table}'", exc) from exc
        if not columns:
            raise MetadataReadError("list_columns", f"no columns found for table '{table}'")
        for column in columns:
            log.debug(
                "Source column %s.%s: %s", table, column.name, column.native_type,
                extra=tag(DebugFlag.TRANSFORM_SOURCE),
            )
        return columns

    def column_definition(
        self,
        name: str,
        native_type: str,
        nullable: Any,
        max_length: Any = None,
        precision: Any = None,
        scale: Any = None,
    ) -> ColumnDefinition:
        """Build a :class:`ColumnDefinition` from raw catalog values."""
        native = as_text(native_type) or ""
        column_name = as_text(name) or ""
        return ColumnDefinition(
            name=column_name,
            native_type=native,
            nullable=as_nullable(nullable),
            character_max_length=as_int(max_length),
            numeric_precision=as_int(precision),
            numeric_scale=as_int(scale),
            to_utc_query=self.mapper.utc_read_expression(column_name, native),
        )

    # ------------------------------------------------------------------
    # Target side
    # ------------------------------------------------------------------

    def _find_table(self, table: str, names: list[str]) -> str | None:
        if table in names:
            return table
        if self.case_insensitive_names:
            wanted = table.lower()
            return next((n for n in names if n.lower() == wanted), None)

    def _catalog_name(self, operation: str, table: str) -> str | None:
        """Spelling of *table* as stored in the live catalog, or None."""
        try:
            names = self._fetch_tables()
        except DatabaseError as exc:
            raise MetadataReadError(operation, f"table '{table}'", exc) from exc
        return self._find_table(table, names)

    def table_exists(self, table: str) -> bool:
        """Check the live catalog (never the cache)."""
        return self._catalog_name("table_exists", table) is not None

    def count_rows(self, table: str) -> int:
        name = self._catalog_name("count_rows", table) or table
        try:
            count = self.db.scalar(f"SELECT COUNT(*) FROM {self.mapper.quote_identifier(name)}")
        except DatabaseError as exc:
            raise MetadataReadError("count_rows", f"table '{table}'", exc) from exc
        return int(count or 0)

    def drop_table(self, table: str) -> None:
        """Drop *table* if it exists."""
        name = self._catalog_name("drop_table", table)
        if name is None:
            return
        log.info("Dropping table '%s'...", name, extra=tag(DebugFlag.OVERWRITE))
        self.execute_ddl("drop_table", f"DROP TABLE {self.mapper.quote_identifier(name)}")
        self._table_names = None

    def ensure_workarea(self, name: str) -> None:
        """Create the workarea if missing and make it the active one."""
        try:
            self._create_workarea(name)
        except DatabaseError as exc:
            raise DdlError("ensure_workarea", f"workarea '{name}'", exc) from exc
        self._workarea = name
        self._table_names = None

    def execute_ddl(self, operation: str, sql: str) -> None:
        """Run one DDL statement, wrapping driver failures as :class:`DdlError`."""
        try:
            self.db.execute(sql)
        except DatabaseError as exc:
            raise DdlError(operation, sql, exc) from exc
