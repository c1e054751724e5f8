"""
dialects
--------
Registry of supported dialects: one type mapper instance and one metadata
source class per engine.

Example::

    mapper = get_mapper(Dialect.MYSQL)
    source = open_metadata_source(db)
"""
from __future__ import annotations

from dataclasses import dataclass

from core.database import DatabaseManager
from core.errors import ConfigurationError
from core.type_mapper import DialectTypeMapper
from dialects.base import MetadataSource
from dialects.mssql import MsSqlMetadataSource, MsSqlTypeMapper
from dialects.mysql import MySqlMetadataSource, MySqlTypeMapper
from dialects.odbc import detect_dialect
from dialects.oracle import OracleMetadataSource, OracleTypeMapper
from dialects.pgsql import PgSqlMetadataSource, PgSqlTypeMapper
from dialects.sqlite import SqliteMetadataSource, SqliteTypeMapper
from models.dialect import Dialect


@dataclass(frozen=True)
class DialectBinding:
    dialect: Dialect
    source_cls: type[MetadataSource]
    mapper: DialectTypeMapper


_REGISTRY: dict[Dialect, DialectBinding] = {
    binding.dialect: binding
    for binding in (
        DialectBinding(Dialect.MYSQL, MySqlMetadataSource, MySqlTypeMapper()),
        DialectBinding(Dialect.MSSQL, MsSqlMetadataSource, MsSqlTypeMapper()),
        DialectBinding(Dialect.PGSQL, PgSqlMetadataSource, PgSqlTypeMapper()),
        DialectBinding(Dialect.ORACLE, OracleMetadataSource, OracleTypeMapper()),
        DialectBinding(Dialect.SQLITE, SqliteMetadataSource, SqliteTypeMapper()),
    )
}


def supported_dialects() -> list[Dialect]:
    return list(_REGISTRY)


def get_binding(dialect: Dialect) -> DialectBinding:
    """
    Raises:
        ConfigurationError: For ODBC (detect the engine first) or an
            unregistered dialect.
    """
    binding = _REGISTRY.get(dialect)
    if binding is None:
        raise ConfigurationError(
            "get_mapper", f"no type map registered for dialect '{getattr(dialect, 'value', dialect)}'"
        )
    return binding


def get_mapper(dialect: Dialect) -> DialectTypeMapper:
    return get_binding(dialect).mapper


def resolve_dialect(db: DatabaseManager) -> Dialect:
    """Concrete dialect of *db*, detecting the engine for ODBC connections."""
    if db.dialect is Dialect.ODBC:
        db.dialect = detect_dialect(db)
    return db.dialect


def open_metadata_source(
    db: DatabaseManager, workarea: str | None = None
) -> MetadataSource:
    """Build the metadata source matching *db*'s (resolved) dialect."""
    binding = get_binding(resolve_dialect(db))
    return binding.source_cls(db, binding.mapper, workarea)


__all__ = [
    "DialectBinding",
    "MetadataSource",
    "get_binding",
    "get_mapper",
    "open_metadata_source",
    "resolve_dialect",
    "supported_dialects",
]
