"""
dialects/pgsql.py
-----------------
PostgreSQL type tables and catalog queries.

The workarea is the current schema.  Time-zone aware columns are read
with ``AT TIME ZONE 'UTC'``.
"""
from __future__ import annotations

from core.canonical import CanonicalType as T
from core.type_mapper import DialectTypeMapper
from dialects.base import MetadataSource, as_text
from models.columns import ColumnDefinition
from models.dialect import Dialect

_TZ_AWARE = frozenset({
    "timestamp with time zone",
    "timestamptz",
    "time with time zone",
    "timetz",
})


class PgSqlTypeMapper(DialectTypeMapper):
    dialect = Dialect.PGSQL
    fallback_native = "text"
    identifier_case = "lower"

    native_to_canonical_table = {
        "smallserial": T.AUTO_INCREMENT_SMALLINT,
        "serial": T.AUTO_INCREMENT_INT,
        "bigserial": T.AUTO_INCREMENT_BIGINT,
        "smallint": T.SMALLINT,
        "integer": T.INT,
        "int": T.INT,
        "bigint": T.BIGINT,
        "decimal": T.DECIMAL,
        "numeric": T.DECIMAL,
        "real": T.FLOAT,
        "double precision": T.DOUBLE,
        "money": T.MONEY,
        "character varying": T.STRING,
        "varchar": T.STRING,
        "character": T.CHAR,
        "char": T.CHAR,
        "bpchar": T.CHAR,
        "text": T.LONG_STRING,
        "citext": T.LONG_STRING,
        "xml": T.LONG_STRING,
        "bytea": T.BLOB,
        "timestamp": T.DATETIME,
        "timestamp without time zone": T.DATETIME,
        "timestamp with time zone": T.DATETIME_TZ,
        "timestamptz": T.DATETIME_TZ,
        "date": T.DATE,
        "time": T.TIME,
        "time without time zone": T.TIME,
        "time with time zone": T.TIME_TZ,
        "timetz": T.TIME_TZ,
        "interval": T.INTERVAL,
        "boolean": T.BOOL,
        "bit": T.BIT,
        "bit varying": T.STRING,
        "json": T.JSON,
        "jsonb": T.JSON,
        "uuid": T.GUID,
        "inet": T.STRING,
        "cidr": T.STRING,
        "macaddr": T.STRING,
    }

    canonical_to_native_table = {
        T.NULL: "text",
        T.BIT: "boolean",
        T.TINYINT: "smallint",
        T.SMALLINT: "smallint",
        T.INT: "integer",
        T.BIGINT: "bigint",
        T.FLOAT: "real",
        T.DOUBLE: "double precision",
        T.DECIMAL: "numeric",
        T.SMALLMONEY: "money",
        T.MONEY: "money",
        T.STRING: "varchar",
        T.CHAR: "char",
        T.LONG_STRING: "text",
        T.UNICODE_STRING: "varchar",
        T.LONG_UNICODE_STRING: "text",
        T.CHAR_BINARY: "bytea",
        T.BINARY: "bytea",
        T.BLOB: "bytea",
        T.DATE: "date",
        T.TIME: "time",
        T.TIME_TZ: "time with time zone",
        T.DATETIME: "timestamp",
        T.DATETIME_TZ: "timestamp with time zone",
        T.TIMESTAMP: "timestamp",
        T.INTERVAL: "interval",
        T.BOOL: "boolean",
        T.JSON: "json",
        T.GUID: "uuid",
        T.AUTO_INCREMENT_TINYINT: "smallserial",
        T.AUTO_INCREMENT_SMALLINT: "smallserial",
        T.AUTO_INCREMENT_MEDIUMINT: "serial",
        T.AUTO_INCREMENT_INT: "serial",
        T.AUTO_INCREMENT_BIGINT: "bigserial",
        T.UNKNOWN: "text",
    }

    sized_types = {
        "varchar": None,
        "character varying": None,
        "char": None,
        "character": None,
    }
    length_caps = {
        "varchar": (10485760, "10485760"),
        "char": (10485760, "10485760"),
    }
    precision_types = frozenset({"numeric", "decimal"})
    precision_caps = {"numeric": 1000, "decimal": 1000}

    def utc_read_expression(self, name, native, alias=None):
        if native.lower() in _TZ_AWARE:
            column = self.quote_identifier(name)
            label = self.quote_identifier(alias or name)
            return f"{column} AT TIME ZONE 'UTC' AS {label}"
        return None

    def utc_write_placeholder(self, placeholder: str) -> str:
        return f"TIMESTAMP {placeholder} AT TIME ZONE 'UTC'"


class PgSqlMetadataSource(MetadataSource):
    dialect = Dialect.PGSQL
    # Unquoted identifiers fold to lower case.
    case_insensitive_names = True

    def _fetch_workarea(self) -> str | None:
        return as_text(self.db.scalar("SELECT current_schema()"))

    def _fetch_tables(self) -> list[str]:
        rows = self.db.query(
            "SELECT tablename FROM pg_catalog.pg_tables "
            "WHERE schemaname = :workarea",
            {"workarea": self.current_workarea()},
        )
        return [as_text(row[0]) for row in rows]

    def _fetch_columns(self, table: str) -> list[ColumnDefinition]:
        rows = self.db.query(
            "SELECT column_name, data_type, character_maximum_length, "
            "numeric_precision, numeric_scale, is_nullable "
            "FROM information_schema.columns "
            "WHERE table_schema = :workarea AND table_name = :table_name "
            "ORDER BY ordinal_position",
            {"workarea": self.current_workarea(), "table_name": table},
        )
        return [
            self.column_definition(name, native, nullable, length, precision, scale)
            for name, native, length, precision, scale, nullable in rows
        ]

    def _create_workarea(self, name: str) -> None:
        quoted = self.mapper.quote_identifier(name)
        self.db.execute(f"CREATE SCHEMA IF NOT EXISTS {quoted}")
        self.db.execute(f"SET search_path TO {quoted}")
