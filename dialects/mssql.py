"""
dialects/mssql.py
-----------------
Microsoft SQL Server type tables and catalog queries.

``datetimeoffset`` columns are read through ``SWITCHOFFSET`` so values
leave the source as UTC ``datetime2``.  The catalog reports ``(max)``
columns with length -1; those are normalised to "no length".
"""
from __future__ import annotations

from core.canonical import CanonicalType as T
from core.type_mapper import DialectTypeMapper
from dialects.base import MetadataSource, as_int, as_text
from models.columns import ColumnDefinition
from models.dialect import Dialect


class MsSqlTypeMapper(DialectTypeMapper):
    dialect = Dialect.MSSQL
    fallback_native = "varchar"
    quote_chars = ("[", "]")

    native_to_canonical_table = {
        "bigint": T.BIGINT,
        "binary": T.CHAR_BINARY,
        "bit": T.BIT,
        "char": T.CHAR,
        "date": T.DATE,
        "datetime": T.DATETIME,
        "datetime2": T.DATETIME,
        "datetimeoffset": T.DATETIME_TZ,
        "decimal": T.DECIMAL,
        "float": T.DOUBLE,
        "image": T.BLOB,
        "int": T.INT,
        "money": T.MONEY,
        "nchar": T.UNICODE_STRING,
        "ntext": T.LONG_UNICODE_STRING,
        "numeric": T.DECIMAL,
        "nvarchar": T.UNICODE_STRING,
        "real": T.FLOAT,
        "smalldatetime": T.DATETIME,
        "smallint": T.SMALLINT,
        "smallmoney": T.SMALLMONEY,
        "text": T.LONG_STRING,
        "time": T.TIME,
        "tinyint": T.TINYINT,
        "uniqueidentifier": T.GUID,
        "varbinary": T.BINARY,
        "varchar": T.STRING,
        "xml": T.LONG_UNICODE_STRING,
        "sql_variant": T.UNKNOWN,
        # rowversion: an 8-byte counter, not a point in time
        "timestamp": T.CHAR_BINARY,
        "rowversion": T.CHAR_BINARY,
        "geometry": T.BINARY,
        "geography": T.BINARY,
        "hierarchyid": T.UNKNOWN,
    }

    canonical_to_native_table = {
        T.NULL: "varchar",
        T.BIT: "bit",
        T.TINYINT: "tinyint",
        T.SMALLINT: "smallint",
        T.INT: "int",
        T.BIGINT: "bigint",
        T.FLOAT: "real",
        T.DOUBLE: "float",
        T.DECIMAL: "decimal",
        T.SMALLMONEY: "smallmoney",
        T.MONEY: "money",
        T.STRING: "varchar",
        T.CHAR: "char",
        T.LONG_STRING: "varchar(max)",
        T.UNICODE_STRING: "nvarchar",
        T.LONG_UNICODE_STRING: "nvarchar(max)",
        T.CHAR_BINARY: "binary",
        T.BINARY: "varbinary",
        T.BLOB: "varbinary(max)",
        T.DATE: "date",
        T.TIME: "time",
        T.TIME_TZ: "datetimeoffset",
        T.DATETIME: "datetime2",
        T.DATETIME_TZ: "datetimeoffset",
        T.TIMESTAMP: "datetime2",
        T.INTERVAL: "varchar",
        T.BOOL: "bit",
        T.JSON: "nvarchar(max)",
        T.GUID: "uniqueidentifier",
        T.AUTO_INCREMENT_TINYINT: "tinyint",
        T.AUTO_INCREMENT_SMALLINT: "smallint",
        T.AUTO_INCREMENT_MEDIUMINT: "int",
        T.AUTO_INCREMENT_INT: "int",
        T.AUTO_INCREMENT_BIGINT: "bigint",
        T.UNKNOWN: "varchar",
    }

    sized_types = {
        "varchar": "max",
        "nvarchar": "max",
        "varbinary": "max",
        "char": None,
        "nchar": None,
        "binary": None,
    }
    length_caps = {
        "varchar": (8000, "max"),
        "nvarchar": (4000, "max"),
        "varbinary": (8000, "max"),
        "char": (8000, "8000"),
        "nchar": (4000, "4000"),
        "binary": (8000, "8000"),
    }
    precision_types = frozenset({"decimal", "numeric"})
    precision_defaults = {"decimal": (38, 10), "numeric": (38, 10)}
    precision_caps = {"decimal": 38, "numeric": 38}

    def utc_read_expression(self, name, native, alias=None):
        if "datetimeoffset" in native.lower():
            column = self.quote_identifier(name)
            label = self.quote_identifier(alias or name)
            return f"CONVERT(DATETIME2, SWITCHOFFSET({column}, '+00:00')) AS {label}"
        return None

    def utc_write_placeholder(self, placeholder: str) -> str:
        return f"CAST({placeholder} AS DATETIMEOFFSET) AT TIME ZONE 'UTC'"


class MsSqlMetadataSource(MetadataSource):
    dialect = Dialect.MSSQL
    case_insensitive_names = True

    def _fetch_workarea(self) -> str | None:
        return as_text(self.db.scalar("SELECT DB_NAME()"))

    def _fetch_tables(self) -> list[str]:
        rows = self.db.query(
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_type = 'BASE TABLE'"
        )
        return [as_text(row[0]) for row in rows]

    def _fetch_columns(self, table: str) -> list[ColumnDefinition]:
        rows = self.db.query(
            "SELECT COLUMN_NAME, DATA_TYPE, CHARACTER_MAXIMUM_LENGTH, "
            "NUMERIC_PRECISION, NUMERIC_SCALE, IS_NULLABLE "
            "FROM INFORMATION_SCHEMA.COLUMNS "
            "WHERE TABLE_CATALOG = :workarea AND TABLE_NAME = :table_name "
            "ORDER BY ORDINAL_POSITION",
            {"workarea": self.current_workarea(), "table_name": table},
        )
        columns = []
        for name, native, length, precision, scale, nullable in rows:
            length = as_int(length)
            if length is not None and length < 0:
                length = None
            columns.append(
                self.column_definition(name, native, nullable, length, precision, scale)
            )
        return columns

    def _create_workarea(self, name: str) -> None:
        literal = name.replace("'", "''")
        quoted = self.mapper.quote_identifier(name)
        self.db.execute(f"IF DB_ID(N'{literal}') IS NULL CREATE DATABASE {quoted}")
        self.db.execute(f"USE {quoted}")
