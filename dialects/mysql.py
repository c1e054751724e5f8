"""
dialects/mysql.py
-----------------
MySQL / MariaDB type tables and catalog queries.

Native type names are the lower-case ``DATA_TYPE`` spellings reported by
``INFORMATION_SCHEMA.COLUMNS``.  ``timestamp`` and ``datetime`` columns are
read through ``CONVERT_TZ`` so values leave the source in UTC.
"""
from __future__ import annotations

from core.canonical import CanonicalType as T
from core.type_mapper import DialectTypeMapper
from dialects.base import MetadataSource, as_text
from models.columns import ColumnDefinition
from models.dialect import Dialect


class MySqlTypeMapper(DialectTypeMapper):
    dialect = Dialect.MYSQL
    fallback_native = "varchar"
    quote_chars = ("`", "`")

    native_to_canonical_table = {
        "tinyint": T.TINYINT,
        "smallint": T.SMALLINT,
        "mediumint": T.INT,
        "int": T.INT,
        "integer": T.INT,
        "bigint": T.BIGINT,
        "real": T.DOUBLE,
        "float": T.FLOAT,
        "double": T.DOUBLE,
        "decimal": T.DECIMAL,
        "numeric": T.DECIMAL,
        "date": T.DATE,
        "datetime": T.DATETIME,
        "timestamp": T.TIMESTAMP,
        "time": T.TIME,
        "year": T.INT,
        "char": T.CHAR,
        "varchar": T.STRING,
        "tinytext": T.LONG_STRING,
        "text": T.LONG_STRING,
        "mediumtext": T.LONG_STRING,
        "longtext": T.LONG_STRING,
        "binary": T.CHAR_BINARY,
        "varbinary": T.BINARY,
        "tinyblob": T.BLOB,
        "blob": T.BLOB,
        "mediumblob": T.BLOB,
        "longblob": T.BLOB,
        "enum": T.STRING,
        "set": T.STRING,
        "bool": T.BOOL,
        "boolean": T.BOOL,
        "json": T.JSON,
        "bit": T.BIT,
        "geometry": T.BINARY,
        "point": T.BINARY,
        "linestring": T.BINARY,
        "polygon": T.BINARY,
        "multipoint": T.BINARY,
        "multilinestring": T.BINARY,
        "multipolygon": T.BINARY,
        "geometrycollection": T.BINARY,
    }

    canonical_to_native_table = {
        T.NULL: "varchar",
        T.BIT: "bit",
        T.TINYINT: "tinyint",
        T.SMALLINT: "smallint",
        T.INT: "int",
        T.BIGINT: "bigint",
        T.FLOAT: "float",
        T.DOUBLE: "double",
        T.DECIMAL: "decimal",
        T.SMALLMONEY: "decimal(10,4)",
        T.MONEY: "decimal(19,4)",
        T.STRING: "varchar",
        T.CHAR: "char",
        T.LONG_STRING: "longtext",
        T.UNICODE_STRING: "varchar",
        T.LONG_UNICODE_STRING: "longtext",
        T.CHAR_BINARY: "binary",
        T.BINARY: "varbinary",
        T.BLOB: "longblob",
        T.DATE: "date",
        T.TIME: "time",
        T.TIME_TZ: "time",
        T.DATETIME: "datetime",
        T.DATETIME_TZ: "datetime",
        T.TIMESTAMP: "datetime",
        T.INTERVAL: "varchar",      # no interval type in MySQL
        T.BOOL: "boolean",
        T.JSON: "json",
        T.GUID: "binary(16)",
        T.AUTO_INCREMENT_TINYINT: "tinyint",
        T.AUTO_INCREMENT_SMALLINT: "smallint",
        T.AUTO_INCREMENT_MEDIUMINT: "mediumint",
        T.AUTO_INCREMENT_INT: "int",
        T.AUTO_INCREMENT_BIGINT: "bigint",
        T.UNKNOWN: "varchar",
    }

    sized_types = {
        "varchar": 255,
        "varbinary": 255,
        "char": None,
        "binary": None,
        "bit": None,
    }
    length_caps = {
        "varchar": (16383, "16383"),   # utf8mb4 row limit
        "char": (255, "255"),
        "binary": (255, "255"),
        "bit": (64, "64"),
    }
    precision_types = frozenset({"decimal"})
    precision_defaults = {"decimal": (38, 10)}
    precision_caps = {"decimal": 65}

    def utc_read_expression(self, name, native, alias=None):
        if "timestamp" in native or native == "datetime":
            column = self.quote_identifier(name)
            label = self.quote_identifier(alias or name)
            return f"CONVERT_TZ({column}, @@session.time_zone, '+00:00') AS {label}"
        return None

    def utc_write_placeholder(self, placeholder: str) -> str:
        return f"CONVERT_TZ({placeholder}, '+00:00', @@global.time_zone)"


class MySqlMetadataSource(MetadataSource):
    dialect = Dialect.MYSQL

    def _fetch_workarea(self) -> str | None:
        return as_text(self.db.scalar("SELECT DATABASE()"))

    def _fetch_tables(self) -> list[str]:
        return [as_text(row[0]) for row in self.db.query("SHOW TABLES")]

    def _fetch_columns(self, table: str) -> list[ColumnDefinition]:
        rows = self.db.query(
            "SELECT COLUMN_NAME, DATA_TYPE, CHARACTER_MAXIMUM_LENGTH, "
            "NUMERIC_PRECISION, NUMERIC_SCALE, IS_NULLABLE "
            "FROM INFORMATION_SCHEMA.COLUMNS "
            "WHERE TABLE_SCHEMA = :workarea AND TABLE_NAME = :table_name "
            "ORDER BY ORDINAL_POSITION",
            {"workarea": self.current_workarea(), "table_name": table},
        )
        return [
            self.column_definition(name, native, nullable, length, precision, scale)
            for name, native, length, precision, scale, nullable in rows
        ]

    def _create_workarea(self, name: str) -> None:
        quoted = self.mapper.quote_identifier(name)
        self.db.execute(f"CREATE DATABASE IF NOT EXISTS {quoted}")
        self.db.execute(f"USE {quoted}")
