"""
dialects/oracle.py
------------------
Oracle type tables and catalog queries.

Oracle reports upper-case type names, sometimes with modifiers
(``TIMESTAMP(6) WITH TIME ZONE``); modifiers are stripped before lookup.
The workarea is the connected user's schema, so ``ensure_workarea`` is a
no-op.
"""
from __future__ import annotations

from core.canonical import CanonicalType as T
from core.type_mapper import DialectTypeMapper, strip_type_modifiers
from dialects.base import MetadataSource, as_text
from models.columns import ColumnDefinition
from models.dialect import Dialect


class OracleTypeMapper(DialectTypeMapper):
    dialect = Dialect.ORACLE
    fallback_native = "VARCHAR2"
    identifier_case = "upper"

    native_to_canonical_table = {
        "BFILE": T.BLOB,
        "BLOB": T.BLOB,
        "LONG RAW": T.BLOB,
        "BINARY_DOUBLE": T.DOUBLE,
        "BINARY_FLOAT": T.FLOAT,
        "BINARY_INTEGER": T.INT,
        "BOOLEAN": T.BOOL,
        "CHAR": T.CHAR,
        "CLOB": T.LONG_STRING,
        "LONG": T.LONG_STRING,
        "DATE": T.DATETIME,
        "DEC": T.DECIMAL,
        "DECIMAL": T.DECIMAL,
        "NUMBER": T.DECIMAL,
        "DOUBLE PRECISION": T.DOUBLE,
        "FLOAT": T.DOUBLE,
        "INT": T.INT,
        "INTEGER": T.INT,
        "SMALLINT": T.INT,
        "INTERVAL DAY TO SECOND": T.INTERVAL,
        "INTERVAL YEAR TO MONTH": T.INTERVAL,
        "JSON": T.JSON,
        "NCHAR": T.UNICODE_STRING,
        "NVARCHAR2": T.UNICODE_STRING,
        "NCLOB": T.LONG_UNICODE_STRING,
        "RAW": T.BINARY,
        "REAL": T.FLOAT,
        "ROWID": T.STRING,
        "UROWID": T.STRING,
        "VARCHAR": T.STRING,
        "VARCHAR2": T.STRING,
        "TIMESTAMP": T.DATETIME,
        "TIMESTAMP WITH TIME ZONE": T.DATETIME_TZ,
        "TIMESTAMP WITH LOCAL TIME ZONE": T.DATETIME,
        "XMLTYPE": T.LONG_STRING,
    }

    canonical_to_native_table = {
        T.NULL: "VARCHAR2",
        T.BIT: "NUMBER(1)",
        T.TINYINT: "NUMBER(3)",
        T.SMALLINT: "NUMBER(5)",
        T.INT: "NUMBER(10)",
        T.BIGINT: "NUMBER(19)",
        T.FLOAT: "BINARY_FLOAT",
        T.DOUBLE: "BINARY_DOUBLE",
        T.DECIMAL: "NUMBER",
        T.SMALLMONEY: "NUMBER(10,4)",
        T.MONEY: "NUMBER(19,4)",
        T.STRING: "VARCHAR2",
        T.CHAR: "CHAR",
        T.LONG_STRING: "CLOB",
        T.UNICODE_STRING: "NVARCHAR2",
        T.LONG_UNICODE_STRING: "NCLOB",
        T.CHAR_BINARY: "RAW",
        T.BINARY: "BLOB",
        T.BLOB: "BLOB",
        T.DATE: "DATE",
        T.TIME: "TIMESTAMP",
        T.TIME_TZ: "TIMESTAMP WITH TIME ZONE",
        T.DATETIME: "TIMESTAMP",
        T.DATETIME_TZ: "TIMESTAMP WITH TIME ZONE",
        T.TIMESTAMP: "TIMESTAMP",
        T.INTERVAL: "INTERVAL DAY TO SECOND",
        T.BOOL: "NUMBER(1)",
        T.JSON: "CLOB",
        T.GUID: "RAW(16)",
        T.AUTO_INCREMENT_TINYINT: "NUMBER(3)",
        T.AUTO_INCREMENT_SMALLINT: "NUMBER(5)",
        T.AUTO_INCREMENT_MEDIUMINT: "NUMBER(7)",
        T.AUTO_INCREMENT_INT: "NUMBER(10)",
        T.AUTO_INCREMENT_BIGINT: "NUMBER(19)",
        T.UNKNOWN: "VARCHAR2",
    }

    sized_types = {
        "varchar2": 4000,
        "nvarchar2": 2000,
        "char": None,
        "nchar": None,
        "raw": 2000,
    }
    length_caps = {
        "varchar2": (4000, "4000"),
        "nvarchar2": (2000, "2000"),
        "char": (2000, "2000"),
        "nchar": (1000, "1000"),
        "raw": (2000, "2000"),
    }
    precision_types = frozenset({"number"})
    precision_caps = {"number": 38}

    def native_to_canonical(self, native: str) -> T:
        return super().native_to_canonical(strip_type_modifiers(native).upper())

    def utc_read_expression(self, name, native, alias=None):
        if strip_type_modifiers(native).upper() == "TIMESTAMP WITH TIME ZONE":
            column = self.quote_identifier(name)
            label = self.quote_identifier(alias or name)
            return f"SYS_EXTRACT_UTC({column}) AS {label}"
        return None

    def utc_write_placeholder(self, placeholder: str) -> str:
        return f"FROM_TZ(TO_TIMESTAMP({placeholder}, 'YYYY-MM-DD HH24:MI:SS'), 'UTC')"


class OracleMetadataSource(MetadataSource):
    dialect = Dialect.ORACLE
    case_insensitive_names = True

    def _fetch_workarea(self) -> str | None:
        return as_text(self.db.scalar("SELECT global_name FROM global_name"))

    def _fetch_tables(self) -> list[str]:
        return [as_text(row[0]) for row in self.db.query("SELECT table_name FROM user_tables")]

    def _fetch_columns(self, table: str) -> list[ColumnDefinition]:
        rows = self.db.query(
            "SELECT column_name, data_type, "
            "CASE WHEN char_length > 0 THEN char_length ELSE data_length END, "
            "data_precision, data_scale, nullable "
            "FROM user_tab_columns WHERE table_name = :table_name "
            "ORDER BY column_id",
            {"table_name": table},
        )
        return [
            self.column_definition(
                name, strip_type_modifiers(as_text(native) or ""), nullable,
                length, precision, scale,
            )
            for name, native, length, precision, scale, nullable in rows
        ]
