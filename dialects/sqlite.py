"""
dialects/sqlite.py
------------------
SQLite type tables and catalog queries.

SQLite columns carry a declared type that is reduced to one of five
storage affinities (integer, text, blob, real, numeric).  Any length or
precision written in the declaration (``VARCHAR(50)``, ``DECIMAL(10,2)``)
is kept on the column definition.

Design Decisions:
    * Nullability is never written inline: CREATE TABLE emits bare
      ``name type`` pairs.
    * There is no time-zone aware storage, so INSERTs that would need a
      UTC re-zoning rule are rejected when compiled.
"""
from __future__ import annotations

import re

from core.canonical import CanonicalType as T
from core.type_mapper import DialectTypeMapper
from dialects.base import MetadataSource, as_text
from models.columns import ColumnDefinition
from models.dialect import Dialect

_SIZE_RE = re.compile(r"\(\s*(\d+)\s*(?:,\s*(\d+)\s*)?\)")


def affinity(declared: str) -> str:
    """
    Reduce a declared column type to its SQLite storage affinity.

    Follows the rules of section 3.1 of the SQLite datatype documentation.
    """
    upper = declared.upper()
    if "INT" in upper:
        return "integer"
    if any(word in upper for word in ("CHAR", "CLOB", "TEXT")):
        return "text"
    if "BLOB" in upper or not upper.strip():
        return "blob"
    if any(word in upper for word in ("REAL", "FLOA", "DOUB")):
        return "real"
    return "numeric"


class SqliteTypeMapper(DialectTypeMapper):
    dialect = Dialect.SQLITE
    fallback_native = "text"
    case_insensitive = True
    inline_nullability = False

    native_to_canonical_table = {
        "integer": T.INT,
        "real": T.DOUBLE,
        "text": T.STRING,
        "blob": T.BLOB,
        "null": T.NULL,
        "numeric": T.DECIMAL,
    }

    canonical_to_native_table = {
        T.NULL: "text",
        T.BIT: "integer",
        T.TINYINT: "integer",
        T.SMALLINT: "integer",
        T.INT: "integer",
        T.BIGINT: "integer",
        T.FLOAT: "real",
        T.DOUBLE: "real",
        T.DECIMAL: "numeric",
        T.SMALLMONEY: "numeric",
        T.MONEY: "numeric",
        T.STRING: "text",
        T.CHAR: "text",
        T.LONG_STRING: "text",
        T.UNICODE_STRING: "text",
        T.LONG_UNICODE_STRING: "text",
        T.CHAR_BINARY: "blob",
        T.BINARY: "blob",
        T.BLOB: "blob",
        T.DATE: "text",
        T.TIME: "text",
        T.TIME_TZ: "text",
        T.DATETIME: "text",
        T.DATETIME_TZ: "text",
        T.TIMESTAMP: "text",
        T.INTERVAL: "text",
        T.BOOL: "integer",
        T.JSON: "text",
        T.GUID: "blob",
        T.AUTO_INCREMENT_TINYINT: "integer",
        T.AUTO_INCREMENT_SMALLINT: "integer",
        T.AUTO_INCREMENT_MEDIUMINT: "integer",
        T.AUTO_INCREMENT_INT: "integer",
        T.AUTO_INCREMENT_BIGINT: "integer",
        T.UNKNOWN: "text",
    }


class SqliteMetadataSource(MetadataSource):
    dialect = Dialect.SQLITE
    case_insensitive_names = True

    def _fetch_workarea(self) -> str | None:
        for row in self.db.query("PRAGMA database_list"):
            if as_text(row[1]) == "main":
                return as_text(row[2]) or "main"
        return "main"

    def _fetch_tables(self) -> list[str]:
        rows = self.db.query(
            "SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY rowid"
        )
        names = [as_text(row[0]) for row in rows]
        return [name for name in names if name and not name.startswith("sqlite_")]

    def _fetch_columns(self, table: str) -> list[ColumnDefinition]:
        quoted = self.mapper.quote_identifier(table)
        columns = []
        # cid, name, type, notnull, dflt_value, pk
        for _cid, name, declared, notnull, _default, _pk in self.db.query(
            f"PRAGMA table_info({quoted})"
        ):
            declared = as_text(declared) or ""
            native = affinity(declared)
            length = precision = scale = None
            match = _SIZE_RE.search(declared)
            if match:
                if native in ("numeric", "real"):
                    precision = int(match.group(1))
                    scale = int(match.group(2)) if match.group(2) else None
                else:
                    length = int(match.group(1))
            columns.append(
                self.column_definition(
                    name, native, not notnull, length, precision, scale
                )
            )
        return columns
