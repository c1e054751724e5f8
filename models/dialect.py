"""
models/dialect.py
-----------------
Supported SQL dialect identifiers.
"""
from __future__ import annotations

from enum import Enum


class Dialect(str, Enum):
    MYSQL = "mysql"
    MSSQL = "mssql"
    PGSQL = "pgsql"
    ORACLE = "oracle"
    SQLITE = "sqlite"
    ODBC = "odbc"   # generic ODBC connection; the engine behind it is detected

    @classmethod
    def parse(cls, value: str) -> "Dialect":
        text = value.strip().lower()
        aliases = {
            "postgres": cls.PGSQL,
            "postgresql": cls.PGSQL,
            "sqlsrv": cls.MSSQL,
            "sqlserver": cls.MSSQL,
            "oci": cls.ORACLE,
            "sqlite3": cls.SQLITE,
            "mariadb": cls.MYSQL,
        }
        if text in aliases:
            return aliases[text]
        for member in cls:
            if member.value == text:
                return member
        raise ValueError(f"Unknown SQL dialect: {value!r}")
