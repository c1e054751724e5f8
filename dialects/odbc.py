"""
dialects/odbc.py
----------------
Engine detection for generic ODBC connections.

An ODBC DSN can point at any engine.  The engine is identified by running
catalog probes that only one dialect answers; the first probe that
succeeds decides the dialect used for type mapping and catalog queries.
"""
from __future__ import annotations

from core.database import DatabaseError, DatabaseManager
from core.errors import ConfigurationError
from logger import get_logger
from models.dialect import Dialect

log = get_logger(__name__)

# Tried in order; the first statement that runs decides.
DETECTION_PROBES: tuple[tuple[Dialect, str], ...] = (
    (Dialect.MYSQL, "SHOW TABLES"),
    (Dialect.PGSQL, "SELECT tablename FROM pg_catalog.pg_tables"),
    (Dialect.MSSQL, "SELECT table_name FROM information_schema.tables"),
    (Dialect.SQLITE, "SELECT name FROM sqlite_master"),
    (Dialect.ORACLE, "SELECT table_name FROM user_tables"),
)


def detect_dialect(db: DatabaseManager) -> Dialect:
    """
    Identify the engine behind an ODBC connection.

    Raises:
        ConfigurationError: If no probe succeeds.
    """
    for dialect, probe in DETECTION_PROBES:
        try:
            db.query(probe)
        except DatabaseError as exc:
            log.debug("ODBC probe for %s failed: %s", dialect.value, exc)
            continue
        log.info("ODBC connection identified as %s.", dialect.value)
        return dialect
    raise ConfigurationError(
        "detect_dialect", "could not identify the engine behind the ODBC connection"
    )
