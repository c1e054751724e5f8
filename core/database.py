"""
core/database.py
----------------
Database connection management and query execution for every dialect.

Design Decisions:
    * ``DatabaseManager`` is a context manager so callers can use it with
      ``with`` statements and be guaranteed the connection is closed on exit.
    * SQL inside the project is written with ``:name`` placeholders only.
      The manager rewrites them into the driver's DB-API ``paramstyle``
      (pyformat for mysql-connector/psycopg2, qmark for pyodbc, named for
      oracledb/sqlite3) so no caller ever deals with driver differences.
    * Connections run in autocommit mode: every statement is durable as
      soon as it executes, and a failed run leaves already-written rows in
      place.
    * Retry logic is implemented for transient connection errors using
      linear back-off (configurable via ``max_retries`` / ``retry_delay``).
    * Drivers are imported inside their connect function, so only the
      driver of a dialect actually used has to be importable.
"""
from __future__ import annotations

import re
import time
from typing import Any, Callable, Iterator

from config import ConnectionConfig
from core.errors import BridgeError
from logger import DebugFlag, get_logger, tag
from models.dialect import Dialect

log = get_logger(__name__)

_PLACEHOLDER_RE = re.compile(r"(?<![:\w]):([A-Za-z_]\w*)")

_DEFAULT_PORTS = {
    Dialect.MYSQL: 3306,
    Dialect.PGSQL: 5432,
    Dialect.MSSQL: 1433,
    Dialect.ORACLE: 1521,
}


class DatabaseError(Exception):
    """Raised for database-level failures reported by this module."""


class ConnectionLostError(DatabaseError):
    """Raised when the connection is detected as lost or never opened."""


# ---------------------------------------------------------------------------
# Placeholder adaptation
# ---------------------------------------------------------------------------

def adapt_placeholders(
    sql: str, names: set[str] | frozenset[str], paramstyle: str
) -> tuple[str, list[str]]:
    """
    Rewrite ``:name`` placeholders into a DB-API paramstyle.

    Only names in *names* are treated as placeholders, so literals such as
    ``'+00:00'`` or casts such as ``::text`` are never touched.

    Returns:
        ``(sql, order)`` where *order* lists parameter names in the order
        positional styles expect them.

    Example::

        adapt_placeholders("INSERT INTO t (a) VALUES (:a)", {"a"}, "qmark")
        # ("INSERT INTO t (a) VALUES (?)", ["a"])
    """
    order: list[str] = []
    if paramstyle in ("pyformat", "format"):
        # Literal percent signs must be doubled once parameters are passed.
        sql = sql.replace("%", "%%")

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in names:
            return match.group(0)
        order.append(name)
        if paramstyle == "named":
            return f":{name}"
        if paramstyle == "pyformat":
            return f"%({name})s"
        if paramstyle == "qmark":
            return "?"
        if paramstyle == "format":
            return "%s"
        if paramstyle == "numeric":
            return f":{len(order)}"
        raise DatabaseError(f"Unsupported paramstyle: {paramstyle}")

    return _PLACEHOLDER_RE.sub(_replace, sql), order


# ---------------------------------------------------------------------------
# Per-dialect connect functions: (config) -> (connection, paramstyle, Error)
# ---------------------------------------------------------------------------

def _connect_mysql(cfg: ConnectionConfig) -> tuple[Any, str, type[BaseException]]:
    import mysql.connector

    kwargs: dict[str, Any] = dict(
        host=cfg.host,
        port=cfg.port or _DEFAULT_PORTS[Dialect.MYSQL],
        user=cfg.user,
        password=cfg.password,
        charset="utf8mb4",
        connection_timeout=cfg.connect_timeout,
        autocommit=True,
    )
    if cfg.database:
        kwargs["database"] = cfg.database
    conn = mysql.connector.connect(**kwargs)
    return conn, "pyformat", mysql.connector.Error


def _connect_pgsql(cfg: ConnectionConfig) -> tuple[Any, str, type[BaseException]]:
    import psycopg2

    conn = psycopg2.connect(
        host=cfg.host,
        port=cfg.port or _DEFAULT_PORTS[Dialect.PGSQL],
        dbname=cfg.database or None,
        user=cfg.user,
        password=cfg.password,
        connect_timeout=cfg.connect_timeout,
    )
    conn.autocommit = True
    return conn, "pyformat", psycopg2.Error


def _odbc_connection_string(cfg: ConnectionConfig) -> str:
    if cfg.dsn:
        parts = [f"DSN={cfg.dsn}"]
    else:
        port = cfg.port or _DEFAULT_PORTS[Dialect.MSSQL]
        parts = [
            "DRIVER={ODBC Driver 18 for SQL Server}",
            f"SERVER={cfg.host},{port}",
            "TrustServerCertificate=yes",
        ]
    if cfg.database:
        parts.append(f"DATABASE={cfg.database}")
    if cfg.user:
        parts.append(f"UID={cfg.user}")
    if cfg.password:
        parts.append(f"PWD={cfg.password}")
    return ";".join(parts)


def _connect_odbc(cfg: ConnectionConfig) -> tuple[Any, str, type[BaseException]]:
    import pyodbc

    conn = pyodbc.connect(
        _odbc_connection_string(cfg),
        autocommit=True,
        timeout=cfg.connect_timeout,
    )
    return conn, "qmark", pyodbc.Error


def _connect_oracle(cfg: ConnectionConfig) -> tuple[Any, str, type[BaseException]]:
    import oracledb

    dsn = cfg.dsn or (
        f"{cfg.host}:{cfg.port or _DEFAULT_PORTS[Dialect.ORACLE]}/{cfg.database}"
    )
    conn = oracledb.connect(user=cfg.user, password=cfg.password, dsn=dsn)
    conn.autocommit = True
    # Row values travel as ISO-like strings; make the session parse them.
    cursor = conn.cursor()
    cursor.execute(
        "ALTER SESSION SET NLS_DATE_FORMAT = 'YYYY-MM-DD HH24:MI:SS' "
        "NLS_TIMESTAMP_FORMAT = 'YYYY-MM-DD HH24:MI:SS' "
        "NLS_TIMESTAMP_TZ_FORMAT = 'YYYY-MM-DD HH24:MI:SS TZH:TZM'"
    )
    cursor.close()
    return conn, "named", oracledb.Error


def _connect_sqlite(cfg: ConnectionConfig) -> tuple[Any, str, type[BaseException]]:
    import sqlite3

    conn = sqlite3.connect(
        cfg.path or ":memory:",
        timeout=cfg.connect_timeout,
        isolation_level=None,
    )
    return conn, "named", sqlite3.Error


_CONNECTORS: dict[Dialect, Callable[[ConnectionConfig], tuple[Any, str, type[BaseException]]]] = {
    Dialect.MYSQL: _connect_mysql,
    Dialect.PGSQL: _connect_pgsql,
    Dialect.MSSQL: _connect_odbc,
    Dialect.ODBC: _connect_odbc,
    Dialect.ORACLE: _connect_oracle,
    Dialect.SQLITE: _connect_sqlite,
}


class DatabaseManager:
    """
    DB-API connection wrapper shared by every dialect.

    Provides:
        * Lazy connect with retry back-off.
        * Context-manager support (``with DatabaseManager(cfg) as db``).
        * ``:name`` placeholder adaptation for any driver paramstyle.
        * A streaming reader that keeps its own cursor open while other
          statements run on the same manager.

    Example::

        cfg = ConnectionConfig.from_env_file("db_source.env")
        with DatabaseManager.from_config(cfg) as db:
            rows = db.query("SELECT name FROM t WHERE id = :id", {"id": 1})
    """

    def __init__(
        self,
        config: ConnectionConfig,
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        self._config = config
        self._max_retries = max_retries
        self._retry_delay = retry_delay

        self._conn: Any = None
        self._cursor: Any = None
        self._paramstyle = "named"
        self._driver_error: type[BaseException] = Exception
        self._adapted: dict[tuple[str, frozenset[str]], tuple[str, list[str]]] = {}
        self.dialect: Dialect = config.dialect

    # ------------------------------------------------------------------
    # Factory helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> "DatabaseManager":
        """Convenience factory; the connection is opened on ``connect()``."""
        return cls(config)

    @classmethod
    def from_connection(
        cls,
        conn: Any,
        dialect: Dialect,
        paramstyle: str = "named",
        driver_error: type[BaseException] = Exception,
    ) -> "DatabaseManager":
        """Wrap an already open DB-API connection (tests, embedding)."""
        manager = cls(ConnectionConfig(dialect=dialect))
        manager._conn = conn
        manager._cursor = conn.cursor()
        manager._paramstyle = paramstyle
        manager._driver_error = driver_error
        return manager

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> "DatabaseManager":
        if not self.is_connected:
            self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is not None:
            log.warning("Unhandled exception in DatabaseManager context: %s", exc_val)
        self.close()
        return False  # Never suppress exceptions

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    @property
    def paramstyle(self) -> str:
        return self._paramstyle

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    def connect(self) -> None:
        """
        Open the connection with back-off retries.

        Raises:
            DatabaseError: If connection fails after all retries.
        """
        connector = _CONNECTORS[self._config.dialect]
        last_error: BaseException | None = None
        for attempt in range(1, self._max_retries + 1):
            try:
                log.info(
                    "Connecting to %s (attempt %d/%d)",
                    self._config.describe(), attempt, self._max_retries,
                )
                self._conn, self._paramstyle, self._driver_error = connector(self._config)
                self._cursor = self._conn.cursor()
                log.info("Connected to %s successfully.", self._config.dialect.value)
                return
            except (ImportError, BridgeError):
                raise
            except Exception as exc:
                last_error = exc
                log.warning("Connection attempt %d failed: %s", attempt, exc)
                if attempt < self._max_retries:
                    time.sleep(self._retry_delay * attempt)
        raise DatabaseError(
            f"Could not connect to {self._config.describe()} "
            f"after {self._max_retries} attempts."
        ) from last_error

    def close(self) -> None:
        """Close cursor and connection, logging any cleanup errors."""
        for resource in (self._cursor, self._conn):
            if resource is None:
                continue
            try:
                resource.close()
            except Exception as exc:
                log.debug("Ignoring error while closing: %s", exc)
        if self._conn is not None:
            log.info("Database connection closed.")
        self._cursor = None
        self._conn = None

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    def _ensure_connected(self) -> None:
        if not self.is_connected:
            raise ConnectionLostError(
                "Database connection is not open. Call connect() first."
            )

    # ------------------------------------------------------------------
    # Public query helpers
    # ------------------------------------------------------------------

    def _bind(self, sql: str, params: dict[str, Any] | None) -> tuple[str, Any]:
        if params is None:
            return sql, None
        key = (sql, frozenset(params))
        adapted = self._adapted.get(key)
        if adapted is None:
            adapted = adapt_placeholders(sql, key[1], self._paramstyle)
            self._adapted[key] = adapted
        text, order = adapted
        if self._paramstyle in ("named", "pyformat"):
            return text, {name: params[name] for name in set(order)}
        return text, [params[name] for name in order]

    def _run(self, cursor: Any, sql: str, params: dict[str, Any] | None) -> Any:
        text, bound = self._bind(sql, params)
        try:
            if bound is None:
                cursor.execute(text)
            else:
                cursor.execute(text, bound)
            return cursor
        except self._driver_error as exc:
            log.error("SQL execution error: %s | SQL: %.500s", exc, sql)
            raise DatabaseError(str(exc)) from exc

    def execute(self, sql: str, params: dict[str, Any] | None = None) -> Any:
        """
        Execute a SQL statement and return the cursor.

        Args:
            sql:    SQL statement. Use ``:name`` placeholders for values.
            params: Mapping of placeholder name → value (optional).

        Raises:
            ConnectionLostError: If not connected.
            DatabaseError: On driver execution errors.
        """
        self._ensure_connected()
        log.debug("Execute: %.500s", sql, extra=tag(DebugFlag.EXECUTE))
        return self._run(self._cursor, sql, params)

    def fetchall(self) -> list[tuple]:
        """Fetch all rows from the last execute."""
        assert self._cursor is not None
        return [tuple(row) for row in self._cursor.fetchall() or []]

    def fetchone(self) -> tuple | None:
        """Fetch one row from the last execute."""
        assert self._cursor is not None
        row = self._cursor.fetchone()
        return tuple(row) if row is not None else None

    def query(self, sql: str, params: dict[str, Any] | None = None) -> list[tuple]:
        """Execute and fetch every row."""
        self.execute(sql, params)
        try:
            return self.fetchall()
        except self._driver_error as exc:
            raise DatabaseError(str(exc)) from exc

    def scalar(self, sql: str, params: dict[str, Any] | None = None) -> Any:
        """Execute and return the first column of the first row (or None)."""
        self.execute(sql, params)
        try:
            row = self.fetchone()
        except self._driver_error as exc:
            raise DatabaseError(str(exc)) from exc
        return row[0] if row else None

    def stream(
        self, sql: str, params: dict[str, Any] | None = None
    ) -> Iterator[tuple]:
        """
        Yield result rows one at a time from a dedicated cursor.

        The cursor stays open until the generator is exhausted or closed.
        """
        self._ensure_connected()
        cursor = self._conn.cursor()
        try:
            self._run(cursor, sql, params)
            while True:
                try:
                    row = cursor.fetchone()
                except self._driver_error as exc:
                    raise DatabaseError(str(exc)) from exc
                if row is None:
                    break
                log.debug("Fetched row", extra=tag(DebugFlag.FETCH))
                yield tuple(row)
        finally:
            try:
                cursor.close()
            except Exception as exc:
                log.debug("Ignoring error while closing cursor: %s", exc)
