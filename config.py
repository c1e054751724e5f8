"""
config.py
---------
Centralised configuration management for db-bridge.

Migration settings come from environment variables (with .env support via
python-dotenv).  Connection credentials come from two small key=value
files, one for the source and one for the target, so that the same
process environment can drive any pair of databases.

Design Decision:
    Frozen dataclasses keep configuration immutable for the lifetime of a
    run.  The orchestrator receives its ``MigrationConfig`` explicitly; the
    module-level ``CONFIG`` only seeds logging defaults and the CLI.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import dotenv_values, load_dotenv

from core.errors import ConfigurationError
from models.dialect import Dialect
from models.overwrite import OverwritePolicy

_env_path = Path(__file__).parent / ".env"
if _env_path.exists():
    load_dotenv(dotenv_path=_env_path)

# Default verbosity masks; bit values are defined by ``logger.DebugFlag``.
DEFAULT_LOG_MASK = 0xFFFF      # everything
DEFAULT_SHOW_MASK = 0x4000     # row progress only


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw.strip(), 0)
    except ValueError as exc:
        raise ConfigurationError(
            "load_config", f"{name} must be an integer, got {raw!r}", exc
        ) from exc


def _env_policy(name: str, default: str) -> OverwritePolicy:
    raw = os.getenv(name, default)
    try:
        return OverwritePolicy.parse(raw)
    except ValueError as exc:
        raise ConfigurationError("load_config", str(exc), exc) from exc


def parse_dialect(value: str) -> Dialect:
    """Dialect lookup that reports failures as configuration errors."""
    try:
        return Dialect.parse(value)
    except ValueError as exc:
        raise ConfigurationError("parse_dialect", str(exc), exc) from exc


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Settings for one database connection.

    Only the fields relevant to the dialect are used: SQLite needs ``path``,
    ODBC needs ``dsn``, Oracle accepts either ``dsn`` or host/port/database.
    """
    dialect: Dialect
    host: str = "localhost"
    port: int | None = None
    database: str = ""
    user: str = ""
    password: str = ""
    dsn: str = ""
    path: str = ""
    connect_timeout: int = 10

    @classmethod
    def from_mapping(cls, values: dict[str, str | None]) -> "ConnectionConfig":
        """Build from ``DB_*`` keys (as found in a credentials file)."""
        dialect = values.get("DB_DIALECT")
        if not dialect:
            raise ConfigurationError("load_connection", "DB_DIALECT is required")
        port = values.get("DB_PORT")
        timeout = values.get("DB_CONNECT_TIMEOUT")
        try:
            port_number = int(port) if port else None
            timeout_seconds = int(timeout) if timeout else 10
        except ValueError as exc:
            raise ConfigurationError(
                "load_connection", "DB_PORT and DB_CONNECT_TIMEOUT must be integers", exc
            ) from exc
        return cls(
            dialect=parse_dialect(dialect),
            host=values.get("DB_HOST") or "localhost",
            port=port_number,
            database=values.get("DB_NAME") or "",
            user=values.get("DB_USER") or "",
            password=values.get("DB_PASS") or "",
            dsn=values.get("DB_DSN") or "",
            path=values.get("DB_PATH") or "",
            connect_timeout=timeout_seconds,
        )

    @classmethod
    def from_env_file(cls, path: str | Path) -> "ConnectionConfig":
        """
        Load a credentials file such as ``db_source.env``.

        Lines are ``KEY=value``; ``#`` starts a comment and matching quotes
        around a value are stripped.

        Raises:
            ConfigurationError: If the file is missing or incomplete.
        """
        env_file = Path(path)
        if not env_file.is_file():
            raise ConfigurationError("load_connection", f"File not found: {env_file}")
        return cls.from_mapping(dict(dotenv_values(env_file)))

    def describe(self) -> str:
        """Connection summary safe for logs (no password)."""
        if self.dialect is Dialect.SQLITE:
            return f"sqlite:{self.path or ':memory:'}"
        if self.dsn:
            return f"{self.dialect.value}:dsn={self.dsn}"
        port = f":{self.port}" if self.port else ""
        return f"{self.dialect.value}://{self.user}@{self.host}{port}/{self.database}"


@dataclass(frozen=True)
class MigrationConfig:
    """Migration engine settings."""
    overwrite_policy: OverwritePolicy = field(
        default_factory=lambda: _env_policy("OVERWRITE_POLICY", "ask")
    )
    log_mask: int = field(
        default_factory=lambda: _env_int("DEBUG_LOG_FLAGS", DEFAULT_LOG_MASK)
    )
    show_mask: int = field(
        default_factory=lambda: _env_int("DEBUG_SHOW_FLAGS", DEFAULT_SHOW_MASK)
    )
    log_level: str = field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "DEBUG").upper()
    )
    log_file: str | None = field(
        default_factory=lambda: os.getenv("LOG_FILE") or None  # None → console only
    )
    skip_table_prefix: str = field(
        default_factory=lambda: os.getenv("SKIP_TABLE_PREFIX", "sys")
    )
    plan_table: str = field(
        default_factory=lambda: os.getenv("PLAN_TABLE", "dbbridge_plan")
    )
    target_workarea: str | None = field(
        default_factory=lambda: os.getenv("TARGET_WORKAREA") or None
    )
    progress_every: int = field(
        default_factory=lambda: _env_int("PROGRESS_EVERY", 1000)
    )

    def skip_table(self, name: str) -> bool:
        """True for tables that must not be migrated (system tables)."""
        return bool(self.skip_table_prefix) and name.startswith(self.skip_table_prefix)


@dataclass(frozen=True)
class AppConfig:
    """Root application configuration."""
    migration: MigrationConfig = field(default_factory=MigrationConfig)
    app_name: str = "db-bridge"
    app_version: str = "0.8.0"


def load_config() -> AppConfig:
    """
    Build and return the application configuration.

    Raises:
        ConfigurationError: If an environment variable holds an invalid value.

    Example::

        cfg = load_config()
        print(cfg.migration.overwrite_policy)   # OverwritePolicy.ASK
    """
    return AppConfig()


# Module-level default used by the logger and the CLI
CONFIG: AppConfig = load_config()


def get_log_level() -> int:
    """Convert string log level from config to logging module constant."""
    level = getattr(logging, CONFIG.migration.log_level, None)
    if not isinstance(level, int):
        return logging.INFO
    return level
