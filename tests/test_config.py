"""
tests/test_config.py
--------------------
Unit tests for config.py and the enum parsers in models/.
Run with: python -m pytest tests/
"""
from __future__ import annotations

from pathlib import Path

import pytest

from config import ConnectionConfig, MigrationConfig
from core.errors import ConfigurationError
from models.dialect import Dialect
from models.overwrite import OverwritePolicy


# ---------------------------------------------------------------------------
# ConnectionConfig
# ---------------------------------------------------------------------------

class TestConnectionConfig:
    def test_from_mapping(self) -> None:
        cfg = ConnectionConfig.from_mapping({
            "DB_DIALECT": "mysql",
            "DB_HOST": "db.internal",
            "DB_PORT": "3307",
            "DB_NAME": "shop",
            "DB_USER": "app",
            "DB_PASS": "secret",
        })
        assert cfg.dialect is Dialect.MYSQL
        assert (cfg.host, cfg.port, cfg.database) == ("db.internal", 3307, "shop")
        assert cfg.connect_timeout == 10

    def test_defaults(self) -> None:
        cfg = ConnectionConfig.from_mapping({"DB_DIALECT": "sqlite", "DB_PATH": "/tmp/x.db"})
        assert cfg.host == "localhost"
        assert cfg.port is None
        assert cfg.path == "/tmp/x.db"

    def test_dialect_aliases(self) -> None:
        assert ConnectionConfig.from_mapping({"DB_DIALECT": "PostgreSQL"}).dialect is Dialect.PGSQL
        assert ConnectionConfig.from_mapping({"DB_DIALECT": "sqlsrv"}).dialect is Dialect.MSSQL

    def test_missing_dialect(self) -> None:
        with pytest.raises(ConfigurationError):
            ConnectionConfig.from_mapping({"DB_HOST": "x"})

    def test_unknown_dialect(self) -> None:
        with pytest.raises(ConfigurationError):
            ConnectionConfig.from_mapping({"DB_DIALECT": "dbase"})

    def test_bad_port(self) -> None:
        with pytest.raises(ConfigurationError):
            ConnectionConfig.from_mapping({"DB_DIALECT": "mysql", "DB_PORT": "abc"})

    def test_from_env_file(self, tmp_path: Path) -> None:
        env = tmp_path / "db_source.env"
        env.write_text(
            "# source database\n"
            "DB_DIALECT=mssql\n"
            'DB_DSN="Driver={ODBC Driver 18 for SQL Server};Server=x"\n'
            "DB_USER=sa\n"
        )
        cfg = ConnectionConfig.from_env_file(env)
        assert cfg.dialect is Dialect.MSSQL
        assert cfg.dsn == "Driver={ODBC Driver 18 for SQL Server};Server=x"
        assert cfg.user == "sa"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            ConnectionConfig.from_env_file(tmp_path / "nope.env")

    def test_describe_hides_password(self) -> None:
        cfg = ConnectionConfig(Dialect.PGSQL, host="h", port=5432, database="d",
                               user="u", password="secret")
        assert cfg.describe() == "pgsql://u@h:5432/d"
        assert "secret" not in cfg.describe()

    def test_describe_sqlite(self) -> None:
        assert ConnectionConfig(Dialect.SQLITE).describe() == "sqlite::memory:"


# ---------------------------------------------------------------------------
# MigrationConfig
# ---------------------------------------------------------------------------

class TestMigrationConfig:
    def test_skip_prefix(self) -> None:
        cfg = MigrationConfig(skip_table_prefix="sys")
        assert cfg.skip_table("sysdiagrams")
        assert not cfg.skip_table("customers")

    def test_empty_prefix_skips_nothing(self) -> None:
        assert not MigrationConfig(skip_table_prefix="").skip_table("sysdiagrams")

    def test_env_policy(self, monkeypatch) -> None:
        monkeypatch.setenv("OVERWRITE_POLICY", "Overwrite-All")
        assert MigrationConfig().overwrite_policy is OverwritePolicy.OVERWRITE_ALL

    def test_env_policy_invalid(self, monkeypatch) -> None:
        monkeypatch.setenv("OVERWRITE_POLICY", "sometimes")
        with pytest.raises(ConfigurationError):
            MigrationConfig()

    def test_env_mask_accepts_hex(self, monkeypatch) -> None:
        monkeypatch.setenv("DEBUG_SHOW_FLAGS", "0x4000")
        assert MigrationConfig().show_mask == 0x4000

    def test_env_mask_invalid(self, monkeypatch) -> None:
        monkeypatch.setenv("DEBUG_LOG_FLAGS", "lots")
        with pytest.raises(ConfigurationError):
            MigrationConfig()


class TestOverwritePolicyParse:
    @pytest.mark.parametrize("text, expected", [
        ("ask", OverwritePolicy.ASK),
        ("NEVER", OverwritePolicy.NEVER),
        ("overwrite_empty", OverwritePolicy.OVERWRITE_EMPTY),
        (" Overwrite-All ", OverwritePolicy.OVERWRITE_ALL),
    ])
    def test_parse(self, text: str, expected: OverwritePolicy) -> None:
        assert OverwritePolicy.parse(text) is expected

    def test_unknown(self) -> None:
        with pytest.raises(ValueError):
            OverwritePolicy.parse("maybe")
