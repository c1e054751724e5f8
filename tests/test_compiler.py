"""
tests/test_compiler.py
----------------------
Unit tests for core/compiler.py.
Run with: python -m pytest tests/
"""
from __future__ import annotations

import pytest

from core.compiler import (
    compile_create_table,
    compile_insert,
    compile_select,
    identifier,
    parameter_names,
)
from core.errors import UnsupportedDialectError
from core.transformer import transform
from dialects import get_mapper
from dialects.mssql import MsSqlTypeMapper
from dialects.oracle import OracleTypeMapper
from models.columns import ColumnDefinition
from models.dialect import Dialect


@pytest.fixture
def mssql_columns() -> list[ColumnDefinition]:
    return [
        ColumnDefinition("id", "int", nullable=False),
        ColumnDefinition("name", "varchar", character_max_length=50),
        ColumnDefinition("SELECT", "varchar", character_max_length=20),
    ]


# ---------------------------------------------------------------------------
# CREATE TABLE
# ---------------------------------------------------------------------------

class TestCreateTable:
    def test_mysql_create(self, mssql_columns) -> None:
        columns = transform(mssql_columns, Dialect.MSSQL, Dialect.MYSQL)
        sql = compile_create_table("customers", columns, Dialect.MYSQL)
        assert sql == (
            "CREATE TABLE customers (id int NOT NULL, name varchar(50) NULL, "
            "SELECT_ varchar(20) NULL)"
        )

    def test_sqlite_omits_nullability(self, mssql_columns) -> None:
        columns = transform(mssql_columns, Dialect.MSSQL, Dialect.SQLITE)
        sql = compile_create_table("customers", columns, Dialect.SQLITE)
        assert sql == "CREATE TABLE customers (id integer, name text, SELECT_ text)"

    def test_fixed_length_is_emitted(self) -> None:
        columns = transform([ColumnDefinition("id", "uniqueidentifier", nullable=False)],
                            Dialect.MSSQL, Dialect.MYSQL)
        assert compile_create_table("t", columns, Dialect.MYSQL) == (
            "CREATE TABLE t (id binary(16) NOT NULL)"
        )

    def test_primary_key_clause(self) -> None:
        columns = transform([ColumnDefinition("a", "int"), ColumnDefinition("b", "int")],
                            Dialect.MYSQL, Dialect.PGSQL)
        sql = compile_create_table("t", columns, Dialect.PGSQL, primary_key=("a", "b"))
        assert sql.endswith("PRIMARY KEY (a, b))")

    def test_reserved_table_name_is_quoted(self) -> None:
        columns = transform([ColumnDefinition("a", "int")], Dialect.MYSQL, Dialect.MSSQL)
        assert compile_create_table("order", columns, Dialect.MSSQL).startswith(
            "CREATE TABLE [order] ("
        )


# ---------------------------------------------------------------------------
# SELECT
# ---------------------------------------------------------------------------

class TestSelect:
    def test_renamed_column_reads_original(self, mssql_columns) -> None:
        columns = transform(mssql_columns, Dialect.MSSQL, Dialect.MYSQL)
        spec = compile_select("customers", columns, Dialect.MSSQL)
        assert spec.text == "SELECT id, name, [SELECT] AS [SELECT_] FROM customers"
        assert spec.bound_column_order == ["id", "name", "SELECT_"]

    def test_utc_expression_is_used(self) -> None:
        expr = MsSqlTypeMapper().utc_read_expression("seen", "datetimeoffset")
        columns = transform([ColumnDefinition("seen", "datetimeoffset", to_utc_query=expr)],
                            Dialect.MSSQL, Dialect.PGSQL)
        spec = compile_select("events", columns, Dialect.MSSQL)
        assert spec.text == f"SELECT {expr} FROM events"

    def test_mixed_case_pgsql_source_is_quoted(self) -> None:
        columns = transform([ColumnDefinition("CustomerID", "integer"), ColumnDefinition("name", "text")],
                            Dialect.PGSQL, Dialect.MYSQL)
        spec = compile_select("Customers", columns, Dialect.PGSQL)
        assert spec.text == 'SELECT "CustomerID", name FROM "Customers"'

    def test_uppercase_oracle_source_is_bare(self) -> None:
        columns = transform([ColumnDefinition("ID", "NUMBER")], Dialect.ORACLE, Dialect.MYSQL)
        assert compile_select("EVENTS", columns, Dialect.ORACLE).text == "SELECT ID FROM EVENTS"


# ---------------------------------------------------------------------------
# INSERT
# ---------------------------------------------------------------------------

class TestInsert:
    def test_named_placeholders(self, mssql_columns) -> None:
        columns = transform(mssql_columns, Dialect.MSSQL, Dialect.MYSQL)
        assert compile_insert("customers", columns, Dialect.MYSQL) == (
            "INSERT INTO customers (id, name, SELECT_) VALUES (:id, :name, :SELECT_)"
        )

    def test_datetimeoffset_to_pgsql(self) -> None:
        expr = MsSqlTypeMapper().utc_read_expression("seen", "datetimeoffset")
        columns = transform([ColumnDefinition("seen", "datetimeoffset", to_utc_query=expr)],
                            Dialect.MSSQL, Dialect.PGSQL)
        assert compile_insert("events", columns, Dialect.PGSQL) == (
            "INSERT INTO events (seen) VALUES (TIMESTAMP :seen AT TIME ZONE 'UTC')"
        )

    def test_pgsql_to_mssql(self) -> None:
        columns = transform(
            [ColumnDefinition("seen", "timestamp with time zone", to_utc_query="x")],
            Dialect.PGSQL, Dialect.MSSQL,
        )
        assert "CAST(:seen AS DATETIMEOFFSET) AT TIME ZONE 'UTC'" in compile_insert(
            "events", columns, Dialect.MSSQL
        )

    def test_oracle_to_mysql(self) -> None:
        expr = OracleTypeMapper().utc_read_expression("SEEN", "TIMESTAMP WITH TIME ZONE")
        columns = transform(
            [ColumnDefinition("SEEN", "TIMESTAMP WITH TIME ZONE", to_utc_query=expr)],
            Dialect.ORACLE, Dialect.MYSQL,
        )
        assert "CONVERT_TZ(:SEEN, '+00:00', @@global.time_zone)" in compile_insert(
            "EVENTS", columns, Dialect.MYSQL
        )

    def test_timezone_column_without_expression_is_plain(self) -> None:
        columns = transform([ColumnDefinition("seen", "datetimeoffset")],
                            Dialect.MSSQL, Dialect.SQLITE)
        assert compile_insert("events", columns, Dialect.SQLITE) == (
            "INSERT INTO events (seen) VALUES (:seen)"
        )

    def test_sqlite_rejects_utc_rezoning(self) -> None:
        expr = MsSqlTypeMapper().utc_read_expression("seen", "datetimeoffset")
        columns = transform([ColumnDefinition("seen", "datetimeoffset", to_utc_query=expr)],
                            Dialect.MSSQL, Dialect.SQLITE)
        with pytest.raises(UnsupportedDialectError):
            compile_insert("events", columns, Dialect.SQLITE)

    def test_non_identifier_column_gets_positional_parameter(self) -> None:
        columns = transform([ColumnDefinition("a", "int"), ColumnDefinition("first name", "varchar")],
                            Dialect.MYSQL, Dialect.PGSQL)
        assert parameter_names(columns) == {"a": "a", "first name": "c1"}
        assert compile_insert("t", columns, Dialect.PGSQL) == (
            'INSERT INTO t (a, "first name") VALUES (:a, :c1)'
        )


class TestIdentifier:
    def test_plain_name_is_bare(self) -> None:
        assert identifier("customers", get_mapper(Dialect.MYSQL)) == "customers"

    def test_space_is_quoted(self) -> None:
        assert identifier("order lines", get_mapper(Dialect.MYSQL)) == "`order lines`"

    def test_embedded_quote_is_doubled(self) -> None:
        assert identifier('a"b', get_mapper(Dialect.PGSQL)) == '"a""b"'

    def test_pgsql_folds_to_lower_case(self) -> None:
        mapper = get_mapper(Dialect.PGSQL)
        assert identifier("customers", mapper) == "customers"
        assert identifier("Customers", mapper) == '"Customers"'

    def test_oracle_folds_to_upper_case(self) -> None:
        mapper = get_mapper(Dialect.ORACLE)
        assert identifier("CUSTOMERS", mapper) == "CUSTOMERS"
        assert identifier("dbbridge_plan", mapper) == '"dbbridge_plan"'

    def test_create_and_insert_agree_on_pgsql(self) -> None:
        columns = transform([ColumnDefinition("Id", "int")], Dialect.MSSQL, Dialect.PGSQL)
        assert compile_create_table("Customers", columns, Dialect.PGSQL).startswith(
            'CREATE TABLE "Customers" ("Id" '
        )
        assert compile_insert("Customers", columns, Dialect.PGSQL) == (
            'INSERT INTO "Customers" ("Id") VALUES (:Id)'
        )
