"""
core/compiler.py
----------------
Builds CREATE TABLE, SELECT and INSERT text from transformed columns.

All three functions are pure and keep the column order of the
transformed-column mapping.

Design Decisions:
    * Identifiers are written bare when they are plain, not reserved and
      unchanged by the engine's case folding; otherwise they are quoted
      with the dialect's quote characters so the stored name is exact.
    * INSERT statements use ``:name`` placeholders (adapted to the driver
      paramstyle by ``DatabaseManager``).  Column names that are not valid
      placeholder names get a positional ``c<n>`` parameter instead.
    * A dialect without a UTC re-zoning rule fails here, at compile time,
      rather than on the first bound row.
"""
from __future__ import annotations

import re
from typing import Mapping, Sequence

from core.canonical import CanonicalType
from core.errors import BridgeError, ConfigurationError
from core.reserved_words import is_reserved
from core.type_mapper import DialectTypeMapper
from dialects import get_mapper
from logger import DebugFlag, get_logger, tag
from models.columns import SelectSpec, TransformedColumnDefinition
from models.dialect import Dialect

log = get_logger(__name__)

_PLAIN_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Canonical types whose writes are re-zoned to UTC when a read expression exists.
UTC_REZONED_TYPES = frozenset({CanonicalType.DATETIME_TZ})


def identifier(name: str, mapper: DialectTypeMapper) -> str:
    """Render *name* for SQL text, quoting only when required."""
    if (
        _PLAIN_IDENTIFIER_RE.match(name)
        and not is_reserved(name, mapper.dialect)
        and mapper.fold_identifier(name) == name
    ):
        return name
    return mapper.quote_identifier(name)


def parameter_name(name: str, index: int) -> str:
    """Placeholder name for the column at position *index*."""
    return name if _PLAIN_IDENTIFIER_RE.match(name) else f"c{index}"


def parameter_names(columns: Mapping[str, TransformedColumnDefinition]) -> dict[str, str]:
    """Working name → placeholder name, for every column in order."""
    return {name: parameter_name(name, i) for i, name in enumerate(columns)}


def _mapper(operation: str, dialect: Dialect) -> DialectTypeMapper:
    try:
        return get_mapper(dialect)
    except ConfigurationError as exc:
        raise ConfigurationError(operation, cause=exc) from exc


# ---------------------------------------------------------------------------
# CREATE TABLE
# ---------------------------------------------------------------------------

def compile_create_table(
    table: str,
    columns: Mapping[str, TransformedColumnDefinition],
    target_dialect: Dialect,
    primary_key: Sequence[str] | None = None,
) -> str:
    """
    ``CREATE TABLE t (col type [NULL|NOT NULL], ...)``.

    Nullability is left out for dialects that do not take it inline.
    """
    mapper = _mapper("compile_create_table", target_dialect)
    definitions = []
    for name, column in columns.items():
        native = mapper.format_type(
            column.target_native_type,
            column.character_max_length,
            column.numeric_precision,
            column.numeric_scale,
            column.fixed_length_forced,
        )
        definition = f"{identifier(name, mapper)} {native}"
        if mapper.inline_nullability:
            definition += " NULL" if column.nullable else " NOT NULL"
        definitions.append(definition)
    if primary_key:
        keys = ", ".join(identifier(key, mapper) for key in primary_key)
        definitions.append(f"PRIMARY KEY ({keys})")

    sql = f"CREATE TABLE {identifier(table, mapper)} ({', '.join(definitions)})"
    log.debug("Create query: %s", sql, extra=tag(DebugFlag.QUERY_CREATE))
    return sql


# ---------------------------------------------------------------------------
# SELECT
# ---------------------------------------------------------------------------

def compile_select(
    table: str,
    columns: Mapping[str, TransformedColumnDefinition],
    source_dialect: Dialect,
) -> SelectSpec:
    """
    Source SELECT listing every column under its working name.

    A column with a UTC read expression is read through it; a renamed
    column reads the original name aliased to the working name.
    """
    mapper = _mapper("compile_select", source_dialect)
    expressions = []
    for name, column in columns.items():
        if column.to_utc_query:
            expressions.append(column.to_utc_query)
        elif column.is_renamed:
            expressions.append(
                f"{mapper.quote_identifier(column.source_name)} AS {mapper.quote_identifier(name)}"
            )
        else:
            expressions.append(identifier(name, mapper))

    text = f"SELECT {', '.join(expressions)} FROM {identifier(table, mapper)}"
    log.debug("Select query: %s", text, extra=tag(DebugFlag.QUERY_SELECT))
    return SelectSpec(text=text, bound_column_order=list(columns))


# ---------------------------------------------------------------------------
# INSERT
# ---------------------------------------------------------------------------

def compile_insert(
    table: str,
    columns: Mapping[str, TransformedColumnDefinition],
    target_dialect: Dialect,
) -> str:
    """
    ``INSERT INTO t (cols) VALUES (placeholders)``.

    Raises:
        UnsupportedDialectError: If a time-zone aware column needs a UTC
            re-zoning rule the target dialect does not have.
    """
    mapper = _mapper("compile_insert", target_dialect)
    names = []
    placeholders = []
    try:
        for name, param in parameter_names(columns).items():
            column = columns[name]
            placeholder = f":{param}"
            if column.canonical_type in UTC_REZONED_TYPES and column.to_utc_query:
                placeholder = mapper.utc_write_placeholder(placeholder)
            names.append(identifier(name, mapper))
            placeholders.append(placeholder)
    except BridgeError:
        raise
    except Exception as exc:
        raise BridgeError("compile_insert", cause=exc) from exc

    sql = (
        f"INSERT INTO {identifier(table, mapper)} ({', '.join(names)}) "
        f"VALUES ({', '.join(placeholders)})"
    )
    log.debug("Insert query: %s", sql, extra=tag(DebugFlag.QUERY_INSERT))
    return sql
