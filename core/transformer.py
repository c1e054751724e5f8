"""
core/transformer.py
-------------------
Turns source column metadata into target-ready column definitions.

Per column:
    1. Rename on a collision with a target-dialect reserved word
       (append ``RENAME_SUFFIX``, keep the original as ``source_alias_name``).
    2. native (source) → canonical → native (target).
    3. A ``(n)`` suffix on the target native type forces the column length.
    4. Derive the default driver binding kind from the canonical type.

Design Decisions:
    * Both mappers are resolved before any column is touched, so an
      unsupported dialect pair fails before doing any work.
    * ``original_native_type`` is always the source spelling, never the
      target one; the importer relies on it to recognise GUID columns.
    * The UTC read expression is the one the *source* catalog attached:
      it is evaluated by the source engine in the SELECT.  After a rename
      it is rebuilt so the expression still reads the original column and
      aliases it to the working name.
"""
from __future__ import annotations

from typing import Iterable

from core.canonical import param_kind_for
from core.errors import BridgeError, ConfigurationError
from core.reserved_words import is_reserved
from core.type_mapper import split_fixed_length
from dialects import get_mapper
from logger import DebugFlag, get_logger, tag
from models.columns import ColumnDefinition, TransformedColumnDefinition
from models.dialect import Dialect

log = get_logger(__name__)

RENAME_SUFFIX = "_"


def working_name(name: str, target_dialect: Dialect) -> tuple[str, str | None]:
    """
    Return ``(working_name, source_alias_name)`` for a column name.

    Deterministic: the same name and dialect always give the same result.
    """
    if is_reserved(name, target_dialect):
        return name + RENAME_SUFFIX, name
    return name, None


def transform(
    columns: Iterable[ColumnDefinition],
    source_dialect: Dialect,
    target_dialect: Dialect,
) -> dict[str, TransformedColumnDefinition]:
    """
    Transform source column definitions for *target_dialect*.

    Returns:
        Mapping of working name → :class:`TransformedColumnDefinition`,
        in source column order.

    Raises:
        ConfigurationError: If either dialect has no registered mapper.
    """
    try:
        source_mapper = get_mapper(source_dialect)
        target_mapper = get_mapper(target_dialect)
    except ConfigurationError as exc:
        raise ConfigurationError(
            "transform",
            f"unsupported dialect pair {source_dialect.value} -> {target_dialect.value}",
            exc,
        ) from exc

    result: dict[str, TransformedColumnDefinition] = {}
    try:
        for column in columns:
            name, alias = working_name(column.name, target_dialect)
            if alias is not None:
                log.debug(
                    "Reserved word '%s' renamed to '%s'.", alias, name,
                    extra=tag(DebugFlag.TRANSFORM_RESERVED),
                )

            canonical = source_mapper.native_to_canonical(column.native_type)
            target_native = target_mapper.canonical_to_native(canonical)

            length = column.character_max_length
            target_native, forced = split_fixed_length(target_native)
            if forced is not None:
                length = forced

            to_utc_query = column.to_utc_query
            if alias is not None and to_utc_query:
                to_utc_query = source_mapper.utc_read_expression(
                    column.name, column.native_type, alias=name
                )

            transformed = TransformedColumnDefinition(
                name=name,
                canonical_type=canonical,
                original_native_type=column.native_type,
                target_native_type=target_native,
                target_param_kind=param_kind_for(canonical),
                nullable=column.nullable,
                character_max_length=length,
                numeric_precision=column.numeric_precision,
                numeric_scale=column.numeric_scale,
                to_utc_query=to_utc_query,
                source_alias_name=alias,
                fixed_length_forced=forced is not None,
            )
            log.debug(
                "Column %s: %s -> %s -> %s%s",
                name, column.native_type, canonical.value, target_native,
                f"({length})" if forced is not None else "",
                extra=tag(DebugFlag.TRANSFORM_TRANSFORMED),
            )
            result[name] = transformed
    except BridgeError:
        raise
    except Exception as exc:
        raise BridgeError("transform", cause=exc) from exc

    log.debug(
        "Transformed %d column(s) for %s.", len(result), target_dialect.value,
        extra=tag(DebugFlag.TRANSFORM_TARGET),
    )
    return result
