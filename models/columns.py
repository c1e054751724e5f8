"""
models/columns.py
-----------------
Typed records for the two stages a column definition passes through.

    ColumnDefinition             – as read from the source catalog.
    TransformedColumnDefinition  – target-ready, produced once per column
                                   by the transformer.

Design Decision:
    Both records are frozen dataclasses rather than loose dicts, so a
    missing or misspelled field fails loudly at construction time instead
    of surfacing as ``None`` halfway through a table import.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from core.canonical import CanonicalType, ParamKind


@dataclass(frozen=True)
class ColumnDefinition:
    """
    One physical source column.

    Attributes:
        name:                 Column name as reported by the source catalog.
        native_type:          Source dialect type name (exact spelling).
        nullable:             True when the column accepts NULL.
        character_max_length: Declared length, None when not applicable.
        numeric_precision:    Declared precision, None when not applicable.
        numeric_scale:        Declared scale, None when not applicable.
        to_utc_query:         Optional SELECT expression that reads the
                              column normalised to UTC.
    """
    name: str
    native_type: str
    nullable: bool = True
    character_max_length: int | None = None
    numeric_precision: int | None = None
    numeric_scale: int | None = None
    to_utc_query: str | None = None


@dataclass(frozen=True)
class TransformedColumnDefinition:
    """
    A column definition ready for DDL, SELECT and INSERT generation.

    ``name`` is the *working* name (possibly suffixed after a reserved-word
    collision); ``source_alias_name`` keeps the original spelling.
    ``original_native_type`` is always the pre-transform source type.
    """
    name: str
    canonical_type: CanonicalType
    original_native_type: str
    target_native_type: str
    target_param_kind: ParamKind
    nullable: bool = True
    character_max_length: int | None = None
    numeric_precision: int | None = None
    numeric_scale: int | None = None
    to_utc_query: str | None = None
    source_alias_name: str | None = None
    fixed_length_forced: bool = False

    @property
    def source_name(self) -> str:
        """Name of the column on the source side."""
        return self.source_alias_name or self.name

    @property
    def is_renamed(self) -> bool:
        return self.source_alias_name is not None


@dataclass(frozen=True)
class SelectSpec:
    """Compiled source SELECT plus the column order its result rows follow."""
    text: str
    bound_column_order: list[str] = field(default_factory=list)
