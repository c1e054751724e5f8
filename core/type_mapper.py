"""
core/type_mapper.py
-------------------
Base class for the per-dialect type translation tables.

A dialect mapper is two flat lookup tables plus a handful of
dialect-specific rendering rules:

    native → canonical   (input side, may yield ``UNKNOWN``)
    canonical → native   (output side, must cover every canonical tag)

Design Decisions:
    * Subclasses only declare data (class attributes); all behaviour lives
      here so every dialect resolves, memoizes and logs the same way.
    * Unmapped lookups are memoized per mapper instance, so a "fixme"
      diagnostic is logged once per distinct type.  The registry holds one
      instance per dialect, which makes that "once per process".
    * A canonical→native entry may carry a ``(n)`` fixed-length suffix
      (e.g. ``binary(16)``).  The mapper returns it verbatim; the
      transformer strips it with :func:`split_fixed_length`.
"""
from __future__ import annotations

import re
from typing import ClassVar

from core.canonical import CanonicalType, all_types
from core.errors import UnsupportedDialectError
from logger import DebugFlag, get_logger, tag
from models.dialect import Dialect

log = get_logger(__name__)

_FIXED_LENGTH_RE = re.compile(r"\((\d+)\)")
_PARENTHESISED_RE = re.compile(r"\([^)]*\)")


def split_fixed_length(native: str) -> tuple[str, int | None]:
    """
    Extract a ``(n)`` fixed-length suffix from a native type name.

    Returns:
        ``(type_without_suffix, n)``, or ``(native, None)`` when the type
        carries no single-number suffix.

    Example::

        split_fixed_length("binary(16)")      # ("binary", 16)
        split_fixed_length("decimal(19,4)")   # ("decimal(19,4)", None)
    """
    match = _FIXED_LENGTH_RE.search(native)
    if not match:
        return native, None
    stripped = _FIXED_LENGTH_RE.sub("", native, count=1)
    return " ".join(stripped.split()), int(match.group(1))


def strip_type_modifiers(native: str) -> str:
    """``TIMESTAMP(6) WITH TIME ZONE`` → ``TIMESTAMP WITH TIME ZONE``."""
    return " ".join(_PARENTHESISED_RE.sub("", native).split())


class DialectTypeMapper:
    """
    Bidirectional native ↔ canonical type translation for one dialect.

    Subclasses fill in the class attributes below.
    """
    dialect: ClassVar[Dialect]
    native_to_canonical_table: ClassVar[dict[str, CanonicalType]] = {}
    canonical_to_native_table: ClassVar[dict[CanonicalType, str]] = {}
    # Generic variable-length string type used for unmapped canonical tags.
    fallback_native: ClassVar[str] = "varchar"
    case_insensitive: ClassVar[bool] = False

    # DDL rendering rules, keyed by lower-cased native type.
    # sized_types: native → default length (None: emit no length by default)
    sized_types: ClassVar[dict[str, int | str | None]] = {}
    # length_caps: native → (maximum, replacement when exceeded)
    length_caps: ClassVar[dict[str, tuple[int, str]]] = {}
    precision_types: ClassVar[frozenset[str]] = frozenset()
    # (precision, scale) used when the source reports none
    precision_defaults: ClassVar[dict[str, tuple[int, int]]] = {}
    precision_caps: ClassVar[dict[str, int]] = {}
    quote_chars: ClassVar[tuple[str, str]] = ('"', '"')
    # How the engine folds unquoted identifiers: "lower", "upper" or None.
    identifier_case: ClassVar[str | None] = None
    inline_nullability: ClassVar[bool] = True

    def __init__(self) -> None:
        self._native_memo: dict[str, CanonicalType] = {}
        self._canonical_memo: dict[CanonicalType, str] = {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    # ------------------------------------------------------------------
    # Type lookup
    # ------------------------------------------------------------------

    def native_to_canonical(self, native: str) -> CanonicalType:
        """
        Map a native type name to its canonical tag.

        Unmapped names resolve to ``CanonicalType.UNKNOWN``; the first
        lookup of each such name logs a FIXME diagnostic.
        """
        key = native.lower() if self.case_insensitive else native
        found = self.native_to_canonical_table.get(key)
        if found is not None:
            return found
        if key not in self._native_memo:
            self._native_memo[key] = CanonicalType.UNKNOWN
            log.warning(
                "FIXME: %s native type '%s' is not mapped; using %s.",
                self.dialect.value, native, CanonicalType.UNKNOWN.value,
                extra=tag(DebugFlag.FIXME),
            )
        return self._native_memo[key]

    def canonical_to_native(self, canonical: CanonicalType) -> str:
        """
        Map a canonical tag to this dialect's native type name.

        The result may carry a ``(n)`` fixed-length suffix.  A tag missing
        from the table falls back to :attr:`fallback_native` (logged once).
        """
        found = self.canonical_to_native_table.get(canonical)
        if found:
            return found
        if canonical not in self._canonical_memo:
            self._canonical_memo[canonical] = self.fallback_native
            log.warning(
                "FIXME: canonical type '%s' is not mapped for %s; using '%s'.",
                canonical.value, self.dialect.value, self.fallback_native,
                extra=tag(DebugFlag.FIXME),
            )
        return self._canonical_memo[canonical]

    def missing_canonical_types(self) -> list[CanonicalType]:
        """Canonical tags without an explicit entry (should be empty)."""
        return [t for t in all_types() if not self.canonical_to_native_table.get(t)]

    # ------------------------------------------------------------------
    # SQL rendering
    # ------------------------------------------------------------------

    def quote_identifier(self, name: str) -> str:
        opening, closing = self.quote_chars
        return f"{opening}{name.replace(closing, closing * 2)}{closing}"

    def fold_identifier(self, name: str) -> str:
        """Spelling the engine stores for *name* written without quotes."""
        if self.identifier_case == "lower":
            return name.lower()
        if self.identifier_case == "upper":
            return name.upper()
        return name

    def utc_read_expression(
        self, name: str, native: str, alias: str | None = None
    ) -> str | None:
        """
        SELECT expression reading column *name* normalised to UTC.

        Returns None when the native type needs no normalisation.
        Dialects with time-zone aware types override this.
        """
        return None

    def utc_write_placeholder(self, placeholder: str) -> str:
        """
        Wrap an INSERT placeholder so a UTC value is re-zoned on write.

        Raises:
            UnsupportedDialectError: If the dialect has no rule.
        """
        raise UnsupportedDialectError(
            "compile_insert",
            f"no UTC re-zoning rule for dialect '{self.dialect.value}'",
        )

    def format_type(
        self,
        native: str,
        length: int | None = None,
        precision: int | None = None,
        scale: int | None = None,
        fixed_length: bool = False,
    ) -> str:
        """
        Render a native type for a column definition in CREATE TABLE.

        Args:
            native:       Native type name, without fixed-length suffix.
            length:       Character/byte length, if known.
            precision:    Numeric precision, if known.
            scale:        Numeric scale, if known.
            fixed_length: True when *length* was forced by the type map;
                          it is then emitted for any type.

        Example::

            mapper.format_type("varchar", 50)          # "varchar(50)"
            mapper.format_type("decimal", None, 10, 2) # "decimal(10,2)"
        """
        if "(" in native:
            return native
        if fixed_length:
            return f"{native}({length})" if length and length > 0 else native

        key = native.lower()
        if key in self.precision_types:
            if not precision or precision <= 0:
                if key not in self.precision_defaults:
                    return native
                precision, scale = self.precision_defaults[key]
            cap = self.precision_caps.get(key)
            if cap is not None and precision > cap:
                precision = cap
                scale = min(scale, cap) if scale is not None else None
            if scale is not None and scale >= 0:
                return f"{native}({precision},{scale})"
            return f"{native}({precision})"

        if key not in self.sized_types:
            return native

        size: int | str | None
        if length is not None and length > 0:
            size = length
            cap = self.length_caps.get(key)
            if cap is not None and length > cap[0]:
                size = cap[1]
        else:
            size = self.sized_types[key]
        return f"{native}({size})" if size is not None else native
