"""
core/canonical.py
-----------------
The engine-neutral type vocabulary every dialect translates through.

A source native type is first mapped to a :class:`CanonicalType`, then the
canonical tag is mapped to a target native type.  Nothing outside the
dialect mappers ever compares native type strings across dialects.

Design Decisions:
    * ``CanonicalType`` is a ``str, Enum`` so tags serialise cleanly into
      logs and the persisted migration plan.
    * Row coercion families are plain frozensets keyed by canonical tag;
      the importer dispatches on membership, never on native spelling.
    * ``UNKNOWN`` is the universal fallback on the way in; on the way out
      every dialect must resolve every tag, ``UNKNOWN`` included.
"""
from __future__ import annotations

from enum import Enum


class CanonicalType(str, Enum):
    NULL = "Null"
    BIT = "Bit"                              # 1 bit
    TINYINT = "TinyInt"                      # 8 bit
    SMALLINT = "SmallInt"                    # 16 bit
    INT = "Int"                              # 32 bit
    BIGINT = "BigInt"                        # 64 bit
    FLOAT = "Float"                          # single precision
    DOUBLE = "Double"                        # double precision
    DECIMAL = "Decimal"                      # variable precision
    SMALLMONEY = "SmallMoney"
    MONEY = "Money"
    STRING = "String"                        # variable length
    CHAR = "Char"                            # fixed length
    LONG_STRING = "LongString"
    UNICODE_STRING = "UnicodeString"
    LONG_UNICODE_STRING = "LongUnicodeString"
    CHAR_BINARY = "CharBinary"               # fixed length binary
    BINARY = "Binary"                        # variable length binary
    BLOB = "Blob"
    DATE = "Date"
    TIME = "Time"
    TIME_TZ = "TimeTz"
    DATETIME = "DateTime"
    DATETIME_TZ = "DateTimeTz"
    TIMESTAMP = "Timestamp"
    INTERVAL = "Interval"
    BOOL = "Bool"
    JSON = "Json"
    GUID = "Guid"
    AUTO_INCREMENT_TINYINT = "AutoIncrementTiny"
    AUTO_INCREMENT_SMALLINT = "AutoIncrementSmall"
    AUTO_INCREMENT_MEDIUMINT = "AutoIncrementMedium"
    AUTO_INCREMENT_INT = "AutoIncrementInt"
    AUTO_INCREMENT_BIGINT = "AutoIncrementBig"
    UNKNOWN = "Unknown"


class ParamKind(str, Enum):
    """Driver binding kind for a single parameter."""
    STR = "str"
    INT = "int"
    BOOL = "bool"
    NULL = "null"
    LOB = "lob"


def all_types() -> list[CanonicalType]:
    """Every canonical tag, in declaration order."""
    return list(CanonicalType)


# ---------------------------------------------------------------------------
# Coercion families (row import)
# ---------------------------------------------------------------------------
AUTO_INCREMENT_TYPES = frozenset({
    CanonicalType.AUTO_INCREMENT_TINYINT,
    CanonicalType.AUTO_INCREMENT_SMALLINT,
    CanonicalType.AUTO_INCREMENT_MEDIUMINT,
    CanonicalType.AUTO_INCREMENT_INT,
    CanonicalType.AUTO_INCREMENT_BIGINT,
})
INTEGER_TYPES = frozenset({
    CanonicalType.TINYINT,
    CanonicalType.SMALLINT,
    CanonicalType.INT,
    CanonicalType.BIGINT,
}) | AUTO_INCREMENT_TYPES
BOOLEAN_TYPES = frozenset({CanonicalType.BIT, CanonicalType.BOOL})
MONEY_TYPES = frozenset({CanonicalType.MONEY, CanonicalType.SMALLMONEY})
NUMERIC_TYPES = frozenset({
    CanonicalType.DECIMAL,
    CanonicalType.FLOAT,
    CanonicalType.DOUBLE,
})
TEXT_TYPES = frozenset({
    CanonicalType.STRING,
    CanonicalType.CHAR,
    CanonicalType.LONG_STRING,
    CanonicalType.UNICODE_STRING,
    CanonicalType.LONG_UNICODE_STRING,
})
BINARY_TYPES = frozenset({
    CanonicalType.CHAR_BINARY,
    CanonicalType.BINARY,
    CanonicalType.BLOB,
})
DATE_TYPES = frozenset({CanonicalType.DATE})
TIME_TYPES = frozenset({CanonicalType.TIME, CanonicalType.TIME_TZ})
TEMPORAL_TYPES = frozenset({
    CanonicalType.DATETIME,
    CanonicalType.DATETIME_TZ,
    CanonicalType.TIMESTAMP,
}) | DATE_TYPES | TIME_TYPES

# Source native spellings that hold a GUID; matched case-insensitively
# against the *original* native type of a column.
GUID_NATIVE_TYPES = frozenset({"uniqueidentifier", "uuid"})


_PARAM_KINDS: dict[CanonicalType, ParamKind] = {
    CanonicalType.NULL: ParamKind.NULL,
    CanonicalType.BOOL: ParamKind.BOOL,
    CanonicalType.BIT: ParamKind.INT,
}
_PARAM_KINDS.update({t: ParamKind.INT for t in INTEGER_TYPES})
_PARAM_KINDS.update({t: ParamKind.LOB for t in BINARY_TYPES})


def param_kind_for(canonical: CanonicalType) -> ParamKind:
    """Default binding kind for a canonical type (string when unlisted)."""
    return _PARAM_KINDS.get(canonical, ParamKind.STR)
