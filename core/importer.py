"""
core/importer.py
----------------
Row-by-row copy of one table: per-value coercion, binding and INSERT.

Coercion is chosen by canonical family (see ``core.canonical``):

    text        strip non-printable characters, empty stays empty
    temporal    ""/"NULL"/None → NULL, otherwise normalised text
    GUID        decided by the *original* native type; hex → raw bytes
    bit/bool    ""/None → NULL (integer kind), otherwise 0/1
    money       "$" stripped, decimal string
    numeric     ""/None → NULL, "$" stripped
    integer     ""/None → 0
    binary      raw bytes
    other       None → NULL, bytes → LOB, otherwise text

Design Decisions:
    * Rows are read from one streaming cursor and written through one
      prepared INSERT, one row at a time.  No batching.
    * Every failure while coercing or binding a value is a
      :class:`RowBindError`; every driver failure on execute is a
      :class:`RowExecuteError`.  Either aborts the table.
"""
from __future__ import annotations

import json
import re
import time
import uuid
from datetime import date, datetime, timedelta, timezone
from datetime import time as dt_time
from decimal import Decimal
from typing import Any, Iterable, Mapping

from core.canonical import (
    BINARY_TYPES,
    BOOLEAN_TYPES,
    DATE_TYPES,
    GUID_NATIVE_TYPES,
    INTEGER_TYPES,
    MONEY_TYPES,
    NUMERIC_TYPES,
    TEMPORAL_TYPES,
    TEXT_TYPES,
    TIME_TYPES,
    CanonicalType,
    ParamKind,
)
from core.compiler import parameter_names
from core.database import DatabaseError, DatabaseManager
from core.errors import BridgeError, RowBindError, RowExecuteError
from logger import DebugFlag, get_logger, tag
from models.columns import SelectSpec, TransformedColumnDefinition

log = get_logger(__name__)

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M:%S"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_NULL_MARKERS = ("", "NULL")
_FALSE_WORDS = frozenset({"0", "false", "f", "no", "n", "off"})
_BOOLEAN_NATIVES = frozenset({"boolean", "bool"})
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")
_SPACED_OFFSET_RE = re.compile(r"\s+([+-]\d{2}:?\d{2})$")

Coerced = tuple[Any, ParamKind]


# ---------------------------------------------------------------------------
# Value coercion
# ---------------------------------------------------------------------------

def _as_str(value: Any) -> str:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def sanitize_text(value: str) -> str:
    """Drop every non-printable character."""
    return "".join(ch for ch in value if ch.isprintable())


def parse_temporal(value: Any) -> datetime | date | dt_time:
    """
    Parse a driver value or a text representation of a date/time.

    Raises:
        ValueError: If the text is not a recognisable date/time.
    """
    if isinstance(value, (datetime, date, dt_time)):
        return value
    if isinstance(value, timedelta):
        # mysql-connector returns TIME columns as timedelta
        seconds = int(value.total_seconds()) % 86400
        return dt_time(seconds // 3600, seconds % 3600 // 60, seconds % 60)

    text = _as_str(value).strip()
    text = _SPACED_OFFSET_RE.sub(r"\1", text)
    text = _FRACTION_RE.sub(r"\1", text)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return dt_time.fromisoformat(text)


def format_temporal(
    value: datetime | date | dt_time, canonical: CanonicalType, to_utc: bool
) -> str:
    if isinstance(value, datetime):
        if to_utc and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        if canonical in DATE_TYPES:
            return value.strftime(DATE_FORMAT)
        if canonical in TIME_TYPES:
            return value.strftime(TIME_FORMAT)
        return value.strftime(DATETIME_FORMAT)
    if isinstance(value, dt_time):
        return value.strftime(TIME_FORMAT)
    if canonical in DATE_TYPES:
        return value.strftime(DATE_FORMAT)
    return datetime(value.year, value.month, value.day).strftime(DATETIME_FORMAT)


def guid_bytes(value: Any) -> bytes:
    """``"6F9619FF-8B86-D011-B42D-00C04FC964FF"`` → 16 raw bytes."""
    if isinstance(value, uuid.UUID):
        return value.bytes
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    return bytes.fromhex(_as_str(value).strip().strip("{}").replace("-", ""))


def _as_bit(value: Any) -> int:
    if isinstance(value, (bytes, bytearray)):
        return int(any(value))
    if isinstance(value, str):
        return 0 if value.strip().lower() in _FALSE_WORDS else 1
    return int(bool(value))


def _as_int(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    text = _as_str(value).strip()
    try:
        return int(text)
    except ValueError:
        return int(Decimal(text))


def coerce_value(value: Any, column: TransformedColumnDefinition) -> Coerced:
    """
    Apply the type-directed coercion for *column* to one raw value.

    Returns:
        ``(value, kind)`` ready for binding.
    """
    canonical = column.canonical_type

    if canonical in TEXT_TYPES:
        if value is None:
            return None, ParamKind.NULL
        text = _as_str(value)
        return (sanitize_text(text) if text else text), ParamKind.STR

    if canonical in TEMPORAL_TYPES:
        if value is None or (isinstance(value, str) and value.strip() in _NULL_MARKERS):
            return None, ParamKind.NULL
        parsed = parse_temporal(value)
        return format_temporal(parsed, canonical, bool(column.to_utc_query)), ParamKind.STR

    if column.original_native_type.lower() in GUID_NATIVE_TYPES:
        if value is None:
            return None, ParamKind.NULL
        if column.target_native_type.lower() in GUID_NATIVE_TYPES:
            return _as_str(value), ParamKind.STR
        return guid_bytes(value), ParamKind.LOB

    if canonical in BOOLEAN_TYPES:
        if value is None or value == "":
            return None, ParamKind.INT
        bit = _as_bit(value)
        if column.target_native_type.lower() in _BOOLEAN_NATIVES:
            return bool(bit), ParamKind.BOOL
        return bit, ParamKind.INT

    if canonical in MONEY_TYPES:
        if value is None:
            return None, ParamKind.NULL
        return _as_str(value).replace("$", "").strip(), ParamKind.STR

    if canonical in NUMERIC_TYPES:
        if value is None or value == "":
            return None, ParamKind.NULL
        return _as_str(value).replace("$", "").strip(), ParamKind.STR

    if canonical in INTEGER_TYPES:
        if value is None or value == "":
            return 0, ParamKind.INT
        return _as_int(value), ParamKind.INT

    if canonical in BINARY_TYPES:
        if value is None:
            return None, ParamKind.NULL
        if isinstance(value, str):
            return value.encode("utf-8"), ParamKind.LOB
        return bytes(value), ParamKind.LOB

    if value is None:
        return None, ParamKind.NULL
    if canonical is CanonicalType.JSON and isinstance(value, (dict, list)):
        return json.dumps(value), ParamKind.STR
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value), ParamKind.LOB
    kind = column.target_param_kind
    if kind is ParamKind.NULL:
        kind = ParamKind.STR
    if kind is ParamKind.STR and not isinstance(value, str):
        return _as_str(value), kind
    return value, kind


# ---------------------------------------------------------------------------
# Prepared INSERT
# ---------------------------------------------------------------------------

class PreparedInsert:
    """
    One INSERT statement with its current parameter values.

    Values are handed to the driver as plain Python objects; the driver
    picks the SQL type from the Python type.  ``coerce_value`` guarantees
    every value is ``None`` or matches its kind (``str`` for STR, ``int``
    for INT, ``bool`` for BOOL, ``bytes`` for LOB), so the kind is only
    recorded in the BIND diagnostic.

    Args:
        db:    Target :class:`DatabaseManager`.
        sql:   INSERT text with ``:name`` placeholders.
        names: Placeholder names the statement expects.
    """

    def __init__(self, db: DatabaseManager, sql: str, names: Iterable[str]) -> None:
        self.db = db
        self.sql = sql
        self.names = list(names)
        self._values: dict[str, Any] = {}

    def bind(self, name: str, value: Any, kind: ParamKind) -> None:
        if name not in self.names:
            raise KeyError(f"statement has no parameter '{name}'")
        self._values[name] = value
        log.debug(
            "Bound parameter: %s, kind: %s, value: %.80r", name, kind.value, value,
            extra=tag(DebugFlag.BIND),
        )

    @property
    def values(self) -> dict[str, Any]:
        return dict(self._values)

    def execute(self) -> None:
        """
        Raises:
            RowExecuteError: If the driver rejects the row.
        """
        missing = [name for name in self.names if name not in self._values]
        if missing:
            raise RowExecuteError("execute_row", f"unbound parameter(s): {', '.join(missing)}")
        try:
            self.db.execute(self.sql, self._values)
        except DatabaseError as exc:
            raise RowExecuteError("execute_row", cause=exc) from exc
        finally:
            self._values = {}


# ---------------------------------------------------------------------------
# Importer
# ---------------------------------------------------------------------------

class RowImporter:
    """
    Copies rows into one target table.

    Args:
        target_db:      Target :class:`DatabaseManager`.
        insert_sql:     Compiled INSERT (see ``compile_insert``).
        columns:        Transformed columns, in INSERT order.
        progress_every: Log a progress line every N rows.

    Example::

        importer = RowImporter(target, insert_sql, columns)
        rows = importer.import_table(source, select_spec)
    """

    def __init__(
        self,
        target_db: DatabaseManager,
        insert_sql: str,
        columns: Mapping[str, TransformedColumnDefinition],
        progress_every: int = 1000,
    ) -> None:
        self._columns = dict(columns)
        self._params = parameter_names(self._columns)
        self.statement = PreparedInsert(target_db, insert_sql, self._params.values())
        self._progress_every = max(1, progress_every)

    def bind_and_execute(self, row: Mapping[str, Any]) -> None:
        """
        Coerce and bind every column of *row*, then execute the INSERT.

        Raises:
            RowBindError:    If a value cannot be coerced or bound.
            RowExecuteError: If the INSERT fails.
        """
        for name, column in self._columns.items():
            raw = row.get(name)
            try:
                value, kind = coerce_value(raw, column)
                self.statement.bind(self._params[name], value, kind)
            except BridgeError:
                raise
            except Exception as exc:
                raise RowBindError(
                    "bind_row", f"column '{name}' value {raw!r:.80}", exc
                ) from exc
        self.statement.execute()

    def import_table(self, source_db: DatabaseManager, select: SelectSpec) -> int:
        """
        Stream every source row through the INSERT.

        Returns:
            Number of rows imported.
        """
        order = select.bound_column_order
        count = 0
        started = time.monotonic()
        try:
            for values in source_db.stream(select.text):
                self.bind_and_execute(dict(zip(order, values)))
                count += 1
                if count % self._progress_every == 0:
                    log.info(
                        "Row: %d (%.0f rows/s)", count,
                        count / max(time.monotonic() - started, 1e-6),
                        extra=tag(DebugFlag.IMPORT_ROW),
                    )
        except BridgeError:
            raise
        except DatabaseError as exc:
            raise RowExecuteError("select_rows", select.text, exc) from exc
        return count


__all__ = [
    "PreparedInsert",
    "RowImporter",
    "coerce_value",
    "format_temporal",
    "guid_bytes",
    "parse_temporal",
    "sanitize_text",
]
