"""core/__init__.py"""
from core.canonical import CanonicalType, ParamKind, all_types
from core.errors import (
    BridgeError,
    ConfigurationError,
    DdlError,
    MetadataReadError,
    MigrationAborted,
    MigrationInterrupted,
    PlanLogError,
    RowBindError,
    RowExecuteError,
    UnsupportedDialectError,
)

__all__ = [
    "CanonicalType",
    "ParamKind",
    "all_types",
    "BridgeError",
    "ConfigurationError",
    "DdlError",
    "MetadataReadError",
    "MigrationAborted",
    "MigrationInterrupted",
    "PlanLogError",
    "RowBindError",
    "RowExecuteError",
    "UnsupportedDialectError",
]
