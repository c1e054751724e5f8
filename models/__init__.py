"""models/__init__.py"""
from models.columns import ColumnDefinition, SelectSpec, TransformedColumnDefinition
from models.dialect import Dialect
from models.overwrite import OverwriteChoice, OverwritePolicy

__all__ = [
    "ColumnDefinition",
    "TransformedColumnDefinition",
    "SelectSpec",
    "Dialect",
    "OverwritePolicy",
    "OverwriteChoice",
]
