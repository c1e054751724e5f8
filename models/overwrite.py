"""
models/overwrite.py
-------------------
What to do when a target table already exists.
"""
from __future__ import annotations

from enum import Enum


class OverwritePolicy(str, Enum):
    """Configured reaction to an existing target table."""
    NEVER = "never"                      # abort the run
    ASK = "ask"                          # defer to the decision callback
    SKIP = "skip"
    OVERWRITE_EMPTY = "overwrite_empty"  # drop only when the table has no rows
    OVERWRITE = "overwrite"
    OVERWRITE_ALL = "overwrite_all"

    @classmethod
    def parse(cls, value: str) -> "OverwritePolicy":
        """Accept either the value (``overwrite_all``) or the member name."""
        text = value.strip().lower().replace("-", "_")
        for member in cls:
            if member.value == text:
                return member
        raise ValueError(f"Unknown overwrite policy: {value!r}")


class OverwriteChoice(str, Enum):
    """Answer returned by the interactive decision callback."""
    SKIP = "skip"
    OVERWRITE = "overwrite"
    OVERWRITE_ALL = "overwrite_all"
    ABORT = "abort"
