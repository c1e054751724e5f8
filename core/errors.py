"""
core/errors.py
--------------
Error hierarchy for the migration core.

Every failure that leaves a component boundary is a :class:`BridgeError`
carrying the name of the operation that failed and the underlying cause.
Each component wraps exactly once at its own boundary; callers further up
re-raise ``BridgeError`` unchanged.
"""
from __future__ import annotations


class BridgeError(Exception):
    """
    Base class for all migration failures.

    Args:
        operation: Short name of the failed operation (e.g. ``"create_table"``).
        message:   Human readable detail.
        cause:     The wrapped exception, if any.
    """

    def __init__(
        self,
        operation: str,
        message: str = "",
        cause: BaseException | None = None,
    ) -> None:
        self.operation = operation
        self.message = message or (str(cause) if cause else "")
        self.cause = cause
        super().__init__(self.__str__())

    def __str__(self) -> str:
        text = f"{self.operation} failed"
        if self.message:
            text += f": {self.message}"
        if self.cause is not None and self.message != str(self.cause):
            text += f" (caused by {type(self.cause).__name__}: {self.cause})"
        elif self.cause is not None:
            text += f" ({type(self.cause).__name__})"
        return text


class ConfigurationError(BridgeError):
    """Unknown dialect, unmapped dialect pair, invalid setting or choice."""


class MetadataReadError(BridgeError):
    """Listing tables or columns on a source failed."""


class DdlError(BridgeError):
    """CREATE / DROP of a table or workarea failed."""


class UnsupportedDialectError(ConfigurationError):
    """A compiler rule has no variant for the requested dialect."""


class RowBindError(BridgeError):
    """Coercing or binding a row value failed."""


class RowExecuteError(BridgeError):
    """Executing the prepared INSERT for a row failed."""


class PlanLogError(BridgeError):
    """Creating, writing or reading the migration plan table failed."""


class MigrationAborted(BridgeError):
    """The overwrite policy or the user stopped the run."""


class MigrationInterrupted(BridgeError):
    """An interrupt signal was converted into an orderly abort."""
