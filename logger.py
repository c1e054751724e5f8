"""
logger.py
---------
Application-wide logging configuration with debug-flag masks.

Design Decisions:
    * A single root logger ("dbbridge") is configured once at import time.
    * All modules obtain a child logger via ``get_logger(__name__)``.
    * Records may carry a ``debug_flag`` (see :class:`DebugFlag`) through
      ``extra=tag(flag)``.  Two independent masks decide where a record
      goes: the *log* mask filters the file handler, the *show* mask
      filters the console.  Untagged records count as ``ALWAYS``.
    * ``configure_logging`` re-applies masks and the log file at runtime,
      so the CLI can override what the environment configured.
"""
from __future__ import annotations

import enum
import logging
import sys
from pathlib import Path

from config import CONFIG, get_log_level

_ROOT_LOGGER_NAME = "dbbridge"
_CONSOLE_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"
_FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s (%(filename)s:%(lineno)d): %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_configured = False


class DebugFlag(enum.IntFlag):
    """Verbosity categories; combine with ``|`` to build a mask."""
    NONE = 0
    ALWAYS = 1
    TRANSFORM_RESERVED = 4
    TRANSFORM_SOURCE = 8
    TRANSFORM_TARGET = 16
    TRANSFORM_TRANSFORMED = 32
    TRANSFORM_ALL = 60
    QUERY_CREATE = 64
    QUERY_SELECT = 128
    QUERY_INSERT = 256
    QUERY_ALL = 448
    OVERWRITE = 512
    BIND = 1024
    EXECUTE = 2048
    FETCH = 4096
    FIXME = 8192
    IMPORT_ROW = 16384
    ALL = 65535


def tag(flag: DebugFlag) -> dict[str, DebugFlag]:
    """``extra`` mapping that marks a record with *flag*."""
    return {"debug_flag": flag}


class DebugMaskFilter(logging.Filter):
    """Pass records whose debug flag intersects ``mask``."""

    def __init__(self, mask: int) -> None:
        super().__init__()
        self.mask = DebugFlag(mask) | DebugFlag.ALWAYS

    def filter(self, record: logging.LogRecord) -> bool:
        flag = getattr(record, "debug_flag", DebugFlag.ALWAYS)
        return bool(flag & self.mask)


def _file_handler(log_file: str, log_mask: int) -> logging.Handler | None:
    log_path = Path(log_file)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError as exc:
        logging.getLogger(_ROOT_LOGGER_NAME).warning(
            "Could not create log file '%s': %s", log_path, exc
        )
        return None
    handler.setLevel(logging.DEBUG)  # the mask does the filtering
    handler.setFormatter(logging.Formatter(fmt=_FILE_FORMAT, datefmt=_DATE_FORMAT))
    handler.addFilter(DebugMaskFilter(log_mask))
    return handler


def configure_logging(
    log_mask: int,
    show_mask: int,
    log_file: str | None = None,
    level: int | None = None,
) -> None:
    """
    (Re)build the handlers of the root 'dbbridge' logger.

    Args:
        log_mask:  Debug flags persisted to *log_file*.
        show_mask: Debug flags shown on the console.
        log_file:  Path of the append-mode log file; None disables it.
        level:     Logger level, defaults to the configured ``LOG_LEVEL``.
    """
    global _configured
    _configured = True

    root = logging.getLogger(_ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level if level is not None else get_log_level())

    # --- Console handler ---
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(
        logging.Formatter(fmt=_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )
    console_handler.addFilter(DebugMaskFilter(show_mask))
    root.addHandler(console_handler)

    # --- Optional file handler ---
    if log_file:
        file_handler = _file_handler(log_file, log_mask)
        if file_handler is not None:
            root.addHandler(file_handler)


def _configure_root_logger() -> None:
    """One-time setup from the environment-derived configuration."""
    if _configured:
        return
    configure_logging(
        CONFIG.migration.log_mask,
        CONFIG.migration.show_mask,
        CONFIG.migration.log_file,
    )


_configure_root_logger()


def get_logger(name: str) -> logging.Logger:
    """
    Return a child logger scoped to the given name.

    Example::

        log = get_logger(__name__)
        log.info("Creating table '%s'", table)
        log.debug("Bound %s", value, extra=tag(DebugFlag.BIND))
    """
    return logging.getLogger(f"{_ROOT_LOGGER_NAME}.{name}")
