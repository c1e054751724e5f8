"""
tests/test_logger.py
--------------------
Unit tests for logger.py (debug-flag masks and handler setup).
Run with: python -m pytest tests/
"""
from __future__ import annotations

import logging
from pathlib import Path

import pytest

from config import CONFIG
from logger import DebugFlag, DebugMaskFilter, configure_logging, get_logger, tag


def _record(flag: DebugFlag | None = None) -> logging.LogRecord:
    record = logging.LogRecord("dbbridge.test", logging.INFO, __file__, 1, "msg", None, None)
    if flag is not None:
        record.debug_flag = flag
    return record


@pytest.fixture
def restore_logging():
    yield
    configure_logging(
        CONFIG.migration.log_mask,
        CONFIG.migration.show_mask,
        CONFIG.migration.log_file,
    )


class TestDebugMaskFilter:
    def test_untagged_records_always_pass(self) -> None:
        assert DebugMaskFilter(0).filter(_record())

    def test_matching_flag_passes(self) -> None:
        assert DebugMaskFilter(DebugFlag.IMPORT_ROW).filter(_record(DebugFlag.IMPORT_ROW))

    def test_other_flag_is_dropped(self) -> None:
        assert not DebugMaskFilter(DebugFlag.IMPORT_ROW).filter(_record(DebugFlag.BIND))

    def test_group_masks(self) -> None:
        assert DebugMaskFilter(DebugFlag.TRANSFORM_ALL).filter(_record(DebugFlag.TRANSFORM_TARGET))
        assert DebugMaskFilter(DebugFlag.QUERY_ALL).filter(_record(DebugFlag.QUERY_INSERT))

    def test_plain_int_mask(self) -> None:
        assert DebugMaskFilter(0x4000).filter(_record(DebugFlag.IMPORT_ROW))

    def test_tag(self) -> None:
        assert tag(DebugFlag.FIXME) == {"debug_flag": DebugFlag.FIXME}


class TestConfigureLogging:
    def test_file_receives_only_masked_records(self, tmp_path: Path, restore_logging) -> None:
        log_file = tmp_path / "logs" / "bridge.log"
        configure_logging(DebugFlag.OVERWRITE, DebugFlag.NONE, str(log_file), logging.DEBUG)
        log = get_logger("test")
        log.info("kept overwrite", extra=tag(DebugFlag.OVERWRITE))
        log.info("dropped bind", extra=tag(DebugFlag.BIND))
        log.info("kept untagged")
        for handler in logging.getLogger("dbbridge").handlers:
            handler.flush()
        text = log_file.read_text(encoding="utf-8")
        assert "kept overwrite" in text
        assert "kept untagged" in text
        assert "dropped bind" not in text

    def test_reconfigure_replaces_handlers(self, restore_logging) -> None:
        configure_logging(DebugFlag.ALL, DebugFlag.ALL, None)
        configure_logging(DebugFlag.ALL, DebugFlag.ALL, None)
        assert len(logging.getLogger("dbbridge").handlers) == 1

    def test_child_logger_name(self) -> None:
        assert get_logger("core.migrator").name == "dbbridge.core.migrator"
