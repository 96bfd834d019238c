# -*- coding: utf-8 -*-
import logging
import logging.handlers

import pytest

from stark_consolidator.utils.decorators import log_method
from stark_consolidator.utils.logging_config import get_logger, setup_logging
from stark_consolidator.utils.output_manager import OutputManager


def test_output_manager_structure(tmp_path):
    manager = OutputManager(tmp_path, run_name="Q3 audit / shop", timestamp="20240101_120000")

    assert manager.run_slug == "Q3_audit_shop"
    for component in ("reports", "charts", "logs", "debug"):
        assert manager.get_path(component).is_dir()
    assert manager.get_path("reports", "a.xlsx") == tmp_path / "Q3_audit_shop" / "reports" / "a.xlsx"
    assert manager.get_timestamped_path("reports", "summary", "json").name == "summary_20240101_120000.json"

    with pytest.raises(ValueError):
        manager.get_path("screenshots")


def test_backup_existing_file(tmp_path):
    manager = OutputManager(tmp_path, run_name="run", timestamp="t1")
    assert manager.backup_existing_file("reports", "report.json") is None

    assert manager.safe_write_file(manager.get_path("reports", "report.json"), "{}")
    backup = manager.backup_existing_file("reports", "report.json")
    assert backup.name == "report_backup_t1.json"
    assert backup.read_text() == "{}"


def test_setup_logging_writes_to_file(tmp_path):
    logger = setup_logging(log_level="DEBUG", log_dir=tmp_path, component_name="stark_test_component",
                           console_output=False)
    logger.info("hello")
    for handler in logger.handlers:
        handler.flush()

    assert isinstance(logger.handlers[0], logging.handlers.RotatingFileHandler)
    assert "stark_test_component - INFO - hello" in (tmp_path / "stark_test_component.log").read_text()
    logger.handlers.clear()


def test_get_logger_uses_output_manager(tmp_path):
    manager = OutputManager(tmp_path, run_name="logs")
    logger = get_logger("stark_test_get_logger", {"level": "WARNING", "console_output": False}, manager)

    assert logger.level == logging.WARNING
    assert (manager.get_path("logs") / "stark_test_get_logger.log").exists()
    # Already configured loggers are returned unchanged
    assert get_logger("stark_test_get_logger") is logger
    logger.handlers.clear()


def test_get_logger_explicit_log_dir_wins(tmp_path):
    manager = OutputManager(tmp_path / "out", run_name="run")
    log_config = {"level": "INFO", "log_dir": str(tmp_path / "custom"), "console_output": False}
    logger = get_logger("stark_test_log_dir", log_config, manager)

    assert (tmp_path / "custom" / "stark_test_log_dir.log").exists()
    assert not (manager.get_path("logs") / "stark_test_log_dir.log").exists()

    other = {"level": "INFO", "log_dir": str(tmp_path / "other"), "console_output": False}
    assert get_logger("stark_test_log_dir", other, reconfigure=True) is logger
    assert (tmp_path / "other" / "stark_test_log_dir.log").exists()
    logger.handlers.clear()


class _Worker:
    def __init__(self):
        self.logger = logging.getLogger("stark_test_worker")

    @log_method
    def double(self, value):
        return value * 2

    @log_method
    def fail(self):
        raise RuntimeError("broken")


def test_log_method_passes_results_and_errors_through():
    worker = _Worker()
    assert worker.double(21) == 42
    with pytest.raises(RuntimeError):
        worker.fail()
