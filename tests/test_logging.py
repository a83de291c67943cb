"""Tests for port2monad.logging."""

from __future__ import annotations

import logging
from pathlib import Path

from port2monad.logging import configure_logging, get_logger, resolve_level


def test_get_logger_nests_under_package_logger() -> None:
    assert get_logger().name == "port2monad"
    assert get_logger("pipeline").name == "port2monad.pipeline"


def test_resolve_level_prefers_verbose_then_named_level() -> None:
    assert resolve_level("warning") == logging.WARNING
    assert resolve_level("warning", verbose=True) == logging.DEBUG
    assert resolve_level("not-a-level") == logging.INFO
    assert resolve_level(None) == logging.INFO
    assert resolve_level(logging.ERROR) == logging.ERROR


def test_configure_logging_replaces_handlers_and_writes_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "run.log"

    configure_logging(level="ERROR")
    logger = configure_logging(level="INFO", log_file=log_file)
    get_logger("pipeline").info("analysis started")
    for handler in logger.handlers:
        handler.flush()

    assert logger.level == logging.INFO
    assert len(logger.handlers) == 2
    assert "port2monad.pipeline: analysis started" in log_file.read_text(encoding="utf-8")
