"""Tests for litpress.logging."""

from __future__ import annotations

import logging
from pathlib import Path

from litpress.logging import configure_logging, get_logger


def test_get_logger_nests_under_litpress() -> None:
    assert get_logger().name == "litpress"
    assert get_logger("validators.seo").name == "litpress.validators.seo"


def test_configure_logging_levels() -> None:
    assert configure_logging().handlers[0].level == logging.INFO
    assert configure_logging(quiet=True).handlers[0].level == logging.WARNING
    assert configure_logging(verbose=True, quiet=True).handlers[0].level == logging.DEBUG


def test_configure_logging_replaces_handlers() -> None:
    configure_logging()
    logger = configure_logging()

    assert len(logger.handlers) == 1


def test_configure_logging_writes_debug_records_to_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "litpress.log"
    logger = configure_logging(log_file=log_file)

    get_logger("generator").debug("wrote %s", "hero-section.php")
    for handler in logger.handlers:
        handler.flush()

    assert "litpress.generator: wrote hero-section.php" in log_file.read_text(encoding="utf-8")
    configure_logging()
