"""Tests for mavenizer.logging."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from mavenizer.logging import configure_logging, get_logger


def test_get_logger_returns_children() -> None:
    assert get_logger("graph").name == "mavenizer.graph"
    assert get_logger().name == "mavenizer"


@pytest.mark.parametrize(
    ("verbose", "quiet", "level"),
    [
        (False, False, logging.INFO),
        (True, False, logging.DEBUG),
        (False, True, logging.WARNING),
        (True, True, logging.DEBUG),
    ],
)
def test_configure_logging_levels(verbose: bool, quiet: bool, level: int) -> None:
    logger = configure_logging(verbose=verbose, quiet=quiet)

    assert logger.level == level
    assert len(logger.handlers) == 1
    assert logger.handlers[0].level == level


def test_configure_logging_replaces_handlers_and_adds_file_sink(tmp_path: Path) -> None:
    configure_logging()
    log_file = tmp_path / "logs" / "run.log"

    logger = configure_logging(quiet=True, log_file=log_file)
    get_logger("graph").debug("diagnostic detail")

    assert len(logger.handlers) == 2
    assert logger.level == logging.DEBUG
    assert "diagnostic detail" in log_file.read_text(encoding="utf-8")
