from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from tests._fixtures.sdk_builder import SdkBuilder


@pytest.fixture
def sdk_builder(tmp_path: Path) -> SdkBuilder:
    """Provide a bundle/SDK builder rooted at the pytest tmp_path."""
    return SdkBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _reset_mavenizer_logger() -> Iterator[None]:
    """Undo configure_logging() so caplog keeps seeing mavenizer records."""
    yield
    logger = logging.getLogger("mavenizer")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
