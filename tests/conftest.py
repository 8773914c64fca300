from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator

import pytest

from tests._fixtures.repo_builder import RepoBuilder, at


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable repo builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """A frozen clock at 2024-03-20 12:00 UTC."""
    return lambda: at(20)


@pytest.fixture(autouse=True)
def _restore_package_logger() -> Iterator[None]:
    # CLI tests call configure_logging, which stops propagation to caplog's root handler.
    yield
    logger = logging.getLogger("distillmeta")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
