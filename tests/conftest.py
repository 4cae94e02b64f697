from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from repograph.diagnostics import WarningLog
from repograph.logging import reset_logging
from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable repo builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture
def warnings() -> WarningLog:
    """Provide an empty warning collector."""
    return WarningLog()


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Drop handlers bound to captured streams once a test finishes."""
    yield
    reset_logging()
