"""Pytest fixtures: temp config files, structlog reset."""

from pathlib import Path

import pytest
import structlog

# Poll interval used by tests that exercise the background thread
FAST_INTERVAL = 0.01


@pytest.fixture
def config_file(tmp_path) -> Path:
    """config.json containing {"Name": "Nic"}."""
    path = tmp_path / "config.json"
    path.write_text('{"Name": "Nic"}', encoding="utf-8")
    return path


@pytest.fixture
def fast_interval() -> float:
    return FAST_INTERVAL


@pytest.fixture(autouse=True)
def _reset_structlog():
    """CLI tests reconfigure structlog globally; restore defaults after every test."""
    yield
    structlog.reset_defaults()
