"""Shared fixtures for the test suite."""

from pathlib import Path

import pytest
import structlog

from mailingest.utils.line_buffer import LineBuffer
from mailingest.utils.logging import configure_default_logging

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "emails"


@pytest.fixture(autouse=True)
def default_logging():
    """Restore the library logging defaults after each test."""
    yield
    structlog.reset_defaults()
    configure_default_logging()


@pytest.fixture
def fixtures_dir():
    """Directory holding the sample messages."""
    return FIXTURES_DIR


@pytest.fixture
def make_buffer():
    """Build a LineBuffer from message text."""

    def _make(text: str, filename: str = "test.eml") -> LineBuffer:
        return LineBuffer(text.encode("utf-8"), filename)

    return _make
