"""Pytest configuration and fixtures for the test suite."""

import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from metasearch.common.pydantic import Request


@pytest.fixture
def temp_workspace() -> Generator[Path, None, None]:
    """Create a temporary workspace for file operations."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def request_solar() -> Request:
    """Plain search request."""
    return Request(query="solar")


@pytest.fixture(autouse=True)
def no_http_debug(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep transport logging off unless a test enables it."""
    monkeypatch.delenv("METASEARCH_DEBUG_HTTP", raising=False)
