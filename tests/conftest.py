"""Shared fixtures."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Undo setup_logging() so capture_logs() sees every event in later tests."""
    yield
    structlog.reset_defaults()
