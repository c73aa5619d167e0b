"""Shared fixtures."""

from collections.abc import Iterator

import pytest

from safe_exec.services import reset_state


@pytest.fixture(autouse=True)
def _reset_settings() -> Iterator[None]:
    """Drop cached settings between tests."""
    reset_state()
    yield
    reset_state()
