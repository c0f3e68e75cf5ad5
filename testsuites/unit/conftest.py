"""Fixtures shared by the offline unit tests."""

from typing import Generator

import pytest

from shoptest_tools.common import ConfigLoader


@pytest.fixture(autouse=True)
def _fresh_config() -> Generator[None, None, None]:
    """Tests that point ConfigLoader at a temp file must not leak it."""
    yield
    ConfigLoader.reset()
