"""
Repository-level pytest configuration.

Sets environment defaults for local runs so that the UI suites target the
public shop front unless the user or CI provides something else.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def _local_env_defaults() -> Generator[None, None, None]:
    """
    Set environment defaults if not already provided by the user/CI.
    """
    defaults = {
        "UI_BASE_URL": "https://www.amazon.com",
        "UI_BROWSER": "chromium",
    }

    for k, v in defaults.items():
        os.environ.setdefault(k, v)

    yield
