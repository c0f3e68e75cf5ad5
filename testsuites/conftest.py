"""
================================================================================
Root Pytest Configuration
================================================================================

This module provides the root pytest configuration for the entire test suite.
It registers common markers and gates the live UI suites.

UI tests drive a real browser against the live shop and need network
access. They are skipped unless `--run-ui` is passed or RUN_UI_TESTS=1.

================================================================================
"""

import os

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--run-ui",
        action="store_true",
        default=False,
        help="Run live browser tests (also enabled by RUN_UI_TESTS=1)",
    )


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for deployment"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )
    config.addinivalue_line(
        "markers", "P3: Low priority tests - extensive validation"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "smoke: Quick verification tests"
    )
    config.addinivalue_line(
        "markers", "regression: Full regression test suite"
    )
    config.addinivalue_line(
        "markers", "unit: Offline tests of the framework itself"
    )

    # Domain markers
    config.addinivalue_line(
        "markers", "ui: Live browser tests (need --run-ui)"
    )

    # Feature markers
    config.addinivalue_line(
        "markers", "links: Broken link validation"
    )
    config.addinivalue_line(
        "markers", "retry: Tests wrapped in the retry policy"
    )
    config.addinivalue_line(
        "markers", "search: Product search flow"
    )


def _ui_enabled(config) -> bool:
    if config.getoption("--run-ui"):
        return True
    return os.getenv("RUN_UI_TESTS", "").lower() in ("1", "true", "yes")


def pytest_collection_modifyitems(config, items):
    """
    Modify collected test items.

    Adds the `ui` / `unit` markers by directory and skips UI tests
    unless they were requested.
    """
    run_ui = _ui_enabled(config)
    skip_ui = pytest.mark.skip(reason="live UI test: pass --run-ui or set RUN_UI_TESTS=1")

    for item in items:
        path = str(item.fspath)

        # Auto-add 'ui' marker to tests in ui_testing directory
        if "ui_testing" in path:
            item.add_marker(pytest.mark.ui)
            if not run_ui:
                item.add_marker(skip_ui)

        # Auto-add 'unit' marker to tests in unit directory
        if "unit" in os.path.basename(os.path.dirname(path)):
            item.add_marker(pytest.mark.unit)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "Shop UI Automation Harness",
        f"Live UI tests: {'enabled' if _ui_enabled(config) else 'skipped'}",
        "=" * 60,
        "",
    ]
