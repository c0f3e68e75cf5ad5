"""
================================================================================
UI Testing Framework
================================================================================

Playwright-based UI automation framework for the shop suites.

Components:
    - smart_locator: Element location with ordered fallback strategies
    - page_base: Base page object for common operations
    - browser_manager: Browser lifecycle management
    - evidence: Screenshot capture
    - retry_policy: Test-level retry of flaky tests
    - link_validator: One-page hyperlink validation
    - execution_context: Per-test collaborators
    - data_reader: CSV test data

Author: Automation Team
License: MIT
================================================================================
"""

from .smart_locator import SmartLocator, ElementNotFoundError
from .page_base import BasePage, NavigationError
from .browser_manager import BrowserManager
from .evidence import ScreenshotCapture
from .retry_policy import RetryPolicy, RetryState, retry_on_failure
from .link_validator import (
    AcquisitionFailure,
    LinkValidator,
    Outcome,
    QUICK_MAX_LINKS,
    DEFAULT_MAX_LINKS,
)
from .execution_context import ExecutionContext
from .data_reader import TestDataError, read_csv_columns, read_csv_data

__all__ = [
    "SmartLocator",
    "ElementNotFoundError",
    "BasePage",
    "NavigationError",
    "BrowserManager",
    "ScreenshotCapture",
    "RetryPolicy",
    "RetryState",
    "retry_on_failure",
    "AcquisitionFailure",
    "LinkValidator",
    "Outcome",
    "QUICK_MAX_LINKS",
    "DEFAULT_MAX_LINKS",
    "ExecutionContext",
    "TestDataError",
    "read_csv_columns",
    "read_csv_data",
]
