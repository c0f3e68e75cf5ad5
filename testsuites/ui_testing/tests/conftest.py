"""
================================================================================
UI Testing Pytest Configuration
================================================================================

This module configures pytest for UI tests, providing fixtures for browser
management, page objects, and test setup/teardown.

Key Features:
- Browser and page lifecycle management (one isolated browser per test)
- Page Object fixtures for the shop pages
- Session-wide report sink, flushed to JSON at the end of the run
- Screenshot capture on failure

================================================================================
"""

from typing import AsyncGenerator, Generator

import allure
import pytest
import pytest_asyncio
from loguru import logger
from playwright.async_api import Page

from shoptest_tools.common import init_logger
from shoptest_tools.report_tools import AllureReportSink, attach_text
from testsuites.ui_testing.framework.browser_manager import BrowserManager
from testsuites.ui_testing.framework.evidence import ScreenshotCapture
from testsuites.ui_testing.framework.execution_context import ExecutionContext
from testsuites.ui_testing.pages import ProductPage, SearchResultsPage, ShopHomePage


# ================================================================================
# Test Lifecycle Hooks
# ================================================================================

@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """
    Expose each phase's report on the item (`rep_setup`, `rep_call`, ...).

    Fixtures read it during teardown to capture failure screenshots.
    """
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)


def _test_failed(request: pytest.FixtureRequest) -> bool:
    report = getattr(request.node, "rep_call", None)
    return report is not None and report.failed


# ================================================================================
# Report Fixtures
# ================================================================================

@pytest.fixture(scope="session")
def report_sink() -> Generator[AllureReportSink, None, None]:
    """
    Session-scoped report sink.

    Each xdist worker runs its own session and writes its own summary file.
    """
    init_logger()
    sink = AllureReportSink()
    yield sink
    sink.flush()


# ================================================================================
# Browser Fixtures
# ================================================================================

@pytest_asyncio.fixture
async def browser_manager() -> AsyncGenerator[BrowserManager, None]:
    """
    Function-scoped browser manager.

    Every test gets a fresh browser, matching the per-test isolation of
    the reports and the retry state.
    """
    async with BrowserManager() as manager:
        yield manager


@pytest_asyncio.fixture
async def page(
    browser_manager: BrowserManager,
    request: pytest.FixtureRequest,
) -> AsyncGenerator[Page, None]:
    """
    Function-scoped page fixture.

    Captures a failure screenshot before the page closes.
    """
    page = await browser_manager.new_page()
    yield page

    if _test_failed(request):
        evidence = ScreenshotCapture(page, full_page=True)
        path = await evidence.capture_fail(request.node.name)
        if path is not None:
            try:
                allure.attach.file(
                    str(path),
                    name="failure_screenshot",
                    attachment_type=allure.attachment_type.PNG,
                )
            except Exception as e:
                logger.warning(f"Failed to attach failure screenshot: {e}")
    await page.close()


@pytest.fixture
def evidence(page: Page) -> ScreenshotCapture:
    """Screenshot capture bound to the test's page."""
    return ScreenshotCapture(page)


# ================================================================================
# Page Object Fixtures
# ================================================================================

@pytest.fixture
def home_page(page: Page, evidence: ScreenshotCapture) -> ShopHomePage:
    return ShopHomePage(page, evidence=evidence)


@pytest.fixture
def search_results_page(page: Page, evidence: ScreenshotCapture) -> SearchResultsPage:
    return SearchResultsPage(page, evidence=evidence)


@pytest.fixture
def product_page(page: Page, evidence: ScreenshotCapture) -> ProductPage:
    return ProductPage(page, evidence=evidence)


@pytest.fixture
def execution_context(
    home_page: ShopHomePage,
    report_sink: AllureReportSink,
    evidence: ScreenshotCapture,
) -> Generator[ExecutionContext, None, None]:
    """
    Collaborators of one UI test.

    The home page object doubles as the link validator's browser. The
    locator health report is attached after the test.
    """
    yield ExecutionContext(page=home_page, report=report_sink, evidence=evidence)

    health = home_page.get_locator_health_report()
    logger.debug(health)
    attach_text(health, name="Locator Health")
