"""
================================================================================
Base Page Object
================================================================================

Foundation class for Page Object Model implementation.

Provides:
    - Navigation (configured base URL or arbitrary URL)
    - Smart element location
    - Scroll / history / refresh helpers
    - Rendered anchor extraction for link validation
    - Locator health report

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

import allure
from loguru import logger
from playwright.async_api import Page

from shoptest_tools.common import get_config

from .evidence import ScreenshotCapture
from .smart_locator import SmartLocator


# Absolute href of every anchor in DOM order; None for anchors without href
ANCHOR_HREFS_SCRIPT = """
elements => elements.map(e => e.getAttribute('href') === null ? null : e.href)
"""


class NavigationError(Exception):
    """Raised when the browser cannot load a requested URL."""
    pass


class BasePage:
    """
    Base class for all page objects.

    Provides common functionality for:
        - Navigation and URL handling
        - Smart element interaction
        - Screenshot capture (self.evidence)
        - Wait and scroll utilities

    Usage:
        class ShopHomePage(BasePage):
            URL_PATH = "/"

            async def search_product(self, term: str):
                await self.fill("search_box", term)
                await self.click("search_button")
    """

    # Override in subclasses
    URL_PATH: str = "/"
    PAGE_TITLE: str = ""

    def __init__(
        self,
        page: Page,
        base_url: str = "",
        evidence: Optional[ScreenshotCapture] = None,
    ):
        """
        Initialize page object.

        Args:
            page: Playwright Page object
            base_url: Base URL of the shop (defaults to UI_BASE_URL / ui.base_url)
            evidence: Screenshot capture bound to the same page
        """
        self.page = page
        if not base_url:
            base_url = os.getenv("UI_BASE_URL") or get_config("ui.base_url", "https://www.amazon.com")
        self.base_url = base_url.rstrip("/")
        self.smart = SmartLocator(page)
        self.evidence = evidence or ScreenshotCapture(page)

    @property
    def url(self) -> str:
        """Get full page URL."""
        return f"{self.base_url}{self.URL_PATH}"

    async def navigate(self, wait_for: str = "domcontentloaded") -> None:
        """
        Navigate to this page.

        Args:
            wait_for: Wait condition - 'load', 'domcontentloaded', 'networkidle'
        """
        await self.navigate_to_url(self.url, wait_for=wait_for)

    async def navigate_to_url(
        self,
        url: str,
        wait_for: str = "domcontentloaded",
    ) -> None:
        """
        Navigate to an arbitrary URL.

        Raises:
            NavigationError: the page could not be loaded
        """
        with allure.step(f"Navigate to {url}"):
            try:
                await self.page.goto(url, wait_until=wait_for)
            except Exception as e:
                logger.error(f"❌ Navigation to {url} failed: {e}")
                raise NavigationError(f"Failed to navigate to {url}: {e}") from e
            logger.info(f"Navigated to URL: {url}")

    async def current_url(self) -> str:
        return self.page.url

    async def page_title(self) -> str:
        title = await self.page.title()
        logger.info(f"Page title: {title}")
        return title

    async def wait(self, milliseconds: int) -> None:
        """Fixed wait, for pages that keep rendering after load."""
        await self.page.wait_for_timeout(milliseconds)

    def smart_locator(
        self,
        primary: str,
        fallbacks: Optional[List[str]] = None,
        name: str = "custom_element",
    ) -> SmartLocator:
        """
        Build a SmartLocator in *element mode* with primary + fallback selectors.

        Args:
            primary: Primary selector
            fallbacks: Fallback selectors to try when primary fails
            name: Human-readable element name for logging/Allure

        Returns:
            SmartLocator instance configured for a single element
        """
        locators: Dict[str, str] = {"primary": primary}
        for i, fb in enumerate(fallbacks or [], start=1):
            locators[f"fallback_{i}"] = fb
        return SmartLocator(self.page, element_name=name, locators=locators)

    # =========================================================================
    # Smart Element Interactions
    # =========================================================================

    async def click(
        self,
        element_name: str,
        timeout: int = 5000,
        **kwargs: Any,
    ) -> None:
        """
        Click element using smart location.

        Args:
            element_name: Name of element from SmartLocator
            timeout: Timeout for element location
            **kwargs: Additional click options
        """
        with allure.step(f"Click: {element_name}"):
            await self.smart.click(element_name, timeout, **kwargs)

    async def fill(
        self,
        element_name: str,
        value: str,
        timeout: int = 5000,
        **kwargs: Any,
    ) -> None:
        """
        Fill input element.

        Args:
            element_name: Name of input element
            value: Value to fill
            timeout: Timeout for element location
            **kwargs: Additional fill options
        """
        with allure.step(f"Fill {element_name}: {value}"):
            await self.smart.fill(element_name, value, timeout, **kwargs)

    async def get_text(
        self,
        element_name: str,
        timeout: int = 5000,
    ) -> str:
        return await self.smart.get_text(element_name, timeout)

    async def is_visible(
        self,
        element_name: str,
        timeout: int = 2000,
    ) -> bool:
        return await self.smart.is_visible(element_name, timeout)

    # =========================================================================
    # Scroll and History
    # =========================================================================

    async def scroll_to_top(self) -> None:
        await self.page.evaluate("window.scrollTo(0, 0)")
        logger.debug("Scrolled to top of page")

    async def scroll_to_bottom(self) -> None:
        await self.page.evaluate("window.scrollTo(0, document.body.scrollHeight)")
        logger.debug("Scrolled to bottom of page")

    async def refresh(self) -> None:
        with allure.step("Refresh page"):
            await self.page.reload()
            logger.info("Page refreshed")

    async def navigate_back(self) -> None:
        with allure.step("Navigate back"):
            await self.page.go_back()
            logger.info("Navigated back")

    async def navigate_forward(self) -> None:
        with allure.step("Navigate forward"):
            await self.page.go_forward()
            logger.info("Navigated forward")

    # =========================================================================
    # Link Extraction
    # =========================================================================

    async def rendered_anchor_hrefs(self) -> List[Optional[str]]:
        """
        Resolved href of every anchor on the rendered page, in DOM order.

        Anchors without an href attribute yield None.
        """
        return await self.page.eval_on_selector_all("a", ANCHOR_HREFS_SCRIPT)

    # =========================================================================
    # Debug Utilities
    # =========================================================================

    def get_locator_health_report(self) -> str:
        """Get smart locator health report."""
        return self.smart.get_health_report()


# Backward-compatible alias (many Page Objects prefer PageBase naming)
PageBase = BasePage


__all__ = [
    "BasePage",
    "PageBase",
    "NavigationError",
]
