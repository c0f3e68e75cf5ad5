"""
================================================================================
Browser Manager
================================================================================

Browser lifecycle management for UI automation.

Features:
    - Config-driven browser type (chromium / firefox / webkit) and headless mode
    - Context isolation per test
    - Maximised viewport and default element / navigation timeouts

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

from loguru import logger
from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
)

from shoptest_tools.common import get_config


SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")


def _env_flag(name: str) -> Optional[bool]:
    value = os.getenv(name)
    if value is None or value == "":
        return None
    return value.lower() in ("1", "true", "yes", "on")


class BrowserManager:
    """
    Manages browser instances and contexts for UI testing.

    Usage:
        async with BrowserManager() as manager:
            page = await manager.new_page()
            await page.goto("https://www.amazon.com")
    """

    # Default browser launch options
    DEFAULT_LAUNCH_OPTIONS: Dict[str, Any] = {
        "headless": True,
        "args": [
            "--ignore-certificate-errors",
            "--disable-notifications",
        ],
    }

    # Default context options
    DEFAULT_CONTEXT_OPTIONS: Dict[str, Any] = {
        "viewport": {"width": 1920, "height": 1080},
        "ignore_https_errors": True,
    }

    def __init__(
        self,
        headless: Optional[bool] = None,
        browser_type: Optional[str] = None,
        default_timeout_ms: Optional[int] = None,
        navigation_timeout_ms: Optional[int] = None,
    ):
        """
        Initialize browser manager.

        Unset values come from UI_HEADLESS / UI_BROWSER, then `ui.*` config.

        Args:
            headless: Run browser in headless mode
            browser_type: Browser to use - 'chromium', 'firefox', 'webkit'
            default_timeout_ms: Element action timeout for new pages
            navigation_timeout_ms: Navigation timeout for new pages
        """
        if headless is None:
            headless = _env_flag("UI_HEADLESS")
        if headless is None:
            headless = bool(get_config("ui.headless", True))
        if browser_type is None:
            browser_type = os.getenv("UI_BROWSER") or get_config("ui.browser", "chromium")

        browser_type = browser_type.lower()
        if browser_type not in SUPPORTED_BROWSERS:
            logger.warning(f"Browser '{browser_type}' not recognized, defaulting to chromium")
            browser_type = "chromium"

        self.headless = headless
        self.browser_type = browser_type
        self.default_timeout_ms = int(
            default_timeout_ms or get_config("ui.default_timeout_ms", 10000)
        )
        self.navigation_timeout_ms = int(
            navigation_timeout_ms or get_config("ui.navigation_timeout_ms", 30000)
        )

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._contexts: List[BrowserContext] = []

    async def __aenter__(self) -> "BrowserManager":
        """Async context manager entry - start browser."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - close browser."""
        await self.close()

    async def start(self) -> None:
        """Start Playwright and launch browser."""
        self._playwright = await async_playwright().start()
        browser_launcher = getattr(self._playwright, self.browser_type)

        launch_options = {
            **self.DEFAULT_LAUNCH_OPTIONS,
            "headless": self.headless,
        }
        if self.browser_type != "chromium":
            launch_options.pop("args", None)

        self._browser = await browser_launcher.launch(**launch_options)
        logger.info(
            f"Browser started: {self.browser_type} "
            f"(headless={self.headless})"
        )

    async def close(self) -> None:
        """Close all contexts and browser."""
        for context in self._contexts:
            try:
                await context.close()
            except Exception as e:
                logger.debug(f"Context already closed: {e}")
        self._contexts.clear()

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        logger.info("Browser closed")

    async def new_context(
        self,
        **options: Any,
    ) -> BrowserContext:
        """
        Create new browser context.

        Each context is isolated - separate cookies, localStorage, etc.

        Args:
            **options: Additional context options

        Returns:
            New BrowserContext
        """
        if not self._browser:
            raise RuntimeError("Browser not started. Call start() first.")

        context_options = {**self.DEFAULT_CONTEXT_OPTIONS, **options}
        context = await self._browser.new_context(**context_options)
        context.set_default_timeout(self.default_timeout_ms)
        context.set_default_navigation_timeout(self.navigation_timeout_ms)
        self._contexts.append(context)

        return context

    async def new_page(
        self,
        context: Optional[BrowserContext] = None,
        **context_options: Any,
    ) -> Page:
        """
        Create new page in new or existing context.

        Args:
            context: Existing context to use (creates new if None)
            **context_options: Options for new context

        Returns:
            New Page
        """
        if context is None:
            context = await self.new_context(**context_options)

        return await context.new_page()

    @property
    def browser(self) -> Optional[Browser]:
        """Get browser instance."""
        return self._browser


__all__ = [
    "BrowserManager",
    "SUPPORTED_BROWSERS",
]
