"""
================================================================================
Shop Home Page Object (Async / Playwright)
================================================================================

Landing page of the shop: open it and run a product search through the
header search box. The search box is resolved with ordered fallbacks
(id, then name, then placeholder) because the header markup varies by
region and A/B bucket.

================================================================================
"""

from __future__ import annotations

import allure
from loguru import logger

from testsuites.ui_testing.framework.page_base import PageBase


class ShopHomePage(PageBase):
    """Shop landing page (async)."""

    URL_PATH = "/"
    PAGE_TITLE = "Amazon"

    # Time for the header widgets to render after load
    SETTLE_MS = 2000

    @allure.step("Open shop home page")
    async def open(self) -> "ShopHomePage":
        """Navigate to the home page and let it settle."""
        await self.navigate()
        await self.wait(self.SETTLE_MS)
        return self

    @allure.step("Search for product: {search_term}")
    async def search_product(self, search_term: str) -> None:
        """
        Type a search term into the header search box and submit.

        Args:
            search_term: Product search text
        """
        await self.fill("search_box", search_term, timeout=10000)
        logger.info(f"Searching for: {search_term}")
        await self.click_search_button()

    async def click_search_button(self) -> None:
        await self.click("search_button", timeout=10000)

    async def is_search_box_visible(self) -> bool:
        return await self.is_visible("search_box", timeout=5000)


__all__ = ["ShopHomePage"]
