"""
================================================================================
Product Page Object (Async / Playwright)
================================================================================

Product detail page: title, price and the sections below the fold that the
search flow scrolls through.

================================================================================
"""

from __future__ import annotations

import allure
from loguru import logger

from testsuites.ui_testing.framework.page_base import PageBase
from testsuites.ui_testing.framework.smart_locator import SmartLocator


def _primary(element_name: str) -> str:
    return SmartLocator.LOCATORS[element_name]["primary"]


class ProductPage(PageBase):
    """Product detail page (async)."""

    URL_PATH = "/dp"
    PAGE_TITLE = ""

    # Pause after each scroll so lazy sections render
    SCROLL_PAUSE_MS = 3000

    VIDEOS_SECTION = _primary("videos_section")
    PRODUCT_DETAILS = _primary("product_details")
    CUSTOMER_REVIEWS = _primary("customer_reviews")
    PRODUCT_DESCRIPTION = _primary("product_description")

    @allure.step("Scroll to element: {selector}")
    async def scroll_to_element(self, selector: str, timeout: int = 10000) -> str:
        """
        Scroll an element into view.

        Returns:
            Visible text of the element

        Raises:
            playwright TimeoutError: the element is not on the page
        """
        element = self.page.locator(selector).first
        try:
            await element.scroll_into_view_if_needed(timeout=timeout)
        except Exception:
            logger.error(f"Element not found with selector: {selector}")
            raise
        text = (await element.inner_text()).strip()
        logger.info(f"Text of the element: {text[:200]}")
        return text

    async def scroll_to_videos_section(self) -> str:
        return await self.scroll_to_element(self.VIDEOS_SECTION)

    async def scroll_to_product_details(self) -> str:
        return await self.scroll_to_element(self.PRODUCT_DETAILS)

    async def scroll_to_customer_reviews(self) -> str:
        return await self.scroll_to_element(self.CUSTOMER_REVIEWS)

    async def scroll_to_product_description(self) -> str:
        return await self.scroll_to_element(self.PRODUCT_DESCRIPTION)

    async def scroll_page_to_bottom(self) -> None:
        await self.scroll_to_bottom()
        await self.wait(self.SCROLL_PAUSE_MS)

    async def scroll_page_to_top(self) -> None:
        await self.scroll_to_top()
        await self.wait(self.SCROLL_PAUSE_MS)

    @allure.step("Scroll to bottom and back to top")
    async def scroll_bottom_and_top(self) -> None:
        await self.scroll_page_to_bottom()
        await self.scroll_page_to_top()

    async def get_product_title(self) -> str:
        try:
            return await self.get_text("product_title", timeout=5000)
        except Exception:
            return "Product title not found"

    async def get_product_price(self) -> str:
        try:
            return await self.get_text("product_price", timeout=5000)
        except Exception:
            return "Price not found"

    async def is_loaded(self) -> bool:
        """Title or main image is visible."""
        if await self.is_visible("product_title", timeout=5000):
            return True
        return await self.is_visible("product_images", timeout=2000)


__all__ = ["ProductPage"]
