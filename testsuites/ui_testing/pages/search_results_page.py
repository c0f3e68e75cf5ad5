"""
================================================================================
Search Results Page Object (Async / Playwright)
================================================================================

Result listing shown after a product search.

================================================================================
"""

from __future__ import annotations

from typing import List

import allure
from loguru import logger
from playwright.async_api import Locator

from testsuites.ui_testing.framework.page_base import PageBase
from testsuites.ui_testing.framework.smart_locator import SmartLocator


class SearchResultsPage(PageBase):
    """Search results listing (async)."""

    URL_PATH = "/s"
    PAGE_TITLE = "Search results"

    # Time for the product page to load after clicking a result
    AFTER_CLICK_MS = 5000

    @property
    def _result_selector(self) -> str:
        return SmartLocator.LOCATORS["search_result"]["primary"]

    async def wait_for_results(self, timeout: int = 10000) -> Locator:
        """
        Wait until at least one result is rendered.

        Returns:
            Locator matching every result card
        """
        first = await self.smart.locate("search_result", timeout=timeout)
        await first.wait_for(state="attached", timeout=timeout)
        return self.page.locator(self._result_selector)

    async def get_results_count(self) -> int:
        results = await self.wait_for_results()
        return await results.count()

    async def get_result_titles(self) -> List[str]:
        await self.wait_for_results()
        titles = self.page.locator(SmartLocator.LOCATORS["result_title"]["primary"])
        return [text.strip() for text in await titles.all_inner_texts()]

    @allure.step("Click search result at index {index}")
    async def click_search_result(self, index: int) -> None:
        """
        Open the result at `index` (0-based).

        Falls back to the last result when fewer results are shown.
        """
        results = await self.wait_for_results()
        count = await results.count()
        logger.info(f"Total search results found: {count}")

        if count > index:
            logger.info(f"Clicking on search result at index {index}...")
            await results.nth(index).click()
        elif count > 0:
            logger.warning(
                f"Not enough search results. Only {count} results found, "
                f"clicking the last one"
            )
            await results.nth(count - 1).click()
        else:
            logger.warning("No search results to click")
        await self.wait(self.AFTER_CLICK_MS)

    async def are_results_displayed(self) -> bool:
        try:
            await self.wait_for_results()
            return True
        except Exception:
            return False


__all__ = ["SearchResultsPage"]
