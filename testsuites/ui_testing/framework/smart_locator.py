"""
================================================================================
Smart Locator with Ordered Fallbacks
================================================================================

Element location for the shop pages:
    - Multiple locator strategies per element, tried in declaration order
    - First strategy that resolves a visible element wins
    - Usage analytics flag elements whose primary selector went stale

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from loguru import logger
from playwright.async_api import Locator, Page


class ElementNotFoundError(Exception):
    """Raised when all locator strategies fail to find element."""
    pass


@dataclass
class LocatorHealth:
    """
    Tracks locator health and usage statistics.

    Attributes:
        element_name: Human-readable element name
        primary_selector: The preferred selector
        used_fallback: Whether a fallback was used
        fallback_name: Name of fallback used (if any)
        fallback_selector: The fallback selector used (if any)
    """
    element_name: str
    primary_selector: str
    used_fallback: bool = False
    fallback_name: Optional[str] = None
    fallback_selector: Optional[str] = None


class SmartLocator:
    """
    Smart element locator with fallback strategies.

    Locator Priority Order:
        1. id (most stable on the shop pages)
        2. name / data attributes
        3. CSS attribute selectors
        4. XPath (last resort)

    Usage:
        >>> smart = SmartLocator(page)
        >>> await smart.fill("search_box", "wireless mouse")
        >>> await smart.click("search_button")

    Configuration:
        Locators are defined in the LOCATORS dictionary. Each element
        can have multiple fallback strategies.
    """

    # Format: element_name -> {strategy_name: selector}
    LOCATORS: Dict[str, Dict[str, str]] = {
        # Header search
        "search_box": {
            "primary": "#twotabsearchtextbox",
            "fallback_1": "input[name='field-keywords']",
            "fallback_2": "input[type='text'][placeholder*='Search']",
        },
        "search_button": {
            "primary": "#nav-search-submit-button",
            "fallback_1": "input[type='submit'][value='Go']",
            "fallback_2": "[aria-label='Go']",
        },

        # Search results
        "search_result": {
            "primary": "xpath=//div[@data-cy='title-recipe']",
            "fallback_1": "[data-component-type='s-search-result']",
        },
        "result_title": {
            "primary": "xpath=//h2[@class='a-size-mini']//span",
            "fallback_1": "[data-cy='title-recipe'] h2 span",
        },

        # Product detail
        "product_title": {
            "primary": "#productTitle",
            "fallback_1": "h1#title span",
        },
        "product_price": {
            "primary": "xpath=//span[@class='a-price-whole']",
            "fallback_1": "#corePrice_feature_div .a-price-whole",
        },
        "product_images": {
            "primary": "#imgTagWrapperId",
            "fallback_1": "#landingImage",
        },
        "product_description": {
            "primary": "#feature-bullets",
        },
        "customer_reviews": {
            "primary": "xpath=//div[@data-hook='review-body']",
            "fallback_1": "#customerReviews",
        },
        "videos_section": {
            "primary": "xpath=//span[@aria-label='Videos for similar products']",
            "fallback_1": "#vse-related-videos",
        },
        "product_details": {
            "primary": "#detailBullets_feature_div",
            "fallback_1": "#productDetails_feature_div",
        },
    }

    def __init__(
        self,
        page: Page,
        element_name: Optional[str] = None,
        locators: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize SmartLocator with Playwright page.

        This class supports two usage styles:
        1) **Library mode**: `SmartLocator(page)` then `await smart.click("search_button")`
           using the class-level `LOCATORS` map.
        2) **Element mode**: `SmartLocator(page, element_name="X", locators={...})`
           then `await element.locate()` to resolve a single element with fallbacks.

        Args:
            page: Playwright Page object
            element_name: Optional human-readable element name (element mode)
            locators: Optional locator map (element mode)
        """
        self.page = page
        self._element_name = element_name
        self._element_locators = locators
        self._health_records: List[LocatorHealth] = []
        self._fallback_used: Dict[str, LocatorHealth] = {}

    async def locate(
        self,
        target: Optional[Union[str, Dict[str, str]]] = None,
        timeout: int = 5000,
        element_name: Optional[str] = None,
        custom_locators: Optional[Dict[str, str]] = None,
    ) -> Locator:
        """
        Locate element using smart fallback strategy.

        Tries each locator strategy in order until one succeeds.

        Args:
            target: Either an element key (str) to look up in `LOCATORS`,
                a locator map (dict) with primary/fallback selectors, or None
                to use the instance's stored locator map (element mode).
            timeout: Timeout in milliseconds for each attempt
            element_name: Optional human-readable name (used for logging).
            custom_locators: Override default locators when `target` is a string key.

        Returns:
            Playwright Locator for the found element

        Raises:
            ElementNotFoundError: When all strategies fail
        """
        if isinstance(target, dict):
            locators = target
            display_name = element_name or self._element_name or "custom_element"
        elif isinstance(target, str):
            locators = custom_locators or self.LOCATORS.get(target, {})
            display_name = target
        else:
            locators = self._element_locators or {}
            display_name = element_name or self._element_name or "custom_element"

        if not locators:
            raise ElementNotFoundError(
                f"No locators defined for element: {display_name}"
            )

        errors = []

        for strategy_name, selector in locators.items():
            try:
                locator = self.page.locator(selector).first
                await locator.wait_for(state="visible", timeout=timeout)

                health = LocatorHealth(
                    element_name=display_name,
                    primary_selector=locators.get("primary", selector),
                    used_fallback=(strategy_name != "primary"),
                    fallback_name=strategy_name if strategy_name != "primary" else None,
                    fallback_selector=selector if strategy_name != "primary" else None,
                )
                self._health_records.append(health)

                if strategy_name != "primary":
                    logger.warning(
                        f"⚠️ Element '{display_name}' used fallback: "
                        f"{strategy_name} -> {selector}"
                    )
                    self._fallback_used[display_name] = health
                else:
                    logger.debug(f"✅ Element '{display_name}' found: {selector}")

                return locator

            except Exception as e:
                errors.append(f"{strategy_name}: {selector} -> {str(e)[:50]}")
                continue

        error_msg = (
            f"❌ All locators failed for '{display_name}':\n" +
            "\n".join(f"  - {err}" for err in errors)
        )
        logger.error(error_msg)
        raise ElementNotFoundError(error_msg)

    async def click(
        self,
        target: Union[str, Dict[str, str]],
        timeout: int = 5000,
        element_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        """Click element using smart location."""
        locator = await self.locate(target, timeout=timeout, element_name=element_name)
        await locator.click(**kwargs)

    async def fill(
        self,
        target: Union[str, Dict[str, str]],
        value: str,
        timeout: int = 5000,
        element_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        """Clear and fill an input element using smart location."""
        locator = await self.locate(target, timeout=timeout, element_name=element_name)
        await locator.fill(value, **kwargs)

    async def get_text(
        self,
        target: Union[str, Dict[str, str]],
        timeout: int = 5000,
        element_name: Optional[str] = None,
    ) -> str:
        """
        Get text content of element.

        Returns:
            Text content of element (stripped)
        """
        locator = await self.locate(target, timeout=timeout, element_name=element_name)
        return (await locator.text_content() or "").strip()

    async def is_visible(
        self,
        target: Union[str, Dict[str, str]],
        timeout: int = 2000,
        element_name: Optional[str] = None,
    ) -> bool:
        """Check if element is visible."""
        try:
            locator = await self.locate(target, timeout=timeout, element_name=element_name)
            return await locator.is_visible()
        except ElementNotFoundError:
            return False

    def get_health_report(self) -> str:
        """
        Generate locator health report.

        Lists elements that needed a fallback selector (maintenance candidates).
        """
        if not self._fallback_used:
            return "✅ All elements used primary locators. No maintenance needed."

        report_lines = [
            "⚠️ Locator Health Report - Fallbacks Used:",
            "",
            "The following elements used fallback locators.",
            "Consider updating the primary selectors:",
            "",
        ]

        for element_name, health in self._fallback_used.items():
            report_lines.extend([
                f"  [{element_name}]",
                f"    Failed primary: {health.primary_selector}",
                f"    Used: {health.fallback_name} -> {health.fallback_selector}",
                "",
            ])

        return "\n".join(report_lines)

    def register_locator(
        self,
        element_name: str,
        locators: Dict[str, str],
    ) -> None:
        """
        Register new locator at runtime.

        Args:
            element_name: Unique name for the element
            locators: Dictionary of strategy -> selector
        """
        self.LOCATORS[element_name] = locators
        logger.debug(f"Registered new locator: {element_name}")


__all__ = [
    "SmartLocator",
    "ElementNotFoundError",
    "LocatorHealth",
]
