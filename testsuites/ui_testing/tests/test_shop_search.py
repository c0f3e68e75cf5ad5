"""
================================================================================
Shop Search UI Tests (Async / Playwright)
================================================================================

End-to-end product search flow driven by CSV test data:
  home page -> search -> open result by index -> scroll the product page

Search terms and result indices come from `testdata/search_terms.csv`
(header row: searchTerm,resultIndex).

================================================================================
"""

from pathlib import Path

import allure
import pytest

from shoptest_tools.common import get_config
from testsuites.ui_testing.framework.data_reader import read_csv_data
from testsuites.ui_testing.framework.execution_context import ExecutionContext
from testsuites.ui_testing.framework.retry_policy import retry_on_failure
from testsuites.ui_testing.pages import ProductPage, SearchResultsPage, ShopHomePage


PROJECT_ROOT = Path(__file__).resolve().parents[3]
SEARCH_DATA = read_csv_data(
    PROJECT_ROOT / get_config("test_data.search_csv", "testsuites/ui_testing/testdata/search_terms.csv")
)


@allure.epic("UI Testing")
@allure.feature("Product Search")
class TestShopSearch:
    """Search and navigation flow (async)."""

    @allure.story("Search And Navigate")
    @allure.title("Search '{search_term}' and open result {result_index}")
    @allure.severity(allure.severity_level.CRITICAL)
    @pytest.mark.P0
    @pytest.mark.search
    @pytest.mark.retry
    @pytest.mark.regression
    @pytest.mark.asyncio
    @pytest.mark.parametrize("search_term,result_index", SEARCH_DATA)
    @retry_on_failure()
    async def test_product_search(
        self,
        execution_context: ExecutionContext,
        search_results_page: SearchResultsPage,
        product_page: ProductPage,
        search_term: str,
        result_index: str,
    ):
        """Search, open a result and scroll through the product page."""
        ctx = execution_context
        home_page: ShopHomePage = ctx.page
        index = int(result_index)
        test_name = "Shop_Search_" + search_term.replace(" ", "_")
        ctx.start_test(
            test_name,
            f"Search for '{search_term}' and click result at index {index}",
            category="Shop Automation",
            author="Test Framework",
        )

        try:
            with allure.step(f"Search for {search_term}"):
                ctx.report.info(f"Navigating to the shop and searching for: {search_term}")
                await home_page.open()
                ctx.report.attach_evidence(
                    await ctx.evidence.capture_step("Shop_HomePage"), "Shop Homepage Loaded"
                )
                await home_page.search_product(search_term)
                assert await search_results_page.are_results_displayed(), (
                    f"No search results for '{search_term}'"
                )
                titles = await search_results_page.get_result_titles()
                ctx.report.info(f"First results: {titles[:3]}")
                ctx.report.passed(f"Successfully searched for: {search_term}")

            with allure.step(f"Open search result {index}"):
                ctx.report.info(f"Clicking on search result at index: {index}")
                ctx.report.attach_evidence(
                    await ctx.evidence.capture_step("SearchResults_Before_Click"), "Search Results Page"
                )
                await search_results_page.click_search_result(index)
                assert await product_page.is_loaded(), "Product page did not load"
                ctx.report.info(f"Product: {await product_page.get_product_title()}")
                ctx.report.info(f"Price: {await product_page.get_product_price()}")
                ctx.report.attach_evidence(
                    await ctx.evidence.capture_step("ProductPage_After_Click"), "Product Page Loaded"
                )
                ctx.report.passed(f"Successfully clicked on search result at index: {index}")

            with allure.step("Scroll the product page"):
                selector = product_page.VIDEOS_SECTION
                ctx.report.info(f"Scrolling to element: {selector}")
                await product_page.scroll_to_videos_section()
                ctx.report.attach_evidence(
                    await ctx.evidence.capture_step("Element_Found"),
                    f"Element found and scrolled to: {selector}",
                )
                await product_page.scroll_bottom_and_top()
                ctx.report.passed("Scrolled to bottom and back to top")
        except Exception as e:
            await ctx.capture_failure(e)
            raise

        ctx.report.attach_on_pass(
            await ctx.evidence.capture_pass(test_name), "Test completed successfully"
        )
        ctx.report.mark_passed("✅ Shop search test completed successfully")

    @allure.story("Homepage")
    @allure.title("Shop homepage loads with the expected title")
    @allure.severity(allure.severity_level.BLOCKER)
    @pytest.mark.P0
    @pytest.mark.smoke
    @pytest.mark.asyncio
    async def test_homepage_title(self, execution_context: ExecutionContext):
        """Homepage loads and its title names the shop."""
        ctx = execution_context
        home_page: ShopHomePage = ctx.page
        ctx.start_test(
            "Shop_Homepage_Test",
            "Test shop homepage loading and basic elements",
            category="Smoke Test",
        )

        try:
            await home_page.open()
            ctx.report.attach_evidence(
                await ctx.evidence.capture_step("Homepage_Loaded"), "Shop homepage loaded successfully"
            )
            title = await home_page.page_title()
        except Exception as e:
            await ctx.capture_failure(e)
            raise

        if home_page.PAGE_TITLE.lower() in title.lower():
            ctx.report.mark_passed(f"✅ Shop homepage loaded successfully - Title: {title}")
        else:
            ctx.report.mark_failed(f"❌ Unexpected page title: {title}")
        assert home_page.PAGE_TITLE.lower() in title.lower(), f"Unexpected page title: {title}"

    @allure.story("Product Page")
    @allure.title("Product page sections render for '{search_term}'")
    @allure.severity(allure.severity_level.NORMAL)
    @pytest.mark.P2
    @pytest.mark.search
    @pytest.mark.regression
    @pytest.mark.asyncio
    @pytest.mark.parametrize("search_term,result_index", SEARCH_DATA[:1])
    async def test_product_sections(
        self,
        execution_context: ExecutionContext,
        search_results_page: SearchResultsPage,
        product_page: ProductPage,
        search_term: str,
        result_index: str,
    ):
        """At least one of the below-the-fold sections is present."""
        ctx = execution_context
        home_page: ShopHomePage = ctx.page
        ctx.start_test(
            "Shop_Product_Sections",
            f"Scroll through the sections of a '{search_term}' product page",
            category="Shop Automation",
        )

        await home_page.open()
        await home_page.search_product(search_term)
        await search_results_page.click_search_result(int(result_index))

        sections = {
            "Product details": product_page.scroll_to_product_details,
            "Customer reviews": product_page.scroll_to_customer_reviews,
            "Product description": product_page.scroll_to_product_description,
        }
        found = []
        for label, scroll in sections.items():
            with allure.step(f"Scroll to {label}"):
                try:
                    await scroll()
                except Exception as e:
                    ctx.report.warn(f"{label} section not found: {e}")
                    continue
                found.append(label)
                ctx.report.passed(f"{label} section found")

        if found:
            ctx.report.mark_passed(f"Sections found: {', '.join(found)}")
        else:
            ctx.report.mark_failed("No product page section found")
        assert found, "No product page section found"

    @allure.story("Navigation")
    @allure.title("Browser history returns to the homepage and back to the results")
    @allure.severity(allure.severity_level.NORMAL)
    @pytest.mark.P1
    @pytest.mark.regression
    @pytest.mark.asyncio
    async def test_history_navigation(
        self,
        execution_context: ExecutionContext,
        search_results_page: SearchResultsPage,
    ):
        """Back, forward and refresh keep the search flow usable."""
        ctx = execution_context
        home_page: ShopHomePage = ctx.page
        search_term = SEARCH_DATA[0][0]
        ctx.start_test(
            "Shop_History_Navigation",
            "Navigate back and forward between the homepage and search results",
            category="Navigation",
        )

        try:
            await home_page.open()
            await home_page.search_product(search_term)
            count = await search_results_page.get_results_count()
            ctx.report.info(f"{count} results for '{search_term}'")

            await home_page.navigate_back()
            assert await home_page.is_search_box_visible(), "Search box missing after going back"

            await home_page.navigate_forward()
            await search_results_page.refresh()
            assert await search_results_page.are_results_displayed(), (
                "Search results missing after going forward"
            )
        except Exception as e:
            await ctx.capture_failure(e)
            raise

        ctx.report.mark_passed("✅ History navigation works")
