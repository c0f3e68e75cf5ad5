"""
================================================================================
Page Objects
================================================================================

Page Object Model implementations for the shop pages.

Each page class encapsulates:
    - Element locators (through SmartLocator)
    - Page-specific actions
    - Verification methods

Author: Automation Team
License: MIT
================================================================================
"""

from .home_page import ShopHomePage
from .search_results_page import SearchResultsPage
from .product_page import ProductPage

__all__ = [
    "ShopHomePage",
    "SearchResultsPage",
    "ProductPage",
]
