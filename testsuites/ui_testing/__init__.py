"""Playwright UI automation for the shop: framework, page objects and live suites."""
