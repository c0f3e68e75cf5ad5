"""
================================================================================
Screenshot Evidence
================================================================================

Screenshot capture for test evidence.

File naming:
    <name>_<yyyy-MM-dd_HH-mm-ss>.png           generic
    <test>_PASS_<timestamp>.png                 passed test
    <test>_FAIL_<timestamp>.png                 failed test
    <step>_STEP_<timestamp>.png                 intermediate step

Capture never raises: a failed capture is logged and returns None, so
evidence problems cannot replace the outcome of the test being recorded.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import time
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from loguru import logger
from playwright.async_api import Page

from shoptest_tools.common import get_config


# Default output directory for screenshots
SCREENSHOT_DIR = Path(get_config("reports.screenshots_dir", "reports/screenshots"))


class ScreenshotCapture:
    """
    Evidence sink bound to one Playwright page.

    Usage:
        evidence = ScreenshotCapture(page)
        path = await evidence.capture_step("Amazon_HomePage")
        report.attach_evidence(path, "Homepage loaded")
    """

    def __init__(
        self,
        page: Optional[Page],
        screenshot_dir: Optional[Union[str, Path]] = None,
        full_page: bool = False,
    ):
        """
        Initialize screenshot capture.

        Args:
            page: Playwright page (None disables capture)
            screenshot_dir: Output directory
            full_page: Capture the full scrollable page
        """
        self.page = page
        self.screenshot_dir = Path(screenshot_dir or SCREENSHOT_DIR)
        self.full_page = full_page

    def _target(self, name: str, suffix: str = "") -> Path:
        self.screenshot_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        return self.screenshot_dir / f"{name}{suffix}_{timestamp}.png"

    async def capture(self, name: str = "screenshot") -> Optional[Path]:
        """
        Capture the current page.

        Args:
            name: Screenshot name (without extension)

        Returns:
            Path to saved screenshot, or None when capture failed
        """
        if self.page is None:
            logger.warning("❌ Cannot take screenshot: page not initialized")
            return None

        try:
            filepath = self._target(name)
            await self.page.screenshot(path=str(filepath), full_page=self.full_page)
            logger.debug(f"📸 Screenshot captured: {filepath.name}")
            return filepath
        except Exception as e:
            logger.warning(f"❌ Failed to capture screenshot '{name}': {e}")
            return None

    async def capture_pass(self, test_name: str) -> Optional[Path]:
        return await self.capture(f"{test_name}_PASS")

    async def capture_fail(self, test_name: str) -> Optional[Path]:
        return await self.capture(f"{test_name}_FAIL")

    async def capture_step(self, step_name: str) -> Optional[Path]:
        return await self.capture(f"{step_name}_STEP")

    async def capture_element(self, selector: str, name: str) -> Optional[Path]:
        """
        Capture a single element.

        Args:
            selector: CSS / XPath selector of the element
            name: Screenshot name

        Returns:
            Path to saved screenshot, or None when capture failed
        """
        if self.page is None:
            logger.warning("❌ Cannot take element screenshot: page not initialized")
            return None

        try:
            filepath = self._target(name, "_element")
            await self.page.locator(selector).first.screenshot(path=str(filepath))
            logger.debug(f"📸 Element screenshot captured: {filepath.name}")
            return filepath
        except Exception as e:
            logger.warning(f"❌ Failed to capture element screenshot '{name}': {e}")
            return None


# =============================================================================
# File Helpers
# =============================================================================

def screenshot_size_kb(path: Union[str, Path]) -> int:
    """Size of a screenshot in KB (0 when missing)."""
    try:
        return Path(path).stat().st_size // 1024
    except OSError:
        return 0


def cleanup_old_screenshots(
    days_old: Optional[int] = None,
    directory: Optional[Union[str, Path]] = None,
) -> int:
    """
    Delete screenshots older than `days_old` days.

    Returns:
        Number of files removed
    """
    if days_old is None:
        days_old = int(get_config("reports.screenshot_retention_days", 7))
    screenshot_dir = Path(directory or SCREENSHOT_DIR)
    if not screenshot_dir.exists():
        return 0

    cutoff = time.time() - days_old * 24 * 60 * 60
    removed = 0
    for file in screenshot_dir.iterdir():
        try:
            if file.is_file() and file.stat().st_mtime < cutoff:
                file.unlink()
                removed += 1
                logger.debug(f"🗑️ Deleted old screenshot: {file.name}")
        except OSError as e:
            logger.warning(f"Error cleaning up {file.name}: {e}")
    return removed


__all__ = [
    "SCREENSHOT_DIR",
    "ScreenshotCapture",
    "screenshot_size_kb",
    "cleanup_old_screenshots",
]
