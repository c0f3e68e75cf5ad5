"""
================================================================================
Execution Context
================================================================================

Per-test bundle of the collaborators a UI test needs: the page object, the
report sink, the evidence sink and configuration. Tests receive one context
from the `execution_context` fixture instead of reaching for globals.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from loguru import logger

from shoptest_tools.common import get_config
from shoptest_tools.report_tools import AllureReportSink, LogLevel, attach_json

from .evidence import ScreenshotCapture
from .link_validator import LinkCheckResult, LinkProbe, LinkValidator, Outcome
from .page_base import BasePage


@dataclass
class ExecutionContext:
    """
    Collaborators of one running test.

    Attributes:
        page: Page object driving the browser
        report: Report sink receiving structured entries
        evidence: Screenshot capture bound to the same browser page
        config: Overrides consulted before the `ui.*`/`links.*` configuration
        test_name: Name of the current report test
    """
    page: BasePage
    report: AllureReportSink
    evidence: ScreenshotCapture
    config: Dict[str, Any] = field(default_factory=dict)
    test_name: Optional[str] = None

    def setting(self, key: str, default: Any = None) -> Any:
        """Context override first, then configuration."""
        if key in self.config:
            return self.config[key]
        return get_config(key, default)

    def start_test(
        self,
        name: str,
        description: str = "",
        category: Optional[str] = None,
        author: Optional[str] = None,
    ) -> None:
        """Open a report test and tag it."""
        self.test_name = name
        self.report.create_test(name, description)
        if category:
            self.report.add_category(category)
        if author:
            self.report.add_author(author)

    def link_validator(self, probe: Optional[LinkProbe] = None, **options: Any) -> LinkValidator:
        """
        Build a LinkValidator wired to this context's sinks.

        Args:
            probe: Liveness probe (HttpLinkProbe when omitted)
            **options: LinkValidator keyword overrides
        """
        options.setdefault("concurrency", self.setting("links.concurrency"))
        return LinkValidator(
            probe=probe,
            report_sink=self.report,
            evidence_sink=self.evidence,
            **options,
        )

    def report_link_verdict(self, result: LinkCheckResult) -> None:
        """Translate a link verdict into the report outcome."""
        verdict = result.verdict
        try:
            attach_json(
                {
                    "page_url": result.session.page_url,
                    "outcome": verdict.outcome.value,
                    "checked": verdict.checked_count,
                    "working": verdict.working_count,
                    "broken": verdict.broken_count,
                    "success_rate_percent": round(verdict.success_rate_percent, 2),
                    "truncated": result.session.truncated,
                },
                name="Link Check Verdict",
            )
        except Exception as e:
            logger.warning(f"Could not attach link verdict: {e}")
        if verdict.outcome == Outcome.PASS:
            self.report.mark_passed("All links are working properly")
        elif verdict.outcome == Outcome.PASS_WITH_WARNINGS:
            self.report.log(
                LogLevel.WARN,
                f"Some broken links found but {verdict.success_rate_percent:.1f}% "
                f"of links are working",
            )
            self.report.mark_passed("Link check passed with warnings")
        else:
            self.report.mark_failed(
                f"Too many broken links: {verdict.broken_count} of "
                f"{verdict.checked_count} checked "
                f"({verdict.success_rate_percent:.1f}% working)"
            )

    async def capture_failure(self, error: BaseException) -> None:
        """Record a failed test with its screenshot. Never raises."""
        name = self.test_name or "test"
        try:
            handle = await self.evidence.capture_fail(name)
            self.report.attach_on_fail(handle, f"Test failed: {error}")
            self.report.mark_failed(str(error) or type(error).__name__)
        except Exception as e:
            logger.warning(f"Could not record failure evidence for '{name}': {e}")


__all__ = [
    "ExecutionContext",
]
