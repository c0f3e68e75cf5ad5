"""
================================================================================
Link Validator
================================================================================

One-page hyperlink validation for the shop UI suites.

Pipeline:
    1. Acquire   - anchor hrefs of the rendered page, in DOM order
    2. Filter    - keep http(s) links only (no javascript:/mailto:/tel:/#)
    3. Bound     - at most `max_links` candidates (20 full, 5 quick)
    4. Check     - HEAD liveness probe per candidate (5s connect / 5s read)
    5. Aggregate - working/broken counts, success rate, tiered outcome
    6. Report    - summary + completion screenshot

A single link failing is data (a Broken LinkRecord), never an exception.
Failing to obtain the link list at all raises AcquisitionFailure.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, List, Optional, Protocol, Sequence, Tuple

import allure
import httpx
from loguru import logger

from shoptest_tools.common import get_config
from shoptest_tools.report_tools import LogLevel, ReportSink, attach_link_table


DEFAULT_MAX_LINKS = 20
QUICK_MAX_LINKS = 5
DEFAULT_CONNECT_TIMEOUT_MS = 5000
DEFAULT_READ_TIMEOUT_MS = 5000
DEFAULT_PACING_MS = 100
DEFAULT_CONCURRENCY = 1
WARNING_THRESHOLD_PERCENT = 90.0
SUMMARY_BROKEN_LIMIT = 5

EXCLUDED_PREFIXES = ("javascript:", "mailto:", "tel:", "#")
ALLOWED_SCHEMES = ("http://", "https://")


class AcquisitionFailure(Exception):
    """Raised when the page's link list cannot be obtained at all."""
    pass


class TransportError(Exception):
    """Raised by a liveness probe when no HTTP status could be obtained."""
    pass


class LinkStatus(str, Enum):
    WORKING = "working"
    BROKEN = "broken"


class Outcome(str, Enum):
    PASS = "pass"
    PASS_WITH_WARNINGS = "pass_with_warnings"
    FAIL = "fail"


# =============================================================================
# Data Model
# =============================================================================

@dataclass(frozen=True)
class LinkRecord:
    """
    Liveness result for one candidate URL.

    Attributes:
        url: Checked URL
        status: WORKING or BROKEN
        http_status: Response code, None on transport errors
        error: Transport error message, None when a response arrived
    """
    url: str
    status: LinkStatus
    http_status: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def from_status_code(cls, url: str, status_code: int) -> "LinkRecord":
        status = LinkStatus.BROKEN if status_code >= 400 else LinkStatus.WORKING
        return cls(url=url, status=status, http_status=status_code)

    @classmethod
    def from_error(cls, url: str, error: str) -> "LinkRecord":
        return cls(url=url, status=LinkStatus.BROKEN, error=error)

    @property
    def is_broken(self) -> bool:
        return self.status == LinkStatus.BROKEN


@dataclass(frozen=True)
class Verdict:
    """Aggregated classification of one validation pass."""
    broken_count: int
    working_count: int
    success_rate_percent: float
    outcome: Outcome

    @classmethod
    def from_counts(
        cls,
        working_count: int,
        broken_count: int,
        warning_threshold_percent: float = WARNING_THRESHOLD_PERCENT,
    ) -> "Verdict":
        checked = working_count + broken_count
        success_rate = (working_count / checked * 100) if checked else 0.0

        if broken_count == 0:
            outcome = Outcome.PASS
        elif success_rate >= warning_threshold_percent:
            outcome = Outcome.PASS_WITH_WARNINGS
        else:
            outcome = Outcome.FAIL

        return cls(
            broken_count=broken_count,
            working_count=working_count,
            success_rate_percent=success_rate,
            outcome=outcome,
        )

    @property
    def checked_count(self) -> int:
        return self.working_count + self.broken_count

    @property
    def passed(self) -> bool:
        """True for PASS and PASS_WITH_WARNINGS."""
        return self.outcome != Outcome.FAIL


@dataclass
class LinkCheckSession:
    """Working/broken records of one page-validation run."""
    max_links_to_check: int = DEFAULT_MAX_LINKS
    page_url: str = ""
    total_anchors: int = 0
    candidates_found: int = 0
    truncated: bool = False
    checked_count: int = 0
    working: List[LinkRecord] = field(default_factory=list)
    broken: List[LinkRecord] = field(default_factory=list)

    def add(self, record: LinkRecord) -> None:
        if self.checked_count >= self.max_links_to_check:
            raise ValueError(
                f"Link cap of {self.max_links_to_check} already reached"
            )
        self.checked_count += 1
        if record.is_broken:
            self.broken.append(record)
        else:
            self.working.append(record)

    @property
    def records(self) -> List[LinkRecord]:
        return self.working + self.broken

    def verdict(self, warning_threshold_percent: float = WARNING_THRESHOLD_PERCENT) -> Verdict:
        return Verdict.from_counts(
            working_count=len(self.working),
            broken_count=len(self.broken),
            warning_threshold_percent=warning_threshold_percent,
        )


@dataclass(frozen=True)
class LinkCheckResult:
    """What a validation pass hands back to the test."""
    verdict: Verdict
    session: LinkCheckSession
    evidence: Optional[Path] = None


# =============================================================================
# Filtering
# =============================================================================

def is_valid_link(href: Optional[str]) -> bool:
    """
    Decide whether an anchor href is a liveness-check candidate.

    Excluded: None/empty, javascript:, mailto:, tel:, in-page #fragments,
    and anything not starting with http:// or https://.
    """
    if not href:
        return False
    if href.startswith(EXCLUDED_PREFIXES):
        return False
    return href.startswith(ALLOWED_SCHEMES)


def filter_candidates(
    hrefs: Iterable[Optional[str]],
    dedupe: bool = False,
) -> List[str]:
    """Valid hrefs in DOM order, optionally keeping first occurrences only."""
    candidates: List[str] = []
    seen = set()
    for href in hrefs:
        if not is_valid_link(href):
            continue
        if dedupe:
            if href in seen:
                continue
            seen.add(href)
        candidates.append(href)
    return candidates


# =============================================================================
# Collaborators
# =============================================================================

class AnchorSource(Protocol):
    """Browser side of the validator (implemented by BasePage)."""

    async def rendered_anchor_hrefs(self) -> Sequence[Optional[str]]: ...

    async def current_url(self) -> str: ...

    async def navigate_to_url(self, url: str) -> None: ...


class LinkProbe(Protocol):
    async def probe(
        self,
        url: str,
        connect_timeout_ms: int = DEFAULT_CONNECT_TIMEOUT_MS,
        read_timeout_ms: int = DEFAULT_READ_TIMEOUT_MS,
    ) -> int: ...


class EvidenceSink(Protocol):
    async def capture(self, name: str) -> Optional[Path]: ...


class HttpLinkProbe:
    """
    HEAD-request liveness probe built on httpx.

    Usage:
        async with HttpLinkProbe() as probe:
            status = await probe.probe("https://www.example.com")
    """

    DEFAULT_HEADERS = {
        "User-Agent": (
            "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
        ),
    }

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        follow_redirects: bool = True,
    ):
        """
        Initialize probe.

        Args:
            client: Pre-built client (e.g. with a mock transport).
                A private client is created lazily when omitted.
            follow_redirects: Follow 3xx responses to their final status
        """
        self._client = client
        self._owns_client = client is None
        self.follow_redirects = follow_redirects

    async def __aenter__(self) -> "HttpLinkProbe":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(headers=self.DEFAULT_HEADERS)
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def probe(
        self,
        url: str,
        connect_timeout_ms: int = DEFAULT_CONNECT_TIMEOUT_MS,
        read_timeout_ms: int = DEFAULT_READ_TIMEOUT_MS,
    ) -> int:
        """
        Issue a HEAD request and return the status code.

        Raises:
            TransportError: timeout, DNS failure, refused connection, bad URL
        """
        timeout = httpx.Timeout(
            connect=connect_timeout_ms / 1000,
            read=read_timeout_ms / 1000,
            write=read_timeout_ms / 1000,
            pool=connect_timeout_ms / 1000,
        )
        try:
            response = await self._get_client().head(
                url,
                timeout=timeout,
                follow_redirects=self.follow_redirects,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(str(e) or type(e).__name__) from e
        return response.status_code


# =============================================================================
# Validator
# =============================================================================

class LinkValidator:
    """
    Validates the outbound links of the currently rendered page.

    Usage:
        async with LinkValidator(report_sink=report, evidence_sink=evidence) as validator:
            result = await validator.validate_url(home_page, "https://www.amazon.com")
        assert result.verdict.passed
    """

    def __init__(
        self,
        probe: Optional[LinkProbe] = None,
        report_sink: Optional[ReportSink] = None,
        evidence_sink: Optional[EvidenceSink] = None,
        max_links: Optional[int] = None,
        connect_timeout_ms: Optional[int] = None,
        read_timeout_ms: Optional[int] = None,
        pacing_ms: Optional[int] = None,
        concurrency: Optional[int] = None,
        warning_threshold_percent: Optional[float] = None,
        summary_broken_limit: Optional[int] = None,
        settle_ms: Optional[int] = None,
        dedupe: bool = False,
        sleep=asyncio.sleep,
    ):
        """
        Initialize validator. Unset values come from the `links.*` config.

        Args:
            probe: Liveness probe (HttpLinkProbe when omitted)
            report_sink: Receives per-link entries and the summary
            evidence_sink: Captures the completion screenshot
            max_links: Default candidate cap
            connect_timeout_ms: Probe connect timeout
            read_timeout_ms: Probe read timeout
            pacing_ms: Delay between consecutive checks
            concurrency: Checks allowed in flight at once (1 = sequential)
            warning_threshold_percent: Minimum success rate for PASS_WITH_WARNINGS
            summary_broken_limit: Broken URLs listed in the summary
            settle_ms: Wait before reading the anchors of a freshly loaded page
            dedupe: Check each distinct URL once
            sleep: Async pause function (replaceable in tests)
        """
        self.probe = probe or HttpLinkProbe()
        self._owns_probe = probe is None
        self.report_sink = report_sink
        self.evidence_sink = evidence_sink
        self.max_links = _link_cap(_setting(max_links, "links.max_links", DEFAULT_MAX_LINKS, int))
        self.connect_timeout_ms = _setting(
            connect_timeout_ms, "links.connect_timeout_ms", DEFAULT_CONNECT_TIMEOUT_MS, int
        )
        self.read_timeout_ms = _setting(
            read_timeout_ms, "links.read_timeout_ms", DEFAULT_READ_TIMEOUT_MS, int
        )
        self.pacing_ms = _setting(pacing_ms, "links.pacing_ms", DEFAULT_PACING_MS, int)
        self.concurrency = max(
            1, _setting(concurrency, "links.concurrency", DEFAULT_CONCURRENCY, int)
        )
        self.warning_threshold_percent = _setting(
            warning_threshold_percent,
            "links.warning_threshold_percent",
            WARNING_THRESHOLD_PERCENT,
            float,
        )
        self.summary_broken_limit = _setting(
            summary_broken_limit, "links.summary_broken_limit", SUMMARY_BROKEN_LIMIT, int
        )
        self.settle_ms = _setting(settle_ms, "links.settle_ms", 0, int)
        self.dedupe = dedupe
        self._sleep = sleep

    async def __aenter__(self) -> "LinkValidator":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client of a probe this validator created."""
        if self._owns_probe:
            await self.probe.aclose()

    # =========================================================================
    # Entry Points
    # =========================================================================

    async def validate_url(
        self,
        browser: AnchorSource,
        url: str,
        max_links: Optional[int] = None,
    ) -> LinkCheckResult:
        """
        Navigate to a URL and validate its links.

        Raises:
            AcquisitionFailure: navigation or anchor extraction failed
            ValueError: max_links is negative
        """
        if max_links is not None:
            _link_cap(max_links)
        self._report(LogLevel.INFO, f"Navigating to URL for link testing: {url}")
        try:
            await browser.navigate_to_url(url)
        except Exception as e:
            self._report(LogLevel.FAIL, f"Error during link checking: {e}")
            raise AcquisitionFailure(f"Could not load {url}: {e}") from e

        if self.settle_ms > 0:
            await self._sleep(self.settle_ms / 1000)
        return await self.validate_page(browser, max_links=max_links)

    async def validate_page(
        self,
        browser: AnchorSource,
        max_links: Optional[int] = None,
    ) -> LinkCheckResult:
        """
        Validate the links of the page the browser currently shows.

        Args:
            browser: Anchor source (page object)
            max_links: Candidate cap for this pass (QUICK_MAX_LINKS for a
                quick check); defaults to the validator's cap

        Raises:
            AcquisitionFailure: the anchor list could not be obtained
            ValueError: max_links is negative
        """
        cap = self.max_links if max_links is None else _link_cap(max_links)

        with allure.step(f"Validate links (max {cap})"):
            try:
                page_url = await browser.current_url()
                hrefs = list(await browser.rendered_anchor_hrefs())
            except Exception as e:
                self._report(LogLevel.FAIL, f"Error during link checking: {e}")
                raise AcquisitionFailure(f"Could not read page links: {e}") from e

            self._report(LogLevel.INFO, f"Checking links on page: {page_url}")
            self._report(LogLevel.INFO, f"Total links found on page: {len(hrefs)}")

            session = await self.check_links(hrefs, max_links=cap)
            session.page_url = page_url

            verdict = session.verdict(self.warning_threshold_percent)
            evidence = await self.report_summary(session, verdict)
            return LinkCheckResult(verdict=verdict, session=session, evidence=evidence)

    async def check_links(
        self,
        hrefs: Iterable[Optional[str]],
        max_links: Optional[int] = None,
    ) -> LinkCheckSession:
        """
        Filter, bound and probe raw hrefs.

        Records keep discovery order even when checks run concurrently.
        """
        hrefs = list(hrefs)
        cap = self.max_links if max_links is None else _link_cap(max_links)
        candidates, truncated = self.select_candidates(hrefs, cap)

        session = LinkCheckSession(
            max_links_to_check=cap,
            total_anchors=len(hrefs),
            candidates_found=len(filter_candidates(hrefs, dedupe=self.dedupe)),
            truncated=truncated,
        )
        if truncated:
            self._report(
                LogLevel.INFO,
                f"Limited check to first {cap} links for performance "
                f"({session.candidates_found - cap} not checked)",
            )

        semaphore = asyncio.Semaphore(self.concurrency)

        async def run(position: int, url: str) -> LinkRecord:
            async with semaphore:
                if position and self.pacing_ms > 0:
                    await self._sleep(self.pacing_ms / 1000)
                self._report(LogLevel.INFO, f"Checking link {position + 1}: {url}")
                return await self.check_link(url)

        records = await asyncio.gather(
            *(run(position, url) for position, url in enumerate(candidates))
        )
        for record in records:
            session.add(record)
        return session

    def select_candidates(
        self,
        hrefs: Iterable[Optional[str]],
        max_links: int,
    ) -> Tuple[List[str], bool]:
        """
        Apply the filter and the cap.

        Returns:
            (first `max_links` candidates in DOM order, whether more existed)
        """
        candidates = filter_candidates(hrefs, dedupe=self.dedupe)
        return candidates[:max_links], len(candidates) > max_links

    async def check_link(self, url: str) -> LinkRecord:
        """Probe one URL. Never raises for link-level problems."""
        try:
            status_code = await self.probe.probe(
                url,
                connect_timeout_ms=self.connect_timeout_ms,
                read_timeout_ms=self.read_timeout_ms,
            )
        except TransportError as e:
            self._report(LogLevel.FAIL, f"Exception for Link: {url} - {e}")
            return LinkRecord.from_error(url, str(e))
        except Exception as e:
            self._report(LogLevel.FAIL, f"Exception for Link: {url} - {e}")
            return LinkRecord.from_error(url, str(e) or type(e).__name__)

        record = LinkRecord.from_status_code(url, status_code)
        if record.is_broken:
            self._report(LogLevel.FAIL, f"Broken Link: {url} (Response Code: {status_code})")
        else:
            self._report(LogLevel.PASS, f"Working Link: {url} (Response Code: {status_code})")
        return record

    # =========================================================================
    # Reporting
    # =========================================================================

    def summary_lines(self, session: LinkCheckSession) -> List[Tuple[LogLevel, str]]:
        """Summary entries: counts, first broken URLs, omitted count."""
        lines = [
            (LogLevel.INFO, "=== Link Check Summary ==="),
            (LogLevel.INFO, f"Working links: {len(session.working)}"),
            (LogLevel.INFO, f"Broken links: {len(session.broken)}"),
        ]
        if session.broken:
            lines.append((LogLevel.WARN, "Broken links found:"))
            for index, record in enumerate(session.broken[:self.summary_broken_limit], start=1):
                lines.append((LogLevel.FAIL, f"Broken Link {index}: {record.url}"))
            omitted = len(session.broken) - self.summary_broken_limit
            if omitted > 0:
                lines.append((LogLevel.INFO, f"... and {omitted} more broken links"))
        return lines

    async def report_summary(
        self,
        session: LinkCheckSession,
        verdict: Verdict,
    ) -> Optional[Path]:
        """Emit the summary and capture the completion screenshot."""
        for level, message in self.summary_lines(session):
            self._report(level, message)
        self._report(
            LogLevel.INFO,
            f"Success rate: {verdict.success_rate_percent:.1f}% -> {verdict.outcome.value}",
        )

        try:
            attach_link_table(session.records)
        except Exception as e:
            logger.warning(f"Could not attach link table: {e}")

        evidence = None
        if self.evidence_sink is not None:
            try:
                evidence = await self.evidence_sink.capture("Link_Check_Complete")
            except Exception as e:
                logger.warning(f"Could not capture link check screenshot: {e}")
            if evidence is not None and self.report_sink is not None:
                try:
                    self.report_sink.attach_evidence(evidence, "Link checking completed")
                except Exception as e:
                    logger.warning(f"Could not attach link check screenshot: {e}")
        return evidence

    def _report(self, level: LogLevel, message: str) -> None:
        if self.report_sink is None:
            logger.debug(message)
            return
        try:
            self.report_sink.log(level, message)
        except Exception as e:
            logger.warning(f"Could not write link check entry to report: {e}")


def _setting(value: Any, key: str, default: Any, cast):
    if value is not None:
        return cast(value)
    return cast(get_config(key, default))


def _link_cap(value: int) -> int:
    if value < 0:
        raise ValueError(f"max_links must be >= 0, got {value}")
    return value


__all__ = [
    "DEFAULT_MAX_LINKS",
    "QUICK_MAX_LINKS",
    "AcquisitionFailure",
    "TransportError",
    "LinkStatus",
    "Outcome",
    "LinkRecord",
    "Verdict",
    "LinkCheckSession",
    "LinkCheckResult",
    "is_valid_link",
    "filter_candidates",
    "HttpLinkProbe",
    "LinkValidator",
]
