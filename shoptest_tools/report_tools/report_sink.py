"""
================================================================================
Report Sink
================================================================================

Structured per-test reporting for the shop UI suites.

Every entry is written to three places:
    - loguru (console / log file)
    - the running Allure test (steps and attachments)
    - an in-memory record that is flushed to a JSON run summary

All calls are best-effort: a failing sink logs a warning and returns, it
never raises into the test or into the retry / link-validation logic.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
import os
import platform
import getpass
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

import allure
from loguru import logger

from shoptest_tools.common import get_config, safe_json_serialize


class LogLevel(str, Enum):
    """Report entry severity."""
    INFO = "info"
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"
    SKIP = "skip"


# Console prefix per level (matches the run summary in run_tests.py)
LEVEL_PREFIX: Dict[LogLevel, str] = {
    LogLevel.INFO: "ℹ️",
    LogLevel.PASS: "✅",
    LogLevel.FAIL: "❌",
    LogLevel.WARN: "⚠️",
    LogLevel.SKIP: "⏭️",
}


@dataclass
class ReportEntry:
    """Single log line recorded against a test."""
    level: LogLevel
    message: str
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())


@dataclass
class EvidenceAttachment:
    """Screenshot (or other file) attached to a test."""
    handle: str
    description: str
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())


@dataclass
class TestReport:
    """Everything recorded for one named test."""
    __test__ = False  # not a pytest test class

    name: str
    description: str = ""
    status: str = "running"
    attempts: int = 1
    categories: List[str] = field(default_factory=list)
    authors: List[str] = field(default_factory=list)
    entries: List[ReportEntry] = field(default_factory=list)
    evidence: List[EvidenceAttachment] = field(default_factory=list)
    started_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def retried(self) -> bool:
        return self.attempts > 1

    def messages(self, level: Optional[LogLevel] = None) -> List[str]:
        """Return logged messages, optionally filtered by level."""
        return [
            entry.message for entry in self.entries
            if level is None or entry.level == level
        ]


class ReportSink(Protocol):
    """Reporting contract consumed by RetryPolicy and LinkValidator."""

    def create_test(self, name: str, description: str = "") -> Optional[TestReport]: ...

    def log(self, level: LogLevel, message: str) -> None: ...

    def attach_evidence(self, handle: Optional[Union[str, Path]], description: str) -> None: ...

    def mark_passed(self, message: str) -> None: ...

    def mark_failed(self, message: str) -> None: ...

    def flush(self) -> Optional[Path]: ...


class AllureReportSink:
    """
    Allure-backed report sink with an in-memory record of the run.

    One sink holds the tests of a run and a pointer to the current test.
    Each ExecutionContext carries its sink explicitly, so parallel workers
    (pytest-xdist) each own a separate sink and summary file.

    Usage:
        >>> report = AllureReportSink()
        >>> report.create_test("Broken_Links_Test", "Check links on the homepage")
        >>> report.log(LogLevel.INFO, "Total links found on page: 120")
        >>> report.mark_passed("All links are working properly")
        >>> report.flush()
    """

    def __init__(
        self,
        reports_dir: Optional[Union[str, Path]] = None,
        run_name: Optional[str] = None,
        attach_to_allure: bool = True,
    ):
        """
        Initialize report sink.

        Args:
            reports_dir: Output directory for the JSON run summary
            run_name: Report title written into the summary
            attach_to_allure: Mirror entries into the running Allure test
        """
        self.reports_dir = Path(reports_dir or get_config("reports.dir", "reports"))
        self.run_name = run_name or get_config("reports.run_name", "Shop Automation Results")
        self.attach_to_allure = attach_to_allure
        self.tests: List[TestReport] = []
        self.system_info: Dict[str, str] = {
            "OS": platform.system(),
            "Python Version": platform.python_version(),
            "User": _current_user(),
            "Browser": str(get_config("ui.browser", "chromium")),
            "Environment": str(get_config("ui.base_url", "")),
        }
        self._current: Optional[TestReport] = None
        self._created_at = datetime.now()

    # =========================================================================
    # Test Lifecycle
    # =========================================================================

    @property
    def current_test(self) -> Optional[TestReport]:
        """Test that new entries are recorded against."""
        return self._current

    def create_test(self, name: str, description: str = "") -> Optional[TestReport]:
        """
        Start a new named test and make it current.

        Opening the current test again before it passed (a retried attempt)
        reuses its record: the status goes back to running and the attempt
        count grows, so the run summary holds one entry per test.

        Args:
            name: Test name
            description: Human-readable description
        """
        try:
            current = self._current
            if current is not None and current.name == name and current.status != "passed":
                current.status = "running"
                current.attempts += 1
                logger.info(f"🔁 Test restarted: {name} (attempt {current.attempts})")
                return current

            test = TestReport(name=name, description=description)
            self.tests.append(test)
            self._current = test
            if self.attach_to_allure:
                allure.dynamic.title(name)
                if description:
                    allure.dynamic.description(description)
            logger.info(f"📝 Test started: {name}")
            return test
        except Exception as e:
            logger.warning(f"Could not create report test '{name}': {e}")
            return None

    def add_category(self, category: str) -> None:
        """Assign a category (Allure tag) to the current test."""
        if self._current is None:
            return
        try:
            if category in self._current.categories:
                return
            self._current.categories.append(category)
            if self.attach_to_allure:
                allure.dynamic.tag(category)
        except Exception as e:
            logger.warning(f"Could not add category '{category}': {e}")

    def add_author(self, author: str) -> None:
        """Assign an author (Allure owner label) to the current test."""
        if self._current is None:
            return
        try:
            if author in self._current.authors:
                return
            self._current.authors.append(author)
            if self.attach_to_allure:
                allure.dynamic.label("owner", author)
        except Exception as e:
            logger.warning(f"Could not add author '{author}': {e}")

    # =========================================================================
    # Logging
    # =========================================================================

    def log(self, level: LogLevel, message: str) -> None:
        """
        Record a log entry against the current test.

        Args:
            level: Entry severity
            message: Entry text
        """
        try:
            level = LogLevel(level)
            line = f"{LEVEL_PREFIX[level]} {message}"
            if level == LogLevel.FAIL:
                logger.error(line)
            elif level == LogLevel.WARN:
                logger.warning(line)
            else:
                logger.info(line)

            if self._current is None:
                return
            self._current.entries.append(ReportEntry(level=level, message=message))
            if self.attach_to_allure:
                with allure.step(f"[{level.value.upper()}] {message}"):
                    pass
        except Exception as e:
            logger.warning(f"Could not record report entry: {e}")

    def info(self, message: str) -> None:
        self.log(LogLevel.INFO, message)

    def passed(self, message: str) -> None:
        self.log(LogLevel.PASS, message)

    def fail(self, message: str) -> None:
        self.log(LogLevel.FAIL, message)

    def warn(self, message: str) -> None:
        self.log(LogLevel.WARN, message)

    def skip(self, message: str) -> None:
        self.log(LogLevel.SKIP, message)

    # =========================================================================
    # Evidence
    # =========================================================================

    def attach_evidence(
        self,
        handle: Optional[Union[str, Path]],
        description: str,
    ) -> None:
        """
        Attach a captured screenshot to the current test.

        A missing handle (failed capture) is ignored.

        Args:
            handle: Path returned by the evidence sink
            description: Caption for the attachment
        """
        if self._current is None or handle is None:
            return
        try:
            path = Path(handle)
            self._current.evidence.append(
                EvidenceAttachment(handle=str(path), description=description)
            )
            if self.attach_to_allure and path.exists():
                allure.attach.file(
                    str(path),
                    name=description,
                    attachment_type=allure.attachment_type.PNG,
                )
            self.log(LogLevel.INFO, f"Screenshot attached: {description}")
        except Exception as e:
            self.log(LogLevel.WARN, f"Failed to attach screenshot: {e}")

    def attach_on_pass(self, handle: Optional[Union[str, Path]], message: str) -> None:
        """Log a pass entry with its screenshot."""
        self.log(LogLevel.PASS, message)
        self.attach_evidence(handle, message)

    def attach_on_fail(self, handle: Optional[Union[str, Path]], message: str) -> None:
        """Log a fail entry with its screenshot."""
        self.log(LogLevel.FAIL, message)
        self.attach_evidence(handle, message)

    # =========================================================================
    # Outcome
    # =========================================================================

    def mark_passed(self, message: str) -> None:
        """Mark the current test as passed."""
        if self._current is not None:
            self._current.status = "passed"
        self.log(LogLevel.PASS, message)

    def mark_failed(self, message: str) -> None:
        """Mark the current test as failed."""
        if self._current is not None:
            self._current.status = "failed"
        self.log(LogLevel.FAIL, message)

    # =========================================================================
    # Persistence
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        """Run summary as a JSON-compatible dictionary."""
        return {
            "run_name": self.run_name,
            "generated_at": datetime.now().isoformat(),
            "system_info": self.system_info,
            "totals": {
                "tests": len(self.tests),
                "passed": sum(1 for t in self.tests if t.status == "passed"),
                "failed": sum(1 for t in self.tests if t.status == "failed"),
                "passed_after_retry": sum(
                    1 for t in self.tests if t.status == "passed" and t.retried
                ),
                "retried_attempts": sum(t.attempts - 1 for t in self.tests),
            },
            "tests": [
                {
                    "name": t.name,
                    "description": t.description,
                    "status": t.status,
                    "attempts": t.attempts,
                    "categories": t.categories,
                    "authors": t.authors,
                    "started_at": t.started_at,
                    "entries": [
                        {"level": e.level, "message": e.message, "timestamp": e.timestamp}
                        for e in t.entries
                    ],
                    "evidence": [
                        {"handle": a.handle, "description": a.description}
                        for a in t.evidence
                    ],
                }
                for t in self.tests
            ],
        }

    def flush(self) -> Optional[Path]:
        """
        Write the run summary to disk.

        Returns:
            Path of the written JSON file, or None when writing failed
        """
        try:
            self.reports_dir.mkdir(parents=True, exist_ok=True)
            timestamp = self._created_at.strftime("%Y-%m-%d_%H-%M-%S")
            worker = os.environ.get("PYTEST_XDIST_WORKER")
            suffix = f"_{worker}" if worker else ""
            path = self.reports_dir / f"AutomationReport_{timestamp}{suffix}.json"
            path.write_text(
                json.dumps(self.to_dict(), indent=2, default=safe_json_serialize),
                encoding="utf-8",
            )
            logger.info(f"📊 Report written: {path}")
            return path
        except Exception as e:
            logger.warning(f"Could not flush report: {e}")
            return None


def _current_user() -> str:
    try:
        return getpass.getuser()
    except Exception:
        return "unknown"


__all__ = [
    "LogLevel",
    "ReportEntry",
    "EvidenceAttachment",
    "TestReport",
    "ReportSink",
    "AllureReportSink",
]
