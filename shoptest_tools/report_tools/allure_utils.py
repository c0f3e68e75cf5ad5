"""
================================================================================
Allure Report Utilities
================================================================================

This module provides utilities for enhancing Allure test reports with
additional information, custom attachments, and report processing.

Features:
- Custom attachment helpers (JSON, text, link-check tables)
- HTML report generation (Allure CLI) with trend history
- Run summary: Allure statuses plus retried-then-passed tests

================================================================================
"""

import json
import shutil
import subprocess
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

import allure
from loguru import logger


# ================================================================================
# Attachment Helpers
# ================================================================================

def attach_json(data: Any, name: str = "Data"):
    """
    Attach JSON data to Allure report.

    Args:
        data: Data to attach (will be JSON serialized)
        name: Attachment name
    """
    json_str = json.dumps(data, indent=2, default=str)
    allure.attach(
        json_str,
        name=name,
        attachment_type=allure.attachment_type.JSON
    )


def attach_text(text: str, name: str = "Text"):
    """
    Attach text content to Allure report.

    Args:
        text: Text to attach
        name: Attachment name
    """
    allure.attach(
        text,
        name=name,
        attachment_type=allure.attachment_type.TEXT
    )


def attach_link_table(records: Iterable[Any], name: str = "🔗 Checked Links"):
    """
    Attach checked links as a CSV table.

    Args:
        records: LinkRecord-like objects (url, status, http_status, error)
        name: Attachment name
    """
    lines = ["url,status,http_status,error"]
    for record in records:
        status = getattr(record.status, "value", record.status)
        error = (record.error or "").replace(",", ";").replace("\n", " ")
        http_status = "" if record.http_status is None else record.http_status
        lines.append(f"{record.url},{status},{http_status},{error}")

    allure.attach(
        "\n".join(lines),
        name=name,
        attachment_type=allure.attachment_type.CSV
    )


# ================================================================================
# Run Summary
# ================================================================================

ALLURE_STATUSES = ("passed", "failed", "broken", "skipped")


@dataclass
class RunSummary:
    """
    Outcome of one run.

    Status counts come from the Allure results; the retry figures come from
    the JSON summaries written by AllureReportSink.flush().
    """
    statuses: Counter = field(default_factory=Counter)
    duration_ms: int = 0
    passed_after_retry: int = 0
    retried_attempts: int = 0
    flaky_tests: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.statuses.values())

    @property
    def pass_rate(self) -> float:
        if not self.total:
            return 0.0
        return self.statuses["passed"] / self.total * 100

    def to_dict(self) -> Dict[str, Any]:
        counts = {status: self.statuses[status] for status in ALLURE_STATUSES}
        counts["unknown"] = self.total - sum(counts.values())
        return {
            "total": self.total,
            **counts,
            "pass_rate": round(self.pass_rate, 2),
            "duration_ms": self.duration_ms,
            "passed_after_retry": self.passed_after_retry,
            "retried_attempts": self.retried_attempts,
            "flaky_tests": list(self.flaky_tests),
        }


def _read_json_files(paths: Iterable[Path]) -> Iterator[Dict[str, Any]]:
    for path in paths:
        try:
            yield json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Skipping unreadable result file {path}: {e}")


class AllureReportProcessor:
    """
    Builds the HTML report of a run and its summary.

    Usage:
        processor = AllureReportProcessor(
            Path("reports/allure-results"),
            sink_reports=Path("reports").glob("AutomationReport_*.json"),
        )
        processor.generate_report()
        processor.log_summary()
    """

    def __init__(
        self,
        results_dir: Path,
        report_dir: Optional[Path] = None,
        sink_reports: Iterable[Path] = (),
    ):
        """
        Args:
            results_dir: Directory pytest wrote with --alluredir
            report_dir: HTML output (defaults to a sibling "allure-report")
            sink_reports: AutomationReport_*.json files of this run, one
                per pytest worker
        """
        self.results_dir = Path(results_dir)
        self.report_dir = Path(report_dir or self.results_dir.parent / "allure-report")
        self.sink_reports = [Path(p) for p in sink_reports]

    def summarize(self) -> RunSummary:
        summary = RunSummary()

        for result in _read_json_files(sorted(self.results_dir.glob("*-result.json"))):
            summary.statuses[result.get("status", "unknown")] += 1
            summary.duration_ms += result.get("stop", 0) - result.get("start", 0)

        for report in _read_json_files(self.sink_reports):
            totals = report.get("totals", {})
            summary.passed_after_retry += totals.get("passed_after_retry", 0)
            summary.retried_attempts += totals.get("retried_attempts", 0)
            summary.flaky_tests.extend(
                test["name"] for test in report.get("tests", [])
                if test.get("status") == "passed" and test.get("attempts", 1) > 1
            )

        return summary

    def _carry_history(self) -> None:
        """Seed the results with the previous report's trend history."""
        previous = self.report_dir / "history"
        if not previous.is_dir():
            return
        target = self.results_dir / "history"
        shutil.rmtree(target, ignore_errors=True)
        shutil.copytree(previous, target)
        logger.debug("Carried Allure history into the new results")

    def generate_report(self) -> bool:
        """
        Run `allure generate` over the results.

        Returns:
            True when the HTML report was written
        """
        cmd = ["allure", "generate", str(self.results_dir), "-o", str(self.report_dir), "--clean"]
        try:
            self._carry_history()
            completed = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError:
            logger.warning("⚠️ Allure CLI not found; install allure-commandline to build the HTML report")
            return False
        except (OSError, shutil.Error) as e:
            logger.error(f"❌ Allure report generation failed: {e}")
            return False

        if completed.returncode != 0:
            logger.error(f"❌ Allure report generation failed: {completed.stderr.strip()}")
            return False
        logger.info(f"📊 Allure report generated at {self.report_dir}")
        return True

    def log_summary(self) -> RunSummary:
        summary = self.summarize()
        counts = summary.to_dict()

        logger.info("=" * 60)
        logger.info("TEST EXECUTION SUMMARY")
        logger.info("=" * 60)
        logger.info(f"Total Tests:         {summary.total}")
        logger.info(f"Passed:              {counts['passed']} ✅")
        logger.info(f"Failed:              {counts['failed']} ❌")
        logger.info(f"Broken:              {counts['broken']} ⚠️")
        logger.info(f"Skipped:             {counts['skipped']} ⏭️")
        logger.info(f"Passed After Retry:  {summary.passed_after_retry} 🔁")
        logger.info(f"Retried Attempts:    {summary.retried_attempts}")
        logger.info(f"Pass Rate:           {summary.pass_rate:.2f}%")
        logger.info(f"Duration:            {summary.duration_ms / 1000:.2f}s")
        for name in summary.flaky_tests:
            logger.warning(f"Flaky: {name}")
        logger.info("=" * 60)
        return summary
