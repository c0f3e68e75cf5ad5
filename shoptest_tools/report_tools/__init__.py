"""
Report tools: per-test report sink and Allure result processing.
"""

from .allure_utils import (
    AllureReportProcessor,
    RunSummary,
    attach_json,
    attach_link_table,
    attach_text,
)
from .report_sink import (
    AllureReportSink,
    EvidenceAttachment,
    LogLevel,
    ReportEntry,
    ReportSink,
    TestReport,
)

__all__ = [
    "AllureReportProcessor",
    "RunSummary",
    "attach_json",
    "attach_link_table",
    "attach_text",
    "AllureReportSink",
    "EvidenceAttachment",
    "LogLevel",
    "ReportEntry",
    "ReportSink",
    "TestReport",
]
