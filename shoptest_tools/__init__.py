"""
================================================================================
Shoptest Tools
================================================================================

Infrastructure utilities shared by the shop UI automation suites.

Modules:
    - common: Configuration loading and logging setup
    - report_tools: Report sink (per-test log entries and evidence) and
      Allure result post-processing

Example:
    from shoptest_tools.common import get_config, init_logger
    from shoptest_tools.report_tools import AllureReportSink, LogLevel

    init_logger()
    report = AllureReportSink()
    report.create_test("Homepage_Links", "Validate links on the homepage")
    report.log(LogLevel.INFO, "Checking links")
    report.flush()

================================================================================
"""

__version__ = "1.0.0"

__all__ = [
    "common",
    "report_tools",
]
