import itertools
import json

from shoptest_tools.report_tools import AllureReportSink, LogLevel
from testsuites.ui_testing.framework.retry_policy import RetryPolicy, retry_on_failure


def test_entries_are_recorded_per_test(tmp_path):
    sink = AllureReportSink(reports_dir=tmp_path)

    sink.create_test("First", "first test")
    sink.info("hello")
    sink.warn("careful")
    sink.create_test("Second")
    sink.fail("boom")
    sink.skip("not run")

    first, second = sink.tests
    assert first.messages() == ["hello", "careful"]
    assert first.messages(LogLevel.WARN) == ["careful"]
    assert second.messages() == ["boom", "not run"]
    assert sink.current_test is second


def test_log_without_current_test_is_ignored(tmp_path):
    sink = AllureReportSink(reports_dir=tmp_path)
    sink.log(LogLevel.INFO, "nobody listening")
    assert sink.tests == []


def test_categories_authors_and_outcome(tmp_path):
    sink = AllureReportSink(reports_dir=tmp_path)
    sink.create_test("Tagged")
    sink.add_category("Smoke Test")
    sink.add_author("Test Framework")
    sink.mark_passed("all good")

    test = sink.current_test
    assert test.categories == ["Smoke Test"]
    assert test.authors == ["Test Framework"]
    assert test.status == "passed"
    assert test.messages(LogLevel.PASS) == ["all good"]


def test_attach_evidence_ignores_missing_handle(tmp_path):
    sink = AllureReportSink(reports_dir=tmp_path)
    sink.create_test("Evidence")

    sink.attach_evidence(None, "capture failed")
    screenshot = tmp_path / "shot.png"
    screenshot.write_bytes(b"\x89PNG")
    sink.attach_on_fail(screenshot, "Test failed: boom")

    evidence = sink.current_test.evidence
    assert [a.description for a in evidence] == ["Test failed: boom"]
    assert evidence[0].handle == str(screenshot)


def test_flush_writes_json_summary(tmp_path):
    sink = AllureReportSink(reports_dir=tmp_path / "reports", run_name="Unit Run")
    sink.create_test("Passing")
    sink.mark_passed("ok")
    sink.create_test("Failing")
    sink.mark_failed("not ok")

    path = sink.flush()

    assert path is not None
    assert path.name.startswith("AutomationReport_")
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["run_name"] == "Unit Run"
    assert data["totals"] == {
        "tests": 2,
        "passed": 1,
        "failed": 1,
        "passed_after_retry": 0,
        "retried_attempts": 0,
    }
    assert data["tests"][0]["attempts"] == 1
    assert data["tests"][1]["entries"][0]["level"] == "fail"


def test_flush_failure_returns_none(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("file in the way", encoding="utf-8")
    sink = AllureReportSink(reports_dir=blocker)

    assert sink.flush() is None


def test_retried_test_that_passes_is_reported_once_as_passed(tmp_path):
    sink = AllureReportSink(reports_dir=tmp_path)
    policy = RetryPolicy(max_attempts=2, backoff_seconds=0, report_sink=sink, sleep=lambda _: None)
    attempts = itertools.count(1)

    @retry_on_failure(policy=policy, test_id="Checkout_Flow")
    def checkout_flow():
        sink.create_test("Checkout_Flow", "passes on the third attempt")
        attempt = next(attempts)
        if attempt <= 2:
            sink.mark_failed(f"attempt {attempt} failed")
            raise AssertionError(f"attempt {attempt} failed")
        sink.mark_passed("checkout completed")

    checkout_flow()

    totals = sink.to_dict()["totals"]
    assert totals == {
        "tests": 1,
        "passed": 1,
        "failed": 0,
        "passed_after_retry": 1,
        "retried_attempts": 2,
    }
    test = sink.current_test
    assert test.attempts == 3
    assert test.messages(LogLevel.FAIL) == ["attempt 1 failed", "attempt 2 failed"]


def test_new_test_after_pass_is_a_separate_entry(tmp_path):
    sink = AllureReportSink(reports_dir=tmp_path)
    sink.create_test("Search")
    sink.mark_passed("ok")
    sink.create_test("Search")

    assert len(sink.tests) == 2
    assert sink.current_test.attempts == 1
    assert sink.current_test.status == "running"


def test_exhausted_retries_stay_failed(tmp_path):
    sink = AllureReportSink(reports_dir=tmp_path)
    for attempt in range(3):
        sink.create_test("Broken_Links")
        sink.mark_failed(f"attempt {attempt + 1}")

    assert sink.to_dict()["totals"]["failed"] == 1
    assert sink.current_test.attempts == 3
