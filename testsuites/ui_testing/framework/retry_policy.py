# ================================================================================
# Retry Policy Module
# ================================================================================
#
# Test-level retry for flaky UI tests.
#
# A failed attempt is handed to RetryPolicy, which decides whether the test
# body is executed again. Each test keeps its own RetryState, keyed by a stable
# test identifier, so unrelated tests never share a counter.
#
# State machine per test:
#   Idle(0) --failure--> Retrying(1) --failure--> ... Retrying(max)
#   Retrying(max) --failure--> Exhausted (terminal, resets to Idle)
#   any state --success--> Idle(0)
#
# Key Features:
#   - Fixed retry bound (2 extra attempts, 3 runs in total)
#   - Configurable backoff before the next attempt
#   - Retry / exhaustion diagnostics written to the report sink
#   - Sync and async test decorator (`retry_on_failure`)
#
# ================================================================================

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Dict, Optional

from loguru import logger

from shoptest_tools.common import get_config
from shoptest_tools.report_tools import LogLevel, ReportSink


DEFAULT_MAX_ATTEMPTS = 2
DEFAULT_BACKOFF_SECONDS = 1.0


@dataclass
class RetryState:
    """
    Retry bookkeeping for one test instance.

    Attributes:
        attempts_so_far: Retries granted so far (0..max_attempts)
        max_attempts: Retry bound
        last_failure_reason: Message of the most recent failed attempt
    """
    attempts_so_far: int = 0
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    last_failure_reason: Optional[str] = None

    @property
    def is_idle(self) -> bool:
        return self.attempts_so_far == 0

    @property
    def is_exhausted(self) -> bool:
        return self.attempts_so_far >= self.max_attempts

    def reset(self) -> None:
        self.attempts_so_far = 0
        self.last_failure_reason = None


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of one test attempt, fed into the policy."""
    succeeded: bool
    reason: Optional[str] = None

    @classmethod
    def success(cls) -> "AttemptOutcome":
        return cls(succeeded=True)

    @classmethod
    def failure(cls, reason: Optional[str] = None) -> "AttemptOutcome":
        return cls(succeeded=False, reason=reason)


class RetryPolicy:
    """
    Decides whether a failed test attempt is re-executed.

    Example:
        policy = RetryPolicy()
        if policy.record_failure("test_checkout", "Timeout 10000ms exceeded"):
            ...  # run the test body again
        else:
            ...  # propagate the failure
    """

    def __init__(
        self,
        max_attempts: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        report_sink: Optional[ReportSink] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize retry policy.

        Args:
            max_attempts: Retries granted before a failure becomes final.
                Defaults to `retry.max_attempts` (2).
            backoff_seconds: Pause before granting a retry.
                Defaults to `retry.backoff_seconds` (1.0).
            report_sink: Default sink for retry diagnostics
            sleep: Blocking pause function (replaceable in tests)
        """
        if max_attempts is None:
            max_attempts = int(get_config("retry.max_attempts", DEFAULT_MAX_ATTEMPTS))
        if backoff_seconds is None:
            backoff_seconds = float(get_config("retry.backoff_seconds", DEFAULT_BACKOFF_SECONDS))
        if max_attempts < 0:
            raise ValueError(f"max_attempts must be >= 0, got {max_attempts}")

        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.report_sink = report_sink
        self._sleep = sleep
        self._states: Dict[str, RetryState] = {}

    # =========================================================================
    # State Access
    # =========================================================================

    def state_for(self, test_id: str) -> RetryState:
        """Return (creating if needed) the retry state of a test."""
        state = self._states.get(test_id)
        if state is None:
            state = RetryState(max_attempts=self.max_attempts)
            self._states[test_id] = state
        return state

    def attempts_so_far(self, test_id: str) -> int:
        state = self._states.get(test_id)
        return state.attempts_so_far if state else 0

    def _reset(self, test_id: str) -> None:
        state = self._states.pop(test_id, None)
        if state is not None:
            state.reset()

    # =========================================================================
    # Transitions
    # =========================================================================

    def should_retry(
        self,
        test_id: str,
        outcome: AttemptOutcome,
        report_sink: Optional[ReportSink] = None,
    ) -> bool:
        """
        Feed one attempt result into the state machine.

        Returns:
            True when the test should be executed again
        """
        if outcome.succeeded:
            return self.record_success(test_id, report_sink=report_sink)
        return self.record_failure(test_id, outcome.reason, report_sink=report_sink)

    def record_success(
        self,
        test_id: str,
        report_sink: Optional[ReportSink] = None,
    ) -> bool:
        """
        Record a passing attempt. Always resets the test to Idle.

        Returns:
            False (a passed attempt is never retried)
        """
        retries = self.attempts_so_far(test_id)
        self._reset(test_id)
        if retries:
            self._emit(
                report_sink,
                LogLevel.INFO,
                f"Test '{test_id}' passed after {retries} retry attempt(s)",
            )
        return False

    def record_failure(
        self,
        test_id: str,
        reason: Optional[str] = None,
        report_sink: Optional[ReportSink] = None,
        pause: bool = True,
    ) -> bool:
        """
        Record a failed attempt and decide whether to retry.

        Args:
            test_id: Stable identifier of the test instance
            reason: Failure message of this attempt
            report_sink: Sink for diagnostics (falls back to the policy's sink)
            pause: Block for `backoff_seconds` before granting a retry.
                Async callers pass False and await the delay themselves.

        Returns:
            True when a retry is granted
        """
        state = self.state_for(test_id)

        if state.attempts_so_far < state.max_attempts:
            state.attempts_so_far += 1
            state.last_failure_reason = reason

            self._emit(
                report_sink,
                LogLevel.WARN,
                f"🔄 RETRY ATTEMPT: Test '{test_id}' failed. "
                f"Retry {state.attempts_so_far}/{state.max_attempts}",
            )
            if reason:
                self._emit(report_sink, LogLevel.WARN, f"Failure reason: {reason}")

            if pause and self.backoff_seconds > 0:
                self._sleep(self.backoff_seconds)
            return True

        message = (
            f"❌ TEST FAILED: '{test_id}' failed after "
            f"{state.max_attempts} retry attempts"
        )
        if reason:
            message += f" - last failure: {reason}"
        self._emit(report_sink, LogLevel.FAIL, message)
        self._reset(test_id)
        return False

    def _emit(
        self,
        report_sink: Optional[ReportSink],
        level: LogLevel,
        message: str,
    ) -> None:
        """Write a diagnostic; sink errors never reach the caller."""
        sink = report_sink or self.report_sink
        if sink is None:
            if level == LogLevel.FAIL:
                logger.error(message)
            elif level == LogLevel.WARN:
                logger.warning(message)
            else:
                logger.info(message)
            return
        try:
            sink.log(level, message)
        except Exception as e:
            logger.warning(f"Could not log retry diagnostic to report: {e}")


# =============================================================================
# Decorator
# =============================================================================

_default_policy: Optional[RetryPolicy] = None


def get_default_policy() -> RetryPolicy:
    """Process-wide policy used by `retry_on_failure()` without arguments."""
    global _default_policy
    if _default_policy is None:
        _default_policy = RetryPolicy()
    return _default_policy


def _failure_reason(error: BaseException) -> str:
    return str(error) or type(error).__name__


def _default_test_id(func: Callable, kwargs: Dict[str, Any]) -> str:
    """Qualified test name plus primitive (parametrized) argument values."""
    test_id = f"{func.__module__}.{func.__qualname__}"
    params = [
        f"{key}={value}"
        for key, value in sorted(kwargs.items())
        if isinstance(value, (str, int, float, bool))
    ]
    if params:
        test_id += f"[{','.join(params)}]"
    return test_id


def _context_sink(kwargs: Dict[str, Any], context_arg: str) -> Optional[ReportSink]:
    context = kwargs.get(context_arg)
    return getattr(context, "report", None) if context is not None else None


def retry_on_failure(
    policy: Optional[RetryPolicy] = None,
    test_id: Optional[str] = None,
    context_arg: str = "execution_context",
):
    """
    Decorator re-running a test body while the policy grants retries.

    When retries are exhausted the last attempt's exception propagates.
    pytest fixtures keep working: the wrapper preserves the signature.

    Args:
        policy: RetryPolicy to consult (defaults to the shared policy)
        test_id: Explicit state key (defaults to the qualified test name
            plus primitive argument values)
        context_arg: Name of the ExecutionContext argument whose report
            sink receives the diagnostics

    Example:
        @pytest.mark.asyncio
        @retry_on_failure()
        async def test_search(execution_context, search_term):
            ...
    """
    def decorator(func: Callable):
        if asyncio.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                active = policy or get_default_policy()
                key = test_id or _default_test_id(func, kwargs)
                sink = _context_sink(kwargs, context_arg)

                while True:
                    try:
                        result = await func(*args, **kwargs)
                    except Exception as e:
                        if active.record_failure(key, _failure_reason(e), report_sink=sink, pause=False):
                            await asyncio.sleep(active.backoff_seconds)
                            continue
                        raise
                    active.record_success(key, report_sink=sink)
                    return result

            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs):
            active = policy or get_default_policy()
            key = test_id or _default_test_id(func, kwargs)
            sink = _context_sink(kwargs, context_arg)

            while True:
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    if active.record_failure(key, _failure_reason(e), report_sink=sink):
                        continue
                    raise
                active.record_success(key, report_sink=sink)
                return result

        return wrapper
    return decorator


__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_BACKOFF_SECONDS",
    "RetryState",
    "AttemptOutcome",
    "RetryPolicy",
    "get_default_policy",
    "retry_on_failure",
]
