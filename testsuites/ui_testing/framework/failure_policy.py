"""
================================================================================
Transient Failure Policy
================================================================================

Decides whether a failed UI test is re-run and cleans up the browser before
the next attempt.

    - A narrow allowlist of error substrings marks a failure as transient
      (browser crashed, session lost, connection refused, timeouts)
    - Assertion failures are never retried
    - Every test gets at most `max_attempts` re-runs
    - Before a re-run, leftover browser / driver processes are killed

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional, Sequence

import psutil
from loguru import logger


DEFAULT_MAX_ATTEMPTS = 2

TRANSIENT_ERROR_PATTERNS: tuple = (
    "session not created",
    "chrome not reachable",
    "connection refused",
    "timeout",
    "webdriverexception",
    "nosuchsessionexception",
    "browser disconnected",
    "target page, context or browser has been closed",
    "browser has been closed",
    "connection closed",
)

BROWSER_PROCESS_NAMES: tuple = (
    "chrome",
    "chromium",
    "headless_shell",
    "msedge",
    "firefox",
    "chromedriver",
    "geckodriver",
    "msedgedriver",
)


def describe_exception(exc: BaseException) -> str:
    """`TypeName: message` - the text the allowlist is matched against."""
    return f"{type(exc).__name__}: {exc}"


def is_transient_failure(
    exc: Optional[BaseException],
    patterns: Iterable[str] = TRANSIENT_ERROR_PATTERNS,
) -> bool:
    """
    True when the failure looks like an infrastructure hiccup.

    Assertion failures (and their subclasses) are product failures and are
    never considered transient, whatever their message says.
    """
    if exc is None or isinstance(exc, AssertionError):
        return False
    text = describe_exception(exc).lower()
    return any(pattern.lower() in text for pattern in patterns)


class RetryTracker:
    """
    Per-test retry bookkeeping.

    Usage:
        >>> tracker = RetryTracker(max_attempts=2)
        >>> tracker.should_retry("test_login", TimeoutError("Timeout 10000ms exceeded"))
        True
        >>> tracker.clear("test_login")   # after the test finally passes
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        patterns: Sequence[str] = TRANSIENT_ERROR_PATTERNS,
    ):
        self.max_attempts = max_attempts
        self.patterns = tuple(patterns)
        self._attempts: Dict[str, int] = {}
        self._lock = threading.Lock()

    def attempts(self, test_id: str) -> int:
        return self._attempts.get(test_id, 0)

    def should_retry(self, test_id: str, exc: Optional[BaseException]) -> bool:
        """
        Record a failure and decide whether the test gets another attempt.

        Returns:
            True while the failure is transient and the cap is not exceeded
        """
        if not is_transient_failure(exc, self.patterns):
            logger.info(f"Failure of {test_id} is not retryable: {describe_exception(exc)[:200] if exc else 'unknown'}")
            self.clear(test_id)
            return False

        with self._lock:
            count = self._attempts.get(test_id, 0) + 1
            if count > self.max_attempts:
                self._attempts.pop(test_id, None)
                logger.error(
                    f"❌ {test_id} exceeded the maximum of {self.max_attempts} retries, giving up"
                )
                return False
            self._attempts[test_id] = count

        logger.warning(
            f"🔁 Transient failure in {test_id} (retry {count}/{self.max_attempts}): "
            f"{describe_exception(exc)[:200]}"
        )
        return True

    def clear(self, test_id: str) -> None:
        with self._lock:
            self._attempts.pop(test_id, None)


def _matches(process_name: str, names: Sequence[str]) -> bool:
    base = process_name.lower()
    if base.endswith(".exe"):
        base = base[:-4]
    return any(base == name or base.startswith(f"{name}-") or base.startswith(f"{name}_") for name in names)


def _candidate_processes(children_only: bool) -> List[psutil.Process]:
    if children_only:
        return psutil.Process().children(recursive=True)
    return list(psutil.process_iter())


def force_close_browser_processes(
    names: Sequence[str] = BROWSER_PROCESS_NAMES,
    wait_seconds: float = 2.0,
    children_only: bool = True,
) -> int:
    """
    Kill running processes whose name matches one of `names`.

    With `children_only` (the default) only processes launched by this test
    process are touched, so parallel workers keep their browsers.
    Never raises: a process that vanished or that we may not touch is skipped.

    Returns:
        Number of processes killed
    """
    wanted = tuple(name.lower() for name in names)
    killed = 0

    for process in _candidate_processes(children_only):
        try:
            name = process.name() or ""
            if not _matches(name, wanted):
                continue
            logger.info(f"Force killing {name} (PID: {process.pid})")
            process.kill()
            try:
                process.wait(timeout=wait_seconds)
            except psutil.TimeoutExpired:
                logger.warning(f"⚠️ {name} (PID: {process.pid}) still alive after {wait_seconds}s")
            killed += 1
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            continue

    if killed:
        logger.info(f"Force closed {killed} browser processes")
    return killed


__all__ = [
    "BROWSER_PROCESS_NAMES",
    "DEFAULT_MAX_ATTEMPTS",
    "RetryTracker",
    "TRANSIENT_ERROR_PATTERNS",
    "describe_exception",
    "force_close_browser_processes",
    "is_transient_failure",
]
