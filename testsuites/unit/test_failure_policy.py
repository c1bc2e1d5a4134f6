import psutil

from testsuites.ui_testing.framework import failure_policy
from testsuites.ui_testing.framework.failure_policy import (
    RetryTracker,
    describe_exception,
    force_close_browser_processes,
    is_transient_failure,
)


class FakeProcess:
    def __init__(self, name, pid=100, raises=None):
        self._name = name
        self.pid = pid
        self.raises = raises
        self.killed = False

    def name(self):
        if self.raises:
            raise self.raises
        return self._name

    def kill(self):
        self.killed = True

    def wait(self, timeout=None):
        return 0


def test_describe_exception():
    assert describe_exception(TimeoutError("Timeout 10000ms exceeded")) == "TimeoutError: Timeout 10000ms exceeded"


def test_transient_failures_are_recognized():
    assert is_transient_failure(TimeoutError("Timeout 30000ms exceeded"))
    assert is_transient_failure(RuntimeError("Target page, context or browser has been closed"))
    assert is_transient_failure(ConnectionError("Connection refused"))


def test_type_name_is_part_of_the_match():
    class NoSuchSessionException(Exception):
        pass

    assert is_transient_failure(NoSuchSessionException("gone"))


def test_assertions_and_unknown_errors_are_not_transient():
    assert not is_transient_failure(AssertionError("Timeout while waiting for banner"))
    assert not is_transient_failure(ValueError("bad value"))
    assert not is_transient_failure(None)


def test_custom_patterns():
    assert is_transient_failure(RuntimeError("Flaky Backend"), patterns=["flaky backend"])
    assert not is_transient_failure(TimeoutError("timeout"), patterns=["flaky backend"])


def test_tracker_caps_retries():
    tracker = RetryTracker(max_attempts=2)
    error = TimeoutError("Timeout 10000ms exceeded")

    assert tracker.should_retry("test_login", error)
    assert tracker.should_retry("test_login", error)
    assert tracker.attempts("test_login") == 2
    assert not tracker.should_retry("test_login", error)
    assert tracker.attempts("test_login") == 0


def test_tracker_counts_tests_separately():
    tracker = RetryTracker(max_attempts=1)
    error = TimeoutError("timeout")

    assert tracker.should_retry("a", error)
    assert tracker.should_retry("b", error)
    assert not tracker.should_retry("a", error)


def test_tracker_does_not_retry_assertions():
    tracker = RetryTracker(max_attempts=3)
    tracker.should_retry("test_x", TimeoutError("timeout"))

    assert not tracker.should_retry("test_x", AssertionError("Sign out should be successful"))
    assert tracker.attempts("test_x") == 0


def test_tracker_clear():
    tracker = RetryTracker()
    tracker.should_retry("test_x", TimeoutError("timeout"))
    tracker.clear("test_x")
    assert tracker.attempts("test_x") == 0


def test_force_close_kills_only_browser_processes(monkeypatch):
    chrome = FakeProcess("chrome", pid=1)
    driver = FakeProcess("chromedriver.exe", pid=2)
    shell = FakeProcess("chrome-headless-shell", pid=3)
    python = FakeProcess("python", pid=4)
    gone = FakeProcess("chrome", pid=5, raises=psutil.NoSuchProcess(5))
    monkeypatch.setattr(failure_policy, "_candidate_processes", lambda children_only: [chrome, driver, shell, python, gone])

    assert force_close_browser_processes(wait_seconds=0) == 3
    assert chrome.killed and driver.killed and shell.killed
    assert not python.killed


def test_force_close_with_nothing_running(monkeypatch):
    monkeypatch.setattr(failure_policy, "_candidate_processes", lambda children_only: [])
    assert force_close_browser_processes() == 0
