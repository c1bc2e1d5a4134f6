"""
================================================================================
Root Pytest Configuration
================================================================================

This module provides the root pytest configuration for the entire test suite.
It registers common markers and re-runs tests that failed for transient
infrastructure reasons (browser crashes, lost connections, timeouts).

Retry policy:
    - Only failures matched by `is_transient_failure` are re-run
    - Assertion failures are never re-run
    - `@pytest.mark.retry(n)` overrides `retry.max_attempts`
    - Between attempts, browser processes started by this worker are killed

================================================================================
"""

import time

import pytest
from _pytest.runner import runtestprotocol
from loguru import logger

from testsuites.ui_testing.framework.config_loader import get_config
from testsuites.ui_testing.framework.failure_policy import (
    BROWSER_PROCESS_NAMES,
    TRANSIENT_ERROR_PATTERNS,
    RetryTracker,
    force_close_browser_processes,
)


FAILURE_KEY = pytest.StashKey[BaseException]()
RETRY_TRACKER_KEY = pytest.StashKey[RetryTracker]()


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for deployment"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )
    config.addinivalue_line(
        "markers", "P3: Low priority tests - extensive validation"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "smoke: Quick verification tests"
    )
    config.addinivalue_line(
        "markers", "regression: Full regression test suite"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests simulating user flows"
    )
    config.addinivalue_line(
        "markers", "ui: Browser-driven tests"
    )
    config.addinivalue_line(
        "markers", "unit: Pure logic tests, no browser"
    )
    config.addinivalue_line(
        "markers", "retry(n): re-run up to n times on transient infrastructure failures"
    )

    # Category markers
    config.addinivalue_line(
        "markers", "login: Sign in / sign out flows"
    )
    config.addinivalue_line(
        "markers", "post_login: Checks that need a signed-in user"
    )
    config.addinivalue_line(
        "markers", "employment_validation: Employment practice area widgets"
    )
    config.addinivalue_line(
        "markers", "start_page: Make / remove as my start page"
    )
    config.addinivalue_line(
        "markers", "favourites: Favourites list management"
    )
    config.addinivalue_line(
        "markers", "delivery: Email, download and print delivery"
    )
    config.addinivalue_line(
        "markers", "home_page: Home page landing checks"
    )

    settings = get_config()
    config.stash[RETRY_TRACKER_KEY] = RetryTracker(
        max_attempts=int(settings.get("retry.max_attempts", 2)),
        patterns=settings.get("retry.transient_errors") or TRANSIENT_ERROR_PATTERNS,
    )


def pytest_collection_modifyitems(config, items):
    """
    Tag tests by location: ui_testing -> ui, unit -> unit.
    """
    for item in items:
        path = str(item.fspath)
        if "ui_testing" in path:
            item.add_marker(pytest.mark.ui)
        if "unit" in path.replace("\\", "/").split("/"):
            item.add_marker(pytest.mark.unit)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    settings = get_config()
    return [
        "",
        "=" * 60,
        "Practical Law UI Automation Suite",
        f"Environment: {settings.environment} | Browser: {settings.browser_name} | Headless: {settings.headless}",
        "=" * 60,
        "",
    ]


# ================================================================================
# Transient-failure retry
# ================================================================================

@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Keep the raised exception and the phase reports on the item."""
    outcome = yield
    report = outcome.get_result()

    setattr(item, f"rep_{report.when}", report)
    if report.failed and call.excinfo is not None:
        item.stash[FAILURE_KEY] = call.excinfo.value


def _max_attempts(item, default: int) -> int:
    marker = item.get_closest_marker("retry")
    if marker is None:
        return default
    if marker.args:
        return int(marker.args[0])
    return int(marker.kwargs.get("max_attempts", default))


def _forget_failed_setup(item) -> None:
    """
    Drop cached fixture errors so the next attempt runs their setup again.
    """
    fixture_info = getattr(item, "_fixtureinfo", None)
    for fixture_defs in getattr(fixture_info, "name2fixturedefs", {}).values():
        for fixture_def in fixture_defs:
            cached = getattr(fixture_def, "cached_result", None)
            if cached is not None and cached[2] is not None:
                fixture_def.cached_result = None

    stack = item.session._setupstate.stack
    for node, entry in list(stack.items()):
        if entry[1] is not None:
            stack[node] = (entry[0], None)


def pytest_runtest_protocol(item, nextitem):
    """
    Run the test, re-running it while its failure is transient.

    Intermediate attempts are reported with outcome "rerun".
    """
    settings = get_config()
    tracker: RetryTracker = item.config.stash[RETRY_TRACKER_KEY]
    max_attempts = _max_attempts(item, tracker.max_attempts)
    if max_attempts <= 0:
        return None

    tracker = RetryTracker(max_attempts=max_attempts, patterns=tracker.patterns) if max_attempts != tracker.max_attempts else tracker
    delay = float(settings.get("retry.delay_seconds", 2))
    process_names = settings.get("retry.browser_processes") or BROWSER_PROCESS_NAMES

    item.ihook.pytest_runtest_logstart(nodeid=item.nodeid, location=item.location)
    while True:
        for phase in ("setup", "call", "teardown"):
            item.__dict__.pop(f"rep_{phase}", None)
        if FAILURE_KEY in item.stash:
            del item.stash[FAILURE_KEY]

        reports = runtestprotocol(item, nextitem=nextitem, log=False)
        failed = any(report.failed for report in reports if report.when in ("setup", "call"))
        error = item.stash.get(FAILURE_KEY, None)

        if failed and tracker.should_retry(item.nodeid, error):
            for report in reports:
                if report.failed and report.when in ("setup", "call"):
                    report.outcome = "rerun"
                item.ihook.pytest_runtest_logreport(report=report)
            killed = force_close_browser_processes(process_names)
            logger.info(f"🔁 Re-running {item.nodeid} in {delay}s ({killed} browser processes closed)")
            _forget_failed_setup(item)
            time.sleep(delay)
            continue

        tracker.clear(item.nodeid)
        for report in reports:
            item.ihook.pytest_runtest_logreport(report=report)
        break

    item.ihook.pytest_runtest_logfinish(nodeid=item.nodeid, location=item.location)
    return True


def pytest_report_teststatus(report, config):
    if report.outcome == "rerun":
        return "rerun", "R", ("RERUN", {"yellow": True})
    return None
