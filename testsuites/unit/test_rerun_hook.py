"""
Transient-failure reruns, exercised through an inner pytest session that
loads the suite's hooks with `-p testsuites.conftest`.
"""

import pytest

from testsuites.ui_testing.framework.config_loader import ConfigLoader


@pytest.fixture
def run_suite(pytester, monkeypatch):
    monkeypatch.setenv("RETRY_MAX_ATTEMPTS", "2")
    monkeypatch.setenv("RETRY_DELAY_SECONDS", "0")
    monkeypatch.setattr("testsuites.conftest.force_close_browser_processes", lambda names: 0)
    ConfigLoader.reset()

    def _run(source):
        pytester.makepyfile(test_inner=source)
        return pytester.runpytest_inprocess("-p", "testsuites.conftest", "-p", "no:cacheprovider")

    return _run


def test_transient_failure_is_rerun_until_it_passes(run_suite):
    result = run_suite(
        """
        calls = []

        def test_flaky():
            calls.append(1)
            if len(calls) == 1:
                raise TimeoutError("Timeout 10000ms exceeded")
        """
    )

    outcomes = result.parseoutcomes()
    assert outcomes.get("passed") == 1
    assert outcomes.get("rerun") == 1
    assert "failed" not in outcomes


def test_default_cap_then_failure_is_reported(run_suite):
    result = run_suite(
        """
        def test_always_times_out():
            raise TimeoutError("Timeout 10000ms exceeded")
        """
    )

    outcomes = result.parseoutcomes()
    assert outcomes.get("rerun") == 2
    assert outcomes.get("failed") == 1


def test_retry_marker_caps_attempts(run_suite):
    result = run_suite(
        """
        import pytest

        @pytest.mark.retry(1)
        def test_always_times_out():
            raise TimeoutError("Timeout 10000ms exceeded")
        """
    )

    outcomes = result.parseoutcomes()
    assert outcomes.get("rerun") == 1
    assert outcomes.get("failed") == 1


def test_assertion_failure_is_never_rerun(run_suite):
    result = run_suite(
        """
        def test_banner():
            raise AssertionError("timeout waiting for the cookie banner")
        """
    )

    outcomes = result.parseoutcomes()
    assert outcomes.get("failed") == 1
    assert "rerun" not in outcomes


def test_failed_class_fixture_is_set_up_again(run_suite):
    result = run_suite(
        """
        import pytest

        setups = []

        @pytest.fixture(scope="class")
        def browser():
            setups.append(1)
            if len(setups) == 1:
                raise ConnectionRefusedError("connection refused")
            return "browser"

        class TestWithBrowser:
            def test_uses_browser(self, browser):
                assert browser == "browser"
                assert len(setups) == 2
        """
    )

    outcomes = result.parseoutcomes()
    assert outcomes.get("passed") == 1
    assert outcomes.get("rerun") == 1
    assert "errors" not in outcomes
