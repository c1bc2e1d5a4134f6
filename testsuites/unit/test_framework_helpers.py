from datetime import datetime

import pytest

from testsuites.ui_testing.framework.browser_manager import (
    BrowserLaunchError,
    BrowserManager,
    parse_window_size,
    resolve_browser,
)
from testsuites.ui_testing.framework.diagnostics import page_source_filename, screenshot_filename, summarize_performance
from testsuites.ui_testing.framework.smart_locator import as_chain
from testsuites.ui_testing.framework.wait_helpers import (
    WAIT_SCENARIOS,
    WaitConfig,
    calculate_next_interval,
    get_wait_config,
)


WHEN = datetime(2025, 6, 15, 10, 30, 5, 123456)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("chrome", ("chromium", "chrome")),
        ("Chromium", ("chromium", None)),
        ("edge", ("chromium", "msedge")),
        (" firefox ", ("firefox", None)),
        ("webkit", ("webkit", None)),
    ],
)
def test_resolve_browser(name, expected):
    assert resolve_browser(name) == expected


def test_unsupported_browser():
    with pytest.raises(BrowserLaunchError, match="Unsupported browser type: opera"):
        resolve_browser("opera")


@pytest.mark.parametrize(
    "value, expected",
    [
        ("1920,1080", {"width": 1920, "height": 1080}),
        ("1366x768", {"width": 1366, "height": 768}),
        ([1280, 720], {"width": 1280, "height": 720}),
        ("huge", {"width": 1920, "height": 1080}),
        (None, {"width": 1920, "height": 1080}),
    ],
)
def test_parse_window_size(value, expected):
    assert parse_window_size(value) == expected


def test_screenshot_filename():
    assert screenshot_filename("test_login[chrome]", True, WHEN) == "test_login_chrome_SUCCESS_20250615_103005_123.png"
    assert screenshot_filename("test_login", False, WHEN).startswith("test_login_FAILED_")


def test_page_source_filename():
    assert page_source_filename("test_login", WHEN) == "test_login_pagesource_20250615_103005.html"


def test_summarize_performance():
    raw = {
        "domainLookupStart": 1.0,
        "domainLookupEnd": 11.0,
        "requestStart": 20.0,
        "responseStart": 120.5,
        "responseEnd": 150.0,
        "loadEventStart": 900.0,
        "loadEventEnd": 950.0,
    }

    metrics = summarize_performance(raw)

    assert metrics["dns_ms"] == 10.0
    assert metrics["time_to_first_byte_ms"] == 100.5
    assert metrics["response_ms"] == 29.5
    assert metrics["load_event_ms"] == 50.0
    assert metrics["page_load_ms"] == 950.0
    assert "connect_ms" not in metrics


def test_summarize_performance_without_data():
    assert summarize_performance(None) == {}
    assert summarize_performance({}) == {}


def test_as_chain():
    assert as_chain("#SignIn") == {"primary": "#SignIn"}
    assert as_chain(["#SignIn", "text=Sign in"]) == {"primary": "#SignIn", "fallback_1": "text=Sign in"}
    assert as_chain({"by_id": "#x"}) == {"by_id": "#x"}


def test_wait_scenarios():
    assert get_wait_config("sign_in") is WAIT_SCENARIOS["sign_in"]
    assert get_wait_config("does_not_exist") is WAIT_SCENARIOS["default"]
    assert get_wait_config("delivery").timeout == 30.0


def test_next_interval_is_capped():
    config = WaitConfig(initial_interval=1.0, multiplier=2.0, max_interval=3.0, jitter=False)

    assert calculate_next_interval(1.0, config) == 2.0
    assert calculate_next_interval(2.0, config) == 3.0


def test_next_interval_jitter_stays_in_range():
    config = WaitConfig(multiplier=2.0, max_interval=10.0, jitter=True)

    for _ in range(20):
        assert 1.5 <= calculate_next_interval(1.0, config) <= 2.5


class BrowserSettings:
    browser_name = "chrome"
    headless = True

    def get(self, key, default=None):
        return {"browser.window_size": "1366x768", "browser.slow_mo": "50"}.get(key, default)

    def timeout(self, name):
        return {"navigation": 120000, "default": 10000}[name]


def test_browser_manager_from_settings():
    manager = BrowserManager.from_config(BrowserSettings())

    assert (manager.engine, manager.channel) == ("chromium", "chrome")
    assert manager.viewport == {"width": 1366, "height": 768}
    assert manager.slow_mo == 50

    options = manager.launch_options()
    assert options["channel"] == "chrome"
    assert options["headless"] is True
    assert "--window-size=1366,768" in options["args"]


def test_firefox_launch_options_have_no_chromium_switches():
    options = BrowserManager(browser_type="firefox", headless=False).launch_options()

    assert "args" not in options
    assert "channel" not in options
    assert options["headless"] is False
