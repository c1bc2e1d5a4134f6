"""
Repository-level pytest configuration.

Command line switches for the settings that are otherwise read from
environment variables, so a plain `pytest` run can pick the environment
overlay, browser and headless mode:

    pytest testsuites/ui_testing/tests --environment ci --browser-name firefox --headed

Values are exported before any settings are loaded; variables already set by
the caller (or by run_tests.py) win over the defaults but not over explicit
switches.
"""

from __future__ import annotations

import os

import pytest


pytest_plugins = ["pytester"]


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("practical-law", "Practical Law UI suite")
    group.addoption(
        "--environment",
        action="store",
        default=None,
        help="Settings overlay to use (config/<name>.yaml), exported as ENVIRONMENT",
    )
    group.addoption(
        "--browser-name",
        action="store",
        default=None,
        help="chromium | chrome | msedge | firefox | webkit, exported as BROWSER",
    )
    group.addoption(
        "--headed",
        action="store_true",
        default=False,
        help="Show the browser window (HEADLESS=false)",
    )


@pytest.hookimpl(tryfirst=True)
def pytest_configure(config: pytest.Config) -> None:
    overrides = {
        "ENVIRONMENT": config.getoption("--environment"),
        "BROWSER": config.getoption("--browser-name"),
        "HEADLESS": "false" if config.getoption("--headed") else None,
    }
    for name, value in overrides.items():
        if value:
            os.environ[name] = value
