"""
================================================================================
UI Testing Pytest Configuration
================================================================================

This module configures pytest for the Practical Law UI tests, providing
fixtures for browser management, login state, page objects and per-test
evidence capture.

Key Features:
- One browser session per test class (ordered tests share the page)
- One login per test class, user leased from the test-user pool
- Class teardown signs out (errors swallowed) and releases the user
- Screenshot per test, page source on failure, JSON/text results per test
- Session HTML report at the end of the run

================================================================================
"""

import os
from datetime import datetime
from pathlib import Path
from typing import AsyncGenerator, Generator, Optional

import pytest
import pytest_asyncio
from loguru import logger
from playwright.async_api import Page

from autotest_tools.common.global_config import ensure_directories, init_logger
from autotest_tools.report_tools import ResultsReporter, TestAttachment, TestExecutionDetails
from testsuites.ui_testing.framework.browser_manager import BrowserManager, BrowserSession
from testsuites.ui_testing.framework.config_loader import ConfigLoader, get_config
from testsuites.ui_testing.framework.diagnostics import TestDiagnostics
from testsuites.ui_testing.framework.session_state import LoginSession
from testsuites.ui_testing.framework.smart_locator import SmartLocator
from testsuites.ui_testing.framework.user_pool import TestUser, TestUserPool
from testsuites.ui_testing.pages.dashboard_page import DashboardPage
from testsuites.ui_testing.pages.home_page import HomePage


CATEGORIES = (
    "login",
    "post_login",
    "employment_validation",
    "start_page",
    "favourites",
    "delivery",
    "home_page",
)


# ================================================================================
# Session Fixtures
# ================================================================================

@pytest.fixture(scope="session")
def config() -> ConfigLoader:
    return get_config()


@pytest.fixture(scope="session", autouse=True)
def _logging(config: ConfigLoader) -> None:
    """Loguru console + rolling file sink, output directories."""
    ensure_directories(*(config.path(name) for name in ("screenshots", "reports", "results", "logs")))
    init_logger(
        level=str(config.get("logging.level", "INFO")),
        log_file=config.get("logging.file", "Logs/test-log.log"),
        rotation=config.get("logging.rotation", "00:00"),
        retention=config.get("logging.retention", 7),
    )
    logger.info(
        f"🚀 Test run on '{config.environment}' ({config.base_url}) "
        f"with {config.browser_name}, headless={config.headless}"
    )


@pytest.fixture(scope="session")
def reporter(config: ConfigLoader) -> Generator[ResultsReporter, None, None]:
    """
    Session-scoped results reporter.

    Writes the session HTML report and JSON summary when the run ends.
    """
    results = ResultsReporter(config.path("results"), config.path("reports"))
    yield results

    worker = os.environ.get("PYTEST_XDIST_WORKER", "")
    session = f"TestSession_{datetime.now():%Y%m%d_%H%M%S}" + (f"_{worker}" if worker else "")
    results.generate_session_report(session)
    summary = results.summary()
    logger.info(
        f"📊 {summary.total} tests: {summary.passed} passed, {summary.failed} failed, "
        f"{summary.skipped} skipped ({summary.pass_rate:.1f}% pass rate)"
    )
    logger.info(SmartLocator.health_report())


@pytest.fixture(scope="session")
def user_pool(config: ConfigLoader) -> Generator[TestUserPool, None, None]:
    """Test-user pool; leases are file locks shared by all xdist workers."""
    pool = TestUserPool.from_config(config, lock_dir=config.path("results") / ".user_locks")
    yield pool
    pool.release_all()


# ================================================================================
# Class Fixtures (browser + login shared by the ordered tests of a class)
# ================================================================================

@pytest_asyncio.fixture(scope="class", loop_scope="session")
async def browser_session(config: ConfigLoader) -> AsyncGenerator[BrowserSession, None]:
    """
    Class-scoped browser session.

    Relaunches lazily when the retry policy killed the browser.
    """
    session = BrowserSession(BrowserManager.from_config(config))
    yield session
    await session.close()


@pytest_asyncio.fixture(scope="class", loop_scope="session")
async def login_session(
    request: pytest.FixtureRequest,
    browser_session: BrowserSession,
    user_pool: TestUserPool,
) -> AsyncGenerator[LoginSession, None]:
    """
    Class-scoped login flag.

    Teardown signs out (never raises) and returns the user to the pool.
    """
    name = request.cls.__name__ if request.cls else request.node.name
    session = LoginSession(name, user_pool)

    async def forget_login() -> None:
        session.mark_logged_out()

    browser_session.on_relaunch = forget_login
    yield session

    await session.sign_out()
    session.release()


# ================================================================================
# Page Fixtures
# ================================================================================

@pytest_asyncio.fixture(loop_scope="session")
async def page(browser_session: BrowserSession) -> Page:
    return await browser_session.page()


@pytest.fixture
def home_page(page: Page) -> HomePage:
    return HomePage(page)


async def sign_in(page: Page, user: TestUser) -> DashboardPage:
    """Home page -> cookie consent -> Sign in -> two-step sign-on."""
    home = HomePage(page)
    await home.open()
    await home.handle_cookie_consent()
    login = await home.click_sign_in()
    dashboard = await login.login(user.username, user.password)
    if not await dashboard.is_user_logged_in():
        raise AssertionError(f"Login failed - {user}")
    return dashboard


@pytest_asyncio.fixture(loop_scope="session")
async def dashboard(page: Page, login_session: LoginSession) -> DashboardPage:
    """Signed-in dashboard, reusing the class login when there is one."""
    return await login_session.ensure_logged_in(lambda user: sign_in(page, user))


@pytest.fixture
def download_dir(config: ConfigLoader) -> Path:
    path = config.path("results") / "downloads"
    path.mkdir(parents=True, exist_ok=True)
    return path


# ================================================================================
# Per-test Evidence
# ================================================================================

def _category(item: pytest.Item) -> str:
    for name in CATEGORIES:
        if item.get_closest_marker(name) is not None:
            return name
    return ""


def _result(item: pytest.Item) -> str:
    reports = [getattr(item, f"rep_{phase}", None) for phase in ("setup", "call")]
    reports = [r for r in reports if r is not None]
    if any(r.failed for r in reports):
        return "Failed"
    if any(r.skipped for r in reports):
        return "Skipped"
    return "Passed" if reports else "Unknown"


def _failure_report(item: pytest.Item) -> Optional[pytest.TestReport]:
    for phase in ("call", "setup"):
        report = getattr(item, f"rep_{phase}", None)
        if report is not None and report.failed:
            return report
    return None


@pytest_asyncio.fixture(autouse=True, loop_scope="session")
async def test_evidence(
    request: pytest.FixtureRequest,
    config: ConfigLoader,
    browser_session: BrowserSession,
    reporter: ResultsReporter,
) -> AsyncGenerator[TestExecutionDetails, None]:
    """
    Record the test execution and capture screenshot, console log and,
    on failure, the page source.
    """
    item = request.node
    details = TestExecutionDetails(
        test_name=item.name,
        test_class=request.cls.__name__ if request.cls else "",
        test_category=_category(item),
        test_description=(item.function.__doc__ or "").strip(),
    )
    page = await browser_session.page()
    diagnostics = TestDiagnostics(page, config.path("screenshots"), config.browser_name)
    logger.info(f"▶️ Starting {item.nodeid}")

    yield details

    details.result = _result(item)
    failure = _failure_report(item)
    page = browser_session.current_page
    if page is not None and not page.is_closed() and details.result != "Skipped":
        diagnostics.page = page
        screenshot = await diagnostics.capture_screenshot(item.name, passed=failure is None)
        if screenshot is not None:
            details.attachments.append(TestAttachment("Screenshot", str(screenshot), "Final page state"))
        if failure is not None:
            source = await diagnostics.capture_page_source(item.name)
            if source is not None:
                details.attachments.append(TestAttachment("PageSource", str(source), "Page HTML at failure"))
        details.environment_info = await diagnostics.environment_info()
        details.performance_metrics = await diagnostics.performance_metrics()
    details.console_output = diagnostics.capture_console_logs(item.name)
    diagnostics.close()

    if failure is not None:
        details.error_message = str(failure.longreprtext).strip().splitlines()[-1] if failure.longreprtext else "Unknown error"
        details.stack_trace = failure.longreprtext
    details.end_time = datetime.now()
    reporter.capture(details)
    logger.info(f"{'✅' if details.result == 'Passed' else '❌' if details.result == 'Failed' else '⏭️'} {item.nodeid}: {details.result}")
