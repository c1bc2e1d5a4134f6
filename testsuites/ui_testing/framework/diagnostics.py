"""
================================================================================
Test Diagnostics
================================================================================

Evidence captured around a UI test so a failure can be understood from the
report alone:

    - Screenshot    {test}_{FAILED|SUCCESS}_{yyyyMMdd_HHmmss_fff}.png
    - Page source   {test}_pagesource_{yyyyMMdd_HHmmss}.html
    - Browser console messages
    - Environment information (browser, viewport, OS, user)
    - Navigation timing metrics

Every capture is attached to Allure and never raises: a broken browser must
not hide the original test failure.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import getpass
import os
import platform
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from loguru import logger
from playwright.async_api import ConsoleMessage, Page
from playwright.async_api import Error as PlaywrightError

from autotest_tools.report_tools import ConsoleLogEntry, attach_html, attach_json, attach_png, attach_text, safe_filename


PERFORMANCE_SCRIPT = """
() => {
    const nav = window.performance.getEntriesByType('navigation')[0];
    if (!nav) { return null; }
    return {
        loadEventEnd: nav.loadEventEnd,
        loadEventStart: nav.loadEventStart,
        domContentLoadedEventEnd: nav.domContentLoadedEventEnd,
        domContentLoadedEventStart: nav.domContentLoadedEventStart,
        responseEnd: nav.responseEnd,
        responseStart: nav.responseStart,
        requestStart: nav.requestStart,
        connectEnd: nav.connectEnd,
        connectStart: nav.connectStart,
        domainLookupEnd: nav.domainLookupEnd,
        domainLookupStart: nav.domainLookupStart
    };
}
"""


def _first_line(error: BaseException) -> str:
    text = str(error)
    return text.splitlines()[0] if text else repr(error)


def screenshot_filename(test_name: str, passed: bool, when: Optional[datetime] = None) -> str:
    when = when or datetime.now()
    status = "SUCCESS" if passed else "FAILED"
    # %f is microseconds, keep milliseconds
    return f"{safe_filename(test_name)}_{status}_{when.strftime('%Y%m%d_%H%M%S_%f')[:-3]}.png"


def page_source_filename(test_name: str, when: Optional[datetime] = None) -> str:
    when = when or datetime.now()
    return f"{safe_filename(test_name)}_pagesource_{when.strftime('%Y%m%d_%H%M%S')}.html"


def summarize_performance(raw: Optional[Dict[str, float]]) -> Dict[str, float]:
    """
    Turn raw navigation-timing marks into durations in milliseconds.

    Missing marks produce no entry.
    """
    if not raw:
        return {}

    spans = {
        "dns_ms": ("domainLookupStart", "domainLookupEnd"),
        "connect_ms": ("connectStart", "connectEnd"),
        "time_to_first_byte_ms": ("requestStart", "responseStart"),
        "response_ms": ("responseStart", "responseEnd"),
        "dom_content_loaded_ms": ("domContentLoadedEventStart", "domContentLoadedEventEnd"),
        "load_event_ms": ("loadEventStart", "loadEventEnd"),
    }
    metrics: Dict[str, float] = {}
    for name, (start, end) in spans.items():
        if raw.get(start) is not None and raw.get(end) is not None:
            metrics[name] = round(float(raw[end]) - float(raw[start]), 2)
    if raw.get("loadEventEnd"):
        metrics["page_load_ms"] = round(float(raw["loadEventEnd"]), 2)
    return metrics


class ConsoleCollector:
    """Collects browser console messages of a page."""

    def __init__(self, page: Optional[Page] = None, limit: int = 500):
        self.entries: List[ConsoleLogEntry] = []
        self.limit = limit
        if page is not None:
            self.attach(page)

    def attach(self, page: Page) -> None:
        page.on("console", self._on_console)

    def detach(self, page: Page) -> None:
        page.remove_listener("console", self._on_console)

    def _on_console(self, message: ConsoleMessage) -> None:
        self.entries.append(ConsoleLogEntry(level=message.type.upper(), message=message.text))
        if len(self.entries) > self.limit:
            self.entries.pop(0)

    def errors(self) -> List[ConsoleLogEntry]:
        return [e for e in self.entries if e.level in ("ERROR", "SEVERE")]

    def drain(self) -> List[ConsoleLogEntry]:
        entries, self.entries = self.entries, []
        return entries

    def as_text(self, test_name: str) -> str:
        lines = [
            f"Browser Console Logs for test: {test_name}",
            f"Captured at: {datetime.now().isoformat()}",
            "",
        ]
        lines += [f"[{e.timestamp:%H:%M:%S}] {e.level}: {e.message}" for e in self.entries]
        return "\n".join(lines)


class TestDiagnostics:
    """
    Failure evidence for one page.

    Usage:
        diagnostics = TestDiagnostics(page, screenshot_dir=config.path("screenshots"))
        await diagnostics.capture_screenshot("test_login", passed=False)
        await diagnostics.capture_page_source("test_login")
    """
    __test__ = False

    def __init__(
        self,
        page: Page,
        screenshot_dir: Union[str, Path] = "Screenshots",
        browser_name: str = "",
    ):
        self.page = page
        self.screenshot_dir = Path(screenshot_dir)
        self.browser_name = browser_name
        self.console = ConsoleCollector(page)

    async def capture_screenshot(self, test_name: str, passed: bool = False, description: str = "") -> Optional[Path]:
        """Full-page screenshot saved to disk and attached to Allure."""
        try:
            self.screenshot_dir.mkdir(parents=True, exist_ok=True)
            path = self.screenshot_dir / screenshot_filename(test_name, passed)
            png = await self.page.screenshot(path=str(path), full_page=True)
            attach_png(png, name=f"Screenshot - {test_name}")
            logger.info(f"Screenshot captured: {path}" + (f" - {description}" if description else ""))
            return path
        except (PlaywrightError, OSError) as e:
            logger.error(f"Failed to capture screenshot: {_first_line(e)}")
            return None

    async def capture_page_source(self, test_name: str) -> Optional[Path]:
        try:
            self.screenshot_dir.mkdir(parents=True, exist_ok=True)
            path = self.screenshot_dir / page_source_filename(test_name)
            html = await self.page.content()
            path.write_text(html, encoding="utf-8")
            attach_html(html, name=f"Page source - {test_name}")
            logger.info(f"Page source captured: {path}")
            return path
        except (PlaywrightError, OSError) as e:
            logger.error(f"Failed to capture page source: {_first_line(e)}")
            return None

    def capture_console_logs(self, test_name: str) -> List[ConsoleLogEntry]:
        entries = list(self.console.entries)
        if entries:
            attach_text(self.console.as_text(test_name), name="Browser console")
            for entry in self.console.errors():
                logger.warning(f"Browser console error: {entry.message[:200]}")
        self.console.drain()
        return entries

    def close(self) -> None:
        """Stop listening to the page console."""
        try:
            self.console.detach(self.page)
        except (PlaywrightError, ValueError, KeyError) as e:
            logger.debug(f"Console listener already gone: {e!r}")

    async def environment_info(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "os": f"{platform.system()} {platform.release()}",
            "machine": platform.node(),
            "user": _current_user(),
            "working_directory": os.getcwd(),
            "python": platform.python_version(),
            "browser_name": self.browser_name,
        }
        try:
            info["url"] = self.page.url
            info["title"] = await self.page.title()
            info["user_agent"] = await self.page.evaluate("() => navigator.userAgent")
            viewport = self.page.viewport_size or {}
            info["window_size"] = f"{viewport.get('width', '?')}x{viewport.get('height', '?')}"
            browser = self.page.context.browser
            if browser is not None:
                info["browser_version"] = browser.version
        except PlaywrightError as e:
            logger.warning(f"⚠️ Environment info incomplete: {_first_line(e)}")
        return info

    async def performance_metrics(self) -> Dict[str, float]:
        try:
            raw = await self.page.evaluate(PERFORMANCE_SCRIPT)
        except PlaywrightError as e:
            logger.warning(f"⚠️ Failed to capture performance metrics: {_first_line(e)}")
            return {}
        metrics = summarize_performance(raw)
        if metrics:
            attach_json(metrics, name="Performance metrics")
        return metrics


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


__all__ = [
    "ConsoleCollector",
    "TestDiagnostics",
    "page_source_filename",
    "screenshot_filename",
    "summarize_performance",
]
