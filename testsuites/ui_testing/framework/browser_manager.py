"""
================================================================================
Browser Manager
================================================================================

Browser lifecycle management for the Practical Law UI tests.

Features:
    - Chromium, Chrome / Edge channels, Firefox and WebKit
    - Fresh, isolated context per test fixture (no shared profile)
    - Headless / headed and window size from settings
    - Relaunch after the retry policy killed a stuck browser

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from loguru import logger
from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
)



# name -> (playwright engine, channel)
SUPPORTED_BROWSERS: Dict[str, Tuple[str, Optional[str]]] = {
    "chromium": ("chromium", None),
    "chrome": ("chromium", "chrome"),
    "msedge": ("chromium", "msedge"),
    "edge": ("chromium", "msedge"),
    "firefox": ("firefox", None),
    "webkit": ("webkit", None),
}

CHROMIUM_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-popup-blocking",
    "--disable-notifications",
    "--disable-infobars",
    "--no-first-run",
    "--no-default-browser-check",
    "--ignore-certificate-errors",
]


class BrowserLaunchError(Exception):
    """Raised when the requested browser cannot be started."""
    pass


def resolve_browser(name: str) -> Tuple[str, Optional[str]]:
    """
    Map a configured browser name to a Playwright engine and channel.

    Raises:
        BrowserLaunchError: for names Playwright cannot drive
    """
    key = (name or "").strip().lower()
    if key not in SUPPORTED_BROWSERS:
        raise BrowserLaunchError(f"Unsupported browser type: {name}")
    return SUPPORTED_BROWSERS[key]


def parse_window_size(value: Any, default: Tuple[int, int] = (1920, 1080)) -> Dict[str, int]:
    """'1920,1080' / '1920x1080' / [1920, 1080] -> {'width': 1920, 'height': 1080}."""
    try:
        if isinstance(value, str):
            width, height = value.lower().replace("x", ",").split(",")
        else:
            width, height = value
        return {"width": int(width), "height": int(height)}
    except (TypeError, ValueError):
        return {"width": default[0], "height": default[1]}


class BrowserManager:
    """
    Manages browser instances and contexts for UI testing.

    Usage:
        async with BrowserManager(browser_type="chrome", headless=False) as manager:
            page = await manager.new_page()
            await page.goto("https://uk.practicallaw.qed.thomsonreuters.com")
    """

    # Default context options
    DEFAULT_CONTEXT_OPTIONS: Dict[str, Any] = {
        "ignore_https_errors": True,
        "locale": "en-GB",
        "user_agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
        ),
    }

    def __init__(
        self,
        headless: bool = True,
        browser_type: str = "chromium",
        window_size: Any = "1920,1080",
        slow_mo: int = 0,
        navigation_timeout: int = 120000,
        default_timeout: int = 10000,
    ):
        """
        Initialize browser manager.

        Args:
            headless: Run browser in headless mode
            browser_type: chromium, chrome, msedge, firefox or webkit
            window_size: Viewport, e.g. "1920,1080"
            slow_mo: Delay between Playwright operations in ms
            navigation_timeout: Page load timeout in ms
            default_timeout: Default action timeout in ms
        """
        self.engine, self.channel = resolve_browser(browser_type)
        self.browser_type = browser_type.lower()
        self.headless = headless
        self.viewport = parse_window_size(window_size)
        self.slow_mo = slow_mo
        self.navigation_timeout = navigation_timeout
        self.default_timeout = default_timeout

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._contexts: list[BrowserContext] = []

    @classmethod
    def from_config(cls, config, **overrides: Any) -> "BrowserManager":
        """Build a manager from settings (BROWSER / HEADLESS env vars honoured)."""
        options = {
            "browser_type": config.browser_name,
            "headless": config.headless,
            "window_size": config.get("browser.window_size", "1920,1080"),
            "slow_mo": int(config.get("browser.slow_mo", 0)),
            "navigation_timeout": config.timeout("navigation"),
            "default_timeout": config.timeout("default"),
        }
        options.update(overrides)
        return cls(**options)

    async def __aenter__(self) -> "BrowserManager":
        """Async context manager entry - start browser."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - close browser."""
        await self.close()

    def launch_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "headless": self.headless,
            "slow_mo": self.slow_mo,
        }
        if self.engine == "chromium":
            options["args"] = CHROMIUM_ARGS + [
                f"--window-size={self.viewport['width']},{self.viewport['height']}"
            ]
            options["ignore_default_args"] = ["--enable-automation"]
        if self.channel:
            options["channel"] = self.channel
        return options

    async def start(self) -> None:
        """Start Playwright and launch browser."""
        if self._playwright is None:
            self._playwright = await async_playwright().start()

        launcher = getattr(self._playwright, self.engine)
        try:
            self._browser = await launcher.launch(**self.launch_options())
        except PlaywrightError as e:
            raise BrowserLaunchError(
                f"Failed to launch {self.browser_type}: {str(e).splitlines()[0]}"
            ) from e

        logger.info(
            f"Browser started: {self.browser_type} "
            f"(headless={self.headless}, viewport={self.viewport['width']}x{self.viewport['height']})"
        )

    @property
    def is_connected(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def restart(self) -> None:
        """Drop a dead browser and launch a new one."""
        logger.warning(f"Restarting {self.browser_type} browser")
        await self.close()
        await self.start()

    async def close(self) -> None:
        """Close all contexts and browser. Errors are logged, never raised."""
        for context in self._contexts:
            try:
                await context.close()
            except PlaywrightError as e:
                logger.debug(f"Context already closed: {str(e).splitlines()[0]}")
        self._contexts.clear()

        if self._browser:
            try:
                await self._browser.close()
            except PlaywrightError as e:
                logger.warning(f"⚠️ Error closing browser: {str(e).splitlines()[0]}")
            self._browser = None

        if self._playwright:
            try:
                await self._playwright.stop()
            except PlaywrightError as e:
                logger.warning(f"⚠️ Error stopping Playwright: {str(e).splitlines()[0]}")
            self._playwright = None

        logger.debug("Browser closed")

    async def new_context(
        self,
        **options: Any,
    ) -> BrowserContext:
        """
        Create new browser context.

        Each context is isolated - separate cookies, localStorage, etc.
        """
        if not self._browser:
            raise RuntimeError("Browser not started. Call start() first.")

        context_options = {
            **self.DEFAULT_CONTEXT_OPTIONS,
            "viewport": self.viewport,
            "accept_downloads": True,
            **options,
        }
        if self.engine != "chromium":
            context_options.pop("user_agent", None)

        context = await self._browser.new_context(**context_options)
        context.set_default_timeout(self.default_timeout)
        context.set_default_navigation_timeout(self.navigation_timeout)
        self._contexts.append(context)

        return context

    async def new_page(
        self,
        context: Optional[BrowserContext] = None,
        **context_options: Any,
    ) -> Page:
        """Create new page in new or existing context."""
        if context is None:
            context = await self.new_context(**context_options)

        return await context.new_page()

    @property
    def browser(self) -> Optional[Browser]:
        """Get browser instance."""
        return self._browser


class BrowserSession:
    """
    One browser + context + page shared by the ordered tests of a fixture.

    If the retry policy killed the browser, the next `page()` call launches a
    fresh one and fires `on_relaunch` so callers can drop their login state.
    """

    def __init__(
        self,
        manager: BrowserManager,
        on_relaunch: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        self.manager = manager
        self.on_relaunch = on_relaunch
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    async def _responsive(self) -> bool:
        """
        Round trip to the cached page.

        Killed browser processes only show up in `is_connected` once the
        event loop has handled the driver's close events, so ask the page.
        """
        await asyncio.sleep(0)
        if not self.manager.is_connected:
            return False
        if self._page.is_closed():
            return True
        try:
            await self._page.evaluate("1")
        except PlaywrightError as e:
            logger.warning(f"⚠️ Cached page does not answer: {str(e).splitlines()[0] if str(e) else e!r}")
            return False
        return True

    async def _relaunch(self) -> None:
        await self.manager.restart()
        self._context, self._page = None, None
        if self.on_relaunch:
            await self.on_relaunch()

    async def page(self) -> Page:
        if self._page is not None and not await self._responsive():
            await self._relaunch()
        elif not self.manager.is_connected:
            if self.manager.browser is not None:
                await self._relaunch()
            else:
                await self.manager.start()

        if self._page is None or self._page.is_closed():
            self._context = await self.manager.new_context()
            self._page = await self._context.new_page()
        return self._page

    @property
    def current_page(self) -> Optional[Page]:
        return self._page

    async def close(self) -> None:
        await self.manager.close()
        self._context, self._page = None, None


__all__ = [
    "BrowserLaunchError",
    "BrowserManager",
    "BrowserSession",
    "SUPPORTED_BROWSERS",
    "parse_window_size",
    "resolve_browser",
]
