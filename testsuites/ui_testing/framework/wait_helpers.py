# ================================================================================
# Wait Helpers Module
# ================================================================================
#
# Wait strategies for the Practical Law UI tests.
#
# Key Features:
#   - Async polling with exponential backoff and jitter
#   - Pre-configured wait scenarios (fast, page_load, sign_out, ...)
#   - Element waits (gone, url)
#   - Smart page waits (document ready, jQuery / Angular idle,
#     loading indicators gone)
#
# Usage:
#   await wait_for_url_contains(page, ["practicallaw"])
#   await wait_until(check_signed_out, scenario="sign_out")
#   await SmartWaits(page).wait_for_page_load()
#
# ================================================================================

from __future__ import annotations

import asyncio
import random
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence, Tuple, TypeVar

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError


T = TypeVar("T")

DEFAULT_TIMEOUT_MS = 10000


@dataclass
class WaitConfig:
    """
    Configuration for polling waits.

    Attributes:
        initial_interval: Initial wait interval in seconds
        multiplier: Multiplier for exponential backoff
        max_interval: Maximum interval between attempts
        timeout: Total timeout in seconds
        jitter: Add random jitter between polls
    """
    initial_interval: float = 0.25
    multiplier: float = 1.5
    max_interval: float = 2.0
    timeout: float = 10.0
    jitter: bool = True


# Pre-configured wait strategies for common scenarios
WAIT_SCENARIOS: Dict[str, WaitConfig] = {
    "default": WaitConfig(),
    "fast": WaitConfig(initial_interval=0.1, multiplier=1.5, max_interval=0.5, timeout=5.0),
    "page_load": WaitConfig(initial_interval=0.5, multiplier=1.5, max_interval=2.0, timeout=30.0),
    "sign_in": WaitConfig(initial_interval=0.5, multiplier=1.5, max_interval=3.0, timeout=20.0),
    "sign_out": WaitConfig(initial_interval=0.5, multiplier=1.5, max_interval=2.0, timeout=15.0),
    "start_page_toggle": WaitConfig(initial_interval=0.25, multiplier=1.5, max_interval=1.0, timeout=10.0),
    "delivery": WaitConfig(initial_interval=0.5, multiplier=1.5, max_interval=3.0, timeout=30.0),
}


# Loading indicators rendered by Practical Law and its widgets
LOADING_INDICATORS: Tuple[str, ...] = (
    "div.loading",
    "div.spinner",
    ".loading-overlay",
    ".loader",
    "[data-loading='true']",
    ".progress-bar",
    ".sk-spinner",
)


class WaitTimeoutError(Exception):
    """Raised when a wait operation times out."""
    pass


def get_wait_config(scenario: str) -> WaitConfig:
    """
    Get wait configuration for a specific scenario.

    Returns:
        WaitConfig for the scenario, or default if not found
    """
    return WAIT_SCENARIOS.get(scenario, WAIT_SCENARIOS["default"])


def calculate_next_interval(current_interval: float, config: WaitConfig) -> float:
    """
    Calculate the next wait interval with exponential backoff and jitter.

    Args:
        current_interval: Current interval in seconds
        config: Wait configuration

    Returns:
        Next interval in seconds
    """
    next_interval = min(current_interval * config.multiplier, config.max_interval)

    if config.jitter:
        # +/- 25% jitter
        jitter_factor = 0.75 + (random.random() * 0.5)
        next_interval = next_interval * jitter_factor

    return next_interval


async def wait_until(
    check_fn: Callable[[], Awaitable[Tuple[bool, T]]],
    scenario: str = "default",
    description: str = "Waiting for condition",
    config: Optional[WaitConfig] = None,
) -> T:
    """
    Poll an async condition with exponential backoff.

    Args:
        check_fn: Coroutine function returning (success, result)
        scenario: Predefined scenario name for configuration
        description: Human-readable description for logging
        config: Optional custom WaitConfig (overrides scenario)

    Returns:
        Result from check_fn when successful

    Raises:
        WaitTimeoutError: If timeout is reached without success
    """
    if config is None:
        config = get_wait_config(scenario)

    start_time = time.monotonic()
    current_interval = config.initial_interval
    attempt = 0
    last_result: Any = None
    last_error: Optional[str] = None

    while True:
        attempt += 1
        try:
            success, result = await check_fn()
            last_result = result
            if success:
                logger.debug(
                    f"Wait successful after {attempt} attempts "
                    f"({time.monotonic() - start_time:.1f}s): {description}"
                )
                return result
        except PlaywrightError as e:
            last_error = str(e).splitlines()[0]

        elapsed = time.monotonic() - start_time
        if elapsed >= config.timeout:
            error_msg = (
                f"Timeout after {elapsed:.1f}s waiting for: {description}. "
                f"Last result: {last_result}, Last error: {last_error}"
            )
            logger.warning(error_msg)
            raise WaitTimeoutError(error_msg)

        await asyncio.sleep(min(current_interval, max(config.timeout - elapsed, 0.05)))
        current_interval = calculate_next_interval(current_interval, config)


# ================================================================================
# Element waits
# ================================================================================

async def wait_for_disappear(page: Page, selector: str, timeout: int = 5000) -> bool:
    """Wait until no match of `selector` is visible. Returns False on timeout."""
    try:
        await page.locator(selector).first.wait_for(state="hidden", timeout=timeout)
        return True
    except PlaywrightTimeoutError:
        logger.debug(f"Element still visible after {timeout}ms: {selector}")
        return False


async def wait_for_url_contains(
    page: Page,
    fragments: Sequence[str],
    timeout: int = DEFAULT_TIMEOUT_MS,
) -> bool:
    """Wait until the current URL contains any of `fragments` (case-insensitive)."""
    lowered = [f.lower() for f in fragments]

    async def check() -> Tuple[bool, str]:
        url = page.url.lower()
        return any(f in url for f in lowered), url

    try:
        await wait_until(
            check,
            config=WaitConfig(initial_interval=0.2, max_interval=1.0, timeout=timeout / 1000),
            description=f"url containing any of {list(fragments)}",
        )
        return True
    except WaitTimeoutError:
        return False


# ================================================================================
# Smart waits
# ================================================================================

class SmartWaits:
    """
    Page-level waits for the AJAX-heavy Practical Law pages.

    Every wait is best-effort: a timeout is logged and the test continues,
    the next explicit element wait decides whether the page is usable.
    """

    def __init__(self, page: Page, timeout: int = 30000):
        self.page = page
        self.timeout = timeout

    @allure.step("Wait for page load")
    async def wait_for_page_load(self) -> bool:
        ready = await self.wait_for_document_ready()
        await self.wait_for_jquery_idle()
        await self.wait_for_angular_idle()
        await self.wait_for_loading_indicators_gone()
        return ready

    async def wait_for_document_ready(self) -> bool:
        try:
            await self.page.wait_for_function(
                "document.readyState === 'complete'", timeout=self.timeout
            )
            return True
        except PlaywrightTimeoutError:
            logger.warning(f"⚠️ document.readyState not complete after {self.timeout}ms, continuing")
            return False

    async def wait_for_jquery_idle(self, timeout: int = 5000) -> bool:
        try:
            await self.page.wait_for_function(
                "typeof window.jQuery === 'undefined' || window.jQuery.active === 0",
                timeout=timeout,
            )
            return True
        except PlaywrightTimeoutError:
            logger.debug("jQuery still has active requests, continuing")
            return False

    async def wait_for_angular_idle(self, timeout: int = 5000) -> bool:
        script = """
            () => {
                if (typeof window.angular === 'undefined') { return true; }
                const el = document.querySelector('[ng-app], .ng-scope') || document.body;
                const injector = window.angular.element(el).injector();
                if (!injector) { return true; }
                return injector.get('$http').pendingRequests.length === 0;
            }
        """
        try:
            await self.page.wait_for_function(script, timeout=timeout)
            return True
        except PlaywrightTimeoutError:
            logger.debug("Angular still has pending requests, continuing")
            return False
        except PlaywrightError as e:
            logger.debug(f"Angular idle check unavailable: {e}")
            return True

    async def wait_for_loading_indicators_gone(self, timeout: int = 10000) -> bool:
        all_gone = True
        for selector in LOADING_INDICATORS:
            if await self.page.locator(selector).count() == 0:
                continue
            if not await wait_for_disappear(self.page, selector, timeout):
                all_gone = False
        return all_gone


__all__ = [
    "LOADING_INDICATORS",
    "SmartWaits",
    "WAIT_SCENARIOS",
    "WaitConfig",
    "WaitTimeoutError",
    "calculate_next_interval",
    "get_wait_config",
    "wait_for_disappear",
    "wait_for_url_contains",
    "wait_until",
]
