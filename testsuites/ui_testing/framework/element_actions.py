# ================================================================================
# Element Actions Module
# ================================================================================
#
# Resilient element interactions for the Practical Law pages.
#
# Key Features:
#   - Async retry decorator and helper with exponential backoff
#   - Stable click (scroll into view, retry, JavaScript click when intercepted)
#   - Stable typing with value verification
#   - Human-like typing for the sign-in form
#   - Hover helper with Allure steps
#
# ================================================================================

from __future__ import annotations

import asyncio
import random
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page


T = TypeVar("T")


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_attempts: int = 3,
        delay_seconds: float = 1.0,
        backoff_multiplier: float = 2.0,
        max_delay_seconds: float = 10.0,
        retry_on: tuple = (PlaywrightError,),
    ):
        """
        Initialize retry configuration.

        Args:
            max_attempts: Maximum number of attempts (first try included)
            delay_seconds: Initial delay between retries
            backoff_multiplier: Multiplier for exponential backoff
            max_delay_seconds: Maximum delay between retries
            retry_on: Exception types that trigger another attempt
        """
        self.max_attempts = max_attempts
        self.delay_seconds = delay_seconds
        self.backoff_multiplier = backoff_multiplier
        self.max_delay_seconds = max_delay_seconds
        self.retry_on = retry_on

    def delay_for(self, attempt: int) -> float:
        """Delay after the given failed attempt (1-based): base * multiplier**(attempt-1)."""
        delay = self.delay_seconds * (self.backoff_multiplier ** (attempt - 1))
        return min(delay, self.max_delay_seconds)


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
    description: str = "operation",
) -> T:
    """
    Run an async operation, retrying with exponential backoff.

    The exception from the last attempt is re-raised unchanged.
    """
    config = config or RetryConfig()

    for attempt in range(1, config.max_attempts + 1):
        try:
            return await operation()
        except config.retry_on as e:
            if attempt >= config.max_attempts:
                logger.error(
                    f"All {config.max_attempts} attempts failed for {description}: "
                    f"{str(e).splitlines()[0]}"
                )
                raise
            delay = config.delay_for(attempt)
            logger.warning(
                f"Attempt {attempt}/{config.max_attempts} failed for "
                f"{description}: {str(e).splitlines()[0]}. Retrying in {delay:.1f}s..."
            )
            await asyncio.sleep(delay)

    raise RuntimeError("execute_with_retry called with max_attempts < 1")


def with_retry(config: Optional[RetryConfig] = None):
    """
    Decorator adding retry logic to async element actions.

    Args:
        config: RetryConfig object for controlling retry behavior
    """
    config = config or RetryConfig()

    def decorator(func: Callable[..., Awaitable[T]]):
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            return await execute_with_retry(
                lambda: func(*args, **kwargs),
                config=config,
                description=func.__name__,
            )
        return wrapper
    return decorator


class StableActions:
    """
    Interaction helpers that survive re-rendering, overlays and slow widgets.

    Example:
        actions = StableActions(page)
        await actions.stable_click("#coid_setAsHomePageElement", description="Start page toggle")
        await actions.stable_type("#Username", "user@example.com")
    """

    def __init__(self, page: Page, default_timeout: int = 10000):
        self.page = page
        self.default_timeout = default_timeout

    def _get_locator(self, selector: Union[str, Locator]) -> Locator:
        if isinstance(selector, str):
            return self.page.locator(selector).first
        return selector

    @allure.step("Click element: {description}")
    @with_retry(RetryConfig(max_attempts=3, delay_seconds=0.5))
    async def stable_click(
        self,
        selector: Union[str, Locator],
        description: str = "",
        timeout: Optional[int] = None,
    ) -> None:
        """
        Click an element, falling back to a JavaScript click when another
        element intercepts the pointer event.
        """
        timeout = timeout or self.default_timeout
        locator = self._get_locator(selector)

        await locator.wait_for(state="visible", timeout=timeout)
        await locator.scroll_into_view_if_needed(timeout=timeout)
        try:
            await locator.click(timeout=timeout)
        except PlaywrightError as e:
            if "intercept" not in str(e).lower() and "not receive pointer events" not in str(e).lower():
                raise
            logger.info(f"Click intercepted on {description or selector}, using JavaScript click")
            await locator.evaluate("el => el.click()")

        logger.debug(f"Successfully clicked: {description or selector}")

    @allure.step("Type text: {description}")
    @with_retry(RetryConfig(max_attempts=3, delay_seconds=0.5))
    async def stable_type(
        self,
        selector: Union[str, Locator],
        text: str,
        description: str = "",
        timeout: Optional[int] = None,
    ) -> None:
        """Clear the field, type `text` and verify the field holds it."""
        timeout = timeout or self.default_timeout
        locator = self._get_locator(selector)

        await locator.wait_for(state="visible", timeout=timeout)
        await locator.fill("", timeout=timeout)
        await locator.fill(text, timeout=timeout)

        actual = await locator.input_value()
        if actual != text:
            raise PlaywrightError(
                f"Typed value mismatch for {description or selector}: "
                f"expected {len(text)} chars, field holds {len(actual)}"
            )

    async def human_type(
        self,
        selector: Union[str, Locator],
        text: str,
        min_delay_ms: int = 50,
        max_delay_ms: int = 150,
    ) -> None:
        """Type character by character with a random per-key delay."""
        locator = self._get_locator(selector)
        await locator.wait_for(state="visible", timeout=self.default_timeout)
        await locator.click()
        await locator.fill("")
        for char in text:
            await locator.press_sequentially(char, delay=0)
            await asyncio.sleep(random.randint(min_delay_ms, max_delay_ms) / 1000)

    @allure.step("Hover: {description}")
    async def stable_hover(
        self,
        selector: Union[str, Locator],
        description: str = "",
        settle_seconds: float = 1.0,
    ) -> None:
        """Hover an element and give tooltips time to render."""
        locator = self._get_locator(selector)
        await locator.wait_for(state="visible", timeout=self.default_timeout)
        await locator.scroll_into_view_if_needed()
        await locator.hover()
        await asyncio.sleep(settle_seconds)


__all__ = [
    "RetryConfig",
    "StableActions",
    "execute_with_retry",
    "with_retry",
]
