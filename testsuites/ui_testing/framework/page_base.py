"""
================================================================================
Base Page Object
================================================================================

Foundation class for the Practical Law page objects.

Provides:
    - Navigation and page-load waits
    - Smart element location (ordered fallback chains)
    - JavaScript click helper for overlay-heavy pages

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, List, Optional

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page

from .config_loader import get_config
from .element_actions import StableActions
from .smart_locator import ElementNotFoundError, LocatorChain, SmartLocator, as_chain
from .wait_helpers import SmartWaits


class PageBase:
    """
    Base class for all page objects.

    Usage:
        class LoginPage(PageBase):
            USERNAME = ["#Username", "input[type='email']"]

            async def enter_username(self, username: str):
                await self.fill(self.USERNAME, username, element_name="username")
    """

    # Override in subclasses
    URL_PATH: str = "/"
    PAGE_TITLE: str = ""

    def __init__(
        self,
        page: Page,
        base_url: str = "",
    ):
        """
        Initialize page object.

        Args:
            page: Playwright Page object
            base_url: Application base URL (defaults to `app.base_url`)
        """
        self.page = page
        self.config = get_config()
        self.base_url = (base_url or self.config.base_url).rstrip("/")
        self.timeout = self.config.timeout("default")
        self.short_timeout = self.config.timeout("short")
        self.long_timeout = self.config.timeout("long")
        self.smart = SmartLocator(page)
        self.actions = StableActions(page, default_timeout=self.timeout)
        self.waits = SmartWaits(page, timeout=self.config.timeout("page_load"))

    @property
    def url(self) -> str:
        """Get full page URL."""
        return f"{self.base_url}{self.URL_PATH}"

    @property
    def current_url(self) -> str:
        return self.page.url

    async def page_title(self) -> str:
        return await self.page.title()

    async def navigate(self, wait_for: str = "domcontentloaded") -> None:
        """
        Navigate to this page.

        Args:
            wait_for: Wait condition - 'load', 'domcontentloaded', 'networkidle'
        """
        with allure.step(f"Navigate to {self.url}"):
            await self.page.goto(self.url, wait_until=wait_for)
            logger.debug(f"Navigated to: {self.url}")

    async def navigate_to(
        self,
        path: str,
        wait_for: str = "domcontentloaded",
    ) -> None:
        """
        Navigate to a path (or an absolute URL).
        """
        full_url = path if path.startswith("http") else f"{self.base_url}{path}"
        with allure.step(f"Navigate to {path}"):
            await self.page.goto(full_url, wait_until=wait_for)

    async def wait_for_page_load(self) -> bool:
        """
        Wait for document.readyState, then AJAX idle.

        Continues on timeout; the next element wait decides.
        """
        return await self.waits.wait_for_page_load()

    async def refresh(self) -> None:
        with allure.step("Refresh page"):
            await self.page.reload(wait_until="domcontentloaded")
            await self.wait_for_page_load()

    # =========================================================================
    # Smart Element Interactions
    # =========================================================================

    async def find(
        self,
        target: LocatorChain,
        timeout: Optional[int] = None,
        element_name: Optional[str] = None,
        state: str = "visible",
    ) -> Locator:
        """Resolve a locator chain, raising ElementNotFoundError."""
        return await self.smart.locate(
            target, timeout=timeout or self.short_timeout, element_name=element_name, state=state
        )

    async def click(
        self,
        target: LocatorChain,
        timeout: Optional[int] = None,
        element_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        """
        Click element using smart location.

        Args:
            target: Element name from SmartLocator or a selector chain
            timeout: Timeout for element location
            element_name: Name used in logs and report steps
            **kwargs: Additional click options
        """
        with allure.step(f"Click: {element_name or target}"):
            await self.smart.click(target, timeout or self.short_timeout, element_name, **kwargs)

    async def fill(
        self,
        target: LocatorChain,
        value: str,
        timeout: Optional[int] = None,
        element_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        """
        Fill input element.

        Values of password fields are masked in the report step.
        """
        label = element_name or str(target)
        shown = "*" * len(value) if "password" in label.lower() else value
        with allure.step(f"Fill {label}: {shown}"):
            await self.smart.fill(target, value, timeout or self.short_timeout, element_name, **kwargs)

    async def get_text(
        self,
        target: LocatorChain,
        timeout: Optional[int] = None,
        element_name: Optional[str] = None,
    ) -> str:
        """
        Get text content of element.

        Returns:
            Text content
        """
        return await self.smart.get_text(target, timeout or self.short_timeout, element_name)

    async def is_visible(
        self,
        target: LocatorChain,
        timeout: int = 2000,
        element_name: Optional[str] = None,
    ) -> bool:
        """
        Check if element is visible.

        Returns:
            True if visible
        """
        return await self.smart.is_visible(target, timeout, element_name)

    async def is_any_visible(self, target: LocatorChain) -> bool:
        """Immediate check (no waiting) whether any selector of the chain is visible."""
        return await self.first_visible(target) is not None

    async def first_visible(self, target: LocatorChain) -> Optional[Locator]:
        """First currently visible element of the chain, or None."""
        chain = SmartLocator.LOCATORS.get(target) if isinstance(target, str) else None
        for selector in (chain or as_chain(target)).values():
            locator = self.page.locator(selector).first
            try:
                if await locator.count() and await locator.is_visible():
                    return locator
            except PlaywrightError:
                continue
        return None

    async def visible_texts(self, selector: str, limit: int = 100) -> List[str]:
        """Stripped, non-empty texts of the visible matches of `selector`."""
        texts: List[str] = []
        elements = self.page.locator(selector)
        count = min(await elements.count(), limit)
        for index in range(count):
            element = elements.nth(index)
            try:
                if not await element.is_visible():
                    continue
                text = (await element.inner_text()).strip()
            except PlaywrightError:
                continue
            if text:
                texts.append(text)
        return texts

    async def js_click(self, target: Any, element_name: str = "") -> None:
        """Click through JavaScript, bypassing overlays that intercept pointer events."""
        locator = target if isinstance(target, Locator) else await self.find(target, element_name=element_name, state="attached")
        with allure.step(f"JavaScript click: {element_name or target}"):
            await locator.evaluate("el => el.click()")

    async def try_click(self, target: LocatorChain, element_name: str = "", timeout: Optional[int] = None) -> bool:
        """Click if present; False when none of the selectors resolves."""
        try:
            await self.click(target, timeout=timeout, element_name=element_name)
            return True
        except (ElementNotFoundError, PlaywrightError) as e:
            logger.debug(f"Could not click {element_name or target}: {str(e).splitlines()[0] if str(e) else e!r}")
            return False


__all__ = [
    "PageBase",
]
