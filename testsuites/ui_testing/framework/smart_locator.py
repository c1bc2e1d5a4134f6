"""
================================================================================
Smart Locator with Fallback Chains
================================================================================

Element location for the Practical Law pages:
    - Ordered fallback selector chains per element
    - Automatic degradation when the primary selector fails
    - Run-wide usage counters showing which primary selectors have gone stale

Practical Law markup is not under our control and changes between releases,
so every element is declared as a chain (stable id first, XPath last).

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Tuple, Union

from loguru import logger
from playwright.async_api import Locator, Page


LocatorChain = Union[str, Sequence[str], Dict[str, str]]


class ElementNotFoundError(Exception):
    """Raised when all locator strategies fail to find element."""
    pass


@dataclass
class LocatorHealth:
    """Usage counters of one element's chain."""
    element_name: str
    primary_selector: str
    primary_hits: int = 0
    fallback_hits: int = 0
    last_fallback: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.fallback_hits > 0


def as_chain(selectors: LocatorChain) -> Dict[str, str]:
    """
    Normalize a selector list into an ordered strategy map.

    >>> as_chain(["#SignIn", "text=Sign in"])
    {'primary': '#SignIn', 'fallback_1': 'text=Sign in'}
    """
    if isinstance(selectors, dict):
        return dict(selectors)
    if isinstance(selectors, str):
        return {"primary": selectors}
    chain: Dict[str, str] = {}
    for index, selector in enumerate(selectors):
        chain["primary" if index == 0 else f"fallback_{index}"] = selector
    return chain


class SmartLocator:
    """
    Resolves an element through its selector chain.

    Chains are ordered by stability:
        1. Element id (#coid_..., #co_...)
        2. Stable attributes (name, type, href fragments, data-automation-id)
        3. Visible text (Playwright text engine)
        4. CSS class fragments
        5. XPath (last resort)

    Usage:
        >>> smart = SmartLocator(page)
        >>> await smart.click("sign_in_link")
        >>> await smart.fill(["#Username", "input[type='email']"], "user@example.com")
        >>> print(SmartLocator.health_report())
    """

    # Elements shared by several Practical Law pages.
    # Format: element_name -> {strategy_name: selector}
    LOCATORS: Dict[str, Dict[str, str]] = {
        "sign_in_link": as_chain([
            "#SignIn",
            "a:has-text('Sign in')",
            "a:has-text('Login')",
            "a[href*='login']",
            "a[href*='signin']",
            "a[href*='signon']",
            "//a[contains(@class, 'signin') or contains(@class, 'login')]",
        ]),
        "sign_out_link": as_chain([
            "a:has-text('Sign out')",
            "button:has-text('Sign out')",
            "a:has-text('Logout')",
            "button:has-text('Logout')",
            "[href*='logout']",
            "[href*='signout']",
            "[href*='SignOff']",
        ]),
        "profile_icon": as_chain([
            "#coid_website_signOffRegion",
            "//*[@id='coid_website_signOffRegion']",
            "[aria-label*='profile' i]",
        ]),
        "profile_sign_out_button": as_chain([
            "//*[@id='co_signOffContainer']/div[2]/div[2]/div[3]/div/button",
            "#co_signOffContainer button:has-text('Sign out')",
            "#co_signOffContainer button",
        ]),
        "tooltip": as_chain([
            "[role='tooltip']",
            ".tooltip",
            ".tooltip-content",
            "[data-tooltip]",
        ]),
        "modal_overlay": as_chain([
            "#coid_lightboxOverlay",
            ".co_lightboxOverlay",
            "[class*='lightbox']",
            "[class*='modal'][class*='overlay']",
        ]),
        "modal_close_button": as_chain([
            "#coid_lightboxOverlay .co_lightboxClose",
            "[class*='lightbox'] button[class*='close']",
            "[class*='modal'] [aria-label='Close']",
            "button:has-text('Close')",
        ]),
        "error_message": as_chain([
            ".error",
            ".error-message",
            ".alert-danger",
            "[role='alert']",
            ".validation-error",
        ]),
    }

    # Shared by every page object of the process, reported once per run
    _health: ClassVar[Dict[str, LocatorHealth]] = {}
    _health_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self, page: Page):
        self.page = page

    def resolve(self, target: LocatorChain, element_name: Optional[str] = None) -> Tuple[Dict[str, str], str]:
        """Chain and display name for a LOCATORS key, a selector or a chain."""
        if isinstance(target, str):
            if target in self.LOCATORS:
                return self.LOCATORS[target], element_name or target
            return as_chain(target), element_name or target
        chain = as_chain(target)
        return chain, element_name or chain.get("primary", "custom_element")

    @classmethod
    def _record(cls, element_name: str, chain: Dict[str, str], strategy: str, selector: str) -> None:
        primary = chain.get("primary", next(iter(chain.values())))
        with cls._health_lock:
            health = cls._health.setdefault(element_name, LocatorHealth(element_name, primary))
            if strategy == "primary":
                health.primary_hits += 1
            else:
                health.fallback_hits += 1
                health.last_fallback = f"{strategy} -> {selector}"

    async def locate(
        self,
        target: LocatorChain,
        timeout: int = 5000,
        element_name: Optional[str] = None,
        state: str = "visible",
    ) -> Locator:
        """
        Wait for the first selector of the chain that reaches `state`.

        Args:
            target: Element key in `LOCATORS`, a raw selector, a list of
                selectors or a strategy map
            timeout: Wait per selector in milliseconds
            element_name: Name used in logs
            state: Playwright wait state ('visible', 'attached')

        Raises:
            ElementNotFoundError: When no selector of the chain resolves
        """
        chain, name = self.resolve(target, element_name)
        if not chain:
            raise ElementNotFoundError(f"No locators defined for element: {name}")

        errors: List[str] = []
        for strategy, selector in chain.items():
            locator = self.page.locator(selector).first
            try:
                await locator.wait_for(state=state, timeout=timeout)
            except Exception as e:
                errors.append(f"{strategy}: {selector} -> {str(e).splitlines()[0][:80] if str(e) else type(e).__name__}")
                continue

            self._record(name, chain, strategy, selector)
            if strategy == "primary":
                logger.debug(f"✅ Element '{name}' found: {selector}")
            else:
                logger.warning(f"⚠️ Element '{name}' used fallback: {strategy} -> {selector}")
            return locator

        message = f"❌ All locators failed for '{name}':\n" + "\n".join(f"  - {err}" for err in errors)
        logger.debug(message)
        raise ElementNotFoundError(message)

    async def click(
        self,
        target: LocatorChain,
        timeout: int = 5000,
        element_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        locator = await self.locate(target, timeout=timeout, element_name=element_name)
        await locator.click(**kwargs)

    async def fill(
        self,
        target: LocatorChain,
        value: str,
        timeout: int = 5000,
        element_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        locator = await self.locate(target, timeout=timeout, element_name=element_name)
        await locator.fill(value, **kwargs)

    async def get_text(
        self,
        target: LocatorChain,
        timeout: int = 5000,
        element_name: Optional[str] = None,
    ) -> str:
        """Inner text of the element, stripped."""
        locator = await self.locate(target, timeout=timeout, element_name=element_name)
        return (await locator.inner_text()).strip()

    async def is_visible(
        self,
        target: LocatorChain,
        timeout: int = 2000,
        element_name: Optional[str] = None,
    ) -> bool:
        try:
            locator = await self.locate(target, timeout=timeout, element_name=element_name)
        except ElementNotFoundError:
            return False
        return await locator.is_visible()

    # =========================================================================
    # Health
    # =========================================================================

    @classmethod
    def health(cls) -> Dict[str, LocatorHealth]:
        with cls._health_lock:
            return dict(cls._health)

    @classmethod
    def reset_health(cls) -> None:
        with cls._health_lock:
            cls._health.clear()

    @classmethod
    def health_report(cls) -> str:
        """
        Elements whose primary selector missed at least once during the run.

        These are the chains to update after a Practical Law release.
        """
        degraded = [h for h in cls.health().values() if h.degraded]
        if not degraded:
            return "✅ All elements used primary locators. No maintenance needed."

        lines = [f"⚠️ Locator Health Report - {len(degraded)} element(s) needed a fallback:", ""]
        for health in sorted(degraded, key=lambda h: h.fallback_hits, reverse=True):
            total = health.primary_hits + health.fallback_hits
            lines.extend([
                f"  [{health.element_name}] fallback {health.fallback_hits}/{total}",
                f"    Primary: {health.primary_selector}",
                f"    Last used: {health.last_fallback}",
            ])
        return "\n".join(lines)


__all__ = [
    "ElementNotFoundError",
    "LocatorChain",
    "LocatorHealth",
    "SmartLocator",
    "as_chain",
]
