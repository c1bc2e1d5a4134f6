"""
================================================================================
Home Page Object (Async / Playwright)
================================================================================

Practical Law landing page: cookie consent, sign-in link and the checks run
before and after login.

The OneTrust consent banner shows accept, reject and "manage preferences"
controls next to privacy-policy links. Only a control judged safe by
`is_safe_cookie_button` is ever clicked.

================================================================================
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator

from testsuites.ui_testing.framework.page_base import PageBase
from testsuites.ui_testing.framework.smart_locator import ElementNotFoundError
from testsuites.ui_testing.framework.wait_helpers import wait_for_disappear

from .login_page import LoginPage


COOKIE_CONSENT_BUTTONS = [
    "#onetrust-accept-btn-handler",
    ".ot-sdk-btn-primary",
    "button[id*='accept'][id*='all']",
    "button[class*='accept'][class*='all']",
    "#onetrust-button-group button[class*='primary']",
    ".onetrust-close-btn-handler",
]

COOKIE_OVERLAY = ".onetrust-pc-dark-filter, .ot-fade-in"

PAGE_LOAD_INDICATORS = ["body", "main", ".main-content", "#content"]

PRACTICAL_LAW_DOMAINS = ("practicallaw", "westlaw.com", "thomsonreuters.com")

UNSAFE_COOKIE_PATTERNS = (
    "privacy", "policy", "reject", "decline", "learn more", "more info",
    "manage", "settings", "preferences", "customize", "options",
    "cookies policy", "privacy notice", "data protection", "terms",
    "legal", "notice", "details", "read more", "find out more",
)

UNSAFE_COOKIE_CLASSES = ("reject", "decline", "secondary", "policy", "privacy")

ACCEPT_PATTERNS = ("accept all", "accept", "agree", "ok", "continue", "allow", "yes")


@dataclass
class CookieButton:
    """What the consent heuristic knows about a candidate element."""
    tag: str = ""
    text: str = ""
    href: str = ""
    css_class: str = ""
    element_id: str = ""

    @classmethod
    async def describe(cls, element: Locator) -> "CookieButton":
        data = await element.evaluate(
            """el => ({
                tag: el.tagName || '',
                text: el.innerText || '',
                href: el.getAttribute('href') || '',
                css_class: el.getAttribute('class') || '',
                element_id: el.getAttribute('id') || ''
            })"""
        )
        return cls(**data)


def is_safe_cookie_button(button: CookieButton) -> bool:
    """
    Decide whether clicking `button` accepts cookies without leaving the page.

    Rejects navigation links, privacy / reject / manage controls and secondary
    buttons. Accepts the OneTrust accept button and buttons with accept text.
    """
    text = button.text.lower()
    href = button.href.lower()
    css_class = button.css_class.lower()
    element_id = button.element_id.lower()
    tag = button.tag.lower()

    if tag == "a" and href and "javascript" not in href and "#" not in href and len(href) > 10:
        logger.debug(f"Cookie element rejected - navigation link: '{href}'")
        return False

    for pattern in UNSAFE_COOKIE_PATTERNS:
        if pattern in text or pattern in href:
            logger.debug(f"Cookie element rejected due to pattern '{pattern}'")
            return False

    if any(name in css_class for name in UNSAFE_COOKIE_CLASSES):
        logger.debug(f"Cookie element rejected due to class '{css_class}'")
        return False

    if element_id == "onetrust-accept-btn-handler" or ("accept all" in text and "cookies" in text):
        return True

    has_accept = any(
        pattern in text or pattern in css_class or pattern in element_id
        for pattern in ACCEPT_PATTERNS
    )

    if "onetrust" in element_id and ("primary" in css_class or "accept" in element_id):
        return True
    if has_accept and tag == "button":
        return True
    if ("onetrust" in element_id or "cookie" in element_id) and tag == "button":
        return True

    logger.debug(f"Cookie element not accepted - text: '{text}', tag: '{tag}', accept pattern: {has_accept}")
    return False


def is_practical_law_url(url: str) -> bool:
    url = (url or "").lower()
    return any(domain in url for domain in PRACTICAL_LAW_DOMAINS)


class HomePage(PageBase):
    """Practical Law home page object (async)."""

    URL_PATH = ""
    PAGE_TITLE = "Practical Law"

    @allure.step("Open Practical Law home page")
    async def open(self, url: Optional[str] = None) -> "HomePage":
        target = url or self.url
        logger.info(f"Navigating to Practical Law: {target}")
        await self.navigate_to(target)
        await self.wait_for_page_load()
        return self

    async def wait_for_page_load(self) -> bool:
        """Wait for any page-load indicator. Proceeds on timeout."""
        await super().wait_for_page_load()
        if await self.is_visible(PAGE_LOAD_INDICATORS, timeout=self.config.timeout("page_load")):
            logger.info("Page loaded successfully")
            return True
        logger.warning("⚠️ Page load timeout - proceeding anyway")
        return False

    @allure.step("Handle cookie consent")
    async def handle_cookie_consent(self) -> bool:
        """
        Accept the cookie banner if one is shown.

        Returns:
            True if a consent button was clicked, False if none was found
        """
        logger.info("Checking for cookie consent dialog")
        await asyncio.sleep(2)

        for selector in COOKIE_CONSENT_BUTTONS:
            elements = self.page.locator(selector)
            try:
                count = await elements.count()
                for index in range(count):
                    element = elements.nth(index)
                    if not (await element.is_visible() and await element.is_enabled()):
                        continue
                    button = await CookieButton.describe(element)
                    if not is_safe_cookie_button(button):
                        logger.info(
                            f"Skipping element that appears to be privacy policy or reject button - "
                            f"text: '{button.text.strip()}', href: '{button.href or 'N/A'}'"
                        )
                        continue

                    await element.click()
                    logger.info(f"✅ Cookie consent accepted using selector: {selector}")
                    if not await wait_for_disappear(self.page, COOKIE_OVERLAY, timeout=5000):
                        await asyncio.sleep(2)
                    return True
            except PlaywrightError as e:
                logger.debug(f"Cookie selector {selector} not clickable: {str(e).splitlines()[0]}")

        logger.info("No valid cookie consent dialog found")
        await self.remove_cookie_overlay()
        return False

    async def remove_cookie_overlay(self) -> None:
        """Remove a leftover consent overlay that would swallow clicks."""
        try:
            if await self.is_any_visible(COOKIE_OVERLAY):
                logger.warning("⚠️ Cookie overlay still present, removing it with JavaScript")
                await self.page.evaluate(
                    """selector => document.querySelectorAll(selector).forEach(el => el.remove())""",
                    COOKIE_OVERLAY,
                )
        except PlaywrightError as e:
            logger.warning(f"⚠️ Failed to remove cookie overlay: {str(e).splitlines()[0]}")

    @allure.step("Click Sign in")
    async def click_sign_in(self) -> LoginPage:
        """
        Open the login page from the home page.

        Raises:
            ElementNotFoundError: when no sign-in link is visible
        """
        logger.info("Looking for Sign In link")
        try:
            link = await self.find("sign_in_link", timeout=self.timeout)
        except ElementNotFoundError as e:
            raise ElementNotFoundError("Sign in link not found on the page") from e
        await link.click()
        logger.info("Clicked Sign In link")
        await asyncio.sleep(1)
        return LoginPage(self.page, self.base_url)

    async def is_user_logged_in(self) -> bool:
        logged_in = await self.is_any_visible("sign_out_link")
        logger.info("User appears to be logged in" if logged_in else "User does not appear to be logged in")
        return logged_in

    async def is_on_practical_law_page(self) -> bool:
        on_page = is_practical_law_url(self.page.url)
        logger.info(f"Page validation - On Practical Law page: {on_page}, URL: {self.page.url}")
        return on_page


__all__ = [
    "CookieButton",
    "HomePage",
    "is_practical_law_url",
    "is_safe_cookie_button",
]
