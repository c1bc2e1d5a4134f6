"""
================================================================================
Login Page Object (Async / Playwright)
================================================================================

Thomson Reuters sign-on page used by Practical Law.

The sign-on flow is two-step: the username page navigates to a password page
once the username field loses focus (or Enter is pressed). Typing is
human-like because the sign-on service throttles robotic input.

================================================================================
"""

from __future__ import annotations

import asyncio
import random
from typing import Optional

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError

from testsuites.ui_testing.framework.page_base import PageBase
from testsuites.ui_testing.framework.smart_locator import ElementNotFoundError
from testsuites.ui_testing.framework.wait_helpers import wait_for_url_contains

from .dashboard_page import DashboardPage


USERNAME_FIELD = [
    "#Username",
    "#username",
    "[name='username']",
    "input[type='email']",
    "input[name*='user']",
    "input[placeholder*='username']",
    "input[placeholder*='email']",
]

PASSWORD_FIELD = [
    "#password",
    "[name='password']",
    "input[type='password']",
]

SUBMIT_BUTTON = [
    "#signInBtn",
    "button[type='submit']",
    "input[type='submit']",
    "button:has-text('Sign in')",
    "button:has-text('Login')",
    "input[value*='Sign in']",
    "input[value*='Login']",
]

ERROR_MESSAGE = [
    ".error",
    ".error-message",
    ".alert-danger",
    "[role='alert']",
    ".validation-error",
    "//*[contains(@class, 'error') and contains(text(), 'Invalid')]",
]

PASSWORD_SAVE_PROMPT = [
    "button:has-text('Not now')",
    "button:has-text('Never')",
    "button:has-text('No thanks')",
]

LOGIN_URL_INDICATORS = ("login", "signin", "auth", "signon", "authenticate")


class LoginPage(PageBase):
    """Sign-on page object (async)."""

    PAGE_TITLE = "Sign in"

    @allure.step("Enter username")
    async def enter_username(self, username: str) -> "LoginPage":
        logger.info(f"Entering username: {username}")
        try:
            field = await self.find(USERNAME_FIELD, timeout=self.timeout, element_name="username field")
        except ElementNotFoundError as e:
            raise ElementNotFoundError("Username field not found on the page") from e
        await self.actions.human_type(field, username)
        logger.info("Username entered successfully with human-like typing")
        return self

    @allure.step("Move to password step")
    async def trigger_password_step(self) -> "LoginPage":
        """Leave the username field so the sign-on page moves to the password step."""
        logger.info("Triggering navigation to password page")
        try:
            await self.page.keyboard.press("Enter")
        except PlaywrightError as e:
            logger.warning(f"⚠️ Enter key failed: {str(e).splitlines()[0]}")
            try:
                await self.page.locator("body").click()
            except PlaywrightError:
                await self.page.evaluate("() => document.body.click()")
                logger.info("Used JavaScript to click on document body")

        if not await self.is_visible(PASSWORD_FIELD, timeout=self.long_timeout):
            logger.warning("⚠️ Password field not visible yet after leaving the username step")
        return self

    @allure.step("Enter password")
    async def enter_password(self, password: str) -> "LoginPage":
        logger.info("Entering password")
        try:
            field = await self.find(PASSWORD_FIELD, timeout=self.timeout, element_name="password field")
        except ElementNotFoundError as e:
            raise ElementNotFoundError("Password field not found on the page") from e
        await asyncio.sleep(random.uniform(1.0, 2.0))
        await self.actions.human_type(field, password)
        logger.info("Password entered successfully with human-like typing")
        return self

    @allure.step("Click Sign in")
    async def click_sign_in(self) -> DashboardPage:
        """Submit the credentials and wait until Practical Law is back."""
        logger.info("Clicking final Sign In button")
        try:
            button = await self.find(SUBMIT_BUTTON, timeout=self.timeout, element_name="sign in button")
        except ElementNotFoundError as e:
            raise ElementNotFoundError("Sign in button not found on the page") from e

        await asyncio.sleep(random.uniform(1.0, 2.0))
        await button.hover()
        await button.click()
        logger.info("Sign in button clicked - waiting for login to complete")

        if not await wait_for_url_contains(self.page, ["practicallaw"], timeout=self.config.timeout("page_load")):
            logger.warning(f"⚠️ Still not back on Practical Law after sign in: {self.page.url}")
        await self.wait_for_page_load()
        await self.dismiss_password_save_prompt()

        return DashboardPage(self.page, self.base_url)

    @allure.step("Login as {username}")
    async def login(self, username: str, password: str) -> DashboardPage:
        """Complete two-step sign-on flow."""
        logger.info(f"Performing complete login flow for user: {username}")
        await self.enter_username(username)
        await self.trigger_password_step()
        await self.enter_password(password)
        return await self.click_sign_in()

    async def dismiss_password_save_prompt(self) -> bool:
        """Dismiss an in-page 'save password' prompt if the site shows one."""
        prompt = await self.first_visible(PASSWORD_SAVE_PROMPT)
        if prompt is None:
            return False
        try:
            await prompt.click()
        except PlaywrightError as e:
            logger.warning(f"⚠️ Password save prompt handling failed: {str(e).splitlines()[0]}")
            return False
        logger.info("Password save prompt dismissed")
        return True

    async def get_error_message(self) -> Optional[str]:
        """Visible login error text, None when there is none."""
        for selector in ERROR_MESSAGE:
            for text in await self.visible_texts(selector, limit=10):
                logger.warning(f"Login error message found: {text}")
                return text
        return None

    async def is_on_login_page(self) -> bool:
        url = self.page.url.lower()
        title = (await self.page_title()).lower()
        url_match = any(indicator in url for indicator in LOGIN_URL_INDICATORS)
        title_match = any(indicator in title for indicator in LOGIN_URL_INDICATORS)
        field_visible = await self.is_username_field_visible()

        logger.info(
            f"Login page validation - URL pattern: {url_match}, username field visible: {field_visible}, "
            f"title indicates login: {title_match}"
        )
        return url_match or field_visible or title_match

    async def is_username_field_visible(self) -> bool:
        return await self.is_any_visible(USERNAME_FIELD)

    async def is_password_field_visible(self) -> bool:
        return await self.is_any_visible(PASSWORD_FIELD)


__all__ = [
    "LoginPage",
]
