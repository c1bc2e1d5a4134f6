"""
================================================================================
Favourites Page Object (Async / Playwright)
================================================================================

The user's Favourites list, reached from `app.favourites_path`.

================================================================================
"""

from __future__ import annotations

from typing import List

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError

from testsuites.ui_testing.framework.page_base import PageBase
from testsuites.ui_testing.framework.wait_helpers import WaitTimeoutError, wait_until


FAVOURITES_CONTAINER = [
    "#co_favouritesContainer",
    "[id*='favourites' i]",
    "//h1[contains(text(), 'Favourites')]",
]

FAVOURITE_ITEM_SELECTORS = [
    "#co_favouritesContainer li a",
    "[id*='favourites' i] li a",
    "[class*='favourite'] a",
    "//table[contains(@class, 'favourite')]//td//a",
]

REMOVE_BUTTONS = [
    "[title*='Remove' i]",
    "button:has-text('Remove')",
    "a:has-text('Remove')",
    "a:has-text('Delete')",
    "[class*='remove']",
]

CONFIRM_BUTTONS = [
    "[role='dialog'] button:has-text('Remove')",
    "[role='dialog'] button:has-text('OK')",
    "button:has-text('Yes')",
    "input[type='submit'][value='OK']",
]


class FavouritesPage(PageBase):
    """Favourites list page object (async)."""

    PAGE_TITLE = "Favourites"

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.config.get('app.favourites_path', '/Favourites')}"

    @allure.step("Open Favourites")
    async def open(self) -> "FavouritesPage":
        logger.info(f"Opening Favourites: {self.url}")
        await self.navigate()
        await self.wait_for_page_load()
        return self

    async def is_loaded(self) -> bool:
        loaded = "favourite" in self.page.url.lower() or await self.is_visible(
            FAVOURITES_CONTAINER, timeout=self.short_timeout, element_name="favourites container"
        )
        logger.info(f"Favourites page loaded: {loaded}")
        return loaded

    async def get_favourite_titles(self) -> List[str]:
        """Titles of all listed favourites, first matching selector wins."""
        for selector in FAVOURITE_ITEM_SELECTORS:
            try:
                titles = await self.visible_texts(selector, limit=200)
            except PlaywrightError:
                continue
            if titles:
                logger.info(f"Found {len(titles)} favourites using selector: {selector}")
                return list(dict.fromkeys(titles))
        logger.info("No favourites listed")
        return []

    async def contains(self, title: str) -> bool:
        wanted = title.strip().lower()
        return any(wanted in item.lower() for item in await self.get_favourite_titles())

    @allure.step("Remove favourite: {title}")
    async def remove(self, title: str) -> bool:
        """
        Remove the favourite whose row mentions `title`.

        Returns:
            True once the title is gone from the list
        """
        row = self.page.locator("li, tr", has_text=title).first
        try:
            if not await row.count():
                logger.warning(f"⚠️ Favourite not listed: {title}")
                return False
            await row.hover()
            for selector in REMOVE_BUTTONS:
                button = row.locator(selector).first
                if await button.count() and await button.is_visible():
                    await button.click()
                    break
            else:
                logger.warning(f"⚠️ No remove control found for favourite: {title}")
                return False
        except PlaywrightError as e:
            logger.error(f"❌ Could not remove favourite {title}: {str(e).splitlines()[0]}")
            return False

        confirm = await self.first_visible(CONFIRM_BUTTONS)
        if confirm is not None:
            await confirm.click()

        async def check():
            still_listed = await self.contains(title)
            return not still_listed, still_listed

        try:
            await wait_until(check, scenario="sign_out", description=f"favourite '{title}' removed")
        except WaitTimeoutError:
            return False
        logger.info(f"✅ Favourite removed: {title}")
        return True


__all__ = [
    "FavouritesPage",
]
