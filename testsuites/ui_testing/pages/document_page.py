"""
================================================================================
Document Page Object (Async / Playwright)
================================================================================

A Practical Law resource (e.g. "Contracts of employment") with its delivery
toolbar: Save to folder, Email, Print, Download, and the favourite toggle.

================================================================================
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError

from testsuites.ui_testing.framework.page_base import PageBase
from testsuites.ui_testing.framework.smart_locator import ElementNotFoundError
from testsuites.ui_testing.framework.wait_helpers import WaitTimeoutError, wait_until


DELIVERY_ICONS: Dict[str, List[str]] = {
    "Save to folder": [
        "//*[@id='saveToFolder']/a/span",
        "#saveToFolder a",
        "a[title*='Save to folder' i]",
    ],
    "Email": [
        "#deliveryLinkRow1Email",
        "[id*='deliveryLink'][id$='Email']",
        "a[title*='Email' i]",
    ],
    "Print": [
        "#deliveryLinkRow1Print",
        "[id*='deliveryLink'][id$='Print']",
        "a[title*='Print' i]",
    ],
    "Download": [
        "#deliveryLinkRow1Download",
        "[id*='deliveryLink'][id$='Download']",
        "a[title*='Download' i]",
    ],
}

DOCUMENT_TITLE = [
    "#co_docHeaderTitleLine",
    "#co_documentTitle",
    "h1#co_browsePageLabel",
    "h1",
]

EMAIL_RECIPIENT = [
    "#co_delivery_emailAddress",
    "input[id*='emailAddress' i]",
    "input[name*='recipient' i]",
    "[class*='delivery'] input[type='email']",
    "input[type='email']",
]

EMAIL_SUBJECT = [
    "#co_delivery_subject",
    "input[id*='subject' i]",
    "input[name*='subject' i]",
]

EMAIL_SEND = [
    "#co_deliveryEmailButton",
    "[class*='delivery'] button:has-text('Email')",
    "input[type='submit'][value='Email']",
    "button:has-text('Send')",
]

DOWNLOAD_CONFIRM = [
    "#co_deliveryDownloadButton",
    "[class*='delivery'] button:has-text('Download')",
    "input[type='submit'][value='Download']",
]

PRINT_CONFIRM = [
    "#co_deliveryPrintButton",
    "[class*='delivery'] button:has-text('Print')",
    "input[type='submit'][value='Print']",
]

DELIVERY_CONFIRMATION = [
    "#co_deliveryWaitMessage",
    "[class*='deliveryConfirm']",
    "[role='status']",
    "//*[contains(text(), 'has been sent') or contains(text(), 'being delivered')]",
]

FAVOURITE_TOGGLE = [
    "#co_docToolbarFavourite",
    "[id*='favourite' i] a",
    "a[title*='favourite' i]",
    "button[aria-label*='favourite' i]",
    "//*[contains(@class, 'favourite') or contains(@class, 'star')]",
]

PRINT_STUB = """
() => {
    window.__printRequested = false;
    window.print = () => { window.__printRequested = true; };
}
"""

ACTIVE_CLASS_MARKERS = ("active", "selected", "filled", "on", "favourited")


def favourite_state(attributes: Mapping[str, Optional[str]]) -> bool:
    """
    Read the favourite toggle state from its attributes.

    aria-pressed wins. Otherwise an active-looking class or a "remove"
    title means the document already is a favourite.
    """
    pressed = (attributes.get("aria-pressed") or "").lower()
    if pressed in ("true", "false"):
        return pressed == "true"
    classes = (attributes.get("class") or "").lower().split()
    for cls in classes:
        if any(cls == marker or cls.endswith((f"-{marker}", f"_{marker}")) for marker in ACTIVE_CLASS_MARKERS):
            return True
    title = ((attributes.get("title") or "") + " " + (attributes.get("aria-label") or "")).lower()
    return "remove" in title


class DocumentPage(PageBase):
    """Document view with delivery options (async)."""

    async def get_title(self) -> str:
        try:
            return await self.get_text(DOCUMENT_TITLE, element_name="document title")
        except ElementNotFoundError:
            return (await self.page_title()).strip()

    # =========================================================================
    # Delivery
    # =========================================================================

    @allure.step("Validate delivery icons")
    async def validate_delivery_icons(self) -> Dict[str, bool]:
        """Presence of Save to folder / Email / Print / Download. All False on error."""
        logger.info("Validating delivery icons (Save to folder, Email, Print, Download)")
        results = {name: False for name in DELIVERY_ICONS}
        try:
            for name, chain in DELIVERY_ICONS.items():
                results[name] = await self.is_visible(chain, timeout=self.short_timeout, element_name=f"{name} icon")
                logger.info(f"{'✅' if results[name] else '❌'} {name} icon {'found' if results[name] else 'not found'}")
        except PlaywrightError as e:
            logger.error(f"❌ Error validating delivery icons: {str(e).splitlines()[0]}")
            return {name: False for name in DELIVERY_ICONS}
        return results

    async def _open_delivery(self, name: str) -> None:
        await self.click(DELIVERY_ICONS[name], element_name=f"{name} icon")

    @allure.step("Email document to {recipient}")
    async def email_document(self, recipient: str, subject: Optional[str] = None) -> bool:
        try:
            await self._open_delivery("Email")
            await self.actions.stable_type(await self.find(EMAIL_RECIPIENT, timeout=self.timeout), recipient, description="recipient")
            if subject:
                await self.fill(EMAIL_SUBJECT, subject, element_name="email subject")
            await self.click(EMAIL_SEND, element_name="send email")
        except (ElementNotFoundError, PlaywrightError) as e:
            logger.error(f"❌ Could not email document: {str(e).splitlines()[0]}")
            return False

        confirmed = await self.is_visible(DELIVERY_CONFIRMATION, timeout=self.long_timeout, element_name="delivery confirmation")
        logger.info(f"{'✅' if confirmed else '⚠️'} Email delivery {'confirmed' if confirmed else 'not confirmed'}")
        return confirmed

    @allure.step("Download document")
    async def download_document(self, target_dir: Union[str, Path]) -> Optional[Path]:
        """
        Download the document and save it to `target_dir`.

        Returns:
            Saved file path, None when no download started
        """
        target = Path(target_dir)
        target.mkdir(parents=True, exist_ok=True)
        try:
            async with self.page.expect_download(timeout=self.config.timeout("page_load")) as download_info:
                await self._open_delivery("Download")
                confirm = await self.first_visible(DOWNLOAD_CONFIRM)
                if confirm is None and await self.is_visible(DOWNLOAD_CONFIRM, timeout=self.short_timeout):
                    confirm = await self.first_visible(DOWNLOAD_CONFIRM)
                if confirm is not None:
                    await confirm.click()
            download = await download_info.value
        except (ElementNotFoundError, PlaywrightError) as e:
            logger.error(f"❌ Download did not start: {str(e).splitlines()[0]}")
            return None

        path = target / download.suggested_filename
        await download.save_as(str(path))
        logger.info(f"✅ Document downloaded: {path}")
        return path

    @allure.step("Print document")
    async def print_document(self) -> bool:
        """
        Run the print delivery with window.print stubbed out.

        Returns:
            True when the page (or a print popup) requested printing
        """
        await self.page.context.add_init_script(f"({PRINT_STUB})()")
        await self.page.evaluate(PRINT_STUB)
        pages_before = len(self.page.context.pages)
        try:
            await self._open_delivery("Print")
            confirm = await self.first_visible(PRINT_CONFIRM)
            if confirm is None and await self.is_visible(PRINT_CONFIRM, timeout=self.short_timeout):
                confirm = await self.first_visible(PRINT_CONFIRM)
            if confirm is not None:
                await confirm.click()
        except (ElementNotFoundError, PlaywrightError) as e:
            logger.error(f"❌ Could not start printing: {str(e).splitlines()[0]}")
            return False

        async def check():
            for candidate in self.page.context.pages:
                try:
                    if await candidate.evaluate("() => window.__printRequested === true"):
                        return True, candidate.url
                except PlaywrightError:
                    continue
            return len(self.page.context.pages) > pages_before, None

        try:
            await wait_until(check, scenario="delivery", description="print request")
        except WaitTimeoutError as e:
            logger.warning(f"⚠️ No print request observed: {e}")
            return False
        logger.info("✅ Print requested")
        return True

    # =========================================================================
    # Favourites
    # =========================================================================

    async def _favourite_toggle(self):
        return await self.find(FAVOURITE_TOGGLE, timeout=self.timeout, element_name="favourite toggle")

    async def is_in_favourites(self) -> bool:
        try:
            toggle = await self._favourite_toggle()
            attributes = await toggle.evaluate(
                """el => ({
                    'aria-pressed': el.getAttribute('aria-pressed'),
                    'class': el.getAttribute('class'),
                    'title': el.getAttribute('title'),
                    'aria-label': el.getAttribute('aria-label')
                })"""
            )
        except (ElementNotFoundError, PlaywrightError) as e:
            logger.warning(f"⚠️ Favourite toggle not readable: {str(e).splitlines()[0]}")
            return False
        return favourite_state(attributes)

    async def _set_favourite(self, wanted: bool) -> bool:
        if await self.is_in_favourites() == wanted:
            logger.info(f"Document already {'in' if wanted else 'not in'} favourites")
            return True
        await self.actions.stable_click(await self._favourite_toggle(), description="favourite toggle")

        async def check():
            state = await self.is_in_favourites()
            return state == wanted, state

        try:
            await wait_until(check, scenario="start_page_toggle", description="favourite toggle state")
        except WaitTimeoutError as e:
            logger.warning(f"⚠️ Favourite state did not change: {e}")
            return False
        logger.info(f"✅ Document {'added to' if wanted else 'removed from'} favourites")
        return True

    @allure.step("Add document to favourites")
    async def add_to_favourites(self) -> bool:
        return await self._set_favourite(True)

    @allure.step("Remove document from favourites")
    async def remove_from_favourites(self) -> bool:
        return await self._set_favourite(False)


__all__ = [
    "DELIVERY_ICONS",
    "DocumentPage",
    "favourite_state",
]
