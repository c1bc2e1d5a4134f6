"""
================================================================================
Practice Area Page Object (Async / Playwright)
================================================================================

Practice area browse page and the Employment practice area with its widgets:
Topics / Resources / Ask tabs, Legal updates, Key dates calendar, the
"Make this my start page" toggle and the Ask a question form.

Every area in the catalogue is located by an ordered fallback chain. Labels
on the live site move between releases, so the chains start with the most
specific selector and end with plain text matches.

================================================================================
"""

from __future__ import annotations

import asyncio
import re
from datetime import date, datetime
from typing import Dict, List, Optional

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator

from testsuites.ui_testing.framework.page_base import PageBase
from testsuites.ui_testing.framework.smart_locator import ElementNotFoundError
from testsuites.ui_testing.framework.wait_helpers import WaitTimeoutError, wait_until

from .document_page import DocumentPage


# =============================================================================
# Locators
# =============================================================================

PRACTICE_AREA_MENU = [
    "a[href*='practice']",
    "a[href*='Practice']",
    "[data-automation-id*='practice']",
    "//a[contains(text(), 'Practice Area')]",
    "//nav//a[contains(text(), 'Practice')]",
    ".practice-area",
    ".practice-areas",
]

PRACTICE_AREA_CONTENT = [
    ".practice-area-content",
    ".practice-areas-content",
    "[data-automation-id*='practice-area']",
    ".content-practice",
    "//div[contains(@class, 'practice')]",
    ".practice-container",
]

PRACTICE_AREA_LIST_SELECTORS = [
    "//a[starts-with(@href, '/Browse/Home/')]",
    "#coid_categoryBoxTabContents li a",
    ".list-without-header li a",
    ".co_browsePageSectionWidget a",
    ".practice-area-list a",
    "[data-automation-id*='practice-area'] a",
]

FILTER_INPUT = [
    "input[type='search']",
    ".filter-input",
    ".search-filter",
    "[data-automation-id*='filter']",
]

EMPLOYMENT_TABS = {
    "Topics": "#coid_categoryBoxTabButton1",
    "Resources": "#coid_categoryBoxTabButton2",
    "Ask": "#coid_categoryBoxTabButton3",
}

LEGAL_UPDATES_WIDGET = "#legalupdatesrss"
LEGAL_UPDATES_VIEW_ALL = [
    "//*[@id='UKCALegalUpdates']/div[2]/a",
    "#UKCALegalUpdates a:has-text('View all')",
    "#legalupdatesrss a:has-text('View all')",
]
PAGE_LABEL = "#co_browsePageLabel"
BREADCRUMB_LINK = "//*[@id='subHeader']/div/div/a"

KEY_DATES_TITLE = "#calendarTitle"
KEY_DATES_CONTAINER = [
    "#keyDatesCalendarContainer",
    "//div[contains(@class, 'calendarWidget') or contains(@id, 'keyDates')]",
]
MONTH_YEAR_DROPDOWN = "//*[@id='keyDatesCalendarContainer_navigation']/div[1]/div/button/span"
PREVIOUS_MONTH_BUTTON = "//*[@id='keyDatesCalendarContainer_navigation']/div[2]/button[1]"
NEXT_MONTH_BUTTON = "//*[@id='keyDatesCalendarContainer_navigation']/div[2]/button[2]"
DATE_CELLS = "td[class*='day'] a, td[class*='date'] a, a"
EVENT_POPUP = [
    "#calendarLegalUpdatesLightbox",
    "[id*='lightbox']",
    ".popup",
    ".modal",
]
ADD_TO_OUTLOOK_BUTTON = [
    "//*[@id='calendarLegalUpdatesLightbox']/div[2]/div/div/div[1]/div/div/div/span[3]/form/button",
    "button:has-text('Add to Outlook')",
    "button:has-text('Outlook')",
    "input[type='submit'][value*='Outlook']",
    "a:has-text('Outlook')",
    "//span//form//button",
]
POPUP_CLOSE_BUTTON = [
    "#calendarLegalUpdatesLightbox button.close",
    "#calendarLegalUpdatesLightbox [class*='close']",
    "#calendarLegalUpdatesLightbox button:has-text('Close')",
    "#calendarLegalUpdatesLightbox button:has-text('×')",
    "button[aria-label='Close']",
    "button[title='Close']",
]
CALENDAR_VIEW_ALL = [
    "//*[@id='calendarLegalUpdatesLightbox_calendar_container']/a",
    "#keyDatesCalendarContainer a:has-text('View all')",
    "//*[contains(text(), 'Key Dates')]/following::a[contains(text(), 'View all')][1]",
]

START_PAGE_TOGGLE = [
    "#coid_setAsHomePageElement",
    "a:has-text('Make this my start page')",
    "button:has-text('Make this my start page')",
    "a:has-text('Remove as my start page')",
    "button:has-text('Remove as my start page')",
    "a[href*='setAsHomePage']",
    "button[onclick*='setAsHomePage']",
]
HOME_ICON_FILLED = [
    "//i[contains(@class, 'home') and contains(@class, 'filled')]",
    "//span[contains(@class, 'home') and contains(@class, 'filled')]",
    ".home-icon.filled",
    ".icon-home.filled",
    ".fa-home.filled",
    "[class*='home-icon'][class*='filled']",
]
MY_HOME_LINK = [
    "//*[@id='co_myHomeContainer']/a",
    "#co_myHomeContainer a",
    "a:has-text('My Home')",
    "a[href*='MyHome'], a[href*='myhome']",
]
MAKE_START_PAGE_TEXT = "Make this my start page"
REMOVE_START_PAGE_TEXT = "Remove as my start page"

ASK_QUESTION_BUTTON = [
    "#ask-question-button",
    "button:has-text('Ask a question')",
    "a:has-text('Ask a question')",
    "button[id*='ask']",
]
ASK_TERMS_CHECKBOX = [
    "#IsCheckedTerms",
    "input[name='IsCheckedTerms'][type='checkbox']",
]
ASK_TERMS_SUBMIT = [
    "#submitAskTermsButton",
    "fieldset.terms-submit-buttons input[type='submit']",
    "input[type='submit'][value='Submit']",
]
ASK_QUERY_FIELD = [
    "#Query",
    "textarea[name='Query']",
    "textarea.form-control",
]
ASK_SUBMIT_BUTTON = [
    "#submitAskFormButton",
    "button[id*='submitAsk']:not([id*='Terms'])",
]
ASK_CANCEL_BUTTON = [
    "#cancelAskFormButton",
    "button:has-text('Cancel')",
]
ASK_MANDATORY_FIELDS = ("OrganisationType", "Position", "AnsweringService")

CONTRACTS_OF_EMPLOYMENT_LINK = [
    "//div[@class='co_column multiListWithHeaders']//a[contains(text(), 'Contracts of employment')]",
    "//a[contains(text(), 'Contracts of employment')]",
    "//*[contains(text(), 'Contracts of employment')]",
]


# =============================================================================
# Practice area catalogue
# =============================================================================

PRACTICE_AREA_NAMES = (
    "Agriculture & Rural Land",
    "Arbitration",
    "Business Crime & Investigations",
    "Capital Markets",
    "Commercial",
    "Competition",
    "Construction",
    "Corporate",
    "Data Protection",
    "Dispute Resolution",
    "Employment",
    "Environment",
    "Family",
    "Finance",
    "Financial Services",
    "IP & IT",
    "Local Government",
    "Media & Telecoms",
    "Pensions",
    "Planning",
    "Private Client",
    "Property",
    "Property Litigation",
    "Public Law",
    "Restructuring & Insolvency",
    "Share Schemes & Incentives",
    "Tax",
    "Practice Compliance & Management",
)

EMPLOYMENT_LIST_ITEM = [
    "//div[@class='co_browsePageSectionWidget th_flat']//div[@id='coid_categoryBoxTabContents']"
    "//div[@class='list-without-header']//li[@class='column1 row11']",
    "//div[@id='coid_categoryBoxTabContents']//li[@class='column1 row11']",
    "//div[@class='list-without-header']//li[@class='column1 row11']",
    "//li[@class='column1 row11']",
]


def area_locator_chain(name: str) -> List[str]:
    """Text, href and automation-id fallbacks for one practice area link."""
    slug = re.sub(r"[^A-Za-z]", "", name)
    return [
        f"a:text-is('{name}')",
        f"//a[normalize-space(text())='{name}']",
        f"a[href*='/Browse/Home/Practice/{slug}']",
        f"[data-automation-id*='{slug.lower()}']",
    ]


PRACTICE_AREAS: Dict[str, List[str]] = {name: area_locator_chain(name) for name in PRACTICE_AREA_NAMES}
PRACTICE_AREAS["Employment"] = EMPLOYMENT_LIST_ITEM + PRACTICE_AREAS["Employment"]


# =============================================================================
# Text heuristics
# =============================================================================

EXCLUDED_AREA_TEXTS = frozenset({
    "home", "login", "sign in", "sign out", "search", "help", "about", "contact",
    "privacy", "terms", "conditions", "cookies", "more", "view all", "browse",
    "menu", "navigation", "footer", "header", "skip", "close", "back", "next",
    "previous", "page", "section", "article", "download", "print", "share",
    "facebook", "twitter", "linkedin", "email", "phone", "address", "copyright",
})

PRACTICE_AREA_PATTERNS = (
    "agriculture", "arbitration", "business crime", "capital markets", "commercial",
    "competition", "construction", "corporate", "data protection", "dispute",
    "employment", "environment", "family", "finance", "financial services", "ip & it",
    "intellectual property", "local government", "media", "telecoms", "pensions",
    "planning", "private client", "property", "public law", "restructuring",
    "insolvency", "share schemes", "incentives", "tax", "practice compliance",
    "management", "litigation", "real estate",
)

LEGAL_INDICATORS = (
    "law", "legal", "litigation", "regulatory", "compliance", "contract", "merger",
    "acquisition", "banking", "insurance", "securities", "investment",
)

DOCUMENT_COUNT_PATTERNS = (
    r"\((\d+)\)",
    r"(\d+)\s+documents?",
    r"\b(\d+)\s+results?\b",
    r"(\d+)\s+items?",
    r"(\d+)\s+entries",
    r"showing\s+(\d+)",
    r"found\s+(\d+)",
    r"total\s+(\d+)",
    r"\b(\d+)\s+total\b",
    r":\s*(\d+)",
    r"-\s*(\d+)",
    r"\|\s*(\d+)",
    r"\b(\d{1,6})\b",
)

DATE_FORMATS = (
    "%d %B %Y", "%d %b %Y", "%B %d, %Y", "%b %d, %Y",
    "%d/%m/%Y", "%m/%d/%Y", "%Y-%m-%d", "%d-%m-%Y", "%m-%d-%Y",
)

RECENT_DAYS = 730
RELATIVE_DATE_WORDS = ("ago", "today", "yesterday")


def is_valid_practice_area_name(text: str) -> bool:
    """
    Filter link texts down to plausible practice area names.

    Navigation, social and footer texts are rejected; known areas and legal
    vocabulary are accepted; anything else is rejected.
    """
    name = (text or "").strip().lower()
    if not 3 <= len(name) <= 100:
        return False
    if name in EXCLUDED_AREA_TEXTS:
        return False
    if any(pattern in name for pattern in PRACTICE_AREA_PATTERNS):
        return True
    return any(indicator in name for indicator in LEGAL_INDICATORS)


def extract_document_count(text: str) -> str:
    """
    Pull a document count out of a page label such as
    "Legal Updates: Employment (1234)".

    Returns:
        The digits as a string, "" when the label holds no number
    """
    if not text:
        return ""
    for pattern in DOCUMENT_COUNT_PATTERNS:
        match = re.search(pattern, text, re.IGNORECASE)
        if match:
            return match.group(1)
    match = re.search(r"\d+", text)
    return match.group(0) if match else ""


def is_recent_date(text: str, today: Optional[date] = None) -> bool:
    """True for relative dates ("2 days ago") or a parsable date within two years."""
    value = (text or "").strip()
    lowered = value.lower()
    if any(word in lowered for word in RELATIVE_DATE_WORDS + ("recent",)):
        return True
    today = today or date.today()
    for fmt in DATE_FORMATS:
        try:
            parsed = datetime.strptime(value, fmt).date()
        except ValueError:
            continue
        return abs((today - parsed).days) <= RECENT_DAYS
    return False


def mentions_recent_date(text: str, today: Optional[date] = None) -> bool:
    """Widget-level check: the current or previous year, or a relative date."""
    lowered = (text or "").lower()
    today = today or date.today()
    years = (str(today.year), str(today.year - 1))
    return any(year in lowered for year in years) or any(word in lowered for word in RELATIVE_DATE_WORDS)


# =============================================================================
# Page object
# =============================================================================

class PracticeAreaPage(PageBase):
    """Practice area browse page and Employment area widgets (async)."""

    PAGE_TITLE = "Practice Areas"

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.config.get('app.practice_area_path', '/Browse/Home/Practice')}"

    # =========================================================================
    # Navigation
    # =========================================================================

    @allure.step("Navigate to Practice Areas")
    async def navigate_to_practice_area(self) -> bool:
        """
        Open the practice area browse page through the menu, falling back to
        the direct URL.
        """
        logger.info("Navigating to Practice Areas")
        if not await self.try_click(PRACTICE_AREA_MENU, element_name="practice area menu", timeout=self.timeout):
            logger.warning(f"⚠️ Practice area menu not found, opening {self.url} directly")
            await self.navigate()
        await self.wait_for_page_load()
        on_page = await self.is_on_practice_area_page()
        logger.info(f"{'✅' if on_page else '❌'} On practice area page: {on_page}")
        return on_page

    async def is_on_practice_area_page(self) -> bool:
        url = self.page.url.lower()
        title = (await self.page_title()).lower()
        if any(word in url or word in title for word in ("practice", "areas")):
            return True
        return await self.is_visible(PRACTICE_AREA_CONTENT, timeout=self.short_timeout)

    @allure.step("Select practice area: {name}")
    async def select_practice_area(self, name: str) -> bool:
        """
        Click a catalogued practice area.

        Returns:
            False for names outside the catalogue or when no locator matches
        """
        chain = PRACTICE_AREAS.get(name)
        if chain is None:
            logger.error(f"❌ Unknown practice area: {name}")
            return False
        try:
            element = await self.find(chain, timeout=self.timeout, element_name=f"{name} practice area")
            if await element.evaluate("el => el.tagName.toLowerCase()") == "li":
                element = element.locator("a").first
            await element.scroll_into_view_if_needed()
            await element.click()
        except (ElementNotFoundError, PlaywrightError) as e:
            logger.error(f"❌ Could not select practice area {name}: {str(e).splitlines()[0]}")
            return False
        await self.wait_for_page_load()
        logger.info(f"✅ Selected practice area: {name} ({self.page.url})")
        return True

    async def get_available_practice_areas(self) -> List[str]:
        """Catalogued areas that are currently visible."""
        available = [name for name in PRACTICE_AREA_NAMES if await self.is_any_visible(PRACTICE_AREAS[name])]
        logger.info(f"Available practice areas: {len(available)}/{len(PRACTICE_AREA_NAMES)}")
        return available

    async def is_practice_area_available(self, name: str) -> bool:
        chain = PRACTICE_AREAS.get(name)
        return chain is not None and await self.is_visible(chain, timeout=self.short_timeout)

    @allure.step("Filter practice areas: {term}")
    async def filter_practice_areas(self, term: str) -> bool:
        field = await self.first_visible(FILTER_INPUT)
        if field is None:
            logger.warning("⚠️ No practice area filter field on this page")
            return False
        await field.fill(term)
        await field.press("Enter")
        await asyncio.sleep(2)
        return True

    async def verify_practice_area_content(self) -> bool:
        visible = await self.is_visible(PRACTICE_AREA_CONTENT, timeout=self.timeout)
        if not visible:
            visible = bool(await self.get_all_visible_practice_areas())
        logger.info(f"Practice area content visible: {visible}")
        return visible

    async def get_all_visible_practice_areas(self) -> List[str]:
        """De-duplicated practice area names found in any of the list layouts."""
        names: List[str] = []
        for selector in PRACTICE_AREA_LIST_SELECTORS:
            try:
                texts = await self.visible_texts(selector, limit=200)
            except PlaywrightError:
                continue
            names.extend(text for text in texts if is_valid_practice_area_name(text))
        unique = list(dict.fromkeys(names))
        logger.info(f"Found {len(unique)} visible practice areas")
        return unique

    async def get_practice_area_count(self) -> int:
        return len(await self.get_all_visible_practice_areas())

    # =========================================================================
    # Employment tabs
    # =========================================================================

    @allure.step("Validate Employment tabs")
    async def validate_employment_page_tabs(self) -> Dict[str, bool]:
        """Presence of Topics / Resources / Ask. All False on error."""
        try:
            results = {name: await self.is_visible(selector, timeout=self.short_timeout) for name, selector in EMPLOYMENT_TABS.items()}
        except PlaywrightError as e:
            logger.error(f"❌ Error validating Employment tabs: {str(e).splitlines()[0]}")
            return {name: False for name in EMPLOYMENT_TABS}
        for name, present in results.items():
            logger.info(f"{'✅' if present else '❌'} {name} tab present: {present}")
        return results

    async def _tab_is_selected(self, tab: Locator) -> bool:
        selected = await tab.get_attribute("aria-selected")
        css_class = (await tab.get_attribute("class")) or ""
        return selected == "true" or "selected" in css_class or "active" in css_class

    @allure.step("Check Employment tabs are clickable")
    async def employment_tabs_clickability(self) -> Dict[str, bool]:
        """
        Click each tab and report whether the page responded: a new URL or
        title, or the tab turning selected. All False on error.
        """
        results = {name: False for name in EMPLOYMENT_TABS}
        try:
            for name, selector in EMPLOYMENT_TABS.items():
                tab = self.page.locator(selector).first
                if not await tab.count():
                    logger.warning(f"⚠️ {name} tab not found")
                    continue
                before = (self.page.url, await self.page_title())
                await tab.click()
                await asyncio.sleep(1)
                after = (self.page.url, await self.page_title())
                results[name] = after != before or await self._tab_is_selected(tab)
                logger.info(f"{'✅' if results[name] else '❌'} {name} tab clickable: {results[name]}")
        except PlaywrightError as e:
            logger.error(f"❌ Error clicking Employment tabs: {str(e).splitlines()[0]}")
            return {name: False for name in EMPLOYMENT_TABS}
        return results

    # =========================================================================
    # Legal updates widget
    # =========================================================================

    async def is_legal_updates_widget_displayed(self) -> bool:
        displayed = await self.is_visible(LEGAL_UPDATES_WIDGET, timeout=self.timeout, element_name="legal updates widget")
        logger.info(f"Legal updates widget displayed: {displayed}")
        return displayed

    async def get_legal_updates_links_count(self) -> int:
        count = await self.page.locator(f"{LEGAL_UPDATES_WIDGET} a").count()
        logger.info(f"Legal updates widget links: {count}")
        return count

    async def validate_legal_updates_max_links(self, maximum: int = 3) -> bool:
        return await self.get_legal_updates_links_count() <= maximum

    async def validate_legal_updates_has_recent_dates(self) -> bool:
        try:
            text = await self.get_text(LEGAL_UPDATES_WIDGET, timeout=self.timeout, element_name="legal updates widget")
        except ElementNotFoundError:
            return False
        recent = mentions_recent_date(text)
        logger.info(f"Legal updates show recent dates: {recent}")
        return recent

    async def is_view_all_link_present(self) -> bool:
        return await self.is_visible(LEGAL_UPDATES_VIEW_ALL, timeout=self.short_timeout, element_name="legal updates view all")

    @allure.step("Click legal updates View all")
    async def click_view_all_link(self) -> bool:
        if not await self.try_click(LEGAL_UPDATES_VIEW_ALL, element_name="legal updates view all", timeout=self.timeout):
            return False
        await self.wait_for_page_load()
        return True

    async def get_page_label(self) -> str:
        try:
            return await self.get_text(PAGE_LABEL, timeout=self.timeout, element_name="page label")
        except ElementNotFoundError:
            return ""

    async def validate_legal_updates_page_label(self) -> bool:
        label = await self.get_page_label()
        valid = "Legal Updates" in label and "Employment" in label
        logger.info(f"Legal updates page label '{label}' valid: {valid}")
        return valid

    async def get_document_count_from_page_label(self) -> str:
        return extract_document_count(await self.get_page_label())

    async def is_back_to_employment_breadcrumb_displayed(self) -> bool:
        for text in await self.visible_texts(BREADCRUMB_LINK, limit=20):
            if "Employment" in text:
                return True
        return False

    @allure.step("Click back to Employment breadcrumb")
    async def click_back_to_employment_breadcrumb(self) -> bool:
        """Follow the breadcrumb and confirm the Employment page is shown again."""
        crumb = self.page.locator(BREADCRUMB_LINK, has_text="Employment").first
        try:
            await crumb.click(timeout=self.timeout)
        except PlaywrightError as e:
            logger.error(f"❌ Breadcrumb click failed: {str(e).splitlines()[0]}")
            return False
        await self.wait_for_page_load()
        label = await self.get_page_label()
        return "Employment" in label and "Legal Updates" not in label

    # =========================================================================
    # Key dates calendar
    # =========================================================================

    async def validate_key_dates_widget(self) -> bool:
        try:
            title = await self.get_text(KEY_DATES_TITLE, timeout=self.timeout, element_name="key dates title")
        except ElementNotFoundError:
            return False
        return "Key Dates" in title

    async def validate_month_year_dropdown(self) -> bool:
        try:
            text = await self.get_text(MONTH_YEAR_DROPDOWN, timeout=self.timeout, element_name="month/year dropdown")
        except ElementNotFoundError:
            return False
        logger.info(f"Calendar shows: {text}")
        return bool(text.strip())

    @allure.step("Validate month navigation buttons")
    async def validate_month_navigation_buttons(self) -> bool:
        """Next moves the calendar forward, previous brings it back."""
        try:
            start = await self.get_text(MONTH_YEAR_DROPDOWN, timeout=self.timeout)
            await self.click(NEXT_MONTH_BUTTON, element_name="next month")
            await asyncio.sleep(1)
            moved = await self.get_text(MONTH_YEAR_DROPDOWN)
            await self.click(PREVIOUS_MONTH_BUTTON, element_name="previous month")
            await asyncio.sleep(1)
            back = await self.get_text(MONTH_YEAR_DROPDOWN)
        except (ElementNotFoundError, PlaywrightError) as e:
            logger.error(f"❌ Month navigation failed: {str(e).splitlines()[0]}")
            return False
        logger.info(f"Month navigation: {start} -> {moved} -> {back}")
        return moved != start and back == start

    async def _event_dates(self) -> List[Locator]:
        container = await self.find(KEY_DATES_CONTAINER, timeout=self.timeout, element_name="key dates calendar")
        cells = container.locator(DATE_CELLS)
        dates = []
        for index in range(await cells.count()):
            cell = cells.nth(index)
            text = (await cell.inner_text()).strip()
            if text.isdigit() and 1 <= int(text) <= 31 and await cell.is_visible():
                dates.append(cell)
        return dates

    @allure.step("Click an event date")
    async def click_event_date_and_validate_popup(self) -> bool:
        try:
            dates = await self._event_dates()
            if not dates:
                logger.warning("⚠️ No event dates in the calendar")
                return False
            await dates[0].click()
        except (ElementNotFoundError, PlaywrightError) as e:
            logger.error(f"❌ Could not click an event date: {str(e).splitlines()[0]}")
            return False
        shown = await self.is_visible(EVENT_POPUP, timeout=self.timeout, element_name="event details popup")
        logger.info(f"Event details popup shown: {shown}")
        return shown

    async def validate_add_to_outlook_button(self) -> bool:
        return await self.is_visible(ADD_TO_OUTLOOK_BUTTON, timeout=self.short_timeout, element_name="add to outlook")

    @allure.step("Close event details popup")
    async def close_event_details_popup(self) -> bool:
        if not await self.try_click(POPUP_CLOSE_BUTTON, element_name="popup close"):
            await self.page.keyboard.press("Escape")
        await asyncio.sleep(1)
        return not await self.is_any_visible(EVENT_POPUP[0])

    async def validate_calendar_view_all_link(self) -> bool:
        return await self.is_visible(CALENDAR_VIEW_ALL, timeout=self.short_timeout, element_name="calendar view all")

    # =========================================================================
    # Start page
    # =========================================================================

    async def get_start_page_toggle_text(self) -> str:
        try:
            return (await self.get_text(START_PAGE_TOGGLE, timeout=self.timeout, element_name="start page toggle")).strip()
        except ElementNotFoundError:
            return ""

    async def _wait_for_toggle_text(self, fragment: str) -> bool:
        async def check():
            text = await self.get_start_page_toggle_text()
            return fragment.lower() in text.lower(), text

        try:
            await wait_until(check, scenario="start_page_toggle", description=f"start page toggle shows '{fragment}'")
        except WaitTimeoutError:
            return False
        return True

    @allure.step("Make this my start page")
    async def click_make_this_my_start_page(self) -> bool:
        if not await self.try_click(START_PAGE_TOGGLE, element_name="make this my start page", timeout=self.timeout):
            return False
        return await self._wait_for_toggle_text("Remove")

    @allure.step("Remove as my start page")
    async def click_remove_as_my_start_page(self) -> bool:
        if not await self.try_click(START_PAGE_TOGGLE, element_name="remove as my start page", timeout=self.timeout):
            return False
        return await self._wait_for_toggle_text("Make")

    @allure.step("Set Employment as start page")
    async def handle_start_page_setting(self) -> bool:
        """
        Leave this page set as the start page from a known state.

        When it already is the start page the setting is removed first and
        applied again.
        """
        text = await self.get_start_page_toggle_text()
        logger.info(f"Start page toggle shows: '{text}'")
        if "remove" in text.lower():
            if not await self.click_remove_as_my_start_page():
                logger.warning("⚠️ Toggle did not switch back to 'Make this my start page'")
            return await self.try_click(START_PAGE_TOGGLE, element_name="make this my start page", timeout=self.timeout)
        if "make" in text.lower():
            return await self.try_click(START_PAGE_TOGGLE, element_name="make this my start page", timeout=self.timeout)
        logger.error("❌ Start page toggle not found")
        return False

    async def validate_start_page_changed(self) -> bool:
        await self._wait_for_toggle_text("as my start page")
        text = (await self.get_start_page_toggle_text()).lower()
        changed = "remove as my start page" in text or "removed as my start page" in text
        logger.info(f"Start page changed: {changed} ('{text}')")
        return changed

    async def validate_home_icon_not_filled(self) -> bool:
        return not await self.is_any_visible(HOME_ICON_FILLED)

    async def validate_my_home_link(self) -> bool:
        return await self.is_visible(MY_HOME_LINK, timeout=self.short_timeout, element_name="My Home link")

    async def validate_my_home_link_not_visible(self) -> bool:
        return not await self.is_any_visible(MY_HOME_LINK)

    async def validate_employment_as_start_page(self) -> bool:
        if "employment" in self.page.url.lower() or "Employment" in await self.page_title():
            return True
        return "Employment" in await self.get_page_label()

    # =========================================================================
    # Ask a question form
    # =========================================================================

    @allure.step("Open Ask a question form")
    async def open_ask_form(self) -> bool:
        """Open the form from the Ask tab, accepting the terms when asked."""
        await self.try_click(EMPLOYMENT_TABS["Ask"], element_name="Ask tab")
        if not await self.try_click(ASK_QUESTION_BUTTON, element_name="ask a question", timeout=self.timeout):
            return False
        if await self.is_visible(ASK_TERMS_CHECKBOX, timeout=self.short_timeout):
            checkbox = await self.find(ASK_TERMS_CHECKBOX)
            if not await checkbox.is_checked():
                await checkbox.check()
            await self.click(ASK_TERMS_SUBMIT, element_name="accept terms")
        return await self.is_visible(ASK_QUERY_FIELD, timeout=self.timeout, element_name="ask query field")

    @allure.step("Submit empty Ask form")
    async def submit_empty_ask_form(self) -> bool:
        return await self.try_click(ASK_SUBMIT_BUTTON, element_name="submit ask form", timeout=self.timeout)

    async def _has_field_error(self, field: str) -> bool:
        selectors = [
            f"//*[@id='{field}']/following-sibling::span[contains(@class, 'error')]",
            f"span.field-validation-error:has-text('{field}')",
            f".validation-summary-errors li:has-text('{field}')",
        ]
        return await self.is_any_visible(selectors)

    async def get_mandatory_field_errors(self) -> Dict[str, bool]:
        errors = {field: await self._has_field_error(field) for field in ASK_MANDATORY_FIELDS}
        logger.info(f"Mandatory field errors: {errors}")
        return errors

    @allure.step("Cancel Ask form")
    async def cancel_ask_form(self) -> bool:
        if not await self.try_click(ASK_CANCEL_BUTTON, element_name="cancel ask form"):
            return False
        await asyncio.sleep(1)
        return not await self.is_any_visible(ASK_QUERY_FIELD)

    # =========================================================================
    # Resources
    # =========================================================================

    @allure.step("Open Contracts of employment")
    async def navigate_to_contracts_of_employment(self) -> DocumentPage:
        """
        Raises:
            ElementNotFoundError: when the resource link is not listed
        """
        link = await self.find(CONTRACTS_OF_EMPLOYMENT_LINK, timeout=self.timeout, element_name="Contracts of employment")
        await link.scroll_into_view_if_needed()
        await link.click()
        await self.wait_for_page_load()
        logger.info(f"Opened Contracts of employment: {self.page.url}")
        return DocumentPage(self.page, self.base_url)


__all__ = [
    "PRACTICE_AREAS",
    "PracticeAreaPage",
    "extract_document_count",
    "is_recent_date",
    "is_valid_practice_area_name",
    "mentions_recent_date",
]
