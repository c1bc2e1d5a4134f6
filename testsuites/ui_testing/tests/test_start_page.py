"""
================================================================================
Start Page UI Tests (Async / Playwright)
================================================================================

"Make this my start page" / "Remove as my start page" on the Employment
practice area.

================================================================================
"""

import allure
import pytest

from testsuites.ui_testing.framework.session_state import LoginSession
from testsuites.ui_testing.pages.dashboard_page import DashboardPage
from testsuites.ui_testing.pages.practice_area_page import (
    MAKE_START_PAGE_TEXT,
    REMOVE_START_PAGE_TEXT,
)


@allure.epic("UI Testing")
@allure.feature("Start Page")
class TestStartPage:
    """Start page setting test suite (async)."""

    @allure.story("Make start page")
    @allure.title("Employment can be made the start page")
    @allure.severity(allure.severity_level.NORMAL)
    @pytest.mark.P1
    @pytest.mark.start_page
    @pytest.mark.asyncio(loop_scope="session")
    async def test_make_employment_start_page(self, dashboard: DashboardPage):
        practice_area = await dashboard.open_practice_area("Employment")

        assert await practice_area.handle_start_page_setting(), "Start page toggle should be available"
        assert await practice_area.validate_start_page_changed(), (
            f"Toggle should read '{REMOVE_START_PAGE_TEXT}', got '{await practice_area.get_start_page_toggle_text()}'"
        )
        assert await practice_area.validate_my_home_link(), "'My Home' link should be visible"
        assert await practice_area.validate_employment_as_start_page()

    @allure.story("Remove start page")
    @allure.title("Removing the start page resets toggle, home icon and My Home link")
    @allure.severity(allure.severity_level.CRITICAL)
    @pytest.mark.P0
    @pytest.mark.start_page
    @pytest.mark.asyncio(loop_scope="session")
    async def test_remove_start_page(self, dashboard: DashboardPage, login_session: LoginSession):
        practice_area = await dashboard.open_practice_area("Employment")

        with allure.step("Make sure Employment is the start page"):
            text = await practice_area.get_start_page_toggle_text()
            if "make this" in text.lower():
                assert await practice_area.click_make_this_my_start_page(), "Should set Employment as start page first"

        with allure.step("Remove as my start page"):
            assert await practice_area.click_remove_as_my_start_page(), "Should click 'Remove as my start page'"
            text = await practice_area.get_start_page_toggle_text()
            assert "make this" in text.lower() and "start page" in text.lower(), (
                f"Toggle should change to '{MAKE_START_PAGE_TEXT}', got '{text}'"
            )

        with allure.step("Home icon and My Home link reset"):
            assert await practice_area.validate_home_icon_not_filled(), "Home icon should not be filled"
            await practice_area.refresh()
            assert await practice_area.validate_my_home_link_not_visible(), "'My Home' link should not be visible"

        with allure.step("Sign out"):
            assert await dashboard.sign_out(), "Sign out should be successful"
            login_session.mark_logged_out()
