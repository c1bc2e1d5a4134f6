"""
================================================================================
Favourites UI Tests (Async / Playwright)
================================================================================

Add a document to Favourites, find it in the list, remove it again.

================================================================================
"""

import allure
import pytest

from testsuites.ui_testing.framework.config_loader import ConfigLoader
from testsuites.ui_testing.pages.dashboard_page import DashboardPage


@allure.epic("UI Testing")
@allure.feature("Favourites")
class TestFavourites:
    """Favourites test suite (async). Tests depend on each other's order."""

    document_title = ""

    @allure.story("Add")
    @allure.title("A document can be added to Favourites")
    @allure.severity(allure.severity_level.NORMAL)
    @pytest.mark.P1
    @pytest.mark.favourites
    @pytest.mark.asyncio(loop_scope="session")
    async def test_add_document_to_favourites(self, dashboard: DashboardPage, config: ConfigLoader):
        practice_area = await dashboard.open_practice_area(config.get("test_data.default_practice_area", "Employment"))
        document = await practice_area.navigate_to_contracts_of_employment()
        title = await document.get_title()
        assert title, "Document should have a title"

        with allure.step(f"Add '{title}' to favourites"):
            assert await document.add_to_favourites(), "Favourite toggle should switch on"
            assert await document.is_in_favourites()

        type(self).document_title = title

    @allure.story("List")
    @allure.title("The added document is listed in Favourites")
    @allure.severity(allure.severity_level.NORMAL)
    @pytest.mark.P1
    @pytest.mark.favourites
    @pytest.mark.asyncio(loop_scope="session")
    async def test_document_listed_in_favourites(self, dashboard: DashboardPage):
        if not self.document_title:
            pytest.skip("No document was added to favourites")

        favourites = await dashboard.open_favourites()
        assert await favourites.is_loaded(), "Favourites page should load"
        titles = await favourites.get_favourite_titles()
        assert await favourites.contains(self.document_title), f"'{self.document_title}' missing from {titles}"

    @allure.story("Remove")
    @allure.title("Removing the favourite takes it off the list")
    @allure.severity(allure.severity_level.NORMAL)
    @pytest.mark.P1
    @pytest.mark.favourites
    @pytest.mark.asyncio(loop_scope="session")
    async def test_remove_favourite(self, dashboard: DashboardPage):
        if not self.document_title:
            pytest.skip("No document was added to favourites")

        favourites = await dashboard.open_favourites()
        assert await favourites.remove(self.document_title), f"Could not remove '{self.document_title}'"

        await favourites.refresh()
        assert not await favourites.contains(self.document_title), "Removed favourite should be gone after refresh"

    @allure.story("Remove")
    @allure.title("The favourite toggle on the document switches off again")
    @allure.severity(allure.severity_level.MINOR)
    @pytest.mark.P2
    @pytest.mark.favourites
    @pytest.mark.asyncio(loop_scope="session")
    async def test_document_toggle_removes_favourite(self, dashboard: DashboardPage, config: ConfigLoader):
        practice_area = await dashboard.open_practice_area(config.get("test_data.default_practice_area", "Employment"))
        document = await practice_area.navigate_to_contracts_of_employment()

        assert await document.add_to_favourites(), "Favourite toggle should switch on"
        assert await document.remove_from_favourites(), "Favourite toggle should switch off"
        assert not await document.is_in_favourites(), "Document should no longer be a favourite"
