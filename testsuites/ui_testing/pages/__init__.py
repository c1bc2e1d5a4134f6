"""
================================================================================
Page Objects
================================================================================

Page Object Model implementations for the Practical Law pages.

Each page class encapsulates:
    - Element locator chains
    - Page-specific actions
    - Verification methods

Author: Automation Team
License: MIT
================================================================================
"""

from .document_page import DocumentPage
from .favourites_page import FavouritesPage
from .practice_area_page import PracticeAreaPage
from .dashboard_page import DashboardPage
from .login_page import LoginPage
from .home_page import HomePage

__all__ = [
    "DashboardPage",
    "DocumentPage",
    "FavouritesPage",
    "HomePage",
    "LoginPage",
    "PracticeAreaPage",
]
