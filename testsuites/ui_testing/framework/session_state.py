"""
================================================================================
Login Session State
================================================================================

The "currently logged in" flag shared by the ordered tests of one fixture
(test class). The first test signs in, the following tests reuse the
session, and the class teardown signs out and returns the user to the pool.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Awaitable, Callable, Optional

import pytest
from loguru import logger

from .user_pool import TestUser, TestUserPool

if TYPE_CHECKING:
    from ..pages.dashboard_page import DashboardPage


LoginFunc = Callable[[TestUser], Awaitable["DashboardPage"]]


class LoginSession:
    """
    Login state of one test fixture.

    Usage:
        session = LoginSession("TestPracticeArea", pool)
        dashboard = await session.ensure_logged_in(login_func)
        ...
        await session.sign_out()
        session.release()
    """

    def __init__(self, fixture_name: str, pool: Optional[TestUserPool] = None):
        self.fixture_name = fixture_name
        self.pool = pool
        self.is_logged_in = False
        self.dashboard: Optional["DashboardPage"] = None
        self.user: Optional[TestUser] = None

    def mark_logged_in(self, dashboard: "DashboardPage", user: Optional[TestUser] = None) -> None:
        self.dashboard = dashboard
        if user is not None:
            self.user = user
        self.is_logged_in = True
        logger.info(f"✅ {self.fixture_name}: logged in as {self.user.user_id if self.user else 'unknown user'}")

    def mark_logged_out(self) -> None:
        if self.is_logged_in:
            logger.info(f"{self.fixture_name}: login flag reset")
        self.is_logged_in = False
        self.dashboard = None

    def acquire_user(self) -> TestUser:
        """Assign a pool user to this fixture once; later calls return the same user."""
        if self.user is None:
            if self.pool is None:
                raise RuntimeError("LoginSession has no user pool")
            self.user = self.pool.get_available_user(self.fixture_name)
        return self.user

    async def ensure_logged_in(self, login: LoginFunc) -> "DashboardPage":
        """
        Sign in unless an earlier test of this fixture already did.

        Skips the calling test (inconclusive) when the session is expected to
        be logged in but the dashboard no longer shows a signed-in user.
        """
        if not self.is_logged_in or self.dashboard is None:
            user = self.acquire_user()
            logger.info(f"{self.fixture_name}: signing in with {user.user_id}")
            self.mark_logged_in(await login(user), user)
            return self.dashboard

        logger.debug(f"{self.fixture_name}: reusing existing login")
        if not await self.dashboard.is_user_logged_in():
            self.mark_logged_out()
            pytest.skip("User is not logged in - cannot proceed with post-login test")
        return self.dashboard

    async def sign_out(self) -> bool:
        """Sign out if logged in. Errors are logged, never raised."""
        if not self.is_logged_in or self.dashboard is None:
            return False
        try:
            signed_out = await self.dashboard.sign_out()
        except Exception as e:
            logger.warning(f"⚠️ {self.fixture_name}: sign out failed during cleanup: {str(e).splitlines()[0] if str(e) else e!r}")
            signed_out = False
        self.mark_logged_out()
        return signed_out

    def release(self) -> None:
        """Return the assigned user to the pool."""
        if self.user is not None and self.pool is not None:
            self.pool.release_user(self.user.user_id)
        self.user = None


__all__ = [
    "LoginSession",
]
