import pytest

from testsuites.ui_testing.framework.session_state import LoginSession
from testsuites.ui_testing.framework.user_pool import TestUserPool


USERS = {
    "User1": {"username": "one@example.com", "password": "p1"},
    "User2": {"username": "two@example.com", "password": "p2"},
}


class FakeDashboard:
    def __init__(self, logged_in=True, sign_out_error=None):
        self.logged_in = logged_in
        self.sign_out_error = sign_out_error
        self.sign_out_calls = 0

    async def is_user_logged_in(self):
        return self.logged_in

    async def sign_out(self):
        self.sign_out_calls += 1
        if self.sign_out_error:
            raise self.sign_out_error
        self.logged_in = False
        return True


class FakeLogin:
    def __init__(self, dashboard):
        self.dashboard = dashboard
        self.users = []

    async def __call__(self, user):
        self.users.append(user.user_id)
        return self.dashboard


@pytest.fixture
def pool():
    return TestUserPool(USERS)


@pytest.mark.asyncio
async def test_first_call_signs_in_with_a_pool_user(pool):
    dashboard = FakeDashboard()
    login = FakeLogin(dashboard)
    session = LoginSession("TestLogin", pool)

    assert await session.ensure_logged_in(login) is dashboard
    assert session.is_logged_in
    assert login.users == ["User1"]
    assert session.user.assigned_test == "TestLogin"


@pytest.mark.asyncio
async def test_login_is_reused_within_the_fixture(pool):
    login = FakeLogin(FakeDashboard())
    session = LoginSession("TestLogin", pool)

    await session.ensure_logged_in(login)
    await session.ensure_logged_in(login)

    assert login.users == ["User1"]


@pytest.mark.asyncio
async def test_lost_login_skips_the_test(pool):
    dashboard = FakeDashboard()
    session = LoginSession("TestLogin", pool)
    await session.ensure_logged_in(FakeLogin(dashboard))

    dashboard.logged_in = False
    with pytest.raises(pytest.skip.Exception):
        await session.ensure_logged_in(FakeLogin(dashboard))
    assert not session.is_logged_in


@pytest.mark.asyncio
async def test_mark_logged_out_forces_a_new_sign_in(pool):
    login = FakeLogin(FakeDashboard())
    session = LoginSession("TestLogin", pool)

    await session.ensure_logged_in(login)
    session.mark_logged_out()
    await session.ensure_logged_in(login)

    assert login.users == ["User1", "User1"]


@pytest.mark.asyncio
async def test_sign_out_swallows_errors(pool):
    dashboard = FakeDashboard(sign_out_error=RuntimeError("Target page, context or browser has been closed"))
    session = LoginSession("TestLogin", pool)
    await session.ensure_logged_in(FakeLogin(dashboard))

    assert await session.sign_out() is False
    assert dashboard.sign_out_calls == 1
    assert not session.is_logged_in


@pytest.mark.asyncio
async def test_sign_out_when_not_logged_in(pool):
    session = LoginSession("TestLogin", pool)
    assert await session.sign_out() is False


@pytest.mark.asyncio
async def test_release_returns_the_user(pool):
    session = LoginSession("TestLogin", pool)
    await session.ensure_logged_in(FakeLogin(FakeDashboard()))
    await session.sign_out()
    session.release()

    assert session.user is None
    assert pool.get_available_user_ids() == ["User1", "User2"]


def test_acquire_user_without_pool():
    with pytest.raises(RuntimeError):
        LoginSession("TestLogin").acquire_user()
