import pytest

from testsuites.ui_testing.framework.smart_locator import ElementNotFoundError, SmartLocator


class FakeLocator:
    def __init__(self, selector, present):
        self.selector = selector
        self.present = present

    @property
    def first(self):
        return self

    async def wait_for(self, state="visible", timeout=None):
        if not self.present:
            raise TimeoutError(f"Timeout {timeout}ms exceeded waiting for {self.selector}")


class FakePage:
    def __init__(self, present):
        self.present = set(present)
        self.requested = []

    def locator(self, selector):
        self.requested.append(selector)
        return FakeLocator(selector, selector in self.present)


@pytest.fixture(autouse=True)
def _clean_health():
    SmartLocator.reset_health()
    yield
    SmartLocator.reset_health()


def test_resolve_named_and_inline_chains():
    smart = SmartLocator(FakePage(set()))

    chain, name = smart.resolve("sign_in_link")
    assert name == "sign_in_link"
    assert chain["primary"] == "#SignIn"

    chain, name = smart.resolve(["#Username", "input[type='email']"])
    assert name == "#Username"
    assert chain == {"primary": "#Username", "fallback_1": "input[type='email']"}


@pytest.mark.asyncio
async def test_primary_selector_wins():
    page = FakePage({"#SignIn", "a:has-text('Sign in')"})

    locator = await SmartLocator(page).locate("sign_in_link")

    assert locator.selector == "#SignIn"
    assert page.requested == ["#SignIn"]
    assert SmartLocator.health()["sign_in_link"].primary_hits == 1
    assert "No maintenance needed" in SmartLocator.health_report()


@pytest.mark.asyncio
async def test_fallbacks_are_counted_across_page_objects():
    page = FakePage({"a[href*='login']"})
    chain = ["#Username", "input[type='email']", "a[href*='login']"]

    await SmartLocator(page).locate(chain, element_name="username")
    locator = await SmartLocator(page).locate(chain, element_name="username")

    assert locator.selector == "a[href*='login']"
    health = SmartLocator.health()["username"]
    assert health.fallback_hits == 2
    report = SmartLocator.health_report()
    assert "[username] fallback 2/2" in report
    assert "Primary: #Username" in report
    assert "Last used: fallback_2 -> a[href*='login']" in report


@pytest.mark.asyncio
async def test_all_selectors_failing_raises():
    smart = SmartLocator(FakePage(set()))

    with pytest.raises(ElementNotFoundError, match="All locators failed for 'profile_icon'"):
        await smart.locate("profile_icon", timeout=10)
    assert SmartLocator.health() == {}


@pytest.mark.asyncio
async def test_is_visible_is_false_when_nothing_matches():
    smart = SmartLocator(FakePage(set()))
    assert not await smart.is_visible(["#nothing"], timeout=10)
