import pytest

from membership_e2e import session_manager as session_module
from membership_e2e.session_manager import SessionManager

pytestmark = pytest.mark.asyncio


class FakeContext:
    def __init__(self, options):
        self.options = options
        self.timeout = None
        self.closed = False

    def set_default_timeout(self, timeout):
        self.timeout = timeout

    async def new_page(self):
        return object()

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self):
        self.contexts = []

    async def new_context(self, **options):
        context = FakeContext(options)
        self.contexts.append(context)
        return context


@pytest.fixture
def signed_in(monkeypatch):
    logins = []

    async def fake_login(context, email, password=None):
        logins.append(email)
        return {"access_token": f"token-for-{email}"}

    monkeypatch.setattr(session_module, "login_as_user", fake_login)
    return logins


class TestSessionManager:
    async def test_contexts_use_desktop_defaults(self):
        browser = FakeBrowser()
        manager = SessionManager(browser, base_url="http://localhost:5173", timeout=5000)

        handle = await manager.create_session()

        assert handle.session_id == "session_1"
        (context,) = browser.contexts
        assert context.options == {
            "viewport": {"width": 1280, "height": 720},
            "locale": "en-IE",
            "base_url": "http://localhost:5173",
        }
        assert context.timeout == 5000

    async def test_duplicate_session_id_raises(self):
        manager = SessionManager(FakeBrowser())
        await manager.create_session("admin")

        with pytest.raises(ValueError, match="already exists"):
            await manager.create_session("admin")

    async def test_member_session_is_reused(self, signed_in):
        manager = SessionManager(FakeBrowser())

        first = await manager.member_session("admin@test.com")
        again = await manager.member_session("admin@test.com")

        assert first is again
        assert signed_in == ["admin@test.com"]
        assert first.auth == {"access_token": "token-for-admin@test.com"}

    async def test_close_all_closes_every_context(self, signed_in):
        browser = FakeBrowser()
        async with SessionManager(browser) as manager:
            await manager.member_session("admin@test.com")
            await manager.anonymous_session()
            assert manager.session_count == 2

        assert manager.session_count == 0
        assert all(context.closed for context in browser.contexts)
