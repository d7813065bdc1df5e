"""
Session manager for multi-user browser tests.

Each signed-in user gets an isolated BrowserContext carrying their own
Supabase auth cookie, so an admin and a plain member can be driven side by
side without cookie leakage.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, TypedDict
import logging

from playwright.async_api import Browser, BrowserContext, Page

from membership_e2e.auth_state import login_as_user
from membership_e2e.browser import Browser as PageWrapper

logger = logging.getLogger(__name__)


class ViewportSize(TypedDict):
    width: int
    height: int


@dataclass
class SessionHandle:
    """Handle to one isolated browser session."""
    session_id: str
    context: BrowserContext
    page: Page
    email: Optional[str] = None
    auth: Dict[str, Any] = field(default_factory=dict)

    @property
    def browser(self) -> PageWrapper:
        return PageWrapper(self.page)

    def __repr__(self) -> str:
        return f"SessionHandle(id={self.session_id}, email={self.email})"


class SessionManager:
    """
    Owns the browser contexts opened during one test.

    Usage:
        async with SessionManager(browser, base_url) as manager:
            admin = await manager.member_session(admin_member.email)
            visitor = await manager.anonymous_session()
            await admin.page.goto('/dashboard/members')
    """

    # Desktop size so tables are not collapsed into the mobile card layout
    DEFAULT_VIEWPORT: ViewportSize = {'width': 1280, 'height': 720}
    DEFAULT_LOCALE = 'en-IE'

    def __init__(
        self,
        browser: Browser,
        base_url: Optional[str] = None,
        viewport: Optional[ViewportSize] = None,
        locale: str = DEFAULT_LOCALE,
        timeout: Optional[int] = None,
    ):
        self.browser = browser
        self.base_url = base_url
        self.viewport: ViewportSize = viewport or self.DEFAULT_VIEWPORT
        self.locale = locale
        self.timeout = timeout
        self.sessions: Dict[str, SessionHandle] = {}
        self._counter = 0

    async def __aenter__(self) -> 'SessionManager':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close_all()

    async def create_session(
        self,
        session_id: Optional[str] = None,
        viewport: Optional[ViewportSize] = None,
    ) -> SessionHandle:
        """Open a fresh context + page. Raises ValueError for a duplicate id."""
        if session_id is None:
            self._counter += 1
            session_id = f"session_{self._counter}"

        if session_id in self.sessions:
            raise ValueError(f"Session {session_id} already exists")

        context = await self.browser.new_context(
            viewport=viewport if viewport is not None else self.viewport,
            locale=self.locale,
            base_url=self.base_url,
        )
        if self.timeout:
            context.set_default_timeout(self.timeout)
        page = await context.new_page()

        handle = SessionHandle(session_id=session_id, context=context, page=page)
        self.sessions[session_id] = handle
        logger.debug("Created session: %s", handle)
        return handle

    async def member_session(self, email: str, password: Optional[str] = None) -> SessionHandle:
        """Get or create a session signed in as `email` via cookie injection."""
        session_id = f"member_{email}"
        if session_id not in self.sessions:
            handle = await self.create_session(session_id)
            handle.email = email
            handle.auth = await login_as_user(handle.context, email, password)
        return self.sessions[session_id]

    async def anonymous_session(self) -> SessionHandle:
        if 'anonymous' not in self.sessions:
            await self.create_session('anonymous')
        return self.sessions['anonymous']

    async def close_session(self, session_id: str) -> None:
        if session_id in self.sessions:
            handle = self.sessions.pop(session_id)
            try:
                await handle.context.close()
                logger.debug("Closed session: %s", handle)
            except Exception as e:
                logger.warning("Error closing session %s: %s", session_id, e)

    async def close_all(self) -> None:
        for session_id in list(self.sessions.keys()):
            await self.close_session(session_id)

    @property
    def session_count(self) -> int:
        return len(self.sessions)
