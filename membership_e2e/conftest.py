import logging
import re

import pytest
import pytest_asyncio

from membership_e2e.browser import Browser
from membership_e2e.config import settings
from membership_e2e.database import reset_application_state
from membership_e2e.playwright_client import PlaywrightClient
from membership_e2e.session_manager import SessionManager

logger = logging.getLogger(__name__)


@pytest.fixture(scope="session", autouse=True)
def fresh_application_state():
    """Start the run from a clean database: no auth users, default settings.

    Set E2E_SKIP_GLOBAL_RESET=1 when pointing the suite at a shared stack.
    """
    if settings.skip_global_reset:
        logger.info("Skipping global reset (E2E_SKIP_GLOBAL_RESET)")
    else:
        reset_application_state()
    yield


@pytest_asyncio.fixture()
async def playwright_client():
    """Create a Playwright client instance."""
    async with PlaywrightClient(headless=settings.playwright_headless) as client:
        yield client


@pytest_asyncio.fixture()
async def context(playwright_client):
    """Default browser context; cookies added here apply to `page`."""
    return playwright_client.context


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Expose each phase report on the item so fixtures can see failures."""
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)


@pytest_asyncio.fixture()
async def page(playwright_client, request):
    """Default page, sized for the desktop table layout.

    A full-page screenshot named after the test is saved when the test fails.
    """
    page = playwright_client.page
    await page.set_viewport_size({"width": 1280, "height": 720})
    yield page

    report = getattr(request.node, "rep_call", None)
    if report is not None and report.failed:
        name = re.sub(r"[^\w.-]+", "_", request.node.nodeid)
        path = await Browser(page).screenshot(name)
        logger.info("Saved failure screenshot %s", path)


@pytest_asyncio.fixture()
async def browser(page):
    """Create a Browser wrapper around the default page."""
    return Browser(page)


# ============================================================================
# Multi-user sessions
# ============================================================================

@pytest_asyncio.fixture()
async def session_manager(playwright_client):
    """Isolated browser contexts for tests that act as more than one member.

    Usage:
        async def test_permissions(session_manager, admin_member):
            admin = await session_manager.member_session(admin_member.email)
            await admin.page.goto('/dashboard/members')
    """
    async with SessionManager(
        browser=playwright_client.browser,
        base_url=settings.base_url,
        timeout=settings.default_timeout_ms,
    ) as manager:
        yield manager
