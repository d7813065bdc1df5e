"""Role-based access to the settings drawer and the waitlist toggle.

Admins, presidents and the committee coordinator manage settings; every other
role must not see the controls at all.
"""
import re

import pytest
from playwright.async_api import expect

from membership_e2e.auth_state import login_as_user
from membership_e2e.database import get_setting, set_waitlist_open
from membership_e2e.seeding import create_member, create_unique_email

pytestmark = pytest.mark.asyncio

SETTINGS_BUTTON = re.compile("settings", re.I)
WAITLIST_TOGGLE = re.compile("open waitlist|close waitlist", re.I)

SETTINGS_MANAGERS = [
    pytest.param({"admin"}, id="admin"),
    pytest.param({"committee_coordinator"}, id="committee-coordinator"),
    pytest.param({"president"}, id="president"),
]
NON_MANAGERS = [
    pytest.param({"quartermaster", "member"}, id="quartermaster"),
    pytest.param({"member"}, id="member"),
]


@pytest.fixture(scope="module", autouse=True)
def restore_waitlist_flag():
    yield
    set_waitlist_open(True)


@pytest.fixture(scope="module", params=SETTINGS_MANAGERS)
def settings_manager(request):
    roles = request.param
    member = create_member(email=create_unique_email(f"settings-{sorted(roles)[0]}"), roles=roles)
    yield member
    member.clean_up()


@pytest.fixture(scope="module", params=NON_MANAGERS)
def non_manager(request):
    roles = request.param
    member = create_member(email=create_unique_email("settings-readonly"), roles=roles)
    yield member
    member.clean_up()


class TestSettingsManagers:
    async def test_can_update_settings(self, page, context, settings_manager):
        await login_as_user(context, settings_manager.email)
        await page.goto("/dashboard/members")
        await page.get_by_role("button", name=SETTINGS_BUTTON).click()
        form_link = f"https://example.com/insurance/{sorted(settings_manager.roles)[0]}"
        await page.get_by_label(re.compile("hema insurance form link", re.I)).fill(form_link)
        await page.get_by_role("button", name=re.compile("save settings", re.I)).click()
        await expect(page.get_by_text(re.compile("settings updated successfully", re.I))).to_be_visible()

        assert get_setting("hema_insurance_form_link") == form_link

    async def test_can_toggle_waitlist(self, page, context, settings_manager):
        await login_as_user(context, settings_manager.email)
        await page.goto("/dashboard/beginners-workshop")
        was_open = get_setting("waitlist_open")
        toggle = page.get_by_text(WAITLIST_TOGGLE)
        await expect(toggle).to_be_visible()

        await toggle.click()
        # Confirm in the alert dialog
        await page.get_by_test_id("action").click()

        await expect(page.get_by_text(re.compile("waitlist status updated", re.I))).to_be_visible()

        expected = "false" if was_open == "true" else "true"
        assert get_setting("waitlist_open") == expected


class TestNonManagers:
    async def test_does_not_see_settings_button(self, page, context, non_manager):
        await login_as_user(context, non_manager.email)
        await page.goto("/dashboard/members")
        await expect(page.get_by_role("button", name=SETTINGS_BUTTON)).not_to_be_visible()

    async def test_does_not_see_waitlist_toggle(self, page, context, non_manager):
        await login_as_user(context, non_manager.email)
        await page.goto("/dashboard/beginners-workshop")
        await expect(page.get_by_text(WAITLIST_TOGGLE)).not_to_be_visible()
