import re

import pytest
import pytest_asyncio
from playwright.async_api import expect

from membership_e2e.auth_state import login_as_user
from membership_e2e.seeding import create_member, create_unique_email

pytestmark = pytest.mark.asyncio


@pytest.fixture(scope="module")
def member():
    seeded = create_member(email=create_unique_email("self-management"))
    yield seeded
    seeded.clean_up()


@pytest_asyncio.fixture
async def profile_page(page, context, member):
    await login_as_user(context, member.email)
    await page.goto("/dashboard")
    await page.get_by_text(member.email).click()
    await page.get_by_text("My profile").click()
    await expect(page.get_by_text(re.compile("member information", re.I))).to_be_visible()
    return page


async def test_navigates_to_member_profile(profile_page):
    await expect(profile_page.get_by_label(re.compile("first name", re.I))).to_be_visible()


async def test_updates_member_profile(profile_page):
    page = profile_page
    await page.get_by_label(re.compile("first name", re.I)).fill("Updated name")
    await page.get_by_role("button", name=re.compile("save changes", re.I)).click()
    await expect(page.get_by_text(re.compile("Your profile has been updated!", re.I))).to_be_visible()

    await page.reload()
    await expect(page.get_by_label(re.compile("first name", re.I))).to_have_value("Updated name")
