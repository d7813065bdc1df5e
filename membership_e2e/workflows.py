"""Reusable UI steps for the waitlist, invite drawer and dashboard tables."""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Pattern, Union

from playwright.async_api import Locator, Page, expect

from membership_e2e.browser import Browser

TextMatcher = Union[str, Pattern[str]]

WAITLIST_SUCCESS = "You have been added to the waitlist, we will be in contact soon!"
TABLE_ROWS = "table tbody tr"


def years_ago(years: int, today: date | None = None) -> date:
    """Same calendar day `years` ago; 29 Feb falls back to 28 Feb."""
    today = today or date.today()
    try:
        return today.replace(year=today.year - years)
    except ValueError:
        return today.replace(year=today.year - years, day=28)


def calendar_day_label(day: date) -> str:
    """Accessible label prefix of a day cell, e.g. 'Monday, March 4,'."""
    return f"{day:%A}, {day:%B} {day.day},"


async def pick_date(page: Page, day: date, trigger: TextMatcher = re.compile("date of birth", re.I)) -> None:
    """Choose `day` in the calendar popover opened by the field labelled `trigger`."""
    await page.get_by_label(trigger).click()
    await page.get_by_label("Select year").click()
    await page.get_by_role("option", name=str(day.year)).click()
    await page.get_by_label("Select month").click()
    await page.get_by_role("option", name=f"{day:%B}").dblclick()
    await page.get_by_label(calendar_day_label(day)).click()


def phone_input(page: Page, container_text: TextMatcher = re.compile("phone number", re.I)) -> Locator:
    """The tel input inside the phone component whose wrapper mentions `container_text`."""
    return page.locator("div").filter(has_text=container_text).locator('input[type="tel"]').first


async def type_phone_number(page: Page, number: str, container_text: TextMatcher = re.compile("phone number", re.I)) -> Locator:
    field = phone_input(page, container_text)
    await field.press_sequentially(number, delay=50)
    await field.blur()
    return field


@dataclass
class WaitlistApplicant:
    first_name: str
    last_name: str
    email: str
    phone_number: str
    date_of_birth: date
    medical_conditions: str
    pronouns: str = "he/him"
    gender: str = "man (cis)"
    guardian_first_name: str | None = None
    guardian_last_name: str | None = None
    guardian_phone_number: str | None = None


async def fill_waitlist_form(page: Page, applicant: WaitlistApplicant, include_guardian: bool = True) -> None:
    """Fill every waitlist field; guardian fields only when provided and requested."""
    await page.fill('input[name="firstName"]', applicant.first_name)
    await page.fill('input[name="lastName"]', applicant.last_name)
    await page.fill('input[name="email"]', applicant.email)
    await type_phone_number(page, applicant.phone_number)
    await page.get_by_placeholder("Enter your pronouns").fill(applicant.pronouns)
    await page.get_by_label(re.compile("gender", re.I)).click()
    await page.get_by_role("option", name=applicant.gender, exact=True).click()
    await pick_date(page, applicant.date_of_birth)
    await page.get_by_role("radio", name="No", exact=True).click()
    await page.get_by_label(re.compile("any medical condition", re.I)).fill(applicant.medical_conditions)

    if include_guardian and applicant.guardian_first_name:
        await page.fill('input[name="guardianFirstName"]', applicant.guardian_first_name)
        await page.fill('input[name="guardianLastName"]', applicant.guardian_last_name or "")
        guardian_phone = page.get_by_label("Guardian Phone Number")
        await guardian_phone.press_sequentially(applicant.guardian_phone_number or "", delay=50)
        await guardian_phone.blur()


async def submit_form(page: Page) -> None:
    await page.click('button[type="submit"]')


async def open_invite_drawer(page: Page) -> None:
    await page.goto("/dashboard/members")
    await page.get_by_role("button", name="Invite Members").click()


async def add_invite_to_list(
    page: Page,
    first_name: str,
    last_name: str,
    email: str,
    date_of_birth: date,
    phone_number: str,
) -> None:
    """Fill the invite drawer form and press "Add to List"."""
    await page.get_by_label("First Name").fill(first_name)
    await page.get_by_label("Last Name").fill(last_name)
    await page.get_by_label("Email").fill(email)
    await pick_date(page, date_of_birth)
    await expect(page.get_by_label("Phone Number")).to_be_visible()
    await page.get_by_label("Phone Number").fill(phone_number)
    await page.get_by_role("button", name="Add to List").click()


async def wait_for_table_rows(page: Page, timeout: float = 10000) -> Locator:
    """Wait until the first body row is attached (responsive CSS may hide it)."""
    rows = page.locator(TABLE_ROWS)
    await rows.first.wait_for(state="attached", timeout=timeout)
    return rows


async def wait_for_rows_or_empty(page: Page, timeout: float = 10000) -> None:
    await page.locator(f'{TABLE_ROWS}, p:has-text("No results found")').first.wait_for(
        state="attached", timeout=timeout
    )


async def clear_search(browser: Browser, placeholder: str, param: str = "q") -> None:
    """Press "Clear search" and wait for `param` to drop out of the URL.

    Chromium occasionally misses the button click, so fall back to emptying
    the search input before the final wait.
    """
    page = browser.page
    await page.get_by_role("button", name="Clear search").click(force=True)
    try:
        await browser.wait_for_query_param(param, "", timeout=3.0)
    except AssertionError:
        await page.get_by_placeholder(placeholder).fill("")
    await browser.wait_for_query_param(param, "", timeout=10.0)


async def search_table(browser: Browser, placeholder: str, value: str, param: str = "q") -> None:
    """Type into a table's search box and wait for the URL to carry the term."""
    search_input = browser.page.get_by_placeholder(placeholder)
    await search_input.fill(value)
    await search_input.press("Tab")
    await browser.wait_for_query_param(param, value, timeout=10.0)


async def expect_page_size(page: Page, trigger_name: str, size: str) -> None:
    await expect(page.get_by_role("button", name=trigger_name)).to_contain_text(size)
