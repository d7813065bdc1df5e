"""Thin wrapper around a Playwright page for ergonomic assertions."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict
from urllib.parse import parse_qs, urlparse

import anyio
from playwright.async_api import Page, TimeoutError as PlaywrightTimeout


@dataclass
class ToolError(Exception):
    """Raised when a browser operation fails."""

    name: str
    payload: Dict[str, Any]
    message: str

    def __str__(self) -> str:  # pragma: no cover - human readable helper
        return f"{self.name} failed ({self.message}) with payload={self.payload}"


def query_param(url: str, key: str) -> str | None:
    """First value of `key` in the URL's query string, or None when absent."""
    values = parse_qs(urlparse(url).query, keep_blank_values=True).get(key)
    return values[0] if values else None


class Browser:
    """Convenience wrapper over a Playwright page."""

    def __init__(self, page: Page) -> None:
        self._page = page
        self.current_url: str | None = None

    @property
    def page(self) -> Page:
        return self._page

    async def goto(self, path: str, wait_until: str = "domcontentloaded", timeout: int = 30000) -> int | None:
        """Navigate to a path relative to the context base URL and return the HTTP status.

        The dashboard keeps a realtime websocket open, so "networkidle" is not
        a reliable default here.
        """
        try:
            response = await self._page.goto(path, wait_until=wait_until, timeout=timeout)
        except PlaywrightTimeout as exc:
            raise ToolError(name="goto", payload={"path": path, "wait_until": wait_until}, message=str(exc))
        self.current_url = self._page.url
        return response.status if response else None

    async def text(self, selector: str) -> str:
        try:
            text = await self._page.text_content(selector, timeout=5000)
            return text or ""
        except Exception as exc:
            raise ToolError(name="text", payload={"selector": selector}, message=str(exc))

    async def wait_for_text(self, selector: str, expected: str, timeout: float = 3.0, interval: float = 0.5) -> str:
        """Poll for text content until it contains the expected substring."""
        deadline = anyio.current_time() + timeout
        last_error: ToolError | None = None

        while anyio.current_time() <= deadline:
            try:
                content = await self.text(selector)
            except ToolError as exc:
                content = ""
                last_error = exc
            if expected in content:
                return content
            await anyio.sleep(interval)

        if last_error:
            raise AssertionError(
                f"Timed out waiting for '{expected}' in selector '{selector}'. Last error: {last_error}"
            ) from last_error
        raise AssertionError(f"Timed out waiting for '{expected}' in selector '{selector}'")

    def query_param(self, key: str) -> str | None:
        return query_param(self._page.url, key)

    async def wait_for_query_param(
        self,
        key: str,
        expected: str | None,
        timeout: float = 5.0,
        interval: float = 0.1,
    ) -> str | None:
        """Poll the live URL until `key` equals `expected`.

        An expected value of "" also accepts a missing parameter.
        """
        deadline = anyio.current_time() + timeout
        actual = self.query_param(key)
        while anyio.current_time() <= deadline:
            actual = self.query_param(key)
            if actual == expected or (expected == "" and actual is None):
                return actual
            await anyio.sleep(interval)
        raise AssertionError(
            f"Timed out waiting for query param {key}={expected!r}; last value={actual!r} url={self._page.url}"
        )

    async def screenshot(self, name: str) -> str:
        """Full-page PNG into SCREENSHOT_DIR (defaults to ./screenshots)."""
        screenshot_dir = os.environ.get("SCREENSHOT_DIR", "screenshots")
        os.makedirs(screenshot_dir, exist_ok=True)
        path = os.path.join(screenshot_dir, f"{name}.png")
        try:
            await self._page.screenshot(path=path, type="png", full_page=True)
        except Exception as exc:
            raise ToolError(name="screenshot", payload={"name": name}, message=str(exc))
        return path

