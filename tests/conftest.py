"""Shared fixtures: an in-process stand-in for a Playwright page.

The fake implements only the slice of the Playwright ``Page`` API the
pipeline uses, so tests exercise the real pipeline and dispatcher code
without launching Chromium.
"""

from contextlib import asynccontextmanager
from pathlib import Path

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from pagerunner.config import Settings

PAGE_HTML = "<html><head><title>Fake Page</title></head><body><h1>Hello</h1><p>World</p></body></html>"
NEXT_PAGE_HTML = "<html><head><title>Next Page</title></head><body><h1>Arrived</h1></body></html>"


class FakeContext:
    def __init__(self):
        self.cookies = []
        self.add_cookies_calls = 0

    async def add_cookies(self, cookies):
        self.add_cookies_calls += 1
        self.cookies.extend(cookies)


class FakeMouse:
    def __init__(self, page):
        self._page = page

    async def click(self, x, y):
        self._page.calls.append(("mouse.click", x, y))


class FakeNavigation:
    def __init__(self, page, timeout):
        self._page = page
        self._timeout = timeout

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is not None:
            return False
        if not self._page.navigates_on_click:
            raise PlaywrightTimeoutError(f"Timeout {self._timeout}ms exceeded.")
        self._page.url = self._page.next_url
        self._page.html = self._page.next_html
        self._page.page_title = "Next Page"
        return False


class FakeLocator:
    def __init__(self, page, selector):
        self._page = page
        self._selector = selector

    @property
    def first(self):
        return self

    async def count(self):
        if self._selector in self._page.invalid_selectors:
            raise PlaywrightError(f"Unexpected token in selector {self._selector!r}")
        return len(self._page.elements.get(self._selector, []))

    async def click(self, timeout=None):
        if self._page.click_error:
            raise PlaywrightError(self._page.click_error)
        self._page.calls.append(("click", self._selector))

    async def inner_html(self, timeout=None):
        return self._page.elements[self._selector][0]


class FakePage:
    def __init__(
        self,
        html=PAGE_HTML,
        elements=None,
        title="Fake Page",
        navigates_on_click=True,
        goto_error=None,
        click_error=None,
        title_error=False,
        echo_cookies=False,
    ):
        self.html = html
        self.elements = elements or {}
        self.invalid_selectors = set()
        self.page_title = title
        self.navigates_on_click = navigates_on_click
        self.goto_error = goto_error
        self.click_error = click_error
        self.title_error = title_error
        self.echo_cookies = echo_cookies
        self.next_url = "https://example.com/next"
        self.next_html = NEXT_PAGE_HTML
        self.url = "about:blank"
        self.context = FakeContext()
        self.mouse = FakeMouse(self)
        self.init_scripts = []
        self.calls = []
        self.screenshots = []
        self.closed = False

    async def add_init_script(self, script=None, path=None):
        self.calls.append(("add_init_script",))
        self.init_scripts.append(script)

    async def goto(self, url, wait_until=None, timeout=None):
        self.calls.append(("goto", url, wait_until, timeout))
        if self.goto_error:
            raise PlaywrightTimeoutError(self.goto_error)
        self.url = url

    def locator(self, selector):
        return FakeLocator(self, selector)

    def expect_navigation(self, wait_until=None, timeout=None):
        self.calls.append(("expect_navigation", wait_until, timeout))
        return FakeNavigation(self, timeout)

    async def content(self):
        if self.echo_cookies:
            names = " ".join(cookie["name"] for cookie in self.context.cookies)
            return f"<html><body><p>cookies: {names}</p></body></html>"
        return self.html

    async def title(self):
        if self.title_error:
            raise PlaywrightError("Execution context was destroyed")
        return self.page_title

    async def screenshot(self, path=None, full_page=False):
        self.screenshots.append({"path": path, "full_page": full_page})
        Path(path).write_bytes(b"\x89PNG fake")


class FakeBrowser:
    """Replaces ``open_page``; counts how many pages were opened and closed."""

    def __init__(self):
        self.page_factory = FakePage
        self.opened = []
        self.closed = 0

    @asynccontextmanager
    async def open_page(self, settings):
        page = self.page_factory()
        self.opened.append(page)
        try:
            yield page
        finally:
            self.closed += 1
            page.closed = True


@pytest.fixture
def settings(tmp_path):
    return Settings(downloads_folder=str(tmp_path / "downloads"), stealth=False)


@pytest.fixture
def fake_browser(monkeypatch, settings):
    browser = FakeBrowser()
    monkeypatch.setattr("pagerunner.services.pipeline.open_page", browser.open_page)
    monkeypatch.setattr("pagerunner.services.pipeline.get_settings", lambda: settings)
    return browser
