"""Tests for browser.open_page with Playwright mocked out."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from pagerunner.services.browser import open_page


def _mock_playwright():
    page = MagicMock(name="page")
    context = MagicMock(name="context")
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()
    browser = MagicMock(name="browser")
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()
    pw = MagicMock(name="playwright")
    pw.chromium.launch = AsyncMock(return_value=browser)
    manager = MagicMock(name="async_playwright()")
    manager.__aenter__.return_value = pw
    manager.__aexit__.return_value = False
    return manager, pw, browser, context, page


class TestOpenPage:
    async def test_yields_page_with_fixed_viewport(self, settings):
        manager, pw, browser, context, page = _mock_playwright()
        with patch("pagerunner.services.browser.async_playwright", return_value=manager):
            async with open_page(settings) as opened:
                assert opened is page

        pw.chromium.launch.assert_awaited_once_with(
            headless=True, args=settings.browser_args
        )
        browser.new_context.assert_awaited_once_with(viewport={"width": 1600, "height": 900})
        context.close.assert_awaited_once()
        browser.close.assert_awaited_once()

    async def test_closes_everything_when_block_raises(self, settings):
        manager, _pw, browser, context, _page = _mock_playwright()
        with patch("pagerunner.services.browser.async_playwright", return_value=manager):
            with pytest.raises(RuntimeError):
                async with open_page(settings):
                    raise RuntimeError("stage failed")

        context.close.assert_awaited_once()
        browser.close.assert_awaited_once()

    async def test_stealth_applied_when_enabled(self, settings):
        settings.stealth = True
        manager, _pw, _browser, context, _page = _mock_playwright()
        stealth = MagicMock()
        stealth.apply_stealth_async = AsyncMock()
        with (
            patch("pagerunner.services.browser.async_playwright", return_value=manager),
            patch("pagerunner.services.browser.Stealth", return_value=stealth),
        ):
            async with open_page(settings):
                pass

        stealth.apply_stealth_async.assert_awaited_once_with(context)

    async def test_stealth_skipped_when_disabled(self, settings):
        manager, *_ = _mock_playwright()
        with (
            patch("pagerunner.services.browser.async_playwright", return_value=manager),
            patch("pagerunner.services.browser.Stealth") as stealth_cls,
        ):
            async with open_page(settings):
                pass

        stealth_cls.assert_not_called()
