"""Isolated, short-lived Chromium pages – one browser per pipeline run."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from playwright.async_api import Page, async_playwright
from playwright_stealth import Stealth

from pagerunner.config import Settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def open_page(settings: Settings) -> AsyncIterator[Page]:
    """Launch a fresh headless browser and yield a single page in it.

    Nothing is pooled: every call gets its own browser process and context,
    so cookies and storage never leak between runs.  The context and the
    browser are closed when the block exits, whatever the outcome.
    """
    async with async_playwright() as pw:
        logger.info("Launching browser")
        browser = await pw.chromium.launch(
            headless=settings.headless,
            args=settings.browser_args,
        )
        try:
            context = await browser.new_context(
                viewport={"width": settings.viewport_width, "height": settings.viewport_height},
            )
            try:
                if settings.stealth:
                    await Stealth().apply_stealth_async(context)
                page = await context.new_page()
                logger.info("New page created")
                yield page
            finally:
                await context.close()
        finally:
            await browser.close()
            logger.info("Browser closed")
