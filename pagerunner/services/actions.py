"""Mode-specific interaction and extraction against a loaded page."""

import logging
from typing import Awaitable, Callable, Dict, Type

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page

from pagerunner.models.actions import (
    Action,
    ExtractedContent,
    FullBodyLoad,
    PixelClick,
    SelectorClick,
    SelectorLoad,
)
from pagerunner.services.errors import InteractionError, NavigationError

logger = logging.getLogger(__name__)

READY_SIGNAL = "domcontentloaded"


async def _resolve(page: Page, selector: str) -> Locator:
    """Return the first element matching *selector*."""
    try:
        matches = await page.locator(selector).count()
    except PlaywrightError as exc:
        # Syntactically invalid selectors surface here
        raise InteractionError("invalid-selector", exc.message) from exc
    if matches == 0:
        raise InteractionError(
            "selector-not-found", f"No element matches selector {selector!r}"
        )
    if matches > 1:
        logger.warning("Selector %r matched %d elements; using the first", selector, matches)
    return page.locator(selector).first


async def _click_and_wait(
    page: Page, click: Callable[[], Awaitable[None]], timeout_ms: int
) -> None:
    """Run *click* and wait for the navigation it triggers."""
    try:
        async with page.expect_navigation(wait_until=READY_SIGNAL, timeout=timeout_ms):
            try:
                await click()
            except PlaywrightError as exc:
                raise InteractionError("click-failed", exc.message) from exc
    except PlaywrightError as exc:
        raise NavigationError("post-interaction", exc.message) from exc
    logger.info("Navigation after click completed")


async def _pixel_click(page: Page, action: PixelClick, timeout_ms: int) -> str:
    logger.info("Clicking at coordinates (%s, %s)", action.x, action.y)
    await _click_and_wait(page, lambda: page.mouse.click(action.x, action.y), timeout_ms)
    return await page.content()


async def _selector_click(page: Page, action: SelectorClick, timeout_ms: int) -> str:
    logger.info("Clicking on element with selector %s", action.selector)
    target = await _resolve(page, action.selector)
    await _click_and_wait(page, lambda: target.click(timeout=timeout_ms), timeout_ms)
    return await page.content()


async def _selector_load(page: Page, action: SelectorLoad, timeout_ms: int) -> str:
    logger.info("Loading content of element with selector %s", action.selector)
    target = await _resolve(page, action.selector)
    return await target.inner_html(timeout=timeout_ms)


async def _full_body_load(page: Page, action: FullBodyLoad, timeout_ms: int) -> str:
    logger.info("Getting page content")
    return await page.content()


_HANDLERS: Dict[Type, Callable[[Page, Action, int], Awaitable[str]]] = {
    PixelClick: _pixel_click,
    SelectorClick: _selector_click,
    SelectorLoad: _selector_load,
    FullBodyLoad: _full_body_load,
}


async def _page_title(page: Page) -> str | None:
    try:
        return await page.title()
    except PlaywrightError as exc:
        logger.warning("Could not read page title: %s", exc.message)
        return None


async def execute(page: Page, action: Action, timeout_ms: int) -> ExtractedContent:
    """Perform *action* on *page* and return the extracted markup.

    Click actions wait for the navigation they trigger, bounded by
    *timeout_ms*.  The title is read once, after extraction, because the
    interaction may have replaced the document.

    Raises:
        InteractionError: the selector matched nothing, was invalid, or the
            click was refused by the driver.
        NavigationError: the click-triggered navigation failed or timed out
            (stage ``"post-interaction"``).
    """
    handler = _HANDLERS[type(action)]
    html = await handler(page, action, timeout_ms)
    logger.info("Content retrieved", extra={"chars": len(html)})
    return ExtractedContent(html=html, url=page.url, title=await _page_title(page))
