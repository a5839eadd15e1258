"""Units of work run inside one stealth session.

Every operation acquires a session from the ``SessionManager``, navigates
its single page, does one thing (extract, scan, capture, interact) and
releases the session.  URLs are expected to be absolute already; see
:func:`pagelens.browser.navigation.normalize_url`.
"""

from __future__ import annotations

import base64
import logging
from typing import TYPE_CHECKING

from pagelens.browser import actions
from pagelens.browser.blocking import judge_block
from pagelens.browser.dom import viewport_size
from pagelens.browser.extractor import extract_elements
from pagelens.browser.navigation import goto
from pagelens.browser.visual import scan_visible_elements
from pagelens.models import (
    ExtractionResult,
    InteractionResult,
    PageState,
    ScreenshotResult,
    Viewport,
    VisualScanResult,
)

if TYPE_CHECKING:
    from playwright.async_api import Page

    from pagelens.browser.session import SessionManager

logger = logging.getLogger(__name__)


async def extract(manager: SessionManager, url: str, *, timeout_ms: int | None = None) -> ExtractionResult:
    """Load *url* and return its structurally extracted interactive elements."""

    async def work(page: Page) -> ExtractionResult:
        response = await goto(page, url, timeout_ms=timeout_ms)
        elements = await extract_elements(page)
        return ExtractionResult(
            elements=elements,
            status=response.status if response else None,
            final_url=page.url,
        )

    result = await manager.with_session(work)
    if result.is_empty:
        logger.info("No interactive elements on %s (status=%s)", result.final_url, result.status)
    return result


async def visual_scan(manager: SessionManager, url: str, *, timeout_ms: int | None = None) -> VisualScanResult:
    """Load *url*, scan its viewport for boxed elements and capture a screenshot.

    The blocked-page judgment is recorded on the result; callers must not
    surface elements or the screenshot of a blocked page.
    """

    async def work(page: Page) -> VisualScanResult:
        response = await goto(page, url, timeout_ms=timeout_ms)
        status = response.status if response else None
        title = await page.title()
        elements = await scan_visible_elements(page)
        width, height = await viewport_size(page)
        png = await page.screenshot(full_page=False)
        judgment = judge_block(status, title)
        if judgment.blocked:
            logger.info("Blocked page at %s: %s", page.url, judgment.reason)
        return VisualScanResult(
            status=status,
            final_url=page.url,
            title=title,
            elements=elements,
            screenshot=base64.b64encode(png).decode("ascii"),
            viewport=Viewport(width=width, height=height),
            blocked=judgment.blocked,
            block_reason=judgment.reason or None,
        )

    return await manager.with_session(work)


async def screenshot(manager: SessionManager, url: str, *, timeout_ms: int | None = None) -> ScreenshotResult:
    """Load *url* and capture the viewport as a base64-encoded PNG."""

    async def work(page: Page) -> ScreenshotResult:
        await goto(page, url, timeout_ms=timeout_ms)
        png = await page.screenshot(full_page=False)
        return ScreenshotResult(url=url, final_url=page.url, screenshot=base64.b64encode(png).decode("ascii"))

    return await manager.with_session(work)


async def page_state(manager: SessionManager, url: str, *, timeout_ms: int | None = None) -> PageState:
    """Load *url* and report its title, final URL and interactive element count."""

    async def work(page: Page) -> PageState:
        await goto(page, url, timeout_ms=timeout_ms)
        title = await page.title()
        elements = await extract_elements(page)
        return PageState(title=title, url=page.url, element_count=len(elements))

    return await manager.with_session(work)


async def click(manager: SessionManager, url: str, selector: str, *, timeout_ms: int | None = None) -> InteractionResult:
    """Load *url* and click *selector*."""

    async def work(page: Page) -> InteractionResult:
        await goto(page, url, timeout_ms=timeout_ms)
        await actions.click(page, selector)
        return InteractionResult(action="click", selector=selector, url=page.url, title=await page.title())

    return await manager.with_session(work)


async def type_text(
    manager: SessionManager, url: str, selector: str, text: str, *, timeout_ms: int | None = None
) -> InteractionResult:
    """Load *url* and fill *selector* with *text*."""

    async def work(page: Page) -> InteractionResult:
        await goto(page, url, timeout_ms=timeout_ms)
        await actions.type_text(page, selector, text)
        return InteractionResult(
            action="type", selector=selector, url=page.url, title=await page.title(), typed=text
        )

    return await manager.with_session(work)


async def submit(manager: SessionManager, url: str, selector: str, *, timeout_ms: int | None = None) -> InteractionResult:
    """Load *url*, click *selector* and wait for the page to settle."""

    async def work(page: Page) -> InteractionResult:
        await goto(page, url, timeout_ms=timeout_ms)
        await actions.submit(page, selector)
        return InteractionResult(action="submit", selector=selector, url=page.url, title=await page.title())

    return await manager.with_session(work)
