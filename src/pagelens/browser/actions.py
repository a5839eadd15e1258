"""Interaction dispatcher: one engine-level action per request.

Each call resolves a caller-supplied CSS selector on the live page and
performs a single click, fill, or submit.  A selector that matches nothing
fails fast with ``InteractionError`` instead of waiting out the action
timeout; engine errors from the action itself propagate unmodified.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pagelens.exceptions import InteractionError

if TYPE_CHECKING:
    from playwright.async_api import Locator, Page

logger = logging.getLogger(__name__)


async def _resolve(page: Page, selector: str, action: str) -> Locator:
    """Return the first element matching *selector*, or raise ``InteractionError``."""
    locator = page.locator(selector)
    if await locator.count() == 0:
        raise InteractionError(selector, action, "selector matched no element")
    return locator.first


async def click(page: Page, selector: str) -> None:
    """Click the first element matching *selector*."""
    target = await _resolve(page, selector, "click")
    await target.click()
    logger.info("Clicked %s on %s", selector, page.url)


async def type_text(page: Page, selector: str, text: str) -> None:
    """Replace the value of the first element matching *selector* with *text*."""
    target = await _resolve(page, selector, "type")
    await target.fill(text)
    logger.info("Filled %s on %s (%d chars)", selector, page.url, len(text))


async def submit(page: Page, selector: str) -> None:
    """Click *selector* and wait for the resulting navigation to settle."""
    target = await _resolve(page, selector, "submit")
    await target.click()
    await page.wait_for_load_state("networkidle")
    logger.info("Submitted via %s, now at %s", selector, page.url)
