"""Structural extraction of interactive elements.

Matches the page against a fixed interactive taxonomy (buttons, links,
inputs, textareas, selects, ``role=button``, non-negative ``tabindex``),
keeps the elements the engine reports as visible, and returns them as
``ExtractedElement`` records grouped by taxonomy category, document order
within a category.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pagelens.browser.dom import (
    INTERACTIVE_CATEGORIES,
    INTERACTIVE_SELECTOR,
    RawElement,
    classify_action,
    query_elements,
    synthesize_selector,
)
from pagelens.models import ExtractedElement

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = logging.getLogger(__name__)

# Raw text is trimmed and cut, not whitespace-collapsed.
TEXT_MAX_LEN = 100


async def extract_elements(page: Page) -> list[ExtractedElement]:
    """Extract the visible interactive elements of an already-loaded page.

    Args:
        page: A Playwright ``Page`` whose navigation has completed.

    Returns:
        ``ExtractedElement`` records; empty if nothing interactive is visible.
    """
    categories = [sel for _, sel in INTERACTIVE_CATEGORIES]
    raw_elements = await query_elements(page, INTERACTIVE_SELECTOR, categories)
    elements = build_extracted_elements(raw_elements)
    logger.debug("Structural extraction: %d match(es), %d visible", len(raw_elements), len(elements))
    return elements


def build_extracted_elements(raw_elements: list[RawElement]) -> list[ExtractedElement]:
    """Filter, order and convert raw matches.

    Matches with no category sort last; ``sorted`` is stable so document
    order is kept within each category.
    """
    visible = [raw for raw in raw_elements if raw.visible]
    ordered = sorted(visible, key=lambda raw: raw.category if raw.category >= 0 else len(INTERACTIVE_CATEGORIES))
    return [to_extracted_element(raw) for raw in ordered]


def to_extracted_element(raw: RawElement) -> ExtractedElement:
    text = raw.text.strip()[:TEXT_MAX_LEN]
    return ExtractedElement(
        id=raw.element_id,
        tag=raw.tag,
        type=raw.type,
        name=raw.name,
        placeholder=raw.placeholder,
        text=text or None,
        href=raw.href,
        action=classify_action(raw),
        selector=synthesize_selector(raw),
        attributes=raw.attributes(),
    )
