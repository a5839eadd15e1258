"""Vision-style element scan with bounding boxes and tiered confidence.

Two tiers over the same loaded page:

1. **Primary**: the structural taxonomy, restricted to elements whose box
   is larger than 8×8 px and overlaps the viewport.  Confidence 0.85.
2. **Fallback**: only when the primary tier finds nothing.  The taxonomy
   widens to headings, paragraphs, generic containers and inline click
   handlers; matches also need at least two characters of visible text.
   Every match is treated as clickable.  Confidence 0.55, capped at 50
   elements in document order.

Text is whitespace-collapsed and cut to 120 characters, which keeps the
output compact for display.  The structural extractor keeps raw text.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from pagelens.browser.dom import (
    INTERACTIVE_SELECTOR,
    RawElement,
    classify_action,
    normalize_text,
    query_elements,
    synthesize_selector,
    viewport_size,
)
from pagelens.models import BoundingBox, BoxedElement, ElementAction

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = logging.getLogger(__name__)

PRIMARY_CONFIDENCE = 0.85
FALLBACK_CONFIDENCE = 0.55
FALLBACK_LIMIT = 50
MIN_BOX_SIZE = 8
TEXT_MAX_LEN = 120
MIN_FALLBACK_TEXT = 2

FALLBACK_SELECTOR = ", ".join(
    (
        "a",
        "button",
        "input",
        "textarea",
        "select",
        '[role="button"]',
        "[onclick]",
        "h1",
        "h2",
        "h3",
        "p",
        "div",
        "span",
    )
)


async def scan_visible_elements(page: Page) -> list[BoxedElement]:
    """Scan the viewport of an already-loaded page for actionable elements.

    Args:
        page: A Playwright ``Page`` whose navigation has completed.

    Returns:
        ``BoxedElement`` records from the primary tier, or from the fallback
        tier if the primary tier is empty.
    """
    width, height = await viewport_size(page)

    primary = await query_elements(page, INTERACTIVE_SELECTOR)
    elements = build_primary_tier(primary, width, height)
    if elements:
        logger.debug("Visual scan: %d primary element(s)", len(elements))
        return elements

    fallback = await query_elements(page, FALLBACK_SELECTOR)
    elements = build_fallback_tier(fallback, width, height)
    logger.debug("Visual scan: primary tier empty, %d fallback element(s)", len(elements))
    return elements


def build_primary_tier(raw_elements: list[RawElement], viewport_width: int, viewport_height: int) -> list[BoxedElement]:
    return [
        to_boxed_element(raw, PRIMARY_CONFIDENCE, classify_action(raw))
        for raw in raw_elements
        if is_on_screen(raw, viewport_width, viewport_height)
    ]


def build_fallback_tier(raw_elements: list[RawElement], viewport_width: int, viewport_height: int) -> list[BoxedElement]:
    elements: list[BoxedElement] = []
    for raw in raw_elements:
        if len(elements) >= FALLBACK_LIMIT:
            break
        if not is_on_screen(raw, viewport_width, viewport_height):
            continue
        if len(normalize_text(raw.text, TEXT_MAX_LEN)) < MIN_FALLBACK_TEXT:
            continue
        elements.append(to_boxed_element(raw, FALLBACK_CONFIDENCE, ElementAction.CLICK))
    return elements


def is_on_screen(raw: RawElement, viewport_width: int, viewport_height: int) -> bool:
    """True if *raw* is rendered, larger than 8×8 px, and overlaps the viewport."""
    rect = raw.rect
    return (
        raw.visible
        and rect.width > MIN_BOX_SIZE
        and rect.height > MIN_BOX_SIZE
        and rect.right > 0
        and rect.bottom > 0
        and rect.left < viewport_width
        and rect.top < viewport_height
    )


def to_boxed_element(raw: RawElement, confidence: float, action: ElementAction) -> BoxedElement:
    text = normalize_text(raw.text, TEXT_MAX_LEN)
    return BoxedElement(
        id=raw.element_id,
        tag=raw.tag,
        type=raw.type,
        name=raw.name,
        placeholder=raw.placeholder,
        text=text or None,
        href=raw.href,
        action=action,
        selector=synthesize_selector(raw),
        attributes=raw.attributes(),
        bbox=BoundingBox(
            x=max(0, _js_round(raw.rect.left)),
            y=max(0, _js_round(raw.rect.top)),
            width=_js_round(raw.rect.width),
            height=_js_round(raw.rect.height),
        ),
        confidence=confidence,
    )


def _js_round(value: float) -> int:
    """Round half up, like ``Math.round``."""
    return math.floor(value + 0.5)
