"""DOM querying primitives shared by the structural and visual extractors.

The in-page JavaScript only gathers raw facts about each matched element
(attributes, text, computed visibility, client rect).  Classification,
filtering, text shaping and selector synthesis happen in Python on the
``RawElement`` records it produces.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pagelens.models import ElementAction, ElementAttributes

if TYPE_CHECKING:
    from playwright.async_api import Page

# Interactive taxonomy, in output order.  Each element is assigned to the
# first category it matches.
INTERACTIVE_CATEGORIES: tuple[tuple[str, str], ...] = (
    ("button", "button"),
    ("link", "a[href]"),
    ("input", 'input:not([type="hidden"])'),
    ("textarea", "textarea"),
    ("select", "select"),
    ("role_button", '[role="button"]'),
    ("tabindex", '[tabindex]:not([tabindex^="-"])'),
)

INTERACTIVE_SELECTOR = ", ".join(sel for _, sel in INTERACTIVE_CATEGORIES)

_CLICK_TAGS = frozenset({"button", "a"})
_INPUT_TAGS = frozenset({"input", "textarea", "select"})

_CSS_IDENT = re.compile(r"^-?[_a-zA-Z][_a-zA-Z0-9-]*$")

# Projection run over every match of a selector.  Receives the category
# selectors so each element can report which one it falls under (-1 if none).
_PROJECT_ELEMENTS_JS = """
(els, categories) => els.map((e, i) => {
    const rect = e.getBoundingClientRect();
    const style = window.getComputedStyle(e);
    const attr = (name) => e.getAttribute(name);
    return {
        ordinal: i,
        tag: e.tagName.toLowerCase(),
        type: typeof e.type === 'string' && e.type ? e.type : null,
        id: attr('id'),
        name: attr('name'),
        placeholder: attr('placeholder'),
        href: attr('href'),
        className: attr('class'),
        dataTestid: attr('data-testid'),
        ariaLabel: attr('aria-label'),
        role: attr('role'),
        tabindex: attr('tabindex'),
        text: e.textContent || '',
        category: categories.findIndex((sel) => e.matches(sel)),
        visible: (
            rect.width > 0 &&
            rect.height > 0 &&
            style.display !== 'none' &&
            style.visibility !== 'hidden' &&
            style.opacity !== '0'
        ),
        rect: { left: rect.left, top: rect.top, width: rect.width, height: rect.height },
    };
})
"""

_VIEWPORT_JS = "() => ({ width: window.innerWidth, height: window.innerHeight })"


@dataclass
class Rect:
    """Client rect as reported by ``getBoundingClientRect()``."""

    left: float = 0.0
    top: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass
class RawElement:
    """Facts about one DOM match, before any classification."""

    ordinal: int
    tag: str
    type: str | None = None
    id: str | None = None
    name: str | None = None
    placeholder: str | None = None
    href: str | None = None
    class_name: str | None = None
    data_testid: str | None = None
    aria_label: str | None = None
    role: str | None = None
    tabindex: str | None = None
    text: str = ""
    category: int = -1
    visible: bool = False
    rect: Rect = field(default_factory=Rect)

    @classmethod
    def from_js(cls, data: dict[str, Any]) -> "RawElement":
        """Build from one entry of the projection's output."""
        rect = data.get("rect") or {}
        return cls(
            ordinal=int(data.get("ordinal", 0)),
            tag=str(data.get("tag") or "").lower(),
            type=data.get("type") or None,
            id=data.get("id") or None,
            name=data.get("name") or None,
            placeholder=data.get("placeholder") or None,
            href=data.get("href") or None,
            class_name=data.get("className") or None,
            data_testid=data.get("dataTestid") or None,
            aria_label=data.get("ariaLabel") or None,
            role=data.get("role") or None,
            tabindex=data.get("tabindex"),
            text=data.get("text") or "",
            category=int(data.get("category", -1)),
            visible=bool(data.get("visible")),
            rect=Rect(
                left=float(rect.get("left", 0.0)),
                top=float(rect.get("top", 0.0)),
                width=float(rect.get("width", 0.0)),
                height=float(rect.get("height", 0.0)),
            ),
        )

    @property
    def element_id(self) -> str:
        """DOM id, or a synthetic ``el-<ordinal>`` unique within one query."""
        return self.id or f"el-{self.ordinal}"

    def attributes(self) -> ElementAttributes:
        return ElementAttributes(
            class_name=self.class_name or "",
            data_testid=self.data_testid or "",
            aria_label=self.aria_label or "",
            role=self.role or "",
        )


async def query_elements(page: Page, selector: str, categories: list[str] | None = None) -> list[RawElement]:
    """Run the projection over every match of *selector*, in document order.

    Args:
        page: A Playwright ``Page`` whose navigation has completed.
        selector: CSS selector to match.
        categories: Category selectors to classify matches against.

    Returns:
        One ``RawElement`` per match.
    """
    raw = await page.eval_on_selector_all(selector, _PROJECT_ELEMENTS_JS, categories or [])
    return [RawElement.from_js(item) for item in raw or []]


async def viewport_size(page: Page) -> tuple[int, int]:
    """Return the current ``(innerWidth, innerHeight)`` of the page."""
    size = await page.evaluate(_VIEWPORT_JS)
    return int(size["width"]), int(size["height"])


def classify_action(raw: RawElement) -> ElementAction:
    """Map an element to the action an agent would perform on it.

    ``SUBMIT`` is never produced here.
    """
    if raw.tag in _CLICK_TAGS or raw.role == "button" or raw.tabindex is not None:
        return ElementAction.CLICK
    if raw.tag in _INPUT_TAGS:
        return ElementAction.INPUT
    return ElementAction.NONE


def synthesize_selector(raw: RawElement) -> str:
    """Build a CSS selector for *raw*.  First match wins.

    Priority: id > ``data-testid`` > ``aria-label`` > ``name`` > tag name.
    """
    if raw.id:
        if _CSS_IDENT.match(raw.id):
            return f"#{raw.id}"
        return f'[id="{_quote(raw.id)}"]'
    if raw.data_testid:
        return f'[data-testid="{_quote(raw.data_testid)}"]'
    if raw.aria_label:
        return f'[aria-label="{_quote(raw.aria_label)}"]'
    if raw.name:
        return f'[name="{_quote(raw.name)}"]'
    return raw.tag or "element"


def normalize_text(text: str, max_len: int) -> str:
    """Collapse whitespace runs to one space, then truncate."""
    return re.sub(r"\s+", " ", text).strip()[:max_len]


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')
