"""Page navigation with bounded timeouts.

Navigation waits for ``networkidle`` and is not retried: a Playwright
``TimeoutError`` or network error propagates to the caller unmodified.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from pagelens.settings import get_settings

if TYPE_CHECKING:
    from playwright.async_api import Page, Response

logger = logging.getLogger(__name__)

# A scheme followed by "//" or by a non-digit, so "host:8080" is not a scheme.
_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:(?://|(?!\d))")


def normalize_url(url: str) -> str:
    """Prefix scheme-less input with ``https://``; schemed input passes through."""
    url = url.strip()
    if _SCHEME_RE.match(url):
        return url
    return f"https://{url}"


def clamp_timeout(timeout_ms: int | None) -> int:
    """Return *timeout_ms* clamped to the configured bounds, or the default if unset."""
    s = get_settings().browser
    if timeout_ms is None:
        return s.navigation_timeout_ms
    return max(s.min_timeout_ms, min(s.max_timeout_ms, int(timeout_ms)))


async def goto(page: Page, url: str, *, timeout_ms: int | None = None) -> Response | None:
    """Navigate *page* to *url* and wait for the network to go idle.

    Args:
        page: Playwright page owned by the current session.
        url: Absolute URL to load.
        timeout_ms: Navigation timeout; clamped by :func:`clamp_timeout`.

    Returns:
        The main-frame ``Response``, or ``None`` if the navigation produced none.
    """
    timeout = clamp_timeout(timeout_ms)
    logger.debug("goto %s (timeout=%dms)", url, timeout)
    return await page.goto(url, wait_until="networkidle", timeout=timeout)
