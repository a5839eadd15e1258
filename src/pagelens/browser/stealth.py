"""Browser anti-detection: stealth configuration and per-context fingerprints.

Provides a ``StealthConfiguration`` (process-wide, replaced wholesale on
every reconfiguration) and the builders that turn it into Playwright's
``launch()`` and ``new_context()`` keyword arguments:

- Optional proxy server on the launched process
- Fixed or rotated user-agent and viewport per context
- Fixed locale / timezone / color-scheme triple
- A header set signalling a genuine top-level navigation
- Init-script patches (hide ``navigator.webdriver``, non-empty
  ``navigator.plugins`` and ``navigator.languages``)

Usage::

    from pagelens.browser.stealth import (
        STEALTH_INIT_SCRIPT,
        StealthConfiguration,
        build_launch_args,
        build_session_profile,
    )

    config = StealthConfiguration(rotate_user_agent=True)
    browser = await pw.chromium.launch(**build_launch_args(config))
    profile = build_session_profile(config, pool)
    context = await browser.new_context(**profile.context_args)
    await context.add_init_script(STEALTH_INIT_SCRIPT)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from pagelens.browser.fingerprint import FingerprintPool
from pagelens.models import Viewport
from pagelens.settings import get_settings

logger = logging.getLogger(__name__)

# Headers sent with every request from a context.  The Sec-Fetch-* triple and
# Upgrade-Insecure-Requests mimic a user typing the URL into the address bar.
NAVIGATION_HEADERS: dict[str, str] = {
    "Accept-Language": "en-US,en;q=0.9",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Upgrade-Insecure-Requests": "1",
}

# Stealth JavaScript, installed once per context via context.add_init_script()
STEALTH_INIT_SCRIPT: str = """
// Remove navigator.webdriver flag
Object.defineProperty(navigator, 'webdriver', {
    get: () => undefined,
    configurable: true,
});

// Patch navigator.plugins to look non-empty
Object.defineProperty(navigator, 'plugins', {
    get: () => [1, 2, 3, 4, 5],
    configurable: true,
});

// Patch navigator.languages
Object.defineProperty(navigator, 'languages', {
    get: () => ['en-US', 'en'],
    configurable: true,
});
"""


# ---------------------------------------------------------------------------
# Stealth configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StealthConfiguration:
    """Stealth options applied to one browser process for its whole lifetime.

    Every field defaults to "not configured"; a reconfiguration never merges
    with the previous value.
    """

    proxy: str | None = None
    user_agent: str | None = None
    rotate_user_agent: bool = False
    # A value that is not a width/height pair is kept as given and rejected
    # by the engine when a context is opened.
    viewport: Viewport | Any = None

    @classmethod
    def from_options(cls, options: dict[str, Any] | None) -> "StealthConfiguration":
        """Build a configuration from loosely-typed caller options.

        Accepts ``proxy``, ``userAgent``, ``rotateUA`` and ``viewport``
        (``{"width": int, "height": int}``). Values are only type-coerced:
        a bad proxy or user-agent surfaces later as a launch or navigation
        failure. ``rotateUA`` is honoured only when it is literally ``True``.
        """
        options = options or {}
        viewport = options.get("viewport") or None
        if isinstance(viewport, dict):
            try:
                viewport = Viewport(width=int(viewport["width"]), height=int(viewport["height"]))
            except (KeyError, TypeError, ValueError):
                logger.warning("Viewport option %r is not a width/height pair; passing it through", viewport)
        elif viewport is not None and not isinstance(viewport, Viewport):
            logger.warning("Viewport option %r is not a width/height pair; passing it through", viewport)
        return cls(
            proxy=str(options["proxy"]) if options.get("proxy") else None,
            user_agent=str(options["userAgent"]) if options.get("userAgent") else None,
            rotate_user_agent=options.get("rotateUA") is True,
            viewport=viewport,
        )

    @classmethod
    def from_settings(cls) -> "StealthConfiguration":
        """Seed a configuration from the ``stealth`` settings section."""
        s = get_settings().stealth
        viewport = None
        if s.viewport_width > 0 and s.viewport_height > 0:
            viewport = Viewport(width=s.viewport_width, height=s.viewport_height)
        return cls(
            proxy=s.proxy.strip() or None,
            user_agent=s.user_agent.strip() or None,
            rotate_user_agent=s.rotate_user_agent,
            viewport=viewport,
        )

    def to_options(self) -> dict[str, Any]:
        """Inverse of :meth:`from_options`, for echoing back to callers."""
        return {
            "proxy": self.proxy,
            "userAgent": self.user_agent,
            "rotateUA": self.rotate_user_agent,
            "viewport": self.viewport.to_dict() if isinstance(self.viewport, Viewport) else self.viewport,
        }


def build_launch_args(config: StealthConfiguration) -> dict[str, Any]:
    """Return keyword arguments for ``pw.chromium.launch()``."""
    s = get_settings().browser
    launch_args: dict[str, Any] = {
        "headless": s.headless,
        "args": list(s.launch_args),
    }
    if config.proxy:
        launch_args["proxy"] = {"server": config.proxy}
    return launch_args


# ---------------------------------------------------------------------------
# Per-session profile
# ---------------------------------------------------------------------------


@dataclass
class SessionProfile:
    """Playwright ``new_context()`` arguments for a single session.

    Generated by ``build_session_profile()``.
    """

    context_args: dict[str, Any] = field(default_factory=dict)

    # Metadata for logging
    user_agent: str | None = None
    viewport: Viewport | Any = None


def build_session_profile(config: StealthConfiguration, pool: FingerprintPool) -> SessionProfile:
    """Derive the fingerprint for one context.

    User-agent priority: configured value > rotated value (if rotation is
    enabled) > engine default. Viewport priority: configured value >
    rotated value.

    Args:
        config: The stealth configuration of the process the context belongs to.
        pool: Rotation tables to draw from.

    Returns:
        A ``SessionProfile`` ready for ``browser.new_context()``.
    """
    s = get_settings().stealth
    profile = SessionProfile()

    user_agent = config.user_agent
    if not user_agent and config.rotate_user_agent:
        user_agent = pool.next_user_agent()
    viewport = config.viewport or pool.next_viewport()

    ctx = profile.context_args
    ctx["viewport"] = viewport.to_dict() if isinstance(viewport, Viewport) else viewport
    if user_agent:
        ctx["user_agent"] = user_agent
    ctx["locale"] = s.locale
    ctx["timezone_id"] = s.timezone_id
    ctx["color_scheme"] = s.color_scheme
    ctx["extra_http_headers"] = dict(NAVIGATION_HEADERS)

    profile.user_agent = user_agent
    profile.viewport = viewport
    logger.debug("Session fingerprint: ua=%s viewport=%s", user_agent, ctx["viewport"])
    return profile
