"""PageLens exception hierarchy.

Playwright's own ``Error`` and ``TimeoutError`` are not wrapped: they
propagate unmodified to the request boundary.
"""

from __future__ import annotations


class PageLensError(Exception):
    """Base exception for all PageLens-specific errors."""


class InteractionError(PageLensError):
    """Raised when an interaction target cannot be resolved on the live page.

    Attributes:
        selector: The caller-supplied CSS selector.
        action: The interaction that was attempted (``click``, ``type``, ``submit``).
        reason: Short human-readable cause.
    """

    def __init__(self, selector: str, action: str, reason: str) -> None:
        self.selector = selector
        self.action = action
        self.reason = reason
        super().__init__(f"Cannot {action} {selector!r}: {reason}")


class SessionClosedError(PageLensError):
    """Raised when a session is requested from a manager that has been closed."""
