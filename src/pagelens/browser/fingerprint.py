"""Round-robin user-agent and viewport rotation.

The pool is process-wide shared state. Each draw is an increment-and-wrap
under a lock, so concurrent callers never observe a torn cursor.
"""

from __future__ import annotations

import threading

from pagelens.models import Viewport

# ---------------------------------------------------------------------------
# Rotation tables
# ---------------------------------------------------------------------------

USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Safari/605.1.15",
)

VIEWPORTS: tuple[Viewport, ...] = (
    Viewport(width=1920, height=1080),
    Viewport(width=1440, height=900),
    Viewport(width=1366, height=768),
    Viewport(width=1280, height=720),
)


class _Rotation:
    """Thread-safe cursor over a fixed, non-empty table."""

    def __init__(self, entries) -> None:
        if not entries:
            raise ValueError("rotation table must not be empty")
        self._entries = tuple(entries)
        self._cursor = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def next(self):
        with self._lock:
            entry = self._entries[self._cursor]
            self._cursor = (self._cursor + 1) % len(self._entries)
        return entry

    def reset(self) -> None:
        with self._lock:
            self._cursor = 0


class FingerprintPool:
    """User-agent and viewport rotation tables.

    Args:
        user_agents: User-agent strings to rotate through, in order.
        viewports: Viewport sizes to rotate through, in order.
    """

    def __init__(
        self,
        user_agents: tuple[str, ...] | list[str] = USER_AGENTS,
        viewports: tuple[Viewport, ...] | list[Viewport] = VIEWPORTS,
    ) -> None:
        self._user_agents = _Rotation(user_agents)
        self._viewports = _Rotation(viewports)

    def next_user_agent(self) -> str:
        """Return the next user-agent in round-robin order."""
        return self._user_agents.next()

    def next_viewport(self) -> Viewport:
        """Return the next viewport in round-robin order."""
        return self._viewports.next()

    def reset(self) -> None:
        """Rewind both cursors to the first table entry."""
        self._user_agents.reset()
        self._viewports.reset()


_DEFAULT_POOL = FingerprintPool()


def default_pool() -> FingerprintPool:
    """Return the process-wide pool shared by every session manager."""
    return _DEFAULT_POOL
