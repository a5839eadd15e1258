"""Blocked-page judgment.

A completed navigation counts as blocked when the server answered with an
auth/rate-limit status or the page title looks like an anti-bot interstitial.
The judgment never retries or evades; it only changes how results are
reported.
"""

from __future__ import annotations

from dataclasses import dataclass

BLOCKED_STATUSES: frozenset[int] = frozenset({401, 403, 429})

BLOCKED_TITLE_MARKERS: tuple[str, ...] = (
    "access denied",
    "forbidden",
    "captcha",
    "attention required",
)


@dataclass(frozen=True)
class BlockJudgment:
    """Whether a page is considered blocked, and why."""

    blocked: bool = False
    reason: str = ""


def judge_block(status: int | None, title: str | None) -> BlockJudgment:
    """Judge a navigation result.

    Args:
        status: HTTP status of the main-frame response, if any.
        title: Page title after navigation.

    Returns:
        A ``BlockJudgment``; ``reason`` names the status or title marker hit.
    """
    if status in BLOCKED_STATUSES:
        return BlockJudgment(blocked=True, reason=f"HTTP {status}")
    lowered = (title or "").lower()
    for marker in BLOCKED_TITLE_MARKERS:
        if marker in lowered:
            return BlockJudgment(blocked=True, reason=f"title contains {marker!r}")
    return BlockJudgment()