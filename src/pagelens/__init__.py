"""PageLens: rendered web pages as structured, actionable element lists."""

from __future__ import annotations

try:
    from importlib.metadata import version

    __version__ = version("pagelens")
except Exception:
    __version__ = "0.0.0"
