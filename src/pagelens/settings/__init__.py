"""Layered PageLens configuration."""

from pagelens.settings.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
