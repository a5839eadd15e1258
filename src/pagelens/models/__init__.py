"""Typed records produced by extraction and page operations."""

from pagelens.models.elements import (
    BoundingBox,
    BoxedElement,
    ElementAction,
    ElementAttributes,
    ExtractedElement,
)
from pagelens.models.results import (
    ExtractionResult,
    InteractionResult,
    PageState,
    ScreenshotResult,
    Viewport,
    VisualScanResult,
)

__all__ = [
    "BoundingBox",
    "BoxedElement",
    "ElementAction",
    "ElementAttributes",
    "ExtractedElement",
    "ExtractionResult",
    "InteractionResult",
    "PageState",
    "ScreenshotResult",
    "Viewport",
    "VisualScanResult",
]
