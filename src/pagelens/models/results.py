"""Result records handed from page operations to the HTTP and CLI layers."""

from __future__ import annotations

from pydantic import Field

from pagelens.models.elements import BoxedElement, ExtractedElement, _Record


class Viewport(_Record):
    """Viewport dimensions in CSS pixels."""

    width: int
    height: int


class ExtractionResult(_Record):
    """Outcome of navigating to a URL and running structural extraction."""

    elements: list[ExtractedElement] = Field(default_factory=list)
    status: int | None = None
    final_url: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.elements


class VisualScanResult(_Record):
    """Outcome of a visual scan.

    ``screenshot`` is a base64-encoded PNG of the viewport.
    """

    status: int | None = None
    final_url: str = ""
    title: str = ""
    elements: list[BoxedElement] = Field(default_factory=list)
    screenshot: str | None = None
    viewport: Viewport | None = None
    blocked: bool = False
    block_reason: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.elements


class ScreenshotResult(_Record):
    url: str
    final_url: str = ""
    screenshot: str


class PageState(_Record):
    """Title, location and interactive element count after navigation."""

    title: str = ""
    url: str = ""
    element_count: int = 0


class InteractionResult(_Record):
    """Outcome of one click/type/submit against a live page."""

    success: bool = True
    action: str
    selector: str
    url: str = ""
    title: str = ""
    typed: str | None = None
