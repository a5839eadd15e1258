"""Element records returned by the structural and visual extractors.

Records are read-only snapshots of one extraction pass. Synthetic ids
(``el-<ordinal>``) are only unique within that pass.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ElementAction(str, Enum):
    """What an agent can do with an element."""

    CLICK = "click"
    INPUT = "input"
    SUBMIT = "submit"  # never assigned by the extractors
    NONE = "none"


class _Record(BaseModel):
    """Frozen record serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the wire shape: camelCase keys, absent optionals omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ElementAttributes(_Record):
    """Raw attribute values; an absent attribute is an empty string."""

    class_name: str = ""
    data_testid: str = ""
    aria_label: str = ""
    role: str = ""


class ExtractedElement(_Record):
    """An interactive element found by structural extraction."""

    id: str
    tag: str
    type: str | None = None
    name: str | None = None
    placeholder: str | None = None
    text: str | None = None
    href: str | None = None
    action: ElementAction = ElementAction.NONE
    selector: str
    attributes: ElementAttributes = Field(default_factory=ElementAttributes)


class BoundingBox(_Record):
    """Viewport-relative box in CSS pixels; origin clamped to non-negative."""

    x: int = Field(0, ge=0)
    y: int = Field(0, ge=0)
    width: int = 0
    height: int = 0


class BoxedElement(ExtractedElement):
    """An element found by the visual scanner, with geometry and tier confidence."""

    bbox: BoundingBox
    confidence: float
