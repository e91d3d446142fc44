from __future__ import annotations

import math
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

Color = Tuple[float, float, float]
PagePoint = Tuple[float, float]

# Opaque yellow, the highlighter default.
DEFAULT_COLOR: Color = (1.0, 1.0, 0.0)
DEFAULT_STROKE_WIDTH = 3.0


class AnnotationKind(str, Enum):
    HIGHLIGHT = "highlight"
    FREEHAND = "freehand"


class LineCap(int, Enum):
    BUTT = 0
    ROUND = 1
    SQUARE = 2


class CompressionLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def parse_color(value: Any) -> Color:
    """
    Coerce a wire colour into an RGB triple with channels in [0, 1].

    Accepts ``[r, g, b]`` floats or ``#RRGGBB`` / ``#RGB`` hex strings.
    Anything else, including out-of-range channels, yields ``DEFAULT_COLOR``.
    """
    if isinstance(value, str):
        digits = value.strip().lstrip("#")
        if len(digits) == 3:
            digits = "".join(char * 2 for char in digits)
        if len(digits) != 6:
            return DEFAULT_COLOR
        try:
            channels = [int(digits[i : i + 2], 16) for i in (0, 2, 4)]
        except ValueError:
            return DEFAULT_COLOR
        return (channels[0] / 255, channels[1] / 255, channels[2] / 255)

    if isinstance(value, (list, tuple)) and len(value) == 3:
        channels = [_as_number(channel) for channel in value]
        if all(channel is not None and 0.0 <= channel <= 1.0 for channel in channels):
            return (channels[0], channels[1], channels[2])  # type: ignore[return-value]

    return DEFAULT_COLOR


class CanvasSize(BaseModel):
    width: float = 0.0
    height: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, data: Any) -> Dict[str, float]:
        if not isinstance(data, dict):
            return {}
        width = _as_number(data.get("width"))
        height = _as_number(data.get("height"))
        return {
            "width": width if width and width > 0 else 0.0,
            "height": height if height and height > 0 else 0.0,
        }


class HighlightRect(BaseModel):
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, data: Any) -> Dict[str, float]:
        if not isinstance(data, dict):
            return {}
        x, y, width, height = (_as_number(data.get(key)) or 0.0 for key in ("x", "y", "width", "height"))
        # A rectangle dragged up or left arrives with negative extents.
        if width < 0:
            x, width = x + width, -width
        if height < 0:
            y, height = y + height, -height
        return {"x": x, "y": y, "width": width, "height": height}


class BaseAnnotation(BaseModel):
    """Fields shared by every annotation kind, coerced to defaults when malformed."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    page_index: int = Field(-1, alias="pageIndex")
    source_canvas_size: CanvasSize = Field(default_factory=CanvasSize, alias="sourceCanvasSize")
    color: Color = DEFAULT_COLOR

    @field_validator("page_index", mode="before")
    @classmethod
    def _coerce_page_index(cls, value: Any) -> int:
        number = _as_number(value)
        if number is None or not number.is_integer():
            return -1
        return int(number)

    @field_validator("color", mode="before")
    @classmethod
    def _coerce_color(cls, value: Any) -> Color:
        return parse_color(value)


class Highlight(BaseAnnotation):
    kind: Literal["highlight"] = "highlight"
    rect: HighlightRect = Field(default_factory=HighlightRect)


class FreehandStroke(BaseAnnotation):
    kind: Literal["freehand"] = "freehand"
    points: List[PagePoint] = Field(default_factory=list)
    stroke_width: float = Field(DEFAULT_STROKE_WIDTH, alias="strokeWidth")

    @field_validator("points", mode="before")
    @classmethod
    def _coerce_points(cls, value: Any) -> List[PagePoint]:
        if not isinstance(value, (list, tuple)):
            return []
        points: List[PagePoint] = []
        for raw in value:
            if isinstance(raw, dict):
                x, y = _as_number(raw.get("x")), _as_number(raw.get("y"))
            elif isinstance(raw, (list, tuple)) and len(raw) == 2:
                x, y = _as_number(raw[0]), _as_number(raw[1])
            else:
                continue
            if x is not None and y is not None:
                points.append((x, y))
        return points

    @field_validator("stroke_width", mode="before")
    @classmethod
    def _coerce_stroke_width(cls, value: Any) -> float:
        width = _as_number(value)
        return width if width and width > 0 else DEFAULT_STROKE_WIDTH


Annotation = Union[Highlight, FreehandStroke]

ANNOTATION_TYPES: Dict[str, Type[BaseAnnotation]] = {
    AnnotationKind.HIGHLIGHT.value: Highlight,
    AnnotationKind.FREEHAND.value: FreehandStroke,
}


def parse_annotation(raw: Any) -> Optional[Annotation]:
    """
    Build an annotation from one decoded JSON entry.

    Returns None for entries that are not objects or whose ``kind`` is not
    recognized; every other field falls back to its default when malformed.
    """
    if not isinstance(raw, dict):
        return None
    model = ANNOTATION_TYPES.get(str(raw.get("kind", "")).strip().lower())
    if model is None:
        return None
    payload = {**raw, "kind": model.model_fields["kind"].default}
    try:
        return model.model_validate(payload)  # type: ignore[return-value]
    except ValidationError:
        return None


class ServiceInfo(BaseModel):
    status: str
    message: str
    endpoints: List[str]


class HealthStatus(BaseModel):
    status: str
    message: str
