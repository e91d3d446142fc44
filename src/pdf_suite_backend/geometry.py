"""
Canvas-to-page coordinate mapping.

Canvas space is the pixel grid of the drawing surface (origin top-left, y
down). Page space is the PDF's own system (origin bottom-left, y up, units
are points). Each page is mapped independently with its own geometry.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from .models import CanvasSize, HighlightRect, PagePoint


@dataclass(frozen=True)
class PageGeometry:
    width: float
    height: float


@dataclass(frozen=True)
class PageRect:
    """Rectangle in page space; (x, y) is the bottom-left corner."""

    x: float
    y: float
    width: float
    height: float


def map_point(x: float, y: float, canvas: CanvasSize, page: PageGeometry) -> PagePoint:
    """
    Scale a canvas point onto the page and flip the vertical axis.

    A zero-sized canvas maps every point to the page origin.
    """
    if canvas.width == 0 or canvas.height == 0:
        return (0.0, 0.0)
    page_x = (x / canvas.width) * page.width
    page_y = page.height - (y / canvas.height) * page.height
    return (page_x, page_y)


def map_rect(rect: HighlightRect, canvas: CanvasSize, page: PageGeometry) -> PageRect:
    """Map a top-left-origin canvas rectangle to a bottom-left-origin page rectangle."""
    left, top = map_point(rect.x, rect.y, canvas, page)
    _, bottom = map_point(rect.x + rect.width, rect.y + rect.height, canvas, page)
    width = (rect.width / canvas.width) * page.width if canvas.width else 0.0
    return PageRect(x=left, y=min(top, bottom), width=width, height=abs(top - bottom))


def map_points(points: Iterable[PagePoint], canvas: CanvasSize, page: PageGeometry) -> List[PagePoint]:
    return [map_point(x, y, canvas, page) for x, y in points]
