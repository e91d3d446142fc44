"""
Tests for canvas-to-page coordinate mapping.
"""

import pytest

from pdf_suite_backend.geometry import PageGeometry, map_point, map_points, map_rect
from pdf_suite_backend.models import CanvasSize, HighlightRect

CANVAS = CanvasSize(width=300, height=400)
PAGE = PageGeometry(width=600, height=800)


class TestMapPoint:
    """Tests for single point mapping."""

    def test_canvas_origin_maps_to_top_left_of_page(self):
        assert map_point(0, 0, CANVAS, PAGE) == (0, 800)

    def test_canvas_far_corner_maps_to_page_origin_side(self):
        assert map_point(300, 400, CANVAS, PAGE) == (600, 0)

    def test_scale_and_flip(self):
        assert map_point(150, 100, CANVAS, PAGE) == pytest.approx((300, 600))

    @pytest.mark.parametrize("canvas", [CanvasSize(width=0, height=400), CanvasSize(width=300, height=0), CanvasSize()])
    def test_zero_sized_canvas_maps_to_origin(self, canvas):
        assert map_point(10, 20, canvas, PAGE) == (0.0, 0.0)

    @pytest.mark.parametrize(
        "canvas, page",
        [
            (CanvasSize(width=300, height=400), PageGeometry(600, 800)),
            (CanvasSize(width=1024, height=768), PageGeometry(612, 792)),
            (CanvasSize(width=37, height=1200), PageGeometry(842, 595)),
        ],
    )
    def test_points_inside_canvas_stay_inside_page(self, canvas, page):
        steps = 7
        for i in range(steps + 1):
            for j in range(steps + 1):
                x = canvas.width * i / steps
                y = canvas.height * j / steps
                page_x, page_y = map_point(x, y, canvas, page)
                assert 0 <= page_x <= page.width + 1e-9
                assert 0 <= page_y <= page.height + 1e-9


class TestMapRect:
    """Tests for highlight rectangle mapping."""

    def test_rect_origin_is_lower_mapped_corner(self):
        rect = map_rect(HighlightRect(x=30, y=40, width=60, height=80), CANVAS, PAGE)

        assert rect.x == pytest.approx(60)
        # 800 - (40 + 80) / 400 * 800
        assert rect.y == pytest.approx(560)
        assert rect.width == pytest.approx(120)
        assert rect.height == pytest.approx(160)

    def test_zero_sized_canvas_collapses_to_origin(self):
        rect = map_rect(HighlightRect(x=30, y=40, width=60, height=80), CanvasSize(), PAGE)

        assert (rect.x, rect.y, rect.width, rect.height) == (0.0, 0.0, 0.0, 0.0)


class TestMapPoints:
    def test_order_is_preserved(self):
        points = [(0, 0), (300, 400), (150, 200), (10, 10)]

        mapped = map_points(points, CANVAS, PAGE)

        assert mapped == [map_point(x, y, CANVAS, PAGE) for x, y in points]
