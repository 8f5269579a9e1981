"""Tests for the raster surface and its drawing context."""

import cv2
import numpy as np
import pytest

from aetherdraw.surface import (
    CompositeMode,
    LineCap,
    LineJoin,
    RasterSurface,
    parse_color,
)


def pen(surface, color="#FF0000", width=8.0, cap=LineCap.ROUND):
    surface.composite = CompositeMode.SOURCE_OVER
    surface.stroke_color = color
    surface.line_width = width
    surface.line_cap = cap


class TestParseColor:
    def test_hex6(self):
        assert parse_color("#4ECDC4") == (0x4E, 0xCD, 0xC4, 255)

    def test_hex3(self):
        assert parse_color("#fff") == (255, 255, 255, 255)

    def test_hex8(self):
        assert parse_color("#00000080") == (0, 0, 0, 128)

    def test_tuple(self):
        assert parse_color((1, 2, 3)) == (1, 2, 3, 255)

    @pytest.mark.parametrize("bad", ["#12", "red", "#GGGGGG", (1, 2), (0, 0, 300)])
    def test_invalid(self, bad):
        with pytest.raises(ValueError):
            parse_color(bad)


class TestRasterSurface:
    def test_starts_transparent(self):
        surface = RasterSurface(64, 48)
        assert surface.pixels.shape == (48, 64, 4)
        assert surface.is_blank()

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            RasterSurface(0, 10)

    def test_default_context(self):
        surface = RasterSurface(10, 10)
        assert surface.line_width == 1.0
        assert surface.line_cap == LineCap.BUTT
        assert surface.line_join == LineJoin.MITER
        assert surface.composite == CompositeMode.SOURCE_OVER

    def test_paint_line(self):
        surface = RasterSurface(100, 100)
        pen(surface)
        surface.stroke_line((10, 50), (90, 50))
        assert surface.pixel(50, 50) == (255, 0, 0, 255)
        assert surface.pixel(50, 10) == (0, 0, 0, 0)

    def test_paint_over_existing(self):
        surface = RasterSurface(100, 100)
        pen(surface, "#FF0000")
        surface.stroke_line((10, 50), (90, 50))
        pen(surface, "#0000FF")
        surface.stroke_line((50, 10), (50, 90))
        assert surface.pixel(50, 50) == (0, 0, 255, 255)
        assert surface.pixel(20, 50) == (255, 0, 0, 255)

    def test_erase_clears_to_transparent(self):
        surface = RasterSurface(100, 100)
        pen(surface)
        surface.stroke_line((10, 50), (90, 50))
        surface.composite = CompositeMode.DESTINATION_OUT
        surface.line_width = 32
        surface.stroke_line((40, 50), (60, 50))
        assert surface.pixel(50, 50) == (0, 0, 0, 0)
        assert surface.pixel(15, 50)[3] == 255

    def test_round_cap_extends_past_endpoint(self):
        butt = RasterSurface(100, 100)
        pen(butt, width=20, cap=LineCap.BUTT)
        butt.stroke_line((20, 50), (80, 50))

        round_ = RasterSurface(100, 100)
        pen(round_, width=20, cap=LineCap.ROUND)
        round_.stroke_line((20, 50), (80, 50))

        assert butt.pixel(15, 50)[3] == 0
        assert round_.pixel(15, 50)[3] == 255

    def test_round_cap_draws_dot_for_zero_length(self):
        surface = RasterSurface(50, 50)
        pen(surface, width=10)
        surface.stroke_line((25, 25), (25, 25))
        assert surface.pixel(25, 25)[3] == 255

    def test_consecutive_segments_have_no_seam(self):
        surface = RasterSurface(100, 100)
        pen(surface, width=10)
        surface.stroke_line((20, 20), (50, 50))
        surface.stroke_line((50, 50), (80, 20))
        # The joint between the two segments stays fully covered.
        assert surface.pixel(50, 52)[3] == 255

    def test_off_surface_segment_is_ignored(self):
        surface = RasterSurface(50, 50)
        pen(surface)
        surface.stroke_line((-500, -500), (-400, -450))
        assert surface.is_blank()

    def test_huge_coordinates_are_clipped(self):
        surface = RasterSurface(50, 50)
        pen(surface)
        surface.stroke_line((25, 25), (1e12, 25))
        assert surface.pixel(40, 25)[3] == 255

    def test_invalid_color_raises(self):
        surface = RasterSurface(50, 50)
        pen(surface, color="not-a-color")
        with pytest.raises(ValueError):
            surface.stroke_line((10, 10), (40, 40))

    def test_clear(self):
        surface = RasterSurface(50, 50)
        pen(surface)
        surface.stroke_line((10, 10), (40, 40))
        surface.clear()
        assert surface.is_blank()


class TestResize:
    def test_resize_reallocates_and_resets_context(self):
        surface = RasterSurface(100, 100)
        pen(surface)
        surface.stroke_line((10, 50), (90, 50))

        assert surface.resize(200, 150)
        assert surface.size == (200, 150)
        assert surface.pixels.shape == (150, 200, 4)
        assert surface.is_blank()
        assert surface.line_cap == LineCap.BUTT
        assert surface.line_width == 1.0

    def test_same_size_preserves_content(self):
        surface = RasterSurface(100, 100)
        pen(surface)
        surface.stroke_line((10, 50), (90, 50))
        assert not surface.resize(100, 100)
        assert surface.pixel(50, 50)[3] == 255
        assert surface.line_cap == LineCap.ROUND


class TestOutput:
    def test_to_bgra(self):
        surface = RasterSurface(20, 20)
        pen(surface, "#FF0000")
        surface.stroke_line((2, 10), (18, 10))
        assert tuple(surface.to_bgra()[10, 10]) == (0, 0, 255, 255)

    def test_overlay(self):
        surface = RasterSurface(20, 20)
        pen(surface, "#FFFFFF")
        surface.stroke_line((2, 10), (18, 10))
        frame = np.zeros((20, 20, 3), dtype=np.uint8)
        out = surface.overlay(frame)
        assert tuple(out[10, 10]) == (255, 255, 255)
        assert tuple(out[0, 0]) == (0, 0, 0)
        assert frame.max() == 0  # input untouched

    def test_overlay_scales_to_frame(self):
        surface = RasterSurface(20, 20)
        frame = np.zeros((40, 60, 3), dtype=np.uint8)
        assert surface.overlay(frame).shape == (40, 60, 3)

    def test_save_png(self, tmp_path):
        surface = RasterSurface(30, 30)
        pen(surface, "#00FF00")
        surface.stroke_line((5, 15), (25, 15))
        path = surface.save(tmp_path / "out" / "drawing.png")

        loaded = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        assert loaded.shape == (30, 30, 4)
        assert tuple(loaded[15, 15]) == (0, 255, 0, 255)
        assert loaded[0, 0, 3] == 0
