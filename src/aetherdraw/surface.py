"""Persistent RGBA raster surface that strokes are rendered onto.

The surface behaves like a 2D canvas element: it has a pixel buffer plus a
small drawing context (line width, cap, join, composite mode, stroke color)
that every stroke reads. Resizing reallocates the buffer, which discards
both the pixels and the context configuration, so callers must reassert
their rendering defaults after a resize.

Pixels are stored as straight (non-premultiplied) RGBA, uint8, shape
(height, width, 4), fully transparent when cleared.
"""

from __future__ import annotations

import math
from enum import Enum
from pathlib import Path
from typing import Sequence, Union

import cv2
import numpy as np

Color = Union[str, Sequence[int]]
Point = tuple[float, float]

# Fixed-point bits used for sub-pixel rasterization with OpenCV.
_SHIFT = 4
_SCALE = 1 << _SHIFT
# Keeps shifted coordinates inside OpenCV's int range.
_COORD_LIMIT = float(1 << 14)


class CompositeMode(Enum):
    """Pixel blending rule used for a stroke."""
    SOURCE_OVER = "source-over"  # paint
    DESTINATION_OUT = "destination-out"  # erase to transparent


class LineCap(Enum):
    BUTT = "butt"
    ROUND = "round"
    SQUARE = "square"


class LineJoin(Enum):
    MITER = "miter"
    ROUND = "round"
    BEVEL = "bevel"


def parse_color(color: Color) -> tuple[int, int, int, int]:
    """Parse ``#RGB``, ``#RRGGBB``, ``#RRGGBBAA`` or an (r, g, b[, a]) tuple.

    Returns:
        (r, g, b, a) with each channel in 0-255.
    """
    if isinstance(color, str):
        digits = color.strip().lstrip("#")
        if len(digits) == 3:
            digits = "".join(c * 2 for c in digits)
        if len(digits) == 6:
            digits += "ff"
        if len(digits) != 8:
            raise ValueError(f"Unsupported color: {color!r}")
        try:
            return tuple(int(digits[i:i + 2], 16) for i in range(0, 8, 2))  # type: ignore[return-value]
        except ValueError:
            raise ValueError(f"Unsupported color: {color!r}") from None

    channels = [int(c) for c in color]
    if len(channels) == 3:
        channels.append(255)
    if len(channels) != 4 or not all(0 <= c <= 255 for c in channels):
        raise ValueError(f"Unsupported color: {color!r}")
    return tuple(channels)  # type: ignore[return-value]


class RasterSurface:
    """Mutable pixel buffer with canvas-like drawing context state.

    Usage:
        surface = RasterSurface(1280, 720)
        surface.line_width = 8
        surface.line_cap = LineCap.ROUND
        surface.stroke_color = "#4ECDC4"
        surface.stroke_line((100, 100), (200, 120))
    """

    def __init__(self, width: int, height: int):
        self._check_size(width, height)
        self._width = int(width)
        self._height = int(height)
        self._pixels = np.zeros((self._height, self._width, 4), dtype=np.uint8)
        self.reset_context()

    @staticmethod
    def _check_size(width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"Surface size must be positive, got {width}x{height}")

    def reset_context(self):
        """Restore drawing-context defaults (what a fresh canvas starts with)."""
        self.line_width: float = 1.0
        self.line_cap = LineCap.BUTT
        self.line_join = LineJoin.MITER
        self.composite = CompositeMode.SOURCE_OVER
        self.stroke_color: Color = "#000000"

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def size(self) -> tuple[int, int]:
        return self._width, self._height

    @property
    def pixels(self) -> np.ndarray:
        """The live RGBA buffer, shape (height, width, 4)."""
        return self._pixels

    def resize(self, width: int, height: int) -> bool:
        """Resize the backing buffer.

        A real size change reallocates: pixel content is lost and the
        drawing context is reset. Same size is a no-op.

        Returns:
            True if the buffer was reallocated.
        """
        if (width, height) == (self._width, self._height):
            return False
        self._check_size(width, height)
        self._width = int(width)
        self._height = int(height)
        self._pixels = np.zeros((self._height, self._width, 4), dtype=np.uint8)
        self.reset_context()
        return True

    def clear(self):
        """Wipe every pixel to transparent."""
        self._pixels[:] = 0

    def is_blank(self) -> bool:
        return not self._pixels[..., 3].any()

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        """RGBA value at integer pixel coordinates."""
        r, g, b, a = self._pixels[y, x]
        return int(r), int(g), int(b), int(a)

    def stroke_line(self, start: Point, end: Point):
        """Stroke one line segment with the current context state."""
        width = max(float(self.line_width), 1.0)
        p0 = np.clip(np.asarray(start, dtype=np.float64), -_COORD_LIMIT, _COORD_LIMIT)
        p1 = np.clip(np.asarray(end, dtype=np.float64), -_COORD_LIMIT, _COORD_LIMIT)

        pad = int(math.ceil(width / 2.0)) + 2
        x0 = max(int(math.floor(min(p0[0], p1[0]))) - pad, 0)
        y0 = max(int(math.floor(min(p0[1], p1[1]))) - pad, 0)
        x1 = min(int(math.ceil(max(p0[0], p1[0]))) + pad + 1, self._width)
        y1 = min(int(math.ceil(max(p0[1], p1[1]))) + pad + 1, self._height)
        if x0 >= x1 or y0 >= y1:
            return  # entirely off-surface

        offset = np.array([x0, y0], dtype=np.float64)
        mask = np.zeros((y1 - y0, x1 - x0), dtype=np.uint8)
        self._rasterize(mask, p0 - offset, p1 - offset, width)
        if not mask.any():
            return
        self._blend(mask, (slice(y0, y1), slice(x0, x1)))

    def _rasterize(self, mask: np.ndarray, p0: np.ndarray, p1: np.ndarray, width: float):
        half = width / 2.0
        delta = p1 - p0
        length = float(np.hypot(*delta))

        if length > 1e-9:
            direction = delta / length
            normal = np.array([-direction[1], direction[0]]) * half
            a, b = p0, p1
            if self.line_cap == LineCap.SQUARE:
                a = p0 - direction * half
                b = p1 + direction * half
            quad = np.array([a + normal, b + normal, b - normal, a - normal])
            cv2.fillConvexPoly(
                mask, np.round(quad * _SCALE).astype(np.int32), 255,
                lineType=cv2.LINE_AA, shift=_SHIFT,
            )

        if self.line_cap == LineCap.ROUND:
            radius = int(round(half * _SCALE))
            for p in (p0, p1):
                center = tuple(int(v) for v in np.round(p * _SCALE))
                cv2.circle(mask, center, radius, 255, -1, lineType=cv2.LINE_AA, shift=_SHIFT)

    def _blend(self, mask: np.ndarray, region_slice: tuple[slice, slice]):
        region = self._pixels[region_slice]
        coverage = mask.astype(np.float32) / 255.0

        if self.composite == CompositeMode.DESTINATION_OUT:
            alpha = region[..., 3].astype(np.float32)
            region[..., 3] = np.round(alpha * (1.0 - coverage)).astype(np.uint8)
            region[region[..., 3] == 0] = 0
            return

        r, g, b, a = parse_color(self.stroke_color)
        src_a = coverage * (a / 255.0)
        dst_a = region[..., 3].astype(np.float32) / 255.0
        out_a = src_a + dst_a * (1.0 - src_a)

        src_rgb = np.array([r, g, b], dtype=np.float32)
        dst_rgb = region[..., :3].astype(np.float32)
        with np.errstate(divide="ignore", invalid="ignore"):
            out_rgb = (
                src_rgb * src_a[..., None]
                + dst_rgb * (dst_a * (1.0 - src_a))[..., None]
            ) / out_a[..., None]
        out_rgb = np.where(out_a[..., None] > 0, out_rgb, 0.0)

        region[..., :3] = np.clip(np.round(out_rgb), 0, 255).astype(np.uint8)
        region[..., 3] = np.clip(np.round(out_a * 255.0), 0, 255).astype(np.uint8)

    def to_bgra(self) -> np.ndarray:
        """Copy of the buffer in OpenCV's BGRA channel order."""
        return cv2.cvtColor(self._pixels, cv2.COLOR_RGBA2BGRA)

    def overlay(self, frame_bgr: np.ndarray) -> np.ndarray:
        """Composite the surface over a BGR video frame (returns a new frame)."""
        bgra = self.to_bgra()
        h, w = frame_bgr.shape[:2]
        if (w, h) != self.size:
            bgra = cv2.resize(bgra, (w, h), interpolation=cv2.INTER_LINEAR)
        alpha = bgra[..., 3:4].astype(np.float32) / 255.0
        blended = bgra[..., :3].astype(np.float32) * alpha + frame_bgr.astype(np.float32) * (1.0 - alpha)
        return np.clip(blended, 0, 255).astype(np.uint8)

    def save(self, path: str | Path) -> Path:
        """Write the surface to an image file (PNG keeps transparency)."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        if not cv2.imwrite(str(path), self.to_bgra()):
            raise OSError(f"Could not write image to {path}")
        return path
