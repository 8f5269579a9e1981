"""Color palette cycled by the CHANGE_COLOR gesture."""

from __future__ import annotations

from typing import Optional, Sequence

DEFAULT_PALETTE = (
    "#FF6B6B",  # red
    "#4ECDC4",  # teal
    "#FFE66D",  # yellow
    "#6C5CE7",  # purple
    "#55EFC4",  # green
    "#FFFFFF",  # white
)
DEFAULT_COLOR = DEFAULT_PALETTE[1]


class ColorPalette:
    """Ordered list of paint colors with wrap-around cycling."""

    def __init__(self, colors: Optional[Sequence[str]] = None):
        self._colors = tuple(colors) if colors is not None else DEFAULT_PALETTE
        if not self._colors:
            raise ValueError("Palette needs at least one color")

    def next_color(self, current: str) -> str:
        """Color after ``current``; an unknown color wraps to the first entry."""
        try:
            index = self._colors.index(current)
        except ValueError:
            index = -1
        return self._colors[(index + 1) % len(self._colors)]

    @property
    def colors(self) -> tuple[str, ...]:
        return self._colors

    def __len__(self) -> int:
        return len(self._colors)

    def __contains__(self, color: str) -> bool:
        return color in self._colors
