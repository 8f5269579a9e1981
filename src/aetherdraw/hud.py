"""On-screen indicator for the live OpenCV window."""

from __future__ import annotations

from typing import Optional

import cv2
import numpy as np

from aetherdraw.engine import Tool
from aetherdraw.gestures import Gesture
from aetherdraw.surface import parse_color


def gesture_label(gesture: Gesture, tool: Tool) -> Optional[str]:
    """Indicator text for a gesture, None while idle."""
    if gesture == Gesture.DRAW:
        return "Erasing" if tool == Tool.ERASER else "Drawing"
    return {
        Gesture.HOVER: "Hovering",
        Gesture.CHANGE_COLOR: "Color Swap!",
        Gesture.ERASE: "Erase",
        Gesture.CLEAR: "Clear?",
    }.get(gesture)


def _bgr(color: str) -> tuple[int, int, int]:
    r, g, b, _ = parse_color(color)
    return b, g, r


def draw_hud(
    frame: np.ndarray,
    gesture: Gesture,
    tool: Tool,
    color: str,
    fps: float = 0.0,
) -> np.ndarray:
    """Draw the tool/color swatch, gesture indicator and FPS onto a BGR frame."""
    h, w = frame.shape[:2]

    # Tool + color swatch, bottom left
    cv2.rectangle(frame, (10, h - 50), (50, h - 10), _bgr(color), -1)
    cv2.rectangle(frame, (10, h - 50), (50, h - 10), (42, 42, 42), 2)
    cv2.putText(
        frame, tool.value, (60, h - 22),
        cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2,
    )

    label = gesture_label(gesture, tool)
    if label:
        (tw, th), _ = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, 1.0, 2)
        x = (w - tw) // 2
        cv2.rectangle(frame, (x - 12, h - 70 - th), (x + tw + 12, h - 58), (255, 255, 255), -1)
        cv2.putText(
            frame, label, (x, h - 64),
            cv2.FONT_HERSHEY_SIMPLEX, 1.0, (42, 42, 42), 2,
        )

    if fps > 0:
        cv2.putText(
            frame, f"FPS: {fps:.1f}", (10, 30),
            cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 255, 0), 2,
        )
    return frame
