"""Stroke engine: turns the per-frame gesture stream into ink on a surface.

The engine keeps the state of one drawing session (last gesture, last
rendered point, cooldown timestamp), renders smoothed line segments while
the DRAW gesture is held, and reports gesture transitions and
cooldown-gated color-change requests through callbacks.

Usage:
    surface = RasterSurface(1280, 720)
    tools = ToolSettings(color="#4ECDC4")
    engine = StrokeEngine(surface, tools)
    engine.on_gesture_changed(lambda g: print(g))
    engine.on_color_cycle_requested(cycle_palette)

    # In the frame loop:
    engine.process_frame(classifier.classify(hand), hand, now_ms)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from aetherdraw.gestures import Gesture
from aetherdraw.landmarks import INDEX_TIP, MalformedFrameError, to_landmark_array
from aetherdraw.surface import CompositeMode, LineCap, LineJoin, Point, RasterSurface

logger = logging.getLogger("aetherdraw.engine")

PEN_WIDTH = 8.0
ERASER_WIDTH = 32.0
SMOOTHING = 0.6  # weight of the new point
COLOR_COOLDOWN_MS = 1500.0


class Tool(Enum):
    PEN = "pen"
    ERASER = "eraser"


@dataclass
class ToolSettings:
    """Externally owned tool configuration, re-read by the engine every tick."""
    tool: Tool = Tool.PEN
    color: str = "#4ECDC4"


@dataclass
class StrokeSessionState:
    """State of the current drawing session."""
    last_gesture: Gesture = Gesture.IDLE
    last_point: Optional[Point] = None
    is_drawing: bool = False
    last_action_ms: float = float("-inf")


@dataclass
class StrokeSegment:
    """One rendered line segment, in surface pixel coordinates."""
    start: Point
    end: Point
    tool: Tool
    color: str
    width: float
    composite: CompositeMode

    def to_dict(self) -> dict:
        return {
            "x1": round(self.start[0], 1),
            "y1": round(self.start[1], 1),
            "x2": round(self.end[0], 1),
            "y2": round(self.end[1], 1),
            "tool": self.tool.value,
            "color": self.color,
            "width": self.width,
            "composite": self.composite.value,
        }


class StrokeEngine:
    """Drives a raster surface from gestures, one tick at a time.

    A tick without a surface attached is skipped entirely and the state is
    left untouched, so the same frame stream can resume once a surface is
    available. Frames without a usable hand count as IDLE whatever gesture
    the caller passed.
    """

    def __init__(
        self,
        surface: Optional[RasterSurface] = None,
        tools: Optional[ToolSettings] = None,
        pen_width: float = PEN_WIDTH,
        eraser_width: float = ERASER_WIDTH,
        smoothing: float = SMOOTHING,
        color_cooldown_ms: float = COLOR_COOLDOWN_MS,
        mirror: bool = True,
    ):
        self.tools = tools or ToolSettings()
        self.pen_width = pen_width
        self.eraser_width = eraser_width
        self.smoothing = smoothing
        self.color_cooldown_ms = color_cooldown_ms
        self.mirror = mirror

        self._state = StrokeSessionState()
        self._surface: Optional[RasterSurface] = None
        self._gesture_callbacks: list[Callable[[Gesture], None]] = []
        self._color_callbacks: list[Callable[[], None]] = []

        if surface is not None:
            self.attach_surface(surface)

    def on_gesture_changed(self, callback: Callable[[Gesture], None]):
        """Register a callback fired once per gesture transition."""
        self._gesture_callbacks.append(callback)

    def on_color_cycle_requested(self, callback: Callable[[], None]):
        """Register a callback fired per cooldown-gated CHANGE_COLOR."""
        self._color_callbacks.append(callback)

    @property
    def state(self) -> StrokeSessionState:
        return self._state

    @property
    def surface(self) -> Optional[RasterSurface]:
        return self._surface

    def attach_surface(self, surface: Optional[RasterSurface]):
        """Point the engine at a surface (None detaches it)."""
        self._surface = surface
        if surface is not None:
            self._apply_line_defaults()

    def sync_surface_size(self, width: int, height: int) -> bool:
        """Match the surface to the video source's native resolution.

        Returns:
            True if the surface was reallocated (its content is then lost).
        """
        if self._surface is None:
            return False
        if not self._surface.resize(width, height):
            return False
        self._apply_line_defaults()
        logger.info("Surface resized to %dx%d", width, height)
        return True

    def _apply_line_defaults(self):
        surface = self._surface
        surface.line_cap = LineCap.ROUND
        surface.line_join = LineJoin.ROUND
        surface.line_width = self.eraser_width if self.tools.tool == Tool.ERASER else self.pen_width

    def clear_surface(self):
        """Wipe the surface and forget the last point."""
        if self._surface is not None:
            self._surface.clear()
        self._state.last_point = None
        logger.info("Canvas cleared")

    def process_frame(self, gesture: Gesture, frame: Any, now_ms: float) -> list[StrokeSegment]:
        """Run one tick.

        Args:
            gesture: Classification of ``frame``.
            frame: The hand landmarks the gesture was computed from, or None.
            now_ms: Monotonic wall-clock time in milliseconds.

        Returns:
            Segments rendered during this tick (empty or one).
        """
        if self._surface is None:
            logger.debug("No surface attached, skipping tick")
            return []

        try:
            landmarks = to_landmark_array(frame)
        except MalformedFrameError as e:
            logger.debug("Treating malformed frame as no hand: %s", e)
            landmarks = None
        if landmarks is None:
            gesture = Gesture.IDLE

        state = self._state
        if gesture != state.last_gesture:
            state.last_gesture = gesture
            if gesture != Gesture.DRAW:
                state.is_drawing = False
                state.last_point = None
            self._emit_gesture_changed(gesture)

        segments: list[StrokeSegment] = []

        if gesture == Gesture.DRAW:
            segment = self._draw(landmarks)
            if segment is not None:
                segments.append(segment)

        elif gesture == Gesture.CHANGE_COLOR:
            if now_ms - state.last_action_ms > self.color_cooldown_ms:
                state.last_action_ms = now_ms
                self._emit_color_cycle()

        return segments

    def _draw(self, landmarks) -> Optional[StrokeSegment]:
        surface = self._surface
        state = self._state

        tip = landmarks[INDEX_TIP]
        x_norm = 1.0 - float(tip[0]) if self.mirror else float(tip[0])
        x = x_norm * surface.width
        y = float(tip[1]) * surface.height

        previous = state.last_point
        if previous is not None:
            keep = 1.0 - self.smoothing
            x = self.smoothing * x + keep * previous[0]
            y = self.smoothing * y + keep * previous[1]

        segment = None
        if previous is not None:
            segment = self._stroke(previous, (x, y))

        state.last_point = (x, y)
        state.is_drawing = True
        return segment

    def _stroke(self, start: Point, end: Point) -> Optional[StrokeSegment]:
        surface = self._surface
        tool = self.tools.tool
        color = self.tools.color

        if tool == Tool.ERASER:
            surface.composite = CompositeMode.DESTINATION_OUT
            surface.line_width = self.eraser_width
        else:
            surface.composite = CompositeMode.SOURCE_OVER
            surface.stroke_color = color
            surface.line_width = self.pen_width
        surface.line_cap = LineCap.ROUND
        surface.line_join = LineJoin.ROUND

        segment = StrokeSegment(
            start=start,
            end=end,
            tool=tool,
            color=color,
            width=surface.line_width,
            composite=surface.composite,
        )
        try:
            surface.stroke_line(start, end)
        except ValueError as e:
            logger.warning("Skipping segment, cannot paint with %r: %s", color, e)
            return None
        finally:
            surface.composite = CompositeMode.SOURCE_OVER

        logger.debug("Segment %s", segment.to_dict())
        return segment

    def _emit_gesture_changed(self, gesture: Gesture):
        for cb in self._gesture_callbacks:
            try:
                cb(gesture)
            except Exception as e:
                logger.error("Gesture callback error: %s", e)

    def _emit_color_cycle(self):
        for cb in self._color_callbacks:
            try:
                cb()
            except Exception as e:
                logger.error("Color cycle callback error: %s", e)
