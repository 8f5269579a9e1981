"""Per-tick driver: camera frame → hand → gesture → strokes.

The pipeline owns the pieces the stroke engine treats as external: the
hand detector, the shared tool settings, the color palette and the raster
surface sized to the video source. Each call to ``process_frame`` (camera
images) or ``process_landmarks`` (recorded or externally detected hands)
is one complete tick.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import numpy as np

from aetherdraw.classifier import GestureClassifier
from aetherdraw.config import DrawingConfig
from aetherdraw.detector import HandDetector
from aetherdraw.engine import StrokeEngine, StrokeSegment, Tool, ToolSettings
from aetherdraw.gestures import Gesture
from aetherdraw.landmarks import to_landmark_array
from aetherdraw.palette import ColorPalette
from aetherdraw.profiler import FrameProfiler
from aetherdraw.surface import RasterSurface

logger = logging.getLogger("aetherdraw.pipeline")


@dataclass
class FrameResult:
    """Outcome of one tick."""
    gesture: Gesture
    hand_detected: bool
    segments: list[StrokeSegment]
    timestamp_ms: float
    landmarks: Optional[np.ndarray] = None
    skipped: bool = False  # no surface attached, nothing was rendered


@dataclass
class PipelineStats:
    """Runtime counters."""
    fps: float
    avg_latency_ms: float
    total_frames: int
    hands_detected: int
    gesture_changes: int
    color_changes: int
    segments: int
    profiler_summary: dict = field(default_factory=dict)


def _now_ms() -> float:
    return time.monotonic() * 1000.0


class DrawingPipeline:
    """End-to-end drawing loop with palette and tool handling.

    Usage:
        with DrawingPipeline(config=load_config("aetherdraw.yml")) as pipeline:
            pipeline.on_gesture(lambda g: print(g.value))
            while True:
                result = pipeline.process_frame(frame_rgb)
                shown = pipeline.surface.overlay(frame_bgr)
    """

    def __init__(
        self,
        detector: Optional[HandDetector] = None,
        classifier: Optional[GestureClassifier] = None,
        config: Optional[DrawingConfig] = None,
        surface: Optional[RasterSurface] = None,
        enable_profiling: bool = True,
    ):
        self.config = config or DrawingConfig()
        self._detector = detector
        self.classifier = classifier or GestureClassifier()
        self.palette = ColorPalette(self.config.palette)
        self.tools = ToolSettings(tool=Tool.PEN, color=self.config.default_color)
        self.engine = StrokeEngine(
            surface=surface,
            tools=self.tools,
            pen_width=self.config.pen_width,
            eraser_width=self.config.eraser_width,
            smoothing=self.config.smoothing,
            color_cooldown_ms=self.config.color_cooldown_ms,
            mirror=self.config.mirror,
        )
        self.profiler = FrameProfiler()
        self.profiler.enabled = enable_profiling

        self._gesture_callbacks: list[Callable[[Gesture], None]] = []
        self._color_callbacks: list[Callable[[str], None]] = []
        self._current_gesture = Gesture.IDLE
        self._total_frames = 0
        self._hands_detected = 0
        self._gesture_changes = 0
        self._color_changes = 0
        self._segments = 0

        self.engine.on_gesture_changed(self._handle_gesture_changed)
        self.engine.on_color_cycle_requested(self._handle_color_cycle)

    @property
    def detector(self) -> HandDetector:
        if self._detector is None:
            self._detector = HandDetector(
                min_detection_confidence=self.config.min_detection_confidence,
                min_tracking_confidence=self.config.min_tracking_confidence,
            )
        return self._detector

    @property
    def surface(self) -> Optional[RasterSurface]:
        return self.engine.surface

    @property
    def current_gesture(self) -> Gesture:
        return self._current_gesture

    def on_gesture(self, callback: Callable[[Gesture], None]):
        """Register a callback for gesture transitions."""
        self._gesture_callbacks.append(callback)

    def on_color_change(self, callback: Callable[[str], None]):
        """Register a callback receiving the newly selected color."""
        self._color_callbacks.append(callback)

    def ensure_surface(self, width: int, height: int):
        """Create or resize the surface to the source's native resolution."""
        if self.engine.surface is None:
            self.engine.attach_surface(RasterSurface(width, height))
            logger.info("Created %dx%d drawing surface", width, height)
        else:
            self.engine.sync_surface_size(width, height)

    def process_frame(self, frame_rgb: np.ndarray, now_ms: Optional[float] = None) -> FrameResult:
        """Detect a hand in a camera frame and run one tick."""
        now = _now_ms() if now_ms is None else now_ms
        height, width = frame_rgb.shape[:2]
        self.ensure_surface(width, height)

        with self.profiler.stage("detection"):
            hand = self.detector.detect(frame_rgb)

        return self.process_landmarks(hand, now)

    def process_landmarks(self, hand: Any, now_ms: Optional[float] = None) -> FrameResult:
        """Run one tick on already-detected landmarks (None for no hand)."""
        now = _now_ms() if now_ms is None else now_ms
        self._total_frames += 1
        self.profiler.mark_tick(now)

        with self.profiler.stage("total"):
            with self.profiler.stage("classification"):
                try:
                    landmarks = to_landmark_array(hand)
                    gesture = self.classifier.classify(landmarks)
                except Exception as e:
                    logger.warning("Classification failed, treating frame as IDLE: %s", e)
                    landmarks = None
                    gesture = Gesture.IDLE

            with self.profiler.stage("rendering"):
                segments = self.engine.process_frame(gesture, landmarks, now)

        skipped = self.engine.surface is None
        if skipped:
            logger.debug("No surface yet, %s frame not rendered", gesture.value)
        else:
            if landmarks is not None:
                self._hands_detected += 1
            self._segments += len(segments)
            gesture = self.engine.state.last_gesture

        return FrameResult(
            gesture=gesture,
            hand_detected=landmarks is not None,
            segments=segments,
            timestamp_ms=now,
            landmarks=landmarks,
            skipped=skipped,
        )

    def select_tool(self, tool: Tool):
        if tool != self.tools.tool:
            self.tools.tool = tool
            logger.info("%s selected", "Pencil" if tool == Tool.PEN else "Eraser")

    def set_color(self, color: str):
        self.tools.color = color
        for cb in self._color_callbacks:
            cb(color)

    def clear(self):
        """Wipe the drawing (explicit user action)."""
        self.engine.clear_surface()

    def _handle_gesture_changed(self, gesture: Gesture):
        self._current_gesture = gesture
        self._gesture_changes += 1
        logger.info("Gesture: %s", gesture.value)
        for cb in self._gesture_callbacks:
            cb(gesture)

    def _handle_color_cycle(self):
        color = self.palette.next_color(self.tools.color)
        self._color_changes += 1
        logger.info("Color swapped to %s", color)
        self.select_tool(Tool.PEN)
        self.set_color(color)

    @property
    def stats(self) -> PipelineStats:
        total = self.profiler.get_stage_stats("total")
        return PipelineStats(
            fps=self.profiler.fps,
            avg_latency_ms=total.avg_ms if total else 0.0,
            total_frames=self._total_frames,
            hands_detected=self._hands_detected,
            gesture_changes=self._gesture_changes,
            color_changes=self._color_changes,
            segments=self._segments,
            profiler_summary=self.profiler.summary(),
        )

    def close(self):
        """Release resources."""
        if self._detector is not None:
            self._detector.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
