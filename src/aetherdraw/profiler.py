"""Per-tick stage timing for the drawing pipeline.

Frames arrive at whatever cadence the driver manages (nominally display
refresh, often less), so besides stage durations the profiler also tracks
the interval between ticks to report the effective frame rate.
"""

from __future__ import annotations

import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional


@dataclass
class StageStats:
    """Timing statistics for a single pipeline stage."""
    name: str
    avg_ms: float
    min_ms: float
    max_ms: float
    p95_ms: float
    call_count: int


class FrameProfiler:
    """Rolling-window timing of detection, classification and rendering.

    Usage:
        profiler = FrameProfiler()

        with profiler.stage("classification"):
            gesture = classifier.classify(hand)

        profiler.mark_tick(now_ms)
        print(profiler.summary(), profiler.fps)
    """

    STAGES = ("detection", "classification", "rendering", "total")

    def __init__(self, window_size: int = 120):
        self._window_size = window_size
        self._timings: dict[str, deque[float]] = {
            s: deque(maxlen=window_size) for s in self.STAGES
        }
        self._counts: dict[str, int] = {s: 0 for s in self.STAGES}
        self._intervals: deque[float] = deque(maxlen=window_size)
        self._last_tick_ms: Optional[float] = None
        self.enabled = True

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        """Context manager to time a pipeline stage."""
        if not self.enabled:
            yield
            return

        if name not in self._timings:
            self._timings[name] = deque(maxlen=self._window_size)
            self._counts[name] = 0

        t0 = time.perf_counter()
        try:
            yield
        finally:
            self._timings[name].append((time.perf_counter() - t0) * 1000.0)
            self._counts[name] += 1

    def mark_tick(self, now_ms: float):
        """Record a tick timestamp; non-increasing timestamps are ignored."""
        if not self.enabled:
            return
        if self._last_tick_ms is not None and now_ms > self._last_tick_ms:
            self._intervals.append(now_ms - self._last_tick_ms)
        if self._last_tick_ms is None or now_ms > self._last_tick_ms:
            self._last_tick_ms = now_ms

    @property
    def fps(self) -> float:
        """Effective tick rate over the window."""
        if not self._intervals:
            return 0.0
        avg = sum(self._intervals) / len(self._intervals)
        return 1000.0 / avg if avg > 0 else 0.0

    def get_stage_stats(self, name: str) -> Optional[StageStats]:
        timings = self._timings.get(name)
        if not timings:
            return None

        ordered = sorted(timings)
        n = len(ordered)
        return StageStats(
            name=name,
            avg_ms=sum(ordered) / n,
            min_ms=ordered[0],
            max_ms=ordered[-1],
            p95_ms=ordered[int(n * 0.95)] if n >= 2 else ordered[-1],
            call_count=self._counts.get(name, 0),
        )

    def summary(self) -> dict[str, dict]:
        """Stats for every stage that has recorded data."""
        result = {}
        for name in self._timings:
            stats = self.get_stage_stats(name)
            if stats:
                result[name] = {
                    "avg_ms": round(stats.avg_ms, 3),
                    "min_ms": round(stats.min_ms, 3),
                    "max_ms": round(stats.max_ms, 3),
                    "p95_ms": round(stats.p95_ms, 3),
                    "calls": stats.call_count,
                }
        return result

    def reset(self):
        for d in self._timings.values():
            d.clear()
        for k in self._counts:
            self._counts[k] = 0
        self._intervals.clear()
        self._last_tick_ms = None
