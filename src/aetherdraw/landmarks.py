"""Hand landmark layout and conversion of detector output to arrays.

The upstream detector produces 21 landmarks per hand, each (x, y, z)
normalized to the source image (x, y in [0, 1], z depth-relative).
Everything downstream works on a float64 array of shape (21, 3), so
normalized coordinates map to pixels without losing precision.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, NamedTuple, Optional

import numpy as np

# MediaPipe hand landmark indices
WRIST = 0
THUMB_CMC, THUMB_MCP, THUMB_IP, THUMB_TIP = 1, 2, 3, 4
INDEX_MCP, INDEX_PIP, INDEX_DIP, INDEX_TIP = 5, 6, 7, 8
MIDDLE_MCP, MIDDLE_PIP, MIDDLE_DIP, MIDDLE_TIP = 9, 10, 11, 12
RING_MCP, RING_PIP, RING_DIP, RING_TIP = 13, 14, 15, 16
PINKY_MCP, PINKY_PIP, PINKY_DIP, PINKY_TIP = 17, 18, 19, 20

NUM_LANDMARKS = 21
LANDMARK_DIM = 3  # x, y, z


class Landmark(NamedTuple):
    """One normalized keypoint on a tracked hand."""
    x: float
    y: float
    z: float = 0.0
    visibility: Optional[float] = None


class MalformedFrameError(ValueError):
    """Landmark data that cannot be read as 21 finite (x, y, z) points."""


def _point(item: Any) -> tuple[float, float, float]:
    if hasattr(item, "x") and hasattr(item, "y"):
        return item.x, item.y, getattr(item, "z", 0.0)
    if isinstance(item, Mapping):
        return item["x"], item["y"], item.get("z", 0.0)
    values = list(item)
    if len(values) < 2:
        raise MalformedFrameError(f"landmark needs at least x and y, got {values!r}")
    return values[0], values[1], values[2] if len(values) > 2 else 0.0


def to_landmark_array(frame: Any) -> Optional[np.ndarray]:
    """Convert one hand's landmarks to a (21, 3) float64 array.

    Accepts numpy arrays, nested sequences, MediaPipe landmark objects
    (anything with ``.x``/``.y``/``.z``), mappings with x/y/z keys, or a
    MediaPipe ``NormalizedLandmarkList`` (via its ``.landmark`` field).

    Returns:
        The array, or None when there is no hand (``None``, empty, or fewer
        than 21 landmarks). Extra landmarks beyond 21 are ignored.

    Raises:
        MalformedFrameError: landmarks are present but not numeric/finite.
    """
    if frame is None:
        return None
    if hasattr(frame, "landmark"):
        frame = frame.landmark

    if isinstance(frame, np.ndarray):
        if frame.ndim != 2 or frame.shape[0] < NUM_LANDMARKS:
            return None
        if frame.shape[1] < 2:
            raise MalformedFrameError(f"landmark array has shape {frame.shape}")
        try:
            points = frame[:NUM_LANDMARKS, :LANDMARK_DIM].astype(np.float64)
        except (TypeError, ValueError) as e:
            raise MalformedFrameError(str(e)) from e
        if points.shape[1] == 2:
            points = np.hstack([points, np.zeros((NUM_LANDMARKS, 1), np.float64)])
    else:
        try:
            items = list(frame)
        except TypeError as e:
            raise MalformedFrameError(f"not a landmark sequence: {type(frame).__name__}") from e
        if len(items) < NUM_LANDMARKS:
            return None
        try:
            points = np.array(
                [_point(item) for item in items[:NUM_LANDMARKS]],
                dtype=np.float64,
            )
        except (TypeError, ValueError, KeyError) as e:
            raise MalformedFrameError(str(e)) from e

    if not np.all(np.isfinite(points)):
        raise MalformedFrameError("landmarks contain NaN or infinite values")
    return points
