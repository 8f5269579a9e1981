"""Rule-based gesture classification over a single hand frame."""

from __future__ import annotations

import logging
from typing import Any, Optional

from aetherdraw.gestures import (
    GESTURE_RULES,
    FingerPose,
    Gesture,
    GestureRule,
    finger_pose,
    match_rules,
)
from aetherdraw.landmarks import MalformedFrameError, to_landmark_array

logger = logging.getLogger("aetherdraw.classifier")


class GestureClassifier:
    """Classifies one hand frame into a Gesture.

    Stateless: each call looks only at the frame it is given. Missing,
    short or malformed frames classify as IDLE instead of raising.
    """

    def __init__(self, rules: tuple[GestureRule, ...] = GESTURE_RULES):
        self._rules = rules

    @property
    def rules(self) -> tuple[GestureRule, ...]:
        return self._rules

    def pose(self, frame: Any) -> Optional[FingerPose]:
        """Finger extension flags for a frame, or None without a usable hand."""
        try:
            landmarks = to_landmark_array(frame)
        except MalformedFrameError as e:
            logger.debug("Ignoring malformed frame: %s", e)
            return None
        if landmarks is None:
            return None
        return finger_pose(landmarks)

    def classify(self, frame: Any) -> Gesture:
        """Classify a hand frame.

        Args:
            frame: 21 landmarks in any form accepted by
                ``to_landmark_array``, or None when no hand was detected.

        Returns:
            The gesture of the first matching rule, IDLE otherwise.
        """
        pose = self.pose(frame)
        if pose is None:
            return Gesture.IDLE
        return match_rules(pose, self._rules)


_default = GestureClassifier()


def classify(frame: Any) -> Gesture:
    """Classify with the default decision table."""
    return _default.classify(frame)
