"""Gesture vocabulary and the finger-pose decision table.

Finger extension is determined by comparing the fingertip's distance from
the wrist against both the PIP joint's and the MCP joint's distance from
the wrist. Extended fingers have tips farther out than both; the MCP check
rejects fingers that are curled but angled towards the camera.

The thumb is never evaluated.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

import numpy as np

from aetherdraw.landmarks import (
    INDEX_MCP, INDEX_PIP, INDEX_TIP,
    MIDDLE_MCP, MIDDLE_PIP, MIDDLE_TIP,
    PINKY_MCP, PINKY_PIP, PINKY_TIP,
    RING_MCP, RING_PIP, RING_TIP,
    WRIST,
)


class Gesture(Enum):
    """Discrete interpretation of one hand frame."""
    IDLE = "IDLE"
    DRAW = "DRAW"
    HOVER = "HOVER"
    CHANGE_COLOR = "CHANGE_COLOR"
    ERASE = "ERASE"
    CLEAR = "CLEAR"


class FingerState(Enum):
    """Binary finger state based on landmark positions."""
    EXTENDED = "extended"
    CURLED = "curled"
    ANY = "any"  # don't care


class FingerPose(NamedTuple):
    """Extension flags for the four non-thumb fingers."""
    index: bool
    middle: bool
    ring: bool
    pinky: bool


# (tip, pip, mcp) per finger
FINGER_JOINTS = {
    "index": (INDEX_TIP, INDEX_PIP, INDEX_MCP),
    "middle": (MIDDLE_TIP, MIDDLE_PIP, MIDDLE_MCP),
    "ring": (RING_TIP, RING_PIP, RING_MCP),
    "pinky": (PINKY_TIP, PINKY_PIP, PINKY_MCP),
}


def is_finger_extended(landmarks: np.ndarray, tip: int, pip: int, mcp: int) -> bool:
    """Tip farther from the wrist than both its PIP and its MCP joint."""
    wrist = landmarks[WRIST]
    tip_dist = np.linalg.norm(landmarks[tip] - wrist)
    pip_dist = np.linalg.norm(landmarks[pip] - wrist)
    mcp_dist = np.linalg.norm(landmarks[mcp] - wrist)
    return bool(tip_dist > pip_dist and tip_dist > mcp_dist)


def finger_pose(landmarks: np.ndarray) -> FingerPose:
    """Compute the extension state of index, middle, ring and pinky.

    Args:
        landmarks: Hand landmarks, shape (21, 3).
    """
    return FingerPose(*(
        is_finger_extended(landmarks, tip, pip, mcp)
        for tip, pip, mcp in FINGER_JOINTS.values()
    ))


@dataclass(frozen=True)
class GestureRule:
    """One row of the decision table: a finger pattern and its gesture."""

    gesture: Gesture
    index: FingerState = FingerState.ANY
    middle: FingerState = FingerState.ANY
    ring: FingerState = FingerState.ANY
    pinky: FingerState = FingerState.ANY

    def matches(self, pose: FingerPose) -> bool:
        expected = (self.index, self.middle, self.ring, self.pinky)
        for extended, state in zip(pose, expected):
            if state == FingerState.ANY:
                continue
            if extended != (state == FingerState.EXTENDED):
                return False
        return True

    def describe(self) -> str:
        parts = []
        for finger, state in zip(FINGER_JOINTS, (self.index, self.middle, self.ring, self.pinky)):
            if state == FingerState.EXTENDED:
                parts.append(finger)
            elif state == FingerState.CURLED:
                parts.append(f"!{finger}")
        return " & ".join(parts) if parts else "*"


_E, _C = FingerState.EXTENDED, FingerState.CURLED

# Evaluated top to bottom, first match wins. ERASE and CHANGE_COLOR share
# index-extended with DRAW and must stay above it.
GESTURE_RULES: tuple[GestureRule, ...] = (
    GestureRule(Gesture.ERASE, index=_E, middle=_C, ring=_C, pinky=_E),
    GestureRule(Gesture.CHANGE_COLOR, index=_E, middle=_E, ring=_C, pinky=_C),
    GestureRule(Gesture.HOVER, index=_E, middle=_E, ring=_E, pinky=_E),
    GestureRule(Gesture.DRAW, index=_E, middle=_C, ring=_C, pinky=_C),
    GestureRule(Gesture.CLEAR, index=_C, middle=_C, ring=_C, pinky=_C),
)


def match_rules(pose: FingerPose, rules: tuple[GestureRule, ...] = GESTURE_RULES) -> Gesture:
    """Return the gesture of the first matching rule, IDLE if none match."""
    for rule in rules:
        if rule.matches(pose):
            return rule.gesture
    return Gesture.IDLE


def describe_rules(rules: tuple[GestureRule, ...] = GESTURE_RULES) -> list[str]:
    """Human-readable decision table in priority order."""
    lines = [
        f"{i}. {rule.gesture.value:<13s} {rule.describe()}"
        for i, rule in enumerate(rules, start=1)
    ]
    lines.append(f"{len(rules) + 1}. {Gesture.IDLE.value:<13s} otherwise")
    return lines
