"""Hand landmark extraction using MediaPipe."""

from typing import Optional

import numpy as np

try:
    import mediapipe as mp
except ImportError:
    mp = None

from aetherdraw.landmarks import LANDMARK_DIM, NUM_LANDMARKS


class HandDetector:
    """Extracts the 21 landmarks of one hand using MediaPipe Hands.

    Landmarks are returned raw: (x, y) normalized to the image, z relative
    to the wrist depth. They are not wrist-centered because the stroke
    engine needs fingertip positions in image space.
    """

    def __init__(
        self,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
        static_image_mode: bool = False,
    ):
        if mp is None or not hasattr(mp, "solutions"):
            raise ImportError(
                "mediapipe with the Hands solution is required. "
                "Install with: pip install 'aetherdraw[camera]'"
            )

        self._hands = mp.solutions.hands.Hands(
            static_image_mode=static_image_mode,
            max_num_hands=1,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )

    def detect(self, frame_rgb: np.ndarray) -> Optional[np.ndarray]:
        """Detect a hand and return its landmarks.

        Args:
            frame_rgb: RGB image as numpy array (H, W, 3), uint8.

        Returns:
            Landmark array of shape (21, 3), or None if no hand is visible.
        """
        results = self._hands.process(frame_rgb)

        if not results.multi_hand_landmarks:
            return None

        hand = results.multi_hand_landmarks[0]
        landmarks = np.array(
            [[lm.x, lm.y, lm.z] for lm in hand.landmark],
            dtype=np.float32,
        )
        if landmarks.shape != (NUM_LANDMARKS, LANDMARK_DIM):
            return None
        return landmarks

    def close(self):
        """Release MediaPipe resources."""
        self._hands.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
