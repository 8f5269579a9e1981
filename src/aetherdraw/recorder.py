"""Landmark session recording and replay.

Record real drawing sessions for:
- Reproducible testing without a camera
- Rendering a drawing headlessly from a recorded session
- Demo recordings that play back deterministically
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Iterator, Optional

import numpy as np

from aetherdraw.landmarks import LANDMARK_DIM, NUM_LANDMARKS

logger = logging.getLogger("aetherdraw.recorder")

FORMAT_VERSION = 1


@dataclass
class RecordedFrame:
    """A single frame in a recording."""
    timestamp: float  # seconds from recording start
    hand: Optional[list[list[float]]]  # (21, 3) landmarks as nested lists, None = no hand
    gesture: Optional[str] = None


class SessionRecorder:
    """Records per-frame hand landmarks together with the source size.

    Usage:
        recorder = SessionRecorder(width=1280, height=720)
        recorder.start()
        # In your frame loop:
        recorder.add_frame(hand, gesture)
        # When done:
        recorder.save("session.json")
    """

    def __init__(self, width: int = 1280, height: int = 720):
        self.width = width
        self.height = height
        self._frames: list[RecordedFrame] = []
        self._start_time: Optional[float] = None
        self._recording = False

    def start(self):
        """Begin a new recording session."""
        self._frames = []
        self._start_time = time.monotonic()
        self._recording = True

    def stop(self) -> int:
        """Stop recording. Returns number of frames captured."""
        self._recording = False
        return len(self._frames)

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        if not self._frames:
            return 0.0
        return self._frames[-1].timestamp

    def add_frame(
        self,
        hand: Optional[np.ndarray],
        gesture: Optional[str] = None,
        timestamp: Optional[float] = None,
    ):
        """Add a frame to the recording.

        Args:
            hand: Landmark array of shape (21, 3), or None for no hand.
            gesture: Optional gesture name the live session classified.
            timestamp: Seconds from start; measured when omitted.
        """
        if not self._recording:
            return

        if timestamp is None:
            timestamp = time.monotonic() - self._start_time

        self._frames.append(RecordedFrame(
            timestamp=float(timestamp),
            hand=np.asarray(hand, dtype=np.float64).tolist() if hand is not None else None,
            gesture=gesture,
        ))

    def save(self, path: str | Path) -> Path:
        """Save recording to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "version": FORMAT_VERSION,
            "width": self.width,
            "height": self.height,
            "frame_count": len(self._frames),
            "duration": self.duration,
            "frames": [asdict(f) for f in self._frames],
        }

        with open(path, "w") as f:
            json.dump(data, f)
        logger.info("Saved %d frames to %s", len(self._frames), path)
        return path

    def save_compact(self, path: str | Path) -> Path:
        """Save in compact binary format (numpy npz) for smaller files."""
        path = Path(path).with_suffix(".npz")
        path.parent.mkdir(parents=True, exist_ok=True)

        n = len(self._frames)
        hands = np.zeros((n, NUM_LANDMARKS, LANDMARK_DIM), dtype=np.float32)
        present = np.zeros(n, dtype=bool)
        for i, f in enumerate(self._frames):
            if f.hand is not None:
                hands[i] = np.array(f.hand, dtype=np.float32)
                present[i] = True

        np.savez_compressed(
            path,
            timestamps=np.array([f.timestamp for f in self._frames], dtype=np.float64),
            hands=hands,
            hand_present=present,
            gestures=np.array([f.gesture or "" for f in self._frames], dtype=str),
            size=np.array([self.width, self.height], dtype=np.int32),
        )
        logger.info("Saved %d frames to %s", n, path)
        return path


class SessionPlayer:
    """Replays a recorded session.

    Usage:
        player = SessionPlayer.load("session.json")
        pipeline.ensure_surface(player.width, player.height)
        for frame in player.play():
            pipeline.process_landmarks(frame.hand, frame.timestamp * 1000)
    """

    def __init__(self, frames: list[RecordedFrame], width: int = 1280, height: int = 720):
        self._frames = frames
        self.width = width
        self.height = height

    @classmethod
    def load(cls, path: str | Path) -> SessionPlayer:
        """Load recording from a JSON or npz file."""
        path = Path(path)

        if path.suffix == ".npz":
            return cls._load_compact(path)

        with open(path) as f:
            data = json.load(f)

        version = data.get("version", FORMAT_VERSION)
        if version != FORMAT_VERSION:
            raise ValueError(f"Unsupported recording version {version} in {path}")

        frames = [
            RecordedFrame(
                timestamp=float(f["timestamp"]),
                hand=f.get("hand"),
                gesture=f.get("gesture"),
            )
            for f in data["frames"]
        ]
        return cls(frames, width=data.get("width", 1280), height=data.get("height", 720))

    @classmethod
    def _load_compact(cls, path: Path) -> SessionPlayer:
        data = np.load(path, allow_pickle=False)
        timestamps = data["timestamps"]
        hands = data["hands"]
        present = data["hand_present"]
        gestures = data["gestures"]
        width, height = (int(v) for v in data["size"])

        frames = [
            RecordedFrame(
                timestamp=float(timestamps[i]),
                hand=hands[i].tolist() if present[i] else None,
                gesture=str(gestures[i]) or None,
            )
            for i in range(len(timestamps))
        ]
        return cls(frames, width=width, height=height)

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        if not self._frames:
            return 0.0
        return self._frames[-1].timestamp

    def _to_numpy(self, frame: RecordedFrame) -> RecordedFrame:
        return RecordedFrame(
            timestamp=frame.timestamp,
            hand=np.array(frame.hand, dtype=np.float64) if frame.hand is not None else None,
            gesture=frame.gesture,
        )

    def play(self) -> Iterator[RecordedFrame]:
        """Iterate through all frames instantly (no timing)."""
        for frame in self._frames:
            yield self._to_numpy(frame)

    def play_realtime(self, speed: float = 1.0) -> Iterator[RecordedFrame]:
        """Replay at original timing (or scaled by speed factor)."""
        if not self._frames:
            return

        start = time.monotonic()

        for frame in self.play():
            target_time = frame.timestamp / speed
            elapsed = time.monotonic() - start
            if target_time > elapsed:
                time.sleep(target_time - elapsed)
            yield frame

    def get_frame(self, index: int) -> Optional[RecordedFrame]:
        if 0 <= index < len(self._frames):
            return self._to_numpy(self._frames[index])
        return None
