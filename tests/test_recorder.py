"""Tests for session recording and replay."""

import json

import numpy as np
import pytest

from aetherdraw.recorder import FORMAT_VERSION, RecordedFrame, SessionPlayer, SessionRecorder


def make_hand():
    return np.random.rand(21, 3).astype(np.float32)


def record(frames, width=640, height=480):
    rec = SessionRecorder(width=width, height=height)
    rec.start()
    for i, (hand, gesture) in enumerate(frames):
        rec.add_frame(hand, gesture, timestamp=i / 30.0)
    rec.stop()
    return rec


class TestRecorder:
    def test_record_and_count(self):
        rec = SessionRecorder()
        rec.start()
        for _ in range(10):
            rec.add_frame(make_hand())
        assert rec.is_recording
        assert rec.stop() == 10
        assert not rec.is_recording

    def test_not_recording_ignores_frames(self):
        rec = SessionRecorder()
        rec.add_frame(make_hand())
        assert rec.frame_count == 0

    def test_start_discards_previous_session(self):
        rec = record([(make_hand(), None)] * 3)
        rec.start()
        assert rec.frame_count == 0

    def test_measured_timestamps_increase(self):
        rec = SessionRecorder()
        rec.start()
        rec.add_frame(make_hand())
        rec.add_frame(None)
        rec.stop()
        assert 0.0 <= rec._frames[0].timestamp <= rec._frames[1].timestamp

    def test_duration(self):
        rec = record([(make_hand(), None)] * 4)
        assert rec.duration == pytest.approx(0.1)
        assert SessionRecorder().duration == 0.0

    def test_json_layout(self, tmp_path):
        rec = record([(make_hand(), "DRAW"), (None, "IDLE")])
        path = rec.save(tmp_path / "nested" / "session.json")

        data = json.loads(path.read_text())
        assert data["version"] == FORMAT_VERSION
        assert (data["width"], data["height"]) == (640, 480)
        assert data["frame_count"] == 2
        assert len(data["frames"][0]["hand"]) == 21
        assert data["frames"][1]["hand"] is None
        assert data["frames"][1]["gesture"] == "IDLE"


class TestPlayer:
    def test_json_replay(self, tmp_path):
        hand = make_hand()
        rec = record([(hand, "DRAW"), (None, None)], width=320, height=240)
        player = SessionPlayer.load(rec.save(tmp_path / "s.json"))

        assert player.frame_count == 2
        assert (player.width, player.height) == (320, 240)
        frames = list(player.play())
        assert isinstance(frames[0].hand, np.ndarray)
        np.testing.assert_allclose(frames[0].hand, hand)
        assert frames[0].gesture == "DRAW"
        assert frames[1].hand is None

    def test_npz_replay(self, tmp_path):
        hand = make_hand()
        rec = record([(hand, "DRAW"), (None, None), (hand, "HOVER")], width=800, height=600)
        path = rec.save_compact(tmp_path / "s.bin")

        assert path.suffix == ".npz"
        player = SessionPlayer.load(path)
        assert player.frame_count == 3
        assert (player.width, player.height) == (800, 600)
        frames = list(player.play())
        np.testing.assert_allclose(frames[2].hand, hand)
        assert frames[1].hand is None
        assert frames[1].gesture is None
        assert frames[2].gesture == "HOVER"
        assert player.duration == pytest.approx(2 / 30.0)

    def test_unsupported_version(self, tmp_path):
        path = tmp_path / "old.json"
        path.write_text(json.dumps({"version": 99, "frames": []}))
        with pytest.raises(ValueError):
            SessionPlayer.load(path)

    def test_get_frame(self):
        player = SessionPlayer([RecordedFrame(0.0, make_hand().tolist()), RecordedFrame(0.1, None)])
        assert player.get_frame(0).hand.shape == (21, 3)
        assert player.get_frame(1).hand is None
        assert player.get_frame(2) is None
        assert player.get_frame(-1) is None

    def test_realtime_playback(self):
        frames = [RecordedFrame(i * 0.01, None) for i in range(3)]
        player = SessionPlayer(frames)
        assert len(list(player.play_realtime(speed=10.0))) == 3

    def test_empty_player(self):
        player = SessionPlayer([])
        assert player.duration == 0.0
        assert list(player.play_realtime()) == []
