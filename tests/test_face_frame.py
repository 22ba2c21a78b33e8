"""Tests for face frame module."""

import numpy as np
import pytest

from poker_tells.face_frame import FaceFrame, FaceFrameBuffer


def landmarks(count=3, value=0.0):
    return [value] * (count * 3)


class TestFaceFrame:
    """Tests for FaceFrame dataclass."""

    def test_landmarks_flattened(self):
        """Test nested landmark arrays are flattened to float64."""
        frame = FaceFrame(timestamp=1.0, landmarks=[[0, 1, 2], [3, 4, 5]])
        assert frame.landmarks.shape == (6,)
        assert frame.landmarks.dtype == np.float64
        assert frame.landmark_count == 2

    def test_invalid_length(self):
        """Test landmark length must be a multiple of 3."""
        with pytest.raises(ValueError):
            FaceFrame(timestamp=0.0, landmarks=[1.0, 2.0])


class TestFaceFrameBuffer:
    """Tests for FaceFrameBuffer."""

    def test_invalid_duration(self):
        """Test retention must be positive."""
        with pytest.raises(ValueError):
            FaceFrameBuffer(max_duration_seconds=0)

    def test_eviction(self):
        """Test frames older than the retention window are dropped."""
        buffer = FaceFrameBuffer(max_duration_seconds=1.0)
        for t in [0.0, 0.5, 1.0, 1.5, 2.0]:
            buffer.add_landmarks(t, landmarks())
        timestamps = [f.timestamp for f in buffer.frames_in_range(-10, 10)]
        assert timestamps == [1.0, 1.5, 2.0]
        assert len(buffer) == 3

    def test_range_is_inclusive(self):
        """Test both range ends are included."""
        buffer = FaceFrameBuffer()
        for t in [0.0, 0.1, 0.2, 0.3]:
            buffer.add_landmarks(t, landmarks())
        frames = buffer.frames_in_range(0.1, 0.2)
        assert [f.timestamp for f in frames] == [0.1, 0.2]

    def test_range_is_snapshot(self):
        """Test later appends do not change a returned range."""
        buffer = FaceFrameBuffer()
        buffer.add_landmarks(0.0, landmarks())
        frames = buffer.frames_in_range(0.0, 10.0)
        buffer.add_landmarks(1.0, landmarks())
        assert len(frames) == 1

    def test_empty_range(self):
        """Test a range with no frames gives an empty list."""
        buffer = FaceFrameBuffer()
        buffer.add_landmarks(0.0, landmarks())
        assert buffer.frames_in_range(5.0, 6.0) == []

    def test_latest_landmark_length(self):
        """Test flat coordinate count of the newest frame."""
        buffer = FaceFrameBuffer()
        assert buffer.latest_landmark_length == 0
        assert buffer.newest_timestamp is None
        buffer.add_landmarks(0.0, landmarks(count=2))
        buffer.add_landmarks(0.1, landmarks(count=5))
        assert buffer.latest_landmark_length == 15
        assert buffer.newest_timestamp == 0.1

    def test_clear(self):
        """Test clearing the buffer."""
        buffer = FaceFrameBuffer()
        buffer.add_landmarks(0.0, landmarks())
        buffer.clear()
        assert len(buffer) == 0
