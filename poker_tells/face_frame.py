"""
Face landmark frames and the time-bounded buffer the tracker writes into.
"""

from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Sequence

import numpy as np


@dataclass
class FaceFrame:
    """Landmarks captured for one tracker frame."""

    timestamp: float  # seconds
    landmarks: np.ndarray  # flat [x1, y1, z1, x2, y2, z2, ...]

    def __post_init__(self) -> None:
        self.landmarks = np.asarray(self.landmarks, dtype=np.float64).ravel()
        if self.landmarks.size % 3 != 0:
            raise ValueError(
                f"Landmark array length must be a multiple of 3, got {self.landmarks.size}"
            )

    @property
    def landmark_count(self) -> int:
        """Number of (x, y, z) landmarks in the frame."""
        return self.landmarks.size // 3


class FaceFrameBuffer:
    """
    Append-only frame buffer with time-based eviction.

    The tracker appends frames in timestamp order; frames older than
    max_duration_seconds relative to the newest frame are dropped on append.
    Range queries return a new list, so callers never see a buffer that is
    being trimmed.
    """

    def __init__(self, max_duration_seconds: float = 3.0):
        if max_duration_seconds <= 0:
            raise ValueError("max_duration_seconds must be positive")
        self.max_duration_seconds = max_duration_seconds
        self._frames: Deque[FaceFrame] = deque()

    def add_frame(self, frame: FaceFrame) -> None:
        """Append a frame and evict frames outside the retention window."""
        self._frames.append(frame)
        while self._frames and frame.timestamp - self._frames[0].timestamp > self.max_duration_seconds:
            self._frames.popleft()

    def add_landmarks(self, timestamp: float, landmarks: Sequence[float]) -> FaceFrame:
        """Convenience wrapper building the FaceFrame from raw tracker output."""
        frame = FaceFrame(timestamp=timestamp, landmarks=np.array(landmarks, dtype=np.float64))
        self.add_frame(frame)
        return frame

    def frames_in_range(self, start_time: float, end_time: float) -> List[FaceFrame]:
        """
        Get frames with start_time <= timestamp <= end_time.

        Returns:
            Snapshot list of frames in chronological order.
        """
        return [f for f in tuple(self._frames) if start_time <= f.timestamp <= end_time]

    @property
    def latest_landmark_length(self) -> int:
        """Flat coordinate count of the newest frame, 0 when empty."""
        if not self._frames:
            return 0
        return self._frames[-1].landmarks.size

    @property
    def newest_timestamp(self) -> Optional[float]:
        if not self._frames:
            return None
        return self._frames[-1].timestamp

    def clear(self) -> None:
        self._frames.clear()

    def __len__(self) -> int:
        return len(self._frames)
