"""
Feature vector extraction from a window of face landmark frames.

Pipeline, in order:
1. Align: subtract the reference landmark from every landmark (translation).
2. Scale: divide by the RMS landmark distance from the reference (camera distance).
3. Delta: per-coordinate difference between consecutive frames divided by
   the elapsed time (frame rate).
4. Aggregate: [mean | variance | max abs | motion energy] over all deltas.
5. Standardize: z-score every dimension against a running StandardizationState.

For D flattened coordinates the vector has 3 * D + 1 entries.
"""

from typing import List, Optional, Sequence

import numpy as np

from .face_frame import FaceFrame
from .running_stats import StandardizationState

# Scales and time steps below this are not divided by
MIN_SCALE = 1e-6


def feature_vector_length(coordinate_count: int) -> int:
    """Length of the feature vector for frames with this many flat coordinates."""
    return coordinate_count * 3 + 1


class FeatureVectorExtractor:
    """Turns a capture window of FaceFrames into one comparable feature vector."""

    def __init__(self, reference_index: int = 0):
        """
        Args:
            reference_index: Landmark index (not coordinate offset) of the
                point all other landmarks are measured from.
        """
        if reference_index < 0:
            raise ValueError("reference_index must be non-negative")
        self.reference_index = reference_index

    def extract(
        self,
        frames: Sequence[FaceFrame],
        state: StandardizationState,
    ) -> Optional[np.ndarray]:
        """
        Extract a standardized feature vector from chronologically ordered frames.

        Frames whose landmark length differs from the first frame are ignored.

        Args:
            frames: Frames of one capture window.
            state: Running statistics to standardize against; updated in place.

        Returns:
            The feature vector, or None if fewer than 2 usable frames exist.

        Raises:
            ValueError: If the reference landmark is outside the frames.
        """
        usable = self._consistent_frames(frames)
        if len(usable) < 2:
            return None

        raw = self.raw_features(usable)
        return state.standardize(raw)

    def raw_features(self, frames: Sequence[FaceFrame]) -> np.ndarray:
        """Steps 1-4 of the pipeline (no standardization)."""
        landmark_count = frames[0].landmark_count
        if self.reference_index >= landmark_count:
            raise ValueError(
                f"Reference landmark {self.reference_index} out of range "
                f"for frames with {landmark_count} landmarks"
            )
        points = np.stack([f.landmarks.reshape(-1, 3) for f in frames])

        normalized = self._scale_normalize(self._align(points))
        timestamps = np.array([f.timestamp for f in frames], dtype=np.float64)
        deltas = self._temporal_deltas(normalized.reshape(len(frames), -1), timestamps)
        return self._aggregate(deltas)

    def _consistent_frames(self, frames: Sequence[FaceFrame]) -> List[FaceFrame]:
        if not frames:
            return []
        size = frames[0].landmarks.size
        return [f for f in frames if f.landmarks.size == size]

    def _align(self, points: np.ndarray) -> np.ndarray:
        """points: (frames, landmarks, 3)."""
        reference = points[:, self.reference_index:self.reference_index + 1, :]
        return points - reference

    def _scale_normalize(self, aligned: np.ndarray) -> np.ndarray:
        # RMS distance from the reference landmark, per frame
        scales = np.sqrt(np.mean(np.sum(aligned ** 2, axis=2), axis=1))
        result = aligned.copy()
        for i, scale in enumerate(scales):
            if scale > MIN_SCALE:
                result[i] /= scale
        return result

    def _temporal_deltas(self, flat: np.ndarray, timestamps: np.ndarray) -> np.ndarray:
        diffs = np.diff(flat, axis=0)
        elapsed = np.diff(timestamps)
        elapsed = np.where(elapsed > 0, elapsed, 1.0)
        return diffs / elapsed[:, np.newaxis]

    def _aggregate(self, deltas: np.ndarray) -> np.ndarray:
        mean = deltas.mean(axis=0)
        variance = deltas.var(axis=0)
        max_abs = np.abs(deltas).max(axis=0)
        motion_energy = float(np.sum(deltas ** 2))
        return np.concatenate([mean, variance, max_abs, [motion_energy]])
