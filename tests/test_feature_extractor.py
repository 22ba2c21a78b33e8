"""Tests for feature extractor module."""

import numpy as np
import pytest

from poker_tells.face_frame import FaceFrame
from poker_tells.feature_extractor import FeatureVectorExtractor, feature_vector_length
from poker_tells.running_stats import StandardizationState


@pytest.fixture
def moving_frames():
    """Five landmarks with one landmark moving over 10 frames."""
    rng = np.random.default_rng(7)
    base = rng.normal(size=(5, 3))
    frames = []
    for i in range(10):
        points = base.copy()
        points[3] += [0.05 * np.sin(i), 0.02 * i, 0.0]
        frames.append(FaceFrame(timestamp=i / 30.0, landmarks=points.reshape(-1)))
    return frames


def transform(frames, scale=1.0, offset=(0.0, 0.0, 0.0), time_scale=1.0):
    result = []
    for f in frames:
        points = f.landmarks.reshape(-1, 3) * scale + np.array(offset)
        result.append(FaceFrame(timestamp=f.timestamp * time_scale, landmarks=points.reshape(-1)))
    return result


class TestFeatureVectorLength:
    """Tests for feature_vector_length."""

    def test_length(self):
        """Test 3 * D + 1 entries for D coordinates."""
        assert feature_vector_length(15) == 46
        assert feature_vector_length(0) == 1


class TestFeatureVectorExtractor:
    """Tests for FeatureVectorExtractor."""

    def test_negative_reference(self):
        """Test negative reference index is rejected."""
        with pytest.raises(ValueError):
            FeatureVectorExtractor(reference_index=-1)

    def test_too_few_frames(self, moving_frames):
        """Test fewer than two frames give no vector."""
        extractor = FeatureVectorExtractor()
        assert extractor.extract([], StandardizationState()) is None
        assert extractor.extract(moving_frames[:1], StandardizationState()) is None

    def test_vector_length(self, moving_frames):
        """Test the vector has 3 * D + 1 entries."""
        vector = FeatureVectorExtractor().extract(moving_frames, StandardizationState())
        assert vector.shape == (feature_vector_length(15),)

    def test_first_vector_is_zero(self, moving_frames):
        """Test the first standardized vector of a session is all zero."""
        vector = FeatureVectorExtractor().extract(moving_frames, StandardizationState())
        np.testing.assert_array_equal(vector, np.zeros(46))

    def test_state_is_updated(self, moving_frames):
        """Test extraction feeds the standardization state."""
        state = StandardizationState()
        extractor = FeatureVectorExtractor()
        extractor.extract(moving_frames, state)
        extractor.extract(moving_frames, state)
        assert state.count == 2
        assert state.dimension == 46

    def test_repeated_window_standardizes_to_zero(self, moving_frames):
        """Test identical windows give zero z-scores."""
        state = StandardizationState()
        extractor = FeatureVectorExtractor()
        for _ in range(3):
            vector = extractor.extract(moving_frames, state)
        np.testing.assert_allclose(vector, 0.0)

    def test_translation_invariance(self, moving_frames):
        """Test shifting the whole face does not change features."""
        extractor = FeatureVectorExtractor()
        original = extractor.raw_features(moving_frames)
        shifted = extractor.raw_features(transform(moving_frames, offset=(3.0, -2.0, 1.0)))
        np.testing.assert_allclose(shifted, original, atol=1e-9)

    def test_scale_invariance(self, moving_frames):
        """Test moving closer to the camera does not change features."""
        extractor = FeatureVectorExtractor()
        original = extractor.raw_features(moving_frames)
        scaled = extractor.raw_features(transform(moving_frames, scale=2.5))
        np.testing.assert_allclose(scaled, original, atol=1e-9)

    def test_frame_rate_normalization(self, moving_frames):
        """Test deltas are per second, so slower playback halves the mean delta."""
        extractor = FeatureVectorExtractor()
        original = extractor.raw_features(moving_frames)
        slower = extractor.raw_features(transform(moving_frames, time_scale=2.0))
        np.testing.assert_allclose(slower[:15], original[:15] / 2.0, atol=1e-9)

    def test_static_face_has_no_motion(self, moving_frames):
        """Test a still face gives all-zero raw features."""
        still = [FaceFrame(f.timestamp, moving_frames[0].landmarks) for f in moving_frames]
        raw = FeatureVectorExtractor().raw_features(still)
        np.testing.assert_allclose(raw, 0.0)

    def test_motion_energy(self, moving_frames):
        """Test the last entry is the sum of squared deltas."""
        raw = FeatureVectorExtractor().raw_features(moving_frames)
        assert raw[-1] > 0.0

    def test_inconsistent_frames_are_dropped(self, moving_frames):
        """Test frames with another landmark count are ignored."""
        odd = FaceFrame(timestamp=0.5, landmarks=np.zeros(6))
        extractor = FeatureVectorExtractor()
        vector = extractor.extract(moving_frames + [odd], StandardizationState())
        assert vector.shape == (46,)

    def test_only_one_consistent_frame(self, moving_frames):
        """Test no vector when filtering leaves a single frame."""
        odd = FaceFrame(timestamp=0.5, landmarks=np.zeros(6))
        extractor = FeatureVectorExtractor()
        assert extractor.extract([moving_frames[0], odd], StandardizationState()) is None

    def test_reference_out_of_range(self, moving_frames):
        """Test a reference landmark beyond the frames is an error."""
        extractor = FeatureVectorExtractor(reference_index=5)
        with pytest.raises(ValueError):
            extractor.extract(moving_frames, StandardizationState())

    def test_zero_elapsed_time(self):
        """Test duplicate timestamps do not divide by zero."""
        frames = [
            FaceFrame(timestamp=1.0, landmarks=[0, 0, 0, 1, 0, 0]),
            FaceFrame(timestamp=1.0, landmarks=[0, 0, 0, 0, 1, 0]),
        ]
        raw = FeatureVectorExtractor().raw_features(frames)
        assert np.all(np.isfinite(raw))
