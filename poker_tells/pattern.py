"""
Online nearest-centroid clustering of behavioral feature vectors.

Each Pattern is a cluster: a running-mean centroid, a sample count and
outcome tallies split by (strong/weak hand) x (aggressive/passive action).
PatternManager owns the clusters, assigns every new vector to the nearest
centroid within `threshold` or opens a new cluster for it.

Count convention: a cluster is created with count 0 and becomes 1 on its
first update, which makes update() the only place counts and tallies move.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

from .running_stats import RunningStats

logger = logging.getLogger(__name__)

# Relative tolerance when deciding whether a recalibrated threshold changed
THRESHOLD_TOLERANCE = 1e-9


@dataclass
class Pattern:
    """One behavioral cluster."""

    id: int
    centroid: np.ndarray
    count: int = 0
    successful_bluff_count: int = 0
    strong_aggressive_count: int = 0
    strong_passive_count: int = 0
    weak_aggressive_count: int = 0
    weak_passive_count: int = 0

    @property
    def total_outcomes(self) -> int:
        """Sum of the four outcome tallies."""
        return (
            self.strong_aggressive_count
            + self.strong_passive_count
            + self.weak_aggressive_count
            + self.weak_passive_count
        )

    def update_centroid(self, sample: np.ndarray) -> None:
        """Count the sample and move the centroid to the new running mean."""
        self.count += 1
        self.centroid += (np.asarray(sample, dtype=np.float64) - self.centroid) / self.count

    def record_outcome(self, is_strong_hand: bool, is_aggressive: bool, did_win: bool) -> None:
        if is_strong_hand:
            if is_aggressive:
                self.strong_aggressive_count += 1
            else:
                self.strong_passive_count += 1
        elif is_aggressive:
            self.weak_aggressive_count += 1
            if did_win:
                self.successful_bluff_count += 1
        else:
            self.weak_passive_count += 1

    def __str__(self) -> str:
        return (
            f"Pattern {self.id}: n={self.count} "
            f"SA={self.strong_aggressive_count} SP={self.strong_passive_count} "
            f"WA={self.weak_aggressive_count} WP={self.weak_passive_count} "
            f"bluffs={self.successful_bluff_count}"
        )


@dataclass
class MatchResult:
    """Outcome of PatternManager.find_or_create."""

    pattern: Pattern
    is_new: bool
    distance: float


def euclidean_distance(a: np.ndarray, b: np.ndarray) -> float:
    """Euclidean distance; vectors of different length are infinitely apart."""
    if a.shape != b.shape:
        return math.inf
    return float(np.linalg.norm(a - b))


class PatternManager:
    """Growing set of behavioral clusters with an optionally self-calibrating threshold."""

    def __init__(
        self,
        threshold: float = 55.0,
        auto_calibrate: bool = False,
        std_multiplier: float = 2.0,
        min_calibration_samples: int = 10,
    ):
        """
        Args:
            threshold: Maximum distance (exclusive) for a vector to join a cluster.
            auto_calibrate: Recompute the threshold from matched distances.
            std_multiplier: k in threshold = mean + k * stddev.
            min_calibration_samples: Matched distances needed before recalibrating.
        """
        if threshold <= 0:
            raise ValueError("threshold must be positive")
        self.threshold = threshold
        self.auto_calibrate = auto_calibrate
        self.std_multiplier = std_multiplier
        self.min_calibration_samples = min_calibration_samples

        self._patterns: List[Pattern] = []
        self._index: Dict[int, int] = {}
        self.next_id = 1

        self.matched_distance_stats = RunningStats()
        self.new_distance_stats = RunningStats()

    @property
    def patterns(self) -> List[Pattern]:
        """Clusters in creation order (read-only copy of the list)."""
        return list(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def __iter__(self) -> Iterator[Pattern]:
        return iter(tuple(self._patterns))

    def get(self, pattern_id: int) -> Optional[Pattern]:
        """Look up a cluster by id."""
        position = self._index.get(pattern_id)
        if position is None:
            return None
        return self._patterns[position]

    @property
    def feature_vector_length(self) -> int:
        """Centroid length of the stored clusters, 0 when empty."""
        if not self._patterns:
            return 0
        return self._patterns[0].centroid.size

    def _closest(self, vector: np.ndarray) -> Tuple[Optional[Pattern], float]:
        best: Optional[Pattern] = None
        best_distance = math.inf
        for pattern in self._patterns:
            distance = euclidean_distance(vector, pattern.centroid)
            if distance < best_distance:
                best_distance = distance
                best = pattern
        return best, best_distance

    def find_or_create(self, vector: np.ndarray) -> MatchResult:
        """
        Return the cluster within threshold of the vector, creating one if none is.

        A new cluster takes the vector as its centroid with count 0. Neither
        path updates counts or tallies; call update() for that.
        """
        vector = np.asarray(vector, dtype=np.float64)
        best, distance = self._closest(vector)

        if best is not None and distance < self.threshold:
            self.matched_distance_stats.add(distance)
            self._recalibrate()
            return MatchResult(pattern=best, is_new=False, distance=distance)

        if math.isfinite(distance):
            self.new_distance_stats.add(distance)

        pattern = Pattern(id=self.next_id, centroid=vector.copy())
        self.next_id += 1
        self._index[pattern.id] = len(self._patterns)
        self._patterns.append(pattern)
        return MatchResult(pattern=pattern, is_new=True, distance=distance)

    def try_get_closest_pattern(self, vector: np.ndarray) -> Optional[Tuple[Pattern, float]]:
        """Read-only nearest-cluster lookup; None when nothing is within threshold."""
        best, distance = self._closest(np.asarray(vector, dtype=np.float64))
        if best is None or distance >= self.threshold:
            return None
        return best, distance

    def update(
        self,
        pattern: Pattern,
        sample: np.ndarray,
        is_strong_hand: bool,
        is_aggressive: bool,
        did_win: bool,
    ) -> None:
        """Fold a labeled sample into a cluster's centroid and tallies."""
        pattern.update_centroid(sample)
        pattern.record_outcome(is_strong_hand, is_aggressive, did_win)

    def _recalibrate(self) -> None:
        if not self.auto_calibrate:
            return
        stats = self.matched_distance_stats
        if stats.count < self.min_calibration_samples:
            return

        candidate = stats.mean + self.std_multiplier * stats.stddev
        # A zero threshold would never match again
        if candidate <= 0 or not math.isfinite(candidate):
            return
        if math.isclose(candidate, self.threshold, rel_tol=THRESHOLD_TOLERANCE):
            return

        logger.debug("Pattern threshold recalibrated %.4f -> %.4f", self.threshold, candidate)
        self.threshold = candidate

    def replace_patterns(self, patterns: List[Pattern], next_id: Optional[int] = None) -> None:
        """Swap in a complete set of clusters (used when loading from disk)."""
        self._patterns = list(patterns)
        self._index = {p.id: i for i, p in enumerate(self._patterns)}
        highest = max((p.id for p in self._patterns), default=0)
        self.next_id = max(next_id or 0, highest + 1)

    def clear(self) -> None:
        self._patterns.clear()
        self._index.clear()
        self.next_id = 1
        self.matched_distance_stats.reset()
        self.new_distance_stats.reset()
