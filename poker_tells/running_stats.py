"""
Online mean/variance accumulators (Welford's algorithm).
"""

import math
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

# Standard deviations below this are treated as zero
MIN_STDDEV = 1e-9


@dataclass
class RunningStats:
    """Running mean and sample variance of a scalar stream."""

    count: int = 0
    mean: float = 0.0
    m2: float = 0.0

    def add(self, value: float) -> None:
        self.count += 1
        delta = value - self.mean
        self.mean += delta / self.count
        self.m2 += delta * (value - self.mean)

    @property
    def variance(self) -> float:
        """Sample variance, 0 with fewer than two samples."""
        if self.count < 2:
            return 0.0
        return self.m2 / (self.count - 1)

    @property
    def stddev(self) -> float:
        return math.sqrt(self.variance)

    def reset(self) -> None:
        self.count = 0
        self.mean = 0.0
        self.m2 = 0.0


@dataclass
class StandardizationState:
    """
    Per-dimension running statistics for feature standardization.

    The state lives as long as the caller keeps it (normally one play
    session) and is passed explicitly to every extraction, so tests can
    start from a fresh or seeded accumulator.
    """

    count: int = 0
    mean: Optional[np.ndarray] = None
    m2: Optional[np.ndarray] = field(default=None, repr=False)

    @property
    def dimension(self) -> int:
        return 0 if self.mean is None else self.mean.size

    def update(self, vector: np.ndarray) -> None:
        """Fold one sample into the accumulator. A new dimension starts over."""
        vector = np.asarray(vector, dtype=np.float64)
        if self.mean is None or self.mean.size != vector.size:
            self.count = 0
            self.mean = np.zeros(vector.size)
            self.m2 = np.zeros(vector.size)

        self.count += 1
        delta = vector - self.mean
        self.mean += delta / self.count
        self.m2 += delta * (vector - self.mean)

    @property
    def stddev(self) -> np.ndarray:
        if self.mean is None:
            return np.zeros(0)
        if self.count < 2:
            return np.zeros(self.mean.size)
        return np.sqrt(self.m2 / (self.count - 1))

    def z_scores(self, vector: np.ndarray) -> np.ndarray:
        """Z-scores against the current statistics without updating them."""
        vector = np.asarray(vector, dtype=np.float64)
        if self.count < 2 or self.mean is None or self.mean.size != vector.size:
            return np.zeros(vector.size)

        std = self.stddev
        result = np.zeros(vector.size)
        usable = std > MIN_STDDEV
        result[usable] = (vector[usable] - self.mean[usable]) / std[usable]
        return result

    def standardize(self, vector: np.ndarray) -> np.ndarray:
        """Update the statistics with a sample, then return its z-scores."""
        self.update(vector)
        return self.z_scores(vector)

    def copy(self) -> "StandardizationState":
        return StandardizationState(
            count=self.count,
            mean=None if self.mean is None else self.mean.copy(),
            m2=None if self.m2 is None else self.m2.copy(),
        )

    def reset(self) -> None:
        self.count = 0
        self.mean = None
        self.m2 = None
