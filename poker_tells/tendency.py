"""
Player tendency inferred from a matched behavioral cluster.
"""

from dataclasses import dataclass

from .pattern import Pattern

# Floor for the distance normalizer so a degenerate threshold cannot divide by zero
MIN_THRESHOLD = 1e-4


def clamp01(value: float) -> float:
    return min(1.0, max(0.0, value))


def compute_confidence(
    distance: float,
    threshold: float,
    sample_count: int,
    confident_sample_count: float,
) -> float:
    """
    Blend match closeness and cluster maturity into a confidence in [0, 1].

    distance factor = 1 - clamp01(distance / threshold): 1 on the centroid,
    0 at the threshold. sample factor = clamp01(count / confident_sample_count).
    Both weigh 0.5.
    """
    distance_factor = 1.0 - clamp01(distance / max(threshold, MIN_THRESHOLD))
    if confident_sample_count > 0:
        sample_factor = clamp01(sample_count / confident_sample_count)
    else:
        sample_factor = 1.0
    return clamp01(0.5 * distance_factor + 0.5 * sample_factor)


@dataclass(frozen=True)
class PlayerTendency:
    """What a behavioral signature says about the player's hand."""

    bluff_probability: float = 0.0
    strong_probability: float = 0.0
    weak_probability: float = 0.0
    confidence: float = 0.0
    sample_count: int = 0

    @property
    def has_data(self) -> bool:
        return self.sample_count > 0

    @property
    def inference_label(self) -> str:
        """'none' without data, otherwise 'weak' or 'strong' (ties read as weak)."""
        if not self.has_data:
            return "none"
        return "weak" if self.weak_probability >= self.strong_probability else "strong"

    @classmethod
    def none(cls) -> "PlayerTendency":
        return cls()

    @classmethod
    def from_pattern(cls, pattern: Pattern, confidence: float) -> "PlayerTendency":
        """
        Convert a cluster's outcome tallies into probabilities.

        A cluster without tallies yields zero probabilities but keeps its
        sample count and the given confidence.
        """
        total = pattern.total_outcomes
        if total <= 0:
            return cls(confidence=confidence, sample_count=pattern.count)

        return cls(
            bluff_probability=pattern.weak_aggressive_count / total,
            strong_probability=(pattern.strong_aggressive_count + pattern.strong_passive_count) / total,
            weak_probability=(pattern.weak_aggressive_count + pattern.weak_passive_count) / total,
            confidence=confidence,
            sample_count=pattern.count,
        )

    def __str__(self) -> str:
        if not self.has_data:
            return "No tendency"
        return (
            f"bluff={self.bluff_probability:.2f} strong={self.strong_probability:.2f} "
            f"weak={self.weak_probability:.2f} confidence={self.confidence:.2f} "
            f"(n={self.sample_count})"
        )
