"""
Configuration for behavioral pattern learning.
"""

import json
import math
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Union

from .game_state import Stage
from .hand_evaluator import HandRanking


def _default_strong_thresholds() -> Dict[Stage, HandRanking]:
    return {
        Stage.PRE_FLOP: HandRanking.PAIR,
        Stage.FLOP: HandRanking.PAIR,
        Stage.TURN: HandRanking.TWO_PAIR,
        Stage.RIVER: HandRanking.TWO_PAIR,
    }


@dataclass
class CoordinatorConfig:
    """Tunables of the behavioral coordinator."""

    # Capture windows (seconds before/after the event)
    deal_pre_event_seconds: float = 0.1
    deal_post_event_seconds: float = 1.5
    action_pre_event_seconds: float = 1.5
    action_post_event_seconds: float = 0.25

    # Frame buffer retention
    buffer_seconds: float = 3.0

    # Feature extraction
    reference_landmark_index: int = 0

    # Pattern matching
    pattern_match_threshold: float = 55.0
    enable_auto_threshold_calibration: bool = False
    auto_threshold_std_multiplier: float = 2.0
    min_auto_calibration_samples: int = 10

    # Strong hand labeling; river threshold also covers showdown/round end
    strong_thresholds: Dict[Stage, HandRanking] = field(default_factory=_default_strong_thresholds)
    premium_pair_rank_threshold: int = 11  # Jacks or better

    # Confidence
    confident_sample_count: float = 10.0

    # Persistence
    pattern_file: Path = Path("face_pattern_memory.json")

    def strong_threshold_for(self, stage: Stage) -> HandRanking:
        """Minimum hand ranking considered strong at a stage."""
        if stage in self.strong_thresholds:
            return self.strong_thresholds[stage]
        return self.strong_thresholds.get(Stage.RIVER, HandRanking.TWO_PAIR)

    def capture_window(self, is_deal_event: bool) -> tuple[float, float]:
        """(pre, post) seconds for a dealing event or a player action."""
        if is_deal_event:
            return self.deal_pre_event_seconds, self.deal_post_event_seconds
        return self.action_pre_event_seconds, self.action_post_event_seconds

    def validate(self) -> None:
        """
        Check value ranges.

        Raises:
            ValueError: On the first invalid setting.
        """
        for name in (
            "deal_pre_event_seconds",
            "deal_post_event_seconds",
            "action_pre_event_seconds",
            "action_post_event_seconds",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")
        if self.buffer_seconds <= 0:
            raise ValueError("buffer_seconds must be positive")
        if self.reference_landmark_index < 0:
            raise ValueError("reference_landmark_index must not be negative")
        if self.pattern_match_threshold <= 0:
            raise ValueError("pattern_match_threshold must be positive")
        if self.min_auto_calibration_samples < 1:
            raise ValueError("min_auto_calibration_samples must be at least 1")
        if self.confident_sample_count <= 0:
            raise ValueError("confident_sample_count must be positive")
        if not 2 <= self.premium_pair_rank_threshold <= 14:
            raise ValueError("premium_pair_rank_threshold must be a rank between 2 and 14")


def config_to_dict(config: CoordinatorConfig) -> Dict[str, Any]:
    """Convert a CoordinatorConfig to a JSON-friendly dictionary."""
    d = asdict(config)
    d["strong_thresholds"] = {
        stage.name: ranking.name for stage, ranking in config.strong_thresholds.items()
    }
    d["pattern_file"] = str(config.pattern_file)
    return d


def _coerce(name: str, value: Any, kind: type) -> Any:
    """Convert a JSON value to the field's type, raising ValueError if it does not fit."""
    if kind is bool:
        if not isinstance(value, bool):
            raise ValueError(f"{name} must be true or false, got {value!r}")
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValueError(f"{name} must be a number, got {value!r}")
    if kind is int and value != int(value):
        raise ValueError(f"{name} must be a whole number, got {value!r}")
    return kind(value)


def config_from_dict(d: Dict[str, Any]) -> CoordinatorConfig:
    """
    Build a CoordinatorConfig from a dictionary; missing keys keep defaults.

    Raises:
        ValueError: On unknown keys, unknown stage/ranking names or invalid values.
    """
    known = {f.name for f in fields(CoordinatorConfig)}
    unknown = set(d) - known
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    values = dict(d)
    for f in fields(CoordinatorConfig):
        if f.name in values and f.type in (float, int, bool):
            values[f.name] = _coerce(f.name, values[f.name], f.type)

    if "strong_thresholds" in values:
        if not isinstance(values["strong_thresholds"], dict):
            raise ValueError("strong_thresholds must map stage names to hand rankings")
        thresholds = _default_strong_thresholds()
        try:
            for stage_name, ranking_name in values["strong_thresholds"].items():
                thresholds[Stage[stage_name]] = HandRanking[ranking_name]
        except (KeyError, TypeError) as e:
            raise ValueError(f"Unknown stage or hand ranking: {e}") from e
        values["strong_thresholds"] = thresholds
    if "pattern_file" in values:
        if not isinstance(values["pattern_file"], str):
            raise ValueError(f"pattern_file must be a path string, got {values['pattern_file']!r}")
        values["pattern_file"] = Path(values["pattern_file"])

    config = CoordinatorConfig(**values)
    config.validate()
    return config


def load_config(path: Union[str, Path]) -> CoordinatorConfig:
    """
    Load a CoordinatorConfig from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the content is invalid.
    """
    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Invalid config file {path}: expected a JSON object")
    return config_from_dict(data)
