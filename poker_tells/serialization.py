"""
Serialization of the pattern database.

The file is versioned JSON:

    {
      "version": 1,
      "featureVectorLength": 301,
      "nextId": 7,
      "patterns": [
        {"id": 1, "centroid": [...], "count": 4, "successfulBluffCount": 1,
         "strongAggressiveCount": 1, "strongPassiveCount": 0,
         "weakAggressiveCount": 2, "weakPassiveCount": 1},
        ...
      ]
    }

Loading is all-or-nothing: any version, length or field problem raises
PatternDatabaseError and nothing is applied.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np

from .pattern import Pattern, PatternManager

PATTERN_DATABASE_VERSION = 1

_COUNT_FIELDS = {
    "count": "count",
    "successfulBluffCount": "successful_bluff_count",
    "strongAggressiveCount": "strong_aggressive_count",
    "strongPassiveCount": "strong_passive_count",
    "weakAggressiveCount": "weak_aggressive_count",
    "weakPassiveCount": "weak_passive_count",
}


class PatternDatabaseError(ValueError):
    """A stored pattern database is unreadable or incompatible."""


# --- Pattern Serialization ---

def pattern_to_dict(pattern: Pattern) -> Dict[str, Any]:
    """Convert a Pattern to a dictionary."""
    d: Dict[str, Any] = {
        "id": pattern.id,
        "centroid": [float(v) for v in pattern.centroid],
    }
    for key, attr in _COUNT_FIELDS.items():
        d[key] = getattr(pattern, attr)
    return d


def pattern_from_dict(d: Dict[str, Any]) -> Pattern:
    """Convert a dictionary to a Pattern."""
    try:
        pattern = Pattern(
            id=int(d["id"]),
            centroid=np.array(d["centroid"], dtype=np.float64),
        )
        for key, attr in _COUNT_FIELDS.items():
            setattr(pattern, attr, int(d.get(key, 0)))
    except (KeyError, TypeError, ValueError) as e:
        raise PatternDatabaseError(f"Invalid pattern entry: {e}") from e

    if pattern.centroid.ndim != 1:
        raise PatternDatabaseError(f"Pattern {pattern.id} centroid is not a flat list")
    return pattern


# --- Database Serialization ---

def pattern_database_to_dict(manager: PatternManager, feature_vector_length: int) -> Dict[str, Any]:
    """
    Convert a PatternManager's clusters to the on-disk dictionary.

    Raises:
        PatternDatabaseError: If a centroid does not have the declared length.
    """
    for pattern in manager:
        if pattern.centroid.size != feature_vector_length:
            raise PatternDatabaseError(
                f"Pattern {pattern.id} has centroid length {pattern.centroid.size}, "
                f"expected {feature_vector_length}"
            )
    return {
        "version": PATTERN_DATABASE_VERSION,
        "featureVectorLength": feature_vector_length,
        "nextId": manager.next_id,
        "patterns": [pattern_to_dict(p) for p in manager],
    }


def patterns_from_database_dict(
    data: Dict[str, Any],
    expected_length: Optional[int] = None,
) -> List[Pattern]:
    """
    Validate a database dictionary and build its patterns.

    Args:
        data: Parsed JSON content.
        expected_length: Feature vector length the live extractor produces,
            or None/0 when not yet known.

    Raises:
        PatternDatabaseError: On version, length or content mismatch.
    """
    if not isinstance(data, dict):
        raise PatternDatabaseError("Pattern database must be a JSON object")

    version = data.get("version")
    if version != PATTERN_DATABASE_VERSION:
        raise PatternDatabaseError(
            f"Unsupported pattern database version: expected {PATTERN_DATABASE_VERSION}, got {version!r}"
        )

    length = data.get("featureVectorLength")
    if not isinstance(length, int) or length <= 0:
        raise PatternDatabaseError(f"Invalid featureVectorLength: {length!r}")
    if expected_length and expected_length != length:
        raise PatternDatabaseError(
            f"Feature vector length mismatch: expected {expected_length}, got {length}"
        )

    entries = data.get("patterns", [])
    if not isinstance(entries, list):
        raise PatternDatabaseError(f"patterns must be a list, got {type(entries).__name__}")

    patterns = [pattern_from_dict(p) for p in entries]
    for pattern in patterns:
        if pattern.centroid.size != length:
            raise PatternDatabaseError(
                f"Pattern {pattern.id} has centroid length {pattern.centroid.size}, expected {length}"
            )

    ids = [p.id for p in patterns]
    if len(ids) != len(set(ids)):
        raise PatternDatabaseError("Duplicate pattern ids")

    return patterns


# --- File I/O ---

def _read_json(path: Union[str, Path]) -> Any:
    with open(path, encoding="utf-8") as f:
        try:
            return json.load(f)
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError
            raise PatternDatabaseError(f"Invalid JSON: {e}") from e


def save_pattern_database(
    manager: PatternManager,
    path: Union[str, Path],
    feature_vector_length: int,
) -> None:
    """
    Save all clusters to a JSON file.

    Raises:
        OSError: If the file cannot be written.
        PatternDatabaseError: If a centroid does not have the declared length.
    """
    data = pattern_database_to_dict(manager, feature_vector_length)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def load_pattern_database(
    path: Union[str, Path],
    manager: PatternManager,
    expected_length: Optional[int] = None,
) -> int:
    """
    Replace the manager's clusters with the ones stored in a JSON file.

    Returns:
        Number of patterns loaded.

    Raises:
        OSError: If the file cannot be read.
        PatternDatabaseError: If the content is invalid or incompatible.
    """
    data = _read_json(path)
    patterns = patterns_from_database_dict(data, expected_length)
    next_id = data.get("nextId")
    manager.replace_patterns(patterns, next_id if isinstance(next_id, int) else None)
    return len(patterns)


def read_pattern_database(path: Union[str, Path]) -> tuple[int, List[Pattern]]:
    """Read a database file without a manager; returns (feature length, patterns)."""
    data = _read_json(path)
    patterns = patterns_from_database_dict(data)
    return data["featureVectorLength"], patterns
