"""
Poker Tells - Behavioral tell learning for heads-up poker

Learns a human player's facial behavior patterns from face landmark
streams, labels them with the real hand strength at showdown, and lets an
opponent bias its play by what the player's face gives away.
"""

__version__ = "0.1.0"

# Cards and hands
from poker_tells.card import (
    Card,
    Suit,
    Rank,
    parse_cards,
)
from poker_tells.hand_evaluator import (
    HandRanking,
    HandStrength,
    calculate_hand_strength,
    compare_hands,
)
from poker_tells.game_state import (
    Stage,
    GameStateSnapshot,
)
# Face frames and features
from poker_tells.face_frame import (
    FaceFrame,
    FaceFrameBuffer,
)
from poker_tells.running_stats import StandardizationState
from poker_tells.feature_extractor import FeatureVectorExtractor
# Pattern learning
from poker_tells.pattern import (
    Pattern,
    PatternManager,
    MatchResult,
)
from poker_tells.tendency import PlayerTendency
from poker_tells.config import CoordinatorConfig
from poker_tells.events import (
    EventBus,
    GameEvent,
    GameEventKind,
    ObservationType,
)
from poker_tells.scheduler import Scheduler
from poker_tells.coordinator import BehavioralCoordinator
from poker_tells.opponent_policy import (
    OpponentPolicy,
    PlayerAction,
    Decision,
)
from poker_tells.decision_stats import DecisionStats

__all__ = [
    # Cards and hands
    "Card",
    "Suit",
    "Rank",
    "parse_cards",
    "HandRanking",
    "HandStrength",
    "calculate_hand_strength",
    "compare_hands",
    # Game state
    "Stage",
    "GameStateSnapshot",
    # Face frames and features
    "FaceFrame",
    "FaceFrameBuffer",
    "StandardizationState",
    "FeatureVectorExtractor",
    # Pattern learning
    "Pattern",
    "PatternManager",
    "MatchResult",
    "PlayerTendency",
    # Coordination
    "CoordinatorConfig",
    "EventBus",
    "GameEvent",
    "GameEventKind",
    "ObservationType",
    "Scheduler",
    "BehavioralCoordinator",
    # Opponent
    "OpponentPolicy",
    "PlayerAction",
    "Decision",
    "DecisionStats",
]
