"""
Behavioral coordinator: turns game events and face frames into learned tells.

Per round the coordinator moves through
    idle -> capturing (one window per event) -> pending resolution -> labeled/cleared.

Every tracked game event opens a capture window around the event time.
Dealing events look mostly after the event (reaction to new cards), player
actions mostly before it (the tell preceding the decision). When the window
has elapsed its frames are turned into a feature vector and kept as a
pending observation. At showdown every pending observation is labeled with
the ground truth from the hand evaluator and folded into the pattern store.
The opponent queries tendencies for the most recent observation of a given
(stage, event type).
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Tuple

import numpy as np

from .card import Card
from .config import CoordinatorConfig
from .events import EventBus, GameEvent, GameEventKind, ObservationType
from .face_frame import FaceFrameBuffer
from .feature_extractor import FeatureVectorExtractor, feature_vector_length
from .game_state import Stage, community_card_count, previous_stage
from .hand_evaluator import HandRanking, HandStrength, calculate_hand_strength, pair_rank
from .pattern import PatternManager
from .running_stats import StandardizationState
from .scheduler import ScheduledCall, Scheduler
from .serialization import PatternDatabaseError, load_pattern_database, save_pattern_database
from .tendency import PlayerTendency, compute_confidence

logger = logging.getLogger(__name__)

EARLY_STAGES = (Stage.PRE_FLOP, Stage.FLOP)


class TableView(Protocol):
    """What the coordinator reads from the game layer."""

    player_cards: Sequence[Card]
    community_cards: Sequence[Card]
    current_stage: Stage

    def is_player(self, winner: Optional[str]) -> bool:
        """True if the winner id refers to the human player."""
        ...


@dataclass
class Observation:
    """A captured behavioral sample waiting for the showdown."""

    observation_type: ObservationType
    timestamp: float
    feature_vector: np.ndarray
    stage: Stage


@dataclass
class ObservationContext:
    """Most recent feature vector seen for a (stage, event type)."""

    feature_vector: np.ndarray
    timestamp: float


@dataclass
class ObservationLabel:
    """Ground truth attached to an observation at showdown."""

    strength: HandStrength
    previous_strength: HandStrength
    is_strong_hand: bool
    is_aggressive: bool

    @property
    def improved(self) -> bool:
        return self.strength.ranking > self.previous_strength.ranking

    @property
    def was_bluff(self) -> bool:
        return self.is_aggressive and not self.is_strong_hand


class BehavioralCoordinator:
    """
    Orchestrates capture windows, showdown labeling and tendency queries.

    All methods run on the scheduler's single cooperative thread.
    """

    def __init__(
        self,
        table: TableView,
        frame_buffer: Optional[FaceFrameBuffer],
        scheduler: Scheduler,
        config: Optional[CoordinatorConfig] = None,
        pattern_manager: Optional[PatternManager] = None,
        standardization: Optional[StandardizationState] = None,
    ):
        """
        Initialize the coordinator.

        Args:
            table: Read access to cards and stage of the running game.
            frame_buffer: Buffer the face tracker writes into (None disables capture).
            scheduler: Cooperative scheduler that runs capture continuations.
            config: Tunables (defaults if not provided).
            pattern_manager: Existing pattern store; a fresh one is created if omitted.
            standardization: Running feature statistics for the session.
        """
        self.config = config or CoordinatorConfig()
        self.config.validate()

        self.table = table
        self.frame_buffer = frame_buffer
        self.scheduler = scheduler
        self.extractor = FeatureVectorExtractor(self.config.reference_landmark_index)
        self.patterns = pattern_manager or self._new_pattern_manager()
        self.standardization = standardization or StandardizationState()

        self._pending: List[Observation] = []
        self._recent: Dict[Tuple[Stage, ObservationType], ObservationContext] = {}
        self._windows: List[ScheduledCall] = []
        self._round = 0
        self._has_loaded_patterns = False
        self._bus: Optional[EventBus] = None
        self._on_showdown: Optional[Callable[[bool], None]] = None

        logger.info(
            "Pattern threshold set to %.4f (auto_calibrate=%s)",
            self.patterns.threshold,
            self.patterns.auto_calibrate,
        )

    def _new_pattern_manager(self) -> PatternManager:
        return PatternManager(
            threshold=self.config.pattern_match_threshold,
            auto_calibrate=self.config.enable_auto_threshold_calibration,
            std_multiplier=self.config.auto_threshold_std_multiplier,
            min_calibration_samples=self.config.min_auto_calibration_samples,
        )

    # --- Event wiring ---

    def attach(self, bus: EventBus) -> None:
        """Subscribe to every game event kind on a bus."""
        self.detach()
        for kind in GameEventKind:
            bus.subscribe(kind, self.handle_event)
        self._bus = bus

    def detach(self) -> None:
        """Unsubscribe from the bus attached with attach()."""
        if self._bus is None:
            return
        for kind in GameEventKind:
            self._bus.unsubscribe(kind, self.handle_event)
        self._bus = None

    def set_showdown_callback(self, callback: Callable[[bool], None]) -> None:
        """Set callback receiving whether the player was strong at showdown."""
        self._on_showdown = callback

    def handle_event(self, event: GameEvent) -> None:
        """Dispatch a game event."""
        if event.kind == GameEventKind.SHOWDOWN_WINNER_DETERMINED:
            self.resolve_showdown(event.winner)
        elif event.kind == GameEventKind.ROUND_ENDED:
            self.end_round(event.winner)
        elif event.observation_type is not None:
            self.capture_observation(event.observation_type)

    # --- Capture ---

    @property
    def pending_observations(self) -> Tuple[Observation, ...]:
        return tuple(self._pending)

    @property
    def recent_observations(self) -> Dict[Tuple[Stage, ObservationType], ObservationContext]:
        return dict(self._recent)

    @property
    def round_number(self) -> int:
        return self._round

    def stage_for(self, observation_type: ObservationType) -> Stage:
        """Dealing events name their stage; actions happen at the table's current stage."""
        return observation_type.deal_stage or self.table.current_stage

    def capture_observation(self, observation_type: ObservationType) -> Optional[ScheduledCall]:
        """
        Open a capture window for an event happening now.

        The frames are pulled once the post-event part of the window has
        elapsed on the scheduler; with no post-event time they are pulled
        immediately.

        Returns:
            The scheduled continuation, or None if it ran immediately or
            capture is unavailable.
        """
        if self.frame_buffer is None:
            logger.warning("Face frame buffer is not available; skipping %s", observation_type.name)
            return None

        event_time = self.scheduler.now
        pre_seconds, post_seconds = self.config.capture_window(observation_type.is_deal_event)
        start_time = event_time - pre_seconds
        end_time = event_time + post_seconds
        stage = self.stage_for(observation_type)
        round_id = self._round

        def complete() -> None:
            self._complete_capture(observation_type, event_time, start_time, end_time, stage, round_id)

        if post_seconds <= 0:
            complete()
            return None

        handle = self.scheduler.call_later(post_seconds, complete)
        self._windows.append(handle)
        return handle

    def _complete_capture(
        self,
        observation_type: ObservationType,
        event_time: float,
        start_time: float,
        end_time: float,
        stage: Stage,
        round_id: int,
    ) -> None:
        if round_id != self._round:
            logger.debug("Dropping %s window from finished round %d", observation_type.name, round_id)
            return

        frames = self.frame_buffer.frames_in_range(start_time, end_time)
        try:
            vector = self.extractor.extract(frames, self.standardization)
        except ValueError as e:
            logger.warning("Feature extraction failed for %s: %s", observation_type.name, e)
            return

        if vector is None:
            logger.debug(
                "Not enough frames for %s (%d in window); observation skipped",
                observation_type.name,
                len(frames),
            )
            return

        self._check_feature_length(vector.size)
        self._pending.append(
            Observation(
                observation_type=observation_type,
                timestamp=event_time,
                feature_vector=vector,
                stage=stage,
            )
        )
        self._recent[(stage, observation_type)] = ObservationContext(
            feature_vector=vector,
            timestamp=event_time,
        )

    def _check_feature_length(self, length: int) -> None:
        """Reset the pattern store if its centroids cannot be compared with live vectors."""
        stored = self.patterns.feature_vector_length
        if stored and stored != length:
            logger.warning(
                "Stored patterns have feature length %d but live vectors have %d; resetting pattern memory",
                stored,
                length,
            )
            self.patterns = self._new_pattern_manager()

    # --- Labeling ---

    def evaluate_hand_at_stage(self, stage: Stage) -> HandStrength:
        """Player's hand strength using only the community cards revealed by a stage."""
        count = community_card_count(stage)
        cards = list(self.table.player_cards) + list(self.table.community_cards)[:count]
        return calculate_hand_strength(cards)

    def is_strong_hand_at_stage(self, stage: Stage, strength: HandStrength) -> bool:
        """Strength meets the stage threshold, or is a premium pair pre-flop/flop."""
        if strength.ranking >= self.config.strong_threshold_for(stage):
            return True
        return self._is_premium_pair_at_early_stage(stage, strength)

    def _is_premium_pair_at_early_stage(self, stage: Stage, strength: HandStrength) -> bool:
        if stage not in EARLY_STAGES:
            return False
        return (
            strength.ranking == HandRanking.PAIR
            and pair_rank(strength) >= self.config.premium_pair_rank_threshold
        )

    def is_player_strong_for_stage(self, stage: Stage) -> bool:
        """Whether the player's current holding counts as strong at a stage."""
        return self.is_strong_hand_at_stage(stage, self.evaluate_hand_at_stage(stage))

    def label_observation(self, observation: Observation) -> ObservationLabel:
        """
        Attach ground truth to an observation.

        Aggressive means call or raise. Strong means the stage threshold is
        met, a premium pair early on, or an aggressive action right after the
        hand ranking went up versus the previous stage.
        """
        strength = self.evaluate_hand_at_stage(observation.stage)
        previous = self.evaluate_hand_at_stage(previous_stage(observation.stage))
        is_aggressive = observation.observation_type.is_aggressive
        improved = strength.ranking > previous.ranking

        is_strong = self.is_strong_hand_at_stage(observation.stage, strength) or (
            improved and is_aggressive
        )
        return ObservationLabel(
            strength=strength,
            previous_strength=previous,
            is_strong_hand=is_strong,
            is_aggressive=is_aggressive,
        )

    def resolve_showdown(self, winner: Optional[str]) -> int:
        """
        Label all pending observations and fold them into the pattern store.

        Args:
            winner: Id of the winner, None for a split or unknown result.

        Returns:
            Number of observations applied.
        """
        did_player_win = self.table.is_player(winner)

        applied = 0
        for observation in self._pending:
            self._check_feature_length(observation.feature_vector.size)
            label = self.label_observation(observation)
            result = self.patterns.find_or_create(observation.feature_vector)
            logger.debug(
                "Match distance=%.4f threshold=%.4f new=%s pattern_id=%d",
                result.distance,
                self.patterns.threshold,
                result.is_new,
                result.pattern.id,
            )
            self.patterns.update(
                result.pattern,
                observation.feature_vector,
                label.is_strong_hand,
                label.is_aggressive,
                did_player_win,
            )
            applied += 1

        logger.debug("Distinct patterns: %d", len(self.patterns))
        self._pending.clear()

        if self._on_showdown:
            self._on_showdown(self.is_player_strong_for_stage(self.table.current_stage))

        return applied

    def end_round(self, winner: Optional[str] = None) -> None:
        """
        Drop everything captured this round and persist the pattern store.

        In-flight windows are cancelled; anything not resolved by a showdown
        leaves the patterns untouched.
        """
        self._pending.clear()
        self._recent.clear()
        for handle in self._windows:
            self.scheduler.cancel(handle)
        self._windows.clear()
        self._round += 1

        self.save_patterns()

    # --- Queries ---

    def get_player_tendency(self, stage: Stage, action_type: ObservationType) -> PlayerTendency:
        """
        Tendency for the latest observation of (stage, action type).

        Returns:
            PlayerTendency.none() when nothing was observed or no cluster matches.
        """
        context = self._recent.get((stage, action_type))
        if context is None:
            return PlayerTendency.none()

        match = self.patterns.try_get_closest_pattern(context.feature_vector)
        if match is None:
            return PlayerTendency.none()

        pattern, distance = match
        confidence = compute_confidence(
            distance,
            self.patterns.threshold,
            pattern.count,
            self.config.confident_sample_count,
        )
        return PlayerTendency.from_pattern(pattern, confidence)

    # --- Persistence ---

    @property
    def pattern_file(self) -> Path:
        return Path(self.config.pattern_file)

    def expected_feature_vector_length(self) -> int:
        """Length the live extractor would produce now, 0 if unknown."""
        if self.frame_buffer is not None:
            coordinates = self.frame_buffer.latest_landmark_length
            if coordinates > 0:
                return feature_vector_length(coordinates)
        return self.patterns.feature_vector_length

    def save_patterns(self) -> bool:
        """
        Write the pattern store to the pattern file.

        Returns:
            True if written. I/O failures are logged and leave the in-memory
            store authoritative.
        """
        length = self.expected_feature_vector_length()
        if length <= 0:
            logger.warning("Skipped saving patterns because the feature vector length is unknown")
            return False

        path = self.pattern_file
        try:
            save_pattern_database(self.patterns, path, length)
        except PatternDatabaseError as e:
            logger.warning("Refused to save patterns to %s: %s", path, e)
            return False
        except OSError as e:
            logger.warning("Failed to save patterns to %s: %s", path, e)
            return False

        logger.info("Saved %d patterns to %s", len(self.patterns), path)
        return True

    def load_patterns(self) -> int:
        """
        Replace the pattern store with the saved one.

        Incompatible or unreadable files reset the store to empty.

        Returns:
            Number of patterns loaded.
        """
        path = self.pattern_file
        if not path.exists():
            self.patterns = self._new_pattern_manager()
            logger.info("No saved patterns found at %s", path)
            return 0

        manager = self._new_pattern_manager()
        try:
            count = load_pattern_database(path, manager, self.expected_feature_vector_length())
        except PatternDatabaseError as e:
            self.patterns = self._new_pattern_manager()
            logger.warning("Saved patterns were incompatible (%s); resetting pattern memory", e)
            return 0
        except OSError as e:
            self.patterns = self._new_pattern_manager()
            logger.warning("Failed to load patterns from %s: %s", path, e)
            return 0

        self.patterns = manager
        logger.info("Loaded %d patterns from %s", count, path)
        return count

    def load_existing_patterns(self, should_load: bool) -> int:
        """
        Answer the session-start prompt about reusing saved patterns.

        Only the first call has an effect.

        Returns:
            Number of patterns loaded.
        """
        if self._has_loaded_patterns:
            return 0
        self._has_loaded_patterns = True
        if should_load:
            return self.load_patterns()
        return 0
