"""
Heads-up session simulator.

Plays rounds between a scripted player and the OpponentPolicy while a
synthetic face source streams landmark frames into the coordinator's buffer.
The synthetic player shows a different motion signature when holding a
strong hand or bluffing, so the pattern store has real structure to learn.

Everything runs on virtual time: frames are emitted and the scheduler is
ticked at a fixed frame step, so sessions are fast and reproducible for a
given seed.
"""

import logging
import math
import random
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Union

import numpy as np

from .card import FULL_DECK, Card
from .config import CoordinatorConfig
from .coordinator import BehavioralCoordinator
from .decision_stats import DecisionStats
from .events import EventBus, GameEvent, GameEventKind
from .face_frame import FaceFrame, FaceFrameBuffer
from .game_state import GameStateSnapshot, Stage, stage_from_community_cards
from .hand_evaluator import calculate_hand_strength
from .opponent_policy import OpponentPolicy, PlayerAction
from .scheduler import Scheduler

logger = logging.getLogger(__name__)

# Either the random module or a Random instance
RNG = Union[random.Random, type(random)]

PLAYER_ID = "player"
OPPONENT_ID = "opponent"

FRAME_RATE = 30.0
DEFAULT_LANDMARK_COUNT = 24
STARTING_CHIPS = 1000
BIG_BLIND = 20

# Extra time played past a capture window so its continuation has run
WINDOW_MARGIN = 0.1

TELL_NEUTRAL = "neutral"
TELL_STRONG = "strong"
TELL_BLUFF = "bluff"

# amplitude, frequency (Hz) of each tell's motion
TELL_MOTION = {
    TELL_NEUTRAL: (0.004, 0.5),
    TELL_STRONG: (0.03, 1.5),
    TELL_BLUFF: (0.06, 4.0),
}

_NEXT_STREET = {
    Stage.PRE_FLOP: (3, GameEventKind.FLOP_DEALT),
    Stage.FLOP: (1, GameEventKind.TURN_DEALT),
    Stage.TURN: (1, GameEventKind.RIVER_DEALT),
}


class SyntheticFaceSource:
    """
    Generates face landmark frames with a selectable motion signature.

    Landmark 0 stays at the origin of the face so it works as the
    extractor's reference point. The whole head drifts slowly and every
    frame carries Gaussian noise.
    """

    def __init__(
        self,
        landmark_count: int = DEFAULT_LANDMARK_COUNT,
        rng: Optional[np.random.Generator] = None,
        noise: float = 0.002,
    ):
        if landmark_count < 2:
            raise ValueError("landmark_count must be at least 2")
        self.rng = rng if rng is not None else np.random.default_rng()
        self.landmark_count = landmark_count
        self.noise = noise
        self.tell = TELL_NEUTRAL

        self._base = self.rng.uniform(-0.5, 0.5, size=(landmark_count, 3))
        self._base[0] = 0.0
        self._directions: Dict[str, np.ndarray] = {}
        for tell in TELL_MOTION:
            direction = self.rng.normal(size=(landmark_count, 3))
            direction[0] = 0.0
            direction /= np.sqrt(np.mean(direction ** 2))
            self._directions[tell] = direction

    def set_tell(self, tell: str) -> None:
        if tell not in TELL_MOTION:
            raise ValueError(f"Unknown tell: {tell}")
        self.tell = tell

    def landmarks_at(self, timestamp: float) -> np.ndarray:
        """Flat [x0, y0, z0, x1, ...] landmarks for a point in time."""
        amplitude, frequency = TELL_MOTION[self.tell]
        motion = amplitude * math.sin(2 * math.pi * frequency * timestamp) * self._directions[self.tell]
        drift = 0.05 * math.sin(0.3 * timestamp)
        points = self._base + motion + drift
        points = points + self.rng.normal(0.0, self.noise, size=points.shape)
        return points.reshape(-1)

    def emit(self, buffer: FaceFrameBuffer, timestamp: float) -> FaceFrame:
        return buffer.add_landmarks(timestamp, self.landmarks_at(timestamp))


class HeadsUpTable:
    """Cards, chips and stage of a heads-up game between player and opponent."""

    def __init__(self, rng: RNG = random, starting_chips: int = STARTING_CHIPS):
        self.rng = rng
        self.starting_chips = starting_chips
        self.player_cards: List[Card] = []
        self.opponent_cards: List[Card] = []
        self.community_cards: List[Card] = []
        self.current_stage = Stage.PRE_FLOP
        self.player_chips = starting_chips
        self.opponent_chips = starting_chips
        self.player_pot = 0
        self.opponent_pot = 0
        self._deck: List[Card] = []

    def is_player(self, winner: Optional[str]) -> bool:
        return winner == PLAYER_ID

    def new_round(self) -> None:
        """Shuffle, deal hole cards and post blinds."""
        self._deck = list(FULL_DECK)
        self.rng.shuffle(self._deck)
        self.player_cards = [self._draw(), self._draw()]
        self.opponent_cards = [self._draw(), self._draw()]
        self.community_cards = []
        self.current_stage = Stage.PRE_FLOP

        if self.player_chips < BIG_BLIND or self.opponent_chips < BIG_BLIND:
            logger.debug("Stacks reset to %d", self.starting_chips)
            self.player_chips = self.starting_chips
            self.opponent_chips = self.starting_chips

        self.player_pot = 0
        self.opponent_pot = 0
        self.bet(PLAYER_ID, BIG_BLIND)
        self.bet(OPPONENT_ID, BIG_BLIND)

    def _draw(self) -> Card:
        return self._deck.pop()

    def deal_next_street(self) -> GameEventKind:
        """
        Reveal the next community cards.

        Returns:
            The event kind announcing the new cards.

        Raises:
            ValueError: If the river was already dealt.
        """
        if self.current_stage not in _NEXT_STREET:
            raise ValueError(f"No street to deal after {self.current_stage.name}")
        count, kind = _NEXT_STREET[self.current_stage]
        self.community_cards.extend(self._draw() for _ in range(count))
        self.current_stage = stage_from_community_cards(len(self.community_cards))
        return kind

    def bet(self, who: str, amount: int) -> int:
        """Move chips into a pot, capped by the stack. Returns the amount moved."""
        if who == PLAYER_ID:
            amount = max(0, min(amount, self.player_chips))
            self.player_chips -= amount
            self.player_pot += amount
        else:
            amount = max(0, min(amount, self.opponent_chips))
            self.opponent_chips -= amount
            self.opponent_pot += amount
        return amount

    def showdown_winner(self) -> Optional[str]:
        """Winner id by hand strength, None on a tie."""
        player = calculate_hand_strength(self.player_cards + self.community_cards)
        opponent = calculate_hand_strength(self.opponent_cards + self.community_cards)
        if player > opponent:
            return PLAYER_ID
        if opponent > player:
            return OPPONENT_ID
        return None

    def award_pot(self, winner: Optional[str]) -> None:
        """Pay out both pots; a tie returns each contribution."""
        if winner == PLAYER_ID:
            self.player_chips += self.player_pot + self.opponent_pot
        elif winner == OPPONENT_ID:
            self.opponent_chips += self.player_pot + self.opponent_pot
        else:
            self.player_chips += self.player_pot
            self.opponent_chips += self.opponent_pot
        self.player_pot = 0
        self.opponent_pot = 0

    def snapshot(self) -> GameStateSnapshot:
        return GameStateSnapshot(
            stage=self.current_stage,
            player_pot=self.player_pot,
            opponent_pot=self.opponent_pot,
            player_chips=self.player_chips,
            opponent_chips=self.opponent_chips,
            community_cards=list(self.community_cards),
        )


@dataclass
class SessionResult:
    """Outcome of a simulated session."""
    rounds: int
    showdowns: int
    pattern_count: int
    stats: DecisionStats

    @property
    def summary(self) -> str:
        return self.stats.summary()


class SimulatedSession:
    """Wires table, face source, coordinator and opponent together."""

    def __init__(
        self,
        seed: Optional[int] = None,
        config: Optional[CoordinatorConfig] = None,
        landmark_count: int = DEFAULT_LANDMARK_COUNT,
        load_patterns: bool = False,
    ):
        self.config = config or CoordinatorConfig()
        self.rng = random.Random(seed)
        self.face = SyntheticFaceSource(landmark_count, rng=np.random.default_rng(seed))
        self.buffer = FaceFrameBuffer(self.config.buffer_seconds)
        self.scheduler = Scheduler()
        self.table = HeadsUpTable(self.rng)
        self.bus = EventBus()

        self.coordinator = BehavioralCoordinator(self.table, self.buffer, self.scheduler, self.config)
        self.coordinator.attach(self.bus)
        self.opponent = OpponentPolicy(self.coordinator, self.rng)
        self.stats = DecisionStats()
        self.coordinator.set_showdown_callback(self.stats.record_showdown_result)

        self.rounds_played = 0
        self.showdowns = 0
        self.coordinator.load_existing_patterns(load_patterns)

    def close(self) -> None:
        self.coordinator.detach()
        self.scheduler.cancel_all()

    # --- Time ---

    def play_for(self, seconds: float) -> None:
        """Emit frames and tick the scheduler for a stretch of virtual time."""
        step = 1.0 / FRAME_RATE
        for _ in range(max(1, int(round(seconds * FRAME_RATE)))):
            timestamp = self.scheduler.now + step
            self.face.emit(self.buffer, timestamp)
            self.scheduler.tick(timestamp)

    def publish(self, kind: GameEventKind, amount: Optional[int] = None, winner: Optional[str] = None) -> None:
        self.bus.publish(GameEvent(kind, amount=amount, winner=winner))

    # --- Round ---

    def play_round(self) -> Optional[str]:
        """
        Play one round to the end.

        Returns:
            Winner id, None for a split pot.
        """
        self.stats.record_round_started()
        self.table.new_round()
        self.face.set_tell(TELL_NEUTRAL)
        self.play_for(0.5)

        self.publish(GameEventKind.HOLE_CARDS_DEALT)
        self._react_to_cards()

        winner = self._betting_round()
        while winner is None and self.table.current_stage in _NEXT_STREET:
            self.face.set_tell(TELL_NEUTRAL)
            self.publish(self.table.deal_next_street())
            self._react_to_cards()
            winner = self._betting_round()

        if winner is None:
            self.table.current_stage = Stage.SHOWDOWN
            winner = self.table.showdown_winner()
            self.publish(GameEventKind.SHOWDOWN_WINNER_DETERMINED, winner=winner)
            self.showdowns += 1

        self.table.award_pot(winner)
        if winner == OPPONENT_ID:
            self.stats.record_win()
        elif winner == PLAYER_ID:
            self.stats.record_loss()

        self.table.current_stage = Stage.ROUND_END
        self.publish(GameEventKind.ROUND_ENDED, winner=winner)
        self.face.set_tell(TELL_NEUTRAL)
        self.rounds_played += 1
        logger.debug("Round %d won by %s", self.rounds_played, winner or "nobody")
        return winner

    def _react_to_cards(self) -> None:
        strong = self.coordinator.is_player_strong_for_stage(self.table.current_stage)
        self.face.set_tell(TELL_STRONG if strong else TELL_NEUTRAL)
        self.play_for(self.config.deal_post_event_seconds + WINDOW_MARGIN)

    def _choose_player_action(self, strong: bool) -> PlayerAction:
        roll = self.rng.random()
        if strong:
            return PlayerAction.RAISE if roll < 0.5 else PlayerAction.CHECK
        if roll < 0.2:
            return PlayerAction.RAISE
        if roll < 0.25:
            return PlayerAction.FOLD
        return PlayerAction.CHECK

    def _player_acts(self, kind: GameEventKind, tell: str, amount: Optional[int] = None) -> None:
        self.face.set_tell(tell)
        self.play_for(self.config.action_pre_event_seconds)
        self.publish(kind, amount=amount)
        self.play_for(self.config.action_post_event_seconds + WINDOW_MARGIN)

    def _betting_round(self) -> Optional[str]:
        """Player acts, opponent answers. Returns the winner if someone folded."""
        strong = self.coordinator.is_player_strong_for_stage(self.table.current_stage)
        action = self._choose_player_action(strong)
        if action == PlayerAction.RAISE and self.table.player_chips == 0:
            action = PlayerAction.CHECK

        if strong:
            tell = TELL_STRONG
        elif action == PlayerAction.RAISE:
            tell = TELL_BLUFF
        else:
            tell = TELL_NEUTRAL

        if action == PlayerAction.FOLD:
            self._player_acts(GameEventKind.PLAYER_FOLDED, tell)
            return OPPONENT_ID
        if action == PlayerAction.RAISE:
            amount = self.table.bet(PLAYER_ID, self.rng.randint(BIG_BLIND, 3 * BIG_BLIND))
            self._player_acts(GameEventKind.PLAYER_RAISED, tell, amount)
        else:
            self._player_acts(GameEventKind.PLAYER_CHECKED, tell)

        decision = self.opponent.make_decision(self.table.snapshot())
        self.stats.record_decision(decision)
        self.stats.record_action(decision.action)
        self.stats.record_inferred_response(decision)
        logger.debug("Opponent: %s (%s)", decision, decision.tendency)

        if decision.action == PlayerAction.FOLD:
            return PLAYER_ID
        if decision.action in (PlayerAction.CALL, PlayerAction.RAISE):
            self.table.bet(OPPONENT_ID, decision.amount)

        to_call = self.table.opponent_pot - self.table.player_pot
        if decision.action == PlayerAction.RAISE and to_call > 0:
            if strong or self.rng.random() < 0.5:
                amount = self.table.bet(PLAYER_ID, to_call)
                self._player_acts(GameEventKind.PLAYER_CALLED, tell, amount)
            else:
                self._player_acts(GameEventKind.PLAYER_FOLDED, TELL_NEUTRAL)
                return OPPONENT_ID
        return None


def simulate_session(
    rounds: int,
    seed: Optional[int] = None,
    config: Optional[CoordinatorConfig] = None,
    progress: Optional[Callable[..., None]] = None,
    load_patterns: bool = False,
    landmark_count: int = DEFAULT_LANDMARK_COUNT,
) -> SessionResult:
    """
    Run a simulated session.

    Args:
        rounds: Number of rounds to play.
        seed: Seed for cards, decisions and face noise.
        config: Coordinator configuration (pattern file included).
        progress: Called after each round with (completed_rounds, pattern_count).
        load_patterns: Start from the saved pattern file.
        landmark_count: Landmarks per synthetic frame.

    Returns:
        SessionResult with the decision statistics.
    """
    if rounds < 0:
        raise ValueError("rounds must not be negative")

    session = SimulatedSession(seed, config, landmark_count, load_patterns)
    try:
        for i in range(rounds):
            session.play_round()
            if progress:
                progress(i + 1, len(session.coordinator.patterns))
    finally:
        session.close()

    return SessionResult(
        rounds=session.rounds_played,
        showdowns=session.showdowns,
        pattern_count=len(session.coordinator.patterns),
        stats=session.stats,
    )
