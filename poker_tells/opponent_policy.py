"""
Simple opponent that bends its raise/fold odds by the player's inferred tendency.

With no usable tendency the opponent raises and folds at a fixed base rate
and otherwise calls or checks. A confident "bluffing" read shifts it
towards raising, a confident "strong" read towards folding.
"""

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .events import ObservationType
from .game_state import GameStateSnapshot
from .tendency import PlayerTendency, clamp01

logger = logging.getLogger(__name__)

# Either the random module or a Random instance
RNG = Union[random.Random, type(random)]

BASE_RAISE_CHANCE = 0.15
BASE_FOLD_CHANCE = 0.15
MIN_TENDENCY_CONFIDENCE = 0.4
MAX_BIAS_SHIFT = 0.5


class PlayerAction(Enum):
    """Actions available to a player."""
    FOLD = "fold"
    CHECK = "check"
    CALL = "call"
    RAISE = "raise"

    @property
    def is_aggressive(self) -> bool:
        return self in (PlayerAction.CALL, PlayerAction.RAISE)


@dataclass
class Decision:
    """An opponent decision and the read it was based on."""

    action: PlayerAction
    amount: int
    tendency: PlayerTendency
    used_tendency: bool

    def __str__(self) -> str:
        if self.action in (PlayerAction.CALL, PlayerAction.RAISE):
            return f"{self.action.value} {self.amount}"
        return self.action.value


def resolve_observation_type(state: GameStateSnapshot) -> ObservationType:
    """Player action the opponent is reacting to: a raise if behind in the pot, else a check."""
    if state.player_pot > state.opponent_pot:
        return ObservationType.PLAYER_RAISE
    return ObservationType.PLAYER_CHECK


def biased_chances(tendency: PlayerTendency) -> tuple[float, float]:
    """
    Raise and fold chances for a usable tendency.

    Returns:
        (raise_chance, fold_chance)
    """
    aggression_bias = max(-1.0, min(1.0, tendency.bluff_probability - tendency.strong_probability))
    bias_shift = MAX_BIAS_SHIFT * tendency.confidence
    raise_chance = clamp01(BASE_RAISE_CHANCE + aggression_bias * bias_shift)
    fold_chance = clamp01(BASE_FOLD_CHANCE - aggression_bias * bias_shift)
    return raise_chance, fold_chance


class OpponentPolicy:
    """Opponent decision maker backed by the behavioral coordinator."""

    def __init__(self, coordinator=None, rng: RNG = random):
        """
        Args:
            coordinator: BehavioralCoordinator to query (None plays the base rates).
            rng: Random source; pass a seeded Random for reproducible play.
        """
        self.coordinator = coordinator
        self.rng = rng

    def read_tendency(self, state: GameStateSnapshot) -> tuple[PlayerTendency, bool]:
        """Look up the player's tendency and whether it is confident enough to act on."""
        if self.coordinator is None:
            return PlayerTendency.none(), False
        action_type = resolve_observation_type(state)
        tendency = self.coordinator.get_player_tendency(state.stage, action_type)
        usable = tendency.has_data and tendency.confidence >= MIN_TENDENCY_CONFIDENCE
        return tendency, usable

    def make_decision(self, state: GameStateSnapshot) -> Decision:
        """
        Decide the opponent's action.

        Args:
            state: Snapshot from the opponent's point of view.

        Returns:
            Decision with the action, its amount and the tendency consulted.
        """
        tendency, used_tendency = self.read_tendency(state)

        raise_chance, fold_chance = BASE_RAISE_CHANCE, BASE_FOLD_CHANCE
        if used_tendency:
            raise_chance, fold_chance = biased_chances(tendency)
            logger.debug(
                "Tendency %s -> raise %.2f fold %.2f", tendency, raise_chance, fold_chance
            )

        to_call = state.player_pot - state.opponent_pot
        if to_call > 0:
            action, amount = PlayerAction.CALL, to_call
        else:
            action, amount = PlayerAction.CHECK, 0

        chance = self.rng.random()
        if chance <= raise_chance:
            action, amount = PlayerAction.RAISE, self._raise_amount(state)
        elif chance >= 1.0 - fold_chance:
            action, amount = PlayerAction.FOLD, 0

        return Decision(action=action, amount=amount, tendency=tendency, used_tendency=used_tendency)

    def _raise_amount(self, state: GameStateSnapshot) -> int:
        to_call = max(0, state.player_pot - state.opponent_pot)
        low = to_call + 1
        high = min(state.player_chips + to_call, state.opponent_chips)
        if high < low:
            # Not enough chips for a real raise; commit what is there
            return max(0, min(low, state.opponent_chips))
        return self.rng.randint(low, high)
