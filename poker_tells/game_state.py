"""
Game stages and the table snapshot read by the opponent's decision policy.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List

from .card import Card


class Stage(Enum):
    """Stages of a heads-up hand."""
    PRE_FLOP = auto()
    FLOP = auto()
    TURN = auto()
    RIVER = auto()
    SHOWDOWN = auto()
    ROUND_END = auto()


_COMMUNITY_CARD_COUNTS = {
    Stage.PRE_FLOP: 0,
    Stage.FLOP: 3,
    Stage.TURN: 4,
    Stage.RIVER: 5,
    Stage.SHOWDOWN: 5,
    Stage.ROUND_END: 5,
}

_PREVIOUS_STAGE = {
    Stage.FLOP: Stage.PRE_FLOP,
    Stage.TURN: Stage.FLOP,
    Stage.RIVER: Stage.TURN,
}


def community_card_count(stage: Stage) -> int:
    """Number of community cards revealed by the given stage."""
    return _COMMUNITY_CARD_COUNTS.get(stage, 5)


def previous_stage(stage: Stage) -> Stage:
    """The betting stage before this one. Pre-flop and terminal stages map to themselves."""
    return _PREVIOUS_STAGE.get(stage, stage)


def stage_from_community_cards(count: int) -> Stage:
    """Determine the stage from the number of community cards dealt."""
    if count == 0:
        return Stage.PRE_FLOP
    elif count == 3:
        return Stage.FLOP
    elif count == 4:
        return Stage.TURN
    elif count == 5:
        return Stage.RIVER
    raise ValueError(f"Invalid community card count: {count}")


@dataclass
class GameStateSnapshot:
    """Money and board state at the moment the opponent has to act."""
    stage: Stage = Stage.PRE_FLOP
    player_pot: int = 0
    opponent_pot: int = 0
    player_chips: int = 0
    opponent_chips: int = 0
    community_cards: List[Card] = field(default_factory=list)

    @property
    def amount_to_call(self) -> int:
        """Chips the opponent must add to match the player's contribution."""
        return max(0, self.player_pot - self.opponent_pot)

    def __str__(self) -> str:
        parts = [f"Stage: {self.stage.name}"]
        parts.append(f"Pots: {self.player_pot}/{self.opponent_pot}")
        if self.community_cards:
            parts.append(f"Board: {' '.join(str(c) for c in self.community_cards)}")
        parts.append(f"Chips: {self.player_chips}/{self.opponent_chips}")
        return " | ".join(parts)
