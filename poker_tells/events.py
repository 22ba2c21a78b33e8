"""
Game events consumed by the behavioral coordinator.

The game layer publishes GameEvents on an EventBus; handlers are registered
per event kind and called in registration order.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Dict, List, Optional

from .game_state import Stage

logger = logging.getLogger(__name__)


class ObservationType(Enum):
    """Game events around which the player's face is observed."""
    HOLE_CARDS = auto()
    FLOP = auto()
    TURN = auto()
    RIVER = auto()
    PLAYER_FOLD = auto()
    PLAYER_CHECK = auto()
    PLAYER_CALL = auto()
    PLAYER_RAISE = auto()

    @property
    def is_deal_event(self) -> bool:
        """True for card dealing, False for player actions."""
        return self in _DEAL_STAGES

    @property
    def is_aggressive(self) -> bool:
        """Calls and raises count as aggressive actions."""
        return self in (ObservationType.PLAYER_CALL, ObservationType.PLAYER_RAISE)

    @property
    def deal_stage(self) -> Optional[Stage]:
        """Stage a dealing event starts, None for player actions."""
        return _DEAL_STAGES.get(self)


_DEAL_STAGES = {
    ObservationType.HOLE_CARDS: Stage.PRE_FLOP,
    ObservationType.FLOP: Stage.FLOP,
    ObservationType.TURN: Stage.TURN,
    ObservationType.RIVER: Stage.RIVER,
}


class GameEventKind(Enum):
    """Callbacks exposed by the game layer."""
    HOLE_CARDS_DEALT = auto()
    FLOP_DEALT = auto()
    TURN_DEALT = auto()
    RIVER_DEALT = auto()
    PLAYER_FOLDED = auto()
    PLAYER_CHECKED = auto()
    PLAYER_CALLED = auto()
    PLAYER_RAISED = auto()
    SHOWDOWN_WINNER_DETERMINED = auto()
    ROUND_ENDED = auto()


# Event kinds that open a capture window
OBSERVATION_FOR_EVENT = {
    GameEventKind.HOLE_CARDS_DEALT: ObservationType.HOLE_CARDS,
    GameEventKind.FLOP_DEALT: ObservationType.FLOP,
    GameEventKind.TURN_DEALT: ObservationType.TURN,
    GameEventKind.RIVER_DEALT: ObservationType.RIVER,
    GameEventKind.PLAYER_FOLDED: ObservationType.PLAYER_FOLD,
    GameEventKind.PLAYER_CHECKED: ObservationType.PLAYER_CHECK,
    GameEventKind.PLAYER_CALLED: ObservationType.PLAYER_CALL,
    GameEventKind.PLAYER_RAISED: ObservationType.PLAYER_RAISE,
}


@dataclass(frozen=True)
class GameEvent:
    """A game event with its payload (raise amount or winner id)."""

    kind: GameEventKind
    amount: Optional[int] = None  # PLAYER_RAISED
    winner: Optional[str] = None  # SHOWDOWN_WINNER_DETERMINED, ROUND_ENDED

    @property
    def observation_type(self) -> Optional[ObservationType]:
        return OBSERVATION_FOR_EVENT.get(self.kind)

    def __str__(self) -> str:
        if self.amount is not None:
            return f"{self.kind.name} {self.amount}"
        if self.winner is not None:
            return f"{self.kind.name} -> {self.winner}"
        return self.kind.name


EventHandler = Callable[[GameEvent], None]


class EventBus:
    """Typed publish/subscribe hub for game events."""

    def __init__(self):
        self._handlers: Dict[GameEventKind, List[EventHandler]] = {}

    def subscribe(self, kind: GameEventKind, handler: EventHandler) -> None:
        """
        Register a handler for one event kind.

        Args:
            kind: The event kind to listen for.
            handler: Called with the GameEvent.
        """
        self._handlers.setdefault(kind, []).append(handler)

    def unsubscribe(self, kind: GameEventKind, handler: EventHandler) -> bool:
        """
        Remove a handler.

        Returns:
            True if the handler was removed, False if it was not registered.
        """
        handlers = self._handlers.get(kind, [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def handler_count(self, kind: GameEventKind) -> int:
        return len(self._handlers.get(kind, []))

    def publish(self, event: GameEvent) -> int:
        """
        Deliver an event to every handler of its kind.

        A failing handler is logged and does not stop the others.

        Returns:
            Number of handlers called.
        """
        handlers = list(self._handlers.get(event.kind, []))
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("Handler for %s failed", event.kind.name)
        return len(handlers)
