"""
Playing card model.

Cards are immutable values. Suit values double as the bit offset of the card
inside its rank nibble when a hand is encoded as a bitmask.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Iterable, List


class Suit(Enum):
    """Card suits."""
    CLUBS = 0
    DIAMONDS = 1
    HEARTS = 2
    SPADES = 3


class Rank(IntEnum):
    """Card ranks, ace high."""
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14


SUIT_SYMBOLS = {
    Suit.CLUBS: "♣",
    Suit.DIAMONDS: "♦",
    Suit.HEARTS: "♥",
    Suit.SPADES: "♠",
}

SUIT_CHARS = {
    Suit.CLUBS: "c",
    Suit.DIAMONDS: "d",
    Suit.HEARTS: "h",
    Suit.SPADES: "s",
}

RANK_CHARS = {
    Rank.TWO: "2",
    Rank.THREE: "3",
    Rank.FOUR: "4",
    Rank.FIVE: "5",
    Rank.SIX: "6",
    Rank.SEVEN: "7",
    Rank.EIGHT: "8",
    Rank.NINE: "9",
    Rank.TEN: "T",
    Rank.JACK: "J",
    Rank.QUEEN: "Q",
    Rank.KING: "K",
    Rank.ACE: "A",
}

# Reverse lookups for parsing; "10" is accepted alongside "T"
_RANK_BY_CHAR = {c: r for r, c in RANK_CHARS.items()}
_RANK_BY_CHAR["10"] = Rank.TEN
_SUIT_BY_CHAR = {c: s for s, c in SUIT_CHARS.items()}


@dataclass(frozen=True)
class Card:
    """A playing card with rank and suit."""
    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{RANK_CHARS[self.rank]}{SUIT_SYMBOLS[self.suit]}"

    @property
    def short_name(self) -> str:
        """Short name like 'Ah' for Ace of Hearts."""
        return f"{RANK_CHARS[self.rank]}{SUIT_CHARS[self.suit]}"

    @classmethod
    def parse(cls, text: str) -> "Card":
        """
        Parse a card from its short name.

        Args:
            text: Card string like "Ah", "Td" or "10s" (case-insensitive suit).

        Returns:
            The parsed Card.

        Raises:
            ValueError: If the string is not a valid card.
        """
        text = text.strip()
        if len(text) < 2:
            raise ValueError(f"Invalid card: {text!r}")

        rank = _RANK_BY_CHAR.get(text[:-1].upper())
        suit = _SUIT_BY_CHAR.get(text[-1].lower())
        if rank is None or suit is None:
            raise ValueError(f"Invalid card: {text!r}")
        return cls(rank, suit)


def parse_cards(text: str | Iterable[str]) -> List[Card]:
    """Parse a whitespace separated string (or iterable of strings) into cards."""
    tokens = text.split() if isinstance(text, str) else list(text)
    return [Card.parse(token) for token in tokens]


FULL_DECK: List[Card] = [Card(rank, suit) for rank in Rank for suit in Suit]
