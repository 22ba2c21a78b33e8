"""
Poker hand strength evaluation.

A hand is encoded as a 52-bit mask with one bit per (rank, suit) pair:
bit = (rank - 2) * 4 + suit. Three independent checks (flush, straight and
same-rank multiples) each produce a HandStrength and the best one wins.

The encoded value packs the decision-relevant ranks of the hand into five
4-bit nibbles, most significant first: main group ranks, then kickers from
highest to lowest. Two hands of the same ranking compare directly by their
encoded value. For example three twos with an ace and a ten encode as
0x222EA, and the ace-low straight encodes as 0x5432E.
"""

from enum import IntEnum
from typing import Iterable, NamedTuple

from .card import Card

NUM_RANKS = 13
RANK_MASK_ALL = (1 << NUM_RANKS) - 1

# Five consecutive rank bits
_STRAIGHT_WINDOW = 0b11111
# A-2-3-4-5: ace bit (12) plus ranks 2..5 (bits 0..3)
_ACE_LOW_STRAIGHT = 0b1000000001111
# Nibble value used for the ace when it plays low
LOW_ACE = 0xE


class HandRanking(IntEnum):
    """Poker hand categories in increasing strength."""
    HIGH_CARD = 0
    PAIR = 1
    TWO_PAIR = 2
    THREE_OF_A_KIND = 3
    STRAIGHT = 4
    FLUSH = 5
    FULL_HOUSE = 6
    FOUR_OF_A_KIND = 7
    STRAIGHT_FLUSH = 8
    ROYAL_FLUSH = 9


class HandStrength(NamedTuple):
    """Hand category plus packed tie-breaker; tuple order is strength order."""
    ranking: HandRanking
    encoded_value: int

    def __str__(self) -> str:
        return f"{self.ranking.name} (0x{self.encoded_value:X})"


NO_MATCH = HandStrength(HandRanking.HIGH_CARD, 0)


def encode_hand_as_bits(cards: Iterable[Card]) -> int:
    """Encode cards as a 52-bit mask, one bit per rank/suit pair."""
    hand_bits = 0
    for card in cards:
        hand_bits |= 1 << ((int(card.rank) - 2) * 4 + card.suit.value)
    return hand_bits


def _rank_bit(rank: int) -> int:
    return 1 << (rank - 2)


def _pack(ranks: list[int]) -> int:
    """Pack up to five ranks into nibbles 4..0, first rank most significant."""
    value = 0
    for position, rank in zip(range(4, -1, -1), ranks):
        value |= rank << (position * 4)
    return value


def _ranks_descending(rank_mask: int, exclude: Iterable[int] = ()) -> list[int]:
    """Ranks present in a 13-bit mask, highest first, skipping excluded ranks."""
    skip = set(exclude)
    return [
        rank for rank in range(14, 1, -1)
        if rank_mask & _rank_bit(rank) and rank not in skip
    ]


def encode_straight(highest_rank: int) -> int:
    """Encode a straight by listing its five ranks; rank 1 is the low ace."""
    value = 0
    for i in range(5):
        rank = highest_rank - i
        if rank == 1:
            value |= LOW_ACE
        else:
            value |= rank << ((4 - i) * 4)
    return value


def encode_high_card(rank_mask: int) -> int:
    """Encode the top five ranks of a mask (used for high card and flush)."""
    return _pack(_ranks_descending(rank_mask)[:5])


def check_straight_from_mask(rank_mask: int, from_flush: bool = False) -> HandStrength:
    """
    Look for five consecutive ranks in a 13-bit rank mask.

    The window slides from ace-high down to six-high so the first match is
    the highest straight. The ace-low wheel is checked last.

    Args:
        rank_mask: Bit (rank - 2) set for every rank present.
        from_flush: True when the mask holds the ranks of a single suit, which
            turns a match into a straight flush (royal flush when ace-high).

    Returns:
        The straight strength, or NO_MATCH.
    """
    for high in range(14, 5, -1):
        window = _STRAIGHT_WINDOW << (high - 6)
        if rank_mask & window == window:
            if from_flush:
                ranking = HandRanking.ROYAL_FLUSH if high == 14 else HandRanking.STRAIGHT_FLUSH
            else:
                ranking = HandRanking.STRAIGHT
            return HandStrength(ranking, encode_straight(high))

    if rank_mask & _ACE_LOW_STRAIGHT == _ACE_LOW_STRAIGHT:
        ranking = HandRanking.STRAIGHT_FLUSH if from_flush else HandRanking.STRAIGHT
        return HandStrength(ranking, encode_straight(5))

    return NO_MATCH


def rank_presence_mask(hand_bits: int) -> int:
    """Collapse a 52-bit hand mask to a 13-bit mask of ranks present in any suit."""
    mask = 0
    for rank_index in range(NUM_RANKS):
        if hand_bits & (0b1111 << (rank_index * 4)):
            mask |= 1 << rank_index
    return mask


def suit_rank_mask(hand_bits: int, suit: int) -> int:
    """13-bit mask of the ranks held in one suit."""
    mask = 0
    for rank_index in range(NUM_RANKS):
        if (hand_bits >> (rank_index * 4 + suit)) & 1:
            mask |= 1 << rank_index
    return mask


def check_flush(hand_bits: int) -> HandStrength:
    """Check for flush, straight flush and royal flush."""
    for suit in range(4):
        flush_ranks = suit_rank_mask(hand_bits, suit)
        if flush_ranks.bit_count() < 5:
            continue

        straight_flush = check_straight_from_mask(flush_ranks, from_flush=True)
        if straight_flush != NO_MATCH:
            return straight_flush
        return HandStrength(HandRanking.FLUSH, encode_high_card(flush_ranks))

    return NO_MATCH


def check_straight(hand_bits: int) -> HandStrength:
    """Check for a straight across all suits."""
    return check_straight_from_mask(rank_presence_mask(hand_bits))


def check_multiples(hand_bits: int) -> HandStrength:
    """
    Classify same-rank groups: quads, full house, trips, two pair, pair, high card.

    Each rank nibble is popcounted to sort ranks into quads/trips/pairs. Kickers
    are chosen by scanning ranks from ace down, skipping ranks already used by
    the main grouping.
    """
    pairs = trips = quads = present = 0
    for rank_index in range(NUM_RANKS):
        count = (hand_bits & (0b1111 << (rank_index * 4))).bit_count()
        bit = 1 << rank_index
        if count == 4:
            quads |= bit
        elif count == 3:
            trips |= bit
        elif count == 2:
            pairs |= bit
        if count:
            present |= bit

    if quads:
        quad_rank = _ranks_descending(quads)[0]
        kickers = _ranks_descending(present, exclude=[quad_rank])
        kicker = kickers[0] if kickers else 0
        return HandStrength(HandRanking.FOUR_OF_A_KIND, _pack([quad_rank] * 4 + [kicker]))

    trip_ranks = _ranks_descending(trips)
    pair_ranks = _ranks_descending(pairs)

    # A second set of trips plays as the pair of a full house
    if trip_ranks and (pair_ranks or len(trip_ranks) > 1):
        trip_rank = trip_ranks[0]
        pair_rank = max(pair_ranks[:1] + trip_ranks[1:2])
        return HandStrength(HandRanking.FULL_HOUSE, _pack([trip_rank] * 3 + [pair_rank] * 2))

    if trip_ranks:
        trip_rank = trip_ranks[0]
        kickers = _ranks_descending(present, exclude=[trip_rank])[:2]
        return HandStrength(HandRanking.THREE_OF_A_KIND, _pack([trip_rank] * 3 + kickers))

    if len(pair_ranks) >= 2:
        high_pair, low_pair = pair_ranks[0], pair_ranks[1]
        kickers = _ranks_descending(present, exclude=[high_pair, low_pair])[:1]
        return HandStrength(
            HandRanking.TWO_PAIR,
            _pack([high_pair, high_pair, low_pair, low_pair] + kickers),
        )

    if pair_ranks:
        pair_rank = pair_ranks[0]
        kickers = _ranks_descending(present, exclude=[pair_rank])[:3]
        return HandStrength(HandRanking.PAIR, _pack([pair_rank] * 2 + kickers))

    return HandStrength(HandRanking.HIGH_CARD, encode_high_card(present))


def calculate_hand_strength(cards: Iterable[Card]) -> HandStrength:
    """
    Evaluate the best poker hand contained in a set of cards.

    Args:
        cards: Usually 5 to 7 cards. Fewer cards are evaluated the same way
            (two hole cards can only make a pair or high card).

    Returns:
        HandStrength of the best category found. HIGH_CARD is the default
        result, not an error.
    """
    hand_bits = encode_hand_as_bits(cards)
    return max(check_flush(hand_bits), check_straight(hand_bits), check_multiples(hand_bits))


def compare_hands(a: HandStrength, b: HandStrength) -> int:
    """Return 1 if a beats b, -1 if b beats a, 0 for a tie."""
    if a > b:
        return 1
    if a < b:
        return -1
    return 0


def pair_rank(strength: HandStrength) -> int:
    """Rank of the pair for a PAIR hand (nibble 4 of the encoding), else 0."""
    if strength.ranking != HandRanking.PAIR:
        return 0
    return (strength.encoded_value >> 16) & 0xF
