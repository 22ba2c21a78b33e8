"""Tests for card module."""

import pytest

from poker_tells.card import FULL_DECK, Card, Rank, Suit, parse_cards


class TestCard:
    """Tests for Card dataclass."""

    def test_card_str(self):
        """Test string representation uses suit symbols."""
        assert str(Card(Rank.ACE, Suit.SPADES)) == "A♠"
        assert str(Card(Rank.TEN, Suit.HEARTS)) == "T♥"

    def test_short_name(self):
        """Test short name like 'Kd'."""
        assert Card(Rank.KING, Suit.DIAMONDS).short_name == "Kd"
        assert Card(Rank.TWO, Suit.CLUBS).short_name == "2c"

    def test_parse(self):
        """Test parsing short names."""
        assert Card.parse("Ah") == Card(Rank.ACE, Suit.HEARTS)
        assert Card.parse("td") == Card(Rank.TEN, Suit.DIAMONDS)
        assert Card.parse("10s") == Card(Rank.TEN, Suit.SPADES)
        assert Card.parse("9C") == Card(Rank.NINE, Suit.CLUBS)

    @pytest.mark.parametrize("text", ["", "A", "Ax", "1h", "ZZ", "11s"])
    def test_parse_invalid(self, text):
        """Test invalid card strings raise ValueError."""
        with pytest.raises(ValueError):
            Card.parse(text)

    def test_cards_are_hashable(self):
        """Test cards can be used in sets."""
        assert len({Card.parse("Ah"), Card.parse("Ah"), Card.parse("Kh")}) == 2


class TestParseCards:
    """Tests for parse_cards function."""

    def test_parse_string(self):
        """Test parsing a whitespace separated string."""
        cards = parse_cards("Ah Kd  Qs")
        assert [c.short_name for c in cards] == ["Ah", "Kd", "Qs"]

    def test_parse_iterable(self):
        """Test parsing a list of strings."""
        cards = parse_cards(["2c", "3d"])
        assert cards == [Card(Rank.TWO, Suit.CLUBS), Card(Rank.THREE, Suit.DIAMONDS)]

    def test_parse_empty(self):
        """Test empty input gives no cards."""
        assert parse_cards("") == []


class TestFullDeck:
    """Tests for the full deck."""

    def test_deck_has_52_unique_cards(self):
        """Test deck completeness."""
        assert len(FULL_DECK) == 52
        assert len(set(FULL_DECK)) == 52
