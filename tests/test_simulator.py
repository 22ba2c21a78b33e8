"""Tests for simulator module."""

import random

import numpy as np
import pytest

from poker_tells.card import parse_cards
from poker_tells.config import CoordinatorConfig
from poker_tells.events import GameEventKind
from poker_tells.face_frame import FaceFrameBuffer
from poker_tells.feature_extractor import FeatureVectorExtractor
from poker_tells.game_state import Stage
from poker_tells.serialization import read_pattern_database
from poker_tells.simulator import (
    BIG_BLIND,
    OPPONENT_ID,
    PLAYER_ID,
    STARTING_CHIPS,
    TELL_BLUFF,
    TELL_NEUTRAL,
    HeadsUpTable,
    SimulatedSession,
    SyntheticFaceSource,
    simulate_session,
)


@pytest.fixture
def config(tmp_path):
    """Config writing patterns into a temporary directory."""
    return CoordinatorConfig(pattern_file=tmp_path / "patterns.json")


class TestHeadsUpTable:
    """Tests for HeadsUpTable."""

    def test_new_round(self):
        """Test dealing hole cards and posting blinds."""
        table = HeadsUpTable(random.Random(1))
        table.new_round()
        assert len(table.player_cards) == 2
        assert len(table.opponent_cards) == 2
        assert len(set(table.player_cards + table.opponent_cards)) == 4
        assert table.current_stage == Stage.PRE_FLOP
        assert table.player_pot == BIG_BLIND
        assert table.player_chips == STARTING_CHIPS - BIG_BLIND

    def test_streets(self):
        """Test flop, turn and river dealing."""
        table = HeadsUpTable(random.Random(2))
        table.new_round()
        assert table.deal_next_street() == GameEventKind.FLOP_DEALT
        assert len(table.community_cards) == 3
        assert table.deal_next_street() == GameEventKind.TURN_DEALT
        assert table.deal_next_street() == GameEventKind.RIVER_DEALT
        assert table.current_stage == Stage.RIVER
        assert len(table.community_cards) == 5
        assert len(set(table.community_cards + table.player_cards + table.opponent_cards)) == 9
        with pytest.raises(ValueError):
            table.deal_next_street()

    def test_is_player(self):
        """Test the player id."""
        table = HeadsUpTable()
        assert table.is_player(PLAYER_ID)
        assert not table.is_player(OPPONENT_ID)
        assert not table.is_player(None)

    def test_showdown_winner(self):
        """Test the better hand wins and equal hands split."""
        table = HeadsUpTable()
        table.community_cards = parse_cards("2c 7d 9s Jh Kd")
        table.player_cards = parse_cards("Ah Ad")
        table.opponent_cards = parse_cards("3h 4h")
        assert table.showdown_winner() == PLAYER_ID
        table.opponent_cards = parse_cards("Kc Ks")
        assert table.showdown_winner() == OPPONENT_ID
        table.community_cards = parse_cards("Tc Jd Qs Kh Ac")
        table.player_cards = parse_cards("2h 3d")
        table.opponent_cards = parse_cards("2d 3c")
        assert table.showdown_winner() is None

    def test_bet_capped_by_stack(self):
        """Test bets never exceed the stack."""
        table = HeadsUpTable(starting_chips=50)
        assert table.bet(PLAYER_ID, 80) == 50
        assert table.player_chips == 0
        assert table.player_pot == 50

    def test_award_pot(self):
        """Test payouts for a win and a split."""
        table = HeadsUpTable()
        table.bet(PLAYER_ID, 100)
        table.bet(OPPONENT_ID, 60)
        table.award_pot(OPPONENT_ID)
        assert table.opponent_chips == STARTING_CHIPS + 100
        table.bet(PLAYER_ID, 30)
        table.bet(OPPONENT_ID, 30)
        table.award_pot(None)
        assert table.player_chips == STARTING_CHIPS - 100
        assert table.player_pot == table.opponent_pot == 0

    def test_stacks_reset_when_broke(self):
        """Test a busted stack is refilled at the next round."""
        table = HeadsUpTable(random.Random(3))
        table.player_chips = 5
        table.new_round()
        assert table.player_chips == STARTING_CHIPS - BIG_BLIND


class TestSyntheticFaceSource:
    """Tests for SyntheticFaceSource."""

    def motion_energy(self, tell):
        source = SyntheticFaceSource(landmark_count=8, rng=np.random.default_rng(0), noise=0.0)
        source.set_tell(tell)
        buffer = FaceFrameBuffer()
        for i in range(30):
            source.emit(buffer, i / 30.0)
        return FeatureVectorExtractor().raw_features(buffer.frames_in_range(0.0, 1.0))[-1]

    def test_frame_layout(self):
        """Test frames hold flat x, y, z triples."""
        source = SyntheticFaceSource(landmark_count=8, rng=np.random.default_rng(0))
        assert source.landmarks_at(0.0).shape == (24,)

    def test_unknown_tell(self):
        """Test only known tells can be shown."""
        with pytest.raises(ValueError):
            SyntheticFaceSource(rng=np.random.default_rng(0)).set_tell("smirk")

    def test_too_few_landmarks(self):
        """Test a face needs a reference and at least one other landmark."""
        with pytest.raises(ValueError):
            SyntheticFaceSource(landmark_count=1)

    def test_bluff_moves_more_than_neutral(self):
        """Test tells differ in motion energy."""
        assert self.motion_energy(TELL_BLUFF) > self.motion_energy(TELL_NEUTRAL)


class TestSimulateSession:
    """Tests for simulate_session."""

    def test_rounds_played(self, config):
        """Test a short session plays every round and saves patterns."""
        result = simulate_session(3, seed=7, config=config)
        assert result.rounds == 3
        assert result.stats.rounds == 3
        assert 0 <= result.showdowns <= 3
        assert config.pattern_file.exists()
        assert result.summary.startswith("AI Stats | rounds=3")

    def test_progress_callback(self, config):
        """Test progress is reported after each round."""
        calls = []
        simulate_session(2, seed=1, config=config, progress=lambda done, patterns: calls.append(done))
        assert calls == [1, 2]

    def test_reproducible(self, tmp_path):
        """Test the same seed replays the same session."""
        a = simulate_session(3, seed=11, config=CoordinatorConfig(pattern_file=tmp_path / "a.json"))
        b = simulate_session(3, seed=11, config=CoordinatorConfig(pattern_file=tmp_path / "b.json"))
        assert a.summary == b.summary
        assert a.pattern_count == b.pattern_count

    def test_negative_rounds(self, config):
        """Test negative round counts are rejected."""
        with pytest.raises(ValueError):
            simulate_session(-1, config=config)

    def test_session_resumes_saved_patterns(self, config):
        """Test a second session can start from the first one's patterns."""
        first = simulate_session(4, seed=5, config=config)
        session = SimulatedSession(seed=6, config=config, load_patterns=True)
        assert len(session.coordinator.patterns) == first.pattern_count
        session.close()

    def test_resume_with_other_landmark_count(self, config):
        """Test patterns saved for another face layout are replaced, not mixed in."""
        simulate_session(3, seed=5, config=config, landmark_count=24)
        simulate_session(3, seed=6, config=config, load_patterns=True, landmark_count=10)
        length, patterns = read_pattern_database(config.pattern_file)
        assert length == 91
        assert all(p.centroid.size == 91 for p in patterns)

    def test_detached_after_session(self, config):
        """Test closing a session unsubscribes the coordinator."""
        session = SimulatedSession(seed=1, config=config)
        session.play_round()
        session.close()
        assert session.bus.handler_count(GameEventKind.ROUND_ENDED) == 0
        assert session.scheduler.pending == 0
