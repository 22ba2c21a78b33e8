"""
Statistics about the opponent's decisions and how well its reads held up.

Each opponent decision is recorded with the tendency it consulted. At the
showdown the player's real strength is filled into the current round's
records, scoring every decision that acted on a read.
"""

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from .opponent_policy import Decision, PlayerAction

CSV_COLUMNS = [
    "round", "action", "aggressive", "reaction_aligned", "used_tendency",
    "confidence", "bluff_probability", "strong_probability", "weak_probability",
    "inference_label", "player_strong", "inference_correct",
    "rounds_total", "wins_total", "losses_total", "folds_total", "calls_total",
    "raises_total", "checks_total", "aggressive_total", "passive_total",
    "inferred_weak_total", "inferred_bluff_total", "inferred_strong_total",
    "inference_correct_total", "inference_incorrect_total",
]


@dataclass
class DecisionRecord:
    """One opponent decision."""
    round: int
    action: PlayerAction
    used_tendency: bool
    confidence: float
    bluff_probability: float
    strong_probability: float
    weak_probability: float
    inference_label: str
    player_strong: Optional[bool] = None
    inference_correct: Optional[bool] = None

    @property
    def aggressive(self) -> bool:
        return self.action.is_aggressive

    @property
    def reaction_aligned(self) -> bool:
        """A weak read should lead to aggression, a strong read to passivity."""
        if not self.used_tendency:
            return False
        if self.inference_label == "weak":
            return self.aggressive
        return not self.aggressive


def _format_optional(value: Optional[bool]) -> str:
    return "" if value is None else str(value)


class DecisionStats:
    """Counters and per-decision records for one session."""

    def __init__(self):
        self.rounds = 0
        self.folds = 0
        self.calls = 0
        self.raises = 0
        self.checks = 0
        self.wins = 0
        self.losses = 0
        self.aggressive_actions = 0
        self.passive_actions = 0
        self.inferred_weak_responses = 0
        self.inferred_bluff_responses = 0
        self.inferred_strong_responses = 0
        self.inference_correct_count = 0
        self.inference_incorrect_count = 0

        self.records: List[DecisionRecord] = []
        self._exported_count = 0
        self._current_round = 0

    def record_round_started(self) -> None:
        self.rounds += 1
        self._current_round = self.rounds

    def record_action(self, action: PlayerAction) -> None:
        """Count an opponent action by type and aggression."""
        if action == PlayerAction.FOLD:
            self.folds += 1
        elif action == PlayerAction.CALL:
            self.calls += 1
        elif action == PlayerAction.RAISE:
            self.raises += 1
        elif action == PlayerAction.CHECK:
            self.checks += 1

        if action.is_aggressive:
            self.aggressive_actions += 1
        else:
            self.passive_actions += 1

    def record_decision(self, decision: Decision) -> DecisionRecord:
        """
        Store a decision with the read behind it.

        Decisions that ignored the tendency are stored with zero
        probabilities and the label "none".
        """
        tendency = decision.tendency
        if decision.used_tendency:
            record = DecisionRecord(
                round=self._current_round,
                action=decision.action,
                used_tendency=True,
                confidence=tendency.confidence,
                bluff_probability=tendency.bluff_probability,
                strong_probability=tendency.strong_probability,
                weak_probability=tendency.weak_probability,
                inference_label=tendency.inference_label,
            )
        else:
            record = DecisionRecord(
                round=self._current_round,
                action=decision.action,
                used_tendency=False,
                confidence=0.0,
                bluff_probability=0.0,
                strong_probability=0.0,
                weak_probability=0.0,
                inference_label="none",
            )
        self.records.append(record)
        return record

    def record_inferred_response(self, decision: Decision) -> None:
        """Count which kind of read a decision reacted to."""
        if not decision.used_tendency:
            return
        tendency = decision.tendency
        if tendency.bluff_probability > tendency.strong_probability:
            self.inferred_bluff_responses += 1
        if tendency.inference_label == "weak":
            self.inferred_weak_responses += 1
        elif tendency.inference_label == "strong":
            self.inferred_strong_responses += 1

    def record_showdown_result(self, player_strong: bool) -> int:
        """
        Score the current round's unscored decisions against the player's real strength.

        Returns:
            Number of inferences scored.
        """
        scored = 0
        for record in reversed(self.records):
            if record.round != self._current_round:
                break
            if record.player_strong is not None:
                continue

            record.player_strong = player_strong
            if not record.used_tendency or record.inference_label == "none":
                continue

            record.inference_correct = (record.inference_label == "strong") == player_strong
            if record.inference_correct:
                self.inference_correct_count += 1
            else:
                self.inference_incorrect_count += 1
            scored += 1
        return scored

    def record_win(self) -> None:
        self.wins += 1

    def record_loss(self) -> None:
        self.losses += 1

    @property
    def inference_accuracy(self) -> float:
        total = self.inference_correct_count + self.inference_incorrect_count
        return self.inference_correct_count / total if total else 0.0

    def summary(self) -> str:
        """One-line summary of the session."""
        total_actions = self.aggressive_actions + self.passive_actions
        aggressive_rate = self.aggressive_actions / total_actions if total_actions else 0.0
        passive_rate = self.passive_actions / total_actions if total_actions else 0.0
        return (
            f"AI Stats | rounds={self.rounds} wins={self.wins} losses={self.losses} "
            f"folds={self.folds} calls={self.calls} raises={self.raises} checks={self.checks} "
            f"aggressive={self.aggressive_actions} ({aggressive_rate:.1%}) "
            f"passive={self.passive_actions} ({passive_rate:.1%}) "
            f"inferred weak={self.inferred_weak_responses} "
            f"inferred bluffs={self.inferred_bluff_responses} "
            f"inferred strong={self.inferred_strong_responses} "
            f"inference accuracy={self.inference_accuracy:.1%}"
        )

    def _totals(self) -> list:
        return [
            self.rounds, self.wins, self.losses, self.folds, self.calls, self.raises,
            self.checks, self.aggressive_actions, self.passive_actions,
            self.inferred_weak_responses, self.inferred_bluff_responses,
            self.inferred_strong_responses, self.inference_correct_count,
            self.inference_incorrect_count,
        ]

    def export_csv(self, path: Union[str, Path]) -> int:
        """
        Append the records not yet exported to a CSV file.

        The header is written when the file does not exist yet.

        Returns:
            Number of rows written.
        """
        path = Path(path)
        needs_header = not path.exists()
        new_records = self.records[self._exported_count:]
        totals = self._totals()

        with open(path, "a", newline="") as f:
            writer = csv.writer(f)
            if needs_header:
                writer.writerow(CSV_COLUMNS)
            for record in new_records:
                writer.writerow([
                    record.round,
                    record.action.name,
                    record.aggressive,
                    record.reaction_aligned,
                    record.used_tendency,
                    f"{record.confidence:.4f}",
                    f"{record.bluff_probability:.4f}",
                    f"{record.strong_probability:.4f}",
                    f"{record.weak_probability:.4f}",
                    record.inference_label,
                    _format_optional(record.player_strong),
                    _format_optional(record.inference_correct),
                    *totals,
                ])

        self._exported_count = len(self.records)
        return len(new_records)
