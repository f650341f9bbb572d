"""
Score validation for admin-entered results.

A result is expressed on the wire as:
  {"team1Score": 2, "team2Score": 1,
   "setScores": [{"setNumber": 1, "team1Games": 6, "team2Games": 3}, ...]}

team1Score/team2Score count sets won. setScores is optional; when present it
must describe every set played.

Request bodies carry scores as FinalScore, so malformed shapes are rejected
before a handler runs. validate_final_score() also accepts plain mappings and
raises league_admin.errors.ValidationError on any malformed or out-of-format score.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from league_admin.errors import ValidationError
from league_admin.models.enums import TeamSide


class SetScore(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    set_number: int = Field(ge=1)
    team1_games: int = Field(ge=0)
    team2_games: int = Field(ge=0)


class FinalScore(BaseModel):
    """A complete result as submitted in a request body."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    team1_score: int = Field(ge=0)
    team2_score: int = Field(ge=0)
    set_scores: Optional[List[SetScore]] = None

    def as_mapping(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


@dataclass
class ValidatedScore:
    team1_score: int
    team2_score: int
    sets: List[Tuple[int, int]]  # (team1_games, team2_games) per set, in set order

    @property
    def winner(self) -> TeamSide:
        return TeamSide.TEAM1 if self.team1_score > self.team2_score else TeamSide.TEAM2

    def set_scores_json(self) -> Optional[List[Dict[str, int]]]:
        if not self.sets:
            return None
        return [
            {"setNumber": i, "team1Games": a, "team2Games": b}
            for i, (a, b) in enumerate(self.sets, start=1)
        ]

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"team1Score": self.team1_score, "team2Score": self.team2_score}
        set_scores = self.set_scores_json()
        if set_scores is not None:
            data["setScores"] = set_scores
        return data


def _non_negative_int(value: Any, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{label} must be an integer")
    if value < 0:
        raise ValidationError(f"{label} must not be negative")
    return value


def _get(entry: Mapping[str, Any], camel: str, snake: str) -> Any:
    return entry[camel] if camel in entry else entry.get(snake)


def parse_set_scores(set_scores: Optional[Sequence[Mapping[str, Any]]]) -> List[Tuple[int, int]]:
    """Check set entries are numbered 1..n without gaps and carry non-negative game counts."""
    if not set_scores:
        return []
    if not isinstance(set_scores, (list, tuple)):
        raise ValidationError("setScores must be a list")

    numbered: Dict[int, Tuple[int, int]] = {}
    for entry in set_scores:
        if isinstance(entry, SetScore):
            entry = entry.model_dump()
        if not isinstance(entry, Mapping):
            raise ValidationError("Each setScores entry must be an object")
        number = _non_negative_int(_get(entry, "setNumber", "set_number"), "setNumber")
        if number in numbered:
            raise ValidationError(f"Duplicate setNumber {number}")
        a = _non_negative_int(_get(entry, "team1Games", "team1_games"), "team1Games")
        b = _non_negative_int(_get(entry, "team2Games", "team2_games"), "team2Games")
        numbered[number] = (a, b)

    if sorted(numbered) != list(range(1, len(numbered) + 1)):
        raise ValidationError("setNumber values must run 1..n without gaps")
    return [numbered[n] for n in sorted(numbered)]


def validate_final_score(score: Optional[Union[FinalScore, Mapping[str, Any]]], sets_to_win: int) -> ValidatedScore:
    """Validate a complete result against a first-to-``sets_to_win`` format."""
    if isinstance(score, FinalScore):
        score = score.as_mapping()
    if not score:
        raise ValidationError("finalScore is required")
    if not isinstance(score, Mapping):
        raise ValidationError("finalScore must be an object")

    team1 = _non_negative_int(_get(score, "team1Score", "team1_score"), "team1Score")
    team2 = _non_negative_int(_get(score, "team2Score", "team2_score"), "team2Score")

    if max(team1, team2) != sets_to_win or min(team1, team2) >= sets_to_win:
        raise ValidationError(
            f"Score {team1}-{team2} is not a finished result for a first-to-{sets_to_win} match"
        )

    sets = parse_set_scores(_get(score, "setScores", "set_scores"))
    if sets:
        if len(sets) != team1 + team2:
            raise ValidationError(f"Expected {team1 + team2} set scores, got {len(sets)}")
        if any(a == b for a, b in sets):
            raise ValidationError("A set cannot end level")
        won1 = sum(1 for a, b in sets if a > b)
        won2 = len(sets) - won1
        if (won1, won2) != (team1, team2):
            raise ValidationError("Set scores do not add up to the submitted set totals")

    return ValidatedScore(team1_score=team1, team2_score=team2, sets=sets)


def walkover_score(winner: TeamSide, sets_to_win: int) -> ValidatedScore:
    if winner == TeamSide.TEAM1:
        return ValidatedScore(team1_score=sets_to_win, team2_score=0, sets=[])
    return ValidatedScore(team1_score=0, team2_score=sets_to_win, sets=[])
