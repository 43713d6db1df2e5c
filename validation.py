# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Input validation layer for scoring events.

Two stages guard the engine:

1. Payload parsing: raw dicts from the scoring UI are validated with the
   Pydantic models in ``models.py`` and normalized into ``Ball`` events.
   Malformed payloads raise ``EventValidationError`` listing each failing
   field.
2. Match-state checks: ``validate_ball`` decides whether a well-formed ball
   may be applied to the match as it stands (match live, actors selected,
   actors on the right sides, dismissed batter at the crease). It returns a
   ``ValidationResult`` and never mutates the match.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from match_state import Ball, Innings, Match
from models import BallInput, ExtraKind, MatchSetupInput, MatchStatus


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ScoringError(Exception):
    """Base class for scoring engine errors."""


class EventValidationError(ScoringError):
    """Raised when a payload cannot be parsed into an engine input."""

    def __init__(self, message: str, details: list[str] | None = None):
        self.details = details or []
        super().__init__(message)


class ValidationErrorDetail:
    """Container for a structured validation error."""

    def __init__(self, parameter: str, expected: str, got: Any):
        self.parameter = parameter
        self.expected = expected
        self.got = got

    def to_dict(self) -> dict:
        return {
            "parameter": self.parameter,
            "expected": self.expected,
            "got": repr(self.got),
        }

    def __str__(self) -> str:
        return f"Parameter '{self.parameter}': expected {self.expected}, got {self.got!r}"


def _details_from(exc: ValidationError) -> list[str]:
    details = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "payload"
        details.append(str(ValidationErrorDetail(loc, err.get("msg", "?"), err.get("input"))))
    return details


# ---------------------------------------------------------------------------
# Payload parsing
# ---------------------------------------------------------------------------

def parse_ball_event(payload: dict[str, Any]) -> Ball:
    """Parse a scoring UI payload into a normalized ``Ball``.

    Raises:
        EventValidationError: If the payload is not a valid ball event.
    """
    if not isinstance(payload, dict):
        raise EventValidationError("Ball event payload must be a JSON object")
    try:
        data = BallInput.model_validate(payload)
    except ValidationError as exc:
        raise EventValidationError("Invalid ball event", details=_details_from(exc)) from exc
    return Ball.from_input(data)


def parse_match_setup(payload: dict[str, Any]) -> MatchSetupInput:
    """Parse a match setup payload (teams, format, venue, toss).

    Raises:
        EventValidationError: If the payload is not a valid match setup.
    """
    if not isinstance(payload, dict):
        raise EventValidationError("Match setup payload must be a JSON object")
    try:
        return MatchSetupInput.model_validate(payload)
    except ValidationError as exc:
        raise EventValidationError("Invalid match setup", details=_details_from(exc)) from exc


# ---------------------------------------------------------------------------
# Match-state checks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ValidationResult:
    accepted: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.accepted

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(True)

    @classmethod
    def reject(cls, reason: str) -> ValidationResult:
        return cls(False, reason)


def _check_sides(match: Match, innings: Innings, ball: Ball) -> str:
    batting = match.team(innings.batting_team_id)
    bowling = match.team(innings.bowling_team_id)
    if batting.players:
        for pid in (ball.striker_id, ball.non_striker_id):
            if not batting.has_player(pid):
                return f"{pid} is not in the batting team {batting.name}"
    if bowling.players and not bowling.has_player(ball.bowler_id):
        return f"{ball.bowler_id} is not in the bowling team {bowling.name}"
    return ""


def _check_runs(ball: Ball) -> str:
    """Shape checks for balls built without going through ``BallInput``."""
    if not 0 <= ball.runs_off_bat <= 6:
        return f"runs_off_bat must be between 0 and 6, got {ball.runs_off_bat}"
    if not 0 <= ball.extra_runs <= 7:
        return f"extra_runs must be between 0 and 7, got {ball.extra_runs}"
    if ball.extra_kind is None and ball.extra_runs:
        return "extra_runs given without an extra kind"
    kind = ball.extra_kind
    if kind in (ExtraKind.WIDE, ExtraKind.BYE, ExtraKind.LEG_BYE) and ball.runs_off_bat:
        return f"runs_off_bat must be 0 on a {kind.value}"
    if kind in (ExtraKind.BYE, ExtraKind.LEG_BYE) and ball.extra_runs < 1:
        return f"a {kind.value} needs at least one run"
    if not 0 <= ball.overthrows <= ball.runs_off_bat:
        return f"overthrows must be between 0 and runs_off_bat, got {ball.overthrows}"
    return ""


def _check_pair(innings: Innings, ball: Ball) -> str:
    pair = {ball.striker_id, ball.non_striker_id}
    tracker = innings.partnerships
    if tracker.is_open and tracker.current.pair() != pair:
        current = tracker.current
        return f"{current.batter1} and {current.batter2} are at the crease"
    if not tracker.is_open:
        survivor = innings.striker_id or innings.non_striker_id
        if innings.needs_new_batter and survivor and survivor not in pair:
            return f"{survivor} is still at the crease"
    return ""


def validate_ball(match: Match, ball: Ball) -> ValidationResult:
    """Decide whether ``ball`` can be applied to ``match``. No side effects."""
    if match.status != MatchStatus.LIVE:
        return ValidationResult.reject(f"match is {match.status.value}, not live")
    innings = match.current_innings()
    if innings is None or innings.is_complete:
        return ValidationResult.reject("no innings is in progress")

    if not ball.striker_id:
        return ValidationResult.reject("striker is not selected")
    if not ball.non_striker_id:
        return ValidationResult.reject("non-striker is not selected")
    if not ball.bowler_id:
        return ValidationResult.reject("bowler is not selected")
    if ball.striker_id == ball.non_striker_id:
        return ValidationResult.reject("striker and non-striker must be different players")
    if ball.bowler_id in (ball.striker_id, ball.non_striker_id):
        return ValidationResult.reject("bowler cannot be one of the batters")

    reason = _check_runs(ball)
    if reason:
        return ValidationResult.reject(reason)

    reason = _check_sides(match, innings, ball)
    if reason:
        return ValidationResult.reject(reason)

    for pid in (ball.striker_id, ball.non_striker_id):
        if innings.is_dismissed(pid):
            return ValidationResult.reject(f"{pid} is already out")

    reason = _check_pair(innings, ball)
    if reason:
        return ValidationResult.reject(reason)

    if ball.is_wicket and ball.dismissed_player_id not in (ball.striker_id, ball.non_striker_id):
        return ValidationResult.reject(
            f"dismissed player {ball.dismissed_player_id} is not at the crease"
        )
    return ValidationResult.ok()
