# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Data models for the cricket scoring engine.

Closed enums for every kind the engine branches on, and Pydantic schemas for
the payloads that cross its boundary: team rosters from the registry, the
match setup, and one ball event per scorer action.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ExtraKind(str, Enum):
    WIDE = "wide"
    NO_BALL = "no-ball"
    BYE = "bye"
    LEG_BYE = "leg-bye"
    PENALTY = "penalty"


class DismissalKind(str, Enum):
    BOWLED = "bowled"
    CAUGHT = "caught"
    LBW = "lbw"
    RUN_OUT = "run-out"
    STUMPED = "stumped"
    HIT_WICKET = "hit-wicket"
    RETIRED_HURT = "retired-hurt"
    TIMED_OUT = "timed-out"
    OBSTRUCTING_FIELD = "obstructing-the-field"


# Dismissals the bowler is credited with.
BOWLER_CREDITED = frozenset({
    DismissalKind.BOWLED,
    DismissalKind.CAUGHT,
    DismissalKind.LBW,
    DismissalKind.STUMPED,
    DismissalKind.HIT_WICKET,
})

# Dismissals that name a fielder when one is supplied.
FIELDER_DISMISSALS = frozenset({
    DismissalKind.CAUGHT,
    DismissalKind.STUMPED,
    DismissalKind.RUN_OUT,
})


class MatchFormat(str, Enum):
    T20 = "T20"
    ODI = "ODI"
    TEST = "Test"
    CUSTOM = "Custom"


class MatchStatus(str, Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    COMPLETED = "completed"


class MatchPhase(str, Enum):
    """Controller states. Status is the coarse, persisted view of these."""
    SCHEDULED = "SCHEDULED"
    AWAITING_FIRST_BALL = "AWAITING_FIRST_BALL"
    IN_PROGRESS = "IN_PROGRESS"
    INNINGS_BREAK = "INNINGS_BREAK"
    IN_PROGRESS_SECOND = "IN_PROGRESS_SECOND"
    COMPLETED = "COMPLETED"


class TossDecision(str, Enum):
    BAT = "bat"
    BOWL = "bowl"


class ResultType(str, Enum):
    RUNS = "runs"
    WICKETS = "wickets"
    TIE = "tie"


class InningsEndReason(str, Enum):
    ALL_OUT = "all-out"
    OVERS_COMPLETE = "overs-complete"
    TARGET_REACHED = "target-reached"


class SignalKind(str, Enum):
    MATCH_STARTED = "match-started"
    INNINGS_ENDED = "innings-ended"
    MATCH_COMPLETED = "match-completed"
    PARTNERSHIP_MILESTONE = "partnership-milestone"


# Sentinel recorded on a partnership that closed without a wicket.
INNINGS_END = "innings end"


# ---------------------------------------------------------------------------
# Team registry payloads
# ---------------------------------------------------------------------------

class PlayerInput(BaseModel):
    player_id: str = Field(min_length=1, description="Opaque player identifier")
    name: str = Field(default="", description="Display name; defaults to the id")

    @field_validator("player_id")
    @classmethod
    def strip_player_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("player_id must be a non-empty string")
        return v


class TeamInput(BaseModel):
    team_id: str = Field(min_length=1)
    name: str = ""
    players: list[PlayerInput] = Field(default_factory=list)

    @model_validator(mode="after")
    def unique_players(self) -> TeamInput:
        ids = [p.player_id for p in self.players]
        if len(ids) != len(set(ids)):
            raise ValueError(f"duplicate player ids in team {self.team_id}")
        return self


# ---------------------------------------------------------------------------
# Ball event payloads
# ---------------------------------------------------------------------------

class ExtraInput(BaseModel):
    kind: ExtraKind
    runs: int = Field(default=1, ge=0, le=7, description="Total extra runs on the delivery")


class WicketInput(BaseModel):
    kind: DismissalKind
    dismissed_player_id: str = Field(min_length=1)
    fielder_id: Optional[str] = None


class BallInput(BaseModel):
    """One delivery as entered by the scorer."""
    runs_off_bat: int = Field(default=0, ge=0, le=6)
    extra: Optional[ExtraInput] = None
    wicket: Optional[WicketInput] = None
    overthrows: int = Field(default=0, ge=0, le=6, description="Overthrow runs included in runs_off_bat")
    striker_id: str = ""
    non_striker_id: str = ""
    bowler_id: str = ""

    @model_validator(mode="after")
    def check_runs_shape(self) -> BallInput:
        if self.extra is not None:
            kind = self.extra.kind
            if kind in (ExtraKind.WIDE, ExtraKind.BYE, ExtraKind.LEG_BYE) and self.runs_off_bat:
                raise ValueError(f"runs_off_bat must be 0 on a {kind.value}")
            if kind in (ExtraKind.BYE, ExtraKind.LEG_BYE) and self.extra.runs < 1:
                raise ValueError(f"a {kind.value} needs at least one run")
        if self.overthrows > self.runs_off_bat:
            raise ValueError("overthrows cannot exceed runs_off_bat")
        return self


# ---------------------------------------------------------------------------
# Match setup payload
# ---------------------------------------------------------------------------

class MatchSetupInput(BaseModel):
    team1: TeamInput
    team2: TeamInput
    format: MatchFormat = MatchFormat.T20
    overs: Optional[int] = Field(default=None, ge=1, description="Overs per innings for Custom format")
    venue: str = ""
    toss_winner: str = Field(min_length=1, description="team_id of the toss winner")
    toss_decision: TossDecision = TossDecision.BAT

    @model_validator(mode="after")
    def check_teams_and_toss(self) -> MatchSetupInput:
        if self.team1.team_id == self.team2.team_id:
            raise ValueError("team1 and team2 must be different teams")
        if self.toss_winner not in (self.team1.team_id, self.team2.team_id):
            raise ValueError("toss_winner must be one of the two team ids")
        if self.format == MatchFormat.CUSTOM and self.overs is None:
            raise ValueError("Custom format requires overs")
        return self
