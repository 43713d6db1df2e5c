# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Authoritative match state for the scoring engine.

Runtime dataclasses for a fixture and its innings: per-player batting and
bowling figures keyed by player id, the extras breakdown, over summaries,
the partnership tracker, the commentary log and the final result. Every
type serializes to plain JSON-compatible dicts and back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from models import (
    BOWLER_CREDITED,
    DismissalKind,
    ExtraKind,
    MatchFormat,
    MatchPhase,
    MatchStatus,
    ResultType,
    SignalKind,
    TossDecision,
    BallInput,
    TeamInput,
)
from partnership import BallPosition, PartnershipTracker

MAX_WICKETS = 10
BALLS_PER_OVER = 6
PENALTY_RUNS = 5


# ---------------------------------------------------------------------------
# Registry view
# ---------------------------------------------------------------------------

@dataclass
class PlayerRef:
    player_id: str
    name: str

    def to_dict(self) -> dict:
        return {"player_id": self.player_id, "name": self.name}


@dataclass
class TeamSide:
    """Read-only view of a team as supplied by the registry."""
    team_id: str
    name: str
    players: list[PlayerRef] = field(default_factory=list)

    @classmethod
    def from_input(cls, team: TeamInput) -> TeamSide:
        return cls(
            team_id=team.team_id,
            name=team.name or team.team_id,
            players=[PlayerRef(p.player_id, p.name or p.player_id) for p in team.players],
        )

    def has_player(self, player_id: str) -> bool:
        return any(p.player_id == player_id for p in self.players)

    def player_name(self, player_id: str) -> str:
        for p in self.players:
            if p.player_id == player_id:
                return p.name
        return player_id

    def to_dict(self) -> dict:
        return {
            "team_id": self.team_id,
            "name": self.name,
            "players": [p.to_dict() for p in self.players],
        }

    @classmethod
    def from_dict(cls, d: dict) -> TeamSide:
        return cls(
            team_id=d["team_id"],
            name=d.get("name", d["team_id"]),
            players=[PlayerRef(p["player_id"], p.get("name", p["player_id"])) for p in d.get("players", [])],
        )


# ---------------------------------------------------------------------------
# Ball event
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Ball:
    """One delivery, normalized from the scorer's input.

    ``extra_runs`` is the amount credited to the extras bucket: at least 1 on
    a wide or no-ball, exactly 5 on a penalty.
    """
    striker_id: str
    non_striker_id: str
    bowler_id: str
    runs_off_bat: int = 0
    extra_kind: ExtraKind | None = None
    extra_runs: int = 0
    wicket_kind: DismissalKind | None = None
    dismissed_player_id: str | None = None
    fielder_id: str | None = None
    overthrows: int = 0

    def __post_init__(self):
        if self.extra_kind in (ExtraKind.WIDE, ExtraKind.NO_BALL):
            object.__setattr__(self, "extra_runs", max(self.extra_runs, 1))
        elif self.extra_kind == ExtraKind.PENALTY:
            object.__setattr__(self, "extra_runs", PENALTY_RUNS)

    @classmethod
    def from_input(cls, data: BallInput) -> Ball:
        return cls(
            striker_id=data.striker_id.strip(),
            non_striker_id=data.non_striker_id.strip(),
            bowler_id=data.bowler_id.strip(),
            runs_off_bat=data.runs_off_bat,
            extra_kind=data.extra.kind if data.extra else None,
            extra_runs=data.extra.runs if data.extra else 0,
            wicket_kind=data.wicket.kind if data.wicket else None,
            dismissed_player_id=data.wicket.dismissed_player_id if data.wicket else None,
            fielder_id=data.wicket.fielder_id if data.wicket else None,
            overthrows=data.overthrows,
        )

    @property
    def is_legal(self) -> bool:
        return self.extra_kind not in (ExtraKind.WIDE, ExtraKind.NO_BALL)

    @property
    def is_wicket(self) -> bool:
        return self.wicket_kind is not None

    @property
    def total_runs(self) -> int:
        return self.runs_off_bat + self.extra_runs

    @property
    def is_four(self) -> bool:
        return self.runs_off_bat == 4 and self.overthrows == 0

    @property
    def is_six(self) -> bool:
        return self.runs_off_bat == 6 and self.overthrows == 0

    @property
    def bowler_runs(self) -> int:
        """Runs charged to the bowler's analysis."""
        if self.extra_kind in (ExtraKind.WIDE, ExtraKind.NO_BALL):
            return self.runs_off_bat + self.extra_runs
        return self.runs_off_bat

    @property
    def completed_runs(self) -> int:
        """Runs physically completed between the wickets."""
        if self.extra_kind in (ExtraKind.WIDE, ExtraKind.NO_BALL):
            return self.runs_off_bat + self.extra_runs - 1
        if self.extra_kind in (ExtraKind.BYE, ExtraKind.LEG_BYE):
            return self.extra_runs
        return self.runs_off_bat

    @property
    def bowler_credited(self) -> bool:
        return self.wicket_kind in BOWLER_CREDITED

    def to_dict(self) -> dict:
        return {
            "striker_id": self.striker_id,
            "non_striker_id": self.non_striker_id,
            "bowler_id": self.bowler_id,
            "runs_off_bat": self.runs_off_bat,
            "extra_kind": self.extra_kind.value if self.extra_kind else None,
            "extra_runs": self.extra_runs,
            "wicket_kind": self.wicket_kind.value if self.wicket_kind else None,
            "dismissed_player_id": self.dismissed_player_id,
            "fielder_id": self.fielder_id,
            "overthrows": self.overthrows,
        }


# ---------------------------------------------------------------------------
# Per-innings statistics
# ---------------------------------------------------------------------------

@dataclass
class Extras:
    wides: int = 0
    no_balls: int = 0
    byes: int = 0
    leg_byes: int = 0
    penalties: int = 0
    counts: dict[str, int] = field(default_factory=dict)  # deliveries per extra kind

    _BUCKETS = {
        ExtraKind.WIDE: "wides",
        ExtraKind.NO_BALL: "no_balls",
        ExtraKind.BYE: "byes",
        ExtraKind.LEG_BYE: "leg_byes",
        ExtraKind.PENALTY: "penalties",
    }

    @property
    def total(self) -> int:
        return self.wides + self.no_balls + self.byes + self.leg_byes + self.penalties

    def credit(self, kind: ExtraKind, runs: int) -> None:
        bucket = self._BUCKETS[kind]
        setattr(self, bucket, getattr(self, bucket) + runs)
        self.counts[kind.value] = self.counts.get(kind.value, 0) + 1

    def to_dict(self) -> dict:
        return {
            "wides": self.wides,
            "no_balls": self.no_balls,
            "byes": self.byes,
            "leg_byes": self.leg_byes,
            "penalties": self.penalties,
            "total": self.total,
            "counts": dict(self.counts),
        }

    @classmethod
    def from_dict(cls, d: dict) -> Extras:
        return cls(
            wides=d.get("wides", 0),
            no_balls=d.get("no_balls", 0),
            byes=d.get("byes", 0),
            leg_byes=d.get("leg_byes", 0),
            penalties=d.get("penalties", 0),
            counts=dict(d.get("counts", {})),
        )


def strike_rate(runs: int, balls: int) -> float:
    return runs / balls * 100 if balls > 0 else 0.0


def economy_rate(runs: int, legal_balls: int) -> float:
    return runs / (legal_balls / BALLS_PER_OVER) if legal_balls > 0 else 0.0


def overs_display(legal_balls: int) -> str:
    return str(BallPosition.from_legal_balls(legal_balls))


@dataclass
class BatsmanStats:
    player_id: str
    name: str
    runs: int = 0
    balls_faced: int = 0
    fours: int = 0
    sixes: int = 0
    is_out: bool = False
    dismissal_kind: DismissalKind | None = None
    bowler_id: str | None = None
    fielder_id: str | None = None

    @property
    def strike_rate(self) -> float:
        return strike_rate(self.runs, self.balls_faced)

    def to_dict(self) -> dict:
        return {
            "player_id": self.player_id,
            "name": self.name,
            "runs": self.runs,
            "balls_faced": self.balls_faced,
            "fours": self.fours,
            "sixes": self.sixes,
            "strike_rate": round(self.strike_rate, 2),
            "is_out": self.is_out,
            "dismissal_kind": self.dismissal_kind.value if self.dismissal_kind else None,
            "bowler_id": self.bowler_id,
            "fielder_id": self.fielder_id,
        }

    @classmethod
    def from_dict(cls, d: dict) -> BatsmanStats:
        kind = d.get("dismissal_kind")
        return cls(
            player_id=d["player_id"],
            name=d.get("name", d["player_id"]),
            runs=d.get("runs", 0),
            balls_faced=d.get("balls_faced", 0),
            fours=d.get("fours", 0),
            sixes=d.get("sixes", 0),
            is_out=d.get("is_out", False),
            dismissal_kind=DismissalKind(kind) if kind else None,
            bowler_id=d.get("bowler_id"),
            fielder_id=d.get("fielder_id"),
        )


@dataclass
class BowlerStats:
    player_id: str
    name: str
    legal_balls: int = 0
    runs_conceded: int = 0
    wickets: int = 0
    maidens: int = 0
    wides: int = 0
    no_balls: int = 0

    @property
    def economy_rate(self) -> float:
        return economy_rate(self.runs_conceded, self.legal_balls)

    @property
    def overs(self) -> str:
        return overs_display(self.legal_balls)

    def to_dict(self) -> dict:
        return {
            "player_id": self.player_id,
            "name": self.name,
            "overs": self.overs,
            "legal_balls": self.legal_balls,
            "runs_conceded": self.runs_conceded,
            "wickets": self.wickets,
            "maidens": self.maidens,
            "wides": self.wides,
            "no_balls": self.no_balls,
            "economy_rate": round(self.economy_rate, 2),
        }

    @classmethod
    def from_dict(cls, d: dict) -> BowlerStats:
        return cls(
            player_id=d["player_id"],
            name=d.get("name", d["player_id"]),
            legal_balls=d.get("legal_balls", 0),
            runs_conceded=d.get("runs_conceded", 0),
            wickets=d.get("wickets", 0),
            maidens=d.get("maidens", 0),
            wides=d.get("wides", 0),
            no_balls=d.get("no_balls", 0),
        )


@dataclass
class OverSummary:
    over_number: int  # 1-based
    bowler_ids: list[str] = field(default_factory=list)
    runs: int = 0
    bowler_runs: int = 0
    wickets: int = 0
    legal_balls: int = 0
    balls: list[str] = field(default_factory=list)
    is_maiden: bool = False

    def to_dict(self) -> dict:
        return {
            "over_number": self.over_number,
            "bowler_ids": list(self.bowler_ids),
            "runs": self.runs,
            "bowler_runs": self.bowler_runs,
            "wickets": self.wickets,
            "legal_balls": self.legal_balls,
            "balls": list(self.balls),
            "is_maiden": self.is_maiden,
        }

    @classmethod
    def from_dict(cls, d: dict) -> OverSummary:
        return cls(
            over_number=d["over_number"],
            bowler_ids=list(d.get("bowler_ids", [])),
            runs=d.get("runs", 0),
            bowler_runs=d.get("bowler_runs", 0),
            wickets=d.get("wickets", 0),
            legal_balls=d.get("legal_balls", 0),
            balls=list(d.get("balls", [])),
            is_maiden=d.get("is_maiden", False),
        )


# ---------------------------------------------------------------------------
# Innings
# ---------------------------------------------------------------------------

@dataclass
class Innings:
    """One team's batting turn."""
    number: int
    batting_team_id: str
    bowling_team_id: str
    max_overs: int | None = None
    target: int | None = None
    runs: int = 0
    wickets: int = 0
    legal_balls: int = 0
    completed_overs: int = 0
    extras: Extras = field(default_factory=Extras)
    batsmen: dict[str, BatsmanStats] = field(default_factory=dict)
    bowlers: dict[str, BowlerStats] = field(default_factory=dict)
    partnerships: PartnershipTracker = field(default_factory=PartnershipTracker)
    overs: list[OverSummary] = field(default_factory=list)
    current_over: OverSummary | None = None
    striker_id: str | None = None
    non_striker_id: str | None = None
    bowler_id: str | None = None
    needs_new_batter: bool = False
    is_complete: bool = False
    end_reason: str | None = None

    @property
    def position(self) -> BallPosition:
        return BallPosition.from_legal_balls(self.legal_balls)

    @property
    def max_legal_balls(self) -> int | None:
        return self.max_overs * BALLS_PER_OVER if self.max_overs is not None else None

    @property
    def overs_display(self) -> str:
        return overs_display(self.legal_balls)

    @property
    def run_rate(self) -> float:
        return economy_rate(self.runs, self.legal_balls)

    @property
    def balls_remaining(self) -> int | None:
        if self.max_legal_balls is None:
            return None
        return self.max_legal_balls - self.legal_balls

    @property
    def runs_required(self) -> int | None:
        if self.target is None:
            return None
        return max(self.target - self.runs, 0)

    @property
    def required_run_rate(self) -> float | None:
        if self.target is None or self.balls_remaining is None:
            return None
        return economy_rate(self.runs_required, self.balls_remaining)

    @property
    def current_batters(self) -> list[str]:
        return [p for p in (self.striker_id, self.non_striker_id) if p]

    def batter(self, player_id: str, name: str) -> BatsmanStats:
        if player_id not in self.batsmen:
            self.batsmen[player_id] = BatsmanStats(player_id=player_id, name=name)
        return self.batsmen[player_id]

    def bowler(self, player_id: str, name: str) -> BowlerStats:
        if player_id not in self.bowlers:
            self.bowlers[player_id] = BowlerStats(player_id=player_id, name=name)
        return self.bowlers[player_id]

    def is_dismissed(self, player_id: str) -> bool:
        stats = self.batsmen.get(player_id)
        return stats is not None and stats.is_out

    def score_display(self) -> str:
        return f"{self.runs}/{self.wickets} ({self.overs_display} ov)"

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "batting_team_id": self.batting_team_id,
            "bowling_team_id": self.bowling_team_id,
            "max_overs": self.max_overs,
            "target": self.target,
            "runs": self.runs,
            "wickets": self.wickets,
            "legal_balls": self.legal_balls,
            "completed_overs": self.completed_overs,
            "overs_display": self.overs_display,
            "run_rate": round(self.run_rate, 2),
            "extras": self.extras.to_dict(),
            "batsmen": [b.to_dict() for b in self.batsmen.values()],
            "bowlers": [b.to_dict() for b in self.bowlers.values()],
            "partnerships": self.partnerships.to_dict(),
            "overs": [o.to_dict() for o in self.overs],
            "current_over": self.current_over.to_dict() if self.current_over else None,
            "striker_id": self.striker_id,
            "non_striker_id": self.non_striker_id,
            "bowler_id": self.bowler_id,
            "needs_new_batter": self.needs_new_batter,
            "is_complete": self.is_complete,
            "end_reason": self.end_reason,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Innings:
        current_over = d.get("current_over")
        return cls(
            number=d["number"],
            batting_team_id=d["batting_team_id"],
            bowling_team_id=d["bowling_team_id"],
            max_overs=d.get("max_overs"),
            target=d.get("target"),
            runs=d.get("runs", 0),
            wickets=d.get("wickets", 0),
            legal_balls=d.get("legal_balls", 0),
            completed_overs=d.get("completed_overs", 0),
            extras=Extras.from_dict(d.get("extras", {})),
            batsmen={b["player_id"]: BatsmanStats.from_dict(b) for b in d.get("batsmen", [])},
            bowlers={b["player_id"]: BowlerStats.from_dict(b) for b in d.get("bowlers", [])},
            partnerships=PartnershipTracker.from_dict(d.get("partnerships", {})),
            overs=[OverSummary.from_dict(o) for o in d.get("overs", [])],
            current_over=OverSummary.from_dict(current_over) if current_over else None,
            striker_id=d.get("striker_id"),
            non_striker_id=d.get("non_striker_id"),
            bowler_id=d.get("bowler_id"),
            needs_new_batter=d.get("needs_new_batter", False),
            is_complete=d.get("is_complete", False),
            end_reason=d.get("end_reason"),
        )


# ---------------------------------------------------------------------------
# Result, commentary and signals
# ---------------------------------------------------------------------------

@dataclass
class MatchResult:
    result_type: ResultType
    winner_team_id: str | None = None
    winner_name: str | None = None
    margin: int = 0

    def describe(self) -> str:
        if self.result_type == ResultType.TIE:
            return "Match tied"
        unit = self.result_type.value
        if self.margin == 1:
            unit = unit[:-1]
        return f"{self.winner_name} won by {self.margin} {unit}"

    def to_dict(self) -> dict:
        return {
            "result_type": self.result_type.value,
            "winner_team_id": self.winner_team_id,
            "winner_name": self.winner_name,
            "margin": self.margin,
            "description": self.describe(),
        }

    @classmethod
    def from_dict(cls, d: dict) -> MatchResult:
        return cls(
            result_type=ResultType(d["result_type"]),
            winner_team_id=d.get("winner_team_id"),
            winner_name=d.get("winner_name"),
            margin=d.get("margin", 0),
        )


@dataclass
class CommentaryEntry:
    innings: int
    position: str  # over.ball after the delivery
    description: str
    event_type: str = "ball"  # "ball", "over_end", "innings_end", "match_end"
    bowler_id: str = ""
    batter_id: str = ""
    runs: int = 0
    is_wicket: bool = False
    dismissal_kind: str | None = None
    extra_kind: str | None = None

    def to_dict(self) -> dict:
        return {
            "innings": self.innings,
            "position": self.position,
            "description": self.description,
            "event_type": self.event_type,
            "bowler_id": self.bowler_id,
            "batter_id": self.batter_id,
            "runs": self.runs,
            "is_wicket": self.is_wicket,
            "dismissal_kind": self.dismissal_kind,
            "extra_kind": self.extra_kind,
        }

    @classmethod
    def from_dict(cls, d: dict) -> CommentaryEntry:
        return cls(
            innings=d["innings"],
            position=d["position"],
            description=d["description"],
            event_type=d.get("event_type", "ball"),
            bowler_id=d.get("bowler_id", ""),
            batter_id=d.get("batter_id", ""),
            runs=d.get("runs", 0),
            is_wicket=d.get("is_wicket", False),
            dismissal_kind=d.get("dismissal_kind"),
            extra_kind=d.get("extra_kind"),
        )


@dataclass(frozen=True)
class MatchSignal:
    """Discrete event for the notification layer."""
    kind: SignalKind
    match_id: str
    innings: int = 0
    data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "match_id": self.match_id,
            "innings": self.innings,
            "data": dict(self.data),
        }


# ---------------------------------------------------------------------------
# Match
# ---------------------------------------------------------------------------

@dataclass
class Match:
    """One fixture: two teams, up to two innings, commentary and result."""
    match_id: str
    team1: TeamSide
    team2: TeamSide
    format: MatchFormat
    max_overs: int | None
    toss_winner: str
    toss_decision: TossDecision
    venue: str = ""
    status: MatchStatus = MatchStatus.SCHEDULED
    phase: MatchPhase = MatchPhase.SCHEDULED
    innings: list[Innings] = field(default_factory=list)
    ball_counter: int = 0  # deliveries processed, legal or not
    result: MatchResult | None = None
    commentary: list[CommentaryEntry] = field(default_factory=list)
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def team(self, team_id: str) -> TeamSide:
        for t in (self.team1, self.team2):
            if t.team_id == team_id:
                return t
        raise KeyError(team_id)

    def current_innings(self) -> Innings | None:
        return self.innings[-1] if self.innings else None

    def batting_team(self) -> TeamSide:
        return self.team(self.innings[-1].batting_team_id)

    def bowling_team(self) -> TeamSide:
        return self.team(self.innings[-1].bowling_team_id)

    def player_name(self, player_id: str | None) -> str:
        if not player_id:
            return ""
        for t in (self.team1, self.team2):
            if t.has_player(player_id):
                return t.player_name(player_id)
        return player_id

    def score_display(self) -> str:
        parts = []
        for inn in self.innings:
            parts.append(f"{self.team(inn.batting_team_id).name} {inn.score_display()}")
        return " | ".join(parts)


# ---------------------------------------------------------------------------
# Serialization support
# ---------------------------------------------------------------------------

def match_to_dict(match: Match) -> dict:
    """Serialize a match snapshot for persistence or transport."""
    return {
        "match_id": match.match_id,
        "team1": match.team1.to_dict(),
        "team2": match.team2.to_dict(),
        "format": match.format.value,
        "max_overs": match.max_overs,
        "venue": match.venue,
        "toss_winner": match.toss_winner,
        "toss_decision": match.toss_decision.value,
        "status": match.status.value,
        "phase": match.phase.value,
        "innings": [inn.to_dict() for inn in match.innings],
        "ball_counter": match.ball_counter,
        "result": match.result.to_dict() if match.result else None,
        "commentary": [c.to_dict() for c in match.commentary],
        "created_at": match.created_at,
    }


def match_from_dict(d: dict) -> Match:
    """Rebuild a match from :func:`match_to_dict` output."""
    result = d.get("result")
    return Match(
        match_id=d["match_id"],
        team1=TeamSide.from_dict(d["team1"]),
        team2=TeamSide.from_dict(d["team2"]),
        format=MatchFormat(d["format"]),
        max_overs=d.get("max_overs"),
        venue=d.get("venue", ""),
        toss_winner=d["toss_winner"],
        toss_decision=TossDecision(d["toss_decision"]),
        status=MatchStatus(d["status"]),
        phase=MatchPhase(d["phase"]),
        innings=[Innings.from_dict(inn) for inn in d.get("innings", [])],
        ball_counter=d.get("ball_counter", 0),
        result=MatchResult.from_dict(result) if result else None,
        commentary=[CommentaryEntry.from_dict(c) for c in d.get("commentary", [])],
        created_at=d.get("created_at", ""),
    )
