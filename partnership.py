# /// script
# requires-python = ">=3.12"
# dependencies = []
# ///
"""Partnership tracking for the pair of batters at the crease.

A partnership is open while it accrues runs and balls and is closed exactly
once, on a wicket or at the end of the innings. The tracker owns the single
open slot and the closed history for one innings, and raises milestone
thresholds (25, 50, then every 50) once each.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import total_ordering

logger = logging.getLogger(__name__)

FIRST_MILESTONE = 25
MILESTONE_STEP = 50


class PartnershipError(Exception):
    """Raised when a ball is fed to a partnership that is not open."""


# ---------------------------------------------------------------------------
# Position within an innings
# ---------------------------------------------------------------------------

@total_ordering
@dataclass(frozen=True)
class BallPosition:
    """Completed overs and legal balls into the current over (``12.3``)."""
    over: int = 0
    ball: int = 0

    @classmethod
    def from_legal_balls(cls, legal_balls: int) -> BallPosition:
        return cls(over=legal_balls // 6, ball=legal_balls % 6)

    @property
    def legal_balls(self) -> int:
        return self.over * 6 + self.ball

    def __lt__(self, other: BallPosition) -> bool:
        return self.legal_balls < other.legal_balls

    def __str__(self) -> str:
        return f"{self.over}.{self.ball}"

    def to_dict(self) -> dict:
        return {"over": self.over, "ball": self.ball}

    @classmethod
    def from_dict(cls, d: dict) -> BallPosition:
        return cls(over=d["over"], ball=d["ball"])


def next_milestone_after(runs: int) -> int:
    """Return the first milestone strictly above ``runs``."""
    if runs < FIRST_MILESTONE:
        return FIRST_MILESTONE
    if runs < MILESTONE_STEP:
        return MILESTONE_STEP
    return (runs // MILESTONE_STEP + 1) * MILESTONE_STEP


# ---------------------------------------------------------------------------
# Partnership record
# ---------------------------------------------------------------------------

@dataclass
class Partnership:
    batter1: str
    batter2: str
    start: BallPosition = field(default_factory=BallPosition)
    runs: int = 0
    balls: int = 0
    fours: int = 0
    sixes: int = 0
    extras: int = 0
    overthrows: int = 0
    batter1_runs: int = 0
    batter1_balls: int = 0
    batter2_runs: int = 0
    batter2_balls: int = 0
    end: BallPosition | None = None
    wicket_number: int | None = None
    closed_by: str | None = None  # dismissal kind value or INNINGS_END

    @property
    def is_open(self) -> bool:
        return self.end is None

    def involves(self, player_id: str) -> bool:
        return player_id in (self.batter1, self.batter2)

    def pair(self) -> frozenset[str]:
        return frozenset((self.batter1, self.batter2))

    def to_dict(self) -> dict:
        return {
            "batter1": self.batter1,
            "batter2": self.batter2,
            "runs": self.runs,
            "balls": self.balls,
            "fours": self.fours,
            "sixes": self.sixes,
            "extras": self.extras,
            "overthrows": self.overthrows,
            "batter1_runs": self.batter1_runs,
            "batter1_balls": self.batter1_balls,
            "batter2_runs": self.batter2_runs,
            "batter2_balls": self.batter2_balls,
            "start": self.start.to_dict(),
            "end": self.end.to_dict() if self.end else None,
            "wicket_number": self.wicket_number,
            "closed_by": self.closed_by,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Partnership:
        return cls(
            batter1=d["batter1"],
            batter2=d["batter2"],
            start=BallPosition.from_dict(d["start"]),
            runs=d.get("runs", 0),
            balls=d.get("balls", 0),
            fours=d.get("fours", 0),
            sixes=d.get("sixes", 0),
            extras=d.get("extras", 0),
            overthrows=d.get("overthrows", 0),
            batter1_runs=d.get("batter1_runs", 0),
            batter1_balls=d.get("batter1_balls", 0),
            batter2_runs=d.get("batter2_runs", 0),
            batter2_balls=d.get("batter2_balls", 0),
            end=BallPosition.from_dict(d["end"]) if d.get("end") else None,
            wicket_number=d.get("wicket_number"),
            closed_by=d.get("closed_by"),
        )


# ---------------------------------------------------------------------------
# Tracker
# ---------------------------------------------------------------------------

@dataclass
class PartnershipTracker:
    """Owns the current partnership slot and the closed history of an innings."""
    current: Partnership | None = None
    history: list[Partnership] = field(default_factory=list)
    next_milestone: int = FIRST_MILESTONE

    @property
    def is_open(self) -> bool:
        return self.current is not None and self.current.is_open

    def start(self, batter1: str, batter2: str, at: BallPosition) -> Partnership:
        """Open a new partnership.

        Starting while one is open overwrites it; callers close first.
        """
        if self.is_open:
            logger.warning(
                "Starting %s/%s over an open partnership of %s/%s",
                batter1, batter2, self.current.batter1, self.current.batter2,
            )
        self.current = Partnership(batter1=batter1, batter2=batter2, start=at)
        self.next_milestone = FIRST_MILESTONE
        return self.current

    def add_ball(self, batter_id: str, bat_runs: int, extra_runs: int = 0,
                 is_legal: bool = True, is_four: bool = False, is_six: bool = False,
                 overthrows: int = 0) -> list[int]:
        """Credit one delivery to the open partnership.

        ``batter_id`` is the striker, who receives the bat runs and the ball
        in the per-batter split. Returns the milestones crossed by this ball.
        """
        p = self.current
        if p is None or not p.is_open:
            raise PartnershipError("no open partnership to credit the ball to")
        if not p.involves(batter_id):
            raise PartnershipError(f"{batter_id} is not part of the current partnership")

        legal_ball = 1 if is_legal else 0
        p.runs += bat_runs + extra_runs
        p.extras += extra_runs
        p.balls += legal_ball
        p.overthrows += max(0, overthrows)
        if is_four:
            p.fours += 1
        if is_six:
            p.sixes += 1

        if batter_id == p.batter1:
            p.batter1_runs += bat_runs
            p.batter1_balls += legal_ball
        else:
            p.batter2_runs += bat_runs
            p.batter2_balls += legal_ball

        crossed = []
        while p.runs >= self.next_milestone:
            crossed.append(self.next_milestone)
            self.next_milestone = next_milestone_after(self.next_milestone)
        if crossed:
            logger.info("Partnership %s/%s passed %s", p.batter1, p.batter2, crossed)
        return crossed

    def close(self, closed_by: str, at: BallPosition,
              wicket_number: int | None = None) -> Partnership | None:
        """Freeze the open partnership into history. No-op if none is open."""
        p = self.current
        if p is None or not p.is_open:
            return None
        p.end = at if at >= p.start else p.start
        p.closed_by = closed_by
        p.wicket_number = wicket_number
        self.history.append(p)
        self.current = None
        logger.debug("Closed partnership %s/%s: %d (%d) by %s",
                     p.batter1, p.batter2, p.runs, p.balls, closed_by)
        return p

    def to_dict(self) -> dict:
        return {
            "current": self.current.to_dict() if self.current else None,
            "history": [p.to_dict() for p in self.history],
            "next_milestone": self.next_milestone,
        }

    @classmethod
    def from_dict(cls, d: dict) -> PartnershipTracker:
        current = d.get("current")
        return cls(
            current=Partnership.from_dict(current) if current else None,
            history=[Partnership.from_dict(p) for p in d.get("history", [])],
            next_milestone=d.get("next_milestone", FIRST_MILESTONE),
        )
