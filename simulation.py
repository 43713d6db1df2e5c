# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Seeded match simulator for the scoring engine.

Generates plausible ball events from the current match state (who is at the
crease, who bowls this over) and feeds them through ``ScoringEngine`` until
the match completes. Used for the command-line demo and for exercising the
engine over arbitrary ball sequences.

All randomness is seeded for deterministic replay.
"""

from __future__ import annotations

import json
import logging
import random
from dataclasses import dataclass, field
from pathlib import Path

from match_state import Ball, Innings, Match, MatchSignal
from models import DismissalKind, ExtraKind, MatchSetupInput, MatchStatus
from scoring import BallOutcome, ScoringEngine

logger = logging.getLogger(__name__)

_TEAMS_PATH = Path(__file__).resolve().parent / "data" / "sample_teams.json"

SIDE_SIZE = 11
BOWLING_ROTATION = 5  # last five in the order share the bowling
MAX_DELIVERIES = 5000  # safety valve for unlimited formats

RUN_WEIGHTS = {0: 38, 1: 32, 2: 10, 3: 2, 4: 12, 6: 6}
DISMISSAL_WEIGHTS = {
    DismissalKind.CAUGHT: 50,
    DismissalKind.BOWLED: 20,
    DismissalKind.LBW: 14,
    DismissalKind.RUN_OUT: 10,
    DismissalKind.STUMPED: 5,
    DismissalKind.HIT_WICKET: 1,
}


def load_teams(path: Path | None = None) -> dict:
    """Load the sample match setup (both teams, format, toss) from JSON."""
    p = path or _TEAMS_PATH
    with open(p) as f:
        return json.load(f)


# ---------------------------------------------------------------------------
# Ball generation
# ---------------------------------------------------------------------------

class BallSimulator:
    """Picks actors and rolls the outcome of each delivery."""

    def __init__(self, seed: int | None = None, wicket_rate: float = 0.045):
        if seed is None:
            seed = random.randint(0, 2**31 - 1)
        self.seed = seed
        self.rng = random.Random(seed)
        self.wicket_rate = wicket_rate

    def _weighted(self, weights: dict):
        keys = list(weights)
        return self.rng.choices(keys, weights=[weights[k] for k in keys])[0]

    def batting_order(self, match: Match, inn: Innings) -> list[str]:
        team = match.team(inn.batting_team_id)
        if team.players:
            return [p.player_id for p in team.players]
        return [f"{team.team_id}-{i}" for i in range(1, SIDE_SIZE + 1)]

    def bowling_options(self, match: Match, inn: Innings) -> list[str]:
        team = match.team(inn.bowling_team_id)
        ids = [p.player_id for p in team.players] or [
            f"{team.team_id}-{i}" for i in range(1, SIDE_SIZE + 1)
        ]
        return ids[-BOWLING_ROTATION:]

    def next_batter(self, match: Match, inn: Innings) -> str:
        for pid in self.batting_order(match, inn):
            if pid not in inn.batsmen and pid not in inn.current_batters:
                return pid
        raise RuntimeError(f"no batters left for innings {inn.number}")

    def bowler_for_over(self, match: Match, inn: Innings) -> str:
        options = self.bowling_options(match, inn)
        return options[inn.completed_overs % len(options)]

    def roll_ball(self, match: Match, inn: Innings) -> Ball:
        """Roll one delivery for the batters and bowler currently selected."""
        striker, non_striker, bowler = inn.striker_id, inn.non_striker_id, inn.bowler_id
        actors = dict(striker_id=striker, non_striker_id=non_striker, bowler_id=bowler)
        roll = self.rng.random()

        if roll < 0.04:
            return Ball(**actors, extra_kind=ExtraKind.WIDE,
                        extra_runs=5 if self.rng.random() < 0.05 else 1)
        if roll < 0.055:
            return Ball(**actors, extra_kind=ExtraKind.NO_BALL, extra_runs=1,
                        runs_off_bat=self._weighted(RUN_WEIGHTS))
        if roll < 0.065:
            return Ball(**actors, extra_kind=ExtraKind.BYE, extra_runs=self.rng.choice([1, 1, 2, 4]))
        if roll < 0.085:
            return Ball(**actors, extra_kind=ExtraKind.LEG_BYE, extra_runs=self.rng.choice([1, 1, 2, 4]))
        if roll < 0.087:
            return Ball(**actors, extra_kind=ExtraKind.PENALTY, extra_runs=5)
        if roll < 0.087 + self.wicket_rate:
            return self._roll_wicket(match, inn, actors)

        runs = self._weighted(RUN_WEIGHTS)
        overthrows = 4 if runs == 1 and self.rng.random() < 0.02 else 0
        return Ball(**actors, runs_off_bat=runs + overthrows, overthrows=overthrows)

    def _roll_wicket(self, match: Match, inn: Innings, actors: dict) -> Ball:
        kind = self._weighted(DISMISSAL_WEIGHTS)
        dismissed = actors["striker_id"]
        runs = 0
        if kind == DismissalKind.RUN_OUT:
            dismissed = self.rng.choice([actors["striker_id"], actors["non_striker_id"]])
            runs = self.rng.choice([0, 0, 1])
        fielder = None
        if kind in (DismissalKind.CAUGHT, DismissalKind.RUN_OUT, DismissalKind.STUMPED):
            fielders = [p for p in self.batting_order_of_fielders(match, inn) if p != actors["bowler_id"]]
            fielder = self.rng.choice(fielders) if fielders else None
        return Ball(**actors, runs_off_bat=runs, wicket_kind=kind,
                    dismissed_player_id=dismissed, fielder_id=fielder)

    def batting_order_of_fielders(self, match: Match, inn: Innings) -> list[str]:
        team = match.team(inn.bowling_team_id)
        return [p.player_id for p in team.players] or [
            f"{team.team_id}-{i}" for i in range(1, SIDE_SIZE + 1)
        ]


# ---------------------------------------------------------------------------
# Simulate full match
# ---------------------------------------------------------------------------

@dataclass
class SimulationResult:
    match: Match
    seed: int
    outcomes: list[BallOutcome] = field(default_factory=list)
    signals: list[MatchSignal] = field(default_factory=list)


def simulate_match(setup: MatchSetupInput | dict | None = None,
                   seed: int | None = None,
                   engine: ScoringEngine | None = None,
                   verbose: bool = False) -> SimulationResult:
    """Play a complete match with simulated deliveries."""
    if setup is None:
        setup = load_teams()
    if isinstance(setup, dict):
        setup = MatchSetupInput.model_validate(setup)
    engine = engine or ScoringEngine()
    sim = BallSimulator(seed=seed)

    match = engine.create_match(setup, match_id=f"sim{sim.seed}")
    match, signals = engine.start_match(match)
    result = SimulationResult(match=match, seed=sim.seed, signals=list(signals))

    deliveries = 0
    while match.status == MatchStatus.LIVE:
        if deliveries >= MAX_DELIVERIES:
            raise RuntimeError(f"simulation {sim.seed} did not finish in {MAX_DELIVERIES} deliveries")
        inn = match.current_innings()

        if not inn.striker_id and not inn.non_striker_id:
            order = sim.batting_order(match, inn)
            match = engine.select_openers(match, order[0], order[1])
        elif inn.needs_new_batter:
            match = engine.select_batter(match, sim.next_batter(match, inn))
        inn = match.current_innings()
        if inn.bowler_id is None:
            match = engine.select_bowler(match, sim.bowler_for_over(match, inn))
            inn = match.current_innings()

        outcome = engine.process_ball(match, sim.roll_ball(match, inn))
        if not outcome.accepted:
            raise RuntimeError(f"simulated ball rejected: {outcome.reason}")
        match = outcome.match
        deliveries += 1
        result.outcomes.append(outcome)
        result.signals.extend(outcome.signals)

        if verbose:
            print(f"  {inn.position} {outcome.commentary}")
            if outcome.over_completed and not outcome.innings_ended:
                print(f"  -- {match.commentary[-1].description}")
            for s in outcome.signals:
                print(f"\n*** {s.kind.value}: {s.data}")

    result.match = match
    return result


# ---------------------------------------------------------------------------
# CLI entry point for testing
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import sys

    from config import get_log_level

    logging.basicConfig(level=get_log_level(), format="%(levelname)s %(name)s: %(message)s")

    args = [a for a in sys.argv[1:] if not a.startswith("-")]
    seed = int(args[0]) if args else None
    verbose = "--verbose" in sys.argv or "-v" in sys.argv

    setup = load_teams()
    print(f"Simulating {setup['team1']['name']} v {setup['team2']['name']}...")
    print("=" * 72)

    sim_result = simulate_match(setup, seed=seed, verbose=verbose)

    print()
    print(ScoringEngine().print_scorecard(sim_result.match))
    print(f"\nSeed: {sim_result.seed}")
    print(f"Deliveries: {sim_result.match.ball_counter}")
    print(f"Signals: {len(sim_result.signals)}")
