# /// script
# requires-python = ">=3.12"
# dependencies = ["pytest>=7.0", "pydantic>=2.0"]
# ///
"""Tests for match flow: lifecycle, innings transitions and results.

Validates:
  1. create_match/start_match honour format overs and the toss
  2. First innings closes on overs or all out and the chase opens with a target
  3. The chase ends the moment the target is passed, mid-over included
  4. Results: win by runs, win by wickets, tie
  5. Balls are refused once the match is completed
  6. Batter and bowler selection is only allowed in the right state
  7. Run rates and the chase equation are derived from the innings
  8. The scorecard reports batting, bowling, partnerships and dismissals
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from match_builders import (
    DOT,
    FOUR,
    SINGLE,
    SIX,
    STRIKER,
    bowl,
    live_match,
    make_setup,
    play,
    prepare,
)
from match_state import Ball
from models import (
    INNINGS_END,
    DismissalKind,
    MatchPhase,
    MatchStatus,
    ResultType,
    SignalKind,
)
from scoring import InvariantViolation, ScoringEngine
from validation import ScoringError

BOWLED = {"wicket_kind": DismissalKind.BOWLED, "dismissed_player_id": STRIKER}


@pytest.fixture
def engine():
    return ScoringEngine()


def one_over_match(engine, first_innings):
    """A one-over match with the first innings already played."""
    match = live_match(engine, format="Custom", overs=1)
    match = play(engine, match, first_innings)
    return prepare(engine, match)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

class TestLifecycle:
    def test_create_match_is_scheduled(self, engine):
        match = engine.create_match(make_setup())
        assert match.status == MatchStatus.SCHEDULED
        assert match.phase == MatchPhase.SCHEDULED
        assert match.max_overs == 20
        assert match.innings == []
        assert len(match.match_id) == 12

    @pytest.mark.parametrize("fmt,overs,expected", [
        ("T20", None, 20),
        ("ODI", None, 50),
        ("Test", None, None),
        ("Custom", 8, 8),
    ])
    def test_format_overs(self, engine, fmt, overs, expected):
        match = engine.create_match(make_setup(format=fmt, overs=overs))
        assert match.max_overs == expected

    def test_start_match(self, engine):
        match = engine.create_match(make_setup(), match_id="m9")
        started, signals = engine.start_match(match)
        assert started.status == MatchStatus.LIVE
        assert started.phase == MatchPhase.AWAITING_FIRST_BALL
        assert started.innings[0].batting_team_id == "alpha"
        assert match.status == MatchStatus.SCHEDULED
        assert [s.kind for s in signals] == [SignalKind.MATCH_STARTED]
        assert signals[0].data["batting_first"] == "Alpha"

    def test_toss_winner_chooses_to_bowl(self, engine):
        match = engine.create_match(make_setup(toss_decision="bowl"))
        started, _ = engine.start_match(match)
        assert started.innings[0].batting_team_id == "beta"
        assert started.innings[0].bowling_team_id == "alpha"

    def test_start_twice_raises(self, engine):
        match = live_match(engine)
        with pytest.raises(ScoringError):
            engine.start_match(match)


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

class TestSelection:
    def test_openers_open_partnership(self, engine):
        inn = live_match(engine).current_innings()
        assert inn.striker_id == "a1"
        assert inn.non_striker_id == "a2"
        assert inn.partnerships.is_open

    def test_openers_only_before_first_ball(self, engine):
        match = bowl(engine, live_match(engine), **DOT).match
        with pytest.raises(ScoringError, match="before the first ball"):
            engine.select_openers(match, "a3", "a4")

    def test_openers_must_differ(self, engine):
        match, _ = engine.start_match(engine.create_match(make_setup()))
        with pytest.raises(ScoringError):
            engine.select_openers(match, "a1", "a1")

    def test_openers_from_batting_side(self, engine):
        match, _ = engine.start_match(engine.create_match(make_setup()))
        with pytest.raises(ScoringError, match="batting team"):
            engine.select_openers(match, "a1", "b2")

    def test_select_batter_when_not_needed(self, engine):
        with pytest.raises(ScoringError, match="no batter"):
            engine.select_batter(live_match(engine), "a3")

    def test_select_batter_rejects_dismissed(self, engine):
        match = bowl(engine, live_match(engine), **BOWLED).match
        with pytest.raises(ScoringError, match="already out"):
            engine.select_batter(match, "a1")

    def test_select_batter_rejects_batter_at_crease(self, engine):
        match = bowl(engine, live_match(engine), **BOWLED).match
        with pytest.raises(ScoringError, match="at the crease"):
            engine.select_batter(match, "a2")

    def test_select_bowler_from_bowling_side(self, engine):
        with pytest.raises(ScoringError, match="bowling team"):
            engine.select_bowler(live_match(engine), "a10")

    def test_selection_on_scheduled_match(self, engine):
        match = engine.create_match(make_setup())
        with pytest.raises(ScoringError):
            engine.select_bowler(match, "b11")


# ---------------------------------------------------------------------------
# Innings transitions
# ---------------------------------------------------------------------------

def t20_first_innings(engine):
    """Alpha make 150/6 in exactly 20 overs."""
    deliveries = [FOUR] * 30 + [SINGLE] * 30 + [DOT] * 54 + [BOWLED] * 6
    return play(engine, live_match(engine), deliveries)


class TestInningsTransitions:
    def test_first_innings_closes_after_twenty_overs(self, engine):
        match = t20_first_innings(engine)
        first, second = match.innings
        assert first.is_complete
        assert first.runs == 150
        assert first.wickets == 6
        assert first.overs_display == "20.0"
        assert first.end_reason == "overs-complete"
        assert second.batting_team_id == "beta"
        assert second.bowling_team_id == "alpha"
        assert second.target == 151
        assert second.legal_balls == 0
        assert second.striker_id is None
        assert second.bowler_id is None
        assert match.phase == MatchPhase.INNINGS_BREAK
        assert match.status == MatchStatus.LIVE

    def test_open_partnership_folded_in_at_innings_end(self, engine):
        match = live_match(engine, format="Custom", overs=1)
        match = play(engine, match, [FOUR, DOT, DOT, BOWLED, DOT, SINGLE])
        first = match.innings[0]
        assert not first.partnerships.is_open
        assert len(first.partnerships.history) == first.wickets + 1
        assert first.partnerships.history[-1].closed_by == INNINGS_END

    def test_innings_end_signal_and_commentary(self, engine):
        match = live_match(engine, format="Custom", overs=1)
        match = play(engine, match, [DOT] * 5)
        outcome = bowl(engine, match, **FOUR)
        assert outcome.innings_ended
        assert outcome.over_completed
        assert [s.kind for s in outcome.signals] == [SignalKind.INNINGS_ENDED]
        assert outcome.signals[0].data["runs"] == 4
        assert outcome.match.commentary[-1].event_type == "innings_end"
        assert "Target 5" in outcome.match.commentary[-1].description

    def test_all_out_closes_innings(self, engine):
        match = play(engine, live_match(engine, format="Test"), [BOWLED] * 10)
        first = match.innings[0]
        assert first.wickets == 10
        assert first.end_reason == "all-out"
        assert first.overs_display == "1.4"
        assert len(first.partnerships.history) == 10
        assert all(p.closed_by == "bowled" for p in first.partnerships.history)
        assert match.innings[1].target == 1

    def test_second_ball_phase(self, engine):
        match = prepare(engine, play(engine, live_match(engine, format="Custom", overs=1), [DOT] * 6))
        match = bowl(engine, match, **DOT).match
        assert match.phase == MatchPhase.IN_PROGRESS_SECOND


# ---------------------------------------------------------------------------
# Chase and results
# ---------------------------------------------------------------------------

class TestResults:
    def test_chase_won_with_overs_remaining(self, engine):
        match = prepare(engine, t20_first_innings(engine))
        deliveries = [BOWLED] * 4 + [DOT] * 69 + [FOUR] * 37
        match = play(engine, match, deliveries)
        match = prepare(engine, match)
        outcome = bowl(engine, match, runs_off_bat=3)

        m = outcome.match
        second = m.innings[1]
        assert second.runs == 151
        assert second.wickets == 4
        assert second.overs_display == "18.3"
        assert second.end_reason == "target-reached"
        assert m.status == MatchStatus.COMPLETED
        assert m.phase == MatchPhase.COMPLETED
        assert m.result.result_type == ResultType.WICKETS
        assert m.result.winner_team_id == "beta"
        assert m.result.margin == 6
        assert m.result.describe() == "Beta won by 6 wickets"
        kinds = [s.kind for s in outcome.signals]
        assert kinds[-2:] == [SignalKind.INNINGS_ENDED, SignalKind.MATCH_COMPLETED]
        assert outcome.match_completed

    def test_no_balls_after_completion(self, engine):
        match = one_over_match(engine, [FOUR] + [DOT] * 5)
        match = bowl(engine, match, **SIX).match
        assert match.status == MatchStatus.COMPLETED
        outcome = engine.process_ball(match, Ball("b1", "b2", "a11"))
        assert not outcome.accepted
        assert "completed" in outcome.reason
        assert outcome.match is match

    def test_target_reached_mid_over(self, engine):
        match = one_over_match(engine, [FOUR] + [DOT] * 5)
        match = play(engine, match, [FOUR, SINGLE])
        second = match.innings[1]
        assert match.status == MatchStatus.COMPLETED
        assert second.legal_balls == 2
        assert second.completed_overs == 0
        assert len(second.overs) == 1
        assert second.overs[0].legal_balls == 2
        assert match.result.describe() == "Beta won by 10 wickets"

    def test_target_reached_on_last_ball_of_over(self, engine):
        match = one_over_match(engine, [FOUR] + [DOT] * 5)
        match = play(engine, match, [DOT] * 5)
        outcome = bowl(engine, match, **SIX)
        second = outcome.match.innings[1]
        assert outcome.over_completed
        assert second.completed_overs == 1
        assert second.end_reason == "target-reached"

    def test_win_by_runs(self, engine):
        match = one_over_match(engine, [FOUR] * 2 + [DOT] * 4)
        match = play(engine, match, [SINGLE] + [DOT] * 5)
        assert match.result.result_type == ResultType.RUNS
        assert match.result.winner_team_id == "alpha"
        assert match.result.describe() == "Alpha won by 7 runs"

    def test_win_by_one_run_is_singular(self, engine):
        match = one_over_match(engine, [FOUR] + [DOT] * 5)
        match = play(engine, match, [SINGLE] * 3 + [DOT] * 3)
        assert match.result.describe() == "Alpha won by 1 run"

    def test_tie(self, engine):
        match = one_over_match(engine, [FOUR] + [DOT] * 5)
        match = play(engine, match, [DOT] * 5 + [FOUR])
        assert match.result.result_type == ResultType.TIE
        assert match.result.winner_team_id is None
        assert match.result.describe() == "Match tied"
        assert match.commentary[-1].description == "Match over: Match tied"

    def test_chase_all_out(self, engine):
        match = play(engine, live_match(engine, format="Test"), [SIX] * 2 + [BOWLED] * 10)
        match = play(engine, prepare(engine, match), [BOWLED] * 10)
        second = match.innings[1]
        assert second.end_reason == "all-out"
        assert match.result.describe() == "Alpha won by 12 runs"

    def test_winning_run_with_last_wicket(self, engine):
        match = play(engine, live_match(engine, format="Test"), [SIX] * 2 + [BOWLED] * 10)
        run_out = {"runs_off_bat": 1, "wicket_kind": DismissalKind.RUN_OUT, "dismissed_player_id": STRIKER}
        match = play(engine, prepare(engine, match), [SIX] * 2 + [BOWLED] * 9 + [run_out])
        second = match.innings[1]
        assert second.runs == 13
        assert second.wickets == 10
        assert match.result.result_type == ResultType.WICKETS
        assert match.result.margin == 0
        assert match.result.describe() == "Beta won by 0 wickets"


# ---------------------------------------------------------------------------
# Rates and the chase equation
# ---------------------------------------------------------------------------

class TestRates:
    def test_run_rate(self, engine):
        inn = play(engine, live_match(engine), [FOUR, SINGLE, DOT]).current_innings()
        assert inn.run_rate == pytest.approx(10.0)

    def test_chase_equation(self, engine):
        match = live_match(engine, format="Custom", overs=2)
        match = prepare(engine, play(engine, match, [FOUR] * 3 + [DOT] * 9))
        match = bowl(engine, match, **SINGLE).match
        inn = match.current_innings()
        assert inn.target == 13
        assert inn.runs_required == 12
        assert inn.balls_remaining == 11
        assert inn.required_run_rate == pytest.approx(12 / (11 / 6))

    def test_unlimited_format_has_no_chase_clock(self, engine):
        inn = live_match(engine, format="Test").current_innings()
        assert inn.max_legal_balls is None
        assert inn.balls_remaining is None
        assert inn.required_run_rate is None

    def test_compute_result_requires_two_innings(self, engine):
        with pytest.raises(InvariantViolation):
            engine.compute_result(live_match(engine))


# ---------------------------------------------------------------------------
# Scorecard
# ---------------------------------------------------------------------------

class TestScorecard:
    @pytest.fixture
    def match(self, engine):
        match = play(engine, live_match(engine), [
            FOUR,
            {"wicket_kind": DismissalKind.CAUGHT, "dismissed_player_id": STRIKER, "fielder_id": "b3"},
        ])
        return prepare(engine, match)

    def test_batting_and_bowling_lines(self, engine, match):
        card = engine.generate_scorecard(match)
        inn = card["innings"][0]
        assert inn["runs"] == 4
        assert inn["wickets"] == 1
        assert inn["overs"] == "0.2"
        first = inn["batting"][0]
        assert first["name"] == "Alpha Player 1"
        assert first["dismissal"] == "c Beta Player 3 b Beta Player 11"
        assert first["R"] == 4
        assert first["4s"] == 1
        bowler = inn["bowling"][0]
        assert bowler["name"] == "Beta Player 11"
        assert bowler["W"] == 1
        assert bowler["R"] == 4

    def test_partnerships_and_did_not_bat(self, engine, match):
        inn = engine.generate_scorecard(match)["innings"][0]
        closed, current = inn["partnerships"]
        assert closed["batters"] == "Alpha Player 1 & Alpha Player 2"
        assert closed["runs"] == 4
        assert closed["wicket"] == 1
        assert closed["closed_by"] == "caught"
        assert current["closed_by"] is None
        assert len(inn["did_not_bat"]) == 8

    @pytest.mark.parametrize("kind,fielder,expected", [
        (DismissalKind.CAUGHT, "b11", "c & b Beta Player 11"),
        (DismissalKind.STUMPED, "b1", "st Beta Player 1 b Beta Player 11"),
        (DismissalKind.LBW, None, "lbw b Beta Player 11"),
        (DismissalKind.RUN_OUT, "b4", "run out (Beta Player 4)"),
        (DismissalKind.RETIRED_HURT, None, "retired hurt"),
    ])
    def test_dismissal_text(self, engine, kind, fielder, expected):
        match = live_match(engine)
        match = bowl(engine, match, wicket_kind=kind, dismissed_player_id=STRIKER, fielder_id=fielder).match
        stats = match.current_innings().batsmen["a1"]
        assert engine.dismissal_text(match, stats) == expected

    def test_unbeaten_batter_is_not_out(self, engine):
        match = play(engine, live_match(engine), [SINGLE])
        stats = match.current_innings().batsmen["a1"]
        assert engine.dismissal_text(match, stats) == "not out"

    def test_print_scorecard(self, engine):
        match = one_over_match(engine, [FOUR] + [DOT] * 5)
        match = play(engine, match, [DOT] * 5 + [FOUR])
        text = engine.print_scorecard(match)
        assert "SCORECARD: Alpha v Beta (Custom)" in text
        assert "Venue: Test Oval" in text
        assert "Alpha innings: 4/0" in text
        assert "Beta innings: 4/0" in text
        assert text.endswith("Result: Match tied")
