# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Cricket ball-by-ball scoring engine.

Applies validated ball events to a match and derives everything a
scoreboard needs: innings totals and extras, batting and bowling figures,
partnerships, strike rotation, over/innings/match completion and the final
result.

Every public operation is a function of ``(match, input) -> new match``:
the input match is deep-copied before any mutation, so a rejected event or
an uncommitted outcome leaves the caller's state untouched.
"""

from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass, field

from commentary import (
    ball_code,
    generate_commentary,
    innings_end_text,
    match_end_text,
    over_end_text,
)
from config import overs_for_format
from match_state import (
    BALLS_PER_OVER,
    MAX_WICKETS,
    Ball,
    BatsmanStats,
    CommentaryEntry,
    Innings,
    Match,
    MatchResult,
    MatchSignal,
    OverSummary,
    TeamSide,
    match_to_dict,
)
from models import (
    INNINGS_END,
    DismissalKind,
    ExtraKind,
    InningsEndReason,
    MatchPhase,
    MatchSetupInput,
    MatchStatus,
    ResultType,
    SignalKind,
    TossDecision,
)
from validation import ScoringError, validate_ball

logger = logging.getLogger(__name__)


class InvariantViolation(ScoringError):
    """Raised when applying a ball would corrupt the match state."""


# ---------------------------------------------------------------------------
# Outcome of one ball
# ---------------------------------------------------------------------------

@dataclass
class BallOutcome:
    """What the engine returns for one ball event.

    ``match`` is the new snapshot when ``accepted``; otherwise it is the
    caller's original match and ``reason`` explains the rejection.
    """
    accepted: bool
    match: Match
    reason: str = ""
    commentary: str = ""
    signals: list[MatchSignal] = field(default_factory=list)
    milestones: list[int] = field(default_factory=list)
    over_completed: bool = False
    innings_ended: bool = False
    match_completed: bool = False
    needs_new_batter: bool = False

    def to_dict(self) -> dict:
        return {
            "accepted": self.accepted,
            "reason": self.reason,
            "commentary": self.commentary,
            "signals": [s.to_dict() for s in self.signals],
            "milestones": list(self.milestones),
            "over_completed": self.over_completed,
            "innings_ended": self.innings_ended,
            "match_completed": self.match_completed,
            "needs_new_batter": self.needs_new_batter,
            "match": match_to_dict(self.match),
        }


# ---------------------------------------------------------------------------
# Scoring engine
# ---------------------------------------------------------------------------

class ScoringEngine:
    """Processes ball events and manages match flow.

    One ball is fully applied (validate, credit runs, partnership, wicket,
    strike, over/innings/match transitions, commentary) before the next is
    accepted; the caller serializes events per match.
    """

    # -------------------------------------------------------------------
    # Match lifecycle
    # -------------------------------------------------------------------

    def create_match(self, setup: MatchSetupInput, match_id: str | None = None) -> Match:
        """Create a scheduled match once teams and toss are fixed."""
        match = Match(
            match_id=match_id or uuid.uuid4().hex[:12],
            team1=TeamSide.from_input(setup.team1),
            team2=TeamSide.from_input(setup.team2),
            format=setup.format,
            max_overs=overs_for_format(setup.format, setup.overs),
            venue=setup.venue,
            toss_winner=setup.toss_winner,
            toss_decision=setup.toss_decision,
        )
        logger.info("Created match %s: %s v %s (%s)", match.match_id,
                    match.team1.name, match.team2.name, match.format.value)
        return match

    def start_match(self, match: Match) -> tuple[Match, list[MatchSignal]]:
        """Open the first innings and put the match live.

        The toss winner bats first if they chose to bat, otherwise bowls.

        Raises:
            ScoringError: If the match is not scheduled.
        """
        if match.status != MatchStatus.SCHEDULED:
            raise ScoringError(f"match {match.match_id} is already {match.status.value}")
        m = copy.deepcopy(match)

        winner = m.team(m.toss_winner)
        loser = m.team2 if winner is m.team1 else m.team1
        batting, bowling = (winner, loser) if m.toss_decision == TossDecision.BAT else (loser, winner)

        m.innings.append(Innings(
            number=1,
            batting_team_id=batting.team_id,
            bowling_team_id=bowling.team_id,
            max_overs=m.max_overs,
        ))
        m.status = MatchStatus.LIVE
        m.phase = MatchPhase.AWAITING_FIRST_BALL

        signal = MatchSignal(
            kind=SignalKind.MATCH_STARTED,
            match_id=m.match_id,
            innings=1,
            data={
                "team1": m.team1.name,
                "team2": m.team2.name,
                "venue": m.venue,
                "batting_first": batting.name,
                "toss": f"{winner.name} won the toss and chose to {m.toss_decision.value}",
            },
        )
        logger.info("Match %s live: %s to bat", m.match_id, batting.name)
        return m, [signal]

    # -------------------------------------------------------------------
    # Actor selection
    # -------------------------------------------------------------------

    def _live_innings(self, m: Match) -> Innings:
        inn = m.current_innings()
        if m.status != MatchStatus.LIVE or inn is None or inn.is_complete:
            raise ScoringError(f"match {m.match_id} has no innings in progress")
        return inn

    def _require_batter(self, m: Match, inn: Innings, player_id: str) -> None:
        team = m.team(inn.batting_team_id)
        if team.players and not team.has_player(player_id):
            raise ScoringError(f"{player_id} is not in the batting team {team.name}")
        if inn.is_dismissed(player_id):
            raise ScoringError(f"{player_id} is already out")

    def select_openers(self, match: Match, striker_id: str, non_striker_id: str) -> Match:
        """Choose the opening pair of the current innings and open their partnership."""
        m = copy.deepcopy(match)
        inn = self._live_innings(m)
        if inn.partnerships.history or inn.partnerships.is_open or inn.legal_balls or inn.runs:
            raise ScoringError("openers can only be chosen before the first ball")
        if striker_id == non_striker_id:
            raise ScoringError("striker and non-striker must be different players")
        for pid in (striker_id, non_striker_id):
            self._require_batter(m, inn, pid)
        inn.striker_id = striker_id
        inn.non_striker_id = non_striker_id
        inn.partnerships.start(striker_id, non_striker_id, inn.position)
        return m

    def select_batter(self, match: Match, player_id: str) -> Match:
        """Send in a new batter after a wicket; they take the vacated end."""
        m = copy.deepcopy(match)
        inn = self._live_innings(m)
        if not inn.needs_new_batter:
            raise ScoringError("no batter is needed")
        if player_id in inn.current_batters:
            raise ScoringError(f"{player_id} is already at the crease")
        self._require_batter(m, inn, player_id)
        if inn.striker_id is None:
            inn.striker_id = player_id
        else:
            inn.non_striker_id = player_id
        inn.needs_new_batter = False
        if inn.striker_id and inn.non_striker_id:
            inn.partnerships.start(inn.striker_id, inn.non_striker_id, inn.position)
        return m

    def select_bowler(self, match: Match, player_id: str) -> Match:
        m = copy.deepcopy(match)
        inn = self._live_innings(m)
        team = m.team(inn.bowling_team_id)
        if team.players and not team.has_player(player_id):
            raise ScoringError(f"{player_id} is not in the bowling team {team.name}")
        inn.bowler_id = player_id
        return m

    # -------------------------------------------------------------------
    # Ball processing
    # -------------------------------------------------------------------

    def process_ball(self, match: Match, ball: Ball) -> BallOutcome:
        """Validate and apply one ball, returning the new match snapshot."""
        verdict = validate_ball(match, ball)
        if not verdict:
            logger.warning("Rejected ball for match %s: %s", match.match_id, verdict.reason)
            return BallOutcome(accepted=False, match=match, reason=verdict.reason)

        m = copy.deepcopy(match)
        inn = m.current_innings()
        outcome = BallOutcome(accepted=True, match=m)
        self._apply_ball(m, inn, ball, outcome)
        logger.debug("Match %s ball %d: %s", m.match_id, m.ball_counter, outcome.commentary)
        return outcome

    def _apply_ball(self, m: Match, inn: Innings, ball: Ball, outcome: BallOutcome) -> None:
        if inn.is_complete:
            raise InvariantViolation(f"innings {inn.number} is already complete")
        if ball.is_legal and inn.max_legal_balls is not None and inn.legal_balls >= inn.max_legal_balls:
            raise InvariantViolation(f"innings {inn.number} has no legal balls remaining")
        if ball.is_wicket and inn.wickets >= MAX_WICKETS:
            raise InvariantViolation(f"innings {inn.number} already has {MAX_WICKETS} wickets")

        if m.phase == MatchPhase.AWAITING_FIRST_BALL:
            m.phase = MatchPhase.IN_PROGRESS
        elif m.phase == MatchPhase.INNINGS_BREAK:
            m.phase = MatchPhase.IN_PROGRESS_SECOND
        m.ball_counter += 1

        tracker = inn.partnerships
        if not tracker.is_open:
            tracker.start(ball.striker_id, ball.non_striker_id, inn.position)
        inn.striker_id = ball.striker_id
        inn.non_striker_id = ball.non_striker_id
        inn.bowler_id = ball.bowler_id
        inn.needs_new_batter = False

        self._credit_runs(m, inn, ball)
        over = self._record_in_over(inn, ball)

        for milestone in tracker.add_ball(
            ball.striker_id, ball.runs_off_bat, ball.extra_runs,
            is_legal=ball.is_legal, is_four=ball.is_four, is_six=ball.is_six,
            overthrows=ball.overthrows,
        ):
            outcome.milestones.append(milestone)
            outcome.signals.append(self._milestone_signal(m, inn, milestone))

        if ball.is_wicket:
            self._record_wicket(m, inn, ball)
            over.wickets += 1

        # Odd completed runs cross the batters before the dismissed end is vacated.
        if ball.completed_runs % 2 == 1:
            self._swap_strike(inn)
        if ball.is_wicket:
            if inn.striker_id == ball.dismissed_player_id:
                inn.striker_id = None
            else:
                inn.non_striker_id = None
            inn.needs_new_batter = True

        outcome.commentary = generate_commentary(ball, m)
        m.commentary.append(CommentaryEntry(
            innings=inn.number,
            position=str(inn.position),
            description=outcome.commentary,
            bowler_id=ball.bowler_id,
            batter_id=ball.striker_id,
            runs=ball.total_runs,
            is_wicket=ball.is_wicket,
            dismissal_kind=ball.wicket_kind.value if ball.wicket_kind else None,
            extra_kind=ball.extra_kind.value if ball.extra_kind else None,
        ))

        over_ended = ball.is_legal and inn.legal_balls % BALLS_PER_OVER == 0

        # A chase ends the moment the target is passed, even mid-over.
        if inn.target is not None and inn.runs >= inn.target:
            if over_ended:
                self._complete_over(m, inn, swap=False)
                outcome.over_completed = True
            self._end_innings(m, inn, InningsEndReason.TARGET_REACHED, outcome)
            return

        if over_ended:
            self._complete_over(m, inn, swap=True)
            outcome.over_completed = True

        if inn.wickets >= MAX_WICKETS:
            self._end_innings(m, inn, InningsEndReason.ALL_OUT, outcome)
        elif inn.max_legal_balls is not None and inn.legal_balls >= inn.max_legal_balls:
            self._end_innings(m, inn, InningsEndReason.OVERS_COMPLETE, outcome)
        else:
            outcome.needs_new_batter = inn.needs_new_batter

    def _credit_runs(self, m: Match, inn: Innings, ball: Ball) -> None:
        inn.runs += ball.total_runs
        if ball.extra_kind is not None:
            inn.extras.credit(ball.extra_kind, ball.extra_runs)

        batter = inn.batter(ball.striker_id, m.player_name(ball.striker_id))
        bowler = inn.bowler(ball.bowler_id, m.player_name(ball.bowler_id))
        batter.runs += ball.runs_off_bat
        bowler.runs_conceded += ball.bowler_runs
        if ball.extra_kind == ExtraKind.WIDE:
            bowler.wides += 1
        elif ball.extra_kind == ExtraKind.NO_BALL:
            bowler.no_balls += 1

        if ball.is_legal:
            batter.balls_faced += 1
            bowler.legal_balls += 1
            inn.legal_balls += 1
            if inn.max_legal_balls is not None and inn.legal_balls > inn.max_legal_balls:
                raise InvariantViolation(f"innings {inn.number} exceeded {inn.max_overs} overs")

        if ball.is_four:
            batter.fours += 1
        elif ball.is_six:
            batter.sixes += 1

    def _record_in_over(self, inn: Innings, ball: Ball) -> OverSummary:
        if inn.current_over is None:
            inn.current_over = OverSummary(over_number=inn.completed_overs + 1)
        over = inn.current_over
        if ball.bowler_id not in over.bowler_ids:
            over.bowler_ids.append(ball.bowler_id)
        over.runs += ball.total_runs
        over.bowler_runs += ball.bowler_runs
        if ball.is_legal:
            over.legal_balls += 1
        over.balls.append(ball_code(ball))
        return over

    def _record_wicket(self, m: Match, inn: Innings, ball: Ball) -> None:
        dismissed = inn.batter(ball.dismissed_player_id, m.player_name(ball.dismissed_player_id))
        dismissed.is_out = True
        dismissed.dismissal_kind = ball.wicket_kind
        dismissed.fielder_id = ball.fielder_id
        if ball.bowler_credited:
            dismissed.bowler_id = ball.bowler_id
            inn.bowlers[ball.bowler_id].wickets += 1
        inn.wickets += 1
        inn.partnerships.close(ball.wicket_kind.value, inn.position, wicket_number=inn.wickets)
        logger.info("Wicket %d in match %s: %s %s", inn.wickets, m.match_id,
                    dismissed.name, ball.wicket_kind.value)

    def _swap_strike(self, inn: Innings) -> None:
        inn.striker_id, inn.non_striker_id = inn.non_striker_id, inn.striker_id

    def _milestone_signal(self, m: Match, inn: Innings, milestone: int) -> MatchSignal:
        p = inn.partnerships.current
        return MatchSignal(
            kind=SignalKind.PARTNERSHIP_MILESTONE,
            match_id=m.match_id,
            innings=inn.number,
            data={
                "milestone": milestone,
                "batter1": m.player_name(p.batter1),
                "batter2": m.player_name(p.batter2),
                "runs": p.runs,
                "balls": p.balls,
            },
        )

    # -------------------------------------------------------------------
    # Over / innings / match transitions
    # -------------------------------------------------------------------

    def _complete_over(self, m: Match, inn: Innings, swap: bool) -> None:
        inn.completed_overs += 1
        if inn.completed_overs * BALLS_PER_OVER != inn.legal_balls:
            raise InvariantViolation(
                f"over count {inn.completed_overs} does not match {inn.legal_balls} legal balls"
            )
        over = inn.current_over
        if (len(over.bowler_ids) == 1 and over.bowler_runs == 0
                and over.legal_balls == BALLS_PER_OVER):
            over.is_maiden = True
            inn.bowlers[over.bowler_ids[0]].maidens += 1
        inn.overs.append(over)
        inn.current_over = None
        if swap:
            self._swap_strike(inn)
        inn.bowler_id = None

        m.commentary.append(CommentaryEntry(
            innings=inn.number,
            position=str(inn.position),
            description=over_end_text(over, inn, m),
            event_type="over_end",
            bowler_id=over.bowler_ids[-1],
            runs=over.runs,
        ))
        logger.info("Match %s: end of over %d, %s", m.match_id, over.over_number, inn.score_display())

    def _end_innings(self, m: Match, inn: Innings, reason: InningsEndReason,
                     outcome: BallOutcome) -> None:
        inn.is_complete = True
        inn.end_reason = reason.value
        inn.partnerships.close(INNINGS_END, inn.position)
        if inn.current_over is not None:
            inn.overs.append(inn.current_over)
            inn.current_over = None
        inn.striker_id = None
        inn.non_striker_id = None
        inn.bowler_id = None
        inn.needs_new_batter = False
        outcome.innings_ended = True
        outcome.needs_new_batter = False

        m.commentary.append(CommentaryEntry(
            innings=inn.number,
            position=str(inn.position),
            description=innings_end_text(inn, m),
            event_type="innings_end",
            runs=inn.runs,
        ))
        outcome.signals.append(MatchSignal(
            kind=SignalKind.INNINGS_ENDED,
            match_id=m.match_id,
            innings=inn.number,
            data={
                "batting_team": m.team(inn.batting_team_id).name,
                "runs": inn.runs,
                "wickets": inn.wickets,
                "overs": inn.overs_display,
                "reason": reason.value,
            },
        ))
        logger.info("Match %s: innings %d over (%s), %s", m.match_id, inn.number,
                    reason.value, inn.score_display())

        if inn.number == 1:
            m.innings.append(Innings(
                number=2,
                batting_team_id=inn.bowling_team_id,
                bowling_team_id=inn.batting_team_id,
                max_overs=m.max_overs,
                target=inn.runs + 1,
            ))
            m.phase = MatchPhase.INNINGS_BREAK
        else:
            self._complete_match(m, outcome)

    def _complete_match(self, m: Match, outcome: BallOutcome) -> None:
        m.result = self.compute_result(m)
        m.status = MatchStatus.COMPLETED
        m.phase = MatchPhase.COMPLETED
        outcome.match_completed = True

        m.commentary.append(CommentaryEntry(
            innings=len(m.innings),
            position=str(m.innings[-1].position),
            description=match_end_text(m),
            event_type="match_end",
        ))
        outcome.signals.append(MatchSignal(
            kind=SignalKind.MATCH_COMPLETED,
            match_id=m.match_id,
            innings=len(m.innings),
            data={"result": m.result.to_dict(), "score": m.score_display()},
        ))
        logger.info("Match %s completed: %s", m.match_id, m.result.describe())

    def compute_result(self, match: Match) -> MatchResult:
        """Result of a match whose two innings are complete."""
        if len(match.innings) != 2 or not all(inn.is_complete for inn in match.innings):
            raise InvariantViolation("result requires two completed innings")
        first, second = match.innings
        if second.runs > first.runs:
            winner = match.team(second.batting_team_id)
            return MatchResult(ResultType.WICKETS, winner.team_id, winner.name,
                               MAX_WICKETS - second.wickets)
        if first.runs > second.runs:
            winner = match.team(first.batting_team_id)
            return MatchResult(ResultType.RUNS, winner.team_id, winner.name,
                               first.runs - second.runs)
        return MatchResult(ResultType.TIE)

    # -------------------------------------------------------------------
    # Scorecard generation
    # -------------------------------------------------------------------

    def dismissal_text(self, match: Match, stats: BatsmanStats) -> str:
        """Scorecard 'how out' column, e.g. ``c Shah b Khan``."""
        if not stats.is_out:
            return "not out"
        kind = stats.dismissal_kind
        bowler = match.player_name(stats.bowler_id)
        fielder = match.player_name(stats.fielder_id)
        if kind == DismissalKind.CAUGHT:
            if not fielder or stats.fielder_id == stats.bowler_id:
                return f"c & b {bowler}"
            return f"c {fielder} b {bowler}"
        if kind == DismissalKind.STUMPED:
            return f"st {fielder} b {bowler}" if fielder else f"st b {bowler}"
        if kind == DismissalKind.BOWLED:
            return f"b {bowler}"
        if kind == DismissalKind.LBW:
            return f"lbw b {bowler}"
        if kind == DismissalKind.HIT_WICKET:
            return f"hit wicket b {bowler}"
        if kind == DismissalKind.RUN_OUT:
            return f"run out ({fielder})" if fielder else "run out"
        return kind.value.replace("-", " ")

    def generate_scorecard(self, match: Match) -> dict:
        """Generate a complete scorecard for the match."""
        def innings_card(inn: Innings) -> dict:
            batting_lines = [
                {
                    "name": b.name,
                    "dismissal": self.dismissal_text(match, b),
                    "R": b.runs, "B": b.balls_faced,
                    "4s": b.fours, "6s": b.sixes,
                    "SR": round(b.strike_rate, 2),
                }
                for b in inn.batsmen.values()
            ]
            bowling_lines = [
                {
                    "name": b.name,
                    "O": b.overs, "M": b.maidens, "R": b.runs_conceded,
                    "W": b.wickets, "Econ": round(b.economy_rate, 2),
                    "wd": b.wides, "nb": b.no_balls,
                }
                for b in inn.bowlers.values()
            ]
            partnerships = list(inn.partnerships.history)
            if inn.partnerships.is_open:
                partnerships.append(inn.partnerships.current)
            batting_team = match.team(inn.batting_team_id)
            batted = set(inn.batsmen) | set(inn.current_batters)
            return {
                "number": inn.number,
                "team_name": batting_team.name,
                "runs": inn.runs,
                "wickets": inn.wickets,
                "overs": inn.overs_display,
                "run_rate": round(inn.run_rate, 2),
                "target": inn.target,
                "extras": inn.extras.to_dict(),
                "batting": batting_lines,
                "did_not_bat": [p.name for p in batting_team.players if p.player_id not in batted],
                "bowling": bowling_lines,
                "partnerships": [
                    {
                        "batters": f"{match.player_name(p.batter1)} & {match.player_name(p.batter2)}",
                        "runs": p.runs,
                        "balls": p.balls,
                        "wicket": p.wicket_number,
                        "closed_by": p.closed_by,
                    }
                    for p in partnerships
                ],
            }

        return {
            "match_id": match.match_id,
            "teams": f"{match.team1.name} v {match.team2.name}",
            "format": match.format.value,
            "venue": match.venue,
            "status": match.status.value,
            "innings": [innings_card(inn) for inn in match.innings if inn.legal_balls or inn.runs or inn.is_complete],
            "result": match.result.describe() if match.result else "Match in progress",
        }

    def print_scorecard(self, match: Match) -> str:
        """Generate a formatted scorecard string."""
        card = self.generate_scorecard(match)
        lines = []

        lines.append("=" * 72)
        lines.append(f"SCORECARD: {card['teams']} ({card['format']})")
        if card["venue"]:
            lines.append(f"Venue: {card['venue']}")
        lines.append("=" * 72)

        for inn in card["innings"]:
            lines.append(f"\n{inn['team_name']} innings: {inn['runs']}/{inn['wickets']} "
                         f"({inn['overs']} ov, RR {inn['run_rate']:.2f})")
            lines.append(f"  {'Batter':<20} {'':<26} {'R':>4} {'B':>4} {'4s':>3} {'6s':>3} {'SR':>7}")
            lines.append(f"  {'-'*20} {'-'*26} {'-'*4} {'-'*4} {'-'*3} {'-'*3} {'-'*7}")
            for b in inn["batting"]:
                lines.append(
                    f"  {b['name']:<20} {b['dismissal']:<26} {b['R']:>4} {b['B']:>4} "
                    f"{b['4s']:>3} {b['6s']:>3} {b['SR']:>7.2f}"
                )
            ex = inn["extras"]
            lines.append(
                f"  Extras {ex['total']} (w {ex['wides']}, nb {ex['no_balls']}, "
                f"b {ex['byes']}, lb {ex['leg_byes']}, pen {ex['penalties']})"
            )
            if inn["did_not_bat"]:
                lines.append(f"  Did not bat: {', '.join(inn['did_not_bat'])}")

            lines.append(f"\n  {'Bowler':<20} {'O':>5} {'M':>3} {'R':>4} {'W':>3} {'Econ':>6}")
            lines.append(f"  {'-'*20} {'-'*5} {'-'*3} {'-'*4} {'-'*3} {'-'*6}")
            for b in inn["bowling"]:
                lines.append(
                    f"  {b['name']:<20} {b['O']:>5} {b['M']:>3} {b['R']:>4} "
                    f"{b['W']:>3} {b['Econ']:>6.2f}"
                )

        lines.append("")
        lines.append(f"Result: {card['result']}")
        return "\n".join(lines)
