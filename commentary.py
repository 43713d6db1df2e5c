"""Ball-by-ball commentary text.

Pure functions of a ball and the match state it produced; nothing here
mutates statistics.
"""

from __future__ import annotations

from match_state import Ball, Innings, Match, OverSummary
from models import ExtraKind

_EXTRA_WORDS = {
    ExtraKind.WIDE: ("wide", "wides"),
    ExtraKind.BYE: ("bye", "byes"),
    ExtraKind.LEG_BYE: ("leg bye", "leg byes"),
    ExtraKind.PENALTY: ("penalty run", "penalty runs"),
}

_CODE_SUFFIX = {
    ExtraKind.WIDE: "wd",
    ExtraKind.NO_BALL: "nb",
    ExtraKind.BYE: "b",
    ExtraKind.LEG_BYE: "lb",
    ExtraKind.PENALTY: "p",
}


def _plural(n: int, one: str, many: str) -> str:
    return f"{n} {one if n == 1 else many}"


def _bat_phrase(runs: int, ball: Ball) -> str:
    if ball.is_four:
        return "FOUR!"
    if ball.is_six:
        return "SIX!"
    if runs == 0:
        return "dot ball"
    return _plural(runs, "run", "runs")


def _wicket_phrase(ball: Ball, match: Match) -> str:
    kind = ball.wicket_kind.value
    if ball.fielder_id:
        text = f"OUT! {kind} by {match.player_name(ball.fielder_id)}"
    elif ball.bowler_credited:
        text = f"OUT! {kind} by {match.player_name(ball.bowler_id)}"
    else:
        text = f"OUT! {kind}"
    if ball.dismissed_player_id != ball.striker_id:
        text += f" ({match.player_name(ball.dismissed_player_id)} departs)"
    return text


def generate_commentary(ball: Ball, match: Match) -> str:
    """Describe one delivery, e.g. ``"Khan to Patel, FOUR!"``."""
    phrases = []
    if ball.is_wicket:
        phrases.append(_wicket_phrase(ball, match))

    kind = ball.extra_kind
    if kind is None:
        if not ball.is_wicket or ball.runs_off_bat:
            phrases.append(_bat_phrase(ball.runs_off_bat, ball))
    elif kind == ExtraKind.NO_BALL:
        if ball.runs_off_bat:
            phrases.append(_bat_phrase(ball.runs_off_bat, ball))
        phrases.append("no ball" if ball.extra_runs == 1 else f"no ball (+{ball.extra_runs})")
    else:
        one, many = _EXTRA_WORDS[kind]
        if kind == ExtraKind.PENALTY and ball.runs_off_bat:
            phrases.append(_bat_phrase(ball.runs_off_bat, ball))
        phrases.append(_plural(ball.extra_runs, one, many))

    if ball.overthrows:
        phrases.append(f"incl. {_plural(ball.overthrows, 'overthrow', 'overthrows')}")

    bowler = match.player_name(ball.bowler_id)
    batter = match.player_name(ball.striker_id)
    return f"{bowler} to {batter}, {', '.join(phrases)}"


def ball_code(ball: Ball) -> str:
    """Short code used in over summaries: ``.``, ``4``, ``1wd``, ``W``."""
    if ball.extra_kind is None:
        code = "." if ball.runs_off_bat == 0 else str(ball.runs_off_bat)
    else:
        code = f"{ball.total_runs}{_CODE_SUFFIX[ball.extra_kind]}"
    if ball.is_wicket:
        code = "W" if code == "." else f"{code}W"
    return code


def over_end_text(over: OverSummary, innings: Innings, match: Match) -> str:
    bowlers = ", ".join(match.player_name(b) for b in over.bowler_ids)
    text = (f"End of over {over.over_number} ({bowlers}): "
            f"{_plural(over.runs, 'run', 'runs')}, {_plural(over.wickets, 'wicket', 'wickets')}")
    if over.is_maiden:
        text += ", maiden"
    team = match.team(innings.batting_team_id).name
    return f"{text} | {team} {innings.runs}/{innings.wickets}"


def innings_end_text(innings: Innings, match: Match) -> str:
    team = match.team(innings.batting_team_id).name
    text = f"Innings over: {team} {innings.score_display()}"
    if innings.number == 1:
        text += f". Target {innings.runs + 1}"
    return text


def match_end_text(match: Match) -> str:
    return f"Match over: {match.result.describe()}"
