# /// script
# requires-python = ">=3.12"
# dependencies = ["flask>=3.0", "pydantic>=2.0"]
# ///
"""HTTP API for the cricket scoring engine.

Wraps ``ScoringEngine`` for a scoring UI: create and start matches, pick
batters and bowlers, post balls, and read the scoreboard, scorecard,
commentary and stored match history. Balls for one match are serialized
behind a per-match lock; signals are published only after the new snapshot
is committed.

Usage:
    uv run app.py
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from flask import Flask, jsonify, request

from config import get_log_level, get_port
from match_history import InvalidMatchIdError, MatchHistoryError, list_matches, load_match, save_match
from match_state import Match, match_to_dict
from models import MatchStatus
from notifications import MatchNotifier, SignalBus
from scoring import ScoringEngine
from simulation import load_teams, simulate_match
from validation import EventValidationError, ScoringError, parse_ball_event, parse_match_setup

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = Flask(__name__)

ENGINE = ScoringEngine()

# None means the configured default directory
MATCH_LOG_DIR: Path | None = None

# In-memory store of matches: {"match": Match, "lock": threading.Lock}
MATCHES: dict[str, dict] = {}
_MATCHES_LOCK = threading.Lock()

BUS = SignalBus()
NOTIFIER = MatchNotifier(dry_run=True)
BUS.subscribe(NOTIFIER.notify)


def _store(match: Match) -> None:
    with _MATCHES_LOCK:
        MATCHES[match.match_id] = {"match": match, "lock": threading.Lock()}


def _json_object() -> dict:
    """Request body as a dict; a missing body reads as empty."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise EventValidationError("Request body must be a JSON object")
    return data


def _not_found(match_id: str):
    return jsonify({"error": f"Match {match_id} not found"}), 404


def _commit(entry: dict, match: Match, signals: list) -> None:
    """Replace the stored snapshot, then publish and persist."""
    entry["match"] = match
    if signals:
        BUS.publish(signals)
    if match.status == MatchStatus.COMPLETED:
        try:
            save_match(match, log_dir=MATCH_LOG_DIR)
        except (MatchHistoryError, OSError) as exc:
            logger.error("Could not save match %s: %s", match.match_id, exc)


@app.errorhandler(EventValidationError)
def handle_validation_error(exc: EventValidationError):
    return jsonify({"error": str(exc), "details": exc.details}), 400


@app.errorhandler(ScoringError)
def handle_scoring_error(exc: ScoringError):
    return jsonify({"error": str(exc)}), 409


# ---------------------------------------------------------------------------
# Match lifecycle routes
# ---------------------------------------------------------------------------


@app.route("/api/matches", methods=["POST"])
def api_create_match():
    setup = parse_match_setup(request.get_json(silent=True))
    match = ENGINE.create_match(setup)
    _store(match)
    return jsonify(match_to_dict(match)), 201


@app.route("/api/matches", methods=["GET"])
def api_list_matches():
    with _MATCHES_LOCK:
        entries = list(MATCHES.values())
    return jsonify([
        {
            "match_id": e["match"].match_id,
            "teams": f"{e['match'].team1.name} v {e['match'].team2.name}",
            "status": e["match"].status.value,
            "score": e["match"].score_display(),
        }
        for e in entries
    ])


@app.route("/api/matches/<match_id>/start", methods=["POST"])
def api_start_match(match_id: str):
    entry = MATCHES.get(match_id)
    if entry is None:
        return _not_found(match_id)
    with entry["lock"]:
        match, signals = ENGINE.start_match(entry["match"])
        _commit(entry, match, signals)
    return jsonify(match_to_dict(match))


@app.route("/api/matches/<match_id>/openers", methods=["POST"])
def api_select_openers(match_id: str):
    entry = MATCHES.get(match_id)
    if entry is None:
        return _not_found(match_id)
    data = _json_object()
    if not data.get("striker_id") or not data.get("non_striker_id"):
        raise EventValidationError("striker_id and non_striker_id are required")
    with entry["lock"]:
        match = ENGINE.select_openers(entry["match"], data["striker_id"], data["non_striker_id"])
        _commit(entry, match, [])
    return jsonify(match_to_dict(match))


@app.route("/api/matches/<match_id>/batter", methods=["POST"])
def api_select_batter(match_id: str):
    entry = MATCHES.get(match_id)
    if entry is None:
        return _not_found(match_id)
    data = _json_object()
    if not data.get("player_id"):
        raise EventValidationError("player_id is required")
    with entry["lock"]:
        match = ENGINE.select_batter(entry["match"], data["player_id"])
        _commit(entry, match, [])
    return jsonify(match_to_dict(match))


@app.route("/api/matches/<match_id>/bowler", methods=["POST"])
def api_select_bowler(match_id: str):
    entry = MATCHES.get(match_id)
    if entry is None:
        return _not_found(match_id)
    data = _json_object()
    if not data.get("player_id"):
        raise EventValidationError("player_id is required")
    with entry["lock"]:
        match = ENGINE.select_bowler(entry["match"], data["player_id"])
        _commit(entry, match, [])
    return jsonify(match_to_dict(match))


@app.route("/api/matches/<match_id>/balls", methods=["POST"])
def api_post_ball(match_id: str):
    entry = MATCHES.get(match_id)
    if entry is None:
        return _not_found(match_id)
    ball = parse_ball_event(request.get_json(silent=True))
    with entry["lock"]:
        outcome = ENGINE.process_ball(entry["match"], ball)
        if not outcome.accepted:
            return jsonify({"accepted": False, "reason": outcome.reason}), 422
        _commit(entry, outcome.match, outcome.signals)
    return jsonify(outcome.to_dict())


# ---------------------------------------------------------------------------
# Read routes
# ---------------------------------------------------------------------------


@app.route("/api/matches/<match_id>")
def api_get_match(match_id: str):
    entry = MATCHES.get(match_id)
    if entry is None:
        return _not_found(match_id)
    return jsonify(match_to_dict(entry["match"]))


@app.route("/api/matches/<match_id>/scorecard")
def api_scorecard(match_id: str):
    entry = MATCHES.get(match_id)
    if entry is None:
        return _not_found(match_id)
    return jsonify(ENGINE.generate_scorecard(entry["match"]))


@app.route("/api/matches/<match_id>/commentary")
def api_commentary(match_id: str):
    entry = MATCHES.get(match_id)
    if entry is None:
        return _not_found(match_id)
    since = request.args.get("since", 0, type=int)
    entries = entry["match"].commentary[since:]
    return jsonify([c.to_dict() for c in entries])


@app.route("/api/simulate", methods=["POST"])
def api_simulate():
    data = _json_object()
    seed = data.get("seed")
    if seed is not None:
        try:
            seed = int(seed)
        except (TypeError, ValueError):
            raise EventValidationError("seed must be an integer", details=[f"got {seed!r}"]) from None
    result = simulate_match(load_teams(), seed=seed, engine=ENGINE)
    _store(result.match)
    _commit(MATCHES[result.match.match_id], result.match, result.signals)
    return jsonify({
        "match_id": result.match.match_id,
        "seed": result.seed,
        "result": result.match.result.describe(),
        "score": result.match.score_display(),
    })


# ---------------------------------------------------------------------------
# Match history routes
# ---------------------------------------------------------------------------


@app.route("/api/history")
def api_history():
    return jsonify(list_matches(log_dir=MATCH_LOG_DIR))


@app.route("/api/history/<match_id>")
def api_history_match(match_id: str):
    try:
        match = load_match(match_id, log_dir=MATCH_LOG_DIR)
    except MatchHistoryError as exc:
        status = 400 if isinstance(exc, InvalidMatchIdError) else 404
        return jsonify({"error": str(exc)}), status
    return jsonify(match_to_dict(match))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    logging.basicConfig(level=get_log_level(), format="%(levelname)s %(name)s: %(message)s")
    app.run(debug=True, host="0.0.0.0", port=get_port(), threaded=True)
