"""Completed match storage.

Writes finished match snapshots as one JSON file per match, lists them for
a history view and loads them back into ``Match`` objects. The scoring
engine never calls this module; the caller persists after a match completes.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from config import get_match_log_dir
from match_state import Match, match_from_dict, match_to_dict
from models import MatchStatus

logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class MatchHistoryError(Exception):
    """Raised when a match cannot be stored or found."""


class InvalidMatchIdError(MatchHistoryError):
    """Raised for ids that cannot be used as a file name."""


def _log_dir(log_dir: Path | None) -> Path:
    d = log_dir or get_match_log_dir()
    d.mkdir(parents=True, exist_ok=True)
    return d


def match_filename(match_id: str) -> str:
    if not _SAFE_ID.match(match_id):
        raise InvalidMatchIdError(f"Invalid match id: {match_id!r}")
    return f"match_{match_id}.json"


def save_match(match: Match, log_dir: Path | None = None) -> Path:
    """Write a completed match snapshot.

    Raises:
        MatchHistoryError: If the match is not completed or its id is unsafe.
    """
    if match.status != MatchStatus.COMPLETED:
        raise MatchHistoryError(f"match {match.match_id} is {match.status.value}, not completed")
    path = _log_dir(log_dir) / match_filename(match.match_id)
    with open(path, "w") as f:
        json.dump(match_to_dict(match), f, indent=2)
    logger.info("Saved match %s to %s", match.match_id, path)
    return path


def load_match(match_id: str, log_dir: Path | None = None) -> Match:
    path = _log_dir(log_dir) / match_filename(match_id)
    if not path.exists():
        raise MatchHistoryError(f"match {match_id} not found")
    with open(path) as f:
        return match_from_dict(json.load(f))


def list_matches(log_dir: Path | None = None) -> list[dict]:
    """Summaries of stored matches, newest first. Unreadable files are skipped."""
    summaries = []
    for f in sorted(_log_dir(log_dir).glob("match_*.json"), reverse=True):
        try:
            data = json.loads(f.read_text())
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Skipping unreadable match file %s: %s", f.name, exc)
            continue
        result = data.get("result") or {}
        summaries.append({
            "match_id": data.get("match_id", ""),
            "filename": f.name,
            "team1": data.get("team1", {}).get("name", ""),
            "team2": data.get("team2", {}).get("name", ""),
            "format": data.get("format", ""),
            "venue": data.get("venue", ""),
            "created_at": data.get("created_at", ""),
            "result": result.get("description", ""),
        })
    summaries.sort(key=lambda s: s["created_at"], reverse=True)
    return summaries
