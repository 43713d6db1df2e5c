"""Centralized configuration for environment variables and format rules."""

import os
from pathlib import Path

from models import MatchFormat

LOG_LEVEL_ENV = "CRICKET_LOG_LEVEL"
MATCH_LOG_DIR_ENV = "CRICKET_MATCH_LOG_DIR"
PORT_ENV = "PORT"

DEFAULT_MATCH_LOG_DIR = Path(__file__).resolve().parent / "data" / "match_logs"

# Overs per innings; None means unlimited.
FORMAT_OVERS: dict[MatchFormat, int | None] = {
    MatchFormat.T20: 20,
    MatchFormat.ODI: 50,
    MatchFormat.TEST: None,
}


def get_log_level() -> str:
    """Return the configured log level name, defaulting to INFO."""
    return os.environ.get(LOG_LEVEL_ENV, "INFO").upper()


def get_match_log_dir() -> Path:
    """Return the directory completed match snapshots are written to."""
    override = os.environ.get(MATCH_LOG_DIR_ENV, "")
    return Path(override) if override else DEFAULT_MATCH_LOG_DIR


def get_port(default: int = 5050) -> int:
    return int(os.environ.get(PORT_ENV, default))


def overs_for_format(match_format: MatchFormat, custom_overs: int | None = None) -> int | None:
    """Return overs per innings for a format.

    Raises:
        ValueError: If a Custom format has no positive overs count.
    """
    if match_format == MatchFormat.CUSTOM:
        if not custom_overs or custom_overs < 1:
            raise ValueError("Custom format requires a positive overs count")
        return custom_overs
    return FORMAT_OVERS[match_format]
