# /// script
# requires-python = ">=3.12"
# dependencies = ["pytest>=7.0", "pydantic>=2.0"]
# ///
"""Tests for completed match storage."""

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from config import MATCH_LOG_DIR_ENV
from match_builders import live_match
from match_history import (
    InvalidMatchIdError,
    MatchHistoryError,
    list_matches,
    load_match,
    match_filename,
    save_match,
)
from match_state import match_to_dict
from simulation import simulate_match


@pytest.fixture(scope="module")
def completed():
    return simulate_match(seed=5).match


class TestSaveAndLoad:
    def test_save_writes_json(self, tmp_path, completed):
        path = save_match(completed, log_dir=tmp_path)
        assert path.name == f"match_{completed.match_id}.json"
        data = json.loads(path.read_text())
        assert data["status"] == "completed"
        assert data["result"]["description"] == completed.result.describe()

    def test_load_round_trip(self, tmp_path, completed):
        save_match(completed, log_dir=tmp_path)
        loaded = load_match(completed.match_id, log_dir=tmp_path)
        assert match_to_dict(loaded) == match_to_dict(completed)

    def test_live_match_not_saved(self, tmp_path):
        with pytest.raises(MatchHistoryError, match="not completed"):
            save_match(live_match(), log_dir=tmp_path)

    def test_load_missing(self, tmp_path):
        with pytest.raises(MatchHistoryError, match="not found"):
            load_match("nope", log_dir=tmp_path)

    @pytest.mark.parametrize("match_id", ["../etc", "a/b", "x.json", ""])
    def test_unsafe_ids(self, match_id):
        with pytest.raises(InvalidMatchIdError):
            match_filename(match_id)

    def test_env_directory(self, tmp_path, monkeypatch, completed):
        monkeypatch.setenv(MATCH_LOG_DIR_ENV, str(tmp_path / "history"))
        path = save_match(completed)
        assert path.parent == tmp_path / "history"


class TestListMatches:
    def test_summaries(self, tmp_path, completed):
        save_match(completed, log_dir=tmp_path)
        summaries = list_matches(log_dir=tmp_path)
        assert len(summaries) == 1
        s = summaries[0]
        assert s["match_id"] == completed.match_id
        assert s["team1"] == "Harbour CC"
        assert s["team2"] == "Valley Wanderers"
        assert s["format"] == "T20"
        assert s["result"] == completed.result.describe()

    def test_newest_first(self, tmp_path):
        for match_id, created in [("old", "2026-01-01T10:00:00+00:00"),
                                  ("new", "2026-03-01T10:00:00+00:00")]:
            (tmp_path / f"match_{match_id}.json").write_text(json.dumps({
                "match_id": match_id, "created_at": created,
                "team1": {"name": "A"}, "team2": {"name": "B"},
            }))
        assert [s["match_id"] for s in list_matches(log_dir=tmp_path)] == ["new", "old"]

    def test_unreadable_file_skipped(self, tmp_path, completed, caplog):
        save_match(completed, log_dir=tmp_path)
        (tmp_path / "match_broken.json").write_text("{not json")
        with caplog.at_level("WARNING"):
            summaries = list_matches(log_dir=tmp_path)
        assert len(summaries) == 1
        assert "match_broken.json" in caplog.text

    def test_empty_directory(self, tmp_path):
        assert list_matches(log_dir=tmp_path / "empty") == []
