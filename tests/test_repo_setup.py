# /// script
# requires-python = ">=3.12"
# dependencies = ["pytest>=7.0"]
# ///
"""Tests for the project layout.

Validates:
  1. Runnable modules carry PEP 723 inline metadata declaring their dependencies
  2. pyproject.toml lists every top-level module and the runtime dependencies
  3. Sample team data ships with the project
"""

import json
import sys
import tomllib
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent

SCRIPT_MODULES = {
    "models.py": ["pydantic"],
    "partnership.py": [],
    "match_state.py": ["pydantic"],
    "validation.py": ["pydantic"],
    "scoring.py": ["pydantic"],
    "simulation.py": ["pydantic"],
    "notifications.py": ["pydantic"],
    "app.py": ["flask", "pydantic"],
}


class TestPEP723Metadata:
    @pytest.mark.parametrize("module", sorted(SCRIPT_MODULES))
    def test_has_script_block(self, module):
        text = (PROJECT_ROOT / module).read_text()
        assert text.startswith("# /// script")

    @pytest.mark.parametrize("module", sorted(SCRIPT_MODULES))
    def test_declares_dependencies(self, module):
        header = (PROJECT_ROOT / module).read_text().split("# ///\n", 1)[0]
        for dep in SCRIPT_MODULES[module]:
            assert dep in header


class TestPyproject:
    @pytest.fixture(scope="class")
    def pyproject(self):
        return tomllib.loads((PROJECT_ROOT / "pyproject.toml").read_text())

    def test_runtime_dependencies(self, pyproject):
        deps = " ".join(pyproject["project"]["dependencies"])
        assert "pydantic" in deps
        assert "flask" in deps

    def test_test_extra(self, pyproject):
        assert any("pytest" in d for d in pyproject["project"]["optional-dependencies"]["test"])

    def test_all_modules_listed(self, pyproject):
        listed = set(pyproject["tool"]["setuptools"]["py-modules"])
        on_disk = {p.stem for p in PROJECT_ROOT.glob("*.py")}
        assert listed == on_disk


class TestSampleData:
    def test_sample_teams(self):
        data = json.loads((PROJECT_ROOT / "data" / "sample_teams.json").read_text())
        assert data["toss_winner"] in (data["team1"]["team_id"], data["team2"]["team_id"])
        for team in (data["team1"], data["team2"]):
            ids = [p["player_id"] for p in team["players"]]
            assert len(ids) == 11
            assert len(set(ids)) == 11
