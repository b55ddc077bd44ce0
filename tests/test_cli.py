"""Tests for the team CLI."""

import json
from pathlib import Path

from click.testing import CliRunner

from teamengine.cli import main


def _invoke(*args: str):
    runner = CliRunner()
    return runner.invoke(main, list(args))


def test_version() -> None:
    result = _invoke("--version")
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_init(tmp_path: Path) -> None:
    config = tmp_path / "engine" / "config.json"
    result = _invoke("--config", str(config), "init")
    assert result.exit_code == 0
    assert "initialized" in result.output.lower()
    assert json.loads(config.read_text())["max_suggestions"] == 3

    again = _invoke("--config", str(config), "init")
    assert again.exit_code == 0
    assert "already exists" in again.output


def test_members() -> None:
    result = _invoke("members")
    assert result.exit_code == 0
    assert "dev1" in result.output
    assert "dev2" in result.output
    assert "Total: 2 members" in result.output


def test_members_from_roster(tmp_path: Path) -> None:
    roster = tmp_path / "team.json"
    roster.write_text(json.dumps([{"id": "zed", "role": "lead", "skills": ["Go"]}]))
    result = _invoke("--team", str(roster), "members")
    assert result.exit_code == 0
    assert "zed" in result.output
    assert "dev1" not in result.output


def test_review() -> None:
    result = _invoke("review", "change-7", "--author", "dev2", "--file", "src/component.tsx")
    assert result.exit_code == 0
    assert "dev1" in result.output
    assert "0.600" in result.output
    assert "Estimated: 15 min" in result.output


def test_review_without_candidates(tmp_path: Path) -> None:
    roster = tmp_path / "team.json"
    roster.write_text(json.dumps([{"id": "solo"}]))
    result = _invoke("--team", str(roster), "review", "c", "--author", "solo", "--file", "a.py")
    assert result.exit_code == 0
    assert "No reviewer" in result.output


def test_assign() -> None:
    result = _invoke("assign", "Build dashboard", "--skill", "React", "--effort", "4")
    assert result.exit_code == 0
    assert "dev2" in result.output
    assert "0.820" in result.output


def test_gaps() -> None:
    result = _invoke("gaps")
    assert result.exit_code == 0
    assert "TypeScript" in result.output
    assert "Unaddressable" in result.output


def test_conflict() -> None:
    files = [arg for i in range(6) for arg in ("--file", f"src/f{i}.ts")]
    result = _invoke("conflict", *files, "--involved", "dev2")
    assert result.exit_code == 0
    assert "Merge conflict detected" in result.output
    assert "Severity: medium" in result.output
    assert "Mediator: dev1" in result.output


def test_conflict_low_severity() -> None:
    result = _invoke("conflict", "--file", "a.py")
    assert result.exit_code == 0
    assert "Low severity" in result.output


def test_metrics() -> None:
    result = _invoke("metrics")
    assert result.exit_code == 0
    assert "Average: 67.5%" in result.output


def test_disabled_feature(tmp_path: Path) -> None:
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"workload_analysis": False}))
    result = _invoke("--config", str(config), "metrics")
    assert result.exit_code == 0
    assert "disabled" in result.output


def test_assign_rejects_non_finite_effort() -> None:
    result = _invoke("assign", "Build dashboard", "--skill", "React", "--effort", "nan")
    assert result.exit_code == 2
    assert "--effort" in result.output
