"""Tests for engine configuration loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from teamengine.config import DEFAULT_CRITICAL_SKILLS, EngineConfig, load_config


class TestEngineConfig:
    """Tests for EngineConfig defaults and validation."""

    def test_defaults(self) -> None:
        config = EngineConfig()
        assert (config.review_expertise_weight, config.review_availability_weight) == (0.5, 0.3)
        assert config.review_workload_weight == 0.2
        assert config.review_threshold == 0.3
        assert (config.task_skill_weight, config.task_workload_weight) == (0.7, 0.3)
        assert config.task_threshold == 0.4
        assert config.max_suggestions == 3
        assert config.critical_skills == DEFAULT_CRITICAL_SKILLS
        assert config.sample_interval_seconds == 300
        assert config.retention_hours == 24

    def test_default_tables_are_not_shared(self) -> None:
        EngineConfig().critical_skills["Rust"] = 1.0
        assert "Rust" not in EngineConfig().critical_skills

    @pytest.mark.parametrize(
        "overrides",
        [
            {"review_threshold": 1.5},
            {"task_skill_weight": -0.1},
            {"max_suggestions": 0},
            {"max_suggestions": 4},
            {"sample_interval_seconds": 0},
            {"retention_hours": -1},
        ],
    )
    def test_invalid_values(self, overrides: dict) -> None:
        with pytest.raises(ValueError):
            EngineConfig(**overrides)


class TestLoadConfig:
    """Tests for load_config."""

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        assert load_config(tmp_path / "absent.json") == EngineConfig()

    def test_file_values_layer_over_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"review_threshold": 0.5, "knowledge_sharing": False}))

        config = load_config(path)
        assert config.review_threshold == 0.5
        assert config.knowledge_sharing is False
        assert config.task_threshold == 0.4

    def test_unknown_keys_are_ignored(self, tmp_path: Path, caplog) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"max_suggestions": 2, "colour": "blue"}))

        config = load_config(path)
        assert config.max_suggestions == 2
        assert "colour" in caplog.text

    def test_malformed_file_uses_defaults(self, tmp_path: Path, caplog) -> None:
        path = tmp_path / "config.json"
        path.write_text("{not json")

        assert load_config(path) == EngineConfig()
        assert "malformed" in caplog.text

    def test_invalid_values_raise(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"review_threshold": 3}))
        with pytest.raises(ValueError):
            load_config(path)

    def test_suggestion_cap_cannot_be_raised(self, tmp_path: Path) -> None:
        """Test that a config file asking for more than three suggestions is rejected."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"max_suggestions": 5}))
        with pytest.raises(ValueError, match="max_suggestions"):
            load_config(path)
