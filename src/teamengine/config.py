"""Engine configuration: feature toggles, scoring weights and policy tables.

Loaded from a JSON file when one exists; every missing key falls back to
the hardcoded defaults below.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Final

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH: Final[Path] = Path.home() / ".teamengine" / "config.json"

# ═══════════════════════════════════════════════════════════════════════════
# DEFAULTS
# ═══════════════════════════════════════════════════════════════════════════

# Reviewer and assignee lists never exceed this length
MAX_SUGGESTIONS: Final = 3

DEFAULT_CRITICAL_SKILLS: Final[dict[str, float]] = {
    "React": 0.9,
    "TypeScript": 0.8,
    "Node.js": 0.7,
    "Testing": 0.8,
    "Security": 0.6,
}

DEFAULT_ROLE_MULTIPLIERS: Final[dict[str, float]] = {
    "junior": 1.0,
    "senior": 0.7,
    "lead": 0.5,
    "architect": 0.3,
    "manager": 0.2,
}

DEFAULT_TRANSFER_DURATIONS: Final[dict[str, float]] = {
    "React": 8,
    "TypeScript": 6,
    "Node.js": 12,
    "Testing": 4,
    "Security": 6,
}

DEFAULT_TRANSFER_APPROACHES: Final[dict[str, str]] = {
    "React": "Hands-on component building with guided review",
    "TypeScript": "Code conversion workshop with type safety focus",
    "Node.js": "API development project with mentoring",
    "Testing": "Test-driven development session",
    "Security": "Security review workshop",
}

_UNIT_FIELDS = (
    "review_expertise_weight",
    "review_availability_weight",
    "review_workload_weight",
    "review_threshold",
    "task_skill_weight",
    "task_workload_weight",
    "task_threshold",
    "default_urgency",
    "default_role_multiplier",
)


@dataclass(frozen=True)
class EngineConfig:
    """Complete engine configuration."""

    # Feature toggles
    conflict_resolution: bool = True
    automatic_code_review: bool = True
    team_coordination: bool = True
    knowledge_sharing: bool = True
    workload_analysis: bool = True

    # Reviewer ranking: expertise + availability + spare capacity
    review_expertise_weight: float = 0.5
    review_availability_weight: float = 0.3
    review_workload_weight: float = 0.2
    review_threshold: float = 0.3

    # Assignee ranking: skill match + spare capacity
    task_skill_weight: float = 0.7
    task_workload_weight: float = 0.3
    task_threshold: float = 0.4

    max_suggestions: int = MAX_SUGGESTIONS

    # Knowledge transfer policy
    critical_skills: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_CRITICAL_SKILLS)
    )
    role_multipliers: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_ROLE_MULTIPLIERS)
    )
    default_urgency: float = 0.5
    default_role_multiplier: float = 0.5
    transfer_durations: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_TRANSFER_DURATIONS)
    )
    default_transfer_hours: float = 4
    transfer_approaches: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_TRANSFER_APPROACHES)
    )
    default_transfer_approach: str = "Structured learning session with practical examples"

    # Metrics sampler
    sample_interval_seconds: float = 300
    retention_hours: float = 24

    def __post_init__(self) -> None:
        for name in _UNIT_FIELDS:
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0.0, 1.0], got {value}")
        if not 1 <= self.max_suggestions <= MAX_SUGGESTIONS:
            raise ValueError(
                f"max_suggestions must be in [1, {MAX_SUGGESTIONS}], got {self.max_suggestions}"
            )
        if self.sample_interval_seconds <= 0:
            raise ValueError(
                f"sample_interval_seconds must be > 0, got {self.sample_interval_seconds}"
            )
        if self.retention_hours <= 0:
            raise ValueError(f"retention_hours must be > 0, got {self.retention_hours}")


def load_config(config_path: Path | None = None) -> EngineConfig:
    """Load engine configuration from file or use defaults.

    Args:
        config_path: Path to a config.json file. If None, uses
            ``~/.teamengine/config.json`` when it exists.

    Returns:
        EngineConfig with file values layered over the defaults.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        return EngineConfig()

    try:
        data: dict[str, Any] = json.loads(path.read_text())
    except json.JSONDecodeError:
        logger.warning(f"Ignoring malformed config file {path}")
        return EngineConfig()

    known = {f.name for f in fields(EngineConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning(f"Ignoring unknown config keys in {path}: {', '.join(unknown)}")

    return EngineConfig(**{k: v for k, v in data.items() if k in known})
