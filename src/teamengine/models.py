"""
Team Coordination Data Models

Member records owned by the team model, plus the decision records the
engine produces: conflicts, review assignments, task coordinations,
knowledge transfers and metric snapshots.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


# ═══════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════


class Role(StrEnum):
    """Team roles, ordered from least to most senior."""

    JUNIOR = "junior"
    SENIOR = "senior"
    LEAD = "lead"
    ARCHITECT = "architect"
    MANAGER = "manager"

    @property
    def rank(self) -> int:
        return list(Role).index(self)


class ExpertiseLevel(StrEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"

    @property
    def rank(self) -> int:
        return list(ExpertiseLevel).index(self) + 1


class AvailabilityState(StrEnum):
    AVAILABLE = "available"
    BUSY = "busy"
    IN_MEETING = "in_meeting"
    OFFLINE = "offline"


class CommunicationStyle(StrEnum):
    DIRECT = "direct"
    COLLABORATIVE = "collaborative"
    FORMAL = "formal"
    CASUAL = "casual"


class ReviewStyle(StrEnum):
    DETAILED = "detailed"
    HIGH_LEVEL = "high_level"
    FOCUSED = "focused"


class LearningStyle(StrEnum):
    HANDS_ON = "hands_on"
    DOCUMENTATION = "documentation"
    MENTORING = "mentoring"
    EXPLORATION = "exploration"


class WorkingStyle(StrEnum):
    INDIVIDUAL = "individual"
    PAIR_PROGRAMMING = "pair_programming"
    TEAM_ORIENTED = "team_oriented"


class ConflictType(StrEnum):
    MERGE = "merge"
    DESIGN = "design"
    PRIORITY = "priority"
    TECHNICAL = "technical"


class ConflictSeverity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ConflictStatus(StrEnum):
    """Conflict lifecycle states."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    ESCALATED = "escalated"


class ReviewPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ReviewerAvailability(StrEnum):
    IMMEDIATE = "immediate"
    WITHIN_HOUR = "within_hour"
    WITHIN_DAY = "within_day"
    BUSY = "busy"


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TaskStatus(StrEnum):
    """Task coordination lifecycle states."""

    PLANNING = "planning"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TransferType(StrEnum):
    DOCUMENTATION = "documentation"
    CODE_WALKTHROUGH = "code_walkthrough"
    MENTORING_SESSION = "mentoring_session"
    PAIR_PROGRAMMING = "pair_programming"


class InvalidTransitionError(ValueError):
    """Raised when a lifecycle transition is not allowed from the current state."""


def _check_unit(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be in [0.0, 1.0], got {value}")


def clamp_workload(value: float) -> int:
    """Clamp a workload value into the public [0, 100] domain."""
    return int(max(0, min(100, round(value))))


# ═══════════════════════════════════════════════════════════════════════════
# TEAM MEMBERS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ExpertiseArea:
    """Declared expertise in one technology."""

    technology: str
    level: ExpertiseLevel
    years: float = 0.0


@dataclass(frozen=True)
class Availability:
    status: AvailabilityState = AvailabilityState.AVAILABLE
    working_hours: tuple[str, str] = ("09:00", "17:00")  # HH:MM
    timezone: str = "UTC"
    until: datetime | None = None


@dataclass(frozen=True)
class Preferences:
    """Working preferences; only used to phrase reasoning strings."""

    communication_style: CommunicationStyle = CommunicationStyle.COLLABORATIVE
    review_style: ReviewStyle = ReviewStyle.FOCUSED
    learning_style: LearningStyle = LearningStyle.HANDS_ON
    working_style: WorkingStyle = WorkingStyle.TEAM_ORIENTED


@dataclass
class TeamMember:
    """A team member record owned by the team model."""

    id: str
    name: str
    role: Role
    email: str = ""
    skills: set[str] = field(default_factory=set)
    expertise: list[ExpertiseArea] = field(default_factory=list)
    workload: int = 0  # 0-100
    availability: Availability = field(default_factory=Availability)
    preferences: Preferences = field(default_factory=Preferences)

    def __post_init__(self) -> None:
        self.skills = set(self.skills)
        self.workload = clamp_workload(self.workload)


# ═══════════════════════════════════════════════════════════════════════════
# CONFLICTS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ConflictData:
    """Payload describing a detected conflict."""

    files: tuple[str, ...] = ()
    branches: tuple[str, ...] = ()
    pull_requests: tuple[str, ...] = ()
    discussions: tuple[str, ...] = ()
    context: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConflictData:
        """Build from a loose mapping; malformed optional fields become empty."""

        def _refs(key: str) -> tuple[str, ...]:
            value = data.get(key)
            if isinstance(value, str):
                return (value,)
            if isinstance(value, (list, tuple, set)):
                return tuple(str(v) for v in value if v is not None)
            return ()

        context = data.get("context")
        return cls(
            files=_refs("files"),
            branches=_refs("branches"),
            pull_requests=_refs("pull_requests"),
            discussions=_refs("discussions"),
            context=context if isinstance(context, str) else "",
        )


@dataclass(frozen=True)
class ResolutionSuggestion:
    approach: str
    steps: tuple[str, ...]
    estimated_minutes: int
    confidence: float
    alternatives: tuple[str, ...] = ()
    requires_mediator: bool = False
    mediator: str | None = None

    def __post_init__(self) -> None:
        _check_unit("confidence", self.confidence)


@dataclass(frozen=True)
class ConflictResolution:
    """A tracked conflict. Replaced, never mutated, on each status transition."""

    id: str
    type: ConflictType
    severity: ConflictSeverity
    title: str
    description: str
    involved_members: tuple[str, ...]
    data: ConflictData
    suggestion: ResolutionSuggestion
    status: ConflictStatus
    created_at: datetime
    resolved_at: datetime | None = None

    def __post_init__(self) -> None:
        mediator = self.suggestion.mediator
        if mediator is not None and mediator in self.involved_members:
            raise ValueError(f"mediator {mediator} is involved in conflict {self.id}")


# ═══════════════════════════════════════════════════════════════════════════
# CODE REVIEW
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ReviewerSuggestion:
    member_id: str
    confidence: float
    reasoning: tuple[str, ...]
    availability: ReviewerAvailability
    expertise_match: float
    workload_impact: int

    def __post_init__(self) -> None:
        _check_unit("confidence", self.confidence)
        _check_unit("expertise_match", self.expertise_match)


@dataclass(frozen=True)
class CodeReviewAssignment:
    id: str
    change_id: str
    author: str
    reviewers: tuple[ReviewerSuggestion, ...]
    priority: ReviewPriority
    estimated_minutes: int
    required_expertise: tuple[str, ...]
    assigned_at: datetime
    deadline: datetime | None = None


# ═══════════════════════════════════════════════════════════════════════════
# TASK COORDINATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AssignmentSuggestion:
    member_id: str
    confidence: float
    skill_match: float
    availability: float
    projected_workload: int
    estimated_completion: datetime
    reasoning: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _check_unit("confidence", self.confidence)
        _check_unit("skill_match", self.skill_match)
        _check_unit("availability", self.availability)


@dataclass(frozen=True)
class TeamCoordination:
    """A coordinated task with its ranked assignee suggestions."""

    id: str
    task: str
    description: str
    required_skills: tuple[str, ...]
    effort_hours: float
    priority: TaskPriority
    suggestions: tuple[AssignmentSuggestion, ...]
    status: TaskStatus
    created_at: datetime
    deadline: datetime | None = None
    dependencies: tuple[str, ...] = ()
    assignee: str | None = None
    # Workload units actually added to the assignee after clamping
    applied_workload: int = 0

    def __post_init__(self) -> None:
        if not math.isfinite(self.effort_hours) or self.effort_hours < 0:
            raise ValueError(f"effort_hours must be a finite value >= 0, got {self.effort_hours}")


# ═══════════════════════════════════════════════════════════════════════════
# KNOWLEDGE TRANSFER
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class SkillGap:
    member_id: str
    skill: str
    urgency: float


@dataclass(frozen=True)
class KnowledgeTransfer:
    id: str
    type: TransferType
    source: str  # expert
    target: str  # learner
    topic: str
    skill_gap: tuple[str, ...]
    suggested_approach: str
    estimated_hours: float
    priority: float
    created_at: datetime
    scheduled_at: datetime | None = None
    completed_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.source == self.target:
            raise ValueError(f"transfer source and target are both {self.source}")


@dataclass(frozen=True)
class GapAnalysis:
    """Result of one knowledge-gap pass."""

    transfers: tuple[KnowledgeTransfer, ...] = ()
    unaddressable: tuple[SkillGap, ...] = ()


# ═══════════════════════════════════════════════════════════════════════════
# METRICS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ProductivityMetrics:
    code_velocity: float = 0.0
    commit_frequency: float = 0.0
    pull_request_turnover: float = 0.0
    bug_rate: float = 0.0
    feature_completion_rate: float = 0.0


@dataclass(frozen=True)
class CollaborationMetrics:
    code_review_participation: float = 0.0
    knowledge_sharing_events: int = 0
    cross_team_interactions: int = 0
    conflict_resolution_minutes: float = 0.0


@dataclass(frozen=True)
class WorkloadMetrics:
    average_workload: float = 0.0
    distribution: dict[str, int] = field(default_factory=dict)
    burnout_risk: dict[str, float] = field(default_factory=dict)
    utilization_efficiency: float = 0.0


@dataclass(frozen=True)
class CommunicationMetrics:
    response_minutes: float = 0.0
    meeting_efficiency: float = 0.0
    documentation_quality: float = 0.0
    feedback_quality: float = 0.0


@dataclass(frozen=True)
class TeamMetrics:
    """One sampled snapshot of team-wide aggregates."""

    timestamp: datetime
    productivity: ProductivityMetrics
    collaboration: CollaborationMetrics
    workload: WorkloadMetrics
    communication: CommunicationMetrics
