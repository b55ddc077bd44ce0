"""Conflict Resolver - classify, score and track team conflicts through their lifecycle."""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Final

from teamengine.engine.events import EventBus, EventType
from teamengine.models import (
    AvailabilityState,
    ConflictData,
    ConflictResolution,
    ConflictSeverity,
    ConflictStatus,
    ConflictType,
    InvalidTransitionError,
    ResolutionSuggestion,
    Role,
    TeamMember,
)
from teamengine.storage.store import InMemoryStore, RecordStore
from teamengine.team.registry import TeamModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolutionTemplate:
    approach: str
    steps: tuple[str, ...]
    estimated_minutes: int
    title: str
    requires_mediator: bool


RESOLUTION_TEMPLATES: Final[dict[ConflictType, ResolutionTemplate]] = {
    ConflictType.MERGE: ResolutionTemplate(
        approach="Automated merge conflict resolution with manual review",
        steps=(
            "Analyze conflicting changes",
            "Identify semantic conflicts",
            "Generate merge suggestions",
            "Request manual review for complex conflicts",
        ),
        estimated_minutes=30,
        title="Merge conflict detected",
        requires_mediator=False,
    ),
    ConflictType.DESIGN: ResolutionTemplate(
        approach="Collaborative design review session",
        steps=(
            "Schedule design review meeting",
            "Prepare conflict analysis",
            "Facilitate discussion",
            "Document agreed solution",
        ),
        estimated_minutes=90,
        title="Design decision conflict",
        requires_mediator=True,
    ),
    ConflictType.TECHNICAL: ResolutionTemplate(
        approach="Technical consultation with domain expert",
        steps=(
            "Identify relevant domain expert",
            "Prepare technical context",
            "Conduct technical review",
            "Implement recommended solution",
        ),
        estimated_minutes=60,
        title="Technical approach conflict",
        requires_mediator=False,
    ),
    ConflictType.PRIORITY: ResolutionTemplate(
        approach="Stakeholder alignment session",
        steps=(
            "Gather all stakeholders",
            "Present conflicting priorities",
            "Facilitate priority ranking",
            "Document decisions",
        ),
        estimated_minutes=45,
        title="Priority alignment needed",
        requires_mediator=True,
    ),
}

RESOLUTION_CONFIDENCE: Final[float] = 0.8
ALTERNATIVE_APPROACHES: Final[tuple[str, ...]] = ("Escalate to team lead", "Defer decision")

# Severity step function inputs
FILES_THRESHOLD = 5
FILES_POINTS = 2
BRANCHES_THRESHOLD = 2
BRANCHES_POINTS = 3
PULL_REQUESTS_POINTS = 1  # awarded for any pull request beyond the first

MEDIATOR_ROLES: Final[tuple[Role, ...]] = (Role.LEAD, Role.SENIOR)

# Allowed lifecycle transitions; RESOLVED is terminal
TRANSITIONS: Final[dict[ConflictStatus, frozenset[ConflictStatus]]] = {
    ConflictStatus.PENDING: frozenset({ConflictStatus.IN_PROGRESS, ConflictStatus.ESCALATED}),
    ConflictStatus.IN_PROGRESS: frozenset({ConflictStatus.RESOLVED, ConflictStatus.ESCALATED}),
    ConflictStatus.ESCALATED: frozenset({ConflictStatus.IN_PROGRESS, ConflictStatus.RESOLVED}),
    ConflictStatus.RESOLVED: frozenset(),
}


def classify_conflict(data: ConflictData) -> ConflictType:
    """Infer a conflict type from which payload fields are populated."""
    if data.files or data.branches:
        return ConflictType.MERGE
    if data.discussions:
        return ConflictType.DESIGN
    return ConflictType.TECHNICAL


def severity_score(data: ConflictData) -> int:
    score = 0
    if len(data.files) >= FILES_THRESHOLD:
        score += FILES_POINTS
    if len(data.branches) >= BRANCHES_THRESHOLD:
        score += BRANCHES_POINTS
    if len(data.pull_requests) > 1:
        score += PULL_REQUESTS_POINTS
    return score


def calculate_severity(data: ConflictData) -> ConflictSeverity:
    """Bucket the payload size: >=5 critical, >=3 high, >=1 medium, else low."""
    score = severity_score(data)
    if score >= 5:
        return ConflictSeverity.CRITICAL
    if score >= 3:
        return ConflictSeverity.HIGH
    if score >= 1:
        return ConflictSeverity.MEDIUM
    return ConflictSeverity.LOW


def find_mediator(members: Sequence[TeamMember], involved: Sequence[str]) -> str | None:
    """
    Highest-ranking available lead or senior not involved in the conflict.

    Ties break on lower workload, then member id.
    """
    candidates = [
        m
        for m in members
        if m.id not in involved
        and m.role in MEDIATOR_ROLES
        and m.availability.status == AvailabilityState.AVAILABLE
    ]
    if not candidates:
        return None
    candidates.sort(key=lambda m: (-m.role.rank, m.workload, m.id))
    return candidates[0].id


class ConflictResolver:
    """
    Detects conflicts, proposes a resolution and tracks its status.

    Records are never deleted. Each transition stores a replacement
    record, so the store holds the latest state of every conflict ever
    created.
    """

    def __init__(
        self,
        team: TeamModel,
        store: RecordStore[ConflictResolution] | None = None,
        events: EventBus | None = None,
    ) -> None:
        self.team = team
        self.store: RecordStore[ConflictResolution] = (
            store if store is not None else InMemoryStore()
        )
        self.events = events or EventBus()
        self._lock = threading.Lock()

    def detect(
        self,
        data: ConflictData | dict,
        involved_members: Sequence[str] = (),
    ) -> ConflictResolution | None:
        """
        Classify and score a conflict payload.

        Returns None when the payload scores as low severity; no record is
        created in that case. Raises StoreError if the record cannot be
        persisted.
        """
        if not isinstance(data, ConflictData):
            data = ConflictData.from_dict(data if isinstance(data, dict) else {})

        severity = calculate_severity(data)
        if severity == ConflictSeverity.LOW:
            logger.debug(
                f"Discarding low-severity conflict ({len(data.files)} files, "
                f"{len(data.branches)} branches, {len(data.pull_requests)} pull requests)"
            )
            return None

        return self._create(classify_conflict(data), severity, data, involved_members)

    def report(
        self,
        conflict_type: ConflictType,
        data: ConflictData | None = None,
        involved_members: Sequence[str] = (),
        severity: ConflictSeverity = ConflictSeverity.MEDIUM,
    ) -> ConflictResolution:
        """Create a conflict explicitly, e.g. a priority conflict raised by a planner."""
        return self._create(
            ConflictType(conflict_type),
            ConflictSeverity(severity),
            data or ConflictData(),
            involved_members,
        )

    def _create(
        self,
        conflict_type: ConflictType,
        severity: ConflictSeverity,
        data: ConflictData,
        involved_members: Sequence[str],
    ) -> ConflictResolution:
        involved = tuple(dict.fromkeys(involved_members))
        conflict = ConflictResolution(
            id=f"conflict-{uuid.uuid4().hex[:8]}",
            type=conflict_type,
            severity=severity,
            title=RESOLUTION_TEMPLATES[conflict_type].title,
            description=(
                f"Conflict detected involving {len(data.files)} files "
                "and requires team attention."
            ),
            involved_members=involved,
            data=data,
            suggestion=self._suggest(conflict_type, severity, involved),
            status=ConflictStatus.PENDING,
            created_at=datetime.now(timezone.utc),
        )

        self.store.put(conflict.id, conflict)
        logger.info(
            f"Conflict detected: {conflict.title} ({conflict.id}, {severity}, "
            f"mediator={conflict.suggestion.mediator})"
        )
        self.events.publish(EventType.CONFLICT_CREATED, conflict)
        return conflict

    def _suggest(
        self,
        conflict_type: ConflictType,
        severity: ConflictSeverity,
        involved: Sequence[str],
    ) -> ResolutionSuggestion:
        template = RESOLUTION_TEMPLATES[conflict_type]
        mediator = find_mediator(self.team.all(), involved)
        if mediator is None:
            logger.warning(f"No mediator available for {conflict_type} conflict")
        return ResolutionSuggestion(
            approach=template.approach,
            steps=template.steps,
            estimated_minutes=template.estimated_minutes,
            confidence=RESOLUTION_CONFIDENCE,
            alternatives=ALTERNATIVE_APPROACHES,
            requires_mediator=(
                template.requires_mediator or severity == ConflictSeverity.CRITICAL
            ),
            mediator=mediator,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    def get(self, conflict_id: str) -> ConflictResolution:
        conflict = self.store.get(conflict_id)
        if conflict is None:
            raise KeyError(conflict_id)
        return conflict

    def transition(self, conflict_id: str, status: ConflictStatus) -> ConflictResolution:
        """Move a conflict to ``status``, enforcing the lifecycle."""
        status = ConflictStatus(status)
        with self._lock:
            current = self.get(conflict_id)
            if status not in TRANSITIONS[current.status]:
                raise InvalidTransitionError(
                    f"Conflict {conflict_id} cannot move from {current.status} to {status}"
                )

            resolved_at = datetime.now(timezone.utc) if status == ConflictStatus.RESOLVED else None
            updated = replace(current, status=status, resolved_at=resolved_at)
            self.store.put(conflict_id, updated)
        logger.info(f"Conflict {conflict_id}: {current.status} -> {status}")

        event = (
            EventType.CONFLICT_RESOLVED
            if status == ConflictStatus.RESOLVED
            else EventType.CONFLICT_UPDATED
        )
        self.events.publish(event, updated)
        return updated

    def start(self, conflict_id: str) -> ConflictResolution:
        return self.transition(conflict_id, ConflictStatus.IN_PROGRESS)

    def resolve(self, conflict_id: str) -> ConflictResolution:
        return self.transition(conflict_id, ConflictStatus.RESOLVED)

    def escalate(self, conflict_id: str) -> ConflictResolution:
        return self.transition(conflict_id, ConflictStatus.ESCALATED)

    def all(self) -> list[ConflictResolution]:
        return self.store.list()

    def active(self) -> list[ConflictResolution]:
        """Conflicts not yet resolved."""
        return [c for c in self.store.list() if c.status != ConflictStatus.RESOLVED]
