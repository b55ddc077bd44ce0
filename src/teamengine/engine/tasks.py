"""Task Coordinator - rank assignees for a task and track its lifecycle."""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Final

from teamengine.config import EngineConfig
from teamengine.engine.events import EventBus, EventType
from teamengine.models import (
    AssignmentSuggestion,
    InvalidTransitionError,
    TaskPriority,
    TaskStatus,
    TeamCoordination,
    TeamMember,
    clamp_workload,
)
from teamengine.scoring.factors import skill_match, spare_capacity
from teamengine.storage.store import InMemoryStore, RecordStore
from teamengine.team.registry import TeamModel

logger = logging.getLogger(__name__)

# Workload units added per estimated hour of effort
WORKLOAD_PER_HOUR = 10
# Skill-match floor when projecting completion time
MIN_SKILL_FOR_ESTIMATE = 0.1

TRANSITIONS: Final[dict[TaskStatus, TaskStatus]] = {
    TaskStatus.PLANNING: TaskStatus.ASSIGNED,
    TaskStatus.ASSIGNED: TaskStatus.IN_PROGRESS,
    TaskStatus.IN_PROGRESS: TaskStatus.COMPLETED,
}


def estimate_completion(now: datetime, effort_hours: float, match: float) -> datetime:
    """Low skill match stretches the estimate; the floor keeps it finite."""
    return now + timedelta(hours=effort_hours / max(match, MIN_SKILL_FOR_ESTIMATE))


class TaskCoordinator:
    """Ranks assignees for tasks and applies assignments to the team model."""

    def __init__(
        self,
        team: TeamModel,
        config: EngineConfig | None = None,
        store: RecordStore[TeamCoordination] | None = None,
        events: EventBus | None = None,
    ) -> None:
        self.team = team
        self.config = config or EngineConfig()
        self.store: RecordStore[TeamCoordination] = (
            store if store is not None else InMemoryStore()
        )
        self.events = events or EventBus()
        self._lock = threading.Lock()

    def rank(
        self, required_skills: Sequence[str], effort_hours: float
    ) -> list[AssignmentSuggestion]:
        cfg = self.config
        now = datetime.now(timezone.utc)
        suggestions = []
        for member in self.team.all():
            match = skill_match(member, required_skills)
            available = spare_capacity(member)
            confidence = cfg.task_skill_weight * match + cfg.task_workload_weight * available
            if confidence <= cfg.task_threshold:
                continue

            suggestions.append(
                AssignmentSuggestion(
                    member_id=member.id,
                    confidence=min(1.0, confidence),
                    skill_match=match,
                    availability=available,
                    projected_workload=clamp_workload(
                        member.workload + effort_hours * WORKLOAD_PER_HOUR
                    ),
                    estimated_completion=estimate_completion(now, effort_hours, match),
                    reasoning=(
                        f"{match * 100:.0f}% skill match",
                        f"{available * 100:.0f}% availability",
                    ),
                )
            )

        suggestions.sort(key=lambda s: s.confidence, reverse=True)
        return suggestions[: cfg.max_suggestions]

    def coordinate(
        self,
        task: str,
        required_skills: Sequence[str],
        effort_hours: float,
        priority: TaskPriority = TaskPriority.MEDIUM,
        description: str = "",
        deadline: datetime | None = None,
        dependencies: Sequence[str] = (),
    ) -> TeamCoordination:
        """Rank assignees and record the task in PLANNING state."""
        coordination = TeamCoordination(
            id=f"task-{uuid.uuid4().hex[:8]}",
            task=task,
            description=description,
            required_skills=tuple(required_skills),
            effort_hours=effort_hours,
            priority=TaskPriority(priority),
            suggestions=tuple(self.rank(required_skills, effort_hours)),
            status=TaskStatus.PLANNING,
            created_at=datetime.now(timezone.utc),
            deadline=deadline,
            dependencies=tuple(dependencies),
        )

        self.store.put(coordination.id, coordination)
        logger.info(
            f"Task coordinated: {task} ({coordination.id}), "
            f"candidates={[s.member_id for s in coordination.suggestions]}"
        )
        self.events.publish(EventType.TASK_COORDINATED, coordination)
        return coordination

    # ── lifecycle ──────────────────────────────────────────────────────────

    def get(self, task_id: str) -> TeamCoordination:
        coordination = self.store.get(task_id)
        if coordination is None:
            raise KeyError(task_id)
        return coordination

    def _transition(
        self, current: TeamCoordination, status: TaskStatus, **changes: object
    ) -> TeamCoordination:
        if TRANSITIONS.get(current.status) != status:
            raise InvalidTransitionError(
                f"Task {current.id} cannot move from {current.status} to {status}"
            )
        updated = replace(current, status=status, **changes)
        self.store.put(current.id, updated)
        logger.info(f"Task {current.id}: {current.status} -> {status}")
        return updated

    def _workload_units(self, coordination: TeamCoordination) -> float:
        return coordination.effort_hours * WORKLOAD_PER_HOUR

    def assign(self, task_id: str, member_id: str) -> TeamCoordination:
        """
        Assign the task and add its workload to the member, clamped to 100.

        The amount actually added after clamping is kept on the record as
        ``applied_workload`` so completion releases exactly that much. The
        record is written inside the team update; if the store fails, the
        member's workload is unchanged.
        """
        stored: list[TeamCoordination] = []
        with self._lock:
            current = self.get(task_id)

            def _apply(member: TeamMember) -> None:
                before = member.workload
                member.workload = clamp_workload(before + self._workload_units(current))
                stored.append(
                    self._transition(
                        current,
                        TaskStatus.ASSIGNED,
                        assignee=member_id,
                        applied_workload=member.workload - before,
                    )
                )

            self.team.update(member_id, _apply)  # KeyError for unknown members
        self.events.publish(EventType.TASK_UPDATED, stored[0])
        return stored[0]

    def start(self, task_id: str) -> TeamCoordination:
        with self._lock:
            updated = self._transition(self.get(task_id), TaskStatus.IN_PROGRESS)
        self.events.publish(EventType.TASK_UPDATED, updated)
        return updated

    def complete(self, task_id: str) -> TeamCoordination:
        """Complete the task and release the workload its assignment added."""
        stored: list[TeamCoordination] = []
        with self._lock:
            current = self.get(task_id)

            def _release(member: TeamMember) -> None:
                member.workload = clamp_workload(member.workload - current.applied_workload)
                stored.append(self._transition(current, TaskStatus.COMPLETED))

            if current.assignee is None:
                stored.append(self._transition(current, TaskStatus.COMPLETED))
            else:
                try:
                    self.team.update(current.assignee, _release)
                except KeyError:
                    # Assignee has left the team; nothing to release
                    stored.append(self._transition(current, TaskStatus.COMPLETED))
        self.events.publish(EventType.TASK_UPDATED, stored[0])
        return stored[0]

    def all(self) -> list[TeamCoordination]:
        return self.store.list()
