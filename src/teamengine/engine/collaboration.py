"""Collaboration Engine - main entry point wiring the team model to every decision component."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from typing import Any

from teamengine.config import EngineConfig
from teamengine.engine.conflict import ConflictResolver
from teamengine.engine.events import EventBus, EventType, Subscriber
from teamengine.engine.knowledge import KnowledgeGapAnalyzer
from teamengine.engine.metrics import ActivityMetricsSource, MetricsSampler, MetricsSource
from teamengine.engine.review import ReviewerAssigner
from teamengine.engine.tasks import TaskCoordinator
from teamengine.models import (
    CodeReviewAssignment,
    ConflictData,
    ConflictResolution,
    ConflictSeverity,
    ConflictType,
    GapAnalysis,
    KnowledgeTransfer,
    ReviewPriority,
    TaskPriority,
    TeamCoordination,
    TeamMember,
    TeamMetrics,
)
from teamengine.storage.store import RecordStore
from teamengine.team.registry import TeamModel

logger = logging.getLogger(__name__)


class CollaborationEngine:
    """
    Facade over the team model and the decision components.

    Workflow:
    1. Collaborators seed and update the team model
    2. Requests (conflict, review, task, gap pass) are ranked over a snapshot
    3. The result is stored, subscribers are notified, the result is returned
    4. A background sampler aggregates team metrics for observability

    Stores are injected so tests and hosts can supply their own; the
    defaults keep everything in memory.
    """

    def __init__(
        self,
        members: Iterable[TeamMember] = (),
        config: EngineConfig | None = None,
        *,
        team: TeamModel | None = None,
        events: EventBus | None = None,
        conflict_store: RecordStore[ConflictResolution] | None = None,
        review_store: RecordStore[CodeReviewAssignment] | None = None,
        task_store: RecordStore[TeamCoordination] | None = None,
        transfer_store: RecordStore[KnowledgeTransfer] | None = None,
        metrics_source: MetricsSource | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.team = team if team is not None else TeamModel()
        for member in members:
            self.team.add(member)
        self.events = events or EventBus()

        self.conflicts = ConflictResolver(self.team, conflict_store, self.events)
        self.reviews = ReviewerAssigner(self.team, self.config, review_store, self.events)
        self.tasks = TaskCoordinator(self.team, self.config, task_store, self.events)
        self.knowledge = KnowledgeGapAnalyzer(
            self.team, self.config, transfer_store, self.events
        )
        self.sampler = MetricsSampler(
            self.team,
            ActivityMetricsSource(
                self.team,
                self.reviews.store,
                self.knowledge.store,
                self.conflicts.store,
                base=metrics_source,
            ),
            self.config,
            self.events,
        )
        self._ready = False

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def initialize(self) -> None:
        """Start background metrics sampling when workload analysis is enabled."""
        if self.config.workload_analysis:
            self.sampler.start()
        self._ready = True
        logger.info(f"Collaboration engine initialized with {len(self.team)} team members")

    async def shutdown(self) -> None:
        await self.sampler.stop()
        self._ready = False

    def is_ready(self) -> bool:
        return self._ready

    def subscribe(
        self, callback: Subscriber, event_type: EventType | None = None
    ) -> Callable[[], None]:
        return self.events.subscribe(callback, event_type)

    # ── decisions ──────────────────────────────────────────────────────────

    def detect_conflict(
        self,
        data: ConflictData | dict[str, Any],
        involved_members: Sequence[str] = (),
    ) -> ConflictResolution | None:
        if not self.config.conflict_resolution:
            return None
        return self.conflicts.detect(data, involved_members)

    def report_conflict(
        self,
        conflict_type: ConflictType,
        data: ConflictData | None = None,
        involved_members: Sequence[str] = (),
        severity: ConflictSeverity = ConflictSeverity.MEDIUM,
    ) -> ConflictResolution | None:
        if not self.config.conflict_resolution:
            return None
        return self.conflicts.report(conflict_type, data, involved_members, severity)

    def suggest_reviewers(
        self,
        change_id: str,
        author: str,
        paths: Sequence[str],
        priority: ReviewPriority = ReviewPriority.MEDIUM,
        deadline: datetime | None = None,
    ) -> CodeReviewAssignment | None:
        if not self.config.automatic_code_review:
            return None
        return self.reviews.assign(change_id, author, paths, priority, deadline)

    def coordinate_task(
        self,
        task: str,
        required_skills: Sequence[str],
        effort_hours: float,
        priority: TaskPriority = TaskPriority.MEDIUM,
        description: str = "",
        deadline: datetime | None = None,
        dependencies: Sequence[str] = (),
    ) -> TeamCoordination | None:
        if not self.config.team_coordination:
            return None
        return self.tasks.coordinate(
            task, required_skills, effort_hours, priority, description, deadline, dependencies
        )

    def identify_knowledge_gaps(self) -> GapAnalysis:
        if not self.config.knowledge_sharing:
            return GapAnalysis()
        return self.knowledge.analyze()

    def sample_metrics(self) -> TeamMetrics | None:
        if not self.config.workload_analysis:
            return None
        return self.sampler.sample()

    # ── getters ────────────────────────────────────────────────────────────

    def team_members(self) -> list[TeamMember]:
        return self.team.all()

    def active_conflicts(self) -> list[ConflictResolution]:
        return self.conflicts.active()

    def code_reviews(self) -> list[CodeReviewAssignment]:
        return self.reviews.all()

    def coordinations(self) -> list[TeamCoordination]:
        return self.tasks.all()

    def knowledge_transfers(self) -> list[KnowledgeTransfer]:
        """Transfer opportunities not yet completed."""
        return self.knowledge.open_transfers()

    def metrics_history(self) -> list[TeamMetrics]:
        return self.sampler.history()
