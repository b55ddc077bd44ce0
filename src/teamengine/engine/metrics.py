"""
Metrics Sampler

Periodic, bounded-retention aggregation of team-wide signals. The feed is
observability-only: nothing in the scoring or ranking paths reads it.

Workload aggregates come from the team model. Collaboration aggregates
are derived from engine records. Productivity and communication numbers
come from a pluggable MetricsSource; the default reports zeros.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta, timezone
from typing import Protocol

from teamengine.config import EngineConfig
from teamengine.engine.events import EventBus, EventType
from teamengine.models import (
    CodeReviewAssignment,
    CollaborationMetrics,
    CommunicationMetrics,
    ConflictResolution,
    KnowledgeTransfer,
    ProductivityMetrics,
    TeamMember,
    TeamMetrics,
    WorkloadMetrics,
)
from teamengine.storage.store import RecordStore
from teamengine.team.registry import TeamModel

logger = logging.getLogger(__name__)

BURNOUT_WORKLOAD = 85
HIGH_BURNOUT_RISK = 0.8
LOW_BURNOUT_RISK = 0.2


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MetricsSource(Protocol):
    """Supplier of aggregates the engine cannot derive itself."""

    def productivity(self, since: datetime) -> ProductivityMetrics: ...

    def collaboration(self, since: datetime) -> CollaborationMetrics: ...

    def communication(self, since: datetime) -> CommunicationMetrics: ...


class NullMetricsSource:
    """Reports zeros for every externally supplied aggregate."""

    def productivity(self, since: datetime) -> ProductivityMetrics:
        return ProductivityMetrics()

    def collaboration(self, since: datetime) -> CollaborationMetrics:
        return CollaborationMetrics()

    def communication(self, since: datetime) -> CommunicationMetrics:
        return CommunicationMetrics()


class ActivityMetricsSource:
    """
    Derives collaboration aggregates from the engine's own records.

    Productivity and communication are delegated to ``base``.
    """

    def __init__(
        self,
        team: TeamModel,
        reviews: RecordStore[CodeReviewAssignment],
        transfers: RecordStore[KnowledgeTransfer],
        conflicts: RecordStore[ConflictResolution],
        base: MetricsSource | None = None,
    ) -> None:
        self.team = team
        self.reviews = reviews
        self.transfers = transfers
        self.conflicts = conflicts
        self.base = base or NullMetricsSource()

    def productivity(self, since: datetime) -> ProductivityMetrics:
        return self.base.productivity(since)

    def communication(self, since: datetime) -> CommunicationMetrics:
        return self.base.communication(since)

    def collaboration(self, since: datetime) -> CollaborationMetrics:
        headcount = len(self.team)
        reviewers = {
            r.member_id
            for a in self.reviews.list()
            if a.assigned_at >= since
            for r in a.reviewers
        }
        participation = 100 * len(reviewers) / headcount if headcount else 0.0

        shared = sum(
            1
            for t in self.transfers.list()
            if t.completed_at is not None and t.completed_at >= since
        )

        recent = [c for c in self.conflicts.list() if c.created_at >= since]
        mediated = sum(1 for c in recent if c.suggestion.mediator is not None)
        durations = [
            (c.resolved_at - c.created_at).total_seconds() / 60
            for c in self.conflicts.list()
            if c.resolved_at is not None and c.resolved_at >= since
        ]

        return CollaborationMetrics(
            code_review_participation=participation,
            knowledge_sharing_events=shared,
            cross_team_interactions=mediated,
            conflict_resolution_minutes=sum(durations) / len(durations) if durations else 0.0,
        )


def workload_metrics(members: Sequence[TeamMember]) -> WorkloadMetrics:
    if not members:
        return WorkloadMetrics()

    distribution = {m.id: m.workload for m in members}
    burnout = {
        m.id: HIGH_BURNOUT_RISK if m.workload > BURNOUT_WORKLOAD else LOW_BURNOUT_RISK
        for m in members
    }
    # Share of the sustainable capacity in use; workload above the burnout line adds nothing
    utilization = sum(min(m.workload, BURNOUT_WORKLOAD) for m in members) / (
        BURNOUT_WORKLOAD * len(members)
    )
    return WorkloadMetrics(
        average_workload=sum(distribution.values()) / len(members),
        distribution=distribution,
        burnout_risk=burnout,
        utilization_efficiency=100 * utilization,
    )


class MetricsSampler:
    """
    Appends one TeamMetrics snapshot per tick and prunes entries older
    than the retention window.

    ``sample`` is a single synchronous tick; ``start``/``stop`` drive it
    on an asyncio timer. A failing tick is logged and the loop carries on.
    """

    def __init__(
        self,
        team: TeamModel,
        source: MetricsSource | None = None,
        config: EngineConfig | None = None,
        events: EventBus | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.team = team
        self.source: MetricsSource = source or NullMetricsSource()
        self.config = config or EngineConfig()
        self.events = events or EventBus()
        self.clock = clock
        self._history: list[TeamMetrics] = []
        self._lock = threading.Lock()
        self._task: asyncio.Task[None] | None = None

    @property
    def retention(self) -> timedelta:
        return timedelta(hours=self.config.retention_hours)

    def sample(self) -> TeamMetrics:
        now = self.clock()
        since = now - self.retention
        metrics = TeamMetrics(
            timestamp=now,
            productivity=self.source.productivity(since),
            collaboration=self.source.collaboration(since),
            workload=workload_metrics(self.team.all()),
            communication=self.source.communication(since),
        )

        with self._lock:
            self._history.append(metrics)
            self._prune_locked(since)
            retained = len(self._history)

        logger.info(
            f"Sampled team metrics: avg workload {metrics.workload.average_workload:.1f}, "
            f"{retained} snapshots retained"
        )
        self.events.publish(EventType.METRICS_SAMPLED, metrics)
        return metrics

    def _prune_locked(self, cutoff: datetime) -> int:
        before = len(self._history)
        self._history = [m for m in self._history if m.timestamp >= cutoff]
        return before - len(self._history)

    def prune(self) -> int:
        """Drop snapshots older than the retention window. Idempotent."""
        with self._lock:
            return self._prune_locked(self.clock() - self.retention)

    def history(self) -> list[TeamMetrics]:
        with self._lock:
            return list(self._history)

    # ── timer ──────────────────────────────────────────────────────────────

    async def run(self) -> None:
        """Sample forever at the configured interval."""
        while True:
            try:
                self.sample()
            except Exception:
                logger.exception("Error collecting team metrics")
            await asyncio.sleep(self.config.sample_interval_seconds)

    def start(self) -> asyncio.Task[None]:
        """Schedule ``run`` on the running event loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run())
            logger.info(
                f"Started metrics sampling every {self.config.sample_interval_seconds}s"
            )
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
