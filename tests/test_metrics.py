"""Tests for the metrics sampler."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from teamengine.config import EngineConfig
from teamengine.engine.events import EventBus, EventType
from teamengine.engine.metrics import ActivityMetricsSource, MetricsSampler, workload_metrics
from teamengine.engine.review import ReviewerAssigner
from teamengine.models import ProductivityMetrics
from teamengine.storage.store import InMemoryStore
from teamengine.team import SAMPLE_TEAM, TeamModel

START = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class BrokenSource:
    def productivity(self, since: datetime) -> ProductivityMetrics:
        raise RuntimeError("source down")

    def collaboration(self, since: datetime):
        raise RuntimeError("source down")

    def communication(self, since: datetime):
        raise RuntimeError("source down")


class TestWorkloadMetrics:
    """Tests for workload aggregation."""

    def test_sample_team(self) -> None:
        metrics = workload_metrics(list(SAMPLE_TEAM))
        assert metrics.average_workload == 67.5
        assert metrics.distribution == {"dev1": 75, "dev2": 60}
        assert metrics.burnout_risk == {"dev1": 0.2, "dev2": 0.2}
        assert metrics.utilization_efficiency == pytest.approx(100 * 135 / 170)

    def test_overloaded_member(self, make_member) -> None:
        metrics = workload_metrics([make_member("a", workload=95)])
        assert metrics.burnout_risk == {"a": 0.8}
        assert metrics.utilization_efficiency == 100

    def test_empty_team(self) -> None:
        assert workload_metrics([]).average_workload == 0.0


class TestSampler:
    """Tests for MetricsSampler."""

    def test_sample_appends_snapshot(self) -> None:
        clock = FakeClock()
        sampler = MetricsSampler(TeamModel(SAMPLE_TEAM), clock=clock)

        snapshot = sampler.sample()
        assert snapshot.timestamp == START
        assert sampler.history() == [snapshot]

    def test_entries_older_than_retention_are_pruned(self) -> None:
        """Test that no entry older than 24 hours survives a tick."""
        clock = FakeClock()
        sampler = MetricsSampler(TeamModel(SAMPLE_TEAM), clock=clock)

        sampler.sample()
        clock.advance(hours=12)
        sampler.sample()
        clock.advance(hours=13)
        latest = sampler.sample()

        history = sampler.history()
        assert len(history) == 2
        assert history[-1] == latest
        assert all(m.timestamp >= clock() - timedelta(hours=24) for m in history)

    def test_prune_is_idempotent(self) -> None:
        clock = FakeClock()
        sampler = MetricsSampler(TeamModel(SAMPLE_TEAM), clock=clock)
        sampler.sample()
        clock.advance(hours=30)

        assert sampler.prune() == 1
        assert sampler.prune() == 0
        assert sampler.history() == []

    def test_custom_retention(self) -> None:
        clock = FakeClock()
        sampler = MetricsSampler(
            TeamModel(SAMPLE_TEAM), config=EngineConfig(retention_hours=1), clock=clock
        )
        sampler.sample()
        clock.advance(minutes=90)
        sampler.sample()
        assert len(sampler.history()) == 1

    def test_publishes_sample(self) -> None:
        events = EventBus()
        received = []
        events.subscribe(lambda et, payload: received.append(et), EventType.METRICS_SAMPLED)
        MetricsSampler(TeamModel(SAMPLE_TEAM), events=events).sample()
        assert received == [EventType.METRICS_SAMPLED]

    def test_sees_team_updates(self) -> None:
        team = TeamModel(SAMPLE_TEAM)
        sampler = MetricsSampler(team)
        team.set_workload("dev1", 95)
        assert sampler.sample().workload.burnout_risk["dev1"] == 0.8


class TestActivitySource:
    """Tests for collaboration aggregates derived from engine records."""

    def test_review_participation(self) -> None:
        team = TeamModel(SAMPLE_TEAM)
        reviews = InMemoryStore()
        ReviewerAssigner(team, store=reviews).assign("c", "dev2", ["component.tsx"])
        source = ActivityMetricsSource(team, reviews, InMemoryStore(), InMemoryStore())

        collaboration = source.collaboration(START - timedelta(days=3650))
        assert collaboration.code_review_participation == 50.0
        assert collaboration.knowledge_sharing_events == 0


class TestTimer:
    """Tests for the background sampling loop."""

    @pytest.mark.anyio
    async def test_start_and_stop(self) -> None:
        sampler = MetricsSampler(
            TeamModel(SAMPLE_TEAM), config=EngineConfig(sample_interval_seconds=0.01)
        )
        sampler.start()
        assert sampler.running
        await asyncio.sleep(0.05)
        await sampler.stop()

        assert not sampler.running
        assert len(sampler.history()) >= 1

    @pytest.mark.anyio
    async def test_failing_tick_does_not_stop_loop(self) -> None:
        """Test that a raising source is logged and the loop keeps running."""
        sampler = MetricsSampler(
            TeamModel(SAMPLE_TEAM),
            source=BrokenSource(),
            config=EngineConfig(sample_interval_seconds=0.01),
        )
        sampler.start()
        await asyncio.sleep(0.03)
        assert sampler.running
        await sampler.stop()
        assert sampler.history() == []
