"""Tests for reviewer ranking."""

from __future__ import annotations

import pytest

from teamengine.config import EngineConfig
from teamengine.engine.review import (
    ReviewerAssigner,
    availability_bucket,
    estimate_review_minutes,
    required_expertise,
)
from teamengine.models import AvailabilityState, ReviewerAvailability, ReviewPriority, Role
from teamengine.storage.store import StoreError
from teamengine.team.registry import TeamModel

from conftest import FailingStore


class TestRequiredExpertise:
    """Tests for path tagging."""

    def test_extension_and_path_rules(self) -> None:
        assert required_expertise(["src/component.tsx"]) == ["TypeScript", "Frontend"]
        assert required_expertise(["server/auth.py"]) == ["Python", "Backend", "Security"]

    def test_test_paths_are_tagged(self) -> None:
        assert "Testing" in required_expertise(["tests/test_models.py"])

    def test_tags_are_unique_in_first_seen_order(self) -> None:
        tags = required_expertise(["a.ts", "b.ts", "db/migration.sql"])
        assert tags == ["TypeScript", "Database"]

    def test_unknown_paths(self) -> None:
        assert required_expertise(["README"]) == []


class TestEstimates:
    """Tests for review time and availability buckets."""

    def test_review_minutes_floor(self) -> None:
        assert estimate_review_minutes([]) == 15
        assert estimate_review_minutes(["a"] * 3) == 15
        assert estimate_review_minutes(["a"] * 10) == 50

    @pytest.mark.parametrize(
        ("status", "workload", "expected"),
        [
            (AvailabilityState.AVAILABLE, 90, ReviewerAvailability.IMMEDIATE),
            (AvailabilityState.IN_MEETING, 0, ReviewerAvailability.WITHIN_HOUR),
            (AvailabilityState.IN_MEETING, 95, ReviewerAvailability.WITHIN_HOUR),
            (AvailabilityState.BUSY, 50, ReviewerAvailability.WITHIN_DAY),
            (AvailabilityState.BUSY, 79, ReviewerAvailability.WITHIN_DAY),
            (AvailabilityState.BUSY, 80, ReviewerAvailability.BUSY),
            (AvailabilityState.BUSY, 85, ReviewerAvailability.BUSY),
            (AvailabilityState.OFFLINE, 0, ReviewerAvailability.BUSY),
        ],
    )
    def test_availability_bucket(self, make_member, status, workload, expected) -> None:
        member = make_member("a", workload=workload, status=status)
        assert availability_bucket(member) == expected


class TestReviewerAssigner:
    """Tests for ReviewerAssigner."""

    def test_typescript_change_goes_to_typescript_holder(self, make_member) -> None:
        """Test the A/B scenario: B authors component.tsx, A is suggested."""
        team = TeamModel(
            [
                make_member("A", Role.SENIOR, {"React", "TypeScript"}, workload=75),
                make_member("B", Role.JUNIOR, {"JavaScript"}, workload=60),
            ]
        )
        assignment = ReviewerAssigner(team).assign("change-1", "B", ["component.tsx"])

        assert [r.member_id for r in assignment.reviewers] == ["A"]
        reviewer = assignment.reviewers[0]
        assert reviewer.expertise_match == 0.5
        assert reviewer.confidence == pytest.approx(0.6)
        assert reviewer.confidence > 0.3
        assert reviewer.availability == ReviewerAvailability.IMMEDIATE
        assert reviewer.workload_impact == 75
        assert "Senior reviewer" in reviewer.reasoning
        assert assignment.estimated_minutes == 15
        assert assignment.required_expertise == ("TypeScript", "Frontend")

    def test_author_is_never_suggested(self, make_member) -> None:
        team = TeamModel([make_member("solo", skills={"Python"})])
        assignment = ReviewerAssigner(team).assign("c", "solo", ["main.py"])
        assert assignment.reviewers == ()

    def test_below_threshold_is_dropped(self, make_member) -> None:
        """Test that an empty ranking is a valid outcome."""
        team = TeamModel(
            [
                make_member("author"),
                make_member("off", workload=100, status=AvailabilityState.OFFLINE),
            ]
        )
        assignment = ReviewerAssigner(team).assign("c", "author", ["main.go"])
        assert assignment.reviewers == ()

    def test_sorted_and_capped(self, make_member) -> None:
        """Test that suggestions are sorted descending and capped at three."""
        team = TeamModel(
            [make_member(f"m{i}", skills={"Python"}, workload=i * 15) for i in range(6)]
        )
        reviewers = ReviewerAssigner(team).assign("c", "author", ["app.py"]).reviewers

        confidences = [r.confidence for r in reviewers]
        assert len(reviewers) == 3
        assert confidences == sorted(confidences, reverse=True)
        assert [r.member_id for r in reviewers] == ["m0", "m1", "m2"]

    def test_custom_cap(self, make_member) -> None:
        team = TeamModel([make_member(f"m{i}", skills={"Python"}) for i in range(4)])
        config = EngineConfig(max_suggestions=1)
        assert len(ReviewerAssigner(team, config).assign("c", "x", ["a.py"]).reviewers) == 1

    def test_assignment_is_recorded(self, make_member) -> None:
        team = TeamModel([make_member("a", skills={"Go"})])
        assigner = ReviewerAssigner(team)
        assignment = assigner.assign("c", "x", ["main.go"], ReviewPriority.URGENT)
        assert assigner.all() == [assignment]
        assert assignment.priority == ReviewPriority.URGENT

    def test_store_failure_is_surfaced(self, make_member) -> None:
        team = TeamModel([make_member("a", skills={"Go"})])
        assigner = ReviewerAssigner(team, store=FailingStore())
        with pytest.raises(StoreError):
            assigner.assign("c", "x", ["main.go"])
        assert assigner.all() == []
