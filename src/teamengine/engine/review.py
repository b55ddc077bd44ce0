"""Reviewer Assigner - rank team members as code-review candidates for a change."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Final

from teamengine.config import EngineConfig
from teamengine.engine.events import EventBus, EventType
from teamengine.models import (
    AvailabilityState,
    CodeReviewAssignment,
    ReviewerAvailability,
    ReviewerSuggestion,
    ReviewPriority,
    ReviewStyle,
    Role,
    TeamMember,
)
from teamengine.scoring.factors import availability_score, expertise_match, spare_capacity
from teamengine.storage.store import InMemoryStore, RecordStore
from teamengine.team.registry import TeamModel

logger = logging.getLogger(__name__)

# (extension suffixes, expertise tag)
EXTENSION_RULES: Final[tuple[tuple[tuple[str, ...], str], ...]] = (
    ((".ts", ".tsx"), "TypeScript"),
    ((".js", ".jsx", ".mjs", ".cjs"), "JavaScript"),
    ((".py",), "Python"),
    ((".css", ".scss", ".sass", ".less"), "CSS"),
    ((".html", ".htm"), "HTML"),
    ((".sql",), "Database"),
)

# (path substrings, expertise tag)
PATH_RULES: Final[tuple[tuple[tuple[str, ...], str], ...]] = (
    (("test", "spec"), "Testing"),
    (("api", "server"), "Backend"),
    (("component", "ui"), "Frontend"),
    (("db", "migration"), "Database"),
    (("auth", "security", "crypto"), "Security"),
)

MIN_REVIEW_MINUTES = 15
MINUTES_PER_FILE = 5

STYLE_NOTES: Final[dict[ReviewStyle, str]] = {
    ReviewStyle.DETAILED: "Prefers detailed line-by-line reviews",
    ReviewStyle.HIGH_LEVEL: "Prefers high-level design reviews",
    ReviewStyle.FOCUSED: "Prefers focused reviews of the changed areas",
}


def required_expertise(paths: Sequence[str]) -> list[str]:
    """Tag touched paths with language and domain keywords, in first-seen order."""
    tags: dict[str, None] = {}
    for path in paths:
        lowered = path.lower()
        for suffixes, tag in EXTENSION_RULES:
            if lowered.endswith(suffixes):
                tags[tag] = None
        for needles, tag in PATH_RULES:
            if any(needle in lowered for needle in needles):
                tags[tag] = None
    return list(tags)


def estimate_review_minutes(paths: Sequence[str]) -> int:
    return max(MIN_REVIEW_MINUTES, MINUTES_PER_FILE * len(paths))


def availability_bucket(member: TeamMember) -> ReviewerAvailability:
    """Meetings end within the hour; a busy member under 80% workload within the day."""
    status = member.availability.status
    if status == AvailabilityState.AVAILABLE:
        return ReviewerAvailability.IMMEDIATE
    if status == AvailabilityState.IN_MEETING:
        return ReviewerAvailability.WITHIN_HOUR
    if status == AvailabilityState.BUSY and member.workload < 80:
        return ReviewerAvailability.WITHIN_DAY
    return ReviewerAvailability.BUSY


def reviewer_reasoning(member: TeamMember, match: float) -> tuple[str, ...]:
    reasons = []
    if match > 0.7:
        reasons.append("Strong expertise match")
    if member.workload < 70:
        reasons.append("Available bandwidth")
    if member.role in (Role.SENIOR, Role.LEAD, Role.ARCHITECT):
        reasons.append("Senior reviewer")
    reasons.append(STYLE_NOTES[member.preferences.review_style])
    return tuple(reasons)


class ReviewerAssigner:
    """Produces immutable review assignments with up to N ranked reviewers."""

    def __init__(
        self,
        team: TeamModel,
        config: EngineConfig | None = None,
        store: RecordStore[CodeReviewAssignment] | None = None,
        events: EventBus | None = None,
    ) -> None:
        self.team = team
        self.config = config or EngineConfig()
        self.store: RecordStore[CodeReviewAssignment] = (
            store if store is not None else InMemoryStore()
        )
        self.events = events or EventBus()

    def rank(self, author: str, expertise: Sequence[str]) -> list[ReviewerSuggestion]:
        """Score every non-author member and keep the best above threshold."""
        cfg = self.config
        suggestions = []
        for member in self.team.all():
            if member.id == author:
                continue

            match = expertise_match(member, expertise)
            confidence = (
                cfg.review_expertise_weight * match
                + cfg.review_availability_weight * availability_score(member)
                + cfg.review_workload_weight * spare_capacity(member)
            )
            if confidence <= cfg.review_threshold:
                continue

            suggestions.append(
                ReviewerSuggestion(
                    member_id=member.id,
                    confidence=min(1.0, confidence),
                    reasoning=reviewer_reasoning(member, match),
                    availability=availability_bucket(member),
                    expertise_match=match,
                    workload_impact=member.workload,
                )
            )

        suggestions.sort(key=lambda s: s.confidence, reverse=True)
        return suggestions[: cfg.max_suggestions]

    def assign(
        self,
        change_id: str,
        author: str,
        paths: Sequence[str],
        priority: ReviewPriority = ReviewPriority.MEDIUM,
        deadline: datetime | None = None,
    ) -> CodeReviewAssignment:
        """Build and record a review assignment. Raises StoreError on persistence failure."""
        expertise = required_expertise(paths)
        assignment = CodeReviewAssignment(
            id=f"review-{uuid.uuid4().hex[:8]}",
            change_id=change_id,
            author=author,
            reviewers=tuple(self.rank(author, expertise)),
            priority=ReviewPriority(priority),
            estimated_minutes=estimate_review_minutes(paths),
            required_expertise=tuple(expertise),
            assigned_at=datetime.now(timezone.utc),
            deadline=deadline,
        )

        self.store.put(assignment.id, assignment)
        logger.info(
            f"Review assignment {assignment.id} for {change_id}: "
            f"{[r.member_id for r in assignment.reviewers]}"
        )
        self.events.publish(EventType.REVIEW_ASSIGNED, assignment)
        return assignment

    def all(self) -> list[CodeReviewAssignment]:
        return self.store.list()
