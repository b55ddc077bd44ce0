"""Pure scoring factors over team member snapshots."""

from .factors import (
    AVAILABILITY_SCORES,
    NEUTRAL_MATCH,
    availability_score,
    covers,
    expertise_level,
    expertise_match,
    skill_match,
    spare_capacity,
    urgency,
)

__all__ = [
    "AVAILABILITY_SCORES",
    "NEUTRAL_MATCH",
    "availability_score",
    "covers",
    "expertise_level",
    "expertise_match",
    "skill_match",
    "spare_capacity",
    "urgency",
]
