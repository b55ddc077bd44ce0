"""
Scoring Factors

Stateless functions computing the per-member factors that every ranking
in the engine combines:

    expertise_match   fraction of required technologies the member covers
    skill_match       same, over declared skills only
    availability      fixed lookup on presence status
    spare_capacity    (100 - workload) / 100
    urgency           critical-skill base urgency x role multiplier

All results are in [0.0, 1.0].
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Final

from teamengine.config import DEFAULT_CRITICAL_SKILLS, DEFAULT_ROLE_MULTIPLIERS
from teamengine.models import AvailabilityState, ExpertiseLevel, Role, TeamMember

# Returned when a request names no requirements at all
NEUTRAL_MATCH: Final[float] = 0.5

AVAILABILITY_SCORES: Final[dict[AvailabilityState, float]] = {
    AvailabilityState.AVAILABLE: 1.0,
    AvailabilityState.BUSY: 0.3,
    AvailabilityState.IN_MEETING: 0.1,
    AvailabilityState.OFFLINE: 0.0,
}


def covers(held: Iterable[str], required: str) -> bool:
    """Case-insensitive substring match in either direction."""
    req = required.strip().lower()
    if not req:
        return False
    for name in held:
        have = name.strip().lower()
        if have and (have in req or req in have):
            return True
    return False


def _fraction(held: set[str], required: Iterable[str]) -> float:
    wanted = list(dict.fromkeys(r for r in required if isinstance(r, str) and r.strip()))
    if not wanted:
        return NEUTRAL_MATCH
    matched = sum(1 for req in wanted if covers(held, req))
    return matched / len(wanted)


def expertise_match(member: TeamMember, required_tech: Iterable[str]) -> float:
    """Fraction of required technologies found in the member's skills or expertise."""
    held = set(member.skills) | {e.technology for e in member.expertise}
    return _fraction(held, required_tech)


def skill_match(member: TeamMember, required_skills: Iterable[str]) -> float:
    """Fraction of required skills found in the member's declared skills."""
    return _fraction(set(member.skills), required_skills)


def availability_score(member: TeamMember) -> float:
    return AVAILABILITY_SCORES.get(member.availability.status, 0.0)


def spare_capacity(member: TeamMember) -> float:
    """Unused share of the member's workload budget."""
    return (100 - max(0, min(100, member.workload))) / 100


def urgency(
    skill: str,
    role: Role,
    critical_skills: Mapping[str, float] = DEFAULT_CRITICAL_SKILLS,
    role_multipliers: Mapping[str, float] = DEFAULT_ROLE_MULTIPLIERS,
    default_urgency: float = 0.5,
    default_multiplier: float = 0.5,
) -> float:
    """
    Urgency of closing a skill gap for a member of the given role.

    Juniors carry the full base urgency; the multiplier shrinks with
    seniority so senior gaps rank below junior ones.
    """
    base = critical_skills.get(skill, default_urgency)
    multiplier = role_multipliers.get(Role(role).value, default_multiplier)
    return max(0.0, min(1.0, base * multiplier))


def expertise_level(member: TeamMember, skill: str) -> ExpertiseLevel | None:
    """Highest declared expertise level the member holds for ``skill``."""
    best: ExpertiseLevel | None = None
    for area in member.expertise:
        if not covers([area.technology], skill):
            continue
        if best is None or area.level.rank > best.rank:
            best = area.level
    return best
