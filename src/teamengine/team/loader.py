"""Load team rosters from JSON."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from teamengine.models import (
    Availability,
    AvailabilityState,
    CommunicationStyle,
    ExpertiseArea,
    ExpertiseLevel,
    LearningStyle,
    Preferences,
    ReviewStyle,
    Role,
    TeamMember,
    WorkingStyle,
)


def member_from_dict(data: dict[str, Any]) -> TeamMember:
    """Build a TeamMember from a roster entry.

    Enum values are matched case-insensitively, so both ``"SENIOR"`` and
    ``"senior"`` are accepted.
    """
    availability = data.get("availability") or {}
    hours = availability.get("working_hours") or {}
    preferences = data.get("preferences") or {}

    return TeamMember(
        id=str(data["id"]),
        name=data.get("name", str(data["id"])),
        email=data.get("email", ""),
        role=Role(str(data.get("role", "junior")).lower()),
        skills=set(data.get("skills", [])),
        expertise=[
            ExpertiseArea(
                technology=exp["technology"],
                level=ExpertiseLevel(str(exp.get("level", "beginner")).lower()),
                years=float(exp.get("years", 0)),
            )
            for exp in data.get("expertise", [])
        ],
        workload=data.get("workload", 0),
        availability=Availability(
            status=AvailabilityState(str(availability.get("status", "available")).lower()),
            working_hours=(hours.get("start", "09:00"), hours.get("end", "17:00")),
            timezone=availability.get("timezone", data.get("timezone", "UTC")),
        ),
        preferences=Preferences(
            communication_style=CommunicationStyle(
                str(preferences.get("communication_style", "collaborative")).lower()
            ),
            review_style=ReviewStyle(str(preferences.get("review_style", "focused")).lower()),
            learning_style=LearningStyle(
                str(preferences.get("learning_style", "hands_on")).lower()
            ),
            working_style=WorkingStyle(
                str(preferences.get("working_style", "team_oriented")).lower()
            ),
        ),
    )


def member_to_dict(member: TeamMember) -> dict[str, Any]:
    """Inverse of member_from_dict, with skills sorted for stable output."""
    return {
        "id": member.id,
        "name": member.name,
        "email": member.email,
        "role": member.role.value,
        "skills": sorted(member.skills),
        "expertise": [
            {"technology": e.technology, "level": e.level.value, "years": e.years}
            for e in member.expertise
        ],
        "workload": member.workload,
        "availability": {
            "status": member.availability.status.value,
            "working_hours": {
                "start": member.availability.working_hours[0],
                "end": member.availability.working_hours[1],
            },
            "timezone": member.availability.timezone,
        },
        "preferences": {
            "communication_style": member.preferences.communication_style.value,
            "review_style": member.preferences.review_style.value,
            "learning_style": member.preferences.learning_style.value,
            "working_style": member.preferences.working_style.value,
        },
    }


def load_team(path: Path) -> list[TeamMember]:
    """Read a roster file: either a JSON list or ``{"members": [...]}``."""
    data = json.loads(Path(path).read_text())
    entries = data.get("members", []) if isinstance(data, dict) else data
    return [member_from_dict(entry) for entry in entries]


SAMPLE_TEAM: tuple[TeamMember, ...] = (
    TeamMember(
        id="dev1",
        name="Alice Johnson",
        email="alice@company.com",
        role=Role.SENIOR,
        skills={"React", "TypeScript", "Node.js", "PostgreSQL"},
        expertise=[
            ExpertiseArea("React", ExpertiseLevel.EXPERT, 5),
            ExpertiseArea("TypeScript", ExpertiseLevel.ADVANCED, 4),
        ],
        workload=75,
        availability=Availability(
            status=AvailabilityState.AVAILABLE,
            working_hours=("09:00", "17:00"),
            timezone="UTC-8",
        ),
        preferences=Preferences(
            communication_style=CommunicationStyle.COLLABORATIVE,
            review_style=ReviewStyle.DETAILED,
            learning_style=LearningStyle.MENTORING,
            working_style=WorkingStyle.PAIR_PROGRAMMING,
        ),
    ),
    TeamMember(
        id="dev2",
        name="Bob Smith",
        email="bob@company.com",
        role=Role.JUNIOR,
        skills={"JavaScript", "HTML", "CSS", "React"},
        expertise=[
            ExpertiseArea("JavaScript", ExpertiseLevel.INTERMEDIATE, 2),
            ExpertiseArea("React", ExpertiseLevel.BEGINNER, 1),
        ],
        workload=60,
        availability=Availability(
            status=AvailabilityState.AVAILABLE,
            working_hours=("10:00", "18:00"),
            timezone="UTC-5",
        ),
        preferences=Preferences(
            communication_style=CommunicationStyle.CASUAL,
            review_style=ReviewStyle.HIGH_LEVEL,
            learning_style=LearningStyle.HANDS_ON,
            working_style=WorkingStyle.INDIVIDUAL,
        ),
    ),
)
