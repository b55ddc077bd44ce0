"""Team Model - in-memory registry of team members and their mutable attributes."""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import replace
from typing import Any

from teamengine.models import AvailabilityState, TeamMember, clamp_workload

logger = logging.getLogger(__name__)


class TeamModel:
    """
    Owns every TeamMember record.

    All mutation goes through ``update`` under one lock. Mutators run
    against a private copy which replaces the stored record only once the
    mutator returns, so readers never see a half-updated member. Reads
    return deep copies; callers never hold the live record.
    """

    def __init__(self, members: Iterable[TeamMember] = ()) -> None:
        self._members: dict[str, TeamMember] = {}
        self._lock = threading.RLock()
        for member in members:
            self.add(member)

    def add(self, member: TeamMember) -> None:
        """Register a member, replacing any record with the same id."""
        with self._lock:
            self._members[member.id] = copy.deepcopy(member)
        logger.debug(f"Registered team member {member.id} ({member.role})")

    def remove(self, member_id: str) -> None:
        with self._lock:
            if self._members.pop(member_id, None) is None:
                raise KeyError(member_id)

    def get(self, member_id: str) -> TeamMember:
        """Snapshot of one member. Raises KeyError for unknown ids."""
        with self._lock:
            return copy.deepcopy(self._members[member_id])

    def find(self, member_id: str) -> TeamMember | None:
        with self._lock:
            member = self._members.get(member_id)
            return copy.deepcopy(member) if member is not None else None

    def all(self) -> list[TeamMember]:
        """Point-in-time snapshot of every member, in registration order."""
        with self._lock:
            return copy.deepcopy(list(self._members.values()))

    def update(self, member_id: str, mutator: Callable[[TeamMember], Any]) -> TeamMember:
        """
        Apply ``mutator`` to a copy of the member and store the result.

        The mutator may modify the copy in place and return None, or
        return a replacement TeamMember. Workload is clamped to [0, 100]
        afterwards. If the mutator raises, the stored record is unchanged.

        Returns:
            Snapshot of the updated member.
        """
        with self._lock:
            current = self._members[member_id]
            draft = copy.deepcopy(current)
            result = mutator(draft)
            updated = result if isinstance(result, TeamMember) else draft
            if updated.id != member_id:
                raise ValueError(f"mutator changed member id {member_id} -> {updated.id}")
            updated.workload = clamp_workload(updated.workload)
            updated.skills = set(updated.skills)
            self._members[member_id] = updated
            return copy.deepcopy(updated)

    def set_workload(self, member_id: str, workload: float) -> TeamMember:
        def _apply(member: TeamMember) -> None:
            member.workload = clamp_workload(workload)

        return self.update(member_id, _apply)

    def adjust_workload(self, member_id: str, delta: float) -> TeamMember:
        def _apply(member: TeamMember) -> None:
            member.workload = clamp_workload(member.workload + delta)

        return self.update(member_id, _apply)

    def set_availability(self, member_id: str, status: AvailabilityState) -> TeamMember:
        def _apply(member: TeamMember) -> None:
            member.availability = replace(member.availability, status=AvailabilityState(status))

        return self.update(member_id, _apply)

    def __len__(self) -> int:
        with self._lock:
            return len(self._members)

    def __contains__(self, member_id: object) -> bool:
        with self._lock:
            return member_id in self._members

    def get_stats(self) -> dict[str, Any]:
        """Headcount by role and availability plus mean workload."""
        members = self.all()
        by_role: dict[str, int] = {}
        by_status: dict[str, int] = {}
        for member in members:
            by_role[member.role.value] = by_role.get(member.role.value, 0) + 1
            status = member.availability.status.value
            by_status[status] = by_status.get(status, 0) + 1

        average = sum(m.workload for m in members) / len(members) if members else 0.0
        return {
            "total_members": len(members),
            "by_role": by_role,
            "by_status": by_status,
            "average_workload": average,
        }
