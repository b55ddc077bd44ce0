"""Shared fixtures for team engine tests."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

import pytest

from teamengine.models import (
    Availability,
    AvailabilityState,
    ExpertiseArea,
    ExpertiseLevel,
    Role,
    TeamMember,
)
from teamengine.storage.store import InMemoryStore, StoreError


def build_member(
    member_id: str,
    role: Role = Role.JUNIOR,
    skills: set[str] | None = None,
    expertise: dict[str, ExpertiseLevel] | None = None,
    workload: int = 0,
    status: AvailabilityState = AvailabilityState.AVAILABLE,
) -> TeamMember:
    return TeamMember(
        id=member_id,
        name=member_id.title(),
        role=role,
        skills=skills or set(),
        expertise=[ExpertiseArea(tech, level) for tech, level in (expertise or {}).items()],
        workload=workload,
        availability=Availability(status=status),
    )


@pytest.fixture
def make_member() -> Callable[..., TeamMember]:
    """Factory for compact TeamMember records."""
    return build_member


class FailingStore(InMemoryStore[Any]):
    """Store whose puts start failing after ``ok_puts`` successful writes."""

    def __init__(self, ok_puts: int = 0) -> None:
        super().__init__()
        self.ok_puts = ok_puts

    def put(self, record_id: str, record: Any) -> None:
        if self.ok_puts <= 0:
            raise StoreError(f"cannot persist {record_id}")
        self.ok_puts -= 1
        super().put(record_id, record)


class RendezvousStore(InMemoryStore[Any]):
    """
    Store whose reads, once armed, wait for a second concurrent reader.

    Two unsynchronized read-modify-write calls meet at the barrier and
    both observe the same record. When callers serialize, the first
    reader times out alone and later readers pass straight through.
    """

    def __init__(self, timeout: float = 0.5) -> None:
        super().__init__()
        self.armed = False
        self._barrier = threading.Barrier(2, timeout=timeout)

    def get(self, record_id: str) -> Any:
        if self.armed:
            try:
                self._barrier.wait()
            except threading.BrokenBarrierError:
                pass
        return super().get(record_id)


def run_concurrently(call: Callable[[], Any], count: int = 2) -> list[Exception]:
    """Run ``call`` on ``count`` threads and collect what they raised."""
    errors: list[Exception] = []

    def _run() -> None:
        try:
            call()
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=_run) for _ in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return errors


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
