"""Injected record stores for conflicts, reviews, tasks and transfers."""

from __future__ import annotations

import threading
from typing import Generic, Protocol, TypeVar

T = TypeVar("T")


class StoreError(RuntimeError):
    """Raised when a record cannot be persisted. Recoverable by the caller."""


class RecordStore(Protocol[T]):
    """Minimal keyed store. Records are immutable values keyed by id."""

    def get(self, record_id: str) -> T | None: ...

    def list(self) -> list[T]: ...

    def put(self, record_id: str, record: T) -> None: ...

    def delete(self, record_id: str) -> None: ...


class InMemoryStore(Generic[T]):
    """Dict-backed store preserving insertion order."""

    def __init__(self) -> None:
        self._records: dict[str, T] = {}
        self._lock = threading.Lock()

    def get(self, record_id: str) -> T | None:
        with self._lock:
            return self._records.get(record_id)

    def list(self) -> list[T]:
        with self._lock:
            return list(self._records.values())

    def put(self, record_id: str, record: T) -> None:
        with self._lock:
            self._records[record_id] = record

    def delete(self, record_id: str) -> None:
        with self._lock:
            self._records.pop(record_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
