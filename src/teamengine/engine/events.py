"""In-process publish/subscribe for engine decisions."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)

Subscriber = Callable[["EventType", Any], None]


class EventType(StrEnum):
    """Notifications emitted after each decision."""

    CONFLICT_CREATED = "conflict_created"
    CONFLICT_UPDATED = "conflict_updated"
    CONFLICT_RESOLVED = "conflict_resolved"
    REVIEW_ASSIGNED = "review_assigned"
    TASK_COORDINATED = "task_coordinated"
    TASK_UPDATED = "task_updated"
    KNOWLEDGE_GAPS_IDENTIFIED = "knowledge_gaps_identified"
    METRICS_SAMPLED = "metrics_sampled"


class EventBus:
    """
    Registry of subscriber callbacks, invoked synchronously on publish.

    A subscriber registered without an event type receives every event.
    A subscriber that raises is logged and skipped; delivery to the
    remaining subscribers continues.
    """

    def __init__(self) -> None:
        self._subscribers: list[tuple[EventType | None, Subscriber]] = []
        self._lock = threading.Lock()

    def subscribe(
        self, callback: Subscriber, event_type: EventType | None = None
    ) -> Callable[[], None]:
        """Register ``callback``. Returns a function that unsubscribes it."""
        entry = (event_type, callback)
        with self._lock:
            self._subscribers.append(entry)

        def _unsubscribe() -> None:
            with self._lock:
                if entry in self._subscribers:
                    self._subscribers.remove(entry)

        return _unsubscribe

    def publish(self, event_type: EventType, payload: Any) -> int:
        """Deliver ``payload`` to matching subscribers. Returns the delivery count."""
        with self._lock:
            targets = [cb for et, cb in self._subscribers if et is None or et == event_type]

        delivered = 0
        for callback in targets:
            try:
                callback(event_type, payload)
                delivered += 1
            except Exception:
                logger.exception(f"Subscriber {callback!r} failed on {event_type}")
        return delivered
