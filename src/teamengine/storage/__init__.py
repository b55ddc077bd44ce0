"""Record storage for engine decisions."""

from .store import InMemoryStore, RecordStore, StoreError

__all__ = ["InMemoryStore", "RecordStore", "StoreError"]
