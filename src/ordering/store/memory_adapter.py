"""In-memory adapter — key-value backend for development and testing.

Keeps records and indexes in dicts guarded by one lock, so every operation
is atomic with respect to the others. ``configure(available=False)``
simulates an outage: every call then raises ``StorageError``.
"""

import threading
from itertools import islice

from ordering.exceptions import Conflict, StorageError
from ordering.store.port import KeyValueBackend


class MemoryBackend(KeyValueBackend):
    """Process-local backend that is always reachable by default."""

    def __init__(self):
        self.available = True
        self.failure_reason = "Backend unavailable"
        self._lock = threading.RLock()
        self._records: dict[str, str] = {}
        # Dicts keep insertion order, which is the listing order
        self._indexes: dict[str, dict[str, None]] = {}

    def configure(self, available: bool = True, failure_reason: str = "Backend unavailable"):
        """Configure the backend's availability for testing."""
        self.available = available
        self.failure_reason = failure_reason

    def reset(self):
        """Drop every record and index."""
        with self._lock:
            self._records.clear()
            self._indexes.clear()

    def _check_available(self):
        if not self.available:
            raise StorageError(self.failure_reason)

    def ping(self) -> None:
        self._check_available()

    def get(self, key: str) -> str | None:
        with self._lock:
            self._check_available()
            return self._records.get(key)

    def get_many(self, keys: list[str]) -> list[str | None]:
        with self._lock:
            self._check_available()
            return [self._records.get(key) for key in keys]

    def create(self, key: str, value: str, index: str, member: str) -> bool:
        with self._lock:
            self._check_available()
            if key in self._records:
                return False
            self._records[key] = value
            self._indexes.setdefault(index, {}).setdefault(member, None)
            return True

    def replace(self, key: str, value: str, expected: str | None = None) -> bool:
        with self._lock:
            self._check_available()
            current = self._records.get(key)
            if current is None:
                return False
            if expected is not None and current != expected:
                raise Conflict(f"{key} was modified concurrently")
            self._records[key] = value
            return True

    def remove(self, key: str, index: str, member: str) -> bool:
        with self._lock:
            self._check_available()
            self._indexes.get(index, {}).pop(member, None)
            return self._records.pop(key, None) is not None

    def index_range(self, index: str, offset: int, count: int) -> list[str]:
        with self._lock:
            self._check_available()
            members = self._indexes.get(index, {})
            if offset >= len(members):
                return []
            return list(islice(members, offset, offset + max(count, 0)))

    def index_size(self, index: str) -> int:
        with self._lock:
            self._check_available()
            return len(self._indexes.get(index, {}))

    def index_discard(self, index: str, member: str) -> bool:
        with self._lock:
            self._check_available()
            members = self._indexes.get(index, {})
            if member not in members:
                return False
            del members[member]
            return True
