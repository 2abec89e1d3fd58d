"""Key-value backend port — the only persistence interface the order store uses.

Records are flat string values under string keys. Each record can also be a
member of an insertion-ordered index used for paginated listing. Writes that
touch both a record and its index entry are applied atomically by the
adapter.

Adapters translate their client's failures into ``StorageError``.
"""

from abc import ABC, abstractmethod


class KeyValueBackend(ABC):
    """Abstract interface for key-value backends."""

    @abstractmethod
    def ping(self) -> None:
        """Check that the backend is reachable. Raises ``StorageError`` otherwise."""
        ...

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value stored under ``key``, or None if absent."""
        ...

    @abstractmethod
    def get_many(self, keys: list[str]) -> list[str | None]:
        """Return values for ``keys`` in the same order, None for absent keys."""
        ...

    @abstractmethod
    def create(self, key: str, value: str, index: str, member: str) -> bool:
        """Store ``value`` under ``key`` and append ``member`` to ``index``.

        Both writes happen together or not at all. Nothing is written to
        ``key`` if it already exists.

        Returns:
            True if the record was created, False if ``key`` already existed.
        """
        ...

    @abstractmethod
    def replace(self, key: str, value: str, expected: str | None = None) -> bool:
        """Overwrite the value under an existing ``key``.

        When ``expected`` is given, the write only happens if the stored
        value still equals ``expected``; otherwise ``Conflict`` is raised.

        Returns:
            True if the record was overwritten, False if ``key`` does not exist.
        """
        ...

    @abstractmethod
    def remove(self, key: str, index: str, member: str) -> bool:
        """Delete ``key`` and drop ``member`` from ``index`` in one step.

        Returns:
            True if a record existed under ``key``, False otherwise.
        """
        ...

    @abstractmethod
    def index_range(self, index: str, offset: int, count: int) -> list[str]:
        """Return up to ``count`` members of ``index`` starting at position ``offset``."""
        ...

    @abstractmethod
    def index_size(self, index: str) -> int:
        """Return the number of members in ``index``."""
        ...

    @abstractmethod
    def index_discard(self, index: str, member: str) -> bool:
        """Drop ``member`` from ``index``. Returns True if it was present."""
        ...

    def close(self) -> None:
        """Release connections held by the backend."""
