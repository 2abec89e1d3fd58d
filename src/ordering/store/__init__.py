"""Key-value backend abstraction — pluggable persistence for the order store."""

from ordering.config import Settings
from ordering.store.port import KeyValueBackend


def create_backend(settings: Settings) -> KeyValueBackend:
    """Build the backend selected by ``settings.backend``.

    The caller owns the returned handle and shares it across requests.
    """
    if settings.backend == "redis":
        from ordering.store.redis_adapter import RedisBackend

        return RedisBackend.from_url(settings.redis_url, timeout=settings.redis_timeout)
    elif settings.backend == "memory":
        from ordering.store.memory_adapter import MemoryBackend

        return MemoryBackend()
    else:
        raise ValueError(f"Unknown backend: {settings.backend}")


def open_backend(settings: Settings, backend: KeyValueBackend | None = None) -> KeyValueBackend:
    """Return ``backend`` (or a new one from ``settings``) after checking it is reachable.

    Raises ``StorageError`` if the backend does not answer the ping.
    """
    if backend is None:
        backend = create_backend(settings)
    backend.ping()
    return backend
