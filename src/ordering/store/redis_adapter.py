"""Redis adapter — production key-value backend.

Layout:
    <key>          string   the serialized record
    <index>        zset     members scored by insertion sequence
    <index>:seq    string   INCR counter handing out insertion sequence numbers

Sorted-set ranks give a stable insertion order that survives removals, so
ZRANGE by rank backs offset pagination.
"""

import redis

from ordering.exceptions import Conflict, StorageError
from ordering.store.port import KeyValueBackend


class RedisBackend(KeyValueBackend):
    """Backend over a shared, thread-safe ``redis.Redis`` client."""

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str, timeout: float | None = None) -> "RedisBackend":
        client = redis.Redis.from_url(
            url,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
            decode_responses=True,
        )
        return cls(client)

    @staticmethod
    def _sequence_key(index: str) -> str:
        return f"{index}:seq"

    def ping(self) -> None:
        try:
            self.client.ping()
        except redis.RedisError as exc:
            raise StorageError(f"Redis is unreachable: {exc}") from exc

    def get(self, key: str) -> str | None:
        try:
            return self.client.get(key)
        except redis.RedisError as exc:
            raise StorageError(f"Failed to read {key}: {exc}") from exc

    def get_many(self, keys: list[str]) -> list[str | None]:
        if not keys:
            return []
        try:
            return self.client.mget(keys)
        except redis.RedisError as exc:
            raise StorageError(f"Failed to read {len(keys)} keys: {exc}") from exc

    def create(self, key: str, value: str, index: str, member: str) -> bool:
        try:
            position = self.client.incr(self._sequence_key(index))
            with self.client.pipeline(transaction=True) as pipe:
                pipe.set(key, value, nx=True)
                pipe.zadd(index, {member: position}, nx=True)
                created, _ = pipe.execute()
        except redis.RedisError as exc:
            raise StorageError(f"Failed to create {key}: {exc}") from exc
        return bool(created)

    def replace(self, key: str, value: str, expected: str | None = None) -> bool:
        if expected is None:
            try:
                return bool(self.client.set(key, value, xx=True))
            except redis.RedisError as exc:
                raise StorageError(f"Failed to write {key}: {exc}") from exc

        try:
            with self.client.pipeline() as pipe:
                pipe.watch(key)
                current = pipe.get(key)
                if current is None:
                    return False
                if current != expected:
                    raise Conflict(f"{key} was modified concurrently")
                pipe.multi()
                pipe.set(key, value)
                pipe.execute()
        except redis.WatchError as exc:
            raise Conflict(f"{key} was modified concurrently") from exc
        except redis.RedisError as exc:
            raise StorageError(f"Failed to write {key}: {exc}") from exc
        return True

    def remove(self, key: str, index: str, member: str) -> bool:
        try:
            with self.client.pipeline(transaction=True) as pipe:
                pipe.delete(key)
                pipe.zrem(index, member)
                deleted, _ = pipe.execute()
        except redis.RedisError as exc:
            raise StorageError(f"Failed to delete {key}: {exc}") from exc
        return deleted > 0

    def index_range(self, index: str, offset: int, count: int) -> list[str]:
        if count <= 0:
            return []
        try:
            return self.client.zrange(index, offset, offset + count - 1)
        except redis.RedisError as exc:
            raise StorageError(f"Failed to read {index}: {exc}") from exc

    def index_size(self, index: str) -> int:
        try:
            return self.client.zcard(index)
        except redis.RedisError as exc:
            raise StorageError(f"Failed to read {index}: {exc}") from exc

    def index_discard(self, index: str, member: str) -> bool:
        try:
            return self.client.zrem(index, member) > 0
        except redis.RedisError as exc:
            raise StorageError(f"Failed to update {index}: {exc}") from exc

    def close(self) -> None:
        self.client.close()
