"""
Redis-backed key-value store for cached JSON documents.

Wraps a redis.asyncio client behind get/put-with-TTL helpers that
(de)serialise JSON. Storage is best-effort: connection failures and corrupt
values are raised as StorageError internally, logged, and turned into a
cache miss (reads) or a dropped write. Callers never see a storage failure.

CHANGELOG:
- 2026-10-17: Add ping() for the debug endpoint
- 2026-10-17: Initial creation

TODO:
- None
"""

import json
import logging
from typing import Any

import redis.asyncio as redis

from deye_proxy.src.errors import StorageError

logger = logging.getLogger(__name__)


def create_redis(url: str) -> redis.Redis:
    """Create an async Redis client that returns ``str`` values.

    Args:
        url: Redis connection URL.

    Returns:
        redis.Redis: Async Redis client. No connection is made until the
        first command.
    """
    return redis.from_url(url, decode_responses=True)


class KVStore:
    """JSON key-value store with per-key TTL on top of Redis.

    Args:
        client: An async Redis client (or any object with async ``get``,
            ``set(key, value, ex=ttl)`` and ``ping`` methods).
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    async def get_json(self, key: str) -> Any | None:
        """Read and decode a JSON value.

        Args:
            key: Storage key.

        Returns:
            The decoded value, or ``None`` if the key is missing, the store
            is unavailable, or the stored value is not valid JSON.
        """
        try:
            return await self._read(key)
        except StorageError:
            logger.warning("Cache read failed for key %s", key, exc_info=True)
            return None

    async def put_json(self, key: str, value: Any, ttl: int) -> bool:
        """Encode and store a JSON value with an expiry.

        Args:
            key: Storage key.
            value: JSON-serialisable value.
            ttl: Expiry in seconds.

        Returns:
            bool: ``True`` if the value was stored, ``False`` if the write
            was dropped.
        """
        try:
            await self._write(key, value, ttl)
        except StorageError:
            logger.warning("Cache write failed for key %s", key, exc_info=True)
            return False
        return True

    async def ping(self) -> bool:
        """Return ``True`` if the store answers a ping."""
        try:
            return bool(await self._client.ping())
        except Exception:
            logger.warning("Cache ping failed", exc_info=True)
            return False

    async def aclose(self) -> None:
        """Close the underlying client connection pool."""
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _read(self, key: str) -> Any | None:
        try:
            raw = await self._client.get(key)
        except Exception as exc:
            raise StorageError(f"get {key} failed: {exc}") from exc
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise StorageError(f"{key} holds invalid JSON") from exc

    async def _write(self, key: str, value: Any, ttl: int) -> None:
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"{key} value is not JSON-serialisable") from exc
        try:
            await self._client.set(key, payload, ex=ttl)
        except Exception as exc:
            raise StorageError(f"set {key} failed: {exc}") from exc
