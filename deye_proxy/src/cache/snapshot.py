"""
Snapshot cache: last computed channel snapshots with a freshness window.

Freshness is decided from the timestamp stored inside the value, not from
the Redis expiry. The key itself is kept for ``retention_s`` (much longer
than the window), so an expired snapshot can still be read back through
``read_any()`` when a refetch fails.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

import logging
import time
from collections.abc import Callable, Sequence

from pydantic import ValidationError

from deye_proxy.src.cache.redis_client import KVStore
from deye_proxy.src.models import ChannelSnapshot, SnapshotSet

logger = logging.getLogger(__name__)

SNAPSHOT_KEY = "battery_data_v3"
DEFAULT_FRESHNESS_S = 300


class SnapshotCache:
    """Reads and writes the cached SnapshotSet.

    Args:
        store: Key-value store holding the snapshot.
        retention_s: Storage TTL of the snapshot key.
        freshness_s: Maximum age served by ``read_fresh()``.
        clock: Returns the current time in epoch seconds.
    """

    def __init__(
        self,
        store: KVStore,
        retention_s: int,
        freshness_s: int = DEFAULT_FRESHNESS_S,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._retention_s = retention_s
        self._freshness_s = freshness_s
        self._clock = clock

    @property
    def freshness_s(self) -> int:
        """Freshness window in seconds."""
        return self._freshness_s

    def now_ms(self) -> int:
        """Current time in epoch milliseconds, from the injected clock."""
        return int(self._clock() * 1000)

    def is_fresh(self, snapshot_set: SnapshotSet) -> bool:
        """Return ``True`` if *snapshot_set* is younger than the window."""
        return self.now_ms() - snapshot_set.timestamp < self._freshness_s * 1000

    async def read_fresh(self) -> SnapshotSet | None:
        """Return the cached set if it is within the freshness window."""
        snapshot_set = await self.read_any()
        if snapshot_set is None or not self.is_fresh(snapshot_set):
            return None
        return snapshot_set

    async def read_any(self) -> SnapshotSet | None:
        """Return the cached set regardless of age, or ``None`` if absent."""
        raw = await self._store.get_json(SNAPSHOT_KEY)
        if raw is None:
            return None
        try:
            return SnapshotSet.model_validate(raw)
        except ValidationError:
            logger.warning("Ignoring malformed cached snapshot under %s", SNAPSHOT_KEY)
            return None

    async def write(self, batteries: Sequence[ChannelSnapshot]) -> SnapshotSet:
        """Store *batteries* stamped with the current time.

        Best-effort: a failed write is logged by the store and ignored.

        Returns:
            SnapshotSet: The set that was (or would have been) stored.
        """
        snapshot_set = SnapshotSet(batteries=list(batteries), timestamp=self.now_ms())
        await self._store.put_json(
            SNAPSHOT_KEY,
            snapshot_set.model_dump(),
            self._retention_s,
        )
        return snapshot_set
