"""
Battery status service: cache check, fetch, aggregate, persist, fall back.

One call to ``get_status()`` runs the whole per-request pipeline:

1. Serve the cached snapshot set if it is still fresh.
2. Otherwise obtain a token, fetch the latest telemetry for every configured
   inverter in one batched call, normalize each record and aggregate per
   channel.
3. Store the new snapshot set (best-effort) and return it.

Any failure after the cache miss is logged to the error log and answered
with the last stored snapshot, however old, flagged ``stale``. Only when
nothing was ever stored does the failure surface as BatteryUnavailableError.

Concurrent requests during a cache miss may each refetch; the last write
wins. No locking is done.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from deye_proxy.src.channels import Channel, all_device_sns
from deye_proxy.src.errors import BatteryUnavailableError, ProxyError
from deye_proxy.src.normalizer import extract_reading
from deye_proxy.src.services.aggregation import build_snapshots

if TYPE_CHECKING:
    from deye_proxy.src.cache.error_log import ErrorLog
    from deye_proxy.src.cache.snapshot import SnapshotCache
    from deye_proxy.src.deye.client import DeyeClient
    from deye_proxy.src.deye.token import TokenProvider
    from deye_proxy.src.models import ChannelSnapshot, DeviceReading

logger = logging.getLogger(__name__)

FAILURE_CONTEXT = "battery_fetch"


def _dump(snapshots: Sequence[ChannelSnapshot]) -> list[dict[str, Any]]:
    return [snapshot.model_dump() for snapshot in snapshots]


class BatteryService:
    """Orchestrates one ``/api/battery`` request.

    Args:
        channels: Static channel table.
        token_provider: Source of the DeyeCloud bearer token.
        client: DeyeCloud API client used for the telemetry fetch.
        snapshot_cache: Cache of the last computed snapshot set.
        error_log: Diagnostic error log written on every handled failure.
        clock: Returns the current time in epoch seconds.
    """

    def __init__(
        self,
        channels: Sequence[Channel],
        token_provider: TokenProvider,
        client: DeyeClient,
        snapshot_cache: SnapshotCache,
        error_log: ErrorLog,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._channels = tuple(channels)
        self._token_provider = token_provider
        self._client = client
        self._snapshot_cache = snapshot_cache
        self._error_log = error_log
        self._clock = clock

    async def get_status(self) -> dict[str, Any]:
        """Return the battery payload for the dashboard.

        Returns:
            dict: ``{"data": [...], "cached": bool}`` plus ``"stale": True``
            and ``"error": str`` when serving a stale snapshot after a
            failed refetch.

        Raises:
            BatteryUnavailableError: If the refetch failed and no snapshot
                was ever stored.
        """
        fresh = await self._snapshot_cache.read_fresh()
        if fresh is not None:
            return {"data": _dump(fresh.batteries), "cached": True}

        try:
            snapshots = await self._refresh()
        except Exception as exc:
            return await self._fall_back(exc)

        await self._snapshot_cache.write(snapshots)
        return {"data": _dump(snapshots), "cached": False}

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _refresh(self) -> list[ChannelSnapshot]:
        token = await self._token_provider.get_access_token()
        sns = all_device_sns(self._channels)
        records = await self._client.fetch_latest(token, sns)

        ts = datetime.fromtimestamp(self._clock(), tz=UTC).isoformat()
        readings: dict[str, DeviceReading] = {}
        for sn, record in records.items():
            reading = extract_reading(sn, record, ts=ts)
            if reading is not None:
                readings[sn] = reading

        missing = [sn for sn in sns if sn not in readings]
        if missing:
            logger.warning("No usable telemetry for devices %s", missing)
        return build_snapshots(self._channels, readings, ts=ts)

    async def _fall_back(self, exc: Exception) -> dict[str, Any]:
        message = str(exc) or type(exc).__name__
        if isinstance(exc, ProxyError):
            logger.warning("Battery refresh failed: %s", message)
        else:
            logger.exception("Unexpected error during battery refresh")
        await self._error_log.record(FAILURE_CONTEXT, message)

        stale = await self._snapshot_cache.read_any()
        if stale is None:
            raise BatteryUnavailableError(message) from exc

        logger.info("Serving stale snapshot from %d", stale.timestamp)
        return {
            "data": _dump(stale.batteries),
            "cached": True,
            "stale": True,
            "error": message,
        }
