"""
Bounded diagnostic error log kept in the key-value store.

Handled failures are prepended to a short list under ``error_log``
(newest first, capped length, own TTL). The log is read only by the debug
endpoint; writing to it must never fail the request that is being handled.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

import logging
from datetime import UTC, datetime

from pydantic import ValidationError

from deye_proxy.src.cache.redis_client import KVStore
from deye_proxy.src.models import ErrorLogEntry

logger = logging.getLogger(__name__)

ERROR_LOG_KEY = "error_log"
MAX_ENTRIES = 10
MAX_MESSAGE_LEN = 200


class ErrorLog:
    """Most-recent-first ring of handled errors.

    Args:
        store: Key-value store holding the log.
        ttl: Expiry of the log key in seconds, refreshed on every write.
    """

    def __init__(self, store: KVStore, ttl: int) -> None:
        self._store = store
        self._ttl = ttl

    async def record(self, context: str, message: object) -> None:
        """Prepend an entry and trim the log to MAX_ENTRIES.

        Args:
            context: Short tag naming where the failure happened.
            message: Error message; truncated to MAX_MESSAGE_LEN characters.
        """
        logger.debug("Recording %s error in %s", context, ERROR_LOG_KEY)
        entry = ErrorLogEntry(
            time=datetime.now(tz=UTC).isoformat(),
            context=context,
            message=str(message)[:MAX_MESSAGE_LEN],
        )
        entries = await self._load_raw()
        entries.insert(0, entry.model_dump())
        await self._store.put_json(ERROR_LOG_KEY, entries[:MAX_ENTRIES], self._ttl)

    async def entries(self) -> list[ErrorLogEntry]:
        """Return the logged entries, newest first. Malformed ones are skipped."""
        result: list[ErrorLogEntry] = []
        for item in await self._load_raw():
            try:
                result.append(ErrorLogEntry.model_validate(item))
            except ValidationError:
                logger.debug("Skipping malformed error log entry: %r", item)
        return result

    async def _load_raw(self) -> list:
        existing = await self._store.get_json(ERROR_LOG_KEY)
        return existing if isinstance(existing, list) else []
