"""
DeyeCloud access token provider with a long-lived store cache.

The token is read from the ``deye_token`` key when present; expiry is left
to the store TTL. Otherwise the provider logs in with the configured
account, trying each credential shape in IDENTIFIER_FIELDS until one yields
a token, and caches the result for TOKEN_CACHE_TTL_S.

The account password never leaves the process in plaintext: DeyeCloud
expects its lowercase hex SHA-256 digest.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from deye_proxy.src.errors import AuthError, ConfigError
from deye_proxy.src.models import CachedToken

if TYPE_CHECKING:
    from deye_proxy.src.cache.error_log import ErrorLog
    from deye_proxy.src.cache.redis_client import KVStore
    from deye_proxy.src.deye.client import DeyeClient

logger = logging.getLogger(__name__)

TOKEN_KEY = "deye_token"
TOKEN_CACHE_TTL_S = 86400 * 60

IDENTIFIER_FIELDS: tuple[str, ...] = ("email", "username")
"""Body field the account identifier is sent under, in order of attempts."""


def hash_password(password: str) -> str:
    """Return the lowercase hex SHA-256 digest DeyeCloud expects."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def extract_token(result: dict[str, Any]) -> str | None:
    """Pull the access token out of a token response.

    The token is either top-level ``accessToken`` or nested under ``data``.
    """
    token = result.get("accessToken")
    if not token:
        data = result.get("data")
        if isinstance(data, dict):
            token = data.get("accessToken")
    return token or None


def _describe_failure(result: dict[str, Any]) -> str:
    return str(result.get("msg") or json.dumps(result, ensure_ascii=False)[:150])


class TokenProvider:
    """Obtains and caches the DeyeCloud bearer token.

    Args:
        client: DeyeCloud API client.
        store: Key-value store holding the cached token.
        app_id: Developer application id.
        app_secret: Developer application secret.
        email: Account email, also tried as username.
        password: Account password in plaintext (hashed before sending).
        ttl: Storage TTL of the cached token in seconds.
        error_log: Optional error log for rejected login attempts.
        clock: Returns the current time in epoch seconds.
    """

    def __init__(
        self,
        client: DeyeClient,
        store: KVStore,
        *,
        app_id: str,
        app_secret: str,
        email: str,
        password: str,
        ttl: int = TOKEN_CACHE_TTL_S,
        error_log: ErrorLog | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._store = store
        self._app_id = app_id
        self._app_secret = app_secret
        self._email = email
        self._password = password
        self._ttl = ttl
        self._error_log = error_log
        self._clock = clock

    async def cached_token(self) -> CachedToken | None:
        """Return the cached token document, or ``None`` if absent."""
        raw = await self._store.get_json(TOKEN_KEY)
        if not isinstance(raw, dict):
            return None
        try:
            cached = CachedToken.model_validate(raw)
        except ValidationError:
            logger.warning("Ignoring malformed cached token under %s", TOKEN_KEY)
            return None
        return cached if cached.token else None

    async def get_access_token(self) -> str:
        """Return a bearer token, logging in only when none is cached.

        Returns:
            str: DeyeCloud access token.

        Raises:
            ConfigError: If any of the four credentials is missing.
            AuthError: If every credential shape was rejected.
        """
        cached = await self.cached_token()
        if cached is not None:
            return cached.token

        self._check_credentials()
        password_hash = hash_password(self._password)

        last_failure = ""
        for attempt, field in enumerate(IDENTIFIER_FIELDS, start=1):
            payload = {
                "appSecret": self._app_secret,
                field: self._email,
                "password": password_hash,
            }
            try:
                result = await self._client.request_token(self._app_id, payload)
            except AuthError as exc:
                last_failure = str(exc)
            else:
                token = extract_token(result)
                if token:
                    await self._store_token(token)
                    logger.info("Obtained DeyeCloud token via %s login", field)
                    return token
                last_failure = _describe_failure(result)

            logger.warning("DeyeCloud %s login rejected: %s", field, last_failure)
            if attempt < len(IDENTIFIER_FIELDS) and self._error_log is not None:
                await self._error_log.record(
                    f"auth_{field}_failed",
                    f"{field.capitalize()} login failed: {last_failure}",
                )

        raise AuthError(
            f"Failed to obtain token (tried {'+'.join(IDENTIFIER_FIELDS)}): "
            f"{last_failure[:150]}"
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _check_credentials(self) -> None:
        missing = [
            name
            for name, value in (
                ("DEYE_APP_ID", self._app_id),
                ("DEYE_APP_SECRET", self._app_secret),
                ("DEYE_EMAIL", self._email),
                ("DEYE_PASSWORD", self._password),
            )
            if not value
        ]
        if missing:
            raise ConfigError(f"Missing credentials env vars: {', '.join(missing)}")

    async def _store_token(self, token: str) -> None:
        cached = CachedToken(token=token, created_at=int(self._clock() * 1000))
        await self._store.put_json(TOKEN_KEY, cached.model_dump(by_alias=True), self._ttl)
