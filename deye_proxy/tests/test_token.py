"""
Tests for the DeyeCloud token provider.

Tests verify:
- A cached token is returned without any upstream call.
- Missing credentials raise ConfigError before any network call.
- The password is sent as its SHA-256 hex digest.
- The token is accepted from ``accessToken`` or ``data.accessToken``.
- A rejected email login is retried once as username and logged.
- Success caches {token, createdAt} with the configured TTL.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import hashlib
import json
from unittest.mock import AsyncMock

import pytest

from deye_proxy.src.cache.error_log import ErrorLog
from deye_proxy.src.cache.redis_client import KVStore
from deye_proxy.src.deye.token import (
    TOKEN_KEY,
    TokenProvider,
    extract_token,
    hash_password,
)
from deye_proxy.src.errors import AuthError, ConfigError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

CREDENTIALS = {
    "app_id": "app-123",
    "app_secret": "secret-xyz",
    "email": "owner@example.com",
    "password": "hunter2",
}


def _provider(
    store: KVStore,
    responses: list,
    clock=None,
    error_log: ErrorLog | None = None,
    **overrides: str,
) -> tuple[TokenProvider, AsyncMock]:
    client = AsyncMock()
    client.request_token = AsyncMock(side_effect=responses)
    kwargs = {**CREDENTIALS, **overrides}
    if clock is not None:
        kwargs["clock"] = clock
    provider = TokenProvider(client, store, ttl=5184000, error_log=error_log, **kwargs)
    return provider, client


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    def test_hash_password_is_lowercase_sha256_hex(self) -> None:
        digest = hash_password("hunter2")
        assert digest == hashlib.sha256(b"hunter2").hexdigest()
        assert digest == digest.lower()
        assert len(digest) == 64

    def test_extract_top_level_token(self) -> None:
        assert extract_token({"accessToken": "abc"}) == "abc"

    def test_extract_nested_token(self) -> None:
        assert extract_token({"data": {"accessToken": "nested"}}) == "nested"

    def test_extract_missing_token(self) -> None:
        assert extract_token({"success": False, "msg": "nope"}) is None
        assert extract_token({"data": None}) is None


# ---------------------------------------------------------------------------
# Cached token
# ---------------------------------------------------------------------------


class TestCachedToken:
    @pytest.mark.asyncio
    async def test_cached_token_skips_upstream(self, store: KVStore, fake_redis) -> None:
        fake_redis.data[TOKEN_KEY] = json.dumps({"token": "cached", "createdAt": 1})
        provider, client = _provider(store, [])

        assert await provider.get_access_token() == "cached"
        client.request_token.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_cached_token_triggers_login(
        self, store: KVStore, fake_redis
    ) -> None:
        fake_redis.data[TOKEN_KEY] = json.dumps({"token": "", "createdAt": 1})
        provider, client = _provider(store, [{"accessToken": "fresh"}])

        assert await provider.get_access_token() == "fresh"
        client.request_token.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_two_calls_authenticate_once(self, store: KVStore) -> None:
        provider, client = _provider(store, [{"accessToken": "tok-1"}])

        first = await provider.get_access_token()
        second = await provider.get_access_token()

        assert first == second == "tok-1"
        assert client.request_token.await_count == 1


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


class TestLogin:
    @pytest.mark.asyncio
    async def test_missing_credentials_raise_config_error(self, store: KVStore) -> None:
        provider, client = _provider(store, [], password="")

        with pytest.raises(ConfigError, match="DEYE_PASSWORD"):
            await provider.get_access_token()
        client.request_token.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_config_error_is_an_auth_error(self, store: KVStore) -> None:
        provider, _ = _provider(store, [], app_id="", email="")

        with pytest.raises(AuthError):
            await provider.get_access_token()

    @pytest.mark.asyncio
    async def test_email_login_payload(self, store: KVStore) -> None:
        provider, client = _provider(store, [{"accessToken": "tok"}])

        await provider.get_access_token()

        app_id, payload = client.request_token.call_args[0]
        assert app_id == "app-123"
        assert payload == {
            "appSecret": "secret-xyz",
            "email": "owner@example.com",
            "password": hashlib.sha256(b"hunter2").hexdigest(),
        }
        assert "hunter2" not in payload.values()

    @pytest.mark.asyncio
    async def test_success_caches_token_with_created_at(
        self, store: KVStore, fake_redis, clock
    ) -> None:
        provider, _ = _provider(store, [{"data": {"accessToken": "nested-tok"}}], clock=clock)

        assert await provider.get_access_token() == "nested-tok"

        stored = json.loads(fake_redis.data[TOKEN_KEY])
        assert stored == {"token": "nested-tok", "createdAt": int(clock.now * 1000)}
        assert fake_redis.ttls[TOKEN_KEY] == 5184000

    @pytest.mark.asyncio
    async def test_rejected_email_retries_as_username(
        self, store: KVStore
    ) -> None:
        error_log = ErrorLog(store, ttl=604800)
        provider, client = _provider(
            store,
            [{"success": False, "msg": "email not found"}, {"accessToken": "via-user"}],
            error_log=error_log,
        )

        assert await provider.get_access_token() == "via-user"

        assert client.request_token.await_count == 2
        second_payload = client.request_token.call_args_list[1][0][1]
        assert second_payload["username"] == "owner@example.com"
        assert "email" not in second_payload

        entries = await error_log.entries()
        assert [e.context for e in entries] == ["auth_email_failed"]
        assert "email not found" in entries[0].message

    @pytest.mark.asyncio
    async def test_all_shapes_rejected_raises_auth_error(
        self, store: KVStore, fake_redis
    ) -> None:
        provider, client = _provider(
            store,
            [{"success": False, "msg": "bad email"}, {"success": False, "msg": "bad user"}],
        )

        with pytest.raises(AuthError, match="tried email\\+username.*bad user"):
            await provider.get_access_token()

        assert client.request_token.await_count == 2
        assert TOKEN_KEY not in fake_redis.data

    @pytest.mark.asyncio
    async def test_transport_error_counts_as_rejected_attempt(
        self, store: KVStore
    ) -> None:
        provider, client = _provider(
            store,
            [AuthError("/v1.0/account/token request failed: timeout"), {"accessToken": "ok"}],
        )

        assert await provider.get_access_token() == "ok"
        assert client.request_token.await_count == 2

    @pytest.mark.asyncio
    async def test_failure_message_without_msg_uses_body(self, store: KVStore) -> None:
        provider, _ = _provider(store, [{"code": 1}, {"code": 2}])

        with pytest.raises(AuthError, match='"code": 2'):
            await provider.get_access_token()
