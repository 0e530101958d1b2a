"""
GET /api/debug endpoint describing the proxy's state for operators.

Reports which credentials are configured (never their values), whether the
store answers, the age of the cached token and snapshot, a short preview of
the cached channels and the recent error log. Not part of the dashboard
contract.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from datetime import UTC, datetime

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from deye_proxy.src.api.deps import (
    ErrorLogDep,
    SettingsDep,
    SnapshotCacheDep,
    StoreDep,
    TokenProviderDep,
)
from deye_proxy.src.cache.error_log import ERROR_LOG_KEY
from deye_proxy.src.cache.snapshot import SNAPSHOT_KEY
from deye_proxy.src.deye.token import TOKEN_KEY
from deye_proxy.src.normalizer import GRID_FREQ_THRESHOLD_HZ

router = APIRouter(prefix="/api", tags=["debug"])

_MS_PER_HOUR = 60 * 60 * 1000
_MS_PER_DAY = 24 * _MS_PER_HOUR


def _presence(value: str) -> str:
    return "SET" if value else "MISSING"


def _token_age(age_ms: int) -> str:
    days, rest = divmod(max(age_ms, 0), _MS_PER_DAY)
    return f"Valid (created {days}d {rest // _MS_PER_HOUR}h ago)"


def _snapshot_age(age_ms: int, fresh: bool) -> str:
    minutes, rest = divmod(max(age_ms, 0), 60_000)
    label = "Fresh" if fresh else "Stale"
    return f"{label} (updated {minutes}m {rest // 1000}s ago)"


@router.get("/debug")
async def debug(
    settings: SettingsDep,
    store: StoreDep,
    token_provider: TokenProviderDep,
    snapshot_cache: SnapshotCacheDep,
    error_log: ErrorLogDep,
) -> JSONResponse:
    """Return a diagnostic summary of configuration and cache state."""
    now_ms = snapshot_cache.now_ms()
    env_check = {
        "DEYE_APP_ID": _presence(settings.deye_app_id),
        "DEYE_APP_SECRET": _presence(settings.deye_app_secret),
        "DEYE_EMAIL": _presence(settings.deye_email),
        "DEYE_PASSWORD": _presence(settings.deye_password),
        "REDIS": "CONNECTED" if await store.ping() else "UNREACHABLE",
    }

    cached_token = await token_provider.cached_token()
    if cached_token is not None:
        token_status = _token_age(now_ms - cached_token.created_at)
    else:
        token_status = "No token cached (will fetch on next request)"

    snapshot_set = await snapshot_cache.read_any()
    battery_preview = None
    if snapshot_set is not None:
        data_status = _snapshot_age(
            now_ms - snapshot_set.timestamp,
            snapshot_cache.is_fresh(snapshot_set),
        )
        battery_preview = [
            {
                "id": b.id,
                "name": b.name,
                "level": f"{b.level}%",
                "grid": (
                    f"ON ({b.grid_freq}Hz)"
                    if b.grid_freq > GRID_FREQ_THRESHOLD_HZ
                    else "OFF"
                ),
            }
            for b in snapshot_set.batteries
        ]
    else:
        data_status = "No data cached yet"

    recent_errors = [entry.model_dump() for entry in await error_log.entries()]

    result = {
        "status": "ok",
        "timestamp": datetime.now(tz=UTC).isoformat(),
        "base_url": settings.base_url,
        "env_check": env_check,
        "token_status": token_status,
        "data_cache_status": data_status,
        "battery_preview": battery_preview,
        "recent_errors": recent_errors or "No errors logged",
        "help": {
            "clear_token": f'Delete "{TOKEN_KEY}" key from Redis to force re-auth',
            "clear_data": f'Delete "{SNAPSHOT_KEY}" key from Redis to force data refresh',
            "clear_errors": f'Delete "{ERROR_LOG_KEY}" key from Redis to clear error history',
        },
    }
    return JSONResponse(result, headers={"Cache-Control": "no-cache"})
