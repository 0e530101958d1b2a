"""
FastAPI application entry point for the Deye battery status proxy.

The lifespan loads ProxySettings, configures structured JSON logging,
creates the Redis-backed store and wires the DeyeCloud client, token
provider, snapshot cache, error log and BatteryService onto ``app.state``
for the route handlers. When STATIC_DIR is set, the dashboard assets are
mounted at ``/`` behind the API routes.

Run with any ASGI server, e.g. ``uvicorn deye_proxy.src.api.main:app``.

CHANGELOG:
- 2026-10-17: Answer CORS preflights in the battery route; drop CORSMiddleware
- 2026-10-17: Serve /health from the app; undo the static mount on shutdown
- 2026-10-17: Mount STATIC_DIR for the dashboard
- 2026-10-17: Register debug router
- 2026-10-17: Initial creation

TODO:
- None
"""

import json
import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.routing import Mount

from deye_proxy.src.api.battery import router as battery_router
from deye_proxy.src.api.debug import router as debug_router
from deye_proxy.src.cache.error_log import ErrorLog
from deye_proxy.src.cache.redis_client import KVStore, create_redis
from deye_proxy.src.cache.snapshot import SnapshotCache
from deye_proxy.src.channels import CHANNELS, validate_channels
from deye_proxy.src.config import ProxySettings
from deye_proxy.src.deye.client import DeyeClient
from deye_proxy.src.deye.token import TokenProvider
from deye_proxy.src.services.battery import BatteryService

logger = logging.getLogger(__name__)

STATIC_MOUNT_NAME = "static"


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


class _JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


def configure_logging(level: int = logging.INFO) -> None:
    """Install the JSON formatter on the root logger, writing to stderr."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def log_config_summary(settings: ProxySettings) -> None:
    """Log a config summary at startup, excluding secrets."""
    logger.info(
        "Config: base_url=%s credentials=%s data_cache_ttl_s=%d "
        "snapshot_retention_s=%d token_cache_ttl_s=%d channels=%d static_dir=%s",
        settings.base_url,
        "set" if settings.credentials_configured else "MISSING",
        settings.data_cache_ttl_s,
        settings.snapshot_retention_s,
        settings.token_cache_ttl_s,
        len(CHANNELS),
        settings.static_dir or "-",
    )


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


def _mount_static(app: FastAPI, directory: str) -> Mount:
    """Mount dashboard assets at ``/`` after all API routes."""
    mount = Mount("/", app=StaticFiles(directory=directory, html=True), name=STATIC_MOUNT_NAME)
    app.router.routes.append(mount)
    return mount


def _unmount_static(app: FastAPI, mount: Mount) -> None:
    if mount in app.router.routes:
        app.router.routes.remove(mount)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: build settings and services, close Redis on exit."""
    configure_logging()
    settings = ProxySettings()
    log_config_summary(settings)
    channels = validate_channels(CHANNELS)

    store = KVStore(create_redis(settings.redis_url))
    error_log = ErrorLog(store, ttl=settings.error_log_ttl_s)
    client = DeyeClient(settings.base_url)
    token_provider = TokenProvider(
        client,
        store,
        app_id=settings.deye_app_id,
        app_secret=settings.deye_app_secret,
        email=settings.deye_email,
        password=settings.deye_password,
        ttl=settings.token_cache_ttl_s,
        error_log=error_log,
    )
    snapshot_cache = SnapshotCache(
        store,
        retention_s=settings.snapshot_retention_s,
        freshness_s=settings.data_cache_ttl_s,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.error_log = error_log
    app.state.token_provider = token_provider
    app.state.snapshot_cache = snapshot_cache
    app.state.battery_service = BatteryService(
        channels,
        token_provider,
        client,
        snapshot_cache,
        error_log,
    )

    static_mount = _mount_static(app, settings.static_dir) if settings.static_dir else None

    logger.info("Deye battery proxy ready")
    try:
        yield
    finally:
        if static_mount is not None:
            _unmount_static(app, static_mount)
        await store.aclose()
    logger.info("Deye battery proxy shutting down")


app = FastAPI(
    title="Deye Battery Proxy",
    description="Battery and grid status of DeyeCloud inverters for the dashboard.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(battery_router)
app.include_router(debug_router)


@app.get("/health", tags=["health"])
async def health() -> dict[str, str]:
    """Liveness check; touches neither Redis nor DeyeCloud.

    Returns:
        dict: ``{"status": "ok"}``.
    """
    return {"status": "ok"}
