"""
FastAPI dependency injection providers.

The service objects are built once in the application lifespan and stored
on ``app.state``; these providers hand them to route handlers through
FastAPI's Depends() mechanism so tests can override them.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from typing import Annotated

from fastapi import Depends, Request

from deye_proxy.src.cache.error_log import ErrorLog
from deye_proxy.src.cache.redis_client import KVStore
from deye_proxy.src.cache.snapshot import SnapshotCache
from deye_proxy.src.config import ProxySettings
from deye_proxy.src.deye.token import TokenProvider
from deye_proxy.src.services.battery import BatteryService


def get_settings(request: Request) -> ProxySettings:
    return request.app.state.settings


def get_store(request: Request) -> KVStore:
    return request.app.state.store


def get_battery_service(request: Request) -> BatteryService:
    return request.app.state.battery_service


def get_token_provider(request: Request) -> TokenProvider:
    return request.app.state.token_provider


def get_snapshot_cache(request: Request) -> SnapshotCache:
    return request.app.state.snapshot_cache


def get_error_log(request: Request) -> ErrorLog:
    return request.app.state.error_log


# Type aliases for injection via FastAPI Depends().
# Usage in route handlers:
#   async def my_route(service: BatteryServiceDep):
#       payload = await service.get_status()
SettingsDep = Annotated[ProxySettings, Depends(get_settings)]
StoreDep = Annotated[KVStore, Depends(get_store)]
BatteryServiceDep = Annotated[BatteryService, Depends(get_battery_service)]
TokenProviderDep = Annotated[TokenProvider, Depends(get_token_provider)]
SnapshotCacheDep = Annotated[SnapshotCache, Depends(get_snapshot_cache)]
ErrorLogDep = Annotated[ErrorLog, Depends(get_error_log)]
