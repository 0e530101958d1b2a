"""
GET/OPTIONS /api/battery endpoint serving per-channel battery snapshots.

Delegates to BatteryService and shapes the HTTP response. A stale snapshot
served after a failed refetch is still a 200; only a failure with nothing
cached yields 500 ``{"error": ...}``. No authentication: the dashboard is
public.

CHANGELOG:
- 2026-10-17: OPTIONS answers browser preflights directly (no CORS middleware)
- 2026-10-17: Initial creation

TODO:
- None
"""

import logging

from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse

from deye_proxy.src.api.deps import BatteryServiceDep
from deye_proxy.src.errors import BatteryUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["battery"])

RESPONSE_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Cache-Control": "public, max-age=60",
}

PREFLIGHT_HEADERS = {
    **RESPONSE_HEADERS,
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@router.get("/battery")
async def battery(service: BatteryServiceDep) -> JSONResponse:
    """Return the battery snapshot of every configured channel.

    Returns:
        JSONResponse: 200 with ``{"data", "cached"}`` (plus ``"stale"`` and
        ``"error"`` on fallback), or 500 with ``{"error"}``.
    """
    try:
        payload = await service.get_status()
    except BatteryUnavailableError as exc:
        logger.error("Battery data unavailable: %s", exc)
        return JSONResponse(
            {"error": str(exc)},
            status_code=500,
            headers=RESPONSE_HEADERS,
        )
    return JSONResponse(payload, headers=RESPONSE_HEADERS)


@router.options("/battery")
async def battery_preflight() -> Response:
    """Answer a CORS preflight with the allowed methods and headers, no body."""
    return Response(status_code=200, headers=PREFLIGHT_HEADERS)
