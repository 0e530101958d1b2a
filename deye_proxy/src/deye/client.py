"""
HTTPS client for the DeyeCloud developer API.

Wraps the two upstream operations the proxy uses:

- request_token(app_id, payload): POST /v1.0/account/token
- fetch_latest(token, sns): POST /v1.0/device/latest for a batch of inverters

Both open a short-lived httpx.AsyncClient per call with TLS verification and
httpx's default timeouts. Transport failures and non-JSON bodies are raised
as the caller-appropriate ProxyError subclass.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from deye_proxy.src.errors import AuthError, ProxyError, UpstreamError

logger = logging.getLogger(__name__)

TOKEN_PATH = "/v1.0/account/token"
LATEST_PATH = "/v1.0/device/latest"


class DeyeClient:
    """Thin async client for the DeyeCloud developer API.

    Args:
        base_url: API base URL, e.g. ``https://eu1-developer.deyecloud.com``.
            Must use HTTPS.

    Raises:
        ValueError: If *base_url* does not start with ``https://``.
    """

    def __init__(self, base_url: str) -> None:
        if not base_url.lower().startswith("https://"):
            raise ValueError(f"DeyeCloud base URL must use HTTPS (got: '{base_url}')")
        self._base_url = base_url.rstrip("/")

    @property
    def base_url(self) -> str:
        return self._base_url

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def request_token(self, app_id: str, payload: dict[str, str]) -> dict:
        """Call the account token endpoint with one credential shape.

        Args:
            app_id: DeyeCloud application id (sent as a query parameter).
            payload: JSON body (``appSecret``, identifier field, ``password``).

        Returns:
            dict: The decoded response body, whatever its success flag.

        Raises:
            AuthError: On a transport failure or a non-JSON body.
        """
        return await self._post_json(
            TOKEN_PATH,
            body=payload,
            params={"appId": app_id},
            headers={},
            error_cls=AuthError,
        )

    async def fetch_latest(
        self,
        token: str,
        sns: Sequence[str],
    ) -> dict[str, dict]:
        """Fetch the latest telemetry for a batch of inverters in one call.

        A body that reports failure but still carries ``deviceDataList`` is
        used as is: the upstream success flag is unreliable.

        Args:
            token: DeyeCloud bearer token.
            sns: Inverter serial numbers to fetch.

        Returns:
            dict[str, dict]: Raw record per serial number. Serials the
            upstream did not return are absent.

        Raises:
            UpstreamError: On a transport failure, a non-JSON body, or a
                failure response without a data list.
        """
        result = await self._post_json(
            LATEST_PATH,
            body={"deviceList": list(sns)},
            params=None,
            headers={"Authorization": f"Bearer {token}"},
            error_cls=UpstreamError,
        )

        data_list = result.get("deviceDataList")
        if not data_list and not result.get("success"):
            raise UpstreamError(f"API Error: {result.get('msg')}")

        records: dict[str, dict] = {}
        for item in data_list or []:
            if isinstance(item, dict) and item.get("deviceSn"):
                records[str(item["deviceSn"])] = item
        logger.info(
            "Fetched latest telemetry for %d of %d devices",
            len(records),
            len(sns),
        )
        return records

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _post_json(
        self,
        path: str,
        *,
        body: dict[str, Any],
        params: dict[str, str] | None,
        headers: dict[str, str],
        error_cls: type[ProxyError],
    ) -> dict:
        url = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(verify=True) as client:
                response = await client.post(
                    url,
                    json=body,
                    params=params,
                    headers={"Content-Type": "application/json", **headers},
                )
        except httpx.HTTPError as exc:
            logger.warning("DeyeCloud request to %s failed: %s", path, exc)
            raise error_cls(f"{path} request failed: {exc}") from exc

        try:
            result = response.json()
        except ValueError as exc:
            raise error_cls(
                f"{path} returned non-JSON body (HTTP {response.status_code}): "
                f"{response.text[:150]}"
            ) from exc

        if not isinstance(result, dict):
            raise error_cls(f"{path} returned unexpected body: {str(result)[:150]}")
        return result
