"""
Proxy configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
DeyeCloud credentials are optional at startup: their absence is reported
by the token provider as a ConfigError on the first request that needs
upstream access, so cached data can still be served.

CHANGELOG:
- 2026-10-17: Add STATIC_DIR for dashboard asset serving
- 2026-10-17: Initial creation

TODO:
- None
"""

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

DEYE_REGION_URLS: dict[str, str] = {
    "eu": "https://eu1-developer.deyecloud.com",
    "us": "https://us1-developer.deyecloud.com",
}
"""Maps DEYE_REGION to the DeyeCloud developer API base URL."""


class ProxySettings(BaseSettings):
    """Proxy configuration for the DeyeCloud battery status service.

    Attributes:
        redis_url: Redis connection URL for the token and snapshot cache.
        deye_app_id: DeyeCloud developer application id.
        deye_app_secret: DeyeCloud developer application secret.
        deye_email: DeyeCloud account email (also tried as username).
        deye_password: DeyeCloud account password (sent hashed).
        deye_region: Data centre the account lives in (``eu`` or ``us``).
        deye_base_url: Explicit API base URL. Overrides deye_region.
        data_cache_ttl_s: Freshness window of the snapshot cache.
        snapshot_retention_s: Storage TTL of the snapshot, kept well past
            the freshness window so stale data survives for fallback.
        token_cache_ttl_s: Storage TTL of the upstream access token.
        error_log_ttl_s: Storage TTL of the diagnostic error log.
        static_dir: Directory with dashboard assets mounted at ``/``.
            Empty disables static serving.
    """

    redis_url: str
    deye_app_id: str = ""
    deye_app_secret: str = ""
    deye_email: str = ""
    deye_password: str = ""
    deye_region: str = "eu"
    deye_base_url: str = ""
    data_cache_ttl_s: int = 300
    snapshot_retention_s: int = 86400 * 30
    token_cache_ttl_s: int = 86400 * 60
    error_log_ttl_s: int = 86400 * 7
    static_dir: str = ""

    @field_validator("deye_region")
    @classmethod
    def deye_region_must_be_known(cls, v: str) -> str:
        """Validate the region selects a known DeyeCloud data centre."""
        region = v.strip().lower()
        if region not in DEYE_REGION_URLS:
            raise ValueError(
                f"DEYE_REGION must be one of {sorted(DEYE_REGION_URLS)} (got: '{v}')"
            )
        return region

    @field_validator("deye_base_url")
    @classmethod
    def deye_base_url_must_be_https(cls, v: str) -> str:
        """Validate an explicit base URL uses HTTPS; strip trailing slash."""
        if v and not v.lower().startswith("https://"):
            raise ValueError(f"DEYE_BASE_URL must use HTTPS (got: '{v[:30]}...')")
        return v.rstrip("/")

    @field_validator(
        "data_cache_ttl_s",
        "snapshot_retention_s",
        "token_cache_ttl_s",
        "error_log_ttl_s",
    )
    @classmethod
    def ttl_must_be_positive(cls, v: int) -> int:
        """Validate cache TTLs are positive."""
        if v < 1:
            raise ValueError("Cache TTLs must be >= 1 second")
        return v

    @model_validator(mode="after")
    def _retention_outlives_freshness(self) -> "ProxySettings":
        """Snapshots must outlive the freshness window for stale fallback."""
        if self.snapshot_retention_s <= self.data_cache_ttl_s:
            raise ValueError(
                "SNAPSHOT_RETENTION_S must be greater than DATA_CACHE_TTL_S"
            )
        return self

    @property
    def base_url(self) -> str:
        """Resolved DeyeCloud API base URL."""
        return self.deye_base_url or DEYE_REGION_URLS[self.deye_region]

    @property
    def credentials_configured(self) -> bool:
        """True when all four DeyeCloud credentials are set."""
        return all(
            (self.deye_app_id, self.deye_app_secret, self.deye_email, self.deye_password)
        )

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
