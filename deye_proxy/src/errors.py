"""
Exception hierarchy for the proxy.

Auth and upstream errors abort a fresh fetch and trigger the stale
fallback. Storage errors never leave the storage layer.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""


class ProxyError(Exception):
    """Base class for all proxy errors."""


class AuthError(ProxyError):
    """DeyeCloud rejected every credential shape, or auth could not run."""


class ConfigError(AuthError):
    """Required upstream credentials are missing. Never retried."""


class UpstreamError(ProxyError):
    """The telemetry call failed or returned an unusable body."""


class StorageError(ProxyError):
    """A key-value store read or write failed."""


class BatteryUnavailableError(ProxyError):
    """A fresh fetch failed and no cached snapshot exists to fall back to."""
