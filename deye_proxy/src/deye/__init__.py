"""
DeyeCloud upstream package.

Exports the API client and the cached access token provider.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from deye_proxy.src.deye.client import DeyeClient
from deye_proxy.src.deye.token import TokenProvider, hash_password

__all__ = ["DeyeClient", "TokenProvider", "hash_password"]
