"""
Deye battery status proxy.

Authenticates against the DeyeCloud developer API, fetches battery and grid
telemetry for the configured inverters, aggregates it per channel and serves
the result to the dashboard through a Redis-backed cache.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""
