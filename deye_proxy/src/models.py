"""
Pydantic models for device readings, channel snapshots and cached values.

DeviceReading is the normalized form of one inverter's raw DeyeCloud
record. ChannelSnapshot is the public per-channel result served to the
dashboard. CachedToken, SnapshotSet and ErrorLogEntry describe the JSON
documents kept in the key-value store; their serialized field names match
the stored layout (``createdAt``, ``batteries``, ``timestamp``).

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class DeviceReading(BaseModel):
    """Battery and grid state of a single inverter.

    Attributes:
        sn: Inverter serial number.
        soc: Battery state of charge, integer percent.
        grid_running: Whether utility grid power is present.
        grid_freq: Grid frequency in Hz. Nominal 50.0 when the grid is
            detected by voltage only, 0 when the grid is off.
        timestamp: ISO 8601 capture time (injected by the caller).
    """

    sn: str
    soc: int
    grid_running: bool
    grid_freq: float
    timestamp: str


class ChannelSnapshot(BaseModel):
    """Aggregated state of one channel as served by ``/api/battery``.

    Attributes:
        id: Channel id.
        name: Channel display name.
        level: Mean state of charge across the channel's inverters.
        grid_freq: Grid frequency in Hz, 0 when no inverter sees the grid.
        timestamp: ISO 8601 time the snapshot was computed.
    """

    id: int
    name: str
    level: int
    grid_freq: float
    timestamp: str


class CachedToken(BaseModel):
    """DeyeCloud access token as stored under ``deye_token``."""

    model_config = ConfigDict(populate_by_name=True)

    token: str
    created_at: int = Field(alias="createdAt")


class SnapshotSet(BaseModel):
    """Last computed snapshots as stored under the snapshot key.

    ``timestamp`` is epoch milliseconds and drives the freshness check.
    """

    batteries: list[ChannelSnapshot]
    timestamp: int


class ErrorLogEntry(BaseModel):
    """One entry of the diagnostic error ring."""

    time: str
    context: str
    message: str
