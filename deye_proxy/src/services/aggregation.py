"""
Aggregation of device readings into per-channel snapshots.

A channel may be fed by several inverters (e.g. heating split across two
units). The channel level is the mean state of charge of its inverters and
the grid is considered present if any inverter sees it, so a single failed
sensor does not mask a powered channel.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from collections.abc import Iterable, Mapping, Sequence

from deye_proxy.src.channels import Channel
from deye_proxy.src.models import ChannelSnapshot, DeviceReading
from deye_proxy.src.normalizer import (
    GRID_FREQ_THRESHOLD_HZ,
    NOMINAL_GRID_FREQ_HZ,
    round_half_up,
)


def aggregate_channel(
    channel: Channel,
    readings: Sequence[DeviceReading],
    *,
    ts: str,
) -> ChannelSnapshot:
    """Combine the readings of one channel's inverters into a snapshot.

    No readings yields the explicit no-data state (level 0, grid_freq 0).

    Args:
        channel: The channel being aggregated.
        readings: Readings of the channel's inverters that were resolved.
        ts: ISO 8601 timestamp to embed in the snapshot.

    Returns:
        ChannelSnapshot: Aggregated channel state.
    """
    if not readings:
        return ChannelSnapshot(
            id=channel.id, name=channel.name, level=0, grid_freq=0, timestamp=ts
        )

    level = round_half_up(sum(r.soc for r in readings) / len(readings))
    grid_on = any(r.grid_running for r in readings)
    max_freq = max(r.grid_freq for r in readings)

    if not grid_on:
        grid_freq = 0.0
    elif max_freq > GRID_FREQ_THRESHOLD_HZ:
        grid_freq = max_freq
    else:
        grid_freq = NOMINAL_GRID_FREQ_HZ

    return ChannelSnapshot(
        id=channel.id,
        name=channel.name,
        level=level,
        grid_freq=grid_freq,
        timestamp=ts,
    )


def build_snapshots(
    channels: Iterable[Channel],
    readings_by_sn: Mapping[str, DeviceReading],
    *,
    ts: str,
) -> list[ChannelSnapshot]:
    """Aggregate every configured channel, in configuration order.

    Channels whose inverters are all missing from *readings_by_sn* still
    appear, in the no-data state.
    """
    snapshots = []
    for channel in channels:
        readings = [readings_by_sn[sn] for sn in channel.devices if sn in readings_by_sn]
        snapshots.append(aggregate_channel(channel, readings, ts=ts))
    return snapshots
