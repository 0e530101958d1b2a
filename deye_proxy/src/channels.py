"""
Static channel table: logical monitored points and their inverters.

A channel is what the dashboard shows (a lift, the water pumps, heating).
Each channel is backed by one or more inverter serial numbers; readings of
all its inverters are aggregated into one snapshot.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class Channel:
    """A logical monitored point shown on the dashboard.

    Attributes:
        id: Stable numeric id, exposed in the API response.
        name: Display name.
        devices: Inverter serial numbers feeding this channel, in order.
    """

    id: int
    name: str
    devices: tuple[str, ...]


CHANNELS: tuple[Channel, ...] = (
    Channel(id=1, name="Ліфт п1", devices=("2509174814",)),
    Channel(id=2, name="Ліфт п2", devices=("2509174360",)),
    Channel(id=3, name="Ліфт п3", devices=("2407102635",)),
    Channel(id=4, name="Вода", devices=("2510143840",)),
    Channel(id=5, name="Опалення", devices=("2510293833",)),
)


def validate_channels(channels: Iterable[Channel]) -> tuple[Channel, ...]:
    """Check channel ids are unique and every serial belongs to one channel.

    Args:
        channels: Channel definitions to validate.

    Returns:
        tuple[Channel, ...]: The channels, unchanged.

    Raises:
        ValueError: On a duplicate channel id, a duplicate serial, or a
            channel without devices.
    """
    channels = tuple(channels)
    seen_ids: set[int] = set()
    seen_devices: set[str] = set()
    for channel in channels:
        if channel.id in seen_ids:
            raise ValueError(f"Duplicate channel id {channel.id}")
        seen_ids.add(channel.id)
        if not channel.devices:
            raise ValueError(f"Channel {channel.id} has no devices")
        for sn in channel.devices:
            if sn in seen_devices:
                raise ValueError(f"Device {sn} is assigned to more than one channel")
            seen_devices.add(sn)
    return channels


def all_device_sns(channels: Iterable[Channel]) -> list[str]:
    """Flatten the channel table into the ordered list of serial numbers."""
    return [sn for channel in channels for sn in channel.devices]
