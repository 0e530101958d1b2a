"""
Tests for the static channel table.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

import pytest

from deye_proxy.src.channels import CHANNELS, Channel, all_device_sns, validate_channels


class TestDefaultChannels:
    def test_default_table_is_valid(self) -> None:
        assert validate_channels(CHANNELS) == CHANNELS

    def test_ids_are_stable(self) -> None:
        assert [c.id for c in CHANNELS] == [1, 2, 3, 4, 5]

    def test_all_device_sns_preserves_order(self) -> None:
        assert all_device_sns(CHANNELS) == [
            "2509174814",
            "2509174360",
            "2407102635",
            "2510143840",
            "2510293833",
        ]


class TestValidateChannels:
    def test_duplicate_id_rejected(self) -> None:
        channels = [
            Channel(id=1, name="A", devices=("sn-1",)),
            Channel(id=1, name="B", devices=("sn-2",)),
        ]
        with pytest.raises(ValueError, match="Duplicate channel id"):
            validate_channels(channels)

    def test_device_in_two_channels_rejected(self) -> None:
        channels = [
            Channel(id=1, name="A", devices=("sn-1",)),
            Channel(id=2, name="B", devices=("sn-2", "sn-1")),
        ]
        with pytest.raises(ValueError, match="sn-1"):
            validate_channels(channels)

    def test_channel_without_devices_rejected(self) -> None:
        with pytest.raises(ValueError, match="no devices"):
            validate_channels([Channel(id=7, name="Empty", devices=())])

    def test_multi_device_channel_flattens(self) -> None:
        channels = [
            Channel(id=1, name="Heating", devices=("sn-1", "sn-2")),
            Channel(id=2, name="Water", devices=("sn-3",)),
        ]
        assert all_device_sns(channels) == ["sn-1", "sn-2", "sn-3"]
