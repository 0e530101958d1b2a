"""
Pure normalizer that converts a raw DeyeCloud device record into a DeviceReading.

A raw record carries a ``dataList`` of ``{key, name, value, unit}`` entries
whose key and display names differ between inverter firmware generations.
Each logical metric is therefore looked up through an ordered alias list in
FIELD_ALIASES: the first alias present (as key or name) with a non-null value
wins. Supporting a new alias is a change to the table, not to the logic.

Values arrive as numeric strings, numbers or null and are parsed leniently;
anything that does not start with a number counts as 0.

This is a pure function: no side effects, no I/O, no clock. The serial
number and timestamp are passed in by the caller.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from typing import Any

from deye_proxy.src.models import DeviceReading

# ---------------------------------------------------------------------------
# Alias table and thresholds
# ---------------------------------------------------------------------------

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "bms_soc": ("BMSSOC", "BMS_SOC"),
    "soc": ("SOC", "Battery_SOC"),
    "grid_freq": ("GridFrequency", "Grid_Frequency"),
    "grid_voltage_l1": ("GridVoltageL1", "GridVoltage", "Grid_Voltage_L1"),
    "grid_voltage_l2": ("GridVoltageL2", "Grid_Voltage_L2"),
    "grid_voltage_l3": ("GridVoltageL3", "Grid_Voltage_L3"),
}
"""Maps logical metric -> dataList key/name aliases, in order of preference."""

_VOLTAGE_FIELDS = ("grid_voltage_l1", "grid_voltage_l2", "grid_voltage_l3")

GRID_FREQ_THRESHOLD_HZ = 45.0
GRID_VOLTAGE_THRESHOLD_V = 100.0
NOMINAL_GRID_FREQ_HZ = 50.0

_NUMBER_RE = re.compile(r"\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def parse_number(value: Any) -> float:
    """Parse a metric value leniently; unparseable or non-finite is 0.0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, int | float):
        number = float(value)
    else:
        match = _NUMBER_RE.match(str(value))
        if match is None:
            return 0.0
        number = float(match.group(1))
    return number if math.isfinite(number) else 0.0


def lookup(data_list: Sequence[dict], aliases: Sequence[str]) -> Any | None:
    """Return the value of the first alias present with a non-null value.

    An entry matches an alias on either its ``key`` or its ``name``.
    """
    for alias in aliases:
        for item in data_list:
            if not isinstance(item, dict):
                continue
            if item.get("key") == alias or item.get("name") == alias:
                if item.get("value") is not None:
                    return item["value"]
                break
    return None


def _metric(data_list: Sequence[dict], field: str) -> float:
    return parse_number(lookup(data_list, FIELD_ALIASES[field]))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_reading(
    sn: str,
    record: dict | None,
    *,
    ts: str,
) -> DeviceReading | None:
    """Convert a raw DeyeCloud device record into a DeviceReading.

    The BMS-reported state of charge is preferred; a BMS value of exactly 0
    is treated as missing and the generic SOC metric is used instead. The
    grid counts as online when the frequency exceeds 45 Hz or any phase
    voltage exceeds 100 V, since either sensor may be absent on a model.

    Args:
        sn: Inverter serial number.
        record: Raw record from ``/v1.0/device/latest``, or ``None``.
        ts: ISO 8601 timestamp to embed in the reading.

    Returns:
        A :class:`DeviceReading`, or ``None`` if the record is missing or
        has no ``dataList``.
    """
    if not record:
        return None
    data_list = record.get("dataList")
    if not data_list or not isinstance(data_list, list):
        return None

    soc = _metric(data_list, "bms_soc")
    if soc == 0:
        soc = _metric(data_list, "soc")

    freq = _metric(data_list, "grid_freq")
    max_voltage = max(_metric(data_list, field) for field in _VOLTAGE_FIELDS)
    grid_running = freq > GRID_FREQ_THRESHOLD_HZ or max_voltage > GRID_VOLTAGE_THRESHOLD_V

    if freq > 0:
        grid_freq = freq
    elif grid_running:
        grid_freq = NOMINAL_GRID_FREQ_HZ
    else:
        grid_freq = 0.0

    return DeviceReading(
        sn=sn,
        soc=round_half_up(soc),
        grid_running=grid_running,
        grid_freq=grid_freq,
        timestamp=ts,
    )
