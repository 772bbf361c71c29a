"""Hub events as a closed set of record types.

``HubEvent`` is the union of every kind the hub can emit. Consumers dispatch
with an isinstance chain over all kinds and raise ``TypeError`` on anything
else, so adding a kind here means updating every dispatcher.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .pose import HubPose

# Hub device identity (6-byte UUID on current hardware).
DeviceId = bytes


@dataclass(frozen=True, slots=True)
class DeviceConnected:
    device: DeviceId


@dataclass(frozen=True, slots=True)
class DeviceDisconnected:
    device: DeviceId


@dataclass(frozen=True, slots=True)
class Tracking:
    device: DeviceId
    pose: HubPose
    aimpoint: tuple[float, float]
    # Hub clock, microseconds.
    timestamp: int


@dataclass(frozen=True, slots=True)
class Impact:
    device: DeviceId
    timestamp: int


@dataclass(frozen=True, slots=True)
class ZeroResult:
    device: DeviceId
    success: bool


@dataclass(frozen=True, slots=True)
class ShotDelayChanged:
    device: DeviceId
    delay_ms: int


@dataclass(frozen=True, slots=True)
class ScreenCalibration:
    """Screen corners in the hub's 2D convention (y down)."""

    tl: tuple[float, float]
    tr: tuple[float, float]
    bl: tuple[float, float]
    br: tuple[float, float]


HubEvent = Union[
    DeviceConnected,
    DeviceDisconnected,
    Tracking,
    Impact,
    ZeroResult,
    ShotDelayChanged,
    ScreenCalibration,
]


def device_label(device: DeviceId) -> str:
    return device.hex()
