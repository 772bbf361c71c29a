"""JSON packet schema for hub events relayed by an external bridge.

One JSON object per packet/line:

  {"kind": "connect",     "device": "a1b2c3d4e5f6"}
  {"kind": "disconnect",  "device": "a1b2c3d4e5f6"}
  {"kind": "tracking",    "device": "...", "position": [x, y, z],
                          "rotation": [[m11, m12, m13], [m21, ...], [m31, ...]],
                          "aimpoint": [x, y], "timestamp": 123456}
  {"kind": "impact",      "device": "...", "timestamp": 123456}
  {"kind": "zero_result", "device": "...", "success": true}
  {"kind": "shot_delay",  "device": "...", "delay_ms": 40}
  {"kind": "screen",      "tl": [x, y], "tr": [x, y], "bl": [x, y], "br": [x, y]}

A tracking packet may carry "quaternion_wxyz" instead of "rotation".
Anything malformed parses to None.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import numpy as np

from ..control.events import (
    DeviceConnected,
    DeviceDisconnected,
    HubEvent,
    Impact,
    ScreenCalibration,
    ShotDelayChanged,
    Tracking,
    ZeroResult,
)
from ..control.pose import HubPose
from ..math3d.quaternion import q_to_rotmat


def _parse_device(raw: Any) -> Optional[bytes]:
    if not isinstance(raw, str) or not raw:
        return None
    try:
        return bytes.fromhex(raw)
    except ValueError:
        return None


def _parse_vector(raw: Any, size: int) -> Optional[np.ndarray]:
    if raw is None:
        return None
    try:
        v = np.asarray(raw, dtype=np.float64).reshape(-1)
    except (TypeError, ValueError):
        return None
    if v.size != size or not np.isfinite(v).all():
        return None
    return v


def _parse_int(raw: Any, default: Optional[int] = None) -> Optional[int]:
    if raw is None:
        return default
    if isinstance(raw, bool):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError, OverflowError):
        return None


def _parse_tracking(device: bytes, payload: dict) -> Optional[Tracking]:
    position = _parse_vector(payload.get("position"), 3)
    aim = _parse_vector(payload.get("aimpoint"), 2)
    timestamp = _parse_int(payload.get("timestamp"), default=0)
    if position is None or aim is None or timestamp is None:
        return None

    rotation = _parse_vector(payload.get("rotation"), 9)
    if rotation is not None:
        rot = rotation.reshape(3, 3)
    else:
        q = _parse_vector(payload.get("quaternion_wxyz"), 4)
        if q is None:
            return None
        rot = q_to_rotmat(q)

    return Tracking(
        device=device,
        pose=HubPose(position=position, rotation=rot),
        aimpoint=(float(aim[0]), float(aim[1])),
        timestamp=timestamp,
    )


def _parse_screen(payload: dict) -> Optional[ScreenCalibration]:
    corners = [_parse_vector(payload.get(k), 2) for k in ("tl", "tr", "bl", "br")]
    if any(c is None for c in corners):
        return None
    tl, tr, bl, br = ((float(c[0]), float(c[1])) for c in corners)
    return ScreenCalibration(tl=tl, tr=tr, bl=bl, br=br)


def parse_event_payload(payload: Any) -> Optional[HubEvent]:
    if not isinstance(payload, dict):
        return None
    kind = payload.get("kind")
    if kind == "screen":
        return _parse_screen(payload)

    device = _parse_device(payload.get("device"))
    if device is None:
        return None

    if kind == "connect":
        return DeviceConnected(device=device)
    if kind == "disconnect":
        return DeviceDisconnected(device=device)
    if kind == "tracking":
        return _parse_tracking(device, payload)
    if kind == "impact":
        timestamp = _parse_int(payload.get("timestamp"), default=0)
        if timestamp is None:
            return None
        return Impact(device=device, timestamp=timestamp)
    if kind == "zero_result":
        success = payload.get("success")
        if not isinstance(success, bool):
            return None
        return ZeroResult(device=device, success=success)
    if kind == "shot_delay":
        delay_ms = _parse_int(payload.get("delay_ms"))
        if delay_ms is None or delay_ms < 0:
            return None
        return ShotDelayChanged(device=device, delay_ms=delay_ms)
    return None


def parse_event_packet(data: bytes | str) -> Optional[HubEvent]:
    try:
        text = data.decode("utf-8") if isinstance(data, bytes) else data
        payload = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    return parse_event_payload(payload)
