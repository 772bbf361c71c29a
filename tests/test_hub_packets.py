import json

import numpy as np

from rangetrack.control.events import (
    DeviceConnected,
    DeviceDisconnected,
    Impact,
    ScreenCalibration,
    ShotDelayChanged,
    Tracking,
    ZeroResult,
)
from rangetrack.hub_providers.packets import parse_event_packet, parse_event_payload

DEVICE = "a1b2c3d4e5f6"


def test_parse_tracking_with_rotation_rows():
    event = parse_event_payload(
        {
            "kind": "tracking",
            "device": DEVICE,
            "position": [0.1, -0.2, 1.5],
            "rotation": [[1.0, 0.0, 0.0], [0.0, 0.0, -1.0], [0.0, 1.0, 0.0]],
            "aimpoint": [0.25, 0.75],
            "timestamp": 123456,
        }
    )
    assert isinstance(event, Tracking)
    assert event.device == bytes.fromhex(DEVICE)
    np.testing.assert_allclose(event.pose.position, [0.1, -0.2, 1.5])
    np.testing.assert_allclose(event.pose.rotation[1], [0.0, 0.0, -1.0])
    assert event.aimpoint == (0.25, 0.75)
    assert event.timestamp == 123456


def test_parse_tracking_with_quaternion():
    event = parse_event_payload(
        {
            "kind": "tracking",
            "device": DEVICE,
            "position": [0.0, 0.0, 1.0],
            "quaternion_wxyz": [1.0, 0.0, 0.0, 0.0],
            "aimpoint": [0.5, 0.5],
        }
    )
    assert isinstance(event, Tracking)
    np.testing.assert_allclose(event.pose.rotation, np.eye(3))
    assert event.timestamp == 0


def test_parse_tracking_rejects_bad_vectors():
    base = {"kind": "tracking", "device": DEVICE, "aimpoint": [0.5, 0.5]}
    assert parse_event_payload({**base, "position": [0.0, 1.0], "quaternion_wxyz": [1, 0, 0, 0]}) is None
    assert parse_event_payload({**base, "position": [0.0, 1.0, 2.0], "quaternion_wxyz": [1, 0, 0]}) is None
    assert parse_event_payload({**base, "position": [0.0, 1.0, 2.0]}) is None
    assert (
        parse_event_payload(
            {**base, "position": [0.0, float("nan"), 2.0], "quaternion_wxyz": [1, 0, 0, 0]}
        )
        is None
    )


def test_parse_simple_device_events():
    dev = bytes.fromhex(DEVICE)
    assert parse_event_payload({"kind": "connect", "device": DEVICE}) == DeviceConnected(dev)
    assert parse_event_payload({"kind": "disconnect", "device": DEVICE}) == DeviceDisconnected(dev)
    assert parse_event_payload({"kind": "impact", "device": DEVICE, "timestamp": 99}) == Impact(dev, 99)
    assert parse_event_payload({"kind": "zero_result", "device": DEVICE, "success": False}) == ZeroResult(
        dev, False
    )
    assert parse_event_payload({"kind": "shot_delay", "device": DEVICE, "delay_ms": 40}) == ShotDelayChanged(
        dev, 40
    )


def test_parse_screen_calibration():
    event = parse_event_payload(
        {"kind": "screen", "tl": [-0.8, 0.1], "tr": [0.8, 0.1], "bl": [-0.8, 1.0], "br": [0.8, 1.0]}
    )
    assert event == ScreenCalibration(tl=(-0.8, 0.1), tr=(0.8, 0.1), bl=(-0.8, 1.0), br=(0.8, 1.0))
    assert parse_event_payload({"kind": "screen", "tl": [0, 0], "tr": [1, 0], "bl": [0, 1]}) is None


def test_parse_rejects_malformed_fields():
    assert parse_event_payload({"kind": "connect"}) is None
    assert parse_event_payload({"kind": "connect", "device": "not-hex"}) is None
    assert parse_event_payload({"kind": "unknown", "device": DEVICE}) is None
    assert parse_event_payload({"kind": "zero_result", "device": DEVICE, "success": "yes"}) is None
    assert parse_event_payload({"kind": "shot_delay", "device": DEVICE, "delay_ms": -5}) is None
    assert parse_event_payload({"kind": "shot_delay", "device": DEVICE, "delay_ms": True}) is None
    assert parse_event_payload([1, 2, 3]) is None


def test_parse_packet_bytes_and_invalid_json():
    packet = json.dumps({"kind": "connect", "device": DEVICE}).encode("utf-8")
    assert isinstance(parse_event_packet(packet), DeviceConnected)
    assert parse_event_packet(b"{not-json") is None
    assert parse_event_packet(b"\xff\xfe") is None


def test_non_finite_integers_are_rejected():
    dev = f'"device": "{DEVICE}"'
    assert parse_event_packet('{"kind": "impact", %s, "timestamp": Infinity}' % dev) is None
    assert parse_event_packet('{"kind": "impact", %s, "timestamp": 1e999}' % dev) is None
    assert parse_event_packet('{"kind": "impact", %s, "timestamp": NaN}' % dev) is None
    assert parse_event_packet('{"kind": "shot_delay", %s, "delay_ms": -Infinity}' % dev) is None
    assert (
        parse_event_packet(
            '{"kind": "tracking", %s, "position": [0, 0, 1], "quaternion_wxyz": [1, 0, 0, 0],'
            ' "aimpoint": [0.5, 0.5], "timestamp": Infinity}' % dev
        )
        is None
    )
