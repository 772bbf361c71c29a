import json
import socket
import time

from rangetrack.control.events import DeviceConnected, Impact
from rangetrack.hub_providers.udp_bridge import UdpHubEventSource


def _poll_until(source, count, timeout=1.0):
    events = []
    deadline = time.monotonic() + timeout
    while len(events) < count and time.monotonic() < deadline:
        events.extend(source.poll())
        time.sleep(0.005)
    return events


def test_udp_source_receives_and_drops_malformed():
    source = UdpHubEventSource(host="127.0.0.1", port=0, poll_ms=1)
    port = source._receiver.sock.getsockname()[1]
    sender = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        assert not source.is_connected()
        sender.sendto(json.dumps({"kind": "connect", "device": "010203040506"}).encode(), ("127.0.0.1", port))
        sender.sendto(b"{broken", ("127.0.0.1", port))
        sender.sendto(json.dumps({"kind": "impact", "device": "010203040506", "timestamp": 7}).encode(), ("127.0.0.1", port))

        events = _poll_until(source, 2)
        assert [type(e) for e in events] == [DeviceConnected, Impact]
        assert source.is_connected()
        assert source._receiver.dropped == 1
    finally:
        sender.close()
        source.close()


def test_udp_run_ticks_until_closed():
    source = UdpHubEventSource(host="127.0.0.1", port=0, poll_ms=1)
    ticks = []

    def on_tick(dt):
        ticks.append(dt)
        if len(ticks) >= 3:
            source.close()

    source.run(lambda e: None, on_tick)
    assert len(ticks) == 3
    assert all(dt >= 0.0 for dt in ticks)


def test_udp_source_survives_non_finite_timestamp():
    source = UdpHubEventSource(host="127.0.0.1", port=0, poll_ms=1)
    port = source._receiver.sock.getsockname()[1]
    sender = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sender.sendto(b'{"kind": "impact", "device": "010203040506", "timestamp": Infinity}', ("127.0.0.1", port))
        sender.sendto(json.dumps({"kind": "connect", "device": "010203040506"}).encode(), ("127.0.0.1", port))

        events = _poll_until(source, 1)
        assert [type(e) for e in events] == [DeviceConnected]
        assert source._receiver.dropped == 1
    finally:
        sender.close()
        source.close()


def test_socket_errors_are_logged(caplog):
    source = UdpHubEventSource(host="127.0.0.1", port=0, poll_ms=1)
    source._receiver.sock.close()
    with caplog.at_level("DEBUG", logger="rangetrack.hub_providers.udp_bridge"):
        assert source._receiver.recv_all() == []
    assert "[HUB] socket receive failed" in caplog.text
    source.close()
