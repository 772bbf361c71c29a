import pytest

from rangetrack.control.events import DeviceConnected, Impact, Tracking
from rangetrack.hub_providers.replay import ReplayEventSource, load_replay

CAPTURE = """\
# session capture
{"kind": "connect", "device": "010203040506"}

{"kind": "tracking", "device": "010203040506", "position": [0, 0, 1], "quaternion_wxyz": [1, 0, 0, 0], "aimpoint": [0.4, 0.6], "timestamp": 1000}
this line is garbage
{"kind": "impact", "device": "010203040506", "timestamp": 1000}
"""


def _write_capture(tmp_path):
    path = tmp_path / "capture.jsonl"
    path.write_text(CAPTURE, encoding="utf-8")
    return path


def test_load_replay_skips_comments_blanks_and_bad_lines(tmp_path, caplog):
    with caplog.at_level("WARNING"):
        events = load_replay(str(_write_capture(tmp_path)))
    assert [type(e) for e in events] == [DeviceConnected, Tracking, Impact]
    assert "capture.jsonl:5" in caplog.text


def test_load_replay_missing_file(tmp_path):
    with pytest.raises(ValueError):
        load_replay(str(tmp_path / "nope.jsonl"))


def test_replay_delivers_one_event_per_tick(tmp_path):
    source = ReplayEventSource(str(_write_capture(tmp_path)), tick_hz=50.0)
    assert source.is_connected()
    seen = []
    ticks = []
    source.run(seen.append, ticks.append)
    assert [type(e) for e in seen] == [DeviceConnected, Tracking, Impact]
    assert ticks == [pytest.approx(0.02)] * 3
    assert source.remaining == 0
    assert source.poll() == []


def test_replay_stops_after_close(tmp_path):
    source = ReplayEventSource(str(_write_capture(tmp_path)))
    seen = []

    def on_event(event):
        seen.append(event)
        source.close()

    source.run(on_event, lambda dt: None)
    assert len(seen) == 1
    assert source.remaining == 2


def test_load_replay_skips_non_finite_timestamps(tmp_path):
    path = tmp_path / "capture.jsonl"
    path.write_text(
        '{"kind": "impact", "device": "010203040506", "timestamp": Infinity}\n'
        '{"kind": "impact", "device": "010203040506", "timestamp": 5}\n',
        encoding="utf-8",
    )
    assert load_replay(str(path)) == [Impact(bytes.fromhex("010203040506"), 5)]
