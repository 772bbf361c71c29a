import numpy as np

from rangetrack.control.display_provider import (
    DisplayFrame,
    NullDisplayProvider,
    PlayerStatus,
    TuiDisplayProvider,
    status_lines,
)


def _frame(**kw) -> DisplayFrame:
    params = dict(
        hub_connected=True,
        is_tracking=True,
        translation=np.array([0.1, 0.2, 1.5]),
        zero_translation=np.array([0.0, 0.55, 1.0]),
        screen_calibrated=False,
        screen_normal=np.array([0.0, 0.0, -1.0]),
        players=[
            PlayerStatus(index=0, device="aabbccddeeff", aimpoint=(-1.0, -1.0), shot_delay_ms=0, is_helmet=True),
            PlayerStatus(index=1, device="010203040506", aimpoint=(0.25, 0.5), shot_delay_ms=40, is_helmet=False),
        ],
        target_z=None,
        true_size_yards=None,
    )
    params.update(kw)
    return DisplayFrame(**params)


def test_status_lines_list_devices():
    lines = status_lines(_frame())
    text = "\n".join(lines)
    assert lines[0] == "=== TRACKING STATUS ==="
    assert "devices         = 2" in text
    assert "[0] aabbccddeeff helmet" in text
    assert "[1] 010203040506 aim=(0.250, 0.500) delay=40ms" in text
    assert "screen          = default" in text
    assert "target z" not in text
    assert "true-size" not in text


def test_status_lines_optional_sections():
    text = "\n".join(status_lines(_frame(target_z=6.25, true_size_yards=7.0, screen_calibrated=True)))
    assert "target z        = 6.250" in text
    assert "true-size       = 7.0 yd" in text
    assert "screen          = calibrated" in text


def test_tui_scroll_mode_logs_one_line(caplog):
    provider = TuiDisplayProvider(cli_output="scroll")
    with caplog.at_level("INFO"):
        provider.update(_frame())
    assert "[STATUS] hub=True tracking=True translation=(0.100, 0.200, 1.500) devices=2" in caplog.text
    provider.close()


def test_null_provider_accepts_frames():
    NullDisplayProvider().update(_frame())
