import math

import numpy as np
import pytest

from rangetrack.control.distance_response import MAX_NORMALIZED, DistanceResponseCurve, smooth_damp


def _curve(**kw) -> DistanceResponseCurve:
    params = dict(base_z=7.0, min_z=1.0, max_z=10.0, scaling_ratio=1.0, approach_speed=2.0)
    params.update(kw)
    return DistanceResponseCurve(**params)


def test_zero_depth_has_zero_offset():
    c = _curve()
    assert c.offset(0.0) == 0.0
    assert c.target_for(0.0) == 7.0


def test_offset_stays_inside_available_range():
    c = _curve()
    toward, away = c.ranges()
    assert (toward, away) == (6.0, 3.0)
    for d in np.linspace(-50.0, 50.0, 201):
        off = c.offset(float(d))
        assert abs(off) < max(toward, away)
        assert abs(off) <= MAX_NORMALIZED * (toward if d >= 0 else away) + 1e-12
        assert 1.0 <= c.target_for(float(d)) <= 10.0


def test_stepping_back_moves_target_toward_camera():
    c = _curve()
    assert c.offset(1.0) < 0.0
    assert c.offset(-1.0) > 0.0
    expected = -6.0 * (1.0 - math.exp(-2.0 * 1.0 * 2.0 / 6.0))
    assert c.offset(2.0) == pytest.approx(expected)


def test_offset_is_monotonic_in_depth_magnitude():
    c = _curve()
    depths = np.linspace(0.0, 20.0, 81)
    toward = [abs(c.offset(float(d))) for d in depths]
    away = [abs(c.offset(-float(d))) for d in depths]
    assert all(b >= a for a, b in zip(toward, toward[1:]))
    assert all(b >= a for a, b in zip(away, away[1:]))


def test_far_depth_saturates_at_cap():
    c = _curve()
    assert c.offset(1000.0) == pytest.approx(-6.0 * MAX_NORMALIZED)
    assert c.offset(-1000.0) == pytest.approx(3.0 * MAX_NORMALIZED)


def test_zero_range_side_gives_zero_offset():
    c = _curve(base_z=1.0)
    assert c.offset(3.0) == 0.0
    assert c.offset(-3.0) > 0.0
    c = _curve(base_z=10.0)
    assert c.offset(-3.0) == 0.0


def test_camera_relative_minimum_shrinks_toward_range():
    c = _curve(camera_relative_min=True, camera_margin=0.1)
    assert c.effective_min_z(3.0) == pytest.approx(3.1)
    assert c.ranges(3.0)[0] == pytest.approx(3.9)
    assert c.ranges()[0] == 6.0
    assert c.effective_min_z(0.0) == 1.0


def test_update_smooths_without_snapping():
    c = _curve(smoothing_time=0.5)
    target = c.target_for(2.0)
    pos = c.update(2.0, dt=1.0 / 60.0)
    assert target < pos < 7.0
    assert c.target == target

    for _ in range(600):
        pos = c.update(2.0, dt=1.0 / 60.0)
    assert pos == pytest.approx(target, abs=1e-3)


def test_small_depth_change_keeps_previous_target():
    c = _curve()
    c.update(0.0005, dt=0.1)
    assert c.target == 7.0
    c.update(0.5, dt=0.1)
    t = c.target
    c.update(0.5005, dt=0.1)
    assert c.target == t


def test_set_base_and_reset():
    c = _curve()
    for _ in range(10):
        c.update(3.0, dt=0.05)
    c.set_base(5.0)
    assert (c.base_z, c.position, c.target, c.velocity) == (5.0, 5.0, 5.0, 0.0)

    for _ in range(10):
        c.update(3.0, dt=0.05)
    moved = c.position
    c.rebase_to_current()
    assert c.base_z == moved
    assert c.target == moved

    c.reset_to_base()
    assert c.position == moved


def test_scaling_ratio_floor():
    c = _curve()
    c.set_scaling_ratio(0.0)
    assert c.scaling_ratio == 0.1


def test_smooth_damp_non_positive_dt_is_noop():
    assert smooth_damp(1.0, 5.0, 0.3, 0.5, 0.0) == (1.0, 0.3)
    assert smooth_damp(1.0, 5.0, 0.3, 0.5, -0.1) == (1.0, 0.3)


def test_smooth_damp_clamps_overshoot():
    out, vel = smooth_damp(0.0, 1.0, 100.0, 0.5, 0.1)
    assert out == 1.0
    assert vel == 0.0


def test_smooth_damp_approaches_from_either_side():
    pos, vel = 0.0, 0.0
    for _ in range(30):
        pos, vel = smooth_damp(pos, 2.0, vel, 0.3, 0.02)
        assert 0.0 <= pos <= 2.0
    pos, vel = 4.0, 0.0
    for _ in range(30):
        pos, vel = smooth_damp(pos, 2.0, vel, 0.3, 0.02)
        assert 2.0 <= pos <= 4.0
