import math

import numpy as np
import pytest

from rangetrack.math3d.quaternion import q_angle_deg, q_normalize, q_to_rotmat, rotmat_to_q


def test_q_normalize_zero_returns_identity():
    q = q_normalize(np.zeros(4, dtype=np.float64))
    np.testing.assert_allclose(q, np.array([1.0, 0.0, 0.0, 0.0], dtype=np.float64))


def test_rotmat_identity_to_quaternion():
    q = rotmat_to_q(np.eye(3, dtype=np.float64))
    np.testing.assert_allclose(q, np.array([1.0, 0.0, 0.0, 0.0], dtype=np.float64), atol=1e-8)


def test_yaw_90_quaternion_rotates_forward_to_right():
    half = math.radians(90.0) * 0.5
    q = np.array([math.cos(half), 0.0, math.sin(half), 0.0], dtype=np.float64)
    v = q_to_rotmat(q) @ np.array([0.0, 0.0, 1.0], dtype=np.float64)
    np.testing.assert_allclose(v, np.array([1.0, 0.0, 0.0], dtype=np.float64), atol=1e-9)


def test_rotmat_round_trip_covers_every_branch():
    # 180 degree turns force the non-trace branches.
    for q in (
        [0.9, 0.1, -0.3, 0.2],
        [0.0, 1.0, 0.0, 0.0],
        [0.0, 0.0, 1.0, 0.0],
        [0.0, 0.0, 0.0, 1.0],
    ):
        q = q_normalize(np.array(q, dtype=np.float64))
        R = q_to_rotmat(q)
        np.testing.assert_allclose(q_to_rotmat(rotmat_to_q(R)), R, atol=1e-9)


def test_rotmat_to_q_rejects_wrong_shape():
    with pytest.raises(ValueError):
        rotmat_to_q(np.eye(4))


def test_angle_between_orientations():
    half = math.radians(30.0) * 0.5
    q = np.array([math.cos(half), math.sin(half), 0.0, 0.0])
    assert q_angle_deg(np.array([1.0, 0.0, 0.0, 0.0]), q) == pytest.approx(30.0)
    assert q_angle_deg(q, -q) == pytest.approx(0.0, abs=1e-5)
