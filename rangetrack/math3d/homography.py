"""Planar 4-point homography solver.

The system is the direct linear transform from Hartley & Zisserman with the
ninth parameter fixed to 1. For each correspondence (x, y) -> (x', y'):

  x' * (h31*x + h32*y + 1) = h11*x + h12*y + h13
  y' * (h31*x + h32*y + 1) = h21*x + h22*y + h23

Four points give 8 equations for h11..h32, solved with Gaussian elimination
and partial pivoting. Degenerate input (duplicated or collinear points) is
not validated: the solve runs to completion and the result contains NaN/Inf.
Callers check ``is_finite_homography``.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np


def _as_points4(points: Sequence[Sequence[float]] | np.ndarray, name: str) -> np.ndarray:
    pts = np.asarray(points, dtype=np.float64)
    if pts.ndim != 2 or pts.shape[0] != 4 or pts.shape[1] < 2:
        raise ValueError(f"{name} must hold exactly 4 points, got shape {pts.shape}")
    # z (if any) is ignored; this solver is planar only.
    return pts[:, :2]


def _dlt_system(src: np.ndarray, dst: np.ndarray) -> np.ndarray:
    """Augmented 8x9 system, two rows per correspondence (x-row then y-row)."""
    a = np.zeros((8, 9), dtype=np.float64)
    for i in range(4):
        x, y = src[i]
        dx, dy = dst[i]
        a[2 * i] = [-x, -y, -1.0, 0.0, 0.0, 0.0, x * dx, y * dx, -dx]
        a[2 * i + 1] = [0.0, 0.0, 0.0, -x, -y, -1.0, x * dy, y * dy, -dy]
    return a


def _gaussian_elimination(a: np.ndarray) -> np.ndarray:
    """Solve an n x (n+1) augmented system in place, return the solution."""
    n = a.shape[0]
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        for col in range(n):
            pivot = col + int(np.argmax(np.abs(a[col:, col])))
            if pivot != col:
                a[[col, pivot]] = a[[pivot, col]]
            a[col] /= a[col, col]
            for row in range(col + 1, n):
                a[row] -= a[row, col] * a[col]

        for row in range(n - 2, -1, -1):
            a[row, n] -= float(a[row, row + 1 : n] @ a[row + 1 : n, n])
    return a[:, n].copy()


def solve_homography(
    src: Sequence[Sequence[float]] | np.ndarray,
    dst: Sequence[Sequence[float]] | np.ndarray,
) -> np.ndarray:
    """Return the 3x3 homography H (H[2, 2] == 1) mapping src[i] -> dst[i]."""
    s = _as_points4(src, "src")
    d = _as_points4(dst, "dst")
    h = _gaussian_elimination(_dlt_system(s, d))
    return np.array(
        [
            [h[0], h[1], h[2]],
            [h[3], h[4], h[5]],
            [h[6], h[7], 1.0],
        ],
        dtype=np.float64,
    )


def is_finite_homography(H: np.ndarray) -> bool:
    return bool(np.isfinite(np.asarray(H, dtype=np.float64)).all())


def apply_homography(H: np.ndarray, points: np.ndarray) -> np.ndarray:
    """Map 2D point(s) through H with the perspective divide.

    Accepts a single (2,) point or an (N, 2) array and returns the same shape.
    """
    H = np.asarray(H, dtype=np.float64)
    pts = np.asarray(points, dtype=np.float64)
    single = pts.ndim == 1
    pts2 = pts.reshape(-1, pts.shape[-1])[:, :2]
    homog = np.hstack([pts2, np.ones((pts2.shape[0], 1), dtype=np.float64)])
    mapped = homog @ H.T
    with np.errstate(divide="ignore", invalid="ignore"):
        out = mapped[:, :2] / mapped[:, 2:3]
    return out[0] if single else out


def homography_to_matrix4x4(H: np.ndarray) -> np.ndarray:
    """Embed a planar homography in a 4x4 transform.

    x, y and w use rows/cols 0, 1, 3; the z axis passes through unchanged.
    """
    H = np.asarray(H, dtype=np.float64)
    m = np.eye(4, dtype=np.float64)
    idx = [0, 1, 3]
    m[np.ix_(idx, idx)] = H
    return m
