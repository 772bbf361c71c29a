"""Screen calibration helpers.

Two inputs produce screen-relative coordinates:

- The hub's screen info: four corners in the hub's 2D convention (y down,
  origin at the tracking camera). These become plane-local corners with the
  origin at the screen center and y up.
- A marker cross: four markers placed top/right/bottom/left of the view
  center, in 11-bit sensor units. A homography from the canonical cross to the
  marker positions maps a raw sensor point to a normalized aim point.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..math3d.homography import apply_homography, is_finite_homography, solve_homography

MARKER_SENSOR_MAX = 2047.0

# Canonical cross, in the order bottom, left, top, right markers are matched.
_CROSS = np.array(
    [
        [0.0, 1.0],
        [-1.0, 0.0],
        [0.0, -1.0],
        [1.0, 0.0],
    ],
    dtype=np.float64,
)


@dataclass(frozen=True)
class LocalScreenCorners:
    top_left: np.ndarray
    top_right: np.ndarray
    bottom_left: np.ndarray
    bottom_right: np.ndarray
    # Where the hub's (0, 0) lands in plane-local coordinates.
    origin: np.ndarray


def screen_info_to_local_corners(tl, tr, bl, br) -> LocalScreenCorners:
    tl = np.asarray(tl, dtype=np.float64).reshape(2)
    tr = np.asarray(tr, dtype=np.float64).reshape(2)
    bl = np.asarray(bl, dtype=np.float64).reshape(2)
    br = np.asarray(br, dtype=np.float64).reshape(2)
    cx = (tr[0] + tl[0]) * 0.5
    cy = (tl[1] + bl[1]) * 0.5

    def to_local(p: np.ndarray) -> np.ndarray:
        return np.array([p[0] - cx, -(p[1] - cy), 0.0], dtype=np.float64)

    return LocalScreenCorners(
        top_left=to_local(tl),
        top_right=to_local(tr),
        bottom_left=to_local(bl),
        bottom_right=to_local(br),
        origin=to_local(np.zeros(2, dtype=np.float64)),
    )


@dataclass(frozen=True)
class MarkerCross:
    """Marker positions in sensor units (0..2047)."""

    top: tuple[float, float]
    right: tuple[float, float]
    bottom: tuple[float, float]
    left: tuple[float, float]

    def normalized(self) -> np.ndarray:
        return (
            np.array([self.bottom, self.left, self.top, self.right], dtype=np.float64)
            / MARKER_SENSOR_MAX
        )


def marker_cross_homography(markers: MarkerCross) -> np.ndarray:
    return solve_homography(_CROSS, markers.normalized())


def aim_point_from_marker_cross(
    markers: MarkerCross, normal_xy
) -> Optional[tuple[float, float]]:
    """Map a [-1, 1] sensor point through the cross homography to [0, 1]^2.

    Returns None when the marker layout is degenerate.
    """
    H = marker_cross_homography(markers)
    if not is_finite_homography(H):
        return None
    p = apply_homography(H, np.asarray(normal_xy, dtype=np.float64).reshape(2))
    if not np.isfinite(p).all():
        return None
    return (float(p[0] + 1.0) * 0.5, float(p[1] + 1.0) * 0.5)
