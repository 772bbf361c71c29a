"""Calibrated screen plane in world space.

Corners are given anchor-relative and moved into world space by an injected
anchor-to-world transform. The basis is

  right  = normalize(BR - BL)
  up     = normalize(TL - BL)
  normal = -normalize(right x up)      (points toward the viewer)

and ``orientation`` is a rotation-only 4x4 whose rows are right, up, normal.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import numpy as np

from ..math3d.vectors import normalize, transform_point, vec3

logger = logging.getLogger(__name__)

# Default projector screen, meters.
DEFAULT_SCREEN_SIZE = (1.756, 0.988)

AnchorTransform = Callable[[np.ndarray], np.ndarray]


def matrix_anchor(anchor_to_world: np.ndarray) -> AnchorTransform:
    m = np.asarray(anchor_to_world, dtype=np.float64).reshape(4, 4).copy()
    return lambda p: transform_point(m, p)


def identity_anchor(p: np.ndarray) -> np.ndarray:
    return vec3(p)


class ScreenPlane:
    def __init__(
        self,
        anchor: Optional[AnchorTransform] = None,
        default_size: tuple[float, float] = DEFAULT_SCREEN_SIZE,
    ):
        self.anchor = anchor or identity_anchor
        self.is_calibrated = False
        w, h = float(default_size[0]), float(default_size[1])
        self._set_world_corners(
            tl=self.anchor(np.array([-w, h, 0.0]) * 0.5),
            tr=self.anchor(np.array([w, h, 0.0]) * 0.5),
            bl=self.anchor(np.array([-w, -h, 0.0]) * 0.5),
            br=self.anchor(np.array([w, -h, 0.0]) * 0.5),
        )

    def _set_world_corners(self, tl, tr, bl, br) -> None:
        self._top_left = vec3(tl)
        self._top_right = vec3(tr)
        self._bottom_left = vec3(bl)
        self._bottom_right = vec3(br)
        self._dirty = True

    def set_local_bounds(self, tl, tr, bl, br) -> None:
        """Set corners from anchor-relative coordinates (2D or 3D)."""
        self._set_world_corners(
            tl=self.anchor(vec3(tl)),
            tr=self.anchor(vec3(tr)),
            bl=self.anchor(vec3(bl)),
            br=self.anchor(vec3(br)),
        )
        self.is_calibrated = True
        logger.info(
            "[SCREEN] calibrated corners tl=%s tr=%s bl=%s br=%s",
            np.round(self._top_left, 4).tolist(),
            np.round(self._top_right, 4).tolist(),
            np.round(self._bottom_left, 4).tolist(),
            np.round(self._bottom_right, 4).tolist(),
        )

    def update(self) -> None:
        right = normalize(self._bottom_right - self._bottom_left)
        up = normalize(self._top_left - self._bottom_left)
        normal = -normalize(np.cross(right, up))

        m = np.zeros((4, 4), dtype=np.float64)
        m[0, :3] = right
        m[1, :3] = up
        m[2, :3] = normal
        m[3, 3] = 1.0

        self._right = right
        self._up = up
        self._normal = normal
        self._orientation = m
        self._dirty = False

    def _basis(self) -> None:
        if self._dirty:
            self.update()

    @property
    def top_left(self) -> np.ndarray:
        return self._top_left.copy()

    @property
    def top_right(self) -> np.ndarray:
        return self._top_right.copy()

    @property
    def bottom_left(self) -> np.ndarray:
        return self._bottom_left.copy()

    @property
    def bottom_right(self) -> np.ndarray:
        return self._bottom_right.copy()

    @property
    def right(self) -> np.ndarray:
        self._basis()
        return self._right.copy()

    @property
    def up(self) -> np.ndarray:
        self._basis()
        return self._up.copy()

    @property
    def normal(self) -> np.ndarray:
        self._basis()
        return self._normal.copy()

    @property
    def orientation(self) -> np.ndarray:
        self._basis()
        return self._orientation.copy()

    @property
    def center(self) -> np.ndarray:
        return self._bottom_left + (self._top_right - self._bottom_left) * 0.5

    def intersect_ray(self, origin, direction) -> Optional[np.ndarray]:
        """World point where the ray hits the plane, or None if parallel/behind."""
        self._basis()
        o = vec3(origin)
        d = vec3(direction)
        denom = float(np.dot(d, self._normal))
        if abs(denom) < 1e-9:
            return None
        t = float(np.dot(self._bottom_left - o, self._normal)) / denom
        if t < 0.0:
            return None
        return o + t * d

    def world_to_normalized(self, point) -> tuple[float, float]:
        """(u, v) of a world point: (0, 0) bottom-left, (1, 1) top-right."""
        self._basis()
        rel = vec3(point) - self._bottom_left
        width = float(np.dot(self._bottom_right - self._bottom_left, self._right))
        height = float(np.dot(self._top_left - self._bottom_left, self._up))
        u = float(np.dot(rel, self._right)) / width if width > 1e-12 else 0.0
        v = float(np.dot(rel, self._up)) / height if height > 1e-12 else 0.0
        return u, v
