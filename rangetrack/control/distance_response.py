"""Responsive distance: tracked depth -> bounded, smoothed target Z.

Stepping back from the screen (positive depth) pulls the target toward the
camera, stepping in pushes it away. The offset follows an exponential
saturation curve capped at 95% of the available range on that side, so the
target approaches but never reaches a bound:

  toward = max(0, Z0 - Zmin)          away = max(0, Zmax - Z0)
  range  = toward if d >= 0 else away
  n      = min(0.95, 1 - exp(-a * k * |d| / range))      (0 when range == 0)
  offset = -toward * n  if d >= 0 else  away * n
  target = clamp(Z0 + offset, Zmin, Zmax)

The published position follows the target with critically damped smoothing.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

logger = logging.getLogger(__name__)

MAX_NORMALIZED = 0.95
DEPTH_EPSILON = 0.001


def smooth_damp(
    current: float,
    target: float,
    velocity: float,
    smooth_time: float,
    dt: float,
    max_speed: float = math.inf,
) -> tuple[float, float]:
    """Critically damped spring toward target. Returns (position, velocity).

    Uses the usual rational approximation of exp(-omega*dt) and clamps the
    result so it never passes the target within a single step.
    """
    if dt <= 0.0:
        return current, velocity
    smooth_time = max(1e-4, smooth_time)
    omega = 2.0 / smooth_time
    x = omega * dt
    decay = 1.0 / (1.0 + x + 0.48 * x * x + 0.235 * x * x * x)

    original_target = target
    max_change = max_speed * smooth_time
    change = max(-max_change, min(max_change, current - target))
    target = current - change

    temp = (velocity + omega * change) * dt
    velocity = (velocity - omega * temp) * decay
    out = target + (change + temp) * decay

    if (original_target - current > 0.0) == (out > original_target):
        out = original_target
        velocity = 0.0
    return out, velocity


class DistanceResponseCurve:
    def __init__(
        self,
        base_z: float = 7.0,
        min_z: float = 1.0,
        max_z: float = 10.0,
        scaling_ratio: float = 1.0,
        approach_speed: float = 2.0,
        smoothing_time: float = 0.5,
        camera_relative_min: bool = False,
        camera_margin: float = 0.1,
    ):
        self.base_z = float(base_z)
        self.min_z = float(min_z)
        self.max_z = float(max_z)
        self.scaling_ratio = float(scaling_ratio)
        self.approach_speed = float(approach_speed)
        self.smoothing_time = float(smoothing_time)
        self.camera_relative_min = bool(camera_relative_min)
        self.camera_margin = float(camera_margin)

        self.position = self.base_z
        self.velocity = 0.0
        self._target = self.base_z
        self._last_depth = 0.0

    @property
    def target(self) -> float:
        return self._target

    def effective_min_z(self, camera_z: Optional[float] = None) -> float:
        if self.camera_relative_min and camera_z is not None:
            return max(self.min_z, float(camera_z) + self.camera_margin)
        return self.min_z

    def ranges(self, camera_z: Optional[float] = None) -> tuple[float, float]:
        """(toward-camera range, away-from-camera range) around the base."""
        toward = max(0.0, self.base_z - self.effective_min_z(camera_z))
        away = max(0.0, self.max_z - self.base_z)
        return toward, away

    def offset(self, depth: float, camera_z: Optional[float] = None) -> float:
        d = float(depth)
        toward, away = self.ranges(camera_z)
        span = toward if d >= 0.0 else away
        if span <= 0.0:
            normalized = 0.0
        else:
            k = abs(self.scaling_ratio)
            normalized = min(
                MAX_NORMALIZED,
                1.0 - math.exp(-self.approach_speed * k * abs(d) / span),
            )
        return -toward * normalized if d >= 0.0 else away * normalized

    def target_for(self, depth: float, camera_z: Optional[float] = None) -> float:
        z = self.base_z + self.offset(depth, camera_z)
        return max(self.min_z, min(self.max_z, z))

    def update(self, depth: float, dt: float, camera_z: Optional[float] = None) -> float:
        """Advance one tick with tracked depth and return the smoothed position."""
        if abs(float(depth) - self._last_depth) > DEPTH_EPSILON:
            self._target = self.target_for(depth, camera_z)
            self._last_depth = float(depth)
        self.position, self.velocity = smooth_damp(
            self.position,
            self._target,
            self.velocity,
            self.smoothing_time,
            dt,
        )
        return self.position

    def set_base(self, base_z: float) -> None:
        self.base_z = float(base_z)
        self._target = self.base_z
        self.position = self.base_z
        self.velocity = 0.0
        self._last_depth = 0.0
        logger.info("[DISTANCE] base position set to z=%.3f", self.base_z)

    def rebase_to_current(self) -> None:
        """Use the current smoothed position as the new base (no jump)."""
        self.base_z = self.position
        self._target = self.position
        self.velocity = 0.0
        self._last_depth = 0.0
        logger.info("[DISTANCE] responsive distance starting from z=%.3f", self.base_z)

    def reset_to_base(self) -> None:
        self._target = self.base_z
        self.position = self.base_z
        self.velocity = 0.0
        self._last_depth = 0.0

    def set_scaling_ratio(self, ratio: float) -> None:
        self.scaling_ratio = max(0.1, float(ratio))
