"""True-size distance presets.

Moves the viewer back by a preset shooting distance so targets render at the
size they would appear from that range. Changing the preset eases the viewer
translation with a smoothstep over ``smoothing_time`` seconds.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

logger = logging.getLogger(__name__)

YARDS_TO_METERS = 0.9144
DEFAULT_PRESETS_YARDS = (3.0, 7.0, 15.0)


def smoothstep(t: float) -> float:
    t = max(0.0, min(1.0, t))
    return t * t * (3.0 - 2.0 * t)


class TrueSizeDistance:
    def __init__(
        self,
        presets_yards: Sequence[float] = DEFAULT_PRESETS_YARDS,
        base_camera_offset: float = 1.0,
        smoothing_time: float = 0.5,
    ):
        if not presets_yards:
            raise ValueError("presets_yards must not be empty")
        self.presets_yards = tuple(float(y) for y in presets_yards)
        self.base_camera_offset = float(base_camera_offset)
        self.smoothing_time = float(smoothing_time)
        self.enabled = False
        self.index = 0

        self.current = np.zeros(3, dtype=np.float64)
        self.target = np.zeros(3, dtype=np.float64)
        self._start = np.zeros(3, dtype=np.float64)
        self._elapsed = 0.0
        self._transitioning = False

    @property
    def distance_yards(self) -> float:
        return self.presets_yards[self.index]

    @property
    def distance_meters(self) -> float:
        return self.distance_yards * YARDS_TO_METERS

    @property
    def transitioning(self) -> bool:
        return self._transitioning

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = bool(enabled)
        logger.info("[TRUESIZE] true-size rendering set to %s", self.enabled)
        if self.enabled:
            self._apply()
        else:
            self.current = np.zeros(3, dtype=np.float64)
            self.target = np.zeros(3, dtype=np.float64)
            self._transitioning = False

    def set_distance_index(self, index: int) -> None:
        if index < 0 or index >= len(self.presets_yards):
            logger.warning("[TRUESIZE] invalid distance index %s", index)
            return
        self.index = int(index)
        self._apply()

    def set_distance_yards(self, yards: float) -> None:
        """Snap to the closest preset."""
        diffs = [abs(p - float(yards)) for p in self.presets_yards]
        self.set_distance_index(diffs.index(min(diffs)))

    def _apply(self) -> None:
        if not self.enabled:
            logger.debug("[TRUESIZE] disabled, skipping distance application")
            return
        # Viewer moves back (negative z) by the shooting distance.
        self.target = np.array(
            [0.0, 0.0, -self.distance_meters + self.base_camera_offset],
            dtype=np.float64,
        )
        self._start = self.current.copy()
        self._elapsed = 0.0
        self._transitioning = True
        logger.info(
            "[TRUESIZE] distance %.1f yd (%.2f m), target translation=%s",
            self.distance_yards,
            self.distance_meters,
            np.round(self.target, 3).tolist(),
        )

    def tick(self, dt: float) -> np.ndarray:
        if self._transitioning:
            self._elapsed += max(0.0, float(dt))
            if self.smoothing_time <= 0.0 or self._elapsed >= self.smoothing_time:
                self.current = self.target.copy()
                self._transitioning = False
            else:
                t = smoothstep(self._elapsed / self.smoothing_time)
                self.current = self._start + (self.target - self._start) * t
        return self.current.copy()

    def combined_translation(self, device_offset) -> np.ndarray:
        return self.current + np.asarray(device_offset, dtype=np.float64).reshape(3)
