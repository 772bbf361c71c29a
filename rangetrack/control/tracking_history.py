"""Bounded per-device tracking history."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Optional

from .pose import WorldPose


@dataclass(slots=True)
class TrackingSample:
    # Normalized aim point in [0, 1]^2.
    aimpoint: tuple[float, float]
    pose: WorldPose
    # Hub clock, microseconds.
    timestamp: int


class TrackingHistory:
    def __init__(self, capacity: int = 100):
        if capacity <= 0:
            raise ValueError(f"capacity must be > 0, got {capacity}")
        self._samples: deque[TrackingSample] = deque(maxlen=int(capacity))

    @property
    def capacity(self) -> int:
        return self._samples.maxlen or 0

    def __len__(self) -> int:
        return len(self._samples)

    def push(self, sample: TrackingSample) -> None:
        self._samples.append(sample)

    def latest(self) -> Optional[TrackingSample]:
        return self._samples[-1] if self._samples else None

    def closest(self, timestamp: int) -> Optional[TrackingSample]:
        """Sample nearest in time; ties go to the older sample."""
        best = None
        best_dt = None
        for sample in self._samples:
            dt = abs(int(sample.timestamp) - int(timestamp))
            if best_dt is None or dt < best_dt:
                best = sample
                best_dt = dt
        return best
