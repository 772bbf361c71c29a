"""Pose data structures for hub-frame and world-frame device poses."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(slots=True)
class HubPose:
    """Device pose as the hub reports it.

    position:
      3D translation [x, y, z], meters, hub frame (y down).
    rotation:
      3x3 matrix whose rows are (m11, m12, m13), (m21, m22, m23),
      (m31, m32, m33). Row i is the device's i-th basis axis
      (right, up, forward). Orthonormality is not checked.
    """

    position: np.ndarray
    rotation: np.ndarray


@dataclass(slots=True)
class WorldPose:
    """Device pose in the application world frame (y up)."""

    position: np.ndarray
    rotation: np.ndarray
    # [w, x, y, z]
    quaternion: np.ndarray
    # Composed 4x4 (rotation + translation).
    matrix: np.ndarray

    def forward(self) -> np.ndarray:
        return self.rotation[:, 2].copy()


def identity_hub_pose() -> HubPose:
    return HubPose(
        position=np.zeros(3, dtype=np.float64),
        rotation=np.eye(3, dtype=np.float64),
    )
