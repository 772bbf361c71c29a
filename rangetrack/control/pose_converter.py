"""Hub pose -> world pose conversion.

The hub stores each basis axis of the device rotation as a row; the world
frame expects them as columns. The hub frame is also y-down, so the remapped
pose is conjugated by a y reflection:

  M = FLIP_Y @ raw @ FLIP_Y

Runs on every tracking update; no input validation.
"""

from __future__ import annotations

import numpy as np

from ..math3d.quaternion import rotmat_to_q
from .pose import HubPose, WorldPose

FLIP_Y = np.diag([1.0, -1.0, 1.0, 1.0])
FLIP_Y.setflags(write=False)


def hub_pose_matrix(pose: HubPose) -> np.ndarray:
    """Columns 0..2 = hub rotation rows (right, up, forward), column 3 = translation."""
    raw = np.eye(4, dtype=np.float64)
    raw[:3, :3] = np.asarray(pose.rotation, dtype=np.float64).reshape(3, 3).T
    raw[:3, 3] = np.asarray(pose.position, dtype=np.float64).reshape(3)
    return raw


def convert_hub_pose(pose: HubPose) -> WorldPose:
    m = FLIP_Y @ hub_pose_matrix(pose) @ FLIP_Y
    rotation = m[:3, :3].copy()
    return WorldPose(
        position=m[:3, 3].copy(),
        rotation=rotation,
        quaternion=rotmat_to_q(rotation),
        matrix=m,
    )
