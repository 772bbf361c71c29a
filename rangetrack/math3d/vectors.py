"""Small vector and 4x4 transform helpers."""

from __future__ import annotations

import math
from typing import Optional

import numpy as np


def vec3(v) -> np.ndarray:
    """Coerce 2- or 3-element input to a float64 3-vector (z defaults to 0)."""
    a = np.asarray(v, dtype=np.float64).reshape(-1)
    if a.size == 2:
        return np.array([a[0], a[1], 0.0], dtype=np.float64)
    if a.size != 3:
        raise ValueError(f"expected 2 or 3 components, got {a.size}")
    return a.copy()


def normalize(v: np.ndarray, fallback: Optional[np.ndarray] = None) -> np.ndarray:
    """Unit vector of v; zero-length input returns fallback (zeros by default)."""
    v = np.asarray(v, dtype=np.float64)
    n2 = float(np.dot(v, v))
    if n2 < 1e-12:
        if fallback is None:
            return np.zeros_like(v)
        return np.asarray(fallback, dtype=np.float64).copy()
    return v / math.sqrt(n2)


def transform_point(m: np.ndarray, p: np.ndarray) -> np.ndarray:
    """Apply a 4x4 transform to a 3D point, dividing by w when it is not 1."""
    m = np.asarray(m, dtype=np.float64)
    h = m @ np.append(vec3(p), 1.0)
    w = float(h[3])
    if w == 1.0:
        return h[:3]
    with np.errstate(divide="ignore", invalid="ignore"):
        return h[:3] / w


def translation_matrix(t) -> np.ndarray:
    m = np.eye(4, dtype=np.float64)
    m[:3, 3] = vec3(t)
    return m
