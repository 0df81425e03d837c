"""Leaf-node geometry helpers. No engine imports."""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray


def scale_matrix(sx: float, sy: float | None = None) -> NDArray[np.float64]:
    """3×3 affine scale about the origin."""
    if sy is None:
        sy = sx
    return np.array([[sx, 0.0, 0.0], [0.0, sy, 0.0], [0.0, 0.0, 1.0]])


def translate_matrix(tx: float, ty: float) -> NDArray[np.float64]:
    return np.array([[1.0, 0.0, tx], [0.0, 1.0, ty], [0.0, 0.0, 1.0]])


def rotate_matrix(degrees: float) -> NDArray[np.float64]:
    """Clockwise rotation in screen coordinates (y axis points down)."""
    rad = math.radians(degrees)
    c, s = math.cos(rad), math.sin(rad)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def rotate_about(degrees: float, cx: float, cy: float) -> NDArray[np.float64]:
    return translate_matrix(cx, cy) @ rotate_matrix(degrees) @ translate_matrix(-cx, -cy)


def apply(matrix: NDArray[np.float64], points: NDArray[np.float64]) -> NDArray[np.float64]:
    """Apply an affine matrix to an Nx2 point array."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    homo = np.hstack([pts, np.ones((len(pts), 1))])
    return (homo @ matrix.T)[:, :2]


def rect_corners(x: float, y: float, w: float, h: float) -> NDArray[np.float64]:
    return np.array([[x, y], [x + w, y], [x + w, y + h], [x, y + h]], dtype=np.float64)


def bbox(points: NDArray[np.float64]) -> tuple[float, float, float, float]:
    """Compute (xmin, ymin, xmax, ymax) bounding box."""
    if len(points) == 0:
        return (0.0, 0.0, 0.0, 0.0)
    return (
        float(np.min(points[:, 0])),
        float(np.min(points[:, 1])),
        float(np.max(points[:, 0])),
        float(np.max(points[:, 1])),
    )


def rotated_bbox(
    x: float, y: float, w: float, h: float, degrees: float
) -> tuple[float, float, float, float]:
    """Bounding box of a rect rotated about its own center."""
    if degrees % 360 == 0:
        return (x, y, x + w, y + h)
    m = rotate_about(degrees, x + w / 2, y + h / 2)
    return bbox(apply(m, rect_corners(x, y, w, h)))


def percent_to_logical(pct: float, extent: float) -> float:
    return pct / 100.0 * extent


def logical_to_percent(value: float, extent: float) -> float:
    if extent <= 0:
        return 0.0
    return value / extent * 100.0


def fit_height(width: float, source_size: tuple[int, int]) -> float:
    """Height that keeps the source aspect ratio at ``width``."""
    sw, sh = source_size
    if sw <= 0 or sh <= 0:
        return 0.0
    return width * sh / sw
