"""ViewportScaler: container width → one uniform preview scale.

The scale is a view concern only: it maps logical canvas units to screen
pixels and back, and never touches the composition itself.
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray

from bannerforge.errors import ViewportNotReady
from bannerforge.utils.geometry import apply, scale_matrix

logger = logging.getLogger(__name__)

LOGICAL_SIZE = 1350


def compute_scale(container_width: float, logical_width: int = LOGICAL_SIZE) -> float:
    if container_width <= 0:
        return 0.0
    return container_width / logical_width


class ViewportScaler:
    def __init__(self, logical_width: int = LOGICAL_SIZE, device_pixel_ratio: float = 1.0) -> None:
        self.logical_width = logical_width
        self.device_pixel_ratio = device_pixel_ratio
        self.scale = 0.0
        self.container_width = 0.0

    @property
    def ready(self) -> bool:
        """False until a non-zero width is observed; preview waits on this."""
        return self.scale > 0

    @property
    def size(self) -> tuple[int, int]:
        """Preview pixel size (square), including the device pixel ratio."""
        side = int(round(self.container_width * self.device_pixel_ratio))
        return (side, side)

    def observe(self, container_width: float) -> float:
        previous = self.scale
        self.container_width = max(0.0, float(container_width))
        self.scale = compute_scale(self.container_width, self.logical_width)
        if self.scale != previous:
            logger.debug("Viewport scale %.4f -> %.4f", previous, self.scale)
        return self.scale

    def matrix(self) -> NDArray[np.float64]:
        return scale_matrix(self.scale)

    def to_screen(self, points) -> NDArray[np.float64]:
        return apply(self.matrix(), np.asarray(points, dtype=np.float64).reshape(-1, 2))

    def to_logical(self, points) -> NDArray[np.float64]:
        if not self.ready:
            raise ViewportNotReady("Container width not measured yet")
        inverse = np.linalg.inv(self.matrix())
        return apply(inverse, np.asarray(points, dtype=np.float64).reshape(-1, 2))
