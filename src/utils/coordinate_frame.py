"""Conversion between stored (ROS) coordinates and the local scene frame."""
from typing import Optional, Sequence, Tuple

import numpy as np

import config


class CoordinateFrame:
    """Maps stored x-forward/y-left rows to the local frame and back.

    local = (-y, x, z) - offset; the z axis is up in both conventions.
    """

    def __init__(self, offset: Optional[Sequence[float]] = None):
        if offset is None:
            offset = config.MAP_OFFSET
        self.offset = np.asarray(offset, dtype=float).reshape(3)

    def to_local(self, x: float, y: float, z: float) -> np.ndarray:
        """Convert a stored row position to the local frame."""
        return np.array([-y, x, z], dtype=float) - self.offset

    def to_store(self, position: Sequence[float]) -> Tuple[float, float, float]:
        """Convert a local position to the stored convention."""
        p = np.asarray(position, dtype=float) + self.offset
        return float(p[1]), float(-p[0]), float(p[2])
