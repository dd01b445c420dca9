"""Lane boundary geometry produced for the renderer."""
from dataclasses import dataclass, field
from typing import List

import numpy as np


@dataclass
class LaneGeometry:
    """Ribbon quads and boundary segments for a set of edges."""
    vertices: np.ndarray = field(
        default_factory=lambda: np.zeros((0, 3), dtype=float))
    triangles: np.ndarray = field(
        default_factory=lambda: np.zeros((0, 3), dtype=np.int64))
    left_segments: List[np.ndarray] = field(default_factory=list)
    right_segments: List[np.ndarray] = field(default_factory=list)
    edge_count: int = 0

    def is_empty(self) -> bool:
        return self.edge_count == 0
