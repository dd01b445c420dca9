"""Straight ribbon geometry along waypoint graph edges."""
from typing import Iterable, Optional, Set

import numpy as np

from src.core.graph_index import GraphIndex
from src.models.lane_geometry import LaneGeometry
from src.models.waypoint import EdgeKey
from src.utils.vector_math import VectorMath

QUAD_TRIANGLES = np.array([[0, 1, 2], [2, 1, 3]], dtype=np.int64)


class LaneBoundaryBuilder:
    """Builds one quad and two boundary segments per edge.

    Edges whose key is in the skip set are left out; those are the
    junction-to-junction corridors that get curved geometry elsewhere.
    """

    def __init__(self, graph: GraphIndex,
                 skip_keys: Optional[Iterable[EdgeKey]] = None):
        self.graph = graph
        self.skip_keys: Set[EdgeKey] = set(skip_keys or ())

    def build(self) -> LaneGeometry:
        """Compute lane geometry for every edge not in the skip set."""
        geometry = LaneGeometry()
        if len(self.graph) < 2:
            return geometry

        vertices = []
        triangles = []
        for edge in self.graph.edges:
            if edge.key in self.skip_keys or edge.id1 == edge.id2:
                continue
            quad = self._edge_quad(edge.id1, edge.id2)
            if quad is None:
                continue
            base = 4 * geometry.edge_count
            vertices.append(quad)
            triangles.append(QUAD_TRIANGLES + base)
            geometry.left_segments.append(quad[[0, 2]])
            geometry.right_segments.append(quad[[1, 3]])
            geometry.edge_count += 1

        if geometry.edge_count:
            geometry.vertices = np.vstack(vertices)
            geometry.triangles = np.vstack(triangles)
        return geometry

    def _edge_quad(self, id1: int, id2: int) -> Optional[np.ndarray]:
        """Return [left1, right1, left2, right2] or None if degenerate."""
        w1 = self.graph.waypoints.get(id1)
        w2 = self.graph.waypoints.get(id2)
        if w1 is None or w2 is None:
            return None

        p1 = np.asarray(w1.position, dtype=float)
        p2 = np.asarray(w2.position, dtype=float)
        direction = VectorMath.unit(p2 - p1)
        if direction is None:
            return None
        normal = VectorMath.horizontal_normal(direction)
        if normal is None:
            return None

        return np.array([
            p1 + normal * w1.width_left,
            p1 - normal * w1.width_right,
            p2 + normal * w2.width_left,
            p2 - normal * w2.width_right,
        ])
