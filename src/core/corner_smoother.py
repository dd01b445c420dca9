"""Bezier rounding of pass-through corners by moving existing waypoints."""
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Set, Tuple

import numpy as np

import config
from src.core.graph_index import GraphIndex
from src.core.path_finder import PathFinder
from src.utils.vector_math import VectorMath


@dataclass
class CornerPassResult:
    corners_smoothed: int = 0
    nodes_moved: int = 0
    sweeps: int = 0
    max_displacement: float = 0.0


class CornerSmoother:
    """Bends the path through degree-2 corners into tangent-trimmed arcs.

    Only positions change; no waypoint or edge is added or removed. Corners
    sharing anchor nodes influence each other, so the graph is reloaded
    before every single corner and each corner is committed on its own.

    Sweeps: the first one visits every corner and then the first half of
    the list again. Later sweeps (up to ``max_sweeps``) visit the full list
    and only run while the previous sweep moved some node by more than
    ``tolerance``.
    """

    def __init__(self, store, radius: float = config.TURN_RADIUS,
                 sensitivity: float = config.TURN_SENSITIVITY,
                 max_sweeps: int = config.CORNER_MAX_SWEEPS,
                 tolerance: float = config.CORNER_TOLERANCE,
                 exclude_ids: Optional[Iterable[int]] = None,
                 reload: Optional[Callable[[], GraphIndex]] = None):
        self.store = store
        self.radius = radius
        self.sensitivity = sensitivity
        self.max_sweeps = max(1, max_sweeps)
        self.tolerance = tolerance
        self.exclude_ids: Set[int] = set(exclude_ids or ())
        self.reload = reload or (lambda: GraphIndex.from_store(store))

    def is_corner(self, graph: GraphIndex, waypoint_id: int) -> bool:
        """Degree-2 node whose legs are not nearly straight."""
        legs = self._legs(graph, waypoint_id)
        if legs is None:
            return False
        va, vc = legs
        return float(np.dot(va, vc)) > -self.sensitivity

    def corner_ids(self, graph: GraphIndex) -> List[int]:
        return [i for i in graph.pass_through_nodes()
                if i not in self.exclude_ids and self.is_corner(graph, i)]

    def smooth(self, graph: Optional[GraphIndex] = None) -> CornerPassResult:
        """Run the corner sweeps and return what moved."""
        result = CornerPassResult()
        if graph is None:
            graph = self.reload()
        corners = self.corner_ids(graph)
        if not corners:
            return result

        schedule = corners + corners[:len(corners) // 2]
        while True:
            sweep_max = 0.0
            for corner_id in schedule:
                graph = self.reload()
                moved = self.smooth_corner(graph, corner_id)
                if moved is None:
                    continue
                count, displacement = moved
                result.corners_smoothed += 1
                result.nodes_moved += count
                sweep_max = max(sweep_max, displacement)
            result.sweeps += 1
            result.max_displacement = sweep_max
            if result.sweeps >= self.max_sweeps or sweep_max <= self.tolerance:
                break
            schedule = corners

        print(f"✅ Corner pass: {result.corners_smoothed} corner update(s) "
              f"in {result.sweeps} sweep(s).")
        return result

    def smooth_corner(self, graph: GraphIndex, corner_id: int
                      ) -> Optional[Tuple[int, float]]:
        """Reposition the nodes around one corner.

        Returns (nodes written, largest displacement), or None when the node
        is not a corner in the current graph.
        """
        legs = self._legs(graph, corner_id)
        if legs is None:
            return None
        va, vc = legs
        dot = float(np.dot(va, vc))
        if dot <= -self.sensitivity:
            return None
        turn_angle = VectorMath.turn_angle(dot)
        if turn_angle < config.MIN_TURN_ANGLE:
            return None
        trim = VectorMath.trim_distance(self.radius, turn_angle)

        a, c = sorted(graph.neighbors(corner_id))
        start = self.trim_walk(graph, corner_id, a, trim)
        end = self.trim_walk(graph, corner_id, c, trim)
        ids = PathFinder(graph).shortest_path(start, end)
        if len(ids) < 3 or any(graph.position(i) is None for i in ids):
            return None

        control = graph.position(corner_id)
        p_start = graph.position(start)
        p_end = graph.position(end)
        displacement = 0.0
        with self.store.transaction() as cur:
            for j, waypoint_id in enumerate(ids):
                t = j / (len(ids) - 1)
                new_position = VectorMath.quadratic_bezier(
                    p_start, control, p_end, t)
                old_position = graph.position(waypoint_id)
                displacement = max(displacement, float(
                    np.linalg.norm(new_position - old_position)))
                self.store.update_position(cur, waypoint_id, new_position)
        return len(ids), displacement

    @staticmethod
    def trim_walk(graph: GraphIndex, corner_id: int, first: int,
                  trim: float) -> int:
        """Last node from corner toward first within trim path length.

        The first neighbor is always reached. The walk continues only
        through pass-through nodes and never comes back to the corner.
        """
        travelled = VectorMath.distance(graph.position(corner_id),
                                        graph.position(first))
        previous, node = corner_id, first
        visited = {corner_id, first}
        while graph.degree(node) == 2:
            following = [n for n in graph.neighbors(node) if n != previous]
            if not following or following[0] in visited:
                break
            step_to = following[0]
            if graph.position(step_to) is None:
                break
            step = VectorMath.distance(graph.position(node),
                                       graph.position(step_to))
            if travelled + step > trim:
                break
            travelled += step
            visited.add(step_to)
            previous, node = node, step_to
        return node

    @staticmethod
    def _legs(graph: GraphIndex, waypoint_id: int):
        if graph.degree(waypoint_id) != 2:
            return None
        a, c = sorted(graph.neighbors(waypoint_id))
        center = graph.position(waypoint_id)
        pa, pc = graph.position(a), graph.position(c)
        if center is None or pa is None or pc is None:
            return None
        va = VectorMath.unit(pa - center)
        vc = VectorMath.unit(pc - center)
        if va is None or vc is None:
            return None
        return va, vc
