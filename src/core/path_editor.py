"""Waypoint drawing and editing operations."""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set

import numpy as np

import config
from src.core.graph_index import GraphIndex
from src.core.waypoint_store import WaypointStore, WaypointStoreError
from src.models.waypoint import EdgeKey, edge_key
from src.utils.vector_math import VectorMath


@dataclass
class DrawResult:
    """Waypoints and edges created by one drawn segment."""
    new_ids: List[int] = field(default_factory=list)
    new_edges: List[EdgeKey] = field(default_factory=list)
    end_id: Optional[int] = None
    snapped: bool = False


class PathEditor:
    """Edits the waypoint graph the way the lane studio tools do."""

    def __init__(self, store: WaypointStore, step: float = config.DRAW_STEP,
                 snap_distance: float = config.LOOP_CLOSE_DISTANCE):
        self.store = store
        self.step = step
        self.snap_distance = snap_distance

    def add_waypoint(self, position: Sequence[float]) -> Optional[int]:
        """Insert a single unconnected waypoint."""
        try:
            with self.store.transaction() as cur:
                return self.store.insert_waypoint(cur, position)
        except WaypointStoreError as e:
            print(f"❌ Failed to add waypoint: {e}")
            return None

    def find_snap_target(self, point: Sequence[float],
                         exclude: Iterable[int] = ()) -> Optional[int]:
        """Nearest waypoint within snap distance of point, if any."""
        point = VectorMath.as_point(point)
        excluded = set(exclude)
        best_id, best_distance = None, self.snap_distance
        for waypoint in self.store.get_waypoints().values():
            if waypoint.id in excluded:
                continue
            distance = VectorMath.distance(waypoint.position, point)
            if distance <= best_distance:
                best_id, best_distance = waypoint.id, distance
        return best_id

    def draw_segment(self, start_id: int,
                     end_point: Sequence[float]) -> DrawResult:
        """Lay waypoints every ``step`` from start_id toward end_point.

        When end_point lands on an existing waypoint (within snap distance)
        the segment ends on that waypoint instead of a new one, even if it
        is shorter than one step. Otherwise segments shorter than one step
        draw nothing.
        """
        result = DrawResult(end_id=start_id)
        start = self.store.get_waypoint(start_id)
        if start is None:
            print(f"❌ Waypoint {start_id} not found.")
            return result

        origin = VectorMath.as_point(start.position)
        snap_id = self.find_snap_target(end_point, exclude={start_id})
        if snap_id is not None:
            target = VectorMath.as_point(
                self.store.get_waypoint(snap_id).position)
        else:
            target = VectorMath.as_point(end_point)

        distance = VectorMath.distance(origin, target)
        if snap_id is None and distance < self.step:
            return result
        direction = VectorMath.unit(target - origin)

        samples = []
        if direction is not None:
            count = int(np.floor(distance / self.step))
            for i in range(1, count + 1):
                if snap_id is not None and \
                        distance - i * self.step <= self.snap_distance:
                    break
                samples.append(origin + direction * (i * self.step))

        chain = [start_id]
        positions = [origin]
        try:
            with self.store.transaction() as cur:
                for point in samples:
                    new_id = self.store.insert_waypoint(
                        cur, point,
                        zone=start.zone,
                        width_left=start.width_left,
                        width_right=start.width_right,
                        two_way=start.two_way
                    )
                    result.new_ids.append(new_id)
                    chain.append(new_id)
                    positions.append(point)
                if snap_id is not None:
                    chain.append(snap_id)
                    positions.append(target)

                for i in range(len(chain) - 1):
                    a, b = chain[i], chain[i + 1]
                    if a == b or self.store.has_edge(a, b):
                        continue
                    self.store.insert_edge(
                        cur, a, b,
                        VectorMath.distance(positions[i], positions[i + 1]))
                    result.new_edges.append(edge_key(a, b))
        except WaypointStoreError as e:
            print(f"❌ Batch waypoint insert failed: {e}")
            return DrawResult(end_id=start_id)

        result.end_id = chain[-1]
        result.snapped = snap_id is not None
        return result

    def draw_path(self, points: Sequence[Sequence[float]]) -> List[DrawResult]:
        """Draw a polyline, starting on a new or snapped waypoint."""
        if not points:
            return []
        current = self.find_snap_target(points[0])
        results = []
        if current is None:
            current = self.add_waypoint(points[0])
            if current is None:
                return []
            results.append(DrawResult(new_ids=[current], end_id=current))
        for point in points[1:]:
            segment = self.draw_segment(current, point)
            results.append(segment)
            current = segment.end_id
        return results

    def apply_uniform_width(self, total_width: float) -> bool:
        """Give every waypoint the same lane width, split evenly."""
        half_width = total_width / 2
        try:
            with self.store.transaction() as cur:
                self.store.set_widths(cur, half_width, half_width)
        except WaypointStoreError as e:
            print(f"❌ Failed to update waypoint widths: {e}")
            return False
        print(f"✅ Applied global width {total_width}m to all waypoints.")
        return True

    def set_width_range(self, side: str, width: float, start_id: int,
                        end_id: int) -> bool:
        try:
            with self.store.transaction() as cur:
                self.store.set_width_range(cur, side, width, start_id, end_id)
        except WaypointStoreError as e:
            print(f"❌ Failed to update {side} width: {e}")
            return False
        return True

    def mark_two_way(self, waypoint_ids: Iterable[int]) -> int:
        ids = list(waypoint_ids)
        if not ids:
            return 0
        try:
            with self.store.transaction() as cur:
                self.store.set_two_way(cur, ids)
        except WaypointStoreError as e:
            print(f"❌ Failed to mark two-way points: {e}")
            return 0
        print(f"✅ Marked {len(ids)} points as two-way.")
        return len(ids)

    def delete_waypoints(self, waypoint_ids: Iterable[int]) -> bool:
        ids = list(waypoint_ids)
        if not ids:
            return False
        try:
            with self.store.transaction() as cur:
                self.store.delete_waypoints(cur, ids)
        except WaypointStoreError as e:
            print(f"❌ Failed to delete waypoints: {e}")
            return False
        return True

    def move_waypoints(self, moves: Dict[int, Sequence[float]]) -> bool:
        """Write new positions for several waypoints at once."""
        if not moves:
            return False
        try:
            with self.store.transaction() as cur:
                for waypoint_id, position in moves.items():
                    self.store.update_position(cur, waypoint_id, position)
        except WaypointStoreError as e:
            print(f"❌ Batch DB update failed, rolled back: {e}")
            return False
        return True

    def linear_interpolate(self, waypoint_ids: Iterable[int],
                           save: bool = True) -> Dict[int, np.ndarray]:
        """Line up the interior of a waypoint run on its end-to-end chord.

        Ids are taken in ascending order and spaced along the chord by id.
        """
        ids = sorted(set(waypoint_ids))
        if len(ids) < 3:
            return {}
        first = self.store.get_waypoint(ids[0])
        last = self.store.get_waypoint(ids[-1])
        if first is None or last is None:
            return {}

        span = ids[-1] - ids[0]
        new_positions = {}
        for waypoint_id in ids[1:-1]:
            t = (waypoint_id - ids[0]) / span
            new_positions[waypoint_id] = VectorMath.lerp(
                first.position, last.position, t)

        if save and not self.move_waypoints(new_positions):
            return {}
        return new_positions

    def radial_interpolate(self, waypoint_ids: Sequence[int], strength: float,
                           tension: float = config.RADIAL_TENSION,
                           save: bool = True) -> Dict[int, np.ndarray]:
        """Bend the interior of an ordered waypoint run onto a cubic Bezier.

        Handles follow the tangents through the run's outer neighbors and
        are pushed sideways by ``strength``. Endpoints stay in place.
        """
        ids = list(waypoint_ids)
        if len(ids) < 3:
            return {}
        graph = GraphIndex.from_store(self.store)
        if any(graph.position(i) is None for i in ids):
            return {}

        members: Set[int] = set(ids)
        p0 = graph.position(ids[0])
        p3 = graph.position(ids[-1])
        before = self._outer_neighbor(graph, ids[0], members)
        after = self._outer_neighbor(graph, ids[-1], members)
        p_before = graph.position(before) if before is not None else p0
        p_after = graph.position(after) if after is not None else p3

        chord = p3 - p0
        handle = float(np.linalg.norm(chord)) * tension
        if handle < 1e-6:
            return {}
        chord_dir = chord / np.linalg.norm(chord)
        tangent0 = VectorMath.unit(p3 - p_before)
        tangent1 = VectorMath.unit(p_after - p0)
        if tangent0 is None:
            tangent0 = chord_dir
        if tangent1 is None:
            tangent1 = chord_dir

        offset = np.zeros(3)
        normal = VectorMath.horizontal_normal(chord_dir)
        if normal is not None:
            offset = normal * strength
        p1 = p0 + tangent0 * handle + offset
        p2 = p3 - tangent1 * handle + offset

        new_positions = {}
        for i in range(1, len(ids) - 1):
            t = i / (len(ids) - 1)
            new_positions[ids[i]] = VectorMath.cubic_bezier(p0, p1, p2, p3, t)

        if save and not self.move_waypoints(new_positions):
            return {}
        return new_positions

    @staticmethod
    def _outer_neighbor(graph: GraphIndex, waypoint_id: int,
                        members: Set[int]) -> Optional[int]:
        outside = sorted(n for n in graph.neighbors(waypoint_id)
                         if n not in members)
        return outside[0] if outside else None
