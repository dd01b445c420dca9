"""Fillet arcs at waypoint graph junctions."""
import itertools
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

import numpy as np

import config
from src.core.graph_index import GraphIndex
from src.core.path_finder import PathFinder
from src.models.waypoint import Edge, EdgeKey, JunctionRecord, edge_key
from src.utils.vector_math import VectorMath


@dataclass
class FilletArc:
    """Planned arc between two branches of one junction."""
    junction_id: int
    from_id: int
    to_id: int
    attach_start: int
    attach_end: int
    trim_distance: float
    points: np.ndarray
    record: JunctionRecord


@dataclass
class JunctionPassResult:
    """What one junction pass wrote to the store."""
    records: List[JunctionRecord] = field(default_factory=list)
    arcs: List[FilletArc] = field(default_factory=list)
    new_waypoint_ids: List[int] = field(default_factory=list)
    new_edges: List[Edge] = field(default_factory=list)
    deleted_waypoint_ids: List[int] = field(default_factory=list)
    deleted_edge_keys: List[EdgeKey] = field(default_factory=list)

    @property
    def arc_count(self) -> int:
        return len(self.arcs)


class JunctionRebuilder:
    """Replaces each pair of branches at a junction with a fillet arc.

    For every junction J and unordered neighbor pair (b1, b2) the arc is a
    quadratic Bezier from the entry point on J-b1 through control point J to
    the exit point on J-b2, both at the fillet tangent length from J. Its
    interior samples become new waypoints chained between the branch nodes
    nearest the entry and exit points.
    """

    def __init__(self, store, graph: GraphIndex,
                 radius: float = config.TURN_RADIUS,
                 samples: int = config.FILLET_SAMPLES,
                 remove_superseded: bool = config.REMOVE_SUPERSEDED_JUNCTIONS,
                 attach_steps: int = config.ATTACH_SEARCH_STEPS):
        if samples < 3:
            raise ValueError("A fillet needs at least 3 samples")
        self.store = store
        self.graph = graph
        self.finder = PathFinder(graph)
        self.radius = radius
        self.samples = samples
        self.remove_superseded = remove_superseded
        self.attach_steps = attach_steps

    @staticmethod
    def neighbor_pairs(graph: GraphIndex, junction_id: int
                       ) -> List[Tuple[int, int]]:
        """Unordered pairs of distinct neighbors, ascending ids."""
        return list(itertools.combinations(
            sorted(graph.neighbors(junction_id)), 2))

    def plan(self) -> Tuple[List[JunctionRecord], List[FilletArc]]:
        """Compute records and arcs for every junction without writing."""
        records: List[JunctionRecord] = []
        arcs: List[FilletArc] = []
        for junction_id in self.graph.junctions():
            for b1, b2 in self.neighbor_pairs(self.graph, junction_id):
                planned = self.plan_fillet(junction_id, b1, b2)
                if planned is None:
                    continue
                record, arc = planned
                records.append(record)
                records.append(record.mirrored())
                arcs.append(arc)
        return records, arcs

    def plan_fillet(self, junction_id: int, b1: int, b2: int
                    ) -> Optional[Tuple[JunctionRecord, FilletArc]]:
        """Fillet for one neighbor pair, or None when it is degenerate."""
        center = self.graph.position(junction_id)
        p1 = self.graph.position(b1)
        p2 = self.graph.position(b2)
        if center is None or p1 is None or p2 is None:
            return None

        len1 = VectorMath.distance(center, p1)
        len2 = VectorMath.distance(center, p2)
        v1 = VectorMath.unit(p1 - center)
        v2 = VectorMath.unit(p2 - center)
        if v1 is None or v2 is None:
            return None

        dot = float(np.dot(v1, v2))
        if dot <= config.COLLINEAR_DOT:
            return None
        turn_angle = VectorMath.turn_angle(dot)
        if turn_angle < config.MIN_TURN_ANGLE:
            return None
        trim = VectorMath.trim_distance(self.radius, turn_angle)
        if trim < config.MIN_TRIM_DISTANCE:
            return None

        # Not clamped: past the first edge the point runs on along J->b.
        # Branches that end before it are rejected after the attach search.
        entry = VectorMath.lerp(center, p1, trim / len1)
        exit_ = VectorMath.lerp(center, p2, trim / len2)

        attach_start = self.finder.closest_node_on_branch(
            b1, junction_id, entry, self.attach_steps)
        attach_end = self.finder.closest_node_on_branch(
            b2, junction_id, exit_, self.attach_steps)
        if attach_start == attach_end:
            return None
        if self._overshoots(center, attach_start, entry) or \
                self._overshoots(center, attach_end, exit_):
            return None

        curve = VectorMath.sample_quadratic_bezier(
            entry, center, exit_, self.samples)
        record = JunctionRecord(
            junction_id=junction_id,
            from_id=b1,
            to_id=b2,
            entry=entry.tolist(),
            exit=exit_.tolist()
        )
        arc = FilletArc(
            junction_id=junction_id,
            from_id=b1,
            to_id=b2,
            attach_start=attach_start,
            attach_end=attach_end,
            trim_distance=trim,
            points=curve[1:-1],
            record=record
        )
        return record, arc

    def _overshoots(self, center: np.ndarray, attach_id: int,
                    point: np.ndarray) -> bool:
        """True when the branch ends at attach_id short of point."""
        if self.graph.degree(attach_id) == 2:
            return False
        attach = self.graph.position(attach_id)
        if attach is None:
            return True
        reach = VectorMath.distance(center, attach)
        return VectorMath.distance(center, point) > reach

    def rebuild(self) -> JunctionPassResult:
        """Plan every fillet and write the whole pass in one transaction.

        Raises WaypointStoreError if the transaction fails; nothing from the
        pass is kept in that case.
        """
        records, arcs = self.plan()
        result = JunctionPassResult(records=records)

        deleted_ids: Set[int] = set()
        deleted_keys: Set[EdgeKey] = set()
        if self.remove_superseded:
            deleted_ids = {arc.junction_id for arc in arcs}
            for junction_id in deleted_ids:
                for neighbor in self.graph.neighbors(junction_id):
                    deleted_keys.add(edge_key(junction_id, neighbor))
            kept = [arc for arc in arcs
                    if arc.attach_start not in deleted_ids
                    and arc.attach_end not in deleted_ids]
            if len(kept) < len(arcs):
                print(f"⚠️  Dropped {len(arcs) - len(kept)} arc(s) attached "
                      f"to removed junctions")
            arcs = kept
            records = [r for arc in arcs
                       for r in (arc.record, arc.record.mirrored())]
            result.records = records
        result.arcs = arcs
        result.deleted_waypoint_ids = sorted(deleted_ids)
        result.deleted_edge_keys = sorted(deleted_keys)

        with self.store.transaction() as cur:
            self.store.delete_waypoints(cur, result.deleted_waypoint_ids)
            self.store.delete_edges(cur, result.deleted_edge_keys)

            chains = []
            for arc in arcs:
                template = self.graph.waypoints[arc.junction_id]
                chain = [arc.attach_start]
                for point in arc.points:
                    new_id = self.store.insert_waypoint(
                        cur, point,
                        zone=template.zone,
                        width_left=template.width_left,
                        width_right=template.width_right,
                        two_way=template.two_way
                    )
                    result.new_waypoint_ids.append(new_id)
                    chain.append(new_id)
                chain.append(arc.attach_end)
                positions = ([self.graph.position(arc.attach_start)] +
                             list(arc.points) +
                             [self.graph.position(arc.attach_end)])
                chains.append((chain, positions))

            for chain, positions in chains:
                for i in range(len(chain) - 1):
                    weight = VectorMath.distance(positions[i], positions[i + 1])
                    edge_id = self.store.insert_edge(
                        cur, chain[i], chain[i + 1], weight)
                    result.new_edges.append(
                        Edge(id=edge_id, id1=chain[i], id2=chain[i + 1],
                             weight=weight))

            self.store.replace_junction_records(cur, records)

        print(f"✅ Junction pass: {result.arc_count} arc(s), "
              f"{len(result.new_waypoint_ids)} new waypoint(s), "
              f"{len(records)} junction record(s).")
        return result
