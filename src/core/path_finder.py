"""Path queries over a GraphIndex."""
from typing import List, Sequence, Set

import networkx as nx
import numpy as np

import config
from src.core.graph_index import GraphIndex
from src.models.waypoint import EdgeKey, edge_key


class PathFinder:
    """Graph queries used by the junction, corner and lane passes."""

    def __init__(self, graph: GraphIndex):
        self.graph = graph

    def shortest_path(self, start: int, end: int) -> List[int]:
        """Fewest-edges path from start to end, both included.

        Returns an empty list when either id is unknown or end is not
        reachable.
        """
        try:
            return nx.shortest_path(self.graph.nx_graph, start, end)
        except (nx.NetworkXNoPath, nx.NodeNotFound):
            return []

    def closest_node_on_branch(self, start: int, previous: int,
                               target: Sequence[float],
                               max_steps: int = config.ATTACH_SEARCH_STEPS
                               ) -> int:
        """Branch node nearest to target, by a bounded monotonic walk.

        Walks from ``start`` away from ``previous`` through pass-through
        nodes, never revisiting one. Assumes the distance to ``target``
        first decreases then increases along the branch: the walk stops at
        the first step that moves away, at a dead end or junction (which is
        still considered), or after ``max_steps`` steps. The result is the
        best node seen, not a global optimum.
        """
        target = np.asarray(target, dtype=float)
        best = start
        best_distance = self._distance_to(start, target)
        visited = {previous, start}
        current = start

        for _ in range(max_steps):
            if self.graph.degree(current) != 2:
                break
            candidates = [n for n in self.graph.neighbors(current)
                          if n not in visited]
            if not candidates:
                break
            step = candidates[0]
            distance = self._distance_to(step, target)
            if distance > best_distance:
                break
            best, best_distance = step, distance
            visited.add(step)
            current = step

        return best

    def paths_to_nearest_junction(self, junction: int) -> List[List[EdgeKey]]:
        """Edge keys of every branch that runs from junction to a junction.

        Each branch is followed through pass-through nodes. Branches ending
        in a dead end are dropped.
        """
        paths = []
        for neighbor in sorted(self.graph.neighbors(junction)):
            keys = [edge_key(junction, neighbor)]
            previous, current = junction, neighbor
            while self.graph.degree(current) == 2:
                following = [n for n in self.graph.neighbors(current)
                             if n != previous]
                if not following:
                    break
                previous, current = current, following[0]
                keys.append(edge_key(previous, current))
            if self.graph.degree(current) > 2:
                paths.append(keys)
        return paths

    def junction_corridor_keys(self) -> Set[EdgeKey]:
        """Union of junction-to-junction branch edges over the graph."""
        keys: Set[EdgeKey] = set()
        for junction in self.graph.junctions():
            for path in self.paths_to_nearest_junction(junction):
                keys.update(path)
        return keys

    def _distance_to(self, waypoint_id: int, target: np.ndarray) -> float:
        position = self.graph.position(waypoint_id)
        if position is None:
            return float("inf")
        return float(np.linalg.norm(position - target))
