"""Per-pass graph snapshot of the waypoint tables."""
from typing import Dict, List, Optional, Set

import networkx as nx
import numpy as np

from src.models.waypoint import Edge, Waypoint


class GraphIndex:
    """networkx graph and waypoint snapshot for one processing pass.

    Built fresh from the store at the start of every pass and never written
    back. Every waypoint is a node (carrying the waypoint as its ``waypoint``
    attribute), so isolated waypoints have degree 0.
    """

    def __init__(self, waypoints: Dict[int, Waypoint], edges: List[Edge]):
        self.waypoints = waypoints
        self.edges = edges
        self.nx_graph = nx.Graph()
        for waypoint_id, waypoint in waypoints.items():
            self.nx_graph.add_node(waypoint_id, waypoint=waypoint)
        for edge in edges:
            if edge.id1 == edge.id2:
                continue
            self.nx_graph.add_edge(edge.id1, edge.id2, weight=edge.weight)

    @classmethod
    def from_store(cls, store) -> 'GraphIndex':
        """Snapshot the current tables of a WaypointStore."""
        return cls(store.get_waypoints(), store.get_edges())

    def neighbors(self, waypoint_id: int) -> Set[int]:
        if waypoint_id not in self.nx_graph:
            return set()
        return set(self.nx_graph.neighbors(waypoint_id))

    def degree(self, waypoint_id: int) -> int:
        if waypoint_id not in self.nx_graph:
            return 0
        return self.nx_graph.degree(waypoint_id)

    def position(self, waypoint_id: int) -> Optional[np.ndarray]:
        waypoint = self.waypoints.get(waypoint_id)
        if waypoint is None:
            return None
        return np.asarray(waypoint.position, dtype=float)

    def has_edge(self, id1: int, id2: int) -> bool:
        return self.nx_graph.has_edge(id1, id2)

    def junctions(self) -> List[int]:
        """Ids with more than two incident edges, ascending."""
        return sorted(i for i, d in self.nx_graph.degree() if d > 2)

    def pass_through_nodes(self) -> List[int]:
        """Ids with exactly two incident edges, ascending."""
        return sorted(i for i, d in self.nx_graph.degree() if d == 2)

    def __len__(self) -> int:
        return len(self.waypoints)
