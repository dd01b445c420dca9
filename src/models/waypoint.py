"""Waypoint graph data models."""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import config

EdgeKey = Tuple[int, int]


def edge_key(id1: int, id2: int) -> EdgeKey:
    """Canonical key of an undirected edge."""
    return (id1, id2) if id1 <= id2 else (id2, id1)


@dataclass
class Waypoint:
    """A positioned node of the road graph, in the local frame."""
    id: int
    position: List[float]
    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0
    zone: str = config.DEFAULT_ZONE
    width_left: float = config.DEFAULT_HALF_WIDTH
    width_right: float = config.DEFAULT_HALF_WIDTH
    two_way: bool = False


@dataclass
class Edge:
    """Undirected connection between two waypoints."""
    id1: int
    id2: int
    weight: float = 0.0
    id: Optional[int] = None

    @property
    def key(self) -> EdgeKey:
        return edge_key(self.id1, self.id2)


@dataclass
class JunctionRecord:
    """Entry/exit points of one directed branch pair at a junction."""
    junction_id: int
    from_id: int
    to_id: int
    entry: List[float] = field(default_factory=list)
    exit: List[float] = field(default_factory=list)

    def mirrored(self) -> 'JunctionRecord':
        """Return the record for the opposite travel direction."""
        return JunctionRecord(
            junction_id=self.junction_id,
            from_id=self.to_id,
            to_id=self.from_id,
            entry=list(self.exit),
            exit=list(self.entry)
        )
