"""
Pytest configuration and shared fixtures for the waypoint geometry tests.

Provides a temporary SQLite waypoint store and helpers that lay out small
graphs by name.
"""

import math
import sys
from pathlib import Path
from typing import Dict, Sequence, Tuple

import pytest

# Add project root to Python path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.core.waypoint_store import WaypointStore  # noqa: E402
from src.utils.coordinate_frame import CoordinateFrame  # noqa: E402
from src.utils.vector_math import VectorMath  # noqa: E402


@pytest.fixture
def store(tmp_path):
    """Provide an open waypoint store backed by a temporary file."""
    waypoint_store = WaypointStore(tmp_path / "waypoints.db",
                                   CoordinateFrame([0.0, 0.0, 0.0]))
    assert waypoint_store.open()
    yield waypoint_store
    waypoint_store.close()


def add_graph(store: WaypointStore, positions: Dict[str, Sequence[float]],
              edges: Sequence[Tuple[str, str]], **waypoint_fields
              ) -> Dict[str, int]:
    """Insert named waypoints and edges, return name -> id."""
    ids = {}
    with store.transaction() as cur:
        for name, position in positions.items():
            ids[name] = store.insert_waypoint(cur, position, **waypoint_fields)
        for a, b in edges:
            store.insert_edge(cur, ids[a], ids[b],
                              VectorMath.distance(positions[a], positions[b]))
    return ids


def branch_positions(prefix: str, angle_deg: float, count: int,
                     spacing: float = 1.0) -> Dict[str, Tuple[float, float, float]]:
    """Evenly spaced points leaving the origin at the given heading."""
    angle = math.radians(angle_deg)
    return {
        f"{prefix}{i}": (math.cos(angle) * spacing * i,
                         math.sin(angle) * spacing * i,
                         0.0)
        for i in range(1, count + 1)
    }


def chain_edges(names: Sequence[str]):
    return list(zip(names[:-1], names[1:]))


@pytest.fixture
def y_junction(store):
    """Junction J with three five-node branches 120 degrees apart."""
    positions = {"J": (0.0, 0.0, 0.0)}
    edges = []
    for prefix, heading in (("a", 90.0), ("b", 210.0), ("c", 330.0)):
        branch = branch_positions(prefix, heading, 5)
        positions.update(branch)
        edges.extend(chain_edges(["J"] + list(branch)))
    return add_graph(store, positions, edges)
