"""Tests for per-edge lane boundary geometry."""

import numpy as np
import pytest

from src.core.graph_index import GraphIndex
from src.core.lane_builder import LaneBoundaryBuilder
from src.models.waypoint import edge_key

from conftest import add_graph


def _two_point_lane(store, p1, p2, widths1, widths2):
    with store.transaction() as cur:
        a = store.insert_waypoint(cur, p1, width_left=widths1[0],
                                  width_right=widths1[1])
        b = store.insert_waypoint(cur, p2, width_left=widths2[0],
                                  width_right=widths2[1])
        store.insert_edge(cur, a, b, 1.0)
    return a, b


def test_single_edge_gives_one_quad_and_two_boundaries(store):
    _two_point_lane(store, (0, 0, 0), (2, 0, 0), (0.5, 0.7), (1.0, 0.25))
    geometry = LaneBoundaryBuilder(GraphIndex.from_store(store)).build()

    assert geometry.edge_count == 1
    assert geometry.vertices.shape == (4, 3)
    assert geometry.triangles.tolist() == [[0, 1, 2], [2, 1, 3]]
    assert len(geometry.left_segments) == 1
    assert len(geometry.right_segments) == 1

    left1, right1, left2, right2 = geometry.vertices
    assert np.allclose(left1, [0, 0.5, 0])
    assert np.allclose(right1, [0, -0.7, 0])
    assert np.allclose(left2, [2, 1.0, 0])
    assert np.allclose(right2, [2, -0.25, 0])
    assert np.allclose(geometry.left_segments[0], [left1, left2])
    assert np.allclose(geometry.right_segments[0], [right1, right2])


def test_offsets_are_perpendicular_at_stated_distance(store):
    p1, p2 = np.array([1.0, 1.0, 0.0]), np.array([2.0, 2.0, 1.0])
    _two_point_lane(store, p1, p2, (0.4, 0.6), (0.8, 0.3))
    geometry = LaneBoundaryBuilder(GraphIndex.from_store(store)).build()

    direction = (p2 - p1) / np.linalg.norm(p2 - p1)
    left1, right1, left2, right2 = geometry.vertices
    for offset, origin, width in ((left1, p1, 0.4), (right1, p1, 0.6),
                                  (left2, p2, 0.8), (right2, p2, 0.3)):
        vector = offset - origin
        assert np.dot(vector, direction) == pytest.approx(0.0, abs=1e-12)
        assert np.linalg.norm(vector) == pytest.approx(width)


def test_skip_set_edges_are_left_out(store):
    ids = add_graph(store, {"a": (0, 0, 0), "b": (1, 0, 0), "c": (2, 0, 0)},
                    [("a", "b"), ("b", "c")])
    graph = GraphIndex.from_store(store)
    geometry = LaneBoundaryBuilder(
        graph, {edge_key(ids["b"], ids["a"])}).build()

    assert geometry.edge_count == 1
    assert geometry.triangles.tolist() == [[0, 1, 2], [2, 1, 3]]
    assert np.allclose(geometry.vertices[0], [1, 0.5, 0])


def test_triangle_indices_follow_quad_base(store):
    add_graph(store, {"a": (0, 0, 0), "b": (1, 0, 0), "c": (2, 0, 0)},
              [("a", "b"), ("b", "c")])
    geometry = LaneBoundaryBuilder(GraphIndex.from_store(store)).build()
    assert geometry.edge_count == 2
    assert geometry.triangles.tolist() == [[0, 1, 2], [2, 1, 3],
                                           [4, 5, 6], [6, 5, 7]]


def test_fewer_than_two_waypoints_gives_nothing(store):
    add_graph(store, {"a": (0, 0, 0)}, [])
    geometry = LaneBoundaryBuilder(GraphIndex.from_store(store)).build()
    assert geometry.is_empty()
    assert geometry.vertices.shape == (0, 3)


def test_edges_with_missing_or_degenerate_endpoints_are_skipped(store):
    ids = add_graph(store, {"a": (0, 0, 0), "b": (1, 0, 0),
                            "above": (1, 0, 5)},
                    [("a", "b"), ("b", "above")])
    with store.transaction() as cur:
        store.insert_edge(cur, ids["a"], 9999, 1.0)
    geometry = LaneBoundaryBuilder(GraphIndex.from_store(store)).build()
    assert geometry.edge_count == 1
