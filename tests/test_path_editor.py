"""Tests for waypoint drawing and editing."""

import numpy as np
import pytest

from src.core.graph_index import GraphIndex
from src.core.path_editor import PathEditor
from src.models.waypoint import edge_key

from conftest import add_graph


@pytest.fixture
def editor(store):
    return PathEditor(store, step=0.5, snap_distance=0.3)


def test_draw_segment_spaces_waypoints_by_step(store, editor):
    start = editor.add_waypoint((0.0, 0.0, 0.0))
    result = editor.draw_segment(start, (2.0, 0.0, 0.0))

    assert len(result.new_ids) == 4
    assert result.end_id == result.new_ids[-1]
    waypoints = store.get_waypoints()
    xs = [waypoints[i].position[0] for i in result.new_ids]
    assert xs == pytest.approx([0.5, 1.0, 1.5, 2.0])
    assert len(store.get_edges()) == 4


def test_segment_shorter_than_step_draws_nothing(store, editor):
    start = editor.add_waypoint((0.0, 0.0, 0.0))
    result = editor.draw_segment(start, (0.4, 0.0, 0.0))
    assert result.new_ids == []
    assert result.end_id == start
    assert store.count_waypoints() == 1


def test_closing_a_drawn_loop_adds_one_edge(store, editor):
    results = editor.draw_path([(0, 0, 0), (2, 0, 0), (2, 2, 0), (0, 2, 0),
                                (0, 0.1, 0)])
    first_id = results[0].end_id
    closing = results[-1]

    assert closing.snapped
    assert closing.end_id == first_id
    last_drawn = closing.new_ids[-1]
    assert closing.new_edges[-1] == edge_key(last_drawn, first_id)

    edges = [e.key for e in store.get_edges()]
    assert edges.count(edge_key(last_drawn, first_id)) == 1
    graph = GraphIndex.from_store(store)
    assert store.count_waypoints() == 16
    assert all(graph.degree(i) == 2 for i in graph.waypoints)

    positions = np.array([w.position for w in store.get_waypoints().values()])
    gaps = np.linalg.norm(positions[:, None] - positions[None, :], axis=2)
    np.fill_diagonal(gaps, np.inf)
    assert gaps.min() > 0.3


def test_short_closing_segment_still_joins_endpoints(store, editor):
    ids = add_graph(store, {"s": (0, 0, 0), "m": (1, 0, 0),
                            "e": (0.2, 0.1, 0)},
                    [("s", "m"), ("m", "e")])
    result = editor.draw_segment(ids["e"], (0.02, 0.0, 0.0))

    assert result.new_ids == []
    assert result.new_edges == [edge_key(ids["e"], ids["s"])]
    assert store.count_waypoints() == 3
    assert len(store.get_edges()) == 3
    assert store.has_edge(ids["s"], ids["e"])


def test_snapping_never_duplicates_an_edge(store, editor):
    ids = add_graph(store, {"s": (0, 0, 0), "e": (0.2, 0, 0)}, [("s", "e")])
    result = editor.draw_segment(ids["e"], (0.01, 0.0, 0.0))
    assert result.snapped
    assert result.new_edges == []
    assert len(store.get_edges()) == 1


def test_apply_uniform_width_splits_total(store, editor):
    add_graph(store, {"a": (0, 0, 0), "b": (1, 0, 0)}, [("a", "b")])
    assert editor.apply_uniform_width(3.0)
    for waypoint in store.get_waypoints().values():
        assert waypoint.width_left == pytest.approx(1.5)
        assert waypoint.width_right == pytest.approx(1.5)


def test_set_width_range_is_half_open(store, editor):
    ids = add_graph(store, {"a": (0, 0, 0), "b": (1, 0, 0), "c": (2, 0, 0)},
                    [])
    assert editor.set_width_range("left", 2.0, ids["a"], ids["c"])
    waypoints = store.get_waypoints()
    assert waypoints[ids["a"]].width_left == 2.0
    assert waypoints[ids["b"]].width_left == 2.0
    assert waypoints[ids["c"]].width_left == 0.5
    assert waypoints[ids["a"]].width_right == 0.5
    assert not editor.set_width_range("middle", 2.0, ids["a"], ids["c"])


def test_mark_two_way_and_delete(store, editor):
    ids = add_graph(store, {"a": (0, 0, 0), "b": (1, 0, 0)}, [("a", "b")])
    assert editor.mark_two_way([ids["a"]]) == 1
    assert store.get_waypoint(ids["a"]).two_way
    assert not store.get_waypoint(ids["b"]).two_way

    assert editor.delete_waypoints([ids["b"]])
    assert store.count_waypoints() == 1
    assert store.get_edges() == []


def test_move_waypoints_updates_positions(store, editor):
    ids = add_graph(store, {"a": (0, 0, 0), "b": (1, 0, 0)}, [])
    assert editor.move_waypoints({ids["a"]: (5.0, 6.0, 7.0)})
    assert np.allclose(store.get_waypoint(ids["a"]).position, [5, 6, 7])
    assert np.allclose(store.get_waypoint(ids["b"]).position, [1, 0, 0])


def test_radial_interpolation_bends_interior_only(store, editor):
    names = [f"p{i}" for i in range(5)]
    ids = add_graph(store, {n: (float(i), 0.0, 0.0) for i, n in enumerate(names)},
                    list(zip(names[:-1], names[1:])))
    run = [ids[n] for n in names]

    straight = editor.radial_interpolate(run, strength=0.0, save=False)
    assert np.allclose(straight[ids["p2"]], [2.0, 0.0, 0.0])

    bent = editor.radial_interpolate(run, strength=1.0)
    assert set(bent) == {ids["p1"], ids["p2"], ids["p3"]}
    assert np.allclose(bent[ids["p2"]], [2.0, 0.75, 0.0])
    assert np.allclose(store.get_waypoint(ids["p2"]).position, [2.0, 0.75, 0.0])
    assert np.allclose(store.get_waypoint(ids["p0"]).position, [0, 0, 0])
    assert np.allclose(store.get_waypoint(ids["p4"]).position, [4, 0, 0])


def test_radial_interpolation_needs_three_points(editor, store):
    ids = add_graph(store, {"a": (0, 0, 0), "b": (1, 0, 0)}, [("a", "b")])
    assert editor.radial_interpolate([ids["a"], ids["b"]], 1.0) == {}


def test_linear_interpolation_lines_up_interior(store, editor):
    ids = add_graph(store, {"p0": (0, 0, 0), "p1": (1, 2, 0), "p2": (2, -1, 0),
                            "p3": (3, 5, 1), "p4": (4, 0, 2)}, [])
    run = [ids["p3"], ids["p0"], ids["p2"], ids["p1"], ids["p4"]]

    moved = editor.linear_interpolate(run)

    assert set(moved) == {ids["p1"], ids["p2"], ids["p3"]}
    for i in (1, 2, 3):
        expected = [float(i), 0.0, 0.5 * i]
        assert np.allclose(moved[ids[f"p{i}"]], expected)
        assert np.allclose(store.get_waypoint(ids[f"p{i}"]).position, expected)
    assert np.allclose(store.get_waypoint(ids["p4"]).position, [4, 0, 2])


def test_linear_interpolation_preview_leaves_store_alone(store, editor):
    ids = add_graph(store, {"a": (0, 0, 0), "b": (1, 1, 0), "c": (2, 0, 0)},
                    [])
    moved = editor.linear_interpolate(ids.values(), save=False)
    assert np.allclose(moved[ids["b"]], [1, 0, 0])
    assert np.allclose(store.get_waypoint(ids["b"]).position, [1, 1, 0])
    assert editor.linear_interpolate([ids["a"], ids["c"]]) == {}
