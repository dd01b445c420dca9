"""Pass orchestration for the waypoint geometry engine."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import config
from src.core.corner_smoother import CornerPassResult, CornerSmoother
from src.core.graph_index import GraphIndex
from src.core.junction_rebuilder import JunctionPassResult, JunctionRebuilder
from src.core.lane_builder import LaneBoundaryBuilder
from src.core.path_finder import PathFinder
from src.core.waypoint_store import WaypointStore, WaypointStoreError
from src.models.lane_geometry import LaneGeometry


class EngineState(Enum):
    IDLE = "idle"
    REBUILDING_JUNCTIONS = "rebuilding_junctions"
    SMOOTHING_CORNERS = "smoothing_corners"
    BUILDING_BOUNDARIES = "building_boundaries"


TRANSITIONS = {
    EngineState.IDLE: {EngineState.REBUILDING_JUNCTIONS,
                       EngineState.BUILDING_BOUNDARIES},
    EngineState.REBUILDING_JUNCTIONS: {EngineState.SMOOTHING_CORNERS,
                                       EngineState.IDLE},
    EngineState.SMOOTHING_CORNERS: {EngineState.BUILDING_BOUNDARIES,
                                    EngineState.IDLE},
    EngineState.BUILDING_BOUNDARIES: {EngineState.IDLE},
}


class EngineStateError(Exception):
    """Raised on a transition the pass state machine does not allow."""


@dataclass
class EngineParameters:
    """Tunable settings of one full pass."""
    turn_radius: float = config.TURN_RADIUS
    fillet_samples: int = config.FILLET_SAMPLES
    turn_sensitivity: float = config.TURN_SENSITIVITY
    attach_steps: int = config.ATTACH_SEARCH_STEPS
    remove_superseded_junctions: bool = config.REMOVE_SUPERSEDED_JUNCTIONS
    corner_max_sweeps: int = config.CORNER_MAX_SWEEPS
    corner_tolerance: float = config.CORNER_TOLERANCE

    @classmethod
    def from_config(cls, **overrides) -> 'EngineParameters':
        """Current config values, with keyword overrides."""
        values = {
            "turn_radius": config.TURN_RADIUS,
            "fillet_samples": config.FILLET_SAMPLES,
            "turn_sensitivity": config.TURN_SENSITIVITY,
            "attach_steps": config.ATTACH_SEARCH_STEPS,
            "remove_superseded_junctions": config.REMOVE_SUPERSEDED_JUNCTIONS,
            "corner_max_sweeps": config.CORNER_MAX_SWEEPS,
            "corner_tolerance": config.CORNER_TOLERANCE,
        }
        values.update(overrides)
        return cls(**values)


@dataclass
class EngineContext:
    """Store handle, current graph snapshot and parameters of a pass."""
    store: WaypointStore
    params: EngineParameters = field(default_factory=EngineParameters)
    graph: Optional[GraphIndex] = None

    def reload_graph(self) -> GraphIndex:
        """Re-read the tables so the snapshot reflects committed writes."""
        self.graph = GraphIndex.from_store(self.store)
        return self.graph


@dataclass
class PassResult:
    junctions: Optional[JunctionPassResult] = None
    corners: Optional[CornerPassResult] = None
    lane: Optional[LaneGeometry] = None


class GeometryEngine:
    """Runs junction rebuild, corner smoothing and boundary build in order.

    Idle -> RebuildingJunctions -> SmoothingCorners -> BuildingBoundaries
    -> Idle. Entering a state after a mutating state is a checkpoint: the
    previous writes are committed and the graph snapshot is reloaded.
    """

    def __init__(self, context: EngineContext):
        self.context = context
        self.state = EngineState.IDLE

    def _enter(self, state: EngineState) -> None:
        if state not in TRANSITIONS[self.state]:
            raise EngineStateError(
                f"Cannot go from {self.state.value} to {state.value}")
        self.state = state
        if state is not EngineState.IDLE:
            self.context.reload_graph()

    def rebuild_junctions(self) -> JunctionPassResult:
        self._enter(EngineState.REBUILDING_JUNCTIONS)
        params = self.context.params
        rebuilder = JunctionRebuilder(
            self.context.store,
            self.context.graph,
            radius=params.turn_radius,
            samples=params.fillet_samples,
            remove_superseded=params.remove_superseded_junctions,
            attach_steps=params.attach_steps
        )
        return rebuilder.rebuild()

    def smooth_corners(self, exclude_ids=None) -> CornerPassResult:
        self._enter(EngineState.SMOOTHING_CORNERS)
        params = self.context.params
        smoother = CornerSmoother(
            self.context.store,
            radius=params.turn_radius,
            sensitivity=params.turn_sensitivity,
            max_sweeps=params.corner_max_sweeps,
            tolerance=params.corner_tolerance,
            exclude_ids=exclude_ids,
            reload=self.context.reload_graph
        )
        return smoother.smooth(self.context.graph)

    def build_boundaries(self) -> LaneGeometry:
        self._enter(EngineState.BUILDING_BOUNDARIES)
        graph = self.context.graph
        skip_keys = PathFinder(graph).junction_corridor_keys()
        geometry = LaneBoundaryBuilder(graph, skip_keys).build()
        self._enter(EngineState.IDLE)
        print(f"📊 Lane geometry: {geometry.edge_count} edge quad(s), "
              f"{len(skip_keys)} corridor edge(s) skipped.")
        return geometry

    def run_full_pass(self) -> Optional[PassResult]:
        """Junction rebuild, corner smoothing and boundary build.

        Returns None if a store transaction failed; the failing step has
        been rolled back and the engine is back to Idle.
        """
        result = PassResult()
        try:
            result.junctions = self.rebuild_junctions()
            result.corners = self.smooth_corners(
                exclude_ids=result.junctions.new_waypoint_ids)
            result.lane = self.build_boundaries()
            return result
        except WaypointStoreError as e:
            print(f"❌ Geometry pass failed during {self.state.value}: {e}")
            self.state = EngineState.IDLE
            return None
