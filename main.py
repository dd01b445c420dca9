"""Application entry point."""
import sys
from pathlib import Path

import config
from src.core.geometry_engine import EngineContext, EngineParameters, GeometryEngine
from src.core.path_editor import PathEditor
from src.core.waypoint_store import WaypointStore
from src.utils.coordinate_frame import CoordinateFrame


def main():
    """Main application entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Round a waypoint graph and build its lane geometry"
    )
    parser.add_argument(
        "database",
        nargs="?",
        default=str(config.DATABASE_FILE),
        help="Waypoint SQLite database"
    )
    parser.add_argument(
        "--radius",
        type=float,
        default=config.TURN_RADIUS,
        help="Turn radius for junction and corner fillets"
    )
    parser.add_argument(
        "--lane-width",
        type=float,
        help="Apply one total lane width to every waypoint first"
    )
    parser.add_argument(
        "--boundaries-only",
        action="store_true",
        help="Skip junction and corner rounding"
    )
    parser.add_argument(
        "--remove-junctions",
        action="store_true",
        help="Delete junction nodes superseded by fillet arcs"
    )
    parser.add_argument(
        "--export",
        type=str,
        help="Directory for the PLY lane export"
    )

    args = parser.parse_args()

    store = WaypointStore(Path(args.database), CoordinateFrame(config.MAP_OFFSET))
    if not store.open():
        sys.exit(1)

    try:
        print(f"✅ Loaded {store.count_waypoints():,} waypoints.")
        if args.lane_width is not None:
            PathEditor(store).apply_uniform_width(args.lane_width)

        params = EngineParameters.from_config(
            turn_radius=args.radius,
            remove_superseded_junctions=args.remove_junctions
        )
        engine = GeometryEngine(EngineContext(store, params))
        if args.boundaries_only:
            lane = engine.build_boundaries()
        else:
            result = engine.run_full_pass()
            if result is None:
                sys.exit(1)
            lane = result.lane

        if args.export:
            from src.utils.geometry_utils import GeometryUtils
            GeometryUtils.export_lane(
                lane, Path(args.export), store.get_junction_records())
    finally:
        store.close()


if __name__ == "__main__":
    main()
