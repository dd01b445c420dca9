"""Application configuration and constants."""
from pathlib import Path

# File paths
DATABASE_FILE = Path("data/waypoints.db")
EXPORT_DIR = Path("exports")

# Coordinate framing (local = ROS rotated into scene axes, minus offset)
MAP_OFFSET = [0.0, 0.0, 0.0]

# Lane defaults
DEFAULT_HALF_WIDTH = 0.5
DEFAULT_ZONE = "N/A"

# Fillet settings
TURN_RADIUS = 2.0
FILLET_SAMPLES = 10
MIN_TRIM_DISTANCE = 0.1
MIN_TURN_ANGLE = 0.01
COLLINEAR_DOT = -0.999
TURN_SENSITIVITY = 0.95
ATTACH_SEARCH_STEPS = 20
REMOVE_SUPERSEDED_JUNCTIONS = False

# Corner relaxation
CORNER_MAX_SWEEPS = 1
CORNER_TOLERANCE = 1e-3

# Path drawing
DRAW_STEP = 0.5
LOOP_CLOSE_DISTANCE = 0.3
RADIAL_TENSION = 0.35

# Marker settings
JUNCTION_MARKER_RADIUS = 0.15

# Colors
LANE_FILL_COLOR = [0.25, 0.25, 0.25]
LANE_BOUNDARY_COLOR = [1.0, 1.0, 1.0]
ENTRY_MARKER_COLOR = [0.2, 0.8, 0.3]
EXIT_MARKER_COLOR = [0.9, 0.2, 0.2]
