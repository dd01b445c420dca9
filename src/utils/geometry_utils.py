"""Open3D geometry creation for lane output."""
import open3d as o3d
import numpy as np
from pathlib import Path
from typing import List, Optional, Sequence

import config
from src.models.lane_geometry import LaneGeometry
from src.models.waypoint import JunctionRecord


class GeometryUtils:
    """Converts engine output into Open3D geometry for rendering."""

    @staticmethod
    def create_lane_mesh(geometry: LaneGeometry,
                         color: Optional[List[float]] = None
                         ) -> o3d.geometry.TriangleMesh:
        """Create the lane fill mesh from the ribbon quads."""
        if color is None:
            color = config.LANE_FILL_COLOR

        mesh = o3d.geometry.TriangleMesh()
        mesh.vertices = o3d.utility.Vector3dVector(geometry.vertices)
        mesh.triangles = o3d.utility.Vector3iVector(
            geometry.triangles.astype(np.int32))
        if len(geometry.vertices):
            mesh.paint_uniform_color(color)
            mesh.compute_vertex_normals()
        return mesh

    @staticmethod
    def create_boundary_lines(geometry: LaneGeometry,
                              color: Optional[List[float]] = None
                              ) -> o3d.geometry.LineSet:
        """Create one line set holding the left and right boundaries."""
        if color is None:
            color = config.LANE_BOUNDARY_COLOR

        segments = geometry.left_segments + geometry.right_segments
        line_set = o3d.geometry.LineSet()
        if not segments:
            return line_set

        points = np.vstack(segments)
        lines = np.arange(len(points)).reshape(-1, 2)
        line_set.points = o3d.utility.Vector3dVector(points)
        line_set.lines = o3d.utility.Vector2iVector(lines.astype(np.int32))
        line_set.colors = o3d.utility.Vector3dVector(
            np.tile(color, (len(lines), 1)))
        return line_set

    @staticmethod
    def create_marker(coords: Sequence[float], color: List[float],
                      radius: float = 0.15) -> o3d.geometry.TriangleMesh:
        """Create a colored sphere marker at given coordinates."""
        sphere = o3d.geometry.TriangleMesh.create_sphere(radius=radius)
        sphere.paint_uniform_color(color)
        sphere.compute_vertex_normals()
        sphere.translate(list(coords))
        return sphere

    @staticmethod
    def create_junction_markers(records: List[JunctionRecord],
                                radius: float = config.JUNCTION_MARKER_RADIUS
                                ) -> o3d.geometry.TriangleMesh:
        """Merge entry and exit markers of all junction records."""
        markers = o3d.geometry.TriangleMesh()
        for record in records:
            markers += GeometryUtils.create_marker(
                record.entry, config.ENTRY_MARKER_COLOR, radius)
            markers += GeometryUtils.create_marker(
                record.exit, config.EXIT_MARKER_COLOR, radius)
        return markers

    @staticmethod
    def export_lane(geometry: LaneGeometry, output_dir: Path,
                    records: Optional[List[JunctionRecord]] = None) -> bool:
        """Write lane fill, boundaries and junction markers as PLY files."""
        if geometry.is_empty():
            print("⚠️  No lane geometry to export.")
            return False

        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            ok = o3d.io.write_triangle_mesh(
                str(output_dir / "lane_fill.ply"),
                GeometryUtils.create_lane_mesh(geometry))
            ok = o3d.io.write_line_set(
                str(output_dir / "lane_boundaries.ply"),
                GeometryUtils.create_boundary_lines(geometry)) and ok
            if records:
                ok = o3d.io.write_triangle_mesh(
                    str(output_dir / "junction_points.ply"),
                    GeometryUtils.create_junction_markers(records)) and ok
            if ok:
                print(f"✅ Exported lane geometry to {output_dir}")
            return ok
        except Exception as e:
            print(f"❌ Export error: {e}")
            return False
