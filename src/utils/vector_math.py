"""Vector and curve helpers for waypoint geometry."""
import math
from typing import Optional, Sequence

import numpy as np


class VectorMath:
    """Small numpy helpers shared by the geometry passes."""

    @staticmethod
    def as_point(values: Sequence[float]) -> np.ndarray:
        return np.asarray(values, dtype=float).reshape(3)

    @staticmethod
    def distance(a: Sequence[float], b: Sequence[float]) -> float:
        return float(np.linalg.norm(np.asarray(b, dtype=float) -
                                    np.asarray(a, dtype=float)))

    @staticmethod
    def unit(vector: Sequence[float], eps: float = 1e-9) -> Optional[np.ndarray]:
        """Normalize a vector, or None when it is (near) zero length."""
        v = np.asarray(vector, dtype=float)
        length = np.linalg.norm(v)
        if length < eps:
            return None
        return v / length

    @staticmethod
    def horizontal_normal(direction: np.ndarray,
                          eps: float = 1e-9) -> Optional[np.ndarray]:
        """Left-hand perpendicular of a direction in the ground plane."""
        normal = np.array([-direction[1], direction[0], 0.0])
        length = np.linalg.norm(normal)
        if length < eps:
            return None
        return normal / length

    @staticmethod
    def lerp(a: Sequence[float], b: Sequence[float], t: float) -> np.ndarray:
        a = np.asarray(a, dtype=float)
        b = np.asarray(b, dtype=float)
        return a + (b - a) * t

    @staticmethod
    def turn_angle(dot: float) -> float:
        """Heading change of a path whose legs meet with the given cosine.

        The dot product is taken between the two unit vectors pointing away
        from the shared vertex, so a straight path (dot = -1) turns by 0.
        """
        return math.pi - math.acos(max(-1.0, min(1.0, dot)))

    @staticmethod
    def trim_distance(radius: float, turn_angle: float) -> float:
        """Tangent length of a circular fillet of the given radius."""
        return radius / math.tan(turn_angle / 2.0)

    @staticmethod
    def quadratic_bezier(p0, p1, p2, t: float) -> np.ndarray:
        p0, p1, p2 = (np.asarray(p, dtype=float) for p in (p0, p1, p2))
        u = 1.0 - t
        return u * u * p0 + 2.0 * u * t * p1 + t * t * p2

    @staticmethod
    def cubic_bezier(p0, p1, p2, p3, t: float) -> np.ndarray:
        p0, p1, p2, p3 = (np.asarray(p, dtype=float) for p in (p0, p1, p2, p3))
        u = 1.0 - t
        return (u ** 3 * p0 + 3 * u * u * t * p1 +
                3 * u * t * t * p2 + t ** 3 * p3)

    @staticmethod
    def sample_quadratic_bezier(p0, p1, p2, samples: int) -> np.ndarray:
        """Evenly sample a quadratic Bezier, endpoints included."""
        if samples < 2:
            raise ValueError("Need at least 2 samples")
        return np.array([
            VectorMath.quadratic_bezier(p0, p1, p2, i / (samples - 1))
            for i in range(samples)
        ])
