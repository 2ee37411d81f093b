"""Cubic Bezier curve evaluation and adaptive flattening into polylines."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from avshapes.common import Point2D

logger = logging.getLogger(__name__)

# Spans whose end points are closer than this (squared) are not subdivided any further
MINIMUM_SQR_DISTANCE: float = 1.75
# Dot product of the unit directions mid->left and mid->right above which a span is split;
# -0.997 ~ cos(175.6 deg)
DIVISION_THRESHOLD: float = -0.997
# Spans deeper than this are never split
MAX_RECURSION_DEPTH: int = 999
# Spans whose mid parameter is this close to 0.5 are always split
HALF_SPLIT_EPSILON: float = 0.0001

# Relative tolerance for detecting inner control points lying on the chord
_STRAIGHT_CROSS_EPS: float = 1.0e-12


###############################################################################
# FlatteningTolerance
###############################################################################


@dataclass(frozen=True)
class FlatteningTolerance:
    """Thresholds controlling how aggressively cubic curves are subdivided.

    Attributes:
        min_sqr_distance: Squared distance between span end points below which a span is final.
        division_threshold: Direction dot product above which a span still bends and gets split.
        max_depth: Maximum subdivision depth; deeper spans are never split.
        half_split_epsilon: Spans with a mid parameter within this distance of 0.5 are split.
    """

    min_sqr_distance: float = MINIMUM_SQR_DISTANCE
    division_threshold: float = DIVISION_THRESHOLD
    max_depth: int = MAX_RECURSION_DEPTH
    half_split_epsilon: float = HALF_SPLIT_EPSILON

    def to_dict(self) -> dict:
        """Convert tolerance settings to a dictionary for serialization."""
        return {
            "min_sqr_distance": self.min_sqr_distance,
            "division_threshold": self.division_threshold,
            "max_depth": self.max_depth,
            "half_split_epsilon": self.half_split_epsilon,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FlatteningTolerance":
        """Create FlatteningTolerance from a dictionary, using defaults for missing keys."""
        return cls(
            min_sqr_distance=data.get("min_sqr_distance", MINIMUM_SQR_DISTANCE),
            division_threshold=data.get("division_threshold", DIVISION_THRESHOLD),
            max_depth=data.get("max_depth", MAX_RECURSION_DEPTH),
            half_split_epsilon=data.get("half_split_epsilon", HALF_SPLIT_EPSILON),
        )


DEFAULT_FLATTENING_TOLERANCE = FlatteningTolerance()


class _Span(NamedTuple):
    """Parameter interval [t0, t1] of a single curve waiting for evaluation."""

    t0: float
    t1: float
    depth: int


###############################################################################
# BezierCurve
###############################################################################


class BezierCurve:
    """Class to handle cubic Bezier curve operations.

    Provides point evaluation, adaptive flattening of single curves and of chains
    of curves sharing their end points, and fixed-step sampling as reference.
    """

    @staticmethod
    def calculate_bezier_point(t: float, p0: Point2D, p1: Point2D, p2: Point2D, p3: Point2D) -> Point2D:
        """
        Calculate the point at parameter _t_ of the cubic Bezier curve p0, p1, p2, p3.

        B(t) = (1-t)^3*P0 + 3*(1-t)^2*t*P1 + 3*(1-t)*t^2*P2 + t^3*P3

        Args:
            t (float): Curve parameter in [0, 1]
            p0, p1, p2, p3: Start point, first control point, second control point, end point

        Returns:
            Tuple[float, float]: the point on the curve
        """
        u = 1.0 - t
        tt = t * t
        uu = u * u
        uuu = uu * u
        ttt = tt * t

        x = uuu * p0[0]
        y = uuu * p0[1]
        x += 3.0 * uu * t * p1[0]
        y += 3.0 * uu * t * p1[1]
        x += 3.0 * u * tt * p2[0]
        y += 3.0 * u * tt * p2[1]
        x += ttt * p3[0]
        y += ttt * p3[1]
        return (x, y)

    @classmethod
    def evaluate_cubic_curve(
        cls,
        points: Union[Sequence[Point2D], NDArray[np.float64]],
        t_values: Union[Sequence[float], NDArray[np.float64]],
    ) -> NDArray[np.float64]:
        """
        Evaluate a cubic Bezier curve at many parameters using vectorized NumPy operations.

        Args:
            points: Exactly 4 control points: start, control1, control2, end
            t_values: Curve parameters

        Returns:
            NDArray[np.float64] of shape (len(t_values), 2)
        """
        points_array = cls._as_cubic_points(points)
        t = np.asarray(t_values, dtype=np.float64).reshape(-1, 1)

        # Cubic Bezier basis functions
        omt = 1 - t
        omt2 = omt**2
        omt3 = omt2 * omt
        t2 = t**2
        t3 = t2 * t

        return (
            omt3 * points_array[0]
            + 3 * omt2 * t * points_array[1]
            + 3 * omt * t2 * points_array[2]
            + t3 * points_array[3]
        )

    @classmethod
    def polygonize_cubic_curve(
        cls, points: Union[Sequence[Point2D], NDArray[np.float64]], steps: int
    ) -> NDArray[np.float64]:
        """
        Polygonize a cubic Bezier curve into _steps_ segments of equal parameter length.

        Args:
            points: Control points as Sequence[Tuple[float, float]] or NDArray[np.float64]
                    Must contain exactly 4 points: start, control1, control2, end
            steps: Number of segments to divide the curve into

        Returns:
            NDArray[np.float64] of shape (steps+1, 2) containing the polygonized points
        """
        if steps < 1:
            raise ValueError(f"steps must be at least 1, got {steps}")
        return cls.evaluate_cubic_curve(points, np.linspace(0, 1, steps + 1, dtype=np.float64))

    @classmethod
    def flatten_cubic_curve(
        cls,
        points: Union[Sequence[Point2D], NDArray[np.float64]],
        tolerance: FlatteningTolerance = DEFAULT_FLATTENING_TOLERANCE,
    ) -> NDArray[np.float64]:
        """
        Flatten a single cubic Bezier curve adaptively.

        The curve is subdivided only where it bends, so straight stretches end up
        with few points and tight bends with many. The result starts with the first
        and ends with the last control point; all points are ordered by their
        curve parameter.

        Args:
            points: Exactly 4 control points: start, control1, control2, end
            tolerance: Subdivision thresholds

        Returns:
            NDArray[np.float64] of shape (n, 2), n >= 2
        """
        points_array = cls._as_cubic_points(points)
        p0, p1, p2, p3 = (tuple(float(v) for v in pt) for pt in points_array)

        if cls._is_straight_cubic(p0, p1, p2, p3):
            interior: List[Point2D] = []
        else:
            interior = cls._find_drawing_points(p0, p1, p2, p3, tolerance)

        return np.array([p0, *interior, p3], dtype=np.float64).reshape(-1, 2)

    @classmethod
    def flatten_cubic_chain(
        cls,
        control_points: Union[Sequence[Point2D], NDArray[np.float64]],
        tolerance: FlatteningTolerance = DEFAULT_FLATTENING_TOLERANCE,
    ) -> NDArray[np.float64]:
        """
        Flatten a chain of cubic Bezier curves given as 3k+1 control points.

        Curve i uses the control points [3i, 3i+1, 3i+2, 3i+3]. The point shared
        by two consecutive curves appears only once in the result.

        Args:
            control_points: 3k+1 control points, k >= 1
            tolerance: Subdivision thresholds

        Returns:
            NDArray[np.float64] of shape (n, 2)

        Raises:
            ValueError: If the number of control points is not 3k+1 with k >= 1
        """
        pts = np.asarray(control_points, dtype=np.float64)
        if pts.ndim != 2 or pts.shape[1] != 2:
            raise ValueError(f"control points must have shape (n, 2), got {pts.shape}")
        if pts.shape[0] < 4 or (pts.shape[0] - 1) % 3 != 0:
            raise ValueError(f"control points must be a multiple of 3 plus 1 long, got {pts.shape[0]}")

        curve_count = (pts.shape[0] - 1) // 3
        drawing_points = []
        for curve_index in range(curve_count):
            node_index = curve_index * 3
            curve_points = cls.flatten_cubic_curve(pts[node_index : node_index + 4], tolerance)
            if curve_index != 0:
                # first point coincides with the last point of the previous curve
                curve_points = curve_points[1:]
            drawing_points.append(curve_points)

        return np.concatenate(drawing_points, axis=0)

    @classmethod
    def _find_drawing_points(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        cls,
        p0: Point2D,
        p1: Point2D,
        p2: Point2D,
        p3: Point2D,
        tolerance: FlatteningTolerance,
    ) -> List[Point2D]:
        """
        Return the interior points of the curve found by adaptive subdivision.

        Each span [t0, t1] contributes the points of its left half, its mid point
        and the points of its right half, in this order. Pending spans and mid
        points are kept on an explicit stack (right side pushed first) so the
        output is in parameter order without tracking insertion indices.
        """
        interior: List[Point2D] = []
        stack: List[Union[_Span, Point2D]] = [_Span(0.0, 1.0, 0)]
        depth_limited = 0

        while stack:
            item = stack.pop()
            if not isinstance(item, _Span):
                interior.append(item)
                continue

            t0, t1, depth = item
            if depth > tolerance.max_depth:
                depth_limited += 1
                continue

            left = cls.calculate_bezier_point(t0, p0, p1, p2, p3)
            right = cls.calculate_bezier_point(t1, p0, p1, p2, p3)
            if (left[0] - right[0]) ** 2 + (left[1] - right[1]) ** 2 < tolerance.min_sqr_distance:
                continue

            mid_t = (t0 + t1) / 2
            mid = cls.calculate_bezier_point(mid_t, p0, p1, p2, p3)
            if cls._span_needs_split(left, mid, right, mid_t, tolerance):
                stack.append(_Span(mid_t, t1, depth + 1))
                stack.append(mid)
                stack.append(_Span(t0, mid_t, depth + 1))

        if depth_limited:
            logger.debug(
                "Subdivision depth limit %d reached for %d span(s) of curve %s",
                tolerance.max_depth,
                depth_limited,
                (p0, p1, p2, p3),
            )
        return interior

    @staticmethod
    def _span_needs_split(
        left: Point2D, mid: Point2D, right: Point2D, mid_t: float, tolerance: FlatteningTolerance
    ) -> bool:
        """
        Decide whether the span with end points _left_, _right_ and mid point _mid_ gets split.

        A span is split while the directions from the mid point towards both end
        points are not yet nearly opposite, and always when its mid parameter is 0.5
        (the first split of a curve). A zero-length direction carries no bending
        information and counts as flat.
        """
        left_dir = _normalize(left[0] - mid[0], left[1] - mid[1])
        right_dir = _normalize(right[0] - mid[0], right[1] - mid[1])

        bending = False
        if left_dir is not None and right_dir is not None:
            dot = left_dir[0] * right_dir[0] + left_dir[1] * right_dir[1]
            bending = dot > tolerance.division_threshold

        return bending or abs(mid_t - 0.5) < tolerance.half_split_epsilon

    @staticmethod
    def _is_straight_cubic(p0: Point2D, p1: Point2D, p2: Point2D, p3: Point2D) -> bool:
        """Return True if both inner control points lie on the chord p0-p3 (curve is that chord)."""
        chord_x = p3[0] - p0[0]
        chord_y = p3[1] - p0[1]
        chord_sqr = chord_x * chord_x + chord_y * chord_y
        if chord_sqr == 0.0:
            return False

        for point in (p1, p2):
            dx = point[0] - p0[0]
            dy = point[1] - p0[1]
            cross = chord_x * dy - chord_y * dx
            if abs(cross) > _STRAIGHT_CROSS_EPS * chord_sqr:
                return False
            projection = chord_x * dx + chord_y * dy
            if projection < 0.0 or projection > chord_sqr:
                return False
        return True

    @staticmethod
    def _as_cubic_points(points: Union[Sequence[Point2D], NDArray[np.float64]]) -> NDArray[np.float64]:
        """Convert the given control points to an array of shape (4, 2)."""
        points_array = np.asarray(points, dtype=np.float64)
        if points_array.shape != (4, 2):
            raise ValueError(f"a cubic Bezier curve needs 4 points of shape (4, 2), got {points_array.shape}")
        return points_array


def _normalize(x: float, y: float) -> Optional[Tuple[float, float]]:
    """Return the unit vector of (x, y), or None for a zero-length vector."""
    length = math.hypot(x, y)
    if length == 0.0:
        return None
    return (x / length, y / length)


def main():
    """Print the adaptive flattening of an S-shaped curve chain."""
    control_points = [(0.0, 0.0), (10.0, 30.0), (20.0, -30.0), (30.0, 0.0), (40.0, 30.0), (50.0, 30.0), (60.0, 0.0)]
    polyline = BezierCurve.flatten_cubic_chain(control_points)
    print(f"{len(control_points)} control points -> {len(polyline)} polyline points")
    for x, y in polyline:
        print(f"  ({x:9.4f}, {y:9.4f})")


if __name__ == "__main__":
    main()
