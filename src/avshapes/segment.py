"""Line segments: the pieces a path is made of, each able to flatten itself into a polyline."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence, Union

import numpy as np
from numpy.typing import NDArray

from avshapes.bezier import DEFAULT_FLATTENING_TOLERANCE, BezierCurve, FlatteningTolerance
from avshapes.common import AffineTrafo, InvalidArgumentError, Point2D
from avshapes.geom import AvBox, GeomMath

PointsLike = Union[Sequence[Point2D], NDArray[np.float64]]


###############################################################################
# SegmentValidator
###############################################################################


class SegmentValidator:
    """Argument checks used by the segment constructors."""

    @staticmethod
    def to_point_array(points: Optional[PointsLike], param_name: str) -> NDArray[np.float64]:
        """
        Return a read-only copy of _points_ as an array of shape (n, 2).

        Raises:
            InvalidArgumentError: If _points_ is None, empty or not a sequence of 2D points.
        """
        if points is None:
            raise InvalidArgumentError(param_name, "points must not be None")
        try:
            arr = np.array(points, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError(param_name, f"points must be a sequence of (x, y) pairs: {exc}") from exc
        if arr.size == 0:
            raise InvalidArgumentError(param_name, "points must not be empty")
        if arr.ndim != 2 or arr.shape[1] != 2:
            raise InvalidArgumentError(param_name, f"points must have shape (n, 2), got {arr.shape}")
        arr.flags.writeable = False
        return arr

    @staticmethod
    def must_be_greater_than_or_equal_to(value: int, minimum: int, param_name: str) -> None:
        """Raise InvalidArgumentError if _value_ is smaller than _minimum_."""
        if value < minimum:
            raise InvalidArgumentError(param_name, f"value must be greater than or equal to {minimum}, got {value}")

    @staticmethod
    def cubic_chain_length(count: int, param_name: str) -> None:
        """Raise InvalidArgumentError unless _count_ equals 3k+1 with k >= 1."""
        SegmentValidator.must_be_greater_than_or_equal_to(count, 4, param_name)
        if (count - 1) % 3 != 0:
            raise InvalidArgumentError(param_name, f"points must be a multiple of 3 plus 1 long, got {count}")


###############################################################################
# LineSegment
###############################################################################


class LineSegment(ABC):
    """A piece of a path that can be flattened into a polyline and transformed."""

    @abstractmethod
    def flatten(self) -> NDArray[np.float64]:
        """Return the read-only polyline points of shape (n, 2) approximating this segment."""

    @property
    @abstractmethod
    def end_point(self) -> Point2D:
        """The last point of this segment."""

    @abstractmethod
    def transform(self, affine_trafo: AffineTrafo) -> LineSegment:
        """Return a new segment with the affine transformation [a00, a01, a10, a11, b0, b1] applied."""

    @property
    def bounds(self) -> AvBox:
        """The bounding box of the flattened segment."""
        return AvBox.from_points(self.flatten())


###############################################################################
# LinearLineSegment
###############################################################################


class LinearLineSegment(LineSegment):
    """A segment made of straight lines between consecutive points."""

    def __init__(self, points: PointsLike):
        """
        Args:
            points: At least 2 points (x, y).

        Raises:
            InvalidArgumentError: If fewer than 2 points are given.
        """
        arr = SegmentValidator.to_point_array(points, "points")
        SegmentValidator.must_be_greater_than_or_equal_to(arr.shape[0], 2, "points")
        self._points = arr

    @classmethod
    def from_points(cls, start: Point2D, end: Point2D, *additional_points: Point2D) -> LinearLineSegment:
        """Create a segment from its start, end and further points."""
        return cls([start, end, *additional_points])

    @property
    def end_point(self) -> Point2D:
        return (float(self._points[-1, 0]), float(self._points[-1, 1]))

    def flatten(self) -> NDArray[np.float64]:
        return self._points

    def transform(self, affine_trafo: AffineTrafo) -> LineSegment:
        if GeomMath.is_identity(affine_trafo):
            return self
        return LinearLineSegment(GeomMath.transform_points(affine_trafo, self._points))

    def __repr__(self) -> str:
        return f"LinearLineSegment(points={self._points.tolist()})"


###############################################################################
# BezierLineSegment
###############################################################################


class BezierLineSegment(LineSegment):
    """
    A segment made of one or more chained cubic Bezier curves.

    The control points are 3k+1 points (x, y): curve i uses the points
    [3i, 3i+1, 3i+2, 3i+3], so consecutive curves share their joining point.
    The polyline approximation is computed once on construction and cached;
    instances never change afterwards.
    """

    def __init__(
        self,
        points: PointsLike,
        tolerance: FlatteningTolerance = DEFAULT_FLATTENING_TOLERANCE,
    ):
        """
        Args:
            points: 3k+1 control points, k >= 1.
            tolerance: Subdivision thresholds for flattening.

        Raises:
            InvalidArgumentError: If _points_ is None, empty, shorter than 4 or not 3k+1 long.
        """
        control_points = SegmentValidator.to_point_array(points, "points")
        SegmentValidator.cubic_chain_length(control_points.shape[0], "points")

        line_points = BezierCurve.flatten_cubic_chain(control_points, tolerance)
        line_points.flags.writeable = False

        self._control_points = control_points
        self._line_points = line_points
        self._tolerance = tolerance

    @classmethod
    def from_points(
        # pylint: disable=too-many-arguments
        cls,
        start: Point2D,
        control_point1: Point2D,
        control_point2: Point2D,
        end: Point2D,
        *additional_points: Point2D,
    ) -> BezierLineSegment:
        """Create a segment from the points of its first curve followed by the points of further curves."""
        return cls([start, control_point1, control_point2, end, *additional_points])

    @property
    def control_points(self) -> NDArray[np.float64]:
        """The read-only control points of shape (3k+1, 2)."""
        return self._control_points

    @property
    def tolerance(self) -> FlatteningTolerance:
        """The subdivision thresholds used for flattening."""
        return self._tolerance

    @property
    def curve_count(self) -> int:
        """Number k of chained cubic curves."""
        return (self._control_points.shape[0] - 1) // 3

    @property
    def end_point(self) -> Point2D:
        return (float(self._control_points[-1, 0]), float(self._control_points[-1, 1]))

    def flatten(self) -> NDArray[np.float64]:
        return self._line_points

    def transform(self, affine_trafo: AffineTrafo) -> LineSegment:
        if GeomMath.is_identity(affine_trafo):
            return self
        return BezierLineSegment(GeomMath.transform_points(affine_trafo, self._control_points), self._tolerance)

    def __repr__(self) -> str:
        return f"BezierLineSegment(points={self._control_points.tolist()})"
