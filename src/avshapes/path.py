"""Paths built from line segments and their conversion to polylines and shapely geometries."""

from __future__ import annotations

from functools import cached_property
from typing import Sequence, Tuple, Union

import numpy as np
import shapely.geometry
from numpy.typing import NDArray

from avshapes.common import AffineTrafo, InvalidArgumentError, Point2D
from avshapes.geom import AvBox, GeomMath
from avshapes.segment import LineSegment


###############################################################################
# AvShapePath
###############################################################################
class AvShapePath:
    """
    A sequence of line segments drawn one after the other.

    Segments are expected to connect, i.e. each segment starts where the
    previous one ends. A closed path is implicitly joined from its last point
    back to its first point.
    """

    def __init__(self, segments: Union[LineSegment, Sequence[LineSegment]], closed: bool = False):
        """
        Args:
            segments: One or more line segments.
            closed: True if the path forms a closed outline.

        Raises:
            InvalidArgumentError: If no segments are given or an element is not a LineSegment.
        """
        if isinstance(segments, LineSegment):
            segments = [segments]
        if segments is None or len(segments) == 0:
            raise InvalidArgumentError("segments", "a path needs at least one segment")
        for idx, segment in enumerate(segments):
            if not isinstance(segment, LineSegment):
                raise InvalidArgumentError("segments", f"element {idx} is not a LineSegment: {type(segment)!r}")

        self._segments: Tuple[LineSegment, ...] = tuple(segments)
        self._closed = closed

    @property
    def segments(self) -> Tuple[LineSegment, ...]:
        """The segments of this path."""
        return self._segments

    @property
    def closed(self) -> bool:
        """True if this path forms a closed outline."""
        return self._closed

    @property
    def end_point(self) -> Point2D:
        """The last point of the last segment."""
        return self._segments[-1].end_point

    @cached_property
    def _line_points(self) -> NDArray[np.float64]:
        parts = []
        last_point = None
        for segment in self._segments:
            points = segment.flatten()
            # skip the start point if it repeats the end of the previous segment
            if last_point is not None and np.array_equal(points[0], last_point):
                points = points[1:]
            if len(points) > 0:
                parts.append(points)
                last_point = points[-1]

        line_points = np.concatenate(parts, axis=0)
        line_points.flags.writeable = False
        return line_points

    def flatten(self) -> NDArray[np.float64]:
        """Return the read-only polyline of shape (n, 2) of all segments joined together."""
        return self._line_points

    @cached_property
    def bounds(self) -> AvBox:
        """The bounding box of the flattened path."""
        return AvBox.from_points(self.flatten())

    def transform(self, affine_trafo: AffineTrafo) -> AvShapePath:
        """Return a new path with every segment transformed by [a00, a01, a10, a11, b0, b1]."""
        if GeomMath.is_identity(affine_trafo):
            return self
        return AvShapePath([segment.transform(affine_trafo) for segment in self._segments], self._closed)

    def to_shapely(self) -> Union[shapely.geometry.LineString, shapely.geometry.Polygon]:
        """
        Convert the flattened path into a shapely geometry.

        Returns:
            shapely.geometry.Polygon for closed paths with at least 3 distinct points,
            shapely.geometry.LineString otherwise.
        """
        points = self.flatten()
        if self._closed:
            ring = points
            if len(ring) > 1 and np.array_equal(ring[0], ring[-1]):
                ring = ring[:-1]
            if len(np.unique(ring, axis=0)) >= 3:
                return shapely.geometry.Polygon(ring.tolist())
        if len(points) == 1:
            # LineString needs two coordinates
            return shapely.geometry.LineString([points[0].tolist(), points[0].tolist()])
        return shapely.geometry.LineString(points.tolist())

    def __repr__(self) -> str:
        return f"AvShapePath(segments={list(self._segments)!r}, closed={self._closed})"
