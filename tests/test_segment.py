"""Test module for avshapes.segment

The tests are run using pytest.
"""

import math

import numpy as np
import pytest
import shapely.affinity
import shapely.geometry

from avshapes.bezier import BezierCurve, FlatteningTolerance
from avshapes.common import InvalidArgumentError
from avshapes.geom import GeomMath
from avshapes.segment import BezierLineSegment, LinearLineSegment, LineSegment, SegmentValidator

ARCH = [(0.0, 0.0), (5.0, 20.0), (15.0, 20.0), (20.0, 0.0)]
CHAIN = [(0.0, 0.0), (10.0, 20.0), (20.0, 20.0), (30.0, 0.0), (40.0, -20.0), (50.0, -20.0), (60.0, 0.0)]


###############################################################################
# BezierLineSegment construction
###############################################################################


class TestBezierLineSegmentConstruction:
    """Test validation and storage of control points."""

    @pytest.mark.parametrize("count", [1, 2, 3, 5, 6, 8, 9])
    def test_invalid_point_counts(self, count):
        """Test that only 3k+1 control points (k >= 1) are accepted."""
        points = [(float(i), float(i * i)) for i in range(count)]

        with pytest.raises(InvalidArgumentError) as exc_info:
            BezierLineSegment(points)

        assert exc_info.value.param_name == "points"

    @pytest.mark.parametrize("count", [4, 7, 10, 13])
    def test_valid_point_counts(self, count):
        """Test valid control point counts and the resulting curve count."""
        points = [(float(i), float(i * i)) for i in range(count)]

        segment = BezierLineSegment(points)

        assert segment.curve_count == (count - 1) // 3
        assert segment.control_points.shape == (count, 2)

    def test_invalid_argument_is_value_error(self):
        """Test that validation errors can be caught as ValueError."""
        with pytest.raises(ValueError, match="multiple of 3 plus 1"):
            BezierLineSegment(ARCH + [(30.0, 0.0)])

    def test_none_points(self):
        """Test that missing points are rejected."""
        with pytest.raises(InvalidArgumentError, match="None"):
            BezierLineSegment(None)

    def test_empty_points(self):
        """Test that an empty sequence is rejected."""
        with pytest.raises(InvalidArgumentError, match="empty"):
            BezierLineSegment([])

    def test_points_must_be_2d(self):
        """Test that points with a third coordinate are rejected."""
        with pytest.raises(InvalidArgumentError, match="shape"):
            BezierLineSegment(np.zeros((4, 3)))

    def test_defensive_copy_of_list(self):
        """Test that changing the caller's list does not change the segment."""
        points = list(ARCH)
        segment = BezierLineSegment(points)
        flattened = segment.flatten().copy()

        points[3] = (100.0, 100.0)

        assert segment.end_point == (20.0, 0.0)
        assert np.array_equal(segment.flatten(), flattened)

    def test_defensive_copy_of_array(self):
        """Test that changing the caller's array does not change the segment."""
        points = np.array(ARCH, dtype=np.float64)
        segment = BezierLineSegment(points)

        points[:] = 0.0

        assert np.array_equal(segment.control_points, np.array(ARCH))

    def test_from_points(self):
        """Test the positional convenience constructor."""
        segment = BezierLineSegment.from_points(*CHAIN)

        assert np.array_equal(segment.control_points, np.array(CHAIN))
        assert np.array_equal(segment.flatten(), BezierLineSegment(CHAIN).flatten())

    def test_from_points_with_invalid_additional_points(self):
        """Test that additional points must complete whole curves."""
        with pytest.raises(InvalidArgumentError):
            BezierLineSegment.from_points(*ARCH, (25.0, 5.0))


###############################################################################
# BezierLineSegment flattening
###############################################################################


class TestBezierLineSegmentFlatten:
    """Test the cached polyline of a Bezier segment."""

    def test_end_point(self):
        """Test that the end point is the last control point."""
        assert BezierLineSegment(CHAIN).end_point == (60.0, 0.0)

    def test_flatten_end_points(self):
        """Test that the polyline starts and ends at the first and last control point."""
        result = BezierLineSegment(CHAIN).flatten()

        assert tuple(result[0]) == CHAIN[0]
        assert tuple(result[-1]) == CHAIN[-1]

    def test_flatten_matches_chain_flattening(self):
        """Test that the segment uses the adaptive chain flattening."""
        assert np.array_equal(BezierLineSegment(CHAIN).flatten(), BezierCurve.flatten_cubic_chain(CHAIN))

    def test_join_point_appears_once(self):
        """Test that the point shared by both curves is emitted once."""
        result = BezierLineSegment(CHAIN).flatten()

        assert np.all(result == np.array([30.0, 0.0]), axis=1).sum() == 1

    def test_flatten_is_cached(self):
        """Test that repeated calls return the same array."""
        segment = BezierLineSegment(ARCH)

        assert segment.flatten() is segment.flatten()

    def test_straight_line(self):
        """Test that an evenly spaced straight cubic flattens to its end points."""
        segment = BezierLineSegment([(0.0, 0.0), (10.0, 0.0), (20.0, 0.0), (30.0, 0.0)])

        assert segment.flatten().tolist() == [[0.0, 0.0], [30.0, 0.0]]

    def test_flatten_is_read_only(self):
        """Test that the cached polyline cannot be modified."""
        segment = BezierLineSegment(ARCH)

        with pytest.raises(ValueError, match="read-only"):
            segment.flatten()[0, 0] = 999.0

    def test_control_points_are_read_only(self):
        """Test that the control points cannot be modified."""
        segment = BezierLineSegment(ARCH)

        with pytest.raises(ValueError, match="read-only"):
            segment.control_points[0, 0] = 999.0

    def test_custom_tolerance(self):
        """Test that the tolerance is used for flattening and kept."""
        tolerance = FlatteningTolerance(division_threshold=-0.9)
        segment = BezierLineSegment(ARCH, tolerance)

        assert segment.tolerance == tolerance
        assert np.array_equal(segment.flatten(), BezierCurve.flatten_cubic_chain(ARCH, tolerance))

    def test_bounds(self):
        """Test the bounding box of the flattened curve."""
        bounds = BezierLineSegment(ARCH).bounds

        assert bounds.xmin == 0.0
        assert bounds.xmax == 20.0
        assert bounds.ymin == 0.0
        assert bounds.ymax == pytest.approx(15.0)


###############################################################################
# BezierLineSegment transformation
###############################################################################


class TestBezierLineSegmentTransform:
    """Test affine transformation of Bezier segments."""

    def test_identity_returns_same_instance(self):
        """Test that the identity transformation returns the segment itself."""
        segment = BezierLineSegment(CHAIN)

        result = segment.transform(GeomMath.identity_trafo())

        assert result is segment
        assert result.flatten() is segment.flatten()

    def test_translation(self):
        """Test that a translation moves all control points and keeps the original."""
        segment = BezierLineSegment(CHAIN)

        moved = segment.transform(GeomMath.translation_trafo(100.0, 50.0))

        assert moved is not segment
        assert isinstance(moved, BezierLineSegment)
        assert np.array_equal(moved.control_points, np.array(CHAIN) + [100.0, 50.0])
        assert moved.end_point == (160.0, 50.0)
        assert tuple(moved.flatten()[0]) == (100.0, 50.0)
        assert np.array_equal(segment.control_points, np.array(CHAIN))

    def test_transform_same_as_shapely(self):
        """Test that control points are transformed like shapely.affinity.affine_transform does."""
        segment = BezierLineSegment(CHAIN)
        trafo = (0.5, -1.5, 2.0, 0.25, 3.0, -4.0)

        result = segment.transform(trafo)

        expected = shapely.affinity.affine_transform(shapely.geometry.LineString(CHAIN), trafo)
        assert np.allclose(result.control_points, np.array(expected.coords))

    def test_transform_is_reflattened(self):
        """Test that a scaled segment is flattened anew from its transformed control points."""
        segment = BezierLineSegment(ARCH)

        scaled = segment.transform((10.0, 0.0, 0.0, 10.0, 0.0, 0.0))

        assert np.array_equal(scaled.flatten(), BezierCurve.flatten_cubic_chain(np.array(ARCH) * 10.0))
        assert len(scaled.flatten()) > len(segment.flatten())

    def test_transform_composability(self):
        """Test that two transformations in a row equal their composition."""
        segment = BezierLineSegment(CHAIN)
        first = GeomMath.rotation_trafo(0.4, (10.0, 5.0))
        second = (1.5, 0.0, 0.0, 1.5, -7.0, 3.0)

        chained = segment.transform(first).transform(second)
        composed = segment.transform(GeomMath.compose_trafos(first, second))

        assert np.allclose(chained.control_points, composed.control_points)
        assert chained.flatten().shape == composed.flatten().shape
        assert np.allclose(chained.flatten(), composed.flatten())

    def test_rotation_half_turn(self):
        """Test rotating by pi about the origin mirrors all control points."""
        segment = BezierLineSegment(ARCH)

        rotated = segment.transform(GeomMath.rotation_trafo(math.pi))

        assert np.array_equal(rotated.control_points, -np.array(ARCH))

    def test_transform_keeps_tolerance(self):
        """Test that the transformed segment uses the same tolerance."""
        tolerance = FlatteningTolerance(min_sqr_distance=4.0)
        segment = BezierLineSegment(ARCH, tolerance)

        assert segment.transform(GeomMath.translation_trafo(1.0, 1.0)).tolerance == tolerance


###############################################################################
# LinearLineSegment
###############################################################################


class TestLinearLineSegment:
    """Test straight line segments."""

    def test_flatten_returns_points(self):
        """Test that the polyline is the given points."""
        segment = LinearLineSegment([(0.0, 0.0), (10.0, 0.0), (10.0, 10.0)])

        assert segment.flatten().tolist() == [[0.0, 0.0], [10.0, 0.0], [10.0, 10.0]]
        assert segment.end_point == (10.0, 10.0)

    def test_too_few_points(self):
        """Test that a single point is rejected."""
        with pytest.raises(InvalidArgumentError, match="greater than or equal to 2"):
            LinearLineSegment([(0.0, 0.0)])

    def test_from_points(self):
        """Test the positional convenience constructor."""
        segment = LinearLineSegment.from_points((0.0, 0.0), (1.0, 1.0), (2.0, 0.0))

        assert segment.flatten().tolist() == [[0.0, 0.0], [1.0, 1.0], [2.0, 0.0]]

    def test_transform(self):
        """Test transformation of a linear segment."""
        segment = LinearLineSegment([(0.0, 0.0), (10.0, 0.0)])

        moved = segment.transform(GeomMath.translation_trafo(5.0, 5.0))

        assert moved.flatten().tolist() == [[5.0, 5.0], [15.0, 5.0]]
        assert segment.flatten().tolist() == [[0.0, 0.0], [10.0, 0.0]]
        assert segment.transform(GeomMath.identity_trafo()) is segment

    def test_flatten_is_read_only(self):
        """Test that the points cannot be modified."""
        segment = LinearLineSegment([(0.0, 0.0), (10.0, 0.0)])

        with pytest.raises(ValueError, match="read-only"):
            segment.flatten()[0, 0] = 1.0


###############################################################################
# LineSegment and SegmentValidator
###############################################################################


class TestLineSegmentContract:
    """Test the abstract segment interface and the validators."""

    def test_abstract_segment_cannot_be_created(self):
        """Test that LineSegment is abstract."""
        with pytest.raises(TypeError):
            LineSegment()  # pylint: disable=abstract-class-instantiated

    def test_segments_share_the_interface(self):
        """Test that both segment kinds are LineSegments."""
        assert isinstance(BezierLineSegment(ARCH), LineSegment)
        assert isinstance(LinearLineSegment(ARCH), LineSegment)

    def test_error_message_contains_param_name(self):
        """Test the message format of InvalidArgumentError."""
        with pytest.raises(InvalidArgumentError) as exc_info:
            SegmentValidator.must_be_greater_than_or_equal_to(3, 4, "points")

        assert str(exc_info.value) == "points: value must be greater than or equal to 4, got 3"
        assert exc_info.value.param_name == "points"

    def test_to_point_array_rejects_ragged_points(self):
        """Test that points of different lengths are rejected."""
        with pytest.raises(InvalidArgumentError):
            SegmentValidator.to_point_array([(0.0, 0.0), (1.0,)], "points")
