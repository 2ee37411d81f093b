"""Handling geometries"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from avshapes.common import AffineTrafo, Point2D

# Angles closer than this to 0, +-pi/2 or pi are snapped to exact sin/cos values
_ROTATION_SNAP_EPSILON: float = 0.001 * math.pi / 180.0

_IDENTITY_TRAFO: Tuple[float, float, float, float, float, float] = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)


###############################################################################
# GeomMath
###############################################################################
class GeomMath:
    """Class to provide various static methods related to geometry handling."""

    @staticmethod
    def transform_points(
        affine_trafo: AffineTrafo, points: Union[Sequence[Point2D], NDArray[np.float64]]
    ) -> NDArray[np.float64]:
        """
        Perform an affine transformation on all given 2D points at once.

        Args:
            affine_trafo (Tuple/List[float]): Affine transformation - [a00, a01, a10, a11, b0, b1]
            points: Points of shape (n, 2)

        Returns:
            NDArray[np.float64]: New array of shape (n, 2) containing the transformed points
        """
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        linear = np.array(
            [[affine_trafo[0], affine_trafo[1]], [affine_trafo[2], affine_trafo[3]]],
            dtype=np.float64,
        )
        offset = np.array([affine_trafo[4], affine_trafo[5]], dtype=np.float64)
        return pts @ linear.T + offset

    @staticmethod
    def identity_trafo() -> Tuple[float, float, float, float, float, float]:
        """The affine transformation that leaves every point unchanged."""
        return _IDENTITY_TRAFO

    @staticmethod
    def is_identity(affine_trafo: AffineTrafo) -> bool:
        """Return True if _affine_trafo_ is exactly the identity transformation."""
        return len(affine_trafo) == 6 and all(
            float(value) == expected for value, expected in zip(affine_trafo, _IDENTITY_TRAFO)
        )

    @staticmethod
    def to_matrix(affine_trafo: AffineTrafo) -> NDArray[np.float64]:
        """Return the 3x3 homogeneous matrix of the given affine transformation."""
        return np.array(
            [
                [affine_trafo[0], affine_trafo[1], affine_trafo[4]],
                [affine_trafo[2], affine_trafo[3], affine_trafo[5]],
                [0.0, 0.0, 1.0],
            ],
            dtype=np.float64,
        )

    @staticmethod
    def from_matrix(matrix: NDArray[np.float64]) -> Tuple[float, float, float, float, float, float]:
        """Return the affine transformation [a00, a01, a10, a11, b0, b1] of a 3x3 homogeneous matrix."""
        return (
            float(matrix[0, 0]),
            float(matrix[0, 1]),
            float(matrix[1, 0]),
            float(matrix[1, 1]),
            float(matrix[0, 2]),
            float(matrix[1, 2]),
        )

    @staticmethod
    def compose_trafos(first: AffineTrafo, second: AffineTrafo) -> Tuple[float, float, float, float, float, float]:
        """
        Compose two affine transformations.

        Args:
            first: Transformation applied first
            second: Transformation applied to the result of _first_

        Returns:
            Tuple[float, ...]: A transformation equal to applying _first_ and then _second_
        """
        return GeomMath.from_matrix(GeomMath.to_matrix(second) @ GeomMath.to_matrix(first))

    @staticmethod
    def translation_trafo(dx: float, dy: float) -> Tuple[float, float, float, float, float, float]:
        """Return the affine transformation moving every point by (dx, dy)."""
        return (1.0, 0.0, 0.0, 1.0, float(dx), float(dy))

    @staticmethod
    def rotation_trafo(
        radians: float, center: Sequence[Union[int, float]] = (0.0, 0.0)
    ) -> Tuple[float, float, float, float, float, float]:
        """
        Return the affine transformation rotating counter-clockwise by _radians_ about _center_.

        Any angle is accepted. Angles within 0.001 degrees of a multiple of pi/2 use exact
        sine and cosine values, so quarter and half turns map integer coordinates onto
        integer coordinates.

        Args:
            radians (float): Rotation angle in radians
            center (Tuple[float, float]): Point kept fixed by the rotation

        Returns:
            Tuple[float, ...]: Affine transformation [a00, a01, a10, a11, b0, b1]
        """
        # reduce to [-pi, pi] so that e.g. 270 degrees snaps like -90 degrees
        radians = math.remainder(radians, 2.0 * math.pi)
        eps = _ROTATION_SNAP_EPSILON
        half_pi = math.pi / 2.0

        if -eps < radians < eps:
            c, s = 1.0, 0.0
        elif half_pi - eps < radians < half_pi + eps:
            c, s = 0.0, 1.0
        elif radians < -math.pi + eps or radians > math.pi - eps:
            c, s = -1.0, 0.0
        elif -half_pi - eps < radians < -half_pi + eps:
            c, s = 0.0, -1.0
        else:
            c, s = math.cos(radians), math.sin(radians)

        cx, cy = float(center[0]), float(center[1])
        return (c, -s, s, c, cx * (1.0 - c) + cy * s, cy * (1.0 - c) - cx * s)


###############################################################################
# AvBox
###############################################################################
@dataclass(frozen=True)
class AvBox:
    """Axis aligned bounding box. Swapped min/max values are put in order on creation."""

    xmin: float
    ymin: float
    xmax: float
    ymax: float

    def __post_init__(self):
        if self.xmin > self.xmax:
            xmin, xmax = self.xmax, self.xmin
            object.__setattr__(self, "xmin", xmin)
            object.__setattr__(self, "xmax", xmax)
        if self.ymin > self.ymax:
            ymin, ymax = self.ymax, self.ymin
            object.__setattr__(self, "ymin", ymin)
            object.__setattr__(self, "ymax", ymax)

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin

    @property
    def centroid(self) -> Point2D:
        """Center of the box as (x, y), the pivot used by rotate()."""
        return (self.xmin + self.xmax) / 2, (self.ymin + self.ymax) / 2

    @classmethod
    def from_points(cls, points: Union[Sequence[Point2D], NDArray[np.float64]]) -> AvBox:
        """
        Create the smallest AvBox enclosing all given points.

        Raises:
            ValueError: If no points are given.
        """
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if pts.shape[0] == 0:
            raise ValueError("Cannot create a bounding box from zero points")
        (xmin, ymin), (xmax, ymax) = pts.min(axis=0), pts.max(axis=0)
        return cls(xmin=float(xmin), ymin=float(ymin), xmax=float(xmax), ymax=float(ymax))
