"""Rotate and translate shapes by building the matching affine transformation."""

from __future__ import annotations

import math
from typing import Protocol, Sequence, TypeVar, Union

from avshapes.common import AffineTrafo
from avshapes.geom import AvBox, GeomMath


class Transformable(Protocol):
    """Anything with a bounding box that can return a transformed copy of itself."""

    @property
    def bounds(self) -> AvBox: ...

    def transform(self, affine_trafo: AffineTrafo): ...


ShapeT = TypeVar("ShapeT", bound=Transformable)


def rotate(shape: ShapeT, radians: float):
    """Rotate _shape_ counter-clockwise by _radians_ about the center of its bounding box."""
    return shape.transform(GeomMath.rotation_trafo(radians, shape.bounds.centroid))


def rotate_degree(shape: ShapeT, degrees: float):
    """Rotate _shape_ counter-clockwise by _degrees_ about the center of its bounding box."""
    return rotate(shape, math.pi * degrees / 180.0)


def translate(shape: ShapeT, position: Sequence[Union[int, float]]):
    """Move _shape_ by the vector _position_ (x, y)."""
    return shape.transform(GeomMath.translation_trafo(position[0], position[1]))


def translate_xy(shape: ShapeT, x: float, y: float):
    """Move _shape_ by _x_ and _y_."""
    return shape.transform(GeomMath.translation_trafo(x, y))
