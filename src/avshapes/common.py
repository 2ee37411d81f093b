"""Central module containing type definitions and errors for segment handling."""

from __future__ import annotations

from typing import Sequence, Tuple, Union

###############################################################################
# Types
###############################################################################


Point2D = Tuple[float, float]

# Affine transformation as 6 values [a00, a01, a10, a11, b0, b1]:
#   x' = a00 * x + a01 * y + b0
#   y' = a10 * x + a11 * y + b1
# Same order as shapely.affinity.affine_transform uses for 2D geometries.
AffineTrafo = Sequence[Union[int, float]]


###############################################################################
# Errors
###############################################################################


class InvalidArgumentError(ValueError):
    """Raised when an argument violates the constraints of a constructor or function.

    Attributes:
        param_name: Name of the offending parameter.
        message: Description of the violated constraint.
    """

    def __init__(self, param_name: str, message: str):
        self.param_name = param_name
        self.message = message
        super().__init__(f"{param_name}: {message}")
