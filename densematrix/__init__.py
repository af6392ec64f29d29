"""Dense double-precision matrices with Gauss-Jordan inversion."""

from densematrix.errors import (
    InversionStatus, MatrixError, MatrixInversionError, OutOfRange, ShapeMismatch,
)
from densematrix.matrix import Matrix

__all__ = [
    "Matrix", "InversionStatus", "MatrixError", "MatrixInversionError",
    "OutOfRange", "ShapeMismatch",
]
