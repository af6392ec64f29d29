"""Errors and status codes raised by :mod:`densematrix`."""

import enum


class InversionStatus(enum.Enum):
    """Outcome of a Gauss-Jordan inversion attempt."""
    OK = "ok"
    DETERMINANT_WAS_ZERO = "determinant was zero"
    SINGULAR_VALUE_WAS_ZERO = "singular value was zero"
    ZERO_DURING_INVERSION = "zero pivot during inversion"
    UNKNOWN_ERROR = "unknown error"


class MatrixError(Exception):
    """Base class for every matrix error."""


class OutOfRange(MatrixError, IndexError):
    """A row or column index outside the matrix."""


class ShapeMismatch(MatrixError, ValueError):
    """Operand shapes are incompatible with the operation."""


class MatrixInversionError(MatrixError, ArithmeticError):
    """Inversion failed; :attr:`status` says why."""

    def __init__(self, status: InversionStatus, message: str = None):
        self.status = status
        super().__init__(message or f"Matrix could not be inverted: {status.value}.")
