"""
Dense row-major matrices of doubles.

Elementary row operations mutate in place; products, augmentation,
slices and transposes return new matrices. Inversion is Gauss-Jordan
elimination on ``[A | I]`` with partial pivoting, carried out with the
same row operations the public API exposes.

    m = Matrix.from_text("[4,7;2,6]")
    m.invert()                       # m is now [[0.6,-0.7],[-0.2,0.4]]
"""

import logging
import numbers

import numpy as np

from densematrix.errors import (
    InversionStatus, MatrixInversionError, OutOfRange, ShapeMismatch,
)

logger = logging.getLogger(__name__)


def _fmt(value: float) -> str:
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text


class Matrix:
    """A ``rows x cols`` matrix of ``float64`` values, ``rows, cols >= 1``."""

    def __init__(self, rows: int, cols: int):
        if rows < 1 or cols < 1:
            raise ShapeMismatch(f"A matrix needs at least one row and column, got {rows}x{cols}.")
        self._data = np.zeros((rows, cols), dtype=np.float64)

    # ── Constructors ────────────────────────────────────────────────────

    @classmethod
    def _wrap(cls, array) -> "Matrix":
        m = cls.__new__(cls)
        m._data = np.array(array, dtype=np.float64)
        if m._data.ndim != 2 or 0 in m._data.shape:
            raise ShapeMismatch(f"Expected a non-empty 2-D array, got shape {m._data.shape}.")
        return m

    @classmethod
    def identity(cls, n: int) -> "Matrix":
        if n < 1:
            raise ShapeMismatch(f"Identity edge length must be at least 1, got {n}.")
        return cls._wrap(np.eye(n))

    @classmethod
    def from_rows(cls, rows) -> "Matrix":
        """Build from a nested sequence; every row must have the same length."""
        rows = [list(r) for r in rows]
        if not rows or not rows[0]:
            raise ShapeMismatch("A matrix needs at least one row and column.")
        width = len(rows[0])
        for i, row in enumerate(rows):
            if len(row) != width:
                raise ShapeMismatch(f"Row {i} has {len(row)} elements, expected {width}.")
        return cls._wrap(rows)

    @classmethod
    def from_vec(cls, cols: int, values) -> "Matrix":
        """Build from a flat row-major sequence split into rows of *cols*."""
        values = list(values)
        if cols < 1 or not values or len(values) % cols:
            raise ShapeMismatch(
                f"{len(values)} values cannot be split into rows of {cols}."
            )
        return cls._wrap(np.reshape(values, (-1, cols)))

    @classmethod
    def from_col_vec(cls, values) -> "Matrix":
        return cls.from_vec(1, values)

    @classmethod
    def from_text(cls, text: str) -> "Matrix":
        """Parse the MATLAB form ``[a,b;c,d]``."""
        body = text.strip()
        if not (body.startswith("[") and body.endswith("]")):
            raise ValueError(f"Matrix text must be enclosed in brackets: {text!r}")
        rows = []
        for chunk in body[1:-1].split(";"):
            try:
                rows.append([float(v) for v in chunk.split(",")])
            except ValueError as e:
                raise ValueError(f"Invalid matrix element in {text!r}: {e}") from e
        return cls.from_rows(rows)

    def copy(self) -> "Matrix":
        return Matrix._wrap(self._data)

    # ── Shape and element access ────────────────────────────────────────

    @property
    def rows(self) -> int:
        return self._data.shape[0]

    @property
    def cols(self) -> int:
        return self._data.shape[1]

    @property
    def shape(self) -> tuple:
        return self._data.shape

    def _check_row(self, r: int) -> None:
        if not 0 <= r < self.rows:
            raise OutOfRange(f"Row index {r} out of range for {self.rows} rows.")

    def _check_col(self, c: int) -> None:
        if not 0 <= c < self.cols:
            raise OutOfRange(f"Column index {c} out of range for {self.cols} columns.")

    def get(self, i: int, j: int) -> float:
        self._check_row(i)
        self._check_col(j)
        return float(self._data[i, j])

    def set(self, i: int, j: int, value: float) -> bool:
        self._check_row(i)
        self._check_col(j)
        self._data[i, j] = value
        return True

    def __getitem__(self, key):
        i, j = key
        return self.get(i, j)

    def __setitem__(self, key, value):
        i, j = key
        self.set(i, j, value)

    # ── In-place row operations ─────────────────────────────────────────

    def row_scale(self, r: int, s: float) -> None:
        self._check_row(r)
        self._data[r] *= s

    def scale(self, s: float) -> None:
        self._data *= s

    def row_add(self, r1: int, r2: int) -> None:
        """``row[r2] += row[r1]``"""
        self._check_row(r1)
        self._check_row(r2)
        self._data[r2] += self._data[r1]

    def scaled_row_add(self, r1: int, r2: int, s: float) -> None:
        """``row[r2] += s * row[r1]``"""
        self._check_row(r1)
        self._check_row(r2)
        self._data[r2] += s * self._data[r1]

    def row_swap(self, r1: int, r2: int) -> None:
        self._check_row(r1)
        self._check_row(r2)
        if r1 != r2:
            self._data[[r1, r2]] = self._data[[r2, r1]]

    # ── Derived matrices ────────────────────────────────────────────────

    def multiply(self, other: "Matrix") -> "Matrix":
        if self.cols != other.rows:
            raise ShapeMismatch(
                f"Cannot multiply {self.rows}x{self.cols} by {other.rows}x{other.cols}."
            )
        return Matrix._wrap(self._data @ other._data)

    def augment(self, other: "Matrix") -> "Matrix":
        if self.rows != other.rows:
            raise ShapeMismatch(
                f"Cannot augment a matrix with {self.rows} rows by one with {other.rows}."
            )
        return Matrix._wrap(np.hstack([self._data, other._data]))

    def subset(self, r1: int, c1: int, r2: int, c2: int) -> "Matrix":
        """Copy of rows ``r1..r2`` and columns ``c1..c2``, both inclusive."""
        self._check_row(r1)
        self._check_row(r2)
        self._check_col(c1)
        self._check_col(c2)
        if r1 > r2 or c1 > c2:
            raise ShapeMismatch(f"Empty slice [{r1}..{r2}, {c1}..{c2}].")
        return Matrix._wrap(self._data[r1:r2 + 1, c1:c2 + 1])

    def trace(self) -> float:
        """Sum of the diagonal; NaN for a non-square matrix."""
        if self.rows != self.cols:
            return float("nan")
        return float(np.trace(self._data))

    def transpose(self) -> "Matrix":
        return Matrix._wrap(self._data.T)

    # ── Inversion ───────────────────────────────────────────────────────

    def _gauss_jordan(self) -> tuple:
        """Return ``(status, inverse)``; *inverse* is None unless OK."""
        n = self.rows
        a = self._data
        if not np.all(np.isfinite(a)):
            return InversionStatus.UNKNOWN_ERROR, None
        if n == 1:
            if a[0, 0] == 0:
                return InversionStatus.SINGULAR_VALUE_WAS_ZERO, None
            return InversionStatus.OK, Matrix._wrap([[1.0 / a[0, 0]]])
        if not np.all(a.any(axis=1)) or not np.all(a.any(axis=0)):
            return InversionStatus.DETERMINANT_WAS_ZERO, None

        work = self.augment(Matrix.identity(n))
        w = work._data
        for k in range(n):
            r = k + int(np.argmax(np.abs(w[k:, k])))
            if w[r, k] == 0:
                left = w[:, :n] == 0
                if left[:, k].all() or left[k:].all(axis=1).any():
                    return InversionStatus.DETERMINANT_WAS_ZERO, None
                return InversionStatus.ZERO_DURING_INVERSION, None
            work.row_swap(k, r)
            work.row_scale(k, 1.0 / w[k, k])
            for i in range(n):
                if i != k and w[i, k] != 0:
                    work.scaled_row_add(k, i, -w[i, k])

        inverse = work.subset(0, n, n - 1, 2 * n - 1)
        if not np.all(np.isfinite(inverse._data)):
            return InversionStatus.UNKNOWN_ERROR, None
        return InversionStatus.OK, inverse

    def try_invert(self) -> InversionStatus:
        """Invert in place and report the outcome.

        The matrix is only overwritten when the status is OK.
        """
        if self.rows != self.cols:
            raise ShapeMismatch(f"Only square matrices can be inverted, got {self.rows}x{self.cols}.")
        status, inverse = self._gauss_jordan()
        if status is InversionStatus.OK:
            self._data = inverse._data
        else:
            logger.debug("Inversion of %dx%d matrix failed: %s", self.rows, self.cols, status.name)
        return status

    def invert(self) -> None:
        status = self.try_invert()
        if status is not InversionStatus.OK:
            raise MatrixInversionError(status)

    def inverse(self) -> "Matrix":
        result = self.copy()
        result.invert()
        return result

    # ── Conversion and comparison ───────────────────────────────────────

    def to_list(self) -> list:
        return self._data.tolist()

    def to_numpy(self) -> np.ndarray:
        return self._data.copy()

    def allclose(self, other: "Matrix", rtol: float = 1e-9, atol: float = 1e-12) -> bool:
        if self.shape != other.shape:
            return False
        return bool(np.allclose(self._data, other._data, rtol=rtol, atol=atol))

    def __eq__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self._data, other._data))

    __hash__ = None

    def __str__(self) -> str:
        return "[" + ";".join(",".join(_fmt(v) for v in row) for row in self._data) + "]"

    def __repr__(self) -> str:
        return f"Matrix.from_text({str(self)!r})"

    # ── Operators ───────────────────────────────────────────────────────

    def _same_shape(self, other: "Matrix", verb: str) -> None:
        if self.shape != other.shape:
            raise ShapeMismatch(
                f"Matrices being {verb} must have the same shape: "
                f"{self.rows}x{self.cols} vs {other.rows}x{other.cols}."
            )

    def __add__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        self._same_shape(other, "added")
        return Matrix._wrap(self._data + other._data)

    def __sub__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        self._same_shape(other, "subtracted")
        return Matrix._wrap(self._data - other._data)

    def __matmul__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.multiply(other)

    def __mul__(self, other):
        if isinstance(other, Matrix):
            return self.multiply(other)
        if isinstance(other, numbers.Real):
            result = self.copy()
            result.scale(other)
            return result
        return NotImplemented

    def __rmul__(self, other):
        if isinstance(other, numbers.Real):
            return self * other
        return NotImplemented

    def __or__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.augment(other)
