"""Tests for Gauss-Jordan inversion and its failure statuses."""

import math

import numpy as np
import pytest

from densematrix import InversionStatus, Matrix, MatrixInversionError, ShapeMismatch


def test_two_by_two_inverse() -> None:
    m = Matrix.from_rows([[4, 7], [2, 6]])
    assert m.try_invert() is InversionStatus.OK
    expected = [[0.6, -0.7], [-0.2, 0.4]]
    for i in range(2):
        for j in range(2):
            assert abs(m[i, j] - expected[i][j]) <= 1e-12


def test_product_with_inverse_is_identity() -> None:
    rng = np.random.default_rng(3)
    for n in (1, 3, 6):
        a = Matrix.from_rows(rng.uniform(-1.0, 1.0, size=(n, n)) + 2 * n * np.eye(n))
        norm = np.max(np.abs(a.to_numpy()))
        product = (a @ a.inverse()).to_numpy()
        assert np.max(np.abs(product - np.eye(n))) <= 10 * n * np.finfo(float).eps * max(norm, 1.0)


@pytest.mark.parametrize(
    "rows,expected",
    [
        ([[1e10, 0], [0, 1e-7]], [[1e-10, 0], [0, 1e7]]),
        ([[1.0, 0], [0, 1e-16]], [[1.0, 0], [0, 1e16]]),
        ([[1e-12, 0, 0], [0, 1, 0], [0, 0, 1e12]], [[1e12, 0, 0], [0, 1, 0], [0, 0, 1e-12]]),
        ([[1e8, 1], [0, 1e-8]], [[1e-8, -1], [0, 1e8]]),
        ([[1e-300]], [[1e300]]),
    ],
)
def test_badly_scaled_matrices_invert(rows, expected) -> None:
    a = Matrix.from_rows(rows)
    inv = a.copy()
    assert inv.try_invert() is InversionStatus.OK
    np.testing.assert_allclose(inv.to_numpy(), expected, rtol=1e-12, atol=0)

    n = a.rows
    scale = np.max(np.abs(a.to_numpy())) * np.max(np.abs(inv.to_numpy()))
    residual = np.max(np.abs((a @ inv).to_numpy() - np.eye(n)))
    assert residual <= 10 * n * np.finfo(float).eps * scale


def test_pivoting_handles_zero_leading_entry() -> None:
    m = Matrix.from_rows([[0, 1], [1, 0]])
    m.invert()
    assert m == Matrix.from_rows([[0, 1], [1, 0]])


def test_inverse_leaves_original_untouched() -> None:
    m = Matrix.from_rows([[2, 0], [0, 4]])
    inv = m.inverse()
    assert inv == Matrix.from_rows([[0.5, 0], [0, 0.25]])
    assert m == Matrix.from_rows([[2, 0], [0, 4]])


@pytest.mark.parametrize(
    "rows,status",
    [
        ([[0]], InversionStatus.SINGULAR_VALUE_WAS_ZERO),
        ([[0, 0], [1, 2]], InversionStatus.DETERMINANT_WAS_ZERO),
        ([[0, 1], [0, 2]], InversionStatus.DETERMINANT_WAS_ZERO),
        ([[1, 2], [2, 4]], InversionStatus.DETERMINANT_WAS_ZERO),
        ([[1, 1, 1], [1, 1, 2], [2, 2, 5]], InversionStatus.ZERO_DURING_INVERSION),
        ([[math.nan, 1], [1, 1]], InversionStatus.UNKNOWN_ERROR),
        ([[math.inf]], InversionStatus.UNKNOWN_ERROR),
    ],
)
def test_failure_statuses(rows, status) -> None:
    m = Matrix.from_rows(rows)
    before = m.to_list()
    assert m.try_invert() is status
    assert str(m) == str(Matrix.from_rows(before))


def test_invert_raises_with_status() -> None:
    m = Matrix.from_rows([[1, 2], [2, 4]])
    with pytest.raises(MatrixInversionError) as info:
        m.invert()
    assert info.value.status is InversionStatus.DETERMINANT_WAS_ZERO
    assert isinstance(info.value, ArithmeticError)


def test_non_square_cannot_be_inverted() -> None:
    with pytest.raises(ShapeMismatch):
        Matrix(2, 3).try_invert()
