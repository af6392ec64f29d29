"""Tests for Matrix construction, row operations and algebra."""

import math

import numpy as np
import pytest

from densematrix import Matrix, OutOfRange, ShapeMismatch


def _m(text: str) -> Matrix:
    return Matrix.from_text(text)


# ── Construction ────────────────────────────────────────────────────────

class TestConstruction:
    def test_zero_matrix(self):
        m = Matrix(2, 3)
        assert m.shape == (2, 3)
        assert m.to_list() == [[0.0] * 3] * 2

    def test_identity(self):
        assert Matrix.identity(3).to_list() == np.eye(3).tolist()

    def test_from_vec_and_col_vec(self):
        assert Matrix.from_vec(2, [1, 2, 3, 4]) == _m("[1,2;3,4]")
        assert Matrix.from_col_vec([1, 2, 3]).shape == (3, 1)

    def test_from_text_round_trips_through_str(self):
        m = _m("[1, 2.5, -3; 4e2, 0, 0.125]")
        assert str(m) == "[1,2.5,-3;400,0,0.125]"
        assert Matrix.from_text(str(m)) == m

    @pytest.mark.parametrize(
        "factory",
        [
            lambda: Matrix(0, 2),
            lambda: Matrix.identity(0),
            lambda: Matrix.from_rows([[1, 2], [3]]),
            lambda: Matrix.from_rows([]),
            lambda: Matrix.from_vec(3, [1, 2, 3, 4]),
            lambda: Matrix.from_text("[1,2;3]"),
        ],
    )
    def test_bad_shapes(self, factory):
        with pytest.raises(ShapeMismatch):
            factory()

    def test_from_text_rejects_garbage(self):
        with pytest.raises(ValueError):
            Matrix.from_text("1,2;3,4")
        with pytest.raises(ValueError):
            Matrix.from_text("[1,a]")


# ── Element access ──────────────────────────────────────────────────────

def test_get_and_set_are_bounds_checked() -> None:
    m = Matrix(2, 2)
    assert m.set(1, 0, 7.5)
    assert m.get(1, 0) == 7.5
    m[0, 1] = -1
    assert m[0, 1] == -1.0
    for i, j in [(2, 0), (0, 2), (-1, 0)]:
        with pytest.raises(OutOfRange):
            m.get(i, j)
        with pytest.raises(IndexError):
            m[i, j] = 1.0


# ── Row operations ──────────────────────────────────────────────────────

def test_row_operations_in_place() -> None:
    m = _m("[1,2;3,4]")
    m.row_scale(0, 2)
    assert m == _m("[2,4;3,4]")
    m.row_add(0, 1)
    assert m == _m("[2,4;5,8]")
    m.scaled_row_add(0, 1, -2.5)
    assert m == _m("[2,4;0,-2]")
    m.row_swap(0, 1)
    assert m == _m("[0,-2;2,4]")
    with pytest.raises(OutOfRange):
        m.row_add(0, 2)


def test_scale_composes() -> None:
    a = _m("[1,-2;3.5,4]")
    b = a.copy()
    a.scale(3.0)
    a.scale(-0.5)
    b.scale(3.0 * -0.5)
    assert a.allclose(b)


# ── Derived matrices ────────────────────────────────────────────────────

def test_multiply_shapes_and_values() -> None:
    a = _m("[1,2,3;4,5,6]")
    b = _m("[7,8;9,10;11,12]")
    assert a.multiply(b) == _m("[58,64;139,154]")
    assert (a @ b) == (a * b)
    with pytest.raises(ShapeMismatch):
        a.multiply(a)


def test_identity_is_left_neutral() -> None:
    rng = np.random.default_rng(7)
    for k in (1, 2, 5):
        m = Matrix.from_rows(rng.normal(size=(3, k)))
        assert Matrix.identity(3) @ m == m


def test_multiplication_is_associative() -> None:
    rng = np.random.default_rng(11)
    a = Matrix.from_rows(rng.normal(size=(2, 3)))
    b = Matrix.from_rows(rng.normal(size=(3, 4)))
    c = Matrix.from_rows(rng.normal(size=(4, 2)))
    assert ((a @ b) @ c).allclose(a @ (b @ c))


def test_augment() -> None:
    a = _m("[1;2]")
    b = _m("[3,4;5,6]")
    assert (a | b) == _m("[1,3,4;2,5,6]")
    with pytest.raises(ShapeMismatch):
        a.augment(_m("[1,2,3]"))


def test_subset() -> None:
    m = _m("[1,2,3;4,5,6;7,8,9]")
    assert m.subset(1, 1, 2, 2) == _m("[5,6;8,9]")
    assert m.subset(0, 2, 0, 2) == _m("[3]")
    with pytest.raises(OutOfRange):
        m.subset(0, 0, 3, 1)
    with pytest.raises(ShapeMismatch):
        m.subset(2, 0, 1, 1)


def test_trace() -> None:
    assert _m("[1,2;3,4]").trace() == 5.0
    assert math.isnan(_m("[1,2,3;4,5,6]").trace())


def test_transpose_is_an_involution() -> None:
    m = _m("[1,2,3;4,5,6]")
    t = m.transpose()
    assert t == _m("[1,4;2,5;3,6]")
    assert t.transpose() == m


def test_elementwise_operators() -> None:
    a = _m("[1,2;3,4]")
    b = _m("[4,3;2,1]")
    assert a + b == _m("[5,5;5,5]")
    assert a - b == _m("[-3,-1;1,3]")
    assert 2 * a == _m("[2,4;6,8]")
    assert a * 0.5 == _m("[0.5,1;1.5,2]")
    assert a == _m("[1,2;3,4]")
    with pytest.raises(ShapeMismatch):
        a + _m("[1,2]")


def test_copies_are_independent() -> None:
    a = _m("[1,2;3,4]")
    b = a.copy()
    b[0, 0] = 99
    arr = a.to_numpy()
    arr[0, 0] = 42
    assert a[0, 0] == 1.0
