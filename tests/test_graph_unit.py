import math

import numpy as np
import pytest
from matplotlib.figure import Figure

from eqsolve import graph
from eqsolve.context import Context
from eqsolve.errors import TooManyFreeVariables


def test_sample_residual_values() -> None:
    name, xs, ys = graph.sample_residual("x^2 - 4 = 0", Context.empty(), -3.0, 3.0, points=7)
    assert name == "x"
    np.testing.assert_allclose(xs, [-3, -2, -1, 0, 1, 2, 3])
    np.testing.assert_allclose(ys, [5, 0, -3, -4, -3, 0, 5])


def test_sample_residual_marks_failures_as_nan() -> None:
    _, xs, ys = graph.sample_residual("sqrt(x) = 1", Context.empty(), -1.0, 1.0, points=3)
    assert math.isnan(ys[0])
    assert ys[1] == -1.0
    assert ys[2] == 0.0


def test_sign_changes() -> None:
    _, xs, ys = graph.sample_residual("x = 0.3", Context.empty(), 0.0, 1.0, points=5)
    assert graph.sign_changes(xs, ys) == [(0.25, 0.5)]


def test_build_residual_figure() -> None:
    fig = graph.build_residual_figure("sin(x) = 0", Context.default(), 3.0, 4.0, root=math.pi)
    assert isinstance(fig, Figure)
    ax = fig.axes[0]
    assert ax.get_xlabel() == "x"
    assert "Root: x" in ax.get_title()


def test_plot_requires_single_unknown_and_finite_interval() -> None:
    with pytest.raises(TooManyFreeVariables):
        graph.sample_residual("x + y = 1", Context.empty(), 0.0, 1.0)
    with pytest.raises(ValueError):
        graph.sample_residual("x = 1", Context.empty(), 0.0, math.inf)
    with pytest.raises(ValueError):
        graph.sample_residual("x = 1", Context.empty(), 2.0, 1.0)
