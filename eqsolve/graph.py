"""
Residual plots for single-unknown equations.

Produces a dark-themed matplotlib Figure of ``LHS - RHS`` over a search
interval, which makes it easy to see whether (and where) the residual
changes sign before handing the equation to the root finder.
"""

import numpy as np

from eqsolve.errors import EvaluationError, NoFreeVariables, TooManyFreeVariables
from eqsolve.expression import Equation, parse_equation

# ── palette ────────────────────────────────────────────────────────────────
C_BG       = "#0f0f0f"
C_AX       = "#181818"
C_GRID     = "#252525"
C_TICK     = "#666666"
C_SPINE    = "#333333"
C_LINE1    = "#1a8cff"   # residual curve
C_BRACKET  = "#ff8c42"   # sign-change intervals
C_DOT      = "#4caf50"   # root marker
C_TEXT     = "#cccccc"


def _style_axes(ax, fig):
    fig.patch.set_facecolor(C_BG)
    ax.set_facecolor(C_AX)
    ax.tick_params(colors=C_TICK, labelsize=9)
    ax.xaxis.label.set_color(C_TEXT)
    ax.yaxis.label.set_color(C_TEXT)
    ax.title.set_color(C_TEXT)
    for spine in ax.spines.values():
        spine.set_edgecolor(C_SPINE)
    ax.grid(True, color=C_GRID, linewidth=0.8, linestyle="--", alpha=0.7)
    ax.axhline(0, color=C_SPINE, linewidth=0.8)


def _single_unknown(equation, context):
    if not isinstance(equation, Equation):
        equation = parse_equation(equation)
    unknowns = equation.unknowns(context)
    if not unknowns:
        raise NoFreeVariables(f"'{equation.text}' has no free variable to plot.")
    if len(unknowns) > 1:
        raise TooManyFreeVariables(
            f"'{equation.text}' has {len(unknowns)} free variables; only one can be plotted."
        )
    return equation, unknowns[0]


def sample_residual(equation, context, lower: float, upper: float, points: int = 400):
    """Return ``(name, xs, ys)``; ``ys`` is NaN where evaluation fails."""
    if not (np.isfinite(lower) and np.isfinite(upper)) or lower >= upper:
        raise ValueError(f"Plot interval must be finite and non-empty, got [{lower}, {upper}].")
    equation, name = _single_unknown(equation, context)
    f = equation.residual_function(context, [name])
    xs = np.linspace(lower, upper, points)
    ys = np.empty_like(xs)
    for i, x in enumerate(xs):
        try:
            ys[i] = f([x])
        except EvaluationError:
            ys[i] = np.nan
    return name, xs, ys


def sign_changes(xs: np.ndarray, ys: np.ndarray) -> list:
    """Sub-intervals ``(a, b)`` of the samples where the residual changes sign."""
    signs = np.sign(ys)
    brackets = []
    for i in range(len(xs) - 1):
        if signs[i] * signs[i + 1] < 0:
            brackets.append((float(xs[i]), float(xs[i + 1])))
    return brackets


def build_residual_figure(equation, context, lower: float, upper: float,
                          root: float = None, points: int = 400):
    """Plot the residual on ``[lower, upper]``, marking *root* if given."""
    from matplotlib.figure import Figure

    name, xs, ys = sample_residual(equation, context, lower, upper, points)
    text = equation.text if isinstance(equation, Equation) else equation

    fig = Figure(figsize=(7, 3.4), dpi=100)
    ax = fig.add_subplot(111)
    _style_axes(ax, fig)

    ax.plot(xs, ys, color=C_LINE1, linewidth=2, label=f"residual of {text}")
    for a, b in sign_changes(xs, ys):
        ax.axvspan(a, b, color=C_BRACKET, alpha=0.25)

    if root is not None:
        ax.scatter([root], [0.0], color=C_DOT, s=80, zorder=5,
                   label=f"Root: {name} = {root:g}")
        ax.axvline(root, color=C_DOT, linewidth=1, linestyle=":", alpha=0.6)
        ax.set_title(f"Root: {name} = {root:g}", color=C_TEXT, fontsize=10)

    ax.set_xlabel(name, color=C_TEXT)
    ax.set_ylabel("LHS - RHS", color=C_TEXT)
    ax.legend(fontsize=8, facecolor="#1e1e1e", edgecolor=C_SPINE, labelcolor=C_TEXT)
    fig.tight_layout(pad=1.2)
    return fig
