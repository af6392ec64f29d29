"""Single-equation root finding.

Solves an equation with exactly one free variable. When the residual
changes sign inside ``[lower, upper]`` Brent's method is used on the
bracket; otherwise a damped Newton-Raphson iteration runs from the guess,
clipped to the bounds.
"""

import logging
import math
import sys

from scipy.optimize import brentq

from eqsolve.errors import (
    EvaluationError, InvalidArgument, IterLimitExceeded, NoFreeVariables,
    NoRootFound, TooManyFreeVariables,
)
from eqsolve.expression import Equation, parse_equation
from eqsolve.formatting import format_assignment
from eqsolve.newton import difference_point

logger = logging.getLogger(__name__)

_EPS = sys.float_info.epsilon
_XTOL = sys.float_info.min
_MAX_HALVINGS = 10


def check_hint(guess: float, lower: float, upper: float) -> None:
    """Require ``lower <= guess <= upper`` with no NaN."""
    if any(math.isnan(v) for v in (guess, lower, upper)):
        raise InvalidArgument("Guess and bounds must not be NaN.")
    if not lower <= guess <= upper:
        raise InvalidArgument(
            f"Guess must lie within its bounds: {lower} <= {guess} <= {upper} is false."
        )


def check_limits(margin: float, iter_limit: int) -> None:
    if not margin > 0:
        raise InvalidArgument(f"Margin must be positive, got {margin}.")
    if iter_limit <= 0:
        raise InvalidArgument(f"Iteration limit must be positive, got {iter_limit}.")


class _Budget:
    """Counts residual evaluations and enforces the iteration limit."""

    def __init__(self, fn, limit: int, text: str):
        self.fn = fn
        self.limit = limit
        self.text = text
        self.calls = 0

    def __call__(self, x: float) -> float:
        if self.calls >= self.limit:
            raise IterLimitExceeded(
                f"No root of '{self.text}' within {self.limit} evaluations."
            )
        self.calls += 1
        y = self.fn([x])
        if math.isnan(y):
            raise EvaluationError(f"Residual of '{self.text}' is NaN at {x!r}.")
        return y


# ── Brent ───────────────────────────────────────────────────────────────

class _WithinMargin(Exception):
    def __init__(self, x: float):
        self.x = x


def _brent(f, a: float, b: float, margin: float) -> float:
    """Brent's method on a sign-changing bracket ``[a, b]``."""
    def g(x):
        y = f(x)
        if abs(y) <= margin:
            raise _WithinMargin(x)
        return y

    try:
        root, info = brentq(g, a, b, xtol=_XTOL, rtol=4 * _EPS, maxiter=f.limit,
                            full_output=True, disp=False)
    except _WithinMargin as hit:
        return hit.x
    if not info.converged:
        raise IterLimitExceeded(
            f"Brent's method on [{a!r}, {b!r}] stopped after {info.iterations} "
            f"iterations: {info.flag}."
        )
    raise NoRootFound(
        f"Bracket collapsed at {root!r} with residual above margin "
        f"(the residual may be discontinuous there)."
    )


# ── Newton ──────────────────────────────────────────────────────────────

def _newton(f, x: float, fx: float, lower: float, upper: float, margin: float) -> float:
    """Damped Newton iteration kept inside ``[lower, upper]``."""
    while abs(fx) > margin:
        xh = difference_point(x, lower, upper)
        if xh == x:
            raise NoRootFound(f"Interval [{lower!r}, {upper!r}] is a single point; no slope to follow.")
        slope = (f(xh) - fx) / (xh - x)
        if slope == 0 or not math.isfinite(slope):
            raise NoRootFound(f"Derivative vanished at {x!r}; no root reachable from here.")
        step = -fx / slope
        lam = 1.0
        for _ in range(_MAX_HALVINGS):
            trial = min(max(x + lam * step, lower), upper)
            if trial == x:
                raise NoRootFound(f"Newton step is pinned at the bound {x!r}.")
            try:
                f_trial = f(trial)
            except EvaluationError:
                lam *= 0.5
                continue
            if abs(f_trial) < abs(fx):
                break
            lam *= 0.5
        else:
            raise NoRootFound(f"Residual stopped decreasing near {x!r}.")
        x, fx = trial, f_trial
    return x


# ── Public API ──────────────────────────────────────────────────────────

def find_root(equation, context, guess: float, lower: float, upper: float,
              margin: float, iter_limit: int) -> tuple:
    """Solve *equation* for its single free variable.

    Parameters
    ----------
    equation : str or Equation
        ``LHS = RHS`` text, or an already parsed equation.
    context : Context or mapping
        Values for every identifier except the unknown.
    guess, lower, upper : float
        Initial estimate and search bounds, ``lower <= guess <= upper``.
    margin : float
        Required ``|residual|`` at the returned value.
    iter_limit : int
        Maximum number of residual evaluations.

    Returns
    -------
    tuple
        ``(name, value)``.
    """
    check_hint(guess, lower, upper)
    check_limits(margin, iter_limit)
    if not isinstance(equation, Equation):
        equation = parse_equation(equation)

    unknowns = equation.unknowns(context)
    if not unknowns:
        raise NoFreeVariables(f"'{equation.text}' has no free variable to solve for.")
    if len(unknowns) > 1:
        raise TooManyFreeVariables(
            f"'{equation.text}' has {len(unknowns)} free variables "
            f"({', '.join(unknowns)}); exactly one is required."
        )
    name = unknowns[0]
    f = _Budget(equation.residual_function(context, [name]), iter_limit, equation.text)

    fg = f(guess)
    if abs(fg) <= margin:
        return name, guess

    if math.isfinite(lower) and math.isfinite(upper):
        fa = f(lower)
        if abs(fa) <= margin:
            return name, lower
        fb = f(upper)
        if abs(fb) <= margin:
            return name, upper
        if (fa < 0) != (fg < 0):
            value = _brent(f, lower, guess, margin)
        elif (fg < 0) != (fb < 0):
            value = _brent(f, guess, upper, margin)
        else:
            logger.debug("No sign change on [%r, %r]; falling back to Newton", lower, upper)
            value = _newton(f, guess, fg, lower, upper, margin)
    else:
        value = _newton(f, guess, fg, lower, upper, margin)

    logger.info("Solved '%s' for %s = %r in %d evaluations",
                equation.text, name, value, f.calls)
    return name, value


def solve_equation(equation, context, guess: float, lower: float, upper: float,
                   margin: float, iter_limit: int) -> str:
    """Like :func:`find_root` but returns ``"name = value"``."""
    name, value = find_root(equation, context, guess, lower, upper, margin, iter_limit)
    return format_assignment(name, value)
