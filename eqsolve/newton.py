"""Damped multivariate Newton-Raphson with a numerical Jacobian.

Solves ``F(x) = 0`` for ``F: R^n -> R^n`` inside a box ``lower <= x <=
upper``. Trial steps are clipped to the box and halved while they fail to
reduce ``||F||_inf``.
"""

import logging

import numpy as np

from eqsolve.errors import (
    EvaluationError, IterLimitExceeded, OutOfBounds, SingularJacobian,
)

logger = logging.getLogger(__name__)

_REL_STEP = float(np.sqrt(np.finfo(np.float64).eps))
_ABS_STEP = 1e-8
_MAX_HALVINGS = 10


def _evaluate(F, x: np.ndarray) -> np.ndarray:
    y = np.asarray(F(x), dtype=np.float64)
    if np.any(np.isnan(y)):
        raise EvaluationError(f"Residual vector contains NaN at x = {x.tolist()}.")
    return y


def difference_point(x: float, lower: float, upper: float) -> float:
    """Coordinate for a one-sided difference at *x* that stays in ``[lower, upper]``.

    The step is ``h = max(sqrt(eps)·|x|, 1e-8)``, forwards when that fits,
    backwards when it does not, and otherwise shortened towards whichever
    bound has more room. Returns *x* itself when the interval is a point.
    """
    h = max(_REL_STEP * abs(x), _ABS_STEP)
    if x + h <= upper:
        return x + h
    if x - h >= lower:
        return x - h
    return upper if upper - x >= x - lower else lower


def jacobian(F, x: np.ndarray, fx: np.ndarray, lower: np.ndarray, upper: np.ndarray) -> np.ndarray:
    """One-sided difference Jacobian of *F* at *x*, sampled inside the box.

    A coordinate pinned by ``lower == upper`` gets a zero column.
    """
    n = x.size
    J = np.zeros((fx.size, n), dtype=np.float64)
    for j in range(n):
        xh = x.copy()
        xh[j] = difference_point(float(x[j]), float(lower[j]), float(upper[j]))
        h = xh[j] - x[j]
        if h != 0:
            J[:, j] = (_evaluate(F, xh) - fx) / h
    return J


def newton_raphson_system(F, guess, lower, upper, margin: float, iter_limit: int) -> np.ndarray:
    """Find ``x`` with ``||F(x)||_inf <= margin``.

    Parameters
    ----------
    F : callable
        Maps an ``(n,)`` array to the ``(n,)`` residual vector.
    guess, lower, upper : array_like
        Starting point and box bounds (``±inf`` allowed).
    margin : float
        Convergence tolerance on the infinity norm of the residual.
    iter_limit : int
        Maximum number of Newton iterations.

    Raises
    ------
    SingularJacobian, OutOfBounds, IterLimitExceeded, EvaluationError
    """
    lower = np.asarray(lower, dtype=np.float64)
    upper = np.asarray(upper, dtype=np.float64)
    x = np.clip(np.asarray(guess, dtype=np.float64), lower, upper)

    fx = _evaluate(F, x)
    norm = np.max(np.abs(fx)) if fx.size else 0.0
    for iteration in range(iter_limit):
        if norm <= margin:
            logger.debug("Newton converged after %d iterations (|F| = %.3e)", iteration, norm)
            return x

        J = jacobian(F, x, fx, lower, upper)
        if not np.all(np.isfinite(J)):
            raise SingularJacobian(f"Jacobian is not finite at x = {x.tolist()}.")
        try:
            dx = np.linalg.solve(J, -fx)
        except np.linalg.LinAlgError as e:
            raise SingularJacobian(f"Jacobian is singular at x = {x.tolist()}: {e}") from e
        if not np.all(np.isfinite(dx)):
            raise SingularJacobian(f"Newton step is not finite at x = {x.tolist()}.")

        lam = 1.0
        accepted = None
        moved = False
        for _ in range(_MAX_HALVINGS):
            trial = np.clip(x + lam * dx, lower, upper)
            if np.array_equal(trial, x):
                lam *= 0.5
                continue
            moved = True
            try:
                f_trial = _evaluate(F, trial)
            except EvaluationError:
                lam *= 0.5
                continue
            accepted = (trial, f_trial)
            if np.max(np.abs(f_trial)) < norm:
                break
            lam *= 0.5
        if not moved:
            raise OutOfBounds(
                f"Clipping to the bounds leaves x = {x.tolist()} unchanged; "
                f"the root appears to lie outside the search box."
            )
        if accepted is None:
            raise EvaluationError(f"Residuals could not be evaluated near x = {x.tolist()}.")

        x, fx = accepted
        norm = np.max(np.abs(fx))
        logger.debug("Newton iteration %d: |F| = %.3e", iteration + 1, norm)

    if norm <= margin:
        return x
    raise IterLimitExceeded(
        f"Newton-Raphson did not converge in {iter_limit} iterations "
        f"(|F| = {norm:.3e}, margin = {margin:.3e})."
    )
