"""Building and solving square systems of equations.

A :class:`SystemBuilder` accumulates equations and tracks whether the
number of equations matches the number of free variables they introduce.
Once it reports :attr:`ConstraintStatus.CONSTRAINED`, :meth:`build_system`
hands the equations over to a :class:`ConstrainedSystem`, which takes
per-variable search hints and solves with damped Newton-Raphson.

    builder = SystemBuilder("x + y = 10", Context.empty())
    builder.try_constrain_with("x - y = 2")      # CONSTRAINED
    system = builder.build_system()
    system.solve(1e-9, 50)                        # {'x': 6.0, 'y': 4.0}
"""

import enum
import logging
import math
from dataclasses import dataclass

import numpy as np

from eqsolve.errors import (
    BuilderSpent, EvaluationError, NoFreeVariables, NotConstrained,
    OverConstrained, ParseError, SystemSpent,
)
from eqsolve.expression import Equation, parse_equation
from eqsolve.formatting import format_solution
from eqsolve.newton import newton_raphson_system
from eqsolve.single import check_hint, check_limits

logger = logging.getLogger(__name__)


class ConstraintStatus(enum.IntEnum):
    ERROR = -1
    UNDER = 0
    CONSTRAINED = 1


@dataclass
class VariableHint:
    """Initial estimate and search box for one unknown."""
    guess: float = 1.0
    lower: float = -math.inf
    upper: float = math.inf


def _status_for(m: int, n: int) -> ConstraintStatus:
    if m < n:
        return ConstraintStatus.UNDER
    if m == n:
        return ConstraintStatus.CONSTRAINED
    return ConstraintStatus.ERROR


# ── Builder ─────────────────────────────────────────────────────────────

class SystemBuilder:
    """Accumulates equations until they constrain their unknowns.

    The context is borrowed: values are read when equations are added and
    again when the built system is solved.
    """

    def __init__(self, equation, context):
        self._context = context
        first = equation if isinstance(equation, Equation) else parse_equation(equation)
        unknowns = first.unknowns(context)
        if not unknowns:
            raise NoFreeVariables(
                f"Cannot start a system from '{first.text}': it has no free variables."
            )
        self._equations = [first]
        self._variables = list(unknowns)
        self._status = _status_for(1, len(unknowns))
        self._spent = False

    # ── Introspection ───────────────────────────────────────────────────

    @property
    def equations(self) -> list:
        return [eq.text for eq in self._equations]

    @property
    def variables(self) -> list:
        return list(self._variables)

    def is_fully_constrained(self) -> ConstraintStatus:
        return self._status

    def __repr__(self) -> str:
        return (f"SystemBuilder(status={self._status.name}, "
                f"equations={len(self._equations)}, variables={self._variables})")

    # ── Mutation ────────────────────────────────────────────────────────

    def _assess(self, equation) -> tuple:
        """Return ``(parsed, new_variables, next_status)`` without mutating."""
        if self._status is ConstraintStatus.ERROR:
            return None, [], ConstraintStatus.ERROR
        try:
            parsed = equation if isinstance(equation, Equation) else parse_equation(equation)
        except ParseError as e:
            logger.warning("Rejected equation %r: %s", equation, e)
            return None, [], ConstraintStatus.ERROR

        if not parsed.unknowns(self._context):
            # Identity or contradiction; it constrains nothing.
            try:
                satisfied = parsed.is_satisfied(self._context)
            except EvaluationError as e:
                logger.warning("Could not check '%s': %s", parsed.text, e)
                satisfied = False
            if satisfied:
                return parsed, [], self._status
            return parsed, [], ConstraintStatus.ERROR

        if self._status is ConstraintStatus.CONSTRAINED:
            return parsed, [], ConstraintStatus.ERROR

        new_vars = parsed.unknowns(self._context, self._variables)
        m = len(self._equations) + 1
        n = len(self._variables) + len(new_vars)
        return parsed, new_vars, _status_for(m, n)

    def would_constrain(self, equation) -> ConstraintStatus:
        """Status that :meth:`try_constrain_with` would move to."""
        return self._assess(equation)[2]

    def try_constrain_with(self, equation) -> ConstraintStatus:
        """Add *equation* and return the updated constraint status."""
        if self._spent:
            raise BuilderSpent("This builder has already built its system.")
        parsed, new_vars, status = self._assess(equation)
        if parsed is not None and parsed.unknowns(self._context):
            self._equations.append(parsed)
            self._variables.extend(new_vars)
        if status is ConstraintStatus.ERROR and self._status is not ConstraintStatus.ERROR:
            logger.warning("System became over-constrained with %r", equation)
        self._status = status
        return status

    def build_system(self) -> "ConstrainedSystem":
        """Consume the builder; only a CONSTRAINED builder may be built."""
        if self._spent:
            raise BuilderSpent("This builder has already built its system.")
        if self._status is ConstraintStatus.ERROR:
            raise OverConstrained(
                f"System is over-constrained: {len(self._equations)} equations "
                f"for {len(self._variables)} unknowns."
            )
        if self._status is not ConstraintStatus.CONSTRAINED:
            raise NotConstrained(
                f"System is under-constrained: {len(self._equations)} equations "
                f"for {len(self._variables)} unknowns ({', '.join(self._variables)})."
            )
        self._spent = True
        equations, self._equations = self._equations, []
        return ConstrainedSystem(equations, self._variables, self._context)


# ── Constrained system ──────────────────────────────────────────────────

class ConstrainedSystem:
    """A square system ready to be solved once."""

    def __init__(self, equations, variables, context):
        self._equations = list(equations)
        self._variables = list(variables)
        self._context = context
        self._hints = {name: VariableHint() for name in self._variables}
        self._spent = False

    @property
    def variables(self) -> list:
        return list(self._variables)

    @property
    def equations(self) -> list:
        return [eq.text for eq in self._equations]

    def hint(self, name: str) -> VariableHint:
        return self._hints[name]

    def specify_variable(self, name: str, guess: float, lower: float, upper: float) -> bool:
        """Set the search hint for *name*.

        Returns ``False`` (and changes nothing) when *name* is not an
        unknown of this system.
        """
        check_hint(guess, lower, upper)
        if name not in self._hints:
            return False
        self._hints[name] = VariableHint(float(guess), float(lower), float(upper))
        return True

    def residuals(self):
        """Vector residual ``F(x)`` in equation order, variable order."""
        functions = [eq.residual_function(self._context, self._variables)
                     for eq in self._equations]

        def F(x):
            return np.array([f(x) for f in functions], dtype=np.float64)

        return F

    def solve(self, margin: float, iter_limit: int) -> dict:
        """Solve and return ``{name: value}`` in discovery order."""
        if self._spent:
            raise SystemSpent("This system has already been solved.")
        check_limits(margin, iter_limit)
        self._spent = True

        hints = [self._hints[name] for name in self._variables]
        x = newton_raphson_system(
            self.residuals(),
            [h.guess for h in hints],
            [h.lower for h in hints],
            [h.upper for h in hints],
            margin,
            iter_limit,
        )
        solution = {name: float(v) for name, v in zip(self._variables, x)}
        logger.info("Solved system of %d equations: %s", len(self._equations), solution)
        return solution

    def solve_system(self, margin: float, iter_limit: int, delimiter: str = "\n") -> str:
        """Like :meth:`solve` but returns ``name = value`` lines."""
        return format_solution(self.solve(margin, iter_limit), delimiter)
