"""Exception hierarchy for the equation solver.

Every failure the solver reports derives from :class:`SolverError`.
Classes also inherit from the closest built-in exception so callers that
only know about ``ValueError`` or ``ArithmeticError`` still catch them.
"""


class SolverError(Exception):
    """Base class for all equation-solver failures."""


# ── Parsing / arguments ─────────────────────────────────────────────────

class ParseError(SolverError, ValueError):
    """Malformed expression, unknown function, or mismatched parentheses."""


class InvalidArgument(SolverError, ValueError):
    """A numeric argument violates the solver's preconditions."""


# ── Evaluation ──────────────────────────────────────────────────────────

class EvaluationError(SolverError, ArithmeticError):
    """An expression could not be evaluated to a real number."""


class DivisionByZero(EvaluationError):
    pass


class UnboundVariable(EvaluationError):
    """Raised when an identifier has no value in the overlay or context."""

    def __init__(self, names):
        self.names = list(names)
        super().__init__(f"No value bound for: {', '.join(self.names)}")


# ── Shape / constraint ──────────────────────────────────────────────────

class ConstraintError(SolverError):
    """The number of equations and unknowns does not match."""


class TooManyFreeVariables(ConstraintError):
    pass


class NoFreeVariables(ConstraintError):
    pass


class NotConstrained(ConstraintError):
    pass


class OverConstrained(NotConstrained):
    pass


# ── Numerical ───────────────────────────────────────────────────────────

class ConvergenceError(SolverError, RuntimeError):
    """A root finder stopped without meeting its margin."""


class IterLimitExceeded(ConvergenceError):
    pass


class NoRootFound(ConvergenceError):
    pass


class SingularJacobian(ConvergenceError):
    pass


class OutOfBounds(ConvergenceError):
    pass


# ── Lifecycle ───────────────────────────────────────────────────────────

class BuilderSpent(SolverError, RuntimeError):
    """The builder has already produced its constrained system."""


class SystemSpent(SolverError, RuntimeError):
    """The constrained system has already been solved."""
