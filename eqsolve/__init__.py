"""Textual equation solving: single unknowns, square systems and worksheets."""

from eqsolve.context import Context
from eqsolve.errors import (
    BuilderSpent, ConstraintError, ConvergenceError, DivisionByZero,
    EvaluationError, InvalidArgument, IterLimitExceeded, NoFreeVariables,
    NoRootFound, NotConstrained, OutOfBounds, OverConstrained, ParseError,
    SingularJacobian, SolverError, SystemSpent, TooManyFreeVariables,
    UnboundVariable,
)
from eqsolve.expression import Equation, Expression, parse_equation
from eqsolve.formatting import format_solution, parse_solution
from eqsolve.single import find_root, solve_equation
from eqsolve.system import ConstrainedSystem, ConstraintStatus, SystemBuilder, VariableHint
from eqsolve.worksheet import WorksheetResult, solve_worksheet

__version__ = "1.0.0"

__all__ = [
    "Context", "Equation", "Expression", "parse_equation",
    "find_root", "solve_equation",
    "SystemBuilder", "ConstrainedSystem", "ConstraintStatus", "VariableHint",
    "solve_worksheet", "WorksheetResult",
    "format_solution", "parse_solution",
    "SolverError", "ParseError", "InvalidArgument", "EvaluationError",
    "DivisionByZero", "UnboundVariable", "ConstraintError",
    "TooManyFreeVariables", "NoFreeVariables", "NotConstrained",
    "OverConstrained", "ConvergenceError", "IterLimitExceeded", "NoRootFound",
    "SingularJacobian", "OutOfBounds", "BuilderSpent", "SystemSpent",
]
