"""Worksheet solver: many equations, solved piece by piece.

A worksheet is plain text, one statement per line::

    # comment
    const nine = 9
    keep x on [0, 100]
    guess 3 for y

    x + y = nine
    x - y = 4

Equations with a single unknown are solved directly; otherwise the
smallest square subsystem that can be found greedily is solved with
Newton-Raphson. Every solved value becomes a constant for the equations
that remain.
"""

import logging
import math
import re
from dataclasses import dataclass, field

from eqsolve.context import Context
from eqsolve.errors import EvaluationError, OverConstrained, ParseError
from eqsolve.expression import Expression, parse_equation
from eqsolve.formatting import format_solution
from eqsolve.settings import get_settings
from eqsolve.single import find_root
from eqsolve.system import ConstraintStatus, SystemBuilder, VariableHint

logger = logging.getLogger(__name__)

_CONST = re.compile(r"const\s+([A-Za-z_]\w*)\s*=\s*(.+)")
_KEEP = re.compile(r"keep\s+([A-Za-z_]\w*)\s+on\s+\[\s*([^,\]]+?)\s*,\s*([^\]]+?)\s*\]")
_GUESS = re.compile(r"guess\s+(.+?)\s+for\s+([A-Za-z_]\w*)")


@dataclass
class WorksheetResult:
    log: list = field(default_factory=list)
    solution: dict = field(default_factory=dict)
    unsolved: list = field(default_factory=list)

    def as_text(self, delimiter: str = "\n") -> str:
        return format_solution(self.solution, delimiter)


def _value(text: str, context) -> float:
    """A directive value: a float literal (``inf`` allowed) or an expression."""
    try:
        value = float(text)
    except ValueError:
        value = Expression(text).evaluate(context)
    if math.isnan(value):
        raise ValueError(f"{text!r} is not a number")
    return value


def compile_worksheet(text: str, context, defaults: dict) -> tuple:
    """Apply directives to *context*; return ``(equations, declared)``.

    ``declared`` maps variable names to :class:`VariableHint`.
    """
    equations = []
    declared = {}

    def hint_for(name):
        if name not in declared:
            declared[name] = VariableHint(defaults["guess"], defaults["lower"], defaults["upper"])
        return declared[name]

    for lineno, raw in enumerate(text.splitlines(), 1):
        line = raw.split('#', 1)[0].strip()
        if not line:
            continue
        const, keep, guess = (_CONST.fullmatch(line), _KEEP.fullmatch(line),
                              _GUESS.fullmatch(line))
        try:
            if const:
                context.add_const(const.group(1), _value(const.group(2), context))
            elif keep:
                hint = hint_for(keep.group(1))
                hint.lower = _value(keep.group(2), context)
                hint.upper = _value(keep.group(3), context)
                if hint.lower > hint.upper:
                    raise ValueError(f"empty interval [{hint.lower}, {hint.upper}]")
            elif guess:
                hint_for(guess.group(2)).guess = _value(guess.group(1), context)
            elif '=' in line:
                equations.append(parse_equation(line))
            else:
                raise ValueError("not an equation or directive")
        except (ValueError, EvaluationError) as e:
            raise ParseError(f"Line {lineno}: {raw.strip()!r}: {e}") from e

    for hint in declared.values():
        hint.guess = min(max(hint.guess, hint.lower), hint.upper)
    return equations, declared


# ── Solving steps ───────────────────────────────────────────────────────

def _check_closed(pool, context, log) -> None:
    """Drop equations whose identifiers are all known, verifying each."""
    for eq in list(pool):
        if eq.unknowns(context):
            continue
        if not eq.is_satisfied(context, tol=1e-9):
            raise OverConstrained(
                f"'{eq.text}' does not hold for the values found "
                f"(residual {eq.residual(context)!r})."
            )
        pool.remove(eq)
        log.append(f"Checked: {eq.text}")


def _solve_single(pool, context, declared, default, solution, log, margin, limit) -> bool:
    for eq in pool:
        unknowns = eq.unknowns(context)
        if len(unknowns) != 1:
            continue
        hint = declared.get(unknowns[0], default)
        name, value = find_root(eq, context, hint.guess, hint.lower, hint.upper,
                                margin, limit)
        context.add_const(name, value)
        solution[name] = value
        pool.remove(eq)
        log.append(f"Var: {name}\nEquation: {eq.text}")
        return True
    return False


def _solve_subsystem(pool, context, declared, solution, log, margin, limit) -> bool:
    for eq in pool:
        builder = SystemBuilder(eq, context)
        members = [eq]
        for other in pool:
            if builder.is_fully_constrained() is ConstraintStatus.CONSTRAINED:
                break
            if other is eq or builder.would_constrain(other) is ConstraintStatus.ERROR:
                continue
            builder.try_constrain_with(other)
            members.append(other)

        if builder.is_fully_constrained() is not ConstraintStatus.CONSTRAINED:
            continue

        system = builder.build_system()
        for name, hint in declared.items():
            system.specify_variable(name, hint.guess, hint.lower, hint.upper)
        values = system.solve(margin, limit)
        for name, value in values.items():
            context.add_const(name, value)
            solution[name] = value
        for member in members:
            pool.remove(member)
        log.append("System:\n" + "\n".join(m.text for m in members))
        return True
    return False


def solve_worksheet(text: str, context=None, margin: float = None,
                    iter_limit: int = None) -> WorksheetResult:
    """Solve every equation of the worksheet *text* that can be solved.

    *context* is copied, never mutated. Missing *margin* / *iter_limit*
    come from :func:`eqsolve.settings.get_settings`.
    """
    settings = get_settings()
    margin = settings["margin"] if margin is None else margin
    iter_limit = settings["iter_limit"] if iter_limit is None else iter_limit
    if context is None:
        context = Context.default() if settings["default_context"] else Context.empty()
    context = context.copy()

    pool, declared = compile_worksheet(text, context, settings)
    default = VariableHint(settings["guess"], settings["lower"], settings["upper"])
    result = WorksheetResult()

    while pool:
        _check_closed(pool, context, result.log)
        if not pool:
            break
        if _solve_single(pool, context, declared, default, result.solution,
                         result.log, margin, iter_limit):
            continue
        if _solve_subsystem(pool, context, declared, result.solution,
                            result.log, margin, iter_limit):
            continue
        break

    result.unsolved = [eq.text for eq in pool]
    if result.unsolved:
        logger.warning("Worksheet left %d equation(s) unsolved", len(result.unsolved))
    logger.info("Worksheet solved %d variable(s) in %d step(s)",
                len(result.solution), len(result.log))
    return result
