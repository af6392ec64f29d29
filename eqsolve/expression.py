"""Parsing and numeric evaluation of algebraic expressions and equations.

Expressions are tokenised here, handed to SymPy's ``parse_expr`` with every
user identifier replaced by a private placeholder symbol, and compiled once
with ``lambdify`` for fast evaluation inside the root finders.

    >>> eq = Equation("x^2 - 4 = 0")
    >>> eq.unknowns({})
    ['x']
    >>> eq.residual({}, {"x": 3.0})
    5.0
"""

import math
import re
from functools import lru_cache

import sympy
from sympy import Add, Mul, Symbol, lambdify
from sympy.parsing.sympy_parser import (
    parse_expr, standard_transformations, convert_xor, rationalize,
)

from eqsolve.errors import (
    DivisionByZero, EvaluationError, ParseError, UnboundVariable,
)

TRANSFORMATIONS = standard_transformations + (
    convert_xor,   # ``^`` is exponentiation, right-associative like ``**``
    rationalize,   # decimal literals become exact Rationals
)

# Names usable as ``f(...)``. Everything else that looks like an
# identifier is a constant or a free variable.
FUNCTIONS = {
    "sin": sympy.sin,
    "cos": sympy.cos,
    "tan": sympy.tan,
    "asin": sympy.asin,
    "acos": sympy.acos,
    "atan": sympy.atan,
    "sinh": sympy.sinh,
    "cosh": sympy.cosh,
    "tanh": sympy.tanh,
    "asinh": sympy.asinh,
    "acosh": sympy.acosh,
    "atanh": sympy.atanh,
    "ln": sympy.log,
    "exp": sympy.exp,
    "sqrt": sympy.sqrt,
    "abs": sympy.Abs,
    "floor": sympy.floor,
    "ceil": sympy.ceiling,
    "sign": sympy.sign,
    "min": sympy.Min,
    "max": sympy.Max,
    "atan2": sympy.atan2,
}

_TOKEN = re.compile(r"""
    (?P<ws>\s+)
  | (?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
  | (?P<name>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<op>[-+*/^(),])
""", re.VERBOSE)

# Token kinds after which an operand may not follow directly.
_OPERAND_END = {"number", "name", ")"}


# ── Tokenising ──────────────────────────────────────────────────────────

def tokenize(text: str) -> list:
    """Split *text* into ``(kind, value)`` pairs, whitespace dropped.

    ``kind`` is ``"number"``, ``"name"``, ``"func"`` or the operator
    character itself.
    """
    tokens = []
    pos = 0
    while pos < len(text):
        m = _TOKEN.match(text, pos)
        if m is None:
            bad = " ".join(sorted(set(ch for ch in text[pos:] if not _TOKEN.match(ch))))
            raise ParseError(
                f"Invalid character(s): {bad or text[pos]}\n"
                f"Only letters, numbers, underscores, and math symbols "
                f"(+ - * / ^ ( ) ,) are allowed."
            )
        pos = m.end()
        kind = m.lastgroup
        if kind == "ws":
            continue
        value = m.group(kind)
        if kind == "op":
            kind = value
        tokens.append((kind, value))
    _check_tokens(tokens, text)
    return tokens


def _check_tokens(tokens: list, text: str) -> None:
    """Reject the structural mistakes Python's own parser reports poorly."""
    if not tokens:
        raise ParseError("Expression is empty.")
    depth = 0
    for i, (kind, value) in enumerate(tokens):
        nxt = tokens[i + 1][0] if i + 1 < len(tokens) else None
        if kind == "name":
            if nxt == "(" and value not in FUNCTIONS:
                raise ParseError(f"Unknown function: '{value}' in '{text}'.")
            if nxt != "(" and value in FUNCTIONS:
                raise ParseError(f"Function '{value}' must be called, e.g. {value}(x).")
        elif kind == "(":
            depth += 1
        elif kind == ")":
            depth -= 1
            if depth < 0:
                raise ParseError(f"Mismatched parentheses in '{text}'.")
        if kind in _OPERAND_END and nxt in ("number", "name"):
            raise ParseError(
                f"Missing operator after '{value}' in '{text}'. "
                f"Write multiplication explicitly, e.g. 2*x."
            )
        if kind in ("number", ")") and nxt == "(":
            raise ParseError(
                f"Missing operator before '(' in '{text}'. "
                f"Write multiplication explicitly, e.g. 2*(x + 1)."
            )
    if depth != 0:
        raise ParseError(f"Mismatched parentheses in '{text}'.")


# ── Evaluation helper ───────────────────────────────────────────────────

def _call(fn, args, text: str) -> float:
    """Run a lambdified function and normalise its failures."""
    try:
        value = fn(*args)
        if isinstance(value, complex):
            raise EvaluationError(f"'{text}' has no real value at {args}.")
        return float(value)
    except ZeroDivisionError as e:
        raise DivisionByZero(f"Division by zero while evaluating '{text}'.") from e
    except (ValueError, OverflowError, TypeError) as e:
        raise EvaluationError(f"Could not evaluate '{text}': {e}") from e


def _resolve(identifiers, context, overlay) -> list:
    """Look each name up in *overlay*, then *context*."""
    values = []
    missing = []
    for name in identifiers:
        if overlay is not None and name in overlay:
            values.append(float(overlay[name]))
        elif name in context:
            values.append(context[name])
        else:
            missing.append(name)
    if missing:
        raise UnboundVariable(missing)
    return values


# ── Expression ──────────────────────────────────────────────────────────

class Expression:
    """A parsed arithmetic expression over literals and identifiers.

    *table* maps identifier names to placeholder symbols; passing the same
    dict to several expressions makes them share symbols (both sides of an
    equation do this).
    """

    def __init__(self, text: str, table=None):
        self.text = text.strip()
        self._table = {} if table is None else table
        tokens = tokenize(self.text)

        pieces = []
        identifiers = []
        for kind, value in tokens:
            if kind == "name" and value not in FUNCTIONS:
                if value not in self._table:
                    self._table[value] = Symbol(f"_v{len(self._table)}")
                if value not in identifiers:
                    identifiers.append(value)
                pieces.append(self._table[value].name)
            else:
                pieces.append(value)
        self.identifiers = identifiers

        local = {sym.name: sym for sym in self._table.values()}
        local.update(FUNCTIONS)
        try:
            expr = parse_expr(" ".join(pieces), local_dict=local,
                              transformations=TRANSFORMATIONS, evaluate=False)
        except Exception as e:
            raise ParseError(f"Could not parse expression: '{self.text}'. Error: {e}") from e
        if not isinstance(expr, sympy.Expr):
            raise ParseError(f"Could not parse expression: '{self.text}'.")
        self.expr = expr
        self._fn = lambdify([self._table[n] for n in identifiers], expr, modules="math")

    def evaluate(self, context, overlay=None) -> float:
        """Value of the expression; identifiers resolve overlay-first."""
        return _call(self._fn, _resolve(self.identifiers, context, overlay), self.text)

    def free_variables(self, context) -> list:
        return [n for n in self.identifiers if n not in context]

    def __repr__(self) -> str:
        return f"Expression({self.text!r})"


# ── Equation ────────────────────────────────────────────────────────────

def split_equation(text: str) -> tuple:
    """Split ``LHS = RHS`` into its two sides."""
    if '=' not in text:
        raise ParseError("Equation must contain '='. Example: x^2 - 4 = 0")
    parts = text.split('=')
    if len(parts) != 2:
        raise ParseError("Equation must contain exactly one '=' sign.")
    lhs, rhs = parts[0].strip(), parts[1].strip()
    if not lhs or not rhs:
        raise ParseError("Both sides of the equation must have expressions.")
    return lhs, rhs


class Equation:
    """``LHS = RHS``; its residual is ``LHS - RHS``."""

    def __init__(self, text: str):
        self.text = text.strip()
        lhs_text, rhs_text = split_equation(self.text)
        table = {}
        self.lhs = Expression(lhs_text, table)
        self.rhs = Expression(rhs_text, table)
        # Insertion order of the shared table is order of first appearance.
        self.identifiers = list(table)
        residual = Add(self.lhs.expr, Mul(-1, self.rhs.expr, evaluate=False),
                       evaluate=False)
        self._fn = lambdify([table[n] for n in self.identifiers], residual,
                            modules="math")

    def unknowns(self, context, known=()) -> list:
        """Identifiers bound by neither *context* nor *known*, in order."""
        return [n for n in self.identifiers if n not in context and n not in known]

    def residual(self, context, overlay=None) -> float:
        return _call(self._fn, _resolve(self.identifiers, context, overlay), self.text)

    def residual_function(self, context, variables):
        """Return ``f(values) -> float`` for a fixed variable ordering.

        ``values[i]`` is the value of ``variables[i]``; every other
        identifier is read from *context* once, here.
        """
        index = {name: i for i, name in enumerate(variables)}
        template = []
        slots = []
        missing = []
        for pos, name in enumerate(self.identifiers):
            if name in index:
                template.append(0.0)
                slots.append((pos, index[name]))
            elif name in context:
                template.append(context[name])
            else:
                missing.append(name)
        if missing:
            raise UnboundVariable(missing)

        fn, text = self._fn, self.text

        def residual(values) -> float:
            args = list(template)
            for pos, i in slots:
                args[pos] = float(values[i])
            return _call(fn, args, text)

        return residual

    def is_satisfied(self, context, overlay=None, tol: float = 1e-12) -> bool:
        """True when both sides agree to within *tol* (relative and absolute)."""
        lhs = self.lhs.evaluate(context, overlay)
        rhs = self.rhs.evaluate(context, overlay)
        return math.isclose(lhs, rhs, rel_tol=tol, abs_tol=tol)

    def __repr__(self) -> str:
        return f"Equation({self.text!r})"


@lru_cache(maxsize=256)
def parse_equation(text: str) -> Equation:
    """Cached :class:`Equation` constructor; equations are never mutated."""
    return Equation(text)
