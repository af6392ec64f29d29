"""Textual rendering of solver results.

Solvers return structured ``{name: value}`` mappings; the ``name = value``
text form only exists at the boundary (HTTP responses, logs, worksheets).
"""

import re


def format_number(value: float) -> str:
    """Render *value* so that ``float(text) == value`` exactly.

    ``repr`` gives the shortest string that round-trips a double
    (``2.0``, ``0.1``, ``3.141592653589793``).
    """
    return repr(float(value))


def format_assignment(name: str, value: float) -> str:
    return f"{name} = {format_number(value)}"


def format_solution(solution: dict, delimiter: str = "\n") -> str:
    """Join ``name = value`` pairs in the mapping's order."""
    return delimiter.join(format_assignment(k, v) for k, v in solution.items())


def parse_solution(text: str) -> dict:
    """Parse ``x = 3, y = 4`` (or ``;`` / newline separated) into floats.

    Returns an insertion-ordered dict. Raises ``ValueError`` on malformed
    pairs.
    """
    assignments = re.split(r'\s*[,;\n]\s*', text.strip())
    result = {}
    for assignment in assignments:
        assignment = assignment.strip()
        if not assignment:
            continue
        if '=' not in assignment:
            raise ValueError(
                f"Invalid value format: '{assignment}'. "
                f"Expected format: variable = value (e.g. x = 3)"
            )
        name, val_str = (part.strip() for part in assignment.split('=', 1))
        if not name or not val_str:
            raise ValueError(
                f"Invalid value format: '{assignment}'. "
                f"Both variable name and value are required."
            )
        try:
            result[name] = float(val_str)
        except ValueError:
            raise ValueError(f"Value for '{name}' is not a number: '{val_str}'.")
    return result
