"""Named-constant contexts consulted while evaluating equations."""

import math
import re

from eqsolve.expression import FUNCTIONS

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

# ── Built-in constants ──────────────────────────────────────────────────
# Physical constants use long names so they never capture a one-letter
# unknown such as ``c`` or ``h``.
DEFAULT_CONSTANTS = {
    "pi": math.pi,
    "e": math.e,
    "tau": math.tau,
    "phi": (1 + math.sqrt(5)) / 2,
    "c_light": 299_792_458.0,        # m/s
    "g_n": 9.80665,                  # m/s^2, standard gravity
    "h_planck": 6.62607015e-34,      # J·s
    "k_boltzmann": 1.380649e-23,     # J/K
    "N_A": 6.02214076e23,            # 1/mol
    "R_gas": 8.314462618,            # J/(mol·K)
    "sigma_sb": 5.670374419e-8,      # W/(m^2·K^4)
    "eps_0": 8.8541878128e-12,       # F/m
    "mu_0": 1.25663706212e-6,        # N/A^2
}


def is_identifier(name: str) -> bool:
    """True when *name* is a letter/underscore followed by word characters."""
    return isinstance(name, str) and _IDENTIFIER.fullmatch(name) is not None


class Context:
    """Mapping from identifier to a real value.

    Entries may be added or overwritten but never removed. A context is
    borrowed (not copied) by the system builders created from it.
    """

    def __init__(self, constants=None):
        self._values = {}
        for name, value in (constants or {}).items():
            self.add_const(name, value)

    @classmethod
    def default(cls) -> "Context":
        """Context preloaded with mathematical and physical constants."""
        return cls(DEFAULT_CONSTANTS)

    @classmethod
    def empty(cls) -> "Context":
        return cls()

    def add_const(self, name: str, value: float) -> None:
        """Bind *name* to *value*, overwriting any previous binding."""
        if not is_identifier(name):
            raise ValueError(
                f"Invalid identifier: '{name}'. Names start with a letter or "
                f"underscore followed by letters, digits, or underscores."
            )
        if name in FUNCTIONS:
            raise ValueError(f"'{name}' is a built-in function and cannot be bound.")
        self._values[name] = float(value)

    def get(self, name: str, default=None):
        return self._values.get(name, default)

    def names(self) -> list:
        return list(self._values)

    def as_dict(self) -> dict:
        return dict(self._values)

    def copy(self) -> "Context":
        clone = Context()
        clone._values = dict(self._values)
        return clone

    def __contains__(self, name) -> bool:
        return name in self._values

    def __getitem__(self, name: str) -> float:
        return self._values[name]

    def __iter__(self):
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Context({len(self._values)} bindings)"
