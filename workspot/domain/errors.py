"""Exception types raised by the planner.

Input and configuration problems are ``ValueError`` subclasses so callers that
already catch ``ValueError`` around loading keep working. Solver outcomes that
are not solutions (infeasible, unbounded, error) are returned as results, not
raised.
"""

from __future__ import annotations


class PlannerError(Exception):
    """Base class for every planner-specific failure."""


class DimensionMismatchError(PlannerError, ValueError):
    """Preference or connection matrix shape disagrees with the employee/day counts."""


class InvalidConfigurationError(PlannerError, ValueError):
    """Capacity, visit cap or window length is out of range."""


class InvalidPreferenceError(PlannerError, ValueError):
    """A preference cell is not one of the canonical levels."""


class RoundingError(PlannerError, ArithmeticError):
    """A solver value for a binary variable is not close enough to 0 or 1."""

    def __init__(self, variable: str, value: float, tolerance: float):
        self.variable = variable
        self.value = value
        self.tolerance = tolerance
        super().__init__(
            f"Solver returned {value!r} for binary variable '{variable}', "
            f"which is not within {tolerance:g} of 0 or 1."
        )
