"""Translate planning data into a solver-agnostic 0/1 linear program.

Variables live in dense integer arenas: ``attend[e, d]`` and ``link[p, d]``
hold variable ids, where ``p`` indexes the employee pairs ``e1 < e2`` in
lexicographic order. The objective rewards preferences and co-attendance;
co-attendance is a product of two binaries and is linearised with the usual
AND-gate inequalities so any MILP or CP-SAT backend can solve the model.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import numpy as np

from workspot.config import PlannerConfig
from workspot.domain.errors import DimensionMismatchError, InvalidConfigurationError
from workspot.domain.models import PlanningData, window_ranges

LESS_EQUAL = "<="
GREATER_EQUAL = ">="
EQUAL = "=="
SENSES = (LESS_EQUAL, GREATER_EQUAL, EQUAL)


@dataclass(frozen=True)
class LinearConstraint:
    name: str
    terms: Tuple[Tuple[int, int], ...]  # (variable id, coefficient)
    sense: str
    rhs: int

    def __post_init__(self):
        if self.sense not in SENSES:
            raise ValueError(f"Unsupported constraint sense '{self.sense}' for '{self.name}'.")

    def is_satisfied(self, values: Sequence[float], tolerance: float = 1e-6) -> bool:
        lhs = sum(coef * values[var] for var, coef in self.terms)
        if self.sense == LESS_EQUAL:
            return lhs <= self.rhs + tolerance
        if self.sense == GREATER_EQUAL:
            return lhs >= self.rhs - tolerance
        return abs(lhs - self.rhs) <= tolerance


@dataclass
class ScheduleModel:
    """Binary decision variables, a maximisation objective and linear constraints."""

    attend: np.ndarray
    pairs: np.ndarray
    link: np.ndarray
    variable_names: List[str]
    objective: np.ndarray
    constraints: List[LinearConstraint] = field(default_factory=list)
    sense: str = "maximize"

    @property
    def num_variables(self) -> int:
        return len(self.variable_names)

    @property
    def num_constraints(self) -> int:
        return len(self.constraints)

    def add_constraint(self, name: str, terms, sense: str, rhs: int) -> LinearConstraint:
        """Append an auxiliary constraint over existing variable ids."""
        normalized = tuple((int(var), int(coef)) for var, coef in terms)
        for var, _ in normalized:
            if not 0 <= var < self.num_variables:
                raise ValueError(f"Constraint '{name}' references unknown variable id {var}.")
        constraint = LinearConstraint(name=name, terms=normalized, sense=sense, rhs=int(rhs))
        self.constraints.append(constraint)
        return constraint

    def require_attendance(self, employee: int, day: int) -> LinearConstraint:
        """Pin ``attend[employee, day]`` to 1."""
        var = int(self.attend[employee, day])
        return self.add_constraint(f"require[{employee},{day}]", [(var, 1)], EQUAL, 1)

    def objective_value(self, values: Sequence[float]) -> float:
        return float(np.dot(self.objective, np.asarray(values, dtype=float)))


def employee_pairs(num_employees: int) -> np.ndarray:
    """All unordered pairs ``(e1, e2)`` with ``e1 < e2`` as a P x 2 array."""
    pairs = [(e1, e2) for e1 in range(num_employees) for e2 in range(e1 + 1, num_employees)]
    return np.array(pairs, dtype=np.int64).reshape(len(pairs), 2)


def _check_shape(label: str, matrix: np.ndarray, expected: Tuple[int, int]) -> None:
    if matrix.shape == expected:
        return
    # A bare empty list carries no column count
    if matrix.shape == (0, 0) and expected[0] == 0:
        return
    raise DimensionMismatchError(
        f"{label} matrix has shape {matrix.shape}, expected {expected[0]} x {expected[1]}."
    )


def validate_inputs(data: PlanningData, config: PlannerConfig) -> None:
    """Fail before any variable exists if the configuration or the shapes are wrong."""
    config.validate()
    if data.window_length != config.window_length:
        raise InvalidConfigurationError(
            f"Planning data uses {data.window_length}-day windows but the configuration caps "
            f"visits per {config.window_length}-day window."
        )
    n, d = data.num_employees, data.num_days
    _check_shape("Preference", data.preferences, (n, d))
    _check_shape("Connection", data.connections, (n, n))


def build_model(data: PlanningData, config: PlannerConfig) -> ScheduleModel:
    validate_inputs(data, config)

    n, d = data.num_employees, data.num_days
    pairs = employee_pairs(n)
    names: List[str] = []

    # ------------------------------------------------------------------
    # Decision variables
    # ------------------------------------------------------------------
    attend = np.arange(n * d, dtype=np.int64).reshape(n, d)
    for e in range(n):
        for day in range(d):
            names.append(f"attend[{e},{day}]")

    link = np.arange(n * d, n * d + len(pairs) * d, dtype=np.int64).reshape(len(pairs), d)
    for e1, e2 in pairs.tolist():
        for day in range(d):
            names.append(f"link[{e1},{e2},{day}]")

    # ------------------------------------------------------------------
    # Objective: preferences plus connection weight of co-attending pairs
    # ------------------------------------------------------------------
    objective = np.zeros(len(names), dtype=np.int64)
    if n and d:
        objective[attend.ravel()] = data.preferences.reshape(-1)
    for p, (e1, e2) in enumerate(pairs.tolist()):
        objective[link[p]] = data.connection(e1, e2)

    model = ScheduleModel(
        attend=attend,
        pairs=pairs,
        link=link,
        variable_names=names,
        objective=objective,
    )

    # ------------------------------------------------------------------
    # Capacity: at most num_spots people per day
    # ------------------------------------------------------------------
    for day in range(d):
        model.add_constraint(
            f"capacity[{day}]",
            [(attend[e, day], 1) for e in range(n)],
            LESS_EQUAL,
            config.num_spots,
        )

    # ------------------------------------------------------------------
    # Visit frequency: at most max_visits_per_window days per window
    # ------------------------------------------------------------------
    for w, days_in_window in enumerate(window_ranges(d, config.window_length)):
        for e in range(n):
            model.add_constraint(
                f"visits[{e},{w}]",
                [(attend[e, day], 1) for day in days_in_window],
                LESS_EQUAL,
                config.max_visits_per_window,
            )

    # ------------------------------------------------------------------
    # Linearisation: link[p, d] == attend[e1, d] AND attend[e2, d]
    # ------------------------------------------------------------------
    for p, (e1, e2) in enumerate(pairs.tolist()):
        for day in range(d):
            both = link[p, day]
            first = attend[e1, day]
            second = attend[e2, day]
            model.add_constraint(f"link_le_first[{e1},{e2},{day}]", [(both, 1), (first, -1)], LESS_EQUAL, 0)
            model.add_constraint(f"link_le_second[{e1},{e2},{day}]", [(both, 1), (second, -1)], LESS_EQUAL, 0)
            model.add_constraint(
                f"link_ge_both[{e1},{e2},{day}]",
                [(both, 1), (first, -1), (second, -1)],
                GREATER_EQUAL,
                -1,
            )

    return model
