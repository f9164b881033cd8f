"""Turn raw solver values back into an attendance grid and an independently recomputed score."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from workspot.config import ROUNDING_TOLERANCE
from workspot.domain.errors import PlannerError, RoundingError
from workspot.domain.models import AttendanceAssignment, PlanningData
from workspot.engine.model_builder import ScheduleModel, employee_pairs


def round_binary(value: float, tolerance: float = ROUNDING_TOLERANCE, variable: str = "?") -> int:
    """Snap a solver value to 0 or 1, refusing values that sit between the two."""
    if abs(value) <= tolerance:
        return 0
    if abs(value - 1.0) <= tolerance:
        return 1
    raise RoundingError(variable, float(value), tolerance)


def extract_assignment(
    model: ScheduleModel,
    data: PlanningData,
    values: Sequence[float],
    tolerance: float = ROUNDING_TOLERANCE,
) -> AttendanceAssignment:
    """Read the ``attend`` arena only; link variables stay internal to the model."""
    if len(values) != model.num_variables:
        raise PlannerError(
            f"Solver returned {len(values)} values for a model with {model.num_variables} variables."
        )
    n, d = model.attend.shape
    grid = np.zeros((n, d), dtype=np.int8)
    for e in range(n):
        for day in range(d):
            var = int(model.attend[e, day])
            grid[e, day] = round_binary(values[var], tolerance, model.variable_names[var])
    return AttendanceAssignment(
        employee_names=data.employee_names,
        day_labels=data.day_labels,
        grid=grid,
    )


def recover_links(grid: np.ndarray) -> np.ndarray:
    """Co-attendance per pair and day: ``grid[e1, d] AND grid[e2, d]`` as a P x D array."""
    grid = np.asarray(grid, dtype=np.int64)
    pairs = employee_pairs(grid.shape[0])
    if not len(pairs):
        return np.zeros((0, grid.shape[1]), dtype=np.int64)
    return grid[pairs[:, 0]] * grid[pairs[:, 1]]


def preference_score(data: PlanningData, grid: np.ndarray) -> int:
    grid = np.asarray(grid, dtype=np.int64)
    if grid.size == 0:
        return 0
    return int((data.preferences * grid).sum())


def connection_score(data: PlanningData, grid: np.ndarray) -> int:
    links = recover_links(grid)
    pairs = employee_pairs(data.num_employees)
    if not len(pairs):
        return 0
    weights = data.connections[pairs[:, 0], pairs[:, 1]]
    return int((weights[:, None] * links).sum())


def compute_objective(data: PlanningData, grid: np.ndarray) -> int:
    """Satisfaction of a grid computed from scratch, for cross-checking the solver's number."""
    return preference_score(data, grid) + connection_score(data, grid)
