"""Dataclasses and type definitions shared across the planner modules."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Sequence

import numpy as np
import pandas as pd

from workspot.config import (
    DEFAULT_WINDOW_LENGTH,
    STRONG_PREFERENCE_WEIGHT,
    UNAVAILABLE_WEIGHT,
    WEAK_PREFERENCE_WEIGHT,
)
from workspot.domain.errors import (
    DimensionMismatchError,
    InvalidConfigurationError,
    InvalidPreferenceError,
    PlannerError,
)


class PreferenceLevel(IntEnum):
    STRONG = STRONG_PREFERENCE_WEIGHT
    WEAK = WEAK_PREFERENCE_WEIGHT
    UNAVAILABLE = UNAVAILABLE_WEIGHT


CANONICAL_LEVELS = frozenset(int(level) for level in PreferenceLevel)


def window_index(day_index: int, window_length: int = DEFAULT_WINDOW_LENGTH) -> int:
    """Return the visit-cap window a day belongs to.

    Windows are positional, not calendar based: day ``i`` belongs to window
    ``i // window_length``.
    """
    if window_length <= 0:
        raise InvalidConfigurationError(f"window_length must be positive (got {window_length}).")
    if day_index < 0:
        raise ValueError(f"day_index cannot be negative (got {day_index}).")
    return day_index // window_length


def window_ranges(num_days: int, window_length: int = DEFAULT_WINDOW_LENGTH) -> List[range]:
    """Split ``range(num_days)`` into consecutive windows.

    The last window is shorter when ``num_days`` is not a multiple of
    ``window_length``; it still gets the full visit cap.
    """
    if window_length <= 0:
        raise InvalidConfigurationError(f"window_length must be positive (got {window_length}).")
    return [range(start, min(start + window_length, num_days)) for start in range(0, num_days, window_length)]


@dataclass(frozen=True)
class Employee:
    index: int
    name: str


@dataclass(frozen=True)
class Day:
    index: int
    label: str
    window: int


def _frozen_int_matrix(values) -> np.ndarray:
    matrix = np.array(values, dtype=np.int64)
    if matrix.ndim != 2:
        # Keep empty inputs two dimensional so shape checks stay meaningful
        if matrix.size == 0:
            matrix = matrix.reshape(0, 0)
        else:
            raise DimensionMismatchError(f"Expected a two-dimensional matrix, got {matrix.ndim} dimension(s).")
    matrix.setflags(write=False)
    return matrix


@dataclass(frozen=True)
class PlanningData:
    """Employees, days, preference scores and pairwise connection weights.

    ``preferences`` is N x D and ``connections`` is N x N. Only the upper
    triangle of ``connections`` is meaningful; see :meth:`connection`.
    """

    employees: List[Employee]
    days: List[Day]
    preferences: np.ndarray
    connections: np.ndarray
    window_length: int = DEFAULT_WINDOW_LENGTH

    @classmethod
    def build(
        cls,
        employee_names: Sequence[str],
        day_labels: Sequence[str],
        preferences,
        connections,
        window_length: int = DEFAULT_WINDOW_LENGTH,
    ) -> "PlanningData":
        names = [str(name).strip() for name in employee_names]
        if any(not name for name in names):
            raise ValueError("Encountered employee with empty name.")
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate employee name(s) detected: {', '.join(duplicates)}")

        preference_matrix = _frozen_int_matrix(preferences)
        invalid = sorted(set(np.unique(preference_matrix).tolist()) - CANONICAL_LEVELS)
        if invalid:
            raise InvalidPreferenceError(
                f"Preference values {invalid} are not canonical levels "
                f"({', '.join(f'{lvl.name.lower()}={int(lvl)}' for lvl in PreferenceLevel)})."
            )

        employees = [Employee(index=i, name=name) for i, name in enumerate(names)]
        days = [
            Day(index=i, label=str(label), window=window_index(i, window_length))
            for i, label in enumerate(day_labels)
        ]
        return cls(
            employees=employees,
            days=days,
            preferences=preference_matrix,
            connections=_frozen_int_matrix(connections),
            window_length=window_length,
        )

    @property
    def num_employees(self) -> int:
        return len(self.employees)

    @property
    def num_days(self) -> int:
        return len(self.days)

    @property
    def employee_names(self) -> List[str]:
        return [employee.name for employee in self.employees]

    @property
    def day_labels(self) -> List[str]:
        return [day.label for day in self.days]

    def connection(self, e1: int, e2: int) -> int:
        """Collaboration weight of a pair, read from the upper triangle only."""
        if e1 == e2:
            raise ValueError("A connection needs two distinct employees.")
        low, high = (e1, e2) if e1 < e2 else (e2, e1)
        return int(self.connections[low, high])

    def employee_index(self, name: str) -> int:
        key = name.strip().lower()
        for employee in self.employees:
            if employee.name.lower() == key:
                return employee.index
        raise ValueError(f"Unknown employee '{name}'.")

    def day_index(self, label: str) -> int:
        key = label.strip().lower()
        for day in self.days:
            if day.label.lower() == key:
                return day.index
        raise ValueError(f"Unknown day '{label}'.")


@dataclass(frozen=True)
class AttendanceAssignment:
    """Solved N x D attendance grid; cell ``(e, d) == 1`` means ``e`` comes in on ``d``."""

    employee_names: List[str]
    day_labels: List[str]
    grid: np.ndarray

    def __post_init__(self):
        grid = np.array(self.grid, dtype=np.int8)
        expected = (len(self.employee_names), len(self.day_labels))
        if grid.shape != expected:
            raise PlannerError(f"Attendance grid has shape {grid.shape}, expected {expected}.")
        if not np.isin(grid, (0, 1)).all():
            raise PlannerError("Attendance grid may only contain 0 and 1.")
        grid.setflags(write=False)
        object.__setattr__(self, "grid", grid)

    def attends(self, employee: int, day: int) -> bool:
        return bool(self.grid[employee, day])

    def day_counts(self) -> List[int]:
        return self.grid.sum(axis=0).astype(int).tolist()

    def employee_counts(self) -> List[int]:
        return self.grid.sum(axis=1).astype(int).tolist()

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            self.grid.astype(int),
            index=pd.Index(self.employee_names, name="Employee"),
            columns=list(self.day_labels),
        )
