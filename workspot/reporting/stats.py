"""Shared helpers for summarizing solved schedules."""

from __future__ import annotations

from typing import Dict, List, Tuple

import numpy as np

from workspot.config import PlannerConfig
from workspot.domain.models import AttendanceAssignment, PlanningData, window_ranges
from workspot.engine.extractor import connection_score, preference_score, recover_links
from workspot.engine.model_builder import employee_pairs


def window_visit_counts(assignment: AttendanceAssignment, window_length: int) -> np.ndarray:
    """Visits per employee per window as an N x W array."""
    windows = window_ranges(len(assignment.day_labels), window_length)
    counts = np.zeros((len(assignment.employee_names), len(windows)), dtype=np.int64)
    for w, days in enumerate(windows):
        if len(days):
            counts[:, w] = assignment.grid[:, days.start:days.stop].sum(axis=1)
    return counts


def co_attendance(data: PlanningData, assignment: AttendanceAssignment) -> List[Tuple[str, str, int, int]]:
    """(name1, name2, shared days, weight) for every pair that met at least once."""
    links = recover_links(assignment.grid)
    rows: List[Tuple[str, str, int, int]] = []
    for p, (e1, e2) in enumerate(employee_pairs(data.num_employees).tolist()):
        shared = int(links[p].sum())
        if shared:
            rows.append((data.employees[e1].name, data.employees[e2].name, shared, data.connection(e1, e2)))
    return rows


def satisfaction_breakdown(data: PlanningData, assignment: AttendanceAssignment) -> Dict[str, int]:
    preference_part = preference_score(data, assignment.grid)
    connection_part = connection_score(data, assignment.grid)
    return {
        "preference": preference_part,
        "connection": connection_part,
        "total": preference_part + connection_part,
    }


def constraint_violations(assignment: AttendanceAssignment, config: PlannerConfig) -> List[str]:
    """Describe every capacity or visit-cap breach; an empty list means the grid is valid."""
    problems: List[str] = []
    for label, count in zip(assignment.day_labels, assignment.day_counts()):
        if count > config.num_spots:
            problems.append(f"{label}: {count} attendees exceed {config.num_spots} workspots")
    visits = window_visit_counts(assignment, config.window_length)
    for e, name in enumerate(assignment.employee_names):
        for w, count in enumerate(visits[e].tolist()):
            if count > config.max_visits_per_window:
                problems.append(
                    f"{name}: {count} visits in window {w + 1} exceed {config.max_visits_per_window}"
                )
    return problems
