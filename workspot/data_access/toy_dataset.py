"""Small built-in example for trying the planner without a workbook.

Six employees over two five-day weeks, two workspots per day and at most two
office days per week. The best achievable satisfaction is 125.
"""

from __future__ import annotations

from typing import List, Tuple

from workspot.config import PREFERENCE_CODES, PlannerConfig
from workspot.domain.models import PlanningData

TOY_EMPLOYEES = ["Anouk", "Bas", "Charlotte", "Daan", "Eva", "Floris"]

TOY_DAYS = [
    "Mon W1", "Tue W1", "Wed W1", "Thu W1", "Fri W1",
    "Mon W2", "Tue W2", "Wed W2", "Thu W2", "Fri W2",
]

# One row per employee, one column per entry of TOY_DAYS
TOY_PREFERENCE_CODES = [
    ["yes", "no", "no", "yes", "no", "yes", "no", "no", "no", "yes"],  # Anouk
    ["yes", "no", "no", "no", "yes", "yes", "no", "no", "maybe", "no"],  # Bas
    ["no", "yes", "maybe", "yes", "no", "no", "yes", "no", "no", "yes"],  # Charlotte
    ["maybe", "yes", "no", "no", "no", "no", "yes", "no", "yes", "no"],  # Daan
    ["no", "no", "yes", "no", "yes", "no", "no", "yes", "no", "maybe"],  # Eva
    ["no", "no", "yes", "no", "no", "no", "maybe", "yes", "yes", "no"],  # Floris
]

# Symmetric on purpose: only the part above the diagonal is read
TOY_CONNECTIONS = [
    [0, 4, 1, 0, 0, 0],
    [4, 0, -5, 0, 3, 0],
    [1, -5, 0, 3, 0, 0],
    [0, 0, 3, 0, -2, 2],
    [0, 3, 0, -2, 0, 2],
    [0, 0, 0, 2, 2, 0],
]

TOY_NUM_SPOTS = 2
TOY_MAX_VISITS_PER_WINDOW = 2
TOY_WINDOW_LENGTH = 5
TOY_OPTIMAL_OBJECTIVE = 125


def toy_preferences() -> List[List[int]]:
    return [[PREFERENCE_CODES[code] for code in row] for row in TOY_PREFERENCE_CODES]


def load_toy_dataset() -> Tuple[PlanningData, PlannerConfig]:
    config = PlannerConfig(
        num_spots=TOY_NUM_SPOTS,
        max_visits_per_window=TOY_MAX_VISITS_PER_WINDOW,
        window_length=TOY_WINDOW_LENGTH,
    )
    data = PlanningData.build(
        TOY_EMPLOYEES,
        TOY_DAYS,
        toy_preferences(),
        TOY_CONNECTIONS,
        window_length=config.window_length,
    )
    return data, config
