"""Centralized knobs for the workspot planner. Tweak values here instead of touching the engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from workspot.domain.errors import InvalidConfigurationError

# ---------------------------------------------------------------------------
# Preference encoding
# ---------------------------------------------------------------------------
STRONG_PREFERENCE_WEIGHT = 5  # "yes": the employee wants to be in the office
WEAK_PREFERENCE_WEIGHT = 1  # "maybe": fine either way
UNAVAILABLE_WEIGHT = -99  # "no": large enough that no connection bonus outweighs it

PREFERENCE_CODES: Dict[str, int] = {
    "yes": STRONG_PREFERENCE_WEIGHT,
    "maybe": WEAK_PREFERENCE_WEIGHT,
    "no": UNAVAILABLE_WEIGHT,
}

# ---------------------------------------------------------------------------
# Planning defaults
# ---------------------------------------------------------------------------
DEFAULT_WINDOW_LENGTH = 5  # Days per visit-cap window (one working week)
DEFAULT_NUM_SPOTS = 2
DEFAULT_MAX_VISITS_PER_WINDOW = 2

# ---------------------------------------------------------------------------
# Solver settings
# ---------------------------------------------------------------------------
DEFAULT_SOLVER_MAX_TIME = 60  # Seconds
DEFAULT_BACKEND = "cp-sat"

ROUNDING_TOLERANCE = 1e-6  # Max distance of a solver value from 0 or 1
OBJECTIVE_TOLERANCE = 1e-6  # Max gap between solver-reported and recomputed objective

# ---------------------------------------------------------------------------
# Workbook layout
# ---------------------------------------------------------------------------
PREFERENCES_SHEET = "Preferences"
CONNECTIONS_SHEET = "Connections"
SETTINGS_SHEET = "Settings"

SETTING_WORKSPOTS = "workspots"
SETTING_MAX_VISITS = "max_visits_per_window"
SETTING_WINDOW_LENGTH = "window_length"


@dataclass(frozen=True)
class PlannerConfig:
    """Scalar parameters of one solve. Loaded once, never mutated."""

    num_spots: int = DEFAULT_NUM_SPOTS
    max_visits_per_window: int = DEFAULT_MAX_VISITS_PER_WINDOW
    window_length: int = DEFAULT_WINDOW_LENGTH

    def validate(self) -> "PlannerConfig":
        for field_name in ("num_spots", "max_visits_per_window", "window_length"):
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidConfigurationError(
                    f"{field_name} must be an integer (got {value!r})."
                )
        if self.num_spots < 0:
            raise InvalidConfigurationError(f"num_spots cannot be negative (got {self.num_spots}).")
        if self.max_visits_per_window < 0:
            raise InvalidConfigurationError(
                f"max_visits_per_window cannot be negative (got {self.max_visits_per_window})."
            )
        if self.window_length <= 0:
            raise InvalidConfigurationError(
                f"window_length must be positive (got {self.window_length})."
            )
        return self
