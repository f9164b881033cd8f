"""Spreadsheet loading for employees, days, preferences and connection weights.

A planning workbook has three sheets:

- ``Preferences``: first column holds employee names, the header row holds day
  labels, cells hold ``yes`` / ``maybe`` / ``no`` (blank means ``no``).
- ``Connections``: first column and header row both hold employee names,
  cells hold integer weights (blank means 0). Only the part above the diagonal
  is used by the model.
- ``Settings``: two columns ``setting`` and ``value`` with the keys
  ``workspots``, ``max_visits_per_window`` and optionally ``window_length``.

The same two tables can also be read from a pair of CSV files.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from workspot.config import (
    CONNECTIONS_SHEET,
    DEFAULT_WINDOW_LENGTH,
    PREFERENCE_CODES,
    PREFERENCES_SHEET,
    SETTING_MAX_VISITS,
    SETTING_WINDOW_LENGTH,
    SETTING_WORKSPOTS,
    SETTINGS_SHEET,
    PlannerConfig,
)
from workspot.domain.errors import DimensionMismatchError, InvalidPreferenceError
from workspot.domain.models import PlanningData


def _normalize_columns(df: pd.DataFrame) -> Dict[str, str]:
    """Create mapping from lowercase column names to original names."""
    normalized: Dict[str, str] = {}
    for column in df.columns:
        key = str(column).strip().lower()
        if key in normalized:
            raise ValueError(f"Duplicate column detected when normalizing headers: '{column}'")
        normalized[key] = str(column).strip()
    return normalized


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def _coerce_int(value, column_name: str, record_name: str, default: Optional[int] = None) -> int:
    if _is_blank(value) and default is not None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(
            f"Invalid numeric value '{value}' for column '{column_name}' on record '{record_name}'"
        ) from None
    if not number.is_integer():
        raise ValueError(
            f"Expected a whole number for column '{column_name}' on record '{record_name}', got '{value}'"
        )
    return int(number)


def parse_preference_code(value) -> int:
    """Map ``yes``/``maybe``/``no`` (any case, blank = ``no``) to its weight."""
    if _is_blank(value):
        return PREFERENCE_CODES["no"]
    key = str(value).strip().lower()
    if key not in PREFERENCE_CODES:
        raise InvalidPreferenceError(
            f"Unknown preference code '{value}'. Use one of: {', '.join(PREFERENCE_CODES)} (or leave blank)."
        )
    return PREFERENCE_CODES[key]


def _strip_header(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [str(col).strip() for col in df.columns]
    # Spreadsheet tools often leave fully empty trailing rows behind
    return df.dropna(how="all")


def _preferences_from_frame(df: pd.DataFrame, source: str) -> Tuple[List[str], List[str], np.ndarray]:
    df = _strip_header(df)
    if df.shape[1] < 1:
        raise ValueError(f"Preference table in {source} needs an employee name column.")
    _normalize_columns(df)

    name_col = df.columns[0]
    day_labels = list(df.columns[1:])
    employee_names: List[str] = []
    rows: List[List[int]] = []
    for _, row in df.iterrows():
        name = "" if _is_blank(row[name_col]) else str(row[name_col]).strip()
        if not name:
            raise ValueError(f"Encountered preference row with empty employee name in {source}.")
        try:
            rows.append([parse_preference_code(row[label]) for label in day_labels])
        except InvalidPreferenceError as exc:
            raise InvalidPreferenceError(f"{exc} (employee '{name}' in {source})") from None
        employee_names.append(name)

    matrix = np.array(rows, dtype=np.int64).reshape(len(rows), len(day_labels))
    return employee_names, day_labels, matrix


def _connections_from_frame(df: pd.DataFrame, employee_names: List[str], source: str) -> np.ndarray:
    df = _strip_header(df)
    if df.shape[1] < 1:
        raise ValueError(f"Connection table in {source} needs an employee name column.")

    name_col = df.columns[0]
    row_names = ["" if _is_blank(v) else str(v).strip() for v in df[name_col]]
    column_names = list(df.columns[1:])
    expected = set(employee_names)
    for label, found in (("rows", row_names), ("columns", column_names)):
        if len(found) != len(set(found)):
            raise ValueError(f"Duplicate employee names in connection {label} of {source}.")
        if set(found) != expected:
            missing = sorted(expected - set(found))
            unknown = sorted(set(found) - expected)
            raise DimensionMismatchError(
                f"Connection {label} in {source} do not match the preference employees "
                f"(missing: {', '.join(missing) or '-'}; unknown: {', '.join(unknown) or '-'})."
            )

    position = {name: i for i, name in enumerate(employee_names)}
    matrix = np.zeros((len(employee_names), len(employee_names)), dtype=np.int64)
    for (_, row), row_name in zip(df.iterrows(), row_names):
        for column in column_names:
            matrix[position[row_name], position[column]] = _coerce_int(row[column], column, row_name, default=0)
    return matrix


def _settings_from_frame(df: pd.DataFrame, source: str, window_length: Optional[int]) -> PlannerConfig:
    df = _strip_header(df)
    column_map = _normalize_columns(df)

    def require_column(name: str) -> str:
        if name not in column_map:
            raise ValueError(f"Required column '{name}' not found in {source}")
        return column_map[name]

    key_col = require_column("setting")
    value_col = require_column("value")
    settings: Dict[str, int] = {}
    for _, row in df.iterrows():
        if _is_blank(row[key_col]):
            continue
        key = str(row[key_col]).strip().lower()
        settings[key] = _coerce_int(row[value_col], value_col, key)

    for required in (SETTING_WORKSPOTS, SETTING_MAX_VISITS):
        if required not in settings:
            raise ValueError(f"Setting '{required}' missing from {source}.")

    if window_length is None:
        window_length = settings.get(SETTING_WINDOW_LENGTH, DEFAULT_WINDOW_LENGTH)
    return PlannerConfig(
        num_spots=settings[SETTING_WORKSPOTS],
        max_visits_per_window=settings[SETTING_MAX_VISITS],
        window_length=window_length,
    ).validate()


def _find_sheet(sheets: Dict[str, pd.DataFrame], wanted: str, path: Path) -> pd.DataFrame:
    for name, frame in sheets.items():
        if str(name).strip().lower() == wanted.lower():
            return frame
    raise ValueError(f"Sheet '{wanted}' not found in {path} (found: {', '.join(map(str, sheets))}).")


def load_planning_workbook(path: Path, window_length: Optional[int] = None) -> Tuple[PlanningData, PlannerConfig]:
    """Load planning data and configuration from a single ``.xlsx`` workbook.

    Args:
        path: Workbook with ``Preferences``, ``Connections`` and ``Settings`` sheets.
        window_length: Overrides the workbook's ``window_length`` setting when given.

    Returns:
        The planning data and the validated configuration.

    Raises:
        FileNotFoundError: If the workbook doesn't exist.
        ValueError: If a sheet, column or setting is missing or malformed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Planning workbook not found: {path}")

    sheets = pd.read_excel(path, sheet_name=None)
    employee_names, day_labels, preferences = _preferences_from_frame(
        _find_sheet(sheets, PREFERENCES_SHEET, path), f"{path}:{PREFERENCES_SHEET}"
    )
    connections = _connections_from_frame(
        _find_sheet(sheets, CONNECTIONS_SHEET, path), employee_names, f"{path}:{CONNECTIONS_SHEET}"
    )
    config = _settings_from_frame(_find_sheet(sheets, SETTINGS_SHEET, path), f"{path}:{SETTINGS_SHEET}", window_length)

    data = PlanningData.build(
        employee_names,
        day_labels,
        preferences,
        connections,
        window_length=config.window_length,
    )
    return data, config


def load_planning_csv(
    preferences_csv: Path,
    connections_csv: Path,
    window_length: int = DEFAULT_WINDOW_LENGTH,
) -> PlanningData:
    for path in (preferences_csv, connections_csv):
        if not Path(path).exists():
            raise FileNotFoundError(f"Planning CSV not found: {path}")

    employee_names, day_labels, preferences = _preferences_from_frame(
        pd.read_csv(preferences_csv, dtype=str, keep_default_na=False), str(preferences_csv)
    )
    connections = _connections_from_frame(
        pd.read_csv(connections_csv, dtype=str, keep_default_na=False), employee_names, str(connections_csv)
    )
    return PlanningData.build(employee_names, day_labels, preferences, connections, window_length=window_length)
