"""
Tests for spreadsheet/CSV data loading and validation.
"""

import numpy as np
import pandas as pd
import pytest

from workspot.data_access.sheet_loader import (
    _coerce_int,
    _normalize_columns,
    load_planning_csv,
    load_planning_workbook,
    parse_preference_code,
)
from workspot.data_access.toy_dataset import TOY_EMPLOYEES, load_toy_dataset
from workspot.domain.errors import DimensionMismatchError, InvalidPreferenceError
from workspot.domain.models import PlanningData


def _preference_frame():
    return pd.DataFrame(
        {
            "Employee": ["Ada", "Ben", "Cas"],
            "Mon": ["yes", "MAYBE", ""],
            "Tue": ["No", None, "yes"],
        }
    )


def _connection_frame():
    # Columns deliberately in a different order than the preference rows
    return pd.DataFrame(
        {
            "Employee": ["Cas", "Ada", "Ben"],
            "Ben": [None, 3, None],
            "Ada": [None, None, None],
            "Cas": [None, -2, 4],
        }
    )


def _settings_frame(**overrides):
    settings = {"workspots": 1, "max_visits_per_window": 2}
    settings.update(overrides)
    return pd.DataFrame({"Setting": list(settings), "Value": list(settings.values())})


def _write_workbook(path, preferences, connections, settings):
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        preferences.to_excel(writer, sheet_name="Preferences", index=False)
        connections.to_excel(writer, sheet_name="Connections", index=False)
        settings.to_excel(writer, sheet_name="Settings", index=False)


def test_normalize_basic_columns():
    """Test that basic column names are normalized correctly."""
    df = pd.DataFrame(columns=["Setting", "VALUE"])
    normalized = _normalize_columns(df)
    assert normalized == {"setting": "Setting", "value": "VALUE"}


def test_normalize_rejects_duplicates():
    df = pd.DataFrame(columns=["value", "Value "])
    with pytest.raises(ValueError):
        _normalize_columns(df)


@pytest.mark.parametrize(
    "raw, expected",
    [("yes", 5), ("YES", 5), (" Maybe ", 1), ("no", -99), ("", -99), (None, -99), (float("nan"), -99)],
)
def test_parse_preference_code(raw, expected):
    assert parse_preference_code(raw) == expected


def test_parse_unknown_preference_code():
    with pytest.raises(InvalidPreferenceError):
        parse_preference_code("sometimes")


def test_coerce_int_values():
    assert _coerce_int("3", "col", "rec") == 3
    assert _coerce_int(4.0, "col", "rec") == 4
    assert _coerce_int(float("nan"), "col", "rec", default=0) == 0


def test_coerce_invalid_raises_error():
    """Test that invalid values raise a descriptive error."""
    with pytest.raises(ValueError, match="Invalid numeric value"):
        _coerce_int("lots", "weight", "Ada")
    with pytest.raises(ValueError, match="whole number"):
        _coerce_int(1.5, "weight", "Ada")


def test_load_workbook(tmp_path):
    path = tmp_path / "planning.xlsx"
    _write_workbook(path, _preference_frame(), _connection_frame(), _settings_frame(window_length=2))

    data, config = load_planning_workbook(path)

    assert data.employee_names == ["Ada", "Ben", "Cas"]
    assert data.day_labels == ["Mon", "Tue"]
    assert data.preferences.tolist() == [[5, -99], [1, -99], [-99, 5]]
    # Re-indexed to preference order; blanks are zero
    assert data.connection(0, 1) == 3
    assert data.connection(0, 2) == -2
    assert data.connection(1, 2) == 4
    assert data.connections[2, 0] == 0
    assert config.num_spots == 1
    assert config.max_visits_per_window == 2
    assert config.window_length == 2
    assert data.window_length == 2


def test_load_workbook_window_override(tmp_path):
    path = tmp_path / "planning.xlsx"
    _write_workbook(path, _preference_frame(), _connection_frame(), _settings_frame())

    data, config = load_planning_workbook(path, window_length=1)
    assert config.window_length == 1
    assert [day.window for day in data.days] == [0, 1]


def test_load_workbook_missing_setting(tmp_path):
    path = tmp_path / "planning.xlsx"
    settings = pd.DataFrame({"Setting": ["workspots"], "Value": [2]})
    _write_workbook(path, _preference_frame(), _connection_frame(), settings)

    with pytest.raises(ValueError, match="max_visits_per_window"):
        load_planning_workbook(path)


def test_load_workbook_unknown_connection_name(tmp_path):
    path = tmp_path / "planning.xlsx"
    connections = _connection_frame().rename(columns={"Ben": "Bob"})
    _write_workbook(path, _preference_frame(), connections, _settings_frame())

    with pytest.raises(DimensionMismatchError, match="Bob"):
        load_planning_workbook(path)


def test_load_workbook_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_planning_workbook(tmp_path / "nope.xlsx")


def test_load_csv(tmp_path):
    preferences_csv = tmp_path / "preferences.csv"
    connections_csv = tmp_path / "connections.csv"
    _preference_frame().to_csv(preferences_csv, index=False)
    _connection_frame().to_csv(connections_csv, index=False)

    data = load_planning_csv(preferences_csv, connections_csv, window_length=2)

    assert data.employee_names == ["Ada", "Ben", "Cas"]
    assert data.preferences.tolist() == [[5, -99], [1, -99], [-99, 5]]
    assert data.connection(2, 0) == -2


def test_load_csv_bad_code(tmp_path):
    preferences_csv = tmp_path / "preferences.csv"
    connections_csv = tmp_path / "connections.csv"
    frame = _preference_frame()
    frame.loc[1, "Mon"] = "perhaps"
    frame.to_csv(preferences_csv, index=False)
    _connection_frame().to_csv(connections_csv, index=False)

    with pytest.raises(InvalidPreferenceError, match="Ben"):
        load_planning_csv(preferences_csv, connections_csv)


class TestPlanningData:
    def test_rejects_non_canonical_preferences(self):
        with pytest.raises(InvalidPreferenceError):
            PlanningData.build(["A"], ["Mon"], [[3]], [[0]])

    def test_rejects_duplicate_names(self):
        with pytest.raises(ValueError, match="Duplicate"):
            PlanningData.build(["A", "A"], ["Mon"], [[5], [5]], np.zeros((2, 2)))

    def test_matrices_are_read_only(self):
        data, _ = load_toy_dataset()
        with pytest.raises(ValueError):
            data.preferences[0, 0] = 1

    def test_days_know_their_window(self):
        data, _ = load_toy_dataset()
        assert [day.window for day in data.days] == [0] * 5 + [1] * 5

    def test_lookup_by_name(self):
        data, _ = load_toy_dataset()
        assert data.employee_index("eva") == TOY_EMPLOYEES.index("Eva")
        assert data.day_index("tue w2") == 6
        with pytest.raises(ValueError):
            data.employee_index("Zoe")
