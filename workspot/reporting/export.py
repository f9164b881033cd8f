"""Excel export helpers for solved schedules."""

from __future__ import annotations

import importlib.util
from pathlib import Path

import pandas as pd

from workspot.config import PlannerConfig
from workspot.domain.models import PlanningData
from workspot.reporting.stats import co_attendance, window_visit_counts


def export_schedule_to_excel(result, data: PlanningData, config: PlannerConfig, output_path: Path) -> bool:
    """Write the attendance grid plus summaries to a workbook.

    Returns ``False`` without writing anything when the result has no assignment.
    """
    if not result.is_solved:
        return False

    assignment = result.assignment
    df_schedule = assignment.to_frame()

    visits = window_visit_counts(assignment, config.window_length)
    summary_rows = []
    for e, name in enumerate(data.employee_names):
        days_in = [data.day_labels[d] for d in range(data.num_days) if assignment.attends(e, d)]
        summary_rows.append(
            [
                name,
                len(days_in),
                "/".join(str(v) for v in visits[e].tolist()),
                ", ".join(days_in) if days_in else "None",
            ]
        )
    df_summary = pd.DataFrame(
        summary_rows, columns=["Employee", "Days In Office", "Visits Per Window", "Days"]
    )

    day_rows = []
    for d, label in enumerate(data.day_labels):
        attendees = [data.employee_names[e] for e in range(data.num_employees) if assignment.attends(e, d)]
        day_rows.append([label, data.days[d].window + 1, len(attendees), config.num_spots, ", ".join(attendees)])
    df_days = pd.DataFrame(day_rows, columns=["Day", "Window", "Attendees", "Workspots", "Names"])

    df_pairs = pd.DataFrame(
        co_attendance(data, assignment), columns=["Employee 1", "Employee 2", "Shared Days", "Weight"]
    )

    engine = None
    for candidate in ("xlsxwriter", "openpyxl"):
        if importlib.util.find_spec(candidate):
            engine = candidate
            break
    if engine is None:
        raise RuntimeError("Excel export needs either 'openpyxl' or 'xlsxwriter' installed.")

    with pd.ExcelWriter(output_path, engine=engine) as writer:
        df_schedule.to_excel(writer, sheet_name="Schedule")
        _autosize_columns(writer, "Schedule", df_schedule.reset_index())
        df_summary.to_excel(writer, sheet_name="Employee Summary", index=False)
        _autosize_columns(writer, "Employee Summary", df_summary)
        df_days.to_excel(writer, sheet_name="Day Summary", index=False)
        _autosize_columns(writer, "Day Summary", df_days)
        if not df_pairs.empty:
            df_pairs.to_excel(writer, sheet_name="Team-ups", index=False)
            _autosize_columns(writer, "Team-ups", df_pairs)
    return True


def _autosize_columns(writer: pd.ExcelWriter, sheet_name: str, dataframe: pd.DataFrame):
    worksheet = writer.sheets[sheet_name]
    for idx, column in enumerate(dataframe.columns):
        values = [str(column)] + [str(value) for value in dataframe[column].tolist()]
        width = min(max(len(value) for value in values) + 2, 60)
        if hasattr(worksheet, "set_column"):
            worksheet.set_column(idx, idx, width)
        else:
            from openpyxl.utils import get_column_letter

            worksheet.column_dimensions[get_column_letter(idx + 1)].width = width
