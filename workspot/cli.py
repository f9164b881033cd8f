"""Command-line interface for the workspot planner."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from workspot.config import (
    DEFAULT_BACKEND,
    DEFAULT_MAX_VISITS_PER_WINDOW,
    DEFAULT_NUM_SPOTS,
    DEFAULT_SOLVER_MAX_TIME,
    DEFAULT_WINDOW_LENGTH,
    PlannerConfig,
)
from workspot.data_access.sheet_loader import load_planning_csv, load_planning_workbook
from workspot.data_access.toy_dataset import load_toy_dataset
from workspot.domain.models import PlanningData
from workspot.engine.backends import SolverOptions, available_backends
from workspot.engine.solver import solve_schedule
from workspot.reporting.console import print_schedule
from workspot.reporting.export import export_schedule_to_excel

EXIT_NO_SOLUTION = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Assign employees to office days to maximize preference and collaboration satisfaction."
    )
    parser.add_argument(
        "workbook",
        type=Path,
        nargs="?",
        help="Excel workbook with Preferences, Connections and Settings sheets.",
    )
    parser.add_argument(
        "--toy",
        action="store_true",
        help="Use the built-in 6 employee / 10 day example instead of a workbook.",
    )
    parser.add_argument(
        "--preferences",
        type=Path,
        metavar="CSV",
        help="Preference table as CSV (employee names, then one column per day). Needs --connections.",
    )
    parser.add_argument(
        "--connections",
        type=Path,
        metavar="CSV",
        help="Connection weight table as CSV (employee names on both axes). Needs --preferences.",
    )
    parser.add_argument(
        "--workspots",
        type=int,
        default=None,
        help=f"Workspots per day (overrides the workbook; default for CSV input: {DEFAULT_NUM_SPOTS}).",
    )
    parser.add_argument(
        "--max-visits",
        type=int,
        default=None,
        help=(
            "Maximum office days per window (overrides the workbook; "
            f"default for CSV input: {DEFAULT_MAX_VISITS_PER_WINDOW})."
        ),
    )
    parser.add_argument(
        "--window-length",
        type=int,
        default=None,
        help=f"Days per visit window (default: {DEFAULT_WINDOW_LENGTH}).",
    )
    parser.add_argument(
        "--backend",
        choices=available_backends(),
        default=DEFAULT_BACKEND,
        help=f"Solver backend (default: {DEFAULT_BACKEND}).",
    )
    parser.add_argument(
        "--max-solve-seconds",
        type=float,
        default=None,
        help="Optional override for the solver time limit in seconds.",
    )
    parser.add_argument(
        "--require",
        action="append",
        nargs=2,
        default=[],
        metavar=("NAME", "DAY"),
        help="Force NAME to be scheduled on DAY (day label as in the input). Repeatable.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Destination path for the exported Excel schedule (skipped when omitted).",
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Show a simple progress timer toward the max solve time.",
    )
    return parser


def _load_inputs(args) -> tuple[PlanningData, PlannerConfig]:
    sources = sum(bool(source) for source in (args.toy, args.workbook, args.preferences or args.connections))
    if sources != 1:
        raise ValueError("Choose exactly one input: a workbook, --toy, or --preferences with --connections.")

    if args.toy:
        data, config = load_toy_dataset()
    elif args.workbook:
        data, config = load_planning_workbook(args.workbook, window_length=args.window_length)
    else:
        if not (args.preferences and args.connections):
            raise ValueError("--preferences and --connections must be given together.")
        window_length = args.window_length if args.window_length is not None else DEFAULT_WINDOW_LENGTH
        data = load_planning_csv(args.preferences, args.connections, window_length=window_length)
        config = PlannerConfig(
            num_spots=DEFAULT_NUM_SPOTS,
            max_visits_per_window=DEFAULT_MAX_VISITS_PER_WINDOW,
            window_length=window_length,
        )

    if args.window_length is not None and args.window_length != data.window_length:
        data = PlanningData.build(
            data.employee_names, data.day_labels, data.preferences, data.connections, args.window_length
        )

    config = PlannerConfig(
        num_spots=args.workspots if args.workspots is not None else config.num_spots,
        max_visits_per_window=args.max_visits if args.max_visits is not None else config.max_visits_per_window,
        window_length=data.window_length,
    )
    return data, config.validate()


def _parse_requirements(raw: list[list[str]], data: PlanningData) -> list[tuple[int, int]]:
    """Resolve --require NAME DAY pairs to (employee, day) indices."""
    required: list[tuple[int, int]] = []
    for name, day in raw:
        try:
            required.append((data.employee_index(name), data.day_index(day)))
        except ValueError as exc:
            raise ValueError(f"Invalid --require value '{name} {day}': {exc}") from None
    return required


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        data, config = _load_inputs(args)
        required = _parse_requirements(args.require, data)
        time_limit = args.max_solve_seconds if args.max_solve_seconds is not None else DEFAULT_SOLVER_MAX_TIME
        options = SolverOptions(backend=args.backend, time_limit_seconds=time_limit)
        result = solve_schedule(data, config, options, required=required, show_progress=args.progress)
        print_schedule(result, data, config)

        output_path = args.output
        if output_path is not None and result.is_solved:
            if not str(output_path).lower().endswith(".xlsx"):
                output_path = output_path.with_name(output_path.name + ".xlsx")
            export_schedule_to_excel(result, data, config, output_path)
            print(f"\nSchedule written to {output_path}")
    except Exception as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)

    if not result.is_solved:
        sys.exit(EXIT_NO_SOLUTION)
