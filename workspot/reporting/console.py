"""Console output helpers for solved schedules."""

from __future__ import annotations

from workspot.config import PlannerConfig
from workspot.domain.models import PlanningData
from workspot.engine.backends import SolveStatus
from workspot.reporting.stats import (
    co_attendance,
    constraint_violations,
    satisfaction_breakdown,
    window_visit_counts,
)


def print_schedule(result, data: PlanningData, config: PlannerConfig):
    """
    Display the schedule in a readable format with statistics.
    """

    print("\n" + "=" * 100)
    print(f"SCHEDULE STATUS: {result.status.value}")
    print("=" * 100)

    if not result.is_solved:
        print("No solution found!")
        if result.detail:
            print(f"  Solver detail: {result.detail}")
        if result.status == SolveStatus.INFEASIBLE:
            print("\nPossible reasons:")
            print("  - Required attendances exceed the workspots per day")
            print("  - Required attendances exceed the visits allowed per window")
        elif result.status == SolveStatus.ERROR:
            print("  - Consider increasing the solver time limit or choosing another backend")
        return

    assignment = result.assignment
    print("\nSolution found!")
    print("\nSolver Statistics:")
    print(f"  - Backend: {result.backend}")
    print(f"  - Solver computation time: {result.wall_time:.2f} seconds")
    print(f"  - Satisfaction score: {result.objective_value}")
    if result.solver_objective is not None:
        print(f"  - Solver-reported score: {result.solver_objective:g}")

    name_width = max([len("Employee")] + [len(name) for name in data.employee_names]) + 2
    column_width = max([4] + [len(label) for label in data.day_labels]) + 2

    print(f"\n{'─' * 100}")
    header = f"{'Employee':<{name_width}}" + "".join(f"{label:<{column_width}}" for label in data.day_labels)
    print(header)
    print("─" * len(header))
    for e, name in enumerate(data.employee_names):
        cells = "".join(
            f"{'X' if assignment.attends(e, d) else '.':<{column_width}}" for d in range(data.num_days)
        )
        print(f"{name:<{name_width}}{cells}")
    counts = "".join(f"{count:<{column_width}}" for count in assignment.day_counts())
    print(f"{'Count':<{name_width}}{counts}")

    print(f"\n{'=' * 100}")
    print("EMPLOYEE SUMMARY")
    print(f"{'=' * 100}\n")

    visits = window_visit_counts(assignment, config.window_length)
    print(f"{'Employee':<{name_width}}{'Days':<8}{'Per window':<20}{'Days in office'}")
    print("─" * 100)
    for e, name in enumerate(data.employee_names):
        days_in = [data.day_labels[d] for d in range(data.num_days) if assignment.attends(e, d)]
        per_window = "/".join(str(v) for v in visits[e].tolist())
        days_str = ", ".join(days_in) if days_in else "None"
        print(f"{name:<{name_width}}{len(days_in):<8}{per_window:<20}{days_str}")

    pairs = co_attendance(data, assignment)
    if pairs:
        print(f"\n{'=' * 100}")
        print("TEAM-UPS")
        print(f"{'=' * 100}\n")
        for first, second, shared, weight in pairs:
            print(f"  {first} & {second}: {shared} day(s) together (weight {weight:+d})")

    breakdown = satisfaction_breakdown(data, assignment)
    print(
        f"\nPreferences {breakdown['preference']:+d}, connections {breakdown['connection']:+d}, "
        f"total {breakdown['total']:+d}"
    )

    problems = constraint_violations(assignment, config)
    if problems:
        print("\nLIMIT CHECK FAILED:")
        for problem in problems:
            print(f"  - {problem}")
    else:
        print("Limit check: all workspot and visit limits respected.")
