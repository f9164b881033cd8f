from __future__ import annotations

import sys
import threading
import time
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from workspot.config import OBJECTIVE_TOLERANCE, PlannerConfig
from workspot.domain.models import AttendanceAssignment, PlanningData
from workspot.engine.backends import SolverOptions, SolveStatus, get_backend
from workspot.engine.extractor import compute_objective, extract_assignment
from workspot.engine.model_builder import build_model


@dataclass(frozen=True)
class ScheduleResult:
    """Outcome of one solve. ``assignment`` is only set when the solver produced a solution."""

    status: SolveStatus
    assignment: Optional[AttendanceAssignment]
    objective_value: Optional[int]
    solver_objective: Optional[float]
    wall_time: float
    backend: str
    detail: str = ""

    @property
    def is_solved(self) -> bool:
        return self.assignment is not None

    @property
    def objective_gap(self) -> Optional[float]:
        if self.objective_value is None or self.solver_objective is None:
            return None
        return abs(self.objective_value - self.solver_objective)


def solve_schedule(
    data: PlanningData,
    config: PlannerConfig,
    options: SolverOptions | None = None,
    *,
    required: Iterable[Tuple[int, int]] = (),
    show_progress: bool = False,
    verbose: bool = True,
) -> ScheduleResult:
    """Main function to build and solve the workspot model"""

    options = options or SolverOptions()
    backend = get_backend(options.backend)

    # ============================================================================
    # STEP 1: BUILD THE MODEL (input errors surface here, before any solving)
    # ============================================================================

    model = build_model(data, config)
    for employee, day in required:
        model.require_attendance(employee, day)

    # ============================================================================
    # STEP 2: SOLVE
    # ============================================================================

    solver_max_time = options.time_limit_seconds
    stop_event = threading.Event()
    progress_thread = None
    if show_progress and solver_max_time:
        def _progress():
            start = time.time()
            while not stop_event.is_set():
                elapsed = time.time() - start
                pct = min(100, (elapsed / solver_max_time) * 100)
                print(f"\rProgress: {elapsed:5.1f}s / {solver_max_time}s ({pct:4.1f}%)", end="", flush=True)
                stop_event.wait(1)
            print("\r", end="", flush=True)
        progress_thread = threading.Thread(target=_progress, daemon=True)
        progress_thread.start()

    if verbose:
        print(f"Solving the workspot problem with {backend.name}...")
        print(f"   - {data.num_employees} employees")
        print(f"   - {data.num_days} days ({config.num_spots} workspots per day)")
        print(f"   - max {config.max_visits_per_window} visits per {config.window_length}-day window")
        print(f"   - {model.num_variables} binary variables, {model.num_constraints} constraints")
        print()

    try:
        output = backend.solve(model, options)
    finally:
        stop_event.set()
        if progress_thread:
            progress_thread.join(timeout=1)

    # ============================================================================
    # STEP 3: DECODE THE SOLUTION
    # ============================================================================

    if not output.status.has_solution:
        return ScheduleResult(
            status=output.status,
            assignment=None,
            objective_value=None,
            solver_objective=None,
            wall_time=output.wall_time,
            backend=backend.name,
            detail=output.detail,
        )

    assignment = extract_assignment(model, data, output.values)
    objective_value = compute_objective(data, assignment.grid)
    if output.objective_value is not None and abs(objective_value - output.objective_value) > OBJECTIVE_TOLERANCE:
        # Under a time limit the solver may leave a rewarded link at 0; the grid value is authoritative
        print(
            f"WARNING: solver reported objective {output.objective_value:g} "
            f"but the attendance grid scores {objective_value} ({output.status.value}).",
            file=sys.stderr,
        )

    return ScheduleResult(
        status=output.status,
        assignment=assignment,
        objective_value=objective_value,
        solver_objective=output.objective_value,
        wall_time=output.wall_time,
        backend=backend.name,
        detail=output.detail,
    )
