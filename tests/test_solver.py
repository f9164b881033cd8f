"""
End-to-end solves: model builder, solver backend and result extraction together.
"""

import numpy as np
import pytest

from workspot.config import PlannerConfig
from workspot.data_access.toy_dataset import TOY_OPTIMAL_OBJECTIVE, load_toy_dataset
from workspot.domain.errors import InvalidConfigurationError
from workspot.domain.models import PlanningData, window_ranges
from workspot.engine.backends import (
    _BACKENDS,
    MipBackend,
    SolverBackend,
    SolverOptions,
    SolverOutput,
    SolveStatus,
    get_backend,
)
from workspot.engine.extractor import compute_objective, recover_links
from workspot.engine.model_builder import build_model, employee_pairs
from workspot.engine.solver import solve_schedule

BACKENDS = ["cp-sat", "cbc"]


@pytest.fixture(params=BACKENDS)
def options(request):
    return SolverOptions(backend=request.param, time_limit_seconds=60)


def _solve(data, config, options, **kwargs):
    return solve_schedule(data, config, options, verbose=False, **kwargs)


def assert_schedule_properties(data, config, result):
    """Capacity, visit cap, link = AND and objective agreement on a solved result."""
    grid = result.assignment.grid
    assert grid.shape == (data.num_employees, data.num_days)
    assert set(np.unique(grid).tolist()) <= {0, 1}

    assert all(count <= config.num_spots for count in grid.sum(axis=0).tolist())
    for days in window_ranges(data.num_days, config.window_length):
        assert (grid[:, days.start:days.stop].sum(axis=1) <= config.max_visits_per_window).all()

    links = recover_links(grid)
    for p, (e1, e2) in enumerate(employee_pairs(data.num_employees).tolist()):
        for d in range(data.num_days):
            assert links[p, d] == (grid[e1, d] and grid[e2, d])

    assert result.objective_value == compute_objective(data, grid)
    assert result.solver_objective == pytest.approx(result.objective_value, abs=1e-6)


def _single_day(preferences, connection, num_spots=2):
    connections = [[0, connection], [0, 0]]
    return (
        PlanningData.build(["A", "B"], ["Mon"], [[preferences[0]], [preferences[1]]], connections),
        PlannerConfig(num_spots=num_spots, max_visits_per_window=1),
    )


class TestToyDataset:
    def test_toy_optimum(self, options):
        data, config = load_toy_dataset()
        result = _solve(data, config, options)

        assert result.status == SolveStatus.OPTIMAL
        assert result.objective_value == TOY_OPTIMAL_OBJECTIVE
        assert_schedule_properties(data, config, result)

    def test_toy_counts(self, options):
        data, config = load_toy_dataset()
        result = _solve(data, config, options)

        assert all(count <= 2 for count in result.assignment.day_counts())
        grid = result.assignment.grid
        assert (grid[:, 0:5].sum(axis=1) <= 2).all()
        assert (grid[:, 5:10].sum(axis=1) <= 2).all()

    def test_resolve_gives_same_objective(self, options):
        data, config = load_toy_dataset()
        first = _solve(data, config, options)
        second = _solve(data, config, options)
        assert first.objective_value == second.objective_value == TOY_OPTIMAL_OBJECTIVE

    def test_backends_agree(self):
        data, config = load_toy_dataset()
        values = {
            name: _solve(data, config, SolverOptions(backend=name)).objective_value for name in BACKENDS
        }
        assert set(values.values()) == {TOY_OPTIMAL_OBJECTIVE}

    def test_result_grid_labels(self, options):
        data, config = load_toy_dataset()
        frame = _solve(data, config, options).assignment.to_frame()
        assert list(frame.index) == data.employee_names
        assert list(frame.columns) == data.day_labels
        assert set(frame.to_numpy().ravel().tolist()) <= {0, 1}


class TestBoundaries:
    def test_zero_workspots(self, options):
        data, _ = load_toy_dataset()
        config = PlannerConfig(num_spots=0, max_visits_per_window=2)
        result = _solve(data, config, options)

        assert result.status == SolveStatus.OPTIMAL
        assert result.objective_value == 0
        assert result.assignment.grid.sum() == 0

    def test_all_unavailable_stays_home(self, options):
        data, _ = load_toy_dataset()
        nobody = np.full((data.num_employees, data.num_days), -99)
        data = PlanningData.build(data.employee_names, data.day_labels, nobody, data.connections)
        config = PlannerConfig(num_spots=data.num_employees, max_visits_per_window=5)

        result = _solve(data, config, options)

        assert result.status == SolveStatus.OPTIMAL
        assert result.objective_value == 0
        assert result.assignment.grid.sum() == 0

    def test_zero_visit_cap(self, options):
        data, _ = load_toy_dataset()
        result = _solve(data, PlannerConfig(num_spots=2, max_visits_per_window=0), options)
        assert result.status == SolveStatus.OPTIMAL
        assert result.assignment.grid.sum() == 0

    def test_partial_trailing_window(self, options):
        """Seven eager days with a 5-day window: two visits in each of the 5- and 2-day windows."""
        data = PlanningData.build(["Solo"], [f"D{d}" for d in range(7)], [[5] * 7], [[0]])
        config = PlannerConfig(num_spots=1, max_visits_per_window=2)
        result = _solve(data, config, options)

        grid = result.assignment.grid
        assert grid[0, :5].sum() == 2
        assert grid[0, 5:].sum() == 2
        assert result.objective_value == 20


class TestLinearisation:
    def test_positive_connection_rewards_meeting(self, options):
        data, config = _single_day((1, 1), connection=3)
        result = _solve(data, config, options)
        assert result.assignment.grid.tolist() == [[1], [1]]
        assert result.objective_value == 5
        assert_schedule_properties(data, config, result)

    def test_negative_connection_is_charged(self, options):
        """Both want to come, but together they lose more than one of them gains."""
        data, config = _single_day((5, 5), connection=-20)
        result = _solve(data, config, options)
        assert sorted(result.assignment.grid.ravel().tolist()) == [0, 1]
        assert result.objective_value == 5
        assert_schedule_properties(data, config, result)

    def test_large_bonus_outweighs_unavailability(self, options):
        data, config = _single_day((-99, -99), connection=200)
        result = _solve(data, config, options)
        assert result.assignment.grid.tolist() == [[1], [1]]
        assert result.objective_value == 2

    def test_lower_triangle_weight_has_no_effect(self, options):
        connections = [[0, 0], [500, 0]]
        data = PlanningData.build(["A", "B"], ["Mon"], [[-99], [-99]], connections)
        result = _solve(data, PlannerConfig(), options)
        assert result.assignment.grid.sum() == 0


class TestNonSolutions:
    def test_conflicting_requirement_is_infeasible(self, options):
        data, _ = load_toy_dataset()
        config = PlannerConfig(num_spots=0, max_visits_per_window=2)
        result = _solve(data, config, options, required=[(0, 0)])

        assert result.status == SolveStatus.INFEASIBLE
        assert result.assignment is None
        assert result.objective_value is None
        assert not result.is_solved

    def test_requirements_beyond_visit_cap(self, options):
        data, config = load_toy_dataset()
        result = _solve(data, config, options, required=[(0, 0), (0, 1), (0, 2)])
        assert result.status == SolveStatus.INFEASIBLE
        assert result.assignment is None

    def test_satisfiable_requirement_is_honoured(self, options):
        data, config = load_toy_dataset()
        result = _solve(data, config, options, required=[(3, 0)])
        assert result.status == SolveStatus.OPTIMAL
        assert result.assignment.attends(3, 0)
        assert result.objective_value < TOY_OPTIMAL_OBJECTIVE
        assert_schedule_properties(data, config, result)

    def test_missing_engine_reports_error(self):
        data, config = load_toy_dataset()
        output = MipBackend("NOT_A_REAL_ENGINE").solve(build_model(data, config), SolverOptions())
        assert output.status == SolveStatus.ERROR
        assert output.values is None

    @pytest.mark.parametrize("backend", BACKENDS)
    def test_rejected_parameter_reports_error(self, backend):
        data, config = load_toy_dataset()
        options = SolverOptions(backend=backend, parameters={"not_a_param": 3})
        result = _solve(data, config, options)
        assert result.status == SolveStatus.ERROR
        assert result.assignment is None
        assert result.detail

    def test_known_cp_sat_parameter_is_applied(self):
        data, config = load_toy_dataset()
        options = SolverOptions(backend="cp-sat", parameters={"random_seed": 7})
        result = _solve(data, config, options)
        assert result.status == SolveStatus.OPTIMAL
        assert result.objective_value == TOY_OPTIMAL_OBJECTIVE

    def test_unknown_backend_name(self):
        with pytest.raises(InvalidConfigurationError):
            get_backend("gurobi-deluxe")

    def test_only_solutions_carry_values(self):
        assert SolveStatus.OPTIMAL.has_solution
        assert SolveStatus.FEASIBLE.has_solution
        for status in (SolveStatus.INFEASIBLE, SolveStatus.UNBOUNDED, SolveStatus.ERROR):
            assert not status.has_solution


class _StoppedEarlyBackend(SolverBackend):
    """Everyone attends, every link is left at 0, and the run is reported as FEASIBLE."""

    name = "stopped-early"

    def solve(self, model, options):
        values = np.zeros(model.num_variables)
        values[model.attend.ravel()] = 1.0
        return SolverOutput(
            status=SolveStatus.FEASIBLE,
            values=values,
            objective_value=model.objective_value(values),
            detail="time limit reached",
        )


class TestFeasibleResults:
    def test_grid_score_wins_over_solver_score(self, monkeypatch, capsys):
        monkeypatch.setitem(_BACKENDS, "stopped-early", _StoppedEarlyBackend)
        data, config = _single_day((1, 1), connection=3)

        result = _solve(data, config, SolverOptions(backend="stopped-early"))

        assert result.status == SolveStatus.FEASIBLE
        assert result.is_solved
        assert result.assignment.grid.tolist() == [[1], [1]]
        assert result.objective_value == 1 + 1 + 3
        assert result.solver_objective == pytest.approx(2)
        assert result.objective_gap == pytest.approx(3)
        assert "WARNING" in capsys.readouterr().err

    def test_matching_scores_stay_quiet(self, capsys):
        data, config = load_toy_dataset()
        _solve(data, config, SolverOptions())
        assert "WARNING" not in capsys.readouterr().err


def test_empty_team(options):
    data = PlanningData.build([], ["Mon", "Tue"], np.zeros((0, 2), dtype=int), np.zeros((0, 0), dtype=int))
    result = _solve(data, PlannerConfig(), options)
    assert result.status == SolveStatus.OPTIMAL
    assert result.objective_value == 0
    assert result.assignment.grid.shape == (0, 2)
