"""Solver backends: hand a ScheduleModel to an external optimizer and map its verdict.

Every backend builds a fresh solver instance per call, so independent solves
can run side by side without sharing state.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional

import numpy as np
from ortools.linear_solver import pywraplp
from ortools.sat.python import cp_model

from workspot.config import DEFAULT_BACKEND, DEFAULT_SOLVER_MAX_TIME
from workspot.domain.errors import InvalidConfigurationError
from workspot.engine.model_builder import GREATER_EQUAL, LESS_EQUAL, LinearConstraint, ScheduleModel


class SolveStatus(Enum):
    OPTIMAL = "OPTIMAL"
    FEASIBLE = "FEASIBLE"
    INFEASIBLE = "INFEASIBLE"
    UNBOUNDED = "UNBOUNDED"
    ERROR = "ERROR"

    @property
    def has_solution(self) -> bool:
        return self in (SolveStatus.OPTIMAL, SolveStatus.FEASIBLE)


@dataclass(frozen=True)
class SolverOptions:
    """How to run the external solver. ``parameters`` is passed through untouched."""

    backend: str = DEFAULT_BACKEND
    time_limit_seconds: Optional[float] = DEFAULT_SOLVER_MAX_TIME
    num_workers: Optional[int] = None
    parameters: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SolverOutput:
    status: SolveStatus
    values: Optional[np.ndarray] = None
    objective_value: Optional[float] = None
    wall_time: float = 0.0
    detail: str = ""


def _constant_constraint_holds(constraint: LinearConstraint) -> bool:
    if constraint.sense == LESS_EQUAL:
        return 0 <= constraint.rhs
    if constraint.sense == GREATER_EQUAL:
        return 0 >= constraint.rhs
    return constraint.rhs == 0


class SolverBackend(ABC):
    """Narrow interface every solver integration implements."""

    name: str = "abstract"

    @abstractmethod
    def solve(self, model: ScheduleModel, options: SolverOptions) -> SolverOutput:
        """Solve ``model`` and return a status plus, when available, one value per variable."""

    def _trivial_outcome(self, model: ScheduleModel) -> Optional[SolverOutput]:
        """Settle models the solver never needs to see.

        Constraints without terms are not passed on; a violated one makes the
        model infeasible. A model without variables is optimal at zero.
        """
        for constraint in model.constraints:
            if not constraint.terms and not _constant_constraint_holds(constraint):
                return SolverOutput(
                    status=SolveStatus.INFEASIBLE,
                    detail=f"Constraint '{constraint.name}' cannot hold: 0 {constraint.sense} {constraint.rhs}.",
                )
        if model.num_variables == 0:
            return SolverOutput(status=SolveStatus.OPTIMAL, values=np.zeros(0), objective_value=0.0)
        return None


class CpSatBackend(SolverBackend):
    """Google OR-Tools CP-SAT. All coefficients are integers, so the model maps one to one."""

    name = "cp-sat"

    _STATUS_MAP = {
        cp_model.OPTIMAL: SolveStatus.OPTIMAL,
        cp_model.FEASIBLE: SolveStatus.FEASIBLE,
        cp_model.INFEASIBLE: SolveStatus.INFEASIBLE,
        cp_model.MODEL_INVALID: SolveStatus.ERROR,
        cp_model.UNKNOWN: SolveStatus.ERROR,
    }

    def solve(self, model: ScheduleModel, options: SolverOptions) -> SolverOutput:
        trivial = self._trivial_outcome(model)
        if trivial is not None:
            return trivial

        cp = cp_model.CpModel()
        variables = [cp.new_bool_var(name) for name in model.variable_names]

        for constraint in model.constraints:
            if not constraint.terms:
                continue
            expr = sum(coef * variables[var] for var, coef in constraint.terms)
            if constraint.sense == LESS_EQUAL:
                cp.add(expr <= constraint.rhs)
            elif constraint.sense == GREATER_EQUAL:
                cp.add(expr >= constraint.rhs)
            else:
                cp.add(expr == constraint.rhs)

        cp.maximize(
            sum(int(coef) * variables[var] for var, coef in enumerate(model.objective.tolist()) if coef)
        )

        solver = cp_model.CpSolver()
        if options.time_limit_seconds:
            solver.parameters.max_time_in_seconds = float(options.time_limit_seconds)
        if options.num_workers:
            solver.parameters.num_workers = int(options.num_workers)
        try:
            for key, value in options.parameters.items():
                setattr(solver.parameters, key, value)
        except (AttributeError, TypeError, ValueError) as exc:
            return SolverOutput(status=SolveStatus.ERROR, detail=f"Rejected CP-SAT parameter: {exc}")

        start = time.time()
        raw_status = solver.solve(cp)
        elapsed = time.time() - start

        status = self._STATUS_MAP.get(raw_status, SolveStatus.ERROR)
        detail = solver.status_name(raw_status)
        if raw_status == cp_model.UNKNOWN:
            detail = "No solution found within the solver limits."
        if not status.has_solution:
            return SolverOutput(status=status, wall_time=elapsed, detail=detail)

        values = np.array([solver.value(var) for var in variables], dtype=float)
        return SolverOutput(
            status=status,
            values=values,
            objective_value=float(solver.objective_value),
            wall_time=elapsed,
            detail=detail,
        )


class MipBackend(SolverBackend):
    """OR-Tools linear solver wrapper driving a classic MILP engine (CBC or SCIP)."""

    _STATUS_MAP = {
        pywraplp.Solver.OPTIMAL: SolveStatus.OPTIMAL,
        pywraplp.Solver.FEASIBLE: SolveStatus.FEASIBLE,
        pywraplp.Solver.INFEASIBLE: SolveStatus.INFEASIBLE,
        pywraplp.Solver.UNBOUNDED: SolveStatus.UNBOUNDED,
        pywraplp.Solver.ABNORMAL: SolveStatus.ERROR,
        pywraplp.Solver.MODEL_INVALID: SolveStatus.ERROR,
        pywraplp.Solver.NOT_SOLVED: SolveStatus.ERROR,
    }

    def __init__(self, engine: str = "CBC"):
        self.engine = engine.upper()
        self.name = self.engine.lower()

    def solve(self, model: ScheduleModel, options: SolverOptions) -> SolverOutput:
        trivial = self._trivial_outcome(model)
        if trivial is not None:
            return trivial

        solver = pywraplp.Solver.CreateSolver(self.engine)
        if solver is None:
            return SolverOutput(
                status=SolveStatus.ERROR,
                detail=f"MILP engine '{self.engine}' is not available in this OR-Tools build.",
            )

        variables = [solver.BoolVar(name) for name in model.variable_names]
        infinity = solver.infinity()
        for constraint in model.constraints:
            if not constraint.terms:
                continue
            if constraint.sense == LESS_EQUAL:
                row = solver.Constraint(-infinity, constraint.rhs, constraint.name)
            elif constraint.sense == GREATER_EQUAL:
                row = solver.Constraint(constraint.rhs, infinity, constraint.name)
            else:
                row = solver.Constraint(constraint.rhs, constraint.rhs, constraint.name)
            for var, coef in constraint.terms:
                row.SetCoefficient(variables[var], row.GetCoefficient(variables[var]) + coef)

        objective = solver.Objective()
        for var, coef in enumerate(model.objective.tolist()):
            if coef:
                objective.SetCoefficient(variables[var], coef)
        objective.SetMaximization()

        if options.time_limit_seconds:
            solver.SetTimeLimit(int(float(options.time_limit_seconds) * 1000))
        if options.num_workers:
            solver.SetNumThreads(int(options.num_workers))
        if options.parameters:
            text = "\n".join(f"{key} = {value}" for key, value in options.parameters.items())
            if not solver.SetSolverSpecificParametersAsString(text):
                return SolverOutput(
                    status=SolveStatus.ERROR,
                    detail=f"{self.engine} rejected solver parameters: {dict(options.parameters)}",
                )

        start = time.time()
        raw_status = solver.Solve()
        elapsed = time.time() - start

        status = self._STATUS_MAP.get(raw_status, SolveStatus.ERROR)
        if not status.has_solution:
            return SolverOutput(status=status, wall_time=elapsed, detail=f"{self.engine} status {raw_status}")

        values = np.array([var.solution_value() for var in variables], dtype=float)
        return SolverOutput(
            status=status,
            values=values,
            objective_value=float(objective.Value()),
            wall_time=elapsed,
            detail=self.engine,
        )


_BACKENDS = {
    "cp-sat": CpSatBackend,
    "cbc": lambda: MipBackend("CBC"),
    "scip": lambda: MipBackend("SCIP"),
}


def available_backends() -> List[str]:
    return sorted(_BACKENDS)


def get_backend(name: str) -> SolverBackend:
    key = name.strip().lower()
    if key not in _BACKENDS:
        raise InvalidConfigurationError(
            f"Unknown solver backend '{name}'. Choose one of: {', '.join(available_backends())}."
        )
    return _BACKENDS[key]()

