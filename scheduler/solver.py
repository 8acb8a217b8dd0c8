from dataclasses import dataclass
from ortools.sat.python import cp_model
import logging
from typing import Dict, Optional

from core.state import ModelHandle, VarKey
from utils.constants import (
    SOLVER_NUM_WORKERS,
    SOLVER_RANDOM_SEED,
    SOLVER_TIME_LIMIT_SECONDS,
)

logger = logging.getLogger(__name__)

SUCCESS_STATUSES = ("OPTIMAL", "FEASIBLE")


@dataclass
class SolverResult:
    """
    Raw outcome of one CP-SAT run.

    Attributes:
        status (str): CP-SAT status name (OPTIMAL, FEASIBLE, INFEASIBLE, MODEL_INVALID, UNKNOWN).
        objective_value (Optional[float]): Objective value, or None when no solution or no objective.
        wall_time (float): Solve wall time in seconds.
        values (Dict[str, Dict[VarKey, int]]): Values of every registered variable family.
    """

    status: str
    objective_value: Optional[float]
    wall_time: float
    values: Dict[str, Dict[VarKey, int]]

    @property
    def success(self) -> bool:
        return self.status in SUCCESS_STATUSES


def configure_solver(
    timeout: float = SOLVER_TIME_LIMIT_SECONDS,
    seed: int = SOLVER_RANDOM_SEED,
    workers: int = SOLVER_NUM_WORKERS,
) -> cp_model.CpSolver:
    """Configure the CP solver."""
    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = timeout
    solver.parameters.random_seed = seed
    solver.parameters.num_search_workers = workers
    solver.parameters.log_search_progress = False
    return solver


def run_solver(handle: ModelHandle, timeout: Optional[float] = None) -> SolverResult:
    """Solve a built model once and read back every registered variable."""
    num_constraints, num_vars = handle.size()
    logger.info(f"🚀 Solving: #constraints = {num_constraints},  #vars = {num_vars}")

    solver = configure_solver(timeout if timeout is not None else SOLVER_TIME_LIMIT_SECONDS)
    status = solver.Solve(handle.model)
    status_name = solver.StatusName(status)

    logger.info(f"Solver status: {status_name}")
    logger.info(f"⏱ Solve time: {solver.WallTime():.2f} seconds")

    if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
        return SolverResult(status_name, None, solver.WallTime(), {})

    objective = solver.ObjectiveValue() if handle.objective_sense else None
    values = {
        name: {key: solver.Value(var) for key, var in family.items()}
        for name, family in handle.variables.items()
    }
    return SolverResult(status_name, objective, solver.WallTime(), values)
