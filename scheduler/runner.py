import logging
from typing import Any, Dict, Optional

from core.state import ModelHandle
from .solver import run_solver
from .extractor import extract_solution

logger = logging.getLogger(__name__)


def solve_model(handle: ModelHandle, timeout: Optional[float] = None) -> Dict[str, Any]:
    """
    Solve a built model and return {status, objective_value, solve_time, variables}.

    Non-success statuses (INFEASIBLE, MODEL_INVALID, UNKNOWN on time limit) are
    returned as results with a null objective value, not raised.
    """
    if not isinstance(handle, ModelHandle):
        raise TypeError(f"Cannot solve {type(handle).__name__}; expected a ModelHandle")

    result = run_solver(handle, timeout)
    if result.success:
        logger.info(f"✅ Done! Objective = {result.objective_value}")
    else:
        logger.info(f"⚠️ No solution: {result.status}")
    return extract_solution(result)
