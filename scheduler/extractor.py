from typing import Any, Dict

from core.state import VarKey
from utils.model_utils import member_label
from .solver import SolverResult


def nest_values(family: Dict[VarKey, int]) -> Any:
    """
    Turn {(a, b, c): v} into {"a": {"b": {"c": v}}}.

    A family holding a single scalar variable (empty key) collapses to its value.
    """
    if set(family) == {()}:
        return family[()]

    nested: Dict[str, Any] = {}
    for key, value in family.items():
        node = nested
        for member in key[:-1]:
            node = node.setdefault(member_label(member), {})
        node[member_label(key[-1])] = value
    return nested


def extract_solution(result: SolverResult) -> Dict[str, Any]:
    """Build the solve result payload returned to callers."""
    return {
        "status": result.status,
        "objective_value": result.objective_value,
        "solve_time": result.wall_time,
        "variables": {name: nest_values(family) for name, family in result.values.items()},
    }
