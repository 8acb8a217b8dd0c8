import logging
from typing import Any, Mapping

from core.spec import Specification
from core.state import ModelHandle
from utils.model_utils import as_coefficient, optional_arg

logger = logging.getLogger(__name__)

"""
Objective overrides for the work scheduling template.

Each one replaces the handle's current objective.
"""


def minimize_cost_objective(handle: ModelHandle, spec: Specification, args: Mapping[str, Any]):
    """
    Minimize multiplier * sum(cost_month[c] * hire[c]).

    Candidates without a cost entry contribute nothing. Without a `cost_month`
    parameter or a `hire` family the current objective is kept.
    """
    multiplier = optional_arg(args, "multiplier", 1.0, (int, float))
    if "cost_month" not in spec.parameters or not handle.has_variable("hire"):
        logger.info("minimize_cost: no cost data or hire variables, objective unchanged")
        return

    cost = spec.parameter_data("cost_month")
    hire = handle.variable("hire")
    handle.minimize(
        sum(
            as_coefficient(multiplier * cost[c]) * hire[c,]
            for c in spec.index_values("candidates")
            if c in cost
        ),
        source="minimize_cost",
    )


def maximize_coverage_objective(handle: ModelHandle, spec: Specification, args: Mapping[str, Any]):
    """Maximize weight * total assignments."""
    weight = as_coefficient(optional_arg(args, "weight", 1.0, (int, float)))
    if not handle.has_variable("assign"):
        return
    handle.maximize(weight * sum(handle.variable("assign").values()), source="maximize_coverage")


def balance_workload_objective(handle: ModelHandle, spec: Specification, args: Mapping[str, Any]):
    """
    Minimize the largest per-candidate workload.

    Adds `workload[c]` (total assignments of c) and `max_workload` to the handle.
    """
    if not handle.has_variable("assign"):
        return

    assign = handle.variable("assign")
    candidates = spec.index_values("candidates")
    days = spec.index_values("days")
    skills = spec.index_values("skills")
    upper = len(days) * len(skills)

    workload = handle.add_int_vars("workload", candidates, 0, upper)
    max_workload = handle.add_int_var("max_workload", 0, upper)

    for c in candidates:
        handle.model.Add(
            workload[c,] == sum(assign[c, day, skill] for day in days for skill in skills)
        )
        handle.model.Add(max_workload >= workload[c,])

    handle.minimize(max_workload, source="balance_workload")
