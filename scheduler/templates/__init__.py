"""
scheduler.templates
-------------------

Built-in model templates and a helper that registers them, together with
their constraint and objective capabilities, on a Registry.
"""
from core.registry import Registry
from scheduler.rules import (
    balance_workload_objective,
    max_consecutive_days_constraint,
    maximize_coverage_objective,
    min_rest_days_constraint,
    minimize_cost_objective,
    time_window_constraint,
)
from .work_scheduling import work_scheduling_template


def register_work_scheduling(registry: Registry) -> Registry:
    """Register the work_scheduling template and its overrides."""
    registry.register_template("work_scheduling", work_scheduling_template)

    # Register common constraints
    registry.register_constraint("time_window", time_window_constraint)
    registry.register_constraint("max_consecutive_days", max_consecutive_days_constraint)
    registry.register_constraint("min_rest_days", min_rest_days_constraint)

    # Register common objectives
    registry.register_objective("minimize_cost", minimize_cost_objective)
    registry.register_objective("maximize_coverage", maximize_coverage_objective)
    registry.register_objective("balance_workload", balance_workload_objective)
    return registry


def default_registry() -> Registry:
    return register_work_scheduling(Registry())
