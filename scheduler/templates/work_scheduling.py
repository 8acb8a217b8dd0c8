import logging
from itertools import product

from core.spec import Specification
from core.state import ModelHandle
from utils.constants import DEFAULT_MAX_DAILY_ASSIGNMENTS, DEFAULT_SCENARIO
from utils.model_utils import (
    as_coefficient,
    demand_lookup,
    get_index_or_default,
    skill_pairs,
)

logger = logging.getLogger(__name__)

"""
Work scheduling template: hire candidates and assign them to (day, skill)
slots so that every scenario's demand is covered.

Expects indexes `days`, `candidates`, `skills` (and optionally `scenarios`),
table parameters `demand` [scenario?, day, skill, value] and
`candidate_skills` [candidate, skill, has_skill?], and optionally a
`cost_month` mapping candidate -> fixed hiring cost.
"""


def work_scheduling_template(spec: Specification) -> ModelHandle:
    """
    Build the base model.

    Variables:
        assign[candidate, day, skill]: candidate works that skill on that day.
        hire[candidate]: candidate is hired (a one-time cost, independent of days worked).

    Intrinsic constraints: demand coverage, skill eligibility, hire-to-assign,
    and at most `options.max_daily_assignments` assignments per candidate per day.
    Intrinsic objective: minimize hiring cost, or total assignments without costs.
    """
    handle = ModelHandle()
    model = handle.model

    # === Indexes ===
    days = spec.index_values("days")
    candidates = spec.index_values("candidates")
    skills = spec.index_values("skills")
    scenarios = get_index_or_default(spec, "scenarios", [DEFAULT_SCENARIO])

    # === Parameters ===
    demand = demand_lookup(spec.parameter_data("demand"), days, scenarios)
    granted = skill_pairs(spec.parameter_data("candidate_skills"))
    cost = (
        spec.parameter_data("cost_month") if "cost_month" in spec.parameters else None
    )

    # === Decision variables ===
    assign = handle.add_bool_vars("assign", product(candidates, days, skills))
    hire = handle.add_bool_vars("hire", candidates)

    # Demand constraints
    for scenario in scenarios:
        for day in days:
            for skill in skills:
                required = demand.get((scenario, day, skill))
                if required is not None:
                    # Unskilled candidates are pinned to 0 below
                    model.Add(
                        sum(assign[c, day, skill] for c in candidates) >= required
                    )

    # Skill constraints - only assign if candidate has skill
    for c, day, skill in product(candidates, days, skills):
        if (c, skill) not in granted:
            model.Add(assign[c, day, skill] == 0)

    # Hiring constraints - must hire to assign
    for c, day, skill in product(candidates, days, skills):
        model.Add(assign[c, day, skill] <= hire[c,])

    # Daily work limit per person
    max_daily = spec.options.get("max_daily_assignments", DEFAULT_MAX_DAILY_ASSIGNMENTS)
    if isinstance(max_daily, bool) or not isinstance(max_daily, int) or max_daily < 0:
        raise ValueError(
            f"Option 'max_daily_assignments' must be a non-negative integer, got {max_daily!r}"
        )
    for c, day in product(candidates, days):
        model.Add(sum(assign[c, day, skill] for skill in skills) <= max_daily)

    # Objective function
    if cost is not None:
        handle.minimize(
            sum(as_coefficient(cost[c]) * hire[c,] for c in candidates if c in cost),
            source="work_scheduling",
        )
    else:
        # Default objective: minimize total assignments
        handle.minimize(sum(assign.values()), source="work_scheduling")

    handle.metadata.update(
        days=days, candidates=candidates, skills=skills, scenarios=scenarios
    )
    return handle
