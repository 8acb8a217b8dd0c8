import logging
from datetime import datetime
from typing import Any, Mapping

from core.spec import Specification
from core.state import ModelHandle
from utils.constants import (
    DEFAULT_MAX_CONSECUTIVE_DAYS,
    DEFAULT_MIN_REST_DAYS,
    DEFAULT_TIME_WINDOW_END,
    DEFAULT_TIME_WINDOW_START,
)
from utils.model_utils import optional_arg, require_arg
from exceptions.custom_errors import OverrideArgsError

logger = logging.getLogger(__name__)

"""
This module contains the constraint overrides for the work scheduling template.

Every rule takes (handle, spec, args) and adds constraints on the `assign`
family in place. A handle without `assign` is left untouched.
"""


def _day_hour(day) -> int:
    # Plain dates carry no time of day
    return day.hour if isinstance(day, datetime) else 0


def time_window_constraint(handle: ModelHandle, spec: Specification, args: Mapping[str, Any]):
    """
    Restrict one candidate to days whose hour falls inside [start_time, end_time].

    Day members of a date_range index are plain dates and read as hour 0,
    so any window starting after midnight blocks every day for that candidate.

    :param args: candidate (str, required), start_time (int, default 9),
        end_time (int, default 17)
    """
    candidate = require_arg(args, "candidate", (str,))
    start_time = optional_arg(args, "start_time", DEFAULT_TIME_WINDOW_START, (int,))
    end_time = optional_arg(args, "end_time", DEFAULT_TIME_WINDOW_END, (int,))
    if not handle.has_variable("assign"):
        return

    assign = handle.variable("assign")
    candidates = spec.index_values("candidates")
    if candidate not in candidates:
        raise OverrideArgsError(
            f"Unknown candidate '{candidate}'. Available candidates: {candidates}"
        )
    days = spec.index_values("days")
    skills = spec.index_values("skills")

    if any(not isinstance(day, datetime) for day in days):
        logger.warning(
            f"⚠️ time_window for '{candidate}': day members have no time of day, treating them as hour 0"
        )

    blocked = 0
    for day in days:
        hour = _day_hour(day)
        if hour < start_time or hour > end_time:
            blocked += 1
            for skill in skills:
                handle.model.Add(assign[candidate, day, skill] == 0)
    logger.info(f"time_window: blocked {blocked}/{len(days)} days for '{candidate}'")


def max_consecutive_days_constraint(handle: ModelHandle, spec: Specification, args: Mapping[str, Any]):
    """
    Limit the assignments in every window of `max_consecutive + 1` consecutive
    days to at most `max_consecutive` for each candidate.
    """
    max_consecutive = optional_arg(args, "max_consecutive", DEFAULT_MAX_CONSECUTIVE_DAYS, (int,))
    if max_consecutive < 0:
        raise OverrideArgsError(f"Arg 'max_consecutive' must be >= 0, got {max_consecutive}")
    if not handle.has_variable("assign"):
        return

    assign = handle.variable("assign")
    candidates = spec.index_values("candidates")
    days = spec.index_values("days")
    skills = spec.index_values("skills")

    for c in candidates:
        for i in range(len(days) - max_consecutive):
            window = days[i:i + max_consecutive + 1]
            handle.model.Add(
                sum(assign[c, day, skill] for day in window for skill in skills)
                <= max_consecutive
            )


def min_rest_days_constraint(handle: ModelHandle, spec: Specification, args: Mapping[str, Any]):
    """
    Rest rule between work periods.

    For each candidate, each start day i and each rest day r in (i, i + min_rest]:
    work(i) + work(i + min_rest + 1) + work(r) <= 1,
    where work(d) is the number of skills assigned on day d.
    """
    min_rest = optional_arg(args, "min_rest", DEFAULT_MIN_REST_DAYS, (int,))
    if min_rest < 0:
        raise OverrideArgsError(f"Arg 'min_rest' must be >= 0, got {min_rest}")
    if not handle.has_variable("assign"):
        return

    assign = handle.variable("assign")
    candidates = spec.index_values("candidates")
    days = spec.index_values("days")
    skills = spec.index_values("skills")

    def work(c, d):
        return sum(assign[c, days[d], skill] for skill in skills)

    for c in candidates:
        for i in range(len(days) - min_rest - 1):
            work_today = work(c, i)
            work_after_rest = work(c, i + min_rest + 1)
            for r in range(i + 1, i + min_rest + 1):
                handle.model.Add(work_today + work_after_rest + work(c, r) <= 1)
