import math
from datetime import date, datetime
from typing import Any, Dict, Hashable, Iterable, Mapping, Optional, Set, Tuple
import numpy as np
import pandas as pd

from exceptions.custom_errors import OverrideArgsError


def member_label(member: Hashable) -> str:
    """JSON-friendly label for an index member (dates render as ISO strings)."""
    # pd.Timestamp is a datetime subclass
    if isinstance(member, datetime):
        if (member.hour, member.minute, member.second, member.microsecond) == (0, 0, 0, 0):
            return member.date().isoformat()
        return member.isoformat()
    if isinstance(member, date):
        return member.isoformat()
    return str(member)


def match_members(values: Iterable[Any], members: Iterable[Hashable]) -> list:
    """
    Map raw data values (CSV strings, timestamps, dates) onto index members.

    Values with no matching member map to None.
    """
    by_label = {member_label(m): m for m in members}
    return [by_label.get(member_label(v)) for v in values]


def is_truthy(value: Any) -> bool:
    """Interpret boolean-ish cells (True, 1, "yes", "true")."""
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "y", "1")
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return False
    return bool(value)


def as_coefficient(value: Any):
    """Integral floats become ints so CP-SAT keeps an integer objective."""
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


# == Override argument helpers ==
def require_arg(args: Mapping[str, Any], key: str, types: Tuple[type, ...]) -> Any:
    if key not in args:
        raise OverrideArgsError(f"Missing required arg '{key}'")
    return _check_type(args[key], key, types)


def optional_arg(args: Mapping[str, Any], key: str, default: Any, types: Tuple[type, ...]) -> Any:
    if key not in args or args[key] is None:
        return default
    return _check_type(args[key], key, types)


def _check_type(value: Any, key: str, types: Tuple[type, ...]) -> Any:
    # bool is an int subclass; reject it unless explicitly allowed
    if isinstance(value, bool) and bool not in types:
        raise OverrideArgsError(f"Arg '{key}' must be {_type_names(types)}, got bool")
    if not isinstance(value, types):
        raise OverrideArgsError(
            f"Arg '{key}' must be {_type_names(types)}, got {type(value).__name__}"
        )
    return value


def _type_names(types: Tuple[type, ...]) -> str:
    return " or ".join(t.__name__ for t in types)


# == Work scheduling data helpers ==
def skill_pairs(candidate_skills: pd.DataFrame) -> Set[Tuple[str, str]]:
    """(candidate, skill) pairs granted by a candidate_skills table."""
    pairs = set()
    has_flag = "has_skill" in candidate_skills.columns
    for row in candidate_skills.to_dict(orient="records"):
        if has_flag and not is_truthy(row["has_skill"]):
            continue
        pairs.add((str(row["candidate"]), str(row["skill"])))
    return pairs


def demand_lookup(
    demand: pd.DataFrame,
    days: list,
    scenarios: Iterable[str],
) -> Dict[Tuple[str, Hashable, str], int]:
    """
    {(scenario, day, skill): required count} from a demand table.

    Rows without a scenario column apply to every scenario in `scenarios`.
    Fractional values round up to the next whole worker; non-numeric values
    raise ValueError. The first row wins for duplicate keys.
    """
    lookup: Dict[Tuple[str, Hashable, str], int] = {}
    day_members = match_members(demand["day"], days)
    scenarios = [str(s) for s in scenarios]
    row_scenarios = (
        [[s] for s in demand["scenario"].astype(str)]
        if "scenario" in demand.columns
        else [scenarios] * len(demand)
    )
    for targets, day, skill, value in zip(
        row_scenarios, day_members, demand["skill"].astype(str), demand["value"]
    ):
        if day is None:
            continue
        required = required_count(value, day, skill)
        for scenario in targets:
            lookup.setdefault((scenario, day, skill), required)
    return lookup


def required_count(value: Any, day: Hashable, skill: str) -> int:
    """Demand cell as a whole number of workers (1.5 needs 2)."""
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(
            f"Demand for ({member_label(day)}, {skill}) must be numeric, got {value!r}"
        )
    try:
        number = float(value)
    except ValueError:
        raise ValueError(
            f"Demand for ({member_label(day)}, {skill}) must be numeric, got {value!r}"
        ) from None
    if math.isnan(number) or math.isinf(number) or number < 0:
        raise ValueError(
            f"Demand for ({member_label(day)}, {skill}) must be a non-negative number, got {value!r}"
        )
    return math.ceil(number)


def get_index_or_default(spec, name: str, default: Optional[list]) -> list:
    return spec.index_values(name) if spec.has_index(name) else list(default or [])
