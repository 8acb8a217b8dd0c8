from datetime import date

import pandas as pd
import pytest

from core.spec import (
    ConfigPatch,
    DateRangeIndex,
    ListIndex,
    LiteralSource,
    MappingParameter,
    Override,
    ScalarParameter,
    Specification,
    TableParameter,
)


def test_date_range_members_are_daily_and_inclusive():
    index = DateRangeIndex(date(2025, 1, 30), date(2025, 2, 2))
    members = index.members()
    assert members[0] == date(2025, 1, 30)
    assert members[-1] == date(2025, 2, 2)
    assert len(members) == 4
    assert all((b - a).days == 1 for a, b in zip(members, members[1:]))


def test_date_range_single_day():
    assert DateRangeIndex(date(2025, 1, 1), date(2025, 1, 1)).members() == [date(2025, 1, 1)]


def test_date_range_rejects_reversed_bounds():
    with pytest.raises(ValueError, match="Start date must be <= end date"):
        DateRangeIndex(date(2025, 1, 2), date(2025, 1, 1))


def test_list_index_keeps_order_and_rejects_empty():
    assert ListIndex(["b", "a", "c"]).members() == ["b", "a", "c"]
    with pytest.raises(ValueError):
        ListIndex([])


def test_table_parameter_requires_schema():
    with pytest.raises(ValueError):
        TableParameter((), LiteralSource([]))


@pytest.mark.parametrize(
    "value, value_type",
    [(3, "int"), (2.5, "float"), (2, "float"), ("x", "str"), (True, "bool"), ([1], "any")],
)
def test_scalar_parameter_accepts_matching_values(value, value_type):
    assert ScalarParameter(value, value_type).value == value


@pytest.mark.parametrize("value, value_type", [("3", "int"), (True, "int"), (1, "bool"), (1, "complex")])
def test_scalar_parameter_rejects_mismatched_values(value, value_type):
    with pytest.raises(ValueError):
        ScalarParameter(value, value_type)


def test_specification_requires_template():
    with pytest.raises(ValueError):
        Specification(template="")


def test_specification_sections_are_read_only():
    spec = Specification(template="t", options={"a": 1})
    with pytest.raises(TypeError):
        spec.options["a"] = 2


def test_with_option_shares_untouched_sections():
    index = ListIndex(["x"])
    param = ScalarParameter(1, "int")
    spec = Specification(template="t", indexes={"i": index}, parameters={"p": param})
    updated = spec.with_option("k", 5)

    assert updated is not spec
    assert updated.options["k"] == 5
    assert "k" not in spec.options
    assert updated.indexes["i"] is index
    assert updated.parameters["p"] is param


def test_index_values_and_missing_index():
    spec = Specification(template="t", indexes={"skills": ListIndex(["kitchen"])})
    assert spec.index_values("skills") == ["kitchen"]
    assert spec.has_index("skills")
    with pytest.raises(KeyError):
        spec.index_values("days")


def test_parameter_data_prefers_cached_data():
    df = pd.DataFrame({"a": [1]})
    spec = Specification(
        template="t",
        parameters={
            "table": TableParameter(("a",), LiteralSource([[2]]), data=df),
            "scalar": ScalarParameter(7, "int"),
        },
    )
    assert spec.parameter_data("table") is df
    assert spec.parameter_data("scalar") == 7


def test_parameter_data_loads_from_source_without_cache():
    spec = Specification(
        template="t",
        parameters={"costs": MappingParameter("candidate", LiteralSource({"Alice": 10}))},
    )
    assert spec.parameter_data("costs") == {"Alice": 10}
    # nothing is written back
    assert spec.parameters["costs"].data is None


def test_overrides_for_unknown_phase_is_empty():
    spec = Specification(
        template="t", overrides={"constraints": [Override("a", "time_window")]}
    )
    assert len(spec.overrides_for("constraints")) == 1
    assert spec.overrides_for("objective") == ()


def test_config_patch_from_dict_splits_dotted_path():
    patch = ConfigPatch.from_dict({"path": "options.horizon", "value": "week"})
    assert patch.operation == "merge"
    assert patch.path == ("options", "horizon")
