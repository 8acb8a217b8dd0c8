import logging

import pytest

from core.registry import Registry
from core.spec import LiteralSource, Override, Specification, TableParameter
from core.state import ModelHandle
from exceptions.custom_errors import (
    BuildError,
    BuildErrorKind,
    OverrideArgsError,
    SourceErrorKind,
)
from scheduler.builder import ModelBuilder
from utils.config_parser import parse_config_dict


class RecordingHandle:
    def __init__(self):
        self.calls = []


def _recording_registry():
    registry = Registry()
    registry.register_template("rec", lambda spec: RecordingHandle())

    def constraint(tag):
        return lambda handle, spec, args: handle.calls.append(("constraint", tag, dict(args)))

    def objective(tag):
        return lambda handle, spec, args: handle.calls.append(("objective", tag, dict(args)))

    for tag in ("a", "b", "c"):
        registry.register_constraint(tag, constraint(tag))
    for tag in ("x", "y"):
        registry.register_objective(tag, objective(tag))
    return registry


def test_constraints_apply_in_order_then_first_objective(caplog):
    spec = Specification(
        template="rec",
        overrides={
            "objective": [Override("first", "x", {"w": 1}), Override("second", "y")],
            "constraints": [Override("", "c"), Override("", "a"), Override("", "b", {"n": 2})],
        },
    )
    with caplog.at_level(logging.INFO):
        handle = ModelBuilder(_recording_registry()).build(spec)

    assert handle.calls == [
        ("constraint", "c", {}),
        ("constraint", "a", {}),
        ("constraint", "b", {"n": 2}),
        ("objective", "x", {"w": 1}),
    ]
    assert "Ignoring objective override 'second'" in caplog.text


def test_template_receives_materialized_spec():
    seen = {}

    def template(spec):
        seen["data"] = spec.parameters["rows"].data
        return RecordingHandle()

    registry = Registry()
    registry.register_template("t", template)
    spec = Specification(
        template="t", parameters={"rows": TableParameter(("a",), LiteralSource([[1], [2]]))}
    )
    ModelBuilder(registry).build(spec)

    assert seen["data"]["a"].tolist() == [1, 2]
    assert spec.parameters["rows"].data is None


def test_missing_template():
    with pytest.raises(BuildError) as exc:
        ModelBuilder(Registry()).build(Specification(template="nope"))
    assert exc.value.kind == BuildErrorKind.MISSING_CAPABILITY
    assert exc.value.name == "nope"


def test_missing_constraint_names_available_ones():
    spec = Specification(template="rec", overrides={"constraints": [Override("", "zzz")]})
    with pytest.raises(BuildError) as exc:
        ModelBuilder(_recording_registry()).build(spec)
    assert exc.value.kind == BuildErrorKind.MISSING_CAPABILITY
    assert exc.value.cause.available == ["a", "b", "c"]


def test_invalid_override_args_are_wrapped():
    registry = _recording_registry()

    def strict(handle, spec, args):
        raise OverrideArgsError("Missing required arg 'candidate'")

    registry.register_constraint("strict", strict)
    spec = Specification(template="rec", overrides={"constraints": [Override("mine", "strict")]})
    with pytest.raises(BuildError) as exc:
        ModelBuilder(registry).build(spec)
    assert exc.value.kind == BuildErrorKind.INVALID_OVERRIDE_ARGS
    assert exc.value.name == "mine"
    assert "candidate" in str(exc.value)


def test_source_failure_is_wrapped():
    spec = Specification(
        template="rec",
        parameters={"rows": TableParameter(("a", "b"), LiteralSource([[1]]))},
    )
    with pytest.raises(BuildError) as exc:
        ModelBuilder(_recording_registry()).build(spec)
    assert exc.value.kind == BuildErrorKind.SOURCE_LOAD
    assert exc.value.cause.kind == SourceErrorKind.PARSE_FAILURE


def test_template_rejecting_spec():
    spec = Specification(template="work_scheduling")
    registry = Registry()
    from scheduler.templates import register_work_scheduling

    register_work_scheduling(registry)
    with pytest.raises(BuildError) as exc:
        ModelBuilder(registry).build(spec)
    assert exc.value.kind == BuildErrorKind.TEMPLATE_FAILED


def test_work_scheduling_build(builder, scenario_spec):
    handle = builder.build(scenario_spec)

    assert isinstance(handle, ModelHandle)
    assert set(handle.variables) == {"assign", "hire"}
    assert len(handle.variable("assign")) == 4
    assert handle.objective_source == "minimize_cost"
    assert handle.applied == ["cost"]


def test_balance_workload_adds_variables(builder, scenario_config):
    scenario_config["overrides"]["objective"] = [{"function": "balance_workload"}]
    handle = builder.build(parse_config_dict(scenario_config))

    assert handle.has_variable("workload")
    assert handle.has_variable("max_workload")
    assert handle.objective_sense == "minimize"
    assert handle.applied == ["balance_workload"]
