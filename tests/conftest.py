import copy

import pytest
from fastapi.testclient import TestClient

from core.registry import Registry
from core.session import SessionStore
from scheduler.builder import ModelBuilder
from scheduler.runner import solve_model
from scheduler.templates import register_work_scheduling
from utils.config_parser import parse_config_dict
from utils.loader import DataSourceLoader

SCENARIO_CONFIG = {
    "template": "work_scheduling",
    "indexes": {
        "days": {"type": "date_range", "start": "2025-01-01", "end": "2025-01-02"},
        "candidates": {"type": "list", "values": ["Alice", "Bob"]},
        "skills": {"type": "list", "values": ["kitchen"]},
    },
    "parameters": {
        "demand": {
            "type": "table",
            "schema": ["day", "skill", "value"],
            "source": {
                "type": "literal",
                "data": [
                    ["2025-01-01", "kitchen", 1],
                    ["2025-01-02", "kitchen", 1],
                ],
            },
        },
        "candidate_skills": {
            "type": "table",
            "schema": ["candidate", "skill"],
            "source": {"type": "literal", "data": [["Alice", "kitchen"]]},
        },
        "cost_month": {
            "type": "dict",
            "key": "candidate",
            "source": {"type": "literal", "data": {"Alice": 100, "Bob": 50}},
        },
    },
    "options": {"max_daily_assignments": 1},
    "overrides": {
        "objective": [
            {"name": "cost", "function": "minimize_cost", "args": {"multiplier": 1.0}}
        ]
    },
}


@pytest.fixture()
def scenario_config():
    return copy.deepcopy(SCENARIO_CONFIG)


@pytest.fixture()
def scenario_spec(scenario_config):
    return parse_config_dict(scenario_config)


@pytest.fixture()
def registry():
    """A fresh registry with the built-in work scheduling capabilities."""
    return register_work_scheduling(Registry())


@pytest.fixture()
def builder(registry):
    return ModelBuilder(registry, DataSourceLoader())


@pytest.fixture()
def store(builder):
    return SessionStore(build_fn=builder.build, solve_fn=solve_model)


@pytest.fixture()
def client(store):
    from main import app

    app.state.store = store
    return TestClient(app)
