import json

import pandas as pd
import pytest
import requests

from core.spec import (
    APISource,
    CSVSource,
    FunctionSource,
    JSONSource,
    LiteralSource,
    MappingParameter,
    ScalarParameter,
    Specification,
    TableParameter,
)
from exceptions.custom_errors import SourceErrorKind, SourceLoadError
from utils.loader import DataSourceLoader, to_dataframe, to_mapping


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


@pytest.fixture()
def loader(tmp_path):
    return DataSourceLoader(data_dir=tmp_path)


# === CSV ===
def test_csv_source(tmp_path, loader):
    path = tmp_path / "demand.csv"
    path.write_text("day,skill,value\n2025-01-01,kitchen,2\n", encoding="utf-8")

    df = loader.load(CSVSource(str(path)))
    assert list(df.columns) == ["day", "skill", "value"]
    assert df.iloc[0]["value"] == 2


def test_csv_relative_path_falls_back_to_data_dir(tmp_path, loader):
    (tmp_path / "skills.csv").write_text("candidate,skill\nAlice,kitchen\n", encoding="utf-8")
    df = loader.load(CSVSource("skills.csv"))
    assert df["candidate"].tolist() == ["Alice"]


def test_csv_options_are_forwarded(tmp_path, loader):
    path = tmp_path / "semi.csv"
    path.write_text("a;b\n1;2\n", encoding="utf-8")
    df = loader.load(CSVSource(str(path), {"sep": ";"}))
    assert list(df.columns) == ["a", "b"]


def test_csv_missing_file(loader):
    with pytest.raises(SourceLoadError) as exc:
        loader.load(CSVSource("nope.csv"))
    assert exc.value.kind == SourceErrorKind.NOT_FOUND
    assert exc.value.source == "csv:nope.csv"


def test_csv_parse_failure(tmp_path, loader):
    path = tmp_path / "empty.csv"
    path.write_text("", encoding="utf-8")
    with pytest.raises(SourceLoadError) as exc:
        loader.load(CSVSource(str(path)))
    assert exc.value.kind == SourceErrorKind.PARSE_FAILURE


# === JSON ===
def test_json_key_path(tmp_path, loader):
    path = tmp_path / "costs.json"
    path.write_text(json.dumps({"costs": {"monthly": {"Alice": 100}}}), encoding="utf-8")
    assert loader.load(JSONSource(str(path), ("costs", "monthly"))) == {"Alice": 100}


def test_json_key_path_through_list(tmp_path, loader):
    path = tmp_path / "rows.json"
    path.write_text(json.dumps({"rows": [{"v": 1}, {"v": 2}]}), encoding="utf-8")
    assert loader.load(JSONSource(str(path), ("rows", "1", "v"))) == 2


def test_json_key_path_missing(tmp_path, loader):
    path = tmp_path / "costs.json"
    path.write_text(json.dumps({"costs": {}}), encoding="utf-8")
    with pytest.raises(SourceLoadError) as exc:
        loader.load(JSONSource(str(path), ("costs", "weekly")))
    assert exc.value.kind == SourceErrorKind.KEY_PATH_MISSING
    assert "costs.weekly" in str(exc.value)


def test_json_parse_failure(tmp_path, loader):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(SourceLoadError) as exc:
        loader.load(JSONSource(str(path)))
    assert exc.value.kind == SourceErrorKind.PARSE_FAILURE


# === API ===
def test_api_source_applies_transform(monkeypatch, loader):
    calls = {}

    def fake_get(url, headers=None, timeout=None):
        calls["url"] = url
        calls["headers"] = headers
        return FakeResponse({"items": [1, 2, 3]})

    monkeypatch.setattr(requests, "get", fake_get)
    loader.register_function("items", lambda body: body["items"])

    data = loader.load(APISource("http://example.test/data", {"X-Token": "t"}, "items"))
    assert data == [1, 2, 3]
    assert calls == {"url": "http://example.test/data", "headers": {"X-Token": "t"}}


def test_api_non_success_status(monkeypatch, loader):
    monkeypatch.setattr(requests, "get", lambda *a, **kw: FakeResponse({}, status_code=503))
    with pytest.raises(SourceLoadError) as exc:
        loader.load(APISource("http://example.test"))
    assert exc.value.kind == SourceErrorKind.UNREACHABLE


def test_api_transport_failure(monkeypatch, loader):
    def fake_get(*args, **kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(requests, "get", fake_get)
    with pytest.raises(SourceLoadError) as exc:
        loader.load(APISource("http://example.test"))
    assert exc.value.kind == SourceErrorKind.UNREACHABLE


def test_api_invalid_json(monkeypatch, loader):
    monkeypatch.setattr(requests, "get", lambda *a, **kw: FakeResponse(ValueError("bad")))
    with pytest.raises(SourceLoadError) as exc:
        loader.load(APISource("http://example.test"))
    assert exc.value.kind == SourceErrorKind.PARSE_FAILURE


# === Function / literal ===
def test_function_source(loader):
    loader.register_function("repeat", lambda value, n: [value] * n)
    assert loader.load(FunctionSource("repeat", ("x", 2))) == ["x", "x"]


def test_function_source_failures(loader):
    with pytest.raises(SourceLoadError) as exc:
        loader.load(FunctionSource("missing"))
    assert exc.value.kind == SourceErrorKind.CALLABLE_FAILED
    assert "Available functions" in str(exc.value)

    loader.register_function("boom", lambda: 1 / 0)
    with pytest.raises(SourceLoadError) as exc:
        loader.load(FunctionSource("boom"))
    assert exc.value.kind == SourceErrorKind.CALLABLE_FAILED
    assert isinstance(exc.value.__cause__, ZeroDivisionError)


def test_literal_source_is_verbatim(loader):
    payload = {"a": [1, 2]}
    assert loader.load(LiteralSource(payload)) is payload


# === Caching ===
def test_cache_memoizes_file_sources(tmp_path):
    path = tmp_path / "c.json"
    path.write_text(json.dumps({"v": 1}), encoding="utf-8")
    loader = DataSourceLoader(cache=True, data_dir=tmp_path)

    first = loader.load(JSONSource(str(path)))
    path.write_text(json.dumps({"v": 2}), encoding="utf-8")
    assert loader.load(JSONSource(str(path))) == first == {"v": 1}

    loader.clear_cache()
    assert loader.load(JSONSource(str(path))) == {"v": 2}


def test_cache_skips_function_sources():
    counter = {"n": 0}

    def tick():
        counter["n"] += 1
        return counter["n"]

    loader = DataSourceLoader(functions={"tick": tick}, cache=True)
    assert loader.load(FunctionSource("tick")) == 1
    assert loader.load(FunctionSource("tick")) == 2


# === Conversion and materialization ===
def test_to_dataframe_shapes():
    schema = ["a", "b"]
    expected = pd.DataFrame({"a": [1], "b": [2]})
    pd.testing.assert_frame_equal(to_dataframe([[1, 2]], schema), expected)
    pd.testing.assert_frame_equal(to_dataframe([{"a": 1, "b": 2}], schema), expected)
    pd.testing.assert_frame_equal(to_dataframe({"a": [1], "b": [2]}, schema), expected)
    assert to_dataframe([], schema).empty


def test_to_dataframe_rejects_wrong_row_length():
    with pytest.raises(ValueError, match="Schema length"):
        to_dataframe([[1, 2, 3]], ["a", "b"])


def test_to_mapping_from_table_uses_key_column():
    df = pd.DataFrame({"cost": [100, 50], "candidate": ["Alice", "Bob"]})
    assert to_mapping(df, "candidate") == {"Alice": 100, "Bob": 50}
    assert to_mapping([{"name": "A", "v": 1}], "missing") == {"A": 1}


def test_materialize_spec_fills_missing_data_only(loader):
    cached = pd.DataFrame({"a": [9]})
    spec = Specification(
        template="t",
        parameters={
            "fresh": TableParameter(("a",), LiteralSource([[1]])),
            "patched": TableParameter(("a",), LiteralSource([[2]]), data=cached),
            "costs": MappingParameter("k", LiteralSource({"x": 1})),
            "scalar": ScalarParameter(3),
        },
    )
    loaded = loader.materialize_spec(spec)

    assert loaded is not spec
    assert spec.parameters["fresh"].data is None
    assert loaded.parameters["fresh"].data["a"].tolist() == [1]
    assert loaded.parameters["patched"].data is cached
    assert dict(loaded.parameters["costs"].data) == {"x": 1}
    assert loader.materialize_spec(loaded) is loaded


def test_materialize_schema_mismatch(loader):
    param = TableParameter(("a", "b"), LiteralSource([[1]]))
    with pytest.raises(SourceLoadError) as exc:
        loader.materialize(param)
    assert exc.value.kind == SourceErrorKind.PARSE_FAILURE
