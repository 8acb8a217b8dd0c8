import copy
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

import pandas as pd
import requests

from config.paths import DATA_DIR
from core.spec import (
    APISource,
    CSVSource,
    DataSource,
    FunctionSource,
    JSONSource,
    LiteralSource,
    MappingParameter,
    Parameter,
    ScalarParameter,
    Specification,
    TableParameter,
)
from exceptions.custom_errors import SourceErrorKind, SourceLoadError
from utils.config_parser import source_to_dict

logger = logging.getLogger(__name__)


def describe_source(source: DataSource) -> str:
    """Short human-readable label for a source, used in logs and errors."""
    match source:
        case CSVSource():
            return f"csv:{source.path}"
        case JSONSource():
            suffix = f"#{'.'.join(source.key_path)}" if source.key_path else ""
            return f"json:{source.path}{suffix}"
        case APISource():
            return f"api:{source.url}"
        case FunctionSource():
            return f"function:{source.function}"
        case LiteralSource():
            return "literal"
        case _:
            raise TypeError(f"Unknown source type: {type(source).__name__}")


def to_dataframe(data: Any, schema: Sequence[str]) -> pd.DataFrame:
    """
    Convert loaded or patched data into a DataFrame with the declared schema.

    Accepts an existing DataFrame, a list of records (dicts keyed by column),
    a list of rows (sequences in schema order) or a dict of columns.

    Raises:
        ValueError: If the data shape does not match the schema.
    """
    schema = list(schema)

    if isinstance(data, pd.DataFrame):
        df = data.copy()
    elif isinstance(data, Mapping):
        df = pd.DataFrame(dict(data))
    elif isinstance(data, Sequence) and not isinstance(data, (str, bytes)):
        rows = list(data)
        if not rows:
            return pd.DataFrame(columns=schema)
        if all(isinstance(row, Mapping) for row in rows):
            missing = sorted({col for row in rows for col in schema if col not in row})
            if missing:
                raise ValueError(f"Rows are missing schema columns: {missing}")
            df = pd.DataFrame.from_records(
                [{col: row[col] for col in schema} for row in rows], columns=schema
            )
        else:
            for i, row in enumerate(rows):
                if isinstance(row, (str, bytes)) or not isinstance(row, Sequence):
                    raise ValueError(f"Row {i} is not a sequence: {row!r}")
                if len(row) != len(schema):
                    raise ValueError(
                        f"Schema length ({len(schema)}) doesn't match row {i} length ({len(row)})"
                    )
            df = pd.DataFrame([list(row) for row in rows], columns=schema)
    else:
        raise ValueError(f"Cannot build a table from {type(data).__name__}")

    missing = [col for col in schema if col not in df.columns]
    if missing:
        raise ValueError(f"Missing expected columns {missing} in {list(df.columns)}")
    return df


def to_mapping(data: Any, key: str) -> Dict[Any, Any]:
    """
    Convert loaded data into a key -> value dict.

    Tables use the `key` column (or the first column) as keys and the first
    remaining column as values.
    """
    if isinstance(data, Mapping):
        return dict(data)

    if isinstance(data, list) and all(isinstance(row, Mapping) for row in data):
        data = pd.DataFrame.from_records(data)

    if isinstance(data, pd.DataFrame):
        if data.shape[1] < 2:
            raise ValueError(
                f"Mapping data needs at least two columns, got {list(data.columns)}"
            )
        key_col = key if key in data.columns else data.columns[0]
        value_col = next(col for col in data.columns if col != key_col)
        return dict(zip(data[key_col], data[value_col]))

    raise ValueError(f"Cannot build a mapping from {type(data).__name__}")


class DataSourceLoader:
    """
    Resolves DataSource recipes into data.

    Functions referenced by `FunctionSource` and by `APISource.transform` are
    looked up by id in this loader's own function table.
    """

    def __init__(
        self,
        functions: Optional[Dict[str, Callable[..., Any]]] = None,
        cache: bool = False,
        data_dir: Path = DATA_DIR,
        timeout: float = 30.0,
    ):
        self.functions: Dict[str, Callable[..., Any]] = dict(functions or {})
        self.cache_enabled = cache
        self.data_dir = Path(data_dir)
        self.timeout = timeout
        self._cache: Dict[str, Any] = {}

    def register_function(self, name: str, func: Callable[..., Any]) -> None:
        self.functions[name] = func
        logger.info(f"Registered source function: {name}")

    def clear_cache(self) -> None:
        self._cache.clear()

    # == Loading ==
    def load(self, source: DataSource) -> Any:
        """Materialize a source. Raises SourceLoadError on failure."""
        key = self._cache_key(source)
        if key is not None and key in self._cache:
            logger.info(f"Cache hit for {describe_source(source)}")
            return copy.deepcopy(self._cache[key])

        logger.info(f"Loading data from {describe_source(source)}")
        match source:
            case CSVSource():
                data = self._load_csv(source)
            case JSONSource():
                data = self._load_json(source)
            case APISource():
                data = self._load_api(source)
            case FunctionSource():
                data = self._load_function(source)
            case LiteralSource():
                data = source.data
            case _:
                raise TypeError(f"Unknown source type: {type(source).__name__}")

        if key is not None:
            self._cache[key] = copy.deepcopy(data)
        return data

    def _cache_key(self, source: DataSource) -> Optional[str]:
        # Network and function sources are live; never memoize them
        if not self.cache_enabled or isinstance(source, (APISource, FunctionSource)):
            return None
        return json.dumps(source_to_dict(source), sort_keys=True, default=str)

    def resolve_path(self, path: str) -> Path:
        """Resolve relative paths against the working directory, then DATA_DIR."""
        candidate = Path(path)
        if candidate.is_absolute() or candidate.exists():
            return candidate
        fallback = self.data_dir / candidate
        return fallback if fallback.exists() else candidate

    def _load_csv(self, source: CSVSource) -> pd.DataFrame:
        path = self.resolve_path(source.path)
        if not path.is_file():
            raise SourceLoadError(
                SourceErrorKind.NOT_FOUND,
                f"CSV file not found: {source.path}",
                describe_source(source),
            )
        try:
            return pd.read_csv(path, **dict(source.options))
        except Exception as e:
            logger.error(f"Failed to parse CSV file {path}: {e}")
            raise SourceLoadError(
                SourceErrorKind.PARSE_FAILURE,
                f"Failed to load CSV file {source.path}: {e}",
                describe_source(source),
            ) from e

    def _load_json(self, source: JSONSource) -> Any:
        path = self.resolve_path(source.path)
        if not path.is_file():
            raise SourceLoadError(
                SourceErrorKind.NOT_FOUND,
                f"JSON file not found: {source.path}",
                describe_source(source),
            )
        try:
            with open(path, "r", encoding="utf-8") as f:
                result = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to parse JSON file {path}: {e}")
            raise SourceLoadError(
                SourceErrorKind.PARSE_FAILURE,
                f"Failed to load JSON file {source.path}: {e}",
                describe_source(source),
            ) from e

        # Navigate to specified key path
        for depth, key in enumerate(source.key_path):
            if isinstance(result, Mapping) and key in result:
                result = result[key]
            elif isinstance(result, list) and key.lstrip("-").isdigit() and -len(result) <= int(key) < len(result):
                result = result[int(key)]
            else:
                walked = ".".join(source.key_path[: depth + 1])
                raise SourceLoadError(
                    SourceErrorKind.KEY_PATH_MISSING,
                    f"Key path not found in JSON {source.path}: {walked}",
                    describe_source(source),
                )
        return result

    def _load_api(self, source: APISource) -> Any:
        try:
            response = requests.get(
                source.url, headers=dict(source.headers), timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"API request to {source.url} failed: {e}")
            raise SourceLoadError(
                SourceErrorKind.UNREACHABLE,
                f"Failed to load data from API {source.url}: {e}",
                describe_source(source),
            ) from e

        if not response.ok:
            raise SourceLoadError(
                SourceErrorKind.UNREACHABLE,
                f"API request to {source.url} failed with status {response.status_code}",
                describe_source(source),
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SourceLoadError(
                SourceErrorKind.PARSE_FAILURE,
                f"API response from {source.url} is not valid JSON: {e}",
                describe_source(source),
            ) from e

        # Apply transformation if provided
        if source.transform is not None:
            data = self._call(source.transform, (data,), source)
        return data

    def _load_function(self, source: FunctionSource) -> Any:
        return self._call(source.function, source.args, source)

    def _call(self, name: str, args: Sequence[Any], source: DataSource) -> Any:
        func = self.functions.get(name)
        if func is None:
            raise SourceLoadError(
                SourceErrorKind.CALLABLE_FAILED,
                f"Function '{name}' is not registered. Available functions: {sorted(self.functions)}",
                describe_source(source),
            )
        try:
            return func(*args)
        except Exception as e:
            logger.error(f"Source function '{name}' failed: {e}")
            raise SourceLoadError(
                SourceErrorKind.CALLABLE_FAILED,
                f"Failed to load data from function '{name}': {e}",
                describe_source(source),
            ) from e

    # == Materialization ==
    def materialize(self, param: Parameter) -> Parameter:
        """Return a copy of a Table/Mapping parameter with its data populated."""
        match param:
            case ScalarParameter():
                return param
            case TableParameter():
                raw = self.load(param.source)
                try:
                    return replace(param, data=to_dataframe(raw, param.schema))
                except ValueError as e:
                    raise SourceLoadError(
                        SourceErrorKind.PARSE_FAILURE,
                        f"Data from {describe_source(param.source)} does not match schema {list(param.schema)}: {e}",
                        describe_source(param.source),
                    ) from e
            case MappingParameter():
                raw = self.load(param.source)
                try:
                    return replace(param, data=to_mapping(raw, param.key))
                except ValueError as e:
                    raise SourceLoadError(
                        SourceErrorKind.PARSE_FAILURE,
                        f"Data from {describe_source(param.source)} cannot be keyed on '{param.key}': {e}",
                        describe_source(param.source),
                    ) from e
            case _:
                raise TypeError(f"Unknown parameter type: {type(param).__name__}")

    def materialize_spec(self, spec: Specification) -> Specification:
        """
        Populate every Table/Mapping parameter that has no cached data.

        Returns a new Specification; the input is left untouched. Parameters
        already carrying data (e.g. injected by a patch) are not re-fetched.
        """
        loaded = {}
        changed = False
        for name, param in spec.parameters.items():
            if isinstance(param, (TableParameter, MappingParameter)) and param.data is None:
                logger.info(f"Materializing parameter '{name}'")
                loaded[name] = self.materialize(param)
                changed = True
            else:
                loaded[name] = param
        return spec.with_parameters(loaded) if changed else spec
