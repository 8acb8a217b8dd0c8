from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
import pandas as pd


def _freeze(mapping: Optional[Mapping]) -> Mapping:
    """Read-only shallow copy, so holders of a Specification never observe mutation."""
    return MappingProxyType(dict(mapping or {}))


# == Indexes ==
@dataclass(frozen=True)
class DateRangeIndex:
    """Daily calendar range, inclusive of both ends."""

    start: date
    end: date

    def __post_init__(self):
        if not isinstance(self.start, date) or not isinstance(self.end, date):
            raise ValueError("Date range index requires start and end dates")
        if self.start > self.end:
            raise ValueError(
                f"Start date must be <= end date (got {self.start} > {self.end})"
            )

    def members(self) -> List[date]:
        num_days = (self.end - self.start).days + 1
        return [self.start + timedelta(days=i) for i in range(num_days)]


@dataclass(frozen=True)
class ListIndex:
    """Literal ordered sequence of string members."""

    values: Tuple[str, ...]

    def __post_init__(self):
        values = tuple(self.values or ())
        if not values:
            raise ValueError("Index values cannot be empty")
        object.__setattr__(self, "values", values)

    def members(self) -> List[str]:
        return list(self.values)


Index = Union[DateRangeIndex, ListIndex]


# == Data sources ==
@dataclass(frozen=True)
class CSVSource:
    path: str
    options: Mapping[str, Any] = field(default_factory=dict)
    """Keyword options forwarded to `pandas.read_csv`."""

    def __post_init__(self):
        object.__setattr__(self, "options", _freeze(self.options))


@dataclass(frozen=True)
class JSONSource:
    path: str
    key_path: Tuple[str, ...] = ()
    """Keys to descend through, outermost first."""

    def __post_init__(self):
        object.__setattr__(self, "key_path", tuple(self.key_path or ()))


@dataclass(frozen=True)
class APISource:
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    transform: Optional[str] = None
    """Id of a registered function applied to the decoded body."""

    def __post_init__(self):
        object.__setattr__(self, "headers", _freeze(self.headers))


@dataclass(frozen=True)
class FunctionSource:
    function: str
    """Id of a function registered on the DataSourceLoader."""
    args: Tuple[Any, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "args", tuple(self.args or ()))


@dataclass(frozen=True)
class LiteralSource:
    data: Any = None


DataSource = Union[CSVSource, JSONSource, APISource, FunctionSource, LiteralSource]


# == Parameters ==
SCALAR_TYPES: Dict[str, Tuple[type, ...]] = {
    "int": (int,),
    "float": (int, float),
    "str": (str,),
    "bool": (bool,),
    "any": (object,),
}


@dataclass(frozen=True)
class TableParameter:
    schema: Tuple[str, ...]
    """Ordered column names."""
    source: DataSource
    data: Optional[pd.DataFrame] = field(default=None, compare=False, repr=False)
    """Materialized rows, populated by the build pipeline or a patch."""

    def __post_init__(self):
        schema = tuple(self.schema or ())
        if not schema:
            raise ValueError("Table parameter requires a non-empty schema")
        object.__setattr__(self, "schema", schema)


@dataclass(frozen=True)
class MappingParameter:
    key: str
    """Name of the column the mapping is keyed on."""
    source: DataSource
    data: Optional[Mapping[Any, Any]] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if not self.key:
            raise ValueError("Mapping parameter requires a key")
        if self.data is not None:
            object.__setattr__(self, "data", _freeze(self.data))


@dataclass(frozen=True)
class ScalarParameter:
    value: Any
    value_type: str = "any"

    def __post_init__(self):
        expected = SCALAR_TYPES.get(self.value_type)
        if expected is None:
            raise ValueError(
                f"Unknown scalar type '{self.value_type}'. Use one of {sorted(SCALAR_TYPES)}"
            )
        # bool is an int subclass; only the bool type accepts it
        is_bool = isinstance(self.value, bool)
        if self.value_type in ("int", "float") and is_bool:
            raise ValueError(f"Scalar value {self.value!r} is not of type {self.value_type}")
        if not isinstance(self.value, expected):
            raise ValueError(f"Scalar value {self.value!r} is not of type {self.value_type}")


Parameter = Union[TableParameter, MappingParameter, ScalarParameter]


# == Overrides ==
@dataclass(frozen=True)
class Override:
    name: str
    """Display label."""
    target: str
    """Id of a registered constraint or objective."""
    args: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "args", _freeze(self.args))


# == Specification ==
@dataclass(frozen=True)
class Specification:
    """
    Immutable declarative description of one optimization problem instance.

    Every update goes through the `with_*` helpers, which return a new
    Specification sharing every untouched section with the old one.
    """

    template: str
    indexes: Mapping[str, Index] = field(default_factory=dict)
    parameters: Mapping[str, Parameter] = field(default_factory=dict)
    options: Mapping[str, Any] = field(default_factory=dict)
    overrides: Mapping[str, Tuple[Override, ...]] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.template, str) or not self.template.strip():
            raise ValueError("Template name cannot be empty")
        object.__setattr__(self, "indexes", _freeze(self.indexes))
        object.__setattr__(self, "parameters", _freeze(self.parameters))
        object.__setattr__(self, "options", _freeze(self.options))
        object.__setattr__(
            self,
            "overrides",
            _freeze({phase: tuple(items) for phase, items in (self.overrides or {}).items()}),
        )

    # -- accessors --
    def index_values(self, name: str) -> list:
        """Expand a named index into its ordered members."""
        index = self.indexes.get(name)
        if index is None:
            raise KeyError(f"Index '{name}' not found")
        match index:
            case DateRangeIndex() | ListIndex():
                return index.members()
            case _:
                raise TypeError(f"Unknown index type for {name}: {type(index).__name__}")

    def has_index(self, name: str) -> bool:
        return name in self.indexes

    def parameter_data(self, name: str, loader=None) -> Any:
        """
        Return a parameter's data, loading it from its source when nothing is cached.

        Loading here does not cache; the build pipeline materializes a new
        Specification instead.
        """
        param = self.parameters.get(name)
        if param is None:
            raise KeyError(f"Parameter '{name}' not found")
        match param:
            case ScalarParameter():
                return param.value
            case TableParameter() | MappingParameter():
                if param.data is not None:
                    return param.data
                if loader is None:
                    from utils.loader import DataSourceLoader

                    loader = DataSourceLoader()
                return loader.materialize(param).data
            case _:
                raise TypeError(f"Unknown parameter type for {name}: {type(param).__name__}")

    def overrides_for(self, phase: str) -> Tuple[Override, ...]:
        return self.overrides.get(phase, ())

    # -- structural updates --
    def with_parameter(self, name: str, parameter: Parameter) -> "Specification":
        return replace(self, parameters={**self.parameters, name: parameter})

    def with_parameters(self, parameters: Mapping[str, Parameter]) -> "Specification":
        return replace(self, parameters=parameters)

    def with_option(self, key: str, value: Any) -> "Specification":
        return replace(self, options={**self.options, key: value})

    def with_index(self, name: str, index: Index) -> "Specification":
        return replace(self, indexes={**self.indexes, name: index})

    def with_overrides(self, phase: str, overrides: Tuple[Override, ...]) -> "Specification":
        return replace(self, overrides={**self.overrides, phase: tuple(overrides)})


# == Patches ==
@dataclass(frozen=True)
class ConfigPatch:
    operation: str
    """One of "merge", "replace", "delete"; only merge is supported."""
    path: Tuple[str, ...]
    value: Any = None

    def __post_init__(self):
        object.__setattr__(self, "path", tuple(str(p) for p in (self.path or ())))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConfigPatch":
        path = data.get("path", ())
        if isinstance(path, str):
            path = path.split(".")
        return cls(
            operation=data.get("operation", "merge"),
            path=tuple(path),
            value=data.get("value"),
        )
