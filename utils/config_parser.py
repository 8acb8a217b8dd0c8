import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from core.spec import (
    APISource,
    CSVSource,
    DataSource,
    DateRangeIndex,
    FunctionSource,
    Index,
    JSONSource,
    ListIndex,
    LiteralSource,
    MappingParameter,
    Override,
    Parameter,
    ScalarParameter,
    Specification,
    TableParameter,
)
from exceptions.custom_errors import ConfigError, ConfigErrorKind
from utils.constants import CONFIG_SECTIONS, OVERRIDE_PHASES

logger = logging.getLogger(__name__)

"""
YAML/JSON configuration parsing, validation and serialization.

`spec_to_dict` is the inverse of `parse_config_dict`: optional fields that are
empty (or left at their default) are omitted on output, mirroring how they
may be omitted on input.
"""

YAML_FORMATS = ("yaml", "yml", "structured-yaml")
JSON_FORMATS = ("json",)


# == Entry points ==
def parse_config(text: str, fmt: str = "yaml") -> Specification:
    """Parse configuration text in the given format into a Specification."""
    fmt = fmt.lower()
    try:
        if fmt in YAML_FORMATS:
            config_dict = yaml.safe_load(text)
        elif fmt in JSON_FORMATS:
            config_dict = json.loads(text)
        else:
            raise ConfigError(
                ConfigErrorKind.UNSUPPORTED_FORMAT,
                f"Unsupported config format '{fmt}'. Use yaml or json",
            )
    except (yaml.YAMLError, ValueError) as e:
        raise ConfigError(
            ConfigErrorKind.PARSE_FAILURE, f"Failed to parse {fmt} config: {e}"
        ) from e

    if not isinstance(config_dict, Mapping):
        raise ConfigError(
            ConfigErrorKind.PARSE_FAILURE, "Configuration root must be a mapping"
        )
    return parse_config_dict(config_dict)


def parse_config_file(config_path: Union[str, Path]) -> Specification:
    """Parse a .yaml/.yml/.json configuration file."""
    path = Path(config_path)
    if not path.is_file():
        raise ConfigError(
            ConfigErrorKind.NOT_FOUND, f"Config file not found: {config_path}"
        )

    suffix = path.suffix.lower().lstrip(".")
    if suffix not in ("yaml", "yml", "json"):
        raise ConfigError(
            ConfigErrorKind.UNSUPPORTED_FORMAT,
            f"Unsupported config file type '{path.suffix}'. Use .yaml, .yml, or .json",
        )
    return parse_config(path.read_text(encoding="utf-8"), suffix)


def validate_config_schema(config_dict: Mapping[str, Any]) -> None:
    """Check the top-level shape. Unknown sections only produce a warning."""
    template = config_dict.get("template")
    if template is None or (isinstance(template, str) and not template.strip()):
        raise ConfigError(
            ConfigErrorKind.MISSING_FIELD, "Template must be specified", "template"
        )
    if not isinstance(template, str):
        raise ConfigError(
            ConfigErrorKind.INVALID_VALUE,
            f"Template must be a string, got {type(template).__name__}",
            "template",
        )

    for key in config_dict:
        if key not in CONFIG_SECTIONS:
            logger.warning(f"Unknown config section: {key}")

    for section in ("indexes", "parameters", "options", "overrides"):
        value = config_dict.get(section)
        if value is not None and not isinstance(value, Mapping):
            raise ConfigError(
                ConfigErrorKind.INVALID_VALUE,
                f"Section '{section}' must be a mapping",
                section,
            )


def parse_config_dict(config_dict: Mapping[str, Any]) -> Specification:
    validate_config_schema(config_dict)

    indexes = {
        str(name): parse_index(cfg, f"indexes.{name}")
        for name, cfg in (config_dict.get("indexes") or {}).items()
    }
    parameters = {
        str(name): parse_parameter(cfg, f"parameters.{name}")
        for name, cfg in (config_dict.get("parameters") or {}).items()
    }
    options = {str(k): v for k, v in (config_dict.get("options") or {}).items()}
    overrides = {
        str(phase): parse_override_list(items, f"overrides.{phase}")
        for phase, items in (config_dict.get("overrides") or {}).items()
    }

    for phase in overrides:
        if phase not in OVERRIDE_PHASES:
            raise ConfigError(
                ConfigErrorKind.INVALID_VALUE,
                f"Unknown override phase '{phase}'. Use one of {list(OVERRIDE_PHASES)}",
                f"overrides.{phase}",
            )

    return Specification(
        template=config_dict["template"],
        indexes=indexes,
        parameters=parameters,
        options=options,
        overrides=overrides,
    )


# == Section parsers ==
def _require_mapping(cfg: Any, path: str) -> Mapping[str, Any]:
    if not isinstance(cfg, Mapping):
        raise ConfigError(
            ConfigErrorKind.INVALID_VALUE, f"Expected a mapping, got {type(cfg).__name__}", path
        )
    return cfg


def _require_field(cfg: Mapping[str, Any], key: str, path: str) -> Any:
    value = cfg.get(key)
    if value is None or value == "" or value == [] or value == {}:
        raise ConfigError(
            ConfigErrorKind.MISSING_FIELD, f"Missing required field '{key}'", f"{path}.{key}"
        )
    return value


def _parse_date(value: Any, path: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as e:
        raise ConfigError(
            ConfigErrorKind.INVALID_VALUE, f"Invalid date {value!r}: {e}", path
        ) from e


def parse_index(index_config: Any, path: str = "index") -> Index:
    cfg = _require_mapping(index_config, path)
    index_type = cfg.get("type", "")

    try:
        if index_type == "date_range":
            start = _parse_date(_require_field(cfg, "start", path), f"{path}.start")
            end = _parse_date(_require_field(cfg, "end", path), f"{path}.end")
            return DateRangeIndex(start, end)

        elif index_type == "list":
            values = _require_field(cfg, "values", path)
            if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
                raise ConfigError(
                    ConfigErrorKind.INVALID_VALUE,
                    "List index values must be a list of strings",
                    f"{path}.values",
                )
            return ListIndex(tuple(values))

    except ValueError as e:
        raise ConfigError(ConfigErrorKind.INVALID_VALUE, str(e), path) from e

    raise ConfigError(
        ConfigErrorKind.UNKNOWN_VARIANT, f"Unknown index type: {index_type!r}", f"{path}.type"
    )


def parse_parameter(param_config: Any, path: str = "parameter") -> Parameter:
    cfg = _require_mapping(param_config, path)
    param_type = cfg.get("type", "")

    try:
        if param_type == "table":
            schema = _require_field(cfg, "schema", path)
            if not isinstance(schema, list):
                raise ConfigError(
                    ConfigErrorKind.INVALID_VALUE, "Table schema must be a list", f"{path}.schema"
                )
            source = parse_source(_require_field(cfg, "source", path), f"{path}.source")
            return TableParameter(tuple(str(col) for col in schema), source)

        elif param_type == "dict":
            key = _require_field(cfg, "key", path)
            source = parse_source(_require_field(cfg, "source", path), f"{path}.source")
            return MappingParameter(str(key), source)

        elif param_type == "scalar":
            if "value" not in cfg:
                raise ConfigError(
                    ConfigErrorKind.MISSING_FIELD, "Missing required field 'value'", f"{path}.value"
                )
            return ScalarParameter(cfg["value"], str(cfg.get("value_type", "any")))

    except ValueError as e:
        raise ConfigError(ConfigErrorKind.INVALID_VALUE, str(e), path) from e

    raise ConfigError(
        ConfigErrorKind.UNKNOWN_VARIANT, f"Unknown parameter type: {param_type!r}", f"{path}.type"
    )


def parse_source(source_config: Any, path: str = "source") -> DataSource:
    cfg = _require_mapping(source_config, path)
    source_type = cfg.get("type", "")

    if source_type == "csv":
        return CSVSource(
            str(_require_field(cfg, "path", path)),
            dict(_require_mapping(cfg.get("options") or {}, f"{path}.options")),
        )

    elif source_type == "json":
        key_path = cfg.get("key_path") or []
        if isinstance(key_path, str):
            key_path = key_path.split(".")
        return JSONSource(str(_require_field(cfg, "path", path)), tuple(str(k) for k in key_path))

    elif source_type == "api":
        headers = _require_mapping(cfg.get("headers") or {}, f"{path}.headers")
        transform = cfg.get("transform")
        return APISource(
            str(_require_field(cfg, "url", path)),
            {str(k): str(v) for k, v in headers.items()},
            str(transform) if transform else None,
        )

    elif source_type == "function":
        args = cfg.get("args") or []
        if not isinstance(args, list):
            raise ConfigError(
                ConfigErrorKind.INVALID_VALUE, "Function args must be a list", f"{path}.args"
            )
        return FunctionSource(str(_require_field(cfg, "function", path)), tuple(args))

    elif source_type == "literal":
        return LiteralSource(cfg.get("data"))

    raise ConfigError(
        ConfigErrorKind.UNKNOWN_VARIANT, f"Unknown source type: {source_type!r}", f"{path}.type"
    )


def parse_override(override_config: Any, path: str = "override") -> Override:
    cfg = _require_mapping(override_config, path)
    target = _require_field(cfg, "function", path)
    args = _require_mapping(cfg.get("args") or {}, f"{path}.args")
    return Override(
        name=str(cfg.get("name") or ""),
        target=str(target),
        args={str(k): v for k, v in args.items()},
    )


def parse_override_list(items: Any, path: str = "overrides") -> tuple:
    if not isinstance(items, list):
        raise ConfigError(
            ConfigErrorKind.INVALID_VALUE, "Override phase must be a list", path
        )
    return tuple(parse_override(item, f"{path}[{i}]") for i, item in enumerate(items))


# == Serialization ==
def spec_to_dict(spec: Specification) -> Dict[str, Any]:
    result: Dict[str, Any] = {"template": spec.template}

    if spec.indexes:
        result["indexes"] = {name: index_to_dict(idx) for name, idx in spec.indexes.items()}
    if spec.parameters:
        result["parameters"] = {
            name: parameter_to_dict(param) for name, param in spec.parameters.items()
        }
    if spec.options:
        result["options"] = dict(spec.options)
    if spec.overrides:
        result["overrides"] = {
            phase: [override_to_dict(o) for o in items]
            for phase, items in spec.overrides.items()
        }
    return result


def index_to_dict(index: Index) -> Dict[str, Any]:
    match index:
        case DateRangeIndex():
            return {
                "type": "date_range",
                "start": index.start.isoformat(),
                "end": index.end.isoformat(),
            }
        case ListIndex():
            return {"type": "list", "values": list(index.values)}
        case _:
            raise TypeError(f"Unknown index type: {type(index).__name__}")


def parameter_to_dict(param: Parameter) -> Dict[str, Any]:
    match param:
        case TableParameter():
            return {
                "type": "table",
                "schema": list(param.schema),
                "source": source_to_dict(param.source),
            }
        case MappingParameter():
            return {
                "type": "dict",
                "key": param.key,
                "source": source_to_dict(param.source),
            }
        case ScalarParameter():
            result = {"type": "scalar", "value": param.value}
            if param.value_type != "any":
                result["value_type"] = param.value_type
            return result
        case _:
            raise TypeError(f"Unknown parameter type: {type(param).__name__}")


def source_to_dict(source: DataSource) -> Dict[str, Any]:
    match source:
        case CSVSource():
            result = {"type": "csv", "path": source.path}
            if source.options:
                result["options"] = dict(source.options)
        case JSONSource():
            result = {"type": "json", "path": source.path}
            if source.key_path:
                result["key_path"] = list(source.key_path)
        case APISource():
            result = {"type": "api", "url": source.url}
            if source.headers:
                result["headers"] = dict(source.headers)
            if source.transform:
                result["transform"] = source.transform
        case FunctionSource():
            result = {"type": "function", "function": source.function}
            if source.args:
                result["args"] = list(source.args)
        case LiteralSource():
            result = {"type": "literal", "data": source.data}
        case _:
            raise TypeError(f"Unknown source type: {type(source).__name__}")
    return result


def override_to_dict(override: Override) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    if override.name:
        result["name"] = override.name
    result["function"] = override.target
    if override.args:
        result["args"] = dict(override.args)
    return result


def dump_config(spec: Specification, fmt: str = "yaml") -> str:
    """Serialize a Specification back to configuration text."""
    data = spec_to_dict(spec)
    if fmt.lower() in JSON_FORMATS:
        return json.dumps(data, indent=2, default=str)
    return yaml.safe_dump(data, sort_keys=False)
