import logging
from dataclasses import replace
from typing import Any, Iterable, Mapping

from core.spec import (
    ConfigPatch,
    MappingParameter,
    ScalarParameter,
    Specification,
    TableParameter,
)
from exceptions.custom_errors import ConfigError, PatchError, PatchErrorKind
from utils.config_parser import parse_index, parse_override_list
from utils.constants import OVERRIDE_PHASES, SUPPORTED_PATCH_OPERATIONS
from utils.loader import to_dataframe

logger = logging.getLogger(__name__)

"""
Structural patches on a Specification.

Only `merge` is defined. The first path segment selects a top-level section,
the second names the entry within it; there is no deeper merge.
"""


def apply_config_patch(spec: Specification, patch: ConfigPatch) -> Specification:
    """Return a new Specification with the patch applied. `spec` is never mutated."""
    path = list(patch.path)

    if patch.operation not in SUPPORTED_PATCH_OPERATIONS:
        raise PatchError(
            PatchErrorKind.UNSUPPORTED_OPERATION,
            f"Patch operation '{patch.operation}' is not supported. "
            f"Supported operations: {list(SUPPORTED_PATCH_OPERATIONS)}",
            path,
        )

    if len(path) != 2 or not all(path):
        raise PatchError(
            PatchErrorKind.INVALID_PATH,
            "Patch path must have exactly two segments: <section>, <name>",
            path,
        )

    section, key = path
    if section == "parameters":
        return _merge_parameter(spec, key, patch.value, path)
    elif section == "options":
        return spec.with_option(key, patch.value)
    elif section == "indexes":
        try:
            index = parse_index(patch.value, f"indexes.{key}")
        except ConfigError as e:
            raise PatchError(PatchErrorKind.INVALID_VALUE, str(e), path) from e
        return spec.with_index(key, index)
    elif section == "overrides":
        if key not in OVERRIDE_PHASES:
            raise PatchError(
                PatchErrorKind.INVALID_PATH,
                f"Unknown override phase '{key}'. Use one of {list(OVERRIDE_PHASES)}",
                path,
            )
        try:
            overrides = parse_override_list(patch.value, f"overrides.{key}")
        except ConfigError as e:
            raise PatchError(PatchErrorKind.INVALID_VALUE, str(e), path) from e
        return spec.with_overrides(key, overrides)

    raise PatchError(
        PatchErrorKind.INVALID_PATH,
        f"Unsupported patch section '{section}'. "
        "Use parameters, options, indexes or overrides",
        path,
    )


def _merge_parameter(spec: Specification, name: str, value: Any, path: list) -> Specification:
    param = spec.parameters.get(name)
    if param is None:
        raise PatchError(
            PatchErrorKind.INVALID_PATH,
            f"Parameter '{name}' not found. Available parameters: {sorted(spec.parameters)}",
            path,
        )

    match param:
        case TableParameter():
            if not isinstance(value, list):
                raise PatchError(
                    PatchErrorKind.SCHEMA_MISMATCH,
                    f"Table parameter '{name}' expects a list of rows matching schema {list(param.schema)}",
                    path,
                )
            try:
                data = to_dataframe(value, param.schema)
            except ValueError as e:
                raise PatchError(
                    PatchErrorKind.SCHEMA_MISMATCH,
                    f"Rows for '{name}' do not match schema {list(param.schema)}: {e}",
                    path,
                ) from e
            new_param = replace(param, data=data)

        case MappingParameter():
            if not isinstance(value, Mapping):
                raise PatchError(
                    PatchErrorKind.SCHEMA_MISMATCH,
                    f"Mapping parameter '{name}' expects a key -> value mapping",
                    path,
                )
            new_param = replace(param, data=dict(value))

        case ScalarParameter():
            try:
                new_param = replace(param, value=value)
            except ValueError as e:
                raise PatchError(PatchErrorKind.SCHEMA_MISMATCH, str(e), path) from e

        case _:
            raise TypeError(f"Unknown parameter type for {name}: {type(param).__name__}")

    logger.info(f"Patched parameter '{name}' with literal data")
    return spec.with_parameter(name, new_param)


def apply_config_patches(spec: Specification, patches: Iterable[ConfigPatch]) -> Specification:
    """Apply patches left to right. Either all apply or the first failure is raised."""
    updated = spec
    for patch in patches:
        updated = apply_config_patch(updated, patch)
    return updated
