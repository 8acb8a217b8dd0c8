from enum import Enum
from typing import Any, List, Optional


class ConfigErrorKind(str, Enum):
    MISSING_FIELD = "missing_field"
    INVALID_VALUE = "invalid_value"
    UNKNOWN_VARIANT = "unknown_variant"
    UNSUPPORTED_FORMAT = "unsupported_format"
    PARSE_FAILURE = "parse_failure"
    NOT_FOUND = "not_found"


class SourceErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    PARSE_FAILURE = "parse_failure"
    KEY_PATH_MISSING = "key_path_missing"
    UNREACHABLE = "unreachable"
    CALLABLE_FAILED = "callable_failed"


class RegistryErrorKind(str, Enum):
    NOT_FOUND = "not_found"


class BuildErrorKind(str, Enum):
    MISSING_CAPABILITY = "missing_capability"
    INVALID_OVERRIDE_ARGS = "invalid_override_args"
    SOURCE_LOAD = "source_load"
    TEMPLATE_FAILED = "template_failed"


class PatchErrorKind(str, Enum):
    INVALID_PATH = "invalid_path"
    SCHEMA_MISMATCH = "schema_mismatch"
    UNSUPPORTED_OPERATION = "unsupported_operation"
    INVALID_VALUE = "invalid_value"


class ConfigError(Exception):
    """Raised when a configuration cannot be parsed or fails validation."""

    def __init__(self, kind: ConfigErrorKind, message: str, path: Optional[str] = None):
        self.kind = kind
        self.path = path
        location = f" (at {path})" if path else ""
        super().__init__(f"{message}{location}")


class SourceLoadError(Exception):
    """Raised when a data source cannot be materialized."""

    def __init__(self, kind: SourceErrorKind, message: str, source: Optional[str] = None):
        self.kind = kind
        self.source = source
        super().__init__(message)


class RegistryError(Exception):
    """Raised when a template, constraint or objective id is not registered."""

    def __init__(self, namespace: str, requested: str, available: List[str]):
        self.kind = RegistryErrorKind.NOT_FOUND
        self.namespace = namespace
        self.requested = requested
        self.available = list(available)
        super().__init__(
            f"{namespace.capitalize()} '{requested}' not found. "
            f"Available {namespace}s: {sorted(self.available)}"
        )


class OverrideArgsError(Exception):
    """Raised by a constraint or objective capability when its args are malformed."""

    pass


class BuildError(Exception):
    """Raised when a specification cannot be assembled into a model."""

    def __init__(
        self,
        kind: BuildErrorKind,
        message: str,
        name: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        self.kind = kind
        self.name = name
        self.cause = cause
        super().__init__(message)


class PatchError(Exception):
    """Raised when a patch cannot be applied to a specification."""

    def __init__(self, kind: PatchErrorKind, message: str, path: Optional[List[str]] = None):
        self.kind = kind
        self.path = list(path) if path is not None else None
        location = f" (path: {'.'.join(self.path)})" if self.path else ""
        super().__init__(f"{message}{location}")


class SessionNotFoundError(Exception):
    """Raised when a session id is not present in the store."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Model '{session_id}' not found")


class SolutionNotFoundError(Exception):
    """Raised when a session has no cached solution."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(
            f"No solution available for model '{session_id}'. Run solve first."
        )


def error_detail(error: Exception) -> dict[str, Any]:
    """Flatten an error into a JSON-friendly payload with its context fields."""
    detail: dict[str, Any] = {"error": type(error).__name__, "message": str(error)}
    kind = getattr(error, "kind", None)
    if kind is not None:
        detail["kind"] = kind.value
    for field in ("path", "source", "namespace", "requested", "available", "name"):
        value = getattr(error, field, None)
        if value is not None:
            detail[field] = value
    cause = getattr(error, "cause", None)
    if cause is not None:
        detail["cause"] = error_detail(cause)
    return detail


# Mapping of custom exceptions to HTTP status codes
CUSTOM_ERRORS = {
    ConfigError: 400,
    PatchError: 400,
    SessionNotFoundError: 404,
    SolutionNotFoundError: 404,
    BuildError: 500,
    SourceLoadError: 500,
    RegistryError: 500,
}
