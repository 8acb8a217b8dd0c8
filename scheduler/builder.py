import logging
from typing import Any, Optional

from core.registry import Registry
from core.spec import Override, Specification
from exceptions.custom_errors import (
    BuildError,
    BuildErrorKind,
    OverrideArgsError,
    RegistryError,
    SourceLoadError,
)
from utils.loader import DataSourceLoader

logger = logging.getLogger(__name__)


class ModelBuilder:
    """
    Assembles a Specification into a solver-ready model.

    Pipeline: materialize parameter data -> template -> constraint overrides
    (in order, cumulative) -> first objective override. The returned handle is
    whatever the template produced; it is not interpreted here.
    """

    def __init__(self, registry: Registry, loader: Optional[DataSourceLoader] = None):
        self.registry = registry
        self.loader = loader or DataSourceLoader()

    def build(self, spec: Specification) -> Any:
        logger.info(f"📋 Building model from template '{spec.template}'...")

        # === Resolve parameter data ===
        try:
            loaded_spec = self.loader.materialize_spec(spec)
        except SourceLoadError as e:
            logger.error(f"Failed to load data for '{spec.template}': {e}")
            raise BuildError(
                BuildErrorKind.SOURCE_LOAD,
                f"Failed to load parameter data: {e}",
                name=getattr(e, "source", None),
                cause=e,
            ) from e

        # === Base model ===
        template_func = self._capability(self.registry.get_template, spec.template)
        try:
            handle = template_func(loaded_spec)
        except (KeyError, TypeError, ValueError) as e:
            raise BuildError(
                BuildErrorKind.TEMPLATE_FAILED,
                f"Template '{spec.template}' rejected the specification: {e}",
                name=spec.template,
                cause=e,
            ) from e

        # === Constraint overrides ===
        for override in loaded_spec.overrides_for("constraints"):
            constraint_func = self._capability(self.registry.get_constraint, override.target)
            self._apply(constraint_func, handle, loaded_spec, override)

        # === Objective override ===
        objective_overrides = loaded_spec.overrides_for("objective")
        if objective_overrides:
            # Only the first objective override is applied
            override = objective_overrides[0]
            objective_func = self._capability(self.registry.get_objective, override.target)
            self._apply(objective_func, handle, loaded_spec, override)
            for ignored in objective_overrides[1:]:
                logger.info(
                    f"Ignoring objective override '{ignored.name or ignored.target}': "
                    "only the first objective override is applied"
                )

        size = getattr(handle, "size", None)
        if callable(size):
            num_constraints, num_vars = size()
            logger.info(f"→ #constraints = {num_constraints},  #vars = {num_vars}")
        logger.info("✅ Model built.")
        return handle

    @staticmethod
    def _capability(lookup, name: str):
        try:
            return lookup(name)
        except RegistryError as e:
            raise BuildError(
                BuildErrorKind.MISSING_CAPABILITY, str(e), name=name, cause=e
            ) from e

    @staticmethod
    def _apply(func, handle: Any, spec: Specification, override: Override) -> None:
        label = override.name or override.target
        logger.info(f"Applying override '{label}' ({override.target})")
        try:
            func(handle, spec, override.args)
        except (OverrideArgsError, KeyError, TypeError, ValueError) as e:
            raise BuildError(
                BuildErrorKind.INVALID_OVERRIDE_ARGS,
                f"Invalid args for override '{label}' ({override.target}): {e}",
                name=label,
                cause=e,
            ) from e
        applied = getattr(handle, "applied", None)
        if isinstance(applied, list):
            applied.append(label)
