import logging
from typing import Any, Callable, Dict, List, Mapping

from core.spec import Specification
from exceptions.custom_errors import RegistryError

logger = logging.getLogger(__name__)

TemplateFunc = Callable[[Specification], Any]
ConstraintFunc = Callable[[Any, Specification, Mapping[str, Any]], None]
ObjectiveFunc = Callable[[Any, Specification, Mapping[str, Any]], None]


class Registry:
    """
    Three independent name -> capability tables.

    Registration is last-write-wins so templates can be reloaded in place.
    """

    def __init__(self):
        self.templates: Dict[str, TemplateFunc] = {}
        self.constraints: Dict[str, ConstraintFunc] = {}
        self.objectives: Dict[str, ObjectiveFunc] = {}

    # == templates ==
    def register_template(self, name: str, template_func: TemplateFunc) -> None:
        self.templates[name] = template_func
        logger.info(f"Registered template: {name}")

    def get_template(self, name: str) -> TemplateFunc:
        return self._lookup(self.templates, "template", name)

    def list_templates(self) -> List[str]:
        return list(self.templates)

    # == constraints ==
    def register_constraint(self, name: str, constraint_func: ConstraintFunc) -> None:
        self.constraints[name] = constraint_func
        logger.info(f"Registered constraint: {name}")

    def get_constraint(self, name: str) -> ConstraintFunc:
        return self._lookup(self.constraints, "constraint", name)

    def list_constraints(self) -> List[str]:
        return list(self.constraints)

    # == objectives ==
    def register_objective(self, name: str, objective_func: ObjectiveFunc) -> None:
        self.objectives[name] = objective_func
        logger.info(f"Registered objective: {name}")

    def get_objective(self, name: str) -> ObjectiveFunc:
        return self._lookup(self.objectives, "objective", name)

    def list_objectives(self) -> List[str]:
        return list(self.objectives)

    @staticmethod
    def _lookup(table: Dict[str, Callable], namespace: str, name: str) -> Callable:
        if name not in table:
            raise RegistryError(namespace, name, list(table))
        return table[name]
