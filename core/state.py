from dataclasses import dataclass, field
from ortools.sat.python import cp_model
from typing import Any, Dict, Hashable, List, Optional, Tuple

VarKey = Tuple[Hashable, ...]


@dataclass
class ModelHandle:
    """
    Solver-ready artifact produced by the build pipeline.

    Templates and override capabilities create variables through
    `add_variables` so the solve result can be read back by name, without
    introspecting the CP-SAT model.
    """

    model: cp_model.CpModel = field(default_factory=cp_model.CpModel)
    """The underlying CP-SAT model."""
    variables: Dict[str, Dict[VarKey, cp_model.IntVar]] = field(default_factory=dict)
    """Named variable families, each keyed by a tuple of index members.
    Scalar variables use the empty tuple as their key.
    """
    objective_sense: Optional[str] = None
    """"minimize" or "maximize" once an objective is set."""
    objective_source: Optional[str] = None
    """Label of whatever set the current objective (template or override name)."""
    applied: List[str] = field(default_factory=list)
    """Names of overrides applied, in order."""
    metadata: Dict[str, Any] = field(default_factory=dict)

    # == variables ==
    def add_variables(
        self, name: str, family: Dict[VarKey, cp_model.IntVar]
    ) -> Dict[VarKey, cp_model.IntVar]:
        if name in self.variables:
            raise ValueError(f"Variable family '{name}' already exists")
        self.variables[name] = {
            (k if isinstance(k, tuple) else (k,)): v for k, v in family.items()
        }
        return self.variables[name]

    def add_bool_vars(self, name: str, keys) -> Dict[VarKey, cp_model.IntVar]:
        """Create one BoolVar per key and register the family."""
        family = {}
        for key in keys:
            key = key if isinstance(key, tuple) else (key,)
            label = "_".join(str(k) for k in key)
            family[key] = self.model.NewBoolVar(f"{name}[{label}]")
        return self.add_variables(name, family)

    def add_int_vars(self, name: str, keys, lower: int, upper: int) -> Dict[VarKey, cp_model.IntVar]:
        family = {}
        for key in keys:
            key = key if isinstance(key, tuple) else (key,)
            label = "_".join(str(k) for k in key)
            family[key] = self.model.NewIntVar(lower, upper, f"{name}[{label}]")
        return self.add_variables(name, family)

    def add_int_var(self, name: str, lower: int, upper: int) -> cp_model.IntVar:
        var = self.model.NewIntVar(lower, upper, name)
        self.add_variables(name, {(): var})
        return var

    def has_variable(self, name: str) -> bool:
        return name in self.variables

    def variable(self, name: str) -> Dict[VarKey, cp_model.IntVar]:
        if name not in self.variables:
            raise KeyError(
                f"Variable family '{name}' not found. Available: {sorted(self.variables)}"
            )
        return self.variables[name]

    # == objective ==
    def minimize(self, expr, source: str) -> None:
        self.model.Minimize(expr)
        self.objective_sense = "minimize"
        self.objective_source = source

    def maximize(self, expr, source: str) -> None:
        self.model.Maximize(expr)
        self.objective_sense = "maximize"
        self.objective_source = source

    # == diagnostics ==
    def size(self) -> Tuple[int, int]:
        """Number of constraints and variables in the model."""
        proto = self.model.Proto()
        return len(proto.constraints), len(proto.variables)
