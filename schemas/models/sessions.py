from pydantic import BaseModel, model_validator, Field, ConfigDict
from typing import Any, Dict, List, Optional, Union


# Define data models
class ConfigPatchModel(BaseModel):
    operation: str = "merge"
    path: Union[List[str], str]
    value: Any = None


class PatchRequest(BaseModel):
    """A single patch, or a batch under `patches`."""

    model_config = ConfigDict(extra="forbid")

    operation: Optional[str] = None
    path: Optional[Union[List[str], str]] = None
    value: Any = None
    patches: Optional[List[ConfigPatchModel]] = None

    @model_validator(mode="after")
    def check_shape(self):
        if self.patches is None and self.path is None:
            raise ValueError("Provide either 'path' (single patch) or 'patches' (batch)")
        if self.patches is not None and self.path is not None:
            raise ValueError("Provide either 'path' or 'patches', not both")
        return self

    def to_patch_dicts(self) -> List[Dict[str, Any]]:
        if self.patches is not None:
            return [p.model_dump() for p in self.patches]
        single = ConfigPatchModel(
            operation=self.operation or "merge", path=self.path, value=self.value
        )
        return [single.model_dump()]


class UiSpecRequest(BaseModel):
    query: str = ""


class ModelSummary(BaseModel):
    id: str
    template: str
    status: str
    created_at: str


class CreateModelResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: str
    template: str
    status: str


class ModelDetail(ModelSummary):
    spec: Dict[str, Any]
    error: Optional[Dict[str, Any]] = None


class ModelListResponse(BaseModel):
    models: List[ModelSummary] = Field(default_factory=list)


class PatchResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: str
    status: str
    applied: int


class SolveResponse(BaseModel):
    status: str
    objective_value: Optional[float] = None
    solve_time: float
    variables: Dict[str, Any] = Field(default_factory=dict)
