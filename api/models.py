from typing import Any, Dict, Optional
from fastapi import APIRouter, Body, HTTPException, Request
import traceback

from core.session import SessionStore
from core.spec import ConfigPatch
from docs.models.sessions import (
    create_model_description,
    patch_model_description,
    solve_model_description,
    ui_spec_description,
)
from exceptions.custom_errors import CUSTOM_ERRORS, error_detail
from schemas.models.sessions import (
    CreateModelResponse,
    ModelDetail,
    ModelListResponse,
    PatchRequest,
    PatchResponse,
    SolveResponse,
    UiSpecRequest,
)
from utils.config_parser import parse_config_dict, spec_to_dict
from utils.ui_spec import create_ui_spec

router = APIRouter(prefix="/models", tags=["Models"])


def get_store(request: Request) -> SessionStore:
    return request.app.state.store


# create model
@router.post(
    "",
    status_code=201,
    response_model=CreateModelResponse,
    description=create_model_description,
    summary="Create Model",
)
def create_model(request: Request, config: Dict[str, Any] = Body(...)):
    try:
        spec = parse_config_dict(config)
        session = get_store(request).create(spec)
        return CreateModelResponse(
            model_id=session.id, template=spec.template, status=session.status.value
        )
    except tuple(CUSTOM_ERRORS) as e:
        raise HTTPException(status_code=CUSTOM_ERRORS[type(e)], detail=error_detail(e))
    except Exception as e:
        tb = traceback.format_exc()
        raise HTTPException(status_code=500, detail=f"{str(e)}\n\nTraceback:\n{tb}")


# list models
@router.get("", response_model=ModelListResponse, summary="List Models")
def list_models(request: Request):
    return {"models": [s.summary() for s in get_store(request).list()]}


# get model
@router.get("/{model_id}", response_model=ModelDetail, summary="Get Model")
def get_model(model_id: str, request: Request):
    try:
        session = get_store(request).get(model_id)
        with session.lock:
            return {**session.summary(), "spec": spec_to_dict(session.spec), "error": session.error}
    except tuple(CUSTOM_ERRORS) as e:
        raise HTTPException(status_code=CUSTOM_ERRORS[type(e)], detail=error_detail(e))
    except Exception as e:
        tb = traceback.format_exc()
        raise HTTPException(status_code=500, detail=f"{str(e)}\n\nTraceback:\n{tb}")


# patch model config
@router.patch(
    "/{model_id}/config",
    response_model=PatchResponse,
    description=patch_model_description,
    summary="Update Model Config",
)
def update_model_config(model_id: str, body: PatchRequest, request: Request):
    try:
        patches = [ConfigPatch.from_dict(p) for p in body.to_patch_dicts()]
        session = get_store(request).patch(model_id, patches)
        return PatchResponse(
            model_id=model_id, status=session.status.value, applied=len(patches)
        )
    except tuple(CUSTOM_ERRORS) as e:
        raise HTTPException(status_code=CUSTOM_ERRORS[type(e)], detail=error_detail(e))
    except Exception as e:
        tb = traceback.format_exc()
        raise HTTPException(status_code=500, detail=f"{str(e)}\n\nTraceback:\n{tb}")


# solve model
@router.post(
    "/{model_id}/solve",
    response_model=SolveResponse,
    description=solve_model_description,
    summary="Solve Model",
)
def solve_model(model_id: str, request: Request):
    try:
        return get_store(request).solve(model_id)
    except tuple(CUSTOM_ERRORS) as e:
        raise HTTPException(status_code=CUSTOM_ERRORS[type(e)], detail=error_detail(e))
    except Exception as e:
        tb = traceback.format_exc()
        raise HTTPException(status_code=500, detail=f"{str(e)}\n\nTraceback:\n{tb}")


# get solution
@router.get("/{model_id}/solution", response_model=SolveResponse, summary="Get Solution")
def get_solution(model_id: str, request: Request):
    try:
        return get_store(request).get_solution(model_id)
    except tuple(CUSTOM_ERRORS) as e:
        raise HTTPException(status_code=CUSTOM_ERRORS[type(e)], detail=error_detail(e))
    except Exception as e:
        tb = traceback.format_exc()
        raise HTTPException(status_code=500, detail=f"{str(e)}\n\nTraceback:\n{tb}")


# delete model
@router.delete("/{model_id}", summary="Delete Model")
def delete_model(model_id: str, request: Request):
    try:
        get_store(request).delete(model_id)
        return {"message": "Model deleted", "model_id": model_id}
    except tuple(CUSTOM_ERRORS) as e:
        raise HTTPException(status_code=CUSTOM_ERRORS[type(e)], detail=error_detail(e))
    except Exception as e:
        tb = traceback.format_exc()
        raise HTTPException(status_code=500, detail=f"{str(e)}\n\nTraceback:\n{tb}")


# ui spec
@router.post(
    "/{model_id}/ui-spec",
    response_model=dict,
    description=ui_spec_description,
    summary="Create UI Spec",
)
def create_model_ui_spec(model_id: str, request: Request, body: Optional[UiSpecRequest] = None):
    try:
        session = get_store(request).get(model_id)
        return create_ui_spec(session.spec, body.query if body else "")
    except tuple(CUSTOM_ERRORS) as e:
        raise HTTPException(status_code=CUSTOM_ERRORS[type(e)], detail=error_detail(e))
    except Exception as e:
        tb = traceback.format_exc()
        raise HTTPException(status_code=500, detail=f"{str(e)}\n\nTraceback:\n{tb}")
