from fastapi import FastAPI, Request
from api.models import router as models_router
from api.healthcheck import router as healthcheck_router
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from fastapi.openapi.utils import get_openapi
from dotenv import load_dotenv
import os
import secrets
from typing import Any, Callable, Dict, Optional

from core.session import SessionStore
from scheduler.builder import ModelBuilder
from scheduler.runner import solve_model
from scheduler.templates import default_registry
from utils.loader import DataSourceLoader
from utils.logger import logger, setup_logging

load_dotenv()
setup_logging()
# env
API_KEY = os.getenv("API_KEY")
CORS_ALLOW_ORIGINS = [o for o in os.getenv("CORS_ALLOW_ORIGINS", "").split(",") if o] or ["*"]
ALLOWED_HOSTS = [h for h in os.getenv("ALLOWED_HOSTS", "").split(",") if h] or ["*"]
MAX_BODY_BYTES = int(os.getenv("MAX_BODY_BYTES", "0"))  # 0 = no limit


def create_store(functions: Optional[Dict[str, Callable[..., Any]]] = None) -> SessionStore:
    """
    Registry, loader, builder and session store for one service instance.

    `functions` is the table that `function` sources and `api` transforms
    resolve against. The default service app starts with an empty table.
    """
    builder = ModelBuilder(default_registry(), DataSourceLoader(functions=functions))
    return SessionStore(build_fn=builder.build, solve_fn=solve_model)


# app
app = FastAPI(title="Optimization Modelling API")
app.state.store = create_store()

# Public paths that should NOT require the API key
PUBLIC_EXACT = {
    "/openapi.json",
    "/redoc",
    "/docs",
    "/api/health/check",
}

PUBLIC_PREFIXES = (
    "/docs/",
    "/api/health/check",
)

# middlewares
if os.getenv("ENABLE_CORS") == "true":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "x-api-key"],
    )

# allowed hosts
app.add_middleware(TrustedHostMiddleware, allowed_hosts=ALLOWED_HOSTS)


# basic request size guard (blocks large config bodies early)
@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    if MAX_BODY_BYTES > 0:
        cl = request.headers.get("content-length")
        if cl and cl.isdigit() and int(cl) > MAX_BODY_BYTES:
            return JSONResponse(
                status_code=413, content={"detail": "Payload too large"}
            )
    return await call_next(request)


# API key middleware
@app.middleware("http")
async def api_key_guard(request: Request, call_next):
    path = request.url.path

    if request.method == "OPTIONS":
        return await call_next(request)

    if path in PUBLIC_EXACT or any(path.startswith(p) for p in PUBLIC_PREFIXES):
        return await call_next(request)

    if not API_KEY:
        logger.warning("API_KEY not set; API key auth is DISABLED (dev mode).")
        return await call_next(request)

    client_key = request.headers.get("x-api-key")
    if not client_key or not secrets.compare_digest(str(client_key), str(API_KEY)):
        return JSONResponse(status_code=401, content={"detail": "Unauthorized"})

    return await call_next(request)


# enable header api key
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    schema = get_openapi(
        title=app.title,
        version=app.version,
        description="Declarative optimization model API",
        routes=app.routes,
    )

    # security scheme definition
    schema.setdefault("components", {}).setdefault("securitySchemes", {})[
        "ApiKeyAuth"
    ] = {
        "type": "apiKey",
        "in": "header",
        "name": "x-api-key",
        "description": "Enter your API key",
    }

    # apply security to all paths by default
    for path, methods in schema.get("paths", {}).items():
        for op in methods.values():
            op.setdefault("security", [{"ApiKeyAuth": []}])

    # but mark health as public so Swagger doesn't show a lock on it
    if "/api/health/check" in schema.get("paths", {}):
        for op in schema["paths"]["/api/health/check"].values():
            op["security"] = []

    app.openapi_schema = schema
    return app.openapi_schema


app.openapi = custom_openapi

# Register routers
app.include_router(models_router, prefix="/api")
app.include_router(healthcheck_router, prefix="/api")
