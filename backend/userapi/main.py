"""Main FastAPI application."""
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional, Tuple
from urllib.parse import quote

from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from userapi.api import users
from userapi.config import Settings, get_settings
from userapi.database import Database
from userapi.utils.exceptions import AppException, MethodNotAllowedError, error_response
from userapi.utils.logger import logger

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization", "X-API-KEY"]
ROUTED_SEGMENTS = 2  # resource, id

meta_router = APIRouter(tags=["meta"])


@meta_router.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    return {
        "status": "ok",
        "message": "API is running",
        "timestamp": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        "version": request.app.state.settings.app_version,
    }


@meta_router.get("/")
async def root(request: Request):
    """Root endpoint."""
    settings = request.app.state.settings
    base = settings.base_path.rstrip("/")
    return {
        "message": "Welcome to the User API",
        "version": settings.app_version,
        "endpoints": {
            f"GET {base}/health": "Health check",
            f"GET {base}/users": "List all users",
            f"GET {base}/users/{{id}}": "Get user by ID",
            f"POST {base}/users": "Create new user",
            f"PUT {base}/users/{{id}}": "Update user",
            f"DELETE {base}/users/{{id}}": "Delete user",
            f"GET {base}/protected/users": "List all users (requires X-API-KEY)",
        },
    }


def split_path(path: str, base_path: str) -> Tuple[List[str], List[str]]:
    """
    Split a request path into its base path and the routed segments.

    Empty segments are dropped, so repeated slashes do not matter.

    Returns:
        (base path segments if the path starts with them, remaining segments)
    """
    base = [segment for segment in base_path.split("/") if segment]
    segments = [segment for segment in path.split("/") if segment]
    if base and segments[:len(base)] == base:
        return base, segments[len(base):]
    return [], segments


def normalize_path(path: str, base_path: str) -> str:
    """Canonical routing path: no empty segments, nothing past resource and id."""
    prefix, segments = split_path(path, base_path)
    normalized = "/" + "/".join(prefix + segments[:ROUTED_SEGMENTS])
    if prefix and not segments:
        # The root under the base path is routed as "<base>/"
        normalized += "/"
    return normalized


def resource_name(path: str, base_path: str) -> str:
    """First path segment after the base path, or '' for the root."""
    _, segments = split_path(path, base_path)
    return segments[0] if segments else ""


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as a JSON envelope."""

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            resource = resource_name(request.url.path, request.app.state.settings.base_path)
            return JSONResponse(
                status_code=404,
                content={
                    "success": False,
                    "error": "Not Found",
                    "message": f"Resource '{resource}' not found",
                },
            )
        if exc.status_code == 405:
            return error_response(MethodNotAllowedError("Method not allowed"))
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal Server Error", "message": str(exc)},
        )


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration; read from the environment when omitted
        database: Database handle; built from ``settings`` when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    database = database or Database(settings.sqlalchemy_database_uri, echo=settings.is_development)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        database.dispose()

    app = FastAPI(
        title="User API",
        description="CRUD API for user records",
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
    )

    @app.middleware("http")
    async def normalize(request: Request, call_next):
        path = normalize_path(request.scope["path"], settings.base_path)
        if path != request.scope["path"]:
            request.scope["path"] = path
            request.scope["raw_path"] = quote(path).encode()
        return await call_next(request)

    # Preflight: answered here, before routing, with an empty body
    @app.middleware("http")
    async def preflight(request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(
                status_code=200,
                headers={
                    "Access-Control-Allow-Origin": "*",
                    "Access-Control-Allow-Methods": ", ".join(CORS_METHODS),
                    "Access-Control-Allow-Headers": ", ".join(CORS_HEADERS),
                },
            )
        return await call_next(request)

    register_exception_handlers(app)

    # Routes are served both at the root and under the base path
    base_path = settings.base_path.rstrip("/")
    for router in (meta_router, users.router, users.protected_router):
        app.include_router(router)
        if base_path:
            app.include_router(router, prefix=base_path, include_in_schema=False)

    return app


app = create_app()
