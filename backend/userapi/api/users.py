"""User CRUD endpoints."""
import json
from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from userapi.auth.api_key import check_api_key
from userapi.database import get_db
from userapi.middleware import log_request, middleware_route
from userapi.schemas.user import UserResponse, UserSummary
from userapi.services.user_repository import UserRepository
from userapi.services.user_validator import validate_create, validate_update
from userapi.utils.db import parse_id
from userapi.utils.exceptions import AppException, error_response, not_found_error, validation_error

router = APIRouter(tags=["users"], route_class=middleware_route(log_request))
protected_router = APIRouter(
    prefix="/protected",
    tags=["users"],
    route_class=middleware_route(check_api_key),
)


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


async def read_json(request: Request) -> Any:
    """Decode the request body; an empty or malformed body reads as {}."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        return {}


def _id_required() -> JSONResponse:
    return error_response(validation_error("User ID is required"))


def _list_response(repository: UserRepository) -> JSONResponse:
    users = [UserResponse.from_orm(u).model_dump() for u in repository.list_all()]
    return JSONResponse({"success": True, "count": len(users), "data": users})


@router.get("/users")
async def list_users(repository: UserRepository = Depends(get_user_repository)) -> JSONResponse:
    """List all users, newest first."""
    return _list_response(repository)


@protected_router.get("/users")
async def list_users_protected(repository: UserRepository = Depends(get_user_repository)) -> JSONResponse:
    """List all users; requires the API key."""
    return _list_response(repository)


@router.get("/users/{user_id}")
async def get_user(
    user_id: str,
    repository: UserRepository = Depends(get_user_repository),
) -> JSONResponse:
    """Get a single user by ID."""
    parsed_id = parse_id(user_id)
    user = repository.get_by_id(parsed_id) if parsed_id else None
    if user is None:
        return error_response(not_found_error("User"))

    return JSONResponse({"success": True, "data": UserResponse.from_orm(user).model_dump()})


@router.post("/users")
@router.post("/users/{user_id}", include_in_schema=False)
async def create_user(
    request: Request,
    repository: UserRepository = Depends(get_user_repository),
) -> JSONResponse:
    """
    Create a new user.

    The body must carry ``name`` and ``email``; ``password`` is optional
    unless the service is configured to require it. Any id segment in the
    path is ignored.
    """
    result = validate_create(
        await read_json(request),
        repository,
        require_password=request.app.state.settings.require_password,
    )
    if isinstance(result, AppException):
        return error_response(result)

    user = repository.create(result)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={
            "success": True,
            "message": "User created successfully",
            "data": UserSummary.from_orm(user).model_dump(),
        },
    )


@router.put("/users")
async def update_user_without_id() -> JSONResponse:
    return _id_required()


@router.put("/users/{user_id}")
async def update_user(
    user_id: str,
    request: Request,
    repository: UserRepository = Depends(get_user_repository),
) -> JSONResponse:
    """
    Partially update a user.

    Only the fields present in the body change; the rest keep their
    stored values.
    """
    parsed_id = parse_id(user_id)
    if not parsed_id or repository.get_by_id(parsed_id) is None:
        return error_response(not_found_error("User"))

    result = validate_update(parsed_id, await read_json(request), repository)
    if isinstance(result, AppException):
        return error_response(result)

    user = repository.update(result)
    if user is None:
        return error_response(not_found_error("User"))

    return JSONResponse({
        "success": True,
        "message": "User updated successfully",
        "data": UserSummary.from_orm(user).model_dump(),
    })


@router.delete("/users")
async def delete_user_without_id() -> JSONResponse:
    return _id_required()


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    repository: UserRepository = Depends(get_user_repository),
) -> JSONResponse:
    """Delete a user."""
    parsed_id = parse_id(user_id)
    if not parsed_id or not repository.delete(parsed_id):
        return error_response(not_found_error("User"))

    return JSONResponse({"success": True, "message": "User deleted successfully"})
