"""Custom exceptions and error handling utilities."""
from typing import Dict, List, Optional

from fastapi import status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError


class AppException(Exception):
    """Base exception for application errors.

    Every subclass knows its HTTP status and how it is rendered in the
    ``{success: false, ...}`` envelope, so handlers may either return it
    as a value or raise it to the outer boundary.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message_key = "error"

    def __init__(self, message: str, errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors

    def envelope(self) -> dict:
        body = {"success": False, self.message_key: self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class DatabaseConnectionError(AppException):
    """Raised when the database cannot be reached."""


class StorageError(AppException):
    """Raised when a statement against the store fails."""


class ValidationError(AppException):
    """Raised when validation fails."""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppException):
    """Raised when a resource is not found."""
    status_code = status.HTTP_404_NOT_FOUND
    message_key = "message"


class ConflictError(AppException):
    """Raised when a unique value is already taken."""
    status_code = status.HTTP_409_CONFLICT


class AuthenticationError(AppException):
    """Raised when credentials are missing."""
    status_code = status.HTTP_401_UNAUTHORIZED
    message_key = "message"


class ForbiddenError(AppException):
    """Raised when credentials are present but wrong."""
    status_code = status.HTTP_403_FORBIDDEN
    message_key = "message"


class MethodNotAllowedError(AppException):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED


def error_response(error: AppException) -> JSONResponse:
    """Render an application error as a JSON envelope."""
    return JSONResponse(status_code=error.status_code, content=error.envelope())


def handle_database_error(error: Exception, operation: str) -> AppException:
    """
    Convert database errors to application errors.

    Args:
        error: The database error
        operation: Description of the operation that failed

    Returns:
        ConflictError for unique violations on email, StorageError otherwise
    """
    error_message = str(error)

    if isinstance(error, IntegrityError):
        lowered = error_message.lower()
        if "email" in lowered and ("duplicate" in lowered or "unique" in lowered):
            return ConflictError("Email already exists")

    if isinstance(error, SQLAlchemyError):
        return StorageError(f"Database error during {operation}: {error_message}")

    return StorageError(error_message)


def not_found_error(resource: str, identifier: Optional[str] = None) -> NotFoundError:
    """
    Create a standardized 404 error.

    Args:
        resource: Name of the resource (e.g., "User")
        identifier: Optional identifier that was not found

    Returns:
        NotFoundError
    """
    message = f"{resource} not found"
    if identifier:
        message += f": {identifier}"
    return NotFoundError(message)


def validation_error(message: str, field: Optional[str] = None) -> ValidationError:
    """Create a standardized 400 validation error, optionally tied to a field."""
    errors = {field: [message]} if field else None
    return ValidationError(message, errors)


def authentication_error(message: str = "Invalid credentials") -> AuthenticationError:
    """Create a standardized 401 authentication error."""
    return AuthenticationError(message)


def forbidden_error(message: str = "Access denied") -> ForbiddenError:
    """Create a standardized 403 forbidden error."""
    return ForbiddenError(message)
