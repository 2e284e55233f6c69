"""Request validation for user payloads.

Validators never raise for bad input. They return either the normalized
input dataclass or the error that describes why the payload was rejected,
and the endpoint decides how to render it.
"""
from typing import Any, Dict, List, Optional, Union

from email_validator import EmailNotValidError, validate_email

from userapi.schemas.user import CreateUserInput, UpdateUserInput
from userapi.services.user_repository import UserRepository
from userapi.utils.exceptions import ConflictError, ValidationError
from userapi.utils.hashing import hash_password
from userapi.utils.serialization import sanitize_text

MAX_FIELD_LENGTH = 255
MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_BYTES = 72  # bcrypt ignores or rejects anything longer

CreateResult = Union[CreateUserInput, ValidationError, ConflictError]
UpdateResult = Union[UpdateUserInput, ValidationError, ConflictError]


class _Errors:
    """Collects per-field messages in the order they were found."""

    def __init__(self):
        self.fields: Dict[str, List[str]] = {}
        self.first: Optional[str] = None

    def add(self, field: str, message: str) -> None:
        self.fields.setdefault(field, []).append(message)
        if self.first is None:
            self.first = message

    def __bool__(self) -> bool:
        return bool(self.fields)

    def to_error(self) -> ValidationError:
        return ValidationError(self.first, self.fields)


def _as_object(payload: Any) -> Dict[str, Any]:
    return payload if isinstance(payload, dict) else {}


def _text(payload: Dict[str, Any], field: str, errors: _Errors) -> Optional[str]:
    """Return the trimmed string value of ``field``, or None when absent or blank."""
    value = payload.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        errors.add(field, f"{field.capitalize()} must be a string")
        return None
    value = value.strip()
    # Markup-only values would be stored empty
    if not sanitize_text(value).strip():
        return None
    return value


def normalize_email(email: str) -> Optional[str]:
    """Canonical form of ``email`` (lower-cased domain), or None if it is malformed."""
    try:
        return validate_email(email, check_deliverability=False).normalized
    except EmailNotValidError:
        return None


def is_valid_email(email: str) -> bool:
    return normalize_email(email) is not None


def _check_length(field: str, value: Optional[str], errors: _Errors) -> None:
    # Measured as stored: escaping can grow the value several times over
    if value is not None and len(sanitize_text(value)) > MAX_FIELD_LENGTH:
        errors.add(field, f"{field.capitalize()} must not exceed {MAX_FIELD_LENGTH} characters")


def _check_email(email: Optional[str], errors: _Errors) -> Optional[str]:
    """Validate the format and length of ``email`` and return its normalized form."""
    if email is None or errors:
        return email
    normalized = normalize_email(email)
    if normalized is None:
        errors.add("email", "Invalid email format")
        return email
    _check_length("email", normalized, errors)
    return normalized


def _check_password(payload: Dict[str, Any], required: bool, errors: _Errors) -> Optional[str]:
    """Validate the password and return its bcrypt hash, if one was given."""
    value = payload.get("password")
    if value is None or value == "":
        if required:
            errors.add("password", "Password is required")
        return None
    if not isinstance(value, str):
        errors.add("password", "Password must be a string")
        return None
    if len(value) < MIN_PASSWORD_LENGTH:
        errors.add("password", f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return None
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        errors.add("password", f"Password must not exceed {MAX_PASSWORD_BYTES} bytes")
        return None
    return hash_password(value)


def validate_create(
    payload: Any,
    repository: UserRepository,
    require_password: bool = False,
) -> CreateResult:
    """
    Validate a create-user payload.

    Args:
        payload: Decoded JSON body
        repository: Used for the email uniqueness check
        require_password: Whether a password must be supplied

    Returns:
        CreateUserInput on success, otherwise the ValidationError (400)
        or ConflictError (409) describing the rejection
    """
    payload = _as_object(payload)
    errors = _Errors()

    name = _text(payload, "name", errors)
    email = _text(payload, "email", errors)
    if errors:
        return errors.to_error()

    if name is None or email is None:
        missing = {f: ["This field is required"] for f, v in (("name", name), ("email", email)) if v is None}
        return ValidationError("Name and email are required", missing)

    _check_length("name", name, errors)
    email = _check_email(email, errors)
    password_hash = None
    if not errors:
        password_hash = _check_password(payload, require_password, errors)
    if errors:
        return errors.to_error()

    if repository.email_exists(email):
        return ConflictError("Email already exists")

    return CreateUserInput(name=name, email=email, password_hash=password_hash)


def validate_update(user_id: int, payload: Any, repository: UserRepository) -> UpdateResult:
    """
    Validate a partial update payload for ``user_id``.

    Absent or blank fields come back as None so the stored values are kept.
    The user's own current email does not count as a duplicate.
    """
    payload = _as_object(payload)
    errors = _Errors()

    name = _text(payload, "name", errors)
    email = _text(payload, "email", errors)
    if errors:
        return errors.to_error()

    if name is None and email is None:
        return ValidationError("At least name or email is required")

    _check_length("name", name, errors)
    email = _check_email(email, errors)
    password_hash = None
    if not errors:
        password_hash = _check_password(payload, False, errors)
    if errors:
        return errors.to_error()

    if email is not None and repository.email_exists(email, exclude_id=user_id):
        return ConflictError("Email already exists")

    return UpdateUserInput(id=user_id, name=name, email=email, password_hash=password_hash)
