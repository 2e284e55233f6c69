"""Schemas for user records."""
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel

from userapi.utils.serialization import serialize_datetime


@dataclass(frozen=True)
class CreateUserInput:
    """Validated fields for a new user."""
    name: str
    email: str
    password_hash: Optional[str] = None


@dataclass(frozen=True)
class UpdateUserInput:
    """Validated fields for an existing user; None leaves a field untouched."""
    id: int
    name: Optional[str] = None
    email: Optional[str] = None
    password_hash: Optional[str] = None


class UserResponse(BaseModel):
    """Public view of a user. The password hash is never part of it."""
    id: int
    name: str
    email: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_orm(cls, obj) -> "UserResponse":
        """Convert SQLAlchemy model to response model."""
        return cls(
            id=obj.id,
            name=obj.name,
            email=obj.email,
            created_at=serialize_datetime(obj.created_at),
            updated_at=serialize_datetime(obj.updated_at),
        )


class UserSummary(BaseModel):
    """Shape returned after a create or update."""
    id: int
    name: str
    email: str

    @classmethod
    def from_orm(cls, obj) -> "UserSummary":
        return cls(id=obj.id, name=obj.name, email=obj.email)
