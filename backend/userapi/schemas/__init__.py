"""Pydantic schemas for request/response validation."""
from userapi.schemas.user import CreateUserInput, UpdateUserInput, UserResponse, UserSummary

__all__ = ["CreateUserInput", "UpdateUserInput", "UserResponse", "UserSummary"]
