"""Persistence operations for users."""
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from userapi.models import User
from userapi.models.user import utcnow
from userapi.schemas.user import CreateUserInput, UpdateUserInput
from userapi.utils.db import get_by_id
from userapi.utils.exceptions import handle_database_error
from userapi.utils.logger import logger
from userapi.utils.serialization import sanitize_text


class UserRepository:
    """CRUD operations against the ``users`` table.

    All values go through bound parameters. Statement failures are rolled
    back and raised as ``StorageError`` (or ``ConflictError`` when the
    unique email constraint fires); nothing is retried.
    """

    def __init__(self, db: Session):
        self.db = db

    def list_all(self) -> List[User]:
        """All users, newest first."""
        try:
            return (
                self.db.query(User)
                .order_by(User.created_at.desc(), User.id.desc())
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to list users: {e}", exc_info=True)
            raise handle_database_error(e, "list_users") from e

    def get_by_id(self, user_id: int) -> Optional[User]:
        try:
            return get_by_id(self.db, User, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to get user {user_id}: {e}", exc_info=True)
            raise handle_database_error(e, "get_user") from e

    def create(self, data: CreateUserInput) -> User:
        """Insert a user and return it with its generated id."""
        user = User(
            name=sanitize_text(data.name),
            email=sanitize_text(data.email),
            password_hash=data.password_hash,
        )
        try:
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create user {data.email}: {e}", exc_info=True)
            raise handle_database_error(e, "create_user") from e

        logger.info(f"Created user {user.id}")
        return user

    def update(self, data: UpdateUserInput) -> Optional[User]:
        """
        Apply a partial update.

        Fields left as None keep their stored values; ``updated_at`` is
        refreshed regardless.

        Returns:
            The updated user, or None if no user has that id
        """
        user = self.get_by_id(data.id)
        if user is None:
            return None

        if data.name is not None:
            user.name = sanitize_text(data.name)
        if data.email is not None:
            user.email = sanitize_text(data.email)
        if data.password_hash is not None:
            user.password_hash = data.password_hash
        user.updated_at = utcnow()

        try:
            self.db.commit()
            self.db.refresh(user)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update user {data.id}: {e}", exc_info=True)
            raise handle_database_error(e, "update_user") from e

        logger.info(f"Updated user {user.id}")
        return user

    def delete(self, user_id: int) -> bool:
        """Delete a user. Returns False if no user has that id."""
        try:
            deleted = self.db.query(User).filter(User.id == user_id).delete()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete user {user_id}: {e}", exc_info=True)
            raise handle_database_error(e, "delete_user") from e

        if deleted:
            logger.info(f"Deleted user {user_id}")
        return bool(deleted)

    def email_exists(self, email: str, exclude_id: Optional[int] = None) -> bool:
        """Whether another user already holds ``email``, ignoring case."""
        try:
            query = self.db.query(User.id).filter(
                func.lower(User.email) == sanitize_text(email).lower()
            )
            if exclude_id:
                query = query.filter(User.id != exclude_id)
            return query.first() is not None
        except SQLAlchemyError as e:
            logger.error(f"Failed to check email {email}: {e}", exc_info=True)
            raise handle_database_error(e, "email_exists") from e
