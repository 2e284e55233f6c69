"""Database query utility functions."""
from typing import Any, Optional, Type, TypeVar

from sqlalchemy.orm import Session

T = TypeVar("T")


def parse_id(id_value: Any) -> Optional[int]:
    """
    Parse a path segment into a positive integer ID.

    Args:
        id_value: Raw ID value (usually a path segment)

    Returns:
        The integer ID, or None when the value is not numeric
    """
    if isinstance(id_value, int):
        return id_value if id_value > 0 else None
    if isinstance(id_value, str) and id_value.isdigit():
        parsed = int(id_value)
        return parsed if parsed > 0 else None
    return None


def get_by_id(db: Session, model: Type[T], id_value: int) -> Optional[T]:
    """
    Get a model instance by ID.

    Args:
        db: Database session
        model: SQLAlchemy model class
        id_value: Integer primary key

    Returns:
        Model instance or None
    """
    return db.query(model).filter(model.id == id_value).first()
