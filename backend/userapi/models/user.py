"""User model."""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.dialects import mysql

from userapi.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# MySQL DATETIME drops fractions unless asked for microsecond precision
Timestamp = DateTime(timezone=True).with_variant(mysql.DATETIME(fsp=6), "mysql")


class User(Base):
    """A managed user record."""
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}  # ids are never reused

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)  # Never serialized
    created_at = Column(Timestamp, default=utcnow, nullable=False)
    updated_at = Column(Timestamp, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"
