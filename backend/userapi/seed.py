"""Create the schema and insert demo users.

Usage:
    python -m userapi.seed
"""
from typing import List

from sqlalchemy.orm import Session

from userapi.config import get_settings
from userapi.database import Database
from userapi.schemas.user import CreateUserInput
from userapi.services.user_repository import UserRepository
from userapi.utils.hashing import hash_password
from userapi.utils.logger import logger

DEMO_PASSWORD = "password123"
DEMO_USERS = [
    ("Jaffar", "jaffar@example.com"),
    ("Ahmed", "ahmed@example.com"),
    ("Ali", "ali@example.com"),
]


def seed_users(db: Session) -> List[int]:
    """
    Insert the demo users that are not already present.

    Args:
        db: Database session

    Returns:
        IDs of the users that were created
    """
    repository = UserRepository(db)
    created = []
    for name, email in DEMO_USERS:
        if repository.email_exists(email):
            logger.debug(f"Skipping existing user {email}")
            continue
        user = repository.create(
            CreateUserInput(name=name, email=email, password_hash=hash_password(DEMO_PASSWORD))
        )
        created.append(user.id)
    return created


def main() -> None:
    settings = get_settings()
    database = Database(settings.sqlalchemy_database_uri)
    database.create_all()

    db = database.session()
    try:
        created = seed_users(db)
    finally:
        db.close()
        database.dispose()

    logger.info(f"Seeded {len(created)} user(s)")


if __name__ == "__main__":
    main()
