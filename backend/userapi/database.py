"""Database connection and session management."""
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from userapi.utils.exceptions import DatabaseConnectionError
from userapi.utils.logger import logger

Base = declarative_base()


class Database:
    """Lazily opened database handle.

    The engine is created and verified on the first call to ``get_engine``;
    later calls reuse it. One instance is owned by the application and
    handed to request handlers through ``get_db``.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker] = None

    def _engine_options(self) -> dict:
        if self.url.startswith("sqlite"):
            # In-memory SQLite must share a single connection across sessions
            return {
                "connect_args": {"check_same_thread": False},
                "poolclass": StaticPool,
            }
        return {"pool_pre_ping": True, "pool_recycle": 3600}

    def get_engine(self) -> Engine:
        """Return the engine, connecting on first use."""
        if self._engine is None:
            try:
                engine = create_engine(self.url, echo=self.echo, **self._engine_options())
                with engine.connect():
                    pass
            except SQLAlchemyError as e:
                logger.error(f"Database connection failed: {e}")
                raise DatabaseConnectionError(f"Database connection failed: {e}") from e

            self._engine = engine
            self._sessionmaker = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        return self._engine

    def session(self) -> Session:
        """Open a new ORM session."""
        self.get_engine()
        return self._sessionmaker()

    def create_all(self) -> None:
        """Create all tables known to the declarative base."""
        # Models must be imported so their tables are registered
        import userapi.models  # noqa: F401

        Base.metadata.create_all(bind=self.get_engine())

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._sessionmaker = None


def get_db(request: Request) -> Iterator[Session]:
    """Dependency for getting database session."""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
