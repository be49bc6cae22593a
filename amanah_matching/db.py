# amanah_matching/db.py
"""Database session and connection management"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError

from amanah_matching.config import settings
from amanah_matching.models.db import Base

logger = logging.getLogger(__name__)


class Database:
    """Database connection and session manager"""

    def __init__(self):
        """Initialize database manager state"""
        self._engine = None
        self._SessionLocal = None

    def init(self, url: Optional[str] = None) -> None:
        """
        Initialize database connection and create tables.

        This should be called once at application startup.

        Args:
            url: SQLAlchemy database URL, defaults to settings.DATABASE_URL

        Raises:
            SQLAlchemyError: If database initialization fails
        """
        if url is None:
            url = settings.DATABASE_URL

        try:
            self._engine = create_engine(url)
            Base.metadata.create_all(self._engine)
            self._SessionLocal = sessionmaker(bind=self._engine)
            logger.info("Database initialized successfully")

        except SQLAlchemyError as e:
            logger.error(f"Database initialization failed: {e}")
            raise

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of database operations.

        Usage:
            with db.session() as session:
                session.add(some_object)

        Yields:
            Session: SQLAlchemy database session

        Raises:
            RuntimeError: If database not initialized
            SQLAlchemyError: If database operations fail
        """
        if not self._SessionLocal:
            raise RuntimeError("Database not initialized. Call init() first.")

        session = self._SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        """
        Clean up database connections.
        Should be called during application shutdown.
        """
        if self._engine:
            self._engine.dispose()
            self._engine = None
            self._SessionLocal = None


# Global database instance
db = Database()
