"""Shared pytest fixtures for amanah_matching tests."""

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from amanah_matching.models.db import Base
from amanah_matching.services.storage import RoundStorageService

ROUND_START = datetime(2025, 5, 1)
ROUND_END = datetime(2025, 5, 31)
DURING_ROUND = datetime(2025, 5, 15, 12, 0)
AFTER_ROUND = datetime(2025, 6, 15)


@pytest.fixture
def session() -> Session:
    """Session on a fresh in-memory SQLite database with all tables created."""
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    s = sessionmaker(bind=engine)()
    try:
        yield s
    finally:
        s.close()
        engine.dispose()


@pytest.fixture
def storage(session: Session) -> RoundStorageService:
    return RoundStorageService(session)


@pytest.fixture
def funding_round(storage: RoundStorageService):
    """A May 2025 round with a 10000 wei matching pool."""
    return storage.create_round("Spring Round", ROUND_START, ROUND_END, 10000)
