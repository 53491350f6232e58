"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Iterator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from chess_sessions.db.memory_repository import InMemoryGameRepository
from chess_sessions.db.schema import Base
from chess_sessions.db.sql_repository import SQLGameRepository
from chess_sessions.services.game_manager import GameManager

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session_repo() -> Iterator[Session]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def sql_repository(db_session_repo: Session) -> SQLGameRepository:
    return SQLGameRepository(db_session_repo)


@pytest.fixture
def memory_repository() -> Iterator[InMemoryGameRepository]:
    """Ensures to clear the repository between tests"""
    repo = InMemoryGameRepository()
    try:
        yield repo
    finally:
        repo.close()


@pytest.fixture
def manager(memory_repository: InMemoryGameRepository) -> GameManager:
    return GameManager(memory_repository)


@pytest.fixture(params=["memory", "sql"])
def any_repository(request: pytest.FixtureRequest):
    """Run a test against both implementations of the storage contract."""
    return request.getfixturevalue(f"{request.param}_repository")
