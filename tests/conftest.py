"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Callable, Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.shared_types import Color
from src.db.schema import Base
from src.go.board import Board

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)

CHARACTER_TO_STONE = {"B": Color.BLACK, "W": Color.WHITE, ".": None}


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session_shared() -> Generator[Session, None, None]:
    """Connection to a test database. Mock real setup with multiple sessions connecting to the same engine / database tables."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def board_from() -> Callable[..., Board]:
    """Call the inner function with small ascii diagrams: 'B' black, 'W' white, '.' empty (spaces are ignored)."""

    def _create_board(*rows: str) -> Board:
        grid = [
            [CHARACTER_TO_STONE[character] for character in row.replace(" ", "")]
            for row in rows
        ]
        return Board(len(grid), grid)

    return _create_board


@pytest.fixture
def session_factory() -> Generator[sessionmaker, None, None]:
    """Session factory bound to the test database, for components that open their own sessions."""
    Base.metadata.create_all(bind=engine)
    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)
