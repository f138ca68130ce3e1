from __future__ import annotations

from dataclasses import dataclass

import pytest
from sqlalchemy.orm import Session, sessionmaker

from bingo import create_app
from bingo.config import BaseConfig
from bingo.db import create_app_engine
from bingo.models.base import Base
from bingo.repositories.bingo_card_repository import BingoCardRepository
from bingo.state.store import InMemoryStateStore

OWNER = "U1234567890"

SAMPLE_GRID = [
    [1, 2, 3, 4, 5],
    [6, 7, 8, 9, 10],
    [11, 12, 0, 14, 15],
    [16, 17, 18, 19, 20],
    [21, 22, 23, 24, 25],
]


@dataclass(frozen=True)
class TestConfig(BaseConfig):
    TESTING: bool = True
    DATABASE_URL: str = "sqlite://"
    LOG_LEVEL: str = "DEBUG"


class FakeClock:
    """Monotonic clock the tests move forward by hand."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(clock: FakeClock) -> InMemoryStateStore:
    return InMemoryStateStore(clock=clock)


@pytest.fixture()
def db_session():
    engine = create_app_engine("sqlite://")
    from bingo import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    session: Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture()
def repository(db_session: Session) -> BingoCardRepository:
    return BingoCardRepository(db_session)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    yield application
    application.extensions["engine"].dispose()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()
