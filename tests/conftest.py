import os

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("SQLALCHEMY_DATABASE_URI", "sqlite://")
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ.pop("NOW_OVERRIDE", None)

from datetime import datetime

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fantasy_league.db.base import Base
from fantasy_league.core.rules import GameRules
from fantasy_league.services.engine import GameEngine

# Every model is imported so create_all sees its table
from fantasy_league.models.cost_update import RiderCostUpdate  # noqa: F401
from fantasy_league.models.joker import JokerCard  # noqa: F401
from fantasy_league.models.race import Race, RaceResult, RaceResultSet  # noqa: F401
from fantasy_league.models.rider import Rider  # noqa: F401
from fantasy_league.models.score import RaceScore  # noqa: F401
from fantasy_league.models.season import Season  # noqa: F401
from fantasy_league.models.snapshot import RaceSnapshot  # noqa: F401
from fantasy_league.models.team import Team, TeamMember  # noqa: F401
from fantasy_league.models.user import User  # noqa: F401

from helpers import NOW


class FixedClock:
    """Test clock: returns `now` until a test moves it."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class WriteCounter:
    def __init__(self):
        self.statements = []

    def __call__(self, conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().upper().startswith(("INSERT", "UPDATE", "DELETE")):
            self.statements.append(statement)

    @property
    def count(self) -> int:
        return len(self.statements)

    def reset(self):
        self.statements = []


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(db_engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def rules():
    return GameRules()


@pytest.fixture
def game(rules, clock):
    return GameEngine(rules, clock)


@pytest.fixture
def writes(db_engine):
    counter = WriteCounter()
    event.listen(db_engine, "before_cursor_execute", counter)
    yield counter
    event.remove(db_engine, "before_cursor_execute", counter)
