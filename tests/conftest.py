# tests/conftest.py
import os
from datetime import datetime, timedelta

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["CACHE_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from reading_tracker.database import get_db, init_db
from reading_tracker.main import app
from reading_tracker.models import Book, ReadingStreak, User
from reading_tracker.services.reading_service import ReadingService, reading_service
from reading_tracker.services.streak_service import StreakService, streak_service
from reading_tracker.utils.cache import CacheService


FIXED_NOW = datetime(2024, 6, 15, 10, 30)


class FakeClock:
    """Callable clock that tests can move forward"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(FIXED_NOW)


@pytest.fixture
def engine():
    """Fresh in-memory database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def user(db):
    user = User(id="user-1", email="reader@example.com", first_name="Ada", last_name="Reader")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def book(db):
    book = Book(
        id="book-1",
        title="Dune",
        slug="dune",
        author="Frank Herbert",
        category="Fiction",
        page_count=50,
    )
    db.add(book)
    db.commit()
    return book


@pytest.fixture
def other_book(db):
    book = Book(
        id="book-2",
        title="Neuromancer",
        slug="neuromancer",
        author="William Gibson",
        category="Fiction",
        page_count=100,
    )
    db.add(book)
    db.commit()
    return book


@pytest.fixture
def readings(clock):
    """Reading service with a fixed clock and caching disabled"""
    return ReadingService(cache=CacheService(), clock=clock)


@pytest.fixture
def streaks(clock):
    """Streak service with a fixed clock and caching disabled"""
    return StreakService(cache=CacheService(), clock=clock)


@pytest.fixture
def add_day(db):
    """Insert a ledger row directly"""

    def _add(user_id, day, pages_read):
        db.add(ReadingStreak(user_id=user_id, date=day, pages_read=pages_read))
        db.commit()

    return _add


@pytest.fixture
def client(session_factory, clock, monkeypatch):
    """API client bound to the test database and the fixed clock"""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    monkeypatch.setattr(reading_service, "clock", clock)
    monkeypatch.setattr(streak_service, "clock", clock)

    yield TestClient(app)

    app.dependency_overrides.clear()
