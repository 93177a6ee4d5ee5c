"""
Database engine, session management and dialect helpers
"""
import logging
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from reading_tracker.config import settings

logger = logging.getLogger(__name__)


Base = declarative_base()


def _engine_kwargs(url: str) -> dict:
    kwargs = {"echo": settings.DEBUG, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        # Sessions are handed across FastAPI's threadpool
        kwargs["connect_args"] = {"check_same_thread": False}
    return kwargs


engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


def get_db() -> Generator[Session, None, None]:
    """Dependency for getting a database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None) -> None:
    """Create all tables registered on the declarative base"""
    # Import models so they register with Base.metadata
    import reading_tracker.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def dialect_insert(db: Session, model):
    """
    Build an INSERT that supports ON CONFLICT clauses for the session's dialect
    
    Returns None when the backend has no native upsert; callers then fall
    back to a read-then-write through the ORM.
    """
    dialect = db.get_bind().dialect.name
    
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        logger.debug(f"No native upsert for dialect {dialect}")
        return None
    
    return insert(model)
