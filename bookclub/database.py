"""
SQLAlchemy engine, session factory and declarative base.

Routes are sync and run in FastAPI's threadpool. Each request gets one
Session from get_db(); services own commit/rollback. The membership
protocol takes SELECT ... FOR UPDATE locks inside that session, so a
request's transaction is also its lock scope.
"""

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from bookclub.config import get_settings

settings = get_settings()

engine = create_engine(
    settings.database_url,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=True,
    echo=settings.debug,
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=True)


class Base(DeclarativeBase):
    pass


def get_db() -> Generator[Session, None, None]:
    """
    Per-request session dependency.

    close() on a session with an open transaction rolls it back, which
    releases any club row lock a failed request still holds.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create every table from model metadata (dev seeding only; use Alembic elsewhere)."""
    Base.metadata.create_all(bind=engine)
