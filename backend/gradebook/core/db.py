from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from gradebook.core.config import settings

if settings.DATABASE_URL.startswith("sqlite"):
    _engine_args = {"connect_args": {"check_same_thread": False}}
else:
    _engine_args = {"pool_size": settings.DB_POOL_SIZE, "max_overflow": settings.DB_MAX_OVERFLOW}

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True, **_engine_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    """Session factory for work that fans out over several sessions (batch recompute)."""
    return SessionLocal


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Commit everything written inside the block, or roll all of it back."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


from gradebook.models import (  # noqa: E402, F401, I001
    activity,
    classroom,
    grade_history,
    gradebook,
    program,
    result,
    role,
    student,
    subject,
    term,
    user,
)
