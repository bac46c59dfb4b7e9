"""Database session and engine management."""
from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from app.config import settings
from app.utils.exceptions import StorageError

engine = create_engine(
    str(settings.DATABASE_URL),
    pool_pre_ping=True,
    poolclass=QueuePool,
    pool_size=10,
    max_overflow=20,
    pool_recycle=3600,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,  # Keep objects usable after commit
)


def get_db_context():
    """Get database session as context manager."""
    return SessionLocal()


@contextmanager
def transaction(db: Session, *, commit: bool = True) -> Iterator[Session]:
    """Run a unit of work: commit when the block succeeds, roll back otherwise.

    With ``commit=False`` the caller owns the surrounding transaction and only
    flushes here; an error still rolls everything back so no partial state
    survives.
    """

    try:
        yield db
        if commit:
            db.commit()
        else:
            db.flush()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Database transaction failed: {exc}")
        raise StorageError("Database transaction failed", {"error": str(exc)}) from exc
    except BaseException:
        db.rollback()
        raise
