import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.core.config import settings
from app.core.errors import AppError


logger = logging.getLogger(__name__)


def build_engine(database_url: str, isolation_level: str | None = None, echo: bool = False) -> Engine:
    """Creates the SQL engine used by every request session.

    SQLite needs a shared connection across threads (TestClient, uvicorn
    workers), and an in-memory database must reuse a single connection.
    """
    kwargs: dict[str, Any] = {"echo": echo}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url:
            kwargs["poolclass"] = StaticPool
    else:
        # Use pool_pre_ping for stability behind PgBouncer
        kwargs["pool_pre_ping"] = True
    if isolation_level:
        kwargs["isolation_level"] = isolation_level
    return create_engine(database_url, **kwargs)


engine = build_engine(
    settings.DATABASE_URL,
    isolation_level=settings.DATABASE_ISOLATION_LEVEL,
    echo=settings.DATABASE_ECHO,
)


def create_db_and_tables(bind: Engine | None = None) -> None:
    """Creates all physical tables if they don't exist."""
    # Registers the table classes on SQLModel.metadata
    from app.data_access import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
    logger.info("Database tables ready.")


def get_session() -> Generator[Session, None, None]:
    """FastAPI dependency to provide a database session."""
    with Session(engine) as session:
        yield session


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """Unit of work: commits on normal exit, rolls back on any exception.

    Every read and write issued through ``session`` inside the block belongs
    to the same database transaction. The exception is re-raised after the
    rollback, so callers see the original error.
    """
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        if isinstance(e, AppError) and e.status_code < 500:
            logger.warning(f"Transaction aborted: {e.message}")
        else:
            logger.error(f"Transaction rolled back: {e!s}")
        raise
