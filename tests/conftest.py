from collections.abc import Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.api.main import app
from app.data_access import models  # noqa: F401  (registers tables)
from app.data_access.database import get_session


# --- Setup: Isolated Testing Environment ---

@pytest.fixture(name="engine")
def engine_fixture() -> Generator[Any, None, None]:
    """Creates a clean, in-memory SQLite database for every test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine: Any) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(engine: Any) -> Generator[TestClient, None, None]:
    """TestClient whose requests each get their own session on the test engine."""

    def get_session_override() -> Generator[Session, None, None]:
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = get_session_override
    # No context manager: the lifespan would create tables on the configured database
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="admin_auth")
def admin_auth_fixture() -> tuple[str, str]:
    # admin:password123 in Basic Auth (Settings defaults)
    return ("admin", "password123")
