from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from budget_tracker.core.auth import ensure_user
from budget_tracker.db.base import Base
from budget_tracker.db.dependencies import get_db_session
import budget_tracker.models.entities  # noqa: F401
from budget_tracker.main import create_app
from budget_tracker.models.entities import (
    Invoice,
    Project,
    ProjectPhase,
    ProjectStaffing,
    Task,
    TaskAssignment,
    TimeEntry,
    User,
    UserRole,
)

TEST_TABLES = [
    User.__table__,
    Project.__table__,
    ProjectStaffing.__table__,
    ProjectPhase.__table__,
    Task.__table__,
    TaskAssignment.__table__,
    TimeEntry.__table__,
    Invoice.__table__,
]


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine, tables=TEST_TABLES)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine, tables=TEST_TABLES)


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(
    *,
    email: str = "manager@test.local",
    name: str = "Test Manager",
) -> dict[str, str]:
    return {
        "X-USER-EMAIL": email,
        "X-USER-NAME": name,
    }


@pytest.fixture()
def manager_headers(db_session: Session) -> dict[str, str]:
    ensure_user(db_session, email="manager@test.local", name="Test Manager", role=UserRole.MANAGER)
    return auth_headers()
