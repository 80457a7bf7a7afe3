from __future__ import annotations

import uuid

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from budget_tracker.core.auth import RequestUserContext, ensure_user, has_role
from budget_tracker.models.entities import UserRole


def _headers(email: str, name: str) -> dict[str, str]:
    return {"X-USER-EMAIL": email, "X-USER-NAME": name}


def test_has_role_matches_expected_roles() -> None:
    context = RequestUserContext(
        user_id=uuid.uuid4(),
        email="user@test.local",
        name="User",
        role=UserRole.CONTRIBUTOR,
    )

    assert has_role(context, {UserRole.CONTRIBUTOR}) is True
    assert has_role(context, {UserRole.MANAGER}) is False
    assert context.is_manager is False


def test_ensure_user_normalizes_email_and_overwrites_role(db_session: Session) -> None:
    user = ensure_user(db_session, email="  Alice@Test.Local ", name="Alice")
    assert user.email == "alice@test.local"
    assert user.role is UserRole.CONTRIBUTOR

    promoted = ensure_user(db_session, email="alice@test.local", name="Alice", role=UserRole.MANAGER)
    assert promoted.id == user.id
    assert promoted.role is UserRole.MANAGER


def test_me_registers_first_seen_email_as_contributor(client: TestClient) -> None:
    response = client.get("/api/v1/me", headers=_headers("Bob@Test.Local", "Bob"))

    assert response.status_code == 200
    body = response.json()
    assert body["email"] == "bob@test.local"
    assert body["name"] == "Bob"
    assert body["role"] == "CONTRIBUTOR"


def test_me_falls_back_to_dev_manager_without_headers(client: TestClient) -> None:
    response = client.get("/api/v1/me")

    assert response.status_code == 200
    assert response.json()["email"] == "dev.manager@local.test"
    assert response.json()["role"] == "MANAGER"


def test_contributor_cannot_create_project(client: TestClient) -> None:
    response = client.post(
        "/api/v1/projects",
        headers=_headers("carol@test.local", "Carol"),
        json={
            "name": "Project ABC",
            "client_name": "Miebach",
            "start_date": "2025-01-01",
            "end_date": "2025-03-31",
        },
    )

    assert response.status_code == 403
