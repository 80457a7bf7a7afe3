from __future__ import annotations

import uuid
from decimal import Decimal

from fastapi.testclient import TestClient


def _headers(email: str, name: str) -> dict[str, str]:
    return {"X-USER-EMAIL": email, "X-USER-NAME": name}


ALICE = _headers("alice@test.local", "Alice")
BOB = _headers("bob@test.local", "Bob")


def _create_assigned_task(client: TestClient, manager: dict[str, str]) -> tuple[str, str]:
    alice_id = client.get("/api/v1/me", headers=ALICE).json()["id"]
    client.get("/api/v1/me", headers=BOB)

    project_id = client.post(
        "/api/v1/projects",
        headers=manager,
        json={"name": "Project ABC", "client_name": "Miebach", "start_date": "2025-01-01", "end_date": "2025-03-31"},
    ).json()["id"]
    phase_id = client.post(
        f"/api/v1/projects/{project_id}/phases",
        headers=manager,
        json={"name": "Design", "start_date": "2025-01-01", "end_date": "2025-01-31"},
    ).json()["id"]
    task_id = client.post(
        "/api/v1/tasks",
        headers=manager,
        json={
            "phase_id": phase_id,
            "title": "Website Redesign",
            "start_date": "2025-01-06",
            "end_date": "2025-01-24",
            "due_date": "2025-01-24",
            "budget": "2000",
        },
    ).json()["id"]
    response = client.post(
        f"/api/v1/tasks/{task_id}/assignments",
        headers=manager,
        json={"user_id": alice_id, "hourly_rate": "100"},
    )
    assert response.status_code == 201
    return project_id, task_id


def _log(client: TestClient, headers: dict[str, str], task_id: str, day: str, hours: str, **extra):
    return client.post(
        "/api/v1/time-entries",
        headers=headers,
        json={"task_id": task_id, "date": day, "hours": hours, **extra},
    )


def test_only_assigned_users_can_log_time(client: TestClient, manager_headers: dict[str, str]) -> None:
    _, task_id = _create_assigned_task(client, manager_headers)

    created = _log(client, ALICE, task_id, "2025-01-13", "8")
    assert created.status_code == 201
    assert created.json()["date"] == "2025-01-13"
    assert created.json()["is_billable"] is True

    rejected = _log(client, BOB, task_id, "2025-01-13", "4")
    assert rejected.status_code == 403
    assert rejected.json() == {"detail": "You are not assigned to this task.", "code": "FORBIDDEN"}


def test_hours_must_be_within_a_day(client: TestClient, manager_headers: dict[str, str]) -> None:
    _, task_id = _create_assigned_task(client, manager_headers)

    assert _log(client, ALICE, task_id, "2025-01-13", "0").status_code == 422
    assert _log(client, ALICE, task_id, "2025-01-13", "24.5").status_code == 422
    assert _log(client, ALICE, task_id, "2025-01-13", "24").status_code == 201


def test_unknown_task_is_not_found(client: TestClient, manager_headers: dict[str, str]) -> None:
    _create_assigned_task(client, manager_headers)

    response = _log(client, ALICE, str(uuid.uuid4()), "2025-01-13", "1")
    assert response.status_code == 404


def test_entry_listings(client: TestClient, manager_headers: dict[str, str]) -> None:
    project_id, task_id = _create_assigned_task(client, manager_headers)
    _log(client, ALICE, task_id, "2025-01-13", "8")
    _log(client, ALICE, task_id, "2025-01-14", "6", is_billable=False)

    mine = client.get("/api/v1/time-entries/my-entries", headers=ALICE).json()["items"]
    assert [row["date"] for row in mine] == ["2025-01-14", "2025-01-13"]
    assert mine[0]["task_title"] == "Website Redesign"

    by_task = client.get(f"/api/v1/time-entries/task/{task_id}", headers=BOB).json()["items"]
    assert {row["user_name"] for row in by_task} == {"Alice"}

    assert client.get(f"/api/v1/time-entries/project/{project_id}", headers=ALICE).status_code == 403
    by_project = client.get(f"/api/v1/time-entries/project/{project_id}", headers=manager_headers)
    assert by_project.status_code == 200
    assert len(by_project.json()["items"]) == 2


def test_owner_only_update_and_delete(client: TestClient, manager_headers: dict[str, str]) -> None:
    _, task_id = _create_assigned_task(client, manager_headers)
    entry_id = _log(client, ALICE, task_id, "2025-01-13", "8").json()["id"]

    foreign_update = client.patch(f"/api/v1/time-entries/{entry_id}", headers=BOB, json={"hours": "1"})
    assert foreign_update.status_code == 403
    assert client.delete(f"/api/v1/time-entries/{entry_id}", headers=BOB).status_code == 403

    updated = client.patch(
        f"/api/v1/time-entries/{entry_id}",
        headers=ALICE,
        json={"hours": "7.5", "is_billable": False},
    )
    assert updated.status_code == 200
    assert Decimal(updated.json()["hours"]) == Decimal("7.5")
    assert updated.json()["is_billable"] is False

    assert client.delete(f"/api/v1/time-entries/{entry_id}", headers=ALICE).status_code == 204
    assert client.delete(f"/api/v1/time-entries/{entry_id}", headers=ALICE).status_code == 404

    budget = client.get(f"/api/v1/tasks/{task_id}/budget", headers=ALICE).json()
    assert Decimal(budget["actual"]) == Decimal("0")
