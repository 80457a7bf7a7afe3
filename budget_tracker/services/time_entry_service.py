"""Time logging against tasks."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from budget_tracker.core.config import get_settings
from budget_tracker.core.errors import ForbiddenError, InvalidInputError, NotFoundError
from budget_tracker.models.entities import Task, TimeEntry, User
from budget_tracker.repositories.ledger_repository import LedgerRepository

ZERO = Decimal("0")


@dataclass(slots=True)
class TimeEntryCreateData:
    task_id: UUID
    date: dt.date
    hours: Decimal
    is_billable: bool = True


@dataclass(slots=True)
class TimeEntryUpdateData:
    date: dt.date | None = None
    hours: Decimal | None = None
    is_billable: bool | None = None


class TimeEntryService:
    """Entries are created by assigned users and edited only by their owner."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = LedgerRepository(db)
        self.settings = get_settings()

    def _validate_hours(self, hours: Decimal) -> Decimal:
        if hours <= ZERO or hours > Decimal(self.settings.time_entry_max_hours):
            raise InvalidInputError(
                f"hours must be greater than 0 and at most {self.settings.time_entry_max_hours}."
            )
        return hours

    def _get_task(self, task_id: UUID) -> Task:
        task = self.repo.get_task(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    def _get_owned_entry(self, user_id: UUID, entry_id: UUID) -> TimeEntry:
        entry = self.repo.get_time_entry(entry_id)
        if entry is None:
            raise NotFoundError("Time entry", entry_id)
        if entry.user_id != user_id:
            raise ForbiddenError("Only the owner can change this time entry.")
        return entry

    @staticmethod
    def serialize_entry(
        entry: TimeEntry,
        *,
        user: User | None = None,
        task: Task | None = None,
    ) -> dict[str, object]:
        payload: dict[str, object] = {
            "id": str(entry.id),
            "task_id": str(entry.task_id),
            "user_id": str(entry.user_id),
            "date": entry.date.isoformat(),
            "hours": str(entry.hours),
            "is_billable": entry.is_billable,
            "created_at": entry.created_at.isoformat(),
        }
        if user is not None:
            payload["user_name"] = user.name
        if task is not None:
            payload["task_title"] = task.title
        return payload

    def create_time_entry(self, user_id: UUID, data: TimeEntryCreateData) -> TimeEntry:
        task = self._get_task(data.task_id)
        if self.repo.get_assignment(task.id, user_id) is None:
            raise ForbiddenError("You are not assigned to this task.")

        entry = TimeEntry(
            task_id=task.id,
            user_id=user_id,
            date=data.date,
            hours=self._validate_hours(data.hours),
            is_billable=data.is_billable,
        )
        self.repo.add_time_entry(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def list_task_entries(self, task_id: UUID) -> list[tuple[TimeEntry, User]]:
        task = self._get_task(task_id)
        return self.repo.list_recent_entries_for_task(task.id)

    def list_my_entries(self, user_id: UUID) -> list[tuple[TimeEntry, Task]]:
        return self.repo.list_recent_entries_for_user(user_id)

    def list_project_entries(self, project_id: UUID) -> list[tuple[TimeEntry, User, Task]]:
        project = self.repo.get_project(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return self.repo.list_recent_entries_for_project(project.id)

    def update_time_entry(self, user_id: UUID, entry_id: UUID, data: TimeEntryUpdateData) -> TimeEntry:
        entry = self._get_owned_entry(user_id, entry_id)

        if data.date is not None:
            entry.date = data.date
        if data.hours is not None:
            entry.hours = self._validate_hours(data.hours)
        if data.is_billable is not None:
            entry.is_billable = data.is_billable

        self.db.commit()
        self.db.refresh(entry)
        return entry

    def delete_time_entry(self, user_id: UUID, entry_id: UUID) -> None:
        entry = self._get_owned_entry(user_id, entry_id)
        self.repo.delete_time_entry(entry)
        self.db.commit()
