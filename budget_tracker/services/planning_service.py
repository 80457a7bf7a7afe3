"""Application service for project setup: staffing, phases, tasks and assignments."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from budget_tracker.core.errors import ConflictError, InvalidInputError, NotFoundError
from budget_tracker.core.logging import get_logger
from budget_tracker.models.entities import (
    Project,
    ProjectPhase,
    ProjectStaffing,
    Task,
    TaskAssignment,
    TaskStatus,
    User,
)
from budget_tracker.repositories.ledger_repository import LedgerRepository

logger = get_logger(__name__)

ZERO = Decimal("0")


@dataclass(slots=True)
class ProjectCreateData:
    name: str
    client_name: str
    start_date: date
    end_date: date


@dataclass(slots=True)
class StaffingCreateData:
    user_id: UUID
    role_name: str
    hourly_rate: Decimal
    forecast_hours: Decimal


@dataclass(slots=True)
class PhaseCreateData:
    name: str
    start_date: date
    end_date: date


@dataclass(slots=True)
class TaskCreateData:
    phase_id: UUID
    title: str
    start_date: date
    end_date: date
    due_date: date
    budget: Decimal
    description: str | None = None


@dataclass(slots=True)
class AssignmentCreateData:
    user_id: UUID
    hourly_rate: Decimal


def _require_text(value: str, field_name: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise InvalidInputError(f"{field_name} must not be blank.")
    return cleaned


def _require_date_order(start: date, end: date, *, start_name: str, end_name: str) -> None:
    if end < start:
        raise InvalidInputError(f"{end_name} must be greater than or equal to {start_name}.")


def _require_non_negative(value: Decimal, field_name: str) -> Decimal:
    if value < ZERO:
        raise InvalidInputError(f"{field_name} must be non-negative.")
    return value


class PlanningService:
    """Write path and plain listings for the project structure."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = LedgerRepository(db)

    # ---------- Lookups ----------
    def _get_user(self, user_id: UUID) -> User:
        user = self.repo.get_user(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    def get_project(self, project_id: UUID) -> Project:
        project = self.repo.get_project(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return project

    def get_phase(self, phase_id: UUID) -> ProjectPhase:
        phase = self.repo.get_phase(phase_id)
        if phase is None:
            raise NotFoundError("Phase", phase_id)
        return phase

    def get_task(self, task_id: UUID) -> Task:
        task = self.repo.get_task(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    # ---------- Serialization ----------
    @staticmethod
    def serialize_user(user: User) -> dict[str, object]:
        return {
            "id": str(user.id),
            "name": user.name,
            "email": user.email,
            "role": user.role.value,
        }

    @staticmethod
    def serialize_project(project: Project) -> dict[str, object]:
        return {
            "id": str(project.id),
            "name": project.name,
            "client_name": project.client_name,
            "start_date": project.start_date.isoformat(),
            "end_date": project.end_date.isoformat(),
            "created_at": project.created_at.isoformat(),
        }

    @staticmethod
    def serialize_staffing(staffing: ProjectStaffing, user: User) -> dict[str, object]:
        return {
            "id": str(staffing.id),
            "project_id": str(staffing.project_id),
            "user_id": str(staffing.user_id),
            "user_name": user.name,
            "user_email": user.email,
            "role_name": staffing.role_name,
            "hourly_rate": str(staffing.hourly_rate),
            "forecast_hours": str(staffing.forecast_hours),
        }

    @staticmethod
    def serialize_phase(phase: ProjectPhase) -> dict[str, object]:
        return {
            "id": str(phase.id),
            "project_id": str(phase.project_id),
            "name": phase.name,
            "start_date": phase.start_date.isoformat(),
            "end_date": phase.end_date.isoformat(),
        }

    @staticmethod
    def serialize_task(task: Task) -> dict[str, object]:
        return {
            "id": str(task.id),
            "phase_id": str(task.phase_id),
            "title": task.title,
            "description": task.description,
            "status": task.status.value,
            "start_date": task.start_date.isoformat(),
            "end_date": task.end_date.isoformat(),
            "due_date": task.due_date.isoformat(),
            "budget": str(task.budget),
            "created_at": task.created_at.isoformat(),
        }

    @staticmethod
    def serialize_assignment(assignment: TaskAssignment, user: User | None = None) -> dict[str, object]:
        payload: dict[str, object] = {
            "id": str(assignment.id),
            "task_id": str(assignment.task_id),
            "user_id": str(assignment.user_id),
            "hourly_rate": str(assignment.hourly_rate),
        }
        if user is not None:
            payload["user_name"] = user.name
        return payload

    # ---------- Users ----------
    def list_users(self) -> list[User]:
        return self.repo.list_users()

    # ---------- Projects ----------
    def list_projects(self) -> list[tuple[Project, int, int]]:
        """Projects newest first with their staffing and phase counts."""

        staffing_counts = self.repo.staffing_count_by_project()
        phase_counts = self.repo.phase_count_by_project()
        return [
            (project, staffing_counts.get(project.id, 0), phase_counts.get(project.id, 0))
            for project in self.repo.list_projects()
        ]

    def create_project(self, data: ProjectCreateData) -> Project:
        _require_date_order(data.start_date, data.end_date, start_name="start_date", end_name="end_date")
        project = Project(
            name=_require_text(data.name, "name"),
            client_name=_require_text(data.client_name, "client_name"),
            start_date=data.start_date,
            end_date=data.end_date,
        )

        self.repo.add_project(project)
        self.db.commit()
        self.db.refresh(project)
        return project

    # ---------- Staffing ----------
    def list_staffing(self, project_id: UUID) -> list[tuple[ProjectStaffing, User]]:
        project = self.get_project(project_id)
        return self.repo.list_staffing(project.id)

    def add_staffing(self, project_id: UUID, data: StaffingCreateData) -> tuple[ProjectStaffing, User]:
        project = self.get_project(project_id)
        user = self._get_user(data.user_id)

        staffing = ProjectStaffing(
            project_id=project.id,
            user_id=user.id,
            role_name=_require_text(data.role_name, "role_name"),
            hourly_rate=_require_non_negative(data.hourly_rate, "hourly_rate"),
            forecast_hours=_require_non_negative(data.forecast_hours, "forecast_hours"),
        )
        try:
            self.repo.add_staffing(staffing)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning(
                "staffing_conflict",
                extra={"project_id": project_id, "user_id": data.user_id},
            )
            raise ConflictError("User is already staffed on this project.") from exc

        self.db.refresh(staffing)
        return staffing, user

    # ---------- Phases ----------
    def list_phases(self, project_id: UUID) -> list[tuple[ProjectPhase, int]]:
        project = self.get_project(project_id)
        task_counts = self.repo.task_count_by_phase(project.id)
        return [(phase, task_counts.get(phase.id, 0)) for phase in self.repo.list_phases(project.id)]

    def add_phase(self, project_id: UUID, data: PhaseCreateData) -> ProjectPhase:
        project = self.get_project(project_id)
        _require_date_order(data.start_date, data.end_date, start_name="start_date", end_name="end_date")

        phase = ProjectPhase(
            project_id=project.id,
            name=_require_text(data.name, "name"),
            start_date=data.start_date,
            end_date=data.end_date,
        )
        self.repo.add_phase(phase)
        self.db.commit()
        self.db.refresh(phase)
        return phase

    # ---------- Tasks ----------
    def list_phase_tasks(self, phase_id: UUID) -> list[Task]:
        phase = self.get_phase(phase_id)
        return self.repo.list_phase_tasks_by_due_date(phase.id)

    def create_task(self, data: TaskCreateData) -> Task:
        phase = self.get_phase(data.phase_id)
        _require_date_order(data.start_date, data.end_date, start_name="start_date", end_name="end_date")

        task = Task(
            phase_id=phase.id,
            title=_require_text(data.title, "title"),
            description=data.description.strip() if data.description else None,
            status=TaskStatus.TODO,
            start_date=data.start_date,
            end_date=data.end_date,
            due_date=data.due_date,
            budget=_require_non_negative(data.budget, "budget"),
        )
        self.repo.add_task(task)
        self.db.commit()
        self.db.refresh(task)
        return task

    def update_task_status(self, task_id: UUID, new_status: TaskStatus) -> Task:
        task = self.get_task(task_id)
        task.status = new_status
        self.db.commit()
        self.db.refresh(task)
        return task

    def list_task_assignments(self, task_id: UUID) -> list[tuple[TaskAssignment, User]]:
        task = self.get_task(task_id)
        return self.repo.list_assignments([task.id])

    def list_my_tasks(self, user_id: UUID) -> list[tuple[Task, TaskAssignment]]:
        return self.repo.list_assigned_tasks(user_id)

    # ---------- Assignments ----------
    def assign_task(self, task_id: UUID, data: AssignmentCreateData) -> tuple[TaskAssignment, User]:
        task = self.get_task(task_id)
        user = self._get_user(data.user_id)

        assignment = TaskAssignment(
            task_id=task.id,
            user_id=user.id,
            hourly_rate=_require_non_negative(data.hourly_rate, "hourly_rate"),
        )
        try:
            self.repo.add_assignment(assignment)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning(
                "assignment_conflict",
                extra={"task_id": task_id, "user_id": data.user_id},
            )
            raise ConflictError("User is already assigned to this task.") from exc

        self.db.refresh(assignment)
        return assignment, user
