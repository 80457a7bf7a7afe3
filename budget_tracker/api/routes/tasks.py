"""Task creation, assignment, status and task budget endpoints."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from budget_tracker.core.auth import RequestUserContext, get_current_user_context, require_roles
from budget_tracker.db.dependencies import get_db_session
from budget_tracker.models.entities import TaskStatus, UserRole
from budget_tracker.services.budget_service import BudgetService
from budget_tracker.services.planning_service import AssignmentCreateData, PlanningService, TaskCreateData

router = APIRouter(prefix="/tasks", tags=["tasks"])


class TaskCreatePayload(BaseModel):
    phase_id: UUID
    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=4000)
    start_date: date
    end_date: date
    due_date: date
    budget: Decimal = Field(ge=0, max_digits=14, decimal_places=2)


class AssignmentCreatePayload(BaseModel):
    user_id: UUID
    hourly_rate: Decimal = Field(ge=0, max_digits=10, decimal_places=2)


class TaskStatusPayload(BaseModel):
    status: TaskStatus


def _planning_service(db: Session) -> PlanningService:
    return PlanningService(db)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreatePayload,
    _: RequestUserContext = Depends(require_roles(UserRole.MANAGER)),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    task = service.create_task(
        TaskCreateData(
            phase_id=payload.phase_id,
            title=payload.title,
            description=payload.description,
            start_date=payload.start_date,
            end_date=payload.end_date,
            due_date=payload.due_date,
            budget=payload.budget,
        )
    )
    return service.serialize_task(task)


@router.get("/my-tasks")
def list_my_tasks(
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _planning_service(db)
    items = []
    for task, assignment in service.list_my_tasks(context.user_id):
        payload = service.serialize_task(task)
        payload["hourly_rate"] = str(assignment.hourly_rate)
        items.append(payload)
    return {"items": items}


@router.get("/{task_id}")
def get_task(
    task_id: UUID,
    _: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    """Task with its assignments and budget summary."""

    service = _planning_service(db)
    task = service.get_task(task_id)
    budget = BudgetService(db)
    payload = service.serialize_task(task)
    payload["assignments"] = [
        service.serialize_assignment(assignment, user) for assignment, user in service.list_task_assignments(task.id)
    ]
    payload["budget_summary"] = budget.serialize_summary(budget.task_budget(task.id))
    return payload


@router.get("/{task_id}/budget")
def get_task_budget(
    task_id: UUID,
    _: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = BudgetService(db)
    return service.serialize_summary(service.task_budget(task_id))


@router.post("/{task_id}/assignments", status_code=status.HTTP_201_CREATED)
def assign_task(
    task_id: UUID,
    payload: AssignmentCreatePayload,
    _: RequestUserContext = Depends(require_roles(UserRole.MANAGER)),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    assignment, user = service.assign_task(
        task_id,
        AssignmentCreateData(user_id=payload.user_id, hourly_rate=payload.hourly_rate),
    )
    return service.serialize_assignment(assignment, user)


@router.patch("/{task_id}/status")
def update_task_status(
    task_id: UUID,
    payload: TaskStatusPayload,
    _: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    task = service.update_task_status(task_id, payload.status)
    return service.serialize_task(task)
