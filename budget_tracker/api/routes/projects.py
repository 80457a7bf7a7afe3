"""Project setup, staffing, phases and project-level rollup endpoints."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from budget_tracker.core.auth import RequestUserContext, get_current_user_context, require_roles
from budget_tracker.db.dependencies import get_db_session
from budget_tracker.models.entities import UserRole
from budget_tracker.services.budget_service import BudgetService
from budget_tracker.services.planning_service import (
    PhaseCreateData,
    PlanningService,
    ProjectCreateData,
    StaffingCreateData,
)
from budget_tracker.services.utilization_service import UtilizationService

router = APIRouter(prefix="/projects", tags=["projects"])


class ProjectCreatePayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    client_name: str = Field(min_length=1, max_length=255)
    start_date: date
    end_date: date


class StaffingCreatePayload(BaseModel):
    user_id: UUID
    role_name: str = Field(min_length=1, max_length=255)
    hourly_rate: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    forecast_hours: Decimal = Field(ge=0, max_digits=10, decimal_places=2)


class PhaseCreatePayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    start_date: date
    end_date: date


def _planning_service(db: Session) -> PlanningService:
    return PlanningService(db)


@router.get("")
def list_projects(
    _: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _planning_service(db)
    items = []
    for project, staffing_count, phase_count in service.list_projects():
        payload = service.serialize_project(project)
        payload["staffing_count"] = staffing_count
        payload["phase_count"] = phase_count
        items.append(payload)
    return {"items": items}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_project(
    payload: ProjectCreatePayload,
    _: RequestUserContext = Depends(require_roles(UserRole.MANAGER)),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    project = service.create_project(
        ProjectCreateData(
            name=payload.name,
            client_name=payload.client_name,
            start_date=payload.start_date,
            end_date=payload.end_date,
        )
    )
    return service.serialize_project(project)


@router.get("/{project_id}")
def get_project(
    project_id: UUID,
    _: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    """Project with its budget summary and utilization rows."""

    service = _planning_service(db)
    project = service.get_project(project_id)
    budget = BudgetService(db)
    utilization = UtilizationService(db)
    return {
        "project": service.serialize_project(project),
        "budget": budget.serialize_summary(budget.project_budget(project.id)),
        "utilization": [utilization.serialize_row(row) for row in utilization.project_utilization(project.id)],
    }


@router.get("/{project_id}/budget")
def get_project_budget(
    project_id: UUID,
    _: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = BudgetService(db)
    return service.serialize_summary(service.project_budget(project_id))


@router.get("/{project_id}/utilization")
def get_project_utilization(
    project_id: UUID,
    _: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = UtilizationService(db)
    return {"items": [service.serialize_row(row) for row in service.project_utilization(project_id)]}


@router.get("/{project_id}/staffing")
def list_project_staffing(
    project_id: UUID,
    _: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _planning_service(db)
    rows = service.list_staffing(project_id)
    return {"items": [service.serialize_staffing(staffing, user) for staffing, user in rows]}


@router.post("/{project_id}/staffing", status_code=status.HTTP_201_CREATED)
def add_project_staffing(
    project_id: UUID,
    payload: StaffingCreatePayload,
    _: RequestUserContext = Depends(require_roles(UserRole.MANAGER)),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    staffing, user = service.add_staffing(
        project_id,
        StaffingCreateData(
            user_id=payload.user_id,
            role_name=payload.role_name,
            hourly_rate=payload.hourly_rate,
            forecast_hours=payload.forecast_hours,
        ),
    )
    return service.serialize_staffing(staffing, user)


@router.get("/{project_id}/phases")
def list_project_phases(
    project_id: UUID,
    _: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _planning_service(db)
    items = []
    for phase, task_count in service.list_phases(project_id):
        payload = service.serialize_phase(phase)
        payload["task_count"] = task_count
        items.append(payload)
    return {"items": items}


@router.post("/{project_id}/phases", status_code=status.HTTP_201_CREATED)
def add_project_phase(
    project_id: UUID,
    payload: PhaseCreatePayload,
    _: RequestUserContext = Depends(require_roles(UserRole.MANAGER)),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    phase = service.add_phase(
        project_id,
        PhaseCreateData(name=payload.name, start_date=payload.start_date, end_date=payload.end_date),
    )
    return service.serialize_phase(phase)
