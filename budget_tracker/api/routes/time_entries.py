"""Time entry endpoints."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from budget_tracker.core.auth import RequestUserContext, get_current_user_context, require_roles
from budget_tracker.db.dependencies import get_db_session
from budget_tracker.models.entities import UserRole
from budget_tracker.services.time_entry_service import (
    TimeEntryCreateData,
    TimeEntryService,
    TimeEntryUpdateData,
)

router = APIRouter(prefix="/time-entries", tags=["time-entries"])


class TimeEntryCreatePayload(BaseModel):
    task_id: UUID
    date: dt.date
    hours: Decimal = Field(gt=0, le=24, max_digits=5, decimal_places=2)
    is_billable: bool = True


class TimeEntryUpdatePayload(BaseModel):
    date: dt.date | None = None
    hours: Decimal | None = Field(default=None, gt=0, le=24, max_digits=5, decimal_places=2)
    is_billable: bool | None = None


def _time_entry_service(db: Session) -> TimeEntryService:
    return TimeEntryService(db)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_time_entry(
    payload: TimeEntryCreatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _time_entry_service(db)
    entry = service.create_time_entry(
        context.user_id,
        TimeEntryCreateData(
            task_id=payload.task_id,
            date=payload.date,
            hours=payload.hours,
            is_billable=payload.is_billable,
        ),
    )
    return service.serialize_entry(entry)


@router.get("/my-entries")
def list_my_entries(
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _time_entry_service(db)
    rows = service.list_my_entries(context.user_id)
    return {"items": [service.serialize_entry(entry, task=task) for entry, task in rows]}


@router.get("/task/{task_id}")
def list_task_entries(
    task_id: UUID,
    _: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _time_entry_service(db)
    rows = service.list_task_entries(task_id)
    return {"items": [service.serialize_entry(entry, user=user) for entry, user in rows]}


@router.get("/project/{project_id}")
def list_project_entries(
    project_id: UUID,
    _: RequestUserContext = Depends(require_roles(UserRole.MANAGER)),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _time_entry_service(db)
    rows = service.list_project_entries(project_id)
    return {"items": [service.serialize_entry(entry, user=user, task=task) for entry, user, task in rows]}


@router.patch("/{entry_id}")
def update_time_entry(
    entry_id: UUID,
    payload: TimeEntryUpdatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _time_entry_service(db)
    entry = service.update_time_entry(
        context.user_id,
        entry_id,
        TimeEntryUpdateData(date=payload.date, hours=payload.hours, is_billable=payload.is_billable),
    )
    return service.serialize_entry(entry)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_time_entry(
    entry_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    service = _time_entry_service(db)
    service.delete_time_entry(context.user_id, entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
