"""User listing and per-user utilization."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from budget_tracker.core.auth import RequestUserContext, get_current_user_context
from budget_tracker.db.dependencies import get_db_session
from budget_tracker.services.planning_service import PlanningService
from budget_tracker.services.utilization_service import UtilizationService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
def list_users(
    _: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = PlanningService(db)
    return {"items": [service.serialize_user(user) for user in service.list_users()]}


@router.get("/{user_id}/utilization")
def get_user_utilization(
    user_id: UUID,
    _: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = UtilizationService(db)
    return service.serialize_user_utilization(service.user_utilization(user_id))
