"""Phase-level budget and task listing."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from budget_tracker.core.auth import RequestUserContext, get_current_user_context
from budget_tracker.db.dependencies import get_db_session
from budget_tracker.services.budget_service import BudgetService
from budget_tracker.services.planning_service import PlanningService

router = APIRouter(prefix="/phases", tags=["phases"])


@router.get("/{phase_id}/budget")
def get_phase_budget(
    phase_id: UUID,
    _: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = BudgetService(db)
    return service.serialize_summary(service.phase_budget(phase_id))


@router.get("/{phase_id}/tasks")
def list_phase_tasks(
    phase_id: UUID,
    _: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = PlanningService(db)
    return {"items": [service.serialize_task(task) for task in service.list_phase_tasks(phase_id)]}
