"""Invoice generation and invoice reads (manager only)."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from budget_tracker.core.auth import RequestUserContext, require_roles
from budget_tracker.db.dependencies import get_db_session
from budget_tracker.models.entities import UserRole
from budget_tracker.services.invoice_service import InvoiceService

router = APIRouter(prefix="/invoices", tags=["invoices"])


class InvoiceGeneratePayload(BaseModel):
    project_id: UUID
    period_start: date
    period_end: date


@router.post("/generate", status_code=status.HTTP_201_CREATED)
def generate_invoice(
    payload: InvoiceGeneratePayload,
    _: RequestUserContext = Depends(require_roles(UserRole.MANAGER)),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = InvoiceService(db)
    result = service.generate(
        payload.project_id,
        period_start=payload.period_start,
        period_end=payload.period_end,
    )
    return service.serialize_with_lines(result)


@router.get("")
def list_invoices(
    _: RequestUserContext = Depends(require_roles(UserRole.MANAGER)),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = InvoiceService(db)
    items = []
    for invoice, project in service.list_invoices():
        payload = service.serialize_invoice(invoice)
        payload["project_name"] = project.name
        items.append(payload)
    return {"items": items}


@router.get("/project/{project_id}")
def list_project_invoices(
    project_id: UUID,
    _: RequestUserContext = Depends(require_roles(UserRole.MANAGER)),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = InvoiceService(db)
    return {"items": [service.serialize_invoice(invoice) for invoice in service.list_project_invoices(project_id)]}


@router.get("/{invoice_id}")
def get_invoice(
    invoice_id: UUID,
    _: RequestUserContext = Depends(require_roles(UserRole.MANAGER)),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = InvoiceService(db)
    return service.serialize_with_lines(service.get_invoice_with_details(invoice_id))
