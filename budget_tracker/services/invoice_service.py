"""Invoice generation and invoice reads."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from budget_tracker.core.errors import InvalidInputError, NotFoundError
from budget_tracker.core.logging import get_logger
from budget_tracker.models.entities import Invoice, Project
from budget_tracker.models.ledger import InvoiceDraft, InvoiceLineItem
from budget_tracker.repositories.ledger_repository import LedgerRepository
from budget_tracker.services import rollups

logger = get_logger(__name__)


@dataclass(slots=True)
class InvoiceWithLines:
    invoice: Invoice
    line_items: tuple[InvoiceLineItem, ...]


class InvoiceService:
    """Prices billable time per (task, user) and stores invoice headers.

    Line items are never persisted. Reading an invoice recomputes them from
    the current ledger for the stored period, while the header keeps the
    total it was generated with, so the two can drift apart after edits.
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = LedgerRepository(db)

    # ---------- Serialization ----------
    @staticmethod
    def serialize_invoice(invoice: Invoice) -> dict[str, object]:
        return {
            "id": str(invoice.id),
            "project_id": str(invoice.project_id),
            "client_name": invoice.client_name,
            "period_start": invoice.period_start.isoformat(),
            "period_end": invoice.period_end.isoformat(),
            "total_amount": str(invoice.total_amount),
            "created_at": invoice.created_at.isoformat(),
        }

    @staticmethod
    def serialize_line_item(item: InvoiceLineItem) -> dict[str, object]:
        return {
            "task_id": str(item.task_id),
            "task_title": item.task_title,
            "phase_name": item.phase_name,
            "user_id": str(item.user_id),
            "user_name": item.user_name,
            "hours": str(item.hours),
            "hourly_rate": str(item.hourly_rate),
            "amount": str(item.amount),
        }

    @classmethod
    def serialize_with_lines(cls, result: InvoiceWithLines) -> dict[str, object]:
        return {
            "invoice": cls.serialize_invoice(result.invoice),
            "line_items": [cls.serialize_line_item(item) for item in result.line_items],
        }

    # ---------- Helpers ----------
    def _get_project(self, project_id: UUID) -> Project:
        project = self.repo.get_project(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return project

    def _draft(self, project: Project, *, period_start: date, period_end: date) -> InvoiceDraft:
        ledger = self.repo.load_project_ledger(
            project,
            include_staffing=False,
            billable_only=True,
            from_date=period_start,
            to_date=period_end,
        )
        return rollups.draft_invoice(ledger, period_start=period_start, period_end=period_end)

    # ---------- Operations ----------
    def generate(self, project_id: UUID, *, period_start: date, period_end: date) -> InvoiceWithLines:
        if period_end < period_start:
            raise InvalidInputError("period_end must be greater than or equal to period_start.")

        project = self._get_project(project_id)
        draft = self._draft(project, period_start=period_start, period_end=period_end)

        invoice = Invoice(
            project_id=project.id,
            client_name=project.client_name,
            period_start=period_start,
            period_end=period_end,
            total_amount=draft.total_amount,
        )
        try:
            self.repo.add_invoice(invoice)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("invoice_persist_failed", extra={"project_id": project.id})
            raise

        self.db.refresh(invoice)
        logger.info(
            "invoice_generated",
            extra={
                "invoice_id": invoice.id,
                "project_id": project.id,
                "period_start": period_start,
                "period_end": period_end,
                "line_items": len(draft.line_items),
                "total_amount": draft.total_amount,
            },
        )
        return InvoiceWithLines(invoice=invoice, line_items=draft.line_items)

    def get_invoice_with_details(self, invoice_id: UUID) -> InvoiceWithLines:
        invoice = self.repo.get_invoice(invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice", invoice_id)

        project = self._get_project(invoice.project_id)
        draft = self._draft(project, period_start=invoice.period_start, period_end=invoice.period_end)
        return InvoiceWithLines(invoice=invoice, line_items=draft.line_items)

    def list_invoices(self) -> list[tuple[Invoice, Project]]:
        return self.repo.list_invoices()

    def list_project_invoices(self, project_id: UUID) -> list[Invoice]:
        project = self._get_project(project_id)
        return self.repo.list_project_invoices(project.id)
