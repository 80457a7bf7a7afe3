"""Budget summaries at task, phase and project level."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from budget_tracker.core.errors import NotFoundError
from budget_tracker.models.ledger import BudgetSummary
from budget_tracker.repositories.ledger_repository import LedgerRepository
from budget_tracker.services import rollups


class BudgetService:
    """Loads ledger snapshots and hands them to the budget rollups."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = LedgerRepository(db)

    @staticmethod
    def serialize_summary(summary: BudgetSummary) -> dict[str, object]:
        return {
            "forecast": str(summary.forecast),
            "actual": str(summary.actual),
            "remaining": str(summary.remaining),
            "percent_used": str(summary.percent_used),
        }

    def task_budget(self, task_id: UUID) -> BudgetSummary:
        task = self.repo.get_task(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return rollups.task_budget(self.repo.load_task_ledger(task))

    def phase_budget(self, phase_id: UUID) -> BudgetSummary:
        phase = self.repo.get_phase(phase_id)
        if phase is None:
            raise NotFoundError("Phase", phase_id)
        return rollups.phase_budget(self.repo.load_phase_ledger(phase))

    def project_budget(self, project_id: UUID) -> BudgetSummary:
        project = self.repo.get_project(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return rollups.project_budget(self.repo.load_project_ledger(project))
