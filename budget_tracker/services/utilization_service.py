"""Per-project and per-user utilization reads."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from budget_tracker.core.errors import NotFoundError
from budget_tracker.models.ledger import ProjectUtilizationEntry, UserUtilization, UtilizationRow
from budget_tracker.repositories.ledger_repository import LedgerRepository
from budget_tracker.services import rollups


class UtilizationService:
    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = LedgerRepository(db)

    @staticmethod
    def serialize_row(row: UtilizationRow) -> dict[str, object]:
        return {
            "user_id": str(row.user_id),
            "user_name": row.user_name,
            "role_name": row.role_name,
            "forecast_hours": str(row.forecast_hours),
            "actual_hours": str(row.actual_hours),
            "utilization": str(row.utilization),
        }

    @staticmethod
    def serialize_project_entry(entry: ProjectUtilizationEntry) -> dict[str, object]:
        return {
            "project_id": str(entry.project_id),
            "project_name": entry.project_name,
            "role_name": entry.role_name,
            "forecast_hours": str(entry.forecast_hours),
            "actual_hours": str(entry.actual_hours),
            "utilization": str(entry.utilization),
        }

    @classmethod
    def serialize_user_utilization(cls, summary: UserUtilization) -> dict[str, object]:
        return {
            "total_forecast": str(summary.total_forecast),
            "total_actual": str(summary.total_actual),
            "utilization": str(summary.utilization),
            "projects": [cls.serialize_project_entry(entry) for entry in summary.projects],
        }

    def project_utilization(self, project_id: UUID) -> list[UtilizationRow]:
        project = self.repo.get_project(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return rollups.project_utilization(self.repo.load_project_ledger(project))

    def user_utilization(self, user_id: UUID) -> UserUtilization:
        user = self.repo.get_user(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return rollups.user_utilization(user.id, self.repo.load_staffed_projects(user))
