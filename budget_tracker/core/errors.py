"""Typed error hierarchy shared by services and the HTTP layer.

Every error carries a machine-readable ``code`` class attribute and the HTTP
status the API layer renders it with. Aggregation services only ever raise
``NotFoundError``; the other types belong to the write path.
"""

from __future__ import annotations

from fastapi import status


class BudgetTrackerError(Exception):
    """Base class for all domain errors."""

    code: str = "BUDGET_TRACKER_ERROR"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(BudgetTrackerError):
    """Referenced entity id does not resolve to a stored row."""

    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity_name: str, entity_id: object) -> None:
        self.entity_name = entity_name
        self.entity_id = str(entity_id)
        super().__init__(f"{entity_name} not found.")


class InvalidInputError(BudgetTrackerError):
    """Malformed or out-of-range input rejected before any write."""

    code = "INVALID_INPUT"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class ConflictError(BudgetTrackerError):
    """Unique pair already exists (staffing, assignment)."""

    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class ForbiddenError(BudgetTrackerError):
    """Caller may not act on the referenced record."""

    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN
