"""ORM model package."""

from budget_tracker.models.entities import (
    Invoice,
    Project,
    ProjectPhase,
    ProjectStaffing,
    Task,
    TaskAssignment,
    TaskStatus,
    TimeEntry,
    User,
    UserRole,
)

__all__ = [
    "Invoice",
    "Project",
    "ProjectPhase",
    "ProjectStaffing",
    "Task",
    "TaskAssignment",
    "TaskStatus",
    "TimeEntry",
    "User",
    "UserRole",
]
