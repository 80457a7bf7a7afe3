"""Plain read shapes consumed and produced by the aggregation rollups.

The repository maps ORM rows into these frozen records so the rollups in
``budget_tracker.services.rollups`` stay pure: no session, no lazy loads.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True, slots=True)
class TimeEntryRecord:
    id: UUID
    task_id: UUID
    user_id: UUID
    user_name: str
    date: dt.date
    hours: Decimal
    is_billable: bool


@dataclass(frozen=True, slots=True)
class AssignmentRecord:
    task_id: UUID
    user_id: UUID
    user_name: str
    hourly_rate: Decimal


@dataclass(frozen=True, slots=True)
class StaffingRecord:
    project_id: UUID
    user_id: UUID
    user_name: str
    role_name: str
    hourly_rate: Decimal
    forecast_hours: Decimal


@dataclass(frozen=True, slots=True)
class TaskLedger:
    """A task with its assignments and time entries."""

    id: UUID
    phase_id: UUID
    title: str
    budget: Decimal
    assignments: tuple[AssignmentRecord, ...] = ()
    time_entries: tuple[TimeEntryRecord, ...] = ()


@dataclass(frozen=True, slots=True)
class PhaseLedger:
    id: UUID
    project_id: UUID
    name: str
    tasks: tuple[TaskLedger, ...] = ()


@dataclass(frozen=True, slots=True)
class ProjectLedger:
    """A project with staffing and the phase -> task -> entry tree."""

    id: UUID
    name: str
    client_name: str
    staffing: tuple[StaffingRecord, ...] = ()
    phases: tuple[PhaseLedger, ...] = ()


@dataclass(frozen=True, slots=True)
class StaffedProject:
    """One staffing row of a user together with the project it points at."""

    staffing: StaffingRecord
    project: ProjectLedger


# ---------- Rollup results ----------
@dataclass(frozen=True, slots=True)
class BudgetSummary:
    forecast: Decimal
    actual: Decimal
    remaining: Decimal
    percent_used: Decimal


@dataclass(frozen=True, slots=True)
class UtilizationRow:
    user_id: UUID
    user_name: str
    role_name: str
    forecast_hours: Decimal
    actual_hours: Decimal
    utilization: Decimal


@dataclass(frozen=True, slots=True)
class ProjectUtilizationEntry:
    project_id: UUID
    project_name: str
    role_name: str
    forecast_hours: Decimal
    actual_hours: Decimal
    utilization: Decimal


@dataclass(frozen=True, slots=True)
class UserUtilization:
    total_forecast: Decimal
    total_actual: Decimal
    utilization: Decimal
    projects: tuple[ProjectUtilizationEntry, ...] = ()


@dataclass(frozen=True, slots=True)
class InvoiceLineItem:
    task_id: UUID
    task_title: str
    phase_name: str
    user_id: UUID
    user_name: str
    hours: Decimal
    hourly_rate: Decimal
    amount: Decimal


@dataclass(frozen=True, slots=True)
class InvoiceDraft:
    line_items: tuple[InvoiceLineItem, ...] = field(default_factory=tuple)
    total_amount: Decimal = Decimal("0")
