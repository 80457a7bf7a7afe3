"""Pure budget, utilization and invoice rollups over ledger records.

This is the only place the aggregation formulas live. Services fetch ledger
snapshots from the repository and hand them here; routes only serialize.

Three "missing link" policies apply and differ from each other:

* budget actuals price time from an unassigned user at rate 0 (hours kept),
* invoice drafts skip (task, user) groups without an assignment,
* utilization only iterates staffing rows, so unstaffed users are invisible.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from budget_tracker.models.ledger import (
    BudgetSummary,
    InvoiceDraft,
    InvoiceLineItem,
    PhaseLedger,
    ProjectLedger,
    ProjectUtilizationEntry,
    StaffedProject,
    TaskLedger,
    UserUtilization,
    UtilizationRow,
)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
Q2 = Decimal("0.01")


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    """Return ``100 * part / whole`` rounded half away from zero to 2 places.

    A non-positive ``whole`` yields ``0.00``.
    """

    if whole <= ZERO:
        return ZERO.quantize(Q2)
    return (part * HUNDRED / whole).quantize(Q2, rounding=ROUND_HALF_UP)


def iter_tasks(project: ProjectLedger) -> Iterator[TaskLedger]:
    for phase in project.phases:
        yield from phase.tasks


# ---------- Budget ----------
def assignment_rate(task: TaskLedger, user_id: UUID) -> Decimal:
    """Hourly rate of the user's assignment on this task, or 0 without one."""

    for assignment in task.assignments:
        if assignment.user_id == user_id:
            return assignment.hourly_rate
    return ZERO


def task_actual_cost(task: TaskLedger) -> Decimal:
    return sum(
        (entry.hours * assignment_rate(task, entry.user_id) for entry in task.time_entries),
        ZERO,
    )


def summarize(forecast: Decimal, actual: Decimal) -> BudgetSummary:
    return BudgetSummary(
        forecast=forecast,
        actual=actual,
        remaining=forecast - actual,
        percent_used=percent_of(actual, forecast),
    )


def task_budget(task: TaskLedger) -> BudgetSummary:
    return summarize(task.budget, task_actual_cost(task))


def phase_budget(phase: PhaseLedger) -> BudgetSummary:
    forecast = sum((task.budget for task in phase.tasks), ZERO)
    actual = sum((task_actual_cost(task) for task in phase.tasks), ZERO)
    return summarize(forecast, actual)


def staffing_forecast(project: ProjectLedger) -> Decimal:
    return sum((row.hourly_rate * row.forecast_hours for row in project.staffing), ZERO)


def project_budget(project: ProjectLedger) -> BudgetSummary:
    """Forecast comes from staffing only; actual from every task's entries.

    Summed task budgets are not consulted here, so the project forecast and
    the sum of phase forecasts generally differ.
    """

    actual = sum((task_actual_cost(task) for task in iter_tasks(project)), ZERO)
    return summarize(staffing_forecast(project), actual)


# ---------- Utilization ----------
def hours_by_user(tasks: Iterable[TaskLedger]) -> dict[UUID, Decimal]:
    totals: dict[UUID, Decimal] = {}
    for task in tasks:
        for entry in task.time_entries:
            totals[entry.user_id] = totals.get(entry.user_id, ZERO) + entry.hours
    return totals


def project_utilization(project: ProjectLedger) -> list[UtilizationRow]:
    actual_by_user = hours_by_user(iter_tasks(project))
    rows: list[UtilizationRow] = []
    for staffing in project.staffing:
        actual_hours = actual_by_user.get(staffing.user_id, ZERO)
        rows.append(
            UtilizationRow(
                user_id=staffing.user_id,
                user_name=staffing.user_name,
                role_name=staffing.role_name,
                forecast_hours=staffing.forecast_hours,
                actual_hours=actual_hours,
                utilization=percent_of(actual_hours, staffing.forecast_hours),
            )
        )
    return rows


def user_utilization(user_id: UUID, staffed_projects: Sequence[StaffedProject]) -> UserUtilization:
    total_forecast = ZERO
    total_actual = ZERO
    projects: list[ProjectUtilizationEntry] = []

    for item in staffed_projects:
        forecast_hours = item.staffing.forecast_hours
        actual_hours = hours_by_user(iter_tasks(item.project)).get(user_id, ZERO)
        total_forecast += forecast_hours
        total_actual += actual_hours
        projects.append(
            ProjectUtilizationEntry(
                project_id=item.project.id,
                project_name=item.project.name,
                role_name=item.staffing.role_name,
                forecast_hours=forecast_hours,
                actual_hours=actual_hours,
                utilization=percent_of(actual_hours, forecast_hours),
            )
        )

    return UserUtilization(
        total_forecast=total_forecast,
        total_actual=total_actual,
        utilization=percent_of(total_actual, total_forecast),
        projects=tuple(projects),
    )


# ---------- Invoicing ----------
def draft_invoice(project: ProjectLedger, *, period_start: date, period_end: date) -> InvoiceDraft:
    """Price billable in-period hours per (task, user) at the assignment rate.

    Both period bounds are inclusive. Groups without an assignment are dropped.
    """

    line_items: list[InvoiceLineItem] = []
    for phase in project.phases:
        for task in phase.tasks:
            hours: dict[UUID, Decimal] = {}
            names: dict[UUID, str] = {}
            for entry in task.time_entries:
                if not entry.is_billable or not period_start <= entry.date <= period_end:
                    continue
                hours[entry.user_id] = hours.get(entry.user_id, ZERO) + entry.hours
                names.setdefault(entry.user_id, entry.user_name)
            if not hours:
                continue

            assignments = {assignment.user_id: assignment for assignment in task.assignments}
            for user_id, user_hours in hours.items():
                assignment = assignments.get(user_id)
                if assignment is None or user_hours <= ZERO:
                    continue
                line_items.append(
                    InvoiceLineItem(
                        task_id=task.id,
                        task_title=task.title,
                        phase_name=phase.name,
                        user_id=user_id,
                        user_name=names[user_id],
                        hours=user_hours,
                        hourly_rate=assignment.hourly_rate,
                        amount=user_hours * assignment.hourly_rate,
                    )
                )

    return InvoiceDraft(
        line_items=tuple(line_items),
        total_amount=sum((item.amount for item in line_items), ZERO),
    )
