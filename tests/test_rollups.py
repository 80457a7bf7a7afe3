from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from budget_tracker.models.ledger import (
    AssignmentRecord,
    PhaseLedger,
    ProjectLedger,
    StaffedProject,
    StaffingRecord,
    TaskLedger,
    TimeEntryRecord,
)
from budget_tracker.services import rollups

PROJECT_ID = uuid.uuid4()
PHASE_ID = uuid.uuid4()
TASK_ID = uuid.uuid4()
ALICE = uuid.uuid4()
BOB = uuid.uuid4()
MALLORY = uuid.uuid4()


def _entry(user_id: uuid.UUID, name: str, day: date, hours: str, *, billable: bool = True, task_id=TASK_ID):
    return TimeEntryRecord(
        id=uuid.uuid4(),
        task_id=task_id,
        user_id=user_id,
        user_name=name,
        date=day,
        hours=Decimal(hours),
        is_billable=billable,
    )


def _task(entries=(), assignments=None, *, budget: str = "2000", task_id=TASK_ID, title="Website Redesign"):
    if assignments is None:
        assignments = (AssignmentRecord(task_id=task_id, user_id=ALICE, user_name="Alice", hourly_rate=Decimal("100")),)
    return TaskLedger(
        id=task_id,
        phase_id=PHASE_ID,
        title=title,
        budget=Decimal(budget),
        assignments=tuple(assignments),
        time_entries=tuple(entries),
    )


def _staffing() -> tuple[StaffingRecord, ...]:
    return (
        StaffingRecord(
            project_id=PROJECT_ID,
            user_id=ALICE,
            user_name="Alice",
            role_name="Senior Consultant",
            hourly_rate=Decimal("100"),
            forecast_hours=Decimal("50"),
        ),
        StaffingRecord(
            project_id=PROJECT_ID,
            user_id=BOB,
            user_name="Bob",
            role_name="Consultant",
            hourly_rate=Decimal("80"),
            forecast_hours=Decimal("30"),
        ),
    )


def _project(*tasks: TaskLedger, staffing=None) -> ProjectLedger:
    return ProjectLedger(
        id=PROJECT_ID,
        name="Project ABC",
        client_name="Miebach",
        staffing=_staffing() if staffing is None else tuple(staffing),
        phases=(PhaseLedger(id=PHASE_ID, project_id=PROJECT_ID, name="Design", tasks=tuple(tasks)),),
    )


def _seed_task() -> TaskLedger:
    return _task(
        [
            _entry(ALICE, "Alice", date(2025, 1, 13), "8"),
            _entry(ALICE, "Alice", date(2025, 1, 14), "6"),
        ]
    )


def test_percent_of_rounds_half_up_and_guards_zero() -> None:
    assert rollups.percent_of(Decimal("1400"), Decimal("7400")) == Decimal("18.92")
    assert rollups.percent_of(Decimal("1"), Decimal("8")) == Decimal("12.50")
    assert rollups.percent_of(Decimal("1"), Decimal("200")) == Decimal("0.50")
    assert rollups.percent_of(Decimal("5"), Decimal("0")) == Decimal("0.00")


def test_task_budget_for_seed_scenario() -> None:
    summary = rollups.task_budget(_seed_task())

    assert summary.forecast == Decimal("2000")
    assert summary.actual == Decimal("1400")
    assert summary.remaining == Decimal("600")
    assert summary.percent_used == Decimal("70.00")


def test_task_budget_counts_non_billable_entries() -> None:
    task = _task([_entry(ALICE, "Alice", date(2025, 1, 13), "2", billable=False)])

    assert rollups.task_budget(task).actual == Decimal("200")


def test_unassigned_hours_are_priced_at_zero() -> None:
    task = _task(
        [
            _entry(ALICE, "Alice", date(2025, 1, 13), "1"),
            _entry(MALLORY, "Mallory", date(2025, 1, 13), "10"),
        ]
    )

    summary = rollups.task_budget(task)
    assert summary.actual == Decimal("100")
    assert rollups.hours_by_user([task])[MALLORY] == Decimal("10")


def test_task_budget_remaining_can_go_negative() -> None:
    task = _task([_entry(ALICE, "Alice", date(2025, 1, 13), "24")], budget="1000")

    summary = rollups.task_budget(task)
    assert summary.remaining == Decimal("-1400")
    assert summary.percent_used == Decimal("240.00")


def test_zero_budget_task_reports_zero_percent() -> None:
    task = _task([_entry(ALICE, "Alice", date(2025, 1, 13), "3")], budget="0")

    summary = rollups.task_budget(task)
    assert summary.actual == Decimal("300")
    assert summary.percent_used == Decimal("0.00")


def test_phase_budget_sums_tasks_and_is_zero_when_empty() -> None:
    second_id = uuid.uuid4()
    second = _task(
        [_entry(ALICE, "Alice", date(2025, 1, 15), "5", task_id=second_id)],
        [AssignmentRecord(task_id=second_id, user_id=ALICE, user_name="Alice", hourly_rate=Decimal("90"))],
        budget="1000",
        task_id=second_id,
        title="Wireframes",
    )
    phase = PhaseLedger(id=PHASE_ID, project_id=PROJECT_ID, name="Design", tasks=(_seed_task(), second))

    summary = rollups.phase_budget(phase)
    assert summary.forecast == Decimal("3000")
    assert summary.actual == Decimal("1850")
    assert summary.remaining == Decimal("1150")
    assert summary.percent_used == Decimal("61.67")

    empty = rollups.phase_budget(PhaseLedger(id=PHASE_ID, project_id=PROJECT_ID, name="Empty"))
    assert (empty.forecast, empty.actual, empty.remaining, empty.percent_used) == (
        Decimal("0"),
        Decimal("0"),
        Decimal("0"),
        Decimal("0.00"),
    )


def test_project_budget_uses_staffing_forecast_not_task_budgets() -> None:
    project = _project(_seed_task())

    summary = rollups.project_budget(project)
    assert summary.forecast == Decimal("7400")
    assert summary.actual == Decimal("1400")
    assert summary.remaining == Decimal("6000")
    assert summary.percent_used == Decimal("18.92")
    assert summary.forecast != rollups.phase_budget(project.phases[0]).forecast


def test_project_without_staffing_has_zero_forecast() -> None:
    summary = rollups.project_budget(_project(_seed_task(), staffing=()))

    assert summary.forecast == Decimal("0")
    assert summary.remaining == Decimal("-1400")
    assert summary.percent_used == Decimal("0.00")


def test_project_utilization_has_row_per_staffing_entry() -> None:
    rows = rollups.project_utilization(_project(_seed_task()))

    assert [row.user_name for row in rows] == ["Alice", "Bob"]
    alice, bob = rows
    assert alice.actual_hours == Decimal("14")
    assert alice.utilization == Decimal("28.00")
    assert bob.actual_hours == Decimal("0")
    assert bob.utilization == Decimal("0.00")


def test_unstaffed_user_is_invisible_to_utilization() -> None:
    task = _task(
        [
            _entry(ALICE, "Alice", date(2025, 1, 13), "4"),
            _entry(MALLORY, "Mallory", date(2025, 1, 13), "7"),
        ],
        [
            AssignmentRecord(task_id=TASK_ID, user_id=ALICE, user_name="Alice", hourly_rate=Decimal("100")),
            AssignmentRecord(task_id=TASK_ID, user_id=MALLORY, user_name="Mallory", hourly_rate=Decimal("50")),
        ],
    )
    project = _project(task)

    rows = rollups.project_utilization(project)
    assert MALLORY not in {row.user_id for row in rows}
    assert rollups.project_budget(project).actual == Decimal("750")


def test_user_utilization_sums_staffed_projects() -> None:
    project = _project(_seed_task())
    other_id = uuid.uuid4()
    other = ProjectLedger(id=other_id, name="Project XYZ", client_name="Acme")
    staffed = [
        StaffedProject(staffing=_staffing()[0], project=project),
        StaffedProject(
            staffing=StaffingRecord(
                project_id=other_id,
                user_id=ALICE,
                user_name="Alice",
                role_name="Advisor",
                hourly_rate=Decimal("120"),
                forecast_hours=Decimal("20"),
            ),
            project=other,
        ),
    ]

    summary = rollups.user_utilization(ALICE, staffed)
    assert summary.total_forecast == Decimal("70")
    assert summary.total_actual == Decimal("14")
    assert summary.utilization == Decimal("20.00")
    assert [entry.project_name for entry in summary.projects] == ["Project ABC", "Project XYZ"]
    assert summary.projects[1].actual_hours == Decimal("0")


def test_user_utilization_without_staffing_is_empty() -> None:
    summary = rollups.user_utilization(ALICE, [])

    assert summary.total_forecast == Decimal("0")
    assert summary.total_actual == Decimal("0")
    assert summary.utilization == Decimal("0.00")
    assert summary.projects == ()


def test_draft_invoice_filters_billable_and_inclusive_period() -> None:
    task = _task(
        [
            _entry(ALICE, "Alice", date(2025, 1, 1), "2"),
            _entry(ALICE, "Alice", date(2025, 1, 31), "3"),
            _entry(ALICE, "Alice", date(2025, 2, 1), "5"),
            _entry(ALICE, "Alice", date(2025, 1, 15), "4", billable=False),
        ]
    )

    draft = rollups.draft_invoice(_project(task), period_start=date(2025, 1, 1), period_end=date(2025, 1, 31))

    assert len(draft.line_items) == 1
    item = draft.line_items[0]
    assert item.hours == Decimal("5")
    assert item.amount == Decimal("500")
    assert item.phase_name == "Design"
    assert item.task_title == "Website Redesign"
    assert draft.total_amount == Decimal("500")


def test_draft_invoice_skips_unassigned_users() -> None:
    task = _task(
        [
            _entry(MALLORY, "Mallory", date(2025, 1, 10), "6"),
            _entry(ALICE, "Alice", date(2025, 1, 10), "1"),
        ]
    )

    draft = rollups.draft_invoice(_project(task), period_start=date(2025, 1, 1), period_end=date(2025, 1, 31))

    assert [item.user_name for item in draft.line_items] == ["Alice"]
    assert draft.total_amount == Decimal("100")


def test_draft_invoice_groups_users_in_first_seen_order() -> None:
    task = _task(
        [
            _entry(BOB, "Bob", date(2025, 1, 2), "1"),
            _entry(ALICE, "Alice", date(2025, 1, 3), "2"),
            _entry(BOB, "Bob", date(2025, 1, 4), "1.5"),
        ],
        [
            AssignmentRecord(task_id=TASK_ID, user_id=ALICE, user_name="Alice", hourly_rate=Decimal("100")),
            AssignmentRecord(task_id=TASK_ID, user_id=BOB, user_name="Bob", hourly_rate=Decimal("80")),
        ],
    )

    draft = rollups.draft_invoice(_project(task), period_start=date(2025, 1, 1), period_end=date(2025, 1, 31))

    assert [(item.user_name, item.hours, item.amount) for item in draft.line_items] == [
        ("Bob", Decimal("2.5"), Decimal("200.0")),
        ("Alice", Decimal("2"), Decimal("200")),
    ]
    assert draft.total_amount == Decimal("400")


def test_empty_period_yields_empty_draft() -> None:
    draft = rollups.draft_invoice(_project(_seed_task()), period_start=date(2024, 1, 1), period_end=date(2024, 1, 31))

    assert draft.line_items == ()
    assert draft.total_amount == Decimal("0")
