"""Repository helpers for projects, staffing, tasks, time entries and invoices."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from budget_tracker.models.entities import (
    Invoice,
    Project,
    ProjectPhase,
    ProjectStaffing,
    Task,
    TaskAssignment,
    TimeEntry,
    User,
)
from budget_tracker.models.ledger import (
    AssignmentRecord,
    PhaseLedger,
    ProjectLedger,
    StaffedProject,
    StaffingRecord,
    TaskLedger,
    TimeEntryRecord,
)


class LedgerRepository:
    """Persistence operations plus ledger snapshot assembly for the rollups."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ---------- Users ----------
    def get_user(self, user_id: UUID) -> User | None:
        return self.db.scalar(select(User).where(User.id == user_id))

    def get_user_by_email(self, email: str) -> User | None:
        return self.db.scalar(select(User).where(User.email == email))

    def list_users(self) -> list[User]:
        return self.db.scalars(select(User).order_by(User.name.asc(), User.email.asc())).all()

    def add_user(self, user: User) -> User:
        self.db.add(user)
        self.db.flush()
        return user

    # ---------- Projects ----------
    def get_project(self, project_id: UUID) -> Project | None:
        return self.db.scalar(select(Project).where(Project.id == project_id))

    def list_projects(self) -> list[Project]:
        return self.db.scalars(select(Project).order_by(Project.created_at.desc(), Project.name.asc())).all()

    def add_project(self, project: Project) -> Project:
        self.db.add(project)
        self.db.flush()
        return project

    def staffing_count_by_project(self) -> dict[UUID, int]:
        rows = self.db.execute(
            select(ProjectStaffing.project_id, func.count()).group_by(ProjectStaffing.project_id)
        ).all()
        return {project_id: count for project_id, count in rows}

    def phase_count_by_project(self) -> dict[UUID, int]:
        rows = self.db.execute(
            select(ProjectPhase.project_id, func.count()).group_by(ProjectPhase.project_id)
        ).all()
        return {project_id: count for project_id, count in rows}

    # ---------- Staffing ----------
    def list_staffing(self, project_id: UUID) -> list[tuple[ProjectStaffing, User]]:
        rows = self.db.execute(
            select(ProjectStaffing, User)
            .join(User, User.id == ProjectStaffing.user_id)
            .where(ProjectStaffing.project_id == project_id)
            .order_by(User.name.asc(), ProjectStaffing.role_name.asc())
        ).all()
        return [(staffing, user) for staffing, user in rows]

    def list_staffing_for_user(self, user_id: UUID) -> list[tuple[ProjectStaffing, Project]]:
        rows = self.db.execute(
            select(ProjectStaffing, Project)
            .join(Project, Project.id == ProjectStaffing.project_id)
            .where(ProjectStaffing.user_id == user_id)
            .order_by(Project.start_date.asc(), Project.name.asc())
        ).all()
        return [(staffing, project) for staffing, project in rows]

    def add_staffing(self, staffing: ProjectStaffing) -> ProjectStaffing:
        self.db.add(staffing)
        self.db.flush()
        return staffing

    # ---------- Phases ----------
    def get_phase(self, phase_id: UUID) -> ProjectPhase | None:
        return self.db.scalar(select(ProjectPhase).where(ProjectPhase.id == phase_id))

    def list_phases(self, project_id: UUID) -> list[ProjectPhase]:
        return self.db.scalars(
            select(ProjectPhase)
            .where(ProjectPhase.project_id == project_id)
            .order_by(ProjectPhase.start_date.asc(), ProjectPhase.name.asc())
        ).all()

    def add_phase(self, phase: ProjectPhase) -> ProjectPhase:
        self.db.add(phase)
        self.db.flush()
        return phase

    def task_count_by_phase(self, project_id: UUID) -> dict[UUID, int]:
        rows = self.db.execute(
            select(Task.phase_id, func.count())
            .join(ProjectPhase, ProjectPhase.id == Task.phase_id)
            .where(ProjectPhase.project_id == project_id)
            .group_by(Task.phase_id)
        ).all()
        return {phase_id: count for phase_id, count in rows}

    # ---------- Tasks ----------
    def get_task(self, task_id: UUID) -> Task | None:
        return self.db.scalar(select(Task).where(Task.id == task_id))

    def list_tasks_for_phases(self, phase_ids: list[UUID]) -> list[Task]:
        if not phase_ids:
            return []
        return self.db.scalars(
            select(Task)
            .where(Task.phase_id.in_(phase_ids))
            .order_by(Task.created_at.asc(), Task.title.asc())
        ).all()

    def list_phase_tasks_by_due_date(self, phase_id: UUID) -> list[Task]:
        return self.db.scalars(
            select(Task)
            .where(Task.phase_id == phase_id)
            .order_by(Task.due_date.asc(), Task.title.asc())
        ).all()

    def add_task(self, task: Task) -> Task:
        self.db.add(task)
        self.db.flush()
        return task

    # ---------- Task assignments ----------
    def get_assignment(self, task_id: UUID, user_id: UUID) -> TaskAssignment | None:
        return self.db.scalar(
            select(TaskAssignment).where(
                and_(
                    TaskAssignment.task_id == task_id,
                    TaskAssignment.user_id == user_id,
                )
            )
        )

    def list_assignments(self, task_ids: list[UUID]) -> list[tuple[TaskAssignment, User]]:
        if not task_ids:
            return []
        rows = self.db.execute(
            select(TaskAssignment, User)
            .join(User, User.id == TaskAssignment.user_id)
            .where(TaskAssignment.task_id.in_(task_ids))
            .order_by(TaskAssignment.task_id.asc(), User.name.asc())
        ).all()
        return [(assignment, user) for assignment, user in rows]

    def list_assigned_tasks(self, user_id: UUID) -> list[tuple[Task, TaskAssignment]]:
        rows = self.db.execute(
            select(Task, TaskAssignment)
            .join(TaskAssignment, TaskAssignment.task_id == Task.id)
            .where(TaskAssignment.user_id == user_id)
            .order_by(Task.due_date.asc(), Task.title.asc())
        ).all()
        return [(task, assignment) for task, assignment in rows]

    def add_assignment(self, assignment: TaskAssignment) -> TaskAssignment:
        self.db.add(assignment)
        self.db.flush()
        return assignment

    # ---------- Time entries ----------
    def get_time_entry(self, entry_id: UUID) -> TimeEntry | None:
        return self.db.scalar(select(TimeEntry).where(TimeEntry.id == entry_id))

    def list_time_entries(
        self,
        task_ids: list[UUID],
        *,
        user_id: UUID | None = None,
        billable_only: bool = False,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> list[tuple[TimeEntry, User]]:
        if not task_ids:
            return []

        conditions = [TimeEntry.task_id.in_(task_ids)]
        if user_id is not None:
            conditions.append(TimeEntry.user_id == user_id)
        if billable_only:
            conditions.append(TimeEntry.is_billable.is_(True))
        if from_date is not None:
            conditions.append(TimeEntry.date >= from_date)
        if to_date is not None:
            conditions.append(TimeEntry.date <= to_date)

        rows = self.db.execute(
            select(TimeEntry, User)
            .join(User, User.id == TimeEntry.user_id)
            .where(and_(*conditions))
            .order_by(TimeEntry.date.asc(), TimeEntry.created_at.asc())
        ).all()
        return [(entry, user) for entry, user in rows]

    def list_recent_entries_for_task(self, task_id: UUID) -> list[tuple[TimeEntry, User]]:
        rows = self.db.execute(
            select(TimeEntry, User)
            .join(User, User.id == TimeEntry.user_id)
            .where(TimeEntry.task_id == task_id)
            .order_by(TimeEntry.date.desc(), TimeEntry.created_at.desc())
        ).all()
        return [(entry, user) for entry, user in rows]

    def list_recent_entries_for_user(self, user_id: UUID) -> list[tuple[TimeEntry, Task]]:
        rows = self.db.execute(
            select(TimeEntry, Task)
            .join(Task, Task.id == TimeEntry.task_id)
            .where(TimeEntry.user_id == user_id)
            .order_by(TimeEntry.date.desc(), TimeEntry.created_at.desc())
        ).all()
        return [(entry, task) for entry, task in rows]

    def list_recent_entries_for_project(self, project_id: UUID) -> list[tuple[TimeEntry, User, Task]]:
        rows = self.db.execute(
            select(TimeEntry, User, Task)
            .join(User, User.id == TimeEntry.user_id)
            .join(Task, Task.id == TimeEntry.task_id)
            .join(ProjectPhase, ProjectPhase.id == Task.phase_id)
            .where(ProjectPhase.project_id == project_id)
            .order_by(TimeEntry.date.desc(), TimeEntry.created_at.desc())
        ).all()
        return [(entry, user, task) for entry, user, task in rows]

    def add_time_entry(self, entry: TimeEntry) -> TimeEntry:
        self.db.add(entry)
        self.db.flush()
        return entry

    def delete_time_entry(self, entry: TimeEntry) -> None:
        self.db.delete(entry)
        self.db.flush()

    # ---------- Invoices ----------
    def get_invoice(self, invoice_id: UUID) -> Invoice | None:
        return self.db.scalar(select(Invoice).where(Invoice.id == invoice_id))

    def list_invoices(self) -> list[tuple[Invoice, Project]]:
        rows = self.db.execute(
            select(Invoice, Project)
            .join(Project, Project.id == Invoice.project_id)
            .order_by(Invoice.created_at.desc())
        ).all()
        return [(invoice, project) for invoice, project in rows]

    def list_project_invoices(self, project_id: UUID) -> list[Invoice]:
        return self.db.scalars(
            select(Invoice)
            .where(Invoice.project_id == project_id)
            .order_by(Invoice.period_start.desc(), Invoice.created_at.desc())
        ).all()

    def add_invoice(self, invoice: Invoice) -> Invoice:
        self.db.add(invoice)
        self.db.flush()
        return invoice

    # ---------- Ledger snapshots ----------
    def _task_ledgers(
        self,
        tasks: list[Task],
        *,
        user_id: UUID | None = None,
        billable_only: bool = False,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> list[TaskLedger]:
        task_ids = [task.id for task in tasks]

        assignments_by_task: dict[UUID, list[AssignmentRecord]] = {}
        for assignment, user in self.list_assignments(task_ids):
            assignments_by_task.setdefault(assignment.task_id, []).append(
                AssignmentRecord(
                    task_id=assignment.task_id,
                    user_id=assignment.user_id,
                    user_name=user.name,
                    hourly_rate=assignment.hourly_rate,
                )
            )

        entries_by_task: dict[UUID, list[TimeEntryRecord]] = {}
        for entry, user in self.list_time_entries(
            task_ids,
            user_id=user_id,
            billable_only=billable_only,
            from_date=from_date,
            to_date=to_date,
        ):
            entries_by_task.setdefault(entry.task_id, []).append(
                TimeEntryRecord(
                    id=entry.id,
                    task_id=entry.task_id,
                    user_id=entry.user_id,
                    user_name=user.name,
                    date=entry.date,
                    hours=entry.hours,
                    is_billable=entry.is_billable,
                )
            )

        return [
            TaskLedger(
                id=task.id,
                phase_id=task.phase_id,
                title=task.title,
                budget=task.budget,
                assignments=tuple(assignments_by_task.get(task.id, ())),
                time_entries=tuple(entries_by_task.get(task.id, ())),
            )
            for task in tasks
        ]

    def load_task_ledger(self, task: Task) -> TaskLedger:
        return self._task_ledgers([task])[0]

    def load_phase_ledger(self, phase: ProjectPhase) -> PhaseLedger:
        tasks = self.list_tasks_for_phases([phase.id])
        return PhaseLedger(
            id=phase.id,
            project_id=phase.project_id,
            name=phase.name,
            tasks=tuple(self._task_ledgers(tasks)),
        )

    def load_staffing_records(self, project_id: UUID) -> list[StaffingRecord]:
        return [
            StaffingRecord(
                project_id=staffing.project_id,
                user_id=staffing.user_id,
                user_name=user.name,
                role_name=staffing.role_name,
                hourly_rate=staffing.hourly_rate,
                forecast_hours=staffing.forecast_hours,
            )
            for staffing, user in self.list_staffing(project_id)
        ]

    def load_project_ledger(
        self,
        project: Project,
        *,
        include_staffing: bool = True,
        user_id: UUID | None = None,
        billable_only: bool = False,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> ProjectLedger:
        """Assemble project -> phases -> tasks -> {assignments, entries}.

        Entry filters narrow only the time entries; every phase and task is
        still present so callers see empty tasks as well.
        """

        phases = self.list_phases(project.id)
        tasks = self.list_tasks_for_phases([phase.id for phase in phases])
        task_ledgers = self._task_ledgers(
            tasks,
            user_id=user_id,
            billable_only=billable_only,
            from_date=from_date,
            to_date=to_date,
        )

        tasks_by_phase: dict[UUID, list[TaskLedger]] = {}
        for ledger in task_ledgers:
            tasks_by_phase.setdefault(ledger.phase_id, []).append(ledger)

        return ProjectLedger(
            id=project.id,
            name=project.name,
            client_name=project.client_name,
            staffing=tuple(self.load_staffing_records(project.id)) if include_staffing else (),
            phases=tuple(
                PhaseLedger(
                    id=phase.id,
                    project_id=phase.project_id,
                    name=phase.name,
                    tasks=tuple(tasks_by_phase.get(phase.id, ())),
                )
                for phase in phases
            ),
        )

    def load_staffed_projects(self, user: User) -> list[StaffedProject]:
        """Every staffing row of the user with its project, entries narrowed to the user."""

        staffed: list[StaffedProject] = []
        for staffing, project in self.list_staffing_for_user(user.id):
            staffed.append(
                StaffedProject(
                    staffing=StaffingRecord(
                        project_id=staffing.project_id,
                        user_id=staffing.user_id,
                        user_name=user.name,
                        role_name=staffing.role_name,
                        hourly_rate=staffing.hourly_rate,
                        forecast_hours=staffing.forecast_hours,
                    ),
                    project=self.load_project_ledger(project, include_staffing=False, user_id=user.id),
                )
            )
        return staffed
