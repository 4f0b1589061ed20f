from __future__ import annotations

import copy
import itertools
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Optional

import pytest
from werkzeug.security import generate_password_hash

from src.worktrack.worktrack.access_requests.model import ProjectAccessRequest
from src.worktrack.worktrack.common.datetime_utils import format_duration, minutes_to_hours
from src.worktrack.worktrack.container import assemble
from src.worktrack.worktrack.core.enums import (
    LocationStatus,
    ProjectStatus,
    RequestStatus,
    Role,
    TimeEntryType,
)
from src.worktrack.worktrack.core.exceptions import ConflictError
from src.worktrack.worktrack.core.viewer import Viewer
from src.worktrack.worktrack.edit_requests.model import ReportEditRequest
from src.worktrack.worktrack.locations.model import LocationPoint
from src.worktrack.worktrack.projects.model import Project
from src.worktrack.worktrack.reports.model import DailyReport
from src.worktrack.worktrack.time_entries.model import TimeEntry
from src.worktrack.worktrack.users.model import User

FIXED_NOW = datetime(2026, 3, 10, 9, 0, 0)  # a Tuesday
PASSWORD = "Secret123"


class FakeDatabase:
    """In-memory tables shared by the fake repositories.

    ``transaction()`` snapshots every table and restores it if the block raises,
    so rollback behaviour can be asserted without MySQL.
    """

    TABLES = (
        "users",
        "projects",
        "assignments",
        "access_requests",
        "reports",
        "edit_requests",
        "entries",
        "locations",
    )

    def __init__(self, now: datetime):
        self.now = now
        self.users: dict[int, User] = {}
        self.projects: dict[int, Project] = {}
        self.assignments: dict[tuple[int, int], datetime] = {}
        self.access_requests: dict[int, ProjectAccessRequest] = {}
        self.reports: dict[int, DailyReport] = {}
        self.edit_requests: dict[int, ReportEditRequest] = {}
        self.entries: dict[int, TimeEntry] = {}
        self.locations: dict[int, LocationPoint] = {}
        self._ids = itertools.count(1)
        self._depth = 0
        self.commits = 0
        self.rollbacks = 0
        self.registration_locks: list[int] = []

    def next_id(self) -> int:
        return next(self._ids)

    @contextmanager
    def transaction(self):
        if self._depth:
            yield
            return

        snapshot = {name: copy.deepcopy(getattr(self, name)) for name in self.TABLES}
        self._depth += 1
        try:
            yield
        except Exception:
            for name, data in snapshot.items():
                setattr(self, name, data)
            self.rollbacks += 1
            raise
        else:
            self.commits += 1
        finally:
            self._depth -= 1

    def user_name(self, user_id: Optional[int]) -> Optional[str]:
        if user_id is None or int(user_id) not in self.users:
            return None
        return self.users[int(user_id)].full_name


# -------- Fake repositories --------
class FakeUserRepository:
    def __init__(self, db: FakeDatabase):
        self._db = db

    def get_by_id(self, user_id):
        return self._db.users.get(int(user_id))

    def get_by_email(self, email):
        return next((u for u in self._db.users.values() if u.email == email.lower()), None)

    def count_users(self):
        return len(self._db.users)

    def lock_registrations(self):
        # Records the transaction depth the lock was taken at.
        self._db.registration_locks.append(self._db._depth)

    def create_user(self, *, email, password_hash, full_name, role, is_active=True):
        if self.get_by_email(email):
            raise ConflictError("Email already registered")
        user_id = self._db.next_id()
        self._db.users[user_id] = User(
            user_id=user_id,
            email=email.lower(),
            password_hash=password_hash,
            full_name=full_name,
            role=role,
            is_active=is_active,
            created_at=self._db.now,
        )
        return user_id

    def update_user(self, user_id, **fields):
        user = self._db.users.get(int(user_id))
        if not user:
            return False
        self._db.users[user.user_id] = replace(user, **fields)
        return True

    def set_active(self, user_id, *, is_active):
        return self.update_user(user_id, is_active=is_active)

    def list_employees(self, *, is_active=None, search=""):
        out = []
        for u in self._db.users.values():
            if is_active is not None and u.is_active != is_active:
                continue
            if search and search.lower() not in u.full_name.lower() and search.lower() not in u.email:
                continue
            seen = [p.recorded_at for p in self._db.locations.values() if p.user_id == u.user_id]
            seen += [e.created_at for e in self._db.entries.values() if e.user_id == u.user_id]
            row = u.public()
            row["last_active"] = max(seen) if seen else None
            out.append(row)
        return out


class FakeProjectRepository:
    def __init__(self, db: FakeDatabase):
        self._db = db

    def list_projects(self, *, status=None):
        rows = []
        for p in self._db.projects.values():
            if status is not None and p.status != status:
                continue
            rows.append(
                {
                    "project_id": p.project_id,
                    "name": p.name,
                    "description": p.description,
                    "status": p.status.value,
                    "created_by": p.created_by,
                    "created_by_name": self._db.user_name(p.created_by),
                    "assigned_employees_count": sum(1 for pid, _ in self._db.assignments if pid == p.project_id),
                }
            )
        return rows

    def get_by_id(self, project_id):
        return self._db.projects.get(int(project_id))

    def get_by_name(self, name):
        return next((p for p in self._db.projects.values() if p.name == name), None)

    def create_project(self, *, name, description, status, created_by):
        if self.get_by_name(name):
            raise ConflictError("Project name already exists")
        project_id = self._db.next_id()
        self._db.projects[project_id] = Project(
            project_id=project_id,
            name=name,
            description=description,
            status=status,
            created_by=created_by,
            created_at=self._db.now,
        )
        return project_id

    def update_project(self, project_id, **fields):
        project = self._db.projects.get(int(project_id))
        if not project:
            return False
        self._db.projects[project.project_id] = replace(project, **fields)
        return True

    def is_assigned(self, *, project_id, user_id):
        return (int(project_id), int(user_id)) in self._db.assignments

    def add_assignment(self, *, project_id, user_id, assigned_at):
        key = (int(project_id), int(user_id))
        if key in self._db.assignments:
            return False
        self._db.assignments[key] = assigned_at
        return True

    def remove_assignment(self, *, project_id, user_id):
        return self._db.assignments.pop((int(project_id), int(user_id)), None) is not None

    def list_assigned_employees(self, project_id):
        rows = []
        for (pid, uid), assigned_at in self._db.assignments.items():
            if pid != int(project_id):
                continue
            minutes = sum(
                e.duration_minutes for e in self._db.entries.values() if e.project_id == pid and e.user_id == uid
            )
            rows.append(
                {
                    "user_id": uid,
                    "full_name": self._db.user_name(uid),
                    "assigned_at": assigned_at,
                    "total_hours": minutes_to_hours(minutes),
                }
            )
        return rows

    def total_minutes_logged(self, project_id):
        return sum(e.duration_minutes for e in self._db.entries.values() if e.project_id == int(project_id))


def _newest_first(rows: list[dict], key: str) -> list[dict]:
    return sorted(rows, key=lambda r: (r[key], r["request_id"]), reverse=True)


class FakeAccessRequestRepository:
    def __init__(self, db: FakeDatabase):
        self._db = db

    def get(self, request_id):
        return self._db.access_requests.get(int(request_id))

    def has_pending(self, *, subject_id, user_id):
        return any(
            r.project_id == int(subject_id) and r.user_id == int(user_id) and r.status == RequestStatus.PENDING
            for r in self._db.access_requests.values()
        )

    def create(self, *, subject_id, user_id, requested_at):
        if self.has_pending(subject_id=subject_id, user_id=user_id):
            raise ConflictError("Access request already pending for this project")
        request_id = self._db.next_id()
        self._db.access_requests[request_id] = ProjectAccessRequest(
            request_id=request_id,
            project_id=int(subject_id),
            user_id=int(user_id),
            status=RequestStatus.PENDING,
            requested_at=requested_at,
        )
        return request_id

    def decide(self, *, request_id, status, reviewed_by, reviewed_at, rejection_reason=None):
        req = self._db.access_requests.get(int(request_id))
        if not req or req.status != RequestStatus.PENDING:
            return False
        self._db.access_requests[req.request_id] = replace(
            req,
            status=status,
            reviewed_by=reviewed_by,
            reviewed_at=reviewed_at,
            rejection_reason=rejection_reason,
        )
        return True

    def list_rows(self, *, status=None, user_id=None, project_id=None, limit=200):
        rows = []
        for r in self._db.access_requests.values():
            if status is not None and r.status != status:
                continue
            if user_id is not None and r.user_id != int(user_id):
                continue
            if project_id is not None and r.project_id != int(project_id):
                continue
            rows.append(
                {
                    "request_id": r.request_id,
                    "project_id": r.project_id,
                    "project_name": self._db.projects[r.project_id].name,
                    "user_id": r.user_id,
                    "user_name": self._db.user_name(r.user_id),
                    "status": r.status.value,
                    "requested_at": r.requested_at,
                    "reviewed_by": r.reviewed_by,
                    "reviewed_by_name": self._db.user_name(r.reviewed_by),
                    "rejection_reason": r.rejection_reason,
                }
            )
        return _newest_first(rows, "requested_at")[:limit]


class FakeEditRequestRepository:
    def __init__(self, db: FakeDatabase):
        self._db = db

    def get(self, request_id):
        return self._db.edit_requests.get(int(request_id))

    def has_pending(self, *, subject_id, user_id):
        return any(
            r.report_id == int(subject_id) and r.status == RequestStatus.PENDING
            for r in self._db.edit_requests.values()
        )

    def create(self, *, subject_id, user_id, requested_at, reason):
        if self.has_pending(subject_id=subject_id, user_id=user_id):
            raise ConflictError("Edit request already pending for this report")
        request_id = self._db.next_id()
        self._db.edit_requests[request_id] = ReportEditRequest(
            request_id=request_id,
            report_id=int(subject_id),
            user_id=int(user_id),
            reason=reason,
            status=RequestStatus.PENDING,
            requested_at=requested_at,
        )
        return request_id

    def decide(self, *, request_id, status, reviewed_by, reviewed_at, rejection_reason=None):
        req = self._db.edit_requests.get(int(request_id))
        if not req or req.status != RequestStatus.PENDING:
            return False
        self._db.edit_requests[req.request_id] = replace(
            req,
            status=status,
            reviewed_by=reviewed_by,
            reviewed_at=reviewed_at,
            rejection_reason=rejection_reason,
        )
        return True

    def list_rows(self, *, status=None, user_id=None, limit=200):
        rows = []
        for r in self._db.edit_requests.values():
            if status is not None and r.status != status:
                continue
            if user_id is not None and r.user_id != int(user_id):
                continue
            rows.append(
                {
                    "request_id": r.request_id,
                    "report_id": r.report_id,
                    "report_date": self._db.reports[r.report_id].report_date,
                    "user_id": r.user_id,
                    "user_name": self._db.user_name(r.user_id),
                    "reason": r.reason,
                    "status": r.status.value,
                    "requested_at": r.requested_at,
                    "reviewed_by_name": self._db.user_name(r.reviewed_by),
                    "edit_deadline": r.edit_deadline,
                }
            )
        return _newest_first(rows, "requested_at")[:limit]

    def set_edit_deadline(self, request_id, deadline):
        req = self._db.edit_requests.get(int(request_id))
        if not req:
            return False
        self._db.edit_requests[req.request_id] = replace(req, edit_deadline=deadline)
        return True

    def latest_live_grant(self, *, report_id, user_id, now):
        live = [
            r
            for r in self._db.edit_requests.values()
            if r.report_id == int(report_id) and r.user_id == int(user_id) and r.is_live_grant(now)
        ]
        return max(live, key=lambda r: r.edit_deadline) if live else None

    def delete(self, request_id):
        return self._db.edit_requests.pop(int(request_id), None) is not None


class FakeReportRepository:
    def __init__(self, db: FakeDatabase):
        self._db = db

    def get_by_id(self, report_id):
        return self._db.reports.get(int(report_id))

    def exists_for_date(self, *, user_id, report_date):
        return any(r.user_id == int(user_id) and r.report_date == report_date for r in self._db.reports.values())

    def create_report(self, *, user_id, report_date, tasks, hours_worked, notes):
        if self.exists_for_date(user_id=user_id, report_date=report_date):
            raise ConflictError("Report already exists for this date")
        report_id = self._db.next_id()
        self._db.reports[report_id] = DailyReport(
            report_id=report_id,
            user_id=int(user_id),
            report_date=report_date,
            tasks_completed=list(tasks),
            hours_worked=round(float(hours_worked), 2),
            notes=notes,
            created_at=self._db.now,
        )
        return report_id

    def update_report(self, report_id, *, tasks, hours_worked, notes):
        report = self._db.reports.get(int(report_id))
        if not report:
            return False
        self._db.reports[report.report_id] = replace(
            report,
            tasks_completed=list(tasks),
            hours_worked=round(float(hours_worked), 2),
            notes=notes,
        )
        return True

    def list_reports(self, *, start_date, end_date, user_id=None):
        rows = []
        for r in self._db.reports.values():
            if not (start_date <= r.report_date <= end_date):
                continue
            if user_id is not None and r.user_id != int(user_id):
                continue
            rows.append(
                {
                    "report_id": r.report_id,
                    "user_id": r.user_id,
                    "user_name": self._db.user_name(r.user_id),
                    "report_date": r.report_date,
                    "tasks_completed": list(r.tasks_completed),
                    "hours_worked": r.hours_worked,
                    "notes": r.notes,
                }
            )
        return sorted(rows, key=lambda r: (r["report_date"], r["report_id"]), reverse=True)


class FakeTimeEntryRepository:
    def __init__(self, db: FakeDatabase):
        self._db = db

    def get_by_id(self, entry_id):
        return self._db.entries.get(int(entry_id))

    def get_open_timer(self, user_id):
        return next((e for e in self._db.entries.values() if e.user_id == int(user_id) and e.is_open_timer), None)

    def create_timer(self, *, user_id, project_id, task_description, start_time):
        if self.get_open_timer(user_id) is not None:
            raise ConflictError("Timer already running. Please stop current timer first.")
        entry_id = self._db.next_id()
        self._db.entries[entry_id] = TimeEntry(
            entry_id=entry_id,
            user_id=int(user_id),
            project_id=int(project_id),
            task_description=task_description,
            entry_type=TimeEntryType.TIMER,
            entry_date=start_time.date(),
            start_time=start_time,
            created_at=start_time,
        )
        return entry_id

    def close_timer(self, entry_id, *, end_time, duration_minutes):
        entry = self._db.entries.get(int(entry_id))
        if not entry or not entry.is_open_timer:
            return False
        self._db.entries[entry.entry_id] = replace(entry, end_time=end_time, duration_minutes=duration_minutes)
        return True

    def create_manual(self, *, user_id, project_id, task_description, entry_date, duration_minutes):
        entry_id = self._db.next_id()
        self._db.entries[entry_id] = TimeEntry(
            entry_id=entry_id,
            user_id=int(user_id),
            project_id=int(project_id),
            task_description=task_description,
            entry_type=TimeEntryType.MANUAL,
            entry_date=entry_date,
            duration_minutes=int(duration_minutes),
            created_at=self._db.now,
        )
        return entry_id

    def list_entries(self, *, start_date, end_date, user_id=None, project_id=None):
        rows = []
        for e in self._db.entries.values():
            if not (start_date <= e.entry_date <= end_date):
                continue
            if user_id is not None and e.user_id != int(user_id):
                continue
            if project_id is not None and e.project_id != int(project_id):
                continue
            rows.append(
                e.as_dict(
                    user_name=self._db.user_name(e.user_id),
                    project_name=self._db.projects[e.project_id].name,
                )
            )
        return sorted(rows, key=lambda r: (r["entry_date"], r["entry_id"]), reverse=True)


class FakeLocationRepository:
    def __init__(self, db: FakeDatabase):
        self._db = db

    def get_by_id(self, location_id):
        return self._db.locations.get(int(location_id))

    def append(self, *, user_id, latitude, longitude, accuracy, status, recorded_at):
        location_id = self._db.next_id()
        self._db.locations[location_id] = LocationPoint(
            location_id=location_id,
            user_id=int(user_id),
            latitude=float(latitude),
            longitude=float(longitude),
            accuracy=accuracy,
            status=status,
            recorded_at=recorded_at,
        )
        return location_id

    def _row(self, p: LocationPoint) -> dict:
        return {
            "location_id": p.location_id,
            "user_id": p.user_id,
            "user_name": self._db.user_name(p.user_id),
            "latitude": p.latitude,
            "longitude": p.longitude,
            "accuracy": p.accuracy,
            "status": p.status.value,
            "recorded_at": p.recorded_at,
        }

    def history(self, *, start, end, user_id=None):
        points = [
            p
            for p in self._db.locations.values()
            if start <= p.recorded_at < end and (user_id is None or p.user_id == int(user_id))
        ]
        points.sort(key=lambda p: (p.recorded_at, p.location_id), reverse=True)
        return [self._row(p) for p in points]

    def latest_per_user(self, *, user_id=None):
        latest: dict[int, LocationPoint] = {}
        for p in self._db.locations.values():
            if user_id is not None and p.user_id != int(user_id):
                continue
            current = latest.get(p.user_id)
            if current is None or (p.recorded_at, p.location_id) > (current.recorded_at, current.location_id):
                latest[p.user_id] = p
        return [self._row(latest[uid]) for uid in sorted(latest)]


class FakeDashboardRepository:
    def __init__(self, db: FakeDatabase):
        self._db = db

    def count_active_employees(self):
        return sum(1 for u in self._db.users.values() if u.is_active and u.role == Role.EMPLOYEE)

    def count_active_projects(self):
        return sum(1 for p in self._db.projects.values() if p.status == ProjectStatus.ACTIVE)

    def count_pending_requests(self):
        pending = [r for r in self._db.access_requests.values() if r.status == RequestStatus.PENDING]
        pending += [r for r in self._db.edit_requests.values() if r.status == RequestStatus.PENDING]
        return len(pending)

    def count_reports(self, *, start_date, end_date=None, user_id=None):
        return sum(
            1
            for r in self._db.reports.values()
            if r.report_date >= start_date
            and (end_date is None or r.report_date <= end_date)
            and (user_id is None or r.user_id == int(user_id))
        )

    def minutes_logged(self, *, user_id, start_date, end_date=None):
        return sum(
            e.duration_minutes
            for e in self._db.entries.values()
            if e.user_id == int(user_id)
            and e.entry_date >= start_date
            and (end_date is None or e.entry_date <= end_date)
        )

    def count_active_assigned_projects(self, user_id):
        return sum(
            1
            for pid, uid in self._db.assignments
            if uid == int(user_id) and self._db.projects[pid].status == ProjectStatus.ACTIVE
        )

    def recent_activity(self, *, today, limit):
        rows = []
        for u in self._db.users.values():
            if not u.is_active:
                continue
            points = [p for p in self._db.locations.values() if p.user_id == u.user_id]
            last = max(points, key=lambda p: p.recorded_at) if points else None
            minutes = sum(
                e.duration_minutes for e in self._db.entries.values() if e.user_id == u.user_id and e.entry_date == today
            )
            rows.append(
                {
                    "user_id": u.user_id,
                    "full_name": u.full_name,
                    "last_active": last.recorded_at if last else None,
                    "current_location": (
                        {"latitude": last.latitude, "longitude": last.longitude} if last else None
                    ),
                    "hours_today": minutes_to_hours(minutes),
                }
            )
        rows.sort(key=lambda r: (r["last_active"] is not None, r["last_active"] or datetime.min), reverse=True)
        return rows[:limit]

    def recent_entries(self, *, user_id, limit, completed_only=False):
        entries = [
            e
            for e in self._db.entries.values()
            if e.user_id == int(user_id) and not (completed_only and e.is_open_timer)
        ]
        entries.sort(key=lambda e: (e.created_at, e.entry_id), reverse=True)
        return [
            {
                "entry_id": e.entry_id,
                "project_name": self._db.projects[e.project_id].name,
                "duration_minutes": e.duration_minutes,
                "duration_formatted": format_duration(e.duration_minutes),
            }
            for e in entries[:limit]
        ]

    def recent_reports(self, *, user_id, limit):
        reports = sorted(
            (r for r in self._db.reports.values() if r.user_id == int(user_id)),
            key=lambda r: r.report_date,
            reverse=True,
        )
        return [
            {"report_id": r.report_id, "report_date": r.report_date, "hours_worked": r.hours_worked}
            for r in reports[:limit]
        ]

    def assigned_projects(self, user_id):
        return [
            {
                "project_id": pid,
                "name": self._db.projects[pid].name,
                "status": self._db.projects[pid].status.value,
                "assigned_at": assigned_at,
            }
            for (pid, uid), assigned_at in self._db.assignments.items()
            if uid == int(user_id)
        ]


# -------- Fixtures --------
@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def today(fixed_now) -> date:
    return fixed_now.date()


@pytest.fixture
def db(fixed_now) -> FakeDatabase:
    return FakeDatabase(now=fixed_now)


@pytest.fixture
def container(db):
    return assemble(
        db,
        users_repo=FakeUserRepository(db),
        projects_repo=FakeProjectRepository(db),
        access_requests_repo=FakeAccessRequestRepository(db),
        reports_repo=FakeReportRepository(db),
        edit_requests_repo=FakeEditRequestRepository(db),
        time_entries_repo=FakeTimeEntryRepository(db),
        locations_repo=FakeLocationRepository(db),
        dashboard_repo=FakeDashboardRepository(db),
    )


@pytest.fixture
def make_user(container):
    password_hash = generate_password_hash(PASSWORD)

    def _make(email: str, *, role: Role = Role.EMPLOYEE, full_name: str = "Test User", is_active: bool = True) -> Viewer:
        user_id = container.users_repo.create_user(
            email=email,
            password_hash=password_hash,
            full_name=full_name,
            role=role,
            is_active=is_active,
        )
        return Viewer(user_id=user_id, role=role)

    return _make


@pytest.fixture
def admin(make_user) -> Viewer:
    return make_user("admin@example.com", role=Role.ADMIN, full_name="Ada Admin")


@pytest.fixture
def employee(make_user) -> Viewer:
    return make_user("emp@example.com", full_name="Eve Employee")


@pytest.fixture
def other_employee(make_user) -> Viewer:
    return make_user("other@example.com", full_name="Oscar Other")


@pytest.fixture
def make_project(container, admin):
    def _make(name: str = "Apollo", *, status: ProjectStatus = ProjectStatus.ACTIVE) -> Project:
        project_id = container.projects_repo.create_project(
            name=name,
            description=None,
            status=status,
            created_by=admin.user_id,
        )
        return container.projects_repo.get_by_id(project_id)

    return _make


@pytest.fixture
def project(make_project) -> Project:
    return make_project()


@pytest.fixture
def assign(container, fixed_now):
    def _assign(project: Project, viewer: Viewer) -> None:
        container.projects_repo.add_assignment(
            project_id=project.project_id, user_id=viewer.user_id, assigned_at=fixed_now
        )

    return _assign


@pytest.fixture
def make_report(container, today):
    def _make(viewer: Viewer, *, report_date: Optional[date] = None, hours: Any = 7.5) -> DailyReport:
        report_id = container.reports_repo.create_report(
            user_id=viewer.user_id,
            report_date=report_date or today,
            tasks=["Wrote tests"],
            hours_worked=hours,
            notes=None,
        )
        return container.reports_repo.get_by_id(report_id)

    return _make


@pytest.fixture
def record_location(container):
    def _record(viewer: Viewer, *, at: datetime, lat: float = 10.0, lon: float = 20.0) -> int:
        return container.locations_repo.append(
            user_id=viewer.user_id,
            latitude=lat,
            longitude=lon,
            accuracy=None,
            status=LocationStatus.ACTIVE,
            recorded_at=at,
        )

    return _record
