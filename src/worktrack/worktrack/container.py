from __future__ import annotations

from dataclasses import dataclass

from .access_requests.mysql_access_request_repository import MySQLAccessRequestRepository
from .access_requests.repository import AccessRequestRepository
from .access_requests.service import AccessRequestService
from .common.unit_of_work import UnitOfWork
from .dashboard.mysql_dashboard_repository import MySQLDashboardRepository
from .dashboard.repository import DashboardRepository
from .dashboard.service import DashboardService
from .database.connection import DBConfig, DatabaseConnection
from .edit_requests.mysql_edit_request_repository import MySQLEditRequestRepository
from .edit_requests.repository import EditRequestRepository
from .edit_requests.service import EditRequestService
from .locations.mysql_location_repository import MySQLLocationRepository
from .locations.repository import LocationRepository
from .locations.service import LocationService
from .projects.mysql_project_repository import MySQLProjectRepository
from .projects.repository import ProjectRepository
from .projects.service import ProjectService
from .reports.mysql_report_repository import MySQLReportRepository
from .reports.repository import ReportRepository
from .reports.service import ReportEditGate, ReportService
from .time_entries.mysql_time_entry_repository import MySQLTimeEntryRepository
from .time_entries.repository import TimeEntryRepository
from .time_entries.service import TimerService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, EmployeeService


@dataclass(frozen=True)
class Container:
    uow: UnitOfWork

    users_repo: UserRepository
    projects_repo: ProjectRepository
    access_requests_repo: AccessRequestRepository
    reports_repo: ReportRepository
    edit_requests_repo: EditRequestRepository
    time_entries_repo: TimeEntryRepository
    locations_repo: LocationRepository
    dashboard_repo: DashboardRepository

    auth_service: AuthService
    employee_service: EmployeeService
    project_service: ProjectService
    access_request_service: AccessRequestService
    report_service: ReportService
    report_edit_gate: ReportEditGate
    edit_request_service: EditRequestService
    timer_service: TimerService
    location_service: LocationService
    dashboard_service: DashboardService


def assemble(
    uow: UnitOfWork,
    *,
    users_repo: UserRepository,
    projects_repo: ProjectRepository,
    access_requests_repo: AccessRequestRepository,
    reports_repo: ReportRepository,
    edit_requests_repo: EditRequestRepository,
    time_entries_repo: TimeEntryRepository,
    locations_repo: LocationRepository,
    dashboard_repo: DashboardRepository,
) -> Container:
    """Wire services on top of any set of repositories sharing one unit of work."""

    timer_service = TimerService(time_entries_repo, projects_repo, uow)

    return Container(
        uow=uow,
        users_repo=users_repo,
        projects_repo=projects_repo,
        access_requests_repo=access_requests_repo,
        reports_repo=reports_repo,
        edit_requests_repo=edit_requests_repo,
        time_entries_repo=time_entries_repo,
        locations_repo=locations_repo,
        dashboard_repo=dashboard_repo,
        auth_service=AuthService(users_repo, uow),
        employee_service=EmployeeService(users_repo),
        project_service=ProjectService(projects_repo, access_requests_repo),
        access_request_service=AccessRequestService(access_requests_repo, projects_repo, uow),
        report_service=ReportService(reports_repo),
        report_edit_gate=ReportEditGate(reports_repo, edit_requests_repo, uow),
        edit_request_service=EditRequestService(edit_requests_repo, reports_repo, uow),
        timer_service=timer_service,
        location_service=LocationService(locations_repo),
        dashboard_service=DashboardService(
            dashboard_repo,
            users_repo,
            access_requests_repo,
            edit_requests_repo,
            locations_repo,
            timer_service,
        ),
    )


def build_container(*, db_config: dict) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    return assemble(
        conn,
        users_repo=MySQLUserRepository(conn),
        projects_repo=MySQLProjectRepository(conn),
        access_requests_repo=MySQLAccessRequestRepository(conn),
        reports_repo=MySQLReportRepository(conn),
        edit_requests_repo=MySQLEditRequestRepository(conn),
        time_entries_repo=MySQLTimeEntryRepository(conn),
        locations_repo=MySQLLocationRepository(conn),
        dashboard_repo=MySQLDashboardRepository(conn),
    )
