from __future__ import annotations

from dataclasses import dataclass

from .absence.service import AutoAbsentService
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import AUTO_ABSENT_CUTOFF_HOUR
from .dashboard.service import DashboardService
from .database.connection import DBConfig, DatabaseConnection
from .identity.mysql_account_repository import MySQLAccountRepository, MySQLRoleRepository
from .identity.repository import AccountRepository, RoleRepository
from .identity.service import AuthService, IdentityService
from .leave.mysql_leave_repository import MySQLLeaveRepository
from .leave.repository import LeaveRepository
from .leave.service import LeaveService
from .people.mysql_person_repository import MySQLPersonRepository
from .people.repository import PersonRepository
from .people.service import PersonService


@dataclass(frozen=True)
class Container:
    accounts_repo: AccountRepository
    roles_repo: RoleRepository
    people_repo: PersonRepository
    attendance_repo: AttendanceRepository
    leave_repo: LeaveRepository

    auth_service: AuthService
    identity_service: IdentityService
    person_service: PersonService
    attendance_service: AttendanceService
    leave_service: LeaveService
    dashboard_service: DashboardService
    auto_absent_service: AutoAbsentService


def wire_container(
    *,
    accounts_repo: AccountRepository,
    roles_repo: RoleRepository,
    people_repo: PersonRepository,
    attendance_repo: AttendanceRepository,
    leave_repo: LeaveRepository,
    cutoff_hour: int = AUTO_ABSENT_CUTOFF_HOUR,
) -> Container:
    """Build every service on top of the given repositories (MySQL in the app, in-memory in tests)."""
    auth_service = AuthService(accounts_repo)
    identity_service = IdentityService(roles_repo, people_repo, accounts_repo)
    person_service = PersonService(people_repo, accounts_repo, roles_repo)
    attendance_service = AttendanceService(attendance_repo, people_repo, identity_service)
    leave_service = LeaveService(leave_repo, people_repo, identity_service)
    dashboard_service = DashboardService(attendance_service, leave_service, leave_repo, identity_service)
    auto_absent_service = AutoAbsentService(people_repo, attendance_repo, cutoff_hour=cutoff_hour)

    return Container(
        accounts_repo=accounts_repo,
        roles_repo=roles_repo,
        people_repo=people_repo,
        attendance_repo=attendance_repo,
        leave_repo=leave_repo,
        auth_service=auth_service,
        identity_service=identity_service,
        person_service=person_service,
        attendance_service=attendance_service,
        leave_service=leave_service,
        dashboard_service=dashboard_service,
        auto_absent_service=auto_absent_service,
    )


def build_container(*, db_config: dict, cutoff_hour: int = AUTO_ABSENT_CUTOFF_HOUR) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return wire_container(
        accounts_repo=MySQLAccountRepository(conn),
        roles_repo=MySQLRoleRepository(conn),
        people_repo=MySQLPersonRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        leave_repo=MySQLLeaveRepository(conn),
        cutoff_hour=cutoff_hour,
    )
