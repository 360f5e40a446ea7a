from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .attendance.controller import AttendanceController
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceTracker
from .core.constants import DEFAULT_BULK_WORKERS
from .core.enums import OverdraftPolicy
from .database.connection import DBConfig, DatabaseConnection
from .database.transaction import MySQLTransactionScope
from .leaves.controller import LeaveController
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.service import LeaveLedger
from .payroll.bulk import BulkPayrollRunner
from .payroll.controller import PayrollController
from .payroll.mysql_salary_repository import MySQLSalaryRepository
from .payroll.service import PayrollCalculator
from .users.mysql_user_repository import MySQLUserRepository


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    tx: MySQLTransactionScope

    users_repo: MySQLUserRepository
    attendance_repo: MySQLAttendanceRepository
    leaves_repo: MySQLLeaveRepository
    salaries_repo: MySQLSalaryRepository

    attendance_tracker: AttendanceTracker
    leave_ledger: LeaveLedger
    payroll_calculator: PayrollCalculator
    bulk_payroll_runner: BulkPayrollRunner

    attendance_controller: AttendanceController
    leave_controller: LeaveController
    payroll_controller: PayrollController


def build_container(*, db_config: dict, settings: Optional[Any] = None) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))
    tx = MySQLTransactionScope(conn)

    users_repo = MySQLUserRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    leaves_repo = MySQLLeaveRepository(conn)
    salaries_repo = MySQLSalaryRepository(conn)

    overdraft_policy = OverdraftPolicy(getattr(settings, "LEAVE_OVERDRAFT_POLICY", OverdraftPolicy.RESPLIT.value))
    bulk_workers = int(getattr(settings, "BULK_PAYROLL_WORKERS", DEFAULT_BULK_WORKERS))

    attendance_tracker = AttendanceTracker(attendance_repo, users_repo)
    leave_ledger = LeaveLedger(leaves_repo, users_repo, tx, overdraft_policy=overdraft_policy)
    payroll_calculator = PayrollCalculator(salaries_repo, users_repo, attendance_tracker)
    bulk_payroll_runner = BulkPayrollRunner(users_repo, payroll_calculator, max_workers=bulk_workers)

    return Container(
        conn=conn,
        tx=tx,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        leaves_repo=leaves_repo,
        salaries_repo=salaries_repo,
        attendance_tracker=attendance_tracker,
        leave_ledger=leave_ledger,
        payroll_calculator=payroll_calculator,
        bulk_payroll_runner=bulk_payroll_runner,
        attendance_controller=AttendanceController(attendance_tracker),
        leave_controller=LeaveController(leave_ledger),
        payroll_controller=PayrollController(payroll_calculator, bulk_payroll_runner),
    )
