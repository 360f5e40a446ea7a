from __future__ import annotations

import copy
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import Dict, Optional

import pytest

from hrms_core.attendance.model import AttendanceListRow, AttendanceRecord
from hrms_core.attendance.service import AttendanceTracker
from hrms_core.common.pagination import Page, PageRequest
from hrms_core.core.enums import AttendanceStatus, LeaveStatus, OverdraftPolicy, Role
from hrms_core.core.exceptions import AlreadyCheckedIn
from hrms_core.database.transaction import TransactionContext
from hrms_core.leaves.model import LeaveListRow, LeaveRequest
from hrms_core.leaves.service import LeaveLedger
from hrms_core.payroll.bulk import BulkPayrollRunner
from hrms_core.payroll.model import SalaryListRow, SalaryRecord
from hrms_core.payroll.service import PayrollCalculator
from hrms_core.users.model import User


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class InMemoryStore:
    """Shared state for the in-memory repositories.

    Enforces the same contract as schema.sql: unique (user_id, work_date)
    and (user_id, month), row locks held for a whole transaction.
    """

    def __init__(self):
        self.lock = threading.RLock()
        self.users: Dict[int, User] = {}
        self.attendance: Dict[tuple, AttendanceRecord] = {}
        self.leaves: Dict[int, LeaveRequest] = {}
        self.salaries: Dict[int, SalaryRecord] = {}
        self.next_id = 0
        self.faults: Dict[str, Exception] = {}
        self.commits = 0
        self.rollbacks = 0

    def new_id(self) -> int:
        with self.lock:
            self.next_id += 1
            return self.next_id

    def maybe_fail(self, point: str) -> None:
        exc = self.faults.pop(point, None)
        if exc is not None:
            raise exc

    def snapshot(self) -> tuple:
        return copy.copy(self.users), copy.copy(self.attendance), copy.copy(self.leaves), copy.copy(self.salaries)

    def restore(self, snap: tuple) -> None:
        self.users, self.attendance, self.leaves, self.salaries = snap


def _paginate(items: list, page: PageRequest) -> Page:
    return Page(items=items[page.offset : page.offset + page.limit], total=len(items), page=page.page, limit=page.limit)


def _dept_match(user: Optional[User], department: Optional[str]) -> bool:
    if not department:
        return True
    return bool(user and user.department and department.lower() in user.department.lower())


class InMemoryUsers:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._s.users.get(user_id)

    def get_for_update(self, user_id: int) -> Optional[User]:
        return self._s.users.get(user_id)

    def list_active(self):
        return [u for u in sorted(self._s.users.values(), key=lambda u: u.user_id) if u.is_active]

    def debit_leave_balance(self, user_id: int, days: float) -> bool:
        with self._s.lock:
            self._s.maybe_fail("users.debit")
            user = self._s.users.get(user_id)
            if not user:
                return False
            self._s.users[user_id] = replace(user, leave_balance=user.leave_balance - days)
            return True


class InMemoryAttendance:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return self._s.attendance.get((user_id, work_date))

    def create_checkin(self, *, user_id: int, work_date: date, check_in_time: datetime) -> AttendanceRecord:
        with self._s.lock:
            if (user_id, work_date) in self._s.attendance:
                raise AlreadyCheckedIn("Already checked in for today")
            rec = AttendanceRecord(
                attendance_id=self._s.new_id(),
                user_id=user_id,
                work_date=work_date,
                check_in_time=check_in_time,
                check_out_time=None,
                work_hours=0.0,
                status=AttendanceStatus.ABSENT,
            )
            self._s.attendance[(user_id, work_date)] = rec
            return rec

    def update_checkout(self, *, attendance_id: int, check_out_time: datetime, work_hours: float, status) -> bool:
        with self._s.lock:
            for key, rec in self._s.attendance.items():
                if rec.attendance_id == attendance_id and rec.check_out_time is None:
                    self._s.attendance[key] = replace(
                        rec, check_out_time=check_out_time, work_hours=work_hours, status=status
                    )
                    return True
            return False

    def get_for_user_between(self, user_id: int, start_date: date, end_date: date):
        items = [r for r in self._s.attendance.values() if r.user_id == user_id and start_date <= r.work_date <= end_date]
        return sorted(items, key=lambda r: r.work_date)

    def page_for_user(self, user_id: int, page: PageRequest, *, start_date=None, end_date=None) -> Page:
        items = [r for r in self._s.attendance.values() if r.user_id == user_id]
        if start_date is not None and end_date is not None:
            items = [r for r in items if start_date <= r.work_date <= end_date]
        items.sort(key=lambda r: r.work_date, reverse=True)
        return _paginate(items, page)

    def page_all(self, page: PageRequest, *, work_date=None, department=None, status=None) -> Page:
        rows = []
        for r in self._s.attendance.values():
            user = self._s.users.get(r.user_id)
            if work_date is not None and r.work_date != work_date:
                continue
            if status is not None and r.status != status:
                continue
            if not _dept_match(user, department):
                continue
            rows.append(AttendanceListRow(record=r, full_name=user.full_name, email=user.email, department=user.department))
        rows.sort(key=lambda row: (-row.record.work_date.toordinal(), row.record.user_id))
        return _paginate(rows, page)


class InMemoryLeaves:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def create(self, *, user_id, from_date, to_date, total_days, reason, paid_days, unpaid_days, created_at) -> LeaveRequest:
        with self._s.lock:
            leave = LeaveRequest(
                leave_id=self._s.new_id(),
                user_id=user_id,
                from_date=from_date,
                to_date=to_date,
                total_days=total_days,
                reason=reason,
                paid_days=paid_days,
                unpaid_days=unpaid_days,
                status=LeaveStatus.PENDING,
                created_at=created_at,
            )
            self._s.leaves[leave.leave_id] = leave
            return leave

    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        return self._s.leaves.get(leave_id)

    def get_for_update(self, leave_id: int) -> Optional[LeaveRequest]:
        return self._s.leaves.get(leave_id)

    def find_overlapping(self, user_id, from_date, to_date) -> Optional[LeaveRequest]:
        for leave in sorted(self._s.leaves.values(), key=lambda l: l.from_date):
            if leave.user_id == user_id and leave.status != LeaveStatus.REJECTED and leave.overlaps(from_date, to_date):
                return leave
        return None

    def decide(self, *, leave_id, status, decided_by, decided_at, rejection_reason=None, paid_days=None, unpaid_days=None) -> bool:
        with self._s.lock:
            self._s.maybe_fail("leaves.decide")
            leave = self._s.leaves.get(leave_id)
            if not leave or leave.status != LeaveStatus.PENDING:
                return False
            self._s.leaves[leave_id] = replace(
                leave,
                status=status,
                approved_by=decided_by,
                approved_at=decided_at,
                rejection_reason=rejection_reason,
                paid_days=leave.paid_days if paid_days is None else paid_days,
                unpaid_days=leave.unpaid_days if unpaid_days is None else unpaid_days,
            )
            return True

    def delete_pending(self, leave_id: int) -> bool:
        with self._s.lock:
            leave = self._s.leaves.get(leave_id)
            if not leave or leave.status != LeaveStatus.PENDING:
                return False
            del self._s.leaves[leave_id]
            return True

    def page(self, page: PageRequest, *, status=None, department=None, user_id=None) -> Page:
        rows = []
        for leave in self._s.leaves.values():
            user = self._s.users.get(leave.user_id)
            if status is not None and leave.status != status:
                continue
            if user_id is not None and leave.user_id != user_id:
                continue
            if not _dept_match(user, department):
                continue
            approver = self._s.users.get(leave.approved_by) if leave.approved_by else None
            rows.append(
                LeaveListRow(
                    leave=leave,
                    full_name=user.full_name,
                    email=user.email,
                    department=user.department,
                    approver_name=approver.full_name if approver else None,
                )
            )
        rows.sort(key=lambda row: (row.leave.created_at, row.leave.leave_id), reverse=True)
        return _paginate(rows, page)

    def status_counts(self, user_id: int):
        counts: Dict[LeaveStatus, int] = {}
        for leave in self._s.leaves.values():
            if leave.user_id == user_id:
                counts[leave.status] = counts.get(leave.status, 0) + 1
        return counts

    def sum_approved_days(self, user_id, start_date, end_date) -> float:
        return float(
            sum(
                l.total_days
                for l in self._s.leaves.values()
                if l.user_id == user_id and l.status == LeaveStatus.APPROVED and start_date <= l.from_date <= end_date
            )
        )


class InMemorySalaries:
    def __init__(self, store: InMemoryStore):
        self._s = store
        self.inserts = 0

    def get_for_user_month(self, user_id: int, month: str) -> Optional[SalaryRecord]:
        for s in list(self._s.salaries.values()):
            if s.user_id == user_id and s.month == month:
                return s
        return None

    def create_if_absent(self, record: SalaryRecord):
        with self._s.lock:
            existing = self.get_for_user_month(record.user_id, record.month)
            if existing:
                return existing, False
            stored = replace(record, salary_id=self._s.new_id())
            self._s.salaries[stored.salary_id] = stored
            self.inserts += 1
            return stored, True

    def get_by_id(self, salary_id: int) -> Optional[SalaryRecord]:
        return self._s.salaries.get(salary_id)

    def _rows(self, *, month=None, year=None, department=None, user_id=None):
        rows = []
        for s in list(self._s.salaries.values()):
            user = self._s.users.get(s.user_id)
            if month and s.month != month:
                continue
            if year and s.year != year:
                continue
            if user_id is not None and s.user_id != user_id:
                continue
            if not _dept_match(user, department):
                continue
            rows.append(SalaryListRow(record=s, full_name=user.full_name, email=user.email, department=user.department))
        return rows

    def page(self, page: PageRequest, *, month=None, year=None, department=None, user_id=None) -> Page:
        rows = self._rows(month=month, year=year, department=department, user_id=user_id)
        rows.sort(key=lambda r: (r.record.year, r.record.month, r.record.salary_id), reverse=True)
        return _paginate(rows, page)

    def list_for_summary(self, *, month=None, year=None):
        return self._rows(month=month, year=year)


class InMemoryTransactionScope:
    """One transaction at a time; state restored on any failure."""

    def __init__(self, store: InMemoryStore):
        self._s = store

    @contextmanager
    def begin(self):
        with self._s.lock:
            snap = self._s.snapshot()
            try:
                yield TransactionContext(
                    users=InMemoryUsers(self._s),
                    leaves=InMemoryLeaves(self._s),
                )
            except BaseException:
                self._s.restore(snap)
                self._s.rollbacks += 1
                raise
            self._s.commits += 1


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 1, 15, 9, 0, 0)


@pytest.fixture
def clock(fixed_now) -> Clock:
    return Clock(fixed_now)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def add_user(store):
    def _add(
        user_id: int,
        *,
        full_name: Optional[str] = None,
        role: Role = Role.EMPLOYEE,
        department: Optional[str] = "Engineering",
        base_salary: float = 60000,
        leave_balance: float = 12,
        is_active: bool = True,
    ) -> User:
        user = User(
            user_id=user_id,
            full_name=full_name or f"User {user_id}",
            email=f"user{user_id}@example.com",
            role=role,
            department=department,
            base_salary=base_salary,
            leave_balance=leave_balance,
            is_active=is_active,
        )
        store.users[user_id] = user
        return user

    return _add


@pytest.fixture
def users_repo(store) -> InMemoryUsers:
    return InMemoryUsers(store)


@pytest.fixture
def attendance_repo(store) -> InMemoryAttendance:
    return InMemoryAttendance(store)


@pytest.fixture
def leaves_repo(store) -> InMemoryLeaves:
    return InMemoryLeaves(store)


@pytest.fixture
def salaries_repo(store) -> InMemorySalaries:
    return InMemorySalaries(store)


@pytest.fixture
def tx(store) -> InMemoryTransactionScope:
    return InMemoryTransactionScope(store)


@pytest.fixture
def tracker(attendance_repo, users_repo, clock) -> AttendanceTracker:
    return AttendanceTracker(attendance_repo, users_repo, clock=clock)


@pytest.fixture
def ledger(leaves_repo, users_repo, tx, clock) -> LeaveLedger:
    return LeaveLedger(leaves_repo, users_repo, tx, overdraft_policy=OverdraftPolicy.RESPLIT, clock=clock)


@pytest.fixture
def payroll(salaries_repo, users_repo, tracker, clock) -> PayrollCalculator:
    return PayrollCalculator(salaries_repo, users_repo, tracker, clock=clock)


@pytest.fixture
def bulk(users_repo, payroll) -> BulkPayrollRunner:
    return BulkPayrollRunner(users_repo, payroll, max_workers=3)


@pytest.fixture
def seed_attendance(store):
    """Insert closed attendance records directly: seed(user_id, {day: status})."""

    def _seed(user_id: int, year: int, month: int, statuses: Dict[int, AttendanceStatus]) -> None:
        hours = {AttendanceStatus.PRESENT: 8.0, AttendanceStatus.HALF_DAY: 3.0, AttendanceStatus.ABSENT: 1.0}
        for day, status in statuses.items():
            work_date = date(year, month, day)
            check_in = datetime(year, month, day, 9, 0)
            store.attendance[(user_id, work_date)] = AttendanceRecord(
                attendance_id=store.new_id(),
                user_id=user_id,
                work_date=work_date,
                check_in_time=check_in,
                check_out_time=check_in.replace(hour=9 + int(hours[status])),
                work_hours=hours[status],
                status=status,
            )

    return _seed
