from __future__ import annotations

from typing import Optional

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..core.enums import AttendanceStatus, Role
from ..core.policy import Caller, authorize, scoped_department, scoped_user_id
from .model import AttendanceListRow, AttendanceRecord, AttendanceSummary
from .service import AttendanceTracker


def record_to_dict(r: AttendanceRecord) -> dict:
    return {
        "attendance_id": r.attendance_id,
        "user_id": r.user_id,
        "date": r.work_date.strftime("%Y-%m-%d"),
        "check_in": r.check_in_time.isoformat(),
        "check_out": r.check_out_time.isoformat() if r.check_out_time else None,
        "work_hours": r.work_hours,
        "status": r.status.value,
    }


def _list_row_to_dict(row: AttendanceListRow) -> dict:
    out = record_to_dict(row.record)
    out["user"] = {
        "id": row.record.user_id,
        "name": row.full_name,
        "email": row.email,
        "department": row.department,
    }
    return out


def summary_to_dict(s: AttendanceSummary) -> dict:
    return {
        "user": {
            "id": s.user.user_id,
            "name": s.user.full_name,
            "email": s.user.email,
            "department": s.user.department,
            "salary": s.user.base_salary,
        },
        "month": s.month,
        "year": s.year,
        "working_days": s.working_days,
        "present_days": s.present_days,
        "half_days": s.half_days,
        "absent_days": s.absent_days,
        "total_work_hours": s.total_work_hours,
        "attendance_percentage": s.attendance_percentage,
        "salary": {
            "base_salary": s.salary.base_salary,
            "per_day_salary": s.salary.per_day_salary,
            "salary_deduction": s.salary.salary_deduction,
            "final_salary": s.salary.final_salary,
        },
        "attendance_records": [record_to_dict(r) for r in s.records],
    }


class AttendanceController:
    """Caller-facing attendance operations.

    Role checks and employee scoping happen here; the tracker itself is
    role-agnostic.
    """

    def __init__(self, tracker: AttendanceTracker):
        self._tracker = tracker

    def check_in(self, caller: Caller, *, check_in: Optional[str] = None) -> dict:
        record = self._tracker.check_in(caller.user_id, at=parse_iso_datetime(check_in, "check_in"))
        return record_to_dict(record)

    def check_out(self, caller: Caller, *, check_out: Optional[str] = None) -> dict:
        record = self._tracker.check_out(caller.user_id, at=parse_iso_datetime(check_out, "check_out"))
        return record_to_dict(record)

    def today(self, caller: Caller) -> Optional[dict]:
        record = self._tracker.get_today_attendance(caller.user_id)
        return record_to_dict(record) if record else None

    def history(
        self,
        caller: Caller,
        *,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        month: Optional[str] = None,
        year: Optional[int] = None,
    ) -> dict:
        result = self._tracker.get_attendance_history(caller.user_id, page=page, limit=limit, month=month, year=year)
        return {
            "attendances": [record_to_dict(r) for r in result.items],
            "pagination": result.pagination(),
        }

    def summary(self, caller: Caller, *, month: str, year: int, user_id: Optional[int] = None) -> dict:
        target = scoped_user_id(caller, user_id) or caller.user_id
        return summary_to_dict(self._tracker.get_attendance_summary(target, month, int(year)))

    def all_attendance(
        self,
        caller: Caller,
        *,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        date: Optional[str] = None,
        department: Optional[str] = None,
        status: Optional[str] = None,
    ) -> dict:
        authorize(caller.role, Role.ADMIN)
        result = self._tracker.get_all_attendance(
            page=page,
            limit=limit,
            work_date=parse_iso_date(date, "date") if date else None,
            department=scoped_department(caller, department),
            status=AttendanceStatus(status) if status else None,
        )
        return {
            "attendances": [_list_row_to_dict(r) for r in result.items],
            "pagination": result.pagination(),
        }
