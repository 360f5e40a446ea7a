from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

import mysql.connector

from ..common.pagination import Page, PageRequest
from ..core.enums import AttendanceStatus
from ..core.exceptions import AlreadyCheckedIn
from ..database.mysql_base import MySQLRepository, fetchall, fetchone, is_duplicate_key
from .model import AttendanceListRow, AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "ar.attendance_id, ar.user_id, ar.work_date, ar.check_in_time, ar.check_out_time, ar.work_hours, ar.status"


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        check_in_time=r["check_in_time"],
        check_out_time=r.get("check_out_time"),
        work_hours=float(r.get("work_hours") or 0),
        status=AttendanceStatus(r["status"]),
    )


class MySQLAttendanceRepository(MySQLRepository, AttendanceRepository):
    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with self._cursor() as cur:
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records ar
                WHERE ar.user_id=%s AND ar.work_date=%s
                """,
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def create_checkin(self, *, user_id: int, work_date: date, check_in_time: datetime) -> AttendanceRecord:
        try:
            with self._cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO attendance_records(user_id, work_date, check_in_time, work_hours, status)
                    VALUES(%s,%s,%s,0,%s)
                    """,
                    (int(user_id), work_date, check_in_time, AttendanceStatus.ABSENT.value),
                )
                attendance_id = int(cur.lastrowid)
        except mysql.connector.Error as e:
            if is_duplicate_key(e):
                raise AlreadyCheckedIn("Already checked in for today") from e
            raise

        return AttendanceRecord(
            attendance_id=attendance_id,
            user_id=int(user_id),
            work_date=work_date,
            check_in_time=check_in_time,
            check_out_time=None,
            work_hours=0.0,
            status=AttendanceStatus.ABSENT,
        )

    def update_checkout(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        work_hours: float,
        status: AttendanceStatus,
    ) -> bool:
        with self._cursor() as cur:
            cur.execute(
                """
                UPDATE attendance_records
                SET check_out_time=%s, work_hours=%s, status=%s
                WHERE attendance_id=%s AND check_out_time IS NULL
                """,
                (check_out_time, float(work_hours), status.value, int(attendance_id)),
            )
            return cur.rowcount > 0

    def get_for_user_between(self, user_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        with self._cursor() as cur:
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records ar
                WHERE ar.user_id=%s AND ar.work_date BETWEEN %s AND %s
                ORDER BY ar.work_date ASC
                """,
                (int(user_id), start_date, end_date),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def page_for_user(
        self,
        user_id: int,
        page: PageRequest,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Page[AttendanceRecord]:
        clauses = ["ar.user_id=%s"]
        params: list[object] = [int(user_id)]
        if start_date is not None and end_date is not None:
            clauses.append("ar.work_date BETWEEN %s AND %s")
            params.extend([start_date, end_date])

        where = " AND ".join(clauses)

        with self._cursor() as cur:
            cur.execute(f"SELECT COUNT(*) AS total FROM attendance_records ar WHERE {where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records ar
                WHERE {where}
                ORDER BY ar.work_date DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [page.limit, page.offset]),
            )
            items = [_to_record(r) for r in fetchall(cur)]

        return Page(items=items, total=total, page=page.page, limit=page.limit)

    def page_all(
        self,
        page: PageRequest,
        *,
        work_date: Optional[date] = None,
        department: Optional[str] = None,
        status: Optional[AttendanceStatus] = None,
    ) -> Page[AttendanceListRow]:
        clauses = ["1=1"]
        params: list[object] = []

        if work_date is not None:
            clauses.append("ar.work_date=%s")
            params.append(work_date)
        if department:
            clauses.append("LOWER(u.department) LIKE %s")
            params.append(f"%{department.lower()}%")
        if status is not None:
            clauses.append("ar.status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)

        with self._cursor() as cur:
            cur.execute(
                f"""
                SELECT COUNT(*) AS total
                FROM attendance_records ar
                JOIN users u ON u.user_id = ar.user_id
                WHERE {where}
                """,
                tuple(params),
            )
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_COLUMNS}, u.full_name, u.email, u.department
                FROM attendance_records ar
                JOIN users u ON u.user_id = ar.user_id
                WHERE {where}
                ORDER BY ar.work_date DESC, ar.user_id ASC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [page.limit, page.offset]),
            )
            items = [
                AttendanceListRow(
                    record=_to_record(r),
                    full_name=r["full_name"],
                    email=r["email"],
                    department=r.get("department"),
                )
                for r in fetchall(cur)
            ]

        return Page(items=items, total=total, page=page.page, limit=page.limit)
