from __future__ import annotations

from dataclasses import replace
from typing import Optional, Sequence, Tuple

import mysql.connector

from ..common.pagination import Page, PageRequest
from ..database.mysql_base import MySQLRepository, fetchall, fetchone, is_duplicate_key
from .model import SalaryListRow, SalaryRecord
from .repository import SalaryRepository

_COLUMNS = (
    "s.salary_id, s.user_id, s.month, s.year, s.base_salary, s.working_days, "
    "s.present_days, s.half_days, s.absent_days, s.attendance_percentage, "
    "s.salary_deduction, s.final_salary, s.is_processed, s.processed_at"
)


def _to_salary(r: dict) -> SalaryRecord:
    return SalaryRecord(
        salary_id=int(r["salary_id"]),
        user_id=int(r["user_id"]),
        month=r["month"],
        year=int(r["year"]),
        base_salary=float(r["base_salary"]),
        working_days=int(r["working_days"]),
        present_days=int(r["present_days"]),
        half_days=int(r["half_days"]),
        absent_days=int(r["absent_days"]),
        attendance_percentage=float(r["attendance_percentage"]),
        salary_deduction=float(r["salary_deduction"]),
        final_salary=float(r["final_salary"]),
        is_processed=bool(r["is_processed"]),
        processed_at=r.get("processed_at"),
    )


def _to_row(r: dict) -> SalaryListRow:
    return SalaryListRow(
        record=_to_salary(r),
        full_name=r["full_name"],
        email=r["email"],
        department=r.get("department"),
    )


class MySQLSalaryRepository(MySQLRepository, SalaryRepository):
    def get_for_user_month(self, user_id: int, month: str) -> Optional[SalaryRecord]:
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM salary_records s WHERE s.user_id=%s AND s.month=%s",
                (int(user_id), month),
            )
            r = fetchone(cur)
            return _to_salary(r) if r else None

    def create_if_absent(self, record: SalaryRecord) -> Tuple[SalaryRecord, bool]:
        try:
            with self._cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO salary_records(
                        user_id, month, year, base_salary, working_days,
                        present_days, half_days, absent_days, attendance_percentage,
                        salary_deduction, final_salary, is_processed, processed_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        record.user_id,
                        record.month,
                        record.year,
                        record.base_salary,
                        record.working_days,
                        record.present_days,
                        record.half_days,
                        record.absent_days,
                        record.attendance_percentage,
                        record.salary_deduction,
                        record.final_salary,
                        int(record.is_processed),
                        record.processed_at,
                    ),
                )
                salary_id = int(cur.lastrowid)
        except mysql.connector.Error as e:
            if not is_duplicate_key(e):
                raise
            existing = self.get_for_user_month(record.user_id, record.month)
            if existing is None:
                raise
            return existing, False

        return replace(record, salary_id=salary_id), True

    def get_by_id(self, salary_id: int) -> Optional[SalaryRecord]:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM salary_records s WHERE s.salary_id=%s", (int(salary_id),))
            r = fetchone(cur)
            return _to_salary(r) if r else None

    @staticmethod
    def _where(
        *,
        month: Optional[str] = None,
        year: Optional[int] = None,
        department: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Tuple[str, list]:
        clauses = ["1=1"]
        params: list[object] = []
        if month:
            clauses.append("s.month=%s")
            params.append(month)
        if year:
            clauses.append("s.year=%s")
            params.append(int(year))
        if user_id is not None:
            clauses.append("s.user_id=%s")
            params.append(int(user_id))
        if department:
            clauses.append("LOWER(u.department) LIKE %s")
            params.append(f"%{department.lower()}%")
        return " AND ".join(clauses), params

    def page(
        self,
        page: PageRequest,
        *,
        month: Optional[str] = None,
        year: Optional[int] = None,
        department: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Page[SalaryListRow]:
        where, params = self._where(month=month, year=year, department=department, user_id=user_id)

        with self._cursor() as cur:
            cur.execute(
                f"""
                SELECT COUNT(*) AS total
                FROM salary_records s
                JOIN users u ON u.user_id = s.user_id
                WHERE {where}
                """,
                tuple(params),
            )
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_COLUMNS}, u.full_name, u.email, u.department
                FROM salary_records s
                JOIN users u ON u.user_id = s.user_id
                WHERE {where}
                ORDER BY s.year DESC, s.month DESC, s.salary_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [page.limit, page.offset]),
            )
            items = [_to_row(r) for r in fetchall(cur)]

        return Page(items=items, total=total, page=page.page, limit=page.limit)

    def list_for_summary(self, *, month: Optional[str] = None, year: Optional[int] = None) -> Sequence[SalaryListRow]:
        where, params = self._where(month=month, year=year)
        with self._cursor() as cur:
            cur.execute(
                f"""
                SELECT {_COLUMNS}, u.full_name, u.email, u.department
                FROM salary_records s
                JOIN users u ON u.user_id = s.user_id
                WHERE {where}
                """,
                tuple(params),
            )
            return [_to_row(r) for r in fetchall(cur)]
