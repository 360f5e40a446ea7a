from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Optional

from ..common.pagination import Page, PageRequest
from ..core.enums import LeaveStatus
from ..database.mysql_base import MySQLRepository, fetchall, fetchone
from .model import LeaveListRow, LeaveRequest
from .repository import LeaveRepository

_COLUMNS = (
    "l.leave_id, l.user_id, l.from_date, l.to_date, l.total_days, l.reason, "
    "l.paid_days, l.unpaid_days, l.status, l.created_at, "
    "l.approved_by, l.approved_at, l.rejection_reason"
)


def _to_leave(r: dict) -> LeaveRequest:
    return LeaveRequest(
        leave_id=int(r["leave_id"]),
        user_id=int(r["user_id"]),
        from_date=r["from_date"],
        to_date=r["to_date"],
        total_days=int(r["total_days"]),
        reason=r["reason"],
        paid_days=float(r["paid_days"]),
        unpaid_days=float(r["unpaid_days"]),
        status=LeaveStatus(r["status"]),
        created_at=r["created_at"],
        approved_by=r.get("approved_by"),
        approved_at=r.get("approved_at"),
        rejection_reason=r.get("rejection_reason"),
    )


class MySQLLeaveRepository(MySQLRepository, LeaveRepository):
    def create(
        self,
        *,
        user_id: int,
        from_date: date,
        to_date: date,
        total_days: int,
        reason: str,
        paid_days: float,
        unpaid_days: float,
        created_at: datetime,
    ) -> LeaveRequest:
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO leave_requests(
                    user_id, from_date, to_date, total_days, reason,
                    paid_days, unpaid_days, status, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    from_date,
                    to_date,
                    int(total_days),
                    reason,
                    float(paid_days),
                    float(unpaid_days),
                    LeaveStatus.PENDING.value,
                    created_at,
                ),
            )
            leave_id = int(cur.lastrowid)

        return LeaveRequest(
            leave_id=leave_id,
            user_id=int(user_id),
            from_date=from_date,
            to_date=to_date,
            total_days=int(total_days),
            reason=reason,
            paid_days=float(paid_days),
            unpaid_days=float(unpaid_days),
            status=LeaveStatus.PENDING,
            created_at=created_at,
        )

    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM leave_requests l WHERE l.leave_id=%s", (int(leave_id),))
            r = fetchone(cur)
            return _to_leave(r) if r else None

    def get_for_update(self, leave_id: int) -> Optional[LeaveRequest]:
        if not self.in_transaction:
            raise RuntimeError("get_for_update requires a transaction")
        with self._cursor() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM leave_requests l WHERE l.leave_id=%s FOR UPDATE", (int(leave_id),))
            r = fetchone(cur)
            return _to_leave(r) if r else None

    def find_overlapping(self, user_id: int, from_date: date, to_date: date) -> Optional[LeaveRequest]:
        with self._cursor() as cur:
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests l
                WHERE l.user_id=%s AND l.status<>%s AND l.from_date<=%s AND l.to_date>=%s
                ORDER BY l.from_date ASC
                LIMIT 1
                """,
                (int(user_id), LeaveStatus.REJECTED.value, to_date, from_date),
            )
            r = fetchone(cur)
            return _to_leave(r) if r else None

    def decide(
        self,
        *,
        leave_id: int,
        status: LeaveStatus,
        decided_by: int,
        decided_at: datetime,
        rejection_reason: Optional[str] = None,
        paid_days: Optional[float] = None,
        unpaid_days: Optional[float] = None,
    ) -> bool:
        with self._cursor() as cur:
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, approved_by=%s, approved_at=%s, rejection_reason=%s,
                    paid_days=COALESCE(%s, paid_days), unpaid_days=COALESCE(%s, unpaid_days)
                WHERE leave_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(decided_by),
                    decided_at,
                    rejection_reason,
                    paid_days,
                    unpaid_days,
                    int(leave_id),
                    LeaveStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def delete_pending(self, leave_id: int) -> bool:
        with self._cursor() as cur:
            cur.execute(
                "DELETE FROM leave_requests WHERE leave_id=%s AND status=%s",
                (int(leave_id), LeaveStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def page(
        self,
        page: PageRequest,
        *,
        status: Optional[LeaveStatus] = None,
        department: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Page[LeaveListRow]:
        clauses = ["1=1"]
        params: list[object] = []

        if status is not None:
            clauses.append("l.status=%s")
            params.append(status.value)
        if user_id is not None:
            clauses.append("l.user_id=%s")
            params.append(int(user_id))
        if department:
            clauses.append("LOWER(u.department) LIKE %s")
            params.append(f"%{department.lower()}%")

        where = " AND ".join(clauses)

        with self._cursor() as cur:
            cur.execute(
                f"""
                SELECT COUNT(*) AS total
                FROM leave_requests l
                JOIN users u ON u.user_id = l.user_id
                WHERE {where}
                """,
                tuple(params),
            )
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_COLUMNS},
                       u.full_name, u.email, u.department,
                       a.full_name AS approver_name
                FROM leave_requests l
                JOIN users u ON u.user_id = l.user_id
                LEFT JOIN users a ON a.user_id = l.approved_by
                WHERE {where}
                ORDER BY l.created_at DESC, l.leave_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [page.limit, page.offset]),
            )
            items = [
                LeaveListRow(
                    leave=_to_leave(r),
                    full_name=r["full_name"],
                    email=r["email"],
                    department=r.get("department"),
                    approver_name=r.get("approver_name"),
                )
                for r in fetchall(cur)
            ]

        return Page(items=items, total=total, page=page.page, limit=page.limit)

    def status_counts(self, user_id: int) -> Dict[LeaveStatus, int]:
        with self._cursor() as cur:
            cur.execute(
                "SELECT status, COUNT(*) AS n FROM leave_requests WHERE user_id=%s GROUP BY status",
                (int(user_id),),
            )
            return {LeaveStatus(r["status"]): int(r["n"]) for r in fetchall(cur)}

    def sum_approved_days(self, user_id: int, start_date: date, end_date: date) -> float:
        with self._cursor() as cur:
            cur.execute(
                """
                SELECT COALESCE(SUM(total_days), 0) AS days
                FROM leave_requests
                WHERE user_id=%s AND status=%s AND from_date BETWEEN %s AND %s
                """,
                (int(user_id), LeaveStatus.APPROVED.value, start_date, end_date),
            )
            return float(fetchone(cur)["days"])
