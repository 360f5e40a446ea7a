from __future__ import annotations

from typing import Optional

from ..common.datetime_utils import parse_iso_date
from ..core.enums import LeaveStatus, Role
from ..core.policy import Caller, authorize, scoped_department, scoped_user_id
from .model import LeaveBalance, LeaveListRow, LeaveRequest
from .service import LeaveLedger


def leave_to_dict(leave: LeaveRequest) -> dict:
    return {
        "id": leave.leave_id,
        "user_id": leave.user_id,
        "from_date": leave.from_date.strftime("%Y-%m-%d"),
        "to_date": leave.to_date.strftime("%Y-%m-%d"),
        "total_days": leave.total_days,
        "reason": leave.reason,
        "paid_days": leave.paid_days,
        "unpaid_days": leave.unpaid_days,
        "status": leave.status.value,
        "approved_by": leave.approved_by,
        "approved_at": leave.approved_at.isoformat() if leave.approved_at else None,
        "rejection_reason": leave.rejection_reason,
        "created_at": leave.created_at.isoformat() if leave.created_at else None,
    }


def _list_row_to_dict(row: LeaveListRow) -> dict:
    out = leave_to_dict(row.leave)
    out["user"] = {"id": row.leave.user_id, "name": row.full_name, "email": row.email, "department": row.department}
    out["approver"] = {"id": row.leave.approved_by, "name": row.approver_name} if row.leave.approved_by else None
    return out


def _balance_to_dict(b: LeaveBalance) -> dict:
    return {
        "user": {"id": b.user.user_id, "name": b.user.full_name, "leave_balance": b.user.leave_balance},
        "current_balance": b.current_balance,
        "statistics": {
            "total_leaves": b.total_leaves,
            "approved_leaves": b.approved_leaves,
            "pending_leaves": b.pending_leaves,
            "rejected_leaves": b.rejected_leaves,
            "total_approved_days_this_year": b.total_approved_days_this_year,
        },
    }


class LeaveController:
    def __init__(self, ledger: LeaveLedger):
        self._ledger = ledger

    def create(self, caller: Caller, *, from_date: str, to_date: str, reason: str) -> dict:
        leave = self._ledger.create(
            caller.user_id,
            from_date=parse_iso_date(from_date, "from_date"),
            to_date=parse_iso_date(to_date, "to_date"),
            reason=reason,
        )
        return leave_to_dict(leave)

    def find_all(
        self,
        caller: Caller,
        *,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        status: Optional[str] = None,
        department: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> dict:
        result = self._ledger.find_all(
            page=page,
            limit=limit,
            status=LeaveStatus(status) if status else None,
            department=scoped_department(caller, department),
            user_id=scoped_user_id(caller, user_id),
        )
        return {
            "leaves": [_list_row_to_dict(r) for r in result.items],
            "pagination": result.pagination(),
        }

    def balance(self, caller: Caller, *, user_id: Optional[int] = None) -> dict:
        target = scoped_user_id(caller, user_id) or caller.user_id
        return _balance_to_dict(self._ledger.get_leave_balance(target))

    def find_one(self, caller: Caller, leave_id: int) -> dict:
        owner = None if caller.is_admin else caller.user_id
        return leave_to_dict(self._ledger.find_one(int(leave_id), owner))

    def approve(self, caller: Caller, leave_id: int, *, status: str, rejection_reason: Optional[str] = None) -> dict:
        authorize(caller.role, Role.ADMIN)
        leave = self._ledger.approve(int(leave_id), caller.user_id, LeaveStatus(status), rejection_reason)
        return leave_to_dict(leave)

    def remove(self, caller: Caller, leave_id: int) -> dict:
        owner = None if caller.is_admin else caller.user_id
        return leave_to_dict(self._ledger.cancel(int(leave_id), owner))
