from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Optional

from ..common.datetime_utils import inclusive_days, now_local
from ..common.pagination import Page, PageRequest
from ..common.validators import require_non_empty
from ..core.enums import LeaveStatus, OverdraftPolicy
from ..core.exceptions import (
    AlreadyProcessed,
    Forbidden,
    InsufficientLeaveBalance,
    InvalidDateRange,
    LeaveNotFound,
    MissingRejectionReason,
    NotCancellable,
    OverlappingLeave,
    UserNotFound,
    ValidationError,
)
from ..database.transaction import TransactionScope
from ..users.repository import UserRepository
from .model import LeaveBalance, LeaveListRow, LeaveRequest
from .repository import LeaveRepository

logger = logging.getLogger(__name__)


class LeaveLedger:
    """Leave request lifecycle and the leave-balance ledger.

    PENDING -> APPROVED  (balance debited by paid_days)
    PENDING -> REJECTED  (reason required, balance untouched)
    PENDING -> CANCELLED (row deleted, balance untouched)

    Submission and approval run inside one transaction each, with the
    user's row locked, so work on the same balance serializes.
    """

    def __init__(
        self,
        leaves: LeaveRepository,
        users: UserRepository,
        tx: TransactionScope,
        *,
        overdraft_policy: OverdraftPolicy = OverdraftPolicy.RESPLIT,
        clock: Callable[[], datetime] = now_local,
    ):
        self._leaves = leaves
        self._users = users
        self._tx = tx
        self._overdraft_policy = OverdraftPolicy(overdraft_policy)
        self._clock = clock

    def create(self, user_id: int, *, from_date: date, to_date: date, reason: str) -> LeaveRequest:
        if to_date < from_date:
            raise InvalidDateRange("To date must be on or after from date")
        reason = require_non_empty(reason, "Reason")
        total_days = inclusive_days(from_date, to_date)

        with self._tx.begin() as tx:
            user = tx.users.get_for_update(user_id)
            if not user:
                raise UserNotFound("User not found")

            clash = tx.leaves.find_overlapping(user_id, from_date, to_date)
            if clash:
                raise OverlappingLeave(
                    f"Leave dates overlap with existing leave request {clash.leave_id} "
                    f"({clash.from_date} - {clash.to_date}, {clash.status.value})"
                )

            paid_days = float(min(total_days, max(user.leave_balance, 0.0)))
            unpaid_days = total_days - paid_days

            leave = tx.leaves.create(
                user_id=user_id,
                from_date=from_date,
                to_date=to_date,
                total_days=total_days,
                reason=reason,
                paid_days=paid_days,
                unpaid_days=unpaid_days,
                created_at=self._clock(),
            )

        logger.info(
            f"Leave {leave.leave_id} submitted by user {user_id}: "
            f"{total_days} day(s), paid={paid_days}, unpaid={unpaid_days}"
        )
        return leave

    def approve(
        self,
        leave_id: int,
        approver_id: int,
        decision: LeaveStatus,
        rejection_reason: Optional[str] = None,
    ) -> LeaveRequest:
        decision = LeaveStatus(decision)
        if decision not in {LeaveStatus.APPROVED, LeaveStatus.REJECTED}:
            raise ValidationError("Decision must be APPROVED or REJECTED")
        rejection_reason = (rejection_reason or "").strip() or None

        with self._tx.begin() as tx:
            leave = tx.leaves.get_for_update(leave_id)
            if not leave:
                raise LeaveNotFound("Leave request not found")
            if leave.status != LeaveStatus.PENDING:
                raise AlreadyProcessed("Leave request has already been processed")
            if decision == LeaveStatus.REJECTED and not rejection_reason:
                raise MissingRejectionReason("Rejection reason is required when rejecting leave")

            decided_at = self._clock()
            paid_days, unpaid_days = leave.paid_days, leave.unpaid_days

            if decision == LeaveStatus.APPROVED and paid_days > 0:
                user = tx.users.get_for_update(leave.user_id)
                if not user:
                    raise UserNotFound("User not found")
                paid_days, unpaid_days = self._settle_against_balance(leave, user.leave_balance)
                if paid_days > 0:
                    tx.users.debit_leave_balance(leave.user_id, paid_days)

            decided = tx.leaves.decide(
                leave_id=leave_id,
                status=decision,
                decided_by=approver_id,
                decided_at=decided_at,
                rejection_reason=rejection_reason if decision == LeaveStatus.REJECTED else None,
                paid_days=paid_days,
                unpaid_days=unpaid_days,
            )
            if not decided:
                raise AlreadyProcessed("Leave request has already been processed")

        logger.info(f"Leave {leave_id} {decision.value.lower()} by user {approver_id}")
        return replace(
            leave,
            status=decision,
            approved_by=approver_id,
            approved_at=decided_at,
            rejection_reason=rejection_reason if decision == LeaveStatus.REJECTED else None,
            paid_days=paid_days,
            unpaid_days=unpaid_days,
        )

    def _settle_against_balance(self, leave: LeaveRequest, balance: float) -> tuple[float, float]:
        """Split computed at submission, checked against the locked live balance."""
        if leave.paid_days <= balance:
            return leave.paid_days, leave.unpaid_days

        if self._overdraft_policy == OverdraftPolicy.REJECT:
            raise InsufficientLeaveBalance(
                f"Leave balance {balance} is below the {leave.paid_days} paid day(s) of this request"
            )

        paid_days = max(balance, 0.0)
        unpaid_days = leave.total_days - paid_days
        logger.warning(
            f"Leave {leave.leave_id}: balance dropped to {balance} since submission; "
            f"paid days reduced from {leave.paid_days} to {paid_days}"
        )
        return paid_days, unpaid_days

    def cancel(self, leave_id: int, requesting_user_id: Optional[int] = None) -> LeaveRequest:
        leave = self.find_one(leave_id, requesting_user_id)
        if leave.status != LeaveStatus.PENDING:
            raise NotCancellable("Only pending leave requests can be cancelled")
        if not self._leaves.delete_pending(leave_id):
            # Decided between the read and the delete.
            raise NotCancellable("Only pending leave requests can be cancelled")

        logger.info(f"Leave {leave_id} cancelled")
        return replace(leave, status=LeaveStatus.CANCELLED)

    def find_one(self, leave_id: int, requesting_user_id: Optional[int] = None) -> LeaveRequest:
        leave = self._leaves.get_by_id(leave_id)
        if not leave:
            raise LeaveNotFound("Leave request not found")
        if requesting_user_id is not None and leave.user_id != requesting_user_id:
            raise Forbidden("Access denied to this leave request")
        return leave

    def find_all(
        self,
        *,
        page: int | None = None,
        limit: int | None = None,
        status: LeaveStatus | None = None,
        department: str | None = None,
        user_id: int | None = None,
    ) -> Page[LeaveListRow]:
        return self._leaves.page(PageRequest.of(page, limit), status=status, department=department, user_id=user_id)

    def get_user_leaves(self, user_id: int, *, page: int | None = None, limit: int | None = None) -> Page[LeaveListRow]:
        return self.find_all(page=page, limit=limit, user_id=user_id)

    def get_leave_balance(self, user_id: int) -> LeaveBalance:
        user = self._users.get_by_id(user_id)
        if not user:
            raise UserNotFound("User not found")

        counts = self._leaves.status_counts(user_id)
        year = self._clock().year
        approved_days = self._leaves.sum_approved_days(user_id, date(year, 1, 1), date(year, 12, 31))

        return LeaveBalance(
            user=user,
            current_balance=user.leave_balance,
            total_leaves=sum(counts.values()),
            approved_leaves=counts.get(LeaveStatus.APPROVED, 0),
            pending_leaves=counts.get(LeaveStatus.PENDING, 0),
            rejected_leaves=counts.get(LeaveStatus.REJECTED, 0),
            total_approved_days_this_year=approved_days,
        )
