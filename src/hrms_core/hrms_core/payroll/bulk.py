"""Bulk payroll across every active employee.

Each employee is an independent work item: a failure is captured as an
error item in the report and never stops the others.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from ..common.datetime_utils import parse_month_label
from ..core.constants import DEFAULT_BULK_WORKERS
from ..users.model import User
from ..users.repository import UserRepository
from .model import BulkPayrollItem, BulkPayrollReport
from .service import PayrollCalculator

logger = logging.getLogger(__name__)


class BulkPayrollRunner:
    def __init__(self, users: UserRepository, payroll: PayrollCalculator, *, max_workers: int = DEFAULT_BULK_WORKERS):
        self._users = users
        self._payroll = payroll
        self._max_workers = max(1, int(max_workers))

    def _run_one(self, user: User, month: str, year: int) -> BulkPayrollItem:
        try:
            salary = self._payroll.calculate_salary(user.user_id, month, year)
        except Exception as e:
            logger.warning(f"Payroll {month} failed for user {user.user_id}: {e}")
            return BulkPayrollItem(user_id=user.user_id, user_name=user.full_name, status="error", error=str(e))
        return BulkPayrollItem(user_id=user.user_id, user_name=user.full_name, status="success", salary=salary)

    def calculate_bulk_salary(self, month: str, year: int) -> BulkPayrollReport:
        # A malformed month is the caller's error, not a per-employee one.
        parse_month_label(month, year)

        users = list(self._users.list_active())
        with ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="payroll") as pool:
            items = list(pool.map(lambda u: self._run_one(u, month, int(year)), users))

        results = [i for i in items if i.ok]
        errors = [i for i in items if not i.ok]
        logger.info(f"Bulk payroll {month}: {len(users)} users, {len(results)} ok, {len(errors)} failed")

        return BulkPayrollReport(
            month=month,
            year=int(year),
            total_users=len(users),
            successful=len(results),
            failed=len(errors),
            results=results,
            errors=errors,
        )
