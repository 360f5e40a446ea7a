from __future__ import annotations

from typing import Optional, Protocol, Sequence, Tuple

from ..common.pagination import Page, PageRequest
from .model import SalaryListRow, SalaryRecord


class SalaryRepository(Protocol):
    def get_for_user_month(self, user_id: int, month: str) -> Optional[SalaryRecord]:
        raise NotImplementedError

    def create_if_absent(self, record: SalaryRecord) -> Tuple[SalaryRecord, bool]:
        """Insert unless (user_id, month) exists.

        Returns the stored record and whether this call created it. When a
        concurrent caller won, their record is returned untouched.
        """

        raise NotImplementedError

    def get_by_id(self, salary_id: int) -> Optional[SalaryRecord]:
        raise NotImplementedError

    def page(
        self,
        page: PageRequest,
        *,
        month: Optional[str] = None,
        year: Optional[int] = None,
        department: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Page[SalaryListRow]:
        raise NotImplementedError

    def list_for_summary(self, *, month: Optional[str] = None, year: Optional[int] = None) -> Sequence[SalaryListRow]:
        raise NotImplementedError
