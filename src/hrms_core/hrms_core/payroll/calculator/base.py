from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class SalaryFigures:
    base_salary: float
    per_day_salary: float
    salary_deduction: float
    final_salary: float


class SalaryCalculator(ABC):
    """Calculator interface (Strategy Pattern for the salary formula)."""

    @abstractmethod
    def compute(self, *, base_salary: float, working_days: int, half_days: int, absent_days: int) -> SalaryFigures:
        raise NotImplementedError
