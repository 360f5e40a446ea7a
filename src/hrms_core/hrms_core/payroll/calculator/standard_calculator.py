from __future__ import annotations

from ...common.numbers import round2
from ...core.constants import HALF_DAY_WEIGHT
from .base import SalaryCalculator, SalaryFigures


class StandardSalaryCalculator(SalaryCalculator):
    """Standard rule: a day's pay per absence, half a day's pay per half day.

    Rounding happens once, on the outputs; the deduction uses the
    unrounded per-day rate.
    """

    def compute(self, *, base_salary: float, working_days: int, half_days: int, absent_days: int) -> SalaryFigures:
        base_salary = float(base_salary)
        if working_days <= 0:
            return SalaryFigures(
                base_salary=round2(base_salary),
                per_day_salary=0.0,
                salary_deduction=0.0,
                final_salary=round2(base_salary),
            )

        per_day = base_salary / working_days
        deduction = absent_days * per_day + half_days * HALF_DAY_WEIGHT * per_day
        return SalaryFigures(
            base_salary=round2(base_salary),
            per_day_salary=round2(per_day),
            salary_deduction=round2(deduction),
            final_salary=round2(base_salary - deduction),
        )
