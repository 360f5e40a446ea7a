from __future__ import annotations

from dataclasses import dataclass

from ..core.constants import HALF_DAY_MIN_HOURS, PRESENT_MIN_HOURS
from ..core.enums import AttendanceStatus
from .strategies.absent_strategy import AbsentStrategy
from .strategies.base import AttendanceStrategy
from .strategies.half_day_strategy import HalfDayStrategy
from .strategies.present_strategy import PresentStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on hours worked."""

    present_min_hours: float = PRESENT_MIN_HOURS
    half_day_min_hours: float = HALF_DAY_MIN_HOURS

    def for_checkout(self, *, work_hours: float) -> AttendanceStrategy:
        if work_hours >= self.present_min_hours:
            return PresentStrategy()
        if work_hours >= self.half_day_min_hours:
            return HalfDayStrategy()
        return AbsentStrategy()


def classify_work_hours(work_hours: float) -> AttendanceStatus:
    """The attendance status rule: >=4.0 PRESENT, >=2.0 HALF_DAY, else ABSENT."""
    strategy = AttendanceStrategyFactory().for_checkout(work_hours=work_hours)
    return strategy.decide_checkout(work_hours=work_hours).status
