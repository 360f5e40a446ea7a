from __future__ import annotations

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class HalfDayStrategy(AttendanceStrategy):
    """Half day: between HALF_DAY_MIN_HOURS (inclusive) and PRESENT_MIN_HOURS."""

    def decide_checkout(self, *, work_hours: float) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.HALF_DAY)
