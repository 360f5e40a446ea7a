from __future__ import annotations

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class PresentStrategy(AttendanceStrategy):
    """Full day: at least PRESENT_MIN_HOURS worked."""

    def decide_checkout(self, *, work_hours: float) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)
