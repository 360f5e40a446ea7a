from __future__ import annotations

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class AbsentStrategy(AttendanceStrategy):
    """Checked in and out, but too briefly to count."""

    def decide_checkout(self, *, work_hours: float) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.ABSENT)
