from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Caller role used for authorization."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class AttendanceStatus(str, Enum):
    """Day classification derived from hours worked."""

    PRESENT = "PRESENT"
    HALF_DAY = "HALF_DAY"
    ABSENT = "ABSENT"


class LeaveStatus(str, Enum):
    """Leave request lifecycle.

    CANCELLED is never stored: a cancelled request is deleted.
    """

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class OverdraftPolicy(str, Enum):
    """What approval does when paid days exceed the live leave balance."""

    RESPLIT = "resplit"
    REJECT = "reject"
