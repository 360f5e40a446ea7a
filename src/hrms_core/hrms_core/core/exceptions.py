class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class ConflictError(DomainError):
    """Raised when an operation violates a uniqueness or state invariant."""


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""


class ForbiddenError(DomainError):
    """Raised when a caller lacks permission for an action."""


# Validation
class InvalidTimeOrder(ValidationError):
    pass


class InvalidDateRange(ValidationError):
    pass


class InvalidMonth(ValidationError):
    pass


class InvalidPagination(ValidationError):
    pass


# Conflicts
class AlreadyCheckedIn(ConflictError):
    pass


class AlreadyCheckedOut(ConflictError):
    pass


class NoCheckInFound(ConflictError):
    pass


class OverlappingLeave(ConflictError):
    pass


class AlreadyProcessed(ConflictError):
    pass


class MissingRejectionReason(ConflictError):
    pass


class NotCancellable(ConflictError):
    pass


class InsufficientLeaveBalance(ConflictError):
    pass


# Not found
class UserNotFound(NotFoundError):
    pass


class LeaveNotFound(NotFoundError):
    pass


class SalaryRecordNotFound(NotFoundError):
    pass


# Forbidden
class Forbidden(ForbiddenError):
    pass
