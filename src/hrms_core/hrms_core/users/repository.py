from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, not on a concrete DB.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_for_update(self, user_id: int) -> Optional[User]:
        """Read the row and hold its lock until the surrounding transaction ends."""

        raise NotImplementedError

    def list_active(self) -> Sequence[User]:
        raise NotImplementedError

    def debit_leave_balance(self, user_id: int, days: float) -> bool:
        raise NotImplementedError
