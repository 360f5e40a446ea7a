from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import ContextManager, Iterator, Protocol

from ..leaves.mysql_leave_repository import MySQLLeaveRepository
from ..leaves.repository import LeaveRepository
from ..users.mysql_user_repository import MySQLUserRepository
from ..users.repository import UserRepository
from .connection import DatabaseConnection
from .mysql_base import transaction


@dataclass(frozen=True)
class TransactionContext:
    """Repositories sharing one open transaction."""

    users: UserRepository
    leaves: LeaveRepository


class TransactionScope(Protocol):
    def begin(self) -> ContextManager[TransactionContext]:
        raise NotImplementedError


class MySQLTransactionScope(TransactionScope):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @contextmanager
    def begin(self) -> Iterator[TransactionContext]:
        with transaction(self._conn_factory) as (_, cur):
            yield TransactionContext(
                users=MySQLUserRepository(cursor=cur),
                leaves=MySQLLeaveRepository(cursor=cur),
            )
