from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import mysql.connector
from mysql.connector import errorcode

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def transaction(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Explicit transaction: commit on normal exit, rollback on every other path."""
    conn = conn_factory.connect()
    try:
        conn.start_transaction()
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def is_duplicate_key(err: Exception) -> bool:
    return isinstance(err, mysql.connector.IntegrityError) and getattr(err, "errno", None) == errorcode.ER_DUP_ENTRY


class MySQLRepository:
    """Base for repositories that run standalone or inside a transaction.

    Standalone: each call opens its own connection (db_cursor).
    Bound: every call reuses the transaction's cursor and never commits.
    """

    def __init__(self, conn_factory: Optional[DatabaseConnection] = None, *, cursor=None):
        if conn_factory is None and cursor is None:
            raise ValueError("conn_factory or cursor is required")
        self._conn_factory = conn_factory
        self._bound_cursor = cursor

    @property
    def in_transaction(self) -> bool:
        return self._bound_cursor is not None

    @contextmanager
    def _cursor(self) -> Iterator[Any]:
        if self._bound_cursor is not None:
            yield self._bound_cursor
            return
        with db_cursor(self._conn_factory) as (_, cur):
            yield cur
