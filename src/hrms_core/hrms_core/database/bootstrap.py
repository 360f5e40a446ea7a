"""Apply database/schema.sql and database/seed.sql with mysql-connector."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, List, Optional

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)

# The target database comes from DB_CONFIG, never from the script.
_DB_SELECTION = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b[^;]*;\s*$")


def split_sql_statements(sql: str) -> Iterator[str]:
    """Yield ';'-terminated statements, ignoring ';' inside quotes and '--' comment lines."""
    sql = _DB_SELECTION.sub("", sql)
    sql = "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))

    buf: List[str] = []
    quote: Optional[str] = None
    escaped = False

    for ch in sql:
        if escaped:
            escaped = False
        elif ch == "\\" and quote:
            escaped = True
        elif ch in ("'", '"', "`"):
            if quote is None:
                quote = ch
            elif quote == ch:
                quote = None
        elif ch == ";" and quote is None:
            stmt = "".join(buf).strip()
            buf = []
            if stmt:
                yield stmt
            continue
        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _connect(target: DBConfig, *, with_database: bool = True):
    params = {
        "host": target.host,
        "port": target.port,
        "user": target.user,
        "password": target.password,
        "use_pure": True,
    }
    if with_database:
        params["database"] = target.database
    return mysql.connector.connect(**params)


def _run_script(db_config: dict, sql: str) -> int:
    conn = _connect(DBConfig.from_dict(db_config))
    count = 0
    try:
        cur = conn.cursor()
        for stmt in split_sql_statements(sql):
            cur.execute(stmt)
            count += 1
        conn.commit()
    finally:
        conn.close()
    return count


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target, with_database=False)
    try:
        conn.cursor().execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    count = _run_script(db_config, Path(schema_path).read_text(encoding="utf-8"))
    logger.debug(f"Applied {count} schema statement(s) from {schema_path}")


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    count = _run_script(db_config, Path(seed_path).read_text(encoding="utf-8"))
    logger.debug(f"Applied {count} seed statement(s) from {seed_path}")


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return sorted(row[0] for row in cur.fetchall())
    finally:
        conn.close()
