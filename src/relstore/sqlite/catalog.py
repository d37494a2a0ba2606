"""
Catalog queries and table-name helpers.

All functions take an open connection and let ``sqlite3.Error`` propagate;
callers decide whether to raise or log.
"""

from __future__ import annotations

import re
import sqlite3
from datetime import datetime

__all__ = [
    "BACKUP_TIMESTAMP_FORMAT",
    "backup_table_name",
    "is_backup_of",
    "is_identifier",
    "quote_identifier",
    "table_exists",
    "list_tables",
    "table_columns",
    "row_count",
]

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def is_identifier(name: str) -> bool:
    return bool(name) and _IDENTIFIER_RE.fullmatch(name) is not None


def quote_identifier(name: str) -> str:
    """Quote ``name`` for use as a SQL identifier."""

    return '"' + name.replace('"', '""') + '"'


def backup_table_name(table_name: str, now: datetime | None = None) -> str:
    """Return ``<table>_backup_<YYYYMMDDHHMMSS>`` for the given moment."""

    stamp = (now or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)
    return f"{table_name}_backup_{stamp}"


def is_backup_of(candidate: str, table_name: str) -> bool:
    prefix = f"{table_name}_backup_"
    if not candidate.startswith(prefix):
        return False
    stamp = candidate[len(prefix):]
    return len(stamp) == 14 and stamp.isdigit()


def table_exists(conn: sqlite3.Connection, table_name: str) -> bool:
    row = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=:name",
        {"name": table_name},
    ).fetchone()
    return row is not None


def list_tables(conn: sqlite3.Connection) -> list[str]:
    """Return user table names, sorted."""

    rows = conn.execute(
        """
        SELECT name
          FROM sqlite_master
         WHERE type = 'table'
           AND name NOT LIKE 'sqlite_%'
         ORDER BY name
        """
    ).fetchall()
    return [str(row[0]) for row in rows]


def table_columns(conn: sqlite3.Connection, table_name: str) -> list[str]:
    """Return column names of ``table_name`` in declaration order."""

    rows = conn.execute(
        "SELECT name FROM pragma_table_info(?) ORDER BY cid", (table_name,)
    ).fetchall()
    return [str(row[0]) for row in rows]


def row_count(conn: sqlite3.Connection, table_name: str) -> int:
    row = conn.execute(f"SELECT COUNT(*) FROM {quote_identifier(table_name)}").fetchone()
    return int(row[0])
