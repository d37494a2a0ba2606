"""
Connection helpers for the store client.

Opening connections, applying pragmas, cursor and transaction context managers.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import Any, cast
from urllib.parse import quote

__all__ = ["MEMORY", "open_db", "set_pragmas", "db_cursor", "transaction", "SUPPORTED_PRAGMAS"]

MEMORY = ":memory:"

SUPPORTED_PRAGMAS = (
    "foreign_keys",
    "journal_mode",
    "synchronous",
    "temp_store",
    "cache_size",
    "busy_timeout_ms",
)


# ---- Connections ------------------------------------------------------------


def open_db(
    path: str | Path,
    *,
    mode: str = "rwc",
    pragmas: Mapping[str, object] | None = None,
) -> sqlite3.Connection:
    """
    Open a SQLite database in autocommit mode.

    mode: "ro" (read-only), "rw", "rwc" (create if needed). Default: "rwc".
    Every statement commits on its own unless wrapped in :func:`transaction`.
    """
    target = str(path)
    if target == MEMORY:
        conn = sqlite3.connect(MEMORY, check_same_thread=False, isolation_level=None)
    else:
        if mode == "rwc":
            Path(target).parent.mkdir(parents=True, exist_ok=True)
        uri = f"file:{quote(Path(target).as_posix())}?mode={mode}"
        conn = sqlite3.connect(uri, uri=True, check_same_thread=False, isolation_level=None)
    conn.row_factory = sqlite3.Row
    if pragmas:
        try:
            set_pragmas(conn, pragmas)
        except Exception:
            conn.close()
            raise
    return conn


def _to_int(value: object) -> int:
    """Best-effort conversion to ``int`` for numeric pragmas."""

    return int(cast(Any, value))


def set_pragmas(conn: sqlite3.Connection, opts: Mapping[str, object]) -> None:
    """Apply selected pragmas.

    Only keys present in ``opts`` are applied; unknown keys are ignored.
    """

    norm = {str(key).lower(): value for key, value in opts.items()}
    for key, value in norm.items():
        if key == "foreign_keys":
            enabled = value if isinstance(value, bool) else str(value).lower() in ("1", "on", "true", "yes")
            conn.execute(f"PRAGMA foreign_keys={'ON' if enabled else 'OFF'}")
        elif key == "journal_mode":
            conn.execute(f"PRAGMA journal_mode={value}")
        elif key == "synchronous":
            conn.execute(f"PRAGMA synchronous={value}")
        elif key == "temp_store":
            conn.execute(f"PRAGMA temp_store={value}")
        elif key == "cache_size":
            conn.execute(f"PRAGMA cache_size={_to_int(value)}")
        elif key == "busy_timeout_ms":
            conn.execute(f"PRAGMA busy_timeout={_to_int(value)}")


# ---- Cursors / Transactions -------------------------------------------------


@contextmanager
def db_cursor(conn: sqlite3.Connection) -> Iterator[sqlite3.Cursor]:
    """Context manager that closes the cursor after use."""

    cur = conn.cursor()
    try:
        yield cur
    finally:
        cur.close()


@contextmanager
def transaction(
    conn: sqlite3.Connection,
    *,
    begin: str = "BEGIN IMMEDIATE",
) -> Iterator[sqlite3.Connection]:
    """
    Transaction wrapper that commits on success and rolls back on error.
    Uses BEGIN IMMEDIATE by default to take the write lock up front.
    """

    conn.execute(begin)
    try:
        yield conn
        conn.execute("COMMIT")
    except BaseException:
        # SQLite may already have rolled back on some errors
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise
