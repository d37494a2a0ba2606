"""Whole-database copy helpers built on SQLite's online backup API."""

from __future__ import annotations

import contextlib
import logging
import os
import sqlite3
import tempfile
from pathlib import Path

log = logging.getLogger(__name__)

__all__ = [
    "checkpoint_full",
    "set_delete_mode",
    "vacuum_optimize",
    "delete_sidecars",
    "backup_database",
]


def checkpoint_full(conn: sqlite3.Connection) -> None:
    """Request a FULL WAL checkpoint, ignoring unsupported configurations."""

    with contextlib.suppress(sqlite3.Error):
        conn.execute("PRAGMA wal_checkpoint(FULL)")


def set_delete_mode(conn: sqlite3.Connection) -> None:
    with contextlib.suppress(sqlite3.Error):
        conn.execute("PRAGMA journal_mode=DELETE")


def vacuum_optimize(conn: sqlite3.Connection) -> None:
    """VACUUM and optimize the database copy."""

    with contextlib.suppress(sqlite3.Error):
        conn.execute("VACUUM")
    with contextlib.suppress(sqlite3.Error):
        conn.execute("PRAGMA optimize")


def delete_sidecars(path: str | os.PathLike[str]) -> None:
    """Remove ``-wal``/``-shm`` files adjacent to ``path`` if present."""

    base = str(Path(path))
    for suffix in ("-wal", "-shm"):
        try:
            os.remove(base + suffix)
        except FileNotFoundError:
            continue


def backup_database(conn: sqlite3.Connection, dst_path: str | os.PathLike[str]) -> Path:
    """Copy the database behind ``conn`` into ``dst_path``.

    The copy is written to a temporary file next to the destination and moved
    into place once complete, so a failed backup never leaves a partial file.
    """

    dst = Path(dst_path)
    dst.parent.mkdir(parents=True, exist_ok=True)
    checkpoint_full(conn)
    with tempfile.NamedTemporaryFile(
        prefix=dst.name + ".", suffix=".tmp", dir=dst.parent, delete=False
    ) as tmp:
        tmp_path = tmp.name
    try:
        target = sqlite3.connect(tmp_path, isolation_level=None)
        try:
            conn.backup(target)
            set_delete_mode(target)
            vacuum_optimize(target)
        finally:
            target.close()
        delete_sidecars(tmp_path)
        os.replace(tmp_path, dst)
    finally:
        if os.path.exists(tmp_path):
            with contextlib.suppress(OSError):
                os.remove(tmp_path)
    delete_sidecars(dst)
    log.info("Database copied to %s", dst)
    return dst
