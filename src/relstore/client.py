# RelStore
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""
Command-dispatch client over a single SQLite database.

``execute`` runs parameterized reads and writes and raises typed errors.
``manage_table`` handles table lifecycle (create, drop, backup, exists) and
never raises: failures are logged and reported as ``False``.

Table and column names are interpolated into DDL as given. Callers must pass
trusted identifiers, or construct the client with
``validate_identifiers=True`` to reject anything that is not a plain name.

Usage:
    with RelationalStoreClient("addressbook.db") as db:
        db.manage_table("contacts", "id INTEGER PRIMARY KEY, name TEXT", "create")
        db.execute("INSERT INTO contacts (name) VALUES (:name)", {":name": "Ann"}, "insert")
        rows = db.execute("SELECT * FROM contacts")
"""

from __future__ import annotations

import logging
import os
import sqlite3
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager, suppress
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd

from relstore.config import StoreSettings, load_settings
from relstore.errors import (
    ClientClosedError,
    ConnectionError,
    InvalidIdentifierError,
    InvalidModeError,
    QueryError,
    TableOutcome,
    TableResult,
)
from relstore.sqlite import catalog as _catalog
from relstore.sqlite.backup import backup_database as _backup_database
from relstore.sqlite.utils import db_cursor, open_db
from relstore.sqlite.utils import transaction as _transaction

log = logging.getLogger(__name__)

__all__ = [
    "RelationalStoreClient",
    "READ_MODES",
    "WRITE_MODES",
    "TABLE_ACTIONS",
]

READ_MODES = ("read", "select")
WRITE_MODES = ("insert", "update", "delete")
ALLOWED_MODES = ("read", "insert", "update", "delete")
TABLE_ACTIONS = ("create", "drop", "backup", "exists")

Params = Mapping[Any, Any] | Sequence[Any] | None


def _local_now() -> datetime:
    return datetime.now()


def _bind_params(params: Params) -> Mapping[str, Any] | tuple[Any, ...]:
    """Normalise caller parameters into something ``sqlite3`` can bind.

    Named keys may carry a ``:``, ``@`` or ``$`` prefix. Integer-keyed
    mappings are treated as positional and ordered by key.
    """

    if params is None:
        return ()
    if isinstance(params, Mapping):
        if params and all(isinstance(key, int) for key in params):
            return tuple(params[key] for key in sorted(params))
        return {str(key).lstrip(":@$"): value for key, value in params.items()}
    if isinstance(params, (str, bytes)):
        raise TypeError("params must be a mapping or a sequence, not a string")
    return tuple(params)


class RelationalStoreClient:
    """Owns one SQLite connection and dispatches statements over it."""

    def __init__(
        self,
        db_path: str | os.PathLike[str],
        *,
        pragmas: Mapping[str, object] | None = None,
        validate_identifiers: bool = False,
    ) -> None:
        self.db_path = str(db_path)
        self.validate_identifiers = validate_identifiers
        self._conn: sqlite3.Connection | None = None
        try:
            self._conn = open_db(self.db_path, pragmas=pragmas)
        except (sqlite3.Error, OSError, ValueError, TypeError) as exc:
            raise ConnectionError(f"Database connection failed: {exc}") from exc
        log.debug("Opened database %s", self.db_path)

    @classmethod
    def from_settings(cls, settings: StoreSettings | None = None) -> RelationalStoreClient:
        """Build a client from environment settings."""

        settings = settings or load_settings()
        return cls(
            settings.db_path,
            pragmas=settings.pragmas,
            validate_identifiers=settings.validate_identifiers,
        )

    # ------------------------------------------------------------------ #
    # Lifecycle                                                          #
    # ------------------------------------------------------------------ #
    @property
    def closed(self) -> bool:
        return self._conn is None

    def close(self) -> None:
        """Close the connection. Calling it again is a no-op."""

        conn, self._conn = self._conn, None
        if conn is not None:
            conn.close()
            log.debug("Closed database %s", self.db_path)

    def __del__(self) -> None:
        with suppress(Exception):
            self.close()

    def __enter__(self) -> RelationalStoreClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<RelationalStoreClient {self.db_path!r} ({state})>"

    def _require_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise ClientClosedError()
        return self._conn

    # ------------------------------------------------------------------ #
    # Data operations (raise on failure)                                 #
    # ------------------------------------------------------------------ #
    def execute(self, sql: str, params: Params = None, mode: str = "read") -> list[dict[str, Any]] | int:
        """
        Run ``sql`` with ``params`` according to ``mode``.

        Args:
            sql: A single SQL statement
            params: Named mapping or positional sequence of scalar values
            mode: ``read`` (alias ``select``), ``insert``, ``update`` or ``delete``

        Returns:
            For reads, every result row as a ``dict``; for writes, the number
            of affected rows.

        Raises:
            InvalidModeError: ``mode`` is not recognised (nothing is executed)
            QueryError: the statement failed to prepare or execute
            ClientClosedError: the client was closed
            TypeError: ``params`` is a string rather than a mapping or sequence
        """
        action = str(mode).strip().lower()
        if action not in READ_MODES and action not in WRITE_MODES:
            raise InvalidModeError(str(mode), ALLOWED_MODES)

        conn = self._require_conn()
        bound = _bind_params(params)
        try:
            with db_cursor(conn) as cur:
                cur.execute(sql, bound)
                if action in READ_MODES:
                    return [dict(row) for row in cur.fetchall()]
                affected = max(cur.rowcount, 0)
        except (sqlite3.Error, sqlite3.Warning) as exc:
            log.debug("Query failed (%s): %s", action, sql, exc_info=True)
            raise QueryError(f"Query execution failed: {exc}", sql=sql) from exc

        log.debug("%s affected %d row(s)", action, affected)
        return affected

    def last_insert_id(self) -> str:
        """Return the row id assigned by the latest insert on this connection.

        Returns ``"0"`` when nothing has been inserted yet. The value is not
        tied to a particular ``execute`` call, so read it right after the
        insert it belongs to.
        """

        conn = self._require_conn()
        row = conn.execute("SELECT last_insert_rowid()").fetchone()
        return str(row[0])

    def read_frame(self, sql: str, params: Params = None) -> pd.DataFrame:
        """Run a read query and return the result as a DataFrame."""

        conn = self._require_conn()
        bound = _bind_params(params)
        try:
            with db_cursor(conn) as cur:
                cur.execute(sql, bound)
                columns = [desc[0] for desc in cur.description or ()]
                records = [tuple(row) for row in cur.fetchall()]
        except (sqlite3.Error, sqlite3.Warning) as exc:
            raise QueryError(f"Query execution failed: {exc}", sql=sql) from exc
        return pd.DataFrame.from_records(records, columns=columns)

    @contextmanager
    def transaction(self) -> Iterator[RelationalStoreClient]:
        """Group statements into one transaction.

        Commits when the block exits cleanly, rolls back and re-raises
        otherwise.
        """

        conn = self._require_conn()
        with _transaction(conn):
            yield self

    def list_tables(self) -> list[str]:
        return self._inspect(_catalog.list_tables)

    def list_backups(self, table_name: str) -> list[str]:
        """Return backup tables of ``table_name``, oldest first."""

        names = self._inspect(_catalog.list_tables)
        return sorted(name for name in names if _catalog.is_backup_of(name, table_name))

    def table_columns(self, table_name: str) -> list[str]:
        return self._inspect(_catalog.table_columns, table_name)

    def row_count(self, table_name: str) -> int:
        return self._inspect(_catalog.row_count, table_name)

    def backup_database(self, dst_path: str | os.PathLike[str]) -> Path:
        """Copy the whole database file to ``dst_path``."""

        conn = self._require_conn()
        try:
            return _backup_database(conn, dst_path)
        except sqlite3.Error as exc:
            raise QueryError(f"Database backup failed: {exc}") from exc

    def _inspect(self, func, *args):
        conn = self._require_conn()
        try:
            return func(conn, *args)
        except sqlite3.Error as exc:
            raise QueryError(f"Query execution failed: {exc}") from exc

    # ------------------------------------------------------------------ #
    # Table lifecycle (log and return False on failure)                  #
    # ------------------------------------------------------------------ #
    def manage_table(self, table_name: str, columns: str = "", action: str = "create") -> bool:
        """
        Create, drop, back up or check a table.

        Args:
            table_name: Table to act on
            columns: Column definitions, only used by ``create``
                (e.g. "id INTEGER PRIMARY KEY, name TEXT")
            action: ``create``, ``drop``, ``backup`` or ``exists``

        Returns:
            True on success, False on any failure (see the log for details)
        """
        return self.manage_table_result(table_name, columns, action).ok

    def manage_table_result(self, table_name: str, columns: str = "", action: str = "create") -> TableResult:
        """Same as :meth:`manage_table` but reports why an action failed."""

        verb = str(action or "").strip().lower() or "exists"
        if verb not in TABLE_ACTIONS:
            detail = (
                f"Invalid table action specified: '{action}'. Allowed actions are "
                + ", ".join(f"'{name}'" for name in TABLE_ACTIONS)
                + "."
            )
            log.error(detail)
            return TableResult(verb, table_name, TableOutcome.INVALID_ACTION, detail)

        if verb == "exists":
            if self.table_exists(table_name):
                return TableResult(verb, table_name, TableOutcome.OK)
            return TableResult(verb, table_name, TableOutcome.NOT_FOUND)

        if self.validate_identifiers and not _catalog.is_identifier(table_name):
            detail = str(InvalidIdentifierError(table_name))
            log.error("Refusing to %s table: %s", verb, detail)
            return TableResult(verb, table_name, TableOutcome.INVALID_IDENTIFIER, detail)

        if self._conn is None:
            detail = str(ClientClosedError())
            log.error("Cannot %s table '%s': %s", verb, table_name, detail)
            return TableResult(verb, table_name, TableOutcome.ENGINE_ERROR, detail)

        if verb == "create":
            return self._create_table(table_name, columns)
        if verb == "drop":
            return self._drop_table(table_name)
        return self._backup_table(table_name)

    def table_exists(self, table_name: str) -> bool:
        """Return whether ``table_name`` exists.

        Engine errors are logged and reported as ``False``.
        """

        if self._conn is None:
            log.error("Error checking if table '%s' exists: %s", table_name, ClientClosedError())
            return False
        try:
            return _catalog.table_exists(self._conn, table_name)
        except sqlite3.Error as exc:
            log.error("Error checking if table '%s' exists: %s", table_name, exc)
            return False

    def _create_table(self, table_name: str, columns: str) -> TableResult:
        sql = f"CREATE TABLE IF NOT EXISTS {table_name} ({columns})"
        try:
            self._conn.execute(sql)
        except sqlite3.Error as exc:
            log.error("Error creating table '%s': %s", table_name, exc)
            return TableResult("create", table_name, TableOutcome.ENGINE_ERROR, str(exc))
        log.debug("Created table %s (if absent)", table_name)
        return TableResult("create", table_name, TableOutcome.OK)

    def _drop_table(self, table_name: str) -> TableResult:
        try:
            self._conn.execute(f"DROP TABLE IF EXISTS {table_name}")
        except sqlite3.Error as exc:
            log.error("Error dropping table '%s': %s", table_name, exc)
            return TableResult("drop", table_name, TableOutcome.ENGINE_ERROR, str(exc))
        log.debug("Dropped table %s (if present)", table_name)
        return TableResult("drop", table_name, TableOutcome.OK)

    def _backup_table(self, table_name: str) -> TableResult:
        backup_name = _catalog.backup_table_name(table_name, _local_now())
        try:
            self._conn.execute(f"CREATE TABLE {backup_name} AS SELECT * FROM {table_name}")
        except sqlite3.Error as exc:
            log.error("Error backing up table '%s': %s", table_name, exc)
            outcome = TableOutcome.ENGINE_ERROR
            if isinstance(exc, sqlite3.OperationalError) and str(exc).startswith("no such table"):
                outcome = TableOutcome.NOT_FOUND
            return TableResult("backup", table_name, outcome, str(exc), backup_name)
        log.info("Backed up table %s to %s", table_name, backup_name)
        return TableResult("backup", table_name, TableOutcome.OK, target=backup_name)
