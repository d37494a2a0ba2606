# RelStore
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Error types and table-action outcomes for the store client.

Data operations raise the exceptions below. Table-lifecycle operations never
raise; they log and report a :class:`TableResult` (or its boolean ``ok``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

__all__ = [
    "StoreError",
    "ConnectionError",
    "ClientClosedError",
    "QueryError",
    "InvalidModeError",
    "InvalidIdentifierError",
    "TableOutcome",
    "TableResult",
]


class StoreError(Exception):
    """Base class for errors raised by the store client."""


class ConnectionError(StoreError):
    """Raised when the database cannot be opened or created."""


class ClientClosedError(ConnectionError):
    """Raised when an operation is attempted after the client was closed."""

    def __init__(self, message: str = "Database connection is closed"):
        super().__init__(message)


class QueryError(StoreError):
    """Raised when a statement fails to prepare or execute."""

    def __init__(self, message: str, *, sql: str | None = None):
        self.sql = sql
        super().__init__(message)


class InvalidModeError(StoreError, ValueError):
    """Raised when ``execute`` receives an unknown mode."""

    def __init__(self, mode: str, allowed: tuple[str, ...]):
        self.mode = mode
        self.allowed = allowed
        super().__init__(
            f"Invalid mode specified: '{mode}'. Allowed modes are "
            + ", ".join(f"'{name}'" for name in allowed)
            + "."
        )


class InvalidIdentifierError(StoreError, ValueError):
    """Raised when a table name is rejected by identifier validation."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Invalid SQL identifier: {name!r}")


class TableOutcome(str, Enum):
    OK = "ok"
    ENGINE_ERROR = "engine_error"
    INVALID_ACTION = "invalid_action"
    INVALID_IDENTIFIER = "invalid_identifier"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class TableResult:
    """Outcome of a table-lifecycle action.

    ``target`` holds the derived table name for backups. ``detail`` carries
    the engine diagnostic or the reason an action was rejected.
    """

    action: str
    table: str
    outcome: TableOutcome
    detail: str | None = None
    target: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is TableOutcome.OK

    def __bool__(self) -> bool:
        return self.ok
