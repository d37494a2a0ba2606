# RelStore
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Public package interface for RelStore."""

from relstore.client import RelationalStoreClient
from relstore.config import StoreSettings, load_settings
from relstore.errors import (
    ClientClosedError,
    ConnectionError,
    InvalidIdentifierError,
    InvalidModeError,
    QueryError,
    StoreError,
    TableOutcome,
    TableResult,
)
from relstore.logging_config import setup_logging

__version__ = "0.1.0"

__all__ = [
    "RelationalStoreClient",
    "StoreSettings",
    "load_settings",
    "setup_logging",
    "StoreError",
    "ConnectionError",
    "ClientClosedError",
    "QueryError",
    "InvalidModeError",
    "InvalidIdentifierError",
    "TableOutcome",
    "TableResult",
]
