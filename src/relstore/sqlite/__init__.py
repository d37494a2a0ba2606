from __future__ import annotations

"""
SQLite helpers backing :class:`relstore.client.RelationalStoreClient`.
"""

from .backup import backup_database
from .catalog import backup_table_name, is_identifier, quote_identifier
from .utils import MEMORY, open_db, set_pragmas, transaction

__all__: list[str] = [
    "MEMORY",
    "backup_database",
    "backup_table_name",
    "is_identifier",
    "open_db",
    "quote_identifier",
    "set_pragmas",
    "transaction",
]
