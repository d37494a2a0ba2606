"""Environment-driven settings for the store client and CLI.

Recognised variables:

* ``RELSTORE_DB_PATH``: default database path (``addressbook.db``).
* ``RELSTORE_PRAGMAS``: comma separated ``key=value`` pragmas applied on open,
  e.g. ``foreign_keys=on,busy_timeout_ms=5000``.
* ``RELSTORE_VALIDATE_IDENTIFIERS``: reject table names that are not plain
  SQL identifiers.
* ``RELSTORE_LOG_DIR``: directory for rotating log files.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from relstore.sqlite.utils import SUPPORTED_PRAGMAS

log = logging.getLogger(__name__)

__all__ = ["DEFAULT_DB_PATH", "StoreSettings", "load_settings", "reload"]

DEFAULT_DB_PATH = "addressbook.db"

_FALSE_VALUES = {"0", "false", "off", "no", "disable", "disabled"}
_TRUE_VALUES = {"1", "true", "on", "yes", "enable", "enabled"}


@dataclass(frozen=True)
class StoreSettings:
    db_path: str = DEFAULT_DB_PATH
    pragmas: Mapping[str, str] = field(default_factory=dict)
    validate_identifiers: bool = False
    log_dir: Path | None = None


def _parse_bool(value: str) -> bool | None:
    normalised = value.strip().lower()
    if normalised in _TRUE_VALUES:
        return True
    if normalised in _FALSE_VALUES:
        return False
    return None


def _tokenise(raw: str) -> Iterable[str]:
    for token in raw.split(","):
        clean = token.strip()
        if clean:
            yield clean


def _parse_pragmas(raw: str) -> dict[str, str]:
    pragmas: dict[str, str] = {}
    for token in _tokenise(raw):
        if "=" not in token:
            log.warning("Ignoring pragma without a value: %r", token)
            continue
        key, value = token.split("=", 1)
        key = key.strip().lower()
        if key not in SUPPORTED_PRAGMAS:
            log.warning("Ignoring unsupported pragma: %r", key)
            continue
        pragmas[key] = value.strip()
    return pragmas


@lru_cache(maxsize=1)
def _cached_settings() -> StoreSettings:
    env = os.environ
    log_dir = env.get("RELSTORE_LOG_DIR", "").strip()
    return StoreSettings(
        db_path=env.get("RELSTORE_DB_PATH", "").strip() or DEFAULT_DB_PATH,
        pragmas=_parse_pragmas(env.get("RELSTORE_PRAGMAS", "")),
        validate_identifiers=bool(_parse_bool(env.get("RELSTORE_VALIDATE_IDENTIFIERS", ""))),
        log_dir=Path(log_dir).expanduser() if log_dir else None,
    )


def load_settings() -> StoreSettings:
    """Return settings parsed from the environment (cached)."""

    return _cached_settings()


def reload() -> None:
    """Clear the cached settings (useful for tests)."""

    _cached_settings.cache_clear()
