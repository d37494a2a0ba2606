# RelStore
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Logging configuration with optional file rotation."""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

APP_NAME = "RelStore"

DETAILED_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
SIMPLE_FORMAT = "%(levelname)-8s | %(name)s | %(message)s"


def setup_logging(
    console_level: int = logging.WARNING,
    *,
    log_to_file: bool = False,
    log_dir: str | os.PathLike[str] | None = None,
) -> Path | None:
    """
    Configure the ``relstore`` logger.

    Console output always goes to stderr at ``console_level``. When
    ``log_to_file`` is set, two rotating files are written as well:
    - relstore.log: DEBUG+ messages (10 MB per file, 5 rotations)
    - errors.log: ERROR+ messages only (5 MB per file, 3 rotations)

    Args:
        console_level: Minimum level for console output
        log_to_file: Enable the rotating file handlers
        log_dir: Directory for log files (default: platform log directory)

    Returns:
        Path to the log directory, or None when file logging is disabled
    """
    store_logger = logging.getLogger("relstore")
    store_logger.setLevel(logging.DEBUG)
    # Safe to call more than once
    for handler in list(store_logger.handlers):
        store_logger.removeHandler(handler)
        handler.close()

    detailed_formatter = logging.Formatter(DETAILED_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    simple_formatter = logging.Formatter(SIMPLE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(simple_formatter)
    store_logger.addHandler(console_handler)

    if not log_to_file:
        return None

    directory = Path(log_dir) if log_dir is not None else get_log_directory()
    directory.mkdir(parents=True, exist_ok=True)

    app_log_path = directory / "relstore.log"
    app_handler = RotatingFileHandler(
        app_log_path,
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding="utf-8",
    )
    app_handler.setLevel(logging.DEBUG)
    app_handler.setFormatter(detailed_formatter)
    store_logger.addHandler(app_handler)

    error_log_path = directory / "errors.log"
    error_handler = RotatingFileHandler(
        error_log_path,
        maxBytes=5 * 1024 * 1024,  # 5 MB
        backupCount=3,
        encoding="utf-8",
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(detailed_formatter)
    store_logger.addHandler(error_handler)

    log = logging.getLogger(__name__)
    log.debug(f"{APP_NAME} logging initialized")
    log.debug(f"Main log: {app_log_path}")
    log.debug(f"Error log: {error_log_path}")

    return directory


def get_log_directory(app_name: str = APP_NAME) -> Path:
    """
    Get platform-specific log directory.

    - Windows: %LOCALAPPDATA%\\AppName\\logs
    - macOS: ~/Library/Logs/AppName
    - Linux: ~/.local/share/AppName/logs
    """
    home = Path.home()

    if sys.platform == "win32":
        base = Path(os.environ.get("LOCALAPPDATA", home / "AppData" / "Local"))
        return base / app_name / "logs"

    elif sys.platform == "darwin":
        return home / "Library" / "Logs" / app_name

    else:
        xdg_data_home = os.environ.get("XDG_DATA_HOME", home / ".local" / "share")
        return Path(xdg_data_home) / app_name / "logs"
