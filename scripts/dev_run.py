#!/usr/bin/env python3
"""Convenience launcher for running the address book demo during development."""

from __future__ import annotations

import argparse
import os
import tempfile
from pathlib import Path

from relstore import config
from relstore.cli import main as cli_main


def _apply_pragma_overrides(raw: str | None) -> None:
    if raw is None:
        return
    os.environ["RELSTORE_PRAGMAS"] = raw
    config.reload()


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the RelStore demo locally.")
    parser.add_argument(
        "--db",
        type=str,
        help="Database to use (default: a fresh file in a temporary directory).",
    )
    parser.add_argument(
        "--pragmas",
        metavar="PRAGMAS",
        help="Comma-separated key=value pragmas (RELSTORE_PRAGMAS syntax).",
    )
    args = parser.parse_args()

    _apply_pragma_overrides(args.pragmas)

    if args.db:
        return cli_main(["--verbose", "demo", str(Path(args.db).expanduser())])

    with tempfile.TemporaryDirectory(prefix="relstore-") as tmp:
        return cli_main(["--verbose", "demo", str(Path(tmp) / "addressbook.db")])


if __name__ == "__main__":
    raise SystemExit(main())
