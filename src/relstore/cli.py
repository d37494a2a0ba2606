from __future__ import annotations

import argparse
import logging
import sys

import pandas as pd

from .client import RelationalStoreClient
from .config import load_settings
from .errors import StoreError
from .logging_config import setup_logging

log = logging.getLogger(__name__)

DEMO_TABLE = "contacts"
DEMO_COLUMNS = "id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT, email TEXT UNIQUE, phone TEXT"
DEMO_CONTACTS = [
    {":name": "John Doe", ":email": "john.doe@example.com", ":phone": "123-456-7890"},
    {":name": "Jane Smith", ":email": "jane.smith@example.com", ":phone": "987-654-3210"},
    {":name": "Peter Jones", ":email": "peter.jones@example.com", ":phone": "555-123-4567"},
]


def _parse_param(raw: str) -> tuple[str, object]:
    if "=" not in raw:
        raise argparse.ArgumentTypeError(f"expected name=value, got {raw!r}")
    key, value = raw.split("=", 1)
    if value.lower() == "null":
        return key, None
    try:
        return key, int(value)
    except ValueError:
        return key, value


def _open(args: argparse.Namespace) -> RelationalStoreClient:
    settings = load_settings()
    return RelationalStoreClient(
        args.db or settings.db_path,
        pragmas=settings.pragmas,
        validate_identifiers=settings.validate_identifiers,
    )


def _print_rows(rows: list[dict]) -> None:
    if not rows:
        print("(no rows)")
        return
    print(pd.DataFrame(rows).to_string(index=False))


def cmd_demo(args: argparse.Namespace) -> int:
    with _open(args) as db:
        if db.manage_table(DEMO_TABLE, DEMO_COLUMNS, "create"):
            print(f"Table '{DEMO_TABLE}' created or already exists.")
        else:
            print(f"Failed to create table '{DEMO_TABLE}'.")

        if db.table_exists(DEMO_TABLE):
            print(f"Table '{DEMO_TABLE}' exists.")
        else:
            print(f"Table '{DEMO_TABLE}' does not exist.")

        insert_sql = f"INSERT INTO {DEMO_TABLE} (name, email, phone) VALUES (:name, :email, :phone)"
        for params in DEMO_CONTACTS:
            if db.execute(insert_sql, params, "insert") > 0:
                print(f"Inserted contact with ID: {db.last_insert_id()}")
            else:
                print("Failed to insert contact.")

        print("Contacts:")
        _print_rows(db.execute(f"SELECT * FROM {DEMO_TABLE}"))

        updated = db.execute(
            f"UPDATE {DEMO_TABLE} SET phone = :phone WHERE id = :id",
            {":phone": "111-222-3333", ":id": 1},
            "update",
        )
        print(f"Updated {updated} rows.")

        deleted = db.execute(f"DELETE FROM {DEMO_TABLE} WHERE id = :id", {":id": 3}, "delete")
        print(f"Deleted {deleted} rows.")

        result = db.manage_table_result(DEMO_TABLE, action="backup")
        if result:
            print(f"Table '{DEMO_TABLE}' backed up to '{result.target}'.")
        else:
            print(f"Failed to backup table '{DEMO_TABLE}'.")
    return 0


def cmd_query(args: argparse.Namespace) -> int:
    with _open(args) as db:
        _print_rows(db.execute(args.sql, dict(args.param), "read"))
    return 0


def cmd_exec(args: argparse.Namespace) -> int:
    with _open(args) as db:
        affected = db.execute(args.sql, dict(args.param), args.mode)
        print(f"{affected} row(s) affected")
        if args.mode == "insert" and affected:
            print(f"Last insert id: {db.last_insert_id()}")
    return 0


def cmd_table(args: argparse.Namespace) -> int:
    with _open(args) as db:
        result = db.manage_table_result(args.name, args.columns, args.action)
    if result:
        suffix = f" -> {result.target}" if result.target else ""
        print(f"{result.action} {result.table}: ok{suffix}")
        return 0
    print(f"{result.action} {result.table}: {result.outcome.value}", file=sys.stderr)
    return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser("relstore")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logging")
    parser.add_argument("--log-file", action="store_true", help="Also write rotating log files")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("demo", help="Run the address book walk-through")
    sp.add_argument("db", nargs="?")
    sp.set_defaults(func=cmd_demo)

    sp = sub.add_parser("query", help="Print the rows of a read query")
    sp.add_argument("db")
    sp.add_argument("sql")
    sp.add_argument("-p", "--param", type=_parse_param, action="append", default=[])
    sp.set_defaults(func=cmd_query)

    sp = sub.add_parser("exec", help="Run an insert, update or delete")
    sp.add_argument("db")
    sp.add_argument("sql")
    sp.add_argument("--mode", choices=["insert", "update", "delete"], required=True)
    sp.add_argument("-p", "--param", type=_parse_param, action="append", default=[])
    sp.set_defaults(func=cmd_exec)

    sp = sub.add_parser("table", help="Create, drop, back up or check a table")
    sp.add_argument("db")
    sp.add_argument("name")
    sp.add_argument("--action", choices=["create", "drop", "backup", "exists"], default="exists")
    sp.add_argument("--columns", default="")
    sp.set_defaults(func=cmd_table)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    settings = load_settings()
    setup_logging(
        logging.DEBUG if args.verbose else logging.WARNING,
        log_to_file=args.log_file,
        log_dir=settings.log_dir,
    )

    try:
        return args.func(args)
    except StoreError as exc:
        log.debug("Command %s failed", args.cmd, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
