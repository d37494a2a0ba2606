import gc
import sqlite3
from pathlib import Path

import pandas as pd
import pytest

from relstore.client import RelationalStoreClient
from relstore.errors import (
    ClientClosedError,
    ConnectionError,
    InvalidModeError,
    QueryError,
    StoreError,
)

COLUMNS = "id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT, email TEXT UNIQUE, phone TEXT"
INSERT_SQL = "INSERT INTO contacts (name, email, phone) VALUES (:name, :email, :phone)"
CONTACTS = [
    {":name": "John Doe", ":email": "john.doe@example.com", ":phone": "123-456-7890"},
    {":name": "Jane Smith", ":email": "jane.smith@example.com", ":phone": "987-654-3210"},
    {":name": "Peter Jones", ":email": "peter.jones@example.com", ":phone": "555-123-4567"},
]


def _make_client(tmp_path: Path) -> RelationalStoreClient:
    db = RelationalStoreClient(tmp_path / "addressbook.db")
    assert db.manage_table("contacts", COLUMNS, "create")
    return db


def _count(db: RelationalStoreClient) -> int:
    return db.execute("SELECT COUNT(*) AS n FROM contacts")[0]["n"]


def test_contacts_scenario(tmp_path):
    db = _make_client(tmp_path)
    for params in CONTACTS:
        assert db.execute(INSERT_SQL, params, "insert") == 1

    rows = db.execute("SELECT * FROM contacts")
    assert [row["name"] for row in rows] == ["John Doe", "Jane Smith", "Peter Jones"]
    assert list(rows[0]) == ["id", "name", "email", "phone"]

    updated = db.execute(
        "UPDATE contacts SET phone = :phone WHERE id = :id",
        {":phone": "111-222-3333", ":id": 1},
        "update",
    )
    assert updated == 1
    deleted = db.execute("DELETE FROM contacts WHERE id = :id", {":id": 3}, "delete")
    assert deleted == 1

    rows = db.execute("SELECT * FROM contacts ORDER BY id")
    assert len(rows) == 2
    assert rows[0]["phone"] == "111-222-3333"
    assert all(row["id"] != 3 for row in rows)
    db.close()


def test_last_insert_id_follows_each_insert(tmp_path):
    db = _make_client(tmp_path)
    assert db.last_insert_id() == "0"
    for expected, params in enumerate(CONTACTS, start=1):
        db.execute(INSERT_SQL, params, "insert")
        assert db.last_insert_id() == str(expected)
        row = db.execute("SELECT name FROM contacts WHERE id = ?", [int(db.last_insert_id())])
        assert row == [{"name": params[":name"]}]
    db.close()


def test_read_without_matches_returns_empty_list(tmp_path):
    db = _make_client(tmp_path)
    assert db.execute("SELECT * FROM contacts WHERE id = :id", {"id": 42}) == []
    assert db.execute("SELECT * FROM contacts", mode="SELECT") == []


def test_write_matching_nothing_returns_zero(tmp_path):
    db = _make_client(tmp_path)
    assert db.execute("DELETE FROM contacts WHERE id = 99", mode="delete") == 0
    assert db.execute("UPDATE contacts SET phone = 'x' WHERE id = 99", mode="Update") == 0


def test_multi_row_insert_reports_all_rows(tmp_path):
    db = _make_client(tmp_path)
    affected = db.execute(
        "INSERT INTO contacts (name, email) VALUES (?, ?), (?, ?)",
        ["a", "a@example.com", "b", "b@example.com"],
        "insert",
    )
    assert affected == 2
    assert db.last_insert_id() == "2"


def test_invalid_mode_raises_without_mutation(tmp_path):
    db = _make_client(tmp_path)
    with pytest.raises(InvalidModeError) as excinfo:
        db.execute(INSERT_SQL, CONTACTS[0], "upsert")
    assert excinfo.value.mode == "upsert"
    assert "'read'" in str(excinfo.value)
    assert _count(db) == 0


def test_query_error_wraps_engine_diagnostic(tmp_path):
    db = _make_client(tmp_path)
    with pytest.raises(QueryError) as excinfo:
        db.execute("SELEC * FROM contacts")
    assert str(excinfo.value).startswith("Query execution failed:")
    assert excinfo.value.sql == "SELEC * FROM contacts"
    assert isinstance(excinfo.value.__cause__, sqlite3.OperationalError)


def test_constraint_violation_raises_query_error(tmp_path):
    db = _make_client(tmp_path)
    db.execute(INSERT_SQL, CONTACTS[0], "insert")
    with pytest.raises(QueryError) as excinfo:
        db.execute(INSERT_SQL, CONTACTS[0], "insert")
    assert isinstance(excinfo.value.__cause__, sqlite3.IntegrityError)
    assert "UNIQUE" in str(excinfo.value)
    assert _count(db) == 1


def test_missing_parameter_raises_query_error(tmp_path):
    db = _make_client(tmp_path)
    with pytest.raises(QueryError):
        db.execute(INSERT_SQL, {":name": "Only Name"}, "insert")


def test_parameter_styles(tmp_path):
    db = _make_client(tmp_path)
    db.execute(INSERT_SQL, {"name": "Plain", "email": "p@example.com", "phone": None}, "insert")
    db.execute("INSERT INTO contacts (name, email) VALUES (?, ?)", ("Tuple", "t@example.com"), "insert")
    db.execute("INSERT INTO contacts (name, email) VALUES (?, ?)", {1: "Keyed", 0: "Ignored"}, "insert")

    rows = db.execute("SELECT name, email, phone FROM contacts ORDER BY id")
    assert rows == [
        {"name": "Plain", "email": "p@example.com", "phone": None},
        {"name": "Tuple", "email": "t@example.com", "phone": None},
        {"name": "Ignored", "email": "Keyed", "phone": None},
    ]


def test_connection_failure_raises_connection_error(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("plain file", encoding="utf-8")
    with pytest.raises(ConnectionError) as excinfo:
        RelationalStoreClient(blocker / "store.db")
    assert str(excinfo.value).startswith("Database connection failed:")


def test_memory_database_and_pragmas():
    with RelationalStoreClient(":memory:", pragmas={"foreign_keys": "on"}) as db:
        assert db.execute("PRAGMA foreign_keys") == [{"foreign_keys": 1}]
        assert db.manage_table("t", "id INTEGER PRIMARY KEY", "create")
        assert db.list_tables() == ["t"]
    assert db.closed


def test_closed_client(tmp_path):
    db = _make_client(tmp_path)
    db.close()
    db.close()
    assert "closed" in repr(db)
    with pytest.raises(ClientClosedError):
        db.execute("SELECT 1")
    with pytest.raises(ClientClosedError):
        db.last_insert_id()
    assert db.table_exists("contacts") is False
    assert db.manage_table("contacts", COLUMNS, "create") is False


def test_data_persists_across_clients(tmp_path):
    db = _make_client(tmp_path)
    db.execute(INSERT_SQL, CONTACTS[0], "insert")
    db.close()

    with RelationalStoreClient(tmp_path / "addressbook.db") as reopened:
        assert reopened.execute("SELECT name FROM contacts") == [{"name": "John Doe"}]


def test_transaction_commits_and_rolls_back(tmp_path):
    db = _make_client(tmp_path)
    with db.transaction():
        for params in CONTACTS[:2]:
            db.execute(INSERT_SQL, params, "insert")
    assert _count(db) == 2

    with pytest.raises(RuntimeError):
        with db.transaction():
            db.execute(INSERT_SQL, CONTACTS[2], "insert")
            raise RuntimeError("abort")
    assert _count(db) == 2

    with pytest.raises(QueryError):
        with db.transaction():
            db.execute(INSERT_SQL, CONTACTS[2], "insert")
            db.execute(INSERT_SQL, CONTACTS[2], "insert")
    assert _count(db) == 2


def test_read_frame(tmp_path):
    db = _make_client(tmp_path)
    empty = db.read_frame("SELECT id, name FROM contacts")
    assert isinstance(empty, pd.DataFrame)
    assert list(empty.columns) == ["id", "name"]
    assert empty.empty

    for params in CONTACTS:
        db.execute(INSERT_SQL, params, "insert")
    frame = db.read_frame("SELECT name, phone FROM contacts WHERE id >= :id", {":id": 2})
    assert frame["name"].tolist() == ["Jane Smith", "Peter Jones"]

    with pytest.raises(QueryError):
        db.read_frame("SELECT nope FROM contacts")


def test_inspection_helpers(tmp_path):
    db = _make_client(tmp_path)
    for params in CONTACTS:
        db.execute(INSERT_SQL, params, "insert")
    assert db.table_columns("contacts") == ["id", "name", "email", "phone"]
    assert db.row_count("contacts") == 3
    assert db.table_columns("missing") == []
    with pytest.raises(QueryError):
        db.row_count("missing")


def test_backup_database_copies_file(tmp_path):
    db = _make_client(tmp_path)
    for params in CONTACTS:
        db.execute(INSERT_SQL, params, "insert")

    target = db.backup_database(tmp_path / "copies" / "addressbook-copy.db")
    assert target.exists()
    assert not list(target.parent.glob("*.tmp"))

    conn = sqlite3.connect(target)
    try:
        assert conn.execute("SELECT COUNT(*) FROM contacts").fetchone()[0] == 3
    finally:
        conn.close()


def test_bad_pragma_value_raises_connection_error(tmp_path):
    with pytest.raises(StoreError) as excinfo:
        RelationalStoreClient(tmp_path / "pragmas.db", pragmas={"cache_size": "big"})
    assert isinstance(excinfo.value, ConnectionError)
    assert isinstance(excinfo.value.__cause__, ValueError)


def test_string_params_are_rejected(tmp_path):
    db = _make_client(tmp_path)
    with pytest.raises(TypeError):
        db.execute("SELECT * FROM contacts WHERE name = ?", "John Doe")


def test_garbage_collection_closes_connection(tmp_path):
    db = _make_client(tmp_path)
    conn = db._conn
    del db
    gc.collect()
    with pytest.raises(sqlite3.ProgrammingError):
        conn.execute("SELECT 1")
