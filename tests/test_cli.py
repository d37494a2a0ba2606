import logging

import pytest

from relstore import config
from relstore.cli import main
from relstore.client import RelationalStoreClient


@pytest.fixture(autouse=True)
def _isolated(monkeypatch):
    for name in ("RELSTORE_DB_PATH", "RELSTORE_PRAGMAS", "RELSTORE_VALIDATE_IDENTIFIERS", "RELSTORE_LOG_DIR"):
        monkeypatch.delenv(name, raising=False)
    config.reload()
    yield
    config.reload()
    logger = logging.getLogger("relstore")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


def test_demo_walkthrough(tmp_path, capsys):
    db_path = tmp_path / "addressbook.db"
    assert main(["demo", str(db_path)]) == 0
    out = capsys.readouterr().out

    assert "Table 'contacts' created or already exists." in out
    assert "Table 'contacts' exists." in out
    for contact_id in (1, 2, 3):
        assert f"Inserted contact with ID: {contact_id}" in out
    assert "Peter Jones" in out
    assert "Updated 1 rows." in out
    assert "Deleted 1 rows." in out
    assert "backed up to 'contacts_backup_" in out

    with RelationalStoreClient(db_path) as db:
        rows = db.execute("SELECT id, phone FROM contacts ORDER BY id")
        assert rows == [{"id": 1, "phone": "111-222-3333"}, {"id": 2, "phone": "987-654-3210"}]
        assert len(db.list_backups("contacts")) == 1


def test_demo_uses_configured_default_path(tmp_path, monkeypatch):
    db_path = tmp_path / "from-env.db"
    monkeypatch.setenv("RELSTORE_DB_PATH", str(db_path))
    config.reload()
    assert main(["demo"]) == 0
    assert db_path.exists()


def test_demo_rerun_reports_insert_failure(tmp_path, capsys):
    db_path = tmp_path / "addressbook.db"
    main(["demo", str(db_path)])
    capsys.readouterr()

    assert main(["demo", str(db_path)]) == 1
    captured = capsys.readouterr()
    assert "Error: Query execution failed:" in captured.err
    assert "UNIQUE" in captured.err


def test_table_exec_and_query(tmp_path, capsys):
    db = str(tmp_path / "cli.db")
    assert main(["table", db, "notes", "--action", "exists"]) == 1
    assert main(["table", db, "notes", "--action", "create", "--columns", "id INTEGER PRIMARY KEY, body TEXT"]) == 0
    assert main(["table", db, "notes"]) == 0
    capsys.readouterr()

    assert main(["exec", db, "INSERT INTO notes (body) VALUES (:body)", "--mode", "insert", "-p", "body=hello"]) == 0
    out = capsys.readouterr().out
    assert "1 row(s) affected" in out
    assert "Last insert id: 1" in out

    assert main(["query", db, "SELECT body FROM notes WHERE id = :id", "-p", "id=1"]) == 0
    assert "hello" in capsys.readouterr().out

    assert main(["query", db, "SELECT body FROM notes WHERE id = :id", "-p", "id=7"]) == 0
    assert "(no rows)" in capsys.readouterr().out

    assert main(["table", db, "notes", "--action", "backup"]) == 0
    assert "-> notes_backup_" in capsys.readouterr().out


def test_query_error_exit_status(tmp_path, capsys):
    assert main(["query", str(tmp_path / "cli.db"), "SELECT * FROM missing"]) == 1
    assert "Error: Query execution failed: no such table: missing" in capsys.readouterr().err


def test_log_file_option(tmp_path, monkeypatch):
    log_dir = tmp_path / "logs"
    monkeypatch.setenv("RELSTORE_LOG_DIR", str(log_dir))
    config.reload()

    assert main(["--log-file", "table", str(tmp_path / "cli.db"), "ghost", "--action", "backup"]) == 1
    for handler in logging.getLogger("relstore").handlers:
        handler.flush()
    assert "Error backing up table 'ghost'" in (log_dir / "errors.log").read_text(encoding="utf-8")
