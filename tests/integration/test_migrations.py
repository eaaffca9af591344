import sqlite3
from pathlib import Path

import pytest

from src.adapters.sqlite.migrator import SQLiteMigrator

MIGRATIONS_DIR = str(Path(__file__).resolve().parents[2] / "migrations")


@pytest.fixture
def temp_db_path(tmp_path):
    return str(tmp_path / "test_db.sqlite")


def table_names(db_path):
    conn = sqlite3.connect(db_path)
    try:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    finally:
        conn.close()
    return {r[0] for r in rows}


def test_migrator_creates_migration_table(temp_db_path):
    SQLiteMigrator(temp_db_path, MIGRATIONS_DIR).run_migrations()

    assert "_migrations" in table_names(temp_db_path)


def test_migrator_applies_initial(temp_db_path):
    applied = SQLiteMigrator(temp_db_path, MIGRATIONS_DIR).run_migrations()

    assert applied == ["001_initial.sql"]
    assert {"posts", "page_views", "cta_clicks", "ai_crawls"} <= table_names(temp_db_path)

    conn = sqlite3.connect(temp_db_path)
    cursor = conn.execute("SELECT filename FROM _migrations WHERE filename='001_initial.sql'")
    assert cursor.fetchone() is not None
    conn.close()


def test_migrator_idempotent(temp_db_path):
    migrator = SQLiteMigrator(temp_db_path, MIGRATIONS_DIR)
    migrator.run_migrations()

    assert migrator.run_migrations() == []
    assert migrator.pending_migrations() == []


def test_pending_on_fresh_db(temp_db_path):
    assert SQLiteMigrator(temp_db_path, MIGRATIONS_DIR).pending_migrations() == [
        "001_initial.sql"
    ]


def test_down_section_not_applied(tmp_path, temp_db_path):
    migrations = tmp_path / "migrations"
    migrations.mkdir()
    (migrations / "001_a.sql").write_text(
        "-- Up\nCREATE TABLE a (id INTEGER);\n\n-- Down\nDROP TABLE a;\n"
    )

    SQLiteMigrator(temp_db_path, str(migrations)).run_migrations()

    assert "a" in table_names(temp_db_path)


def test_failed_migration_raises(tmp_path, temp_db_path):
    migrations = tmp_path / "migrations"
    migrations.mkdir()
    (migrations / "001_bad.sql").write_text("CREATE TABLE oops (;\n")

    migrator = SQLiteMigrator(temp_db_path, str(migrations))
    with pytest.raises(RuntimeError, match="001_bad.sql"):
        migrator.run_migrations()

    assert migrator.pending_migrations() == ["001_bad.sql"]


def test_rollback_last(temp_db_path):
    migrator = SQLiteMigrator(temp_db_path, MIGRATIONS_DIR)
    migrator.run_migrations()

    assert migrator.rollback_last() == "001_initial.sql"
    assert "page_views" not in table_names(temp_db_path)
    assert migrator.applied_migrations() == []
    assert migrator.pending_migrations() == ["001_initial.sql"]


def test_rollback_nothing_applied(temp_db_path):
    assert SQLiteMigrator(temp_db_path, MIGRATIONS_DIR).rollback_last() is None


def test_rollback_without_down_section(tmp_path, temp_db_path):
    migrations = tmp_path / "migrations"
    migrations.mkdir()
    (migrations / "001_a.sql").write_text("CREATE TABLE a (id INTEGER);\n")
    migrator = SQLiteMigrator(temp_db_path, str(migrations))
    migrator.run_migrations()

    with pytest.raises(RuntimeError, match="no -- Down section"):
        migrator.rollback_last()
