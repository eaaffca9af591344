"""
SQLite schema migrations.

Migration files live in one directory and are applied in filename order.
Each file holds an Up script, optionally followed by a `-- Down` marker
and the script that reverts it.
"""

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

DOWN_MARKER = "-- Down"


class SQLiteMigrator:
    def __init__(self, db_path: str, migrations_dir: str):
        self.db_path = db_path
        self.migrations_dir = Path(migrations_dir)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute("""
            CREATE TABLE IF NOT EXISTS _migrations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                filename TEXT UNIQUE NOT NULL,
                applied_at DATETIME DEFAULT CURRENT_TIMESTAMP
            );
        """)
        return conn

    def _applied(self, conn: sqlite3.Connection) -> list[str]:
        rows = conn.execute("SELECT filename FROM _migrations ORDER BY id").fetchall()
        return [row[0] for row in rows]

    def _migration_files(self) -> list[str]:
        return sorted(p.name for p in self.migrations_dir.glob("*.sql"))

    def _script(self, filename: str, down: bool = False) -> str:
        content = (self.migrations_dir / filename).read_text()
        up, marker, rest = content.partition(DOWN_MARKER)
        if down:
            return rest if marker else ""
        return up

    def applied_migrations(self) -> list[str]:
        """Applied migration filenames, oldest first."""
        conn = self._connect()
        try:
            return self._applied(conn)
        finally:
            conn.close()

    def pending_migrations(self) -> list[str]:
        """Migration files not yet applied, in apply order."""
        applied = set(self.applied_migrations())
        return [f for f in self._migration_files() if f not in applied]

    def run_migrations(self) -> list[str]:
        """Apply all pending migrations. Returns the filenames applied."""
        conn = self._connect()
        applied_now: list[str] = []
        try:
            applied = set(self._applied(conn))
            for filename in self._migration_files():
                if filename in applied:
                    continue
                logger.info("Applying migration: %s", filename)
                self._execute(conn, filename, self._script(filename))
                conn.execute("INSERT INTO _migrations (filename) VALUES (?)", (filename,))
                conn.commit()
                applied_now.append(filename)
        finally:
            conn.close()

        logger.info("All migrations applied (%d new)", len(applied_now))
        return applied_now

    def rollback_last(self) -> str | None:
        """
        Revert the most recent migration with its Down script.
        Returns the filename reverted, or None when nothing is applied.
        """
        conn = self._connect()
        try:
            applied = self._applied(conn)
            if not applied:
                return None

            filename = applied[-1]
            script = self._script(filename, down=True)
            if not script.strip():
                raise RuntimeError(f"Migration {filename} has no {DOWN_MARKER} section")

            logger.info("Reverting migration: %s", filename)
            self._execute(conn, filename, script)
            conn.execute("DELETE FROM _migrations WHERE filename = ?", (filename,))
            conn.commit()
            return filename
        finally:
            conn.close()

    def _execute(self, conn: sqlite3.Connection, filename: str, script: str) -> None:
        try:
            conn.executescript(script)
        except sqlite3.Error as e:
            conn.rollback()
            raise RuntimeError(f"Migration {filename} failed: {e}") from e
