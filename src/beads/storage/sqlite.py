"""SQLite-backed issue storage.

Only the parts the configuration layer depends on live here: key/value
metadata, the legacy ``config`` settings table, and issue ids ordered by
creation time.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from beads.errors import StorageQueryError
from beads.storage.config_migration import migrate_config_to_yaml

if TYPE_CHECKING:
    from beads.config.store import ConfigStore

logger = logging.getLogger(__name__)

VERSION_KEY = "bd_version"

SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS issues (
    id          TEXT PRIMARY KEY,
    title       TEXT NOT NULL DEFAULT '',
    created_at  TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_issues_created_at ON issues(created_at);

CREATE TABLE IF NOT EXISTS config (
    key    TEXT PRIMARY KEY,
    value  TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS metadata (
    key    TEXT PRIMARY KEY,
    value  TEXT NOT NULL
);
"""


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class SQLiteStorage:
    """Connection to one project database.

    Use :meth:`open` rather than the constructor; it prepares the schema and
    runs the config migration.
    """

    def __init__(self, path: Path, conn: sqlite3.Connection) -> None:
        self.path = path
        self._conn: sqlite3.Connection | None = conn

    @classmethod
    def open(cls, path: Path, config: ConfigStore | None = None) -> SQLiteStorage:
        """Open or create the database at ``path``.

        When ``config`` is given, a legacy ``issue_prefix`` stored in the
        database is copied once into the config.yaml of the project that
        contains ``path`` (see
        :func:`beads.storage.config_migration.migrate_config_to_yaml`).

        Raises:
            StorageQueryError: If the database cannot be prepared or queried.
        """

        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = sqlite3.connect(str(path))
        except sqlite3.Error as exc:
            raise StorageQueryError(f"failed to open database {path}: {exc}") from exc

        try:
            conn.execute("PRAGMA busy_timeout = 5000")
            conn.executescript(SCHEMA_SQL)
            conn.commit()
        except sqlite3.Error as exc:
            conn.close()
            raise StorageQueryError(f"failed to prepare database {path}: {exc}") from exc

        storage = cls(path, conn)
        if config is not None:
            try:
                migrate_config_to_yaml(conn, config, start=path.parent)
            except Exception:
                storage.close()
                raise
        return storage

    def __enter__(self) -> SQLiteStorage:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError(f"database {self.path} is closed")
        return self._conn

    @property
    def closed(self) -> bool:
        return self._conn is None

    def close(self) -> None:
        """Close the connection. Calling it again is a no-op."""

        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _get_value(self, table: str, key: str) -> str | None:
        try:
            row = self.conn.execute(f"SELECT value FROM {table} WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise StorageQueryError(f"failed to read {table}.{key}: {exc}") from exc
        return None if row is None else row[0]

    def _set_value(self, table: str, key: str, value: str) -> None:
        try:
            self.conn.execute(
                f"INSERT INTO {table} (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )
            self.conn.commit()
        except sqlite3.Error as exc:
            raise StorageQueryError(f"failed to write {table}.{key}: {exc}") from exc

    def get_metadata(self, key: str) -> str | None:
        return self._get_value("metadata", key)

    def set_metadata(self, key: str, value: str) -> None:
        self._set_value("metadata", key, value)

    def get_config(self, key: str) -> str | None:
        """Read a setting from the legacy in-database config table."""

        return self._get_value("config", key)

    def set_config(self, key: str, value: str) -> None:
        self._set_value("config", key, value)

    def get_version(self) -> str:
        return self.get_metadata(VERSION_KEY) or ""

    def set_version(self, version: str) -> None:
        self.set_metadata(VERSION_KEY, version)

    def create_issue(self, issue_id: str, title: str = "", created_at: str | None = None) -> None:
        try:
            self.conn.execute(
                "INSERT INTO issues (id, title, created_at) VALUES (?, ?, ?)",
                (issue_id, title, created_at or _now_iso()),
            )
            self.conn.commit()
        except sqlite3.Error as exc:
            raise StorageQueryError(f"failed to create issue {issue_id}: {exc}") from exc

    def first_issue_id(self) -> str | None:
        """Identifier of the earliest-created issue, if any."""

        try:
            row = self.conn.execute("SELECT id FROM issues ORDER BY created_at LIMIT 1").fetchone()
        except sqlite3.Error as exc:
            raise StorageQueryError(f"failed to query issues: {exc}") from exc
        return None if row is None else row[0]
