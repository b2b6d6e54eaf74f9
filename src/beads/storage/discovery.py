"""Find database files in a ``.beads`` directory and read their versions."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import closing, contextmanager
from dataclasses import dataclass
from pathlib import Path

from beads.storage.metadata import known_database_names, load_metadata
from beads.storage.sqlite import VERSION_KEY

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DatabaseRecord:
    """A discovered database file and the tool version stored inside it."""

    path: Path
    version: str

    @property
    def name(self) -> str:
        return self.path.name


@contextmanager
def _open_readonly(path: Path) -> Iterator[sqlite3.Connection]:
    uri = f"{path.resolve().as_uri()}?mode=ro"
    with closing(sqlite3.connect(uri, uri=True)) as conn:
        yield conn


def _read_version(conn: sqlite3.Connection) -> str:
    # Fails with DatabaseError when the file is not SQLite at all.
    conn.execute("SELECT count(*) FROM sqlite_master").fetchone()
    try:
        row = conn.execute("SELECT value FROM metadata WHERE key = ?", (VERSION_KEY,)).fetchone()
    except sqlite3.OperationalError:
        return ""
    return "" if row is None or row[0] is None else str(row[0])


def get_db_version(path: Path) -> str:
    """Stored ``bd_version`` of the database at ``path``, or ``""`` if unreadable."""

    try:
        with _open_readonly(path) as conn:
            return _read_version(conn)
    except sqlite3.Error as exc:
        logger.debug("Could not read database version", extra={"path": str(path), "error": str(exc)})
        return ""


def detect_databases(beads_dir: Path) -> list[DatabaseRecord]:
    """List the known database files in ``beads_dir`` with their versions.

    Candidates are the canonical and legacy names plus any custom name from
    ``metadata.json``. Files that are not valid databases are skipped.
    """

    if not beads_dir.is_dir():
        return []

    names = set(known_database_names(load_metadata(beads_dir)))
    records: list[DatabaseRecord] = []
    for entry in sorted(beads_dir.iterdir(), key=lambda p: p.name):
        if entry.name not in names or not entry.is_file():
            continue
        try:
            with _open_readonly(entry) as conn:
                version = _read_version(conn)
        except sqlite3.Error as exc:
            logger.debug("Skipping invalid database", extra={"path": str(entry), "error": str(exc)})
            continue
        records.append(DatabaseRecord(path=entry, version=version))
    return records
