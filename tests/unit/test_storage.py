"""Unit tests for the SQLite storage collaborator and identifier helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from beads.errors import StorageQueryError
from beads.ids import extract_issue_prefix
from beads.storage.sqlite import SQLiteStorage


@pytest.mark.parametrize(
    ("issue_id", "expected"),
    [
        ("old-prefix-42", "old-prefix"),
        ("bd-1", "bd"),
        ("bd-a3f8", "bd"),
        ("noprefix", ""),
        ("", ""),
    ],
)
def test_extract_issue_prefix(issue_id: str, expected: str) -> None:
    assert extract_issue_prefix(issue_id) == expected


def test_open_creates_database_and_parent(tmp_path: Path) -> None:
    path = tmp_path / "nested" / ".beads" / "beads.db"

    with SQLiteStorage.open(path) as storage:
        assert storage.get_version() == ""
        assert storage.first_issue_id() is None

    assert path.exists()


def test_metadata_and_config_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "beads.db"

    with SQLiteStorage.open(path) as storage:
        storage.set_metadata("bd_version", "0.16.0")
        storage.set_config("issue_prefix", "bd")
        storage.set_config("issue_prefix", "bd2")

    with SQLiteStorage.open(path) as storage:
        assert storage.get_version() == "0.16.0"
        assert storage.get_config("issue_prefix") == "bd2"
        assert storage.get_config("missing") is None


def test_first_issue_is_earliest_created(tmp_path: Path) -> None:
    with SQLiteStorage.open(tmp_path / "beads.db") as storage:
        storage.create_issue("b-2", created_at="2024-02-01T00:00:00+00:00")
        storage.create_issue("a-1", created_at="2024-01-01T00:00:00+00:00")

        assert storage.first_issue_id() == "a-1"


def test_duplicate_issue_raises_query_error(tmp_path: Path) -> None:
    with SQLiteStorage.open(tmp_path / "beads.db") as storage:
        storage.create_issue("bd-1")

        with pytest.raises(StorageQueryError):
            storage.create_issue("bd-1")


def test_close_is_idempotent(tmp_path: Path) -> None:
    storage = SQLiteStorage.open(tmp_path / "beads.db")

    storage.close()
    storage.close()

    assert storage.closed
    with pytest.raises(RuntimeError):
        storage.get_version()


def test_open_rejects_non_database(tmp_path: Path) -> None:
    path = tmp_path / "beads.db"
    path.write_bytes(b"not a database at all" * 20)

    with pytest.raises(StorageQueryError):
        SQLiteStorage.open(path)
