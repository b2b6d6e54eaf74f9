"""Unit tests for database discovery and version inspection."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

from beads.storage.discovery import detect_databases, get_db_version
from beads.storage.sqlite import SQLiteStorage


def test_detect_databases_empty_directory(beads_dir: Path) -> None:
    assert detect_databases(beads_dir) == []


def test_detect_databases_missing_directory(tmp_path: Path) -> None:
    assert detect_databases(tmp_path / "nope") == []


def test_detect_single_legacy_database_then_rename(
    beads_dir: Path, make_database: Callable[..., Path]
) -> None:
    old_path = make_database(beads_dir / "vc.db", version="0.16.0")

    databases = detect_databases(beads_dir)
    assert len(databases) == 1
    assert databases[0].version == "0.16.0"
    assert databases[0].path == old_path

    old_path.rename(beads_dir / "beads.db")

    databases = detect_databases(beads_dir)
    assert len(databases) == 1
    assert databases[0].path.name == "beads.db"
    assert databases[0].version == "0.16.0"


def test_get_db_version_reads_and_tracks_updates(
    beads_dir: Path, make_database: Callable[..., Path]
) -> None:
    db_path = make_database(beads_dir / "beads.db", version="0.16.0")
    assert get_db_version(db_path) == "0.16.0"

    with SQLiteStorage.open(db_path) as storage:
        storage.set_version("0.17.5")

    assert get_db_version(db_path) == "0.17.5"


def test_get_db_version_without_marker(beads_dir: Path, make_database: Callable[..., Path]) -> None:
    db_path = make_database(beads_dir / "beads.db")

    assert get_db_version(db_path) == ""


def test_get_db_version_missing_file_is_not_created(beads_dir: Path) -> None:
    missing = beads_dir / "missing.db"

    assert get_db_version(missing) == ""
    assert not missing.exists()


def test_get_db_version_on_garbage_file(beads_dir: Path) -> None:
    bogus = beads_dir / "beads.db"
    bogus.write_bytes(b"this is definitely not sqlite" * 10)

    assert get_db_version(bogus) == ""


def test_invalid_database_is_skipped(beads_dir: Path, make_database: Callable[..., Path]) -> None:
    (beads_dir / "vc.db").write_bytes(b"corrupt" * 100)
    make_database(beads_dir / "beads.db", version="0.20.0")

    databases = detect_databases(beads_dir)

    assert [d.name for d in databases] == ["beads.db"]
    assert databases[0].version == "0.20.0"


def test_unrelated_files_are_ignored(beads_dir: Path, make_database: Callable[..., Path]) -> None:
    make_database(beads_dir / "beads.db")
    make_database(beads_dir / "scratch.db")
    (beads_dir / "issues.jsonl").write_text("{}\n", encoding="utf-8")
    (beads_dir / "config.yaml").write_text("json: true\n", encoding="utf-8")

    assert [d.name for d in detect_databases(beads_dir)] == ["beads.db"]


def test_custom_database_name_from_metadata(
    beads_dir: Path, make_database: Callable[..., Path]
) -> None:
    (beads_dir / "metadata.json").write_text(
        json.dumps({"database": "beady.db", "version": "0.21.1", "jsonl_export": "beady.jsonl"}),
        encoding="utf-8",
    )
    make_database(beads_dir / "beady.db", version="0.21.1")

    databases = detect_databases(beads_dir)

    assert [(d.name, d.version) for d in databases] == [("beady.db", "0.21.1")]


def test_listing_order_is_stable(beads_dir: Path, make_database: Callable[..., Path]) -> None:
    make_database(beads_dir / "vc.db", version="0.16.0")
    make_database(beads_dir / "beads.db", version="0.17.5")

    assert [d.name for d in detect_databases(beads_dir)] == ["beads.db", "vc.db"]
