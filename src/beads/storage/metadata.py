"""Project metadata file (``.beads/metadata.json``).

Projects created before ``config.yaml`` existed may name a non-default
database here, e.g. ``{"database": "beady.db", "version": "0.21.1",
"jsonl_export": "beady.jsonl"}``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from beads.config.paths import METADATA_FILENAME
from beads.fileutil import write_atomic

logger = logging.getLogger(__name__)

CANONICAL_DB_NAME = "beads.db"
LEGACY_DB_NAMES = ("vc.db",)
DEFAULT_JSONL_EXPORT = "beads.jsonl"


class ProjectMetadata(BaseModel):
    """Persisted representation of ``metadata.json``."""

    database: str = Field(default=CANONICAL_DB_NAME)
    version: str = Field(default="")
    jsonl_export: str = Field(default=DEFAULT_JSONL_EXPORT)

    def database_path(self, beads_dir: Path) -> Path:
        return beads_dir / self.database


def load_metadata(beads_dir: Path) -> ProjectMetadata | None:
    """Return the parsed metadata file, or ``None`` if absent or unusable."""

    path = beads_dir / METADATA_FILENAME
    if not path.exists():
        return None

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        return ProjectMetadata.model_validate(raw)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as exc:
        logger.warning(
            "Ignoring unreadable metadata file", extra={"path": str(path), "error": str(exc)}
        )
        return None


def save_metadata(beads_dir: Path, metadata: ProjectMetadata) -> None:
    path = beads_dir / METADATA_FILENAME
    payload = json.dumps(metadata.model_dump(mode="json"), indent=2, ensure_ascii=False)
    write_atomic(path, payload + "\n")


def load_or_create_metadata(beads_dir: Path, version: str) -> ProjectMetadata:
    """Load ``metadata.json``, writing a default one first if it is missing."""

    existing = load_metadata(beads_dir)
    if existing is not None:
        return existing

    metadata = ProjectMetadata(version=version)
    save_metadata(beads_dir, metadata)
    logger.info("Created metadata file", extra={"path": str(beads_dir / METADATA_FILENAME)})
    return metadata


def known_database_names(metadata: ProjectMetadata | None) -> list[str]:
    """Database filenames discovery should look for in a ``.beads`` directory."""

    names = [CANONICAL_DB_NAME, *LEGACY_DB_NAMES]
    if metadata is not None and metadata.database not in names:
        names.append(metadata.database)
    return names
