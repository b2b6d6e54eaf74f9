"""Rename a legacy-named database to the name the project should use.

Only the unambiguous case is automated: the target name is free and exactly
one other candidate exists. Any other combination is reported back to the
caller so an operator can decide.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path

from beads.errors import DatabaseConflictError
from beads.storage.discovery import DatabaseRecord, detect_databases
from beads.storage.metadata import CANONICAL_DB_NAME, load_metadata

logger = logging.getLogger(__name__)

SIDECAR_SUFFIXES = ("-wal", "-shm")


class MigrationStatus(enum.StrEnum):
    NO_DATABASE = "no_database"
    UP_TO_DATE = "up_to_date"
    RENAME = "rename"
    CONFLICT = "conflict"


@dataclass(frozen=True, slots=True)
class MigrationPlan:
    """What :func:`migrate_legacy_database` will do, or has done, for a directory."""

    beads_dir: Path
    status: MigrationStatus
    target: Path
    records: list[DatabaseRecord] = field(default_factory=list)
    source: Path | None = None

    def raise_for_conflict(self) -> None:
        if self.status is MigrationStatus.CONFLICT:
            raise DatabaseConflictError(self.beads_dir, self.records)


def target_database_name(beads_dir: Path) -> str:
    """Filename the project's database should have."""

    metadata = load_metadata(beads_dir)
    if metadata is not None and metadata.database:
        return metadata.database
    return CANONICAL_DB_NAME


def plan_migration(beads_dir: Path, records: list[DatabaseRecord]) -> MigrationPlan:
    target = beads_dir / target_database_name(beads_dir)
    others = [r for r in records if r.name != target.name]
    has_target = len(others) != len(records)

    if not records:
        status = MigrationStatus.NO_DATABASE
    elif not others:
        status = MigrationStatus.UP_TO_DATE
    elif not has_target and len(others) == 1:
        return MigrationPlan(
            beads_dir=beads_dir,
            status=MigrationStatus.RENAME,
            target=target,
            records=records,
            source=others[0].path,
        )
    else:
        status = MigrationStatus.CONFLICT

    return MigrationPlan(beads_dir=beads_dir, status=status, target=target, records=records)


def _rename_database(source: Path, target: Path) -> None:
    if target.exists():
        raise FileExistsError(f"Migration destination already exists: {target}")

    source.rename(target)
    for suffix in SIDECAR_SUFFIXES:
        sidecar = source.with_name(source.name + suffix)
        if sidecar.exists():
            sidecar.rename(target.with_name(target.name + suffix))


def migrate_legacy_database(beads_dir: Path, *, dry_run: bool = False) -> MigrationPlan:
    """Detect databases in ``beads_dir`` and rename a lone legacy file.

    The file is moved as-is; its stored version marker is not touched.
    Conflicts are returned in the plan, never resolved here.

    Raises:
        FileExistsError: If the target appeared between detection and rename.
    """

    plan = plan_migration(beads_dir, detect_databases(beads_dir))

    if plan.status is MigrationStatus.CONFLICT:
        logger.warning(
            "Multiple databases found; not migrating",
            extra={"beads_dir": str(beads_dir), "databases": [r.name for r in plan.records]},
        )
    elif plan.status is MigrationStatus.RENAME and plan.source is not None and not dry_run:
        _rename_database(plan.source, plan.target)
        logger.info(
            "Renamed legacy database",
            extra={"source": str(plan.source), "target": str(plan.target)},
        )
    return plan


def format_db_list(records: list[DatabaseRecord]) -> list[dict[str, str]]:
    """Display rows for ``records``, in the given order."""

    return [{"name": record.path.name, "version": record.version} for record in records]
