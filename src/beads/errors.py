"""Exception types raised by the configuration and migration layers."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from beads.storage.discovery import DatabaseRecord


class BeadsError(Exception):
    """Base class for all beads errors."""


class ConfigError(BeadsError):
    """Configuration could not be loaded."""


class ConfigParseError(ConfigError):
    """A config file exists but is not a flat YAML mapping."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"error reading config file {path}: {reason}")
        self.path = path
        self.reason = reason


class PrefixValidationError(BeadsError, ValueError):
    """Raised when an issue prefix is rejected before being persisted."""


class StorageQueryError(BeadsError):
    """A database query failed for a reason other than "no rows"."""


class DatabaseConflictError(BeadsError):
    """Several candidate databases exist and no automatic choice is safe."""

    def __init__(self, beads_dir: Path, records: list[DatabaseRecord]) -> None:
        names = ", ".join(record.name for record in records)
        super().__init__(
            f"multiple databases found in {beads_dir}: {names}; "
            "remove or rename the ones you no longer need"
        )
        self.beads_dir = beads_dir
        self.records = records
