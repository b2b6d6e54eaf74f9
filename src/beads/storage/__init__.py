"""Database storage and legacy-state migration."""

from beads.storage.config_migration import migrate_config_to_yaml
from beads.storage.discovery import DatabaseRecord, detect_databases, get_db_version
from beads.storage.migrate import (
    MigrationPlan,
    MigrationStatus,
    format_db_list,
    migrate_legacy_database,
)
from beads.storage.sqlite import SQLiteStorage

__all__ = [
    "DatabaseRecord",
    "MigrationPlan",
    "MigrationStatus",
    "SQLiteStorage",
    "detect_databases",
    "format_db_list",
    "get_db_version",
    "migrate_config_to_yaml",
    "migrate_legacy_database",
]
