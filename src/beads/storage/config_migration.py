"""Copy a legacy ``issue_prefix`` from the database into config.yaml.

Older databases kept the issue prefix in their ``config`` table. config.yaml is
now the source of truth, so the first time such a database is opened the
prefix is copied over. When the database has no stored prefix, it is inferred
from the earliest issue id instead.

The copy is best-effort: failing to write config.yaml is logged at debug level
and never stops the database from opening.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING

from beads.errors import BeadsError, StorageQueryError
from beads.ids import extract_issue_prefix

if TYPE_CHECKING:
    from beads.config.store import ConfigStore

logger = logging.getLogger(__name__)

LEGACY_PREFIX_KEY = "issue_prefix"


def _query_one(conn: sqlite3.Connection, sql: str, params: tuple[str, ...] = ()) -> str:
    try:
        row = conn.execute(sql, params).fetchone()
    except sqlite3.Error as exc:
        raise StorageQueryError(f"config migration query failed: {exc}") from exc
    if row is None or row[0] is None:
        return ""
    return str(row[0])


def find_legacy_prefix(conn: sqlite3.Connection) -> str:
    """Prefix stored in the database, else the one implied by the first issue."""

    prefix = _query_one(conn, "SELECT value FROM config WHERE key = ?", (LEGACY_PREFIX_KEY,))
    if prefix:
        return prefix

    first_id = _query_one(conn, "SELECT id FROM issues ORDER BY created_at LIMIT 1")
    if first_id:
        return extract_issue_prefix(first_id)
    return ""


def migrate_config_to_yaml(
    conn: sqlite3.Connection, config: ConfigStore, start: Path | None = None
) -> str | None:
    """Populate config.yaml's ``issue-prefix`` from the database if it is unset.

    The config file written is the one in the nearest ``.beads`` directory
    above ``start`` (default: the current directory).

    Returns:
        The prefix written, or ``None`` if nothing was migrated.

    Raises:
        StorageQueryError: If a database lookup fails.
    """

    if config.get_issue_prefix():
        return None

    prefix = find_legacy_prefix(conn)
    if not prefix:
        return None

    try:
        config.set_issue_prefix(prefix, start=start)
    except (OSError, BeadsError) as exc:
        logger.debug(
            "Failed to migrate issue_prefix to config.yaml",
            extra={"prefix": prefix, "error": str(exc)},
        )
        return None

    logger.debug("Migrated issue_prefix to config.yaml", extra={"prefix": prefix})
    return prefix
