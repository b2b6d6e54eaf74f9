"""Read and persist the project's ``issue-prefix`` setting.

``config.yaml`` is edited as text so that comments, ordering and unrelated keys
survive: the first uncommented ``issue-prefix:`` line is replaced, otherwise a
new line is prepended. Lines such as ``# issue-prefix: "old"`` are never
treated as a match.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from beads.config.paths import CONFIG_FILENAME, find_beads_dir
from beads.errors import ConfigParseError, PrefixValidationError
from beads.fileutil import write_atomic

if TYPE_CHECKING:
    from beads.config.store import ConfigStore

logger = logging.getLogger(__name__)

ISSUE_PREFIX_KEY = "issue-prefix"


def get_issue_prefix(store: ConfigStore) -> str:
    """Resolved issue prefix, or ``""`` when none is configured."""

    return store.get_string(ISSUE_PREFIX_KEY)


def format_prefix_line(prefix: str) -> str:
    return f"{ISSUE_PREFIX_KEY}: {json.dumps(prefix, ensure_ascii=False)}"


def rewrite_issue_prefix(content: str, prefix: str) -> str:
    """Return ``content`` with its ``issue-prefix`` line set to ``prefix``."""

    lines = content.split("\n") if content else []
    new_line = format_prefix_line(prefix)

    for idx, line in enumerate(lines):
        stripped = line.strip()
        if stripped.startswith(f"{ISSUE_PREFIX_KEY}:") and not stripped.startswith("#"):
            lines[idx] = new_line
            return "\n".join(lines)

    if lines:
        return "\n".join([new_line, "", *lines])
    return new_line


def set_issue_prefix(store: ConfigStore, prefix: str, start: Path | None = None) -> None:
    """Persist ``prefix`` as the project's issue prefix.

    Outside a project (no ``.beads`` directory above ``start``) only the
    in-memory store is updated.

    Raises:
        PrefixValidationError: If ``prefix`` is empty.
        ConfigParseError: If the existing config file is not valid UTF-8.
        OSError: If the config file cannot be read or replaced.
    """

    if not prefix:
        raise PrefixValidationError("issue prefix cannot be empty")

    beads_dir = find_beads_dir(start)
    if beads_dir is None:
        logger.debug("No .beads directory found; keeping issue prefix in memory only")
        store.set(ISSUE_PREFIX_KEY, prefix)
        return

    config_path = beads_dir / CONFIG_FILENAME
    try:
        content = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        content = ""
    except UnicodeDecodeError as exc:
        raise ConfigParseError(config_path, str(exc)) from exc

    write_atomic(config_path, rewrite_issue_prefix(content, prefix))
    store.set(ISSUE_PREFIX_KEY, prefix)
    logger.debug("Updated issue prefix", extra={"path": str(config_path), "prefix": prefix})
