"""Filesystem layout and config-file discovery.

Config files are looked up in this order and the first one found wins:

1. ``<dir>/.beads/config.yaml`` for the current directory and every ancestor
2. ``<user config dir>/bd/config.yaml``
3. ``<home>/.beads/config.yaml``
"""

from __future__ import annotations

import os
import sys
from collections.abc import Iterator
from pathlib import Path

BEADS_DIR_NAME = ".beads"
CONFIG_FILENAME = "config.yaml"
METADATA_FILENAME = "metadata.json"
USER_CONFIG_APP_DIR = "bd"


def iter_ancestors(start: Path | None = None) -> Iterator[Path]:
    """Yield ``start`` (default: cwd) and each parent, stopping at the root.

    The filesystem root is the path that is its own parent; it is not yielded.
    """

    current = (start or Path.cwd()).resolve()
    while current != current.parent:
        yield current
        current = current.parent


def find_beads_dir(start: Path | None = None) -> Path | None:
    """Return the nearest ``.beads`` directory above ``start``, if any."""

    for directory in iter_ancestors(start):
        candidate = directory / BEADS_DIR_NAME
        if candidate.is_dir():
            return candidate
    return None


def find_project_config(start: Path | None = None) -> Path | None:
    for directory in iter_ancestors(start):
        candidate = directory / BEADS_DIR_NAME / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def user_config_dir() -> Path:
    """Per-user configuration directory for the current platform."""

    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata)
        return Path.home() / "AppData" / "Roaming"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg and Path(xdg).is_absolute():
        return Path(xdg)
    return Path.home() / ".config"


def user_config_path() -> Path:
    return user_config_dir() / USER_CONFIG_APP_DIR / CONFIG_FILENAME


def home_config_path() -> Path:
    return Path.home() / BEADS_DIR_NAME / CONFIG_FILENAME


def find_config_file(start: Path | None = None) -> Path | None:
    """Locate the single config file that applies to ``start``.

    Levels never merge: a project file shadows the user file entirely, and the
    user file shadows the home file.
    """

    project = find_project_config(start)
    if project is not None:
        return project

    for candidate in (user_config_path(), home_config_path()):
        if candidate.is_file():
            return candidate
    return None
