"""Test configuration and fixtures."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from beads.config.settings import LEGACY_ENV_VARS
from beads.storage.sqlite import SQLiteStorage


@pytest.fixture(autouse=True)
def isolated_home(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME and the user config dir at an empty location and clear BD_* vars."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("APPDATA", str(home / "AppData"))

    for name in list(os.environ):
        if name.startswith("BD_") or name in LEGACY_ENV_VARS.values():
            monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def project_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A project root containing an empty .beads directory; cwd is set to it."""
    root = tmp_path / "project"
    (root / ".beads").mkdir(parents=True)
    monkeypatch.chdir(root)
    return root


@pytest.fixture
def beads_dir(project_dir: Path) -> Path:
    return project_dir / ".beads"


@pytest.fixture
def config_path(beads_dir: Path) -> Path:
    return beads_dir / "config.yaml"


@pytest.fixture
def write_config(config_path: Path) -> Callable[[str], Path]:
    """Write the project's config.yaml with the given text."""

    def _write(content: str) -> Path:
        config_path.write_text(content, encoding="utf-8")
        return config_path

    return _write


@pytest.fixture
def make_database() -> Callable[..., Path]:
    """Create a database file without running the config migration."""

    def _make(
        path: Path,
        *,
        version: str | None = None,
        prefix: str | None = None,
        issues: list[tuple[str, str]] | None = None,
    ) -> Path:
        with SQLiteStorage.open(path) as storage:
            if version is not None:
                storage.set_version(version)
            if prefix is not None:
                storage.set_config("issue_prefix", prefix)
            for issue_id, created_at in issues or []:
                storage.create_issue(issue_id, title=issue_id, created_at=created_at)
        return path

    return _make


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Undo root-logger changes made by configure_logging."""
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in saved_handlers:
        root.addHandler(handler)
    root.setLevel(saved_level)
