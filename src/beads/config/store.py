"""Resolved configuration for one process.

A :class:`ConfigStore` is created once at startup with
:meth:`ConfigStore.initialize` and passed to everything that reads or writes
settings. Re-initializing means building a new store; an existing one is never
reset in place.

The store is not thread-safe. Callers that share one across threads must
serialize access themselves.
"""

from __future__ import annotations

import logging
import os
from datetime import timedelta
from pathlib import Path
from typing import Any

from beads.config import prefix as prefix_file
from beads.config.duration import format_duration, parse_duration
from beads.config.settings import BeadsSettings, env_var_name

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"1", "t", "true", "y", "yes", "on"}

_DECLARED_OPTIONS = frozenset(BeadsSettings.option_names())


def _undeclared_env_value(key: str) -> str | None:
    """``BD_<KEY>`` for a key that is not a declared option.

    Declared options already read the environment while settings are built.
    """

    if key in _DECLARED_OPTIONS:
        return None
    return os.environ.get(env_var_name(key)) or None


class ConfigStore:
    """Layered view over :class:`BeadsSettings` plus explicit overrides.

    A store built without settings behaves as uninitialized: every reader
    returns its type's zero value.
    """

    def __init__(self, settings: BeadsSettings | None = None) -> None:
        self._settings = settings
        self._overrides: dict[str, Any] = {}

    @classmethod
    def initialize(cls) -> ConfigStore:
        """Resolve defaults, the config file and the environment into a new store.

        A value that does not fit its option's type resolves to the type's zero
        value instead of failing.

        Raises:
            ConfigParseError: If the config file found is not a flat mapping.
        """

        settings = BeadsSettings()
        if settings.config_file is not None:
            logger.debug("Loaded config", extra={"path": str(settings.config_file)})
        else:
            logger.debug("No config.yaml found; using defaults and environment variables")
        return cls(settings)

    @property
    def initialized(self) -> bool:
        return self._settings is not None

    @property
    def config_file(self) -> Path | None:
        """The config file the store was resolved from, if any."""

        if self._settings is None:
            return None
        return self._settings.config_file

    def set(self, key: str, value: Any) -> None:
        """Override ``key`` for this process only; nothing is written to disk."""

        self._overrides[key.lower()] = value

    def get(self, key: str) -> Any | None:
        key = key.lower()
        if key in self._overrides:
            return self._overrides[key]
        if self._settings is None:
            return None
        env_value = _undeclared_env_value(key)
        if env_value is not None:
            return env_value
        return self._settings.options().get(key)

    def get_string(self, key: str) -> str:
        value = self.get(key)
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, timedelta):
            return format_duration(value)
        return str(value)

    def get_bool(self, key: str) -> bool:
        value = self.get(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value != 0
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_STRINGS
        return False

    def get_int(self, key: str) -> int:
        value = self.get(key)
        if isinstance(value, (bool, int)):
            return int(value)
        if isinstance(value, float):
            return int(value)
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                return 0
        return 0

    def get_duration(self, key: str) -> timedelta:
        value = self.get(key)
        if value is None:
            return timedelta(0)
        try:
            return parse_duration(value)
        except ValueError:
            return timedelta(0)

    def all_settings(self) -> dict[str, Any]:
        """Every resolved option keyed by name, with overrides applied."""

        merged: dict[str, Any] = {}
        if self._settings is not None:
            for key, value in self._settings.options().items():
                env_value = _undeclared_env_value(key)
                merged[key] = value if env_value is None else env_value
        merged.update(self._overrides)
        return merged

    def get_issue_prefix(self) -> str:
        return prefix_file.get_issue_prefix(self)

    def set_issue_prefix(self, prefix: str, start: Path | None = None) -> None:
        """Persist ``prefix`` to the project's config.yaml and this store."""

        prefix_file.set_issue_prefix(self, prefix, start=start)
