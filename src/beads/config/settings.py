"""Typed settings for the ``bd`` tool.

Values are resolved from these layers, highest precedence first:

- keyword arguments passed to :class:`BeadsSettings`
- ``BD_<KEY>`` environment variables (``no-daemon`` -> ``BD_NO_DAEMON``)
- legacy unprefixed variables (``BEADS_FLUSH_DEBOUNCE``, ``BEADS_AUTO_START_DAEMON``)
- the first ``config.yaml`` found (see :mod:`beads.config.paths`)
- field defaults

Option names use the dashed spelling users write in ``config.yaml``; each
field carries it as its alias.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml
from pydantic import (
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from beads.config.duration import parse_duration
from beads.config.paths import find_config_file
from beads.errors import ConfigParseError

logger = logging.getLogger(__name__)

ENV_PREFIX = "BD_"

LEGACY_ENV_VARS: dict[str, str] = {
    "flush-debounce": "BEADS_FLUSH_DEBOUNCE",
    "auto-start-daemon": "BEADS_AUTO_START_DAEMON",
}


_ZERO_VALUES: dict[Any, Any] = {bool: False, str: "", timedelta: timedelta(0)}


def env_var_name(key: str) -> str:
    """Environment variable bound to option ``key``."""

    return ENV_PREFIX + key.upper().replace("-", "_").replace(".", "_")


def load_config_file(path: Path) -> dict[str, Any]:
    """Read ``path`` as a flat YAML mapping.

    An empty file is an empty mapping. Keys are lower-cased. A key declared
    without a value (``issue-prefix:``) is left out, as if it were unset.

    Raises:
        ConfigParseError: If the file is unreadable, is not valid YAML, is not a
            mapping, or nests a mapping under a key.
    """

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigParseError(path, str(exc)) from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigParseError(path, str(exc)) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigParseError(path, "expected a mapping of 'key: value' lines")

    values: dict[str, Any] = {}
    for key, value in data.items():
        if not isinstance(key, str):
            raise ConfigParseError(path, f"key {key!r} is not a string")
        if isinstance(value, dict):
            raise ConfigParseError(path, f"nested mapping under {key!r} is not supported")
        if value is None:
            continue
        values[key.lower()] = value
    return values


def _option_fields(settings_cls: type[BaseSettings]) -> list[tuple[str, FieldInfo]]:
    return [
        (name, field) for name, field in settings_cls.model_fields.items() if field.alias is not None
    ]


class EnvironmentSource(PydanticBaseSettingsSource):
    """Reads ``BD_<KEY>`` and the legacy unprefixed variables.

    Empty variables are treated as unset.
    """

    def __init__(
        self, settings_cls: type[BaseSettings], environ: Mapping[str, str] | None = None
    ) -> None:
        super().__init__(settings_cls)
        self._environ = os.environ if environ is None else environ

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        key = field.alias or field_name
        names = [env_var_name(key)]
        if key in LEGACY_ENV_VARS:
            names.append(LEGACY_ENV_VARS[key])
        for name in names:
            value = self._environ.get(name)
            if value:
                return value, key, False
        return None, key, False

    def __call__(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for field_name, field in _option_fields(self.settings_cls):
            value, key, _ = self.get_field_value(field, field_name)
            if value is not None:
                data[key] = value
        return data


class ConfigFileSource(PydanticBaseSettingsSource):
    """Values from the config file that applies to the current directory."""

    def __init__(self, settings_cls: type[BaseSettings]) -> None:
        super().__init__(settings_cls)
        self.path = find_config_file()
        self._data = load_config_file(self.path) if self.path is not None else {}

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        key = field.alias or field_name
        return self._data.get(key), key, False

    def __call__(self) -> dict[str, Any]:
        if self.path is None:
            return {}
        data = dict(self._data)
        data["config_file"] = self.path
        return data


class BeadsSettings(BaseSettings):
    """Runtime options for ``bd``."""

    json_output: bool = Field(default=False, alias="json", description="Emit JSON output")
    no_daemon: bool = Field(
        default=False, alias="no-daemon", description="Run commands without the daemon"
    )
    no_auto_flush: bool = Field(
        default=False, alias="no-auto-flush", description="Disable automatic JSONL export"
    )
    no_auto_import: bool = Field(
        default=False, alias="no-auto-import", description="Disable automatic JSONL import"
    )
    no_db: bool = Field(default=False, alias="no-db", description="Work from JSONL only")
    db: str = Field(default="", alias="db", description="Explicit database path")
    actor: str = Field(default="", alias="actor", description="Actor name for audit trails")
    issue_prefix: str = Field(
        default="", alias="issue-prefix", description="Prefix for new issue identifiers"
    )
    flush_debounce: timedelta = Field(
        default=timedelta(seconds=30),
        alias="flush-debounce",
        description="Delay before dirty issues are exported",
    )
    auto_start_daemon: bool = Field(
        default=True, alias="auto-start-daemon", description="Start the daemon on demand"
    )

    # Set by ConfigFileSource; not an option.
    config_file: Path | None = Field(default=None, exclude=True)

    model_config = SettingsConfigDict(extra="allow")

    @field_validator("db", "actor", "issue_prefix", mode="before")
    @classmethod
    def _scalar_to_str(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("flush_debounce", mode="before")
    @classmethod
    def _parse_duration(cls, value: Any) -> timedelta:
        return parse_duration(value)

    @field_validator(
        "json_output",
        "no_daemon",
        "no_auto_flush",
        "no_auto_import",
        "no_db",
        "db",
        "actor",
        "issue_prefix",
        "flush_debounce",
        "auto_start_daemon",
        mode="wrap",
    )
    @classmethod
    def _zero_value_on_error(
        cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo
    ) -> Any:
        """A value that does not fit its option reads as the type's zero value."""

        try:
            return handler(value)
        except ValidationError as exc:
            field = cls.model_fields[info.field_name]
            logger.debug(
                "Ignoring invalid config value",
                extra={"option": field.alias, "value": value, "error": str(exc)},
            )
            return _ZERO_VALUES[field.annotation]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            EnvironmentSource(settings_cls),
            ConfigFileSource(settings_cls),
        )

    @classmethod
    def option_names(cls) -> list[str]:
        """Dashed names of every known option, in declaration order."""

        return [field.alias for _, field in _option_fields(cls) if field.alias]

    def options(self) -> dict[str, Any]:
        """Resolved values keyed by option name, including unknown file keys."""

        return self.model_dump(by_alias=True)
