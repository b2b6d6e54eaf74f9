"""Configuration package."""

from beads.config.settings import BeadsSettings
from beads.config.store import ConfigStore

__all__ = [
    "BeadsSettings",
    "ConfigStore",
]
