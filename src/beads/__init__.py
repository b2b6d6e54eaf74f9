"""beads: configuration and legacy-state migration for the ``bd`` issue tracker.

- layered settings: defaults, config.yaml, environment, explicit overrides
- text-preserving updates of ``issue-prefix`` in config.yaml
- one-time migration of legacy database names and in-database settings
"""

__version__ = "0.1.0"

from beads.config import BeadsSettings, ConfigStore

__all__ = ["__version__", "BeadsSettings", "ConfigStore"]
