"""Configuration for triggersearch."""

from triggersearch.config.loader import CONFIG_PATH_ENV, ConfigLoadError, YAMLConfigLoader, load_config
from triggersearch.config.models import IdColumnConfig, TriggerSearchConfig, WatchedEntityConfig

__all__ = [
    "CONFIG_PATH_ENV",
    "ConfigLoadError",
    "IdColumnConfig",
    "TriggerSearchConfig",
    "WatchedEntityConfig",
    "YAMLConfigLoader",
    "load_config",
]
