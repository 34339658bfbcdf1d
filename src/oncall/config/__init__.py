"""
oncall configuration.

- YAML config file with the API key, teams and display options
- ``ONCALL_``-prefixed environment settings that override it
"""

from oncall.config.loader import (
    DisplayConfig,
    OnCallConfig,
    default_config_path,
    get_config_path,
    load_config,
)
from oncall.config.settings import Settings, get_settings

__all__ = [
    "DisplayConfig",
    "OnCallConfig",
    "Settings",
    "default_config_path",
    "get_config_path",
    "get_settings",
    "load_config",
]
