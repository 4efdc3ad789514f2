"""Public API for shared relay configuration utilities."""

from .loader import CONFIG_FILE_ENV, load_config, load_settings
from .models import (
    DEFAULT_CONFIG_PATH,
    ComponentsSettings,
    LoggingSettings,
    RelaySettings,
    resolve_component_settings,
)

__all__ = [
    "CONFIG_FILE_ENV",
    "DEFAULT_CONFIG_PATH",
    "ComponentsSettings",
    "LoggingSettings",
    "RelaySettings",
    "load_config",
    "load_settings",
    "resolve_component_settings",
]
