"""Configuration for wizard_validations."""

from .loader import load_config, get_config, find_config_file, reload_config
from .settings import ValidationSettings, get_settings

__all__ = [
    "load_config",
    "get_config",
    "find_config_file",
    "reload_config",
    "ValidationSettings",
    "get_settings",
]
