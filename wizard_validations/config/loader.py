"""Load configuration from YAML file.

The parsed file is cached per path; ``get_config`` is on the validation hot
path (every step gate resolves its unknown-step policy), so it never touches
the filesystem after the first read. Call ``reload_config`` after editing
the file or switching ``WIZARD_VALIDATIONS_CONFIG``.
"""

import copy
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_PATH_ENV = "WIZARD_VALIDATIONS_CONFIG"


def _config_override() -> str:
    return os.getenv(CONFIG_PATH_ENV, "").strip()


def find_config_file(override: Optional[str] = None) -> Path:
    """Return the config file: ``$WIZARD_VALIDATIONS_CONFIG`` or the packaged config.yaml."""
    override = _config_override() if override is None else override
    config_file = Path(override) if override else Path(__file__).parent / "config.yaml"

    if not config_file.exists():
        raise FileNotFoundError(
            f"config file not found at {config_file}. "
            f"Unset {CONFIG_PATH_ENV} or create the file."
        )

    return config_file


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Read and parse a configuration file. Always hits the filesystem.

    Args:
        path: Optional explicit path; defaults to ``find_config_file()``

    Returns:
        dict: Configuration dictionary

    Raises:
        FileNotFoundError: If the file is not found
        yaml.YAMLError: If YAML parsing fails
        ValueError: If the top level is not a mapping
    """
    config_file = Path(path) if path is not None else find_config_file()

    with open(config_file, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f)

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValueError(f"{config_file} must contain a mapping, got {type(config).__name__}")
    return config


@lru_cache(maxsize=8)
def _cached_config(override: str) -> Dict[str, Any]:
    return load_config(find_config_file(override))


def reload_config() -> None:
    """Drop cached configuration so the next lookup re-reads the file."""
    _cached_config.cache_clear()


def get_config(section: Optional[str] = None) -> Any:
    """
    Get configuration value(s) from the cached config file.

    Args:
        section: Optional section name (e.g., "logging", "validations")
                 If None, returns entire config

    Returns:
        A copy of the section (``{}`` when missing) or of the whole config
    """
    config = _cached_config(_config_override())

    if section is None:
        return copy.deepcopy(config)

    return copy.deepcopy(config.get(section) or {})
