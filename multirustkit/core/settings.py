"""
User settings for multirustkit.

Settings are read from `settings.yaml` in the multirust home. The file is
optional; every key has a default. Environment variables take precedence.

Example settings.yaml:
    dist_root: https://static.rust-lang.org/dist
    download_timeout: 60
    lock_timeout: 30
"""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from multirustkit.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_DIST_ROOT = "https://static.rust-lang.org/dist"
DIST_ROOT_ENV_VAR = "MULTIRUST_DIST_ROOT"


@dataclass
class Settings:
    """
    Effective settings.

    Attributes:
        dist_root: Base URL of the distribution server
        download_timeout: Network timeout in seconds
        lock_timeout: Wait time in seconds for state locks
    """

    dist_root: str = DEFAULT_DIST_ROOT
    download_timeout: int = 30
    lock_timeout: int = 30

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        known = {f.name: f for f in fields(cls)}
        values = {}
        for key, value in data.items():
            if key not in known:
                logger.warning(f"Ignoring unknown setting: {key}")
                continue
            expected = type(getattr(cls, key))
            if isinstance(value, bool) or not isinstance(value, expected):
                raise ConfigError(
                    f"setting '{key}' must be of type {expected.__name__}, got {value!r}"
                )
            values[key] = value
        return cls(**values)


def load_yaml_config(config_file: Path) -> Dict[str, Any]:
    """
    Load and parse a YAML configuration file.

    Returns:
        Configuration dictionary (empty dict if the file doesn't exist)

    Raises:
        ConfigError: If YAML parsing fails or the top level is not a mapping
    """
    if not config_file.exists():
        logger.debug(f"Config file not found (optional): {config_file}")
        return {}

    logger.debug(f"Loading configuration from {config_file}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {config_file}: {e}") from e
    except OSError as e:
        raise ConfigError(f"could not read {config_file}: {e}") from e

    config = config or {}
    if not isinstance(config, dict):
        raise ConfigError(f"{config_file} must contain a mapping at the top level")
    return config


def load_settings(config_file: Path, environ: Mapping[str, str]) -> Settings:
    """Load settings from file, then apply environment overrides."""
    settings = Settings.from_dict(load_yaml_config(config_file))

    dist_root = environ.get(DIST_ROOT_ENV_VAR)
    if dist_root:
        settings.dist_root = dist_root

    settings.dist_root = settings.dist_root.rstrip("/")
    return settings
