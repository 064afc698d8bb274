"""
playqueue Configuration System.

Priority order (highest to lowest):
1. Explicit overrides
2. Environment variables
3. Configuration file (YAML)
4. Default values
"""

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from playqueue.model import RepeatMode

logger = logging.getLogger(__name__)


# Valid log levels
VALID_LOG_LEVELS = {"debug", "info", "warning", "error"}

# Valid repeat modes
VALID_REPEAT_MODES = {mode.value for mode in RepeatMode}

# Environment variable mappings
ENV_MAPPINGS = {
    # Shuffle
    "PLAYQUEUE_SHUFFLE_SEED": ("shuffle", "seed"),
    # Collections
    "PLAYQUEUE_REMOVE_EMPTY_COLLECTIONS": ("collections", "remove_when_empty"),
    # Playback
    "PLAYQUEUE_REPEAT_MODE": ("playback", "repeat_mode"),
    # Logging
    "PLAYQUEUE_LOG_LEVEL": ("logging", "level"),
}


class ConfigError(Exception):
    """Configuration error."""

    pass


@dataclass
class ShuffleConfig:
    """Shuffle configuration."""

    seed: Optional[int] = None  # Fixed seed for reproducible shuffles


@dataclass
class CollectionConfig:
    """Collection policy configuration."""

    remove_when_empty: bool = True  # Drop a collection when its last child is removed


@dataclass
class PlaybackConfig:
    """Playback order configuration."""

    repeat_mode: str = "off"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class Config:
    """Complete playqueue configuration."""

    shuffle: ShuffleConfig = field(default_factory=ShuffleConfig)
    collections: CollectionConfig = field(default_factory=CollectionConfig)
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def setup_logging(level: str = "info") -> None:
    """Configure logging to stdout."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
        force=True,
    )


def validate_config(config: Config) -> None:
    """
    Validate configuration.

    Raises:
        ConfigError: If configuration is invalid
    """
    errors = []

    # Shuffle
    seed = config.shuffle.seed
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
        errors.append(f"Invalid shuffle seed: {seed!r}. Must be an integer")

    # Collections
    if not isinstance(config.collections.remove_when_empty, bool):
        errors.append(
            f"Invalid remove_when_empty: {config.collections.remove_when_empty!r}. "
            "Must be true or false"
        )

    # Playback
    if str(config.playback.repeat_mode).lower() not in VALID_REPEAT_MODES:
        errors.append(
            f"Invalid repeat_mode: {config.playback.repeat_mode}. "
            f"Valid values: {sorted(VALID_REPEAT_MODES)}"
        )

    # Logging
    if config.logging.level.lower() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid log level: {config.logging.level}. "
            f"Valid values: {sorted(VALID_LOG_LEVELS)}"
        )

    if errors:
        raise ConfigError("Configuration validation failed:\n  - " + "\n  - ".join(errors))


def load_yaml_config(path: Path) -> dict:
    """
    Load configuration from YAML file.

    Args:
        path: Path to YAML file

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If file cannot be read or parsed
    """
    if not path.exists():
        logger.debug(f"Config file not found: {path}")
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
            return data if data else {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML config: {e}")
    except IOError as e:
        raise ConfigError(f"Error reading config file: {e}")


def _set_nested(d: dict, path: tuple, value: Any) -> None:
    """Set a nested dictionary value using a path tuple."""
    for key in path[:-1]:
        d = d.setdefault(key, {})
    d[path[-1]] = value


def load_env_config() -> dict:
    """
    Load configuration from environment variables.

    Returns:
        Configuration dictionary with values from environment
    """
    result: dict = {}

    for env_var, path in ENV_MAPPINGS.items():
        value: Any = os.environ.get(env_var)
        if value is not None:
            # Convert numeric values
            if env_var == "PLAYQUEUE_SHUFFLE_SEED":
                try:
                    value = int(value)
                except ValueError:
                    logger.warning(f"Invalid integer for {env_var}: {value}")
                    continue
            # Convert boolean values
            elif env_var == "PLAYQUEUE_REMOVE_EMPTY_COLLECTIONS":
                value = value.lower() in ("true", "1", "yes", "on")

            # Set nested value
            _set_nested(result, path, value)

    return result


def _deep_merge(base: dict, override: dict) -> None:
    """Recursively merge override into base."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def merge_configs(*configs: dict) -> dict:
    """
    Deep merge multiple configuration dictionaries.
    Later configs override earlier ones.
    """
    result: dict = {}
    for config in configs:
        _deep_merge(result, config)
    return result


def dict_to_config(d: dict) -> Config:
    """Convert a dictionary to Config dataclass."""
    config = Config()

    # Shuffle
    if "shuffle" in d:
        config.shuffle.seed = d["shuffle"].get("seed", config.shuffle.seed)

    # Collections
    if "collections" in d:
        config.collections.remove_when_empty = d["collections"].get(
            "remove_when_empty", config.collections.remove_when_empty
        )

    # Playback
    if "playback" in d:
        repeat_mode = d["playback"].get("repeat_mode", config.playback.repeat_mode)
        config.playback.repeat_mode = str(repeat_mode).lower()

    # Logging
    if "logging" in d:
        config.logging.level = d["logging"].get("level", config.logging.level)

    return config


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[dict] = None,
) -> Config:
    """
    Load configuration from all sources.

    Priority (highest to lowest):
    1. Overrides
    2. Environment variables
    3. Config file
    4. Defaults

    Args:
        config_path: Path to YAML config file
        overrides: Dictionary of explicit settings

    Returns:
        Merged Config object

    Raises:
        ConfigError: If configuration is invalid
    """
    # Start with empty dict (defaults come from dataclasses)
    configs = []

    # 1. Load from file (lowest priority of explicit configs)
    if config_path:
        file_config = load_yaml_config(config_path)
        if file_config:
            configs.append(file_config)
            logger.debug(f"Loaded config from {config_path}")

    # 2. Load from environment
    env_config = load_env_config()
    if env_config:
        configs.append(env_config)
        logger.debug("Loaded config from environment variables")

    # 3. Overrides (highest priority)
    if overrides:
        configs.append(overrides)
        logger.debug("Applied config overrides")

    # Merge all configs
    merged = merge_configs(*configs) if configs else {}

    # Convert to Config object (fills in defaults)
    config = dict_to_config(merged)

    # Validate
    validate_config(config)

    return config
