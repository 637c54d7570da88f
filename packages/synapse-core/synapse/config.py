"""
Synapse Configuration

Loads settings from ~/.synapse/config.yaml with environment variable overrides.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional
import os
import logging

import yaml

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".synapse"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

DEFAULT_SQLITE_PATH = "~/.synapse/synapse.db"


@dataclass
class StorageConfig:
    """Storage configuration settings."""

    type: str = "sqlite"  # "sqlite" or "memory"
    sqlite_path: str = DEFAULT_SQLITE_PATH
    strict: bool = False  # propagate persistence failures instead of logging them


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "INFO"
    log_dir: Optional[str] = None


@dataclass
class ViewConfig:
    """Default view preferences for a fresh session."""

    filter: str = "all"
    sort: str = "due_date"
    show_completed: bool = False


@dataclass
class SynapseConfig:
    """
    Complete Synapse configuration.

    Loaded from ~/.synapse/config.yaml with environment variable overrides.
    """

    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    views: ViewConfig = field(default_factory=ViewConfig)

    def to_dict(self) -> dict:
        """Convert to dictionary for display."""
        return asdict(self)


def _parse_storage_config(data: dict) -> StorageConfig:
    """Parse storage configuration from YAML data."""
    storage_data = data.get("storage") or {}

    sqlite_config = storage_data.get("sqlite") or {}

    return StorageConfig(
        type=storage_data.get("type", "sqlite"),
        sqlite_path=sqlite_config.get("path", DEFAULT_SQLITE_PATH),
        strict=bool(storage_data.get("strict", False)),
    )


def _parse_logging_config(data: dict) -> LoggingConfig:
    """Parse logging configuration from YAML data."""
    logging_data = data.get("logging") or {}

    return LoggingConfig(
        level=str(logging_data.get("level", "INFO")).upper(),
        log_dir=logging_data.get("log_dir"),
    )


def _parse_view_config(data: dict) -> ViewConfig:
    views_data = data.get("views") or {}

    return ViewConfig(
        filter=views_data.get("filter", "all"),
        sort=views_data.get("sort", "due_date"),
        show_completed=bool(views_data.get("show_completed", False)),
    )


def load_config(config_path: Optional[Path] = None) -> SynapseConfig:
    """
    Load configuration from file with environment variable overrides.

    Args:
        config_path: Optional path to config file. Defaults to ~/.synapse/config.yaml

    Returns:
        SynapseConfig instance
    """
    config_file = config_path or CONFIG_FILE
    config = SynapseConfig()

    if config_file.exists():
        try:
            with open(config_file, 'r') as f:
                data = yaml.safe_load(f) or {}

            config.storage = _parse_storage_config(data)
            config.logging = _parse_logging_config(data)
            config.views = _parse_view_config(data)

        except yaml.YAMLError as e:
            logger.warning(f"Could not parse config file at {config_file}: {e}")
        except (OSError, AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Unexpected error loading config from {config_file}: {e}")

    # Environment variable overrides
    if os.environ.get("SYNAPSE_STORAGE"):
        config.storage.type = os.environ["SYNAPSE_STORAGE"]

    if os.environ.get("SYNAPSE_DB_PATH"):
        config.storage.type = "sqlite"
        config.storage.sqlite_path = os.environ["SYNAPSE_DB_PATH"]

    if os.environ.get("SYNAPSE_LOG_LEVEL"):
        config.logging.level = os.environ["SYNAPSE_LOG_LEVEL"].upper()

    return config


def save_config(config: SynapseConfig, config_path: Optional[Path] = None) -> None:
    """
    Save configuration to file.

    Args:
        config: SynapseConfig instance to save
        config_path: Optional path to config file. Defaults to ~/.synapse/config.yaml
    """
    config_file = config_path or CONFIG_FILE

    # Ensure config directory exists
    config_file.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "storage": {
            "type": config.storage.type,
            "strict": config.storage.strict,
        },
        "logging": {
            "level": config.logging.level,
        },
        "views": {
            "filter": config.views.filter,
            "sort": config.views.sort,
            "show_completed": config.views.show_completed,
        },
    }

    if config.storage.type == "sqlite":
        data["storage"]["sqlite"] = {"path": config.storage.sqlite_path}

    if config.logging.log_dir:
        data["logging"]["log_dir"] = config.logging.log_dir

    with open(config_file, 'w') as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    # Secure permissions (readable only by owner)
    config_file.chmod(0o600)

    logger.info(f"Configuration saved to {config_file}")

