"""
Configuration manager for loading and validating YAML configuration files.
"""

import yaml
import logging
from pathlib import Path
from typing import Optional, Dict, Any

from pydantic import ValidationError

from ..errors import ConfigError, ConfigTemplateCreated
from .models import WatcherConfig


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_TEMPLATE = """\
# Index watcher configuration

# Monitored index
stock:
  code: "sh000001"        # quote code, e.g. sh000001 (SSE Composite)
  name: "上证指数"        # display name, optional
  threshold: 0.8          # alert threshold in percent, 0.8 means 0.8%

# WeCom group robot
wechat:
  webhook_url: ""         # fill in the group robot webhook URL
  # How to get a webhook URL:
  # 1. Add a robot to the WeCom group chat
  # 2. Copy the robot's webhook URL here

# Polling
monitor:
  interval: 30s           # poll interval, units: s (seconds), m (minutes), h (hours)
  alert_window:           # alerts are only delivered inside this window
    start: "14:30"
    end: "15:00"
    weekdays: [0, 1, 2, 3, 4]   # Monday is 0
"""


class ConfigurationManager:
    """Manages loading, validation and templating of YAML configuration files."""

    DEFAULT_CONFIG_FILENAME = "config.yaml"

    def load_config(self, config_path: Optional[str] = None) -> WatcherConfig:
        """
        Load and validate configuration from YAML file.

        When the file does not exist a template is written in its place and
        ConfigTemplateCreated is raised, so the operator can fill it in.

        Args:
            config_path: Path to configuration file. If None, uses default.

        Returns:
            Validated WatcherConfig instance.

        Raises:
            ConfigError: If the file cannot be read or fails validation.
        """
        if config_path is None:
            config_path = self.get_default_config_path()

        path = Path(config_path)
        if not path.exists():
            self.create_default_config(config_path)
            raise ConfigTemplateCreated(
                f"Configuration file not found, created template {config_path}. "
                f"Fill in wechat.webhook_url and restart.",
                path=str(config_path),
            )

        config_dict = self._load_yaml_file(config_path)
        config = self.validate_config(config_dict)
        logger.debug(f"Loaded configuration from {config_path}")
        return config

    def validate_config(self, config: Dict[str, Any]) -> WatcherConfig:
        """
        Validate configuration dictionary using Pydantic.

        Args:
            config: Configuration dictionary to validate.

        Returns:
            Validated WatcherConfig instance.

        Raises:
            ConfigError: If a value is invalid or a mandatory value is missing.
        """
        if not isinstance(config, dict):
            raise ConfigError("Configuration must be a mapping of sections")

        try:
            validated = WatcherConfig(**config)
        except ValidationError as e:
            raise ConfigError(f"Configuration validation failed: {e}") from e

        if not validated.stock.code:
            raise ConfigError("stock.code must not be empty")
        if not validated.wechat.webhook_url.strip():
            raise ConfigError(
                "wechat.webhook_url must not be empty, configure the WeCom group robot first"
            )

        return validated

    def get_default_config_path(self) -> str:
        """Get the default configuration file path."""
        return self.DEFAULT_CONFIG_FILENAME

    def create_default_config(self, config_path: str) -> Path:
        """Write the configuration template, creating parent directories."""
        path = Path(config_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as file:
                file.write(DEFAULT_CONFIG_TEMPLATE)
        except OSError as e:
            raise ConfigError(f"Failed to create template configuration {config_path}: {e}") from e

        logger.info(f"Created template configuration at {path}")
        return path

    def save_config(self, config: WatcherConfig, config_path: str) -> None:
        """Write a configuration back to YAML."""
        data = config.model_dump(mode="json", exclude_none=True)
        try:
            with open(config_path, 'w', encoding='utf-8') as file:
                yaml.safe_dump(data, file, allow_unicode=True, sort_keys=False)
        except OSError as e:
            raise ConfigError(f"Failed to write configuration {config_path}: {e}") from e

        logger.debug(f"Saved configuration to {config_path}")

    def _load_yaml_file(self, file_path: str) -> Dict[str, Any]:
        """Load YAML file and return as dictionary."""
        try:
            with open(file_path, 'r', encoding='utf-8') as file:
                return yaml.safe_load(file) or {}
        except OSError as e:
            raise ConfigError(f"Failed to read configuration {file_path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse configuration {file_path}: {e}") from e
