"""
Configuration management module for the index watcher.

This module handles loading, validating, and materializing the YAML
configuration file using Pydantic for validation and type safety.
"""

from .config_manager import ConfigurationManager
from .models import (
    AlertWindow,
    DEFAULT_INDEX_NAMES,
    MonitorSettings,
    StockSettings,
    WatcherConfig,
    WeChatSettings,
    parse_duration,
)

__all__ = [
    "ConfigurationManager",
    "WatcherConfig",
    "StockSettings",
    "WeChatSettings",
    "MonitorSettings",
    "AlertWindow",
    "DEFAULT_INDEX_NAMES",
    "parse_duration",
]
