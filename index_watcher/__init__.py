"""
Index Watcher - polls a market index and pushes move alerts to a chat webhook.

This package watches a single index quote at a fixed interval, compares each
snapshot with the previous one, and sends a deduplicated alert to a WeCom
group robot when the move against the previous close crosses a threshold
inside the configured alert window.
"""

__version__ = "0.1.0"
__author__ = "Index Watcher Team"

# Lazy imports to avoid dependency issues during package setup
__all__ = [
    "ConfigurationManager",
    "WatcherConfig",
    "QuoteFetcher",
    "Snapshot",
    "Notifier",
    "WeChatNotifier",
    "StockMonitor",
    "MonitorState",
    "MonitorStatus",
    "TickOutcome",
]

def __getattr__(name):
    """Lazy import for package components."""
    if name == "ConfigurationManager":
        from .config import ConfigurationManager
        return ConfigurationManager
    elif name == "WatcherConfig":
        from .config import WatcherConfig
        return WatcherConfig
    elif name == "QuoteFetcher":
        from .data_source import QuoteFetcher
        return QuoteFetcher
    elif name == "Snapshot":
        from .data_source import Snapshot
        return Snapshot
    elif name == "Notifier":
        from .notifier import Notifier
        return Notifier
    elif name == "WeChatNotifier":
        from .notifier import WeChatNotifier
        return WeChatNotifier
    elif name == "StockMonitor":
        from .monitor import StockMonitor
        return StockMonitor
    elif name == "MonitorState":
        from .monitor import MonitorState
        return MonitorState
    elif name == "MonitorStatus":
        from .monitor import MonitorStatus
        return MonitorStatus
    elif name == "TickOutcome":
        from .monitor import TickOutcome
        return TickOutcome
    else:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
