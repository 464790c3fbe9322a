"""
Monitor module holding the polling state machine.

This module compares successive index snapshots, applies the significance
test, the alert window and the repeat-alert policy, and hands alerts to a
notifier.
"""

from ..config.models import AlertWindow
from .models import MonitorState, MonitorStatus, TickOutcome
from .stock_monitor import StockMonitor

__all__ = ["StockMonitor", "MonitorState", "MonitorStatus", "TickOutcome", "AlertWindow"]
