"""
Notification module for delivering alerts to chat webhooks.
"""

from .base import Notifier
from .wechat import WeChatNotifier

__all__ = ["Notifier", "WeChatNotifier"]
