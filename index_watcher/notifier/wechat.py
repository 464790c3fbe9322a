"""
WeCom (WeChat Work) group robot notifier.
"""

import logging
from typing import Any, Dict, Optional

import requests

from ..errors import ConfigError, SendError
from .base import Notifier


logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT = 10.0
TEST_MESSAGE = "🚀 Index watcher started, connection test succeeded! ✅"


class WeChatNotifier(Notifier):
    """Posts text messages to a WeCom group robot webhook."""

    def __init__(
        self,
        webhook_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the notifier.

        Args:
            webhook_url: Group robot webhook URL, including its key.
            timeout: Seconds before a delivery attempt is abandoned.
            session: HTTP session to use (optional, creates one if None).

        Raises:
            ConfigError: If the webhook URL is empty.
        """
        if not webhook_url or not webhook_url.strip():
            raise ConfigError("WeCom webhook URL must not be empty")

        self.webhook_url = webhook_url.strip()
        self._timeout = timeout
        self._session = session or requests.Session()

    def send(self, message: str) -> None:
        """Send a plain text message."""
        self._post({"msgtype": "text", "text": {"content": message}})

    def test_connection(self) -> None:
        """Send a fixed message to check that the webhook accepts our posts."""
        self.send(TEST_MESSAGE)
        logger.info("WeCom webhook connection test succeeded")

    def _post(self, payload: Dict[str, Any]) -> None:
        headers = {
            "Content-Type": "application/json; charset=utf-8",
            "Accept": "application/json",
        }

        try:
            response = self._session.post(
                self.webhook_url, json=payload, headers=headers, timeout=self._timeout
            )
        except requests.RequestException as e:
            raise SendError(f"Webhook request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise SendError(
                f"Webhook returned status {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            reply = response.json()
        except ValueError as e:
            raise SendError(
                f"Webhook reply is not JSON: {response.text}",
                status_code=response.status_code,
                body=response.text,
            ) from e

        # A 2xx reply can still carry an application-level failure
        errcode = reply.get("errcode", 0) if isinstance(reply, dict) else 0
        if errcode not in (0, "0", None):
            errmsg = reply.get("errmsg") or "unknown error"
            raise SendError(
                f"Webhook rejected the message: {errcode} - {errmsg}",
                status_code=response.status_code,
                body=response.text,
                errcode=errcode,
            )

        logger.debug("Webhook accepted the message")

    def close(self) -> None:
        """Release the underlying HTTP session."""
        self._session.close()
