"""
Notifier capability shared by all delivery channels.
"""

from abc import ABC, abstractmethod


class Notifier(ABC):
    """Delivers a text message somewhere a human will read it."""

    @abstractmethod
    def send(self, message: str) -> None:
        """
        Deliver a message.

        Raises:
            SendError: If the message was not delivered.
        """

    def close(self) -> None:
        """Release any resources held by the channel."""
