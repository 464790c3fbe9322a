"""
Error types shared across the watcher components.
"""

from typing import Optional, Union


class WatcherError(Exception):
    """Base class for all index watcher errors."""


class ConfigError(WatcherError):
    """Configuration could not be loaded or is invalid. Fatal at startup."""


class ConfigTemplateCreated(ConfigError):
    """No configuration existed, so a template was written for the operator."""

    def __init__(self, message: str, path: str):
        super().__init__(message)
        self.path = path


class FetchError(WatcherError):
    """The primary quote source could not deliver a snapshot."""


class ParseError(FetchError):
    """The primary quote source replied with something we cannot read."""


class SendError(WatcherError):
    """A notification was not delivered.

    Attributes:
        status_code: HTTP status of the webhook reply, if one was received.
        body: Raw reply body, kept for diagnostics.
        errcode: Application error code embedded in a 2xx reply.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        errcode: Optional[Union[int, str]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.errcode = errcode
