"""
Notification channel for multirustkit.

Components never print progress or warnings themselves. They report
structured notifications through a Notifier that is created once per process
invocation and handed to every component that needs it.

Example:
    >>> notifier = Notifier(LoggingNotifyHandler(verbose=True))
    >>> notifier.info("installing toolchain 'nightly'")

Tests install a recording handler instead:
    >>> seen = []
    >>> notifier = Notifier(seen.append)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class NotificationLevel(Enum):
    """Severity of a notification."""

    VERBOSE = "verbose"
    INFO = "info"
    WARNING = "warning"


@dataclass(frozen=True)
class Notification:
    """A single event reported by a component."""

    level: NotificationLevel
    message: str

    def is_verbose(self) -> bool:
        return self.level is NotificationLevel.VERBOSE

    def __str__(self) -> str:
        if self.level is NotificationLevel.WARNING:
            return f"warning: {self.message}"
        return self.message


NotifyHandler = Callable[[Notification], None]


class LoggingNotifyHandler:
    """
    Default handler: forwards notifications to the `logging` module.

    Verbose notifications are dropped unless verbose mode is on, matching the
    behaviour of the `--verbose` flag.
    """

    _LEVELS = {
        NotificationLevel.VERBOSE: logging.INFO,
        NotificationLevel.INFO: logging.INFO,
        NotificationLevel.WARNING: logging.WARNING,
    }

    def __init__(self, verbose: bool = False, target: Optional[logging.Logger] = None):
        self.verbose = verbose
        self.target = target or logger

    def __call__(self, notification: Notification) -> None:
        if notification.is_verbose() and not self.verbose:
            return
        self.target.log(self._LEVELS[notification.level], str(notification))


class Notifier:
    """Sink for notifications, passed explicitly to components."""

    def __init__(self, handler: Optional[NotifyHandler] = None):
        self.handler = handler or LoggingNotifyHandler()

    def notify(self, notification: Notification) -> None:
        self.handler(notification)

    def verbose(self, message: str) -> None:
        self.notify(Notification(NotificationLevel.VERBOSE, message))

    def info(self, message: str) -> None:
        self.notify(Notification(NotificationLevel.INFO, message))

    def warning(self, message: str) -> None:
        self.notify(Notification(NotificationLevel.WARNING, message))


__all__ = [
    "NotificationLevel",
    "Notification",
    "NotifyHandler",
    "LoggingNotifyHandler",
    "Notifier",
]
