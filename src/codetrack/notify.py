"""User-facing notifications."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Protocol

import click

logger = logging.getLogger(__name__)


class NotifyLevel(Enum):
    """Severity of a user notification."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class UserNotifier(Protocol):
    """Receives fire-and-forget messages meant for the user."""

    def notify(self, level: NotifyLevel, message: str) -> None: ...


_LOG_LEVELS = {
    NotifyLevel.INFO: logging.INFO,
    NotifyLevel.WARNING: logging.WARNING,
    NotifyLevel.ERROR: logging.ERROR,
}

_COLORS = {
    NotifyLevel.INFO: None,
    NotifyLevel.WARNING: "yellow",
    NotifyLevel.ERROR: "red",
}


class TerminalNotifier:
    """Echoes notifications to the terminal, colored by level.

    With echo disabled, notifications go to the log instead.
    """

    def __init__(self, echo: bool = True):
        self.echo = echo

    def notify(self, level: NotifyLevel, message: str) -> None:
        if not self.echo:
            logger.log(_LOG_LEVELS[level], message)
            return
        logger.debug(f"Notify ({level.value}): {message}")
        click.secho(message, fg=_COLORS[level], err=level is NotifyLevel.ERROR)


class FanoutNotifier:
    """Forwards each notification to several notifiers."""

    def __init__(self, notifiers: Iterable[UserNotifier] = ()):
        self.notifiers: list[UserNotifier] = list(notifiers)

    def add(self, notifier: UserNotifier) -> None:
        self.notifiers.append(notifier)

    def notify(self, level: NotifyLevel, message: str) -> None:
        for notifier in self.notifiers:
            try:
                notifier.notify(level, message)
            except Exception as e:
                logger.error(f"Notifier {notifier!r} failed: {e}")
