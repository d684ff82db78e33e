"""Notification channels for run progress."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from rich.console import Console

from ..models import NotificationEvent, NotificationLevel

LOGGER = logging.getLogger(__name__)


class Notifier(ABC):
    """Interface for sending notifications about run events."""

    @abstractmethod
    def notify(self, event: NotificationEvent) -> None:
        """Send a notification event."""


class ConsoleNotifier(Notifier):
    """Simple notifier that prints to the console using Rich."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self._console = console or Console()

    def notify(self, event: NotificationEvent) -> None:
        style = {
            "info": "cyan",
            "warning": "yellow",
            "error": "red",
            "success": "green",
        }.get(event.level.value, "white")
        self._console.print(
            f"[{event.level.value.upper()}] {event.message}",
            style=style,
            markup=False,
        )
        if event.data:
            self._console.print(event.data, style="dim")


class LoggingNotifier(Notifier):
    """Forward events to the standard logging tree."""

    _LEVELS = {
        NotificationLevel.INFO: logging.INFO,
        NotificationLevel.SUCCESS: logging.INFO,
        NotificationLevel.WARNING: logging.WARNING,
        NotificationLevel.ERROR: logging.ERROR,
    }

    def notify(self, event: NotificationEvent) -> None:
        LOGGER.log(self._LEVELS[event.level], "%s: %s", event.type, event.message)


class CompositeNotifier(Notifier):
    """Fan-out notifier that propagates events to multiple notifiers."""

    def __init__(self, notifiers: Iterable[Notifier]) -> None:
        self._notifiers = list(notifiers)

    def notify(self, event: NotificationEvent) -> None:
        for notifier in self._notifiers:
            notifier.notify(event)
