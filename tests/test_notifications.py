import logging

import pytest
from rich.console import Console

from sweetshop_e2e.config import NotificationConfig
from sweetshop_e2e.factory import build_notifier
from sweetshop_e2e.models import NotificationEvent, NotificationLevel
from sweetshop_e2e.notifications.base import (
    CompositeNotifier,
    ConsoleNotifier,
    LoggingNotifier,
    Notifier,
)


class ListNotifier(Notifier):
    def __init__(self) -> None:
        self.events: list[NotificationEvent] = []

    def notify(self, event: NotificationEvent) -> None:
        self.events.append(event)


def test_console_notifier_prints_level_and_message():
    console = Console(record=True, width=120)
    ConsoleNotifier(console).notify(
        NotificationEvent(
            type="scenario_failed",
            message="login failed: text of xpath=/html/body/div[1]/header/p",
            level=NotificationLevel.ERROR,
        )
    )
    assert "[ERROR] login failed: text of xpath=/html/body/div[1]/header/p" in console.export_text()


def test_logging_notifier_uses_event_severity(caplog):
    with caplog.at_level(logging.INFO, logger="sweetshop_e2e.notifications.base"):
        LoggingNotifier().notify(
            NotificationEvent(type="run_aborted", message="no browser", level=NotificationLevel.ERROR)
        )
    assert caplog.records[-1].levelno == logging.ERROR
    assert "run_aborted: no browser" in caplog.text


def test_composite_notifier_fans_out():
    first, second = ListNotifier(), ListNotifier()
    event = NotificationEvent(type="run_started", message="go")

    CompositeNotifier([first, second]).notify(event)

    assert first.events == [event]
    assert second.events == [event]


def test_build_notifier_channels():
    assert isinstance(build_notifier(NotificationConfig(channel="Console")), ConsoleNotifier)
    assert isinstance(build_notifier(NotificationConfig(channel="log")), LoggingNotifier)
    with pytest.raises(ValueError, match="pager"):
        build_notifier(NotificationConfig(channel="pager"))


def test_build_notifier_combines_channels():
    notifier = build_notifier(NotificationConfig(channel="console, log"))
    assert isinstance(notifier, CompositeNotifier)
