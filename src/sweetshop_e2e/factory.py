"""Factories for constructing components from configuration."""

from __future__ import annotations

from collections.abc import Iterable

from .browser.base import SessionManager
from .browser.playwright_session import PlaywrightSessionManager
from .config import HarnessConfig, NotificationConfig
from .models import Scenario
from .notifications.base import CompositeNotifier, ConsoleNotifier, LoggingNotifier, Notifier
from .orchestrator.runner import ScenarioRunner


def build_session_manager() -> SessionManager:
    return PlaywrightSessionManager()


def build_notifier(config: NotificationConfig) -> Notifier:
    channels = [item.strip().lower() for item in config.channel.split(",") if item.strip()]
    notifiers = [_build_channel(channel) for channel in channels]
    if len(notifiers) == 1:
        return notifiers[0]
    return CompositeNotifier(notifiers)


def _build_channel(channel: str) -> Notifier:
    if channel == "console":
        return ConsoleNotifier()
    if channel == "log":
        return LoggingNotifier()
    raise ValueError(f"Unsupported notification channel: {channel}")


def build_runner(
    config: HarnessConfig,
    scenarios: Iterable[Scenario],
    notifier: Notifier | None = None,
) -> ScenarioRunner:
    runner = ScenarioRunner(
        base_url=config.site.base_url,
        notifier=notifier,
        artifacts_dir=config.report.artifacts_dir,
        screenshots_on_failure=config.report.screenshots_on_failure,
        selected=config.selected or None,
    )
    for scenario in scenarios:
        runner.register(scenario)
    return runner
