"""Scenario runner and the run-level harness around it."""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..browser.base import Session, SessionManager
from ..config import HarnessConfig
from ..errors import (
    AssertionMismatchError,
    FatalHarnessError,
    HarnessError,
    ScenarioDefinitionError,
)
from ..models import (
    NotificationEvent,
    NotificationLevel,
    RunReport,
    Scenario,
    ScenarioResult,
    ScenarioStatus,
    StepResult,
)
from ..notifications.base import Notifier
from ..scenarios.steps import StepExecutor
from .plan import PlanEntry, resolve_order

LOGGER = logging.getLogger(__name__)

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9_.-]+")


class ScenarioRunner:
    """Execute registered scenarios sequentially against one session."""

    def __init__(
        self,
        *,
        base_url: str,
        notifier: Optional[Notifier] = None,
        artifacts_dir: Optional[Path] = None,
        screenshots_on_failure: bool = True,
        selected: Optional[Iterable[str]] = None,
    ) -> None:
        self._base_url = base_url
        self._notifier = notifier
        self._artifacts_dir = artifacts_dir
        self._screenshots_on_failure = screenshots_on_failure
        self._selected = list(selected) if selected else None
        self._entries: list[PlanEntry] = []

    def register(self, scenario: Scenario, order: Optional[int] = None) -> None:
        """Add ``scenario`` to the run set, optionally pinning its ordering key."""

        if any(entry.name == scenario.name for entry in self._entries):
            raise ScenarioDefinitionError(f"Scenario {scenario.name!r} is already registered")
        self._entries.append(PlanEntry(index=len(self._entries), scenario=scenario, order=order))

    def resolved_order(self) -> list[Scenario]:
        return resolve_order(self._entries, self._selected)

    def run_all(self, session: Session) -> list[ScenarioResult]:
        """Run every scenario, isolating failures to the scenario that raised them."""

        results: list[ScenarioResult] = []
        for position, scenario in enumerate(self.resolved_order(), start=1):
            result = self._run_scenario(session, scenario, position)
            results.append(result)
        return results

    def _run_scenario(self, session: Session, scenario: Scenario, position: int) -> ScenarioResult:
        result = ScenarioResult(name=scenario.name, notes=scenario.notes)
        result.status = ScenarioStatus.RUNNING
        result.started_at = datetime.now(timezone.utc)
        LOGGER.info("Running scenario %s", scenario.name)
        self._notify(
            "scenario_started",
            f"Running {scenario.name}",
            NotificationLevel.INFO,
            data={"position": position},
        )
        executor = StepExecutor(session, self._base_url)
        try:
            for index, step in enumerate(scenario.steps):
                started = time.monotonic()
                step_result = StepResult(
                    index=index,
                    action=step.action,
                    description=step.label(),
                    ok=False,
                )
                result.steps.append(step_result)
                try:
                    step_result.output = executor.execute(step)
                except Exception as exc:
                    step_result.detail = str(exc)
                    raise
                finally:
                    step_result.duration = time.monotonic() - started
                step_result.ok = True
        except AssertionMismatchError as exc:
            LOGGER.warning("Scenario %s failed: %s", scenario.name, exc)
            self._finish(result, ScenarioStatus.FAILED, exc)
        except Exception as exc:
            if isinstance(exc, HarnessError):
                LOGGER.warning("Scenario %s errored: %s", scenario.name, exc)
            else:
                LOGGER.exception("Unexpected error in scenario %s", scenario.name)
            self._finish(result, ScenarioStatus.ERRORED, exc)
        else:
            self._finish(result, ScenarioStatus.PASSED, None)

        if result.status != ScenarioStatus.PASSED:
            result.screenshot_path = self._capture(session, scenario, position)
        level = (
            NotificationLevel.SUCCESS
            if result.status == ScenarioStatus.PASSED
            else NotificationLevel.ERROR
        )
        message = f"{scenario.name} {result.status.value}"
        if result.detail:
            message = f"{message}: {result.detail}"
        self._notify(f"scenario_{result.status.value}", message, level)
        return result

    @staticmethod
    def _finish(
        result: ScenarioResult,
        status: ScenarioStatus,
        exc: Optional[BaseException],
    ) -> None:
        result.status = status
        result.finished_at = datetime.now(timezone.utc)
        if exc is not None:
            result.detail = str(exc)
            result.error_type = type(exc).__name__

    def _capture(self, session: Session, scenario: Scenario, position: int) -> Optional[Path]:
        if not self._screenshots_on_failure or self._artifacts_dir is None or session.closed:
            return None
        name = _UNSAFE_FILENAME.sub("_", scenario.name)
        path = self._artifacts_dir / f"{position:02d}_{name}.png"
        try:
            data = session.screenshot()
            self._artifacts_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except (HarnessError, OSError):
            LOGGER.exception("Failed to capture screenshot %s", path)
            return None
        return path

    def _notify(
        self,
        event_type: str,
        message: str,
        level: NotificationLevel,
        data: Optional[dict[str, object]] = None,
    ) -> None:
        if self._notifier:
            self._notifier.notify(
                NotificationEvent(type=event_type, message=message, level=level, data=data or {})
            )


class Harness:
    """Acquire a session, run the scenarios and always release the session."""

    def __init__(
        self,
        config: HarnessConfig,
        manager: SessionManager,
        runner: ScenarioRunner,
        notifier: Notifier,
    ) -> None:
        self._config = config
        self._manager = manager
        self._runner = runner
        self._notifier = notifier

    def run(self) -> RunReport:
        """Run the suite and return its report; fatal errors end up in the report."""

        report = RunReport()
        try:
            planned = self._runner.resolved_order()
        except FatalHarnessError as exc:
            return self._abort(report, exc)
        base_url = self._config.site.base_url
        LOGGER.info("Starting run of %d scenario(s) against %s", len(planned), base_url)
        self._notifier.notify(
            NotificationEvent(
                type="run_started",
                message=f"Running {len(planned)} scenario(s) against {base_url}",
                level=NotificationLevel.INFO,
                data={"scenarios": [scenario.name for scenario in planned]},
            )
        )
        try:
            session = self._manager.acquire(self._config.browser)
        except FatalHarnessError as exc:
            return self._abort(report, exc)
        try:
            report.results = self._runner.run_all(session)
        finally:
            self._manager.release(session)
        report.finished_at = datetime.now(timezone.utc)
        self._notifier.notify(
            NotificationEvent(
                type="run_finished",
                message=(
                    f"{report.passed} passed, {report.failed} failed, "
                    f"{report.errored} errored"
                ),
                level=NotificationLevel.SUCCESS if report.success else NotificationLevel.ERROR,
            )
        )
        return report

    def _abort(self, report: RunReport, exc: FatalHarnessError) -> RunReport:
        LOGGER.error("Run aborted: %s", exc)
        report.fatal_error = f"{type(exc).__name__}: {exc}"
        report.finished_at = datetime.now(timezone.utc)
        self._notifier.notify(
            NotificationEvent(
                type="run_aborted",
                message=report.fatal_error,
                level=NotificationLevel.ERROR,
            )
        )
        return report
