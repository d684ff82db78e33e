import pytest
from fakes import (
    BASE_URL,
    CountingSessionManager,
    FailingSessionManager,
    FakeNode,
    FakePage,
    FakeSession,
)

from sweetshop_e2e.config import HarnessConfig
from sweetshop_e2e.errors import DriverUnavailableError, ScenarioDefinitionError
from sweetshop_e2e.models import (
    Locator,
    NotificationEvent,
    Predicate,
    Scenario,
    ScenarioStatus,
    Step,
    StepAction,
)
from sweetshop_e2e.notifications.base import Notifier
from sweetshop_e2e.orchestrator.runner import Harness, ScenarioRunner

HEADING = Locator.xpath("/html/body/h1")


class CollectingNotifier(Notifier):
    def __init__(self) -> None:
        self.events: list[NotificationEvent] = []

    def notify(self, event: NotificationEvent) -> None:
        self.events.append(event)


def site_session() -> FakeSession:
    return FakeSession({BASE_URL: FakePage("Home", {HEADING.value: FakeNode("Hello")})})


def title_scenario(name: str, expected: str = "Home", **kwargs) -> Scenario:
    return Scenario(
        name=name,
        steps=[
            Step(action=StepAction.NAVIGATE, value="/"),
            Step(action=StepAction.ASSERT_TITLE, value=expected),
        ],
        **kwargs,
    )


def build_runner(*scenarios: Scenario, **kwargs) -> ScenarioRunner:
    runner = ScenarioRunner(base_url=BASE_URL, **kwargs)
    for scenario in scenarios:
        runner.register(scenario)
    return runner


def test_failure_in_middle_scenario_does_not_abort_run():
    runner = build_runner(
        title_scenario("one"),
        title_scenario("two", expected="Elsewhere"),
        title_scenario("three"),
    )

    results = runner.run_all(site_session())

    assert [r.status for r in results] == [
        ScenarioStatus.PASSED,
        ScenarioStatus.FAILED,
        ScenarioStatus.PASSED,
    ]
    failed = results[1]
    assert failed.error_type == "AssertionMismatchError"
    assert "'Elsewhere'" in failed.detail
    assert [step.ok for step in failed.steps] == [True, False]
    assert all(result.status.is_terminal for result in results)


def test_locate_errors_mark_scenario_errored():
    runner = build_runner(
        Scenario(
            name="missing",
            steps=[
                Step(action=StepAction.NAVIGATE, value="/"),
                Step(
                    action=StepAction.CLICK,
                    locator=Locator.xpath("/html/body/nope"),
                    predicate=Predicate.CLICKABLE,
                ),
            ],
        ),
        Scenario(
            name="immediate",
            steps=[
                Step(action=StepAction.NAVIGATE, value="/"),
                Step(action=StepAction.READ_TEXT, locator=Locator.xpath("/html/body/nope")),
            ],
        ),
        title_scenario("after"),
    )

    results = runner.run_all(site_session())

    assert [r.status for r in results] == [
        ScenarioStatus.ERRORED,
        ScenarioStatus.ERRORED,
        ScenarioStatus.PASSED,
    ]
    assert results[0].error_type == "LocateTimeoutError"
    assert results[1].error_type == "NotFoundError"


def test_unexpected_exception_is_isolated():
    class ExplodingSession(FakeSession):
        def title(self) -> str:
            raise KeyError("boom")

    session = ExplodingSession({BASE_URL: FakePage("Home")})
    results = build_runner(title_scenario("boom"), Scenario(name="empty")).run_all(session)

    assert results[0].status == ScenarioStatus.ERRORED
    assert results[0].error_type == "KeyError"
    assert results[1].status == ScenarioStatus.PASSED


def test_register_rejects_duplicate_names():
    runner = build_runner(title_scenario("same"))
    with pytest.raises(ScenarioDefinitionError, match="already registered"):
        runner.register(title_scenario("same"))


def test_dependent_scenario_starts_after_dependency_finishes():
    notifier = CollectingNotifier()
    runner = build_runner(
        title_scenario("add", depends_on=["remove"], shares=["basket"]),
        title_scenario("remove", expected="wrong", shares=["basket"]),
        notifier=notifier,
    )

    runner.run_all(site_session())

    sequence = [event.type for event in notifier.events]
    assert sequence == [
        "scenario_started",
        "scenario_failed",
        "scenario_started",
        "scenario_passed",
    ]
    assert "remove" in notifier.events[1].message


def test_screenshot_written_for_failed_scenario(tmp_path):
    runner = build_runner(
        title_scenario("ok"),
        title_scenario("bad/name", expected="x"),
        artifacts_dir=tmp_path,
    )

    results = runner.run_all(site_session())

    assert results[0].screenshot_path is None
    path = results[1].screenshot_path
    assert path == tmp_path / "02_bad_name.png"
    assert path.read_bytes().startswith(b"\x89PNG")


def test_harness_releases_session_exactly_once_when_scenarios_fail():
    manager = CountingSessionManager(site_session())
    notifier = CollectingNotifier()
    runner = build_runner(title_scenario("a", expected="no"), title_scenario("b", expected="no"))
    harness = Harness(HarnessConfig(), manager, runner, notifier)

    report = harness.run()

    assert manager.acquire_calls == 1
    assert manager.release_calls == 1
    assert manager.session_obj.close_calls == 1
    assert report.failed == 2
    assert report.success is False
    assert report.fatal_error is None
    assert notifier.events[0].type == "run_started"
    assert notifier.events[-1].type == "run_finished"


def test_harness_releases_session_when_runner_raises():
    manager = CountingSessionManager(site_session())

    class BrokenRunner(ScenarioRunner):
        def run_all(self, session):
            raise KeyboardInterrupt

    harness = Harness(HarnessConfig(), manager, BrokenRunner(base_url=BASE_URL), CollectingNotifier())
    with pytest.raises(KeyboardInterrupt):
        harness.run()

    assert manager.release_calls == 1
    assert manager.session_obj.closed


def test_session_start_failure_is_fatal_with_no_results():
    manager = FailingSessionManager()
    notifier = CollectingNotifier()
    harness = Harness(HarnessConfig(), manager, build_runner(title_scenario("a")), notifier)

    report = harness.run()

    assert report.results == []
    assert report.fatal_error.startswith("SessionStartError")
    assert report.success is False
    assert manager.release_calls == 0
    assert notifier.events[-1].type == "run_aborted"


def test_driver_unavailable_is_fatal():
    manager = CountingSessionManager(error=DriverUnavailableError("no chromium"))
    harness = Harness(HarnessConfig(), manager, build_runner(), CollectingNotifier())

    report = harness.run()

    assert report.fatal_error == "DriverUnavailableError: no chromium"


def test_invalid_plan_aborts_before_acquiring_session():
    manager = CountingSessionManager(site_session())
    runner = build_runner(title_scenario("a", depends_on=["ghost"]))

    report = Harness(HarnessConfig(), manager, runner, CollectingNotifier()).run()

    assert manager.acquire_calls == 0
    assert "ghost" in report.fatal_error


def test_release_is_idempotent():
    manager = CountingSessionManager(site_session())
    session = manager.acquire(HarnessConfig().browser)

    manager.release(session)
    manager.release(session)

    assert session.close_calls == 1


def test_session_context_manager_releases_on_error():
    manager = CountingSessionManager(site_session())
    with pytest.raises(RuntimeError, match="scenario blew up"):
        with manager.session(HarnessConfig().browser):
            raise RuntimeError("scenario blew up")

    assert manager.session_obj.closed
