from __future__ import annotations

import json

from typer.testing import CliRunner

from sweetshop_e2e.cli import app
from sweetshop_e2e.config import HarnessConfig
from sweetshop_e2e.models import RunReport, ScenarioResult, ScenarioStatus


def _base_config(**data) -> HarnessConfig:
    return HarnessConfig.model_validate({"notifications": {"channel": "log"}, **data})


def _make_harness(state: dict[str, object], report: RunReport):
    class DummyHarness:
        def __init__(self, **kwargs):
            state.update(kwargs)
            state["run_calls"] = 0

        def run(self) -> RunReport:
            state["run_calls"] += 1
            return report

    return DummyHarness


def _patch(monkeypatch, config: HarnessConfig, report: RunReport, load_args: dict, state: dict):
    def fake_load_config(path, *, env_file=None, **overrides):  # type: ignore[no-untyped-def]
        load_args["path"] = path
        load_args["env_file"] = env_file
        load_args["overrides"] = overrides
        return config

    monkeypatch.setattr("sweetshop_e2e.cli.load_config", fake_load_config)
    monkeypatch.setattr("sweetshop_e2e.cli.build_session_manager", lambda: "manager-stub")
    monkeypatch.setattr("sweetshop_e2e.cli.Harness", _make_harness(state, report))


def test_run_command_success(monkeypatch, tmp_path):
    runner = CliRunner()
    config_path = tmp_path / "config.yaml"
    config_path.write_text("site: {}\n")
    env_file = tmp_path / "vars.env"
    env_file.write_text("TOKEN=test\n")
    artifacts = tmp_path / "artifacts"
    report_path = tmp_path / "report.json"

    config = _base_config(report={"json_path": str(report_path)})
    report = RunReport(
        results=[ScenarioResult(name="home_page_title", status=ScenarioStatus.PASSED)]
    )
    load_args: dict[str, object] = {}
    state: dict[str, object] = {}
    _patch(monkeypatch, config, report, load_args, state)

    result = runner.invoke(
        app,
        [
            "run",
            "--config",
            str(config_path),
            "--env-file",
            str(env_file),
            "--scenario",
            "login",
            "-s",
            "home_page_title",
            "--base-url",
            "http://localhost:8000/",
            "--engine",
            "firefox",
            "--headed",
            "--timeout",
            "5",
            "--artifacts-dir",
            str(artifacts),
            "--report",
            str(report_path),
        ],
    )

    assert result.exit_code == 0, result.stdout
    assert "Loaded 5 scenario(s)" in result.stdout
    assert "All scenarios passed." in result.stdout
    assert f"Report written to {report_path}" in result.stdout

    assert load_args["path"] == config_path
    assert load_args["env_file"] == env_file
    overrides = load_args["overrides"]
    assert overrides["selected"] == ["login", "home_page_title"]
    assert overrides["site"] == {"base_url": "http://localhost:8000/"}
    assert overrides["browser"] == {
        "engine": "firefox",
        "headless": False,
        "default_timeout": 5.0,
    }
    assert overrides["report"] == {"artifacts_dir": artifacts, "json_path": report_path}

    assert state["config"] is config
    assert state["manager"] == "manager-stub"
    assert state["run_calls"] == 1
    assert json.loads(report_path.read_text())["results"][0]["name"] == "home_page_title"


def test_run_command_exits_non_zero_on_failure(monkeypatch):
    report = RunReport(
        results=[
            ScenarioResult(name="a", status=ScenarioStatus.PASSED),
            ScenarioResult(name="b", status=ScenarioStatus.FAILED, detail="mismatch"),
        ]
    )
    _patch(monkeypatch, _base_config(), report, {}, {})

    result = CliRunner().invoke(app, ["run"])

    assert result.exit_code == 1
    assert "1 passed, 1 failed, 0 errored" in result.stdout


def test_run_command_fatal_error_exit_code(monkeypatch):
    report = RunReport(fatal_error="DriverUnavailableError: no chromium")
    _patch(monkeypatch, _base_config(), report, {}, {})

    result = CliRunner().invoke(app, ["run"])

    assert result.exit_code == 2
    assert "Run aborted" in result.stdout


def test_run_command_rejects_invalid_scenarios(monkeypatch, tmp_path):
    scenarios = tmp_path / "broken.yaml"
    scenarios.write_text("scenarios: nope\n")
    config = _base_config(scenarios_path=str(scenarios))
    state: dict[str, object] = {}
    _patch(monkeypatch, config, RunReport(), {}, state)

    result = CliRunner().invoke(app, ["run", "--scenarios", str(scenarios)])

    assert result.exit_code == 2
    assert "run_calls" not in state


def test_list_command_prints_resolved_order():
    result = CliRunner().invoke(app, ["list"])

    assert result.exit_code == 0
    lines = result.stdout.strip().splitlines()
    assert lines[0] == "1. remove_from_basket"
    assert lines[1] == "2. add_to_basket (after remove_from_basket)"
    assert lines[-1] == "5. login"


def _duplicate_scenarios(tmp_path) -> str:
    scenarios = tmp_path / "duplicates.yaml"
    scenarios.write_text(
        "scenarios:\n"
        "  - name: a\n"
        "    steps: [{action: navigate, value: /}]\n"
        "  - name: a\n"
        "    steps: [{action: navigate, value: /about}]\n"
    )
    return str(scenarios)


def test_run_command_rejects_duplicate_scenario_names(monkeypatch, tmp_path):
    state: dict[str, object] = {}
    monkeypatch.setattr("sweetshop_e2e.cli.Harness", _make_harness(state, RunReport()))

    result = CliRunner().invoke(app, ["run", "--scenarios", _duplicate_scenarios(tmp_path)])

    assert result.exit_code == 2
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert "run_calls" not in state


def test_list_command_rejects_duplicate_scenario_names(tmp_path):
    result = CliRunner().invoke(app, ["list", "--scenarios", _duplicate_scenarios(tmp_path)])

    assert result.exit_code == 2
    assert "1. a" not in result.stdout


def test_run_command_rejects_unknown_notification_channel(monkeypatch):
    monkeypatch.setenv("SWEETSHOP_E2E_NOTIFICATIONS__CHANNEL", "slack")
    state: dict[str, object] = {}
    monkeypatch.setattr("sweetshop_e2e.cli.Harness", _make_harness(state, RunReport()))

    result = CliRunner().invoke(app, ["run"])

    assert result.exit_code == 2
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert "run_calls" not in state


def test_commands_reject_invalid_configuration_values(monkeypatch, tmp_path):
    monkeypatch.setenv("SWEETSHOP_E2E_BROWSER__POLL_INTERVAL", "0")

    run_result = CliRunner().invoke(app, ["run"])
    list_result = CliRunner().invoke(app, ["list"])

    assert run_result.exit_code == 2
    assert list_result.exit_code == 2


def test_run_command_rejects_unreadable_config_file(tmp_path):
    result = CliRunner().invoke(app, ["run", "--config", str(tmp_path / "missing.yaml")])

    assert result.exit_code == 2
