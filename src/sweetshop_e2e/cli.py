"""Command line interface for sweetshop-e2e."""

from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
import yaml
from rich.console import Console

from .config import HarnessConfig, load_config
from .errors import ScenarioDefinitionError
from .factory import build_notifier, build_runner, build_session_manager
from .orchestrator.runner import Harness
from .reporting.console import render_report, write_json_report
from .scenarios.loader import load_scenarios

app = typer.Typer(help="Sweet Shop browser scenario runner")

EXIT_FAILED = 1
EXIT_FATAL = 2

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to YAML configuration."),
]
EnvFileOption = Annotated[
    Optional[Path],
    typer.Option("--env-file", help="Path to an .env file with default configuration values."),
]
ScenariosOption = Annotated[
    Optional[Path],
    typer.Option("--scenarios", help="YAML file with scenario definitions."),
]


def _fatal(prefix: str, exc: Exception) -> typer.Exit:
    typer.echo(f"{prefix}: {exc}", err=True)
    return typer.Exit(code=EXIT_FATAL)


def _load_config(
    config_path: Optional[Path],
    env_file: Optional[Path],
    overrides: dict[str, Any],
) -> HarnessConfig:
    try:
        return load_config(config_path, env_file=env_file, **overrides)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise _fatal("Invalid configuration", exc) from exc


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Configure logging before executing any command."""

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command()
def version() -> None:
    """Print the package version."""

    try:
        typer.echo(get_version("sweetshop-e2e"))
    except PackageNotFoundError:  # pragma: no cover - when running from source tree
        typer.echo("0.0.0")


@app.command("list")
def list_scenarios(
    config_path: ConfigOption = None,
    env_file: EnvFileOption = None,
    scenarios_path: ScenariosOption = None,
) -> None:
    """Show the scenarios in the order they would run."""

    overrides: dict[str, Any] = {}
    if scenarios_path is not None:
        overrides["scenarios_path"] = scenarios_path
    config = _load_config(config_path, env_file, overrides)
    try:
        runner = build_runner(config, load_scenarios(config.scenarios_path))
        ordered = runner.resolved_order()
    except ScenarioDefinitionError as exc:
        raise _fatal("Invalid scenarios", exc) from exc
    for position, scenario in enumerate(ordered, start=1):
        line = f"{position}. {scenario.name}"
        if scenario.depends_on:
            line += f" (after {', '.join(scenario.depends_on)})"
        typer.echo(line)


@app.command()
def run(
    config_path: ConfigOption = None,
    env_file: EnvFileOption = None,
    scenarios_path: ScenariosOption = None,
    scenario: Annotated[
        Optional[list[str]],
        typer.Option("--scenario", "-s", help="Run only this scenario (repeatable)."),
    ] = None,
    base_url: Annotated[
        Optional[str],
        typer.Option("--base-url", help="Root URL of the site under test."),
    ] = None,
    engine: Annotated[
        Optional[str],
        typer.Option("--engine", help="Browser engine: chromium, firefox or webkit."),
    ] = None,
    channel: Annotated[
        Optional[str],
        typer.Option("--channel", help="Installed browser channel, e.g. chrome."),
    ] = None,
    headless: Annotated[
        Optional[bool],
        typer.Option("--headless/--headed", help="Run the browser in headless mode (or headed)."),
    ] = None,
    timeout: Annotated[
        Optional[float],
        typer.Option("--timeout", help="Default wait timeout in seconds."),
    ] = None,
    artifacts_dir: Annotated[
        Optional[Path],
        typer.Option("--artifacts-dir", help="Directory for failure screenshots."),
    ] = None,
    report_path: Annotated[
        Optional[Path],
        typer.Option("--report", help="Write the run report as JSON to this path."),
    ] = None,
) -> None:
    """Run the browser scenarios."""

    overrides: dict[str, Any] = {}
    if scenarios_path is not None:
        overrides["scenarios_path"] = scenarios_path
    if scenario:
        overrides["selected"] = list(scenario)
    if base_url is not None:
        overrides["site"] = {"base_url": base_url}
    if any(value is not None for value in (engine, channel, headless, timeout)):
        overrides.setdefault("browser", {})
        if engine is not None:
            overrides["browser"]["engine"] = engine
        if channel is not None:
            overrides["browser"]["channel"] = channel
        if headless is not None:
            overrides["browser"]["headless"] = headless
        if timeout is not None:
            overrides["browser"]["default_timeout"] = timeout
    if artifacts_dir is not None or report_path is not None:
        overrides.setdefault("report", {})
        if artifacts_dir is not None:
            overrides["report"]["artifacts_dir"] = artifacts_dir
        if report_path is not None:
            overrides["report"]["json_path"] = report_path

    config = _load_config(config_path, env_file, overrides)
    try:
        notifier = build_notifier(config.notifications)
    except ValueError as exc:
        raise _fatal("Invalid configuration", exc) from exc
    try:
        scenarios = load_scenarios(config.scenarios_path)
        runner = build_runner(config, scenarios, notifier)
    except ScenarioDefinitionError as exc:
        raise _fatal("Invalid scenarios", exc) from exc
    typer.echo(f"Loaded {len(scenarios)} scenario(s) for {config.site.base_url}")

    harness = Harness(
        config=config,
        manager=build_session_manager(),
        runner=runner,
        notifier=notifier,
    )
    report = harness.run()
    render_report(report, Console())
    if config.report.json_path is not None:
        path = write_json_report(report, config.report.json_path)
        typer.echo(f"Report written to {path}")
    if report.fatal_error:
        raise typer.Exit(code=EXIT_FATAL)
    if not report.success:
        raise typer.Exit(code=EXIT_FAILED)
    typer.echo("All scenarios passed.")


if __name__ == "__main__":
    app()
