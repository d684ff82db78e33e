"""Render run reports for the terminal and as JSON."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..models import RunReport, ScenarioStatus

_STATUS_STYLES = {
    ScenarioStatus.PASSED: "green",
    ScenarioStatus.FAILED: "red",
    ScenarioStatus.ERRORED: "magenta",
}


def build_summary_table(report: RunReport) -> Table:
    table = Table(title="Scenario results")
    table.add_column("#", justify="right")
    table.add_column("Scenario")
    table.add_column("Status")
    table.add_column("Time", justify="right")
    table.add_column("Detail", overflow="fold")
    for position, result in enumerate(report.results, start=1):
        style = _STATUS_STYLES.get(result.status, "white")
        duration = f"{result.duration:.2f}s" if result.duration is not None else "-"
        detail = result.detail or ""
        if result.notes:
            detail = f"{detail}\nnote: {result.notes}" if detail else f"note: {result.notes}"
        table.add_row(
            str(position),
            Text(result.name),
            f"[{style}]{result.status.value.upper()}[/{style}]",
            duration,
            Text(detail),
        )
    return table


def render_report(report: RunReport, console: Optional[Console] = None) -> None:
    """Print the per-scenario table followed by the aggregate counts."""

    console = console or Console()
    if report.fatal_error:
        console.print(f"Run aborted: {report.fatal_error}", style="bold red", markup=False)
        return
    console.print(build_summary_table(report))
    style = "bold green" if report.success else "bold red"
    console.print(
        f"{report.passed} passed, {report.failed} failed, {report.errored} errored",
        style=style,
    )


def write_json_report(report: RunReport, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report.model_dump_json(indent=2), encoding="utf-8")
    return path
