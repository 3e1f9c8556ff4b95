"""Command-line interface for Warnings Tracker."""

import json
import logging
import sys
import time
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from warnings_tracker import __version__
from warnings_tracker.analysis.recorder import BuildInfo, IssuesRecorder
from warnings_tracker.config import Config, load_config, validate_config
from warnings_tracker.exceptions import TrackerError
from warnings_tracker.models.issues import Report
from warnings_tracker.models.snapshot import Outcome
from warnings_tracker.reporting.summary import SummaryFormatter, format_snapshot_as_json
from warnings_tracker.storage.json_store import JsonHistoryStore

console = Console()

OUTCOME_STYLE = {
    Outcome.SUCCESS: "green",
    Outcome.UNSTABLE: "yellow",
    Outcome.FAILURE: "red",
}


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def load_issues(path: Path) -> Report:
    """Load a report from a JSON file.

    The file holds either a list of issues or an object with an ``issues``
    list and an optional ``origin``.
    """
    with open(path, encoding="utf-8") as f:
        raw: Any = json.load(f)
    if isinstance(raw, dict):
        return Report.from_list(raw.get("issues", []), origin=raw.get("origin", ""))
    if isinstance(raw, list):
        return Report.from_list(raw)
    raise ValueError(f"Expected a list of issues or an object with 'issues' in {path}")


def _load_valid_config(config_path: str | None) -> Config:
    try:
        config = load_config(Path(config_path) if config_path else None)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        sys.exit(1)

    errors = validate_config(config)
    if errors:
        for error in errors:
            console.print(f"[red]Config error:[/red] {error}")
        sys.exit(1)
    return config


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def cli(verbose: bool) -> None:
    """Warnings Tracker - Track static analysis issues across builds."""
    setup_logging(verbose)


@cli.command("record")
@click.argument("issues_json", type=click.Path(exists=True, dir_okay=False))
@click.option("--build", "build_number", type=int, required=True, help="Build number")
@click.option("--timestamp", type=int, help="Build start time in epoch milliseconds (default: now)")
@click.option(
    "--build-result",
    type=click.Choice([o.value for o in Outcome]),
    default=Outcome.SUCCESS.value,
    help="Result of the build before the quality gate is applied",
)
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
@click.option("--output", type=click.Choice(["summary", "json"]), default="summary")
@click.option("--strict", is_flag=True, help="Exit with status 1 if the build fails")
def record(
    issues_json: str,
    build_number: int,
    timestamp: int | None,
    build_result: str,
    config_path: str | None,
    output: str,
    strict: bool,
) -> None:
    """Record the issues of a build and evaluate the quality gate."""
    config = _load_valid_config(config_path)

    try:
        report = load_issues(Path(issues_json))
    except (OSError, ValueError, KeyError) as e:
        console.print(f"[red]Error loading issues:[/red] {e}")
        sys.exit(1)

    if timestamp is None:
        timestamp = int(time.time() * 1000)

    store = JsonHistoryStore(config.storage.directory, config.tool.id)
    recorder = IssuesRecorder(config)

    try:
        build = BuildInfo(number=build_number, timestamp=timestamp)
        recorded = recorder.record(build, report, store.history_before(build_number))
    except (TrackerError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    snapshot = recorded.snapshot
    # The quality gate can only make the build result worse
    outcome = Outcome.worst(Outcome(build_result), snapshot.outcome)

    try:
        store.save(snapshot, outcome)
    except OSError as e:
        console.print(f"[red]Error saving build:[/red] {e}")
        sys.exit(1)

    if output == "json":
        result = format_snapshot_as_json(snapshot)
        result["build_outcome"] = outcome.value
        print(json.dumps(result, indent=2))
    else:
        print(SummaryFormatter().format_summary(snapshot))
        style = OUTCOME_STYLE[outcome]
        console.print(f"\nBuild result: [{style}]{outcome.name}[/{style}]")

    if strict and outcome == Outcome.FAILURE:
        sys.exit(1)


@cli.command("history")
@click.option("--limit", type=int, default=20, help="Maximum number of builds to show")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def history(limit: int, config_path: str | None) -> None:
    """Show recorded builds."""
    config = _load_valid_config(config_path)
    store = JsonHistoryStore(config.storage.directory, config.tool.id)

    try:
        snapshots = store.snapshots(limit=limit)
    except TrackerError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if not snapshots:
        console.print(f"No builds recorded for [bold]{config.tool.id}[/bold]")
        return

    table = Table(title=f"Build history: {config.tool.id}")
    table.add_column("Build", justify="right")
    table.add_column("Issues", justify="right")
    table.add_column("New", justify="right")
    table.add_column("Fixed", justify="right")
    table.add_column("Reference", justify="right")
    table.add_column("Quality Gate")

    for snapshot in snapshots:
        style = OUTCOME_STYLE[snapshot.outcome]
        table.add_row(
            f"#{snapshot.build_number}",
            str(snapshot.totals.total),
            str(snapshot.new.total),
            str(snapshot.fixed.total),
            f"#{snapshot.reference_build}" if snapshot.has_reference else "-",
            f"[{style}]{snapshot.outcome.name}[/{style}]",
        )

    console.print(table)


@cli.group("config")
def config_group() -> None:
    """Configuration commands."""
    pass


@config_group.command("validate")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def config_validate(config_path: str | None) -> None:
    """Validate configuration file."""
    try:
        config = load_config(Path(config_path) if config_path else None)
        errors = validate_config(config)

        if errors:
            console.print("[red]Configuration is invalid:[/red]")
            for error in errors:
                console.print(f"  • {error}")
            sys.exit(1)
        else:
            console.print("[green]✓ Configuration is valid[/green]")
    except (OSError, ValueError) as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        sys.exit(1)


@config_group.command("show")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def config_show(config_path: str | None) -> None:
    """Show current configuration."""
    try:
        config = load_config(Path(config_path) if config_path else None)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        sys.exit(1)

    console.print("\n[bold]Current Configuration[/bold]\n")

    table = Table(title="Quality Gate Thresholds")
    table.add_column("Threshold")
    table.add_column("Value", justify="right")

    for name, value in config.thresholds.to_dict().items():
        table.add_row(name, str(value))

    if config.thresholds.is_enabled:
        console.print(table)
    else:
        console.print("[dim]No quality gate thresholds set[/dim]")

    console.print(f"\n[bold]Tool:[/bold] {config.tool.id}")
    console.print(f"[bold]Storage:[/bold] {config.storage.directory}")
    console.print(
        f"[bold]Fingerprints:[/bold] "
        f"{'enabled' if config.fingerprint.enabled else 'disabled'} "
        f"(±{config.fingerprint.context_lines} lines in {config.fingerprint.workspace})"
    )
    console.print(
        f"[bold]Reference:[/bold] ignore quality gate={config.reference.ignore_quality_gate}, "
        f"ignore failed builds={config.reference.ignore_failed_builds}"
    )
    if config.health.is_enabled:
        console.print(
            f"[bold]Health:[/bold] healthy < {config.health.healthy}, "
            f"unhealthy > {config.health.unhealthy} "
            f"({config.health.minimum_severity.value} and above)"
        )


if __name__ == "__main__":
    cli()
