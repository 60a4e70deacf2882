"""Typer CLI for queue_profiler."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import load_profile, parse_delay_ms
from .exceptions import QueueProfilerError
from .exporter import export_csv
from .log import configure_logging
from .models import ProfileDefinition
from .paths import profiles_dir
from .reporting import render_reports
from .runner import Runner
from .stores import open_store

app = typer.Typer(help="Queue depth profiler: sample queue backlogs and store them.")

console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose)


def _format_profile_table(profile: ProfileDefinition) -> Table:
    table = Table(title=str(profile.metadata.get("name", "Profile")))
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("Queues", ", ".join(profile.queues))
    table.add_row("Source", profile.source.type)
    table.add_row("Store", f"{profile.store.type} ({profile.store.path})")
    table.add_row("Executions", str(profile.sampling.executions))
    table.add_row("Delay (ms)", f"{profile.sampling.delay_ms:g}")
    return table


@app.command()
def run(
    profile: Path = typer.Option(..., "--profile", exists=True, dir_okay=False, resolve_path=True),
    executions: Optional[int] = typer.Option(
        None, "--executions", min=0, help="Override the number of samples per queue"
    ),
    delay_ms: Optional[float] = typer.Option(
        None, "--delay-ms", help="Override the delay between samples in milliseconds"
    ),
    no_report: bool = typer.Option(False, "--no-report", help="Skip report rendering"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Sample every queue of a profile."""
    if verbose:
        configure_logging(verbose)
    runner = Runner()
    try:
        definition = load_profile(profile)
        console.print(_format_profile_table(definition))
        plan = runner.plan(
            definition,
            profile_path=profile,
            executions=executions,
            delay=parse_delay_ms(delay_ms, "--delay-ms") if delay_ms is not None else None,
        )
        summary = runner.execute(plan, render=not no_report)
    except QueueProfilerError as exc:
        raise typer.Exit(f"error: {exc}") from exc

    table = Table(title=f"Run {summary['run_id']}")
    table.add_column("Queue")
    table.add_column("Status")
    table.add_column("Duration (s)", justify="right")
    table.add_column("Error")
    for entry in summary["queues"]:
        colour = "green" if entry["status"] == "PASS" else "red"
        table.add_row(
            entry["queue"],
            f"[{colour}]{entry['status']}[/{colour}]",
            f"{entry['duration_s']:.2f}",
            entry["error"] or "",
        )
    console.print(table)
    console.print(f"Samples stored in {summary['store']['path']}")
    if summary["status"] != "PASS":
        raise typer.Exit(code=1)


@app.command("list-profiles")
def list_profiles() -> None:
    """List available profiles."""
    directory = profiles_dir()
    files = sorted(directory.glob("*.y*ml"))
    if not files:
        console.print("No profiles found under ./profiles")
        raise typer.Exit()
    table = Table(title="Available Profiles")
    table.add_column("Profile File")
    for file in files:
        table.add_row(file.name)
    console.print(table)


@app.command()
def validate(
    file: Path = typer.Option(..., "--file", exists=True, dir_okay=False, resolve_path=True)
) -> None:
    """Validate a profile without sampling."""
    try:
        definition = load_profile(file)
    except QueueProfilerError as exc:
        raise typer.Exit(f"validation failed: {exc}") from exc
    console.print(_format_profile_table(definition))
    console.print(f"[green]{file.name} is a valid profile[/green]")


@app.command()
def show(
    store: Path = typer.Option(..., "--store", exists=True, dir_okay=False, resolve_path=True),
    queue: Optional[str] = typer.Option(None, "--queue", help="Only show samples for this queue"),
    limit: int = typer.Option(50, "--limit", min=1, help="Show the most recent N samples"),
) -> None:
    """Print stored samples."""
    try:
        samples = open_store(store).load(queue)
    except QueueProfilerError as exc:
        raise typer.Exit(f"error: {exc}") from exc
    if not samples:
        console.print("No samples recorded.")
        raise typer.Exit()
    table = Table(title=f"Samples in {store.name}")
    table.add_column("Queue")
    table.add_column("Observed At (UTC)")
    table.add_column("Depth", justify="right")
    for sample in samples[-limit:]:
        table.add_row(sample.queue_name, sample.observed_at.isoformat(), str(sample.depth))
    console.print(table)


@app.command()
def export(
    store: Path = typer.Option(..., "--store", exists=True, dir_okay=False, resolve_path=True),
    output: Optional[Path] = typer.Option(None, "--output", dir_okay=False, resolve_path=True),
    queue: Optional[str] = typer.Option(None, "--queue", help="Only export samples for this queue"),
) -> None:
    """Export stored samples to CSV."""
    try:
        destination = export_csv(store, output_path=output, queue_name=queue)
    except QueueProfilerError as exc:
        raise typer.Exit(f"error: {exc}") from exc
    console.print(f"[green]Exported CSV to {destination}[/green]")


@app.command()
def report(
    store: Path = typer.Option(..., "--store", exists=True, dir_okay=False, resolve_path=True),
    output_dir: Optional[Path] = typer.Option(
        None, "--output-dir", file_okay=False, resolve_path=True
    ),
    queue: Optional[str] = typer.Option(None, "--queue", help="Only report samples for this queue"),
) -> None:
    """Render Markdown and HTML sample listings."""
    try:
        samples = open_store(store).load(queue)
    except QueueProfilerError as exc:
        raise typer.Exit(f"error: {exc}") from exc
    destination = output_dir or store.parent / f"{store.stem}_report"
    paths = render_reports(samples, destination, title=f"Queue Depth Report - {store.name}")
    console.print("Reports available at:")
    console.print(f"  Markdown: {paths['markdown']}")
    console.print(f"  HTML: {paths['html']}")


if __name__ == "__main__":
    app()
