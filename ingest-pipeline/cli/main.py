"""Jira ingestion CLI.

Usage:
    jira-ingest ingest [--sources SPARK,KAFKA] [--limit N] [OPTIONS]
    jira-ingest status
    jira-ingest reset [SOURCES]

Exit codes: 0 when every source succeeded, 1 otherwise.
"""

# Load .env file before any other imports
from pathlib import Path as _Path

from dotenv import load_dotenv

_env_path = _Path(__file__).parent.parent.parent / ".env"
load_dotenv(_env_path)

import asyncio
import json
import logging
from dataclasses import replace
from typing import Annotated

import typer
from config import get_settings
from core.errors import PipelineError
from core.types import RunResult
from ingest import IngestConfig, IngestPipeline
from observability import RunMetrics, setup_logging
from rate_limit import ProgressStore
from rich.console import Console
from rich.table import Table

# Create CLI app
app = typer.Typer(
    name="jira-ingest",
    help="Resilient paginated Jira issue ingestion",
    add_completion=False,
)

console = Console()


def _split_sources(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return list(default)
    return [s.strip() for s in value.split(",") if s.strip()]


def _parse_source_limits(values: list[str] | None) -> dict[str, int]:
    """Parse repeated KEY=N options into a mapping."""
    limits: dict[str, int] = {}
    for item in values or []:
        key, sep, raw = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise typer.BadParameter(f"Expected KEY=N, got {item!r}", param_hint="--source-limit")
        try:
            limit = int(raw)
        except ValueError:
            raise typer.BadParameter(
                f"Limit for {key} must be an integer, got {raw!r}", param_hint="--source-limit"
            ) from None
        if limit <= 0:
            raise typer.BadParameter(
                f"Limit for {key} must be positive, got {limit}", param_hint="--source-limit"
            )
        limits[key] = limit
    return limits


def _print_result(result: RunResult) -> None:
    table = Table(title="Ingestion Results")
    table.add_column("Source", style="bold")
    table.add_column("Start", justify="right")
    table.add_column("Cursor", justify="right")
    table.add_column("Records", justify="right")
    table.add_column("Retries", justify="right")
    table.add_column("Stop")
    table.add_column("Error", style="red")

    for s in result.sources:
        stop = s.stop_reason.value if s.stop_reason else "-"
        style = "green" if s.succeeded else "red"
        table.add_row(
            s.source_id,
            str(s.start_cursor),
            str(s.cursor),
            str(s.records),
            str(s.retries),
            f"[{style}]{stop}[/{style}]",
            s.error or "",
        )

    console.print(table)


@app.command()
def ingest(
    sources: Annotated[
        str | None, typer.Option("--sources", "-s", help="Comma-separated source ids")
    ] = None,
    limit: Annotated[
        int | None, typer.Option("--limit", "-l", min=1, help="Max records per source")
    ] = None,
    source_limit: Annotated[
        list[str] | None,
        typer.Option("--source-limit", help="Per-source limit as KEY=N (repeatable)"),
    ] = None,
    page_size: Annotated[
        int | None, typer.Option("--page-size", min=1, help="Records per request")
    ] = None,
    interval: Annotated[
        float | None, typer.Option("--interval", min=0.0, help="Seconds between requests")
    ] = None,
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Discard saved progress and start over")
    ] = False,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Minimal output")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Verbose output")] = False,
    json_logs: Annotated[bool, typer.Option("--json-logs", help="JSON log lines and a JSON run report")] = False,
) -> None:
    """Ingest every issue of the given Jira projects.

    Examples:
        jira-ingest ingest --sources SPARK,KAFKA --limit 500
        jira-ingest ingest --source-limit SPARK=1000 --interval 0.5
    """
    level = logging.DEBUG if verbose else logging.INFO
    setup_logging(level=level, json_format=json_logs, quiet=quiet, force=True)
    # JSON mode keeps stdout for the final report
    show = not quiet and not json_logs

    settings = get_settings()
    source_ids = _split_sources(sources, settings.sources)
    source_limits = _parse_source_limits(source_limit)

    if not source_ids:
        console.print("[red]No sources given.[/red]")
        raise typer.Exit(code=1)

    config = IngestConfig.from_settings(settings)
    overrides = {}
    if page_size is not None:
        overrides["page_size"] = page_size
    if interval is not None:
        overrides["request_interval"] = interval
    if overrides:
        config = replace(config, **overrides)

    if force:
        ProgressStore(config.progress_file).clear()
        if show:
            console.print("[yellow]Progress cleared, starting from offset 0[/yellow]")

    if show:
        console.print("=" * 44)
        console.print("[bold]Jira Ingestion[/bold]")
        console.print(f"Sources: {', '.join(source_ids)}")
        console.print(f"Limit: {limit if limit is not None else 'none'}")
        for key, value in source_limits.items():
            console.print(f"  {key}: {value}")
        console.print(f"Page size: {config.page_size}")
        console.print(f"Interval: {config.request_interval}s")
        console.print("=" * 44)

    async def _run() -> tuple[RunResult, RunMetrics]:
        async with IngestPipeline(config=config) as pipeline:
            result = await pipeline.run(
                source_ids, max_records=limit, source_limits=source_limits
            )
            return result, pipeline.metrics.history[-1]

    try:
        result, run_metrics = asyncio.run(_run())
    except PipelineError as e:
        console.print(f"[red]Ingestion failed: {e}[/red]")
        raise typer.Exit(code=1) from e

    if json_logs:
        # One machine-readable report line on stdout, logs stay on stderr
        report = {**result.to_dict(), "metrics": run_metrics.to_dict()}
        typer.echo(json.dumps(report, default=str))
    elif show:
        _print_result(result)
        console.print(run_metrics.to_summary())

    if not result.is_complete:
        if not json_logs:
            failed = ", ".join(s.source_id for s in result.failed)
            console.print(f"[red]Failed sources: {failed}[/red]")
            console.print("[yellow]Progress saved. Run again to resume.[/yellow]")
        raise typer.Exit(code=1)

    if show:
        console.print("[green]All sources completed successfully![/green]")


@app.command()
def status() -> None:
    """Show saved cursors per source."""
    settings = get_settings()
    store = ProgressStore(settings.progress_file)

    if not len(store):
        console.print(f"No saved progress in {settings.progress_file}")
        return

    table = Table(title=f"Progress ({settings.progress_file})")
    table.add_column("Source", style="bold")
    table.add_column("Next offset", justify="right")
    for source_id, cursor in sorted(store.cursors.items()):
        table.add_row(source_id, str(cursor))
    console.print(table)


@app.command()
def reset(
    sources: Annotated[
        str | None,
        typer.Argument(help="Comma-separated source ids (default: all)"),
    ] = None,
) -> None:
    """Remove saved cursors so sources restart from offset 0."""
    settings = get_settings()
    store = ProgressStore(settings.progress_file)

    try:
        if sources:
            source_ids = _split_sources(sources, [])
            removed = store.reset(source_ids)
            missing = sorted(set(source_ids) - set(removed))
            for source_id in removed:
                console.print(f"[green]Reset {source_id}[/green]")
            for source_id in missing:
                console.print(f"[yellow]No progress for {source_id}[/yellow]")
        else:
            store.clear()
            console.print("[green]All progress cleared[/green]")
    except PipelineError as e:
        console.print(f"[red]Reset failed: {e}[/red]")
        raise typer.Exit(code=1) from e


if __name__ == "__main__":
    app()
