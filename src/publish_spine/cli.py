"""
Root Typer application for the publish-spine CLI.

``publish-spine publish`` is what the CMS webhook workflow runs: with
DOCUMENT_ID / DOCUMENT_TYPE set it publishes one document, without them it
rebuilds the whole site.
"""

from __future__ import annotations

import asyncio
import json

import structlog
import typer
from rich.console import Console
from rich.table import Table

from publish_spine import __version__
from publish_spine.config import SiteConfig, load_settings
from publish_spine.core.errors import PublishError
from publish_spine.core.logging import configure_logging
from publish_spine.publisher import PublishReport, publish

logger = structlog.get_logger(__name__)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="publish-spine",
    help="publish-spine: render CMS content into a static site.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"publish-spine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """publish-spine CLI: publish documents and rebuild the site."""


# ── Helpers ──────────────────────────────────────────────────────────────


def _load_config() -> SiteConfig:
    settings = load_settings()
    json_format = None if settings.log_format == "auto" else settings.log_format == "json"
    configure_logging(level=settings.log_level, json_format=json_format)
    return settings.to_site_config()


def _print_report(report: PublishReport) -> None:
    table = Table(title=f"Publish run {report.run_id} ({report.mode})")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Files written", str(len(report.written)))
    table.add_row("Articles", str(report.articles))
    table.add_row("Recommendations", str(report.recommendations))
    table.add_row("Dropped entries", str(len(report.dropped)))
    console.print(table)
    for dropped in report.dropped:
        console.print(f"  [yellow]dropped[/yellow] {dropped.kind.value} {dropped.slug}: {dropped.reason}")


def _fail(exc: PublishError) -> None:
    logger.error("publish_failed", **exc.to_dict())
    err_console.print(f"[bold red]Error[/bold red] ({exc.category.value}): {exc.message}")
    raise typer.Exit(code=1)


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("publish")
def publish_command(
    as_json: bool = typer.Option(False, "--json", help="Print the run report as JSON."),
) -> None:
    """Publish one document, or rebuild the whole site when no document is given."""
    try:
        config = _load_config()
        report = asyncio.run(publish(config))
    except PublishError as exc:
        _fail(exc)
        return

    if as_json:
        console.print_json(json.dumps(report.to_dict()))
    else:
        _print_report(report)


@app.command("check-config")
def check_config() -> None:
    """Validate the environment without publishing anything."""
    try:
        config = _load_config()
    except PublishError as exc:
        _fail(exc)
        return

    table = Table(title="Configuration")
    table.add_column("Setting")
    table.add_column("Value")
    if config.is_local:
        table.add_row("Storage", f"local: {config.output_dir}")
    else:
        table.add_row("Storage", f"github: {config.github.repository}@{config.github.branch}")
    table.add_row("Sanity", f"{config.sanity.project_id}/{config.sanity.dataset}")
    table.add_row("Base path", config.base_path or "/")
    table.add_row("Site title", config.site_title)
    if config.target is None:
        table.add_row("Mode", "full rebuild")
    else:
        table.add_row("Mode", f"publish {config.target.kind.value} {config.target.document_id}")
    console.print(table)
