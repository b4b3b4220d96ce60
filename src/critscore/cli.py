"""CLI entry point for critscore."""

import asyncio
import csv
import io
import json
import logging

# Load .env file if it exists
from dotenv import load_dotenv
load_dotenv()

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from critscore.analyzers.pipeline import CriticalityPipeline
from critscore.config import Settings, get_github_token
from critscore.errors import CriticalityScoreError
from critscore.models.schemas import ScoreRecord

app = typer.Typer(help="Gives criticality score for an open source project.")

OUTPUT_FORMATS = ("default", "csv", "json")

console = Console()
logger = logging.getLogger("critscore")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _format_value(name: str, value) -> str:
    if isinstance(value, float):
        return f"{value:.5f}" if name == "criticality_score" else f"{value:.1f}"
    return str(value)


def render_csv(record: ScoreRecord) -> str:
    """Render ``name,value`` rows."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    for name, value in record.rows():
        writer.writerow([name, _format_value(name, value)])
    return buffer.getvalue()


def render_json(record: ScoreRecord) -> str:
    return json.dumps(dict(record.rows()), indent=2)


def render_table(record: ScoreRecord) -> Table:
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for name, value in record.rows():
        table.add_row(name, _format_value(name, value))
    return table


@app.command()
def score(
    repo: str = typer.Option(..., "--repo", "-r", help="Repository url"),
    output_format: str = typer.Option(
        "default", "--format", "-f", help="Output format. Allowed values are [default, csv, json]"
    ),
    param: list[str] = typer.Option(
        [], "--param", "-p", help="Additional parameter in form <value>:<weight>:<max_threshold>"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Calculate the criticality score of a GitHub repository."""
    _configure_logging(verbose)

    if output_format not in OUTPUT_FORMATS:
        console.print(f"[red]Unknown output format: {escape(output_format)}[/red]")
        raise typer.Exit(1)

    try:
        record = asyncio.run(_score(repo, param))
    except CriticalityScoreError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    if output_format == "json":
        typer.echo(render_json(record))
    elif output_format == "csv":
        typer.echo(render_csv(record), nl=False)
    else:
        console.print(render_table(record))


async def _score(repo_url: str, params: list[str]) -> ScoreRecord:
    """Async implementation of score."""
    token = get_github_token()
    if not token:
        logger.warning("env variable GITHUB_AUTH_TOKEN not provided")

    settings = Settings.from_env()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=Console(stderr=True),
        transient=True,
    ) as progress:
        task = progress.add_task("Scoring repository...", total=None)
        async with CriticalityPipeline(github_token=token, settings=settings) as pipeline:
            record = await pipeline.score_url(repo_url, params)
            progress.update(task, description="Done")

    return record


@app.command()
def version() -> None:
    """Show version information."""
    from critscore import __version__

    console.print(f"critscore v{__version__}")


if __name__ == "__main__":
    app()
