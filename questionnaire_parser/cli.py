"""
CLI Interface
=============
Command-line interface for the questionnaire parser engine.

Usage:
    python -m questionnaire_parser parse <path> [options]
    python -m questionnaire_parser batch <directory> [options]
    python -m questionnaire_parser validate <json_path>
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from . import __version__
from .engine import ParserConfig, QuestionnaireEngine
from .errors import QuestionnaireParseError

console = Console()

INPUT_PATTERNS = ("*.txt", "*.json")


@click.group()
@click.version_option(version=__version__, prog_name="questionnaire-parser")
def cli():
    """Questionnaire Parser: extracted document text to structured questionnaires."""
    pass


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--markup", "-m",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Rendered HTML markup of the same document (bold/heading hints)",
)
@click.option(
    "--output", "-o",
    default="output",
    help="Output directory for parsed data",
)
@click.option(
    "--confidence-threshold",
    default=0.5,
    type=click.FloatRange(0.0, 1.0),
    help="Questions below this confidence are listed in the report",
)
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level",
)
@click.option(
    "--log-file",
    default=None,
    help="Path to log file",
)
@click.option(
    "--json-output",
    is_flag=True,
    default=False,
    help="Output only JSON result to stdout (for programmatic use)",
)
def parse(
    path: str,
    markup: str,
    output: str,
    confidence_threshold: float,
    log_level: str,
    log_file: str,
    json_output: bool,
):
    """Parse a single text file (or JSON Document) into a questionnaire."""

    if json_output:
        # Suppress console output for JSON mode
        log_level = "ERROR"

    config = ParserConfig(
        output_dir=output,
        confidence_threshold=confidence_threshold,
        log_level=log_level,
        log_file=log_file,
    )

    if not json_output:
        console.print()
        console.print(
            Panel.fit(
                f"[bold cyan]Questionnaire Parser v{__version__}[/]\n"
                f"[dim]Parsing: {Path(path).name}[/]",
                border_style="cyan",
            )
        )
        console.print()

    try:
        engine = QuestionnaireEngine(config)
        result = engine.parse_file(path, markup_path=markup)
        output_file = engine.save(result, Path(path).stem)

        if json_output:
            click.echo(result.model_dump_json(indent=2, by_alias=True))
        else:
            _display_results(result)
            console.print(f"[dim]Saved: {output_file}[/]")
            console.print()

    except (FileNotFoundError, ValidationError, QuestionnaireParseError) as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Unexpected error:[/] {e}")
        if log_level == "DEBUG":
            console.print_exception()
        sys.exit(1)


@cli.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@click.option("--output", "-o", default="output", help="Output directory")
@click.option("--log-level", default="WARNING", help="Logging level")
def batch(directory: str, output: str, log_level: str):
    """Batch parse all .txt and .json documents in a directory."""

    files = sorted(
        {f for pattern in INPUT_PATTERNS for f in Path(directory).glob(pattern)}
    )

    if not files:
        console.print(f"[yellow]No documents found in: {directory}[/]")
        return

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Batch Questionnaire Parser[/]\n"
            f"[dim]Found {len(files)} documents in: {directory}[/]",
            border_style="cyan",
        )
    )
    console.print()

    engine = QuestionnaireEngine(
        ParserConfig(output_dir=output, log_level=log_level)
    )
    results = []
    errors = []

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Processing documents...", total=len(files))

        for document_file in files:
            progress.update(task, description=f"Parsing: {document_file.name}")

            try:
                result = engine.parse_file(document_file)
                engine.save(result, document_file.stem)
                results.append((document_file.name, result))
            except (FileNotFoundError, ValidationError, QuestionnaireParseError) as e:
                errors.append((document_file.name, str(e)))

            progress.advance(task)

    _display_batch_summary(results, errors)


@cli.command()
@click.argument("json_path", type=click.Path(exists=True, dir_okay=False))
def validate(json_path: str):
    """Display the report of a previously generated parse result JSON."""

    with open(json_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Parse Report[/]\n"
            f"[dim]File: {json_path}[/]",
            border_style="cyan",
        )
    )

    if "report" not in data:
        console.print("[red]Error:[/] not a parse result (no report)")
        sys.exit(1)

    _display_report_table(data["report"])


# ─── Display Helpers ──────────────────────────────────────────────────────────


def _display_results(result):
    """Display parse results in formatted tables."""
    console.print()

    table = Table(title="Sections", border_style="cyan")
    table.add_column("#", justify="right")
    table.add_column("Title", style="bold")
    table.add_column("Questions", justify="right")
    table.add_column("Types")

    for section in result.sections:
        types = sorted({q.type.value for q in section.questions})
        table.add_row(
            str(section.order_index),
            section.title.en,
            str(len(section.questions)),
            ", ".join(types) or "-",
        )

    console.print(table)
    console.print()

    _display_report_table(result.report.model_dump())

    console.print(
        f"[dim]Parser v{result.parser_version} | "
        f"Sections: {result.report.total_sections} | "
        f"Questions: {result.report.total_questions}[/]"
    )
    console.print()


def _display_report_table(report: dict):
    """Display a parse report as a rich table."""
    table = Table(title="Parse Report", border_style="green")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_column("Status", justify="center")

    def status_icon(count, threshold=0):
        if count <= threshold:
            return "[green]✓[/]"
        return "[red]✗[/]"

    total = report.get("total_questions", 0)
    table.add_row(
        "Total Questions",
        str(total),
        "[green]✓[/]" if total > 0 else "[red]✗[/]",
    )
    table.add_row(
        "Total Sections",
        str(report.get("total_sections", 0)),
        "",
    )

    confidence = report.get("average_confidence", 0.0)
    table.add_row(
        "Average Confidence",
        f"{confidence:.2f}",
        "[green]✓[/]" if confidence >= 0.5 else "[yellow]⚠[/]",
    )
    table.add_row(
        "Lines Consumed",
        f"{report.get('consumed_lines', 0)}/{report.get('total_lines', 0)}",
        "",
    )

    for label, key in (
        ("Low-Confidence Questions", "low_confidence_questions"),
        ("Questions Missing Options", "questions_missing_options"),
        ("Missing Question Numbers", "missing_question_numbers"),
        ("Duplicate Question Numbers", "duplicate_question_numbers"),
        ("Empty Sections", "empty_sections"),
    ):
        items = report.get(key, [])
        table.add_row(label, str(len(items)), status_icon(len(items)))

    tier = report.get("fallback_tier", 0)
    table.add_row("Fallback Tier", str(tier), status_icon(tier))

    console.print(table)
    console.print()

    type_counts = report.get("type_counts", {})
    if type_counts:
        type_table = Table(title="Question Types", border_style="cyan")
        type_table.add_column("Type", style="bold")
        type_table.add_column("Count", justify="right")
        for type_name, count in type_counts.items():
            type_table.add_row(type_name, str(count))
        console.print(type_table)
        console.print()

    breakdown = report.get("diagnostic_breakdown", {})
    if breakdown:
        diagnostic_table = Table(
            title="Diagnostic Breakdown",
            border_style="yellow",
        )
        diagnostic_table.add_column("Type", style="bold")
        diagnostic_table.add_column("Count", justify="right")

        for diagnostic_type, count in breakdown.items():
            diagnostic_table.add_row(diagnostic_type, str(count))

        console.print(diagnostic_table)
        console.print()


def _display_batch_summary(results, errors):
    """Display batch processing summary."""
    console.print()

    table = Table(title="Batch Processing Summary", border_style="cyan")
    table.add_column("Document", style="bold")
    table.add_column("Sections", justify="right")
    table.add_column("Questions", justify="right")
    table.add_column("Confidence", justify="right")
    table.add_column("Status", justify="center")

    total_questions = 0

    for name, result in results:
        report = result.report
        total_questions += report.total_questions

        status = "[green]✓[/]" if report.fallback_tier == 0 else "[yellow]⚠[/]"
        table.add_row(
            name,
            str(report.total_sections),
            str(report.total_questions),
            f"{report.average_confidence:.2f}",
            status,
        )

    for name, error in errors:
        table.add_row(name, "-", "-", "-", "[red]✗ FAILED[/]")

    console.print(table)
    console.print()
    console.print(
        f"[bold]Total:[/] {total_questions} questions from "
        f"{len(results)} documents, {len(errors)} failures"
    )
    console.print()


# ─── Entry point (for python -m questionnaire_parser.cli) ─────────────────────


if __name__ == "__main__":
    cli()
