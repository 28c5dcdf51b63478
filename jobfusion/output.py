"""Console display and export of extraction results."""

import json
from pathlib import Path
from typing import Literal

import pandas as pd
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from jobfusion.extraction.confidence import get_confidence_level
from jobfusion.extraction.merger import to_job_info
from jobfusion.models import ExtractionResult, FIELDS


console = Console()

LEVEL_STYLES = {
    "very-high": "bold green",
    "high": "green",
    "medium": "yellow",
    "low": "red",
    "very-low": "bold red",
}
MAX_DISPLAY_LENGTH = 120


def display_execution_time(elapsed_seconds: float) -> None:
    """Display execution time in a panel."""
    if elapsed_seconds < 1:
        time_str = f"{elapsed_seconds * 1000:.0f} ms"
    elif elapsed_seconds < 60:
        time_str = f"{elapsed_seconds:.2f} s"
    else:
        minutes = int(elapsed_seconds // 60)
        seconds = elapsed_seconds % 60
        time_str = f"{minutes} min {seconds:.1f} s"

    console.print()
    console.print(Panel(
        f"[bold cyan]Execution time:[/bold cyan] [bold white]{time_str}[/bold white]",
        border_style="dim cyan",
        padding=(0, 2),
    ))


def _styled_level(confidence: float) -> str:
    level = get_confidence_level(confidence)
    style = LEVEL_STYLES[level]
    return f"[{style}]{level}[/{style}]"


def _shorten(value: str) -> str:
    value = " ".join(value.split())
    if len(value) > MAX_DISPLAY_LENGTH:
        return value[:MAX_DISPLAY_LENGTH - 3] + "..."
    return value


def display_result(result: ExtractionResult, show_alternates: bool = False) -> None:
    """Display an extraction result in the terminal."""
    if result.meta.error:
        console.print(f"[red]✗[/red] Extraction failed: {result.meta.error}")

    table = Table(title="Extracted fields", show_lines=True)

    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", style="white", max_width=60)
    table.add_column("Confidence", justify="right")
    table.add_column("Level")
    table.add_column("Source", style="magenta")

    for f in FIELDS:
        field_result = result.fields[f]
        if field_result.is_empty:
            table.add_row(f.value, "[dim]—[/dim]", "0.00", _styled_level(0.0), "—")
            continue
        table.add_row(
            f.value,
            _shorten(field_result.value),
            f"{field_result.confidence:.2f}",
            _styled_level(field_result.confidence),
            field_result.source or "—",
        )
        if show_alternates:
            for alternate in field_result.alternates:
                table.add_row(
                    "",
                    f"[dim]{_shorten(alternate.value)}[/dim]",
                    f"[dim]{alternate.confidence:.2f}[/dim]",
                    "",
                    f"[dim]{alternate.source}[/dim]",
                )

    console.print(table)
    console.print(
        f"[bold]Overall confidence:[/bold] {result.overall_confidence:.2f} "
        f"({_styled_level(result.overall_confidence)})"
    )

    meta = result.meta
    if meta.strategies_used:
        console.print(f"[bold]Sources:[/bold] {', '.join(meta.strategies_used)}")
    if meta.platform:
        console.print(f"[bold]Platform:[/bold] {meta.platform}")
    if meta.llm_used:
        console.print("[bold]LLM fallback:[/bold] used")

    for f, values in meta.conflicts.items():
        console.print(f"[yellow]⚠[/yellow] Conflicting {f.value} values: " + " | ".join(
            _shorten(v) for v in values
        ))


def save_result(
    result: ExtractionResult,
    output_path: str,
    format: Literal["json", "csv"] = "json",
    url: str = "",
) -> Path:
    """
    Save an extraction result to a file.

    Args:
        result: Extraction result
        output_path: File path
        format: File format (json or csv)
        url: Page URL recorded as ``jobUrl``

    Returns:
        Path of the saved file
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    record = to_job_info(result, url)

    if format == "json":
        if not path.suffix:
            path = path.with_suffix(".json")
        record["_extractionMeta"] = result.meta.to_dict()
        with open(path, "w", encoding="utf-8") as f:
            json.dump(record, f, ensure_ascii=False, indent=2)
    elif format == "csv":
        if not path.suffix:
            path = path.with_suffix(".csv")
        df = pd.json_normalize([record], sep="_")
        df.to_csv(path, index=False, encoding="utf-8")
    else:
        raise ValueError(f"Unknown output format: {format}")

    console.print(f"[green]Results saved to {path}[/green]")
    return path
