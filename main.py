"""Command-line entry point for jobfusion."""

import asyncio
import logging
import time
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from jobfusion.config import settings
from jobfusion.extraction import ExtractionPipeline
from jobfusion.llm import create_llm_extractor
from jobfusion.models import ExtractionResult
from jobfusion.output import display_execution_time, display_result, save_result
from jobfusion.source import PageSource

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(message)s",
    handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
)

app = typer.Typer(
    name="jobfusion",
    help="Extract job posting fields from saved HTML pages",
    add_completion=False,
)
console = Console()


@app.command()
def extract(
    html_file: Path = typer.Argument(
        ...,
        help="Saved HTML page of a job posting",
    ),
    url: Optional[str] = typer.Option(
        None,
        "--url",
        "-u",
        help="Original page URL (used for platform detection)",
    ),
    llm: bool = typer.Option(
        settings.llm_enabled,
        "--llm/--no-llm",
        help="Allow the LLM fallback when confidence is low",
    ),
    provider: str = typer.Option(
        settings.llm_provider,
        "--provider",
        "-p",
        help="LLM provider (openrouter, ollama)",
    ),
    model: Optional[str] = typer.Option(
        None,
        "--model",
        "-m",
        help="LLM model (default from settings)",
    ),
    quick: bool = typer.Option(
        False,
        "--quick",
        "-q",
        help="Strategies only, no ML or LLM stages",
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Save the result to a file",
    ),
    format: str = typer.Option(
        settings.output_format,
        "--format",
        "-f",
        help="Output format (json/csv)",
    ),
    debug: bool = typer.Option(
        settings.debug,
        "--debug",
        "-d",
        help="Show debug logging, stage timings and alternates",
    ),
):
    """Extract position, company, location, salary and description from a page."""
    start_time = time.perf_counter()

    if debug:
        logging.getLogger("jobfusion").setLevel(logging.DEBUG)

    if format not in ("json", "csv"):
        console.print(f"[red]✗[/red] Unknown format: {format} (use json or csv)")
        raise typer.Exit(code=2)

    if not html_file.is_file():
        console.print(f"[red]✗[/red] File not found: {html_file}")
        raise typer.Exit(code=1)

    html = html_file.read_text(encoding="utf-8", errors="replace")
    source = PageSource(html, url or "")

    console.print(f"[bold blue]Page:[/bold blue] {url or html_file}")
    if llm and not quick:
        console.print(f"[bold blue]LLM:[/bold blue] {provider} ({model or settings.llm_model})")
    console.print()

    result = asyncio.run(_extract(source, llm, provider, model, quick, debug))

    display_result(result, show_alternates=debug)

    if output:
        save_result(result, output, format, url or "")

    display_execution_time(time.perf_counter() - start_time)

    if result.meta.error:
        raise typer.Exit(code=1)


async def _extract(
    source: PageSource,
    use_llm: bool,
    provider: str,
    model: Optional[str],
    quick: bool,
    debug: bool,
) -> ExtractionResult:
    """Run the pipeline, owning the LLM provider's lifetime."""
    if quick:
        with console.status("[bold green]Running strategies..."):
            return await ExtractionPipeline(source, debug=debug).extract_quick()

    llm_extractor = None
    if use_llm:
        try:
            llm_extractor = create_llm_extractor(provider, model)
        except Exception as e:
            console.print(f"[red]✗[/red] LLM initialization failed: {e}")

    pipeline = ExtractionPipeline(
        source,
        llm_enabled=llm_extractor is not None,
        llm_extractor=llm_extractor,
        debug=debug,
    )

    with console.status("[bold green]Extracting fields..."):
        if llm_extractor is None:
            return await pipeline.extract()
        async with llm_extractor:
            return await pipeline.extract()


@app.command()
def info():
    """Show configuration and available extraction sources."""
    from jobfusion.extraction import SOURCE_WEIGHTS, StrategyRegistry

    console.print("[bold]jobfusion[/bold]")
    console.print("Version: 0.1.0")
    console.print("\nStrategies (by priority):")
    for strategy in StrategyRegistry().all():
        console.print(f"  • {strategy.name} (priority {strategy.priority})")
    console.print("\nSource weights:")
    for source, weight in SOURCE_WEIGHTS.items():
        console.print(f"  • {source}: {weight:.2f}")
    console.print("\nSettings:")
    console.print(f"  LLM fallback: {'enabled' if settings.llm_enabled else 'disabled'}")
    console.print(f"  LLM provider: {settings.llm_provider} ({settings.llm_model})")
    console.print(f"  Extractor timeout: {settings.extractor_timeout}s")
    console.print("\nUsage:")
    console.print("  jobfusion extract page.html --url https://boards.greenhouse.io/acme/jobs/1")
    console.print("  jobfusion extract page.html --llm --provider ollama --model llama3.1:8b")
    console.print("  jobfusion extract page.html --quick --output result.csv --format csv")


if __name__ == "__main__":
    app()
