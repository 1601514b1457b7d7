"""
Command-line interface for the newsletter generator.

Uses Typer to provide a CLI with options for the main configuration
settings. Loads a .env file for API key configuration.
"""

from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path

from dotenv import load_dotenv
import typer
from rich.console import Console

from .cache import clear_cache as remove_cache_dir
from .config import load_config
from .runner import NEWSLETTER_KINDS, run_newsletter

app = typer.Typer(add_completion=False)
console = Console()


@app.command()
def generate(
    days_back: int = typer.Argument(7, min=0, help="Number of days to cover, ending today."),
    newsletter: str = typer.Option(
        "copilot", "--newsletter", "-n", help="Newsletter to generate: copilot or vscode."
    ),
    model: str | None = typer.Option(None, "--model", "-m", help="Override the provider model."),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, readable=True),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output directory."),
    clear_cache: bool = typer.Option(
        False, "--clear-cache", help="Delete the summary cache before running."
    ),
    force_refresh: bool = typer.Option(
        False, "--force-refresh", help="Ignore cached sections for this run."
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    progress: bool = typer.Option(True, "--progress/--no-progress"),
    debug: bool = typer.Option(False, "--debug", help="Show full tracebacks on failure."),
    api_key: str | None = typer.Option(
        None,
        "--api-key",
        envvar="GOOGLE_API_KEY",
        help="Override provider API key (or set GOOGLE_API_KEY / .env).",
    ),
):
    """Generate a weekly newsletter.

    Fetches the release feeds, changelog and blog posts published in the last
    DAYS_BACK days, summarizes them with the configured LLM and writes a
    Markdown newsletter.
    """
    load_dotenv()

    newsletter = newsletter.lower().strip()
    if newsletter not in NEWSLETTER_KINDS:
        console.print(
            f"[red]Unknown newsletter '{newsletter}'. Choose one of: {', '.join(NEWSLETTER_KINDS)}[/red]"
        )
        raise typer.Exit(code=2)

    cfg = load_config(str(config) if config else None)

    if api_key:
        cfg.provider.api_key = api_key
    if model:
        cfg.provider.model = model
    if output is not None:
        cfg.output.dir = str(output)
    if log_level:
        cfg.logging.level = log_level
    if force_refresh:
        cfg.cache.force_refresh = True
    if clear_cache and remove_cache_dir(Path(cfg.cache.dir)):
        console.print(f"Cache cleared: {cfg.cache.dir}")

    end = date.today()
    start = end - timedelta(days=days_back)

    try:
        output_path = run_newsletter(
            newsletter, start, end, cfg, show_progress=progress, console=console
        )
    except Exception as exc:  # noqa: BLE001
        if debug:
            console.print_exception()
        else:
            console.print(f"[red]Newsletter generation failed:[/red] {type(exc).__name__}: {exc}")
            console.print("[dim]Re-run with --debug for the full traceback.[/dim]")
        raise typer.Exit(code=1) from exc

    if output_path is None:
        console.print("Nothing to report for this period; no newsletter written.")
    else:
        console.print(f"Newsletter written: {output_path}")


@app.command("clear-cache")
def clear_cache_command(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, readable=True),
):
    """Delete the summary cache directory."""
    cfg = load_config(str(config) if config else None)
    if remove_cache_dir(Path(cfg.cache.dir)):
        console.print(f"Cache cleared: {cfg.cache.dir}")
    else:
        console.print(f"No cache found at {cfg.cache.dir}")


if __name__ == "__main__":
    app()
