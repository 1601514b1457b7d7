from __future__ import annotations

from datetime import date
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .core.types import ReleaseEntry, RunMetrics


NEWSLETTER_SLUGS = {
    "copilot": "copilot-cli-sdk",
    "vscode": "vscode-insiders",
}

NEWSLETTER_LABELS = {
    "copilot": "GitHub Copilot CLI & SDK",
    "vscode": "VS Code Insiders",
}

DEFAULT_TITLES = {
    "copilot": "GitHub Copilot CLI/SDK Weekly Newsletter",
    "vscode": "VS Code Insiders Weekly Newsletter",
}


def render_document(content: str, title: str, start: date, end: date, model: str) -> str:
    """Prefix generated content with the title and coverage header.

    Em and en dashes are replaced with "-" throughout the document.
    """
    lines = [
        f"# {title}",
        "",
        f"> Coverage: {start.isoformat()} to {end.isoformat()}",
        f"> Model: {model}",
        "",
        content.lstrip(),
    ]
    text = "\n".join(lines)
    if not text.endswith("\n"):
        text += "\n"
    return text.replace("—", "-").replace("–", "-")


def newsletter_filename(kind: str, end: date) -> str:
    slug = NEWSLETTER_SLUGS.get(kind, NEWSLETTER_SLUGS["copilot"])
    return f"newsletter-{slug}-{end.isoformat()}.md"


def write_document(text: str, output_dir: Path, filename: str) -> tuple[Path, bool]:
    """Write the document as UTF-8.

    Returns:
        The output path and whether an existing file was overwritten
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / filename
    overwrote = path.exists()
    path.write_text(text, encoding="utf-8")
    return path, overwrote


def render_source_table(
    rows: list[tuple[str, int, str]],
    console: Console,
    detail_header: str = "Recent entries",
) -> None:
    """Print one row per source: label, item count and a detail cell (Rich markup)."""
    table = Table(title="Sources", border_style="grey50")
    table.add_column("Source", style="cornflower_blue")
    table.add_column("Items", justify="center")
    table.add_column(detail_header)
    for label, count, detail in rows:
        count_cell = f"[green]{count}[/green]" if count else "[dim]0[/dim]"
        table.add_row(escape(label), count_cell, detail)
    console.print(table)


def recent_entries(entries: list[ReleaseEntry], max_items: int = 3) -> str:
    titles = []
    for entry in entries[:max_items]:
        name = entry.version if len(entry.version) <= 40 else entry.version[:40] + "..."
        titles.append(escape(name))
    return ", ".join(titles) if titles else "[dim]none[/dim]"


def render_run_summary(
    metrics: RunMetrics,
    newsletter_label: str,
    model: str,
    start: date,
    end: date,
    force_refresh: bool,
    console: Console,
) -> None:
    summary = Table(title="Run summary", show_header=False, border_style="grey50")
    summary.add_column("Field", style="bold")
    summary.add_column("Value")
    summary.add_row("Newsletter", escape(newsletter_label))
    summary.add_row("Model", escape(model))
    summary.add_row("Date range", f"{start.isoformat()} -> {end.isoformat()}")
    summary.add_row("Cache mode", "Force refresh" if force_refresh else "Read/write")
    summary.add_row("Cache hits", str(metrics.cache_hits))
    summary.add_row("Cache misses", str(metrics.cache_misses))
    summary.add_row("Cache skips", str(metrics.cache_skips))
    summary.add_row("Output file", escape(metrics.output_path or "(none)"))
    summary.add_row("Overwrite", "Yes" if metrics.overwrote_output else "No")
    if metrics.failed_sources:
        summary.add_row("Failed sources", f"[red]{escape(', '.join(metrics.failed_sources))}[/red]")
    console.print(summary)

    counts = Table(title="Source counts", border_style="grey50")
    counts.add_column("Source")
    counts.add_column("Count", justify="right")
    counts.add_column("Notes")
    for source in metrics.source_counts:
        counts.add_row(escape(source.source), str(source.count), escape(source.notes))
    console.print(counts)

    stages = Table(title="Stage timings", border_style="grey50")
    stages.add_column("Stage")
    stages.add_column("Seconds", justify="right")
    for stage, seconds in sorted(metrics.stage_seconds.items(), key=lambda kv: -kv[1]):
        stages.add_row(escape(stage), f"{seconds:.2f}")
    console.print(stages)


def render_preview(text: str, console: Console, max_lines: int = 25) -> None:
    if max_lines <= 0:
        return
    preview = "\n".join(text.split("\n")[:max_lines])
    console.print(
        Panel(
            escape(preview),
            title=f"Preview (first {max_lines} lines)",
            border_style="grey50",
            expand=True,
        )
    )
