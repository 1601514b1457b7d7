from datetime import date
from pathlib import Path

from rich.console import Console

from newsletter_feed.core.types import ReleaseEntry, RunMetrics, SourceCount
from newsletter_feed.renderer import (
    newsletter_filename,
    recent_entries,
    render_document,
    render_preview,
    render_run_summary,
    render_source_table,
    write_document,
)


def _console() -> Console:
    return Console(record=True, width=160, color_system=None)


def test_render_document_adds_header_and_trailing_newline() -> None:
    text = render_document(
        "\n\nWelcome\n--------\n\nBody",
        "Weekly title",
        date(2026, 2, 10),
        date(2026, 2, 17),
        "gemini-2.5-flash",
    )

    assert text == (
        "# Weekly title\n\n"
        "> Coverage: 2026-02-10 to 2026-02-17\n"
        "> Model: gemini-2.5-flash\n\n"
        "Welcome\n--------\n\nBody\n"
    )


def test_render_document_replaces_long_dashes() -> None:
    text = render_document("A — B – C", "Title — week", date(2026, 2, 10), date(2026, 2, 17), "m")

    assert "—" not in text
    assert "–" not in text
    assert "# Title - week" in text
    assert "A - B - C" in text


def test_newsletter_filename_uses_slug_and_end_date() -> None:
    assert newsletter_filename("copilot", date(2026, 2, 17)) == "newsletter-copilot-cli-sdk-2026-02-17.md"
    assert newsletter_filename("vscode", date(2026, 2, 17)) == "newsletter-vscode-insiders-2026-02-17.md"


def test_write_document_reports_overwrite(tmp_path: Path) -> None:
    output_dir = tmp_path / "output"

    path, overwrote = write_document("first\n", output_dir, "news.md")
    assert path == output_dir / "news.md"
    assert overwrote is False

    path, overwrote = write_document("second\n", output_dir, "news.md")
    assert overwrote is True
    assert path.read_text(encoding="utf-8") == "second\n"


def test_recent_entries_truncates_and_limits() -> None:
    entries = [
        ReleaseEntry("v1", date(2026, 2, 16), ""),
        ReleaseEntry("x" * 50, date(2026, 2, 15), ""),
        ReleaseEntry("v3", date(2026, 2, 14), ""),
        ReleaseEntry("v4", date(2026, 2, 13), ""),
    ]

    assert recent_entries(entries) == f"v1, {'x' * 40}..., v3"
    assert recent_entries([]) == "[dim]none[/dim]"


def test_render_source_table_lists_rows() -> None:
    console = _console()

    render_source_table(
        [("Copilot CLI releases", 2, "v0.0.415, v0.0.414"), ("Changelog (Copilot)", 0, "none")],
        console,
    )

    output = console.export_text()
    assert "Copilot CLI releases" in output
    assert "v0.0.415, v0.0.414" in output
    assert "Changelog (Copilot)" in output


def test_render_run_summary_shows_counts_and_failures() -> None:
    console = _console()
    metrics = RunMetrics(
        source_counts=[SourceCount("Copilot CLI releases", 2, "2 after consolidation")],
        stage_seconds={"fetch": 1.5, "generate": 3.25},
        failed_sources=["Blog (Copilot/CLI)"],
        cache_hits=1,
        cache_misses=3,
        output_path="output/newsletter.md",
    )

    render_run_summary(
        metrics,
        "GitHub Copilot CLI & SDK",
        "gemini-2.5-flash",
        date(2026, 2, 10),
        date(2026, 2, 17),
        False,
        console,
    )

    output = console.export_text()
    assert "GitHub Copilot CLI & SDK" in output
    assert "2026-02-10 -> 2026-02-17" in output
    assert "Read/write" in output
    assert "Blog (Copilot/CLI)" in output
    assert "3.25" in output
    assert "output/newsletter.md" in output


def test_render_preview_limits_lines_and_can_be_disabled() -> None:
    console = _console()
    text = "\n".join(f"line {i}" for i in range(10))

    render_preview(text, console, max_lines=3)
    render_preview(text, console, max_lines=0)

    output = console.export_text()
    assert "line 2" in output
    assert "line 3" not in output
    assert "Preview (first 3 lines)" in output
