"""Prompt loading and rendering helpers for newsletter sections."""

from __future__ import annotations

from datetime import date
from functools import lru_cache
from pathlib import Path

from ..core.types import ReleaseEntry, VSCodeReleaseNotes


_PROMPT_DIR = Path(__file__).resolve().parent.parent / "prompts"

NO_RELEASES_LINE = "_(No new releases this week.)_"
NO_ENTRIES_LINE = "_(No entries this week.)_"


@lru_cache(maxsize=None)
def _load_template(name: str) -> str:
    path = _PROMPT_DIR / f"{name}.md"
    return path.read_text(encoding="utf-8").strip()


def _render_template(name: str, **values: str) -> str:
    template = _load_template(name)
    return template.format(**values)


def system_prompt(name: str) -> str:
    """System instruction for a section ("release_section", "news", ...)."""
    return _load_template(f"{name}_system")


def format_date_range(start: date, end: date) -> str:
    """Human-readable week, e.g. "January 5 to January 12, 2026"."""
    return f"{start:%B} {start.day} to {end:%B} {end.day}, {end.year}"


def format_releases(section_title: str, releases: list[ReleaseEntry]) -> str:
    lines = [f"## {section_title}", ""]
    if not releases:
        lines.append(NO_RELEASES_LINE)
    for release in releases:
        lines.extend([
            f"### {release.version} ({release.published_at.isoformat()})",
            "",
            release.plain_text,
            "",
        ])
    lines.append("")
    return "\n".join(lines)


def format_posts(section_title: str, entries: list[ReleaseEntry]) -> str:
    lines = [f"## {section_title}", ""]
    if not entries:
        lines.append(NO_ENTRIES_LINE)
    for entry in entries:
        lines.extend([
            f"### [{entry.version}]({entry.url}) ({entry.published_at.isoformat()})",
            "",
        ])
        # Posts with an empty body still contribute their linked heading
        if entry.plain_text.strip():
            lines.extend([entry.plain_text, ""])
    lines.append("")
    return "\n".join(lines)


def format_features(notes: VSCodeReleaseNotes | None) -> str:
    lines = ["## VS Code Insiders release notes", ""]
    if notes is None or not notes.features:
        lines.append(NO_ENTRIES_LINE)
        lines.append("")
        return "\n".join(lines)

    lines.extend([f"Source: {notes.website_url}", ""])
    for feature in notes.features:
        text = f"- [{feature.category}] {feature.description}"
        if feature.link:
            text += f" ({feature.link})"
        lines.append(text)
    lines.append("")
    return "\n".join(lines)


def build_release_section_prompt(
    cli_releases: list[ReleaseEntry],
    sdk_releases: list[ReleaseEntry],
    start: date,
    end: date,
) -> str:
    """Prompt for the "Project updates" section.

    A themed summary block is requested only for a product with more than
    one release in the week.
    """
    return _render_template(
        "release_section",
        date_range=format_date_range(start, end),
        cli_count=str(len(cli_releases)),
        sdk_count=str(len(sdk_releases)),
        cli_summary_block=_summary_block("CLI", cli_releases),
        sdk_summary_block=_summary_block("SDK", sdk_releases),
        cli_releases=format_releases("GitHub Copilot CLI release notes", cli_releases),
        sdk_releases=format_releases("GitHub Copilot SDK release notes", sdk_releases),
    )


def build_news_prompt(
    changelog_entries: list[ReleaseEntry],
    blog_entries: list[ReleaseEntry],
    start: date,
    end: date,
) -> str:
    return _render_template(
        "news",
        date_range=format_date_range(start, end),
        changelog_count=str(len(changelog_entries)),
        blog_count=str(len(blog_entries)),
        changelog_entries=format_posts("GitHub Changelog (Copilot label)", changelog_entries),
        blog_entries=format_posts("GitHub Blog (Copilot/CLI posts)", blog_entries),
    )


def build_welcome_prompt(
    news_section: str,
    release_highlights: str,
    start: date,
    end: date,
    newsletter_label: str = "GitHub Copilot CLI & SDK",
) -> str:
    blocks = []
    if news_section:
        blocks.append(f"NEWS AND ANNOUNCEMENTS:\n{news_section}")
    if release_highlights:
        blocks.append(f"RELEASE HIGHLIGHTS:\n{release_highlights}")
    return _render_template(
        "welcome",
        newsletter_label=newsletter_label,
        date_range=format_date_range(start, end),
        highlights="\n\n".join(blocks),
    )


def build_title_prompt(welcome_summary: str, newsletter_label: str) -> str:
    return _render_template(
        "title",
        newsletter_label=newsletter_label,
        welcome_summary=welcome_summary or "(no summary available)",
    )


def build_vscode_prompt(
    notes: VSCodeReleaseNotes | None,
    vscode_blog_entries: list[ReleaseEntry],
    changelog_entries: list[ReleaseEntry],
    github_blog_entries: list[ReleaseEntry],
    start: date,
    end: date,
) -> str:
    release_notes_url = notes.website_url if notes is not None else "https://code.visualstudio.com/updates"
    return _render_template(
        "vscode",
        date_range=format_date_range(start, end),
        release_notes_url=release_notes_url,
        release_notes=format_features(notes),
        vscode_blog_entries=format_posts("VS Code Blog", vscode_blog_entries),
        changelog_entries=format_posts("GitHub Changelog (mentions VS Code)", changelog_entries),
        github_blog_entries=format_posts("GitHub Blog (mentions VS Code)", github_blog_entries),
    )


def _summary_block(product: str, releases: list[ReleaseEntry]) -> str:
    if len(releases) <= 1:
        return ""
    return _render_template("release_summary_block", product=product) + "\n\n"
