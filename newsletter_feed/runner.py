"""
Newsletter orchestration.

This module coordinates one newsletter run:
1. Fetch every source for the newsletter concurrently (join barrier)
2. Consolidate pre-releases of the release feeds
3. Generate each section through the summary cache
4. Assemble, render and write the Markdown document

A failing feed is logged and contributes no entries; the other feeds are
unaffected. Provider failures abort the run.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date
import asyncio
import logging
from pathlib import Path
import time

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
)

from .cache import SummaryCache
from .config import AppConfig, FetchConfig
from .core.reconcile import consolidate_prereleases
from .core.types import FeedRequest, ReleaseEntry, RunMetrics, SourceCount, VSCodeReleaseNotes
from .fetch.feed import fetch_feed
from .fetch.fetcher import FetchError
from .fetch.vscode_notes import get_release_notes_for_range
from .llm.prompts import (
    build_news_prompt,
    build_release_section_prompt,
    build_title_prompt,
    build_vscode_prompt,
    build_welcome_prompt,
    system_prompt,
)
from .llm.providers import SummaryProvider, create_provider
from .renderer import (
    DEFAULT_TITLES,
    NEWSLETTER_LABELS,
    newsletter_filename,
    recent_entries,
    render_document,
    render_preview,
    render_run_summary,
    render_source_table,
    write_document,
)
from .utils.logging import log_event, setup_llm_logger, setup_logging


logger = logging.getLogger(__name__)

NEWSLETTER_KINDS = ("copilot", "vscode")

WELCOME_FALLBACK = "It's been another week of updates for GitHub Copilot CLI & SDK!"
COPILOT_INTRO = "This is your weekly update for GitHub Copilot CLI & SDK!"
SECTION_BREAK = "* * * * *"

VSCODE_MENTIONS = (
    "vs code",
    "vscode",
    "visual studio code",
    "insiders",
    "code.visualstudio.com",
)


@dataclass
class NewsletterResult:
    """Generated newsletter body and title. content is None when there is nothing to report."""
    content: str | None
    title: str


def fetch_sources(
    requests: list[FeedRequest],
    start: date,
    end: date,
    fetch_cfg: FetchConfig,
    progress: Progress | None = None,
) -> tuple[dict[str, list[ReleaseEntry]], list[str]]:
    """Fetch several feeds concurrently.

    Each feed is fetched in a worker thread with its own HTTP client and
    result list. The call returns only after every fetch has finished.

    Args:
        requests: Feeds to fetch
        start: First date of the window
        end: Last date of the window
        fetch_cfg: HTTP settings
        progress: Optional Rich progress bar, one task per feed

    Returns:
        Tuple of (entries by request label, labels of feeds that failed)
    """
    return asyncio.run(_fetch_sources_async(requests, start, end, fetch_cfg, progress))


async def _fetch_sources_async(
    requests: list[FeedRequest],
    start: date,
    end: date,
    fetch_cfg: FetchConfig,
    progress: Progress | None = None,
) -> tuple[dict[str, list[ReleaseEntry]], list[str]]:
    failed: list[str] = []

    async def _fetch_single(request: FeedRequest) -> tuple[str, list[ReleaseEntry]]:
        task_id = progress.add_task(request.label, total=1) if progress else None
        try:
            entries = await asyncio.to_thread(
                fetch_feed,
                request.url,
                start,
                end,
                request.category_keywords,
                request.prefer_short_summary,
                request.max_content_chars,
                timeout=fetch_cfg.timeout_seconds,
                user_agent=fetch_cfg.user_agent,
                trust_env=fetch_cfg.trust_env,
            )
        except FetchError as exc:
            log_event(
                logger,
                f"Feed fetch failed for {request.label}: {exc}",
                level=logging.WARNING,
                event="feed_fetch_failed",
                source=request.label,
                url=request.url,
                status_code=exc.status_code,
            )
            failed.append(request.label)
            entries = []
        if progress and task_id is not None:
            progress.advance(task_id, 1)
        return request.label, entries

    results = await asyncio.gather(*(_fetch_single(request) for request in requests))
    return dict(results), failed


def mentions_vscode(entry: ReleaseEntry) -> bool:
    combined = f"{entry.version}\n{entry.plain_text}".lower()
    if not combined.strip():
        return False
    return any(term in combined for term in VSCODE_MENTIONS)


def extract_release_highlights(release_section: str) -> str:
    """Summary bullets listed under the product headings of a release section."""
    bullets = []
    in_summary = False
    for line in release_section.split("\n"):
        if "### GitHub Copilot CLI" in line or "### GitHub Copilot SDK" in line:
            in_summary = True
            continue
        if line.startswith("## Releases") or line.startswith("---"):
            in_summary = False
        if in_summary and line.lstrip().startswith("-"):
            bullets.append(line)
    return "\n".join(bullets)


def extract_welcome_summary(content: str) -> str:
    """Paragraph text following the "Welcome" heading of generated content."""
    lines = []
    in_welcome = False
    for line in content.split("\n"):
        stripped = line.strip()
        if line.lstrip().lower().startswith("welcome"):
            in_welcome = True
            continue
        if not in_welcome:
            continue
        if stripped == "--------":
            continue
        if stripped == SECTION_BREAK or stripped.startswith("---"):
            break
        if stripped:
            lines.append(line)
    return "\n".join(lines).strip()


def clean_title(text: str, default: str) -> str:
    for line in text.split("\n"):
        title = line.strip().lstrip("#").strip().strip('"').strip("'").strip()
        if title:
            return title
    return default


def generate_copilot_newsletter(
    start: date,
    end: date,
    cfg: AppConfig,
    cache: SummaryCache,
    provider: SummaryProvider,
    metrics: RunMetrics,
    console: Console | None = None,
    show_progress: bool = True,
) -> NewsletterResult:
    """Build the GitHub Copilot CLI & SDK newsletter body."""
    default_title = DEFAULT_TITLES["copilot"]
    feeds = cfg.feeds
    requests = [
        FeedRequest("Copilot CLI releases", feeds.cli_releases_url),
        FeedRequest("Copilot SDK releases", feeds.sdk_releases_url),
        FeedRequest(
            "Changelog (Copilot)",
            feeds.changelog_url,
            max_content_chars=feeds.changelog_max_chars,
        ),
        FeedRequest(
            "Blog (Copilot/CLI)",
            feeds.blog_url,
            category_keywords=list(feeds.blog_category_keywords),
            prefer_short_summary=True,
            max_content_chars=feeds.blog_max_chars,
        ),
    ]

    stage_start = time.perf_counter()
    with _build_progress(console, show_progress) as progress:
        results, failed = fetch_sources(requests, start, end, cfg.fetch, progress)
    metrics.stage_seconds["Fetch sources"] = time.perf_counter() - stage_start
    metrics.failed_sources.extend(failed)

    raw_cli = results["Copilot CLI releases"]
    raw_sdk = results["Copilot SDK releases"]
    cli_releases = consolidate_prereleases(raw_cli)
    sdk_releases = consolidate_prereleases(raw_sdk)
    changelog_entries = results["Changelog (Copilot)"]
    blog_entries = results["Blog (Copilot/CLI)"]
    log_event(
        logger,
        f"Consolidated pre-releases: CLI {len(raw_cli)}->{len(cli_releases)}, "
        f"SDK {len(raw_sdk)}->{len(sdk_releases)}",
        event="consolidate_prereleases",
        cli_before=len(raw_cli),
        cli_after=len(cli_releases),
        sdk_before=len(raw_sdk),
        sdk_after=len(sdk_releases),
    )

    metrics.source_counts.extend([
        SourceCount("Copilot CLI releases", len(cli_releases), "After prerelease consolidation"),
        SourceCount("Copilot SDK releases", len(sdk_releases), "After prerelease consolidation"),
        SourceCount("Changelog (Copilot)", len(changelog_entries), "Feed items"),
        SourceCount("Blog (Copilot/CLI)", len(blog_entries), "Filtered by category"),
    ])
    if console is not None:
        render_source_table(
            [
                ("Copilot CLI releases", len(cli_releases), recent_entries(cli_releases)),
                ("Copilot SDK releases", len(sdk_releases), recent_entries(sdk_releases)),
                ("Changelog (Copilot)", len(changelog_entries), recent_entries(changelog_entries)),
                ("Blog (Copilot/CLI)", len(blog_entries), recent_entries(blog_entries)),
            ],
            console,
        )

    if not (cli_releases or sdk_releases or changelog_entries or blog_entries):
        log_event(
            logger,
            f"No items found for {start} to {end}",
            level=logging.WARNING,
            event="no_items",
            start=start.isoformat(),
            end=end.isoformat(),
        )
        return NewsletterResult(None, default_title)

    range_key = f"{start.isoformat()}_{end.isoformat()}"
    stage_start = time.perf_counter()

    news_section = ""
    if changelog_entries or blog_entries:
        news_section = _generate_section(
            cache,
            provider,
            f"copilot-news-{range_key}",
            "news",
            build_news_prompt(changelog_entries, blog_entries, start, end),
        )

    release_section = _generate_section(
        cache,
        provider,
        f"copilot-releases-{range_key}",
        "release_section",
        build_release_section_prompt(cli_releases, sdk_releases, start, end),
    )

    highlights = extract_release_highlights(release_section)
    if news_section or highlights:
        welcome = _generate_section(
            cache,
            provider,
            f"copilot-welcome-{range_key}",
            "welcome",
            build_welcome_prompt(news_section, highlights, start, end, NEWSLETTER_LABELS["copilot"]),
        )
    else:
        welcome = WELCOME_FALLBACK

    title = clean_title(
        _generate_section(
            cache,
            provider,
            f"copilot-title-{range_key}",
            "title",
            build_title_prompt(welcome, NEWSLETTER_LABELS["copilot"]),
        ),
        default_title,
    )
    metrics.stage_seconds["Generate content"] = time.perf_counter() - stage_start

    if not release_section.strip():
        log_event(
            logger,
            "Release section is empty, nothing to write",
            level=logging.WARNING,
            event="empty_release_section",
        )
        return NewsletterResult(None, title)

    parts = [
        "Welcome",
        "--------",
        "",
        COPILOT_INTRO,
        "",
        welcome,
        "",
        SECTION_BREAK,
        "",
    ]
    if news_section:
        parts.extend([news_section, "", SECTION_BREAK, ""])
    parts.append(release_section)
    return NewsletterResult("\n".join(parts), title)


def generate_vscode_newsletter(
    start: date,
    end: date,
    cfg: AppConfig,
    cache: SummaryCache,
    provider: SummaryProvider,
    metrics: RunMetrics,
    console: Console | None = None,
    show_progress: bool = True,
) -> NewsletterResult:
    """Build the VS Code Insiders newsletter body."""
    default_title = DEFAULT_TITLES["vscode"]
    feeds = cfg.feeds
    requests = [
        FeedRequest(
            "VS Code Blog",
            feeds.vscode_blog_url,
            prefer_short_summary=True,
            max_content_chars=feeds.vscode_blog_max_chars,
        ),
        FeedRequest(
            "GitHub Changelog",
            feeds.changelog_url,
            max_content_chars=feeds.changelog_max_chars,
        ),
        FeedRequest(
            "GitHub Blog",
            feeds.blog_url,
            prefer_short_summary=True,
            max_content_chars=feeds.vscode_blog_max_chars,
        ),
    ]

    stage_start = time.perf_counter()
    with _build_progress(console, show_progress) as progress:
        notes, results, failed = asyncio.run(
            _fetch_vscode_sources_async(requests, start, end, cfg.fetch, progress)
        )
    metrics.stage_seconds["Fetch sources"] = time.perf_counter() - stage_start
    metrics.failed_sources.extend(failed)

    vscode_blog = [e for e in results["VS Code Blog"] if mentions_vscode(e)]
    changelog = [e for e in results["GitHub Changelog"] if mentions_vscode(e)]
    github_blog = [e for e in results["GitHub Blog"] if mentions_vscode(e)]
    feature_count = len(notes.features) if notes is not None else 0

    metrics.source_counts.extend([
        SourceCount("VS Code Insiders", feature_count, "Parsed features"),
        SourceCount("VS Code Blog", len(vscode_blog), "Mentions VS Code"),
        SourceCount("GitHub Changelog", len(changelog), "Copilot entries mentioning VS Code"),
        SourceCount("GitHub Blog", len(github_blog), "Posts mentioning VS Code"),
    ])
    if console is not None:
        render_source_table(
            [
                ("VS Code Insiders", feature_count, _top_categories(notes)),
                ("VS Code Blog", len(vscode_blog), recent_entries(vscode_blog)),
                ("GitHub Changelog", len(changelog), recent_entries(changelog)),
                ("GitHub Blog", len(github_blog), recent_entries(github_blog)),
            ],
            console,
            detail_header="Details",
        )

    if notes is None:
        log_event(
            logger,
            f"No VS Code Insiders release notes for {start} to {end}",
            level=logging.WARNING,
            event="no_items",
            start=start.isoformat(),
            end=end.isoformat(),
        )
        return NewsletterResult(None, default_title)

    range_key = f"{start.isoformat()}_{end.isoformat()}"
    stage_start = time.perf_counter()
    content = _generate_section(
        cache,
        provider,
        f"vscode-newsletter-{range_key}",
        "vscode",
        build_vscode_prompt(notes, vscode_blog, changelog, github_blog, start, end),
    )
    title = clean_title(
        _generate_section(
            cache,
            provider,
            f"vscode-title-{range_key}",
            "title",
            build_title_prompt(extract_welcome_summary(content), NEWSLETTER_LABELS["vscode"]),
        ),
        default_title,
    )
    metrics.stage_seconds["Generate content"] = time.perf_counter() - stage_start

    if not content.strip():
        log_event(
            logger,
            "Empty VS Code newsletter result",
            level=logging.WARNING,
            event="empty_newsletter",
        )
        return NewsletterResult(None, title)
    return NewsletterResult(content, title)


def run_newsletter(
    kind: str,
    start: date,
    end: date,
    cfg: AppConfig,
    show_progress: bool = True,
    console: Console | None = None,
    provider: SummaryProvider | None = None,
) -> Path | None:
    """Generate one newsletter and write it to the output directory.

    Args:
        kind: "copilot" or "vscode"
        start: First date of the coverage window
        end: Last date of the coverage window
        cfg: Application configuration
        show_progress: Whether to display progress bars
        console: Rich console for tables and preview
        provider: Optional pre-built provider (built from config when None)

    Returns:
        Path of the written document, or None when there was nothing to report
    """
    if kind not in NEWSLETTER_KINDS:
        raise ValueError(f"Unknown newsletter: {kind}. Supported: {', '.join(NEWSLETTER_KINDS)}")
    if start > end:
        start, end = end, start

    log_dir = Path(cfg.logging.dir)
    run_logger = setup_logging(cfg.logging, log_dir)
    llm_logger = setup_llm_logger(cfg.logging, log_dir)
    console = console or Console()

    log_event(
        run_logger,
        f"Newsletter run start: {kind} ({start} to {end})",
        event="run_start",
        newsletter=kind,
        start=start.isoformat(),
        end=end.isoformat(),
    )

    cache = SummaryCache(
        Path(cfg.cache.dir),
        force_refresh=cfg.cache.force_refresh,
        write_index=cfg.cache.write_index,
        index_filename=cfg.cache.index_filename,
    )
    if provider is None:
        provider = create_provider(cfg.provider, cfg.logging, llm_logger)

    metrics = RunMetrics()
    generator = generate_copilot_newsletter if kind == "copilot" else generate_vscode_newsletter
    result = generator(start, end, cfg, cache, provider, metrics, console, show_progress)

    metrics.cache_hits = cache.hits
    metrics.cache_misses = cache.misses
    metrics.cache_skips = cache.skips

    output_path = None
    if result.content is None:
        console.print(
            f"[yellow]No items found in [bold]{start}[/bold] to [bold]{end}[/bold].[/yellow]"
        )
    else:
        document = render_document(result.content, result.title, start, end, provider.model)
        output_path, overwrote = write_document(
            document, Path(cfg.output.dir), newsletter_filename(kind, end)
        )
        metrics.output_path = str(output_path)
        metrics.overwrote_output = overwrote
        if overwrote:
            log_event(
                run_logger,
                f"Overwrote existing file {output_path}",
                level=logging.WARNING,
                event="output_overwritten",
                path=str(output_path),
            )
        render_preview(document, console, cfg.output.preview_lines)

    render_run_summary(
        metrics,
        NEWSLETTER_LABELS[kind],
        provider.model,
        start,
        end,
        cfg.cache.force_refresh,
        console,
    )
    log_event(
        run_logger,
        "Newsletter run complete",
        event="run_complete",
        newsletter=kind,
        output=metrics.output_path,
        cache_hits=metrics.cache_hits,
        cache_misses=metrics.cache_misses,
        cache_skips=metrics.cache_skips,
        failed_sources=metrics.failed_sources,
    )
    return output_path


async def _fetch_vscode_sources_async(
    requests: list[FeedRequest],
    start: date,
    end: date,
    fetch_cfg: FetchConfig,
    progress: Progress | None = None,
) -> tuple[VSCodeReleaseNotes | None, dict[str, list[ReleaseEntry]], list[str]]:
    async def _fetch_notes() -> VSCodeReleaseNotes | None:
        task_id = progress.add_task("VS Code release notes", total=1) if progress else None
        notes = await asyncio.to_thread(
            get_release_notes_for_range,
            start,
            end,
            timeout=fetch_cfg.timeout_seconds,
            user_agent=fetch_cfg.user_agent,
        )
        if progress and task_id is not None:
            progress.advance(task_id, 1)
        return notes

    notes, (results, failed) = await asyncio.gather(
        _fetch_notes(),
        _fetch_sources_async(requests, start, end, fetch_cfg, progress),
    )
    return notes, results, failed


def _generate_section(
    cache: SummaryCache,
    provider: SummaryProvider,
    cache_key: str,
    prompt_name: str,
    prompt: str,
) -> str:
    system = system_prompt(prompt_name)
    source = f"{provider.model}\n{system}\n{prompt}"
    return cache.get_or_compute(
        cache_key,
        source,
        lambda: provider.generate(prompt, system, label=prompt_name),
    ).strip()


def _top_categories(notes: VSCodeReleaseNotes | None, limit: int = 4) -> str:
    if notes is None or not notes.features:
        return "[dim]none[/dim]"
    counts = Counter(feature.category for feature in notes.features)
    return ", ".join(f"{escape(name)} ({count})" for name, count in counts.most_common(limit))


def _build_progress(console: Console | None, show_progress: bool) -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        disable=not show_progress or console is None,
    )
