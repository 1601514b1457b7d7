"""
Atom/RSS feed fetching and normalization.

fetch_feed downloads one feed and turns its items into ReleaseEntry
records. parse_feed holds the network-free half so it can be reused on
already-downloaded documents.

Per item:
1. Pick the publish date (RSS pubDate / Atom published, else Atom updated)
2. Keep items inside the inclusive date window
3. Optionally keep only items whose categories contain a keyword
4. Select the body (short summary, or full content with summary fallback)
5. normalize_html -> filter_low_value_lines -> optional truncation
"""

from __future__ import annotations

from datetime import date, datetime, timezone
import logging
import time
from typing import Any, Iterable

import feedparser
import httpx

from ..core.text import filter_low_value_lines, normalize_html
from ..core.types import ReleaseEntry
from ..utils.logging import log_event
from .fetcher import DEFAULT_USER_AGENT, FetchError, fetch_text


logger = logging.getLogger(__name__)

ELLIPSIS = " …"


def fetch_feed(
    url: str,
    start_date: date,
    end_date: date,
    category_keywords: Iterable[str] | None = None,
    prefer_short_summary: bool = False,
    max_content_chars: int = 0,
    *,
    client: httpx.Client | None = None,
    timeout: float = 20.0,
    user_agent: str = DEFAULT_USER_AGENT,
    trust_env: bool = True,
) -> list[ReleaseEntry]:
    """Fetch a feed and return its entries inside a date window.

    Args:
        url: Feed URL (Atom or RSS 2.0)
        start_date: First date to include
        end_date: Last date to include
        category_keywords: If non-empty, an item is kept only when one of its
            category labels contains one of these keywords (case-insensitive)
        prefer_short_summary: Use the short description instead of the full body
        max_content_chars: Truncate body text to this length, 0 disables it
        client: Optional httpx client (tests inject a mock transport here)
        timeout: Request timeout in seconds
        user_agent: User-Agent header string
        trust_env: Whether to respect system proxy settings

    Returns:
        Entries sorted by publish date, most recent first

    Raises:
        FetchError: If the request fails or the body is not a recognizable feed
    """
    log_event(
        logger,
        f"Fetching feed: {url} (range {start_date} to {end_date})",
        event="feed_fetch_start",
        url=url,
        start=start_date.isoformat(),
        end=end_date.isoformat(),
    )
    body = fetch_text(
        url,
        timeout=timeout,
        user_agent=user_agent,
        trust_env=trust_env,
        client=client,
    )
    log_event(
        logger,
        f"Feed response: {len(body)} chars",
        level=logging.DEBUG,
        event="feed_response",
        url=url,
        length=len(body),
    )
    return parse_feed(
        body,
        start_date,
        end_date,
        category_keywords=category_keywords,
        prefer_short_summary=prefer_short_summary,
        max_content_chars=max_content_chars,
        source_url=url,
    )


def parse_feed(
    document: str,
    start_date: date,
    end_date: date,
    category_keywords: Iterable[str] | None = None,
    prefer_short_summary: bool = False,
    max_content_chars: int = 0,
    source_url: str = "",
) -> list[ReleaseEntry]:
    """Parse a feed document into filtered, normalized entries.

    See fetch_feed for the meaning of the filtering arguments.

    Raises:
        FetchError: If the document is not recognized as Atom or RSS
    """
    parsed = feedparser.parse(document)
    if not parsed.get("version"):
        reason = parsed.get("bozo_exception") or "not a recognized Atom or RSS document"
        raise FetchError(source_url or "<document>", f"Feed parse failed: {reason}")

    keywords = [k.lower() for k in (category_keywords or []) if k]
    entries: list[ReleaseEntry] = []
    skipped_date = 0
    skipped_category = 0

    for item in parsed.entries:
        title = (item.get("title") or "").strip()
        published = _entry_date(item)
        if published is None or published < start_date or published > end_date:
            skipped_date += 1
            log_event(
                logger,
                f"Skipped (date {published} outside {start_date}-{end_date}): {title}",
                level=logging.DEBUG,
                event="feed_item_skipped_date",
                title=title,
            )
            continue

        if keywords:
            categories = _entry_categories(item)
            if not any(keyword in category for category in categories for keyword in keywords):
                skipped_category += 1
                log_event(
                    logger,
                    f"Skipped (category mismatch, cats=[{', '.join(categories)}]): {title}",
                    level=logging.DEBUG,
                    event="feed_item_skipped_category",
                    title=title,
                )
                continue

        raw_html = _entry_content(item, prefer_short_summary)
        plain_text = filter_low_value_lines(normalize_html(raw_html))
        if max_content_chars > 0 and len(plain_text) > max_content_chars:
            plain_text = plain_text[:max_content_chars].rstrip() + ELLIPSIS

        entry = ReleaseEntry(
            version=title,
            published_at=published,
            plain_text=plain_text,
            url=_entry_link(item),
        )
        log_event(
            logger,
            f"Entry: {entry.version} ({entry.published_at}, {len(entry.plain_text)} chars)",
            level=logging.DEBUG,
            event="feed_entry",
            version=entry.version,
        )
        entries.append(entry)

    log_event(
        logger,
        f"Feed {source_url}: {len(parsed.entries)} items in feed, {len(entries)} matched, "
        f"{skipped_date} skipped (date), {skipped_category} skipped (category)",
        event="feed_summary",
        url=source_url,
        total=len(parsed.entries),
        matched=len(entries),
        skipped_date=skipped_date,
        skipped_category=skipped_category,
    )
    return sorted(entries, key=lambda e: e.published_at, reverse=True)


def _entry_date(item: dict[str, Any]) -> date | None:
    """Publish date of an item as a local calendar date.

    feedparser normalizes timestamps to UTC struct_time values.
    """
    stamp: time.struct_time | None = item.get("published_parsed") or item.get("updated_parsed")
    if not stamp:
        return None
    moment = datetime(*stamp[:6], tzinfo=timezone.utc)
    return moment.astimezone().date()


def _entry_categories(item: dict[str, Any]) -> list[str]:
    categories = []
    for tag in item.get("tags") or []:
        name = tag.get("term") or tag.get("label") or ""
        if name:
            categories.append(name.lower())
    return categories


def _entry_content(item: dict[str, Any], prefer_short_summary: bool) -> str:
    # summary_detail is only set for a real <summary> or <description> element
    summary = (item.get("summary_detail") or {}).get("value") or ""
    if prefer_short_summary:
        return summary
    # Atom <content> and RSS <content:encoded> both land in "content"
    for block in item.get("content") or []:
        value = block.get("value")
        if value:
            return value
    return summary


def _entry_link(item: dict[str, Any]) -> str:
    links = item.get("links") or []
    for link in links:
        if link.get("rel") == "alternate" and link.get("href"):
            return link["href"]
    for link in links:
        if link.get("href"):
            return link["href"]
    return ""
