"""
VS Code Insiders release notes from the vscode-docs repository.

Insiders notes are raw Markdown files (release-notes/v1_NNN.md) with YAML
front matter and one "## <Month> <day>" section per build. This module
locates the candidate files for a date range, validates that they are
Insiders notes and turns each bullet of the in-range sections into a
VSCodeFeature.

Candidate files come from the version the Insiders redirect currently
points at (and the one before it). When the redirect cannot be resolved,
the version is estimated from the date: a monthly release ships on the
first Thursday, and v1_109 is the January 2026 release.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
import logging
import re

import httpx

from ..core.types import VSCodeFeature, VSCodeReleaseNotes
from ..utils.logging import log_event
from .fetcher import DEFAULT_USER_AGENT, FetchError, fetch_text, resolve_redirect


logger = logging.getLogger(__name__)

RAW_GITHUB_BASE_URL = (
    "https://raw.githubusercontent.com/microsoft/vscode-docs/refs/heads/main/release-notes/"
)
INSIDERS_REDIRECT_URL = "https://aka.ms/vscode/updates/insiders"
REQUIRED_PRODUCT_EDITION = "Insiders"

REFERENCE_MONTH = date(2026, 1, 1)
REFERENCE_VERSION = 109

MIN_BULLET_LENGTH = 5
MAX_TITLE_LENGTH = 80
MAX_SENTENCE_END_INDEX = 100
TRUNCATED_TITLE_LENGTH = 77

_MONTHS = (
    "January|February|March|April|May|June|July|August|September|October|November|December"
)
_DATE_HEADING_RE = re.compile(rf"^##\s+({_MONTHS})\s+(\d{{1,2}})(?:,\s*(\d{{4}}))?", re.IGNORECASE)
_DATE_RE = re.compile(rf"({_MONTHS})\s+(\d{{1,2}})(?:,\s*(\d{{4}}))?", re.IGNORECASE)
_VERSION_RE = re.compile(r"v1_(\d+)", re.IGNORECASE)
_ISSUE_LINK_RE = re.compile(r"\[#?\d+\]\((https?://[^\)]+)\)")
_MARKDOWN_LINK_RE = re.compile(r"\[([^\]]*)\]\([^\)]*\)")
_TRAILING_ISSUE_RE = re.compile(r"\s*#\d+\s*$")
_MONTH_NUMBERS = {
    name.lower(): index for index, name in enumerate(_MONTHS.split("|"), start=1)
}


@dataclass
class DatedSection:
    """Features listed under one "## <Month> <day>" heading."""
    date: date
    features: list[VSCodeFeature] = field(default_factory=list)


def get_release_notes_for_range(
    start_date: date,
    end_date: date,
    client: httpx.Client | None = None,
    timeout: float = 20.0,
    user_agent: str = DEFAULT_USER_AGENT,
) -> VSCodeReleaseNotes | None:
    """Collect Insiders features published between two dates.

    Args:
        start_date: First date of the range (bounds are swapped if reversed)
        end_date: Last date of the range
        client: Optional httpx client
        timeout: Request timeout in seconds
        user_agent: User-Agent header string

    Returns:
        The collected notes, or None when no feature falls in the range
    """
    if start_date > end_date:
        start_date, end_date = end_date, start_date

    current_version = resolve_current_version(client, timeout=timeout, user_agent=user_agent)
    candidate_urls = _dedupe_urls(
        candidate_markdown_urls(end_date, current_version)
        + candidate_markdown_urls(start_date, current_version)
    )

    all_features: list[VSCodeFeature] = []
    seen: set[str] = set()
    version_url: str | None = None

    for url in candidate_urls:
        try:
            markdown = fetch_text(url, timeout=timeout, user_agent=user_agent, client=client)
        except FetchError as exc:
            log_event(
                logger,
                f"Release notes candidate unavailable: {exc}",
                level=logging.DEBUG,
                event="vscode_notes_candidate_failed",
                url=url,
            )
            continue

        if not validate_front_matter(markdown):
            log_event(
                logger,
                f"Release notes candidate is not an {REQUIRED_PRODUCT_EDITION} document: {url}",
                level=logging.DEBUG,
                event="vscode_notes_candidate_rejected",
                url=url,
            )
            continue

        features = [
            feature
            for section in parse_markdown_sections(markdown, end_date.year)
            if start_date <= section.date <= end_date
            for feature in section.features
        ]
        if not features:
            continue

        if version_url is None:
            version_url = url
        for feature in features:
            key = f"{feature.title}|{feature.description}".lower()
            if key in seen:
                continue
            seen.add(key)
            all_features.append(feature)

    log_event(
        logger,
        f"VS Code release notes: {len(all_features)} features from {len(candidate_urls)} candidates",
        event="vscode_notes_summary",
        features=len(all_features),
        candidates=len(candidate_urls),
    )
    if not all_features:
        return None

    return VSCodeReleaseNotes(
        date=end_date,
        features=all_features,
        version_url=version_url or candidate_urls[0],
    )


def resolve_current_version(
    client: httpx.Client | None = None,
    timeout: float = 20.0,
    user_agent: str = DEFAULT_USER_AGENT,
) -> int | None:
    """Minor version the Insiders updates redirect currently points at."""
    try:
        final_url = resolve_redirect(
            INSIDERS_REDIRECT_URL, timeout=timeout, user_agent=user_agent, client=client
        )
    except FetchError as exc:
        log_event(
            logger,
            f"Could not resolve Insiders version: {exc}",
            level=logging.DEBUG,
            event="vscode_version_unresolved",
        )
        return None
    match = _VERSION_RE.search(final_url)
    return int(match.group(1)) if match else None


def candidate_markdown_urls(target: date, current_version: int | None = None) -> list[str]:
    if current_version is not None:
        return _dedupe_urls([
            markdown_url(current_version),
            markdown_url(current_version - 1),
        ])
    release_month = release_month_for(target)
    return _dedupe_urls([
        markdown_url(version_for_month(release_month)),
        markdown_url(version_for_month(_add_month(release_month))),
    ])


def markdown_url(version: int) -> str:
    return f"{RAW_GITHUB_BASE_URL}v1_{version}.md"


def version_for_month(release_month: date) -> int:
    months = (release_month.year - REFERENCE_MONTH.year) * 12 + (
        release_month.month - REFERENCE_MONTH.month
    )
    return REFERENCE_VERSION + months


def release_month_for(target: date) -> date:
    """First day of the month whose release covers the target date."""
    if target < first_thursday(target.year, target.month):
        previous = target.replace(day=1) - timedelta(days=1)
        return previous.replace(day=1)
    return target.replace(day=1)


def first_thursday(year: int, month: int) -> date:
    first_day = date(year, month, 1)
    offset = (3 - first_day.weekday()) % 7
    return first_day + timedelta(days=offset)


def validate_front_matter(markdown: str) -> bool:
    """Whether the document's front matter declares the Insiders edition."""
    if not markdown.startswith("---"):
        return False
    end_index = markdown.find("---", 3)
    if end_index < 0:
        return False

    for line in markdown[3:end_index].split("\n"):
        trimmed = line.strip()
        if not trimmed.lower().startswith("productedition:"):
            continue
        value = trimmed[len("ProductEdition:"):].strip()
        return value.lower() == REQUIRED_PRODUCT_EDITION.lower()
    return False


def parse_markdown_sections(markdown: str, default_year: int) -> list[DatedSection]:
    """Split release notes into dated sections of features.

    Bullets ("* " or "- ") may continue over following non-blank lines; a
    blank line or a heading ends the bullet.
    """
    sections: list[DatedSection] = []
    current: DatedSection | None = None
    category = "General"
    bullet_lines: list[str] = []

    def flush() -> None:
        if bullet_lines and current is not None:
            feature = _build_feature(" ".join(bullet_lines).strip(), category)
            if feature is not None:
                current.features.append(feature)
        bullet_lines.clear()

    for raw_line in markdown.split("\n"):
        line = raw_line.rstrip("\r")

        heading = _DATE_HEADING_RE.match(line)
        if heading:
            flush()
            parsed = _date_from_match(heading, default_year)
            if parsed is not None:
                current = DatedSection(date=parsed)
                sections.append(current)
                category = extract_category(line)
            continue

        if current is None:
            continue

        if line.startswith("* ") or line.startswith("- "):
            flush()
            bullet_lines.append(line[2:].rstrip())
            continue

        if bullet_lines and line.strip() and not line.startswith("#"):
            bullet_lines.append(line.rstrip())
            continue

        flush()

    flush()
    return sections


def extract_category(heading: str) -> str:
    dash_index = heading.find("-")
    if 0 < dash_index < len(heading) - 2:
        return heading[dash_index + 1:].strip()

    match = _DATE_RE.search(heading)
    if match:
        remainder = heading[match.end():].strip()
        if remainder:
            return remainder.lstrip("-: ")
    return "General"


def truncate_title(text: str) -> str:
    first_period = text.find(".")
    if 0 < first_period < MAX_SENTENCE_END_INDEX:
        return text[:first_period]
    if len(text) > MAX_TITLE_LENGTH:
        return text[:TRUNCATED_TITLE_LENGTH] + "..."
    return text


def _build_feature(raw_text: str, category: str) -> VSCodeFeature | None:
    if len(raw_text) < MIN_BULLET_LENGTH:
        return None

    link_match = _ISSUE_LINK_RE.search(raw_text)
    link = link_match.group(1) if link_match else None

    clean = _MARKDOWN_LINK_RE.sub(r"\1", raw_text).strip()
    clean = _TRAILING_ISSUE_RE.sub("", clean).strip()
    if len(clean) < MIN_BULLET_LENGTH:
        return None

    return VSCodeFeature(
        title=truncate_title(clean),
        description=clean,
        category=category,
        link=link,
    )


def _date_from_match(match: re.Match[str], default_year: int) -> date | None:
    month = _MONTH_NUMBERS[match.group(1).lower()]
    year = int(match.group(3)) if match.group(3) else default_year
    try:
        return date(year, month, int(match.group(2)))
    except ValueError:
        return None


def _add_month(month_start: date) -> date:
    if month_start.month == 12:
        return date(month_start.year + 1, 1, 1)
    return date(month_start.year, month_start.month + 1, 1)


def _dedupe_urls(urls: list[str]) -> list[str]:
    seen: set[str] = set()
    unique = []
    for url in urls:
        key = url.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(url)
    return unique
