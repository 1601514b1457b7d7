"""
Core data types for the newsletter pipeline.

This module defines the records that flow between pipeline stages:
- ReleaseEntry: One normalized feed item (release, changelog entry or post)
- VSCodeFeature / VSCodeReleaseNotes: Features parsed from editor release notes
- FeedRequest: Description of one feed to fetch during fan-out
- SourceCount / RunMetrics: Per-run counters shown in the final summary
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
import re


@dataclass(frozen=True)
class ReleaseEntry:
    """A single syndicated item after normalization and filtering.

    Entries are immutable; consolidation builds new entries instead of
    editing existing ones.

    Attributes:
        version: Raw title/tag text from the feed entry. May carry a language
            prefix ("go/"), a pre-release suffix ("-preview.0") and a trailing
            ": description".
        published_at: Local calendar date the entry was published
        plain_text: Normalized, filtered body text (may be empty)
        url: Canonical link to the entry, or "" when the feed has none
    """
    version: str
    published_at: date
    plain_text: str
    url: str = ""


@dataclass(frozen=True)
class VSCodeFeature:
    """One bullet extracted from VS Code release notes."""
    title: str
    description: str
    category: str
    link: str | None = None


_WEBSITE_VERSION_RE = re.compile(r"(v1_\d+)", re.IGNORECASE)
WEBSITE_BASE_URL = "https://code.visualstudio.com/updates/"


@dataclass
class VSCodeReleaseNotes:
    """Features collected from the release notes covering a date range.

    Attributes:
        date: End date of the requested range
        features: Features found in the range, in document order
        version_url: Raw Markdown URL the first matching features came from
    """
    date: date
    features: list[VSCodeFeature]
    version_url: str

    @property
    def website_url(self) -> str:
        match = _WEBSITE_VERSION_RE.search(self.version_url)
        if match:
            return f"{WEBSITE_BASE_URL}{match.group(1)}"
        return self.version_url


@dataclass
class FeedRequest:
    """Describes one feed fetch in a concurrent fan-out.

    Attributes:
        label: Human-readable source name, also the key of the result mapping
        url: Feed URL
        category_keywords: Optional keywords an item's categories must contain
        prefer_short_summary: Use the short description instead of full content
        max_content_chars: Truncation limit for the body text, 0 disables it
    """
    label: str
    url: str
    category_keywords: list[str] | None = None
    prefer_short_summary: bool = False
    max_content_chars: int = 0


@dataclass
class SourceCount:
    source: str
    count: int
    notes: str = ""


@dataclass
class RunMetrics:
    """Counters collected during one newsletter run."""
    source_counts: list[SourceCount] = field(default_factory=list)
    stage_seconds: dict[str, float] = field(default_factory=dict)
    failed_sources: list[str] = field(default_factory=list)
    cache_hits: int = 0
    cache_misses: int = 0
    cache_skips: int = 0
    output_path: str | None = None
    overwrote_output: bool = False
