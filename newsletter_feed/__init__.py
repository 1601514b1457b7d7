"""
Weekly release newsletter generator.

Fetches release feeds, changelog entries and blog posts for a date window,
consolidates pre-releases into their base releases and summarizes the week
into a Markdown newsletter.
"""

from .core import ReleaseEntry, consolidate_prereleases, filter_low_value_lines, normalize_html
from .fetch import FetchError, fetch_feed

__version__ = "0.1.0"

__all__ = [
    "ReleaseEntry",
    "FetchError",
    "fetch_feed",
    "normalize_html",
    "filter_low_value_lines",
    "consolidate_prereleases",
    "__version__",
]
