"""
Feed and release-notes retrieval.

This package handles HTTP fetching, Atom/RSS parsing and the VS Code
Insiders release-notes parser.
"""

from .feed import fetch_feed, parse_feed
from .fetcher import FetchError, fetch_text, resolve_redirect
from .vscode_notes import get_release_notes_for_range

__all__ = [
    "fetch_feed",
    "parse_feed",
    "FetchError",
    "fetch_text",
    "resolve_redirect",
    "get_release_notes_for_range",
]
