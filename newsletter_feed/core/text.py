"""
Rule-based text cleanup for feed bodies.

Two total functions live here:
- normalize_html: turns an HTML fragment into Markdown-ish plain text
- filter_low_value_lines: drops commit-style noise lines from release notes

Both are ordered lists of regex rewrites/predicates rather than structural
parsers, so malformed markup degrades by simply being stripped.
"""

from __future__ import annotations

import html
import re


# Ordered HTML rewrite rules, applied to the whole string one after another
_LIST_ITEM_RE = re.compile(r"<li[^>]*>", re.IGNORECASE)
_LINE_BREAK_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_HEADING_OPEN_RE = re.compile(r"<h[1-6][^>]*>", re.IGNORECASE)
_HEADING_CLOSE_RE = re.compile(r"</h[1-6]>", re.IGNORECASE)
_PARAGRAPH_RE = re.compile(r"<p[^>]*>", re.IGNORECASE)
_ANY_TAG_RE = re.compile(r"<[^>]+>")
_BLANK_LINES_RE = re.compile(r"\n{3,}")

# Trailing "by @user in #123" attribution added by GitHub's generated notes
_ATTRIBUTION_RE = re.compile(r"\s+by\s+@\w+\s+in\s+#\d+\s*$", re.IGNORECASE)

# Conventional-commit prefixes and housekeeping keywords are anchored to the
# start of the line (after an optional "-" bullet); " ci " matches anywhere.
_LOW_VALUE_RE = re.compile(
    r"(^\s*-?\s*"
    r"(fix(\([^)]+\))?:\s*"
    r"|docs(\([^)]+\))?:\s*"
    r"|chore(\([^)]+\))?:\s*"
    r"|style(\([^)]+\))?:\s*"
    r"|test(\([^)]+\))?:\s*"
    r"|refactor(\([^)]+\))?:\s*"
    r"|ci(\([^)]+\))?:\s*"
    r"|build(\([^)]+\))?:\s*"
    r"|perf(\([^)]+\))?:\s*"
    r"|fix(es|ed)?\b"
    r"|improve(s|d|ment)?\b"
    r"|update(s|d)?\s+(deps|dependencies|packages|changelog|readme|ci|tests|lock)"
    r"|bump\b"
    r"|upgrade(s|d)?\b"
    r"|refactor(s|ed)?\b"
    r"|clean(s|ed|up)?\b"
    r"|revert(s|ed)?\b"
    r"|minor\b"
    r"|misc\b"
    r"|tests?\b"
    r"|lint\b"
    r"|format(s|ted|ting)?\b"
    r"|build\s+fix)"
    r"|\sci[\s:])",
    re.IGNORECASE,
)


def normalize_html(fragment: str) -> str:
    """Convert an HTML fragment from a feed entry into plain text.

    List items become "- " bullets, headings of every level become "### "
    lines, <br> and <p> become line breaks, every other tag is removed and
    entities are decoded. Runs of blank lines collapse to a single one.

    Args:
        fragment: Raw HTML (or plain text) from a feed entry

    Returns:
        The cleaned text, or "" for empty/whitespace input
    """
    if not fragment or not fragment.strip():
        return ""

    text = _LIST_ITEM_RE.sub("\n- ", fragment)
    text = _LINE_BREAK_RE.sub("\n", text)
    text = _HEADING_OPEN_RE.sub("\n### ", text)
    text = _HEADING_CLOSE_RE.sub("\n", text)
    text = _PARAGRAPH_RE.sub("\n", text)
    text = _ANY_TAG_RE.sub("", text)
    text = html.unescape(text)
    text = _BLANK_LINES_RE.sub("\n\n", text)
    return text.strip()


def filter_low_value_lines(text: str) -> str:
    """Remove attribution suffixes and low-signal lines from release text.

    Lines that look like dependency bumps, CI tweaks, formatting changes,
    reverts, tests and other housekeeping are dropped whole. Keyword
    matches are broad and also drop some interesting lines.

    Args:
        text: Normalized release/post text

    Returns:
        The remaining lines joined with newlines and trimmed. Empty or
        whitespace-only input is returned unchanged.
    """
    if not text or not text.strip():
        return text

    lines = [_ATTRIBUTION_RE.sub("", line).rstrip() for line in text.split("\n")]
    kept = [line for line in lines if not is_low_value_line(line)]
    return "\n".join(kept).strip()


def is_low_value_line(line: str) -> bool:
    return _LOW_VALUE_RE.search(line) is not None
