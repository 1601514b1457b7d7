"""
Release consolidation for multi-language, multi-stage release feeds.

SDK repositories publish one shared release ("v0.1.25") alongside
per-language tags ("go/v0.1.25") and pre-releases ("v0.1.25-preview.0",
"go/v0.1.25-preview.0: Fix env vars"). This module folds the fragments
into their base release so the newsletter sees one record per version.

Merge rules:
- Prefixed full releases with notes are appended to the matching base
  release under a "<Lang> changes:" header; without a match they are kept
  as standalone releases.
- Pre-releases with notes are appended under an "Additional features from
  prerelease" header; without a match they are dropped.
- Entries with empty notes are ignored in both cases.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import re

from .types import ReleaseEntry


_LANG_PREFIX_RE = re.compile(r"^([A-Za-z][A-Za-z0-9._]*)/(.+)$")
_PRERELEASE_RE = re.compile(r"-(preview|alpha|beta|rc)(\.\d+)?$", re.IGNORECASE)

_LANG_LABELS = {
    "go": "Go",
    "python": "Python",
    "dotnet": ".NET",
    ".net": ".NET",
    "csharp": "C#",
    "cs": "C#",
    "typescript": "TypeScript",
    "ts": "TypeScript",
    "javascript": "JavaScript",
    "js": "JavaScript",
}


@dataclass(frozen=True)
class VersionParts:
    """Decomposition of a version tag.

    Attributes:
        lang: Lowercased language prefix, or None
        version: Tag without the language prefix
        base: Version with any pre-release suffix removed
        is_prerelease: Whether a pre-release suffix was present
    """
    lang: str | None
    version: str
    base: str
    is_prerelease: bool


def extract_version_tag(version: str) -> str:
    """Return the tag part of a release title, dropping ": description".

    Example:
        >>> extract_version_tag("go/v0.1.26-preview.0: Add E2E tests")
        'go/v0.1.26-preview.0'
    """
    tag, _sep, _description = version.partition(":")
    return tag.strip()


def split_version(version: str) -> VersionParts:
    tag = extract_version_tag(version)
    lang = None
    remainder = tag
    prefix_match = _LANG_PREFIX_RE.match(tag)
    if prefix_match:
        lang = prefix_match.group(1).lower()
        remainder = prefix_match.group(2)

    suffix_match = _PRERELEASE_RE.search(remainder)
    if suffix_match:
        base = remainder[: suffix_match.start()]
        return VersionParts(lang=lang, version=remainder, base=base, is_prerelease=True)
    return VersionParts(lang=lang, version=remainder, base=remainder, is_prerelease=False)


def format_lang_label(lang: str) -> str:
    """Display name for a language prefix; unknown languages pass through."""
    return _LANG_LABELS.get(lang.lower(), lang)


class _BaseReleases:
    """Ordered working set of base releases with a case-insensitive index."""

    def __init__(self) -> None:
        self.items: list[ReleaseEntry] = []
        self._index: dict[str, int] = {}

    def add(self, entry: ReleaseEntry, key: str | None = None) -> None:
        if key is not None:
            self._index.setdefault(key.lower(), len(self.items))
        self.items.append(entry)

    def find(self, version: str) -> int | None:
        return self._index.get(version.lower())

    def append_text(self, position: int, block: str) -> None:
        current = self.items[position]
        self.items[position] = replace(current, plain_text=current.plain_text + block)


def consolidate_prereleases(releases: list[ReleaseEntry]) -> list[ReleaseEntry]:
    """Merge language-prefixed and pre-release entries into base releases.

    Full releases keep their relative input order. Prefixed releases that
    have no base release are appended after them. Input entries are never
    modified.

    Args:
        releases: Entries fetched from a release feed

    Returns:
        The consolidated list of releases
    """
    working = _BaseReleases()
    prefixed: list[tuple[VersionParts, ReleaseEntry]] = []
    prereleases: list[tuple[VersionParts, ReleaseEntry]] = []

    for entry in releases:
        parts = split_version(entry.version)
        if parts.is_prerelease:
            prereleases.append((parts, entry))
        elif parts.lang is not None:
            prefixed.append((parts, entry))
        else:
            working.add(entry, key=parts.version)

    for parts, entry in prefixed:
        if not entry.plain_text.strip():
            continue
        position = working.find(parts.version)
        if position is None:
            working.add(entry)
            continue
        label = format_lang_label(parts.lang or "")
        working.append_text(position, f"\n\n{label} changes:\n{entry.plain_text}")

    for parts, entry in prereleases:
        if not entry.plain_text.strip():
            continue
        position = working.find(parts.base)
        if position is None:
            continue
        lang_note = f" ({format_lang_label(parts.lang)})" if parts.lang else ""
        working.append_text(
            position,
            f"\n\nAdditional features from prerelease{lang_note} ({entry.version}):\n"
            f"{entry.plain_text}",
        )

    return working.items
