"""Tests for pre-release and language-prefixed release consolidation."""

from __future__ import annotations

from datetime import date

import pytest

from newsletter_feed.core.reconcile import (
    consolidate_prereleases,
    extract_version_tag,
    format_lang_label,
    split_version,
)
from newsletter_feed.core.types import ReleaseEntry


RELEASE_DATE = date(2026, 2, 17)


def _entry(version: str, text: str = "content") -> ReleaseEntry:
    return ReleaseEntry(
        version=version,
        published_at=RELEASE_DATE,
        plain_text=text,
        url=f"https://github.com/releases/{version}",
    )


def test_simple_prerelease_merges_into_full_release():
    result = consolidate_prereleases([
        _entry("v0.1.25", "Full release notes"),
        _entry("v0.1.25-preview.0", "Preview feature"),
    ])

    assert len(result) == 1
    assert result[0].version == "v0.1.25"
    assert result[0].plain_text == (
        "Full release notes\n\n"
        "Additional features from prerelease (v0.1.25-preview.0):\n"
        "Preview feature"
    )


def test_orphan_prerelease_is_dropped():
    full = _entry("v0.1.25", "Full release")

    result = consolidate_prereleases([full, _entry("v0.1.26-preview.0", "Orphan preview")])

    assert result == [full]


def test_lang_prefixed_prerelease_merges_with_label():
    result = consolidate_prereleases([
        _entry("v0.1.25", "Main release notes"),
        _entry("go/v0.1.25-preview.0", "Go preview fix"),
    ])

    assert len(result) == 1
    assert result[0].version == "v0.1.25"
    assert "Go preview fix" in result[0].plain_text
    assert "Additional features from prerelease (Go) (go/v0.1.25-preview.0):" in result[0].plain_text


def test_lang_prefixed_prerelease_with_description_merges():
    result = consolidate_prereleases([
        _entry("v0.1.25", "Main release notes"),
        _entry("go/v0.1.25-preview.0: Fix MCP env vars", "Go env fix"),
    ])

    assert len(result) == 1
    assert "Go env fix" in result[0].plain_text


def test_lang_prefixed_orphan_prerelease_is_dropped():
    result = consolidate_prereleases([
        _entry("v0.1.25", "Main release"),
        _entry("go/v0.1.26-preview.0: Add E2E tests", "E2E content"),
    ])

    assert [r.version for r in result] == ["v0.1.25"]
    assert result[0].plain_text == "Main release"


def test_empty_prefixed_full_release_is_skipped():
    result = consolidate_prereleases([
        _entry("v0.1.25", "Main release"),
        _entry("go/v0.1.25", ""),
    ])

    assert len(result) == 1
    assert result[0].plain_text == "Main release"


def test_prefixed_full_release_merges_into_unprefixed():
    result = consolidate_prereleases([
        _entry("v0.1.25", "Main release"),
        _entry("go/v0.1.25", "Go-specific changes"),
    ])

    assert len(result) == 1
    assert result[0].plain_text == "Main release\n\nGo changes:\nGo-specific changes"


def test_prefixed_full_release_without_match_is_kept():
    result = consolidate_prereleases([_entry("go/v0.1.30", "Go-only release")])

    assert [r.version for r in result] == ["go/v0.1.30"]
    assert result[0].plain_text == "Go-only release"


def test_promoted_prefixed_release_follows_full_releases():
    result = consolidate_prereleases([
        _entry("go/v0.1.30", "Go-only release"),
        _entry("v0.1.29", "Main release"),
    ])

    assert [r.version for r in result] == ["v0.1.29", "go/v0.1.30"]


def test_real_world_sdk_feed():
    result = consolidate_prereleases([
        _entry(
            "go/v0.1.26-preview.0: Add E2E scenario tests/examples for all SDK languages (#512)",
            "E2E content",
        ),
        _entry("v0.1.25", "Main SDK v0.1.25 notes"),
        _entry("go/v0.1.25", ""),
        _entry(
            "go/v0.1.25-preview.0: Fix MCP env vars: send envValueMode direct across all SDKs (#484)",
            "MCP env fix",
        ),
        _entry("v0.1.24", "Main SDK v0.1.24 notes"),
        _entry("go/v0.1.24", ""),
    ])

    assert [r.version for r in result] == ["v0.1.25", "v0.1.24"]
    assert "MCP env fix" in result[0].plain_text
    assert all("E2E content" not in r.plain_text for r in result)
    assert result[1].plain_text == "Main SDK v0.1.24 notes"


def test_empty_prerelease_is_skipped():
    result = consolidate_prereleases([
        _entry("v0.1.25", "Full release"),
        _entry("v0.1.25-preview.0", "   "),
    ])

    assert len(result) == 1
    assert result[0].plain_text == "Full release"


def test_releases_without_fragments_pass_through():
    releases = [_entry("0.0.415", "Release 415"), _entry("0.0.414", "Release 414")]

    assert consolidate_prereleases(releases) == releases


def test_multiple_lang_prefixes():
    result = consolidate_prereleases([
        _entry("v1.0.0", "Main release"),
        _entry("python/v1.0.0-preview.0", "Python preview"),
        _entry("dotnet/v1.0.0-preview.0", "Dotnet preview"),
    ])

    assert len(result) == 1
    text = result[0].plain_text
    assert "(Python) (python/v1.0.0-preview.0)" in text
    assert "(.NET) (dotnet/v1.0.0-preview.0)" in text
    assert text.index("Python preview") < text.index("Dotnet preview")


def test_multiple_prereleases_append_in_input_order():
    result = consolidate_prereleases([
        _entry("v0.1.25", "Full release notes"),
        _entry("v0.1.25-preview.0", "First preview feature"),
        _entry("v0.1.25-preview.1", "Second preview feature"),
    ])

    assert len(result) == 1
    text = result[0].plain_text
    assert text.index("First preview feature") < text.index("Second preview feature")


def test_mixed_prefixed_and_unprefixed_prereleases():
    result = consolidate_prereleases([
        _entry("v0.1.25", "Main release notes"),
        _entry("v0.1.25-preview.0", "Unprefixed preview"),
        _entry("go/v0.1.25-preview.0", "Go preview"),
    ])

    assert len(result) == 1
    assert "Unprefixed preview" in result[0].plain_text
    assert "(Go)" in result[0].plain_text


def test_unprefixed_prerelease_with_description_merges():
    result = consolidate_prereleases([
        _entry("v0.1.25", "Main release notes"),
        _entry("v0.1.25-preview.0: Fix something important", "Preview fix content"),
    ])

    assert len(result) == 1
    assert "Preview fix content" in result[0].plain_text


def test_alpha_beta_rc_suffixes_are_merged():
    result = consolidate_prereleases([
        _entry("v2.0.0", "GA release"),
        _entry("v2.0.0-alpha.1", "Alpha feature"),
        _entry("v2.0.0-beta.2", "Beta feature"),
        _entry("v2.0.0-RC.1", "RC feature"),
        _entry("v2.0.0-beta", "Bare beta feature"),
    ])

    assert len(result) == 1
    for text in ("Alpha feature", "Beta feature", "RC feature", "Bare beta feature"):
        assert text in result[0].plain_text


def test_case_insensitive_version_matching():
    result = consolidate_prereleases([
        _entry("V0.1.25", "Main release"),
        _entry("v0.1.25-preview.0", "Preview feature"),
    ])

    assert len(result) == 1
    assert result[0].version == "V0.1.25"
    assert "Preview feature" in result[0].plain_text


def test_empty_input_returns_empty():
    assert consolidate_prereleases([]) == []


def test_all_orphan_prereleases_return_empty():
    result = consolidate_prereleases([
        _entry("v0.1.26-preview.0", "Orphan one"),
        _entry("go/v0.1.27-preview.0", "Orphan two"),
        _entry("python/v0.1.28-beta.1", "Orphan three"),
    ])

    assert result == []


def test_full_releases_keep_input_order():
    result = consolidate_prereleases([
        _entry("v0.1.27", "Third release"),
        _entry("v0.1.25", "First release"),
        _entry("v0.1.26", "Second release"),
        _entry("v0.1.25-preview.0", "Preview for first"),
    ])

    assert [r.version for r in result] == ["v0.1.27", "v0.1.25", "v0.1.26"]
    assert "Preview for first" in result[1].plain_text


def test_inputs_are_not_modified():
    base = _entry("v0.1.25", "Full release notes")
    preview = _entry("v0.1.25-preview.0", "Preview feature")

    result = consolidate_prereleases([base, preview])

    assert base.plain_text == "Full release notes"
    assert result[0] is not base


def test_malformed_versions_are_treated_as_full_releases():
    releases = [_entry("nightly build", "Notes"), _entry("", "Untitled")]

    assert consolidate_prereleases(releases) == releases


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("v0.1.25", "v0.1.25"),
        ("go/v0.1.26-preview.0: Add E2E tests", "go/v0.1.26-preview.0"),
        ("v0.1.25-preview.0: Fix MCP env vars", "v0.1.25-preview.0"),
        ("go/v0.1.25", "go/v0.1.25"),
    ],
)
def test_extract_version_tag(title, expected):
    assert extract_version_tag(title) == expected


@pytest.mark.parametrize(
    ("lang", "expected"),
    [
        ("go", "Go"),
        ("python", "Python"),
        ("dotnet", ".NET"),
        (".net", ".NET"),
        ("csharp", "C#"),
        ("cs", "C#"),
        ("typescript", "TypeScript"),
        ("ts", "TypeScript"),
        ("javascript", "JavaScript"),
        ("js", "JavaScript"),
        ("rust", "rust"),
    ],
)
def test_format_lang_label(lang, expected):
    assert format_lang_label(lang) == expected


def test_split_version_parts():
    parts = split_version("Python/v1.2.0-beta.1: notes")

    assert parts.lang == "python"
    assert parts.version == "v1.2.0-beta.1"
    assert parts.base == "v1.2.0"
    assert parts.is_prerelease
