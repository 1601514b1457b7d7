"""Tests for feed fetching, filtering and content selection."""

from __future__ import annotations

from datetime import date

import httpx
import pytest

from newsletter_feed.fetch.feed import ELLIPSIS, fetch_feed, parse_feed
from newsletter_feed.fetch.fetcher import DEFAULT_USER_AGENT, FetchError


# Timestamps are at noon UTC so the local calendar date matches in any
# reasonable test-machine timezone.
ATOM_RELEASES = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <id>tag:github.com,2008:https://github.com/github/copilot-cli/releases</id>
  <title>Release notes from copilot-cli</title>
  <updated>2026-02-17T12:00:00Z</updated>
  <entry>
    <id>tag:github.com,2008:Repository/1/v0.0.414</id>
    <updated>2026-02-12T12:00:00Z</updated>
    <link rel="alternate" type="text/html" href="https://github.com/github/copilot-cli/releases/tag/v0.0.414"/>
    <title>v0.0.414</title>
    <content type="html">&lt;p&gt;Older release&lt;/p&gt;</content>
  </entry>
  <entry>
    <id>tag:github.com,2008:Repository/1/v0.0.415</id>
    <updated>2026-02-16T12:00:00Z</updated>
    <link rel="alternate" type="text/html" href="https://github.com/github/copilot-cli/releases/tag/v0.0.415"/>
    <title>v0.0.415</title>
    <content type="html">&lt;h2&gt;What's new&lt;/h2&gt;&lt;ul&gt;&lt;li&gt;Add plugin marketplace by @octocat in #101&lt;/li&gt;&lt;li&gt;fix: typo in help text&lt;/li&gt;&lt;li&gt;Support &amp;lt;tab&amp;gt; completion&lt;/li&gt;&lt;/ul&gt;</content>
  </entry>
  <entry>
    <id>tag:github.com,2008:Repository/1/v0.0.410</id>
    <updated>2026-01-20T12:00:00Z</updated>
    <link rel="alternate" type="text/html" href="https://github.com/github/copilot-cli/releases/tag/v0.0.410"/>
    <title>v0.0.410</title>
    <content type="html">&lt;p&gt;Out of range&lt;/p&gt;</content>
  </entry>
</feed>
"""

RSS_BLOG = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <title>The GitHub Blog</title>
    <link>https://github.blog</link>
    <description>Updates from GitHub</description>
    <item>
      <title>Copilot CLI is now generally available</title>
      <link>https://github.blog/news/copilot-cli-ga/</link>
      <pubDate>Mon, 16 Feb 2026 12:00:00 +0000</pubDate>
      <category><![CDATA[GitHub Copilot CLI]]></category>
      <category><![CDATA[AI & ML]]></category>
      <description><![CDATA[<p>Short summary of the launch.</p>]]></description>
      <content:encoded><![CDATA[<h2>Full story</h2><p>Long body text about the launch.</p>]]></content:encoded>
    </item>
    <item>
      <title>Securing your supply chain</title>
      <link>https://github.blog/security/supply-chain/</link>
      <pubDate>Sun, 15 Feb 2026 12:00:00 +0000</pubDate>
      <category><![CDATA[Security]]></category>
      <description><![CDATA[<p>Security summary.</p>]]></description>
    </item>
    <item>
      <title>Release radar</title>
      <link>https://github.blog/news/release-radar/</link>
      <pubDate>Sat, 14 Feb 2026 12:00:00 +0000</pubDate>
      <category><![CDATA[Open Source]]></category>
      <description><![CDATA[<p>Only a summary here.</p>]]></description>
    </item>
  </channel>
</rss>
"""

WINDOW_START = date(2026, 2, 10)
WINDOW_END = date(2026, 2, 17)


def _rss_item(title: str, pub_date: str) -> str:
    return (
        "<item>"
        f"<title>{title}</title>"
        f"<pubDate>{pub_date}</pubDate>"
        f"<description>{title} body</description>"
        "</item>"
    )


def _rss(*items: str) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel><title>Feed</title>'
        "<link>https://example.com</link><description>d</description>"
        + "".join(items)
        + "</channel></rss>"
    )


def _mock_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_parse_atom_releases_normalizes_and_filters_content():
    entries = parse_feed(ATOM_RELEASES, WINDOW_START, WINDOW_END)

    assert [e.version for e in entries] == ["v0.0.415", "v0.0.414"]
    latest = entries[0]
    assert latest.published_at == date(2026, 2, 16)
    assert latest.url == "https://github.com/github/copilot-cli/releases/tag/v0.0.415"
    assert latest.plain_text == "### What's new\n\n- Add plugin marketplace\n- Support <tab> completion"


def test_parse_sorts_by_date_descending():
    feed = _rss(
        _rss_item("Oldest", "Wed, 11 Feb 2026 12:00:00 +0000"),
        _rss_item("Newest", "Mon, 16 Feb 2026 12:00:00 +0000"),
        _rss_item("Middle", "Fri, 13 Feb 2026 12:00:00 +0000"),
    )

    entries = parse_feed(feed, WINDOW_START, WINDOW_END)

    assert [e.version for e in entries] == ["Newest", "Middle", "Oldest"]


def test_parse_date_window_is_inclusive():
    feed = _rss(
        _rss_item("Before", "Mon, 09 Feb 2026 12:00:00 +0000"),
        _rss_item("Start", "Tue, 10 Feb 2026 12:00:00 +0000"),
        _rss_item("End", "Tue, 17 Feb 2026 12:00:00 +0000"),
        _rss_item("After", "Wed, 18 Feb 2026 12:00:00 +0000"),
    )

    entries = parse_feed(feed, WINDOW_START, WINDOW_END)

    assert [e.version for e in entries] == ["End", "Start"]


def test_parse_skips_items_without_dates():
    feed = _rss("<item><title>Undated</title><description>x</description></item>")

    assert parse_feed(feed, WINDOW_START, WINDOW_END) == []


def test_category_filter_matches_keyword_substrings_case_insensitively():
    entries = parse_feed(
        RSS_BLOG,
        WINDOW_START,
        WINDOW_END,
        category_keywords=["copilot", "github cli"],
    )

    assert [e.version for e in entries] == ["Copilot CLI is now generally available"]


def test_category_filter_disabled_for_empty_keywords():
    entries = parse_feed(RSS_BLOG, WINDOW_START, WINDOW_END, category_keywords=[])

    assert len(entries) == 3


def test_full_content_is_preferred_over_summary():
    entries = parse_feed(RSS_BLOG, WINDOW_START, WINDOW_END)

    launch = entries[0]
    assert launch.plain_text == "### Full story\n\nLong body text about the launch."


def test_short_summary_when_requested():
    entries = parse_feed(RSS_BLOG, WINDOW_START, WINDOW_END, prefer_short_summary=True)

    assert entries[0].plain_text == "Short summary of the launch."


def test_summary_used_when_no_full_content():
    entries = parse_feed(RSS_BLOG, WINDOW_START, WINDOW_END)

    radar = [e for e in entries if e.version == "Release radar"][0]
    assert radar.plain_text == "Only a summary here."


def test_truncation_appends_marker():
    feed = _rss(
        "<item><title>Long</title>"
        "<pubDate>Mon, 16 Feb 2026 12:00:00 +0000</pubDate>"
        "<description>Alpha beta gamma delta epsilon zeta</description></item>"
    )

    entries = parse_feed(feed, WINDOW_START, WINDOW_END, max_content_chars=11)

    assert entries[0].plain_text == "Alpha beta" + ELLIPSIS


def test_no_truncation_when_within_limit():
    feed = _rss(_rss_item("Short", "Mon, 16 Feb 2026 12:00:00 +0000"))

    entries = parse_feed(feed, WINDOW_START, WINDOW_END, max_content_chars=100)

    assert entries[0].plain_text == "Short body"


def test_link_falls_back_to_first_link_then_empty():
    feed = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Links</title>
  <entry>
    <title>Related only</title>
    <updated>2026-02-16T12:00:00Z</updated>
    <link rel="related" href="https://example.com/related"/>
    <summary>One</summary>
  </entry>
  <entry>
    <title>No links</title>
    <updated>2026-02-15T12:00:00Z</updated>
    <summary>Two</summary>
  </entry>
</feed>
"""

    entries = parse_feed(feed, WINDOW_START, WINDOW_END)

    assert [(e.version, e.url) for e in entries] == [
        ("Related only", "https://example.com/related"),
        ("No links", ""),
    ]


def test_parse_rejects_non_feed_documents():
    with pytest.raises(FetchError, match="Feed parse failed"):
        parse_feed("this is not a feed", WINDOW_START, WINDOW_END, source_url="https://x.test/feed")


def test_fetch_feed_uses_user_agent_and_returns_entries():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["user_agent"] = request.headers.get("user-agent")
        seen["url"] = str(request.url)
        return httpx.Response(200, text=ATOM_RELEASES)

    with _mock_client(handler) as client:
        entries = fetch_feed(
            "https://github.com/github/copilot-cli/releases.atom",
            WINDOW_START,
            WINDOW_END,
            client=client,
        )

    assert seen["user_agent"] == DEFAULT_USER_AGENT
    assert seen["url"] == "https://github.com/github/copilot-cli/releases.atom"
    assert [e.version for e in entries] == ["v0.0.415", "v0.0.414"]


def test_fetch_feed_wraps_http_status_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="not found")

    with _mock_client(handler) as client:
        with pytest.raises(FetchError) as excinfo:
            fetch_feed("https://example.com/missing.atom", WINDOW_START, WINDOW_END, client=client)

    assert excinfo.value.status_code == 404
    assert excinfo.value.url == "https://example.com/missing.atom"
    assert isinstance(excinfo.value.__cause__, httpx.HTTPStatusError)


def test_fetch_feed_wraps_transport_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with _mock_client(handler) as client:
        with pytest.raises(FetchError) as excinfo:
            fetch_feed("https://example.com/feed", WINDOW_START, WINDOW_END, client=client)

    assert excinfo.value.status_code is None
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_fetch_feed_is_repeatable():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=RSS_BLOG)

    with _mock_client(handler) as client:
        first = fetch_feed("https://github.blog/feed/", WINDOW_START, WINDOW_END, client=client)
        second = fetch_feed("https://github.blog/feed/", WINDOW_START, WINDOW_END, client=client)

    assert first == second


def test_short_summary_is_empty_when_item_has_only_full_content():
    atom = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Content only</title>
  <entry>
    <title>Atom body</title>
    <updated>2026-02-16T12:00:00Z</updated>
    <content type="html">&lt;p&gt;Full body only&lt;/p&gt;</content>
  </entry>
</feed>
"""
    rss = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel><title>Blog</title><link>https://example.com</link><description>d</description>
    <item>
      <title>RSS body</title>
      <pubDate>Mon, 16 Feb 2026 12:00:00 +0000</pubDate>
      <content:encoded><![CDATA[<p>Long article body</p>]]></content:encoded>
    </item>
  </channel>
</rss>
"""

    for document, body in ((atom, "Full body only"), (rss, "Long article body")):
        short = parse_feed(document, WINDOW_START, WINDOW_END, prefer_short_summary=True)
        full = parse_feed(document, WINDOW_START, WINDOW_END)

        assert short[0].plain_text == ""
        assert full[0].plain_text == body


def test_published_timestamp_takes_precedence_over_updated():
    feed = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Dates</title>
  <entry>
    <title>Published in window</title>
    <published>2026-02-16T12:00:00Z</published>
    <updated>2026-02-20T12:00:00Z</updated>
    <summary>Kept</summary>
  </entry>
  <entry>
    <title>Updated in window</title>
    <published>2026-02-05T12:00:00Z</published>
    <updated>2026-02-12T12:00:00Z</updated>
    <summary>Dropped</summary>
  </entry>
</feed>
"""

    entries = parse_feed(feed, WINDOW_START, WINDOW_END)

    assert [(e.version, e.published_at) for e in entries] == [
        ("Published in window", date(2026, 2, 16)),
    ]
