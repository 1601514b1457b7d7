"""
Summary cache for generated newsletter sections.

Each generated section is stored as <cache_dir>/<cache_key>.json together
with a SHA-256 fingerprint of the source material it was generated from.
A cached section is reused only while the fingerprint still matches, so a
change in any feed entry regenerates the affected section.

Cache operations are also appended to a JSONL index for debugging.
"""

from __future__ import annotations

import hashlib
import json
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from .utils.logging import log_event


logger = logging.getLogger(__name__)


class CacheIndex:
    """Tracks cache operations in a JSONL index file.

    Attributes:
        cache_dir: Directory where cache files and index are stored
        enabled: Whether index writing is enabled
        path: Full path to the index file
    """

    def __init__(self, cache_dir: Path, enabled: bool = True, filename: str = "index.jsonl"):
        self.cache_dir = cache_dir
        self.enabled = enabled
        self.path = cache_dir / filename

    def append(self, payload: dict[str, Any]) -> None:
        if not self.enabled:
            return
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        payload = dict(payload)
        payload.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload, ensure_ascii=True))
            handle.write("\n")


def content_hash(text: str) -> str:
    """SHA-256 hex digest of the UTF-8 encoded text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class SummaryCache:
    """Hash-validated store of generated text.

    Attributes:
        cache_dir: Directory holding one JSON file per cache key
        force_refresh: Skip reads for this run; results are still saved
        index: Operation log
        hits / misses / skips: Read counters for the run summary
    """

    def __init__(
        self,
        cache_dir: Path,
        force_refresh: bool = False,
        write_index: bool = True,
        index_filename: str = "index.jsonl",
    ):
        self.cache_dir = cache_dir
        self.force_refresh = force_refresh
        self.index = CacheIndex(cache_dir, enabled=write_index, filename=index_filename)
        self.hits = 0
        self.misses = 0
        self.skips = 0

    def path_for(self, cache_key: str) -> Path:
        return self.cache_dir / f"{cache_key}.json"

    def get(self, cache_key: str, source_hash: str) -> str | None:
        """Return cached content when its stored fingerprint matches.

        Args:
            cache_key: Name of the cached section
            source_hash: Fingerprint of the current source material

        Returns:
            The cached text, or None on skip, miss or unreadable cache file
        """
        if self.force_refresh:
            self.skips += 1
            log_event(
                logger,
                f"Cache skip (force refresh): {cache_key}",
                level=logging.DEBUG,
                event="cache_skip",
                cache_key=cache_key,
            )
            self.index.append({"kind": "skip", "cache_key": cache_key})
            return None

        path = self.path_for(cache_key)
        if not path.exists():
            return self._miss(cache_key, source_hash, reason="no_file")

        try:
            cached = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            log_event(
                logger,
                f"Cache read failed for {cache_key}: {exc}",
                level=logging.WARNING,
                event="cache_read_failed",
                cache_key=cache_key,
            )
            return self._miss(cache_key, source_hash, reason="read_failed")

        if not isinstance(cached, dict) or cached.get("source_hash") != source_hash:
            return self._miss(cache_key, source_hash, reason="hash_mismatch")

        content = cached.get("content") or ""
        self.hits += 1
        log_event(
            logger,
            f"Cache hit: {cache_key} (hash {source_hash[:12]}, {len(content)} chars)",
            level=logging.DEBUG,
            event="cache_hit",
            cache_key=cache_key,
        )
        self.index.append(
            {"kind": "hit", "cache_key": cache_key, "hash": source_hash, "path": str(path)}
        )
        return content

    def save(self, cache_key: str, content: str, source_hash: str) -> None:
        """Store content for a cache key. Blank content is never stored."""
        if not content or not content.strip():
            log_event(
                logger,
                f"Cache save skipped for {cache_key}: empty content",
                level=logging.WARNING,
                event="cache_save_skipped",
                cache_key=cache_key,
            )
            return

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(cache_key)
        payload = {
            "content": content,
            "source_hash": source_hash,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        log_event(
            logger,
            f"Cache saved: {cache_key} (hash {source_hash[:12]}, {len(content)} chars)",
            level=logging.DEBUG,
            event="cache_save",
            cache_key=cache_key,
        )
        self.index.append(
            {"kind": "write", "cache_key": cache_key, "hash": source_hash, "path": str(path)}
        )

    def get_or_compute(self, cache_key: str, source: str, compute: Callable[[], str]) -> str:
        """Return the cached text for source, generating and saving it on a miss."""
        source_hash = content_hash(source)
        cached = self.get(cache_key, source_hash)
        if cached is not None:
            return cached
        content = compute()
        self.save(cache_key, content, source_hash)
        return content

    def _miss(self, cache_key: str, source_hash: str, reason: str) -> None:
        self.misses += 1
        log_event(
            logger,
            f"Cache miss ({reason}): {cache_key}",
            level=logging.DEBUG,
            event="cache_miss",
            cache_key=cache_key,
            reason=reason,
        )
        self.index.append(
            {"kind": "miss", "cache_key": cache_key, "hash": source_hash, "reason": reason}
        )
        return None


def clear_cache(cache_dir: Path) -> bool:
    """Remove the cache directory. Returns False when there was nothing to remove."""
    if not cache_dir.exists():
        return False
    shutil.rmtree(cache_dir)
    log_event(logger, f"Cache cleared: {cache_dir}", event="cache_cleared", path=str(cache_dir))
    return True
