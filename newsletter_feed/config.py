"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- FetchConfig: HTTP settings shared by every feed request
- FeedsConfig: Feed URLs, blog category keywords and truncation limits
- ProviderConfig: LLM provider settings
- CacheConfig: Summary cache directory and behavior
- OutputConfig: Output document settings
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from typing import Any

import yaml


@dataclass
class FetchConfig:
    """Configuration for feed HTTP requests.

    Attributes:
        timeout_seconds: HTTP request timeout
        trust_env: Whether to respect system proxy settings
        user_agent: HTTP User-Agent header string
    """

    timeout_seconds: float = 20.0
    trust_env: bool = True
    user_agent: str = "NewsletterGenerator/1.0"


@dataclass
class FeedsConfig:
    """Feed sources for the newsletters.

    Attributes:
        cli_releases_url: Atom feed of Copilot CLI releases
        sdk_releases_url: Atom feed of Copilot SDK releases
        changelog_url: GitHub changelog feed (Copilot label)
        blog_url: GitHub blog feed
        vscode_blog_url: VS Code blog feed
        blog_category_keywords: Category keywords a blog post must match
        changelog_max_chars: Truncation limit for changelog entries
        blog_max_chars: Truncation limit for GitHub blog posts
        vscode_blog_max_chars: Truncation limit for blog posts in the VS Code newsletter
    """

    cli_releases_url: str = "https://github.com/github/copilot-cli/releases.atom"
    sdk_releases_url: str = "https://github.com/github/copilot-sdk/releases.atom"
    changelog_url: str = "https://github.blog/changelog/label/copilot/feed/"
    blog_url: str = "https://github.blog/feed/"
    vscode_blog_url: str = "https://code.visualstudio.com/feed.xml"
    blog_category_keywords: list[str] = field(
        default_factory=lambda: ["copilot", "github copilot cli", "github cli"]
    )
    changelog_max_chars: int = 1500
    blog_max_chars: int = 800
    vscode_blog_max_chars: int = 1000


@dataclass
class ProviderConfig:
    """Configuration for LLM provider.

    Attributes:
        name: Provider name ("gemini" currently supported)
        model: Model identifier
        google_api_key_env: Environment variable name containing the API key
        base_url: Base URL for the provider API
        api_key: Optional inline API key (overrides env var)
        trust_env: Whether to respect system proxy settings for API requests
        timeout_seconds: Request timeout for a single generation
        temperature: Sampling temperature
        max_output_tokens: Upper bound on generated tokens
    """

    name: str = "gemini"
    model: str = "gemini-2.5-flash"
    google_api_key_env: str = "GOOGLE_API_KEY"
    base_url: str = "https://generativelanguage.googleapis.com"
    api_key: str | None = None
    trust_env: bool = True
    timeout_seconds: float = 120.0
    temperature: float = 0.3
    max_output_tokens: int = 8192


@dataclass
class CacheConfig:
    """Configuration for the summary cache.

    Attributes:
        dir: Directory holding cached summaries
        force_refresh: Ignore cache reads for this run (writes still happen)
        write_index: Whether to write the cache index JSONL file
        index_filename: Name of the cache index file
    """

    dir: str = ".cache"
    force_refresh: bool = False
    write_index: bool = True
    index_filename: str = "index.jsonl"


@dataclass
class OutputConfig:
    """Configuration for output generation.

    Attributes:
        dir: Directory the newsletter Markdown is written to
        preview_lines: Number of lines shown in the console preview, 0 disables it
    """

    dir: str = "output"
    preview_lines: int = 25


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        dir: Directory for log files
        filename: Name of the main log file
        llm_log_enabled: Whether to enable separate LLM interaction logging
        llm_log_detail: "response_only" or "prompt_response"
        llm_log_file: Name of the LLM log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = True
    format: str = "jsonl"
    dir: str = "log"
    filename: str = "run.jsonl"
    llm_log_enabled: bool = True
    llm_log_detail: str = "response_only"
    llm_log_file: str = "llm.jsonl"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    fetch: FetchConfig = field(default_factory=FetchConfig)
    feeds: FeedsConfig = field(default_factory=FeedsConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level")
    return _merge_config(AppConfig(), raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = _asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    return _fromdict(data)


def _asdict(cfg: AppConfig) -> dict[str, Any]:
    """Convert AppConfig to nested dictionary."""
    return {
        "fetch": {
            "timeout_seconds": cfg.fetch.timeout_seconds,
            "trust_env": cfg.fetch.trust_env,
            "user_agent": cfg.fetch.user_agent,
        },
        "feeds": {
            "cli_releases_url": cfg.feeds.cli_releases_url,
            "sdk_releases_url": cfg.feeds.sdk_releases_url,
            "changelog_url": cfg.feeds.changelog_url,
            "blog_url": cfg.feeds.blog_url,
            "vscode_blog_url": cfg.feeds.vscode_blog_url,
            "blog_category_keywords": list(cfg.feeds.blog_category_keywords),
            "changelog_max_chars": cfg.feeds.changelog_max_chars,
            "blog_max_chars": cfg.feeds.blog_max_chars,
            "vscode_blog_max_chars": cfg.feeds.vscode_blog_max_chars,
        },
        "provider": {
            "name": cfg.provider.name,
            "model": cfg.provider.model,
            "google_api_key_env": cfg.provider.google_api_key_env,
            "base_url": cfg.provider.base_url,
            "api_key": cfg.provider.api_key,
            "trust_env": cfg.provider.trust_env,
            "timeout_seconds": cfg.provider.timeout_seconds,
            "temperature": cfg.provider.temperature,
            "max_output_tokens": cfg.provider.max_output_tokens,
        },
        "cache": {
            "dir": cfg.cache.dir,
            "force_refresh": cfg.cache.force_refresh,
            "write_index": cfg.cache.write_index,
            "index_filename": cfg.cache.index_filename,
        },
        "output": {
            "dir": cfg.output.dir,
            "preview_lines": cfg.output.preview_lines,
        },
        "logging": {
            "level": cfg.logging.level,
            "console": cfg.logging.console,
            "file": cfg.logging.file,
            "format": cfg.logging.format,
            "dir": cfg.logging.dir,
            "filename": cfg.logging.filename,
            "llm_log_enabled": cfg.logging.llm_log_enabled,
            "llm_log_detail": cfg.logging.llm_log_detail,
            "llm_log_file": cfg.logging.llm_log_file,
        },
    }


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(
        fetch=FetchConfig(**data["fetch"]),
        feeds=FeedsConfig(**data["feeds"]),
        provider=ProviderConfig(**data["provider"]),
        cache=CacheConfig(**data["cache"]),
        output=OutputConfig(**data["output"]),
        logging=LoggingConfig(**data["logging"]),
    )


def get_api_key(cfg: ProviderConfig) -> str | None:
    """Get API key from inline config or environment variable."""
    if cfg.api_key:
        return cfg.api_key
    return os.getenv(cfg.google_api_key_env)
