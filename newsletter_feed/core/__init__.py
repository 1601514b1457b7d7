"""
Core pipeline logic.

This package contains the deterministic parts of the pipeline: data
types, HTML/text cleanup and release consolidation.
"""

from .reconcile import consolidate_prereleases, extract_version_tag, format_lang_label
from .text import filter_low_value_lines, normalize_html
from .types import ReleaseEntry, VSCodeFeature, VSCodeReleaseNotes

__all__ = [
    "ReleaseEntry",
    "VSCodeFeature",
    "VSCodeReleaseNotes",
    "normalize_html",
    "filter_low_value_lines",
    "consolidate_prereleases",
    "extract_version_tag",
    "format_lang_label",
]
