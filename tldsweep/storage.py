from __future__ import annotations

"""Persistence and export facade for tldsweep.

Public storage API remains stable while implementation is split by concern:
- `tldsweep.storage_parts.tld_cache`: IANA TLD list download and on-disk cache
- `tldsweep.storage_parts.export`: CSV, Markdown and JSON renderers
"""

from .storage_parts.export import default_csv_path, export_csv, render_markdown, report_to_json
from .storage_parts.tld_cache import (
    IANA_TLD_URL,
    TLDSourceError,
    fetch_tlds,
    get_cache_dir,
    get_cache_path,
    load_tlds,
    read_cache,
)

__all__ = [
    "IANA_TLD_URL",
    "TLDSourceError",
    "get_cache_dir",
    "get_cache_path",
    "fetch_tlds",
    "load_tlds",
    "read_cache",
    "default_csv_path",
    "export_csv",
    "render_markdown",
    "report_to_json",
]
