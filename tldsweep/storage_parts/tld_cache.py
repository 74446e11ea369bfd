from __future__ import annotations

"""TLD source for the sweep: IANA root zone list with a local on-disk cache."""

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional

import httpx

from ..version import __version__

logger = logging.getLogger("tldsweep")

IANA_TLD_URL = "https://data.iana.org/TLD/tlds-alpha-by-domain.txt"
CACHE_FILENAME = "tlds.cache"
CACHE_SEPARATOR = "\t"


class TLDSourceError(RuntimeError):
    """Raised when no TLD list can be obtained from cache or network."""


def get_cache_dir() -> Path:
    custom = os.getenv("TLDSWEEP_CACHE_DIR")
    if custom:
        return Path(custom).expanduser().resolve()
    return Path.home() / ".tldsweep"


def get_cache_path(cache_dir: Optional[Path] = None) -> Path:
    return Path(cache_dir or get_cache_dir()) / CACHE_FILENAME


def get_tld_url() -> str:
    return os.getenv("TLDSWEEP_TLD_URL") or IANA_TLD_URL


def _normalize(values: Iterable[str]) -> List[str]:
    tlds: List[str] = []
    for raw in values:
        tld = raw.strip().lower()
        if tld:
            tlds.append(tld)
    return tlds


def parse_tld_list(text: str) -> List[str]:
    """Parse the IANA text format: one TLD per line, `#` header comments."""
    return _normalize(line for line in text.splitlines() if not line.lstrip().startswith("#"))


def read_cache(cache_path: Path) -> List[str]:
    if not cache_path.is_file():
        return []
    try:
        content = cache_path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.warning("Cannot read TLD cache %s: %s", cache_path, exc)
        return []
    return _normalize(content.split(CACHE_SEPARATOR))


def write_cache(cache_path: Path, tlds: List[str]) -> bool:
    try:
        cache_path.parent.mkdir(parents=True, exist_ok=True)
        cache_path.write_text(CACHE_SEPARATOR.join(tlds), encoding="utf-8")
    except OSError as exc:
        logger.warning("Cannot write TLD cache %s: %s", cache_path, exc)
        return False
    return True


def fetch_tlds(url: Optional[str] = None, timeout: float = 10.0) -> List[str]:
    source = url or get_tld_url()
    try:
        response = httpx.get(
            source,
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": f"tldsweep/{__version__}"},
        )
    except httpx.HTTPError as exc:
        raise TLDSourceError(f"Failed to fetch TLDs from {source}: {exc.__class__.__name__}: {exc}") from exc

    if int(response.status_code) >= 400:
        raise TLDSourceError(f"Failed to fetch TLDs from {source}: HTTP {response.status_code}")

    tlds = parse_tld_list(response.text)
    if not tlds:
        raise TLDSourceError(f"TLD list from {source} is empty")
    return tlds


def load_tlds(
    use_cache: bool = True,
    cache_path: Optional[Path] = None,
    url: Optional[str] = None,
    timeout: float = 10.0,
) -> List[str]:
    """Return the TLD list, preferring the cache unless `use_cache` is False.

    A fresh download always refreshes the cache. Failing to write the cache is
    logged and ignored; failing to obtain any list raises `TLDSourceError`.
    """
    path = cache_path or get_cache_path()

    if use_cache:
        cached = read_cache(path)
        if cached:
            logger.info("Loaded %d TLDs from cache %s", len(cached), path)
            return cached

    logger.info("Fetching TLDs from %s", url or get_tld_url())
    tlds = fetch_tlds(url, timeout=timeout)
    if write_cache(path, tlds):
        logger.info("Cached %d TLDs in %s", len(tlds), path)
    return tlds
