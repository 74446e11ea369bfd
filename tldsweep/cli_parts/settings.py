from __future__ import annotations

"""Runtime settings resolved from the environment (and a `.env` file).

The CLI layers its own flags on top: CLI options > environment > defaults.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from ..core import default_workers
from ..engine.probe import DEFAULT_TIMEOUT
from ..storage import get_cache_dir, get_cache_path
from ..storage_parts.tld_cache import get_tld_url


def _normalize_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = value.strip()
    return text if text else None


def _parse_float(value: Optional[str], default: float) -> float:
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_int(value: Optional[str], default: int) -> int:
    if value is None or value == "":
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def load_runtime_settings() -> Dict[str, Any]:
    load_dotenv()
    cache_dir = get_cache_dir()
    return {
        "workers": _parse_int(os.getenv("TLDSWEEP_WORKERS"), default_workers()),
        "timeout": _parse_float(os.getenv("TLDSWEEP_TIMEOUT"), DEFAULT_TIMEOUT),
        "dns": _normalize_optional(os.getenv("TLDSWEEP_DNS")),
        "cache_dir": cache_dir,
        "cache_path": get_cache_path(cache_dir),
        "tld_url": get_tld_url(),
    }


def cache_path_for(cache_dir: Optional[str], saved: Dict[str, Any]) -> Path:
    if cache_dir:
        return get_cache_path(Path(cache_dir).expanduser())
    return Path(saved["cache_path"])
