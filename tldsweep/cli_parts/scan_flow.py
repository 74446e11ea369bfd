from __future__ import annotations

import json
import re
import sys
from typing import Any, Optional
from urllib.parse import urlparse

from ..core import SweepReport
from ..storage import render_markdown, report_to_json

BASE_RE = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?(?:\.[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?)*$")


def normalize_base_domain(value: str) -> Optional[str]:
    """Reduce user input to the label(s) the TLDs are appended to.

    Accepts `example`, ` Example. ` or a URL such as `https://example/`.
    """
    raw = (value or "").strip().lower()
    if "://" in raw:
        raw = (urlparse(raw).hostname or "").strip().lower()
    raw = raw.strip(".")
    if not raw or not BASE_RE.match(raw):
        return None
    return raw


def print_json_output(payload: Any) -> None:
    try:
        sys.stdout.write(json.dumps(payload, ensure_ascii=False, indent=2))
        sys.stdout.write("\n")
    except BrokenPipeError:
        # Preserve CLI behavior on piped output (e.g. `| head`) without traceback noise.
        return


def print_markdown_output(report: SweepReport) -> None:
    try:
        sys.stdout.write(render_markdown(report))
    except BrokenPipeError:
        return


def print_report_json(report: SweepReport) -> None:
    print_json_output(report_to_json(report))
