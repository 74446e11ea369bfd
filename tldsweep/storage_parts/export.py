from __future__ import annotations

import csv
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..engine.models import EXPORT_COLUMNS, SweepReport


def _safe_name(text: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]+", "_", text).strip("_") or "sweep"


def default_csv_path(base: str) -> Path:
    return Path.cwd() / f"{_safe_name(base)}.csv"


def export_csv(report: SweepReport, output_path: Optional[str] = None) -> str:
    """Write the reportable results as CSV and return the file path.

    Not-found domains are left out; the header row is always written, so an
    empty sweep still produces a valid file.
    """
    out = Path(output_path) if output_path else default_csv_path(report.base)

    if out.exists() and out.is_dir():
        raise IsADirectoryError(f"Output path is a directory: {out}")

    out.parent.mkdir(parents=True, exist_ok=True)

    with out.open("w", encoding="utf-8", newline="") as fh:
        writer = csv.writer(fh)
        writer.writerow(EXPORT_COLUMNS)
        for item in report.reportable:
            writer.writerow(item.as_row())
    return str(out)


def _md_cell(value: str) -> str:
    return (value or "").replace("|", "\\|")


def render_markdown(report: SweepReport) -> str:
    lines: List[str] = [
        "| " + " | ".join(EXPORT_COLUMNS) + " |",
        "|" + "|".join("---" for _ in EXPORT_COLUMNS) + "|",
    ]
    for item in report.reportable:
        lines.append("| " + " | ".join(_md_cell(value) for value in item.as_row()) + " |")
    return "\n".join(lines) + "\n"


def report_to_json(report: SweepReport) -> Dict[str, Any]:
    return {
        "base": report.base,
        "total": report.total,
        "reportable": [item.as_dict() for item in report.reportable],
        "not_found": list(report.not_found),
    }
