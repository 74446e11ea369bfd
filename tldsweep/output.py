from __future__ import annotations

"""Terminal rendering helpers for tldsweep.

This module contains presentation-only logic for sweep results and runtime
status. It does not perform network or persistence operations.
"""

from datetime import timedelta
from typing import Any, Dict, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .core import STATUS_NO_CERT, STATUS_NXDOMAIN, STATUS_OK, STATUS_TLS_ERROR, SweepReport, fmt_td

console = Console()
err_console = Console(stderr=True)


# Shared layout constants.
KV_FIELD_WIDTH = 20
SUMMARY_DOMAIN_WIDTH = 28
SUMMARY_IP_WIDTH = 18
SUMMARY_STATUS_WIDTH = 10
SUMMARY_EXPIRY_WIDTH = 12
NOT_FOUND_PREVIEW = 20

STATUS_STYLES = {
    STATUS_OK: "green",
    STATUS_NO_CERT: "yellow",
    STATUS_TLS_ERROR: "red",
    STATUS_NXDOMAIN: "magenta",
}


def _table_width() -> int:
    try:
        return max(80, int(console.size.width) - 2)
    except Exception:
        return 100


def _new_table(
    *,
    title: Optional[str] = None,
    box_style: Any = box.SIMPLE,
    show_header: bool = True,
    header_style: Optional[str] = None,
) -> Table:
    return Table(
        title=title,
        box=box_style,
        show_header=show_header,
        header_style=header_style,
        title_justify="left",
        width=_table_width(),
        expand=False,
        pad_edge=False,
    )


def _fmt_status(status: str) -> str:
    style = STATUS_STYLES.get(status)
    if not style:
        return status
    return f"[{style}]{status}[/{style}]"


def _fmt_optional(value: Optional[str]) -> str:
    return value if value else "-"


def _status_counts_line(counts: Dict[str, int]) -> str:
    return "  ".join(f"{_fmt_status(status)}: {count}" for status, count in counts.items())


def output(report: SweepReport, elapsed: Optional[timedelta] = None) -> None:
    """Render the live TLD variants as a table followed by a summary panel."""
    if report.reportable:
        table = _new_table(box_style=box.SIMPLE_HEAVY, show_header=True, header_style="bold cyan")
        table.add_column("Domain", style="cyan", width=SUMMARY_DOMAIN_WIDTH, min_width=SUMMARY_DOMAIN_WIDTH, max_width=SUMMARY_DOMAIN_WIDTH, no_wrap=True, overflow="ellipsis")
        table.add_column("IP", style="white", width=SUMMARY_IP_WIDTH, min_width=SUMMARY_IP_WIDTH, max_width=SUMMARY_IP_WIDTH, no_wrap=False, overflow="fold")
        table.add_column("Status", justify="center", width=SUMMARY_STATUS_WIDTH, min_width=SUMMARY_STATUS_WIDTH, max_width=SUMMARY_STATUS_WIDTH, no_wrap=True)
        table.add_column("Subject", overflow="fold", no_wrap=False)
        table.add_column("Issuer", overflow="fold", no_wrap=False)
        table.add_column("ValidTo", justify="center", width=SUMMARY_EXPIRY_WIDTH, min_width=SUMMARY_EXPIRY_WIDTH, max_width=SUMMARY_EXPIRY_WIDTH, no_wrap=True)

        for item in report.reportable:
            table.add_row(
                item.domain,
                item.ip,
                _fmt_status(item.status),
                _fmt_optional(item.subject),
                _fmt_optional(item.issuer),
                _fmt_optional(item.valid_to),
            )
        console.print(table)
    else:
        err_console.print(f"[yellow]No live TLD variants found for {report.base}.[/yellow]")

    console.print(_status_counts_line(report.status_counts()))
    console.print(
        Panel.fit(
            f"[bold]Base:[/bold] {report.base}  [bold]Candidates:[/bold] {report.total}  "
            f"[bold]Live:[/bold] {report.reportable_count}  [bold]Not found:[/bold] {report.not_found_count}  "
            f"[bold]Elapsed:[/bold] {fmt_td(elapsed)}",
            border_style="cyan",
        )
    )


def print_not_found(report: SweepReport, limit: int = NOT_FOUND_PREVIEW) -> None:
    if not report.not_found:
        return
    shown = list(report.not_found[:limit])
    more = report.not_found_count - len(shown)
    suffix = f" (+{more} more)" if more > 0 else ""
    console.print(f"[magenta]Not found ({report.not_found_count}):[/magenta] {', '.join(shown)}{suffix}")


def print_scan_status(settings: Dict[str, Any], tld_count: Optional[int] = None) -> None:
    table = _new_table(title="Sweep Status", box_style=box.MINIMAL_DOUBLE_HEAD)
    value_width = max(24, _table_width() - KV_FIELD_WIDTH - 8)
    table.add_column("Field", style="cyan", width=KV_FIELD_WIDTH, min_width=KV_FIELD_WIDTH, max_width=KV_FIELD_WIDTH, no_wrap=True)
    table.add_column("Value", width=value_width, min_width=value_width, max_width=value_width, overflow="fold", no_wrap=False)

    table.add_row("Workers", str(settings.get("workers")))
    table.add_row("Timeout", str(settings.get("timeout")))
    table.add_row("DNS", str(settings.get("dns") or "system resolver"))
    table.add_row("TLD Source", str(settings.get("tld_url")))
    table.add_row("TLD Cache", str(settings.get("cache_path")))
    table.add_row("Cached TLDs", "-" if tld_count is None else str(tld_count))

    console.print(table)
