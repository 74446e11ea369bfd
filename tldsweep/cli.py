from __future__ import annotations

"""Command-line interface for tldsweep.

This module translates CLI flags into runtime settings, loads the TLD list,
runs the sweep through `tldsweep.core` and hands the report to the renderers.
"""

import argparse
import os
import sys
from datetime import datetime
from typing import List, Optional

from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from .core import SweepIncompleteError, SweepReport, _run_async, _run_coro_sync, enumerate_domains, logger
from .cli_parts.scan_flow import (
    normalize_base_domain as _normalize_base_domain,
    print_markdown_output as _print_markdown_output,
    print_report_json as _print_report_json,
)
from .cli_parts.settings import cache_path_for as _cache_path_for, load_runtime_settings as _load_runtime_settings
from .cli_parts.status import render_runtime_status_panel as _render_runtime_status_panel
from .output import console, err_console, output, print_not_found, print_scan_status
from .storage import TLDSourceError, default_csv_path, export_csv, load_tlds, read_cache
from .version import __version__

OUTPUT_FORMATS = ("table", "markdown", "json", "none")


def _run_with_rich_progress(
    base: str,
    tlds: List[str],
    workers: int,
    timeout: float,
    dns: Optional[str],
    total: int,
) -> SweepReport:
    """Execute the sweep with a Rich progress bar bound to async callbacks."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[bold cyan]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task_id = progress.add_task("Probing candidates", total=max(total, 1))

        def cb(done: int, total: int) -> None:
            progress.update(task_id, total=max(total, 1), completed=done)

        return _run_coro_sync(
            _run_async(
                base,
                tlds,
                workers=workers,
                timeout=timeout,
                dns_server=dns,
                progress_callback=cb,
            )
        )


def _fail(message: str) -> None:
    err_console.print(f"[red]{message}[/red]")
    sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tldsweep",
        description=(
            f"tldsweep v.{__version__} - find live TLD variants of a domain name "
            "and capture their DNS and TLS certificate details.\n"
            "CLI options > environment (.env) > built-in defaults."
        ),
    )
    parser.add_argument("base", help="Base domain without TLD (e.g. 'example' sweeps example.com, example.net, ...).")

    tld_group = parser.add_argument_group("TLD Source")
    tld_group.add_argument(
        "--force-tld-refresh",
        help="Ignore the cached TLD list and download it again.",
        action="store_true",
    )
    tld_group.add_argument("--cache-dir", help="Directory of the TLD cache (overrides TLDSWEEP_CACHE_DIR).", dest="cache_dir")

    runtime_group = parser.add_argument_group("Runtime Overrides (Advanced)")
    runtime_group.add_argument("--workers", help="Concurrent probe workers (default: 2 x CPUs).", type=int)
    runtime_group.add_argument("--timeout", help="TLS connection timeout in seconds (default: 5).", type=float)
    runtime_group.add_argument("--dns", help="DNS server (default: system resolver).", dest="dns")

    output_group = parser.add_argument_group("Output")
    output_group.add_argument("-o", "--output", help="CSV destination (default: <base>.csv in the current directory).")
    output_group.add_argument("--no-csv", help="Do not write the CSV file.", action="store_true")
    output_group.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default="table",
        help="Terminal rendering of the live domains (default: table).",
    )
    output_group.add_argument("--silent", help="Silent mode (hide progress and status panel).", action="store_true")
    output_group.add_argument("--status", help="Print effective runtime settings and continue.", action="store_true")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entrypoint.

    Exits with status 1 when the base name is invalid, the TLD list cannot be
    obtained, the sweep is incomplete or the CSV cannot be written.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.format in {"json", "markdown"}:
        args.silent = True

    base = _normalize_base_domain(args.base)
    if not base:
        _fail(f"Invalid base domain: {args.base}")
    if args.workers is not None and args.workers < 1:
        _fail(f"--workers must be at least 1, got {args.workers}")
    if args.timeout is not None and args.timeout <= 0:
        _fail(f"--timeout must be positive, got {args.timeout}")

    saved = _load_runtime_settings()
    workers = args.workers if args.workers is not None else int(saved["workers"])
    timeout = args.timeout if args.timeout is not None else float(saved["timeout"])
    dns = args.dns or saved["dns"]
    cache_path = _cache_path_for(args.cache_dir, saved)
    csv_path = None if args.no_csv else str(args.output or default_csv_path(base))

    if args.status and not args.silent:
        cached = read_cache(cache_path)
        print_scan_status(
            {
                "workers": workers,
                "timeout": timeout,
                "dns": dns,
                "tld_url": saved["tld_url"],
                "cache_path": cache_path,
            },
            tld_count=len(cached) if cached else None,
        )

    try:
        tlds = load_tlds(use_cache=not args.force_tld_refresh, cache_path=cache_path, url=saved["tld_url"])
    except TLDSourceError as exc:
        _fail(f"Failed to load TLDs: {exc}")

    candidate_count = len(enumerate_domains(base, tlds))
    if not args.silent:
        _render_runtime_status_panel(
            base=base,
            tld_count=len(tlds),
            candidate_count=candidate_count,
            workers=workers,
            timeout=timeout,
            dns=dns,
            cache_path=cache_path,
            csv_path=csv_path,
            output_format=args.format,
        )

    start_time = datetime.now()
    try:
        if args.silent:
            report = _run_coro_sync(_run_async(base, tlds, workers=workers, timeout=timeout, dns_server=dns))
        else:
            report = _run_with_rich_progress(base, tlds, workers, timeout, dns, candidate_count)
    except (SweepIncompleteError, TLDSourceError) as exc:
        _fail(f"Sweep failed: {exc}")
    elapsed = datetime.now() - start_time

    if csv_path:
        try:
            written = export_csv(report, csv_path)
        except OSError as exc:
            _fail(f"Cannot write results to {csv_path}: {exc}")
        logger.info("Results exported to %s", written)

    if args.format == "json":
        _print_report_json(report)
    elif args.format == "markdown":
        _print_markdown_output(report)
    elif args.format == "table":
        output(report, elapsed)
        print_not_found(report)


def run() -> None:
    """Console-script entrypoint: `main` with quiet Ctrl+C handling."""
    try:
        main()
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Interrupted[/yellow]")
        try:
            sys.exit(0)
        except SystemExit:
            os._exit(0)


if __name__ == "__main__":
    run()
