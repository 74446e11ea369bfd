from __future__ import annotations

"""Core sweep engine for tldsweep.

This module contains the runtime used by both CLI and Python API:
- bounded worker pool running one probe per candidate (`ProbePool`)
- aggregation of the unordered result stream (`aggregate`)
- orchestration helpers (`_run_async`, `_run_coro_sync`, `TLDSWEEP`)

Keep logic in this file side-effect free where possible, because it is imported
from both `tldsweep/cli.py` and external user scripts.
"""

import asyncio
import logging
import os
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from dotenv import load_dotenv

from .enumerator import enumerate_domains
from .models import ScanResult, SweepIncompleteError, SweepReport
from .probe import DEFAULT_TIMEOUT, TLSProbe
from ..storage_parts.tld_cache import TLDSourceError, load_tlds

load_dotenv()


def _log_level(raw: Optional[str]) -> int:
    level = logging.getLevelName(str(raw or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


logger = logging.getLogger("tldsweep")
logger.setLevel(_log_level(os.getenv("TLDSWEEP_LOG_LEVEL")))
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s", "%H:%M:%S"))
    logger.addHandler(handler)

ProgressCallback = Callable[[int, int], None]


def default_workers() -> int:
    return 2 * (os.cpu_count() or 1)


def fmt_td(td: Optional[timedelta]) -> str:
    if td is None:
        return "-"
    total_seconds = int(td.total_seconds())
    hours, rem = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rem, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


class ProbePool:
    """Fixed-size pool of workers draining a FIFO queue of candidate domains.

    Each worker pulls one domain at a time and runs the blocking `probe` on a
    thread of its own, so a worker stuck on a slow handshake never holds up
    the others. `run` returns only once every worker has finished, with exactly
    one result per candidate, or raises `SweepIncompleteError`.
    """

    def __init__(
        self,
        workers: int,
        probe: Callable[[str], ScanResult],
        progress_callback: Optional[ProgressCallback] = None,
    ):
        if int(workers) < 1:
            raise ValueError(f"Worker count must be at least 1, got {workers}")
        self.workers = int(workers)
        self.probe = probe
        self.progress_callback = progress_callback

    async def run(self, domains: Sequence[str]) -> List[ScanResult]:
        candidates = list(domains)
        total = len(candidates)
        if not candidates:
            return []

        loop = asyncio.get_running_loop()
        queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
        for domain in candidates:
            queue.put_nowait(domain)

        worker_count = max(1, min(self.workers, total))
        for _ in range(worker_count):
            queue.put_nowait(None)

        results: List[ScanResult] = []
        failures: List[Tuple[str, str]] = []
        done = 0

        with ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="tldsweep-probe") as executor:

            async def worker() -> None:
                nonlocal done
                while True:
                    scan_domain = await queue.get()
                    try:
                        if scan_domain is None:
                            return
                        try:
                            result = await loop.run_in_executor(executor, self.probe, scan_domain)
                        except Exception as exc:
                            failures.append((scan_domain, f"{exc.__class__.__name__}: {exc}"))
                            logger.error("Probe crashed for %s: %s: %s", scan_domain, exc.__class__.__name__, exc)
                        else:
                            results.append(result)
                    finally:
                        queue.task_done()
                        if scan_domain is not None:
                            done += 1
                            if self.progress_callback:
                                self.progress_callback(done, total)

            tasks = [asyncio.create_task(worker()) for _ in range(worker_count)]
            try:
                await asyncio.gather(*tasks)
            finally:
                for task in tasks:
                    task.cancel()

        if failures:
            sample = ", ".join(domain for domain, _ in failures[:5])
            raise SweepIncompleteError(f"{len(failures)} of {total} probes failed ({sample})")
        if len(results) != total:
            raise SweepIncompleteError(f"Expected {total} results, collected {len(results)}")
        return results


def aggregate(base: str, results: Iterable[ScanResult], total: Optional[int] = None) -> SweepReport:
    """Partition results into reportable and not-found, sorted by domain.

    When `total` is given, the partitions must account for every candidate
    that was dispatched.
    """
    reportable: List[ScanResult] = []
    not_found: List[str] = []
    for item in results:
        if item.found:
            reportable.append(item)
        else:
            not_found.append(item.domain)

    report = SweepReport(
        base=base,
        reportable=tuple(sorted(reportable, key=lambda item: item.domain)),
        not_found=tuple(sorted(not_found)),
    )
    if total is not None and report.total != total:
        raise SweepIncompleteError(f"Aggregated {report.total} results for {total} candidates")
    return report


async def _run_async(
    base: str,
    tlds: Sequence[str],
    workers: Optional[int] = None,
    timeout: Optional[float] = None,
    dns_server: Optional[str] = None,
    progress_callback: Optional[ProgressCallback] = None,
    probe: Optional[Callable[[str], ScanResult]] = None,
) -> SweepReport:
    """Main orchestrator used by both CLI and Python API.

    Flow:
    1. expand the base name over the TLD list
    2. probe every candidate with bounded concurrency
    3. partition the results for rendering
    """
    if not tlds:
        raise TLDSourceError("TLD list is empty")

    domains = enumerate_domains(base, tlds)
    worker_count = default_workers() if workers is None else workers
    if probe is None:
        probe = TLSProbe(timeout=DEFAULT_TIMEOUT if timeout is None else timeout, dns_server=dns_server).scan

    logger.info("Sweeping %d candidates for %s with %d workers", len(domains), base, worker_count)
    pool = ProbePool(worker_count, probe, progress_callback=progress_callback)
    results = await pool.run(domains)

    report = aggregate(base, results, total=len(domains))
    logger.info("Found %d domains, %d do not exist", report.reportable_count, report.not_found_count)
    if report.not_found:
        logger.debug("Domains not found: %s", ", ".join(report.not_found))
    return report


def _run_coro_sync(coro: Any) -> Any:
    """Run async code from sync callers (CLI and public API).

    If already inside an event loop, execute in a helper thread to avoid
    `RuntimeError: asyncio.run() cannot be called from a running event loop`.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    outcome: Dict[str, Any] = {}

    def target() -> None:
        try:
            outcome["result"] = asyncio.run(coro)
        except Exception as exc:
            outcome["error"] = exc

    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    thread.join()

    if "error" in outcome:
        raise outcome["error"]
    return outcome.get("result")


def TLDSWEEP(
    base: str,
    tlds: Optional[Sequence[str]] = None,
    workers: Optional[int] = None,
    timeout: Optional[float] = None,
    dns_server: Optional[str] = None,
    force_refresh: bool = False,
) -> SweepReport:
    """Public synchronous Python API entrypoint.

    Example:
    `TLDSWEEP("example", workers=32).reportable`
    """
    if tlds is None:
        tlds = load_tlds(use_cache=not force_refresh)

    return _run_coro_sync(
        _run_async(
            base,
            list(tlds),
            workers=workers,
            timeout=timeout,
            dns_server=dns_server,
        )
    )
