from __future__ import annotations

import asyncio
import threading
from typing import List

import pytest

from tldsweep.core import STATUS_NXDOMAIN, STATUS_OK, ProbePool, ScanResult, SweepIncompleteError


def _token_probe(domain: str) -> ScanResult:
    if domain.endswith(".zz"):
        return ScanResult(domain=domain, status=STATUS_NXDOMAIN)
    return ScanResult(domain=domain, ip=f"token:{domain}", status=STATUS_OK, subject=domain)


def _candidates(count: int) -> List[str]:
    return [f"example.t{idx}" if idx % 3 else f"example{idx}.zz" for idx in range(count)]


def test_pool_returns_exactly_one_result_per_candidate():
    domains = _candidates(57)
    results = asyncio.run(ProbePool(8, _token_probe).run(domains))
    assert len(results) == len(domains)
    assert sorted(item.domain for item in results) == sorted(domains)
    for item in results:
        if item.status == STATUS_OK:
            assert item.ip == f"token:{item.domain}"


def test_pool_result_set_independent_of_worker_count():
    domains = _candidates(40)
    single = asyncio.run(ProbePool(1, _token_probe).run(domains))
    many = asyncio.run(ProbePool(16, _token_probe).run(domains))
    assert set(single) == set(many)
    assert len(single) == len(many) == len(domains)


def test_pool_single_worker_keeps_fifo_order():
    domains = _candidates(10)
    results = asyncio.run(ProbePool(1, _token_probe).run(domains))
    assert [item.domain for item in results] == domains


def test_pool_runs_probes_in_parallel():
    barrier = threading.Barrier(4, timeout=5)

    def _waiting_probe(domain: str) -> ScanResult:
        barrier.wait()
        return _token_probe(domain)

    results = asyncio.run(ProbePool(4, _waiting_probe).run(["a.com", "a.net", "a.org", "a.io"]))
    assert len(results) == 4


def test_pool_empty_input():
    assert asyncio.run(ProbePool(4, _token_probe).run([])) == []


def test_pool_rejects_non_positive_worker_count():
    with pytest.raises(ValueError):
        ProbePool(0, _token_probe)


def test_pool_reports_crashed_probe_as_incomplete_run():
    def _broken(domain: str) -> ScanResult:
        if domain == "example.net":
            raise RuntimeError("probe bug")
        return _token_probe(domain)

    with pytest.raises(SweepIncompleteError, match="1 of 3 probes failed"):
        asyncio.run(ProbePool(2, _broken).run(["example.com", "example.net", "example.org"]))


def test_pool_progress_callback_counts_every_candidate():
    seen = []
    domains = _candidates(12)
    asyncio.run(ProbePool(3, _token_probe, progress_callback=lambda done, total: seen.append((done, total))).run(domains))
    assert [done for done, _ in seen] == list(range(1, 13))
    assert {total for _, total in seen} == {12}
