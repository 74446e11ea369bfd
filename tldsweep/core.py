from __future__ import annotations

"""Compatibility facade for the tldsweep engine.

Public imports remain stable while implementation lives in `tldsweep.engine`.
"""

from .engine.enumerator import enumerate_domains
from .engine.models import (
    STATUS_NO_CERT,
    STATUS_NXDOMAIN,
    STATUS_OK,
    STATUS_TLS_ERROR,
    STATUSES,
    ScanResult,
    SweepIncompleteError,
    SweepReport,
)
from .engine.probe import TLSProbe, certificate_fields
from .engine.runtime import (
    TLDSWEEP,
    ProbePool,
    _run_async,
    _run_coro_sync,
    aggregate,
    default_workers,
    fmt_td,
    logger,
)

__all__ = [
    "STATUS_NO_CERT",
    "STATUS_NXDOMAIN",
    "STATUS_OK",
    "STATUS_TLS_ERROR",
    "STATUSES",
    "ScanResult",
    "SweepIncompleteError",
    "SweepReport",
    "TLDSWEEP",
    "TLSProbe",
    "ProbePool",
    "aggregate",
    "certificate_fields",
    "default_workers",
    "enumerate_domains",
    "fmt_td",
    "logger",
    "_run_async",
    "_run_coro_sync",
]
