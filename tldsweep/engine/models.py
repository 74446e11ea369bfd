from __future__ import annotations

"""Value types shared by the probe, the worker pool and the renderers."""

from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Tuple

STATUS_NXDOMAIN = "NXDOMAIN"
STATUS_TLS_ERROR = "TLS ERROR"
STATUS_NO_CERT = "NO CERT"
STATUS_OK = "OK"

STATUSES: Tuple[str, ...] = (STATUS_OK, STATUS_NO_CERT, STATUS_TLS_ERROR, STATUS_NXDOMAIN)

NO_IP = "-"
NO_SUBJECT = "(no subject)"

EXPORT_COLUMNS: Tuple[str, ...] = ("Domain", "IP", "Status", "Subject", "Issuer", "ValidTo")


class SweepIncompleteError(RuntimeError):
    """Raised when a sweep cannot account for every dispatched candidate."""


@dataclass(frozen=True)
class ScanResult:
    domain: str
    ip: str = NO_IP
    status: str = STATUS_NXDOMAIN
    subject: str = ""
    issuer: str = ""
    valid_to: str = ""

    def __post_init__(self) -> None:
        if self.status not in STATUSES:
            raise ValueError(f"Unknown scan status: {self.status!r}")

    @property
    def found(self) -> bool:
        return self.status != STATUS_NXDOMAIN

    def as_row(self) -> List[str]:
        return [self.domain, self.ip, self.status, self.subject, self.issuer, self.valid_to]

    def as_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class SweepReport:
    """Aggregated outcome of one sweep.

    `reportable` holds every result that resolved (any status but NXDOMAIN),
    `not_found` the domains that did not. Both are sorted by domain.
    """

    base: str
    reportable: Tuple[ScanResult, ...] = field(default_factory=tuple)
    not_found: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def reportable_count(self) -> int:
        return len(self.reportable)

    @property
    def not_found_count(self) -> int:
        return len(self.not_found)

    @property
    def total(self) -> int:
        return self.reportable_count + self.not_found_count

    def status_counts(self) -> Dict[str, int]:
        counts = Counter(item.status for item in self.reportable)
        counts[STATUS_NXDOMAIN] = self.not_found_count
        return {status: counts.get(status, 0) for status in STATUSES}
