from __future__ import annotations

from typing import Iterable, List

IDN_PREFIX = "xn--"


def enumerate_domains(base: str, tlds: Iterable[str]) -> List[str]:
    """Join `base` with every usable TLD, keeping the TLD order.

    Punycode TLDs (`xn--...`) are skipped; entries are trimmed and lower-cased
    so a hand-edited list does not need to be normalized first.
    """
    domains: List[str] = []
    for raw in tlds:
        tld = str(raw or "").strip().lower()
        if not tld or tld.startswith(IDN_PREFIX):
            continue
        domains.append(f"{base}.{tld}")
    return domains
