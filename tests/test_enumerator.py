from __future__ import annotations

from tldsweep.core import enumerate_domains


def test_enumerate_skips_punycode_tlds_and_keeps_order():
    assert enumerate_domains("example", ["com", "xn--p1ai", "net"]) == ["example.com", "example.net"]


def test_enumerate_normalizes_case_and_whitespace():
    assert enumerate_domains("example", [" COM ", "Org\n", "  ", "XN--P1AI"]) == ["example.com", "example.org"]


def test_enumerate_empty_list():
    assert enumerate_domains("example", []) == []


def test_enumerate_is_idempotent():
    tlds = ["io", "de", "xn--80asehdb", "co"]
    first = enumerate_domains("brand", tlds)
    second = enumerate_domains("brand", tlds)
    assert first == second == ["brand.io", "brand.de", "brand.co"]
    assert tlds == ["io", "de", "xn--80asehdb", "co"]
