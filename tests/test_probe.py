from __future__ import annotations

import ssl
import warnings
from datetime import datetime, timezone
from typing import List, Optional

import dns.resolver
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

import tldsweep.engine.probe as probe
from tldsweep.core import (
    STATUS_NO_CERT,
    STATUS_NXDOMAIN,
    STATUS_OK,
    STATUS_TLS_ERROR,
    TLSProbe,
    certificate_fields,
)


def _make_cert(
    common_name: Optional[str] = None,
    san: Optional[List[str]] = None,
    issuer_cn: Optional[str] = "Test Issuing CA",
    not_after: datetime = datetime(2031, 5, 17, 12, 30, tzinfo=timezone.utc),
) -> bytes:
    key = ec.generate_private_key(ec.SECP256R1())
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)] if common_name else [])
    issuer = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, issuer_cn)] if issuer_cn else [])
    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(datetime(2024, 1, 1, tzinfo=timezone.utc))
        .not_valid_after(not_after)
    )
    if san is not None:
        builder = builder.add_extension(x509.SubjectAlternativeName([x509.DNSName(name) for name in san]), critical=False)
    return builder.sign(key, hashes.SHA256()).public_bytes(serialization.Encoding.DER)


def _no_handshake(domain: str) -> Optional[bytes]:
    raise AssertionError(f"handshake attempted for {domain}")


def test_certificate_fields_prefers_common_name():
    der = _make_cert(common_name="www.example.com", san=["other.example.com"])
    assert certificate_fields(der) == ("www.example.com", "Test Issuing CA", "2031-05-17")


def test_certificate_fields_falls_back_to_first_san():
    der = _make_cert(common_name=None, san=["alt.example.com", "second.example.com"])
    subject, _, _ = certificate_fields(der)
    assert subject == "alt.example.com"


def test_certificate_fields_without_cn_or_san():
    der = _make_cert(common_name=None, san=None)
    subject, _, _ = certificate_fields(der)
    assert subject == "(no subject)"


def test_certificate_fields_empty_issuer_is_not_an_error():
    der = _make_cert(common_name="example.org", issuer_cn=None)
    assert certificate_fields(der) == ("example.org", "", "2031-05-17")


def test_scan_no_addresses_is_nxdomain_without_tls():
    result = TLSProbe(resolve=lambda domain: [], handshake=_no_handshake).scan("example.invalid")
    assert result.status == STATUS_NXDOMAIN
    assert result.ip == "-"
    assert (result.subject, result.issuer, result.valid_to) == ("", "", "")


def test_scan_resolver_error_is_nxdomain():
    def _boom(domain: str) -> List[str]:
        raise dns.resolver.NoNameservers()

    result = TLSProbe(resolve=_boom, handshake=_no_handshake).scan("example.zz")
    assert result.status == STATUS_NXDOMAIN
    assert result.ip == "-"


def test_scan_handshake_failure_keeps_ip():
    def _refused(domain: str) -> Optional[bytes]:
        raise ConnectionRefusedError("connection refused")

    result = TLSProbe(resolve=lambda domain: ["203.0.113.7", "203.0.113.8"], handshake=_refused).scan("example.net")
    assert result.status == STATUS_TLS_ERROR
    assert result.ip == "203.0.113.7"
    assert result.subject == ""


def test_scan_timeout_is_tls_error():
    def _slow(domain: str) -> Optional[bytes]:
        raise TimeoutError("timed out")

    result = TLSProbe(resolve=lambda domain: ["198.51.100.1"], handshake=_slow).scan("example.org")
    assert result.status == STATUS_TLS_ERROR


def test_scan_without_certificate_is_no_cert():
    result = TLSProbe(resolve=lambda domain: ["198.51.100.1"], handshake=lambda domain: None).scan("example.org")
    assert result.status == STATUS_NO_CERT
    assert result.ip == "198.51.100.1"
    assert result.valid_to == ""


def test_scan_with_certificate_is_ok():
    der = _make_cert(common_name="example.de")
    result = TLSProbe(resolve=lambda domain: ["192.0.2.10"], handshake=lambda domain: der).scan("example.de")
    assert result.status == STATUS_OK
    assert result.ip == "192.0.2.10"
    assert result.subject == "example.de"
    assert result.issuer == "Test Issuing CA"
    assert result.valid_to == "2031-05-17"


def test_scan_unreadable_certificate_is_tls_error():
    result = TLSProbe(resolve=lambda domain: ["192.0.2.10"], handshake=lambda domain: b"not a certificate").scan("example.de")
    assert result.status == STATUS_TLS_ERROR
    assert result.ip == "192.0.2.10"


class _FakeAnswer(list):
    pass


class _FakeResolver:
    calls: List[str] = []

    def __init__(self):
        self.nameservers = ["127.0.0.53"]
        self.timeout = None
        self.lifetime = None

    def resolve(self, name: str, qtype: str):
        self.calls.append(f"{name}/{qtype}/{self.nameservers[0]}")
        if name == "missing.example":
            raise dns.resolver.NXDOMAIN()
        if qtype == "A":
            return _FakeAnswer(["192.0.2.20", "192.0.2.10", "192.0.2.20"])
        raise dns.resolver.NoAnswer()


def test_resolve_keeps_resolver_order(monkeypatch):
    _FakeResolver.calls = []
    monkeypatch.setattr(probe.dns.resolver, "Resolver", _FakeResolver)
    scanner = TLSProbe(dns_server="9.9.9.9", handshake=lambda domain: None)
    assert scanner.resolve("example.com") == ["192.0.2.20", "192.0.2.10"]
    assert _FakeResolver.calls == ["example.com/A/9.9.9.9", "example.com/AAAA/9.9.9.9"]
    assert scanner.scan("example.com").ip == "192.0.2.20"


def test_resolve_nxdomain_returns_empty(monkeypatch):
    monkeypatch.setattr(probe.dns.resolver, "Resolver", _FakeResolver)
    assert TLSProbe().resolve("missing.example") == []


class _FakeSocket:
    def __init__(self):
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True
        return False


class _FakeTLSSocket(_FakeSocket):
    def getpeercert(self, binary_form: bool = False):
        assert binary_form is True
        return b"der-bytes"


class _FakeContext:
    instances: List["_FakeContext"] = []

    def __init__(self, protocol):
        self.protocol = protocol
        self.check_hostname = True
        self.verify_mode = ssl.CERT_REQUIRED
        self.server_hostname = None
        self.tls_sock = _FakeTLSSocket()
        self.instances.append(self)

    def wrap_socket(self, sock, server_hostname=None):
        self.server_hostname = server_hostname
        return self.tls_sock


def test_handshake_disables_verification_and_closes_socket(monkeypatch):
    opened = []

    def _connect(address, timeout=None):
        sock = _FakeSocket()
        opened.append((address, timeout, sock))
        return sock

    _FakeContext.instances = []
    monkeypatch.setattr(probe.socket, "create_connection", _connect)
    monkeypatch.setattr(probe.ssl, "SSLContext", _FakeContext)

    assert TLSProbe(timeout=5.0)._fetch_leaf_certificate("example.io") == b"der-bytes"

    (address, timeout, sock), = opened
    ctx = _FakeContext.instances[0]
    assert address == ("example.io", 443)
    assert timeout == 5.0
    assert ctx.check_hostname is False
    assert ctx.verify_mode == ssl.CERT_NONE
    assert ctx.server_hostname == "example.io"
    assert sock.closed is True
    assert ctx.tls_sock.closed is True


def test_handshake_socket_closed_on_failure(monkeypatch):
    opened = []

    class _FailingContext(_FakeContext):
        def wrap_socket(self, sock, server_hostname=None):
            raise ssl.SSLError("handshake failure")

    def _connect(address, timeout=None):
        sock = _FakeSocket()
        opened.append(sock)
        return sock

    monkeypatch.setattr(probe.socket, "create_connection", _connect)
    monkeypatch.setattr(probe.ssl, "SSLContext", _FailingContext)

    with pytest.raises(ssl.SSLError):
        TLSProbe()._fetch_leaf_certificate("example.io")
    assert opened[0].closed is True

    result = TLSProbe(resolve=lambda domain: ["192.0.2.1"]).scan("example.io")
    assert result.status == STATUS_TLS_ERROR
    assert opened[1].closed is True


class _NoIPv6Resolver(_FakeResolver):
    def resolve(self, name: str, qtype: str):
        if qtype == "A":
            return _FakeAnswer(["192.0.2.1"])
        raise dns.resolver.NXDOMAIN()


def test_resolve_keeps_ipv4_when_aaaa_lookup_is_nxdomain(monkeypatch):
    monkeypatch.setattr(probe.dns.resolver, "Resolver", _NoIPv6Resolver)
    scanner = TLSProbe(handshake=lambda domain: None)
    assert scanner.resolve("x.com") == ["192.0.2.1"]
    result = scanner.scan("x.com")
    assert result.status == STATUS_NO_CERT
    assert result.ip == "192.0.2.1"


def test_certificate_fields_uses_no_deprecated_api():
    der = _make_cert(common_name=None, san=["alt.example.com"])
    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        assert certificate_fields(der) == ("alt.example.com", "Test Issuing CA", "2031-05-17")
