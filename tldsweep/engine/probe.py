from __future__ import annotations

"""Single-candidate probe: DNS lookup, TLS handshake and leaf certificate inspection.

`TLSProbe.scan` is what each pool worker runs. It performs exactly one attempt
per domain and always returns a `ScanResult`; every network failure is folded
into a status value instead of being raised.

Certificate verification is disabled on purpose. The sweep has to observe
whatever certificate a host serves (expired, self-signed, issued for another
name), so the handshake uses `ssl.CERT_NONE` and skips hostname checks.
"""

import ipaddress
import logging
import socket
import ssl
from typing import Callable, List, Optional, Tuple

import dns.exception
import dns.resolver
import OpenSSL
from cryptography import x509 as cx509
from cryptography.x509.oid import NameOID

from .models import (
    NO_IP,
    NO_SUBJECT,
    STATUS_NO_CERT,
    STATUS_NXDOMAIN,
    STATUS_OK,
    STATUS_TLS_ERROR,
    ScanResult,
)

logger = logging.getLogger("tldsweep")

DEFAULT_TIMEOUT = 5.0
DEFAULT_PORT = 443

Resolve = Callable[[str], List[str]]
Handshake = Callable[[str], Optional[bytes]]


def _common_name(name: cx509.Name) -> str:
    for attr in name.get_attributes_for_oid(NameOID.COMMON_NAME):
        value = attr.value if isinstance(attr.value, str) else attr.value.decode("utf-8", "replace")
        if value.strip():
            return value
    return ""


def _first_san_dns_name(cert: cx509.Certificate) -> Optional[str]:
    try:
        san = cert.extensions.get_extension_for_class(cx509.SubjectAlternativeName)
    except cx509.ExtensionNotFound:
        return None
    names = san.value.get_values_for_type(cx509.DNSName)
    return names[0] if names else None


def certificate_fields(der_cert: bytes) -> Tuple[str, str, str]:
    """Return `(subject, issuer, valid_to)` for a DER encoded certificate.

    Subject falls back from the common name to the first SAN DNS entry, then
    to `(no subject)`. The issuer common name may legitimately be empty.
    """
    cert = OpenSSL.crypto.load_certificate(OpenSSL.crypto.FILETYPE_ASN1, der_cert).to_cryptography()
    subject = _common_name(cert.subject) or _first_san_dns_name(cert) or NO_SUBJECT
    issuer = _common_name(cert.issuer)
    valid_to = cert.not_valid_after_utc.date().isoformat()
    return subject, issuer, valid_to


class TLSProbe:
    """Probe one candidate domain.

    `resolve` and `handshake` default to the real dnspython / ssl based
    implementations and can be replaced to run the classification offline.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        port: int = DEFAULT_PORT,
        dns_server: Optional[str] = None,
        resolve: Optional[Resolve] = None,
        handshake: Optional[Handshake] = None,
    ):
        self.timeout = timeout
        self.port = port
        self.dns_server = dns_server
        self.resolve = resolve or self._resolve
        self.handshake = handshake or self._fetch_leaf_certificate

    def _resolve(self, domain: str) -> List[str]:
        resolver = dns.resolver.Resolver()
        if self.dns_server:
            resolver.nameservers = [self.dns_server]
        resolver.timeout = self.timeout
        resolver.lifetime = max(self.timeout * 2, self.timeout + 1.0)

        # Answer order is whatever the resolver returns; the first address wins.
        ips: List[str] = []
        for qtype in ("A", "AAAA"):
            try:
                answers = resolver.resolve(domain, qtype)
            except (dns.resolver.NXDOMAIN, dns.resolver.YXDOMAIN):
                break
            except (dns.resolver.NoAnswer, dns.resolver.NoNameservers, dns.exception.Timeout):
                continue

            for rr in answers:
                ip_text = str(rr).strip()
                try:
                    ipaddress.ip_address(ip_text)
                except ValueError:
                    continue
                if ip_text not in ips:
                    ips.append(ip_text)
        return ips

    def _fetch_leaf_certificate(self, domain: str) -> Optional[bytes]:
        ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        with socket.create_connection((domain, self.port), timeout=self.timeout) as sock:
            with ctx.wrap_socket(sock, server_hostname=domain) as tls_sock:
                return tls_sock.getpeercert(binary_form=True)

    def scan(self, domain: str) -> ScanResult:
        try:
            ips = self.resolve(domain)
        except Exception as exc:
            logger.debug("%s: resolution failed (%s: %s)", domain, exc.__class__.__name__, exc)
            ips = []
        if not ips:
            logger.debug("%s: %s", domain, STATUS_NXDOMAIN)
            return ScanResult(domain=domain, ip=NO_IP, status=STATUS_NXDOMAIN)

        ip = ips[0]
        try:
            der_cert = self.handshake(domain)
        except Exception as exc:
            logger.debug("%s: %s (%s: %s)", domain, STATUS_TLS_ERROR, exc.__class__.__name__, exc)
            return ScanResult(domain=domain, ip=ip, status=STATUS_TLS_ERROR)

        if not der_cert:
            logger.debug("%s: %s", domain, STATUS_NO_CERT)
            return ScanResult(domain=domain, ip=ip, status=STATUS_NO_CERT)

        try:
            subject, issuer, valid_to = certificate_fields(der_cert)
        except Exception as exc:
            # An unparseable leaf is reported like a failed handshake.
            logger.debug("%s: unreadable certificate (%s: %s)", domain, exc.__class__.__name__, exc)
            return ScanResult(domain=domain, ip=ip, status=STATUS_TLS_ERROR)

        logger.debug("%s: %s subject=%s issuer=%s valid_to=%s", domain, STATUS_OK, subject, issuer, valid_to)
        return ScanResult(
            domain=domain,
            ip=ip,
            status=STATUS_OK,
            subject=subject,
            issuer=issuer,
            valid_to=valid_to,
        )
