# mtls_greeter/policy.py
"""Client certificate verification policy for the HTTPS listener.

The five levels follow the usual TLS server client-auth settings::

    0 - certificate not requested
    1 - request a certificate, not required
    2 - require any client certificate
    3 - if provided, verify the client certificate chains to the CA
    4 - require a certificate and verify it chains to the CA

Python's ``ssl`` module has no verification callback, so once a listener
requests a certificate OpenSSL always chain-verifies whatever is presented.
Levels 1 and 2 therefore cannot skip verification at the socket: a presented
certificate must chain to the configured CA bundle, and under level 2 a
certificate from any other CA fails the handshake exactly as under level 4.
``verifies_chain`` describes the intended policy, not what OpenSSL enforces.
"""
import enum
import ssl
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from mtls_greeter.errors import CertificateLoadError, InvalidPolicyError


class ClientAuthPolicy(enum.IntEnum):
    NO_CLIENT_CERT = 0
    REQUEST_CLIENT_CERT = 1
    REQUIRE_ANY_CLIENT_CERT = 2
    VERIFY_CLIENT_CERT_IF_GIVEN = 3
    REQUIRE_AND_VERIFY_CLIENT_CERT = 4

    @classmethod
    def parse(cls, value) -> "ClientAuthPolicy":
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise InvalidPolicyError(f"Invalid client auth policy {value!r}") from None
        try:
            return cls(number)
        except ValueError:
            raise InvalidPolicyError(
                f"Invalid value {number}, it must be a number between 0 and 4 inclusive"
            ) from None

    @property
    def requests_certificate(self) -> bool:
        return self is not ClientAuthPolicy.NO_CLIENT_CERT

    @property
    def requires_certificate(self) -> bool:
        return self in (
            ClientAuthPolicy.REQUIRE_ANY_CLIENT_CERT,
            ClientAuthPolicy.REQUIRE_AND_VERIFY_CLIENT_CERT,
        )

    @property
    def verifies_chain(self) -> bool:
        return self in (
            ClientAuthPolicy.VERIFY_CLIENT_CERT_IF_GIVEN,
            ClientAuthPolicy.REQUIRE_AND_VERIFY_CLIENT_CERT,
        )

    @property
    def needs_ca(self) -> bool:
        return self > ClientAuthPolicy.REQUEST_CLIENT_CERT

    @property
    def verify_mode(self) -> ssl.VerifyMode:
        if not self.requests_certificate:
            return ssl.CERT_NONE
        if self.requires_certificate:
            return ssl.CERT_REQUIRED
        return ssl.CERT_OPTIONAL


@dataclass(frozen=True)
class ServerTLSOptions:
    server_name: str
    certfile: str
    keyfile: str
    policy: ClientAuthPolicy = ClientAuthPolicy.NO_CLIENT_CERT
    ca_certs: Optional[str] = None

    @property
    def cert_reqs(self) -> ssl.VerifyMode:
        return self.policy.verify_mode

    def uvicorn_kwargs(self) -> dict:
        kwargs = {
            "ssl_certfile": self.certfile,
            "ssl_keyfile": self.keyfile,
            "ssl_cert_reqs": self.cert_reqs,
        }
        if self.ca_certs:
            kwargs["ssl_ca_certs"] = self.ca_certs
        return kwargs


def load_ca_bundle(path) -> List[x509.Certificate]:
    """Read a PEM CA bundle into a list of trusted certificates."""
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise CertificateLoadError(f"Error opening cert file {path}, error {e}") from e
    try:
        certs = x509.load_pem_x509_certificates(data)
    except ValueError as e:
        raise CertificateLoadError(f"Error parsing cert file {path}, error {e}") from e
    if not certs:
        raise CertificateLoadError(f"No certificates found in {path}")
    return certs


def ca_bundle_pem(certs: List[x509.Certificate]) -> str:
    return "".join(c.public_bytes(serialization.Encoding.PEM).decode() for c in certs)


def build_server_tls(
    host: str,
    srvcert: str,
    srvkey: str,
    cacert: Optional[str],
    policy: ClientAuthPolicy,
) -> ServerTLSOptions:
    ca_certs = None
    if policy.needs_ca:
        if not cacert:
            raise CertificateLoadError(
                f"A CA bundle is required for client auth policy {int(policy)}"
            )
        load_ca_bundle(cacert)
        ca_certs = cacert
    elif policy is ClientAuthPolicy.REQUEST_CLIENT_CERT and cacert:
        # not read here; a presented certificate still needs a trust anchor
        ca_certs = cacert

    return ServerTLSOptions(
        server_name=host,
        certfile=srvcert,
        keyfile=srvkey,
        policy=policy,
        ca_certs=ca_certs,
    )
