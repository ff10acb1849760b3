# mtls_greeter/errors.py


class MTLSError(Exception):
    """Base class for errors raised while building TLS configuration."""


class InvalidPolicyError(MTLSError, ValueError):
    """Client-auth policy value outside 0..4."""


class CertificateLoadError(MTLSError):
    """A certificate, key or CA bundle could not be read or parsed."""
