# mtls_greeter/__init__.py
"""Mutually-authenticated TLS greeting server and client."""

__version__ = "1.0.0"
