"""Errors raised by the compatibility checks."""

from typing import Optional


class CompatCheckError(Exception):
    """Base class for errors that void a check."""


class TransportError(CompatCheckError):
    """Raised when a page cannot be fetched (network, DNS, TLS, timeout)."""
    def __init__(self, message: str, url: Optional[str] = None):
        self.message = message
        self.url = url
        super().__init__(message)


class DecodeError(CompatCheckError):
    """Raised when a response body cannot be turned into markup."""
    def __init__(self, message: str, encoding: Optional[str] = None):
        self.message = message
        self.encoding = encoding
        super().__init__(message)
