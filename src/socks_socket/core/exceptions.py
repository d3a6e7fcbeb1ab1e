"""Custom exceptions for the SOCKS5 client.

This module defines the exceptions raised by the client engine and its transport.
They separate:
- Transport failures (lost or closed connections, certificate pin mismatches)
- Proxy-reported failures (method rejected, CONNECT refused)
- Protocol violations (short or malformed replies)
- Local encoding errors (domain or port out of range)

Transport failures that happen while nobody is waiting are delivered through the
response channel and raised by whichever call consumes them next.

Example:
    try:
        await sock.connect_to("example.com", 443)
    except ConnectError as e:
        console.print(f"[red]Tunnel to {e.domain} failed: {e}")
"""


class ProxyError(Exception):
    """Base exception for proxy errors."""


class TransportError(ProxyError):
    """Raised when the underlying stream fails or closes unexpectedly."""


class ConnectionClosedError(TransportError):
    """Raised when reading from or writing to a closed connection."""


class CertificateMismatchError(TransportError):
    """Raised when a pinned certificate fingerprint does not match the peer."""

    def __init__(self, host: str, expected: str, actual: str) -> None:
        super().__init__(f"Certificate for {host} changed: pinned {expected}, got {actual}")
        self.host = host
        self.expected = expected
        self.actual = actual


class NegotiationError(ProxyError):
    """Raised when the proxy rejects the offered authentication method."""


class ConnectError(ProxyError):
    """Raised when the proxy cannot open a tunnel to the requested target."""

    def __init__(self, domain: str, port: int, status: int | None = None, reason: str | None = None) -> None:
        message = f"Failed to connect to {domain}:{port} through SOCKS5 proxy"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.domain = domain
        self.port = port
        self.status = status


class EncodingError(ProxyError, ValueError):
    """Raised when a CONNECT target cannot be encoded on the wire."""


class ProtocolViolationError(ProxyError):
    """Raised when the proxy sends a reply that is not valid SOCKS5."""


class MalformedGreetingError(ProtocolViolationError, NegotiationError):
    """Raised when the method-selection reply is short or malformed."""


class MalformedConnectReplyError(ProtocolViolationError, ConnectError):
    """Raised when the CONNECT reply is short or malformed."""


class InvalidStateError(ProxyError):
    """Raised when a command is issued in the wrong connection state."""


class UnsupportedPlatformError(ProxyError):
    """Raised when the interpreter cannot provide a TLS-capable transport."""
