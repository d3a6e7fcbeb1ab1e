"""SOCKS5 wire format for the client side of RFC 1928.

This module builds the requests the client sends and validates the replies it gets:
- Method negotiation greeting (no-auth only)
- CONNECT requests using the domain-name address type
- Method-selection and CONNECT reply checks

Only the status byte of a CONNECT reply is inspected. The bound address that
follows it is ignored.

Example:
    request = build_connect_request("example.com", 50001)
    # b"\\x05\\x01\\x00\\x03\\x0bexample.com\\xc3Q"
"""

import struct
from typing import Final

from socks_socket.core.exceptions import (
    ConnectError,
    EncodingError,
    MalformedConnectReplyError,
    MalformedGreetingError,
    NegotiationError,
)

# SOCKS protocol constants
SOCKS_VERSION: Final = 5
CONNECT_CMD: Final = 1
RESERVED: Final = 0
ADDR_TYPE_DOMAIN: Final = 3

# Authentication methods
METHOD_NO_AUTH: Final = 0
METHOD_NO_ACCEPTABLE: Final = 0xFF

# Field limits
MAX_DOMAIN_LENGTH: Final = 255
MAX_PORT: Final = 0xFFFF
MIN_REPLY_LENGTH: Final = 2

# Reply codes
RESP_SUCCESS: Final = 0
SOCKS5_ERRORS: Final = {
    0x01: "General SOCKS server failure",
    0x02: "Connection not allowed by ruleset",
    0x03: "Network unreachable",
    0x04: "Host unreachable",
    0x05: "Connection refused",
    0x06: "TTL expired",
    0x07: "Command not supported, or protocol error",
    0x08: "Address type not supported",
}


def build_greeting() -> bytes:
    """Build the method negotiation request offering only no-auth."""
    return struct.pack("!BBB", SOCKS_VERSION, 1, METHOD_NO_AUTH)


def build_connect_request(domain: str, port: int) -> bytes:
    """Build a CONNECT request for a domain name target.

    Args:
        domain: Destination host name, resolved by the proxy
        port: Destination port

    Returns:
        bytes: ``05 01 00 03 LEN <domain> PORT_HI PORT_LO``

    Raises:
        EncodingError: If the domain is empty, longer than 255 bytes,
            or the port is outside 0-65535
    """
    domain_bytes = domain.encode("utf-8")
    if not domain_bytes:
        raise EncodingError("Domain name must not be empty")
    if len(domain_bytes) > MAX_DOMAIN_LENGTH:
        raise EncodingError(
            f"Domain name is {len(domain_bytes)} bytes, SOCKS5 allows at most {MAX_DOMAIN_LENGTH}"
        )
    if not 0 <= port <= MAX_PORT:
        raise EncodingError(f"Port {port} is outside 0-{MAX_PORT}")

    header = struct.pack("!BBBBB", SOCKS_VERSION, CONNECT_CMD, RESERVED, ADDR_TYPE_DOMAIN, len(domain_bytes))
    return header + domain_bytes + struct.pack("!H", port)


def parse_method_selection(reply: bytes) -> int:
    """Validate the proxy's method-selection reply.

    Returns:
        int: The selected method (always no-auth on success)

    Raises:
        MalformedGreetingError: If the reply is short or has the wrong version
        NegotiationError: If the proxy did not select no-auth
    """
    if len(reply) < MIN_REPLY_LENGTH:
        raise MalformedGreetingError(f"Greeting reply too short: {reply.hex() or 'empty'}")

    version, method = struct.unpack("!BB", reply[:MIN_REPLY_LENGTH])
    if version != SOCKS_VERSION:
        raise MalformedGreetingError(f"Unexpected SOCKS version {version} in greeting reply")
    if method != METHOD_NO_AUTH:
        if method == METHOD_NO_ACCEPTABLE:
            raise NegotiationError("Proxy accepted none of the offered authentication methods")
        raise NegotiationError(f"Proxy selected unsupported authentication method {method:#04x}")
    return method


def parse_connect_reply(reply: bytes, domain: str, port: int) -> int:
    """Validate the proxy's CONNECT reply.

    Returns:
        int: The reply status (always success)

    Raises:
        MalformedConnectReplyError: If the reply is short or has the wrong version
        ConnectError: If the proxy reports a failure status
    """
    if len(reply) < MIN_REPLY_LENGTH:
        raise MalformedConnectReplyError(domain, port, reason=f"reply too short: {reply.hex() or 'empty'}")

    version, status = struct.unpack("!BB", reply[:MIN_REPLY_LENGTH])
    if version != SOCKS_VERSION:
        raise MalformedConnectReplyError(domain, port, reason=f"unexpected SOCKS version {version}")
    if status != RESP_SUCCESS:
        reason = SOCKS5_ERRORS.get(status, f"unknown status {status:#04x}")
        raise ConnectError(domain, port, status=status, reason=reason)
    return status
